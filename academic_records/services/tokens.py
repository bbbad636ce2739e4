# academic_records/services/tokens.py
"""Access tokens and the rotating refresh-token set kept on each subject.

Accounts and students both carry ``refresh_tokens``: at most
MAX_REFRESH_TOKENS live entries, each valid for REFRESH_TOKEN_DAYS. The
oldest entry is evicted when a new one would overflow the set.
"""
import logging
from datetime import datetime, timedelta

from pymongo import ReturnDocument

from academic_records.database import object_id, translate_errors
from academic_records.errors import InvalidTokenError, ValidationError
from academic_records.utils.jwt_manager import create_refresh_token, create_token, decode_token
from academic_records.utils.security import verify_password

logger = logging.getLogger(__name__)


def token_set_updates(token, now, limit=5, ttl_days=7):
    """The two atomic updates that add `token`: prune expired entries, then
    push and keep the newest `limit` in issue order."""
    cutoff = now - timedelta(days=ttl_days)
    prune = {"$pull": {"refresh_tokens": {"created_at": {"$lte": cutoff}}}}
    push = {"$push": {"refresh_tokens": {
        "$each": [{"token": token, "created_at": now}],
        "$slice": -max(limit, 1),
    }}}
    return prune, push


class TokenService:
    def __init__(self, database, config):
        self.database = database
        self.secret = config["JWT_SECRET"]
        self.access_hours = config.get("ACCESS_TOKEN_HOURS", 24)
        self.ttl_days = config.get("REFRESH_TOKEN_DAYS", 7)
        self.limit = config.get("MAX_REFRESH_TOKENS", 5)

    def _collections(self):
        return (self.database.accounts, self.database.students)

    def issue_tokens(self, subject_id, now=None):
        now = now or datetime.utcnow()
        return {
            "accessToken": create_token(subject_id, self.secret, self.access_hours, now=now),
            "refreshToken": create_refresh_token(),
        }

    def _store(self, collection, subject_id, token, now):
        # no read-modify-write: concurrent grants on one subject must all land
        prune, push = token_set_updates(token, now, self.limit, self.ttl_days)
        with translate_errors():
            collection.update_one({"_id": subject_id}, prune)
            collection.update_one({"_id": subject_id}, push)

    def grant(self, collection, subject_id, now=None):
        now = now or datetime.utcnow()
        pair = self.issue_tokens(subject_id, now=now)
        self._store(collection, subject_id, pair["refreshToken"], now)
        return pair

    # =====================================================
    # SIGN IN (accounts by email, students by username)
    # =====================================================
    def sign_in(self, login, password, now=None):
        if not login or not password:
            raise ValidationError("Email and password are required")

        with translate_errors():
            doc = self.database.accounts.find_one({"email": str(login).lower().strip()})
            collection = self.database.accounts
            if doc is None:
                doc = self.database.students.find_one({"user_name": str(login).strip()})
                collection = self.database.students

        if doc is None or not verify_password(doc.get("password_hash"), password):
            logger.info("Failed sign-in for %s", login)
            raise ValidationError("Invalid email/username or password")

        pair = self.grant(collection, doc["_id"], now=now)
        kind = "student" if collection is self.database.students else "account"
        return pair, kind, doc

    def rotate_refresh(self, old_token, now=None):
        if not old_token or not isinstance(old_token, str):
            raise ValidationError("Refresh token required")
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=self.ttl_days)
        live = {"refresh_tokens": {"$elemMatch": {"token": old_token, "created_at": {"$gt": cutoff}}}}

        for collection in self._collections():
            with translate_errors():
                # Pulling inside the match makes each refresh token single-use
                doc = collection.find_one_and_update(
                    live,
                    {"$pull": {"refresh_tokens": {"token": old_token}}},
                    projection={"_id": 1},
                    return_document=ReturnDocument.AFTER,
                )
            if doc is not None:
                return self.grant(collection, doc["_id"], now=now)

        raise InvalidTokenError("Invalid refresh token")

    def logout(self, subject_id, token):
        if not token or not isinstance(token, str):
            raise ValidationError("Refresh token required")
        oid = object_id(subject_id, "User")
        for collection in self._collections():
            with translate_errors():
                result = collection.update_one({"_id": oid}, {"$pull": {"refresh_tokens": {"token": token}}})
            if result.matched_count:
                return True
        return False

    def authenticate(self, access_token):
        return decode_token(access_token, self.secret)["id"]
