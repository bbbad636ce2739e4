# academic_records/services/accounts.py
import logging
import re
from datetime import datetime

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from academic_records import authz
from academic_records.authz import ACCOUNT, Action, Actor, Role
from academic_records.database import object_id, scope_query, translate_errors
from academic_records.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from academic_records.models.account import new_account, normalize_classes, serialize_account
from academic_records.models.student import serialize_student
from academic_records.utils.mailer import send_email
from academic_records.utils.security import check_password_length, hash_password
from academic_records.utils.validation import clean_str, provided, require_fields, validate_classes

logger = logging.getLogger(__name__)

SECRET_FIELDS = {"password_hash": 0, "refresh_tokens": 0}

# request key -> stored field
ACCOUNT_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "password": "password",
    "role": "role",
    "adminCode": "admin_code",
    "assignedClasses": "assigned_classes",
}


def next_admin_code(existing_codes, now):
    """YYMM followed by a 3-digit sequence, one past the highest used this month."""
    prefix = now.strftime("%y%m")
    sequence = 0
    for code in existing_codes:
        if code and code.startswith(prefix) and code[len(prefix):].isdigit():
            sequence = max(sequence, int(code[len(prefix):]))
    return prefix + str(sequence + 1).zfill(3)


class AccountService:
    def __init__(self, database, config):
        self.database = database
        self.config = config
        self.min_password = config.get("MIN_PASSWORD_LENGTH", 6)
        self.code_retries = config.get("ADMIN_CODE_RETRIES", 5)

    @property
    def accounts(self):
        return self.database.accounts

    def _get(self, account_id):
        with translate_errors():
            doc = self.accounts.find_one({"_id": object_id(account_id, "User")})
        if doc is None:
            raise NotFoundError("User not found")
        return doc

    def _creator(self, doc):
        if not doc.get("created_by"):
            return None
        with translate_errors():
            return self.accounts.find_one({"_id": doc["created_by"]}, SECRET_FIELDS)

    # =====================================================
    # ACTOR LOOKUP
    # =====================================================
    def load_actor(self, subject_id):
        oid = object_id(subject_id, "User")
        with translate_errors():
            doc = self.accounts.find_one({"_id": oid})
            if doc is None:
                student = self.database.students.find_one({"_id": oid})
                if student is None:
                    raise AuthenticationError("User not found")
                return Actor(id=str(oid), role=Role.STUDENT), student

            teacher_ids = frozenset()
            if doc["role"] == Role.ADMIN.value:
                teacher_ids = frozenset(
                    str(t["_id"]) for t in self.accounts.find(
                        {"created_by": oid, "role": Role.TEACHER.value}, {"_id": 1})
                )
        actor = Actor(
            id=str(oid),
            role=Role(doc["role"]),
            assigned_classes=tuple(doc.get("assigned_classes") or ()),
            teacher_ids=teacher_ids,
        )
        return actor, doc

    def _validated_new(self, data, need_classes=False):
        require_fields(data, ["firstName", "lastName", "email", "password"])
        check_password_length(data["password"], self.min_password)
        if need_classes:
            if "assignedClasses" not in data:
                raise ValidationError("All fields are required and assignedClasses must be an array")
            validate_classes(data["assignedClasses"])
        email = clean_str(data["email"]).lower()
        with translate_errors():
            if self.accounts.find_one({"email": email}):
                raise ConflictError("User already exists")
        return email

    def _welcome(self, doc):
        send_email(
            self.config, doc["email"], "Your school account is ready",
            f"Hello {doc['first_name']},\n\nAn account with the role {doc['role']} "
            f"has been created for you. Sign in with this email address.",
        )

    # =====================================================
    # CREATE
    # =====================================================
    def setup_super_admin(self, data, now=None):
        with translate_errors():
            if self.accounts.find_one({"role": Role.SUPER_ADMIN.value}):
                raise ConflictError("Super admin already exists")
        email = self._validated_new(data)
        doc = new_account(data["firstName"], data["lastName"], email, hash_password(data["password"]),
                          Role.SUPER_ADMIN, now=now)
        try:
            with translate_errors():
                doc["_id"] = self.accounts.insert_one(doc).inserted_id
        except DuplicateKeyError:
            raise ConflictError("User already exists")
        logger.info("Super admin created: %s", email)
        return serialize_account(doc)

    def generate_admin_code(self, now=None):
        now = now or datetime.utcnow()
        prefix = now.strftime("%y%m")
        with translate_errors():
            codes = [d.get("admin_code") for d in self.accounts.find(
                {"admin_code": {"$regex": "^" + re.escape(prefix)}}, {"admin_code": 1})]
        return next_admin_code(codes, now)

    def create_admin(self, actor, data, now=None):
        authz.require(actor, Action(authz.CREATE, ACCOUNT, resource={"role": Role.ADMIN.value}))
        email = self._validated_new(data)
        password_hash = hash_password(data["password"])

        # The scan-then-insert is not atomic; the unique index decides and we retry
        for attempt in range(1, self.code_retries + 1):
            code = self.generate_admin_code(now)
            doc = new_account(data["firstName"], data["lastName"], email, password_hash, Role.ADMIN,
                              created_by=object_id(actor.id), admin_code=code, now=now)
            try:
                with translate_errors():
                    doc["_id"] = self.accounts.insert_one(doc).inserted_id
            except DuplicateKeyError:
                with translate_errors():
                    if self.accounts.find_one({"email": email}):
                        raise ConflictError("User already exists")
                logger.warning("Admin code %s already taken, retrying (%d/%d)", code, attempt, self.code_retries)
                continue
            logger.info("Admin %s created with code %s by %s", email, code, actor.id)
            self._welcome(doc)
            return serialize_account(doc)

        raise ConflictError("Admin code already exists. Please try again.")

    def create_teacher(self, actor, data, now=None):
        authz.require(actor, Action(authz.CREATE, ACCOUNT, resource={
            "role": Role.TEACHER.value, "created_by": object_id(actor.id)}))
        email = self._validated_new(data, need_classes=True)
        doc = new_account(data["firstName"], data["lastName"], email, hash_password(data["password"]),
                          Role.TEACHER, created_by=object_id(actor.id),
                          assigned_classes=data["assignedClasses"], now=now)
        try:
            with translate_errors():
                doc["_id"] = self.accounts.insert_one(doc).inserted_id
        except DuplicateKeyError:
            raise ConflictError("User already exists")
        logger.info("Teacher %s created by %s", email, actor.id)
        self._welcome(doc)
        return serialize_account(doc)

    # =====================================================
    # READ
    # =====================================================
    def list_accounts(self, actor):
        scope = authz.scope_for(actor, ACCOUNT)
        with translate_errors():
            docs = list(self.accounts.find(scope_query(scope), SECRET_FIELDS).sort("created_at", DESCENDING))
        return [serialize_account(d, self._creator(d)) for d in docs]

    def list_teachers(self, actor, klass=None, section=None):
        scope = authz.scope_for(actor, ACCOUNT)
        query = {"$and": [scope_query(scope), {"role": Role.TEACHER.value}]}
        wanted = {}
        if klass:
            wanted["class"] = klass
        if section:
            wanted["section"] = section
        if wanted:
            query["$and"].append({"assigned_classes": {"$elemMatch": wanted}})
        with translate_errors():
            docs = list(self.accounts.find(query, SECRET_FIELDS).sort("created_at", DESCENDING))
        return [serialize_account(d, self._creator(d)) for d in docs]

    def get_profile(self, actor, actor_doc):
        if actor.role is Role.STUDENT:
            return serialize_student(actor_doc)
        return serialize_account(actor_doc, self._creator(actor_doc))

    # =====================================================
    # UPDATE / DELETE
    # =====================================================
    def update_account(self, actor, account_id, data):
        target = self._get(account_id)
        changes = {ACCOUNT_FIELDS[k]: data[k] for k in ACCOUNT_FIELDS if provided(data, k)}
        authz.require(actor, Action(authz.UPDATE, ACCOUNT, resource=target, fields=tuple(changes)))

        update = {"$set": {}, "$unset": {}}
        for key in ("first_name", "last_name"):
            if key in changes:
                update["$set"][key] = clean_str(changes[key])

        if "email" in changes:
            email = clean_str(changes["email"]).lower()
            if email != target["email"]:
                with translate_errors():
                    if self.accounts.find_one({"email": email}):
                        raise ConflictError("Email already in use")
                update["$set"]["email"] = email

        if "password" in changes:
            check_password_length(changes["password"], self.min_password)
            update["$set"]["password_hash"] = hash_password(changes["password"])

        role = target["role"]
        if "role" in changes and changes["role"] != role:
            if changes["role"] not in (Role.ADMIN.value, Role.TEACHER.value) or role == Role.SUPER_ADMIN.value:
                raise ValidationError("Only one super admin may exist")
            role = changes["role"]
            update["$set"]["role"] = role
            if role == Role.TEACHER.value:
                update["$unset"]["admin_code"] = ""
                update["$set"].setdefault("assigned_classes", [])
            elif not changes.get("admin_code"):
                update["$set"]["admin_code"] = self.generate_admin_code()

        if "admin_code" in changes and role == Role.ADMIN.value:
            with translate_errors():
                taken = self.accounts.find_one({"admin_code": changes["admin_code"]})
            if taken and taken["_id"] != target["_id"]:
                raise ConflictError("Admin code already in use")
            update["$set"]["admin_code"] = clean_str(changes["admin_code"])

        if "assigned_classes" in changes and role == Role.TEACHER.value:
            update["$set"]["assigned_classes"] = normalize_classes(validate_classes(changes["assigned_classes"]))

        update = {op: fields for op, fields in update.items() if fields}
        if update:
            try:
                with translate_errors():
                    self.accounts.update_one({"_id": target["_id"]}, update)
            except DuplicateKeyError:
                raise ConflictError("Email or admin code already exists")
        return serialize_account(self._get(target["_id"]))

    def delete_account(self, actor, account_id):
        target = self._get(account_id)
        authz.require(actor, Action(authz.DELETE, ACCOUNT, resource=target))
        with translate_errors():
            self.accounts.delete_one({"_id": target["_id"]})
        logger.info("Account %s deleted by %s", target["_id"], actor.id)
