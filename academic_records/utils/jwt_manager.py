# academic_records/utils/jwt_manager.py
import secrets
from datetime import datetime, timedelta

import jwt

from academic_records.errors import AuthenticationError, DependencyError

ALGORITHM = "HS256"


def create_token(subject_id, secret, hours=24, now=None):
    now = now or datetime.utcnow()
    payload = {"id": str(subject_id), "iat": now, "exp": now + timedelta(hours=hours)}
    try:
        return jwt.encode(payload, secret, algorithm=ALGORITHM)
    except jwt.PyJWTError as e:
        raise DependencyError(f"token signing failed: {e}")


def decode_token(token, secret):
    if not token:
        raise AuthenticationError("Access token required")
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Invalid or expired token")
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token")
    if not payload.get("id"):
        raise AuthenticationError("Invalid or expired token")
    return payload


def create_refresh_token():
    return secrets.token_hex(40)
