# academic_records/utils/security.py
from werkzeug.security import check_password_hash, generate_password_hash

from academic_records.errors import ValidationError


def hash_password(plain):
    return generate_password_hash(plain)


def verify_password(password_hash, candidate):
    if not password_hash or candidate is None:
        return False
    return check_password_hash(password_hash, candidate)


def check_password_length(password, minimum):
    if not isinstance(password, str) or len(password) < minimum:
        raise ValidationError(f"Password must be at least {minimum} characters")
