# academic_records/config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _int(name, default):
    return int(os.environ.get(name, default))


class Config:
    # =====================================================
    # DATABASE
    # =====================================================
    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "academic_records")
    # Fail fast instead of hanging when the server is unreachable
    MONGO_TIMEOUT_MS = _int("MONGO_TIMEOUT_MS", 5000)

    # =====================================================
    # TOKENS
    # =====================================================
    JWT_SECRET = os.environ.get("JWT_SECRET", "CHANGE_THIS_SECRET")
    ACCESS_TOKEN_HOURS = _int("ACCESS_TOKEN_HOURS", 24)
    REFRESH_TOKEN_DAYS = _int("REFRESH_TOKEN_DAYS", 7)
    MAX_REFRESH_TOKENS = _int("MAX_REFRESH_TOKENS", 5)

    # =====================================================
    # RECORD RULES
    # =====================================================
    MIN_PASSWORD_LENGTH = _int("MIN_PASSWORD_LENGTH", 6)
    ADMIN_CODE_RETRIES = _int("ADMIN_CODE_RETRIES", 5)
    PAYMENT_CYCLE_DAYS = _int("PAYMENT_CYCLE_DAYS", 30)
    # 0 disables the background payment sweep
    PAYMENT_SWEEP_HOURS = _int("PAYMENT_SWEEP_HOURS", 0)

    # Optional JSON overrides for the grade table and class subjects
    GRADE_POLICY_FILE = os.environ.get("GRADE_POLICY_FILE", "")
    SUBJECTS_FILE = os.environ.get("SUBJECTS_FILE", "")

    # =====================================================
    # MAIL (best effort, disabled without SMTP_HOST)
    # =====================================================
    SMTP_HOST = os.environ.get("SMTP_HOST", "")
    SMTP_PORT = _int("SMTP_PORT", 587)
    SMTP_USER = os.environ.get("SMTP_USER", "")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = os.environ.get("SMTP_USE_TLS", "1").lower() not in ("0", "false", "no")
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "School Management <no-reply@localhost>")
    SMTP_TIMEOUT = _int("SMTP_TIMEOUT", 20)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
