# academic_records/utils/validation.py
from datetime import datetime

from academic_records.errors import ValidationError


def provided(data, key):
    value = data.get(key)
    return value is not None and value != ""


def require_fields(data, names, message="All fields are required"):
    if not all(provided(data, k) for k in names):
        raise ValidationError(message)


def clean_str(value):
    return str(value).strip()


def parse_roll(value):
    if isinstance(value, bool):
        raise ValidationError("Roll must be a positive whole number")
    try:
        roll = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Roll must be a positive whole number")
    if roll < 1:
        raise ValidationError("Roll must be a positive whole number")
    return roll


def parse_amount(value, label):
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValidationError(f"Invalid {label}")
    return value


def parse_datetime(value, label):
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {label}")
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def validate_classes(assigned_classes):
    if not isinstance(assigned_classes, list):
        raise ValidationError("assignedClasses must be an array")
    for item in assigned_classes:
        if not isinstance(item, dict) or not provided(item, "class") or not provided(item, "section"):
            raise ValidationError("Each assigned class must have both class and section")
    return assigned_classes
