# academic_records/models/account.py
from datetime import datetime

from academic_records.authz import Role, class_pair


def normalize_classes(assigned_classes):
    seen = []
    for item in assigned_classes or []:
        pair = class_pair(item)
        if pair not in seen:
            seen.append(pair)
    return [{"class": k, "section": s} for k, s in seen]


def new_account(first_name, last_name, email, password_hash, role, created_by=None,
                admin_code=None, assigned_classes=None, now=None):
    doc = {
        "first_name": first_name.strip(),
        "last_name": last_name.strip(),
        "email": email.lower().strip(),
        "password_hash": password_hash,
        "role": Role(role).value,
        "created_by": created_by,
        "refresh_tokens": [],
        "created_at": now or datetime.utcnow(),
    }
    # admin_code stays absent for other roles so the sparse index skips them
    if admin_code is not None:
        doc["admin_code"] = admin_code
    if role == Role.TEACHER.value or role is Role.TEACHER:
        doc["assigned_classes"] = normalize_classes(assigned_classes)
    return doc


def serialize_account(doc, creator=None):
    data = {
        "id": str(doc["_id"]),
        "firstName": doc.get("first_name", ""),
        "lastName": doc.get("last_name", ""),
        "email": doc.get("email", ""),
        "role": doc.get("role"),
        "createdBy": str(doc["created_by"]) if doc.get("created_by") else None,
        "createdAt": doc.get("created_at"),
    }
    if doc.get("role") == Role.ADMIN.value:
        data["adminCode"] = doc.get("admin_code")
    if doc.get("role") == Role.TEACHER.value:
        data["assignedClasses"] = doc.get("assigned_classes", [])
    if creator is not None:
        data["createdBy"] = {
            "id": str(creator["_id"]),
            "firstName": creator.get("first_name", ""),
            "lastName": creator.get("last_name", ""),
            "email": creator.get("email", ""),
        }
    return data
