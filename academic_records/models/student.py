# academic_records/models/student.py
from datetime import datetime

from academic_records.payment_cycle import cycle_state, next_payment_due


def new_student(name, user_name, password_hash, roll, klass, section, created_by, now=None):
    return {
        "name": name.strip(),
        "user_name": user_name.strip(),
        "password_hash": password_hash,
        "roll": roll,
        "class": str(klass).strip(),
        "section": str(section).strip(),
        "created_by": created_by,
        "payment_amount": 0,
        "has_paid": False,
        "last_payment_date": None,
        "payment_details": [],
        "refresh_tokens": [],
        "created_at": now or datetime.utcnow(),
    }


def serialize_student(doc):
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name", ""),
        "userName": doc.get("user_name", ""),
        "roll": doc.get("roll"),
        "class": doc.get("class"),
        "section": doc.get("section"),
        "createdBy": str(doc["created_by"]) if doc.get("created_by") else None,
        "createdAt": doc.get("created_at"),
    }


def serialize_payment_detail(detail):
    return {
        "initialAmount": detail.get("initial_amount", 0),
        "increasedAmount": detail.get("increased_amount", 0),
        "dueDate": detail.get("due_date"),
        "isPaid": detail.get("is_paid", False),
        "createdAt": detail.get("created_at"),
    }


def serialize_payment(doc, now, cycle_days):
    anchor = doc.get("last_payment_date") or doc.get("created_at")
    cycle = cycle_state(anchor, now, cycle_days)
    data = serialize_student(doc)
    data.update({
        "paymentAmount": doc.get("payment_amount", 0),
        "hasPaid": False if cycle.needs_reset else doc.get("has_paid", False),
        "lastPaymentDate": doc.get("last_payment_date"),
        "daysLeft": cycle.days_left,
        "isOverdue": cycle.is_overdue,
        "nextPaymentDue": next_payment_due(anchor, cycle_days),
        "paymentDetails": [serialize_payment_detail(d) for d in doc.get("payment_details", [])],
    })
    return data
