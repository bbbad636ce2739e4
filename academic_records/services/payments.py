# academic_records/services/payments.py
import logging
from datetime import datetime

from pymongo import ReturnDocument

from academic_records import authz
from academic_records.authz import PAYMENT, Action
from academic_records.database import object_id, translate_errors
from academic_records.errors import NotFoundError, ValidationError
from academic_records.models.student import serialize_payment
from academic_records.payment_cycle import cycle_state, derive_payment_state, next_payment_due, reset_cutoff
from academic_records.utils.validation import parse_amount, parse_datetime, provided

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, database, config):
        self.database = database
        self.cycle_days = config.get("PAYMENT_CYCLE_DAYS", 30)

    def _student(self, student_id):
        with translate_errors():
            doc = self.database.students.find_one({"_id": object_id(student_id, "Student")})
        if doc is None:
            raise NotFoundError("Student not found")
        return doc

    def _anchor(self, doc):
        return doc.get("last_payment_date") or doc["created_at"]

    def get_status(self, actor, student_id, now=None):
        now = now or datetime.utcnow()
        doc = self._student(student_id)
        authz.require(actor, Action(authz.READ, PAYMENT, resource=doc))

        cycle = cycle_state(self._anchor(doc), now, self.cycle_days)
        if cycle.needs_reset:
            # the sweep may already have cleared has_paid without touching the amount
            derived = derive_payment_state(doc.get("payment_details"), now, cycle)
            stored = (doc.get("payment_amount", 0), doc.get("has_paid", False))
            if derived != stored:
                amount, has_paid = derived
                with translate_errors():
                    self.database.students.update_one(
                        {"_id": doc["_id"]},
                        {"$set": {"has_paid": has_paid, "payment_amount": amount}},
                    )
                doc["has_paid"], doc["payment_amount"] = has_paid, amount
                logger.info("Payment cycle lapsed for student %s, owes %s", doc["_id"], amount)
        return serialize_payment(doc, now, self.cycle_days)

    def update_payment(self, actor, student_id, data, now=None):
        """Record a payment (hasPaid true) or open a new bill (hasPaid false).

        paymentAmount/hasPaid on the student are then re-derived from the
        latest payment detail, never copied from the request.
        """
        now = now or datetime.utcnow()
        doc = self._student(student_id)
        authz.require(actor, Action(authz.UPDATE, PAYMENT, resource=doc))

        if "paymentAmount" not in data:
            raise ValidationError("Invalid payment amount")
        amount = parse_amount(data["paymentAmount"], "payment amount")
        has_paid = data.get("hasPaid")
        if not isinstance(has_paid, bool):
            raise ValidationError("Invalid payment status")
        increased = parse_amount(data["increasedAmount"], "increased amount") \
            if provided(data, "increasedAmount") else amount

        details = list(doc.get("payment_details") or [])
        last_payment_date = doc.get("last_payment_date")
        if has_paid:
            if details and not details[-1].get("is_paid"):
                details[-1] = dict(details[-1], is_paid=True)
            else:
                details.append({"initial_amount": amount, "increased_amount": increased,
                                "due_date": now, "is_paid": True, "created_at": now})
            last_payment_date = now
        else:
            due = parse_datetime(data["dueDate"], "due date") if provided(data, "dueDate") \
                else next_payment_due(self._anchor(doc), self.cycle_days)
            details.append({"initial_amount": amount, "increased_amount": increased,
                            "due_date": due, "is_paid": False, "created_at": now})

        cycle = cycle_state(last_payment_date or doc["created_at"], now, self.cycle_days)
        payment_amount, paid = derive_payment_state(details, now, cycle)
        with translate_errors():
            updated = self.database.students.find_one_and_update(
                {"_id": doc["_id"]},
                {"$set": {
                    "payment_details": details,
                    "payment_amount": payment_amount,
                    "has_paid": paid,
                    "last_payment_date": last_payment_date,
                }},
                return_document=ReturnDocument.AFTER,
            )
        if updated is None:
            raise NotFoundError("Student not found")
        logger.info("Payment updated for student %s by %s (paid=%s)", doc["_id"], actor.id, paid)
        return serialize_payment(updated, now, self.cycle_days)

    def sweep(self, now=None):
        """Mark lapsed payments unpaid. Safe to run repeatedly or concurrently."""
        now = now or datetime.utcnow()
        cutoff = reset_cutoff(now, self.cycle_days)
        with translate_errors():
            result = self.database.students.update_many(
                {
                    "has_paid": True,
                    "$or": [
                        {"last_payment_date": {"$lt": cutoff}},
                        {"last_payment_date": None, "created_at": {"$lt": cutoff}},
                    ],
                },
                {"$set": {"has_paid": False}},
            )
        logger.info("Payment cycle reset completed, %d students updated", result.modified_count)
        return result.modified_count

    def auto_reset(self, actor, now=None):
        authz.require(actor, Action(authz.RESET, PAYMENT))
        return self.sweep(now)
