# academic_records/payment_cycle.py
from dataclasses import dataclass
from datetime import timedelta

CYCLE_DAYS = 30


@dataclass(frozen=True)
class CycleState:
    days_left: int
    is_overdue: bool
    needs_reset: bool


def cycle_state(last_payment_date, now, cycle_days=CYCLE_DAYS):
    elapsed_days = (now - last_payment_date) // timedelta(days=1)
    if elapsed_days >= cycle_days:
        return CycleState(days_left=0, is_overdue=True, needs_reset=True)
    return CycleState(days_left=max(0, cycle_days - elapsed_days), is_overdue=False, needs_reset=False)


def next_payment_due(last_payment_date, cycle_days=CYCLE_DAYS):
    return last_payment_date + timedelta(days=cycle_days)


def reset_cutoff(now, cycle_days=CYCLE_DAYS):
    """Payments made before this instant have lapsed."""
    return now - timedelta(days=cycle_days)


def derive_payment_state(details, now, cycle=None):
    """Return (payment_amount, has_paid) from the latest payment detail.

    `cycle` is the current CycleState; a paid detail whose cycle has lapsed
    counts as unpaid again and owes its initial amount.
    """
    if not details:
        return 0, False

    latest = details[-1]
    if latest.get("is_paid"):
        if cycle is not None and cycle.needs_reset:
            return latest.get("initial_amount", 0), False
        return 0, True
    if now > latest["due_date"]:
        return latest.get("increased_amount", 0), False
    return latest.get("initial_amount", 0), False
