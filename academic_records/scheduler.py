# academic_records/scheduler.py
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from academic_records.errors import RecordsError

logger = logging.getLogger(__name__)


def payment_sweep_job(app):
    with app.app_context():
        try:
            count = app.extensions["records"].payments.sweep()
        except RecordsError as exc:
            # The next run retries; the job itself must stay scheduled
            logger.error("Payment sweep failed: %s", getattr(exc, "detail", exc))
            return None
        logger.info("Payment sweep reset %s students", count)
        return count


def start_scheduler(app):
    hours = app.config.get("PAYMENT_SWEEP_HOURS", 0)
    if not hours or hours <= 0:
        return None

    scheduler = BackgroundScheduler()
    scheduler.add_job(lambda: payment_sweep_job(app), "interval", hours=hours,
                      id="payment_cycle_sweep", replace_existing=True)
    scheduler.start()
    logger.info("Payment sweep scheduled every %s hours", hours)
    return scheduler
