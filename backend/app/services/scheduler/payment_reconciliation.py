"""
Payment reconciliation job.

Payments whose capacity could not be applied when the provider event arrived
(unknown package or organization, or a package below the current headcount)
are retried on an interval until they apply.
"""
import logging
from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.interval import IntervalTrigger
from app.core.config import RECONCILIATION_INTERVAL_MINUTES
from app.core.database import SessionLocal
from app.services.scheduler.scheduler_service import get_scheduler, start_scheduler
from app.services.subscription import reconcile_unapplied_payments

logger = logging.getLogger(__name__)

JOB_ID = "payment_reconciliation"


def run_payment_reconciliation() -> dict:
    """Run one reconciliation pass in its own session."""
    db = SessionLocal()
    try:
        return reconcile_unapplied_payments(db)
    except Exception as e:
        logger.error(f"Error in payment reconciliation job: {e}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()


def add_reconciliation_job(interval_minutes: int = RECONCILIATION_INTERVAL_MINUTES):
    """Add the payment reconciliation job to the scheduler."""
    scheduler = get_scheduler()

    try:
        scheduler.remove_job(JOB_ID)
    except JobLookupError:
        pass

    scheduler.add_job(
        run_payment_reconciliation,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Added payment reconciliation job (every {interval_minutes} min)")


def start_reconciliation_job():
    """Start the scheduler and register the reconciliation job."""
    start_scheduler()
    add_reconciliation_job()
