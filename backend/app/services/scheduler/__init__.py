"""
Scheduler service for background jobs.
"""
from app.services.scheduler.scheduler_service import (
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)
from app.services.scheduler.payment_reconciliation import (
    run_payment_reconciliation,
    add_reconciliation_job,
    start_reconciliation_job,
)

__all__ = [
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
    "run_payment_reconciliation",
    "add_reconciliation_job",
    "start_reconciliation_job",
]
