"""
Subscription synchronizer service.

A payment-completed event is applied at most once per transaction_id: the
unique index on payments.transaction_id is the guard, so a redelivered event
(or two deliveries racing each other) records one payment and one capacity
update no matter how many workers see it.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from app.core.errors import DuplicatePaymentError, NotFoundError, ValidationError
from app.models.payment import Payment
from app.models.subscription_package import SubscriptionPackage
from app.services.subscription.subscription_models import (
    PackageRecord,
    PaymentApplication,
    PaymentCompletedEvent,
    PaymentRecord,
)

logger = logging.getLogger(__name__)


def _as_positive_id(name: str, value) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
    if value <= 0:
        raise ValidationError(f"{name} must be positive")
    return value


def _validate_event(event: PaymentCompletedEvent) -> PaymentCompletedEvent:
    if not event.transaction_id or not str(event.transaction_id).strip():
        raise ValidationError("transaction_id is required")
    try:
        amount = Decimal(str(event.amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number")
    if amount < 0:
        raise ValidationError("amount cannot be negative")

    return PaymentCompletedEvent(
        transaction_id=str(event.transaction_id).strip(),
        organization_id=_as_positive_id("organization_id", event.organization_id),
        package_id=_as_positive_id("package_id", event.package_id),
        amount=amount,
        completed_at=event.completed_at or datetime.now(timezone.utc),
    )


def _record_payment(db: Session, event: PaymentCompletedEvent) -> Payment:
    """Insert the payment row and flush; DuplicatePaymentError on redelivery."""
    payment = Payment(
        transaction_id=event.transaction_id,
        organization_id=event.organization_id,
        package_id=event.package_id,
        amount=event.amount,
        completed_at=event.completed_at,
    )
    db.add(payment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicatePaymentError(event.transaction_id)
    return payment


def _apply_package_capacity(db: Session, organization_id: int, package_id: int) -> Optional[str]:
    """
    Overwrite the organization's limit and tier with the package's.

    The new limit replaces the old one (never added to it) and is only written
    when it still covers current_employee_count. Does not commit.

    Returns:
        None on success, otherwise the reason it was not applied
    """
    package = db.execute(
        text("SELECT id, name, employee_limit FROM subscription_packages WHERE id = :package_id"),
        {"package_id": package_id}
    ).first()
    if not package:
        return f"package {package_id} not found"

    result = db.execute(
        text("""
            UPDATE organizations
            SET employee_limit = :limit,
                subscription_tier = :tier,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :org_id
              AND current_employee_count <= :limit
        """),
        {"limit": package.employee_limit, "tier": package.name, "org_id": organization_id}
    )
    if result.rowcount == 0:
        org = db.execute(
            text("SELECT id, current_employee_count FROM organizations WHERE id = :org_id"),
            {"org_id": organization_id}
        ).first()
        if not org:
            return f"organization {organization_id} not found"
        return (
            f"package limit {package.employee_limit} is below the current "
            f"employee count {org.current_employee_count}"
        )
    return None


def _newer_applied_payment(db: Session, payment_id: int, organization_id: int, completed_at: datetime) -> Optional[int]:
    """ID of a later payment of the organization whose capacity is already applied."""
    newer = db.query(Payment.id).filter(
        Payment.organization_id == organization_id,
        Payment.id != payment_id,
        Payment.completed_at > completed_at,
        Payment.capacity_applied_at.isnot(None),
    ).first()
    return newer.id if newer else None


def apply_payment_event(db: Session, event: PaymentCompletedEvent) -> PaymentApplication:
    """
    Apply a payment-completed event exactly once.

    1. Record the payment (unique transaction_id). A redelivery is absorbed:
       nothing is written and duplicate=True is returned.
    2. Overwrite the organization's employee_limit and subscription_tier with
       the purchased package's values, in the same transaction.
    3. If the package or organization is unknown, or the package would put the
       limit below the current headcount, the payment is still recorded with
       capacity_applied_at NULL for reconcile_unapplied_payments to retry.
    4. An event older than a payment already applied for the organization is
       recorded as applied without touching capacity (superseded=True).

    Args:
        db: Database session
        event: Payment event from the provider

    Returns:
        PaymentApplication

    Raises:
        ValidationError: malformed event
    """
    event = _validate_event(event)

    try:
        payment = _record_payment(db, event)
    except DuplicatePaymentError as e:
        logger.warning(f"Duplicate payment event ignored: {e.transaction_id}")
        return PaymentApplication(transaction_id=e.transaction_id, duplicate=True)

    newer_id = _newer_applied_payment(db, payment.id, event.organization_id, event.completed_at)
    if newer_id is not None:
        failure = None
    else:
        failure = _apply_package_capacity(db, event.organization_id, event.package_id)
    if failure is None:
        payment.capacity_applied_at = datetime.now(timezone.utc)

    try:
        db.commit()
    except IntegrityError:
        # Lost the insert race to a concurrent delivery of the same transaction
        db.rollback()
        logger.warning(f"Duplicate payment event ignored: {event.transaction_id}")
        return PaymentApplication(transaction_id=event.transaction_id, duplicate=True)
    db.refresh(payment)

    if newer_id is not None:
        logger.info(f"Payment {event.transaction_id} superseded by payment {newer_id}; capacity left unchanged")
    elif failure is None:
        logger.info(
            f"Payment {event.transaction_id} applied: organization {event.organization_id} "
            f"now on package {event.package_id}"
        )
    else:
        logger.error(
            f"Payment {event.transaction_id} recorded but capacity not applied ({failure}); "
            f"left for reconciliation"
        )

    return PaymentApplication(
        transaction_id=event.transaction_id,
        duplicate=False,
        capacity_applied=newer_id is None and failure is None,
        superseded=newer_id is not None,
        payment=PaymentRecord.from_db_row(payment),
    )


def payment_event_from_checkout_session(session: dict) -> PaymentCompletedEvent:
    """
    Map a Stripe checkout.session.completed object to a PaymentCompletedEvent.

    The checkout session carries organization_id and package_id in its
    metadata; the payment intent id (or the session id) is the transaction id.
    """
    metadata = session.get("metadata") or {}
    if "organization_id" not in metadata or "package_id" not in metadata:
        raise ValidationError("Checkout session metadata must carry organization_id and package_id")

    transaction_id = session.get("payment_intent") or session.get("id")
    amount_total = session.get("amount_total") or 0
    created = session.get("created")

    return PaymentCompletedEvent(
        transaction_id=transaction_id,
        organization_id=metadata["organization_id"],
        package_id=metadata["package_id"],
        amount=Decimal(amount_total) / 100,
        completed_at=datetime.fromtimestamp(created, tz=timezone.utc) if created else None,
    )


def list_packages(db: Session) -> list[PackageRecord]:
    """List the package catalogue, smallest limit first."""
    rows = db.query(SubscriptionPackage).order_by(
        SubscriptionPackage.employee_limit, SubscriptionPackage.id
    ).all()
    return [PackageRecord.from_db_row(row) for row in rows]


def get_package(db: Session, package_id: int) -> PackageRecord:
    """Get package by ID."""
    row = db.query(SubscriptionPackage).filter(SubscriptionPackage.id == package_id).first()
    if not row:
        raise NotFoundError("Package", package_id)
    return PackageRecord.from_db_row(row)


def list_organization_payments(db: Session, organization_id: int) -> list[PaymentRecord]:
    """List an organization's payments, newest first."""
    rows = db.query(Payment).filter(
        Payment.organization_id == organization_id
    ).order_by(Payment.completed_at.desc(), Payment.id.desc()).all()
    return [PaymentRecord.from_db_row(row) for row in rows]


def reconcile_unapplied_payments(db: Session) -> dict:
    """
    Retry capacity application for recorded payments with capacity_applied_at NULL.

    Payments are processed oldest first. A payment superseded by a newer,
    already applied payment of the same organization is only marked applied,
    so an old package never overwrites a newer one.

    Returns:
        Counts of applied, superseded and failed payments
    """
    pending = db.query(
        Payment.id, Payment.transaction_id, Payment.organization_id, Payment.package_id, Payment.completed_at
    ).filter(
        Payment.capacity_applied_at.is_(None)
    ).order_by(Payment.completed_at, Payment.id).all()

    applied = 0
    superseded = 0
    failed = 0

    for row in pending:
        now = datetime.now(timezone.utc)
        claimed = db.execute(
            text("""
                UPDATE payments
                SET capacity_applied_at = :now
                WHERE id = :payment_id AND capacity_applied_at IS NULL
            """),
            {"now": now, "payment_id": row.id}
        )
        if claimed.rowcount == 0:
            # Applied by a concurrent run
            db.rollback()
            continue

        newer_id = _newer_applied_payment(db, row.id, row.organization_id, row.completed_at)
        if newer_id is not None:
            db.commit()
            superseded += 1
            logger.info(f"Payment {row.transaction_id} superseded by payment {newer_id}; marked applied")
            continue

        failure = _apply_package_capacity(db, row.organization_id, row.package_id)
        if failure is None:
            db.commit()
            applied += 1
            logger.info(f"Payment {row.transaction_id} reconciled for organization {row.organization_id}")
        else:
            db.rollback()
            failed += 1
            logger.error(f"Payment {row.transaction_id} still not applied: {failure}")

    logger.info(
        f"Payment reconciliation completed: {applied} applied, {superseded} superseded, {failed} failed"
    )
    return {
        "applied": applied,
        "superseded": superseded,
        "failed": failed,
        "total_processed": applied + superseded + failed,
    }
