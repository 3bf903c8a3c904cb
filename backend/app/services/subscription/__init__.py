"""
Subscription synchronizer: applies payment-completed events to organization capacity.
"""
from app.services.subscription.subscription_service import (
    apply_payment_event,
    payment_event_from_checkout_session,
    list_packages,
    get_package,
    list_organization_payments,
    reconcile_unapplied_payments,
)
from app.services.subscription.subscription_models import (
    PaymentCompletedEvent,
    PaymentApplication,
    PackageRecord,
    PaymentRecord,
)

__all__ = [
    "apply_payment_event",
    "payment_event_from_checkout_session",
    "list_packages",
    "get_package",
    "list_organization_payments",
    "reconcile_unapplied_payments",
    "PaymentCompletedEvent",
    "PaymentApplication",
    "PackageRecord",
    "PaymentRecord",
]
