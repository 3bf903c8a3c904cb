"""
Subscription package and payment API endpoints.

Two ways in for payment-completed events: an internal endpoint guarded by a
shared secret header, and the Stripe webhook whose signature is verified with
the stripe library.
"""
import hmac
import json
import logging
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

import stripe

from app.core.config import PAYMENT_EVENTS_SECRET, STRIPE_WEBHOOK_SECRET
from app.core.database import get_db
from app.core.auth import CallerIdentity, get_current_admin_dependency
from app.core.errors import ValidationError
from app.services.subscription import (
    PaymentCompletedEvent,
    apply_payment_event,
    get_package,
    list_organization_payments,
    list_packages,
    payment_event_from_checkout_session,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class PackageResponse(BaseModel):
    id: int
    name: str
    employee_limit: int
    price: Decimal
    features: List[str]

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: int
    transaction_id: str
    organization_id: int
    package_id: int
    amount: Decimal
    completed_at: Optional[datetime]
    capacity_applied_at: Optional[datetime]

    class Config:
        from_attributes = True


class PaymentEventRequest(BaseModel):
    transaction_id: str
    organization_id: int
    package_id: int
    amount: Decimal
    completed_at: Optional[datetime] = None


class PaymentEventResponse(BaseModel):
    transaction_id: str
    duplicate: bool
    capacity_applied: bool
    superseded: bool = False


@router.get("/packages", response_model=List[PackageResponse])
def list_packages_endpoint(db: Session = Depends(get_db)):
    """List the subscription package catalogue."""
    return [PackageResponse.model_validate(p) for p in list_packages(db)]


@router.get("/packages/{package_id}", response_model=PackageResponse)
def get_package_endpoint(package_id: int, db: Session = Depends(get_db)):
    return PackageResponse.model_validate(get_package(db, package_id))


@router.get("/payments", response_model=List[PaymentResponse])
def list_payments_endpoint(
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """List the caller's organization payments."""
    return [PaymentResponse.model_validate(p) for p in list_organization_payments(db, admin.organization_id)]


@router.post("/payments/events", response_model=PaymentEventResponse)
def payment_event_endpoint(
    request: PaymentEventRequest,
    db: Session = Depends(get_db),
    x_payment_events_secret: Optional[str] = Header(None),
):
    """
    Apply a payment-completed event forwarded by the payment integration.

    Redeliveries answer 200 with duplicate=true.
    """
    if not PAYMENT_EVENTS_SECRET or not x_payment_events_secret or not hmac.compare_digest(
        x_payment_events_secret, PAYMENT_EVENTS_SECRET
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid payment events secret")

    result = apply_payment_event(db, PaymentCompletedEvent(
        transaction_id=request.transaction_id,
        organization_id=request.organization_id,
        package_id=request.package_id,
        amount=request.amount,
        completed_at=request.completed_at,
    ))
    return PaymentEventResponse(
        transaction_id=result.transaction_id,
        duplicate=result.duplicate,
        capacity_applied=result.capacity_applied,
        superseded=result.superseded,
    )


@router.post("/payments/webhook")
async def stripe_webhook_endpoint(
    request: Request,
    db: Session = Depends(get_db),
    stripe_signature: Optional[str] = Header(None),
):
    """
    Stripe webhook. Only checkout.session.completed changes anything; other
    event types are acknowledged and ignored.
    """
    if not STRIPE_WEBHOOK_SECRET:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Stripe webhook not configured")

    payload = await request.body()
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"),
            stripe_signature or "",
            STRIPE_WEBHOOK_SECRET,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
        event = json.loads(payload)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Stripe signature")

    if event.get("type") != "checkout.session.completed":
        return {"received": True, "handled": False}

    try:
        payment_event = payment_event_from_checkout_session(event["data"]["object"])
        result = await run_in_threadpool(apply_payment_event, db, payment_event)
    except (ValidationError, KeyError, TypeError) as e:
        # Acknowledge so Stripe stops redelivering an event that can never apply
        logger.error(f"Stripe event {event.get('id')} not applied: unusable checkout session ({e})")
        return {"received": True, "handled": False}

    return {
        "received": True,
        "handled": True,
        "duplicate": result.duplicate,
        "capacity_applied": result.capacity_applied,
        "superseded": result.superseded,
    }
