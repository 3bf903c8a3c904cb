"""
Organization service for creating organizations and checking admin scope.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from app.core.config import DEFAULT_EMPLOYEE_LIMIT, DEFAULT_SUBSCRIPTION_TIER
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.models.organization import Organization
from app.models.user import User

logger = logging.getLogger(__name__)


def create_organization(
    db: Session,
    admin_user_id: int,
    name: str,
    logo: Optional[str] = None,
    employee_limit: Optional[int] = None,
    subscription_tier: Optional[str] = None,
) -> Organization:
    """
    Create an organization administered by the given user.

    Args:
        db: Database session
        admin_user_id: ID of the administering user (role 'admin')
        name: Organization display name
        logo: Optional logo URL
        employee_limit: Starting capacity (defaults to DEFAULT_EMPLOYEE_LIMIT)
        subscription_tier: Starting tier (defaults to DEFAULT_SUBSCRIPTION_TIER)

    Returns:
        Created Organization object
    """
    if not name or not name.strip():
        raise ValidationError("Organization name is required")

    admin = db.query(User).filter(User.id == admin_user_id).first()
    if not admin:
        raise NotFoundError("User", admin_user_id)
    if not admin.is_admin():
        raise ValidationError(f"User {admin_user_id} is not an organization admin")

    organization = Organization(
        name=name.strip(),
        logo=logo,
        admin_user_id=admin_user_id,
        employee_limit=employee_limit if employee_limit is not None else DEFAULT_EMPLOYEE_LIMIT,
        current_employee_count=0,
        subscription_tier=subscription_tier or DEFAULT_SUBSCRIPTION_TIER,
    )
    db.add(organization)
    db.commit()
    db.refresh(organization)

    logger.info(f"Created organization {organization.id} administered by user {admin_user_id}")
    return organization


def get_organization(db: Session, organization_id: int) -> Organization:
    """Get organization by ID or raise NotFoundError."""
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise NotFoundError("Organization", organization_id)
    return organization


def require_organization_admin(identity, organization_id: Optional[int]) -> None:
    """Raise ForbiddenError unless the caller administers the organization."""
    if not identity.is_admin or identity.organization_id is None:
        raise ForbiddenError("Organization admin access required")
    if organization_id is None or identity.organization_id != organization_id:
        raise ForbiddenError("You do not administer this organization")
