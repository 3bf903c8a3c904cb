"""
Caller identity resolution.

Credentials are issued elsewhere; this module only signs and verifies the
session token that carries the caller's identity and turns it into a
CallerIdentity for the service layer.
"""
import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import SESSION_COOKIE_NAME, SESSION_SECRET, SESSION_TTL_HOURS
from app.core.database import get_db
from app.models.organization import Organization
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

__all__ = [
    'CallerIdentity',
    'create_session',
    'verify_session',
    'get_current_identity_dependency',
    'get_current_admin_dependency',
    'get_current_employee_dependency',
]


@dataclass(frozen=True)
class CallerIdentity:
    """Verified caller attached to every core operation."""
    subject_id: int
    role: str  # 'employee' or 'admin'
    organization_id: Optional[int] = None  # Administered organization (admins only)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE.value


def _secret() -> bytes:
    return SESSION_SECRET.encode() if SESSION_SECRET else b'default-secret-change-in-prod'


def _sign(payload: str) -> str:
    return hmac.new(_secret(), payload.encode(), hashlib.sha256).hexdigest()


def create_session(user_id: int, role: str, organization_id: Optional[int] = None) -> str:
    """Create a signed session token (cookie safe)."""
    session_data = {
        'user_id': user_id,
        'role': role,
        'organization_id': organization_id,
        'created_at': datetime.now(timezone.utc).isoformat(),
    }
    session_json = json.dumps(session_data, sort_keys=True)
    payload = base64.urlsafe_b64encode(session_json.encode()).decode().rstrip('=')
    return f"{payload}.{_sign(payload)}"


def verify_session(session_token: Optional[str]) -> Optional[dict]:
    """Verify signature and expiry; return session data or None."""
    if not session_token:
        return None

    parts = session_token.rsplit('.', 1)
    if len(parts) != 2:
        return None

    payload, signature = parts
    if not hmac.compare_digest(signature, _sign(payload)):
        return None

    try:
        padded = payload + '=' * (-len(payload) % 4)
        session_data = json.loads(base64.urlsafe_b64decode(padded.encode()))
        created_at = datetime.fromisoformat(session_data['created_at'])
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Malformed session token: {e}")
        return None

    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if datetime.now(timezone.utc) - created_at > timedelta(hours=SESSION_TTL_HOURS):
        return None

    session_data.setdefault('organization_id', None)
    return session_data


def get_current_identity_dependency(
    session_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    db: Session = Depends(get_db)
) -> CallerIdentity:
    """Dependency to get the verified caller."""
    session_data = verify_session(session_token)
    if not session_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == session_data['user_id']).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    organization_id = None
    if user.is_admin():
        # Scope comes from the store, not from the token
        organization = db.query(Organization).filter(Organization.admin_user_id == user.id).first()
        organization_id = organization.id if organization else None

    return CallerIdentity(subject_id=user.id, role=user.role, organization_id=organization_id)


def get_current_admin_dependency(
    identity: CallerIdentity = Depends(get_current_identity_dependency)
) -> CallerIdentity:
    """Dependency to get the current organization administrator."""
    if not identity.is_admin or identity.organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization admin access required"
        )
    return identity


def get_current_employee_dependency(
    identity: CallerIdentity = Depends(get_current_identity_dependency)
) -> CallerIdentity:
    """Dependency to get the current employee."""
    if not identity.is_employee:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Employee access required"
        )
    return identity
