"""
Affiliation registry service.

current_employee_count is only changed here, by single conditional UPDATEs,
so the capacity check and the increment can never be split by another writer.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import text, update, func
from sqlalchemy.exc import IntegrityError
from app.core.errors import CapacityExceededError, ConflictError, NotFoundError, ValidationError
from app.models.assigned_asset import AssignedAsset, AssignmentStatus
from app.models.organization import EmployeeAffiliation, AffiliationStatus, Organization
from app.models.user import User
from app.services.affiliation.affiliation_models import (
    AffiliationRecord,
    AdmissionResult,
    EmployeeProfile,
    OrganizationCapacity,
)
from app.services.organization import require_organization_admin

logger = logging.getLogger(__name__)


def _active_affiliation_row(db: Session, employee_id: int, organization_id: int) -> Optional[EmployeeAffiliation]:
    return db.query(EmployeeAffiliation).filter(
        EmployeeAffiliation.employee_id == employee_id,
        EmployeeAffiliation.organization_id == organization_id,
        EmployeeAffiliation.status == AffiliationStatus.ACTIVE.value,
    ).first()


def get_active_affiliation(db: Session, employee_id: int, organization_id: int) -> Optional[AffiliationRecord]:
    """Get the active affiliation for the pair, if any."""
    row = _active_affiliation_row(db, employee_id, organization_id)
    return AffiliationRecord.from_db_row(row) if row else None


def admit_or_refresh(
    db: Session,
    employee_id: int,
    organization_id: int,
    commit: bool = True
) -> AdmissionResult:
    """
    Make sure the employee holds an active affiliation with the organization.

    An existing active affiliation is a no-op (no capacity used), so a second
    approval for the same employee never double-counts. Otherwise capacity is
    claimed with one conditional increment and the affiliation is inserted in
    the same transaction.

    Args:
        db: Database session
        employee_id: Employee user ID
        organization_id: Organization ID
        commit: Commit on success; pass False to join the caller's transaction

    Returns:
        AdmissionResult

    Raises:
        CapacityExceededError: current_employee_count already equals employee_limit
        NotFoundError: organization does not exist
        ConflictError: a concurrent admission of the same pair won (commit=False only)
    """
    existing = _active_affiliation_row(db, employee_id, organization_id)
    if existing:
        return AdmissionResult(affiliation=AffiliationRecord.from_db_row(existing), admitted=False)

    result = db.execute(
        text("""
            UPDATE organizations
            SET current_employee_count = current_employee_count + 1,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :org_id
              AND current_employee_count < employee_limit
        """),
        {"org_id": organization_id}
    )
    if result.rowcount == 0:
        if commit:
            db.rollback()
        org = db.execute(
            text("SELECT id, employee_limit FROM organizations WHERE id = :org_id"),
            {"org_id": organization_id}
        ).first()
        if not org:
            raise NotFoundError("Organization", organization_id)
        logger.info(f"Admission of employee {employee_id} refused: organization {organization_id} at limit {org.employee_limit}")
        raise CapacityExceededError(organization_id, org.employee_limit)

    affiliation = EmployeeAffiliation(
        employee_id=employee_id,
        organization_id=organization_id,
        status=AffiliationStatus.ACTIVE.value,
        is_current=True,
        joined_at=datetime.now(timezone.utc),
    )
    db.add(affiliation)
    try:
        db.flush()
    except IntegrityError:
        # Another transaction admitted the same pair first; our increment goes with the rollback
        db.rollback()
        if commit:
            winner = _active_affiliation_row(db, employee_id, organization_id)
            if winner:
                return AdmissionResult(affiliation=AffiliationRecord.from_db_row(winner), admitted=False)
        raise ConflictError(
            f"Employee {employee_id} was admitted to organization {organization_id} concurrently"
        )

    record = AffiliationRecord.from_db_row(affiliation)
    if commit:
        db.commit()

    logger.info(f"Employee {employee_id} admitted to organization {organization_id}")
    return AdmissionResult(affiliation=record, admitted=True)


def deactivate_affiliation(db: Session, employee_id: int, organization_id: int, admin) -> AffiliationRecord:
    """
    Remove an employee from the organization's team (admin operation).

    The affiliation row is kept as history; one unit of capacity is freed.

    Raises:
        NotFoundError: no active affiliation for the pair
        ForbiddenError: caller does not administer the organization
    """
    require_organization_admin(admin, organization_id)

    now = datetime.now(timezone.utc)
    result = db.execute(
        update(EmployeeAffiliation)
        .where(
            EmployeeAffiliation.employee_id == employee_id,
            EmployeeAffiliation.organization_id == organization_id,
            EmployeeAffiliation.status == AffiliationStatus.ACTIVE.value,
        )
        .values(status=AffiliationStatus.INACTIVE.value, is_current=None, deactivated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Active affiliation", f"employee={employee_id} organization={organization_id}")

    db.execute(
        text("""
            UPDATE organizations
            SET current_employee_count = current_employee_count - 1,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :org_id AND current_employee_count > 0
        """),
        {"org_id": organization_id}
    )
    db.commit()

    logger.info(f"Employee {employee_id} removed from organization {organization_id} by user {admin.subject_id}")

    row = db.query(EmployeeAffiliation).filter(
        EmployeeAffiliation.employee_id == employee_id,
        EmployeeAffiliation.organization_id == organization_id,
        EmployeeAffiliation.deactivated_at.isnot(None),
    ).order_by(EmployeeAffiliation.id.desc()).first()
    return AffiliationRecord.from_db_row(row)


def list_active_employees(db: Session, organization_id: int) -> list[EmployeeProfile]:
    """
    List active employees of an organization with their public profile.
    """
    rows = db.query(EmployeeAffiliation, User).join(
        User, User.id == EmployeeAffiliation.employee_id
    ).filter(
        EmployeeAffiliation.organization_id == organization_id,
        EmployeeAffiliation.status == AffiliationStatus.ACTIVE.value,
    ).order_by(EmployeeAffiliation.joined_at, EmployeeAffiliation.id).all()

    held_counts = dict(
        db.query(AssignedAsset.employee_id, func.count(AssignedAsset.id)).filter(
            AssignedAsset.organization_id == organization_id,
            AssignedAsset.status == AssignmentStatus.HELD.value,
        ).group_by(AssignedAsset.employee_id).all()
    )

    return [
        EmployeeProfile(
            employee_id=user.id,
            name=user.full_name,
            email=user.email,
            photo=user.profile_image or "",
            joined_at=affiliation.joined_at,
            assigned_assets=held_counts.get(user.id, 0),
            status=affiliation.status,
        )
        for affiliation, user in rows
    ]


def list_employee_affiliations(db: Session, employee_id: int) -> list[AffiliationRecord]:
    """List every affiliation (active and past) of an employee."""
    rows = db.query(EmployeeAffiliation).filter(
        EmployeeAffiliation.employee_id == employee_id
    ).order_by(EmployeeAffiliation.joined_at.desc(), EmployeeAffiliation.id.desc()).all()
    return [AffiliationRecord.from_db_row(row) for row in rows]


def get_capacity(db: Session, organization_id: int) -> OrganizationCapacity:
    """Read the organization's capacity straight from the store."""
    row = db.execute(
        text("""
            SELECT id, employee_limit, current_employee_count, subscription_tier
            FROM organizations
            WHERE id = :org_id
        """),
        {"org_id": organization_id}
    ).first()
    if not row:
        raise NotFoundError("Organization", organization_id)
    return OrganizationCapacity.from_db_row(row)


def override_capacity(
    db: Session,
    organization_id: int,
    employee_limit: int,
    subscription_tier: Optional[str] = None
) -> OrganizationCapacity:
    """
    Set an organization's limit directly (operator tooling).

    Refuses a limit below the current employee count.
    """
    if isinstance(employee_limit, bool) or not isinstance(employee_limit, int) or employee_limit < 0:
        raise ValidationError("employee_limit must be a non-negative integer")

    values = {"employee_limit": employee_limit, "updated_at": datetime.now(timezone.utc)}
    if subscription_tier:
        values["subscription_tier"] = subscription_tier

    result = db.execute(
        update(Organization)
        .where(Organization.id == organization_id, Organization.current_employee_count <= employee_limit)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        capacity = get_capacity(db, organization_id)
        raise ValidationError(
            f"employee_limit {employee_limit} is below the current employee count "
            f"({capacity.current_employee_count})"
        )
    db.commit()

    logger.info(f"Capacity of organization {organization_id} overridden to {employee_limit}")
    return get_capacity(db, organization_id)
