"""
Assignment and return tracker service.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from app.core.errors import (
    AlreadyReturnedError,
    AssetVerseError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    NotReturnableError,
)
from app.models.asset import AssetType
from app.models.asset_request import RequestStatus
from app.models.assigned_asset import AssignedAsset, AssignmentStatus
from app.services.assignment.assignment_models import AssignmentRecord
from app.services.inventory import release_unit
from app.services.request_state import transition_request

logger = logging.getLogger(__name__)


def create_assignment(
    db: Session,
    request_id: int,
    asset_id: int,
    asset_name: str,
    employee_id: int,
    organization_id: int,
    unit_type: str,
    assigned_at: Optional[datetime] = None,
    commit: bool = False
) -> AssignmentRecord:
    """
    Record a held unit for an approved request.

    Called from approval inside its transaction, hence commit=False by
    default. request_id is unique, so a second assignment for the same
    request fails with ConflictError.
    """
    assignment = AssignedAsset(
        request_id=request_id,
        asset_id=asset_id,
        asset_name=asset_name,
        employee_id=employee_id,
        organization_id=organization_id,
        unit_type=unit_type,
        status=AssignmentStatus.HELD.value,
        assigned_at=assigned_at or datetime.now(timezone.utc),
    )
    db.add(assignment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Request {request_id} already has an assignment")

    record = AssignmentRecord.from_db_row(assignment)
    if commit:
        db.commit()
    return record


def get_assignment(db: Session, assignment_id: int) -> AssignmentRecord:
    """Get assignment by ID."""
    row = db.query(AssignedAsset).filter(AssignedAsset.id == assignment_id).first()
    if not row:
        raise NotFoundError("Assignment", assignment_id)
    return AssignmentRecord.from_db_row(row)


def return_assignment(db: Session, assignment_id: int, employee) -> AssignmentRecord:
    """
    Return a held unit (employee operation).

    In one transaction: the assignment becomes 'returned', one unit goes back
    to the asset's available_quantity, and the originating request moves
    approved -> returned.

    Args:
        db: Database session
        assignment_id: Assignment ID
        employee: CallerIdentity of the holder

    Returns:
        Updated AssignmentRecord

    Raises:
        NotFoundError: assignment does not exist
        ForbiddenError: caller is not the holder
        AlreadyReturnedError: assignment already returned (including by a concurrent call)
        NotReturnableError: unit is non-returnable
    """
    assignment = get_assignment(db, assignment_id)

    if assignment.employee_id != employee.subject_id:
        raise ForbiddenError("Not your assigned asset")
    if assignment.status == AssignmentStatus.RETURNED.value:
        raise AlreadyReturnedError(assignment_id)
    if assignment.unit_type != AssetType.RETURNABLE.value:
        raise NotReturnableError(assignment_id)

    now = datetime.now(timezone.utc)
    try:
        result = db.execute(
            update(AssignedAsset)
            .where(AssignedAsset.id == assignment_id, AssignedAsset.status == AssignmentStatus.HELD.value)
            .values(status=AssignmentStatus.RETURNED.value, returned_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AlreadyReturnedError(assignment_id)

        if assignment.asset_id is not None:
            release_unit(db, assignment.asset_id, commit=False)
        else:
            logger.warning(f"Assignment {assignment_id} returned but its asset no longer exists")

        if assignment.request_id is not None:
            moved = transition_request(
                db,
                assignment.request_id,
                RequestStatus.APPROVED.value,
                RequestStatus.RETURNED.value,
            )
            if not moved:
                logger.warning(f"Request {assignment.request_id} was not in 'approved' when assignment {assignment_id} was returned")

        db.commit()
    except AssetVerseError:
        db.rollback()
        raise

    logger.info(f"Assignment {assignment_id} returned by employee {employee.subject_id}")
    return get_assignment(db, assignment_id)


def list_my_assignments(db: Session, employee_id: int, status: Optional[str] = None) -> list[AssignmentRecord]:
    """List the employee's assignments, newest first."""
    query = db.query(AssignedAsset).filter(AssignedAsset.employee_id == employee_id)
    if status:
        query = query.filter(AssignedAsset.status == status)
    rows = query.order_by(AssignedAsset.assigned_at.desc(), AssignedAsset.id.desc()).all()
    return [AssignmentRecord.from_db_row(row) for row in rows]
