"""
Request workflow service.

Approval is the synchronization point of the system: the request transition,
the capacity claim, the optional inventory reservation and the assignment are
written in one transaction and commit together or not at all.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import delete, update, or_
from sqlalchemy.exc import IntegrityError
from app.core.config import RESERVE_ON_APPROVAL
from app.core.errors import (
    AssetVerseError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models.asset import Asset
from app.models.asset_request import AssetRequest, RequestStatus
from app.services.affiliation import admit_or_refresh, get_active_affiliation
from app.services.assignment import create_assignment
from app.services.inventory import get_asset, reserve_unit
from app.services.organization import require_organization_admin
from app.services.request_state import transition_request
from app.services.requests.request_models import ApprovalResult, RequestRecord

logger = logging.getLogger(__name__)


def _get_request_row(db: Session, request_id: int) -> AssetRequest:
    request = db.query(AssetRequest).filter(AssetRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Request", request_id)
    return request


def _resolving_organization(db: Session, request: AssetRequest) -> Optional[int]:
    """Organization whose admin may resolve the request: the asset owner, else the stamped one."""
    if request.asset_id is not None:
        asset = db.query(Asset).filter(Asset.id == request.asset_id).first()
        if asset:
            return asset.owner_organization_id
    return request.organization_id


def get_request(db: Session, request_id: int) -> RequestRecord:
    """Get request by ID."""
    return RequestRecord.from_db_row(_get_request_row(db, request_id))


def submit_request(db: Session, requester, asset_id: int, note: Optional[str] = None) -> RequestRecord:
    """
    File a pending request for one unit of an asset (employee operation).

    Availability is not checked here; it is decided at approval. The sponsoring
    organization is stamped only when the requester is already affiliated with
    the asset owner, otherwise approval stamps it.

    Args:
        db: Database session
        requester: CallerIdentity of an employee
        asset_id: Requested asset
        note: Optional free-text note

    Returns:
        Created RequestRecord
    """
    if not requester.is_employee:
        raise ForbiddenError("Only employees can request assets")

    asset = get_asset(db, asset_id)
    affiliation = get_active_affiliation(db, requester.subject_id, asset.owner_organization_id)

    request = AssetRequest(
        asset_id=asset.id,
        asset_name=asset.name,
        asset_type=asset.asset_type,
        requester_id=requester.subject_id,
        organization_id=asset.owner_organization_id if affiliation else None,
        status=RequestStatus.PENDING.value,
        note=(note or "").strip(),
        submitted_at=datetime.now(timezone.utc),
    )
    db.add(request)
    db.commit()
    db.refresh(request)

    logger.info(f"Request {request.id} submitted by employee {requester.subject_id} for asset {asset.id}")
    return RequestRecord.from_db_row(request)


def approve_request(
    db: Session,
    request_id: int,
    admin,
    reserve_on_approval: Optional[bool] = None
) -> ApprovalResult:
    """
    Approve a pending request (admin operation).

    Steps, all in one transaction:
    1. pending -> approved with a conditional UPDATE (loser of a race gets ConflictError)
    2. admit the requester into the organization, claiming capacity if new
    3. reserve one unit of the asset (when reserve_on_approval)
    4. create the held assignment

    Any failure rolls back every step; the request stays pending.

    Args:
        db: Database session
        request_id: Request ID
        admin: CallerIdentity of the asset owner's admin
        reserve_on_approval: Override RESERVE_ON_APPROVAL for this call

    Returns:
        ApprovalResult

    Raises:
        NotFoundError: request or its asset does not exist
        ForbiddenError: caller does not administer the asset's organization
        ConflictError: request is no longer pending
        CapacityExceededError: organization is at its employee limit
        OutOfStockError: no available units (reserve_on_approval only)
    """
    if reserve_on_approval is None:
        reserve_on_approval = RESERVE_ON_APPROVAL

    request = _get_request_row(db, request_id)
    if request.asset_id is None:
        raise NotFoundError("Asset", f"for request {request_id}")
    asset = get_asset(db, request.asset_id)

    require_organization_admin(admin, asset.owner_organization_id)
    if request.status != RequestStatus.PENDING.value:
        raise ConflictError(f"Request {request_id} is already {request.status}")

    requester_id = request.requester_id
    organization_id = asset.owner_organization_id
    now = datetime.now(timezone.utc)

    try:
        moved = transition_request(
            db,
            request_id,
            RequestStatus.PENDING.value,
            RequestStatus.APPROVED.value,
            resolved_at=now,
            resolved_by=admin.subject_id,
            organization_id=organization_id,
        )
        if not moved:
            raise ConflictError(f"Request {request_id} was resolved by another administrator")

        admission = admit_or_refresh(db, requester_id, organization_id, commit=False)

        if reserve_on_approval:
            reserve_unit(db, asset.id, commit=False)

        assignment = create_assignment(
            db,
            request_id=request_id,
            asset_id=asset.id,
            asset_name=asset.name,
            employee_id=requester_id,
            organization_id=organization_id,
            unit_type=asset.asset_type,
            assigned_at=now,
        )
        db.commit()
    except AssetVerseError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Approval of request {request_id} hit a constraint: {e}")
        raise ConflictError(f"Request {request_id} could not be approved, state changed concurrently")

    logger.info(
        f"Request {request_id} approved by user {admin.subject_id} "
        f"(assignment {assignment.id}, newly affiliated: {admission.admitted}, reserved: {reserve_on_approval})"
    )
    return ApprovalResult(
        request=get_request(db, request_id),
        assignment=assignment,
        affiliation=admission.affiliation,
        newly_affiliated=admission.admitted,
        reserved=bool(reserve_on_approval),
    )


def reject_request(db: Session, request_id: int, admin) -> RequestRecord:
    """
    Reject a pending request (admin operation). No inventory or capacity effects.
    """
    request = _get_request_row(db, request_id)
    require_organization_admin(admin, _resolving_organization(db, request))
    if request.status != RequestStatus.PENDING.value:
        raise ConflictError(f"Request {request_id} is already {request.status}")

    moved = transition_request(
        db,
        request_id,
        RequestStatus.PENDING.value,
        RequestStatus.REJECTED.value,
        resolved_at=datetime.now(timezone.utc),
        resolved_by=admin.subject_id,
    )
    if not moved:
        db.rollback()
        raise ConflictError(f"Request {request_id} was resolved by another administrator")
    db.commit()

    logger.info(f"Request {request_id} rejected by user {admin.subject_id}")
    return get_request(db, request_id)


def edit_request_note(db: Session, request_id: int, requester, note: str) -> RequestRecord:
    """
    Replace the note of the requester's own pending request.
    """
    if note is None or not note.strip():
        raise ValidationError("Note cannot be empty")

    result = db.execute(
        update(AssetRequest)
        .where(
            AssetRequest.id == request_id,
            AssetRequest.requester_id == requester.subject_id,
            AssetRequest.status == RequestStatus.PENDING.value,
        )
        .values(note=note.strip())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        request = _get_request_row(db, request_id)
        if request.requester_id != requester.subject_id:
            raise ForbiddenError("Not your request")
        raise ConflictError(f"Request {request_id} is {request.status}; only pending requests can be edited")
    db.commit()

    return get_request(db, request_id)


def delete_request(db: Session, request_id: int, requester) -> None:
    """
    Remove the requester's own request.

    Approved requests are refused with ConflictError: a held assignment
    still points at them. Returned requests keep their assignment, whose
    request_id is nulled by the foreign key.
    """
    request = _get_request_row(db, request_id)
    if request.requester_id != requester.subject_id:
        raise ForbiddenError("Not your request")

    result = db.execute(
        delete(AssetRequest)
        .where(
            AssetRequest.id == request_id,
            AssetRequest.requester_id == requester.subject_id,
            AssetRequest.status != RequestStatus.APPROVED.value,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        request = _get_request_row(db, request_id)
        raise ConflictError(f"Request {request_id} is {request.status} and cannot be deleted")
    db.commit()

    logger.info(f"Request {request_id} deleted by employee {requester.subject_id}")


def list_my_requests(db: Session, requester_id: int, status: Optional[str] = None) -> list[RequestRecord]:
    """List the requester's requests, newest first."""
    query = db.query(AssetRequest).filter(AssetRequest.requester_id == requester_id)
    if status:
        query = query.filter(AssetRequest.status == status)
    rows = query.order_by(AssetRequest.submitted_at.desc(), AssetRequest.id.desc()).all()
    return [RequestRecord.from_db_row(row) for row in rows]


def list_organization_requests(
    db: Session,
    organization_id: int,
    status: Optional[str] = None
) -> list[RequestRecord]:
    """
    List requests addressed to an organization: for its assets, or stamped
    with it after the asset was removed.
    """
    query = db.query(AssetRequest).outerjoin(Asset, Asset.id == AssetRequest.asset_id).filter(
        or_(
            Asset.owner_organization_id == organization_id,
            AssetRequest.organization_id == organization_id,
        )
    )
    if status:
        query = query.filter(AssetRequest.status == status)
    rows = query.order_by(AssetRequest.submitted_at.desc(), AssetRequest.id.desc()).all()
    return [RequestRecord.from_db_row(row) for row in rows]
