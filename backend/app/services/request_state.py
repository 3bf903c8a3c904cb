"""
Asset request state machine.

    pending --approve--> approved --return--> returned
       |
       +----reject----> rejected

rejected and returned are terminal. approved -> returned is only taken for
returnable units (checked by the assignment service).
"""
from sqlalchemy.orm import Session
from sqlalchemy import update
from app.models.asset_request import AssetRequest, RequestStatus

TRANSITIONS = {
    RequestStatus.PENDING.value: {RequestStatus.APPROVED.value, RequestStatus.REJECTED.value},
    RequestStatus.APPROVED.value: {RequestStatus.RETURNED.value},
    RequestStatus.REJECTED.value: set(),
    RequestStatus.RETURNED.value: set(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in TRANSITIONS.get(from_status, set())


def transition_request(
    db: Session,
    request_id: int,
    from_status: str,
    to_status: str,
    **values
) -> bool:
    """
    Move a request from one status to another with a single conditional UPDATE.

    The expected current status is part of the WHERE clause, so of two
    concurrent transitions out of the same status exactly one matches.
    Does not commit.

    Returns:
        True if this call performed the transition
    """
    if not can_transition(from_status, to_status):
        raise ValueError(f"Illegal request transition {from_status} -> {to_status}")

    result = db.execute(
        update(AssetRequest)
        .where(AssetRequest.id == request_id, AssetRequest.status == from_status)
        .values(status=to_status, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
