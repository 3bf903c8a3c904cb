"""
Request workflow model classes.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.services.affiliation.affiliation_models import AffiliationRecord
from app.services.assignment.assignment_models import AssignmentRecord


@dataclass
class RequestRecord:
    """Asset request data class."""
    id: int
    asset_id: Optional[int]
    asset_name: str
    asset_type: str
    requester_id: int
    organization_id: Optional[int]
    status: str  # pending, approved, rejected, returned
    note: str
    submitted_at: Optional[datetime]
    resolved_at: Optional[datetime]
    resolved_by: Optional[int]

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    @classmethod
    def from_db_row(cls, row) -> "RequestRecord":
        """Create RequestRecord from database row."""
        return cls(
            id=row.id,
            asset_id=row.asset_id,
            asset_name=row.asset_name,
            asset_type=row.asset_type,
            requester_id=row.requester_id,
            organization_id=row.organization_id,
            status=row.status,
            note=row.note or "",
            submitted_at=row.submitted_at,
            resolved_at=row.resolved_at,
            resolved_by=row.resolved_by,
        )


@dataclass
class ApprovalResult:
    """Everything an approval touched, read back after commit."""
    request: RequestRecord
    assignment: AssignmentRecord
    affiliation: AffiliationRecord
    newly_affiliated: bool
    reserved: bool
