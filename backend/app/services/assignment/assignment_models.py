"""
Assignment model classes.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AssignmentRecord:
    """Assigned asset data class."""
    id: int
    request_id: Optional[int]
    asset_id: Optional[int]
    asset_name: str
    employee_id: int
    organization_id: int
    unit_type: str  # Returnable, NonReturnable
    status: str  # held, returned
    assigned_at: Optional[datetime]
    returned_at: Optional[datetime]

    @property
    def can_return(self) -> bool:
        """Only held returnable units have a return transition."""
        return self.status == "held" and self.unit_type == "Returnable"

    @classmethod
    def from_db_row(cls, row) -> "AssignmentRecord":
        """Create AssignmentRecord from database row."""
        return cls(
            id=row.id,
            request_id=row.request_id,
            asset_id=row.asset_id,
            asset_name=row.asset_name,
            employee_id=row.employee_id,
            organization_id=row.organization_id,
            unit_type=row.unit_type,
            status=row.status,
            assigned_at=row.assigned_at,
            returned_at=row.returned_at,
        )
