"""
Affiliation registry model classes.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AffiliationRecord:
    """Employee affiliation data class."""
    id: int
    employee_id: int
    organization_id: int
    status: str  # active, inactive
    joined_at: Optional[datetime]
    deactivated_at: Optional[datetime]

    @classmethod
    def from_db_row(cls, row) -> "AffiliationRecord":
        """Create AffiliationRecord from database row."""
        return cls(
            id=row.id,
            employee_id=row.employee_id,
            organization_id=row.organization_id,
            status=row.status,
            joined_at=row.joined_at,
            deactivated_at=row.deactivated_at,
        )


@dataclass
class AdmissionResult:
    """Result of admit_or_refresh."""
    affiliation: AffiliationRecord
    admitted: bool  # False when the employee was already active (no capacity used)


@dataclass
class EmployeeProfile:
    """Public employee view for an organization admin. Never carries credentials."""
    employee_id: int
    name: Optional[str]
    email: str
    photo: str
    joined_at: Optional[datetime]
    assigned_assets: int  # Units currently held from this organization
    status: str


@dataclass
class OrganizationCapacity:
    """Organization capacity snapshot."""
    organization_id: int
    employee_limit: int
    current_employee_count: int
    subscription_tier: str

    @property
    def remaining(self) -> int:
        return max(self.employee_limit - self.current_employee_count, 0)

    @classmethod
    def from_db_row(cls, row) -> "OrganizationCapacity":
        return cls(
            organization_id=row.id,
            employee_limit=row.employee_limit,
            current_employee_count=row.current_employee_count,
            subscription_tier=row.subscription_tier,
        )
