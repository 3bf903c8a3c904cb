"""
Affiliation registry: employee/organization links and organization capacity.
"""
from app.services.affiliation.affiliation_service import (
    admit_or_refresh,
    deactivate_affiliation,
    get_active_affiliation,
    list_active_employees,
    list_employee_affiliations,
    get_capacity,
    override_capacity,
)
from app.services.affiliation.affiliation_models import (
    AffiliationRecord,
    AdmissionResult,
    EmployeeProfile,
    OrganizationCapacity,
)

__all__ = [
    "admit_or_refresh",
    "deactivate_affiliation",
    "get_active_affiliation",
    "list_active_employees",
    "list_employee_affiliations",
    "get_capacity",
    "override_capacity",
    "AffiliationRecord",
    "AdmissionResult",
    "EmployeeProfile",
    "OrganizationCapacity",
]
