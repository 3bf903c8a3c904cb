"""
Organization, team and capacity API endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.core.database import get_db
from app.core.auth import (
    CallerIdentity,
    get_current_identity_dependency,
    get_current_admin_dependency,
    get_current_employee_dependency,
)
from app.core.errors import ConflictError, ForbiddenError
from app.services.affiliation import (
    deactivate_affiliation,
    get_capacity,
    list_active_employees,
    list_employee_affiliations,
)
from app.services.organization import create_organization, get_organization

router = APIRouter()


class CreateOrganizationRequest(BaseModel):
    name: str
    logo: Optional[str] = None


class OrganizationResponse(BaseModel):
    id: int
    name: str
    logo: Optional[str]
    admin_user_id: int
    employee_limit: int
    current_employee_count: int
    subscription_tier: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class CapacityResponse(BaseModel):
    organization_id: int
    employee_limit: int
    current_employee_count: int
    subscription_tier: str
    remaining: int

    class Config:
        from_attributes = True


class EmployeeResponse(BaseModel):
    employee_id: int
    name: Optional[str]
    email: str
    photo: str
    joined_at: Optional[datetime]
    assigned_assets: int
    status: str

    class Config:
        from_attributes = True


class AffiliationResponse(BaseModel):
    id: int
    employee_id: int
    organization_id: int
    status: str
    joined_at: Optional[datetime]
    deactivated_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.post("/organization", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
def create_organization_endpoint(
    request: CreateOrganizationRequest,
    db: Session = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity_dependency),
):
    """Create the organization the calling admin will administer."""
    if not identity.is_admin:
        raise ForbiddenError("Only admins can create an organization")
    if identity.organization_id is not None:
        raise ConflictError("You already administer an organization")
    organization = create_organization(db, identity.subject_id, request.name, logo=request.logo)
    return OrganizationResponse.model_validate(organization)


@router.get("/organization", response_model=OrganizationResponse)
def get_organization_endpoint(
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    return OrganizationResponse.model_validate(get_organization(db, admin.organization_id))


@router.get("/organization/capacity", response_model=CapacityResponse)
def get_capacity_endpoint(
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """Current headcount against the subscription limit."""
    return CapacityResponse.model_validate(get_capacity(db, admin.organization_id))


@router.get("/organization/employees", response_model=List[EmployeeResponse])
def list_employees_endpoint(
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """List the organization's active employees."""
    employees = list_active_employees(db, admin.organization_id)
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.delete("/organization/employees/{employee_id}", response_model=AffiliationResponse)
def remove_employee_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """Remove an employee from the team and free one unit of capacity."""
    affiliation = deactivate_affiliation(db, employee_id, admin.organization_id, admin)
    return AffiliationResponse.model_validate(affiliation)


@router.get("/affiliations/my", response_model=List[AffiliationResponse])
def list_my_affiliations_endpoint(
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    """Organizations the caller belongs or belonged to."""
    return [AffiliationResponse.model_validate(a) for a in list_employee_affiliations(db, employee.subject_id)]
