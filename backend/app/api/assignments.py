"""
Assigned asset API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.core.database import get_db
from app.core.auth import CallerIdentity, get_current_employee_dependency
from app.services.assignment import list_my_assignments, return_assignment

router = APIRouter()


class AssignmentResponse(BaseModel):
    id: int
    request_id: Optional[int]
    asset_id: Optional[int]
    asset_name: str
    employee_id: int
    organization_id: int
    unit_type: str
    status: str
    assigned_at: Optional[datetime]
    returned_at: Optional[datetime]
    can_return: bool

    class Config:
        from_attributes = True


@router.get("/my", response_model=List[AssignmentResponse])
def list_my_assignments_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    """List units the caller holds or has returned."""
    records = list_my_assignments(db, employee.subject_id, status_filter)
    return [AssignmentResponse.model_validate(r) for r in records]


@router.post("/{assignment_id}/return", response_model=AssignmentResponse)
def return_assignment_endpoint(
    assignment_id: int,
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    """Return a held returnable unit."""
    return AssignmentResponse.model_validate(return_assignment(db, assignment_id, employee))
