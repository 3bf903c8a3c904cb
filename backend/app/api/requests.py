"""
Asset request API endpoints.
"""
from fastapi import APIRouter, Depends, Query, status
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
from app.core.errors import ForbiddenError
from app.services.requests import (
    submit_request,
    approve_request,
    reject_request,
    edit_request_note,
    delete_request,
    get_request,
    list_my_requests,
    list_organization_requests,
)

router = APIRouter()


class SubmitRequestRequest(BaseModel):
    asset_id: int
    note: Optional[str] = None


class EditNoteRequest(BaseModel):
    note: str


class RequestResponse(BaseModel):
    id: int
    asset_id: Optional[int]
    asset_name: str
    asset_type: str
    requester_id: int
    organization_id: Optional[int]
    status: str
    note: str
    submitted_at: Optional[datetime]
    resolved_at: Optional[datetime]
    resolved_by: Optional[int]

    class Config:
        from_attributes = True


class ApprovalResponse(BaseModel):
    request: RequestResponse
    assignment_id: int
    newly_affiliated: bool
    reserved: bool


@router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
def submit_request_endpoint(
    request: SubmitRequestRequest,
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    """Request one unit of an asset."""
    record = submit_request(db, employee, request.asset_id, request.note)
    return RequestResponse.model_validate(record)


@router.get("/my", response_model=List[RequestResponse])
def list_my_requests_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    return [RequestResponse.model_validate(r) for r in list_my_requests(db, employee.subject_id, status_filter)]


@router.get("", response_model=List[RequestResponse])
def list_organization_requests_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """List requests addressed to the caller's organization."""
    records = list_organization_requests(db, admin.organization_id, status_filter)
    return [RequestResponse.model_validate(r) for r in records]


@router.get("/{request_id}", response_model=RequestResponse)
def get_request_endpoint(
    request_id: int,
    db: Session = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity_dependency),
):
    """Get one request. Visible to its requester and to the addressed organization's admin."""
    record = get_request(db, request_id)
    if identity.is_employee and record.requester_id == identity.subject_id:
        return RequestResponse.model_validate(record)
    if identity.is_admin and identity.organization_id is not None:
        visible = {r.id for r in list_organization_requests(db, identity.organization_id)}
        if request_id in visible:
            return RequestResponse.model_validate(record)
    raise ForbiddenError("Not allowed to view this request")


@router.patch("/{request_id}", response_model=RequestResponse)
def edit_request_note_endpoint(
    request_id: int,
    request: EditNoteRequest,
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    """Edit the note of a pending request."""
    return RequestResponse.model_validate(edit_request_note(db, request_id, employee, request.note))


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request_endpoint(
    request_id: int,
    db: Session = Depends(get_db),
    employee: CallerIdentity = Depends(get_current_employee_dependency),
):
    delete_request(db, request_id, employee)


@router.post("/{request_id}/approve", response_model=ApprovalResponse)
def approve_request_endpoint(
    request_id: int,
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """
    Approve a pending request.

    Admits the requester into the organization when needed, reserves a unit
    and records the assignment. 409 on capacity, stock or a lost race.
    """
    result = approve_request(db, request_id, admin)
    return ApprovalResponse(
        request=RequestResponse.model_validate(result.request),
        assignment_id=result.assignment.id,
        newly_affiliated=result.newly_affiliated,
        reserved=result.reserved,
    )


@router.post("/{request_id}/reject", response_model=RequestResponse)
def reject_request_endpoint(
    request_id: int,
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    return RequestResponse.model_validate(reject_request(db, request_id, admin))
