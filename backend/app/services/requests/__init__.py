"""
Request workflow: submission, approval, rejection and requester edits.
"""
from app.services.requests.request_service import (
    submit_request,
    approve_request,
    reject_request,
    edit_request_note,
    delete_request,
    get_request,
    list_my_requests,
    list_organization_requests,
)
from app.services.requests.request_models import RequestRecord, ApprovalResult

__all__ = [
    "submit_request",
    "approve_request",
    "reject_request",
    "edit_request_note",
    "delete_request",
    "get_request",
    "list_my_requests",
    "list_organization_requests",
    "RequestRecord",
    "ApprovalResult",
]
