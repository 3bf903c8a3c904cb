"""
Assignment and return tracker: which employee holds which unit.
"""
from app.services.assignment.assignment_service import (
    create_assignment,
    get_assignment,
    return_assignment,
    list_my_assignments,
)
from app.services.assignment.assignment_models import AssignmentRecord

__all__ = [
    "create_assignment",
    "get_assignment",
    "return_assignment",
    "list_my_assignments",
    "AssignmentRecord",
]
