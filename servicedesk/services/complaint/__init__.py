"""
Complaint services: lifecycle state machine, id generation and assignment.
"""

from servicedesk.services.complaint.complaint_assignment_service import (
    AutoAssignOutcome,
    ComplaintAssignmentService,
)
from servicedesk.services.complaint.complaint_id import ComplaintIdGenerator, store_code_for
from servicedesk.services.complaint.complaint_lifecycle_service import ComplaintLifecycleService

__all__ = [
    "AutoAssignOutcome",
    "ComplaintAssignmentService",
    "ComplaintIdGenerator",
    "ComplaintLifecycleService",
    "store_code_for",
]
