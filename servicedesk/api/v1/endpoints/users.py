"""
Technician and client management endpoints (admin only).
"""

from fastapi import APIRouter, Depends, status

from servicedesk.api import deps
from servicedesk.core.exceptions import ForbiddenError
from servicedesk.models.base import CreatorType, UserRole
from servicedesk.schemas.complaint import Creator
from servicedesk.schemas.user import UserCreate
from servicedesk.services.complaint.complaint_assignment_service import ComplaintAssignmentService

router = APIRouter(tags=["User Management"])


def _require_admin(actor: Creator) -> None:
    if actor.type != CreatorType.ADMIN:
        raise ForbiddenError("Only admins can manage users", actor_id=actor.ref)


@router.post("/users", status_code=status.HTTP_201_CREATED)
def register_user(
    payload: UserCreate,
    actor: Creator = Depends(deps.get_actor),
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    _require_admin(actor)
    user = assignment.directory.create_user(payload)
    return {"success": True, "user": user.model_dump(mode="json")}


@router.get("/technicians/{technician_id}/workload")
def technician_workload(
    technician_id: str,
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    technician = assignment.directory.resolve(technician_id, UserRole.TECHNICIAN)
    return {
        "success": True,
        "technician": technician.model_dump(mode="json"),
        "stats": assignment.technician_workload(technician_id),
    }


@router.delete("/technicians/{technician_id}")
def delete_technician(
    technician_id: str,
    actor: Creator = Depends(deps.get_actor),
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    _require_admin(actor)
    assignment.delete_technician(technician_id)
    return {"success": True, "message": "Technician deleted successfully"}


@router.delete("/clients/{client_id}")
def delete_client(
    client_id: str,
    actor: Creator = Depends(deps.get_actor),
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    _require_admin(actor)
    assignment.delete_client(client_id)
    return {"success": True, "message": "Client deleted successfully"}
