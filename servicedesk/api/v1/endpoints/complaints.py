"""
Complaint lifecycle endpoints.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from servicedesk.api import deps
from servicedesk.core.exceptions import ForbiddenError
from servicedesk.models.base import ComplaintStatus, CreatorType
from servicedesk.schemas.complaint import (
    AssignmentRequest,
    ComplaintCreate,
    ComplaintResponse,
    ComplaintUpdate,
    Creator,
    ResolveRequest,
    StartWorkRequest,
)
from servicedesk.services.complaint.complaint_assignment_service import ComplaintAssignmentService
from servicedesk.services.complaint.complaint_lifecycle_service import ComplaintLifecycleService
from servicedesk.services.media.media_store import MediaStore

router = APIRouter(prefix="/complaints", tags=["Complaint Management"])


def _envelope(complaint) -> Dict[str, Any]:
    return {
        "success": True,
        "complaint": ComplaintResponse.model_validate(complaint).model_dump(mode="json"),
    }


def _require_role(actor: Creator, *roles: CreatorType) -> None:
    if actor.type not in roles:
        raise ForbiddenError(f"{actor.type.value} cannot perform this action", actor_id=actor.ref)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_complaint(
    payload: ComplaintCreate,
    actor: Creator = Depends(deps.get_actor),
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    complaint = lifecycle.create(payload, actor)
    response = _envelope(complaint)
    if actor.type == CreatorType.TECHNICIAN:
        outcome = assignment.auto_assign_to_default(complaint.complaint_id)
        response["auto_assign"] = {"assigned": outcome.assigned, "reason": outcome.reason}
        if outcome.assigned:
            response["complaint"] = _envelope(lifecycle.get(complaint.complaint_id))["complaint"]
    return response


@router.get("")
def list_complaints(
    status_filter: Optional[ComplaintStatus] = None,
    actor: Creator = Depends(deps.get_actor),
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
):
    """A technician sees assigned work; clients and admins see what they filed."""
    if actor.type == CreatorType.TECHNICIAN:
        complaints = lifecycle.list_for_technician(actor.ref, status_filter)
    else:
        complaints = lifecycle.list_for_creator(actor, status_filter)
    items: List[Dict[str, Any]] = [
        ComplaintResponse.model_validate(c).model_dump(mode="json") for c in complaints
    ]
    return {"success": True, "count": len(items), "complaints": items}


@router.post("/photos", status_code=status.HTTP_201_CREATED)
async def upload_photo(
    file: UploadFile = File(...),
    actor: Creator = Depends(deps.get_actor),
    media_store: MediaStore = Depends(deps.get_media_store),
):
    """Store one image; the returned reference goes into ``photos`` or ``new_photos``."""
    photo = media_store.upload(await file.read(), file.filename or "")
    return {"success": True, "photo": photo.model_dump(mode="json")}


@router.post("/auto-assign")
def auto_assign_pending(
    actor: Creator = Depends(deps.get_actor),
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    _require_role(actor, CreatorType.ADMIN)
    outcomes = assignment.auto_assign_pending(assigned_by=actor.ref)
    return {
        "success": True,
        "assigned": sum(1 for outcome in outcomes if outcome.assigned),
        "outcomes": [asdict(outcome) for outcome in outcomes],
    }


@router.get("/{complaint_id}")
def get_complaint(
    complaint_id: str,
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
):
    return _envelope(lifecycle.get(complaint_id))


@router.patch("/{complaint_id}")
def edit_complaint(
    complaint_id: str,
    patch: ComplaintUpdate,
    actor: Creator = Depends(deps.get_actor),
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
):
    return _envelope(lifecycle.edit(complaint_id, patch, actor))


@router.delete("/{complaint_id}")
def delete_complaint(
    complaint_id: str,
    actor: Creator = Depends(deps.get_actor),
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
):
    forgotten = lifecycle.delete(complaint_id, actor)
    return {
        "success": True,
        "message": "Complaint deleted",
        "forgotten_photos": [photo.model_dump() for photo in forgotten],
    }


@router.post("/{complaint_id}/assign")
def assign_complaint(
    complaint_id: str,
    payload: AssignmentRequest,
    actor: Creator = Depends(deps.get_actor),
    assignment: ComplaintAssignmentService = Depends(deps.get_assignment_service),
):
    _require_role(actor, CreatorType.ADMIN)
    complaint = assignment.assign_technician(
        complaint_id, payload.technician_id, assigned_by=payload.assigned_by or actor.ref
    )
    return _envelope(complaint)


@router.post("/{complaint_id}/start")
def start_work(
    complaint_id: str,
    payload: StartWorkRequest,
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
):
    return _envelope(lifecycle.start(complaint_id, payload.technician_id, notes=payload.notes))


@router.post("/{complaint_id}/resolve")
def resolve_complaint(
    complaint_id: str,
    payload: ResolveRequest,
    lifecycle: ComplaintLifecycleService = Depends(deps.get_lifecycle_service),
):
    return _envelope(lifecycle.resolve(complaint_id, payload.technician_id, payload))
