"""
FastAPI dependencies.

Authentication lives outside this service: the acting user arrives in the
``X-Actor-Role`` and ``X-Actor-Id`` headers set by the gateway and is
passed explicitly to every service call.

Example usage in a router:
    @router.post("/complaints")
    def create(db: Session = Depends(deps.get_db), actor: Creator = Depends(deps.get_actor)):
        ...
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from servicedesk.config.settings import Settings, get_settings
from servicedesk.core.clock import Clock, SystemClock
from servicedesk.core.exceptions import ValidationError
from servicedesk.db.session import get_db
from servicedesk.models.base import CreatorType
from servicedesk.schemas.complaint import Creator
from servicedesk.services.analytics.reporting_service import ComplaintReportingService
from servicedesk.services.asset.asset_record_service import AssetRecordService
from servicedesk.services.complaint.complaint_assignment_service import ComplaintAssignmentService
from servicedesk.services.complaint.complaint_lifecycle_service import ComplaintLifecycleService
from servicedesk.services.media.media_store import LocalMediaStore, MediaStore

_system_clock = SystemClock()


# --- Database & context --------------------------------------------------------

def get_clock() -> Clock:
    return _system_clock


def get_app_settings() -> Settings:
    return get_settings()


def get_actor(
    x_actor_role: str = Header(..., alias="X-Actor-Role"),
    x_actor_id: str = Header(..., alias="X-Actor-Id"),
) -> Creator:
    """Acting user from the gateway headers."""
    try:
        role = CreatorType(x_actor_role.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown actor role: {x_actor_role}",
            field_errors={"X-Actor-Role": ["must be client, admin or technician"]},
        ) from None
    if not x_actor_id.strip():
        raise ValidationError("Actor id is required", field_errors={"X-Actor-Id": ["required"]})
    return Creator(type=role, ref=x_actor_id.strip())


# --- Services ------------------------------------------------------------------

def get_media_store(settings: Settings = Depends(get_app_settings)) -> MediaStore:
    return LocalMediaStore(settings.UPLOAD_DIR)


def get_lifecycle_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    media_store: MediaStore = Depends(get_media_store),
) -> ComplaintLifecycleService:
    return ComplaintLifecycleService(db, clock=clock, settings=settings, media_store=media_store)


def get_assignment_service(
    lifecycle: ComplaintLifecycleService = Depends(get_lifecycle_service),
) -> ComplaintAssignmentService:
    return ComplaintAssignmentService(
        lifecycle.db, clock=lifecycle.clock, settings=lifecycle.settings, lifecycle=lifecycle
    )


def get_reporting_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
) -> ComplaintReportingService:
    return ComplaintReportingService(db, clock=clock, settings=settings)


def get_asset_record_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
) -> AssetRecordService:
    return AssetRecordService(db, clock=clock, settings=settings)
