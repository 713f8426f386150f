"""
Complaint schemas with validation.

Request payloads for creation, pending edits and lifecycle transitions,
plus the response shape returned to the HTTP layer.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from servicedesk.models.base import ComplaintStatus, CreatorType, Priority
from servicedesk.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "PhotoRef",
    "ResolutionPhotoRef",
    "Creator",
    "ComplaintCreate",
    "ComplaintUpdate",
    "StartWorkRequest",
    "ResolutionPayload",
    "ResolveRequest",
    "AssignmentRequest",
    "ComplaintResponse",
]


class PhotoRef(BaseSchema):
    """Opaque media store reference."""

    url: str = Field(..., min_length=1)
    stored_id: str = Field(..., min_length=1, description="Identifier in the media store")


class ResolutionPhotoRef(PhotoRef):
    """Proof photo attached when a complaint is resolved."""

    original_name: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class Creator(BaseSchema):
    """Tagged creator reference: exactly one role and one id."""

    type: CreatorType
    ref: str = Field(..., min_length=1)


class ComplaintCreate(BaseCreateSchema):
    """
    Schema for filing a new complaint.

    Either ``location`` or ``store_name`` must be supplied; when only the
    store is given it doubles as the location.
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    location: Optional[str] = Field(default=None, max_length=255)
    store_name: Optional[str] = Field(default=None, max_length=255)
    priority: Priority = Priority.MEDIUM
    photos: List[PhotoRef] = Field(default_factory=list)

    @field_validator("location", "store_name")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def default_blank_priority(cls, v):
        if v is None or v == "":
            return Priority.MEDIUM
        return v

    @model_validator(mode="before")
    @classmethod
    def location_from_store(cls, data):
        if isinstance(data, dict):
            location = data.get("location")
            if (location is None or not str(location).strip()) and data.get("store_name"):
                data = {**data, "location": data["store_name"]}
        return data

    @model_validator(mode="after")
    def require_location(self):
        if not self.location:
            raise ValueError("location is required")
        return self


class ComplaintUpdate(BaseUpdateSchema):
    """
    Pending-only edit of a complaint.

    Photos are removed by ``stored_id`` before new ones are appended.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    priority: Optional[Priority] = None
    removed_photo_ids: List[str] = Field(default_factory=list)
    new_photos: List[PhotoRef] = Field(default_factory=list)


class StartWorkRequest(BaseSchema):
    """Technician picking up an assigned complaint."""

    technician_id: str = Field(..., min_length=1)
    notes: Optional[str] = None


class ResolutionPayload(BaseSchema):
    """Notes, materials and proof supplied when closing a complaint."""

    resolution_notes: Optional[str] = None
    materials_used: Optional[str] = None
    technician_notes: Optional[str] = None
    resolution_photos: List[ResolutionPhotoRef] = Field(default_factory=list)


class ResolveRequest(ResolutionPayload):
    """Resolution payload plus the acting technician."""

    technician_id: str = Field(..., min_length=1)


class AssignmentRequest(BaseSchema):
    technician_id: str = Field(..., min_length=1)
    assigned_by: Optional[str] = None


class ComplaintResponse(BaseResponseSchema):
    """Complaint as returned to callers."""

    id: str
    complaint_id: str
    title: str
    description: str
    location: str
    store_name: Optional[str] = None
    priority: Priority
    status: ComplaintStatus
    creator: Creator
    assigned_technician_id: Optional[str] = None
    assigned_by_id: Optional[str] = None
    created_at: datetime
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    photos: List[PhotoRef] = Field(default_factory=list)
    resolution_photos: List[ResolutionPhotoRef] = Field(default_factory=list)
    technician_notes: Optional[str] = None
    resolution_notes: Optional[str] = None
    materials_used: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def build_creator(cls, data: Union[dict, object]):
        """Fold the flat creator columns of the ORM row into the tagged variant."""
        if isinstance(data, dict) or hasattr(data, "creator"):
            return data
        values = {name: getattr(data, name, None) for name in cls.model_fields if name != "creator"}
        values["creator"] = {"type": data.creator_type, "ref": data.creator_id}
        return values
