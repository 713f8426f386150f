"""
Pydantic request/response schemas.
"""

from servicedesk.schemas.asset_record import AssetRecordCreate, AssetRecordResponse, EquipmentItem
from servicedesk.schemas.complaint import (
    AssignmentRequest,
    ComplaintCreate,
    ComplaintResponse,
    ComplaintUpdate,
    Creator,
    PhotoRef,
    ResolutionPayload,
    ResolutionPhotoRef,
    ResolveRequest,
    StartWorkRequest,
)
from servicedesk.schemas.report import (
    AgingBucket,
    ComplaintSeriesPoint,
    StatusFunnel,
    StoreLeaderboardRow,
    TechnicianReportRow,
    TimeToResolvePoint,
)
from servicedesk.schemas.user import UserCreate, UserRef

__all__ = [
    "AssetRecordCreate",
    "AssetRecordResponse",
    "EquipmentItem",
    "AssignmentRequest",
    "ComplaintCreate",
    "ComplaintResponse",
    "ComplaintUpdate",
    "Creator",
    "PhotoRef",
    "ResolutionPayload",
    "ResolutionPhotoRef",
    "ResolveRequest",
    "StartWorkRequest",
    "AgingBucket",
    "ComplaintSeriesPoint",
    "StatusFunnel",
    "StoreLeaderboardRow",
    "TechnicianReportRow",
    "TimeToResolvePoint",
    "UserCreate",
    "UserRef",
]
