"""
Reporting schemas: derived, never persisted.
"""

from typing import Optional

from servicedesk.schemas.common.base import BaseResponseSchema

__all__ = [
    "ComplaintSeriesPoint",
    "TechnicianReportRow",
    "StatusFunnel",
    "StoreLeaderboardRow",
    "TimeToResolvePoint",
    "AgingBucket",
]


class ComplaintSeriesPoint(BaseResponseSchema):
    """Created and resolved counts for one bucket."""

    period: str
    created: int = 0
    resolved: int = 0


class TechnicianReportRow(BaseResponseSchema):
    technician_id: str
    technician_name: str = "Unknown"
    technician_phone_number: Optional[str] = None
    assigned: int = 0
    resolved: int = 0


class StatusFunnel(BaseResponseSchema):
    """Current status of complaints created within the range."""

    pending: int = 0
    assigned: int = 0
    in_progress: int = 0
    resolved: int = 0
    total: int = 0


class StoreLeaderboardRow(BaseResponseSchema):
    store_name: str
    total: int = 0
    resolved: int = 0
    unresolved: int = 0


class TimeToResolvePoint(BaseResponseSchema):
    period: str
    count: int
    avg_hours: float


class AgingBucket(BaseResponseSchema):
    bucket: str
    count: int = 0

