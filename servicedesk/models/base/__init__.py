"""
Base models package.

Provides base classes, mixins, custom types and enums for all models.
"""

from servicedesk.models.base.base_model import Base, BaseModel
from servicedesk.models.base.enums import (
    ComplaintStatus,
    CreatorType,
    Priority,
    ReportInterval,
    UserRole,
    enum_values,
)
from servicedesk.models.base.mixins import TimestampMixin, VersionMixin
from servicedesk.models.base.types import UTCDateTime

__all__ = [
    "Base",
    "BaseModel",
    "ComplaintStatus",
    "CreatorType",
    "Priority",
    "ReportInterval",
    "UserRole",
    "enum_values",
    "TimestampMixin",
    "VersionMixin",
    "UTCDateTime",
]
