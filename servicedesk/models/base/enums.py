"""
Database enums shared by models and schemas.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    CLIENT = "client"
    ADMIN = "admin"
    TECHNICIAN = "technician"


class ComplaintStatus(str, enum.Enum):
    """Complaint lifecycle status, in lifecycle order."""
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"

    @property
    def is_active(self) -> bool:
        return self in (ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS)


class Priority(str, enum.Enum):
    """Complaint priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CreatorType(str, enum.Enum):
    """Role of the user who filed a complaint."""
    CLIENT = "client"
    ADMIN = "admin"
    TECHNICIAN = "technician"


class ReportInterval(str, enum.Enum):
    """Bucket granularity for time series reports."""
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


def enum_values(enum_cls):
    """values_callable for SQLAlchemy Enum columns so values, not names, are stored"""
    return [member.value for member in enum_cls]
