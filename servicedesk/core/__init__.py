"""
Core building blocks: exceptions, clock and logging helpers.
"""

from servicedesk.core.clock import Clock, FixedClock, SystemClock
from servicedesk.core.exceptions import (
    BaseAppException,
    ConflictError,
    ErrorCode,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "BaseAppException",
    "ConflictError",
    "ErrorCode",
    "ForbiddenError",
    "InvalidTransitionError",
    "NotFoundError",
    "ValidationError",
]
