"""
User directory schemas.
"""

from typing import Optional

from pydantic import Field

from servicedesk.models.base import UserRole
from servicedesk.schemas.common.base import BaseCreateSchema, BaseResponseSchema

__all__ = ["UserCreate", "UserRef"]


class UserCreate(BaseCreateSchema):
    role: UserRole
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    is_active: bool = True
    is_verified: bool = False


class UserRef(BaseResponseSchema):
    """Resolved directory entry."""

    id: str
    role: UserRole
    name: str
    phone_number: Optional[str] = None
    is_active: bool = True
