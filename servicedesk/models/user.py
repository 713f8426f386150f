"""
User directory model.

Clients, admins and technicians share one table keyed by role.
"""

from typing import Optional

from sqlalchemy import Boolean, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.models.base import BaseModel, TimestampMixin, UserRole, enum_values

__all__ = ["User"]


class User(BaseModel, TimestampMixin):
    """
    Directory entry for every actor in the system.

    Attributes:
        role: client, admin or technician
        name: Display name
        phone_number: 10 digit phone number, unique per role
        is_active: Disabled users cannot receive new work
        is_verified: Set once the user completed phone verification
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_role_phone", "role", "phone_number", unique=True),
        {"comment": "Clients, admins and technicians"},
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role_enum", values_callable=enum_values, native_enum=False),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role}, name={self.name})>"
