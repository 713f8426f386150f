"""
Core complaint model with lifecycle tracking.

Handles complaint identity, creator, assignment, lifecycle timestamps and
media references for the pending → assigned → in-progress → resolved flow.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, CheckConstraint, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.models.base import (
    BaseModel,
    ComplaintStatus,
    CreatorType,
    Priority,
    TimestampMixin,
    UTCDateTime,
    VersionMixin,
    enum_values,
)

__all__ = ["Complaint"]


class Complaint(BaseModel, TimestampMixin, VersionMixin):
    """
    Core complaint entity.

    Attributes:
        complaint_id: Unique human-readable reference (e.g. CMP-MAG-000001)
        title: Brief complaint summary
        description: Detailed complaint description
        location: Free text location, usually the store name
        store_name: Store the complaint belongs to, if picked from the list
        priority: Complaint priority level
        status: Current lifecycle status

        creator_type: Role of the creator (client, admin, technician)
        creator_id: User ID of the creator

        assigned_technician_id: Technician bound by the assignment
        assigned_by_id: Admin who performed the assignment, if any
        assigned_at: Assignment timestamp
        started_at: Work start timestamp
        resolved_at: Resolution timestamp

        photos: Photo references attached at creation
        resolution_photos: Proof photos attached at resolution
        technician_notes: Notes left by the technician while working
        resolution_notes: How the complaint was closed out
        materials_used: Materials consumed by the fix
    """

    __tablename__ = "complaints"
    __table_args__ = (
        Index("ix_complaints_assigned_technician_status", "assigned_technician_id", "status"),
        Index("ix_complaints_creator", "creator_type", "creator_id"),
        Index("ix_complaints_assigned_at", "assigned_at"),
        Index("ix_complaints_resolved_at", "resolved_at"),
        CheckConstraint(
            "resolved_at IS NULL OR started_at IS NOT NULL",
            name="check_resolved_after_started",
        ),
        CheckConstraint(
            "started_at IS NULL OR assigned_at IS NOT NULL",
            name="check_started_after_assigned",
        ),
        {"comment": "Complaint lifecycle entity"},
    )

    complaint_id: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique human-readable complaint reference",
    )

    # Complaint content
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    store_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="priority_enum", values_callable=enum_values, native_enum=False),
        nullable=False,
        default=Priority.MEDIUM,
    )
    status: Mapped[ComplaintStatus] = mapped_column(
        Enum(ComplaintStatus, name="complaint_status_enum", values_callable=enum_values, native_enum=False),
        nullable=False,
        default=ComplaintStatus.PENDING,
        index=True,
    )

    # Creator (tagged variant)
    creator_type: Mapped[CreatorType] = mapped_column(
        Enum(CreatorType, name="creator_type_enum", values_callable=enum_values, native_enum=False),
        nullable=False,
    )
    creator_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # Assignment
    assigned_technician_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    assigned_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Lifecycle timestamps
    assigned_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # Media references
    photos: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    resolution_photos: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Notes
    technician_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolution_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    materials_used: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Complaint(complaint_id={self.complaint_id}, status={self.status})>"
