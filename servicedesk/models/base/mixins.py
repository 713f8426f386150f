"""
SQLAlchemy model mixins for reusable functionality.
"""

from sqlalchemy import Column, Integer

from servicedesk.models.base.types import UTCDateTime


class TimestampMixin:
    """
    Mixin for creation/update tracking.

    Values come from the service clock rather than the database server so
    lifecycle timestamps stay deterministic under test.
    """

    created_at = Column(
        UTCDateTime(),
        nullable=False,
        index=True,
        comment="Record creation timestamp (UTC)"
    )
    updated_at = Column(
        UTCDateTime(),
        nullable=True,
        comment="Record last update timestamp (UTC)"
    )


class VersionMixin:
    """
    Mixin for optimistic concurrency.

    Every guarded write bumps the version; conditional updates compare it.
    """

    version = Column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic concurrency token"
    )
