"""
Complaint analytics repository.

Read-only range queries feeding the reporting service. All ranges are
half-open: ``start <= value < end``.
"""

from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from servicedesk.models.base import ComplaintStatus
from servicedesk.models.complaint import Complaint


class ComplaintAnalyticsRepository:
    """
    Range queries over complaint lifecycle timestamps.
    """

    def __init__(self, session: Session):
        """
        Initialize analytics repository.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session

    def find_created_between(self, start: datetime, end: datetime) -> List[Complaint]:
        query = (
            select(Complaint)
            .where(Complaint.created_at >= start, Complaint.created_at < end)
            .order_by(Complaint.created_at.asc())
        )
        return list(self.session.execute(query).scalars().all())

    def find_resolved_between(self, start: datetime, end: datetime) -> List[Complaint]:
        query = (
            select(Complaint)
            .where(
                Complaint.status == ComplaintStatus.RESOLVED,
                Complaint.resolved_at.is_not(None),
                Complaint.resolved_at >= start,
                Complaint.resolved_at < end,
            )
            .order_by(Complaint.resolved_at.asc())
        )
        return list(self.session.execute(query).scalars().all())

    def find_assigned_between(self, start: datetime, end: datetime) -> List[Complaint]:
        query = (
            select(Complaint)
            .where(
                Complaint.assigned_technician_id.is_not(None),
                Complaint.assigned_at.is_not(None),
                Complaint.assigned_at >= start,
                Complaint.assigned_at < end,
            )
            .order_by(Complaint.assigned_at.asc())
        )
        return list(self.session.execute(query).scalars().all())

    def find_unresolved_created_between(self, start: datetime, end: datetime) -> List[Complaint]:
        query = select(Complaint).where(
            Complaint.created_at >= start,
            Complaint.created_at < end,
            Complaint.status != ComplaintStatus.RESOLVED,
        )
        return list(self.session.execute(query).scalars().all())
