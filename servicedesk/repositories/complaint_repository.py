"""
Core complaint repository with lifecycle writes and lookups.

Every status change goes through ``compare_and_set`` so two writers racing
on the same complaint cannot both succeed.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from servicedesk.models.base import ComplaintStatus, CreatorType
from servicedesk.models.complaint import Complaint
from servicedesk.repositories.base.base_repository import BaseRepository

ACTIVE_STATUSES = (ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS)
OPEN_STATUSES = (ComplaintStatus.PENDING, ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS)


class ComplaintRepository(BaseRepository[Complaint]):
    """
    Complaint data access: creation, guarded transitions and listings.
    """

    def __init__(self, session: Session):
        """
        Initialize complaint repository.

        Args:
            session: SQLAlchemy database session
        """
        super().__init__(Complaint, session)

    # ==================== Lookups ====================

    def find_by_reference(self, reference: str) -> Optional[Complaint]:
        """
        Find a complaint by its human-facing complaint id or internal id.

        Args:
            reference: ``CMP-...`` id or primary key

        Returns:
            Complaint or None
        """
        query = select(Complaint).where(
            or_(Complaint.complaint_id == reference, Complaint.id == reference)
        )
        return self.session.execute(query).scalars().first()

    def find_for_technician(
        self,
        technician_id: str,
        statuses: Optional[Iterable[ComplaintStatus]] = None,
    ) -> List[Complaint]:
        """Complaints assigned to a technician, most recently assigned first."""
        query = select(Complaint).where(Complaint.assigned_technician_id == technician_id)
        if statuses:
            query = query.where(Complaint.status.in_(list(statuses)))
        query = query.order_by(Complaint.assigned_at.desc())
        return list(self.session.execute(query).scalars().all())

    def find_by_creator(
        self,
        creator_type: CreatorType,
        creator_id: str,
        status: Optional[ComplaintStatus] = None,
    ) -> List[Complaint]:
        query = select(Complaint).where(
            Complaint.creator_type == creator_type,
            Complaint.creator_id == creator_id,
        )
        if status is not None:
            query = query.where(Complaint.status == status)
        query = query.order_by(Complaint.created_at.desc())
        return list(self.session.execute(query).scalars().all())

    def find_pending_oldest_first(self) -> List[Complaint]:
        query = (
            select(Complaint)
            .where(Complaint.status == ComplaintStatus.PENDING)
            .order_by(Complaint.created_at.asc())
        )
        return list(self.session.execute(query).scalars().all())

    def count_by_technician_and_status(
        self,
        technician_id: str,
        statuses: Iterable[ComplaintStatus],
    ) -> int:
        query = select(func.count()).select_from(Complaint).where(
            Complaint.assigned_technician_id == technician_id,
            Complaint.status.in_(list(statuses)),
        )
        return self.session.execute(query).scalar_one()

    def count_active_for_technician(self, technician_id: str) -> int:
        """Assigned or in-progress complaints held by the technician."""
        return self.count_by_technician_and_status(technician_id, ACTIVE_STATUSES)

    def count_open_for_client(self, client_id: str) -> int:
        """Complaints filed by the client that are not yet resolved."""
        query = select(func.count()).select_from(Complaint).where(
            Complaint.creator_type == CreatorType.CLIENT,
            Complaint.creator_id == client_id,
            Complaint.status.in_(list(OPEN_STATUSES)),
        )
        return self.session.execute(query).scalar_one()

    # ==================== Guarded Writes ====================

    def compare_and_set(
        self,
        complaint: Complaint,
        expected_status: ComplaintStatus,
        values: Dict[str, Any],
    ) -> bool:
        """
        Apply ``values`` only if the stored row still has the status and
        version this instance was read with.

        Args:
            complaint: Instance as read by the caller
            expected_status: Status the caller validated against
            values: Column values to write

        Returns:
            True when exactly one row was updated; the instance is refreshed
        """
        stmt = (
            update(Complaint)
            .where(
                Complaint.id == complaint.id,
                Complaint.status == expected_status,
                Complaint.version == complaint.version,
            )
            .values(**values, version=Complaint.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            return False

        self.session.refresh(complaint)
        return True

    def delete_if_unchanged(self, complaint: Complaint, expected_status: ComplaintStatus) -> bool:
        """Delete the row only if status and version still match."""
        stmt = (
            delete(Complaint)
            .where(
                Complaint.id == complaint.id,
                Complaint.status == expected_status,
                Complaint.version == complaint.version,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            return False

        self.session.expunge(complaint)
        return True

    def reload(self, complaint: Complaint) -> Optional[Complaint]:
        """Re-read the row, discarding whatever this session had cached."""
        query = (
            select(Complaint)
            .where(Complaint.id == complaint.id)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(query).scalars().first()
