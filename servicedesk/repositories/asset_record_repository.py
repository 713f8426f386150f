"""
Asset record repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from servicedesk.models.asset_record import AssetRecord
from servicedesk.repositories.base.base_repository import BaseRepository


class AssetRecordRepository(BaseRepository[AssetRecord]):
    """Store-visit submissions, newest first."""

    def __init__(self, session: Session):
        super().__init__(AssetRecord, session)

    def search(
        self,
        technician_id: Optional[str] = None,
        store_name: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[AssetRecord]:
        """
        Filter records; every argument is optional.

        Args:
            technician_id: Submitting technician
            store_name: Store, matched case-insensitively
            start: Inclusive lower bound on submission_date
            end: Exclusive upper bound on submission_date

        Returns:
            Matching records ordered by submission_date descending
        """
        query = select(AssetRecord)
        if technician_id:
            query = query.where(AssetRecord.technician_id == technician_id)
        if store_name:
            query = query.where(func.lower(AssetRecord.store_name) == store_name.strip().lower())
        if start is not None:
            query = query.where(AssetRecord.submission_date >= start)
        if end is not None:
            query = query.where(AssetRecord.submission_date < end)
        query = query.order_by(AssetRecord.submission_date.desc())
        return list(self.session.execute(query).scalars().all())
