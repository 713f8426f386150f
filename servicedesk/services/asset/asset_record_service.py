"""
Asset record service.

Technicians submit one record per store visit listing the equipment they
found. Records are write-once: there is no edit path.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from servicedesk.core.exceptions import NotFoundError
from servicedesk.models.asset_record import AssetRecord
from servicedesk.models.base import UserRole
from servicedesk.repositories.asset_record_repository import AssetRecordRepository
from servicedesk.schemas.asset_record import AssetRecordCreate
from servicedesk.services.analytics.time_bucketing import resolve_timezone, to_instant
from servicedesk.services.base.base_service import BaseService
from servicedesk.services.user.user_directory import UserDirectory

Bound = Union[datetime, date, None]


class AssetRecordService(BaseService):
    """Submission and listing of store-visit equipment records."""

    def __init__(self, db_session, clock=None, settings=None):
        super().__init__(db_session, clock=clock, settings=settings)
        self.records = AssetRecordRepository(db_session)
        self.directory = UserDirectory(db_session, clock=self.clock, settings=self.settings)

    def submit(
        self,
        technician_id: str,
        payload: Union[AssetRecordCreate, Dict[str, Any]],
    ) -> AssetRecord:
        """
        Record a store visit.

        Args:
            technician_id: Submitting technician
            payload: Store name, equipment lines and notes

        Raises:
            NotFoundError: Unknown technician
            ValidationError: Blank store name, negative counts or a count on
                absent equipment
        """
        self.directory.get_user(technician_id, UserRole.TECHNICIAN)
        data = self._coerce(AssetRecordCreate, payload)

        with self.transaction():
            record = AssetRecord(
                technician_id=technician_id,
                store_name=data.store_name,
                submission_date=self.clock.now(),
                equipment=[item.model_dump(mode="json") for item in data.equipment],
                notes=(data.notes or "").strip() or None,
                created_at=self.clock.now(),
            )
            self.records.create(record)

        present = sum(1 for item in data.equipment if item.is_present)
        self._logger.info(
            f"Asset record {record.id} for {data.store_name}: "
            f"{present}/{len(data.equipment)} equipment present",
            extra={"actor_id": technician_id},
        )
        return record

    def get(self, record_id: str) -> AssetRecord:
        record = self.records.find_by_id(record_id) if record_id else None
        if record is None:
            raise NotFoundError("AssetRecord", record_id)
        return record

    def list_records(
        self,
        technician_id: Optional[str] = None,
        store_name: Optional[str] = None,
        from_: Bound = None,
        to: Bound = None,
        timezone: Optional[str] = None,
    ) -> List[AssetRecord]:
        """
        Records newest first, optionally filtered.

        Date bounds are half-open; dates and naive datetimes are read in
        ``timezone`` (default ``DEFAULT_TIMEZONE``).
        """
        tz = resolve_timezone(timezone or self.settings.DEFAULT_TIMEZONE)
        start = to_instant(from_, tz) if from_ is not None else None
        end = to_instant(to, tz) if to is not None else None
        if start is not None and end is not None and end <= start:
            return []
        return self.records.search(
            technician_id=technician_id,
            store_name=store_name,
            start=start,
            end=end,
        )
