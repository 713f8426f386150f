"""
Asset record model: one technician submission per store visit.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.models.base import BaseModel, TimestampMixin, UTCDateTime

__all__ = ["AssetRecord"]


class AssetRecord(BaseModel, TimestampMixin):
    """
    Equipment inventory captured by a technician at a store.

    Attributes:
        technician_id: Submitting technician
        store_name: Visited store
        submission_date: When the visit was recorded
        equipment: List of {equipment_id, name, is_present, count}
        notes: Free text remarks
    """

    __tablename__ = "asset_records"
    __table_args__ = (
        Index("ix_asset_records_technician", "technician_id"),
        Index("ix_asset_records_store_name", "store_name"),
        {"comment": "Technician store-visit equipment submissions"},
    )

    technician_id: Mapped[str] = mapped_column(String(36), nullable=False)
    store_name: Mapped[str] = mapped_column(String(255), nullable=False)
    submission_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    equipment: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
