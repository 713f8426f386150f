"""
Asset record schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from servicedesk.schemas.common.base import BaseCreateSchema, BaseResponseSchema, BaseSchema

__all__ = ["EquipmentItem", "AssetRecordCreate", "AssetRecordResponse"]


class EquipmentItem(BaseSchema):
    """One line of a store inventory; absent equipment has a zero count."""

    equipment_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    is_present: bool = False
    count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def absent_means_zero(self):
        if not self.is_present and self.count != 0:
            raise ValueError(f"{self.name}: count must be 0 when equipment is not present")
        return self


class AssetRecordCreate(BaseCreateSchema):
    store_name: str = Field(..., min_length=1, max_length=255)
    equipment: List[EquipmentItem] = Field(default_factory=list)
    notes: Optional[str] = None


class AssetRecordResponse(BaseResponseSchema):
    id: str
    technician_id: str
    store_name: str
    submission_date: datetime
    equipment: List[EquipmentItem]
    notes: Optional[str] = None
