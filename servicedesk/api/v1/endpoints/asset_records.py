"""
Asset record endpoints: technicians submit, admins browse.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from servicedesk.api import deps
from servicedesk.core.exceptions import ForbiddenError
from servicedesk.models.base import CreatorType
from servicedesk.schemas.asset_record import AssetRecordCreate, AssetRecordResponse
from servicedesk.schemas.complaint import Creator
from servicedesk.services.analytics.date_range import parse_moment
from servicedesk.services.analytics.time_bucketing import resolve_timezone
from servicedesk.services.asset.asset_record_service import AssetRecordService

router = APIRouter(prefix="/asset-records", tags=["Asset Records"])


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_asset_record(
    payload: AssetRecordCreate,
    actor: Creator = Depends(deps.get_actor),
    service: AssetRecordService = Depends(deps.get_asset_record_service),
):
    if actor.type != CreatorType.TECHNICIAN:
        raise ForbiddenError("Only technicians submit asset records", actor_id=actor.ref)
    record = service.submit(actor.ref, payload)
    return {"success": True, "record": AssetRecordResponse.model_validate(record).model_dump(mode="json")}


@router.get("")
def list_asset_records(
    technician_id: Optional[str] = None,
    store_name: Optional[str] = None,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    tz: Optional[str] = None,
    service: AssetRecordService = Depends(deps.get_asset_record_service),
):
    zone = resolve_timezone(tz or service.settings.DEFAULT_TIMEZONE)
    records = service.list_records(
        technician_id=technician_id,
        store_name=store_name,
        from_=parse_moment(from_, zone, "from"),
        to=parse_moment(to, zone, "to"),
        timezone=zone.zone,
    )
    return {
        "success": True,
        "count": len(records),
        "records": [AssetRecordResponse.model_validate(r).model_dump(mode="json") for r in records],
    }


@router.get("/{record_id}")
def get_asset_record(
    record_id: str,
    service: AssetRecordService = Depends(deps.get_asset_record_service),
):
    record = service.get(record_id)
    return {"success": True, "record": AssetRecordResponse.model_validate(record).model_dump(mode="json")}
