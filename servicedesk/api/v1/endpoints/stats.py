"""
Admin reporting endpoints.

Query parameters are kept as the dashboards send them: ``interval``
(day, month or year; default month), ``from``, ``to`` (exclusive) and
``tz``. Every response echoes the range that was actually used.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from servicedesk.api import deps
from servicedesk.config.settings import Settings
from servicedesk.core.clock import Clock
from servicedesk.services.analytics.date_range import StatsRange, parse_stats_range
from servicedesk.services.analytics.reporting_service import ComplaintReportingService

router = APIRouter(prefix="/stats", tags=["Analytics & Reporting"])


class RangeParams:
    """Shared ``interval/from/to/tz`` query parameters."""

    def __init__(
        self,
        interval: Optional[str] = Query(None, description="day, month or year"),
        from_: Optional[str] = Query(None, alias="from", description="Inclusive start"),
        to: Optional[str] = Query(None, description="Exclusive end"),
        tz: Optional[str] = Query(None, description="IANA timezone"),
        clock: Clock = Depends(deps.get_clock),
        settings: Settings = Depends(deps.get_app_settings),
    ):
        self.interval = interval
        self.from_ = from_
        self.to = to
        self.tz = tz
        self.clock = clock
        self.settings = settings

    def resolve(self, fixed_interval: Optional[str] = None) -> StatsRange:
        return parse_stats_range(
            fixed_interval or self.interval,
            self.from_,
            self.to,
            self.tz,
            clock=self.clock,
            default_timezone=self.settings.DEFAULT_TIMEZONE,
        )


def _respond(stats_range: StatsRange, data: Any, with_interval: bool = True) -> Dict[str, Any]:
    echo = stats_range.echo()
    if not with_interval:
        echo.pop("interval")
    return {"success": True, "range": echo, "data": data}


def _dump(rows):
    return [row.model_dump(mode="json") for row in rows]


@router.get("/complaints/created-vs-resolved")
def complaints_created_vs_resolved(
    params: RangeParams = Depends(),
    reporting: ComplaintReportingService = Depends(deps.get_reporting_service),
):
    stats_range = params.resolve()
    data = reporting.complaints_created_vs_resolved(
        stats_range.interval, stats_range.start, stats_range.end, stats_range.timezone
    )
    return _respond(stats_range, _dump(data))


@router.get("/technicians/assigned-vs-resolved")
def technicians_assigned_vs_resolved(
    params: RangeParams = Depends(),
    reporting: ComplaintReportingService = Depends(deps.get_reporting_service),
):
    stats_range = params.resolve("month")
    data = reporting.technicians_assigned_vs_resolved(
        stats_range.start, stats_range.end, stats_range.timezone
    )
    return _respond(stats_range, _dump(data), with_interval=False)


@router.get("/complaints/status-funnel")
def complaints_status_funnel(
    params: RangeParams = Depends(),
    reporting: ComplaintReportingService = Depends(deps.get_reporting_service),
):
    stats_range = params.resolve("month")
    data = reporting.status_funnel(stats_range.start, stats_range.end, stats_range.timezone)
    return _respond(stats_range, data.model_dump(mode="json"), with_interval=False)


@router.get("/complaints/store-leaderboard")
def complaints_store_leaderboard(
    params: RangeParams = Depends(),
    limit: Optional[int] = Query(None, description="1..50, default 10"),
    reporting: ComplaintReportingService = Depends(deps.get_reporting_service),
):
    stats_range = params.resolve("month")
    data = reporting.store_leaderboard(
        stats_range.start, stats_range.end, limit=limit, timezone=stats_range.timezone
    )
    return _respond(stats_range, _dump(data), with_interval=False)


@router.get("/complaints/time-to-resolve")
def complaints_time_to_resolve(
    params: RangeParams = Depends(),
    reporting: ComplaintReportingService = Depends(deps.get_reporting_service),
):
    stats_range = params.resolve()
    data = reporting.time_to_resolve(
        stats_range.interval, stats_range.start, stats_range.end, stats_range.timezone
    )
    return _respond(stats_range, _dump(data))


@router.get("/complaints/aging")
def complaints_aging(
    params: RangeParams = Depends(),
    reporting: ComplaintReportingService = Depends(deps.get_reporting_service),
):
    stats_range = params.resolve("month")
    data = reporting.aging_buckets(stats_range.start, stats_range.end, stats_range.timezone)
    return _respond(stats_range, _dump(data), with_interval=False)
