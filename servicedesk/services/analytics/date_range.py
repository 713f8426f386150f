"""
Reporting range parsing.

Turns the raw ``interval``/``from``/``to``/``tz`` query parameters into a
``StatsRange``: a validated interval, a timezone and a half-open
``[start, end)`` pair of aware UTC instants.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

import pytz
from dateutil import parser
from dateutil.relativedelta import relativedelta

from servicedesk.config.settings import get_settings
from servicedesk.core.clock import Clock, SystemClock
from servicedesk.core.exceptions import ErrorCode, ValidationError
from servicedesk.models.base import ReportInterval
from servicedesk.services.analytics.time_bucketing import out_of_range, parse_interval, resolve_timezone

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

RangeInput = Union[str, datetime, date, None]


@dataclass(frozen=True)
class StatsRange:
    """Resolved reporting range."""

    interval: ReportInterval
    timezone: str
    start: datetime
    end: datetime
    start_local: str
    end_local: str

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def echo(self) -> dict:
        """Range as returned to API callers."""
        return {
            "interval": self.interval.value,
            "timezone": self.timezone,
            "from": self.start_local,
            "to": self.end_local,
        }


def _blank(value: RangeInput) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_moment(value: RangeInput, tz: pytz.BaseTzInfo, field: str) -> Optional[datetime]:
    """
    Parse one bound into an aware datetime in ``tz``.

    ``YYYY-MM-DD`` is local midnight; ISO date-times carrying an offset are
    converted, those without are taken as local wall time.

    Raises:
        ValidationError: Unparsable value, or one outside the calendar in ``tz``
    """
    if _blank(value):
        return None

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        try:
            if DATE_ONLY.match(text):
                moment = datetime.strptime(text, "%Y-%m-%d")
            else:
                moment = parser.isoparse(text)
        except (ValueError, OverflowError):
            raise ValidationError(
                "Invalid from/to date. Use YYYY-MM-DD or ISO date-time.",
                field_errors={field: [f"cannot parse {text!r}"]},
                error_code=ErrorCode.INVALID_FORMAT,
            ) from None

    try:
        if moment.tzinfo is None:
            return tz.localize(moment)
        return moment.astimezone(tz)
    except (OverflowError, ValueError):
        raise out_of_range(value, field) from None


def shift(moment: datetime, tz: pytz.BaseTzInfo, delta: relativedelta) -> datetime:
    """Calendar arithmetic on local wall time, re-localised afterwards."""
    local = moment.astimezone(tz).replace(tzinfo=None) + delta
    return tz.localize(local)


def parse_stats_range(
    interval: Union[str, ReportInterval, None] = None,
    from_: RangeInput = None,
    to: RangeInput = None,
    tz: Optional[str] = None,
    clock: Optional[Clock] = None,
    default_timezone: Optional[str] = None,
) -> StatsRange:
    """
    Resolve reporting query parameters.

    Args:
        interval: day, month or year; defaults to month
        from_: Inclusive start
        to: Exclusive end
        tz: IANA timezone; defaults to ``DEFAULT_TIMEZONE``
        clock: Used for the current-month default
        default_timezone: Overrides the configured default zone

    Returns:
        StatsRange; ``end <= start`` is allowed and reports come back empty

    Raises:
        ValidationError: Bad interval, timezone or date
    """
    resolved_interval = ReportInterval.MONTH if _blank(interval) else parse_interval(interval)
    timezone = default_timezone or get_settings().DEFAULT_TIMEZONE
    if not _blank(tz):
        timezone = tz.strip()
    zone = resolve_timezone(timezone)

    start = parse_moment(from_, zone, "from")
    end = parse_moment(to, zone, "to")
    month = relativedelta(months=1)

    try:
        if start is None and end is None:
            now = (clock or SystemClock()).now().astimezone(zone)
            start = zone.localize(datetime(now.year, now.month, 1))
            end = shift(start, zone, month)
        elif end is None:
            end = shift(start, zone, month)
        elif start is None:
            start = shift(end, zone, -month)
        start_utc, end_utc = start.astimezone(pytz.UTC), end.astimezone(pytz.UTC)
    except (OverflowError, ValueError):
        raise out_of_range(from_ if to is None else to, "from" if to is None else "to") from None

    return StatsRange(
        interval=resolved_interval,
        timezone=zone.zone,
        start=start_utc,
        end=end_utc,
        start_local=start.isoformat(),
        end_local=end.isoformat(),
    )
