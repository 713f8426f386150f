"""
Calendar bucketing for reports.

Pure functions: given an interval, a half-open range ``[from, to)`` and an
IANA timezone, produce the ordered bucket keys covering the range, or the
key a single event falls into. Keys are ``YYYY-MM-DD``, ``YYYY-MM`` and
``YYYY``.

The walk is done on the local calendar with ``relativedelta`` so month and
year steps follow real month lengths and leap years.
"""

from datetime import date, datetime, time
from typing import List, Union

import pytz
from dateutil.relativedelta import relativedelta

from servicedesk.core.exceptions import ErrorCode, ValidationError
from servicedesk.models.base import ReportInterval

Moment = Union[datetime, date]

STEP = {
    ReportInterval.DAY: relativedelta(days=1),
    ReportInterval.MONTH: relativedelta(months=1),
    ReportInterval.YEAR: relativedelta(years=1),
}


def parse_interval(interval: Union[str, ReportInterval]) -> ReportInterval:
    """
    Coerce ``day``/``month``/``year`` (any case) to ``ReportInterval``.

    Raises:
        ValidationError: For anything else
    """
    if isinstance(interval, ReportInterval):
        return interval
    try:
        return ReportInterval(str(interval).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid interval: {interval!r}. Use day, month or year.",
            field_errors={"interval": ["must be one of day, month, year"]},
            error_code=ErrorCode.INVALID_FORMAT,
        ) from None


def resolve_timezone(name: str) -> pytz.BaseTzInfo:
    """
    Look up an IANA timezone.

    Raises:
        ValidationError: Unknown or empty name
    """
    try:
        return pytz.timezone(str(name).strip())
    except (pytz.UnknownTimeZoneError, AttributeError, ValueError):
        raise ValidationError(
            f"Unknown timezone: {name!r}",
            field_errors={"tz": ["unknown IANA timezone"]},
            error_code=ErrorCode.INVALID_FORMAT,
        ) from None


def out_of_range(moment: Moment, field: str = "range") -> ValidationError:
    return ValidationError(
        f"Date outside the supported calendar: {moment}",
        field_errors={field: ["date is outside the supported calendar"]},
        error_code=ErrorCode.INVALID_FORMAT,
    )


def to_local(moment: Moment, tz: pytz.BaseTzInfo) -> datetime:
    """
    Local wall-clock time of ``moment`` in ``tz``, returned naive.

    Dates and naive datetimes are already local wall time.
    """
    if not isinstance(moment, datetime):
        return datetime.combine(moment, time.min)
    if moment.tzinfo is None:
        return moment
    try:
        return moment.astimezone(tz).replace(tzinfo=None)
    except (OverflowError, ValueError):
        raise out_of_range(moment) from None


def to_instant(moment: Moment, tz: pytz.BaseTzInfo) -> datetime:
    """Aware UTC instant for a range bound; dates and naive values are local to ``tz``."""
    try:
        if isinstance(moment, datetime) and moment.tzinfo is not None:
            return moment.astimezone(pytz.UTC)
        return tz.localize(to_local(moment, tz)).astimezone(pytz.UTC)
    except (OverflowError, ValueError):
        raise out_of_range(moment) from None


def truncate(local: datetime, interval: ReportInterval) -> datetime:
    """Start of the bucket containing ``local``."""
    start = datetime(local.year, local.month, local.day)
    if interval == ReportInterval.MONTH:
        return start.replace(day=1)
    if interval == ReportInterval.YEAR:
        return start.replace(month=1, day=1)
    return start


def format_key(bucket_start: datetime, interval: ReportInterval) -> str:
    if interval == ReportInterval.YEAR:
        return f"{bucket_start.year:04d}"
    if interval == ReportInterval.MONTH:
        return f"{bucket_start.year:04d}-{bucket_start.month:02d}"
    return f"{bucket_start.year:04d}-{bucket_start.month:02d}-{bucket_start.day:02d}"


def bucket_keys(
    interval: Union[str, ReportInterval],
    from_: Moment,
    to: Moment,
    timezone: str = "UTC",
) -> List[str]:
    """
    Ordered bucket keys covering ``[from_, to)`` in ``timezone``.

    Args:
        interval: day, month or year
        from_: Inclusive start
        to: Exclusive end; pass one unit past the last bucket wanted
        timezone: IANA name

    Returns:
        Keys without gaps or duplicates; empty when ``from_ >= to``

    Raises:
        ValidationError: Bad interval or timezone, or a bound outside the calendar
    """
    interval = parse_interval(interval)
    tz = resolve_timezone(timezone)

    start = to_local(from_, tz)
    end = to_local(to, tz)
    if start >= end:
        return []

    step = STEP[interval]
    cursor = truncate(start, interval)
    keys = []
    while cursor < end:
        keys.append(format_key(cursor, interval))
        try:
            cursor = cursor + step
        except (OverflowError, ValueError):
            # last bucket of the calendar
            break
    return keys


def bucket_key_for(
    moment: Moment,
    interval: Union[str, ReportInterval],
    timezone: str = "UTC",
) -> str:
    """Key of the bucket an event at ``moment`` belongs to."""
    interval = parse_interval(interval)
    tz = resolve_timezone(timezone)
    return format_key(truncate(to_local(moment, tz), interval), interval)
