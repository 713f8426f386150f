"""
Complaint reporting service.

Read-only aggregations over complaint lifecycle timestamps. Every report is
recomputed per call over a half-open ``[from, to)`` range; an inverted
range yields an empty report rather than an error. Only a bad interval or
timezone raises.
"""

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Union

from servicedesk.models.base import ComplaintStatus, ReportInterval
from servicedesk.repositories.complaint_analytics_repository import ComplaintAnalyticsRepository
from servicedesk.schemas.report import (
    AgingBucket,
    ComplaintSeriesPoint,
    StatusFunnel,
    StoreLeaderboardRow,
    TechnicianReportRow,
    TimeToResolvePoint,
)
from servicedesk.services.analytics.time_bucketing import (
    Moment,
    bucket_key_for,
    bucket_keys,
    parse_interval,
    resolve_timezone,
    to_instant,
    to_local,
)
from servicedesk.services.base.base_service import BaseService
from servicedesk.services.user.user_directory import UserDirectory

AGING_BUCKETS = (
    ("0-1d", 1),
    ("2-3d", 3),
    ("4-7d", 7),
    ("8-14d", 14),
    ("15-30d", 30),
    ("30d+", None),
)

LEADERBOARD_DEFAULT_LIMIT = 10
LEADERBOARD_MAX_LIMIT = 50
UNKNOWN = "Unknown"


class ComplaintReportingService(BaseService):
    """
    Admin dashboard reports.

    Complaints are fetched per range and grouped in Python on the local
    calendar of the requested timezone.
    """

    def __init__(self, db_session, clock=None, settings=None):
        """
        Initialize reporting service.

        Args:
            db_session: SQLAlchemy database session
            clock: Time source handed to the user directory
            settings: Application settings
        """
        super().__init__(db_session, clock=clock, settings=settings)
        self.analytics = ComplaintAnalyticsRepository(db_session)
        self.directory = UserDirectory(db_session, clock=self.clock, settings=self.settings)

    # -------------------------------------------------------------------------
    # Core reports
    # -------------------------------------------------------------------------

    def complaints_created_vs_resolved(
        self,
        interval: Union[str, ReportInterval],
        from_: Moment,
        to: Moment,
        timezone: str = "UTC",
    ) -> List[ComplaintSeriesPoint]:
        """
        Created and resolved counts per bucket.

        The two series are independent groupings: a complaint counts as
        created in the bucket of ``created_at`` and as resolved in the
        bucket of ``resolved_at``, each only if that timestamp is in range.

        Returns:
            One point per bucket key, zero-filled, oldest first
        """
        interval = parse_interval(interval)
        keys = bucket_keys(interval, from_, to, timezone)
        if not keys:
            return []

        start, end = self._bounds(from_, to, timezone)
        created = Counter(
            bucket_key_for(c.created_at, interval, timezone)
            for c in self.analytics.find_created_between(start, end)
        )
        resolved = Counter(
            bucket_key_for(c.resolved_at, interval, timezone)
            for c in self.analytics.find_resolved_between(start, end)
        )

        self._logger.debug(
            f"created-vs-resolved {interval.value} {start.isoformat()}..{end.isoformat()} "
            f"{sum(created.values())} created, {sum(resolved.values())} resolved"
        )
        return [
            ComplaintSeriesPoint(period=key, created=created.get(key, 0), resolved=resolved.get(key, 0))
            for key in keys
        ]

    def technicians_assigned_vs_resolved(
        self,
        from_: Moment,
        to: Moment,
        timezone: str = "UTC",
    ) -> List[TechnicianReportRow]:
        """
        Per-technician assigned and resolved counts over the range.

        Only technicians with at least one event appear. Names and phone
        numbers come from the user directory; a technician that no longer
        resolves is reported as ``Unknown``.

        Returns:
            Rows sorted by assigned desc, then resolved desc
        """
        start, end = self._bounds(from_, to, timezone)
        if end <= start:
            return []

        assigned = Counter(
            c.assigned_technician_id for c in self.analytics.find_assigned_between(start, end)
        )
        resolved = Counter(
            c.assigned_technician_id
            for c in self.analytics.find_resolved_between(start, end)
            if c.assigned_technician_id
        )

        technician_ids = set(assigned) | set(resolved)
        people = self.directory.resolve_many(technician_ids)

        rows = []
        for technician_id in technician_ids:
            person = people.get(technician_id)
            rows.append(
                TechnicianReportRow(
                    technician_id=technician_id,
                    technician_name=person.name if person else UNKNOWN,
                    technician_phone_number=person.phone_number if person else None,
                    assigned=assigned.get(technician_id, 0),
                    resolved=resolved.get(technician_id, 0),
                )
            )

        rows.sort(key=lambda row: (-row.assigned, -row.resolved, row.technician_name, row.technician_id))
        return rows

    # -------------------------------------------------------------------------
    # Dashboard reports
    # -------------------------------------------------------------------------

    def status_funnel(self, from_: Moment, to: Moment, timezone: str = "UTC") -> StatusFunnel:
        """Current status of the complaints created in range."""
        start, end = self._bounds(from_, to, timezone)
        if end <= start:
            return StatusFunnel()

        counts = Counter(c.status for c in self.analytics.find_created_between(start, end))
        funnel = StatusFunnel(
            pending=counts.get(ComplaintStatus.PENDING, 0),
            assigned=counts.get(ComplaintStatus.ASSIGNED, 0),
            in_progress=counts.get(ComplaintStatus.IN_PROGRESS, 0),
            resolved=counts.get(ComplaintStatus.RESOLVED, 0),
        )
        funnel.total = funnel.pending + funnel.assigned + funnel.in_progress + funnel.resolved
        return funnel

    def store_leaderboard(
        self,
        from_: Moment,
        to: Moment,
        limit: Optional[int] = LEADERBOARD_DEFAULT_LIMIT,
        timezone: str = "UTC",
    ) -> List[StoreLeaderboardRow]:
        """
        Complaints created in range grouped by location.

        Locations are compared trimmed and case-insensitively; the first
        spelling seen is the label. Blank locations group as ``Unknown``.
        ``limit`` is clamped to 1..50.
        """
        start, end = self._bounds(from_, to, timezone)
        if end <= start:
            return []

        groups: Dict[str, StoreLeaderboardRow] = {}
        for complaint in self.analytics.find_created_between(start, end):
            label = (complaint.location or "").strip()
            key = label.lower()
            row = groups.get(key)
            if row is None:
                row = groups[key] = StoreLeaderboardRow(store_name=label or UNKNOWN)
            row.total += 1
            if complaint.status == ComplaintStatus.RESOLVED:
                row.resolved += 1
            else:
                row.unresolved += 1

        rows = sorted(groups.values(), key=lambda r: (-r.total, -r.unresolved, r.store_name))
        return rows[: self._clamp_limit(limit)]

    def time_to_resolve(
        self,
        interval: Union[str, ReportInterval],
        from_: Moment,
        to: Moment,
        timezone: str = "UTC",
    ) -> List[TimeToResolvePoint]:
        """
        Average hours from creation to resolution, per bucket of ``resolved_at``.

        Buckets without resolutions are omitted.
        """
        interval = parse_interval(interval)
        start, end = self._bounds(from_, to, timezone)
        if end <= start:
            return []

        hours: Dict[str, List[float]] = defaultdict(list)
        for complaint in self.analytics.find_resolved_between(start, end):
            if complaint.created_at is None:
                continue
            key = bucket_key_for(complaint.resolved_at, interval, timezone)
            elapsed = complaint.resolved_at - complaint.created_at
            hours[key].append(elapsed.total_seconds() / 3600)

        return [
            TimeToResolvePoint(period=key, count=len(values), avg_hours=round(sum(values) / len(values), 2))
            for key, values in sorted(hours.items())
        ]

    def aging_buckets(self, from_: Moment, to: Moment, timezone: str = "UTC") -> List[AgingBucket]:
        """
        Unresolved complaints created in range, by age at ``to``.

        Age is the number of local calendar days between creation and the
        end of the range. All six buckets are always returned.
        """
        start, end = self._bounds(from_, to, timezone)
        counts = Counter()
        if end > start:
            tz = resolve_timezone(timezone)
            end_day = to_local(end, tz).date()
            for complaint in self.analytics.find_unresolved_created_between(start, end):
                age = (end_day - to_local(complaint.created_at, tz).date()).days
                counts[self._aging_label(age)] += 1

        return [AgingBucket(bucket=label, count=counts.get(label, 0)) for label, _ in AGING_BUCKETS]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _bounds(from_: Moment, to: Moment, timezone: str):
        tz = resolve_timezone(timezone)
        return to_instant(from_, tz), to_instant(to, tz)

    @staticmethod
    def _aging_label(age_days: int) -> str:
        for label, upper in AGING_BUCKETS:
            if upper is None or age_days <= upper:
                return label
        return AGING_BUCKETS[-1][0]

    @staticmethod
    def _clamp_limit(limit: Optional[int]) -> int:
        try:
            value = int(limit) if limit is not None else LEADERBOARD_DEFAULT_LIMIT
        except (TypeError, ValueError):
            value = LEADERBOARD_DEFAULT_LIMIT
        if value == 0:
            value = LEADERBOARD_DEFAULT_LIMIT
        return max(1, min(value, LEADERBOARD_MAX_LIMIT))
