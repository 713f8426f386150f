"""
Reporting: calendar bucketing, range parsing and complaint dashboards.
"""

from servicedesk.services.analytics.date_range import StatsRange, parse_stats_range
from servicedesk.services.analytics.reporting_service import ComplaintReportingService
from servicedesk.services.analytics.time_bucketing import bucket_key_for, bucket_keys

__all__ = [
    "StatsRange",
    "parse_stats_range",
    "ComplaintReportingService",
    "bucket_key_for",
    "bucket_keys",
]
