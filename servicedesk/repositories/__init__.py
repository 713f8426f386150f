"""
Data access layer. Repositories flush; services own commits.
"""

from servicedesk.repositories.asset_record_repository import AssetRecordRepository
from servicedesk.repositories.base import BaseRepository
from servicedesk.repositories.complaint_analytics_repository import ComplaintAnalyticsRepository
from servicedesk.repositories.complaint_repository import ComplaintRepository
from servicedesk.repositories.counter_repository import CounterRepository
from servicedesk.repositories.user_repository import UserRepository

__all__ = [
    "AssetRecordRepository",
    "BaseRepository",
    "ComplaintAnalyticsRepository",
    "ComplaintRepository",
    "CounterRepository",
    "UserRepository",
]
