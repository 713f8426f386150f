"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from servicedesk.models.asset_record import AssetRecord
from servicedesk.models.base import Base
from servicedesk.models.complaint import Complaint
from servicedesk.models.counter import Counter
from servicedesk.models.user import User

__all__ = ["AssetRecord", "Base", "Complaint", "Counter", "User"]
