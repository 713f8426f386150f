"""SQLAlchemy Base with every model registered."""
from servicedesk.models import AssetRecord, Complaint, Counter, User  # noqa: F401
from servicedesk.models.base import Base

__all__ = ["Base"]
