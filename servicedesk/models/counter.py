"""
Named sequence counters (complaint numbering per store code).
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.models.base import BaseModel

__all__ = ["Counter"]


class Counter(BaseModel):
    __tablename__ = "counters"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
