"""Database initialization utilities."""
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from servicedesk.core.logging import get_logger
from servicedesk.db.base import Base
from servicedesk.db.session import engine as default_engine

logger = get_logger(__name__)


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Create missing tables.

    Note: This is suitable for development/testing only.
    """
    engine = engine or default_engine
    existing_tables = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    created = set(Base.metadata.tables) - existing_tables
    if created:
        logger.info(f"Database tables created: {sorted(created)}")
    else:
        logger.info(f"Database already initialized with {len(existing_tables)} tables")
