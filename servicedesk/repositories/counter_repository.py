"""
Named counters backing human-readable sequences.
"""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from servicedesk.models.counter import Counter
from servicedesk.repositories.base.base_repository import BaseRepository


class CounterRepository(BaseRepository[Counter]):
    """Atomic increment-and-read over the ``counters`` table."""

    def __init__(self, session: Session):
        super().__init__(Counter, session)

    def next_value(self, key: str) -> int:
        """
        Increment the counter named ``key`` and return its new value.

        The first call for a key creates it at 1. A concurrent creator
        losing the insert race falls back to the increment.

        Args:
            key: Counter name, e.g. ``complaint:MAG``

        Returns:
            The incremented sequence value
        """
        if not self._increment(key):
            try:
                with self.session.begin_nested():
                    self.session.add(Counter(key=key, seq=1))
                return 1
            except IntegrityError:
                if not self._increment(key):
                    raise

        return self.current_value(key)

    def current_value(self, key: str) -> int:
        query = select(Counter.seq).where(Counter.key == key)
        value = self.session.execute(query).scalar_one_or_none()
        return value or 0

    def _increment(self, key: str) -> bool:
        stmt = (
            update(Counter)
            .where(Counter.key == key)
            .values(seq=Counter.seq + 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1
