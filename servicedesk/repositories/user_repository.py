"""
User directory repository.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from servicedesk.models.base import UserRole
from servicedesk.models.user import User
from servicedesk.repositories.base.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Lookups by id, role and phone number."""

    def __init__(self, session: Session):
        super().__init__(User, session)

    def find_by_phone(self, phone_number: str, role: UserRole) -> Optional[User]:
        query = select(User).where(User.phone_number == phone_number, User.role == role)
        return self.session.execute(query).scalars().first()

    def find_active_technicians(self) -> List[User]:
        query = (
            select(User)
            .where(User.role == UserRole.TECHNICIAN, User.is_active.is_(True))
            .order_by(User.id.asc())
        )
        return list(self.session.execute(query).scalars().all())

    def find_many(self, user_ids: List[str]) -> List[User]:
        if not user_ids:
            return []
        query = select(User).where(User.id.in_(user_ids))
        return list(self.session.execute(query).scalars().all())
