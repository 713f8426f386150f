"""
User directory service.

Resolves client, admin and technician ids to ``UserRef`` values and owns
user creation and removal. Lookups are fallible: unknown ids raise
``NotFoundError``.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from servicedesk.core.exceptions import NotFoundError
from servicedesk.models.base import UserRole
from servicedesk.models.user import User
from servicedesk.repositories.user_repository import UserRepository
from servicedesk.schemas.user import UserCreate, UserRef
from servicedesk.services.base.base_service import BaseService
from servicedesk.utils.phone import PhoneNormalizer

ROLE_LABELS = {
    UserRole.CLIENT: "Client",
    UserRole.ADMIN: "Admin",
    UserRole.TECHNICIAN: "Technician",
}


class UserDirectory(BaseService):
    """SQLAlchemy-backed user directory."""

    def __init__(self, db_session, clock=None, settings=None):
        super().__init__(db_session, clock=clock, settings=settings)
        self.users = UserRepository(db_session)

    def get_user(self, user_id: str, role: Optional[UserRole] = None) -> User:
        """
        Load the user row.

        Args:
            user_id: User id
            role: When given, the user must have this role

        Raises:
            NotFoundError: If no such user exists (with that role)
        """
        user = self.users.find_by_id(user_id) if user_id else None
        if user is None or (role is not None and user.role != role):
            label = ROLE_LABELS.get(role, "User") if role else "User"
            raise NotFoundError(label, user_id)
        return user

    def resolve(self, user_id: str, role: Optional[UserRole] = None) -> UserRef:
        return UserRef.model_validate(self.get_user(user_id, role))

    def resolve_many(self, user_ids: Iterable[str]) -> Dict[str, UserRef]:
        """Best-effort bulk lookup; missing ids are simply absent."""
        users = self.users.find_many(list({uid for uid in user_ids if uid}))
        return {user.id: UserRef.model_validate(user) for user in users}

    def find_technician_by_phone(self, phone_number: str, active_only: bool = True) -> Optional[UserRef]:
        national = PhoneNormalizer.to_national(phone_number)
        if not national:
            return None
        user = self.users.find_by_phone(national, UserRole.TECHNICIAN)
        if user is None or (active_only and not user.is_active):
            return None
        return UserRef.model_validate(user)

    def active_technicians(self) -> List[UserRef]:
        return [UserRef.model_validate(u) for u in self.users.find_active_technicians()]

    def create_user(self, payload: Union[UserCreate, Dict[str, Any]]) -> UserRef:
        """
        Register a user. Phone numbers are stored in 10 digit form.

        Raises:
            ValidationError: Invalid payload
            ConflictError: Phone number already used for this role
        """
        data = self._coerce(UserCreate, payload)
        with self.transaction():
            user = User(
                role=data.role,
                name=data.name,
                phone_number=PhoneNormalizer.to_national(data.phone_number) or None,
                is_active=data.is_active,
                is_verified=data.is_verified,
                created_at=self.clock.now(),
            )
            self.users.create(user)

        self._logger.info(f"Registered {data.role.value} {user.id}")
        return UserRef.model_validate(user)

    def set_active(self, user_id: str, is_active: bool) -> UserRef:
        with self.transaction():
            user = self.get_user(user_id)
            user.is_active = is_active
            user.updated_at = self.clock.now()
            self.db.flush()
        return UserRef.model_validate(user)
