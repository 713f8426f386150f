"""
Base repository with standardized CRUD operations and error handling.

Repositories only flush; committing is left to the service that owns the
unit of work.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from servicedesk.core.exceptions import ConflictError
from servicedesk.core.logging import get_logger
from servicedesk.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides create/read/delete helpers shared by the domain repositories.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Database session
        """
        self.model = model
        self.session = session

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add entity to the session and flush so generated values are visible.

        Raises:
            ConflictError: If a unique constraint is violated
        """
        try:
            self.session.add(entity)
            self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model.__name__} already exists",
                details={"error": str(e.orig)},
            ) from e

        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, entity_id: Any) -> Optional[ModelType]:
        """Find entity by primary key."""
        return self.session.get(self.model, entity_id)

    # ==================== Delete Operations ====================

    def delete(self, entity: ModelType) -> None:
        try:
            self.session.delete(entity)
            self.session.flush()
        except SQLAlchemyError:
            logger.error(f"Delete failed for {self.model.__name__} {entity.id}", exc_info=True)
            raise
