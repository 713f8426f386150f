"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servicedesk.config.settings import Settings, get_settings
from servicedesk.core.clock import Clock, SystemClock
from servicedesk.core.exceptions import BaseAppException, create_validation_error
from servicedesk.core.logging import get_logger

TSchema = TypeVar("TSchema", bound=PydanticModel)


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger, db session, clock and settings
    - Transaction management with rollback on any failure
    - Conversion of request payloads into validated schemas
    """

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
            clock: Source of every lifecycle timestamp
            settings: Application settings, defaults to the cached instance
        """
        self.db: Session = db_session
        self.clock: Clock = clock or SystemClock()
        self.settings: Settings = settings or get_settings()
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Args:
            auto_commit: Whether to commit automatically on success

        Yields:
            The database session

        Example:
            with self.transaction():
                self.repository.create(entity)
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except BaseAppException as e:
            self._rollback()
            self._logger.warning(f"Operation refused: {e}")
            raise
        except Exception as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction; a failing rollback is logged, the original error wins."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce(schema_cls: Type[TSchema], payload: Union[TSchema, Dict[str, Any], None]) -> TSchema:
        """
        Accept either a schema instance or a plain mapping.

        Raises:
            ValidationError: With per-field messages when the mapping is invalid
        """
        if isinstance(payload, schema_cls):
            return payload
        try:
            if isinstance(payload, PydanticModel):
                return schema_cls.model_validate(payload.model_dump())
            return schema_cls.model_validate(payload or {})
        except PydanticValidationError as e:
            field_errors: Dict[str, List[str]] = {}
            for error in e.errors():
                field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
                field_errors.setdefault(field, []).append(error.get("msg", "invalid"))
            raise create_validation_error(field_errors) from e
