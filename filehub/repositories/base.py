"""Base repository with shared owner-scoped get-by-ID patterns.

Subclasses specify model_class, not_found_error and (optionally)
owner_column; the base provides the common implementations.

Override _base_query() to apply default filters (e.g., soft-delete
exclusion in FileRepository).
"""

from typing import TypeVar, Generic, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import FileHubException
from ..models.user import User

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., File)
        id_column:       Name of the primary-key column (default "id")
        owner_column:    Name of the owning-user column (default "user_id")
        not_found_error: Exception class raised by get_owned
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    owner_column: str = "user_id"
    not_found_error: Type[FileHubException]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        """Base query for every lookup.

        Override in subclasses to apply default filters
        (e.g., soft-delete exclusion).
        """
        return self.db.query(self.model_class)

    def _owned_query(self, owner_id: str) -> Query:
        return self._base_query().filter(getattr(self.model_class, self.owner_column) == owner_id)

    def get_owned_optional(self, entity_id: str, owner_id: str) -> Optional[ModelT]:
        """Get an entity owned by *owner_id*, or None."""
        col = getattr(self.model_class, self.id_column)
        return self._owned_query(owner_id).filter(col == entity_id).first()

    def get_owned(self, entity_id: str, owner_id: str) -> ModelT:
        """Get an entity owned by *owner_id*.

        Raises not_found_error when it is missing or owned by someone else,
        so other users' ids are indistinguishable from unknown ones.
        """
        entity = self.get_owned_optional(entity_id, owner_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity


def lock_owner(db: Session, owner_id: str) -> None:
    """Take a row lock on the owner's user row until the transaction ends.

    Name-uniqueness checks followed by writes for one owner serialize on this
    lock (``SELECT ... FOR UPDATE``; a no-op on SQLite, which serializes
    writers anyway).
    """
    db.query(User.id).filter(User.id == owner_id).with_for_update().first()
