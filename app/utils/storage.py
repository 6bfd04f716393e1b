from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, List, Optional
import logging

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass
class ExecuteResult:
    """Metadata returned by write operations."""
    inserted_id: Optional[int]
    rows_affected: int


class StorageGateway:
    """
    Thin gateway over a SQLAlchemy session.

    Services receive a gateway at construction instead of reaching for a
    global session, so each one can be tested against its own database.
    Every call translates SQLAlchemy failures into StorageError after
    rolling the session back.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except (SQLAlchemyError, OverflowError) as e:
            # OverflowError: the driver refuses integers outside the column range
            self.db.rollback()
            logger.error(f"Storage error during {action}: {e}")
            raise StorageError(f"Storage failure during {action}") from e

    def execute(self, stmt, params: Optional[dict] = None, commit: bool = True) -> ExecuteResult:
        """
        Execute an UPDATE or DELETE statement.

        Args:
            stmt: SQLAlchemy statement
            params: Optional bound parameters
            commit: Commit immediately; pass False to batch several
                statements into the next committing call

        Returns:
            ExecuteResult with the affected row count
        """
        with self._guard("execute"):
            result = self.db.execute(stmt, params)
            rows_affected = result.rowcount
            if commit:
                self.db.commit()
        return ExecuteResult(inserted_id=None, rows_affected=rows_affected)

    def add(self, instance, commit: bool = True) -> ExecuteResult:
        """Insert an ORM instance and return its new primary key."""
        with self._guard("insert"):
            self.db.add(instance)
            self.db.flush()
            inserted_id = instance.id
            if commit:
                self.db.commit()
        return ExecuteResult(inserted_id=inserted_id, rows_affected=1)

    def query_one(self, stmt, params: Optional[dict] = None) -> Optional[Any]:
        """Return the first entity selected by ``stmt`` or None."""
        with self._guard("query"):
            return self.db.scalars(stmt, params).first()

    def query_all(self, stmt, params: Optional[dict] = None) -> List[Any]:
        """Return every entity selected by ``stmt``."""
        with self._guard("query"):
            return list(self.db.scalars(stmt, params).all())


def get_storage(db: Session = Depends(get_db)) -> StorageGateway:
    """Dependency wrapping the request's session in a StorageGateway."""
    return StorageGateway(db)
