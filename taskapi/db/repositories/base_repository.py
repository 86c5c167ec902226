"""
Base repository - generic persistence gateway (SOLID: Interface Segregation, Dependency Inversion).
Challenge: Consistent data access, testability via mocks, one place that turns driver
errors into StorageError so services never see SQLAlchemy exceptions.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import exists, select, text
from sqlalchemy.sql.base import Executable
from sqlalchemy.sql.elements import ColumnElement, TextClause
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskapi.core.errors import StorageConflictError, StorageError, TriggerConflictError
from taskapi.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)

# Inserts are flushed early (to get ids) so session.new is empty by commit time;
# they are counted here, shared by every repository bound to the same session.
_FLUSHED_WRITES = "flushed_writes"


def translate_storage_error(exc: Exception) -> StorageError:
    """Map a driver/ORM failure to the storage taxonomy."""
    if isinstance(exc, IntegrityError):
        return StorageConflictError(str(exc.orig))
    detail = str(getattr(exc, "orig", None) or exc)
    lowered = detail.lower()
    # SQL Server: "...cannot have any enabled triggers if the statement contains an OUTPUT clause..."
    if "trigger" in lowered and ("output" in lowered or "returning" in lowered):
        return TriggerConflictError(detail)
    return StorageError(detail)


class BaseRepository(Generic[ModelType]):
    """Generic async repository. Subclasses define model-specific queries."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        self.session = session
        self.model = model

    async def _execute(self, stmt: Executable, params: dict[str, Any] | None = None):
        try:
            return await self.session.execute(stmt, params)
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            raise translate_storage_error(exc) from exc

    async def get_by_id(self, id: int) -> ModelType | None:
        """Fetch single entity by primary key. Used for detail endpoints."""
        result = await self._execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def find_first(self, *criteria: ColumnElement[bool]) -> ModelType | None:
        """First entity (lowest id) matching all criteria."""
        result = await self._execute(
            select(self.model).where(*criteria).order_by(self.model.id).limit(1)
        )
        return result.scalars().first()

    async def exists(self, *criteria: ColumnElement[bool]) -> bool:
        result = await self._execute(select(exists().where(*criteria)))
        return bool(result.scalar())

    async def list_all(self, *criteria: ColumnElement[bool]) -> list[ModelType]:
        result = await self._execute(select(self.model).where(*criteria).order_by(self.model.id))
        return list(result.scalars().all())

    async def add(self, entity: ModelType) -> ModelType:
        """Persist new entity and load its generated id. Caller commits."""
        self.session.add(entity)
        try:
            await self.session.flush()  # Get ID without committing
            await self.session.refresh(entity)
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            raise translate_storage_error(exc) from exc
        self.session.info[_FLUSHED_WRITES] = self.session.info.get(_FLUSHED_WRITES, 0) + 1
        return entity

    def update(self, entity: ModelType) -> None:
        """Mark entity as changed; written by the next commit()."""
        self.session.add(entity)

    async def delete(self, entity: ModelType) -> None:
        """Remove entity from DB on next commit()."""
        await self.session.delete(entity)

    async def commit(self) -> int:
        """
        Write every pending change as one transaction.
        Returns the number of entities written (0 when nothing actually changed).
        """
        pending = (
            self.session.info.get(_FLUSHED_WRITES, 0)
            + len(self.session.new)
            + len(self.session.deleted)
            + sum(1 for obj in self.session.dirty if self.session.is_modified(obj))
        )
        try:
            await self.session.commit()
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            raise translate_storage_error(exc) from exc
        finally:
            self.session.info[_FLUSHED_WRITES] = 0
        return pending

    async def execute_raw(self, statement: str | TextClause, params: dict[str, Any]) -> int:
        """
        Run a parameterized statement and commit it. Returns affected rows.
        Only for writes the ORM cannot express on this store (see TriggerConflictError).
        """
        stmt = text(statement) if isinstance(statement, str) else statement
        result = await self._execute(stmt, params)
        try:
            await self.session.commit()
        except (SQLAlchemyError, OSError) as exc:
            await self.session.rollback()
            raise translate_storage_error(exc) from exc
        return result.rowcount
