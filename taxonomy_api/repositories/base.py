"""
Base repository pattern implementation with async support
"""
from abc import ABC
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, and_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taxonomy_api.core.exceptions import ConflictError, NotFoundError, StorageError
from taxonomy_api.core.logging import log


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType], ABC):
    """
    Generic repository for data access with async support.

    Reads go straight to the session. Writes are staged on the session and
    committed together by ``unit_of_work``.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    @asynccontextmanager
    async def unit_of_work(self, operation: str, record_id: Optional[str] = None) -> AsyncIterator[AsyncSession]:
        """
        Commit everything staged inside the block as one transaction.

        Any failure rolls the whole batch back; engine errors are re-raised
        as ``StorageError`` carrying the operation name and record id.
        """
        try:
            yield self.session
            await self.session.commit()
        except IntegrityError as e:
            await self._rollback()
            log.error(f"Integrity error during {operation}", record_id=record_id, error=str(e))
            raise ConflictError(f"Conflict during {operation}", operation=operation, record_id=record_id) from e
        except SQLAlchemyError as e:
            await self._rollback()
            log.error(f"Database error during {operation}", record_id=record_id, error=str(e))
            raise StorageError(f"{operation} failed", operation=operation, category_id=record_id) from e
        except Exception:
            await self._rollback()
            raise

    async def _rollback(self) -> None:
        """
        Roll back and reload every record the session still holds.

        Rollback expires loaded instances. Reloading them here keeps records
        already returned to callers readable without a lazy load.
        """
        await self.session.rollback()
        try:
            for instance in list(self.session.identity_map.values()):
                await self.session.refresh(instance)
            # Close the read transaction; expire_on_commit is off
            await self.session.commit()
        except SQLAlchemyError as e:
            log.warning("Could not reload records after rollback", error=str(e))

    async def get(self, *, id: str, for_update: bool = False) -> Optional[ModelType]:
        """Get a record by ID, always reloading from the database"""
        return await self.session.get(self.model, id, populate_existing=True, with_for_update=for_update)

    async def get_or_404(self, *, id: str, for_update: bool = False) -> ModelType:
        """Get a record by ID or raise NotFoundError"""
        obj = await self.get(id=id, for_update=for_update)
        if not obj:
            raise NotFoundError(f"{self.model.__name__} {id} not found", id=id)
        return obj

    async def get_multi(
        self,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        order_desc: bool = False,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[ModelType]:
        """Get multiple records with optional pagination and filtering"""
        statement = select(self.model).execution_options(populate_existing=True)

        conditions = self._conditions(filters)
        if conditions:
            statement = statement.where(and_(*conditions))

        # Apply ordering
        if order_by and hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            statement = statement.order_by(desc(order_column) if order_desc else asc(order_column))

        # Apply pagination
        statement = statement.offset(skip)
        if limit is not None:
            statement = statement.limit(limit)

        result = await self.session.exec(statement)
        return list(result.all())

    def _conditions(self, filters: Optional[Dict[str, Any]]) -> list:
        conditions = []
        for field, value in (filters or {}).items():
            if hasattr(self.model, field):
                if isinstance(value, list):
                    conditions.append(getattr(self.model, field).in_(value))
                else:
                    conditions.append(getattr(self.model, field) == value)
        return conditions
