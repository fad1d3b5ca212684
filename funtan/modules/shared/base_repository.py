"""
Base Repository Pattern

Purpose
-------
Type-safe, generic repository abstraction following SQLAlchemy 2.0 async
patterns. Repositories encapsulate data access and give every service the
same locking vocabulary (`for_update=True` means SELECT ... FOR UPDATE).

Design Notes
------------
- No business logic (pure data access)
- No transaction management (services/DatabaseService handle that)
- Every call is logged at debug level with the model name

Usage
-----
    class InventoryRepository(BaseRepository[InventoryItem]):
        async def find_stack(self, session, player_id, kind, catalog_id):
            return await self.find_one_where(
                session,
                InventoryItem.player_id == player_id,
                InventoryItem.item_type == kind,
                InventoryItem.catalog_id == catalog_id,
                for_update=True,
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository for type-safe database operations.

    Type Parameters:
        T: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """Get a single record by primary key (no lock)."""
        instance = await session.get(self.model_class, id_value)

        self.log.debug(
            f"Repository.get: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "id": id_value,
                "found": instance is not None,
            },
        )
        return instance

    async def get_for_update(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """
        Get a single record by primary key with SELECT FOR UPDATE lock.

        Refreshes an instance already in the identity map so values read
        before the lock are replaced by the locked row.
        """
        instance = await session.get(
            self.model_class, id_value, with_for_update=True, populate_existing=True
        )

        self.log.debug(
            f"Repository.get_for_update: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "id": id_value,
                "found": instance is not None,
                "locked": True,
            },
        )
        return instance

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
        order_by: Optional[Sequence[Any]] = None,
    ) -> Optional[T]:
        """
        Find the first record matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter conditions
            for_update: Whether to lock the row
            order_by: Optional ordering; the first row after ordering is returned
        """
        stmt = select(self.model_class).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        stmt = stmt.limit(1)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await session.execute(stmt)
        instance = result.scalars().first()

        self.log.debug(
            f"Repository.find_one_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found": instance is not None,
                "locked": for_update,
            },
        )
        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """Find all records matching conditions (no lock)."""
        stmt = select(self.model_class).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await session.execute(stmt)
        instances = list(result.scalars().all())

        self.log.debug(
            f"Repository.find_many_where: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__, "count": len(instances)},
        )
        return instances

    async def count(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def exists(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> bool:
        return await self.count(session, *conditions) > 0

    def add(self, session: AsyncSession, instance: T) -> T:
        """Add a new instance to the session (not flushed)."""
        session.add(instance)
        self.log.debug(
            f"Repository.add: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__},
        )
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        await session.delete(instance)
        self.log.debug(
            f"Repository.delete: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__},
        )

    async def flush(self, session: AsyncSession) -> None:
        """Flush pending changes so generated ids are available."""
        await session.flush()
