"""
Category repository: hierarchy queries and atomic metric primitives
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import asc, delete, insert, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taxonomy_api.core.exceptions import ConflictError
from taxonomy_api.models.category import Category, CategoryProduct
from taxonomy_api.models.metrics import MetricsDelta
from taxonomy_api.repositories.base import BaseRepository
from taxonomy_api.utils.timestamps import utc_now

# Re-reads allowed when a concurrent move changes an ancestor chain mid-lock
LOCK_ATTEMPTS = 3


class CategoryRepository(BaseRepository[Category]):
    """Repository for category operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Category, session)

    # Queries

    async def get_many(self, ids: Iterable[str]) -> List[Category]:
        """Categories with the given ids, ordered by ``order`` then name"""
        ids = list(ids)
        if not ids:
            return []
        statement = (
            select(Category)
            .where(Category.id.in_(ids))
            .order_by(asc(Category.order), asc(Category.name))
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(statement)
        return list(result.all())

    async def lock_many(self, ids: Iterable[str]) -> Dict[str, Category]:
        """
        Lock the given rows ``FOR UPDATE`` in id order.

        Writers that touch more than one category row take their locks here,
        so two of them always request shared rows in the same order.
        """
        ids = sorted(set(ids))
        if not ids:
            return {}
        statement = (
            select(Category)
            .where(Category.id.in_(ids))
            .order_by(asc(Category.id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(statement)
        return {category.id: category for category in result.all()}

    async def lock_chains(self, category_ids: Iterable[str]) -> Dict[str, Category]:
        """
        Lock each category together with its whole ancestor chain.

        Chains are read unlocked first and checked again once the locks are
        held; a chain changed by a concurrent move is read again.
        """
        category_ids = list(category_ids)
        for _ in range(LOCK_ATTEMPTS):
            wanted = set()
            for category_id in category_ids:
                category = await self.get_or_404(id=category_id)
                wanted.update([category.id, *category.parent_ids])

            locked = await self.lock_many(wanted)
            if all(
                category_id in locked and set(locked[category_id].parent_ids) <= locked.keys()
                for category_id in category_ids
            ):
                return locked

        raise ConflictError("Category hierarchy changed while locking", category_ids=category_ids)

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        statement = select(Category).where(Category.slug == slug).execution_options(populate_existing=True)
        result = await self.session.exec(statement)
        return result.first()

    async def list_all(self, *, root_id: Optional[str] = None, active_only: bool = False) -> List[Category]:
        filters = {}
        if root_id is not None:
            filters["root_id"] = root_id
        if active_only:
            filters["is_active"] = True
        return await self.get_multi(filters=filters, order_by="tier")

    async def get_by_tier(self, tier: int, active_only: bool = False) -> List[Category]:
        statement = (
            select(Category)
            .where(Category.tier == tier)
            .order_by(asc(Category.order), asc(Category.name))
            .execution_options(populate_existing=True)
        )
        if active_only:
            statement = statement.where(Category.is_active == True)  # noqa: E712
        result = await self.session.exec(statement)
        return list(result.all())

    async def get_featured(self) -> List[Category]:
        statement = (
            select(Category)
            .where(Category.is_featured == True, Category.is_active == True)  # noqa: E712
            .order_by(asc(Category.featured_priority), asc(Category.name))
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(statement)
        return list(result.all())

    async def get_leaves(self, active_only: bool = False) -> List[Category]:
        filters = {"is_leaf": True}
        if active_only:
            filters["is_active"] = True
        return await self.get_multi(filters=filters, order_by="tier")

    async def get_product_ids(self, category_id: str) -> List[str]:
        statement = (
            select(CategoryProduct.product_id)
            .where(CategoryProduct.category_id == category_id)
            .order_by(asc(CategoryProduct.product_id))
        )
        result = await self.session.exec(statement)
        return list(result.all())

    # Staged writes (committed by unit_of_work)

    def stage(self, *categories: Category) -> None:
        """Mark ORM-level changes to be flushed with the current unit of work"""
        now = utc_now()
        for category in categories:
            category.updated_at = now
            self.session.add(category)

    async def increment_metrics(self, category_id: str, delta: MetricsDelta, now: datetime) -> int:
        """Atomically add ``delta`` to a category's own and total counters"""
        statement = (
            update(Category)
            .where(Category.id == category_id)
            .values(**delta.own_increments(Category), metrics_last_updated=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def increment_totals(self, category_ids: Iterable[str], delta: MetricsDelta, now: datetime) -> int:
        """Atomically add ``delta`` to the total counters of every given category"""
        category_ids = list(category_ids)
        if not category_ids or delta.is_zero:
            return 0
        statement = (
            update(Category)
            .where(Category.id.in_(category_ids))
            .values(**delta.total_increments(Category), metrics_last_updated=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def unfeature_below(self, category_ids: Iterable[str], threshold: int) -> int:
        """Clear ``is_featured`` on any listed category whose total dropped below ``threshold``"""
        category_ids = list(category_ids)
        if not category_ids:
            return 0
        statement = (
            update(Category)
            .where(
                Category.id.in_(category_ids),
                Category.is_featured == True,  # noqa: E712
                Category.total_item_count < threshold,
            )
            .values(is_featured=False, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def add_product_id(self, category_id: str, product_id: str) -> None:
        """Atomic set-add; adding an existing member is a no-op"""
        values = {"category_id": category_id, "product_id": product_id, "created_at": utc_now()}
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            statement = postgresql.insert(CategoryProduct).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            statement = sqlite.insert(CategoryProduct).values(**values).on_conflict_do_nothing()
        else:
            # No upsert available: a duplicate member surfaces as a conflict
            statement = insert(CategoryProduct).values(**values)
        await self.session.execute(statement)

    async def remove_product_id(self, category_id: str, product_id: str) -> None:
        """Atomic set-remove; removing a missing member is a no-op"""
        statement = delete(CategoryProduct).where(
            CategoryProduct.category_id == category_id,
            CategoryProduct.product_id == product_id,
        )
        await self.session.execute(statement)

    async def set_order(self, category_id: str, order: int) -> int:
        statement = (
            update(Category)
            .where(Category.id == category_id)
            .values(order=order, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount
