"""
Aggregation of item counts up the category hierarchy
"""

from typing import List, Optional

from taxonomy_api.core.config import settings
from taxonomy_api.core.logging import log
from taxonomy_api.models.category import Category
from taxonomy_api.models.metrics import MetricsDelta
from taxonomy_api.repositories.category import CategoryRepository
from taxonomy_api.schemas.category import ItemKind
from taxonomy_api.utils.timestamps import utc_now


class MetricsAggregator:
    """
    Applies signed count deltas to a category and all of its ancestors.

    Every counter change is an in-place increment and all records touched by
    one call are committed in a single transaction, so concurrent item events
    never lose updates and an ancestor chain is never left half-aggregated.
    """

    def __init__(self, category_repo: CategoryRepository, min_items_for_featured: Optional[int] = None):
        self.category_repo = category_repo
        self.min_items_for_featured = (
            settings.min_items_for_featured if min_items_for_featured is None else min_items_for_featured
        )

    async def update_metrics(
        self,
        category_id: str,
        product_delta: int = 0,
        auction_delta: int = 0,
        product_id: Optional[str] = None,
    ) -> Category:
        """
        Add ``product_delta``/``auction_delta`` to the category's own and
        total counters and to the totals of every ancestor.

        When ``product_id`` is given it joins (positive delta) or leaves
        (negative delta) the category's product set in the same commit.
        """
        delta = MetricsDelta(product=product_delta, auction=auction_delta)
        if delta.is_zero:
            return await self.category_repo.get_or_404(id=category_id)

        async with self.category_repo.unit_of_work("update_metrics", category_id):
            locked = await self.category_repo.lock_chains([category_id])
            category = locked[category_id]
            await self._apply(category, delta, product_id)
            if delta.product < 0 or delta.auction < 0:
                await self._unfeature_below([category.id, *category.parent_ids])

        log.info(
            "Updated category metrics",
            category_id=category_id,
            product_delta=product_delta,
            auction_delta=auction_delta,
        )
        return await self.category_repo.get_or_404(id=category_id)

    async def on_item_assigned(self, category_id: str, kind: ItemKind, item_id: str) -> Category:
        delta = MetricsDelta.for_item(ItemKind(kind).value, +1)
        return await self.update_metrics(category_id, delta.product, delta.auction, item_id)

    async def on_item_removed(self, category_id: str, kind: ItemKind, item_id: str) -> Category:
        delta = MetricsDelta.for_item(ItemKind(kind).value, -1)
        return await self.update_metrics(category_id, delta.product, delta.auction, item_id)

    async def on_item_moved(self, from_category_id: str, to_category_id: str, kind: ItemKind, item_id: str) -> None:
        """
        Item changed category: both chains are adjusted in one commit.

        The featured check runs after both deltas, so an ancestor shared by
        the two chains is judged on its unchanged net total.
        """
        if from_category_id == to_category_id:
            return

        delta = MetricsDelta.for_item(ItemKind(kind).value, +1)
        async with self.category_repo.unit_of_work("move_item", item_id):
            locked = await self.category_repo.lock_chains([from_category_id, to_category_id])
            source, target = locked[from_category_id], locked[to_category_id]
            await self._apply(source, -delta, item_id)
            await self._apply(target, delta, item_id)
            await self._unfeature_below([source.id, *source.parent_ids, target.id, *target.parent_ids])

        log.info("Moved item between categories", item_id=item_id, source=from_category_id, target=to_category_id)

    async def _apply(self, category: Category, delta: MetricsDelta, product_id: Optional[str]) -> None:
        # Rows are already locked by lock_chains; these statements never wait on another writer
        now = utc_now()
        await self.category_repo.increment_metrics(category.id, delta, now)
        await self.category_repo.increment_totals(category.parent_ids, delta, now)

        if product_id and delta.product > 0:
            await self.category_repo.add_product_id(category.id, product_id)
        elif product_id and delta.product < 0:
            await self.category_repo.remove_product_id(category.id, product_id)

    async def _unfeature_below(self, category_ids: List[str]) -> None:
        touched = list(dict.fromkeys(category_ids))
        demoted = await self.category_repo.unfeature_below(touched, self.min_items_for_featured)
        if demoted:
            log.info("Unfeatured categories below item threshold", category_ids=touched, count=demoted)
