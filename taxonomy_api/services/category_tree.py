"""
Category tree service: creation, relocation, flags and tree queries
"""

from typing import Dict, List, Optional

from taxonomy_api.core.config import settings
from taxonomy_api.core.exceptions import ConflictError, InvalidMoveError, NotFoundError, ValidationError
from taxonomy_api.core.logging import log
from taxonomy_api.models.category import Category
from taxonomy_api.models.metrics import MetricsDelta
from taxonomy_api.repositories.category import LOCK_ATTEMPTS, CategoryRepository
from taxonomy_api.schemas.category import CategoryCreate, CategoryTreeNode, SiblingOrder
from taxonomy_api.services.featured import can_be_featured
from taxonomy_api.services.hierarchy import compute_hierarchy, get_descendant_ids
from taxonomy_api.services.metrics import MetricsAggregator
from taxonomy_api.services.move_validator import is_valid_move, validate_category
from taxonomy_api.services.tree_builder import build_tree
from taxonomy_api.utils.normalization import build_category_id, slugify
from taxonomy_api.utils.timestamps import utc_now


class CategoryTreeService:
    """Service layer for the category hierarchy"""

    def __init__(
        self,
        category_repo: CategoryRepository,
        metrics: Optional[MetricsAggregator] = None,
        min_items_for_featured: Optional[int] = None,
    ):
        self.category_repo = category_repo
        self.min_items_for_featured = (
            settings.min_items_for_featured if min_items_for_featured is None else min_items_for_featured
        )
        self.metrics = metrics or MetricsAggregator(category_repo, self.min_items_for_featured)

    # Mutations

    async def create_category(self, category_in: CategoryCreate) -> Category:
        """
        Create a leaf category under ``category_in.parent_id`` (or as a root).

        The parent row is locked and re-read inside the transaction so that
        concurrent creates under the same parent cannot drop each other's
        entry from ``children_ids``.
        """
        async with self.category_repo.unit_of_work("create_category", category_in.parent_id) as session:
            parent = None
            root = None
            if category_in.parent_id:
                parent = await self.category_repo.get_or_404(id=category_in.parent_id, for_update=True)
                root = parent if parent.tier == 0 else await self.category_repo.get(id=parent.root_id)

            try:
                category_id = build_category_id(
                    category_in.name,
                    parent.name if parent else None,
                    root.name if root else None,
                )
            except ValueError as e:
                raise ValidationError(str(e), name=category_in.name) from e

            if await self.category_repo.get(id=category_id):
                raise ConflictError(f"Category {category_id} already exists", category_id=category_id)

            hierarchy = compute_hierarchy(parent, category_id)
            category = Category(
                id=category_id,
                name=category_in.name,
                slug=category_in.slug or slugify(category_in.name),
                tier=hierarchy.tier,
                parent_ids=hierarchy.parent_ids,
                root_id=hierarchy.root_id,
                children_ids=[],
                is_leaf=True,
                is_active=category_in.is_active,
                order=category_in.order,
                featured_priority=category_in.featured_priority,
            )
            session.add(category)

            if parent is not None:
                parent.children_ids = [*parent.children_ids, category_id]
                parent.is_leaf = False
                self.category_repo.stage(parent)

        log.info("Created category", category_id=category_id, parent_id=category_in.parent_id, tier=hierarchy.tier)
        return await self.category_repo.get_or_404(id=category_id)

    async def move_category(self, category_id: str, new_parent_id: Optional[str]) -> Category:
        """
        Relocate a category (and its subtree) under ``new_parent_id``.

        In one transaction: the new ancestor chain is written to the category
        and cascaded to every descendant, both parents' ``children_ids`` and
        leaf flags are updated, and the subtree's totals are moved from the
        old ancestor chain to the new one.
        """
        if new_parent_id == category_id:
            log.warning("Rejected move onto itself", category_id=category_id)
            raise InvalidMoveError("A category cannot be its own parent", category_id=category_id)

        async with self.category_repo.unit_of_work("move_category", category_id):
            category = await self.category_repo.get_or_404(id=category_id)
            old_parent_id = category.parent_id
            if new_parent_id == old_parent_id:
                return category

            new_parent = None
            if new_parent_id is not None:
                new_parent = await self.category_repo.get_or_404(id=new_parent_id)
            self._check_move(category_id, new_parent_id, new_parent)

            locked = await self._lock_for_move(category, new_parent)
            category = locked[category_id]
            new_parent = locked.get(new_parent_id) if new_parent_id is not None else None
            if category.parent_id != old_parent_id:
                raise ConflictError("Category was moved concurrently", category_id=category_id)
            self._check_move(category_id, new_parent_id, new_parent)

            old_ancestor_ids = list(category.parent_ids)
            hierarchy = compute_hierarchy(new_parent, category.id)
            category.tier = hierarchy.tier
            category.parent_ids = hierarchy.parent_ids
            category.root_id = hierarchy.root_id
            self.category_repo.stage(category)

            old_parent = locked.get(old_parent_id) if old_parent_id is not None else None
            if old_parent is not None:
                old_parent.children_ids = [child for child in old_parent.children_ids if child != category.id]
                old_parent.is_leaf = not old_parent.children_ids
                self.category_repo.stage(old_parent)

            if new_parent is not None and category.id not in new_parent.children_ids:
                new_parent.children_ids = [*new_parent.children_ids, category.id]
                new_parent.is_leaf = False
                self.category_repo.stage(new_parent)

            cascaded = self._cascade_hierarchy(category, locked)

            subtree = MetricsDelta(product=category.total_product_count, auction=category.total_auction_count)
            now = utc_now()
            await self.category_repo.increment_totals(old_ancestor_ids, -subtree, now)
            await self.category_repo.increment_totals(hierarchy.parent_ids, subtree, now)
            await self.category_repo.unfeature_below(old_ancestor_ids, self.min_items_for_featured)

        log.info(
            "Moved category",
            category_id=category_id,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
            descendants=cascaded,
        )
        return await self.category_repo.get_or_404(id=category_id)

    @staticmethod
    def _check_move(category_id: str, new_parent_id: Optional[str], new_parent: Optional[Category]) -> None:
        if new_parent_id is not None and new_parent is None:
            raise NotFoundError(f"Category {new_parent_id} not found", id=new_parent_id)
        if not is_valid_move(category_id, new_parent_id, new_parent):
            log.warning("Rejected move into own subtree", category_id=category_id, new_parent_id=new_parent_id)
            raise InvalidMoveError(
                "Move would make the category its own ancestor",
                category_id=category_id,
                new_parent_id=new_parent_id,
            )

    async def _lock_for_move(self, category: Category, new_parent: Optional[Category]) -> Dict[str, Category]:
        """
        Lock every row a move writes, in id order: the category, its subtree,
        and both ancestor chains. Retried when the locked rows show a subtree
        or chain that grew since the unlocked read.
        """
        for _ in range(LOCK_ATTEMPTS):
            tree = await self.category_repo.list_all(root_id=category.root_id)
            wanted = {category.id, *category.parent_ids, *get_descendant_ids(category, tree)}
            if new_parent is not None:
                wanted.update([new_parent.id, *new_parent.parent_ids])

            locked = await self.category_repo.lock_many(wanted)
            moved = locked.get(category.id)
            if moved is None:
                raise NotFoundError(f"Category {category.id} not found", id=category.id)

            needed = {moved.id, *moved.parent_ids, *get_descendant_ids(moved, locked.values())}
            if new_parent is not None and new_parent.id in locked:
                needed.update([new_parent.id, *locked[new_parent.id].parent_ids])
            if needed <= locked.keys():
                return locked
            category = moved

        raise ConflictError("Category hierarchy changed while locking", category_id=category.id)

    def _cascade_hierarchy(self, category: Category, locked: Dict[str, Category]) -> int:
        """Rewrite tier/parent_ids/root_id of every already-locked descendant below ``category``"""
        updated = 0
        visited = {category.id}
        queue = [category]

        while queue:
            current = queue.pop(0)
            for child_id in current.children_ids:
                child = locked.get(child_id)
                if child is None or child_id in visited:
                    continue
                visited.add(child_id)
                hierarchy = compute_hierarchy(current, child.id)
                child.tier = hierarchy.tier
                child.parent_ids = hierarchy.parent_ids
                child.root_id = hierarchy.root_id
                self.category_repo.stage(child)
                queue.append(child)
                updated += 1

        return updated

    async def toggle_featured(self, category_id: str, featured: bool, priority: Optional[int] = None) -> Category:
        """Feature or unfeature a category; featuring requires enough items"""
        async with self.category_repo.unit_of_work("toggle_featured", category_id):
            category = await self.category_repo.get_or_404(id=category_id, for_update=True)

            if featured and not can_be_featured(category, self.min_items_for_featured):
                log.warning(
                    "Rejected featuring category below item threshold",
                    category_id=category_id,
                    total_item_count=category.total_item_count,
                )
                raise ValidationError(
                    f"Category needs at least {self.min_items_for_featured} items to be featured",
                    category_id=category_id,
                    total_item_count=category.total_item_count,
                    required=self.min_items_for_featured,
                )

            category.is_featured = featured
            if priority is not None:
                category.featured_priority = priority
            self.category_repo.stage(category)

        log.info("Toggled featured flag", category_id=category_id, featured=featured)
        return await self.category_repo.get_or_404(id=category_id)

    async def set_active(self, category_id: str, active: bool) -> Category:
        async with self.category_repo.unit_of_work("set_active", category_id):
            category = await self.category_repo.get_or_404(id=category_id, for_update=True)
            category.is_active = active
            self.category_repo.stage(category)

        log.info("Toggled active flag", category_id=category_id, active=active)
        return await self.category_repo.get_or_404(id=category_id)

    async def reorder_siblings(self, ordered: List[SiblingOrder]) -> None:
        """Write every ``order`` value in one batch; an unknown id aborts all of them"""
        if not ordered:
            raise ValidationError("Nothing to reorder")

        async with self.category_repo.unit_of_work("reorder_siblings"):
            # Id order, matching lock_many
            for entry in sorted(ordered, key=lambda entry: entry.id):
                if not await self.category_repo.set_order(entry.id, entry.order):
                    raise NotFoundError(f"Category {entry.id} not found", id=entry.id)

        log.info("Reordered categories", count=len(ordered))

    async def update_metrics(
        self,
        category_id: str,
        product_delta: int = 0,
        auction_delta: int = 0,
        product_id: Optional[str] = None,
    ) -> Category:
        return await self.metrics.update_metrics(category_id, product_delta, auction_delta, product_id)

    # Queries

    async def get_category(self, category_id: str) -> Category:
        return await self.category_repo.get_or_404(id=category_id)

    async def get_category_by_slug(self, slug: str) -> Category:
        category = await self.category_repo.get_by_slug(slug)
        if category is None:
            raise NotFoundError(f"Category with slug {slug} not found", slug=slug)
        return category

    async def get_root_categories(self, active_only: bool = False) -> List[Category]:
        return await self.category_repo.get_by_tier(0, active_only=active_only)

    async def get_categories_by_tier(self, tier: int, active_only: bool = False) -> List[Category]:
        return await self.category_repo.get_by_tier(tier, active_only=active_only)

    async def get_children(self, parent_id: str) -> List[Category]:
        parent = await self.category_repo.get_or_404(id=parent_id)
        return await self.category_repo.get_many(parent.children_ids)

    async def get_featured_categories(self) -> List[Category]:
        return await self.category_repo.get_featured()

    async def get_leaf_categories(self, active_only: bool = False) -> List[Category]:
        return await self.category_repo.get_leaves(active_only=active_only)

    async def get_descendants(self, category_id: str) -> List[Category]:
        category = await self.category_repo.get_or_404(id=category_id)
        tree = await self.category_repo.list_all(root_id=category.root_id)
        by_id = {node.id: node for node in tree}
        return [by_id[node_id] for node_id in get_descendant_ids(category, tree) if node_id in by_id]

    async def get_breadcrumb(self, category_id: str) -> List[Category]:
        """Root-first ancestors followed by the category itself"""
        category = await self.category_repo.get_or_404(id=category_id)
        ancestors = {node.id: node for node in await self.category_repo.get_many(category.parent_ids)}
        return [ancestors[node_id] for node_id in category.parent_ids if node_id in ancestors] + [category]

    async def get_product_ids(self, category_id: str) -> List[str]:
        await self.category_repo.get_or_404(id=category_id)
        return await self.category_repo.get_product_ids(category_id)

    async def build_tree(self, root_id: Optional[str] = None, active_only: bool = False) -> List[CategoryTreeNode]:
        categories = await self.category_repo.list_all(root_id=root_id, active_only=active_only)
        return build_tree(categories, root_id)

    async def validate_tree(self) -> Dict[str, List[str]]:
        """Structural errors per category id; empty when the tree is consistent"""
        categories = await self.category_repo.list_all()
        problems = {}
        for category in categories:
            result = validate_category(category, categories)
            if not result.is_valid:
                problems[category.id] = result.errors
        return problems
