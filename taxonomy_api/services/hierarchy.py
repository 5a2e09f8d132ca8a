"""
Hierarchy calculation and snapshot traversal for the category tree
"""

from typing import Dict, Iterable, List, NamedTuple, Optional

from taxonomy_api.models.category import Category


class Hierarchy(NamedTuple):
    """Position of a category in the tree"""

    tier: int
    parent_ids: List[str]
    root_id: str


def compute_hierarchy(parent: Optional[Category], self_id: str) -> Hierarchy:
    """
    Tier, ancestor chain and root of ``self_id`` when placed under ``parent``.

    A missing parent makes the category a root of its own tree.
    """
    if parent is None:
        return Hierarchy(tier=0, parent_ids=[], root_id=self_id)

    root_id = parent.id if parent.tier == 0 else parent.root_id
    return Hierarchy(
        tier=parent.tier + 1,
        parent_ids=[*parent.parent_ids, parent.id],
        root_id=root_id,
    )


def index_by_id(categories: Iterable[Category]) -> Dict[str, Category]:
    return {category.id: category for category in categories}


def get_ancestor_ids(category: Category, categories: Iterable[Category]) -> List[str]:
    """
    Root-first ancestor ids found by following immediate-parent links
    through ``categories``. Stops at a missing record or a repeated id.
    """
    by_id = index_by_id(categories)
    ancestors: List[str] = []
    visited = {category.id}
    parent_id = category.parent_id

    while parent_id and parent_id not in visited:
        visited.add(parent_id)
        ancestors.append(parent_id)
        parent = by_id.get(parent_id)
        if parent is None:
            break
        parent_id = parent.parent_id

    ancestors.reverse()
    return ancestors


def get_descendant_ids(category: Category, categories: Iterable[Category]) -> List[str]:
    """Breadth-first descendant ids reachable through ``children_ids``"""
    by_id = index_by_id(categories)
    descendants: List[str] = []
    visited = {category.id}
    queue = list(category.children_ids)

    while queue:
        child_id = queue.pop(0)
        if child_id in visited:
            continue
        visited.add(child_id)
        descendants.append(child_id)
        child = by_id.get(child_id)
        if child is not None:
            queue.extend(child.children_ids)

    return descendants


def get_breadcrumb_path(category: Category, categories: Iterable[Category]) -> List[Category]:
    """Root-first records from the top of the tree down to ``category``"""
    by_id = index_by_id(categories)
    path = [by_id[ancestor_id] for ancestor_id in get_ancestor_ids(category, by_id.values()) if ancestor_id in by_id]
    path.append(category)
    return path


def get_category_path_string(category: Category, categories: Iterable[Category], separator: str = " > ") -> str:
    """e.g. "Electronics > Phones > Smartphones" """
    return separator.join(node.name for node in get_breadcrumb_path(category, categories))


def get_leaf_categories(categories: Iterable[Category]) -> List[Category]:
    return [category for category in categories if not category.children_ids]
