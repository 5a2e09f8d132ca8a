"""
Builders for unsaved category records
"""

from typing import Optional, Sequence

from taxonomy_api.models import Category
from taxonomy_api.services.hierarchy import compute_hierarchy


def make_category(
    category_id: str,
    parent: Optional[Category] = None,
    children: Sequence[str] = (),
    **fields,
) -> Category:
    """Build a category positioned under ``parent`` with the given children"""
    hierarchy = compute_hierarchy(parent, category_id)
    return Category(
        id=category_id,
        name=fields.pop("name", category_id.title()),
        slug=fields.pop("slug", category_id),
        tier=hierarchy.tier,
        parent_ids=hierarchy.parent_ids,
        root_id=hierarchy.root_id,
        children_ids=list(children),
        is_leaf=not children,
        **fields,
    )


def sample_catalog():
    """
    electronics > computers > laptops
    clothing > shirts
    """
    electronics = make_category("electronics", children=["computers"], order=1)
    computers = make_category("computers", electronics, children=["laptops"])
    laptops = make_category("laptops", computers)
    clothing = make_category("clothing", children=["shirts"], order=2)
    shirts = make_category("shirts", clothing)
    return [electronics, computers, laptops, clothing, shirts]
