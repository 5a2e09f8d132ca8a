"""
Nesting of flat category listings into display trees
"""

from typing import Dict, Iterable, List, Optional

from taxonomy_api.models.category import Category
from taxonomy_api.schemas.category import CategoryRead, CategoryTreeNode


def _sort_key(node: CategoryTreeNode):
    return (node.order, node.name, node.id)


def build_tree(categories: Iterable[Category], root_id: Optional[str] = None) -> List[CategoryTreeNode]:
    """
    Nest ``categories`` by immediate parent.

    With ``root_id`` only that root's tree is kept. A category whose parent
    is not in the listing is shown at the top level. Siblings are ordered by
    ``order`` then name.
    """
    if root_id is not None:
        categories = [category for category in categories if category.root_id == root_id]

    nodes: Dict[str, CategoryTreeNode] = {}
    for category in categories:
        nodes[category.id] = CategoryTreeNode(**CategoryRead.from_category(category).model_dump())

    roots: List[CategoryTreeNode] = []
    for node in nodes.values():
        parent_id = node.parent_ids[-1] if node.parent_ids else None
        parent = nodes.get(parent_id) if parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def flatten_tree(nodes: Iterable[CategoryTreeNode]) -> List[CategoryRead]:
    """Pre-order listing of a tree with the ``children`` field dropped"""
    flat: List[CategoryRead] = []
    for node in nodes:
        flat.append(CategoryRead(**node.model_dump(exclude={"children"})))
        flat.extend(flatten_tree(node.children))
    return flat
