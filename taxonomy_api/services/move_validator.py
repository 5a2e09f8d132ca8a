"""
Cycle guard for category relocation and structural integrity checks
"""

from typing import Dict, Iterable, Optional

from taxonomy_api.models.category import Category
from taxonomy_api.schemas.category import CategoryValidationResult
from taxonomy_api.services.hierarchy import get_ancestor_ids, index_by_id


def is_valid_move(category_id: str, new_parent_id: Optional[str], new_parent: Optional[Category] = None) -> bool:
    """
    Whether ``category_id`` may be placed under ``new_parent_id``.

    Detaching to the root is always allowed. A category cannot become its
    own parent, nor the child of one of its descendants; the latter shows up
    as ``category_id`` in the new parent's ancestor chain.
    """
    if new_parent_id is None:
        return True
    if new_parent_id == category_id:
        return False
    if new_parent is not None and category_id in new_parent.parent_ids:
        return False
    return True


def _reaches_itself(category: Category, by_id: Dict[str, Category]) -> bool:
    """Whether following children_ids from ``category`` leads back to it"""
    seen = set()
    queue = list(category.children_ids)
    while queue:
        child_id = queue.pop(0)
        if child_id == category.id:
            return True
        if child_id in seen:
            continue
        seen.add(child_id)
        child = by_id.get(child_id)
        if child is not None:
            queue.extend(child.children_ids)
    return False


def validate_category(category: Category, categories: Iterable[Category]) -> CategoryValidationResult:
    """Check one category's hierarchy fields against a snapshot of the tree"""
    by_id = index_by_id(categories)
    errors = []

    if not category.id:
        errors.append("Category ID is required")
    if not category.name:
        errors.append("Category name is required")
    if not category.slug:
        errors.append("Category slug is required")

    if category.tier != len(category.parent_ids):
        errors.append(f"Tier {category.tier} does not match ancestor chain length {len(category.parent_ids)}")

    expected_root = category.parent_ids[0] if category.parent_ids else category.id
    if category.root_id != expected_root:
        errors.append(f"Root {category.root_id} should be {expected_root}")

    if category.id in category.parent_ids or _reaches_itself(category, by_id):
        errors.append("Circular reference detected")

    parent_id = category.parent_id
    if parent_id is not None:
        parent = by_id.get(parent_id)
        if parent is None:
            errors.append(f"Parent category {parent_id} not found")
        else:
            if category.id not in parent.children_ids:
                errors.append(f"Parent {parent_id} does not list {category.id} as a child")
            chain = get_ancestor_ids(category, by_id.values())
            if chain != list(category.parent_ids):
                errors.append(f"Ancestor chain {category.parent_ids} is stale, expected {chain}")

    for child_id in category.children_ids:
        child = by_id.get(child_id)
        if child is None:
            errors.append(f"Child category {child_id} not found")
        elif child.parent_id != category.id:
            errors.append(f"Child {child_id} does not reference {category.id} as its parent")

    if category.is_leaf != (len(category.children_ids) == 0):
        errors.append("Leaf flag does not match children")

    return CategoryValidationResult(is_valid=not errors, errors=errors)
