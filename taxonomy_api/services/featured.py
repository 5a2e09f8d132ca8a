"""
Featured placement policy
"""

from typing import Optional

from taxonomy_api.core.config import settings
from taxonomy_api.models.category import Category


def can_be_featured(category: Category, min_items: Optional[int] = None) -> bool:
    """A category may be featured once its subtree holds enough items"""
    threshold = settings.min_items_for_featured if min_items is None else min_items
    return category.total_item_count >= threshold
