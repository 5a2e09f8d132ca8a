"""
Service layer for business logic
"""

from .category_tree import CategoryTreeService
from .metrics import MetricsAggregator

__all__ = [
    "CategoryTreeService",
    "MetricsAggregator",
]
