"""
Database models and metric value types
"""

from .category import Category, CategoryProduct
from .metrics import MetricsDelta

__all__ = [
    "Category",
    "CategoryProduct",
    "MetricsDelta",
]
