"""
Pydantic schemas for API requests and responses
"""

from .category import (
    ActiveToggle,
    CategoryCreate,
    CategoryMetrics,
    CategoryMove,
    CategoryRead,
    CategoryTreeNode,
    CategoryValidationResult,
    FeaturedToggle,
    ItemAssignment,
    ItemKind,
    SiblingOrder,
)
from .common import HealthCheckResponse

__all__ = [
    "ActiveToggle",
    "CategoryCreate",
    "CategoryMetrics",
    "CategoryMove",
    "CategoryRead",
    "CategoryTreeNode",
    "CategoryValidationResult",
    "FeaturedToggle",
    "ItemAssignment",
    "ItemKind",
    "SiblingOrder",
    "HealthCheckResponse",
]
