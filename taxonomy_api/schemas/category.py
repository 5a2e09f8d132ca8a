"""
Category API schemas
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taxonomy_api.models.category import Category


class ItemKind(str, Enum):
    """Kinds of catalog items counted per category"""

    PRODUCT = "product"
    AUCTION = "auction"


class CategoryCreate(BaseModel):
    """Schema for creating a category"""

    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    parent_id: Optional[str] = None
    is_active: bool = Field(default=True)
    order: int = Field(default=0)
    featured_priority: int = Field(default=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Category name is required")
        return value.strip()


class CategoryMetrics(BaseModel):
    """Own and subtree item counts of a category"""

    product_count: int = 0
    auction_count: int = 0
    total_product_count: int = 0
    total_auction_count: int = 0
    total_item_count: int = 0
    product_ids: Optional[List[str]] = None
    last_updated: Optional[datetime] = None


class CategoryRead(BaseModel):
    """Schema for reading a category"""

    id: str
    name: str
    slug: str
    tier: int
    parent_ids: List[str]
    root_id: str
    children_ids: List[str]
    is_leaf: bool
    is_active: bool
    is_featured: bool
    featured_priority: int
    order: int
    metrics: CategoryMetrics
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_category(cls, category: Category, product_ids: Optional[List[str]] = None) -> "CategoryRead":
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            tier=category.tier,
            parent_ids=list(category.parent_ids),
            root_id=category.root_id,
            children_ids=list(category.children_ids),
            is_leaf=category.is_leaf,
            is_active=category.is_active,
            is_featured=category.is_featured,
            featured_priority=category.featured_priority,
            order=category.order,
            metrics=CategoryMetrics(
                product_count=category.product_count,
                auction_count=category.auction_count,
                total_product_count=category.total_product_count,
                total_auction_count=category.total_auction_count,
                total_item_count=category.total_item_count,
                product_ids=product_ids,
                last_updated=category.metrics_last_updated,
            ),
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class CategoryTreeNode(CategoryRead):
    """Schema for category tree structure"""

    children: List["CategoryTreeNode"] = []


CategoryTreeNode.model_rebuild()


class CategoryMove(BaseModel):
    """Schema for relocating a category"""

    new_parent_id: Optional[str] = None


class FeaturedToggle(BaseModel):
    featured: bool
    priority: Optional[int] = None


class ActiveToggle(BaseModel):
    active: bool


class SiblingOrder(BaseModel):
    """One entry of a sibling reorder batch"""

    id: str
    order: int


class ItemAssignment(BaseModel):
    """Item entering a category, reported by the catalog"""

    kind: ItemKind
    item_id: str = Field(..., min_length=1)


class CategoryValidationResult(BaseModel):
    """Structural integrity check of one category against a snapshot"""

    is_valid: bool
    errors: List[str] = []
