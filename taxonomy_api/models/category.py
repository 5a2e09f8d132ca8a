"""
Category taxonomy models
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field, SQLModel

from taxonomy_api.utils.timestamps import utc_now


class CategoryBase(SQLModel):
    """Base category attributes"""
    name: str
    slug: str = Field(index=True)
    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False, index=True)
    featured_priority: int = Field(default=0)
    order: int = Field(default=0)


class Category(CategoryBase, table=True):
    """Category database model

    ``parent_ids`` is the root-first ancestor chain and ``children_ids`` the
    direct children. Metrics are flat counter columns so they can be changed
    with in-place ``col = col + delta`` updates.
    """
    __tablename__ = "category"

    id: str = Field(primary_key=True)
    tier: int = Field(default=0, index=True)
    parent_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    root_id: str = Field(index=True)
    children_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_leaf: bool = Field(default=True, index=True)

    # Own metrics (items assigned directly)
    product_count: int = Field(default=0)
    auction_count: int = Field(default=0)
    # Total metrics (own + every descendant)
    total_product_count: int = Field(default=0)
    total_auction_count: int = Field(default=0)
    total_item_count: int = Field(default=0)
    metrics_last_updated: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    @property
    def parent_id(self) -> Optional[str]:
        return self.parent_ids[-1] if self.parent_ids else None


class CategoryProduct(SQLModel, table=True):
    """Membership set of products directly assigned to a category"""
    __tablename__ = "category_product"

    category_id: str = Field(foreign_key="category.id", primary_key=True)
    product_id: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
