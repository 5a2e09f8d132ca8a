"""
Category taxonomy endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Query, status

from taxonomy_api.api.deps import CategoryServiceDep, MetricsAggregatorDep, RequestIdDep
from taxonomy_api.core.exceptions import ErrorResponse
from taxonomy_api.core.logging import log
from taxonomy_api.schemas.category import (
    ActiveToggle,
    CategoryCreate,
    CategoryMove,
    CategoryRead,
    CategoryTreeNode,
    FeaturedToggle,
    ItemAssignment,
    ItemKind,
    SiblingOrder,
)


router = APIRouter(
    responses={
        404: {"model": ErrorResponse, "description": "Category not found"},
        409: {"model": ErrorResponse, "description": "Conflicting id or invalid move"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    }
)


def _read_many(categories) -> List[CategoryRead]:
    return [CategoryRead.from_category(category) for category in categories]


@router.post(
    "/",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
async def create_category(
    category_in: CategoryCreate,
    category_service: CategoryServiceDep,
    request_id: RequestIdDep,
) -> CategoryRead:
    """
    Create a category. Its id is derived from its name and the names of its
    parent and root, e.g. "Phones" under "Electronics" -> ``electronics-phones``.
    """
    log.info("Creating category", request_id=request_id, name=category_in.name, parent_id=category_in.parent_id)
    category = await category_service.create_category(category_in)
    return CategoryRead.from_category(category)


@router.get("/roots", response_model=List[CategoryRead], summary="List root categories")
async def list_root_categories(
    category_service: CategoryServiceDep,
    active_only: bool = Query(False, description="Only active categories"),
) -> List[CategoryRead]:
    return _read_many(await category_service.get_root_categories(active_only=active_only))


@router.get("/tier/{tier}", response_model=List[CategoryRead], summary="List categories at a depth")
async def list_categories_by_tier(
    tier: int,
    category_service: CategoryServiceDep,
    active_only: bool = Query(False, description="Only active categories"),
) -> List[CategoryRead]:
    return _read_many(await category_service.get_categories_by_tier(tier, active_only=active_only))


@router.get("/featured", response_model=List[CategoryRead], summary="List featured categories")
async def list_featured_categories(category_service: CategoryServiceDep) -> List[CategoryRead]:
    return _read_many(await category_service.get_featured_categories())


@router.get("/leaves", response_model=List[CategoryRead], summary="List leaf categories")
async def list_leaf_categories(
    category_service: CategoryServiceDep,
    active_only: bool = Query(False, description="Only active categories"),
) -> List[CategoryRead]:
    return _read_many(await category_service.get_leaf_categories(active_only=active_only))


@router.get("/tree", response_model=List[CategoryTreeNode], summary="Nested category tree")
async def get_category_tree(
    category_service: CategoryServiceDep,
    root_id: Optional[str] = Query(None, description="Limit to one root's tree"),
    active_only: bool = Query(False, description="Only active categories"),
) -> List[CategoryTreeNode]:
    return await category_service.build_tree(root_id=root_id, active_only=active_only)


@router.post("/reorder", status_code=status.HTTP_204_NO_CONTENT, summary="Reorder siblings")
async def reorder_categories(ordered: List[SiblingOrder], category_service: CategoryServiceDep) -> None:
    await category_service.reorder_siblings(ordered)


@router.get("/slug/{slug}", response_model=CategoryRead, summary="Get category by slug")
async def get_category_by_slug(slug: str, category_service: CategoryServiceDep) -> CategoryRead:
    return CategoryRead.from_category(await category_service.get_category_by_slug(slug))


@router.get("/{category_id}", response_model=CategoryRead, summary="Get category")
async def get_category(
    category_id: str,
    category_service: CategoryServiceDep,
    include_products: bool = Query(False, description="Include directly assigned product ids"),
) -> CategoryRead:
    category = await category_service.get_category(category_id)
    product_ids = await category_service.get_product_ids(category_id) if include_products else None
    return CategoryRead.from_category(category, product_ids)


@router.get("/{category_id}/children", response_model=List[CategoryRead], summary="List direct children")
async def list_children(category_id: str, category_service: CategoryServiceDep) -> List[CategoryRead]:
    return _read_many(await category_service.get_children(category_id))


@router.get("/{category_id}/descendants", response_model=List[CategoryRead], summary="List all descendants")
async def list_descendants(category_id: str, category_service: CategoryServiceDep) -> List[CategoryRead]:
    return _read_many(await category_service.get_descendants(category_id))


@router.get("/{category_id}/breadcrumb", response_model=List[CategoryRead], summary="Root-first path")
async def get_breadcrumb(category_id: str, category_service: CategoryServiceDep) -> List[CategoryRead]:
    return _read_many(await category_service.get_breadcrumb(category_id))


@router.post("/{category_id}/move", response_model=CategoryRead, summary="Move category")
async def move_category(
    category_id: str,
    move: CategoryMove,
    category_service: CategoryServiceDep,
    request_id: RequestIdDep,
) -> CategoryRead:
    """Relocate a category and its subtree; ``new_parent_id: null`` makes it a root"""
    log.info("Moving category", request_id=request_id, category_id=category_id, new_parent_id=move.new_parent_id)
    return CategoryRead.from_category(await category_service.move_category(category_id, move.new_parent_id))


@router.post("/{category_id}/featured", response_model=CategoryRead, summary="Feature or unfeature")
async def toggle_featured(
    category_id: str,
    toggle: FeaturedToggle,
    category_service: CategoryServiceDep,
) -> CategoryRead:
    category = await category_service.toggle_featured(category_id, toggle.featured, toggle.priority)
    return CategoryRead.from_category(category)


@router.post("/{category_id}/active", response_model=CategoryRead, summary="Activate or deactivate")
async def set_active(category_id: str, toggle: ActiveToggle, category_service: CategoryServiceDep) -> CategoryRead:
    return CategoryRead.from_category(await category_service.set_active(category_id, toggle.active))


@router.post("/{category_id}/items", response_model=CategoryRead, summary="Item assigned to category")
async def item_assigned(
    category_id: str,
    assignment: ItemAssignment,
    metrics: MetricsAggregatorDep,
) -> CategoryRead:
    category = await metrics.on_item_assigned(category_id, assignment.kind, assignment.item_id)
    return CategoryRead.from_category(category)


@router.delete("/{category_id}/items/{kind}/{item_id}", response_model=CategoryRead, summary="Item removed")
async def item_removed(
    category_id: str,
    kind: ItemKind,
    item_id: str,
    metrics: MetricsAggregatorDep,
) -> CategoryRead:
    category = await metrics.on_item_removed(category_id, kind, item_id)
    return CategoryRead.from_category(category)
