"""
API Dependencies for dependency injection
"""
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from taxonomy_api.core.database import get_async_session
from taxonomy_api.repositories import CategoryRepository
from taxonomy_api.services import CategoryTreeService, MetricsAggregator


AsyncSessionDep = Annotated[AsyncSession, Depends(get_async_session)]


async def get_category_repository(session: AsyncSessionDep) -> CategoryRepository:
    return CategoryRepository(session)


CategoryRepositoryDep = Annotated[CategoryRepository, Depends(get_category_repository)]


async def get_metrics_aggregator(category_repo: CategoryRepositoryDep) -> MetricsAggregator:
    return MetricsAggregator(category_repo)


MetricsAggregatorDep = Annotated[MetricsAggregator, Depends(get_metrics_aggregator)]


async def get_category_service(
    category_repo: CategoryRepositoryDep,
    metrics: MetricsAggregatorDep,
) -> CategoryTreeService:
    return CategoryTreeService(category_repo, metrics)


CategoryServiceDep = Annotated[CategoryTreeService, Depends(get_category_service)]


async def get_request_id(request: Request) -> Optional[str]:
    """Get request ID from request state"""
    return getattr(request.state, "request_id", None)


RequestIdDep = Annotated[Optional[str], Depends(get_request_id)]
