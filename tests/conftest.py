"""
Test configuration and fixtures
"""

from typing import Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel

from taxonomy_api.core.database import create_engine_for, create_session_factory, get_async_session
from taxonomy_api.main import app
from taxonomy_api.models import Category
from taxonomy_api.repositories import CategoryRepository
from taxonomy_api.schemas.category import CategoryCreate
from taxonomy_api.services import CategoryTreeService, MetricsAggregator


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
MIN_ITEMS_FOR_FEATURED = 5


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test"""
    engine = create_engine_for(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def category_repo(db_session) -> CategoryRepository:
    return CategoryRepository(db_session)


@pytest.fixture
def metrics(category_repo) -> MetricsAggregator:
    return MetricsAggregator(category_repo, min_items_for_featured=MIN_ITEMS_FOR_FEATURED)


@pytest.fixture
def category_service(category_repo, metrics) -> CategoryTreeService:
    return CategoryTreeService(category_repo, metrics, min_items_for_featured=MIN_ITEMS_FOR_FEATURED)


@pytest_asyncio.fixture
async def electronics_tree(category_service) -> Dict[str, Category]:
    """
    electronics
    ├── electronics-phones
    │   └── electronics-phones-smartphones
    └── electronics-laptops
    home
    """
    electronics = await category_service.create_category(CategoryCreate(name="Electronics"))
    phones = await category_service.create_category(CategoryCreate(name="Phones", parent_id=electronics.id))
    smartphones = await category_service.create_category(CategoryCreate(name="Smartphones", parent_id=phones.id))
    laptops = await category_service.create_category(
        CategoryCreate(name="Laptops", parent_id=electronics.id, order=1)
    )
    home = await category_service.create_category(CategoryCreate(name="Home"))
    return {
        "electronics": electronics,
        "phones": phones,
        "smartphones": smartphones,
        "laptops": laptops,
        "home": home,
    }


@pytest_asyncio.fixture
async def client(session_factory):
    """Create test client with database override"""

    async def get_test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = get_test_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

