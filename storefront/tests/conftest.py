"""
Pytest configuration and fixtures for storefront tests
"""
import os

# Point the application at SQLite before any storefront module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from storefront.main import create_app
from storefront.db.base import Base
from storefront.models import Category
from storefront.schemas.category import CategoryCreate
from storefront.services.category_service import CategoryService


# Test database URL - use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session with in-memory SQLite.
    Each test gets a fresh database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with dependency override for database.
    """
    app = create_app(init_db=False)

    async def override_get_db():
        yield test_db

    from storefront.db.session import get_db
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def category_service(test_db: AsyncSession) -> CategoryService:
    return CategoryService(test_db)


@pytest.fixture
async def abc_chain(category_service: CategoryService) -> tuple[Category, Category, Category]:
    """Root A, B under A, C under B"""
    a = await category_service.create(CategoryCreate(name="A", slug="a"))
    b = await category_service.create(CategoryCreate(name="B", slug="b", parent_id=a.id))
    c = await category_service.create(CategoryCreate(name="C", slug="c", parent_id=b.id))
    return a, b, c
