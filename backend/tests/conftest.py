"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taxonomy.core.database import get_db
from taxonomy.main import app
from taxonomy.models import Base, Category, Rule
from taxonomy.schemas.category import CategoryCreate
from taxonomy.services.category_service import CategoryService


@pytest.fixture
async def engine():
    """In-memory SQLite database, one shared connection per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def service(db) -> CategoryService:
    return CategoryService(db)


@pytest.fixture
def make_category(service):
    """Create a category with sensible defaults: await make_category("slug", parent)."""

    async def _make(slug: str, parent: Category | None = None, **fields) -> Category:
        data = CategoryCreate(
            slug=slug,
            name=fields.pop("name", slug.replace("-", " ").title()),
            parent_id=parent.id if parent else None,
            **fields,
        )
        return await service.create_category(data)

    return _make


@pytest.fixture
def make_rule(db):
    async def _make(category: Category | None, name: str = "rule") -> Rule:
        rule = Rule(
            name=name,
            pattern=name,
            match_type="contains",
            priority=0,
            is_active=True,
            category_id=category.id if category else None,
        )
        db.add(rule)
        await db.flush()
        return rule

    return _make


@pytest.fixture
async def client(session_factory):
    """Async test client for the FastAPI app, bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
