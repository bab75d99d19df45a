"""
Test infrastructure for the admin API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres is needed in CI.
- StaticPool makes every session share the one in-memory connection;
  a second connection would see an empty database.
- The app's get_db dependency is overridden so requests use the test
  session factory.
- Tables are created before each test and dropped after it.
- Seed fixtures (users, categories, tags) write through ``db_session``
  and commit, so requests made with ``async_client`` see them.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from cms_admin.database import Base, get_db
from cms_admin.main import app
from cms_admin.middleware import install_query_counter
from cms_admin.models import Category, Tag, User
from cms_admin.policies import Actor

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for seeding data and calling services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def users(db_session: AsyncSession) -> dict[str, User]:
    """An author, a second regular user and an admin."""
    seeded = {
        "author": User(username="author", email="author@example.com"),
        "other": User(username="other", email="other@example.com"),
        "admin": User(username="admin", email="admin@example.com", is_admin=True),
    }
    db_session.add_all(seeded.values())
    await db_session.commit()
    return seeded


@pytest_asyncio.fixture
async def categories(db_session: AsyncSession) -> list[Category]:
    seeded = [
        Category(name="News", slug="news"),
        Category(name="Tutorials", slug="tutorials"),
    ]
    db_session.add_all(seeded)
    await db_session.commit()
    return seeded


@pytest_asyncio.fixture
async def tags(db_session: AsyncSession) -> list[Tag]:
    seeded = [Tag(name="python"), Tag(name="fastapi"), Tag(name="sql")]
    db_session.add_all(seeded)
    await db_session.commit()
    return seeded


@pytest.fixture
def author(users) -> Actor:
    return Actor(id=users["author"].id)


@pytest.fixture
def headers(users) -> dict[str, dict[str, str]]:
    """``X-User-Id`` request headers keyed like the ``users`` fixture."""
    return {role: {"X-User-Id": str(user.id)} for role, user in users.items()}
