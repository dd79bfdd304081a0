"""
Test infrastructure for the Blog Platform API.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres
  instance in CI.
- StaticPool forces every async task onto the same in-memory connection;
  SQLite in-memory databases are connection-scoped, so a second
  connection would see an empty database.
- The foreign-key pragma listener is installed on the test engine so
  ON DELETE CASCADE behaves as it does on Postgres.
- The app's get_db dependency is overridden so every request uses the
  test session factory.
- All tables are created before each test and dropped after.
- Argon2 cost parameters are lowered through the environment before the
  application is imported; hashing at production cost would dominate
  the suite's runtime.
"""
import os

os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from blogapi.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from blogapi.main import app  # noqa: E402
from blogapi.middleware import install_query_counter  # noqa: E402
from blogapi.models import UserRole  # noqa: E402
from blogapi.schemas import CategoryCreate, TagCreate, UserCreate  # noqa: E402
from blogapi.security import create_access_token  # noqa: E402
from blogapi.services import category_service, tag_service, user_service  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

enable_sqlite_foreign_keys(engine_test)
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

DEFAULT_PASSWORD = "correct-horse-battery"


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
    """
    Yield a live AsyncSession for tests that call services directly.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# Seed helpers (committed, so HTTP requests on other sessions can see them)
# ---------------------------------------------------------------------------

async def make_user(
    username: str,
    role: UserRole = UserRole.AUTHOR,
    password: str = DEFAULT_PASSWORD,
):
    async with async_session_test() as session:
        user = await user_service.create_user(session, UserCreate(
            email=f"{username}@example.com",
            username=username,
            password=password,
            first_name=username.capitalize(),
            last_name="Tester",
            role=role,
        ))
        await session.commit()
    return user


def auth_headers(user) -> dict[str, str]:
    token = create_access_token(user.id, user.email, UserRole(user.role).value)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin():
    return await make_user("admin", UserRole.SUPER_ADMIN)


@pytest_asyncio.fixture
async def author():
    return await make_user("author")


@pytest_asyncio.fixture
async def other_author():
    return await make_user("other")


@pytest_asyncio.fixture
async def category():
    async with async_session_test() as session:
        created = await category_service.create_category(
            session, CategoryCreate(name="Engineering", slug="engineering")
        )
        await session.commit()
    return created


@pytest_asyncio.fixture
async def tag():
    async with async_session_test() as session:
        created = await tag_service.create_tag(session, TagCreate(name="Python", slug="python"))
        await session.commit()
    return created


@pytest_asyncio.fixture
async def user_factory():
    """Return the ``make_user`` coroutine for tests that need extra accounts."""
    return make_user


@pytest_asyncio.fixture
async def headers_for():
    """Return a function mapping a user to its bearer Authorization header."""
    return auth_headers
