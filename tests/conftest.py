"""
Test infrastructure for the Diary API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- The user-service is replaced by an ``httpx.MockTransport`` plugged into
  the shared ``author_client``; it records every request it receives.
- Access tokens are real HS256 JWTs signed with ``settings.SECRET_KEY``.
"""
import base64
import hashlib
import hmac
import json

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.author_client import author_client
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
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
# Stub user-service
# ---------------------------------------------------------------------------

class FakeUserService:
    """
    Stands in for ``GET /api/user/specificuser/{id}``.

    Set ``status`` to make every call fail with that HTTP status.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json={"message": "upstream failure"})
        user_id = int(request.url.path.rsplit("/", 1)[-1])
        return httpx.Response(
            200,
            json={"data": {"userId": user_id, "nickname": f"writer{user_id}"}},
        )


@pytest.fixture
def user_service() -> FakeUserService:
    return FakeUserService()


@pytest_asyncio.fixture
async def stub_author_client(user_service: FakeUserService):
    await author_client.connect(
        base_url="http://user-service.test",
        transport=httpx.MockTransport(user_service.handler),
    )
    yield author_client
    await author_client.disconnect()


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _make_token(claims: dict, secret: str | None = None, alg: str = "HS256") -> str:
    header = _b64(json.dumps({"alg": alg, "typ": "JWT"}).encode())
    payload = _b64(json.dumps(claims).encode())
    key = (secret or settings.SECRET_KEY).encode()
    signature = hmac.new(key, f"{header}.{payload}".encode(), hashlib.sha256).digest()
    return f"{header}.{payload}.{_b64(signature)}"


@pytest.fixture
def make_token():
    """Build an HS256 JWT from a claims dict (optionally another secret/alg)."""
    return _make_token


@pytest.fixture
def auth_headers():
    """Return ``Authorization`` headers for a given user id."""

    def _headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {_make_token({'userId': user_id})}"}

    return _headers


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
    Yield a live AsyncSession for tests that call the service layer
    directly or assert on database state.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(stub_author_client) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport.

    ``raise_app_exceptions=False`` lets tests observe the 500 response
    produced by the catch-all handler instead of the re-raised error.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
