import os
import sys
from datetime import date
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).parents[1] / "src"))

from pocketledger.core.crypto import CredentialCipher
from pocketledger.db.session import enable_sqlite_foreign_keys, get_db
from pocketledger.main import app
from pocketledger.providers import ProviderRegistry, SandboxProvider

ENV_TEST_PATH = Path(__file__).parents[1] / ".env.test"


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key, value)


_load_env_file(ENV_TEST_PATH)

# In-memory SQLite by default; point TEST_DATABASE_URL at Postgres to run
# the same suite against asyncpg.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

if TEST_DATABASE_URL.startswith("sqlite"):
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
else:
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

# Sandbox fixture transactions are dated 1-3 days before this.
SANDBOX_TODAY = date(2026, 3, 15)


@pytest.fixture(scope="function")
async def setup_database():
    """Create tables for tests that need the database, and drop them after.

    Not autouse, so pure unit tests (classifier, providers) run without one.
    """
    from pocketledger.models import Base

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture
async def db_session(setup_database):
    """Provide test database session with fresh connection per test."""
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def another_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers(user_id: UUID) -> dict:
    """Provide authentication headers with valid JWT token."""
    from pocketledger.core.security import create_access_token

    token = create_access_token(user_id=user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(CredentialCipher.generate_key())


@pytest.fixture
def sandbox() -> SandboxProvider:
    return SandboxProvider(today=lambda: SANDBOX_TODAY)


@pytest.fixture
def providers(sandbox: SandboxProvider) -> ProviderRegistry:
    return ProviderRegistry([sandbox], default=sandbox.name)


@pytest.fixture
async def client(db_session: AsyncSession, providers: ProviderRegistry, cipher: CredentialCipher):
    """Provide test client with database and provider overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.providers = providers
    app.state.cipher = cipher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
