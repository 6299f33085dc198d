"""
Shared fixtures: the app runs against a throwaway SQLite file, tables are
rebuilt for every test, and callers are authenticated with locally minted
bearer tokens.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="sweetholic-tests-")

# Settings are read at import time, so these must be set before the app loads
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["OTEL_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes!"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from helpers import create_user  # noqa: E402
from sweetholic.database import Base, engine  # noqa: E402
from sweetholic.main import app  # noqa: E402
from sweetholic.models import User  # noqa: E402


@pytest.fixture(autouse=True)
async def db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def alice() -> User:
    return await create_user("alice")


@pytest.fixture
async def bob() -> User:
    return await create_user("bob")
