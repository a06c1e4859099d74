"""
Shared fixtures.

Settings are read from the environment when the package is imported, so the
test database and cheap bcrypt rounds are configured before any import.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="userservice-tests-")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_DEFAULT_USERS"] = "true"

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from userservice.base_microservice import AsyncSessionLocal, Base, engine, create_tables  # noqa: E402
from userservice.auth.seed import init_reference_data  # noqa: E402
from userservice.main import app  # noqa: E402


@pytest_asyncio.fixture
async def db():
    """Freshly created and seeded tables, and a session on them."""
    await create_tables()
    async with AsyncSessionLocal() as session:
        await init_reference_data(session, seed_users=True)
    async with AsyncSessionLocal() as session:
        yield session
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(base_url="http://test", transport=transport) as ac:
        yield ac
