import pytest
import jwt
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

import flashdecks.models  # noqa: F401
from flashdecks.config import settings
from flashdecks.db.base import Base
from flashdecks.db.repositories import user_repo
from flashdecks.db.session import get_db, make_engine


@pytest.fixture
async def engine():
    eng = make_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def file_engine(tmp_path):
    """File-backed database, so several sessions can hold their own
    connections and transactions at the same time."""
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'flashdecks.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(file_engine):
    return async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(engine):
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as s:
        yield s


@pytest.fixture
async def alice(session):
    return await user_repo.create_user(session, "Alice", "Alice Anderson")


@pytest.fixture
async def bob(session):
    return await user_repo.create_user(session, "bob", "Bob Brown")


@pytest.fixture
async def carol(session):
    return await user_repo.create_user(session, "carol", "Carol Clark")


def make_token(user, **claims) -> str:
    return jwt.encode({"sub": str(user.id), **claims}, settings.secret_key, algorithm=settings.algorithm)


@pytest.fixture
def auth():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {make_token(user)}"}
    return _headers


@pytest.fixture
async def client(session):
    from flashdecks.main import app

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
