import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.user import User
from tests.helpers import TEST_PASSWORD_HASH


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    async def _make_user(name=None, email=None, role="USER", position=None, is_active=True) -> User:
        counter["n"] += 1
        async with session_factory() as session:
            user = User(
                email=email or f"user{counter['n']}@example.com",
                name=name or f"User {counter['n']}",
                hashed_password=TEST_PASSWORD_HASH,
                role=role,
                position=position,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
async def admin(make_user):
    return await make_user(name="Admin", email="admin@example.com", role="ADMIN")


@pytest.fixture
async def manager(make_user):
    return await make_user(name="Morgan Manager", email="manager@example.com", position="MANAGER")


@pytest.fixture
async def rep(make_user):
    return await make_user(name="Riley Rep", email="rep@example.com", position="JUNIOR_EC")
