import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPSTASH_REDIS_URL", "https://redis.invalid")
os.environ.setdefault("UPSTASH_REDIS_TOKEN", "test-token")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from findr.core.dependencies import get_redis_service
from findr.core.security import create_access_token
from findr.db.redis import RedisService
from findr.db.session import Base, get_db
from findr.main import app
from findr.models import Profile, User


class FakeRedis:
    """In-memory stand-in for the Upstash client (sync API, TTLs ignored)."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, seconds, value):
        self.store[key] = value

    def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    def ping(self):
        return True


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_service(fake_redis):
    return RedisService(client=fake_redis)


@pytest.fixture
async def make_user(db):
    async def _make_user(user_id=None, name="User", **kwargs):
        user = User(name=name, username=kwargs.pop("username", None), **kwargs)
        if user_id is not None:
            user.id = user_id
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
async def make_profile(db):
    async def _make_profile(user, **kwargs):
        values = {
            "role": "technical",
            "skills": ["python"],
            "looking_for": ["designer"],
            "last_active": datetime(2026, 1, 1, tzinfo=timezone.utc),
        }
        values.update(kwargs)
        profile = Profile(user_id=user.id, **values)
        db.add(profile)
        await db.commit()
        return profile

    return _make_profile


@pytest.fixture
async def client(db, redis_service):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_service] = lambda: redis_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user) -> dict:
        token = create_access_token({"sub": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
