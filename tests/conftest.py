"""Test fixtures — a fresh schema, an in-memory Redis and a stubbed vendor per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine and a freshly created schema. The default
   is an in-memory SQLite database (aiosqlite, StaticPool so every session
   shares the one connection). Point SMARTBRAIN_TEST_DATABASE_URL at a
   Postgres database to run the same tests against asyncpg.
2. Redis is replaced by FakeRedis, which implements only the commands the
   app uses and can be told to fail like an unreachable server. The
   session store and the rate limiter each get their own instance, as
   they get their own Redis database in production.
3. The Clarifai API is served by httpx.MockTransport.
4. The app is built with create_app(settings) and its app.state is filled
   in directly (ASGITransport does not run the lifespan).
"""

import os
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from smartbrain.auth.jwt import TokenIssuer
from smartbrain.auth.session_store import SessionStore
from smartbrain.auth.sessions import SessionManager
from smartbrain.config import Settings
from smartbrain.db.models import Base
from smartbrain.main import create_app

TEST_DB_URL = os.environ.get(
    "SMARTBRAIN_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)
TEST_JWT_SECRET = "test-secret"


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (decode_responses=True).

    Set `fail` to a redis exception instance to make every command raise it.
    """

    def __init__(self):
        self.data: dict[str, str] = {}
        self.fail: Optional[Exception] = None

    def _check(self):
        if self.fail is not None:
            raise self.fail

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = str(value)
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def incr(self, key):
        self._check()
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key, seconds):
        self._check()
        return key in self.data

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        pass


class VendorStub:
    """Records requests to the face-detection API and replays a canned reply."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: dict = {"status": {"code": 10000}, "outputs": []}
        self.exception: Optional[Exception] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture()
def settings():
    return Settings(
        environment="test",
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
        rate_limit_auth_rpm=1000,
        rate_limit_rpm=1000,
        clarifai_pat="test-pat",
        clarifai_user_id="test-user",
        clarifai_app_id="test-app",
        log_level="WARNING",
    )


@pytest_asyncio.fixture()
async def engine():
    if TEST_DB_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DB_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DB_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def redis():
    return FakeRedis()


@pytest.fixture()
def rate_limit_redis():
    return FakeRedis()


@pytest.fixture()
def session_manager(redis):
    return SessionManager(TokenIssuer(TEST_JWT_SECRET), SessionStore(redis))


@pytest.fixture()
def vendor():
    return VendorStub()


@pytest_asyncio.fixture()
async def app(settings, engine, session_factory, redis, rate_limit_redis, vendor):
    app = create_app(settings)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.redis = redis
    app.state.rate_limit_redis = rate_limit_redis
    app.state.http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(vendor.handler)
    )
    try:
        yield app
    finally:
        await app.state.http_client.aclose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def register_user(client):
    """Register through the API and return the response JSON."""

    async def _register(
        email: str = "ann@example.com",
        name: str = "Ann",
        password: str = "pw1",
    ) -> dict:
        r = await client.post(
            "/register",
            json={"email": email, "name": name, "password": password},
        )
        assert r.status_code == 200, r.text
        return r.json()

    return _register
