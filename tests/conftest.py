import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import fakeredis.aioredis
import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from socialnet.UAA import utils
from socialnet.UAA.models import User
from socialnet.UAA.repository import UserRepository
from socialnet.dependencies.db import get_session_dep
from socialnet.dependencies.oauth import get_oauth_client
from socialnet.infrastructure.database import init_db
from socialnet.infrastructure.oauth_client import OAuthClient


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(utils, "redis_client", redis)
    return redis


@pytest.fixture
def make_user(engine):
    """Insert a user through its own session and return it."""
    counter = {"n": 0}

    async def _make(name: str = None, email: str = None, avatar: str = "") -> User:
        counter["n"] += 1
        n = counter["n"]
        async with AsyncSession(engine, expire_on_commit=False) as s:
            user = User(
                name=name or f"user{n}",
                email=email or f"user{n}@example.com",
                avatar=avatar,
                provider="google",
            )
            return await UserRepository(s).create(user)

    return _make


@pytest.fixture
def auth_header():
    def _header(user_id: str, **kwargs) -> dict:
        token = utils.create_access_token(user_id, **kwargs)["token"]
        return {"Authorization": f"Bearer {token}"}

    return _header


def provider_handler(request: httpx.Request) -> httpx.Response:
    """Fake Google and Microsoft endpoints."""
    host, path = request.url.host, request.url.path
    if host == "oauth2.googleapis.com" and path == "/token":
        if b"code=good-code" not in request.content:
            return httpx.Response(400, json={"error": "invalid_grant"})
        return httpx.Response(200, json={"access_token": "google-token", "token_type": "Bearer"})
    if host == "login.microsoftonline.com" and path.endswith("/token"):
        return httpx.Response(200, json={"access_token": "ms-token", "token_type": "Bearer"})
    if host == "www.googleapis.com" and path == "/oauth2/v3/userinfo":
        if request.headers.get("Authorization") != "Bearer google-token":
            return httpx.Response(401, json={"error": "invalid_token"})
        return httpx.Response(
            200,
            json={"sub": "g-1", "email": "ann@example.com", "name": "Ann", "picture": "https://img.example.com/ann.png"},
        )
    if host == "graph.microsoft.com" and path == "/v1.0/me":
        if request.headers.get("Authorization") != "Bearer ms-token":
            return httpx.Response(401, json={"error": "invalid_token"})
        return httpx.Response(200, json={"id": "m-1", "mail": None, "userPrincipalName": "bob@example.com", "displayName": "Bob"})
    return httpx.Response(404)


@pytest.fixture
def oauth_client(monkeypatch):
    for prefix in ("GOOGLE", "MICROSOFT"):
        monkeypatch.setenv(f"{prefix}_CLIENT_ID", f"{prefix.lower()}-client")
        monkeypatch.setenv(f"{prefix}_CLIENT_SECRET", f"{prefix.lower()}-secret")
    return OAuthClient(transport=httpx.MockTransport(provider_handler))


@pytest.fixture
async def client(engine, oauth_client):
    from socialnet.main import app

    async def _session():
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_session_dep] = _session
    app.dependency_overrides[get_oauth_client] = lambda: oauth_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()
