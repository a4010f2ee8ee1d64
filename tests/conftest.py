"""
Test infrastructure for PostAPI.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres
  instance; StaticPool makes every session share the one in-memory
  connection, since a new connection would see an empty database.
- The app's get_db dependency is overridden with the test session factory.
- All tables are created before each test and dropped after.
- The Redis feed cache is disabled with ``cache._redis = None``; the cache
  treats that as "always miss, never write".  Cache tests opt in through
  the ``fake_redis`` fixture, a dict-backed client.
- Users are inserted directly and handed signed tokens from
  ``create_access_token``, so tests can act as any role (including admin,
  which signup never grants).
"""
from datetime import datetime, timedelta, timezone
from fnmatch import fnmatch

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from postapi.cache import cache
from postapi.database import Base, commit_session, get_db
from postapi.main import app
from postapi.models import Comment, Post, ROLE_USER, User
from postapi.security import create_access_token, hash_password

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await commit_session(session)
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """A fixed timestamp *minutes* after BASE_TIME, for deterministic ordering."""
    return BASE_TIME + timedelta(minutes=minutes)


async def add_user(
    db: AsyncSession,
    username: str,
    role: str = ROLE_USER,
    profile_picture: str | None = None,
) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password("password123"),
        role=role,
        first_name=username.title(),
        profile_picture=profile_picture,
    )
    db.add(user)
    await db.commit()
    return user


async def add_post(db: AsyncSession, owner_id: int | None, content: str = "post", created_at=None) -> Post:
    post = Post(user_id=owner_id, content=content, created_at=created_at or at(0))
    db.add(post)
    await db.commit()
    return post


async def add_comment(
    db: AsyncSession,
    owner_id: int | None,
    post_id: int,
    parent_comment_id: int | None = None,
    content: str = "comment",
    created_at=None,
) -> Comment:
    comment = Comment(
        user_id=owner_id,
        post_id=post_id,
        parent_comment_id=parent_comment_id,
        content=content,
        created_at=created_at or at(0),
    )
    db.add(comment)
    await db.commit()
    return comment


def auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


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
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# In-memory Redis stand-in for the feed cache
# ---------------------------------------------------------------------------

class FakeRedis:
    """Dict-backed subset of ``redis.asyncio.Redis`` used by ``FeedCache``."""

    def __init__(self, fail: bool = False) -> None:
        self.store: dict[str, str] = {}
        self.fail = fail
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("redis unavailable")

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._check()
        self.store[key] = value

    async def scan_iter(self, match: str = "*"):
        self._check()
        for key in list(self.store):
            if fnmatch(key, match):
                yield key

    async def delete(self, *keys: str) -> None:
        self._check()
        for key in keys:
            self.store.pop(key, None)

    async def aclose(self) -> None:
        self.closed = True


@pytest_asyncio.fixture
async def fake_redis() -> FakeRedis:
    """Attach a FakeRedis to the feed cache for the duration of one test."""
    fake = FakeRedis()
    cache._redis = fake
    yield fake
    cache._redis = None
