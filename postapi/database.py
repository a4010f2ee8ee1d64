from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from postapi.cache import POSTS_STALE_FLAG, cache
from postapi.config import settings

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def commit_session(session: AsyncSession) -> None:
    """Commit, then drop any post pages the transaction marked stale."""
    await session.commit()
    if session.info.pop(POSTS_STALE_FLAG, False):
        await cache.invalidate_posts()


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await commit_session(session)
        except Exception:
            await session.rollback()
            raise
