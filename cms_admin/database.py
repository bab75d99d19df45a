from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from cms_admin.config import settings
from cms_admin.middleware import install_query_counter

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def atomic(db: AsyncSession):
    """
    Scope a multi-step write (e.g. create + attach tags) as one unit.

    Pending changes are flushed on a clean exit so constraint violations
    surface inside the block.  Any exception rolls the session back
    before it propagates, so none of the steps survive a partial failure.
    Committing stays with ``get_db``.
    """
    try:
        yield db
        await db.flush()
    except Exception:
        await db.rollback()
        raise
