from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from cardsavvy.config import get_settings


class Base(DeclarativeBase):
    pass


settings = get_settings()


def _engine_options(url: str) -> dict:
    # SQLite (tests, local dev) has no server-side pool to tune
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


async_engine = create_async_engine(
    settings.database_url,
    echo=False,
    **_engine_options(settings.database_url),
)

async_session_factory = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_tables() -> None:
    """Create all tables. Used for local development and tests; production runs Alembic."""
    from cardsavvy.models import catalog  # noqa: F401  (registers the models)

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an async DB session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
