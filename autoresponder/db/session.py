from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from autoresponder.config import settings

# Base class for models
Base = declarative_base()


def _pool_kwargs(url: str) -> dict:
    # SQLite engines use a singleton/static pool that rejects sizing arguments
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


# ============================================================================
# ASYNC SQLAlchemy (for FastAPI)
# ============================================================================

engine = create_async_engine(
    settings.database_url,
    echo=settings.log_sql,
    **_pool_kwargs(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# ============================================================================
# SYNC SQLAlchemy (for Celery tasks and the response store)
# ============================================================================

# postgresql+asyncpg:// -> postgresql://, sqlite+aiosqlite:// -> sqlite://
sync_database_url = (
    settings.database_url
    .replace("+asyncpg", "")
    .replace("+aiosqlite", "")
)

sync_engine = create_engine(
    sync_database_url,
    echo=settings.log_sql,
    **_pool_kwargs(sync_database_url),
)

SessionLocal = sessionmaker(
    bind=sync_engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """Dependency for getting async database session (for FastAPI endpoints)."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise

