from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

settings = get_settings()

# Seconds a SQLite writer waits for a concurrent refresh to release the lock
SQLITE_BUSY_TIMEOUT = 15


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite)."""
    engine_kwargs = {"echo": echo}

    if database_url.startswith("sqlite"):
        # Baseline and pattern refreshes write from separate sessions
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": SQLITE_BUSY_TIMEOUT,
        }
    else:
        engine_kwargs["pool_pre_ping"] = True

    return create_async_engine(database_url, **engine_kwargs)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Refresh tasks read results after commit; keep loaded attributes
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = build_session_maker(engine)


class Base(DeclarativeBase):
    pass
