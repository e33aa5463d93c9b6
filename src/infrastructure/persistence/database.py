from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import DeclarativeBase

from src.infrastructure.config.settings import Settings, get_settings


def _engine_options(settings: Settings) -> dict[str, Any]:
    """
    Pool settings for the access store.

    Access checks issue short read queries from many concurrent requests, so
    stale connections are pinged out rather than surfacing as store outages.
    """
    options: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }
    if settings.database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            # JIT only slows down the small lookups issued here
            connect_args={"server_settings": {"jit": "off"}, "command_timeout": 60},
        )
    return options


settings = get_settings()

# Created once per process; the engine and its pool are shared by all sessions
engine = create_async_engine(settings.database_url, **_engine_options(settings))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for all access-control models"""

    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Request-scoped session dependency.

    The access engine does not use it; its store opens short sessions of its
    own from AsyncSessionLocal.
    """
    async with AsyncSessionLocal() as session:
        yield session
