"""Database engine and per-request sessions for the Prioriwise store.

One async engine per process, built from ``DATABASE_URL``. Every request
gets one session; tenant isolation is applied by the repositories, not here.
Mutating routes commit early through ``get_tenant_session`` so the tenant
write lock is released only after the commit; the commit below then finds
nothing left to do.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.config.settings import get_settings


class Base(DeclarativeBase):
    """Declarative base for the five tenant-partitioned tables."""

    pass


_settings = get_settings()

engine = create_async_engine(
    _settings.DATABASE_URL,
    echo=(_settings.ENVIRONMENT == "dev"),
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield the request session.

    Repositories and the impact recompute only flush. Whatever is still
    pending is committed after a successful request and rolled back if the
    request raises, including a strict-mode recompute failure.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
