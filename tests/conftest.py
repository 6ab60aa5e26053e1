"""Shared pytest fixtures for the Prioriwise test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables
- db_session: async session on that engine (commits are real, the engine is per-test)
- client: AsyncClient with get_async_session overridden to use db_session
- make_*: small factories for seeding a tenant through the repositories
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from uuid_extensions import uuid7

from src.db.session import Base, get_async_session
import src.db.tables  # noqa: F401  register ORM models on Base.metadata
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables.

    aiosqlite's implicit BEGIN is disabled and emitted explicitly so that
    SAVEPOINT / ROLLBACK TO behave as on Postgres.
    """
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture
async def client(db_session):
    """AsyncClient with get_async_session overridden to use the test session."""
    from src.api.main import app

    async def _override_session():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_async_session] = _override_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Repository-level seeding helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_job(db_session):
    async def _make(tenant_id: str, title: str = "Job", **kwargs):
        return await JobRepository(db_session, tenant_id).create(
            job_id=uuid7(), title=title, **kwargs,
        )
    return _make


@pytest.fixture
def make_output(db_session):
    async def _make(tenant_id: str, name: str = "Output", target_value: float = 100.0, **kwargs):
        return await OutputRepository(db_session, tenant_id).create(
            output_id=uuid7(), name=name, target_value=target_value, **kwargs,
        )
    return _make


@pytest.fixture
def make_outcome(db_session):
    async def _make(tenant_id: str, name: str = "Outcome", target_value: float = 100.0, **kwargs):
        return await OutcomeRepository(db_session, tenant_id).create(
            outcome_id=uuid7(), name=name, target_value=target_value, **kwargs,
        )
    return _make


@pytest.fixture
def link_job_output(db_session):
    async def _link(tenant_id: str, job_id, pi_id, pi_impact_value: float, **kwargs):
        return await JobOutputMappingRepository(db_session, tenant_id).create(
            mapping_id=uuid7(), job_id=job_id, pi_id=pi_id,
            pi_impact_value=pi_impact_value, **kwargs,
        )
    return _link


@pytest.fixture
def link_output_outcome(db_session):
    async def _link(tenant_id: str, pi_id, qbo_id, qbo_impact: float, **kwargs):
        kwargs.setdefault("pi_target", 0.0)
        kwargs.setdefault("qbo_target", 0.0)
        return await OutputOutcomeMappingRepository(db_session, tenant_id).create(
            mapping_id=uuid7(), pi_id=pi_id, qbo_id=qbo_id,
            qbo_impact=qbo_impact, **kwargs,
        )
    return _link
