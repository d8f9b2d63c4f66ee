# Shared pytest configuration and fixtures for all test types
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from api.main import app
from common.db.base import Base
from packages.vice.models.database.analysis import AnalysisEntity, AnalysisStepEntity
from packages.vice.models.database.job_limit import JobLimitEntity
from tests.fixtures.kubernetes import FakeKubernetesApi

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so nested transaction()
    calls create savepoints instead of real nested transactions.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch session factories to use test database.

    This allows real transaction() and get_session() to run with proper
    commit/rollback/ContextVar semantics while using the test database.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", test_session_factory
    )


@pytest.fixture
def fake_kube():
    """In-memory cluster shared by the reconciler and admission controller."""
    return FakeKubernetesApi()


@pytest_asyncio.fixture(scope="function")
async def default_job_limit(test_db: AsyncSession):
    """The system-wide default row (NULL launcher) allowing two jobs."""
    row = JobLimitEntity(launcher=None, concurrent_jobs=2)
    test_db.add(row)
    await test_db.commit()
    return row


@pytest_asyncio.fixture(scope="function")
async def add_job_limit(test_db: AsyncSession):
    async def _add(launcher, concurrent_jobs):
        row = JobLimitEntity(launcher=launcher, concurrent_jobs=concurrent_jobs)
        test_db.add(row)
        await test_db.commit()
        return row

    return _add


@pytest_asyncio.fixture(scope="function")
async def add_analysis(test_db: AsyncSession):
    """Insert an analysis with one step carrying ``external_id``."""

    async def _add(analysis_id, status, external_id):
        test_db.add(AnalysisEntity(id=analysis_id, job_name="analysis", status=status))
        await test_db.flush()
        test_db.add(
            AnalysisStepEntity(job_id=analysis_id, step_number=1, external_id=external_id)
        )
        await test_db.commit()

    return _add


@pytest_asyncio.fixture(scope="function")
async def client():
    """Create a test client."""
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
