import pytest
from sqlalchemy import select

from common.db.context import get_current_session, is_readonly_forced, readonly
from common.db.scoped import get_session, transaction
from packages.vice.models.database.job_limit import JobLimitEntity


class TestTransaction:
    """Test the transaction() context manager against the test database."""

    async def test_commits_on_success(self, test_db):
        async with transaction() as session:
            session.add(JobLimitEntity(launcher="ipcdev", concurrent_jobs=3))

        result = await test_db.execute(
            select(JobLimitEntity).where(JobLimitEntity.launcher == "ipcdev")
        )
        assert result.scalar_one().concurrent_jobs == 3

    async def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            async with transaction() as session:
                session.add(JobLimitEntity(launcher="ipcdev", concurrent_jobs=3))
                await session.flush()
                raise RuntimeError("boom")

        result = await test_db.execute(select(JobLimitEntity))
        assert result.scalars().all() == []

    async def test_get_session_joins_transaction(self):
        async with transaction() as outer:
            async with get_session() as inner:
                assert inner is outer

        assert get_current_session() is None

    async def test_readonly_transaction_shared_by_readonly_callers(self):
        @readonly
        async def read_twice():
            async with transaction(readonly=True) as outer:
                async with get_session() as inner:
                    return inner is outer, is_readonly_forced()

        shared, forced = await read_twice()

        assert shared is True
        assert forced is True
        assert is_readonly_forced() is False
