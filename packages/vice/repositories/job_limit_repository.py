from typing import Optional

from sqlalchemy.future import select

from common.core.telemetry import get_logger, trace_span
from common.repositories.base import BaseRepository
from packages.vice.exceptions import MissingDefaultJobLimitError
from packages.vice.models.database.job_limit import JobLimitEntity
from packages.vice.models.domain.job_limit import JobLimit

logger = get_logger(__name__)


def launcher_for_username(username: str) -> str:
    """Launcher key a user's override row is stored under.

    Only the first hyphen is replaced, matching how the rows were written.
    """
    return username.replace("-", "_", 1)


class JobLimitRepository(BaseRepository[JobLimitEntity, JobLimit]):
    def __init__(self, db_session=None):
        super().__init__(JobLimitEntity, JobLimit, db_session)

    @trace_span
    async def get_by_launcher(self, launcher: Optional[str]) -> Optional[JobLimit]:
        """Get the limit row for a launcher; ``None`` selects the default row."""
        if launcher is None:
            condition = self.entity_class.launcher.is_(None)
        else:
            condition = self.entity_class.launcher == launcher

        async with self._get_session() as session:
            result = await session.execute(select(self.entity_class).where(condition))
            entity = result.scalars().first()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_job_limit_for_user(self, username: str) -> Optional[int]:
        """Per-user override of the concurrent job limit, if one exists."""
        job_limit = await self.get_by_launcher(launcher_for_username(username))
        if job_limit is None:
            return None
        return job_limit.concurrent_jobs

    @trace_span
    async def get_default_job_limit(self) -> int:
        job_limit = await self.get_by_launcher(None)
        if job_limit is None:
            logger.error("No default job limit row in job_limits")
            raise MissingDefaultJobLimitError("no default concurrent job limit is configured")
        return job_limit.concurrent_jobs
