from typing import Optional

from sqlalchemy.future import select

from common.core.telemetry import trace_span
from common.repositories.base import BaseRepository
from packages.vice.models.database.analysis import AnalysisEntity, AnalysisStepEntity
from packages.vice.models.domain.analysis import Analysis


class AnalysisRepository(BaseRepository[AnalysisEntity, Analysis]):
    """Read access to the analysis status store."""

    def __init__(self, db_session=None):
        super().__init__(AnalysisEntity, Analysis, db_session)

    @trace_span
    async def get_analysis_id_by_external_id(self, external_id: str) -> Optional[str]:
        """Resolve the external id carried on a deployment to its analysis id."""
        async with self._get_session() as session:
            result = await session.execute(
                select(AnalysisStepEntity.job_id).where(
                    AnalysisStepEntity.external_id == external_id
                )
            )
            return result.scalars().first()

    @trace_span
    async def get_analysis_status(self, analysis_id: str) -> Optional[str]:
        analysis = await self.get(analysis_id)
        return analysis.status if analysis else None
