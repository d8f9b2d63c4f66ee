from fastapi import APIRouter, Depends

from common.core.telemetry import get_logger, trace_span
from packages.vice.dependencies import get_vice_launch_service
from packages.vice.models.domain.job import Job
from packages.vice.services.launch_service import LaunchService

router = APIRouter()
logger = get_logger(__name__)


@router.post("/launch")
@trace_span
async def launch_app(
    job: Job,
    launch_service: LaunchService = Depends(get_vice_launch_service),
):
    """Admit an interactive app and create its Deployment, Service and ConfigMaps."""
    logger.info(f"Launch requested for {job.invocation_id} by {job.submitter}")
    await launch_service.launch(job)
    return {}
