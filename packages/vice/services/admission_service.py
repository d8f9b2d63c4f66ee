"""
Admission control for interactive app launches.

A launch is admitted when the user is below their concurrent job limit (a
per-user override or the system default) and is not over quota on any
resource. Running jobs are counted from the deployments in the cluster,
cross-checked against the analysis status store.
"""

import asyncio
from typing import Any, Dict, List, Optional

from kubernetes.client import AppsV1Api, V1Deployment
from kubernetes.client.rest import ApiException
from sqlalchemy.exc import SQLAlchemyError
from urllib3.exceptions import HTTPError

from common.core.config import settings
from common.core.telemetry import get_logger, log_span_event, trace_span
from common.db.context import readonly
from common.db.scoped import transaction
from packages.vice.builders.labels import label_value_string
from packages.vice.constants import EXTERNAL_ID_LABEL, USERNAME_LABEL
from packages.vice.exceptions import (
    JobCountError,
    JobLimitLookupError,
    UnsupportedJobTypeError,
)
from packages.vice.models.domain.admission import (
    AdmissionDecision,
    AdmissionErrorCode,
    ErrorResponse,
    OverageList,
)
from packages.vice.models.domain.analysis import TERMINAL_STATUSES
from packages.vice.models.domain.job import Job
from packages.vice.repositories.analysis_repository import AnalysisRepository
from packages.vice.repositories.job_limit_repository import JobLimitRepository
from packages.vice.services.quota_client import QuotaClient

logger = get_logger(__name__)

ALLOWED = AdmissionDecision(status_code=200)


def should_count_status(status: Optional[str]) -> bool:
    """An analysis whose status is unknown is assumed to still be running."""
    return status is None or status not in TERMINAL_STATUSES


def _limit_details(
    default_job_limit: int, job_count: int, job_limit: Optional[int]
) -> Dict[str, Any]:
    return {
        "defaultJobLimit": default_job_limit,
        "jobCount": job_count,
        "jobLimit": job_limit,
    }


def _limit_denial(
    code: AdmissionErrorCode,
    message: str,
    default_job_limit: int,
    job_count: int,
    job_limit: Optional[int],
) -> AdmissionDecision:
    return AdmissionDecision(
        status_code=400,
        error=ErrorResponse(
            error_code=code,
            message=message,
            details=_limit_details(default_job_limit, job_count, job_limit),
        ),
    )


def validate_job_limits(
    user: str,
    default_job_limit: int,
    job_count: int,
    job_limit: Optional[int],
    overages: Optional[OverageList],
) -> AdmissionDecision:
    """
    Decide whether ``user`` may start another job. The first matching rule wins.

    Args:
        user: Username, used in messages only
        default_job_limit: System-wide concurrent job limit
        job_count: Jobs the user is currently running
        job_limit: Per-user override, ``None`` when the user has none
        overages: Resource usage reported by the quota service
    """
    if job_limit is None and default_job_limit <= 0:
        return _limit_denial(
            AdmissionErrorCode.PERMISSION_NEEDED,
            f"{user} has not been granted permission to run jobs yet",
            default_job_limit,
            job_count,
            job_limit,
        )

    if job_limit is not None and job_limit <= 0:
        return _limit_denial(
            AdmissionErrorCode.FORBIDDEN,
            f"{user} is not permitted to run jobs",
            default_job_limit,
            job_count,
            job_limit,
        )

    if job_limit is None and job_count >= default_job_limit:
        return _limit_denial(
            AdmissionErrorCode.LIMIT_REACHED,
            f"{user} is already running {default_job_limit} or more concurrent jobs",
            default_job_limit,
            job_count,
            job_limit,
        )

    if job_limit is not None and job_count >= job_limit:
        return _limit_denial(
            AdmissionErrorCode.LIMIT_REACHED,
            f"{user} is already running {job_limit} or more concurrent jobs",
            default_job_limit,
            job_count,
            job_limit,
        )

    exceeded = [o for o in (overages.overages if overages else []) if o.exceeded]
    if exceeded:
        details = _limit_details(default_job_limit, job_count, job_limit)
        for o in exceeded:
            details[o.resource_name] = f"quota: {o.quota:f}, usage: {o.usage:f}"
        return AdmissionDecision(
            status_code=400,
            error=ErrorResponse(
                error_code=AdmissionErrorCode.RESOURCE_OVERAGE,
                message=f"{user} has resource overages.",
                details=details,
            ),
        )

    return ALLOWED


class AdmissionController:
    def __init__(
        self,
        apps_v1: AppsV1Api,
        namespace: str,
        job_limits: JobLimitRepository,
        analyses: AnalysisRepository,
        quota: QuotaClient,
        execution_target: str = "interapps",
    ):
        self.apps_v1 = apps_v1
        self.namespace = namespace
        self.job_limits = job_limits
        self.analyses = analyses
        self.quota = quota
        self.execution_target = execution_target

    async def _list_user_deployments(self, username: str) -> List[V1Deployment]:
        selector = f"{USERNAME_LABEL}={label_value_string(username)}"
        try:
            result = await asyncio.to_thread(
                self.apps_v1.list_namespaced_deployment,
                namespace=self.namespace,
                label_selector=selector,
            )
        except ApiException as e:
            raise JobCountError(
                f"unable to list deployments for {username}: {e.reason}"
            ) from e
        except HTTPError as e:
            raise JobCountError(
                f"unable to list deployments for {username}: cluster unreachable: {e}"
            ) from e
        return result.items or []

    async def _is_running(self, deployment: V1Deployment) -> bool:
        name = deployment.metadata.name
        labels = deployment.metadata.labels or {}

        external_id = labels.get(EXTERNAL_ID_LABEL)
        if not external_id:
            # Nothing to check it against
            return True

        try:
            analysis_id = await self.analyses.get_analysis_id_by_external_id(external_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve external id {external_id} of {name}: {e}")
            return True
        if analysis_id is None:
            logger.warning(f"No analysis found for external id {external_id} of {name}")
            return True

        try:
            status = await self.analyses.get_analysis_status(analysis_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not get status of analysis {analysis_id}: {e}")
            return True

        return should_count_status(status)

    @trace_span
    @readonly
    async def count_jobs_for_user(self, username: str) -> int:
        """
        Count the user's deployments that are not known to be finished.

        Raises:
            JobCountError: if the deployments cannot be listed.
        """
        count = 0
        for deployment in await self._list_user_deployments(username):
            if await self._is_running(deployment):
                count += 1
        return count

    @trace_span
    @readonly
    async def validate_job(self, job: Job) -> AdmissionDecision:
        """
        Run admission for ``job``.

        Denials are returned as a decision. Infrastructure failures raise
        (``JobCountError``, ``JobLimitLookupError``,
        ``MissingDefaultJobLimitError``, ``QuotaServiceError``).

        Raises:
            UnsupportedJobTypeError: if the job is not an interactive app.
        """
        if job.execution_target.lower() != self.execution_target.lower():
            raise UnsupportedJobTypeError(
                f"job type {job.type} is not supported by this service"
            )

        user = job.submitter
        job_count = await self.count_jobs_for_user(user)

        try:
            async with transaction(readonly=True):
                job_limit = await self.job_limits.get_job_limit_for_user(user)
                default_job_limit = await self.job_limits.get_default_job_limit()
        except SQLAlchemyError as e:
            raise JobLimitLookupError(f"unable to look up job limits for {user}: {e}") from e

        overages = await self.quota.get_user_overages(user)

        decision = validate_job_limits(
            user, default_job_limit, job_count, job_limit, overages
        )
        log_span_event(
            "admission decision",
            {"user": user, "status_code": str(decision.status_code)},
        )
        if not decision.allowed:
            logger.info(f"Admission denied for {user}: {decision.error.error_code}")
        return decision


def get_admission_controller(
    apps_v1: AppsV1Api, quota: QuotaClient
) -> AdmissionController:
    return AdmissionController(
        apps_v1,
        settings.vice_namespace,
        JobLimitRepository(),
        AnalysisRepository(),
        quota,
        execution_target=settings.interactive_execution_target,
    )
