"""
Launch orchestration: reservation, admission, then provisioning.

The per-user reservation is held from before admission until the cluster
objects are applied, so two concurrent launches for one user cannot both be
admitted against the same job count.
"""

from typing import Optional

from common.core.config import settings
from common.core.telemetry import get_logger, trace_span
from common.providers.locking.interface import DistributedLockInterface
from packages.vice.exceptions import AdmissionDeniedError, AdmissionInProgressError
from packages.vice.models.domain.job import Job
from packages.vice.services.admission_service import AdmissionController
from packages.vice.services.reconciler import Reconciler

logger = get_logger(__name__)

RESERVATION_KEY_PREFIX = "vice_admission"


def reservation_key(username: str) -> str:
    return f"{RESERVATION_KEY_PREFIX}:{username}"


class LaunchService:
    def __init__(
        self,
        admission: AdmissionController,
        reconciler: Reconciler,
        lock_provider: Optional[DistributedLockInterface],
        stager_image: str,
        path_list_identifier: str,
        reservation_ttl_seconds: int = 120,
        reservation_wait_seconds: float = 5.0,
    ):
        self.admission = admission
        self.reconciler = reconciler
        self.lock_provider = lock_provider
        self.stager_image = stager_image
        self.path_list_identifier = path_list_identifier
        self.reservation_ttl_seconds = reservation_ttl_seconds
        self.reservation_wait_seconds = reservation_wait_seconds

    async def _admit_and_provision(self, job: Job) -> None:
        decision = await self.admission.validate_job(job)
        if not decision.allowed:
            raise AdmissionDeniedError(decision)

        await self.reconciler.reconcile(
            job, self.stager_image, self.path_list_identifier
        )
        logger.info(
            f"Provisioned {job.invocation_id} for {job.submitter} in {self.reconciler.namespace}"
        )

    @trace_span
    async def launch(self, job: Job) -> None:
        """
        Admit ``job`` and apply its cluster objects.

        Raises:
            AdmissionInProgressError: if another launch for the user holds the
                reservation past the wait time.
            AdmissionDeniedError: if admission refused the job.
        """
        if self.lock_provider is None:
            await self._admit_and_provision(job)
            return

        key = reservation_key(job.submitter)
        token = await self.lock_provider.acquire_lock_with_retry(
            key,
            lock_ttl_seconds=self.reservation_ttl_seconds,
            acquire_timeout_seconds=self.reservation_wait_seconds,
        )
        if token is None:
            raise AdmissionInProgressError(
                f"another launch for {job.submitter} is already being admitted"
            )

        try:
            await self._admit_and_provision(job)
        finally:
            await self.lock_provider.release_lock(key, token)


def get_launch_service(
    admission: AdmissionController,
    reconciler: Reconciler,
    lock_provider: Optional[DistributedLockInterface],
) -> LaunchService:
    return LaunchService(
        admission,
        reconciler,
        lock_provider if settings.admission_reservation_enabled else None,
        stager_image=settings.stager_image,
        path_list_identifier=settings.input_path_list_identifier,
        reservation_ttl_seconds=settings.admission_reservation_ttl_seconds,
        reservation_wait_seconds=settings.admission_reservation_wait_seconds,
    )
