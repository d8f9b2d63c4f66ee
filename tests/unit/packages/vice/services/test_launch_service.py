import pytest
from unittest.mock import AsyncMock

from packages.vice.exceptions import (
    AdmissionDeniedError,
    AdmissionInProgressError,
    ReconcileError,
)
from packages.vice.models.domain.admission import AdmissionDecision, ErrorResponse
from packages.vice.services.launch_service import LaunchService, reservation_key
from tests.fixtures import make_job

STAGER_IMAGE = "discoenv/porklock:latest"
IDENTIFIER = "# application/vnd.de.path-list+csv; version=1"

DENIED = AdmissionDecision(
    status_code=400,
    error=ErrorResponse(
        error_code="ERR_LIMIT_REACHED",
        message="ipcdev is already running 2 or more concurrent jobs",
        details={"defaultJobLimit": 2, "jobCount": 2, "jobLimit": None},
    ),
)


@pytest.fixture
def admission():
    controller = AsyncMock()
    controller.validate_job = AsyncMock(return_value=AdmissionDecision(status_code=200))
    return controller


@pytest.fixture
def reconciler():
    mock = AsyncMock()
    mock.namespace = "vice-apps"
    return mock


@pytest.fixture
def launch_service(admission, reconciler, mock_lock_provider):
    return LaunchService(
        admission,
        reconciler,
        mock_lock_provider,
        stager_image=STAGER_IMAGE,
        path_list_identifier=IDENTIFIER,
        reservation_ttl_seconds=120,
        reservation_wait_seconds=5.0,
    )


class TestLaunchService:
    async def test_admitted_job_is_reconciled(self, launch_service, reconciler):
        job = make_job()

        await launch_service.launch(job)

        reconciler.reconcile.assert_awaited_once_with(job, STAGER_IMAGE, IDENTIFIER)

    async def test_reservation_held_around_admission(
        self, launch_service, mock_lock_provider
    ):
        await launch_service.launch(make_job())

        mock_lock_provider.acquire_lock_with_retry.assert_awaited_once_with(
            "vice_admission:ipcdev",
            lock_ttl_seconds=120,
            acquire_timeout_seconds=5.0,
        )
        mock_lock_provider.release_lock.assert_awaited_once_with(
            reservation_key("ipcdev"), "test-lock-token"
        )

    async def test_denied_job_not_reconciled(
        self, launch_service, admission, reconciler, mock_lock_provider
    ):
        admission.validate_job.return_value = DENIED

        with pytest.raises(AdmissionDeniedError) as exc_info:
            await launch_service.launch(make_job())

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "ERR_LIMIT_REACHED"
        assert exc_info.value.details["jobCount"] == 2
        reconciler.reconcile.assert_not_called()
        mock_lock_provider.release_lock.assert_awaited_once()

    async def test_reservation_busy(
        self, launch_service, admission, mock_lock_provider
    ):
        mock_lock_provider.acquire_lock_with_retry.return_value = None

        with pytest.raises(AdmissionInProgressError):
            await launch_service.launch(make_job())

        admission.validate_job.assert_not_called()
        mock_lock_provider.release_lock.assert_not_called()

    async def test_reservation_released_on_failure(
        self, launch_service, reconciler, mock_lock_provider
    ):
        reconciler.reconcile.side_effect = ReconcileError("create failed")

        with pytest.raises(ReconcileError):
            await launch_service.launch(make_job())

        mock_lock_provider.release_lock.assert_awaited_once()

    async def test_without_reservation(self, admission, reconciler):
        service = LaunchService(
            admission,
            reconciler,
            None,
            stager_image=STAGER_IMAGE,
            path_list_identifier=IDENTIFIER,
        )

        await service.launch(make_job())

        reconciler.reconcile.assert_awaited_once()
