from common.core.exceptions import AppException, ConflictError, ValidationError
from packages.vice.models.domain.admission import AdmissionDecision


class UnsupportedJobTypeError(ValidationError):
    """Job is not meant for the interactive apps cluster."""

    error_code = "ERR_UNSUPPORTED_JOB_TYPE"


class MalformedJobError(ValidationError):
    """Job descriptor lacks something compilation needs (steps, an image)."""


class ConfigDerivationError(ValidationError):
    """A ConfigMap payload cannot be derived from the job's inputs."""


class AdmissionDeniedError(AppException):
    """Admission controller refused the launch; carries the structured decision."""

    def __init__(self, decision: AdmissionDecision):
        self.decision = decision
        self.status_code = decision.status_code
        self.error_code = decision.error.error_code
        super().__init__(decision.error.message, decision.error.details)


class AdmissionInProgressError(ConflictError):
    """Another launch for the same user is between admission and provisioning."""

    error_code = "ERR_ADMISSION_IN_PROGRESS"


class MissingDefaultJobLimitError(AppException):
    """The job_limits table has no default (NULL launcher) row."""


class JobCountError(AppException):
    """Running jobs for a user could not be listed."""


class QuotaServiceError(AppException):
    """Resource overages could not be fetched from the quota service."""


class ReconcileError(AppException):
    """Creating or replacing a cluster object failed."""


class JobLimitLookupError(AppException):
    """The job_limits table could not be read."""
