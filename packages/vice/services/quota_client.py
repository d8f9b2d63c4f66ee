from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from common.core.config import settings
from common.core.telemetry import get_logger, trace_span
from common.providers.messaging import MessageQueueInterface, MessagingError, get_message_queue
from packages.vice.exceptions import QuotaServiceError
from packages.vice.models.domain.admission import OverageList

logger = get_logger(__name__)


class QuotaClient:
    """Asks the quota service which resources a user is over quota on."""

    def __init__(
        self,
        message_queue: MessageQueueInterface,
        queue: str,
        timeout: float,
        user_suffix: str,
    ):
        self.message_queue = message_queue
        self.queue = queue
        self.timeout = timeout
        self.user_suffix = user_suffix

    def normalize_username(self, username: str) -> str:
        """The quota service knows users without the identity provider suffix."""
        if self.user_suffix and username.endswith(self.user_suffix):
            return username[: -len(self.user_suffix)]
        return username

    @trace_span
    async def get_user_overages(self, username: str) -> OverageList:
        user = self.normalize_username(username)
        try:
            reply = await self.message_queue.request(
                self.queue, {"username": user}, self.timeout
            )
        except MessagingError as e:
            logger.error(f"Overage request for {user} failed: {e}")
            raise QuotaServiceError(
                f"unable to get list of resource overages for user {username}: {e.message}"
            ) from e

        if not isinstance(reply, dict):
            raise QuotaServiceError(
                f"unexpected overage reply for user {username}: {type(reply).__name__}"
            )

        error = reply.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise QuotaServiceError(
                f"quota service returned an error for user {username}: {message}"
            )

        try:
            return OverageList.model_validate(reply)
        except PydanticValidationError as e:
            raise QuotaServiceError(
                f"unexpected overage reply for user {username}: {e}"
            ) from e


def get_quota_client(message_queue: Optional[MessageQueueInterface] = None) -> QuotaClient:
    return QuotaClient(
        message_queue or get_message_queue(),
        queue=settings.qms_overages_queue,
        timeout=settings.qms_request_timeout_seconds,
        user_suffix=settings.user_suffix,
    )
