from abc import ABC, abstractmethod
from typing import Dict, Any


class MessageQueueInterface(ABC):
    @abstractmethod
    async def connect(self) -> bool:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def request(
        self, queue: str, message: Dict[str, Any], timeout: float
    ) -> Dict[str, Any]:
        """Publish ``message`` to ``queue`` and wait for the correlated reply.

        Raises:
            MessagingError: if the broker is unreachable, the reply does not
                arrive within ``timeout`` seconds, or the reply is not JSON.
        """
        pass
