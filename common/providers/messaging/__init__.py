from .interface import MessageQueueInterface
from .rabbitmq_async import MessagingError, RabbitMQClient
from .factory import get_message_queue

__all__ = ["MessageQueueInterface", "MessagingError", "RabbitMQClient", "get_message_queue"]
