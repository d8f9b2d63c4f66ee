from typing import Dict, Any
import json
import asyncio
import uuid
import aio_pika
from aio_pika import connect_robust, Message
from aio_pika.exceptions import AMQPError, ChannelInvalidStateError
from urllib.parse import quote

from common.core.config import settings
from common.core.exceptions import AppException
from common.core.telemetry import get_logger, inject_trace_context
from .interface import MessageQueueInterface

logger = get_logger(__name__)


class MessagingError(AppException):
    """Request/response exchange over the broker failed."""


class RabbitMQClient(MessageQueueInterface):
    def __init__(self):
        self.connection = None
        self.channel = None
        self.host = settings.rabbitmq_host
        self.port = settings.rabbitmq_port
        self.username = settings.rabbitmq_username
        self.password = settings.rabbitmq_password
        self.vhost = settings.rabbitmq_vhost

    async def connect(self) -> bool:
        try:
            url = f"amqp://{quote(self.username)}:{quote(self.password)}@{self.host}:{self.port}/{quote(self.vhost, safe='')}"

            # Robust connection reconnects on its own
            self.connection = await connect_robust(url)
            self.channel = await self.connection.channel()

            logger.info("Successfully connected to RabbitMQ (async)")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to RabbitMQ: {e}")
            return False

    async def disconnect(self) -> None:
        try:
            if self.channel and not self.channel.is_closed:
                await self.channel.close()
            if self.connection and not self.connection.is_closed:
                await self.connection.close()
            logger.info("Disconnected from RabbitMQ")
        except Exception as e:
            logger.error(f"Error disconnecting from RabbitMQ: {e}")

    async def _ensure_channel(self) -> None:
        if not self.channel or self.channel.is_closed:
            if not await self.connect():
                raise MessagingError(
                    f"unable to connect to RabbitMQ at {self.host}:{self.port}"
                )

    async def request(
        self, queue: str, message: Dict[str, Any], timeout: float
    ) -> Dict[str, Any]:
        await self._ensure_channel()

        try:
            body = await self._exchange(queue, message, timeout)
        except (AMQPError, ChannelInvalidStateError) as e:
            raise MessagingError(f"request to {queue} failed: {e}") from e

        try:
            return json.loads(body.decode())
        except json.JSONDecodeError as e:
            raise MessagingError(f"reply from {queue} is not valid JSON: {e}") from e

    async def _exchange(
        self, queue: str, message: Dict[str, Any], timeout: float
    ) -> bytes:
        correlation_id = str(uuid.uuid4())
        reply_future: asyncio.Future = asyncio.get_running_loop().create_future()

        # Exclusive, server-named queue for this exchange's reply
        callback_queue = await self.channel.declare_queue(
            exclusive=True, auto_delete=True
        )

        async def on_reply(reply: aio_pika.abc.AbstractIncomingMessage) -> None:
            if reply.correlation_id == correlation_id and not reply_future.done():
                reply_future.set_result(reply.body)

        consumer_tag = await callback_queue.consume(on_reply, no_ack=True)
        try:
            msg = Message(
                body=json.dumps(message).encode(),
                content_type="application/json",
                correlation_id=correlation_id,
                reply_to=callback_queue.name,
                headers=inject_trace_context(),
                expiration=timeout,
            )
            await self.channel.default_exchange.publish(msg, routing_key=queue)
            logger.info(f"Published request {correlation_id} to queue {queue}")

            try:
                body = await asyncio.wait_for(reply_future, timeout=timeout)
            except asyncio.TimeoutError as e:
                raise MessagingError(
                    f"no reply from {queue} within {timeout} seconds"
                ) from e
        finally:
            await callback_queue.cancel(consumer_tag)
        return body
