"""Redis Streams-based request queue with list-based replies."""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from redis.asyncio import Redis

from image_resizer.bus.keys import BusKeys
from image_resizer.errors import error_reply

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[dict[str, Any]]]


@dataclass
class QueuedImageRequest:
    """Transform request as carried on the stream."""

    request_id: str
    body: Any
    reply_to: str | None = None
    created_at: float = field(default_factory=time.time)
    entry_id: str | None = None

    def to_stream_entry(self) -> dict[str, str]:
        """Convert to Redis Stream entry format."""
        entry = {
            "request_id": self.request_id,
            "body": json.dumps(self.body),
            "created_at": str(int(self.created_at * 1000)),
        }
        if self.reply_to:
            entry["reply_to"] = self.reply_to
        return entry

    @classmethod
    def from_stream_entry(cls, entry_id: str, data: dict[str, str]) -> "QueuedImageRequest":
        """
        Create from Redis Stream entry.

        An undecodable body is kept as None so the dispatcher answers it
        with a normal failure reply.
        """
        try:
            body = json.loads(data.get("body", ""))
        except ValueError:
            logger.warning(f"Entry {entry_id} has an undecodable body")
            body = None
        try:
            created_at = float(data.get("created_at", 0)) / 1000
        except ValueError:
            logger.warning(f"Entry {entry_id} has an invalid created_at")
            created_at = 0.0
        return cls(
            request_id=data.get("request_id") or entry_id,
            body=body,
            reply_to=data.get("reply_to"),
            created_at=created_at,
            entry_id=entry_id,
        )


class RequestProducer:
    """Sends transform requests and waits for their replies."""

    def __init__(self, redis: Redis, address: str = "image.resizer") -> None:
        self._redis = redis
        self._address = address
        self._stream = BusKeys.request_stream(address)

    async def enqueue(self, body: dict[str, Any], expect_reply: bool = True) -> str:
        """
        Add request to the stream.

        Returns:
            request_id: Unique request identifier
        """
        request_id = str(uuid.uuid4())
        request = QueuedImageRequest(
            request_id=request_id,
            body=body,
            reply_to=BusKeys.reply(self._address, request_id) if expect_reply else None,
        )

        entry_id = await self._redis.xadd(
            self._stream,
            request.to_stream_entry(),
            maxlen=10000,
            approximate=True,
        )

        logger.debug(f"Enqueued request {request_id} with entry {entry_id}")
        return request_id

    async def wait_reply(self, request_id: str, timeout: float = 30.0) -> dict[str, Any] | None:
        """Block until the reply arrives; None on timeout."""
        reply_key = BusKeys.reply(self._address, request_id)
        result = await self._redis.blpop([reply_key], timeout=timeout)
        if result is None:
            logger.warning(f"No reply for request {request_id} after {timeout}s")
            return None
        _, payload = result
        return json.loads(payload)

    async def send(self, body: dict[str, Any], timeout: float = 30.0) -> dict[str, Any] | None:
        """Enqueue a request and wait for its reply."""
        request_id = await self.enqueue(body)
        return await self.wait_reply(request_id, timeout)


class RequestConsumer:
    """Consumes transform requests from Redis Streams and replies to them."""

    def __init__(
        self,
        redis: Redis,
        address: str = "image.resizer",
        consumer_group: str = "image_resizers",
        consumer_name: str | None = None,
        reply_ttl_seconds: int = 300,
        block_ms: int = 5000,
    ) -> None:
        self._redis = redis
        self._stream = BusKeys.request_stream(address)
        self._group = consumer_group
        self._consumer = consumer_name or f"worker-{uuid.uuid4().hex[:8]}"
        self._reply_ttl = reply_ttl_seconds
        self._block_ms = block_ms
        self._running = False

    @property
    def name(self) -> str:
        return self._consumer

    async def setup(self) -> None:
        """Create consumer group if not exists."""
        try:
            await self._redis.xgroup_create(
                self._stream,
                self._group,
                id="0",
                mkstream=True,
            )
            logger.info(f"Created consumer group {self._group}")
        except Exception as e:
            if "BUSYGROUP" in str(e):
                logger.debug(f"Consumer group {self._group} already exists")
            else:
                raise

    async def dequeue(self) -> QueuedImageRequest | None:
        """
        Dequeue next request.

        Returns:
            QueuedImageRequest or None if timeout
        """
        messages = await self._redis.xreadgroup(
            groupname=self._group,
            consumername=self._consumer,
            streams={self._stream: ">"},
            count=1,
            block=self._block_ms,
        )

        if not messages:
            return None

        for _stream_name, stream_messages in messages:
            for msg_id, msg_data in stream_messages:
                return QueuedImageRequest.from_stream_entry(msg_id, msg_data)

        return None

    async def acknowledge(self, entry_id: str) -> None:
        """Acknowledge processed message."""
        await self._redis.xack(self._stream, self._group, entry_id)
        logger.debug(f"Acknowledged entry {entry_id}")

    async def reply(self, request: QueuedImageRequest, reply: dict[str, Any]) -> None:
        """Push the reply where the sender waits for it."""
        if not request.reply_to:
            return
        await self._redis.rpush(request.reply_to, json.dumps(reply))
        await self._redis.expire(request.reply_to, self._reply_ttl)

    async def process(self, request: QueuedImageRequest, handler: Handler) -> dict[str, Any]:
        """Handle one request, reply and acknowledge it."""
        if request.body is None:
            reply = error_reply("Invalid request.")
        else:
            reply = await handler(request.body)
        await self.reply(request, reply)
        if request.entry_id:
            await self.acknowledge(request.entry_id)
        return reply

    async def run(self, handler: Handler) -> None:
        """
        Main consumer loop.

        Args:
            handler: Async function turning a request body into a reply
        """
        await self.setup()
        self._running = True

        logger.info(f"Consumer {self._consumer} starting...")

        while self._running:
            try:
                request = await self.dequeue()

                if request:
                    try:
                        await self.process(request, handler)
                    except Exception as e:
                        # Left pending in the group for another consumer
                        logger.error(f"Error processing request {request.request_id}: {e}")

            except asyncio.CancelledError:
                logger.info("Consumer cancelled")
                break
            except Exception as e:
                logger.error(f"Consumer error: {e}")
                await asyncio.sleep(1)

        logger.info(f"Consumer {self._consumer} stopped")

    def stop(self) -> None:
        """Stop the consumer loop."""
        self._running = False
