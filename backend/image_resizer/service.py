"""Service lifecycle: storage registry, bus connection and consumers."""

import asyncio
import logging

from image_resizer.bus import RedisClient, RequestConsumer
from image_resizer.config import Settings
from image_resizer.dispatcher import Dispatcher
from image_resizer.storage import ProviderRegistry, build_registry

logger = logging.getLogger(__name__)


class ImageResizerService:
    """Owns the registry and the consumers for one worker process."""

    def __init__(self, settings: Settings, num_workers: int = 1):
        self.settings = settings
        self.num_workers = num_workers
        self.registry: ProviderRegistry | None = None
        self.redis: RedisClient | None = None
        self.consumers: list[RequestConsumer] = []
        self.tasks: list[asyncio.Task] = []

    async def start(self) -> None:
        """Build storage, then start listening; returns once consumers run."""
        logger.info(f"Starting {self.settings.app_name}...")

        # Swift authentication completes inside build_registry, so the
        # service only starts listening once every backend has settled.
        self.registry = await build_registry(self.settings)
        dispatcher = Dispatcher(self.registry, self.settings.default_quality)

        self.redis = RedisClient(self.settings)
        await self.redis.connect()

        for i in range(self.num_workers):
            consumer = RequestConsumer(
                redis=self.redis.client,
                address=self.settings.address,
                consumer_group=self.settings.consumer_group,
                consumer_name=f"worker-{i}",
                reply_ttl_seconds=self.settings.reply_ttl_seconds,
                block_ms=self.settings.block_ms,
            )
            self.consumers.append(consumer)
            self.tasks.append(asyncio.create_task(consumer.run(dispatcher.dispatch)))

        logger.info(f"Image resizer starts on address: {self.settings.address}")

    async def wait(self) -> None:
        """Wait for the consumers to finish."""
        try:
            await asyncio.gather(*self.tasks)
        except asyncio.CancelledError:
            logger.info("Workers cancelled")

    def request_stop(self) -> None:
        """Ask every consumer to stop; safe to call from a signal handler."""
        for consumer in self.consumers:
            consumer.stop()

        for task in self.tasks:
            task.cancel()

    async def stop(self) -> None:
        """Stop consumers, then close every provider and the bus."""
        logger.info("Stopping workers...")
        self.request_stop()

        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()

        if self.registry is not None:
            await self.registry.close()
            self.registry = None

        if self.redis is not None:
            await self.redis.disconnect()
            self.redis = None

        logger.info("All workers stopped")
