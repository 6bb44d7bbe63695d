"""Redis Streams transport for requests and replies."""

from image_resizer.bus.client import RedisClient
from image_resizer.bus.keys import BusKeys
from image_resizer.bus.queue import QueuedImageRequest, RequestConsumer, RequestProducer

__all__ = [
    "BusKeys",
    "QueuedImageRequest",
    "RedisClient",
    "RequestConsumer",
    "RequestProducer",
]
