from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import image_size, write_image
from image_resizer import service as service_module
from image_resizer.bus import RequestProducer
from image_resizer.config import Settings
from image_resizer.service import ImageResizerService
from test_bus import FakeRedis


class FakeRedisClient:
    instances: list[FakeRedisClient] = []

    def __init__(self, settings: Settings):
        self.client = FakeRedis()
        self.connected = False
        FakeRedisClient.instances.append(self)

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch):
    FakeRedisClient.instances = []
    monkeypatch.setattr(service_module, "RedisClient", FakeRedisClient)
    return FakeRedisClient


def test_service_serves_requests_until_stopped(tmp_path: Path, fake_redis) -> None:
    write_image(tmp_path, "a.png", (90, 60))
    settings = Settings(base_path=str(tmp_path), address="test.resizer")
    service = ImageResizerService(settings, num_workers=2)

    async def scenario():
        await service.start()
        redis = fake_redis.instances[0]
        producer = RequestProducer(redis.client, address="test.resizer")
        request_id = await producer.enqueue(
            {"action": "resize", "src": "file:///a.png", "dest": "file:///b.png", "width": 30}
        )
        reply = None
        for _ in range(500):
            reply = await producer.wait_reply(request_id, timeout=0)
            if reply is not None:
                break
            await asyncio.sleep(0.005)
        await service.stop()
        return redis, reply

    redis, reply = asyncio.run(scenario())
    assert reply is not None and reply["status"] == "ok"
    assert image_size(tmp_path / "b.png") == (30, 20)
    assert not redis.connected
    assert service.registry is None and service.tasks == []
    assert [c.name for c in service.consumers] == ["worker-0", "worker-1"]
