from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from image_resizer.config import Settings
from image_resizer.storage import FileSystemFileAccess, PostgresFileAccess, build_registry
from test_swift import FakeSwift


def build(settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
    async def scenario():
        registry = await build_registry(settings, swift_transport=transport)
        schemes = registry.schemes
        await registry.close()
        return registry, schemes

    return asyncio.run(scenario())


def test_filesystem_is_always_registered(tmp_path: Path) -> None:
    registry, schemes = build(Settings(base_path=str(tmp_path)))
    assert schemes == ["file"]
    provider = registry.get("file")
    assert isinstance(provider, FileSystemFileAccess)
    assert provider.base_path == tmp_path.resolve()


def test_postgres_without_db_name_is_skipped(tmp_path: Path) -> None:
    _, schemes = build(Settings(base_path=str(tmp_path), postgres={"host": "db"}))
    assert schemes == ["file"]


def test_malformed_postgres_config_is_skipped(tmp_path: Path, caplog) -> None:
    settings = Settings(base_path=str(tmp_path), postgres={"db_name": "img", "port": "not-a-port"})
    _, schemes = build(settings)
    assert schemes == ["file"]
    assert "Invalid PostgreSQL configuration" in caplog.text


def test_unreachable_postgres_is_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def refuse(cls, settings):
        raise OSError("connection refused")

    monkeypatch.setattr(PostgresFileAccess, "connect", classmethod(refuse))
    _, schemes = build(Settings(base_path=str(tmp_path), postgres={"db_name": "img"}))
    assert schemes == ["file"]


def test_reachable_postgres_is_registered(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from test_postgres import FakePool

    seen = {}

    async def connect(cls, settings):
        seen["settings"] = settings
        return cls(FakePool(), settings.table)

    monkeypatch.setattr(PostgresFileAccess, "connect", classmethod(connect))
    _, schemes = build(
        Settings(base_path=str(tmp_path), postgres={"db_name": "img", "pool_size": 3})
    )
    assert schemes == ["file", "postgres"]
    assert seen["settings"].pool_size == 3
    assert seen["settings"].port == 5432


def test_swift_registered_after_handshake(tmp_path: Path) -> None:
    fake = FakeSwift()
    settings = Settings(
        base_path=str(tmp_path),
        swift={"uri": "http://swift.test", "user": "tester", "key": "secret"},
    )
    _, schemes = build(settings, httpx.MockTransport(fake.handler))
    assert schemes == ["file", "swift"]
    assert fake.tokens == 1


def test_swift_with_bad_credentials_is_skipped(tmp_path: Path, caplog) -> None:
    fake = FakeSwift()
    settings = Settings(
        base_path=str(tmp_path),
        swift={"uri": "http://swift.test", "user": "tester", "key": "wrong"},
    )
    _, schemes = build(settings, httpx.MockTransport(fake.handler))
    assert schemes == ["file"]
    assert "Swift authentication error" in caplog.text


def test_incomplete_swift_config_is_skipped(tmp_path: Path) -> None:
    fake = FakeSwift()
    settings = Settings(base_path=str(tmp_path), swift={"uri": "http://swift.test"})
    _, schemes = build(settings, httpx.MockTransport(fake.handler))
    assert schemes == ["file"]
    assert fake.requests == []
