from __future__ import annotations

import asyncio
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from image_resizer.errors import StorageIOError
from image_resizer.models import ImageFile
from image_resizer.storage import FileSystemFileAccess, ProviderRegistry


def make_image_bytes(size: tuple[int, int], fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    mode = "RGBA" if fmt == "PNG" and len(color) == 4 else "RGB"
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def write_image(base: Path, name: str, size: tuple[int, int], fmt: str = "PNG") -> Path:
    path = base / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(make_image_bytes(size, fmt))
    return path


def image_size(path: Path) -> tuple[int, int]:
    with Image.open(path) as img:
        return img.size


class RecordingAccess:
    """Filesystem provider that records every storage call."""

    def __init__(self, inner: FileSystemFileAccess, scheme: str = "file"):
        self.inner = inner
        self.scheme = scheme
        self.reads: list[str] = []
        self.writes: list[str] = []
        self.closed = False

    def check_path(self, path: str) -> None:
        self.inner.check_path(path)

    async def read(self, path: str) -> ImageFile:
        self.reads.append(path)
        return await self.inner.read(path)

    async def write(self, path: str, file: ImageFile) -> str:
        self.writes.append(path)
        locator = await self.inner.write(path, file)
        return locator.replace("file://", f"{self.scheme}://", 1)

    async def close(self) -> None:
        self.closed = True


class FailingWriteAccess:
    """Provider whose writes always fail, after an optional delay."""

    scheme = "broken"

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.writes: list[str] = []

    def check_path(self, path: str) -> None:
        return None

    async def read(self, path: str) -> ImageFile:
        raise StorageIOError("Error writing file.")

    async def write(self, path: str, file: ImageFile) -> str:
        self.writes.append(path)
        await asyncio.sleep(self.delay)
        raise StorageIOError("Error writing file.")

    async def close(self) -> None:
        return None


@pytest.fixture
def recording(tmp_path: Path) -> RecordingAccess:
    return RecordingAccess(FileSystemFileAccess(tmp_path))


@pytest.fixture
def registry(recording: RecordingAccess) -> ProviderRegistry:
    return ProviderRegistry({"file": recording})
