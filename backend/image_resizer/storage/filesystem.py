"""Local filesystem storage provider."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from image_resizer.errors import NotFoundError, ProtocolError, StorageIOError
from image_resizer.models import ImageFile, Locator

logger = logging.getLogger(__name__)


class FileSystemFileAccess:
    """
    Stores files under a base directory.

    ``file:///a/b.png`` maps to ``<base_path>/a/b.png``. Blocking file calls
    run in a worker thread so the event loop never waits on the disk.
    """

    scheme = "file"

    def __init__(self, base_path: str | Path):
        self._base = Path(base_path).resolve()

    @property
    def base_path(self) -> Path:
        return self._base

    def _resolve(self, path: str) -> Path:
        target = (self._base / path.lstrip("/")).resolve()
        if target == self._base or not target.is_relative_to(self._base):
            raise ProtocolError(f"Invalid path : {Locator(self.scheme, path)}")
        return target

    def check_path(self, path: str) -> None:
        self._resolve(path)

    async def read(self, path: str) -> ImageFile:
        target = self._resolve(path)
        try:
            data = await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            logger.error(f"Unable to read {target}: {e}")
            raise NotFoundError("Input file not found.") from e
        return ImageFile.from_path(data, target.name)

    async def write(self, path: str, file: ImageFile) -> str:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write_atomic, target, file.data)
        except OSError as e:
            logger.error(f"Unable to write {target}: {e}")
            raise StorageIOError("Error writing file.") from e
        logger.debug(f"Wrote {file.size} bytes to {target}")
        return str(Locator(self.scheme, path))

    @staticmethod
    def _write_atomic(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            # Drop the partial temp file
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    async def close(self) -> None:
        return None
