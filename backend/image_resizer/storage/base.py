"""Storage provider interface."""

from typing import Protocol, runtime_checkable

from image_resizer.models import ImageFile


@runtime_checkable
class FileAccess(Protocol):
    """
    Read/write/close capability of one storage backend.

    Paths are the part of a locator after ``scheme://`` and are opaque to
    everything but the provider itself.
    """

    scheme: str

    def check_path(self, path: str) -> None:
        """Raise ProtocolError if the provider can never address this path."""
        ...

    async def read(self, path: str) -> ImageFile:
        """Return the stored file, or raise NotFoundError."""
        ...

    async def write(self, path: str, file: ImageFile) -> str:
        """Persist the file and return its locator, or raise StorageIOError."""
        ...

    async def close(self) -> None:
        """Release connections held by the provider."""
        ...
