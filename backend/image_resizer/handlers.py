"""Single-destination handlers: resize, crop and compress."""

import logging
from typing import Any

from PIL import Image

from image_resizer.errors import ValidationError, ok_reply
from image_resizer.imaging import crop_image, decode, encode_for, resize_image
from image_resizer.models import ImageFile, ImageRequest
from image_resizer.storage import FileAccess, ProviderRegistry

logger = logging.getLogger(__name__)


def check_quality(quality: float | None, default: float | None = None) -> float:
    """Return a quality in (0, 1] or raise ValidationError."""
    if quality is None:
        if default is None:
            raise ValidationError("Invalid quality.")
        return default
    if not 0 < quality <= 1:
        raise ValidationError("Invalid quality.")
    return quality


class ImageHandlers:
    """
    Validate, read, transform, encode, write, reply.

    Every parameter check happens before the first storage call, so invalid
    requests never touch a backend.
    """

    def __init__(self, registry: ProviderRegistry, default_quality: float = 0.8):
        self._registry = registry
        self._default_quality = default_quality

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def default_quality(self) -> float:
        return self._default_quality

    def _endpoints(self, request: ImageRequest) -> tuple[FileAccess, str, FileAccess, str]:
        src, src_path = self._registry.resolve(request.src)
        dest, dest_path = self._registry.resolve(request.dest)
        return src, src_path, dest, dest_path

    async def resize(self, request: ImageRequest) -> dict[str, Any]:
        if request.width is None and request.height is None:
            raise ValidationError("Invalid size.")
        if (request.width is not None and request.width <= 0) or (
            request.height is not None and request.height <= 0
        ):
            raise ValidationError("Invalid size.")
        quality = check_quality(request.quality, self._default_quality)
        src, src_path, dest, dest_path = self._endpoints(request)

        source = await src.read(src_path)
        image = decode(source)
        resized = resize_image(image, request.width, request.height, request.stretch)
        return await self._persist(source, resized, dest, dest_path, quality)

    async def crop(self, request: ImageRequest) -> dict[str, Any]:
        if request.width is None or request.height is None:
            raise ValidationError("Invalid size.")
        if request.width <= 0 or request.height <= 0 or request.x < 0 or request.y < 0:
            raise ValidationError("Invalid size.")
        quality = check_quality(request.quality, self._default_quality)
        src, src_path, dest, dest_path = self._endpoints(request)

        source = await src.read(src_path)
        image = decode(source)
        cropped = crop_image(image, request.x, request.y, request.width, request.height)
        return await self._persist(source, cropped, dest, dest_path, quality)

    async def compress(self, request: ImageRequest) -> dict[str, Any]:
        quality = check_quality(request.quality)
        src, src_path, dest, dest_path = self._endpoints(request)

        source = await src.read(src_path)
        image = decode(source)
        return await self._persist(source, image, dest, dest_path, quality)

    async def _persist(
        self,
        source: ImageFile,
        image: Image.Image,
        dest: FileAccess,
        dest_path: str,
        quality: float,
    ) -> dict[str, Any]:
        output = encode_for(image, dest_path, source, quality)
        locator = await dest.write(dest_path, output)
        logger.info(f"Wrote {locator} ({output.size} bytes)")
        return ok_reply(output=locator, size=output.size)
