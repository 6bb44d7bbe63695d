"""resizeMultiple: one read, N concurrent resize-and-write tasks, one reply."""

import asyncio
import logging
from typing import Any

from PIL import Image
from pydantic import ValidationError as PydanticValidationError

from image_resizer.errors import ResizerError, ValidationError, error_reply, ok_reply
from image_resizer.handlers import ImageHandlers, check_quality
from image_resizer.imaging import decode, encode_for, resize_image
from image_resizer.models import DestinationSpec, ImageFile, ImageRequest

logger = logging.getLogger(__name__)


class CompletionLatch:
    """
    Counts destination outcomes down to zero and releases exactly once.

    Every task reports one terminal outcome through ``count_down``; a
    successful one also carries its result key and locator. The latch runs on
    the event loop thread, so decrement-and-test cannot interleave.
    """

    def __init__(self, count: int):
        if count <= 0:
            raise ValueError("CompletionLatch needs a positive count")
        self._remaining = count
        self._outputs: dict[str, str] = {}
        self._released: asyncio.Future[dict[str, str]] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def released(self) -> bool:
        return self._released.done()

    def count_down(self, key: str | None = None, locator: str | None = None) -> bool:
        """Record one outcome. Returns True for the call that released the latch."""
        if self._remaining == 0:
            raise RuntimeError("CompletionLatch counted down past zero")
        if key is not None and locator and locator.strip():
            self._outputs[key] = locator
        self._remaining -= 1
        if self._remaining == 0:
            self._released.set_result(dict(self._outputs))
            return True
        return False

    async def wait(self) -> dict[str, str]:
        """Wait for all outcomes; returns the successful ones by key."""
        return await asyncio.shield(self._released)


class ResizeMultipleOrchestrator:
    """Fans one decoded source out to every destination of a request."""

    def __init__(self, handlers: ImageHandlers):
        self._handlers = handlers
        self._registry = handlers.registry

    async def resize_multiple(self, request: ImageRequest) -> dict[str, Any]:
        destinations = request.destinations
        if not destinations:
            raise ValidationError("Invalid outputs files.")
        quality = check_quality(request.quality, self._handlers.default_quality)
        src, src_path = self._registry.resolve(request.src)

        source = await src.read(src_path)
        # Decoded once, before the latch exists; tasks only read these pixels.
        image = decode(source)

        latch = CompletionLatch(len(destinations))
        tasks = [
            asyncio.create_task(self._run_destination(latch, source, image, raw, quality))
            for raw in destinations
        ]
        outputs = await latch.wait()
        await asyncio.gather(*tasks)

        if outputs:
            return ok_reply(outputs=outputs)
        return error_reply("Unable to resize image.")

    async def _run_destination(
        self,
        latch: CompletionLatch,
        source: ImageFile,
        image: Image.Image,
        raw: Any,
        quality: float,
    ) -> None:
        key: str | None = None
        locator: str | None = None
        try:
            spec = self._parse(raw)
            if spec is not None:
                key = spec.key
                locator = await self._write_destination(spec, source, image, quality)
        except ResizerError as e:
            logger.warning(f"Destination {raw!r} failed: {e.message}")
        except Exception as e:
            logger.exception(f"Destination {raw!r} failed: {e}")
        finally:
            latch.count_down(key, locator)

    @staticmethod
    def _parse(raw: Any) -> DestinationSpec | None:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping destination {raw!r}: not an object")
            return None
        try:
            spec = DestinationSpec.model_validate(raw)
        except PydanticValidationError:
            logger.warning(f"Skipping destination {raw!r}: invalid fields")
            return None
        if spec.width is None and spec.height is None:
            logger.warning(f"Skipping destination {raw!r}: no size")
            return None
        return spec

    async def _write_destination(
        self,
        spec: DestinationSpec,
        source: ImageFile,
        image: Image.Image,
        quality: float,
    ) -> str:
        dest, dest_path = self._registry.resolve(spec.dest)
        resized = resize_image(image, spec.width, spec.height, spec.stretch)
        output = encode_for(resized, dest_path, source, quality)
        return await dest.write(dest_path, output)
