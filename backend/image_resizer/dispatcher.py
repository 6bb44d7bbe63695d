"""Routes request messages to their handler and builds the reply."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from image_resizer.errors import ResizerError, error_reply
from image_resizer.fanout import ResizeMultipleOrchestrator
from image_resizer.handlers import ImageHandlers
from image_resizer.models import ImageRequest
from image_resizer.storage import ProviderRegistry

logger = logging.getLogger(__name__)

Route = Callable[[ImageRequest], Awaitable[dict[str, Any]]]


class Dispatcher:
    """
    Request boundary of the service.

    Every outcome, including unexpected exceptions, leaves as a reply dict;
    nothing raised by a handler escapes ``dispatch``.
    """

    def __init__(self, registry: ProviderRegistry, default_quality: float = 0.8):
        handlers = ImageHandlers(registry, default_quality)
        orchestrator = ResizeMultipleOrchestrator(handlers)
        self._routes: dict[str, Route] = {
            "resize": handlers.resize,
            "crop": handlers.crop,
            "compress": handlers.compress,
            "resizeMultiple": orchestrator.resize_multiple,
        }

    async def dispatch(self, body: Any) -> dict[str, Any]:
        action = body.get("action") if isinstance(body, dict) else None
        route = self._routes.get(action) if isinstance(action, str) else None
        if route is None:
            return error_reply("Invalid or missing action")

        try:
            request = ImageRequest.from_message(body)
            return await route(request)
        except ResizerError as e:
            logger.info(f"{action} rejected: {e.code} - {e.message}")
            return e.to_reply()
        except Exception as e:
            logger.exception(f"Unexpected error handling {action}: {e}")
            return error_reply("Error processing image.")
