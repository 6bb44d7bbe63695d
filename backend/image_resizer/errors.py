"""Error taxonomy and reply builders."""

from typing import Any


class ResizerError(Exception):
    """Base error for a request that cannot be completed."""

    code = "ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_reply(self) -> dict[str, Any]:
        return error_reply(self.message)


class ValidationError(ResizerError):
    """Malformed or missing request parameters. Raised before any I/O."""

    code = "VALIDATION_ERROR"


class ProtocolError(ResizerError):
    """Locator without a scheme, or with a scheme nobody registered."""

    code = "PROTOCOL_ERROR"


class NotFoundError(ResizerError):
    """Source could not be read."""

    code = "NOT_FOUND"


class StorageIOError(ResizerError):
    """Decode, encode or write failure."""

    code = "IO_ERROR"


class ConfigurationError(ResizerError):
    """Optional backend configuration is malformed or unusable."""

    code = "CONFIGURATION_ERROR"


def error_reply(message: str) -> dict[str, Any]:
    """Create standardized failure reply."""
    return {"status": "error", "message": message}


def ok_reply(**fields: Any) -> dict[str, Any]:
    """Create standardized success reply."""
    return {"status": "ok", **fields}
