"""Value types shared by storage, imaging and request handling."""

import mimetypes
import posixpath
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from image_resizer.errors import ProtocolError, ValidationError

SCHEME_DELIMITER = "://"


@dataclass(frozen=True)
class ImageFile:
    """Encoded image bytes as they live in a storage backend."""

    data: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return get_extension(self.filename)

    @classmethod
    def from_path(cls, data: bytes, path: str, content_type: str | None = None) -> "ImageFile":
        """Build an ImageFile named after the last segment of a storage path."""
        filename = posixpath.basename(path.rstrip("/")) or path
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return cls(data=data, filename=filename, content_type=content_type)


@dataclass(frozen=True)
class Locator:
    """A parsed ``scheme://path`` address."""

    scheme: str
    path: str

    @classmethod
    def parse(cls, value: str | None) -> "Locator":
        if not isinstance(value, str) or SCHEME_DELIMITER not in value:
            raise ProtocolError(f"Invalid path : {value}")
        scheme, path = value.split(SCHEME_DELIMITER, 1)
        return cls(scheme=scheme, path=path)

    def __str__(self) -> str:
        return f"{self.scheme}{SCHEME_DELIMITER}{self.path}"


def get_extension(filename: str | None) -> str:
    """Return the extension after the last dot, or an empty string."""
    if filename:
        idx = filename.rfind(".")
        if idx > 0 and len(filename) > idx + 1:
            return filename[idx + 1 :]
    return ""


class ImageRequest(BaseModel):
    """Incoming transform request, loosely typed as it arrives on the bus."""

    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    src: str | None = None
    dest: str | None = None
    destinations: list[Any] | None = None
    width: int | None = None
    height: int | None = None
    stretch: bool = False
    x: int = 0
    y: int = 0
    quality: float | None = None

    @classmethod
    def from_message(cls, body: Any) -> "ImageRequest":
        """Parse a message body, mapping field errors to reply messages."""
        if not isinstance(body, dict):
            raise ValidationError("Invalid request.")
        try:
            return cls.model_validate(body)
        except PydanticValidationError as e:
            fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            if "quality" in fields:
                raise ValidationError("Invalid quality.") from e
            if fields & {"width", "height", "x", "y"}:
                raise ValidationError("Invalid size.") from e
            if "destinations" in fields:
                raise ValidationError("Invalid outputs files.") from e
            raise ValidationError("Invalid request.") from e


class DestinationSpec(BaseModel):
    """One target of a resizeMultiple request."""

    model_config = ConfigDict(extra="ignore")

    width: int | None = None
    height: int | None = None
    stretch: bool = False
    dest: str | None = None

    @property
    def key(self) -> str:
        """Result map key, absent dimensions counting as 0."""
        return f"{self.width or 0}x{self.height or 0}"
