"""Image decoding and encoding.

The output codec follows the destination extension, so ``b.png`` is written
as PNG even when the source was a JPEG. Unknown extensions fall back to JPEG.
"""

import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from image_resizer.errors import StorageIOError
from image_resizer.models import ImageFile, get_extension

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "JPEG"

# Codecs with an explicit quality knob
QUALITY_FORMATS = {"JPEG", "WEBP"}

# Modes each codec writes as-is; anything else becomes RGB, or RGBA when the
# image carries transparency and the codec keeps it
SUPPORTED_MODES = {
    "JPEG": {"1", "L", "RGB", "CMYK"},
    "WEBP": {"RGB", "RGBA"},
    "PNG": {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"},
    "GIF": {"1", "L", "P", "RGB", "RGBA"},
    "BMP": {"1", "L", "P", "RGB", "RGBA"},
    "TIFF": {"1", "L", "LA", "I", "I;16", "F", "P", "RGB", "RGBA", "CMYK"},
}

MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}


@dataclass(frozen=True)
class EncodedImage:
    """Encoder output."""

    data: bytes
    format: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


def decode(file: ImageFile) -> Image.Image:
    """Decode stored bytes into a fully loaded Pillow image."""
    try:
        with Image.open(BytesIO(file.data)) as img:
            img.load()
            # load() keeps pixels; copy() detaches them from the closed stream
            return img.copy()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"Unable to decode {file.filename}: {e}")
        raise StorageIOError("Error processing image.") from e


def format_for_extension(extension: str) -> str | None:
    """Return the Pillow save format registered for an extension."""
    if not extension:
        return None
    fmt = Image.registered_extensions().get(f".{extension.lower()}")
    if fmt is None or fmt not in Image.SAVE:
        return None
    return fmt


def select_format(dest_name: str | None, src_name: str | None = None) -> str:
    """Pick the codec from the destination name, then the source name."""
    for name in (dest_name, src_name):
        fmt = format_for_extension(get_extension(name))
        if fmt is not None:
            return fmt
    return DEFAULT_FORMAT


def _prepare(image: Image.Image, fmt: str) -> Image.Image:
    modes = SUPPORTED_MODES.get(fmt)
    if modes is None or image.mode in modes:
        return image

    has_alpha = image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info
    if not has_alpha:
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    if "RGBA" in modes:
        return rgba
    # Flatten transparency onto white
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.split()[3])
    return background


def encode(image: Image.Image, fmt: str, quality: float) -> EncodedImage:
    """
    Serialize an image with the given codec.

    Args:
        image: Pixels to write
        fmt: Pillow format name (see select_format)
        quality: 0 < quality <= 1, used only by codecs that support it

    Returns:
        EncodedImage with the bytes and their content type

    Raises:
        StorageIOError: If the codec fails
    """
    save_kwargs = {}
    if fmt in QUALITY_FORMATS:
        save_kwargs["quality"] = min(100, max(1, round(quality * 100)))

    try:
        prepared = _prepare(image, fmt)
        with BytesIO() as output:
            prepared.save(output, format=fmt, **save_kwargs)
            data = output.getvalue()
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Unable to encode image as {fmt}: {e}")
        raise StorageIOError("Error processing image.") from e

    content_type = MIME_TYPES.get(fmt) or Image.MIME.get(fmt, "application/octet-stream")
    return EncodedImage(data=data, format=fmt, content_type=content_type)


def encode_for(
    image: Image.Image,
    dest_path: str,
    source: ImageFile,
    quality: float,
) -> ImageFile:
    """Encode for a destination path and wrap the result as an ImageFile."""
    fmt = select_format(dest_path, source.filename)
    logger.debug(f"Original file name : {source.filename}")
    logger.debug(f"Original file extension : {source.extension}")
    encoded = encode(image, fmt, quality)
    logger.debug(f"Destination : {dest_path} ({encoded.format}, {encoded.size} bytes)")
    return ImageFile.from_path(encoded.data, dest_path or source.filename, encoded.content_type)
