"""Resize and crop geometry.

The planning functions are pure: they only look at sizes, so the policy
can be checked without touching pixels. ``apply_plan`` and ``crop_image``
carry a plan out with Pillow, always resampling with Lanczos.
"""

from dataclasses import dataclass

from PIL import Image

from image_resizer.errors import ValidationError

RESAMPLE = Image.Resampling.LANCZOS

Box = tuple[int, int, int, int]


@dataclass(frozen=True)
class ResizePlan:
    """Scale to ``scale`` then, if set, crop to ``crop`` (left, top, right, bottom)."""

    scale: tuple[int, int]
    crop: Box | None = None

    @property
    def output_size(self) -> tuple[int, int]:
        if self.crop is None:
            return self.scale
        left, top, right, bottom = self.crop
        return right - left, bottom - top


def _fit_to_width(src_width: int, src_height: int, width: int) -> tuple[int, int]:
    return width, max(1, round(width * src_height / src_width))


def _fit_to_height(src_width: int, src_height: int, height: int) -> tuple[int, int]:
    return max(1, round(height * src_width / src_height)), height


def plan_resize(
    src_width: int,
    src_height: int,
    width: int | None,
    height: int | None,
    stretch: bool = False,
) -> ResizePlan:
    """
    Compute the steps turning a source size into the requested size.

    Args:
        src_width: Source width in pixels
        src_height: Source height in pixels
        width: Requested width, or None to derive it
        height: Requested height, or None to derive it
        stretch: Ignore the source aspect ratio when both are given

    Returns:
        ResizePlan whose output_size is exactly (width, height) when both
        are given

    Raises:
        ValidationError: If neither dimension is given or one is not positive
    """
    if width is None and height is None:
        raise ValidationError("Invalid size.")
    if (width is not None and width <= 0) or (height is not None and height <= 0):
        raise ValidationError("Invalid size.")
    if src_width <= 0 or src_height <= 0:
        raise ValidationError("Invalid size.")

    if width is not None and height is not None:
        if stretch:
            return ResizePlan(scale=(width, height))

        # Fit the axis that leaves the other one at least as large as
        # requested, then center-crop the overflow.
        if src_height / height < src_width / width:
            scaled = _fit_to_height(src_width, src_height, height)
        else:
            scaled = _fit_to_width(src_width, src_height, width)
        scaled = (max(scaled[0], width), max(scaled[1], height))
        x = (scaled[0] - width) // 2
        y = (scaled[1] - height) // 2
        return ResizePlan(scale=scaled, crop=(x, y, x + width, y + height))

    if height is not None:
        return ResizePlan(scale=_fit_to_height(src_width, src_height, height))
    return ResizePlan(scale=_fit_to_width(src_width, src_height, width))


def crop_box(
    src_width: int,
    src_height: int,
    x: int,
    y: int,
    width: int | None,
    height: int | None,
) -> Box:
    """Validate a crop rectangle against the source and return its box."""
    if width is None or height is None or width <= 0 or height <= 0 or x < 0 or y < 0:
        raise ValidationError("Invalid size.")
    if src_width < x + width or src_height < y + height:
        raise ValidationError("Source image too small for crop")
    return x, y, x + width, y + height


def apply_plan(image: Image.Image, plan: ResizePlan) -> Image.Image:
    """Return a new image; ``image`` itself is left untouched."""
    resized = image.resize(plan.scale, RESAMPLE)
    if plan.crop is not None:
        resized = resized.crop(plan.crop)
    return resized


def resize_image(
    image: Image.Image,
    width: int | None,
    height: int | None,
    stretch: bool = False,
) -> Image.Image:
    plan = plan_resize(image.width, image.height, width, height, stretch)
    return apply_plan(image, plan)


def crop_image(
    image: Image.Image,
    x: int,
    y: int,
    width: int | None,
    height: int | None,
) -> Image.Image:
    return image.crop(crop_box(image.width, image.height, x, y, width, height))
