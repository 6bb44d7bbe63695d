"""Resize engine and codecs."""

from image_resizer.imaging.codec import EncodedImage, decode, encode, encode_for, select_format
from image_resizer.imaging.geometry import (
    ResizePlan,
    apply_plan,
    crop_box,
    crop_image,
    plan_resize,
    resize_image,
)

__all__ = [
    "EncodedImage",
    "ResizePlan",
    "apply_plan",
    "crop_box",
    "crop_image",
    "decode",
    "encode",
    "encode_for",
    "plan_resize",
    "resize_image",
    "select_format",
]
