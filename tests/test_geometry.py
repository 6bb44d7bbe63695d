from __future__ import annotations

import pytest
from PIL import Image

from image_resizer.errors import ValidationError
from image_resizer.imaging import crop_box, crop_image, plan_resize, resize_image


@pytest.mark.parametrize(
    "src, target",
    [
        ((200, 200), (100, 50)),
        ((200, 200), (50, 100)),
        ((640, 480), (100, 100)),
        ((480, 640), (120, 30)),
        ((33, 997), (17, 5)),
        ((10, 10), (40, 25)),
    ],
)
def test_aspect_fit_output_is_exact(src, target) -> None:
    plan = plan_resize(*src, *target, stretch=False)
    assert plan.output_size == target
    left, top, right, bottom = plan.crop
    assert left >= 0 and top >= 0
    assert right <= plan.scale[0] and bottom <= plan.scale[1]


def test_aspect_fit_picks_height_when_source_is_wider() -> None:
    plan = plan_resize(400, 100, 50, 50)
    # Fit to height: 50 high, 200 wide, then center crop 75px each side
    assert plan.scale == (200, 50)
    assert plan.crop == (75, 0, 125, 50)


def test_aspect_fit_picks_width_when_source_is_taller() -> None:
    plan = plan_resize(100, 400, 50, 50)
    assert plan.scale == (50, 200)
    assert plan.crop == (0, 75, 50, 125)


def test_stretch_ignores_aspect_ratio() -> None:
    plan = plan_resize(640, 480, 10, 300, stretch=True)
    assert plan.scale == (10, 300)
    assert plan.crop is None
    assert plan.output_size == (10, 300)


def test_width_only_preserves_aspect_ratio() -> None:
    assert plan_resize(640, 480, 320, None).output_size == (320, 240)
    assert plan_resize(300, 100, 100, None).output_size == (100, 33)


def test_height_only_preserves_aspect_ratio() -> None:
    assert plan_resize(640, 480, None, 120).output_size == (160, 120)


def test_single_dimension_never_collapses_to_zero() -> None:
    assert plan_resize(1000, 1, 10, None).output_size == (10, 1)


def test_missing_both_dimensions_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        plan_resize(100, 100, None, None)
    assert exc.value.message == "Invalid size."


def test_non_positive_dimension_is_rejected() -> None:
    with pytest.raises(ValidationError):
        plan_resize(100, 100, 0, 10)


def test_crop_box_within_bounds() -> None:
    assert crop_box(100, 80, 10, 20, 90, 60) == (10, 20, 100, 80)


@pytest.mark.parametrize("x, y, width, height", [(0, 0, 10, 10), (1, 0, 5, 5), (0, 1, 5, 5)])
def test_crop_box_outside_source_is_rejected(x, y, width, height) -> None:
    with pytest.raises(ValidationError) as exc:
        crop_box(5, 5, x, y, width, height)
    assert exc.value.message == "Source image too small for crop"


def test_resize_image_produces_planned_size() -> None:
    source = Image.new("RGB", (200, 200), (0, 128, 255))
    resized = resize_image(source, 100, 50)
    assert resized.size == (100, 50)
    assert source.size == (200, 200)


def test_crop_image_extracts_region() -> None:
    source = Image.new("RGB", (20, 20), (0, 0, 0))
    source.putpixel((5, 6), (255, 255, 255))
    cropped = crop_image(source, 5, 6, 3, 3)
    assert cropped.size == (3, 3)
    assert cropped.getpixel((0, 0)) == (255, 255, 255)
