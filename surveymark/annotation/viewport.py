"""
Viewport pointer math for pan and zoom

The stage is drawn at screen position center_offset + pan_offset, scaled
by the zoom factor:

    screen = center_offset + pan_offset + image * scale
"""
from dataclasses import dataclass
from typing import Tuple

from surveymark import config


@dataclass(frozen=True)
class Vec2:
    """2D offset or position"""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Size:
    """2D extent"""
    width: float
    height: float


ZERO = Vec2(0.0, 0.0)


def screen_to_image(
    screen_x: float,
    screen_y: float,
    center_offset: Vec2,
    pan_offset: Vec2,
    scale: float,
) -> Tuple[float, float]:
    """Convert a screen position to stage (image) coordinates"""
    return (
        (screen_x - center_offset.x - pan_offset.x) / scale,
        (screen_y - center_offset.y - pan_offset.y) / scale,
    )


def image_to_screen(
    image_x: float,
    image_y: float,
    center_offset: Vec2,
    pan_offset: Vec2,
    scale: float,
) -> Tuple[float, float]:
    """Convert stage (image) coordinates to a screen position"""
    return (
        center_offset.x + pan_offset.x + image_x * scale,
        center_offset.y + pan_offset.y + image_y * scale,
    )


def compute_center_offset(stage_size: Size, viewport_size: Size, scale: float) -> Vec2:
    """Offset that centres the scaled stage on any axis where it fits in the viewport"""
    return Vec2(
        max(0.0, (viewport_size.width - stage_size.width * scale) / 2),
        max(0.0, (viewport_size.height - stage_size.height * scale) / 2),
    )


def _clamp_axis(pan: float, scaled: float, viewport: float) -> float:
    if scaled > viewport:
        return max(-(scaled - viewport), min(0.0, pan))
    return 0.0


def clamp_pan(pan: Vec2, scale: float, stage_size: Size, viewport_size: Size) -> Vec2:
    """
    Keep panning within the content

    On an axis where the scaled stage overflows the viewport, the pan is
    limited so no empty margin shows past the content edge; on an axis
    where it fits, the pan is zero so the content stays centred.
    """
    return Vec2(
        _clamp_axis(pan.x, stage_size.width * scale, viewport_size.width),
        _clamp_axis(pan.y, stage_size.height * scale, viewport_size.height),
    )


def zoom_to_point(
    pointer: Vec2,
    current_scale: float,
    new_scale: float,
    stage_size: Size,
    viewport_size: Size,
    current_pan: Vec2,
) -> Vec2:
    """
    Pan offset that keeps the point under the pointer fixed through a zoom

    Args:
        pointer: Pointer position relative to the viewport
        current_scale: Scale before the zoom
        new_scale: Scale after the zoom
        stage_size: Unscaled stage size
        viewport_size: Viewport size
        current_pan: Pan offset before the zoom

    Returns:
        The new, clamped pan offset
    """
    center = compute_center_offset(stage_size, viewport_size, current_scale)
    image_x, image_y = screen_to_image(pointer.x, pointer.y, center, current_pan, current_scale)

    new_center = compute_center_offset(stage_size, viewport_size, new_scale)
    pan = Vec2(
        pointer.x - new_center.x - image_x * new_scale,
        pointer.y - new_center.y - image_y * new_scale,
    )
    return clamp_pan(pan, new_scale, stage_size, viewport_size)


def next_wheel_scale(scale: float, delta_y: float) -> float:
    """Ctrl+wheel zoom step: scrolling down zooms out"""
    step = -config.WHEEL_ZOOM_STEP if delta_y > 0 else config.WHEEL_ZOOM_STEP
    return min(config.MAX_ZOOM, max(config.MIN_ZOOM, scale + step))


def next_double_tap_scale(scale: float) -> float:
    """Double-tap zooms in by steps and resets to 1 once zoomed far enough"""
    if scale >= config.DOUBLE_TAP_RESET_SCALE:
        return 1.0
    return min(config.MAX_ZOOM, scale + config.DOUBLE_TAP_ZOOM_STEP)
