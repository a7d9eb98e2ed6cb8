"""
Contain-fit and normalization context

A NormalizationContext describes how an image of a given effective
(rotation-corrected) size is letterboxed into a stage, and converts
between stage pixels and image-relative fractions.
"""
from dataclasses import dataclass
import logging
import math
from typing import Tuple

from .errors import InvalidDimensions
from .models import ImageRenderTransform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainTransform:
    """Scale and offset that fit content inside a viewport, like object-fit: contain"""
    scale: float
    x: float
    y: float


def _check_positive(**sizes: float) -> None:
    bad = {
        name: value for name, value in sizes.items()
        if value is None or not math.isfinite(value) or value <= 0
    }
    if bad:
        logger.debug(f"Rejecting non-positive dimensions: {bad}")
        details = ", ".join(f"{name}={value!r}" for name, value in bad.items())
        raise InvalidDimensions(f"Dimensions must be positive and finite: {details}")


def compute_contain_transform(
    content_width: float,
    content_height: float,
    viewport_width: float,
    viewport_height: float,
) -> ContainTransform:
    """
    Letterbox-fit content into a viewport preserving aspect ratio

    Args:
        content_width: Content width (the post-rotation image width)
        content_height: Content height
        viewport_width: Viewport width
        viewport_height: Viewport height

    Returns:
        ContainTransform with the scale and the centering offsets

    Raises:
        InvalidDimensions: If any size is zero, negative or non-finite
    """
    _check_positive(
        content_width=content_width,
        content_height=content_height,
        viewport_width=viewport_width,
        viewport_height=viewport_height,
    )
    scale = min(viewport_width / content_width, viewport_height / content_height)
    x = (viewport_width - content_width * scale) / 2
    y = (viewport_height - content_height * scale) / 2
    return ContainTransform(scale=scale, x=x, y=y)


def is_quarter_turn(rotation: float) -> bool:
    """True for 90 and 270 degree orientations"""
    return int(rotation) % 180 == 90


def effective_image_size(natural_width: float, natural_height: float, rotation: float = 0) -> Tuple[float, float]:
    """Natural size with width and height swapped for 90/270 degree orientations"""
    if is_quarter_turn(rotation):
        return natural_height, natural_width
    return natural_width, natural_height


@dataclass(frozen=True)
class NormalizationContext:
    """
    Affine mapping between stage pixels and image-relative fractions

    Built only from effective image size and stage size; two contexts
    with equal inputs compare equal and are interchangeable.
    """
    effective_image_width: float
    effective_image_height: float
    stage_width: float
    stage_height: float
    fit: ContainTransform

    @property
    def image_scale(self) -> float:
        return self.fit.scale

    @property
    def image_x(self) -> float:
        return self.fit.x

    @property
    def image_y(self) -> float:
        return self.fit.y

    def stage_to_normalized(self, x: float, y: float) -> Tuple[float, float]:
        """Stage pixel -> fraction of the effective image size"""
        image_x = (x - self.fit.x) / self.fit.scale
        image_y = (y - self.fit.y) / self.fit.scale
        return image_x / self.effective_image_width, image_y / self.effective_image_height

    def normalized_to_stage(self, x: float, y: float) -> Tuple[float, float]:
        """Fraction of the effective image size -> stage pixel"""
        image_x = x * self.effective_image_width
        image_y = y * self.effective_image_height
        return self.fit.x + image_x * self.fit.scale, self.fit.y + image_y * self.fit.scale

    def size_to_normalized(self, width: float, height: float) -> Tuple[float, float]:
        return (
            width / self.fit.scale / self.effective_image_width,
            height / self.fit.scale / self.effective_image_height,
        )

    def size_to_stage(self, width: float, height: float) -> Tuple[float, float]:
        return (
            width * self.effective_image_width * self.fit.scale,
            height * self.effective_image_height * self.fit.scale,
        )

    # Scalar lengths (stroke width, font size) are measured along the image width
    def length_to_normalized(self, length: float) -> float:
        return length / self.fit.scale / self.effective_image_width

    def length_to_stage(self, length: float) -> float:
        return length * self.effective_image_width * self.fit.scale

    def render_transform(self, rotation: int = 0) -> ImageRenderTransform:
        """The contain-fit of this context as a recordable ImageRenderTransform"""
        return ImageRenderTransform(
            image_scale=self.fit.scale,
            image_x=self.fit.x,
            image_y=self.fit.y,
            image_rotation=int(rotation) % 360,
        )


def build_normalization_context(
    effective_image_width: float,
    effective_image_height: float,
    stage_width: float,
    stage_height: float,
) -> NormalizationContext:
    """
    Build the context for an image shown in a stage

    Args:
        effective_image_width: Image width after rotation (see effective_image_size)
        effective_image_height: Image height after rotation
        stage_width: Stage width in pixels
        stage_height: Stage height in pixels

    Raises:
        InvalidDimensions: If any size is zero, negative or non-finite
    """
    fit = compute_contain_transform(effective_image_width, effective_image_height, stage_width, stage_height)
    return NormalizationContext(
        effective_image_width=float(effective_image_width),
        effective_image_height=float(effective_image_height),
        stage_width=float(stage_width),
        stage_height=float(stage_height),
        fit=fit,
    )


def build_context_for_image(
    natural_width: float,
    natural_height: float,
    rotation: float,
    stage_width: float,
    stage_height: float,
) -> NormalizationContext:
    """Build a context from the unrotated natural size and the display orientation"""
    effective_width, effective_height = effective_image_size(natural_width, natural_height, rotation)
    return build_normalization_context(effective_width, effective_height, stage_width, stage_height)


def context_from_render_transform(
    effective_image_width: float,
    effective_image_height: float,
    stage_width: float,
    stage_height: float,
    transform: ImageRenderTransform,
) -> NormalizationContext:
    """
    Rebuild a context from a recorded fit instead of re-deriving it

    Used for payloads whose encode-time transform was recorded, so geometry
    is mapped with exactly the fit that was on screen when it was drawn.
    """
    _check_positive(
        effective_image_width=effective_image_width,
        effective_image_height=effective_image_height,
        stage_width=stage_width,
        stage_height=stage_height,
        image_scale=transform.image_scale,
    )
    return NormalizationContext(
        effective_image_width=float(effective_image_width),
        effective_image_height=float(effective_image_height),
        stage_width=float(stage_width),
        stage_height=float(stage_height),
        fit=ContainTransform(scale=transform.image_scale, x=transform.image_x, y=transform.image_y),
    )
