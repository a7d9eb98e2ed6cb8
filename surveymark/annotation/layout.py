"""
Dimension label layout

Places a dimension's label (and optional comment) beside the measured
line, on the side given by the caller's cached preference unless that
side runs off the stage. Keeping the previous side until it truly fails
stops the label from flipping back and forth while an endpoint is dragged.
"""
from dataclasses import dataclass
import math
from typing import Dict, NamedTuple, Optional, Tuple

from surveymark.config import DEFAULT_LAYOUT, LayoutConfig
from .text_metrics import TextExtent, TextMeasurer, default_measurer

Point = Tuple[float, float]


@dataclass(frozen=True)
class StageBounds:
    """Stage extent; valid positions run from (0, 0) to (width, height)"""
    width: float
    height: float


@dataclass(frozen=True)
class DimensionLayoutResult:
    """Where to draw each part of a dimension annotation"""
    label_x: float
    label_y: float
    label_width: float
    label_height: float
    comment_x: float
    comment_y: float
    comment_width: float
    comment_height: float
    arrow_length: float
    arrow_width: float
    cap_radius: float
    used_side_sign: int

    def to_dict(self) -> Dict[str, float]:
        return {
            "labelX": self.label_x,
            "labelY": self.label_y,
            "labelWidth": self.label_width,
            "labelHeight": self.label_height,
            "commentX": self.comment_x,
            "commentY": self.comment_y,
            "commentWidth": self.comment_width,
            "commentHeight": self.comment_height,
            "arrowLength": self.arrow_length,
            "arrowWidth": self.arrow_width,
            "capRadius": self.cap_radius,
            "usedSideSign": self.used_side_sign,
        }


@dataclass(frozen=True)
class DimensionMetrics:
    """Stroke-dependent sizes of arrowheads and end caps"""
    arrow_length: float
    arrow_width: float
    cap_radius: float


def _clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def dimension_metrics(stroke_width: float) -> DimensionMetrics:
    """Arrowhead and cap sizes grow with stroke width, with floors so thin lines stay visible"""
    return DimensionMetrics(
        arrow_length=_clamp(stroke_width * 3, 10, 28),
        arrow_width=_clamp(stroke_width * 2, 6, 20),
        cap_radius=_clamp(stroke_width * 1.5, 6, 18),
    )


def segment_intersects_rect(
    p1: Point,
    p2: Point,
    rx: float,
    ry: float,
    rw: float,
    rh: float,
) -> bool:
    """Liang-Barsky test: does segment p1-p2 touch the rectangle?"""
    x1, y1 = p1
    dx = p2[0] - x1
    dy = p2[1] - y1
    t0, t1 = 0.0, 1.0
    for p, q in (
        (-dx, x1 - rx),
        (dx, rx + rw - x1),
        (-dy, y1 - ry),
        (dy, ry + rh - y1),
    ):
        if p == 0:
            if q < 0:
                return False
            continue
        t = q / p
        if p < 0:
            t0 = max(t0, t)
        else:
            t1 = min(t1, t)
        if t0 > t1:
            return False
    return True


def _overflow(rx: float, ry: float, rw: float, rh: float, bounds: StageBounds, tolerance: float) -> float:
    """Total distance the rectangle spills past the stage (beyond the tolerance)"""
    return (
        max(0.0, -tolerance - rx)
        + max(0.0, -tolerance - ry)
        + max(0.0, rx + rw - bounds.width - tolerance)
        + max(0.0, ry + rh - bounds.height - tolerance)
    )


class _Placement(NamedTuple):
    fits: bool
    cx: float
    cy: float
    overflow: float


def compute_dimension_layout(
    p1: Point,
    p2: Point,
    stroke_width: float,
    font_size: float,
    label_text: str,
    comment_text: Optional[str],
    stage_bounds: StageBounds,
    preferred_side_sign: Optional[int] = None,
    measurer: Optional[TextMeasurer] = None,
    layout: LayoutConfig = DEFAULT_LAYOUT,
) -> DimensionLayoutResult:
    """
    Lay out a dimension's label, comment, arrowheads and end caps

    The label is centred on the line's midpoint, pushed out along the
    perpendicular until it clears the line. The preferred side is kept
    if the label fits there; otherwise the opposite side is tried, and
    if neither fits the side with less overflow is used and the label is
    clamped inside the stage.

    Args:
        p1: First endpoint in stage pixels
        p2: Second endpoint in stage pixels
        stroke_width: Line stroke width
        font_size: Label font size
        label_text: Label, e.g. "12.5 ft"
        comment_text: Optional comment drawn under the label
        stage_bounds: Stage size
        preferred_side_sign: Side used last time for this annotation (+1/-1),
            or None for a new annotation
        measurer: Text measurer (defaults to the Pillow-backed one)
        layout: Layout metrics

    Returns:
        DimensionLayoutResult; used_side_sign should be cached for the next call
    """
    measurer = measurer or default_measurer()
    if preferred_side_sign is None:
        preferred_side_sign = layout.default_side_sign
    preferred = 1 if preferred_side_sign >= 0 else -1

    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    length = max(1e-6, math.hypot(dx, dy))
    ux, uy = dx / length, dy / length
    mx, my = (p1[0] + p2[0]) / 2, (p1[1] + p2[1]) / 2

    label = measurer.measure(label_text, font_size, bold=True)
    comment = (
        measurer.measure(comment_text, max(1.0, font_size - layout.comment_font_delta))
        if comment_text else TextExtent(0.0, 0.0)
    )
    metrics = dimension_metrics(stroke_width)

    comment_gap = max(6.0, font_size * 0.35) if comment_text else 0.0
    block_width = max(label.width, comment.width)
    block_height = label.height + (comment_gap + comment.height if comment_text else 0.0)
    pad = layout.bbox_padding

    base_offset = (
        max(8.0, stroke_width * 2 + font_size * 0.4)
        + block_height / 2
        + stroke_width / 2
        + 4
    )
    push_increment = max(6.0, stroke_width)

    def block_rect(cx: float, cy: float) -> Tuple[float, float, float, float]:
        return (
            cx - block_width / 2 - pad,
            cy - block_height / 2 - pad,
            block_width + pad * 2,
            block_height + pad * 2,
        )

    def try_side(sign: int) -> _Placement:
        nx, ny = -uy * sign, ux * sign
        offset = base_offset
        for _ in range(layout.max_push_iterations):
            cx, cy = mx + nx * offset, my + ny * offset
            rect = block_rect(cx, cy)
            overflow = _overflow(*rect, stage_bounds, layout.bounds_tolerance)
            if overflow > 0:
                return _Placement(False, cx, cy, overflow)
            if not segment_intersects_rect(p1, p2, *rect):
                return _Placement(True, cx, cy, 0.0)
            offset += push_increment
        cx, cy = mx + nx * offset, my + ny * offset
        rect = block_rect(cx, cy)
        overflow = _overflow(*rect, stage_bounds, layout.bounds_tolerance)
        fits = overflow == 0 and not segment_intersects_rect(p1, p2, *rect)
        return _Placement(fits, cx, cy, overflow)

    used = preferred
    placement = try_side(preferred)
    if not placement.fits:
        flipped = try_side(-preferred)
        if flipped.fits or flipped.overflow < placement.overflow:
            placement, used = flipped, -preferred
        if not placement.fits:
            placement = _clamp_into_stage(placement, block_width, block_height, pad, stage_bounds)

    label_x = placement.cx - label.width / 2
    label_y = placement.cy - block_height / 2
    return DimensionLayoutResult(
        label_x=label_x,
        label_y=label_y,
        label_width=label.width,
        label_height=label.height,
        comment_x=placement.cx - comment.width / 2,
        comment_y=label_y + label.height + comment_gap,
        comment_width=comment.width,
        comment_height=comment.height,
        arrow_length=metrics.arrow_length,
        arrow_width=metrics.arrow_width,
        cap_radius=metrics.cap_radius,
        used_side_sign=used,
    )


def _clamp_into_stage(
    placement: _Placement,
    block_width: float,
    block_height: float,
    pad: float,
    bounds: StageBounds,
) -> _Placement:
    half_w = block_width / 2 + pad
    half_h = block_height / 2 + pad
    # A block larger than the stage is centred on that axis
    cx = bounds.width / 2 if half_w * 2 > bounds.width else _clamp(placement.cx, half_w, bounds.width - half_w)
    cy = bounds.height / 2 if half_h * 2 > bounds.height else _clamp(placement.cy, half_h, bounds.height - half_h)
    return placement._replace(cx=cx, cy=cy)
