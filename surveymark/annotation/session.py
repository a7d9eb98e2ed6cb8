"""
Editing session state

Holds the per-session state an editor keeps while a photo is open: the
side each dimension label was last drawn on, and the current pan/zoom.
Also wires the load and save paths (migrate -> denormalize, and
rebuild context -> normalize).
"""
from dataclasses import dataclass, field, replace
import logging
from typing import Dict, List, Optional

from surveymark.config import DEFAULT_LAYOUT, LayoutConfig
from .errors import CannotMigrate, MalformedAnnotation
from .layout import DimensionLayoutResult, StageBounds, compute_dimension_layout
from .migrate import migrate_legacy_annotations
from .models import DimensionAnnotation, DisplayAnnotations, RectAnnotation, StoredAnnotations
from .normalize import denormalize_annotations_for_display, normalize_annotations_for_storage
from .text_metrics import TextMeasurer
from .transform import build_context_for_image
from .viewport import ZERO, Size, Vec2, clamp_pan, next_double_tap_scale, next_wheel_scale, zoom_to_point

logger = logging.getLogger(__name__)


@dataclass
class ViewportState:
    """Zoom factor and pan offset of the stage inside its viewport"""
    scale: float = 1.0
    pan: Vec2 = ZERO

    def set_scale(self, scale: float) -> None:
        self.scale = scale
        if scale <= 1:
            self.pan = ZERO

    def zoom_to_point(self, pointer: Vec2, new_scale: float, stage_size: Size, viewport_size: Size) -> None:
        """Zoom keeping the stage point under the pointer in place"""
        self.pan = zoom_to_point(pointer, self.scale, new_scale, stage_size, viewport_size, self.pan)
        self.set_scale(new_scale)

    def wheel_zoom(self, pointer: Vec2, delta_y: float, stage_size: Size, viewport_size: Size) -> None:
        self.zoom_to_point(pointer, next_wheel_scale(self.scale, delta_y), stage_size, viewport_size)

    def double_tap_zoom(self, pointer: Vec2, stage_size: Size, viewport_size: Size) -> None:
        self.zoom_to_point(pointer, next_double_tap_scale(self.scale), stage_size, viewport_size)

    def pan_by(self, dx: float, dy: float, stage_size: Size, viewport_size: Size) -> None:
        """Drag-to-pan, clamped to the content"""
        self.pan = clamp_pan(Vec2(self.pan.x + dx, self.pan.y + dy), self.scale, stage_size, viewport_size)


@dataclass
class AnnotationSession:
    """
    State for one photo's editing session

    Attributes:
        side_signs: Last side (+1/-1) each dimension label was placed on
        viewport: Current pan/zoom
        issues: Malformed annotations dropped while loading or saving
        layout: Dimension layout metrics
        measurer: Optional text measurer for labels
    """
    side_signs: Dict[str, int] = field(default_factory=dict)
    viewport: ViewportState = field(default_factory=ViewportState)
    issues: List[MalformedAnnotation] = field(default_factory=list)
    layout: LayoutConfig = DEFAULT_LAYOUT
    measurer: Optional[TextMeasurer] = None

    def get_side_sign(self, annotation_id: str) -> Optional[int]:
        return self.side_signs.get(annotation_id)

    def set_side_sign(self, annotation_id: str, sign: int) -> None:
        self.side_signs[annotation_id] = 1 if sign >= 0 else -1

    def forget(self, annotation_id: str) -> None:
        """Drop cached state for a deleted annotation"""
        self.side_signs.pop(annotation_id, None)

    def layout_dimension(self, dimension: DimensionAnnotation, stage_bounds: StageBounds) -> DimensionLayoutResult:
        """Lay out a dimension using, then updating, its cached side"""
        dimension = dimension.with_default_lengths()
        p1, p2 = dimension.endpoints
        result = compute_dimension_layout(
            p1,
            p2,
            dimension.stroke_width,
            dimension.font_size,
            dimension.label_text,
            dimension.comment,
            stage_bounds,
            preferred_side_sign=self.get_side_sign(dimension.id),
            measurer=self.measurer,
            layout=self.layout,
        )
        self.set_side_sign(dimension.id, result.used_side_sign)
        return result

    def _record_issue(self, error: MalformedAnnotation) -> None:
        self.issues.append(error)

    def load(
        self,
        payload: Optional[dict],
        natural_width: float,
        natural_height: float,
        rotation: int,
        stage_width: float,
        stage_height: float,
    ) -> DisplayAnnotations:
        """
        Turn a persisted payload into annotations for the current stage

        Legacy payloads are migrated first. If migration has no usable
        context the session starts from an empty set.

        Raises:
            InvalidDimensions: If the image or stage is not sized yet
        """
        ctx = build_context_for_image(natural_width, natural_height, rotation, stage_width, stage_height)
        stored = StoredAnnotations.from_dict(payload, on_malformed=self._record_issue)
        try:
            stored = migrate_legacy_annotations(stored, hint=ctx, on_malformed=self._record_issue)
        except CannotMigrate as e:
            logger.warning(f"Discarding annotations that cannot be migrated: {e}")
            return DisplayAnnotations(
                stage_width=ctx.stage_width,
                stage_height=ctx.stage_height,
                image_natural_width=natural_width,
                image_natural_height=natural_height,
                image_render_transform=ctx.render_transform(rotation),
            )
        return denormalize_annotations_for_display(
            stored, ctx, on_malformed=self._record_issue, rotation=rotation
        )

    def prepare_for_save(
        self,
        display: DisplayAnnotations,
        natural_width: float,
        natural_height: float,
        rotation: int,
        stage_width: float,
        stage_height: float,
    ) -> StoredAnnotations:
        """
        Normalize the live annotations against the current image and stage

        The context is rebuilt on every call so a resize or image swap is
        never encoded with a stale fit.
        """
        ctx = build_context_for_image(natural_width, natural_height, rotation, stage_width, stage_height)
        display = replace(
            display,
            image_natural_width=natural_width,
            image_natural_height=natural_height,
            image_render_transform=ctx.render_transform(rotation),
        )
        return normalize_annotations_for_storage(display, ctx, on_malformed=self._record_issue)

    @staticmethod
    def commit_rect(rect: RectAnnotation) -> RectAnnotation:
        """Finish a rectangle drag: flip negative width/height to positive"""
        return rect.with_positive_size()
