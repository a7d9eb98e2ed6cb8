"""
Annotation Service

Geometry core for photo annotations: data models, coordinate
normalization, legacy migration, dimension label layout and viewport math.

Usage:
    from surveymark.annotation import (
        StoredAnnotations, build_context_for_image,
        migrate_legacy_annotations, denormalize_annotations_for_display,
        normalize_annotations_for_storage,
    )

    # Load: parse, migrate, then map into the stage on screen
    ctx = build_context_for_image(4032, 3024, rotation=90, stage_width=800, stage_height=600)
    stored = migrate_legacy_annotations(StoredAnnotations.from_dict(payload), hint=ctx)
    display = denormalize_annotations_for_display(stored, ctx)

    # Save: rebuild the context for the current stage, then normalize
    stored = normalize_annotations_for_storage(display, ctx)
    payload = stored.to_dict()

    # Per-session state (label sides, pan/zoom) and the load/save flow
    from surveymark.annotation import AnnotationSession
    session = AnnotationSession()
    display = session.load(payload, 4032, 3024, 90, 800, 600)
"""
from .errors import CannotMigrate, InvalidDimensions, MalformedAnnotation
from .models import (
    AnnotationSet,
    ArrowAnnotation,
    DimensionAnnotation,
    DisplayAnnotations,
    ImageRenderTransform,
    LineAnnotation,
    RectAnnotation,
    StoredAnnotations,
    TextAnnotation,
)
from .transform import (
    ContainTransform,
    NormalizationContext,
    build_context_for_image,
    build_normalization_context,
    compute_contain_transform,
    effective_image_size,
)
from .normalize import denormalize_annotations_for_display, normalize_annotations_for_storage
from .migrate import SchemaState, classify, migrate_legacy_annotations
from .text_metrics import PillowTextMeasurer, TextExtent, TextMeasurer
from .layout import DimensionLayoutResult, StageBounds, compute_dimension_layout
from .viewport import Size, Vec2, image_to_screen, screen_to_image, zoom_to_point
from .extractor import extract_annotation_summary
from .session import AnnotationSession, ViewportState

__all__ = [
    "CannotMigrate",
    "InvalidDimensions",
    "MalformedAnnotation",
    "AnnotationSet",
    "ArrowAnnotation",
    "DimensionAnnotation",
    "DisplayAnnotations",
    "ImageRenderTransform",
    "LineAnnotation",
    "RectAnnotation",
    "StoredAnnotations",
    "TextAnnotation",
    "ContainTransform",
    "NormalizationContext",
    "build_context_for_image",
    "build_normalization_context",
    "compute_contain_transform",
    "effective_image_size",
    "denormalize_annotations_for_display",
    "normalize_annotations_for_storage",
    "SchemaState",
    "classify",
    "migrate_legacy_annotations",
    "PillowTextMeasurer",
    "TextExtent",
    "TextMeasurer",
    "DimensionLayoutResult",
    "StageBounds",
    "compute_dimension_layout",
    "Size",
    "Vec2",
    "image_to_screen",
    "screen_to_image",
    "zoom_to_point",
    "extract_annotation_summary",
    "AnnotationSession",
    "ViewportState",
]
