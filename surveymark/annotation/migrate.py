"""
Legacy annotation migration

Persisted payloads move through named schema states, one conversion per
transition:

    UNVERSIONED  --sanitize-->  LEGACY_V1  --normalize-->  CURRENT
    LEGACY_V2  --normalize lengths-->  CURRENT

UNVERSIONED payloads predate any version tag. LEGACY_V1 payloads have
presentation keys stripped and sane font sizes but still carry geometry
in the stage pixels they were drawn in. LEGACY_V2 payloads have
image-relative points and sizes, but stroke widths and font sizes in
stage pixels. CURRENT payloads hold fully image-relative geometry and
are returned unchanged.
"""
from dataclasses import replace
from enum import Enum
import logging
from typing import Callable, Dict, Optional, Tuple

from surveymark import config
from .errors import CannotMigrate
from .models import DisplayAnnotations, MalformedCallback, StoredAnnotations
from .normalize import map_annotations, normalize_annotations_for_storage
from .transform import (
    NormalizationContext,
    build_context_for_image,
    build_normalization_context,
    context_from_render_transform,
    effective_image_size,
)

logger = logging.getLogger(__name__)


class SchemaState(str, Enum):
    """Named revisions of the persisted geometry encoding"""
    UNVERSIONED = "unversioned"
    LEGACY_V1 = "legacy_v1"
    LEGACY_V2 = "legacy_v2"
    CURRENT = "current"


def classify(data: StoredAnnotations) -> SchemaState:
    """Determine which schema state a parsed payload is in"""
    version = data.normalized_version
    if not version or version < config.LEGACY_SANITIZED_VERSION:
        return SchemaState.UNVERSIONED
    if version < config.PIXEL_LENGTHS_VERSION:
        return SchemaState.LEGACY_V1
    if version < config.NORMALIZED_COORD_VERSION:
        return SchemaState.LEGACY_V2
    if version > config.NORMALIZED_COORD_VERSION:
        logger.warning(
            f"Annotation payload has version {version}, newer than "
            f"{config.NORMALIZED_COORD_VERSION}; treating it as current"
        )
    return SchemaState.CURRENT


def needs_migration(data: StoredAnnotations) -> bool:
    return classify(data) is not SchemaState.CURRENT


def _legal_font_size(font_size: Optional[float]) -> Optional[float]:
    if font_size is None or font_size >= config.MIN_LEGACY_FONT_SIZE:
        return font_size
    return config.DEFAULT_FONT_SIZE


def _sanitize_unversioned(
    data: StoredAnnotations,
    hint: Optional[NormalizationContext],
    on_malformed: Optional[MalformedCallback],
) -> StoredAnnotations:
    # Presentation-only keys were already discarded when the payload was parsed
    return replace(
        data,
        texts=[replace(t, font_size=_legal_font_size(t.font_size)) for t in data.texts],
        dimensions=[replace(d, font_size=_legal_font_size(d.font_size)) for d in data.dimensions],
        normalized_version=config.LEGACY_SANITIZED_VERSION,
    )


def _positive_pair(a: Optional[float], b: Optional[float]) -> Optional[Tuple[float, float]]:
    if a and b and a > 0 and b > 0:
        return a, b
    return None


def legacy_context(
    data: StoredAnnotations,
    hint: Optional[NormalizationContext] = None,
) -> NormalizationContext:
    """
    Best-effort context for stage-pixel geometry in a legacy payload

    Tried in order: the recorded render transform with the natural size,
    the recorded stage size with the natural size, the recorded stage size
    with the hint's image size, and finally the hint itself.

    Raises:
        CannotMigrate: If neither recorded dimensions nor a hint are available
    """
    transform = data.image_render_transform
    rotation = transform.image_rotation if transform else 0
    natural = _positive_pair(data.image_natural_width, data.image_natural_height)
    stage = _positive_pair(data.stage_width, data.stage_height)

    if transform is not None and natural is not None:
        effective_width, effective_height = effective_image_size(*natural, rotation)
        if stage is None:
            stage = (
                transform.image_x * 2 + effective_width * transform.image_scale,
                transform.image_y * 2 + effective_height * transform.image_scale,
            )
        return context_from_render_transform(effective_width, effective_height, *stage, transform)

    if stage is not None and natural is not None:
        return build_context_for_image(*natural, rotation, *stage)

    if stage is not None and hint is not None:
        return build_normalization_context(
            hint.effective_image_width, hint.effective_image_height, *stage
        )

    if hint is not None:
        return hint

    raise CannotMigrate(
        "Legacy annotations record neither stage nor image dimensions and no context hint was given"
    )


def _normalize_legacy_v1(
    data: StoredAnnotations,
    hint: Optional[NormalizationContext],
    on_malformed: Optional[MalformedCallback],
) -> StoredAnnotations:
    ctx = legacy_context(data, hint)
    display = DisplayAnnotations(
        lines=data.lines,
        rects=data.rects,
        arrows=data.arrows,
        texts=data.texts,
        dimensions=data.dimensions,
        stage_width=ctx.stage_width,
        stage_height=ctx.stage_height,
        image_natural_width=data.image_natural_width,
        image_natural_height=data.image_natural_height,
        image_render_transform=data.image_render_transform,
        image_normalized_version=data.image_normalized_version,
    )
    return normalize_annotations_for_storage(display, ctx, on_malformed=on_malformed)


def _same_point(x: float, y: float) -> Tuple[float, float]:
    return x, y


def _normalize_legacy_v2_lengths(
    data: StoredAnnotations,
    hint: Optional[NormalizationContext],
    on_malformed: Optional[MalformedCallback],
) -> StoredAnnotations:
    # Points and sizes are already image-relative; only the pixel lengths change
    ctx = legacy_context(data, hint)
    mapped = map_annotations(
        data,
        lambda a: a.transformed(_same_point, _same_point, ctx.length_to_normalized),
        on_malformed,
    )
    return replace(
        data,
        stage_width=ctx.stage_width,
        stage_height=ctx.stage_height,
        image_render_transform=data.image_render_transform or ctx.render_transform(),
        normalized_version=config.NORMALIZED_COORD_VERSION,
        **mapped,
    )


Transition = Callable[
    [StoredAnnotations, Optional[NormalizationContext], Optional[MalformedCallback]],
    StoredAnnotations,
]

TRANSITIONS: Dict[SchemaState, Tuple[SchemaState, Transition]] = {
    SchemaState.UNVERSIONED: (SchemaState.LEGACY_V1, _sanitize_unversioned),
    SchemaState.LEGACY_V1: (SchemaState.CURRENT, _normalize_legacy_v1),
    SchemaState.LEGACY_V2: (SchemaState.CURRENT, _normalize_legacy_v2_lengths),
}


def migrate_legacy_annotations(
    data: StoredAnnotations,
    hint: Optional[NormalizationContext] = None,
    on_malformed: Optional[MalformedCallback] = None,
) -> StoredAnnotations:
    """
    Bring a parsed payload up to the current schema

    Current payloads are returned as-is, so running this twice is a no-op.

    Args:
        data: Parsed payload in any schema state
        hint: Context for the image being shown, used when the payload
            lacks recorded dimensions
        on_malformed: Called for every annotation dropped during conversion

    Returns:
        StoredAnnotations at the current normalized version

    Raises:
        CannotMigrate: If legacy geometry has no usable context; the caller
            should treat the annotation set as empty
    """
    state = classify(data)
    while state is not SchemaState.CURRENT:
        next_state, convert = TRANSITIONS[state]
        logger.info(f"Migrating annotations: {state.value} -> {next_state.value}")
        data = convert(data, hint, on_malformed)
        state = next_state
    return data
