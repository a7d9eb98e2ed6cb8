"""
Forward normalizer and inverse denormalizer

normalize_annotations_for_storage() maps stage-pixel geometry into fractions
of the effective image size; denormalize_annotations_for_display() maps it
back into whatever stage is currently shown. Both are pure.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from surveymark import config
from .errors import MalformedAnnotation
from .models import (
    COLLECTIONS,
    DisplayAnnotations,
    MalformedCallback,
    StoredAnnotations,
    AnnotationSet,
    report_malformed,
)
from .transform import NormalizationContext, is_quarter_turn

logger = logging.getLogger(__name__)


def map_annotations(
    annotations: AnnotationSet,
    convert: Callable[[Any], Any],
    on_malformed: Optional[MalformedCallback],
) -> Dict[str, List[Any]]:
    """Apply convert to every annotation, dropping and reporting the malformed ones"""
    mapped: Dict[str, List[Any]] = {}
    for name in COLLECTIONS:
        items = []
        for annotation in getattr(annotations, name):
            try:
                items.append(convert(annotation))
            except MalformedAnnotation as e:
                report_malformed(e, name, on_malformed)
        mapped[name] = items
    return mapped


def normalize_annotations_for_storage(
    display: DisplayAnnotations,
    ctx: NormalizationContext,
    on_malformed: Optional[MalformedCallback] = None,
) -> StoredAnnotations:
    """
    Convert display-space annotations into the durable encoding

    Every point becomes a fraction of the effective image size; sizes and
    scalar lengths (stroke width, font size) are divided by the same
    per-axis scale, after unset lengths take the pixel defaults. The stage
    size, natural image size and the fit used are recorded on the result.

    Args:
        display: Annotations in the pixel space of ctx's stage
        ctx: Context built from the image and stage the annotations were drawn on
        on_malformed: Called for every annotation dropped because of bad geometry

    Returns:
        StoredAnnotations stamped with the current normalized version
    """
    mapped = map_annotations(
        display,
        lambda a: a.with_default_lengths().transformed(
            ctx.stage_to_normalized, ctx.size_to_normalized, ctx.length_to_normalized
        ),
        on_malformed,
    )

    rotation = display.image_render_transform.image_rotation if display.image_render_transform else 0
    natural_width = display.image_natural_width
    natural_height = display.image_natural_height
    if natural_width is None or natural_height is None:
        if is_quarter_turn(rotation):
            natural_width, natural_height = ctx.effective_image_height, ctx.effective_image_width
        else:
            natural_width, natural_height = ctx.effective_image_width, ctx.effective_image_height

    return StoredAnnotations(
        stage_width=ctx.stage_width,
        stage_height=ctx.stage_height,
        image_natural_width=natural_width,
        image_natural_height=natural_height,
        image_render_transform=ctx.render_transform(rotation),
        normalized_version=config.NORMALIZED_COORD_VERSION,
        image_normalized_version=display.image_normalized_version,
        **mapped,
    )


def denormalize_annotations_for_display(
    stored: StoredAnnotations,
    ctx: NormalizationContext,
    on_malformed: Optional[MalformedCallback] = None,
    rotation: Optional[int] = None,
) -> DisplayAnnotations:
    """
    Convert stored annotations into the pixel space of the current stage

    ctx must be built from the image about to be shown and the current
    stage size; a context from before an image swap or resize yields
    misplaced geometry. Stroke widths and font sizes missing from the
    stored form come back as the pixel defaults.

    Args:
        stored: Annotations at the current normalized version
        ctx: Context for the image and stage now on screen
        on_malformed: Called for every annotation dropped because of bad geometry
        rotation: Orientation now on screen (defaults to the recorded one)

    Returns:
        DisplayAnnotations in ctx's stage pixels
    """
    if stored.normalized_version != config.NORMALIZED_COORD_VERSION:
        logger.warning(
            f"Denormalizing annotations at version {stored.normalized_version}, "
            f"expected {config.NORMALIZED_COORD_VERSION}; migrate them first"
        )

    mapped = map_annotations(
        stored,
        lambda a: a.transformed(
            ctx.normalized_to_stage, ctx.size_to_stage, ctx.length_to_stage
        ).with_default_lengths(),
        on_malformed,
    )

    if rotation is None:
        rotation = stored.image_render_transform.image_rotation if stored.image_render_transform else 0
    return DisplayAnnotations(
        stage_width=ctx.stage_width,
        stage_height=ctx.stage_height,
        image_natural_width=stored.image_natural_width,
        image_natural_height=stored.image_natural_height,
        image_render_transform=ctx.render_transform(rotation),
        image_normalized_version=stored.image_normalized_version,
        **mapped,
    )
