"""
Shared pytest fixtures for annotation tests
"""
import pytest

from surveymark.annotation import (
    ArrowAnnotation,
    DimensionAnnotation,
    DisplayAnnotations,
    LineAnnotation,
    RectAnnotation,
    TextAnnotation,
    build_normalization_context,
)
from surveymark.annotation.text_metrics import TextExtent, TextMeasurer


class FixedWidthMeasurer(TextMeasurer):
    """Deterministic measurer: each character is 0.6 em wide, each line 1 em tall"""

    def measure(self, text, font_size, bold=False):
        if not text:
            return TextExtent(0.0, 0.0)
        lines = text.split("\n")
        return TextExtent(max(len(line) for line in lines) * 0.6 * font_size, font_size * len(lines))


@pytest.fixture
def measurer():
    return FixedWidthMeasurer()


@pytest.fixture
def ctx_small():
    """1000x500 image in an 800x600 stage: scale 0.8, letterboxed 100px top and bottom"""
    return build_normalization_context(1000, 500, 800, 600)


@pytest.fixture
def ctx_large():
    """Same image in a 1600x1200 stage: exactly twice ctx_small"""
    return build_normalization_context(1000, 500, 1600, 1200)


@pytest.fixture
def sample_line():
    return LineAnnotation(id="line1", points=[100.0, 150.0, 300.0, 250.0], color="#00ff00", stroke_width=4)


@pytest.fixture
def sample_rect():
    return RectAnnotation(id="rect1", x=50.0, y=120.0, width=200.0, height=-80.0, stroke_width=3)


@pytest.fixture
def sample_arrow():
    return ArrowAnnotation(id="arrow1", points=[400.0, 300.0, 600.0, 450.0], stroke_width=5)


@pytest.fixture
def sample_text():
    return TextAnnotation(id="text1", x=220.0, y=180.0, text="Water damage", font_size=24)


@pytest.fixture
def sample_dimension():
    return DimensionAnnotation(
        id="dim1",
        points=[100.0, 400.0, 700.0, 400.0],
        value="12.5",
        unit="ft",
        stroke_width=4,
        font_size=20,
        comment="North wall",
    )


@pytest.fixture
def sample_display(sample_line, sample_rect, sample_arrow, sample_text, sample_dimension):
    """One annotation of every kind, in ctx_small's stage pixels"""
    return DisplayAnnotations(
        lines=[sample_line],
        rects=[sample_rect],
        arrows=[sample_arrow],
        texts=[sample_text],
        dimensions=[sample_dimension],
        stage_width=800,
        stage_height=600,
        image_natural_width=1000,
        image_natural_height=500,
    )


@pytest.fixture
def legacy_payload():
    """Payload written before versioning: stage-pixel geometry plus presentation keys"""
    return {
        "lines": [{"id": "l1", "type": "line", "points": [100, 150, 300, 250], "color": "#ff0000", "strokeWidth": 4}],
        "rects": [{"id": "r1", "type": "rect", "x": 50, "y": 120, "width": 200, "height": 80}],
        "arrows": [],
        "texts": [{
            "id": "t1", "type": "text", "x": 220, "y": 180, "text": "Crack",
            "color": "#000000", "fontSize": 0.02, "backgroundColor": "#ffffff", "padding": 4,
        }],
        "dimensions": [{
            "id": "d1", "type": "dimension", "points": [100, 400, 700, 400],
            "value": "3", "unit": "m", "color": "#ef4444", "strokeWidth": 4, "fontSize": 20,
            "labelBackground": "#ffffff", "labelPadding": 2,
        }],
        "stageWidth": 800,
        "stageHeight": 600,
        "imageNaturalWidth": 1000,
        "imageNaturalHeight": 500,
    }


@pytest.fixture
def pixel_lengths_payload():
    """Version 2 payload: image-relative points with stroke widths and font sizes in stage pixels"""
    return {
        "lines": [{"id": "l1", "type": "line", "points": [0.125, 0.125, 0.375, 0.375], "strokeWidth": 4}],
        "rects": [{"id": "r1", "type": "rect", "x": 0.1, "y": 0.2, "width": 0.25, "height": 0.3}],
        "arrows": [],
        "texts": [{"id": "t1", "type": "text", "x": 0.5, "y": 0.5, "text": "Crack", "fontSize": 20}],
        "dimensions": [{
            "id": "d1", "type": "dimension", "points": [0.1, 0.6, 0.7, 0.6],
            "value": "3", "unit": "m", "strokeWidth": 4, "fontSize": 20,
        }],
        "stageWidth": 800,
        "stageHeight": 600,
        "imageNaturalWidth": 1000,
        "imageNaturalHeight": 500,
        "normalizedVersion": 2,
    }
