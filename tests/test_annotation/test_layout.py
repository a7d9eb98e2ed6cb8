"""
Tests for dimension label layout
"""
import pytest

from surveymark.annotation import (
    PillowTextMeasurer,
    StageBounds,
    compute_dimension_layout,
)
from surveymark.annotation.layout import dimension_metrics, segment_intersects_rect
from surveymark.config import LayoutConfig


class TestDimensionMetrics:
    """Tests for stroke-dependent arrowhead and cap sizes"""

    @pytest.mark.parametrize("stroke,expected", [
        (1, (10, 6, 6)),
        (4, (12, 8, 6)),
        (8, (24, 16, 12)),
        (20, (28, 20, 18)),
    ])
    def test_clamped_sizes(self, stroke, expected):
        """Test sizes scale with stroke width within their bounds"""
        metrics = dimension_metrics(stroke)

        assert (metrics.arrow_length, metrics.arrow_width, metrics.cap_radius) == pytest.approx(expected)


class TestSegmentIntersectsRect:
    """Tests for the segment/rectangle test"""

    def test_crossing(self):
        """Test a segment passing through the rectangle"""
        assert segment_intersects_rect((0, 5), (20, 5), 5, 0, 10, 10)

    def test_inside(self):
        """Test a segment wholly inside the rectangle"""
        assert segment_intersects_rect((6, 4), (8, 6), 5, 0, 10, 10)

    def test_outside(self):
        """Test a segment clear of the rectangle"""
        assert not segment_intersects_rect((0, 20), (20, 20), 5, 0, 10, 10)

    def test_stops_short(self):
        """Test a segment ending before the rectangle"""
        assert not segment_intersects_rect((0, 5), (4, 5), 5, 0, 10, 10)

    def test_diagonal_miss(self):
        """Test a diagonal passing beside a corner"""
        assert not segment_intersects_rect((0, 8), (8, 20), 5, 0, 10, 10)


class TestComputeDimensionLayout:
    """Tests for compute_dimension_layout"""

    def test_default_side_for_new_annotation(self, measurer):
        """Test a new dimension uses the configured default side"""
        result = compute_dimension_layout(
            (100, 100), (300, 100), 4, 20, "12 ft", None, StageBounds(400, 300), measurer=measurer
        )

        assert result.used_side_sign == 1
        assert result.label_y > 100

    def test_preferred_side_kept_when_it_fits(self, measurer):
        """Test a label does not flip while its cached side still fits"""
        for side in (1, -1):
            result = compute_dimension_layout(
                (100, 100), (300, 100), 4, 20, "12 ft", None, StageBounds(400, 300),
                preferred_side_sign=side, measurer=measurer,
            )
            assert result.used_side_sign == side

    def test_side_stable_while_dragging(self, measurer):
        """Test feeding the used side back in keeps it through a 1px drag"""
        bounds = StageBounds(400, 300)
        first = compute_dimension_layout(
            (100, 100), (300, 100), 4, 20, "12 ft", None, bounds, preferred_side_sign=-1, measurer=measurer
        )
        second = compute_dimension_layout(
            (101, 101), (301, 101), 4, 20, "12 ft", None, bounds,
            preferred_side_sign=first.used_side_sign, measurer=measurer,
        )

        assert first.used_side_sign == second.used_side_sign == -1

    def test_label_centred_on_midpoint(self, measurer):
        """Test a horizontal line puts the label right above or below its midpoint"""
        result = compute_dimension_layout(
            (100, 100), (300, 100), 4, 20, "12 ft", None, StageBounds(400, 300),
            preferred_side_sign=-1, measurer=measurer,
        )

        assert result.label_x + result.label_width / 2 == pytest.approx(200)
        assert result.label_width == pytest.approx(60)
        assert result.label_height == pytest.approx(20)
        # base offset max(8, 8 + 8) + 10 + 2 + 4 = 32 above the line
        assert result.label_y == pytest.approx(100 - 32 - 10)

    def test_forced_flip_at_top_edge(self, measurer):
        """Test a label that would leave the stage flips to the other side"""
        result = compute_dimension_layout(
            (100, 5), (300, 5), 4, 20, "12 ft", None, StageBounds(400, 300),
            preferred_side_sign=-1, measurer=measurer,
        )

        assert result.used_side_sign == 1
        assert result.label_y > 5

    def test_neither_side_fits(self, measurer):
        """Test the side with less overflow is used and the label clamped inside"""
        result = compute_dimension_layout(
            (10, 15), (90, 15), 4, 20, "5 m", None, StageBounds(100, 50),
            preferred_side_sign=-1, measurer=measurer,
        )

        assert result.used_side_sign == 1
        assert result.label_y == pytest.approx(22)
        assert result.label_x == pytest.approx(32)

    def test_block_larger_than_stage_is_centred(self, measurer):
        """Test an oversized label is centred rather than clamped to one edge"""
        result = compute_dimension_layout(
            (10, 10), (40, 10), 4, 20, "a very long measurement", None, StageBounds(50, 30),
            measurer=measurer,
        )

        assert result.label_x + result.label_width / 2 == pytest.approx(25)

    def test_label_clears_diagonal_line(self, measurer):
        """Test the label is pushed outward until it no longer touches the line"""
        p1, p2 = (100, 100), (500, 400)
        result = compute_dimension_layout(
            p1, p2, 4, 20, "12.5 ft", "North wall", StageBounds(800, 600), measurer=measurer
        )

        assert result.used_side_sign == 1
        assert not segment_intersects_rect(p1, p2, result.label_x, result.label_y, result.label_width, result.label_height)
        assert not segment_intersects_rect(
            p1, p2, result.comment_x, result.comment_y, result.comment_width, result.comment_height
        )

    def test_comment_below_label(self, measurer):
        """Test the comment sits under the label, centred, in a smaller font"""
        result = compute_dimension_layout(
            (100, 300), (700, 300), 4, 20, "12.5 ft", "North wall", StageBounds(800, 600), measurer=measurer
        )

        assert result.comment_height == pytest.approx(18)
        assert result.comment_y == pytest.approx(result.label_y + result.label_height + 7)
        assert result.comment_x + result.comment_width / 2 == pytest.approx(result.label_x + result.label_width / 2)

    def test_no_comment(self, measurer):
        """Test an absent comment has no extent"""
        result = compute_dimension_layout(
            (100, 300), (700, 300), 4, 20, "12.5 ft", None, StageBounds(800, 600), measurer=measurer
        )

        assert result.comment_width == 0
        assert result.comment_height == 0

    def test_zero_length_line(self, measurer):
        """Test a degenerate line still produces a layout"""
        result = compute_dimension_layout(
            (200, 200), (200, 200), 4, 20, "0", None, StageBounds(400, 400), measurer=measurer
        )

        assert result.used_side_sign in (1, -1)

    def test_layout_config_default_side(self, measurer):
        """Test the configured default side applies to new dimensions"""
        result = compute_dimension_layout(
            (100, 100), (300, 100), 4, 20, "12 ft", None, StageBounds(400, 300),
            measurer=measurer, layout=LayoutConfig(default_side_sign=-1),
        )

        assert result.used_side_sign == -1

    def test_metrics_in_result(self, measurer):
        """Test arrowhead and cap sizes are reported with the layout"""
        result = compute_dimension_layout(
            (100, 100), (300, 100), 8, 20, "12 ft", None, StageBounds(400, 300), measurer=measurer
        )

        assert (result.arrow_length, result.arrow_width, result.cap_radius) == (24, 16, 12)

    def test_to_dict(self, measurer):
        """Test layout results serialize with camelCase keys"""
        data = compute_dimension_layout(
            (100, 100), (300, 100), 4, 20, "12 ft", None, StageBounds(400, 300), measurer=measurer
        ).to_dict()

        assert data["usedSideSign"] == 1
        assert set(data) >= {"labelX", "labelY", "commentX", "commentY", "arrowLength", "capRadius"}


class TestPillowTextMeasurer:
    """Tests for the Pillow-backed measurer"""

    def test_measure(self):
        """Test real font metrics are positive and grow with the text"""
        measurer = PillowTextMeasurer()
        short = measurer.measure("5 m", 20)
        long = measurer.measure("12.5 ft long", 20)

        assert short.width > 0
        assert long.width > short.width
        assert short.height == 20

    def test_multiline_and_empty(self):
        """Test multiline text stacks lines and empty text has no width"""
        measurer = PillowTextMeasurer()

        assert measurer.measure("a\nb", 20).height == 40
        assert measurer.measure("", 20).width == 0

    def test_layout_with_default_measurer(self):
        """Test layout works with the shared Pillow measurer"""
        result = compute_dimension_layout((100, 100), (300, 100), 4, 20, "12 ft", None, StageBounds(400, 300))

        assert result.label_width > 0
        assert result.used_side_sign == 1
