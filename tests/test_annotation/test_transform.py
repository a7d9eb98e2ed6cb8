"""
Tests for contain-fit and normalization contexts
"""
import math

import pytest

from surveymark.annotation import (
    ImageRenderTransform,
    InvalidDimensions,
    build_context_for_image,
    build_normalization_context,
    compute_contain_transform,
    effective_image_size,
)
from surveymark.annotation.transform import context_from_render_transform, is_quarter_turn


class TestComputeContainTransform:
    """Tests for compute_contain_transform"""

    def test_wide_content(self):
        """Test wide content is letterboxed top and bottom"""
        fit = compute_contain_transform(1000, 500, 400, 400)

        assert fit.scale == pytest.approx(0.4)
        assert fit.x == pytest.approx(0)
        assert fit.y == pytest.approx(100)

    def test_tall_content(self):
        """Test tall content is pillarboxed left and right"""
        fit = compute_contain_transform(500, 1000, 400, 400)

        assert fit.scale == pytest.approx(0.4)
        assert fit.x == pytest.approx(100)
        assert fit.y == pytest.approx(0)

    def test_exact_fit(self):
        """Test matching aspect ratios need no offset"""
        fit = compute_contain_transform(800, 600, 1600, 1200)

        assert fit.scale == pytest.approx(2)
        assert fit.x == 0
        assert fit.y == 0

    @pytest.mark.parametrize("sizes", [
        (0, 500, 400, 400),
        (1000, -1, 400, 400),
        (1000, 500, 0, 400),
        (1000, 500, 400, math.nan),
        (math.inf, 500, 400, 400),
    ])
    def test_rejects_degenerate_sizes(self, sizes):
        """Test zero, negative and non-finite sizes raise"""
        with pytest.raises(InvalidDimensions):
            compute_contain_transform(*sizes)

    def test_invalid_dimensions_is_value_error(self):
        """Test callers can catch the error as a ValueError"""
        with pytest.raises(ValueError):
            compute_contain_transform(0, 0, 0, 0)


class TestEffectiveImageSize:
    """Tests for rotation handling"""

    @pytest.mark.parametrize("rotation,expected", [
        (0, (4000, 3000)),
        (90, (3000, 4000)),
        (180, (4000, 3000)),
        (270, (3000, 4000)),
    ])
    def test_quarter_turns_swap(self, rotation, expected):
        """Test 90/270 degree orientations swap width and height"""
        assert effective_image_size(4000, 3000, rotation) == expected

    def test_is_quarter_turn(self):
        """Test quarter-turn detection for rotations"""
        assert is_quarter_turn(90)
        assert is_quarter_turn(-90)
        assert not is_quarter_turn(180)


class TestNormalizationContext:
    """Tests for NormalizationContext conversions"""

    def test_image_corners(self, ctx_small):
        """Test the letterboxed image corners map to 0 and 1"""
        assert ctx_small.stage_to_normalized(0, 100) == pytest.approx((0, 0))
        assert ctx_small.stage_to_normalized(800, 500) == pytest.approx((1, 1))

    def test_points_outside_image(self, ctx_small):
        """Test points in the letterbox fall outside [0, 1]"""
        x, y = ctx_small.stage_to_normalized(400, 0)

        assert x == pytest.approx(0.5)
        assert y < 0

    def test_point_inverse(self, ctx_small):
        """Test normalized_to_stage inverts stage_to_normalized"""
        nx, ny = ctx_small.stage_to_normalized(321.5, 222.25)

        assert ctx_small.normalized_to_stage(nx, ny) == pytest.approx((321.5, 222.25))

    def test_size_and_length(self, ctx_small):
        """Test sizes scale per axis and lengths along the image width"""
        assert ctx_small.size_to_normalized(80, 40) == pytest.approx((0.1, 0.1))
        assert ctx_small.size_to_stage(0.1, 0.1) == pytest.approx((80, 40))
        assert ctx_small.length_to_normalized(8) == pytest.approx(0.01)
        assert ctx_small.length_to_stage(0.01) == pytest.approx(8)

    def test_equal_inputs_equal_contexts(self):
        """Test contexts built from the same inputs are interchangeable"""
        assert build_normalization_context(1000, 500, 800, 600) == build_normalization_context(1000, 500, 800, 600)

    def test_context_for_rotated_image(self):
        """Test build_context_for_image applies the rotation swap"""
        ctx = build_context_for_image(1000, 500, 90, 800, 600)

        assert ctx.effective_image_width == 500
        assert ctx.effective_image_height == 1000
        assert ctx.image_scale == pytest.approx(0.6)
        assert ctx.image_x == pytest.approx(250)
        assert ctx.image_y == pytest.approx(0)

    def test_render_transform(self, ctx_small):
        """Test the fit is exported as an ImageRenderTransform"""
        transform = ctx_small.render_transform(rotation=450)

        assert transform == ImageRenderTransform(image_scale=0.8, image_x=0.0, image_y=100.0, image_rotation=90)

    def test_context_from_render_transform(self):
        """Test a recorded fit is used verbatim"""
        transform = ImageRenderTransform(image_scale=0.5, image_x=10, image_y=20)
        ctx = context_from_render_transform(1000, 500, 800, 600, transform)

        assert ctx.image_scale == 0.5
        assert ctx.stage_to_normalized(10, 20) == pytest.approx((0, 0))
        assert ctx.stage_to_normalized(510, 270) == pytest.approx((1, 1))

    def test_context_from_render_transform_rejects_bad_size(self):
        """Test a recorded fit with an unusable natural size is rejected"""
        with pytest.raises(InvalidDimensions):
            context_from_render_transform(0, 500, 800, 600, ImageRenderTransform(0.5, 0, 0))
