"""
Ellipse Crop Tests
==================

Ellipse masking, bounding-box trimming and parameter validation.
"""

import math

import numpy as np
import pytest

from fundus_capture.errors import InvalidParameterError
from fundus_capture.imaging.crop import crop_ellipse, ellipse_mask
from fundus_capture.models.ellipse import EllipseSpec
from fundus_capture.models.frame import Frame


class TestCropEllipse:
    """Reference ellipse on a 100x100 opaque source."""

    def test_dimensions_match_bounding_box(self, opaque_square):
        spec = EllipseSpec(cx=50, cy=50, rx=30, ry=20, rotation=0)

        out = crop_ellipse(opaque_square, spec)

        left, top = 20, 30
        assert out.width == min(100 - left, 60)
        assert out.height == min(100 - top, 40)

    def test_center_opaque_corners_transparent(self, opaque_square):
        spec = EllipseSpec(cx=50, cy=50, rx=30, ry=20)

        out = crop_ellipse(opaque_square, spec)

        # source (50, 50) -> output (30, 20)
        assert out.pixels[20, 30, 3] == 255
        assert out.pixels[0, 0, 3] == 0
        assert out.pixels[0, 59, 3] == 0
        assert out.pixels[39, 0, 3] == 0
        assert out.pixels[39, 59, 3] == 0

    def test_color_kept_inside(self, opaque_square):
        out = crop_ellipse(opaque_square, EllipseSpec(cx=50, cy=50, rx=30, ry=20))
        np.testing.assert_array_equal(out.pixels[20, 30, :3], [128, 128, 128])

    def test_source_alpha_is_multiplied(self):
        rgba = np.full((100, 100, 4), 128, dtype=np.uint8)
        out = crop_ellipse(Frame(rgba), EllipseSpec(cx=50, cy=50, rx=30, ry=20))

        assert out.pixels[20, 30, 3] == 128
        assert out.pixels[0, 0, 3] == 0

    def test_rotation_turns_the_ellipse(self, opaque_square):
        # source pixel (x=75, y=50) is inside the horizontal ellipse only
        flat = crop_ellipse(opaque_square, EllipseSpec(cx=50, cy=50, rx=30, ry=20))
        turned = crop_ellipse(
            opaque_square,
            EllipseSpec(cx=50, cy=50, rx=30, ry=20, rotation=math.pi / 2),
        )

        assert flat.pixels[50 - 30, 75 - 20, 3] == 255
        assert turned.pixels[50 - 30, 75 - 20, 3] == 0

    def test_bounding_box_clamped_at_edges(self, opaque_square):
        top_left = crop_ellipse(opaque_square, EllipseSpec(cx=10, cy=10, rx=30, ry=20))
        assert (top_left.width, top_left.height) == (60, 40)

        right = crop_ellipse(opaque_square, EllipseSpec(cx=90, cy=90, rx=30, ry=20))
        assert (right.width, right.height) == (40, 30)

    def test_fractional_radii_round_box_up(self, opaque_square):
        out = crop_ellipse(opaque_square, EllipseSpec(cx=50, cy=50, rx=10.2, ry=5.5))

        # left = floor(39.8) = 39, width = ceil(20.4) = 21
        assert (out.width, out.height) == (21, 11)

    def test_input_not_mutated(self, opaque_square):
        before = opaque_square.pixels.copy()
        crop_ellipse(opaque_square, EllipseSpec(cx=50, cy=50, rx=30, ry=20))
        np.testing.assert_array_equal(opaque_square.pixels, before)


class TestCropValidation:
    """Degenerate ellipses fail before any output is produced."""

    @pytest.mark.parametrize(
        "rx, ry",
        [(0, 20), (30, 0), (-5, 20), (30, -1)],
    )
    def test_non_positive_radii_rejected(self, opaque_square, rx, ry):
        with pytest.raises(InvalidParameterError):
            crop_ellipse(opaque_square, EllipseSpec(cx=50, cy=50, rx=rx, ry=ry))

    @pytest.mark.parametrize(
        "field",
        ["cx", "cy", "rx", "ry", "rotation"],
    )
    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_values_rejected(self, opaque_square, field, value):
        params = {"cx": 50, "cy": 50, "rx": 30, "ry": 20, "rotation": 0.0}
        params[field] = value

        with pytest.raises(InvalidParameterError):
            crop_ellipse(opaque_square, EllipseSpec(**params))

    def test_ellipse_outside_frame_rejected(self, opaque_square):
        with pytest.raises(InvalidParameterError):
            crop_ellipse(opaque_square, EllipseSpec(cx=500, cy=500, rx=10, ry=10))


class TestEllipseMask:
    """Mask rasterization."""

    def test_mask_values(self):
        mask = ellipse_mask(100, 100, EllipseSpec(cx=50, cy=50, rx=30, ry=20))

        assert mask.shape == (100, 100)
        assert mask.dtype == np.uint8
        assert mask[50, 50] == 255
        assert mask[50, 5] == 0
        assert mask[5, 50] == 0

    def test_mask_area_close_to_ellipse_area(self):
        mask = ellipse_mask(200, 200, EllipseSpec(cx=100, cy=100, rx=60, ry=40))

        area = mask.astype(np.float64).sum() / 255.0
        assert area == pytest.approx(math.pi * 60 * 40, rel=0.03)

    def test_mask_is_empty_for_degenerate_radii(self):
        mask = ellipse_mask(20, 20, EllipseSpec(cx=10, cy=10, rx=0, ry=5))
        assert not mask.any()


def normalized_radius(width, height, spec):
    """Analytic radius sqrt(u^2 + v^2) of each pixel center in ellipse space."""
    ys, xs = np.ogrid[0:height, 0:width]
    dx = xs + 0.5 - spec.cx
    dy = ys + 0.5 - spec.cy
    cos_r, sin_r = math.cos(spec.rotation), math.sin(spec.rotation)
    u = (dx * cos_r + dy * sin_r) / spec.rx
    v = (dy * cos_r - dx * sin_r) / spec.ry
    return np.sqrt(u * u + v * v)


class TestRotatedMask:
    """Arbitrary rotations follow the exact ellipse."""

    @pytest.mark.parametrize("rotation", [0.008, 0.3, 1.0, -2.2])
    def test_mask_matches_analytic_ellipse(self, rotation):
        spec = EllipseSpec(cx=1200, cy=1200, rx=1100, ry=500, rotation=rotation)

        mask = ellipse_mask(2400, 2400, spec)
        radius = normalized_radius(2400, 2400, spec)

        # a pixel square lies within sqrt(0.5) px of its center
        margin = math.sqrt(0.5) / min(spec.rx, spec.ry)
        assert np.all(mask[radius < 1 - margin] == 255)
        assert np.all(mask[radius > 1 + margin] == 0)

    def test_small_rotation_changes_mask(self):
        flat = ellipse_mask(2400, 2400, EllipseSpec(cx=1200, cy=1200, rx=1100, ry=500))
        tilted = ellipse_mask(
            2400, 2400, EllipseSpec(cx=1200, cy=1200, rx=1100, ry=500, rotation=0.008)
        )

        assert not np.array_equal(flat, tilted)
        # near the right tip: inside the tilted edge, outside the flat one
        assert tilted[1250, 2295] > 0
        assert flat[1250, 2295] == 0

    def test_rotation_by_pi_is_symmetric(self):
        spec = EllipseSpec(cx=60, cy=40, rx=50, ry=20, rotation=0.4)
        turned = spec.model_copy(update={"rotation": 0.4 + math.pi})

        np.testing.assert_array_equal(
            ellipse_mask(120, 80, spec), ellipse_mask(120, 80, turned)
        )
