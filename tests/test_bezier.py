"""Test module for BezierCurve in avpath.bezier

The tests are run using pytest.
These tests ensure that the quadratic and cubic Bezier helpers remain working
correctly after changes and refactoring. svgpathtools serves as independent
reference for curve lengths.
"""

import math

import numpy as np
import pytest
from svgpathtools import CubicBezier, QuadraticBezier

from avpath.bezier import BezierCurve

CUBIC = ((0.0, 0.0), (30.0, 40.0), (70.0, 40.0), (100.0, 0.0))
QUAD = ((0.0, 0.0), (50.0, 50.0), (100.0, 0.0))


def _complex(points):
    return [complex(x, y) for x, y in points]


def _sample(points, steps):
    """Curve points at steps + 1 equidistant parameters."""
    return np.array([BezierCurve.point_at(points, t) for t in np.linspace(0.0, 1.0, steps + 1)])


def _distance_to_polyline(samples, polyline):
    """Distance of every sample to the nearest segment of the polyline."""
    best = np.full(samples.shape[0], np.inf)
    for p0, p1 in zip(polyline, polyline[1:]):
        a = np.asarray(p0, dtype=np.float64)
        d = np.asarray(p1, dtype=np.float64) - a
        u = np.clip((samples - a) @ d / max(float(d @ d), 1e-300), 0.0, 1.0)
        best = np.minimum(best, np.hypot(*(samples - a - np.outer(u, d)).T))
    return best


###############################################################################
# Evaluation Tests
###############################################################################


class TestBezierEvaluation:
    """Test class for evaluating and splitting Bezier curves."""

    def test_end_points(self):
        """The curve starts and ends at its first and last control points."""
        assert BezierCurve.point_at(CUBIC, 0.0) == pytest.approx(CUBIC[0])
        assert BezierCurve.point_at(CUBIC, 1.0) == pytest.approx(CUBIC[3])

    def test_point_matches_svgpathtools(self):
        """de Casteljau evaluation agrees with svgpathtools."""
        reference = CubicBezier(*_complex(CUBIC))
        for t in (0.1, 0.5, 0.77):
            x, y = BezierCurve.point_at(CUBIC, t)
            assert complex(x, y) == pytest.approx(reference.point(t))

    def test_elevated_quadratic_is_same_curve(self):
        """Degree elevation keeps the geometry."""
        cubic = BezierCurve.elevate_quadratic(QUAD)
        for t in np.linspace(0.0, 1.0, 7):
            assert BezierCurve.point_at(cubic, t) == pytest.approx(BezierCurve.point_at(QUAD, t))

    def test_as_cubic_rejects_wrong_point_count(self):
        """Only 3 or 4 control points describe a supported curve."""
        with pytest.raises(ValueError):
            BezierCurve.as_cubic(((0, 0), (1, 1)))

    def test_derivative(self):
        """Derivative at the ends points along the control polygon."""
        assert BezierCurve.derivative_at(CUBIC, 0.0) == pytest.approx((90.0, 120.0))
        assert BezierCurve.derivative_at(CUBIC, 1.0) == pytest.approx((90.0, -120.0))

    def test_tangent_with_coincident_control_point(self):
        """A vanishing derivative falls back to the next distinct control point."""
        points = ((0.0, 0.0), (0.0, 0.0), (1.0, 1.0), (2.0, 0.0))
        tangent = BezierCurve.tangent_at(points, 0.0)
        assert tangent == pytest.approx((math.sqrt(0.5), math.sqrt(0.5)))

    def test_split_pieces_follow_original(self):
        """Both halves of a split trace the original curve."""
        t = 0.3
        left, right = BezierCurve.split(CUBIC, t)
        assert left[0] == pytest.approx(CUBIC[0])
        assert right[-1] == pytest.approx(CUBIC[-1])
        assert left[-1] == pytest.approx(BezierCurve.point_at(CUBIC, t))
        for s in (0.25, 0.5, 0.75):
            assert BezierCurve.point_at(left, s) == pytest.approx(BezierCurve.point_at(CUBIC, s * t))
            assert BezierCurve.point_at(right, s) == pytest.approx(BezierCurve.point_at(CUBIC, t + s * (1.0 - t)))

    def test_split_keeps_degree(self):
        """Splitting a quadratic gives quadratics."""
        left, right = BezierCurve.split(QUAD, 0.5)
        assert len(left) == 3
        assert len(right) == 3

    def test_bounding_box_contains_curve(self):
        """The control polygon box contains all curve points."""
        box = BezierCurve.bounding_box(CUBIC)
        samples = _sample(CUBIC, 50)
        assert samples.shape == (51, 2)
        assert np.all(samples[:, 0] >= box.xmin - 1e-9)
        assert np.all(samples[:, 1] <= box.ymax + 1e-9)


###############################################################################
# Length Tests
###############################################################################


class TestBezierLength:
    """Test class for Gauss-Legendre length measurement and its inversion."""

    def test_straight_cubic_length_is_exact(self):
        """Evenly spaced collinear control points have constant speed."""
        points = ((0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0))
        assert BezierCurve.length(points) == pytest.approx(3.0, abs=1e-12)

    def test_cubic_length_matches_svgpathtools(self):
        """Cubic length agrees with an adaptive reference integration."""
        reference = CubicBezier(*_complex(CUBIC)).length()
        assert BezierCurve.length(CUBIC) == pytest.approx(reference, rel=1e-3)

    def test_quadratic_length_matches_svgpathtools(self):
        """Quadratic length agrees with the closed form reference."""
        reference = QuadraticBezier(*_complex(QUAD)).length()
        assert BezierCurve.length(QUAD) == pytest.approx(reference, rel=1e-3)

    def test_prefix_length_monotonic(self):
        """Prefix lengths grow with t and reach the full length."""
        values = [BezierCurve.prefix_length(CUBIC, t) for t in np.linspace(0.0, 1.0, 11)]
        assert values[0] == 0.0
        assert all(b > a for a, b in zip(values, values[1:]))
        assert values[-1] == pytest.approx(BezierCurve.length(CUBIC))

    @pytest.mark.parametrize("fraction", [0.1, 0.5, 0.9])
    def test_parameter_at_length_inverts_prefix_length(self, fraction):
        """The found parameter reproduces the requested length."""
        distance = fraction * BezierCurve.length(CUBIC)
        t = BezierCurve.parameter_at_length(CUBIC, distance)
        assert BezierCurve.prefix_length(CUBIC, t) == pytest.approx(distance, abs=1e-8)

    def test_parameter_at_length_clamps(self):
        """Distances outside the curve clamp to the end parameters."""
        assert BezierCurve.parameter_at_length(CUBIC, -1.0) == 0.0
        assert BezierCurve.parameter_at_length(CUBIC, 1e6) == 1.0


###############################################################################
# Flattening Tests
###############################################################################


class TestBezierFlatten:
    """Test class for adaptive subdivision."""

    def test_flatten_ends_at_end_point(self):
        """The last emitted point is the curve end point; the start is not emitted."""
        points = BezierCurve.flatten(CUBIC, 0.1)
        assert points[-1] == pytest.approx(CUBIC[-1])
        assert points[0] != pytest.approx(CUBIC[0])

    def test_flatten_within_tolerance(self):
        """Chord midpoints stay within the tolerance of the curve."""
        tolerance = 0.1
        points = [CUBIC[0]] + BezierCurve.flatten(CUBIC, tolerance)
        dense = _sample(CUBIC, 4000)
        for p0, p1 in zip(points, points[1:]):
            mid = np.array([(p0[0] + p1[0]) / 2.0, (p0[1] + p1[1]) / 2.0])
            distance = np.min(np.hypot(dense[:, 0] - mid[0], dense[:, 1] - mid[1]))
            assert distance <= tolerance + 0.05

    @pytest.mark.parametrize(
        "cubic",
        [
            ((0.0, 0.0), (-10.0, 0.0), (-10.0, 0.0), (1.0, 0.0)),
            ((0.0, 0.0), (-10.0, 0.001), (11.0, 0.001), (1.0, 0.0)),
        ],
    )
    def test_flatten_control_points_beyond_chord(self, cubic):
        """Curves running past their chord ends are refined until the polyline follows them."""
        tolerance = 0.01
        polyline = [cubic[0]] + BezierCurve.flatten(cubic, tolerance)
        assert len(polyline) > 2
        assert np.all(_distance_to_polyline(_sample(cubic, 2000), polyline) <= tolerance + 1e-9)

    def test_flatness_of_overshooting_curve(self):
        """Control points beyond the chord ends count with their distance to the nearer end."""
        cubic = ((0.0, 0.0), (-10.0, 0.0), (-10.0, 0.0), (1.0, 0.0))
        assert BezierCurve.flatness(cubic) == pytest.approx(10.0)

    def test_smaller_tolerance_gives_more_points(self):
        """Refinement converges with decreasing tolerance."""
        coarse = BezierCurve.flatten(CUBIC, 1.0)
        fine = BezierCurve.flatten(CUBIC, 0.001)
        assert len(fine) > len(coarse)

    def test_flatten_straight_curve_single_segment(self):
        """A straight curve needs a single line."""
        points = ((0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0))
        assert BezierCurve.flatten(points, 0.01) == [(3.0, 0.0)]
