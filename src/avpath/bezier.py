"""Bezier curve handling utilities for path geometry operations."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avpath.common import DEFAULT_CONFIG, AvPathConfig
from avpath.geom import AvBox, GeomMath

ControlPoints = Union[Sequence[Tuple[float, float]], NDArray[np.float64]]


class BezierCurve:
    """Class to handle quadratic and cubic Bezier curve operations.

    Control points are given as a sequence of (x, y) tuples: three for a
    quadratic curve, four for a cubic curve. Quadratic curves are elevated to
    cubic form wherever measuring or flattening needs a uniform treatment.
    """

    @classmethod
    def elevate_quadratic(cls, points: ControlPoints) -> Tuple[Tuple[float, float], ...]:
        """Return the cubic control points describing the same curve as the quadratic _points_."""
        (p0x, p0y), (p1x, p1y), (p2x, p2y) = ((float(p[0]), float(p[1])) for p in points)
        return (
            (p0x, p0y),
            (p0x + 2.0 / 3.0 * (p1x - p0x), p0y + 2.0 / 3.0 * (p1y - p0y)),
            (p2x + 2.0 / 3.0 * (p1x - p2x), p2y + 2.0 / 3.0 * (p1y - p2y)),
            (p2x, p2y),
        )

    @classmethod
    def as_cubic(cls, points: ControlPoints) -> Tuple[Tuple[float, float], ...]:
        """Return cubic control points for a quadratic or cubic curve."""
        if len(points) == 3:
            return cls.elevate_quadratic(points)
        if len(points) != 4:
            raise ValueError(f"Bezier curve needs 3 or 4 control points, got {len(points)}")
        return tuple((float(p[0]), float(p[1])) for p in points)

    @classmethod
    def point_at(cls, points: ControlPoints, t: float) -> Tuple[float, float]:
        """Evaluate the curve at parameter t using de Casteljau's algorithm."""
        pts = [(float(p[0]), float(p[1])) for p in points]
        while len(pts) > 1:
            pts = [GeomMath.lerp(pts[i], pts[i + 1], t) for i in range(len(pts) - 1)]
        return pts[0]

    @classmethod
    def derivative_at(cls, points: ControlPoints, t: float) -> Tuple[float, float]:
        """First derivative dB/dt at parameter t."""
        degree = len(points) - 1
        hodograph = [
            (degree * (points[i + 1][0] - points[i][0]), degree * (points[i + 1][1] - points[i][1]))
            for i in range(degree)
        ]
        return cls.point_at(hodograph, t)

    @classmethod
    def tangent_at(
        cls, points: ControlPoints, t: float, epsilon: float = DEFAULT_CONFIG.epsilon
    ) -> Tuple[float, float]:
        """Unit tangent at t.

        Where the derivative vanishes (coincident control points at an end) the
        direction towards the next distinct control point is used instead.
        """
        dx, dy = cls.derivative_at(points, t)
        if math.hypot(dx, dy) > epsilon:
            return GeomMath.normalize(dx, dy, epsilon)
        if t < 0.5:
            origin = points[0]
            candidates = points[1:]
            sign = 1.0
        else:
            origin = points[-1]
            candidates = list(reversed(points[:-1]))
            sign = -1.0
        for candidate in candidates:
            vx, vy = candidate[0] - origin[0], candidate[1] - origin[1]
            if math.hypot(vx, vy) > epsilon:
                return GeomMath.normalize(sign * vx, sign * vy, epsilon)
        return (0.0, 0.0)

    @classmethod
    def split(
        cls, points: ControlPoints, t: float
    ) -> Tuple[Tuple[Tuple[float, float], ...], Tuple[Tuple[float, float], ...]]:
        """Split the curve at t (de Casteljau subdivision).

        Returns:
            Tuple of the control points of the part over [0, t] and of the part over [t, 1].
        """
        pts = [(float(p[0]), float(p[1])) for p in points]
        left = [pts[0]]
        right = [pts[-1]]
        while len(pts) > 1:
            pts = [GeomMath.lerp(pts[i], pts[i + 1], t) for i in range(len(pts) - 1)]
            left.append(pts[0])
            right.append(pts[-1])
        return tuple(left), tuple(reversed(right))

    @classmethod
    def _speed(cls, cubic: Sequence[Tuple[float, float]], t: NDArray[np.float64]) -> NDArray[np.float64]:
        """Vectorized |B'(t)| of a cubic curve."""
        p = np.asarray(cubic, dtype=np.float64)
        omt = 1.0 - t
        d = (
            3.0 * np.outer(omt * omt, p[1] - p[0])
            + 6.0 * np.outer(omt * t, p[2] - p[1])
            + 3.0 * np.outer(t * t, p[3] - p[2])
        )
        return np.hypot(d[:, 0], d[:, 1])

    @classmethod
    def prefix_length(cls, points: ControlPoints, t: float) -> float:
        """Length of the curve over [0, t] using 5-point Gauss-Legendre quadrature."""
        if t <= 0.0:
            return 0.0
        cubic = cls.as_cubic(points)
        return GeomMath.gauss_legendre(lambda u: cls._speed(cubic, u), 0.0, min(t, 1.0))

    @classmethod
    def length(cls, points: ControlPoints) -> float:
        """Length of the curve using fixed-order (5) Gauss-Legendre quadrature over [0, 1]."""
        return cls.prefix_length(points, 1.0)

    @classmethod
    def parameter_at_length(
        cls, points: ControlPoints, distance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> float:
        """Parameter t whose prefix length equals _distance_ (clamped to the curve)."""
        cubic = cls.as_cubic(points)
        return GeomMath.invert_arc_length(
            lambda t: cls.prefix_length(cubic, t),
            lambda t: float(cls._speed(cubic, np.array([t]))[0]),
            cls.length(cubic),
            distance,
            config,
        )

    @classmethod
    def bounding_box(cls, points: ControlPoints) -> AvBox:
        """Conservative bounding box: the box around the control polygon."""
        box = AvBox.from_points(points)
        assert box is not None
        return box

    @classmethod
    def flatness(cls, cubic: Sequence[Tuple[float, float]]) -> float:
        """Upper bound of the distance between a cubic curve and its chord.

        The curve lies in the convex hull of its control points, so the largest
        distance of the inner control points from the chord segment bounds the
        deviation. Control points beyond the chord ends count with their
        distance to the nearer end point.
        """
        p0, _, _, p3 = cubic
        return max(cls._distance_to_chord(point, p0, p3) for point in cubic[1:3])

    @staticmethod
    def _distance_to_chord(point: Sequence[float], p0: Sequence[float], p3: Sequence[float]) -> float:
        chord_x = p3[0] - p0[0]
        chord_y = p3[1] - p0[1]
        chord_sq = chord_x * chord_x + chord_y * chord_y
        if chord_sq <= DEFAULT_CONFIG.epsilon * DEFAULT_CONFIG.epsilon:
            return GeomMath.distance(point, p0)
        u = ((point[0] - p0[0]) * chord_x + (point[1] - p0[1]) * chord_y) / chord_sq
        u = min(max(u, 0.0), 1.0)
        return math.hypot(point[0] - (p0[0] + u * chord_x), point[1] - (p0[1] + u * chord_y))

    @classmethod
    def flatten(
        cls, points: ControlPoints, tolerance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> List[Tuple[float, float]]:
        """Approximate the curve by line segments deviating at most _tolerance_.

        The curve is recursively halved until each piece is flat enough.

        Returns:
            List of the end points of the line segments (the start point is not included).
        """
        result: List[Tuple[float, float]] = []
        stack = [(cls.as_cubic(points), 0)]
        while stack:
            cubic, depth = stack.pop()
            if depth >= config.flatten_max_depth or cls.flatness(cubic) <= tolerance:
                result.append(cubic[3])
                continue
            left, right = cls.split(cubic, 0.5)
            # right is pushed first so that left is processed first
            stack.append((right, depth + 1))
            stack.append((left, depth + 1))
        return result
