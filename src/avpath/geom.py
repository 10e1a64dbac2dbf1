"""Handling geometries"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from avpath.common import DEFAULT_CONFIG, AvPathConfig

logger = logging.getLogger(__name__)

# Gauss-Legendre nodes and weights of order 5 on [-1, 1]
GL5_NODES, GL5_WEIGHTS = np.polynomial.legendre.leggauss(5)

Affine = Sequence[Union[int, float]]

IDENTITY: Tuple[float, float, float, float, float, float] = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    @staticmethod
    def transform_point(affine_trafo: Affine, point: Sequence[Union[int, float]]) -> Tuple[float, float]:
        """
        Perform an affine transformation on the given 2D point.

        The given _affine_trafo_ is a list of 6 floats, performing an affine transformation.
        The transformation is defined as:
            | x' | = | a00 a01 b0 |   | x |
            | y' | = | a10 a11 b1 | * | y |
            | 1  | = |  0   0  1  |   | 1 |
        with
            affine_trafo = [a00, a01, a10, a11, b0, b1]
        See also shapely - Affine Transformations

        Args:
            affine_trafo (Tuple/List[float]): Affine transformation - [a00, a01, a10, a11, b0, b1]
            point (Tuple/List[float]): 2D point - (x, y)

        Returns:
            Tuple[float, float]: the transformed point
        """
        x_new = float(affine_trafo[0] * point[0] + affine_trafo[1] * point[1] + affine_trafo[4])
        y_new = float(affine_trafo[2] * point[0] + affine_trafo[3] * point[1] + affine_trafo[5])
        return (x_new, y_new)

    @staticmethod
    def compose(first: Affine, second: Affine) -> Tuple[float, float, float, float, float, float]:
        """Return the affine transformation applying _first_ and then _second_."""
        a00, a01, a10, a11, b0, b1 = (float(v) for v in first)
        c00, c01, c10, c11, d0, d1 = (float(v) for v in second)
        return (
            c00 * a00 + c01 * a10,
            c00 * a01 + c01 * a11,
            c10 * a00 + c11 * a10,
            c10 * a01 + c11 * a11,
            c00 * b0 + c01 * b1 + d0,
            c10 * b0 + c11 * b1 + d1,
        )

    @staticmethod
    def translation(dx: float, dy: float) -> Tuple[float, float, float, float, float, float]:
        """Affine transformation moving by (dx, dy)."""
        return (1.0, 0.0, 0.0, 1.0, float(dx), float(dy))

    @staticmethod
    def scaling(
        sx: float, sy: float, origin: Tuple[float, float] = (0.0, 0.0)
    ) -> Tuple[float, float, float, float, float, float]:
        """Affine transformation scaling by (sx, sy) about _origin_."""
        ox, oy = origin
        return (float(sx), 0.0, 0.0, float(sy), ox - sx * ox, oy - sy * oy)

    @staticmethod
    def rotation(
        angle_deg: float, pivot: Tuple[float, float] = (0.0, 0.0)
    ) -> Tuple[float, float, float, float, float, float]:
        """Affine transformation rotating counter-clockwise by _angle_deg_ about _pivot_."""
        angle = math.radians(angle_deg)
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        px, py = pivot
        return (cos_a, -sin_a, sin_a, cos_a, px - cos_a * px + sin_a * py, py - sin_a * px - cos_a * py)

    @staticmethod
    def determinant(affine_trafo: Affine) -> float:
        """Determinant of the linear part of an affine transformation."""
        return float(affine_trafo[0] * affine_trafo[3] - affine_trafo[1] * affine_trafo[2])

    @staticmethod
    def distance(p0: Sequence[float], p1: Sequence[float]) -> float:
        """Euclidean distance between two points."""
        return math.hypot(p1[0] - p0[0], p1[1] - p0[1])

    @staticmethod
    def lerp(p0: Sequence[float], p1: Sequence[float], t: float) -> Tuple[float, float]:
        """Linear interpolation between two points."""
        return (p0[0] + (p1[0] - p0[0]) * t, p0[1] + (p1[1] - p0[1]) * t)

    @staticmethod
    def normalize(vx: float, vy: float, epsilon: float = DEFAULT_CONFIG.epsilon) -> Tuple[float, float]:
        """Return the unit vector of (vx, vy), or (0, 0) for a null vector."""
        length = math.hypot(vx, vy)
        if length <= epsilon:
            return (0.0, 0.0)
        return (vx / length, vy / length)

    @staticmethod
    def line_intersection(
        p0: Sequence[float], d0: Sequence[float], p1: Sequence[float], d1: Sequence[float]
    ) -> Optional[Tuple[float, float]]:
        """Intersect the lines p0 + s*d0 and p1 + u*d1. Returns None for parallel lines."""
        denom = d0[0] * d1[1] - d0[1] * d1[0]
        if abs(denom) < 1e-12:
            return None
        s = ((p1[0] - p0[0]) * d1[1] - (p1[1] - p0[1]) * d1[0]) / denom
        return (p0[0] + s * d0[0], p0[1] + s * d0[1])

    @staticmethod
    def signed_area(points: NDArray[np.float64]) -> float:
        """Signed area of the closed ring through _points_ (shoelace formula, CCW positive)."""
        if points.shape[0] < 3:
            return 0.0
        x = points[:, 0]
        y = points[:, 1]
        x_next = np.roll(x, -1)
        y_next = np.roll(y, -1)
        return float(0.5 * np.sum(x * y_next - x_next * y))

    @staticmethod
    def gauss_legendre(func: Callable[[NDArray[np.float64]], NDArray[np.float64]], a: float, b: float) -> float:
        """Integrate a vectorized function over [a, b] with 5-point Gauss-Legendre quadrature."""
        half = 0.5 * (b - a)
        mid = 0.5 * (b + a)
        return float(half * np.dot(GL5_WEIGHTS, func(mid + half * GL5_NODES)))

    @staticmethod
    def invert_arc_length(
        prefix_length: Callable[[float], float],
        speed: Callable[[float], float],
        total_length: float,
        distance: float,
        config: AvPathConfig = DEFAULT_CONFIG,
    ) -> float:
        """Find the parameter t in [0, 1] whose prefix length equals _distance_.

        The start value comes from a cubic polynomial t(s) through the samples
        s(0), s(1/3), s(2/3), s(1). It is refined by Newton steps on the
        bracketing interval, falling back to bisection whenever a Newton step
        leaves the bracket. The iteration stops once the length error is below
        ``config.arc_length_tolerance`` or after ``config.arc_length_max_iterations``
        steps; in the latter case the best parameter found is returned.

        Args:
            prefix_length: Function returning the curve length over [0, t].
            speed: Function returning |dB/dt| at t.
            total_length: Length of the whole curve.
            distance: Requested length along the curve, clamped to [0, total_length].
            config: Numeric settings.

        Returns:
            float: The parameter t.
        """
        if total_length <= config.epsilon or distance <= 0.0:
            return 0.0
        if distance >= total_length:
            return 1.0

        t = distance / total_length
        samples_t = np.array([0.0, 1.0 / 3.0, 2.0 / 3.0, 1.0])
        samples_s = np.array([0.0, prefix_length(1.0 / 3.0), prefix_length(2.0 / 3.0), total_length])
        if np.all(np.diff(samples_s) > config.epsilon):
            coefficients = np.polyfit(samples_s, samples_t, 3)
            seed = float(np.polyval(coefficients, distance))
            if 0.0 < seed < 1.0:
                t = seed

        lo, hi = 0.0, 1.0
        best_t, best_err = t, math.inf
        for _ in range(config.arc_length_max_iterations):
            err = prefix_length(t) - distance
            if abs(err) < best_err:
                best_t, best_err = t, abs(err)
            if abs(err) <= config.arc_length_tolerance:
                return t
            if err > 0.0:
                hi = t
            else:
                lo = t
            derivative = speed(t)
            t_next = t - err / derivative if derivative > config.epsilon else -1.0
            if not lo < t_next < hi:
                t_next = 0.5 * (lo + hi)
            t = t_next

        logger.debug(
            "arc length inversion stopped after %d iterations (error %g)", config.arc_length_max_iterations, best_err
        )
        return best_t


###############################################################################
# AvBox
###############################################################################
@dataclass
class AvBox:
    """
    Represents a rectangular box with coordinates and dimensions.

    Attributes:
        xmin (float): The minimum x-coordinate.
        ymin (float): The minimum y-coordinate.
        xmax (float): The maximum x-coordinate.
        ymax (float): The maximum y-coordinate.
    """

    _xmin: float
    _ymin: float
    _xmax: float
    _ymax: float

    def __init__(self, xmin: float, ymin: float, xmax: float, ymax: float):
        """Initialize AvBox with coordinates.

        Args:
            xmin: The minimum x-coordinate
            ymin: The minimum y-coordinate
            xmax: The maximum x-coordinate
            ymax: The maximum y-coordinate
        """
        self._xmin = float(xmin)
        self._ymin = float(ymin)
        self._xmax = float(xmax)
        self._ymax = float(ymax)

        # Normalize coordinates to ensure xmin <= xmax and ymin <= ymax
        if self._xmin > self._xmax:
            self._xmin, self._xmax = self._xmax, self._xmin
        if self._ymin > self._ymax:
            self._ymin, self._ymax = self._ymax, self._ymin

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> Optional[AvBox]:
        """Tightest box around the given points, or None if there are none."""
        arr = np.asarray(list(points), dtype=np.float64)
        if arr.size == 0:
            return None
        return cls(arr[:, 0].min(), arr[:, 1].min(), arr[:, 0].max(), arr[:, 1].max())

    @property
    def xmin(self) -> float:
        """float: The minimum x-coordinate."""
        return self._xmin

    @property
    def ymin(self) -> float:
        """float: The minimum y-coordinate."""
        return self._ymin

    @property
    def xmax(self) -> float:
        """float: The maximum x-coordinate."""
        return self._xmax

    @property
    def ymax(self) -> float:
        """float: The maximum y-coordinate."""
        return self._ymax

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """The extent of the box as Tuple (xmin, ymin, xmax, ymax)."""
        return self._xmin, self._ymin, self._xmax, self._ymax

    @property
    def width(self) -> float:
        """float: The width of the box (difference between xmax and xmin)."""

        return self._xmax - self._xmin

    @property
    def height(self) -> float:
        """float: The height of the box (difference between ymax and ymin)."""

        return self._ymax - self._ymin

    @property
    def centroid(self) -> Tuple[float, float]:
        """
        The centroid of the box.

        Returns:
            Tuple[float, float]: The coordinates of the centroid as (x, y)
        """
        return (self._xmin + self._xmax) / 2, (self._ymin + self._ymax) / 2

    def union(self, other: Optional[AvBox]) -> AvBox:
        """Smallest box containing this box and _other_."""
        if other is None:
            return self
        return AvBox(
            min(self._xmin, other.xmin),
            min(self._ymin, other.ymin),
            max(self._xmax, other.xmax),
            max(self._ymax, other.ymax),
        )

    def contains(self, other: AvBox, tolerance: float = 0.0) -> bool:
        """Return True if _other_ lies inside this box (with an optional tolerance)."""
        return (
            other.xmin >= self._xmin - tolerance
            and other.ymin >= self._ymin - tolerance
            and other.xmax <= self._xmax + tolerance
            and other.ymax <= self._ymax + tolerance
        )

    @classmethod
    def from_dict(cls, data: dict) -> AvBox:
        """Create an AvBox instance from a dictionary."""
        return cls(
            xmin=data.get("xmin", 0.0),
            ymin=data.get("ymin", 0.0),
            xmax=data.get("xmax", 0.0),
            ymax=data.get("ymax", 0.0),
        )

    def __str__(self):
        """Returns a string representation of the AvBox instance."""
        return (
            f"AvBox(xmin={self.xmin}, ymin={self.ymin}, "
            f"xmax={self.xmax}, ymax={self.ymax}, "
            f"width={self.width}, height={self.height})"
        )

    def to_dict(self) -> dict:
        """Convert the AvBox instance to a dictionary."""
        return {
            "xmin": self.xmin,
            "ymin": self.ymin,
            "xmax": self.xmax,
            "ymax": self.ymax,
        }
