"""Elliptical arcs in center parameterization.

An ArcTo command only stores its end point and the SVG-style radii, rotation
and flags. EllipticalArc resolves the flags into center, start angle and
signed sweep angle (see the SVG implementation notes, "conversion from
endpoint to center parameterization") and offers the per-segment primitives
on that form.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from numpy.typing import NDArray

from avpath.commands import ArcTo, CubeTo, Point
from avpath.common import DEFAULT_CONFIG, AvPathConfig
from avpath.errors import DegenerateGeometryError, UnsupportedOffsetError
from avpath.geom import Affine, AvBox, GeomMath

TWO_PI = 2.0 * math.pi
HALF_PI = 0.5 * math.pi


@dataclass(frozen=True)
class EllipticalArc:
    """Arc of the ellipse centered at (cx, cy) with radii rx, ry rotated by phi (radians).

    The arc runs from angle theta1 over the signed angle dtheta
    (positive = increasing angle = sweep flag set).
    """

    cx: float
    cy: float
    rx: float
    ry: float
    phi: float
    theta1: float
    dtheta: float

    @staticmethod
    def is_degenerate(start: Point, arc: ArcTo, epsilon: float = DEFAULT_CONFIG.epsilon) -> bool:
        """Return True if the arc has to be treated as a straight line (or as nothing)."""
        if abs(arc.rx) <= epsilon or abs(arc.ry) <= epsilon:
            return True
        return GeomMath.distance(start, arc.end_point) <= epsilon

    @classmethod
    def from_endpoints(cls, start: Point, arc: ArcTo) -> EllipticalArc:
        """Convert an ArcTo starting at _start_ into center parameterization.

        Radii too small to span the end points are scaled up uniformly.

        Raises:
            DegenerateGeometryError: If a radius is zero or the end points coincide.
        """
        if cls.is_degenerate(start, arc):
            raise DegenerateGeometryError(f"Arc from {start} to {arc.end_point} has no center parameterization")

        rx = abs(float(arc.rx))
        ry = abs(float(arc.ry))
        phi = math.radians(arc.rotation % 360.0)
        cos_phi = math.cos(phi)
        sin_phi = math.sin(phi)
        x1, y1 = start
        x2, y2 = arc.end_point

        # Step 1: compute (x1', y1')
        dx2 = 0.5 * (x1 - x2)
        dy2 = 0.5 * (y1 - y2)
        x1p = cos_phi * dx2 + sin_phi * dy2
        y1p = -sin_phi * dx2 + cos_phi * dy2

        # Correct out-of-range radii
        lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
        if lam > 1.0:
            scale = math.sqrt(lam)
            rx *= scale
            ry *= scale

        # Step 2: compute (cx', cy')
        rx2 = rx * rx
        ry2 = ry * ry
        num = rx2 * ry2 - rx2 * y1p * y1p - ry2 * x1p * x1p
        den = rx2 * y1p * y1p + ry2 * x1p * x1p
        coef = math.sqrt(max(0.0, num / den)) if den > 0.0 else 0.0
        if arc.large_arc == arc.sweep:
            coef = -coef
        cxp = coef * rx * y1p / ry
        cyp = -coef * ry * x1p / rx

        # Step 3: compute (cx, cy)
        cx = cos_phi * cxp - sin_phi * cyp + 0.5 * (x1 + x2)
        cy = sin_phi * cxp + cos_phi * cyp + 0.5 * (y1 + y2)

        # Step 4: compute theta1 and dtheta
        theta1 = math.atan2((y1p - cyp) / ry, (x1p - cxp) / rx)
        theta2 = math.atan2((-y1p - cyp) / ry, (-x1p - cxp) / rx)
        dtheta = theta2 - theta1
        if arc.sweep and dtheta < 0.0:
            dtheta += TWO_PI
        elif not arc.sweep and dtheta > 0.0:
            dtheta -= TWO_PI

        return cls(cx, cy, rx, ry, phi, theta1, dtheta)

    @property
    def rotation_deg(self) -> float:
        return math.degrees(self.phi)

    @property
    def sweep(self) -> bool:
        return self.dtheta > 0.0

    def point_at_angle(self, theta: float) -> Tuple[float, float]:
        """Point of the ellipse at parametric angle theta."""
        cos_phi = math.cos(self.phi)
        sin_phi = math.sin(self.phi)
        ux = self.rx * math.cos(theta)
        uy = self.ry * math.sin(theta)
        return (self.cx + cos_phi * ux - sin_phi * uy, self.cy + sin_phi * ux + cos_phi * uy)

    def point_at(self, t: float) -> Tuple[float, float]:
        """Point at parameter t in [0, 1]."""
        return self.point_at_angle(self.theta1 + t * self.dtheta)

    def derivative_at(self, t: float) -> Tuple[float, float]:
        """Derivative with respect to t (not to the angle)."""
        theta = self.theta1 + t * self.dtheta
        cos_phi = math.cos(self.phi)
        sin_phi = math.sin(self.phi)
        dux = -self.rx * math.sin(theta)
        duy = self.ry * math.cos(theta)
        return (
            self.dtheta * (cos_phi * dux - sin_phi * duy),
            self.dtheta * (sin_phi * dux + cos_phi * duy),
        )

    def _speed(self, theta: NDArray[np.float64]) -> NDArray[np.float64]:
        """|dP/dtheta|, independent of the rotation."""
        return np.hypot(self.rx * np.sin(theta), self.ry * np.cos(theta))

    @property
    def panel_count(self) -> int:
        """Number of equal quadrature panels (each at most a quarter turn) over the whole arc."""
        return max(1, int(math.ceil(abs(self.dtheta) / HALF_PI - 1.0e-12)))

    def prefix_length(self, t: float) -> float:
        """Length of the arc over [0, t].

        The Gauss-Legendre panels lie on a fixed grid over the whole arc: the
        prefix is the sum of the complete panels before t plus the partial panel
        containing t. The result is continuous and monotone in t.
        """
        if t <= 0.0 or self.dtheta == 0.0:
            return 0.0
        t = min(t, 1.0)
        n = self.panel_count
        step = self.dtheta / n
        full = min(int(t * n), n)
        total = 0.0
        for i in range(full):
            a = self.theta1 + i * step
            total += abs(GeomMath.gauss_legendre(self._speed, a, a + step))
        if full < n:
            a = self.theta1 + full * step
            total += abs(GeomMath.gauss_legendre(self._speed, a, self.theta1 + t * self.dtheta))
        return total

    def length(self) -> float:
        return self.prefix_length(1.0)

    def parameter_at_length(self, distance: float, config: AvPathConfig = DEFAULT_CONFIG) -> float:
        """Parameter t whose prefix length equals _distance_ (clamped to the arc)."""
        return GeomMath.invert_arc_length(
            self.prefix_length,
            lambda t: abs(self.dtheta) * float(self._speed(np.array([self.theta1 + t * self.dtheta]))[0]),
            self.length(),
            distance,
            config,
        )

    def _contains_angle(self, theta: float) -> bool:
        if self.dtheta >= 0.0:
            return (theta - self.theta1) % TWO_PI <= self.dtheta
        return (self.theta1 - theta) % TWO_PI <= -self.dtheta

    def bounding_box(self) -> AvBox:
        """Exact bounding box using the extremal points of the ellipse inside the sweep."""
        cos_phi = math.cos(self.phi)
        sin_phi = math.sin(self.phi)
        theta_x = math.atan2(-self.ry * sin_phi, self.rx * cos_phi)
        theta_y = math.atan2(self.ry * cos_phi, self.rx * sin_phi)
        points = [self.point_at(0.0), self.point_at(1.0)]
        for theta in (theta_x, theta_x + math.pi, theta_y, theta_y + math.pi):
            if self._contains_angle(theta):
                points.append(self.point_at_angle(theta))
        box = AvBox.from_points(points)
        assert box is not None
        return box

    def to_command(self, end: Point) -> ArcTo:
        """ArcTo command describing this arc, ending exactly at _end_."""
        return ArcTo(self.rx, self.ry, self.rotation_deg, abs(self.dtheta) > math.pi, self.sweep, end[0], end[1])

    def split(self, t: float, end: Point) -> Tuple[ArcTo, ArcTo]:
        """Split at t into two ArcTo commands; the second one ends at _end_."""
        mid = self.point_at(t)
        first = EllipticalArc(self.cx, self.cy, self.rx, self.ry, self.phi, self.theta1, t * self.dtheta)
        second = EllipticalArc(
            self.cx, self.cy, self.rx, self.ry, self.phi, self.theta1 + t * self.dtheta, (1.0 - t) * self.dtheta
        )
        return first.to_command(mid), second.to_command(end)

    @staticmethod
    def cubic_error(radius: float, angle: float) -> float:
        """Upper estimate of the deviation of a cubic approximating a circular arc of _angle_."""
        quarter = abs(angle) / 4.0
        return radius * (4.0 / 27.0) * math.sin(quarter) ** 6 / math.cos(quarter) ** 2

    def to_cubics(self, end: Point, tolerance: float = DEFAULT_CONFIG.arc_tolerance) -> List[CubeTo]:
        """Approximate the arc by cubic Bezier curves.

        No exact conversion exists; the number of pieces is increased until the
        estimated deviation is below _tolerance_. The last curve ends exactly at _end_.
        """
        radius = max(self.rx, self.ry)
        n = max(1, int(math.ceil(abs(self.dtheta) / HALF_PI - 1.0e-12)))
        while n < 1024 and self.cubic_error(radius, self.dtheta / n) > tolerance:
            n += 1

        cos_phi = math.cos(self.phi)
        sin_phi = math.sin(self.phi)

        def ellipse_point(u: float, v: float) -> Tuple[float, float]:
            x = self.rx * u
            y = self.ry * v
            return (self.cx + cos_phi * x - sin_phi * y, self.cy + sin_phi * x + cos_phi * y)

        step = self.dtheta / n
        alpha = 4.0 / 3.0 * math.tan(step / 4.0)
        curves: List[CubeTo] = []
        for i in range(n):
            a0 = self.theta1 + i * step
            a1 = a0 + step
            cos0, sin0 = math.cos(a0), math.sin(a0)
            cos1, sin1 = math.cos(a1), math.sin(a1)
            c1 = ellipse_point(cos0 - alpha * sin0, sin0 + alpha * cos0)
            c2 = ellipse_point(cos1 + alpha * sin1, sin1 - alpha * cos1)
            p3 = end if i == n - 1 else ellipse_point(cos1, sin1)
            curves.append(CubeTo(c1[0], c1[1], c2[0], c2[1], p3[0], p3[1]))
        return curves

    def offset(self, distance: float) -> Tuple[Point, ArcTo]:
        """Concentric arc at signed _distance_ to the left of the travel direction.

        For circles this is the exact offset curve; for ellipses it is an
        approximation with both radii changed by the same amount.

        Returns:
            Tuple of the offset start point and the offset ArcTo command.

        Raises:
            UnsupportedOffsetError: If the offset would shrink a radius to zero or below.
        """
        # left of travel points to the center when running in increasing angle direction
        shrink = distance if self.sweep else -distance
        if shrink >= min(self.rx, self.ry):
            raise UnsupportedOffsetError(
                f"Offset {distance} exceeds the arc radii ({self.rx}, {self.ry}); the offset arc would self-intersect"
            )
        arc = EllipticalArc(self.cx, self.cy, self.rx - shrink, self.ry - shrink, self.phi, self.theta1, self.dtheta)
        return arc.point_at(0.0), arc.to_command(arc.point_at(1.0))

    @staticmethod
    def transform_command(arc: ArcTo, affine_trafo: Affine) -> ArcTo:
        """Apply an affine transformation to an ArcTo command.

        The image of an ellipse under an affine map is again an ellipse; its radii
        and rotation are the singular values and left singular vectors of
        ``L * R(phi) * diag(rx, ry)`` with L the linear part of the map. A
        mirroring map (negative determinant) reverses the sweep direction.
        """
        phi = math.radians(arc.rotation)
        linear = np.array([[affine_trafo[0], affine_trafo[1]], [affine_trafo[2], affine_trafo[3]]], dtype=np.float64)
        rot = np.array([[math.cos(phi), -math.sin(phi)], [math.sin(phi), math.cos(phi)]], dtype=np.float64)
        mapped = linear @ rot @ np.diag([abs(arc.rx), abs(arc.ry)])
        u, s, _ = np.linalg.svd(mapped)
        rotation = math.degrees(math.atan2(u[1, 0], u[0, 0]))
        sweep = arc.sweep if GeomMath.determinant(affine_trafo) >= 0.0 else not arc.sweep
        end = GeomMath.transform_point(affine_trafo, arc.end_point)
        return ArcTo(float(s[0]), float(s[1]), rotation, arc.large_arc, sweep, end[0], end[1])
