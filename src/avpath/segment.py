"""Per-command geometry primitives.

Every function takes the current point (the start of the command) and one
drawing command (LineTo, QuadTo, CubeTo or ArcTo) and dispatches on the
command type. Close is handled by the caller as a LineTo back to the segment
start. Degenerate arcs (zero radius) are measured and split as lines.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

from avpath.arc import EllipticalArc
from avpath.bezier import BezierCurve
from avpath.commands import ArcTo, CubeTo, LineTo, PathCommand, Point, QuadTo
from avpath.common import DEFAULT_CONFIG, AvPathConfig
from avpath.geom import Affine, AvBox, GeomMath

logger = logging.getLogger(__name__)


###############################################################################
# AvSegmentGeometry
###############################################################################
class AvSegmentGeometry:
    """Collection of static per-command geometry functions."""

    @staticmethod
    def bezier_points(start: Point, cmd: PathCommand) -> Tuple[Point, ...]:
        """Control polygon of a Bezier command including its start point."""
        if isinstance(cmd, QuadTo):
            return (start, (cmd.cx, cmd.cy), cmd.end_point)
        if isinstance(cmd, CubeTo):
            return (start, (cmd.c1x, cmd.c1y), (cmd.c2x, cmd.c2y), cmd.end_point)
        raise TypeError(f"Not a Bezier command: {cmd!r}")

    @staticmethod
    def as_arc(start: Point, cmd: PathCommand, config: AvPathConfig = DEFAULT_CONFIG) -> Optional[EllipticalArc]:
        """Center parameterization of an ArcTo, or None if it degenerates to a line."""
        if not isinstance(cmd, ArcTo):
            return None
        if EllipticalArc.is_degenerate(start, cmd, config.epsilon):
            logger.debug("degenerate arc %r treated as a line", cmd)
            return None
        return EllipticalArc.from_endpoints(start, cmd)

    @staticmethod
    def is_zero_length(start: Point, cmd: PathCommand, config: AvPathConfig = DEFAULT_CONFIG) -> bool:
        """Return True if the command contributes no geometry."""
        end = cmd.end_point
        if end is None or GeomMath.distance(start, end) > config.epsilon:
            return False
        # a closed Bezier loop still has geometry
        return all(GeomMath.distance(start, c) <= config.epsilon for c in cmd.control_points())

    @classmethod
    def length(cls, start: Point, cmd: PathCommand, config: AvPathConfig = DEFAULT_CONFIG) -> float:
        """Length of the command: exact for lines, Gauss-Legendre for curves."""
        return cls.prefix_length(start, cmd, 1.0, config)

    @classmethod
    def prefix_length(cls, start: Point, cmd: PathCommand, t: float, config: AvPathConfig = DEFAULT_CONFIG) -> float:
        """Length of the command over the parameter interval [0, t]."""
        t = min(max(t, 0.0), 1.0)
        if isinstance(cmd, (QuadTo, CubeTo)):
            return BezierCurve.prefix_length(cls.bezier_points(start, cmd), t)
        arc = cls.as_arc(start, cmd, config)
        if arc is not None:
            return arc.prefix_length(t)
        return t * GeomMath.distance(start, cmd.end_point)

    @classmethod
    def point_at(cls, start: Point, cmd: PathCommand, t: float, config: AvPathConfig = DEFAULT_CONFIG) -> Point:
        """Point at parameter t in [0, 1]."""
        if isinstance(cmd, (QuadTo, CubeTo)):
            return BezierCurve.point_at(cls.bezier_points(start, cmd), t)
        arc = cls.as_arc(start, cmd, config)
        if arc is not None:
            return arc.point_at(t)
        return GeomMath.lerp(start, cmd.end_point, t)

    @classmethod
    def tangent_at(cls, start: Point, cmd: PathCommand, t: float, config: AvPathConfig = DEFAULT_CONFIG) -> Point:
        """Unit tangent at parameter t; (0, 0) for zero-length commands."""
        if isinstance(cmd, (QuadTo, CubeTo)):
            return BezierCurve.tangent_at(cls.bezier_points(start, cmd), t, config.epsilon)
        arc = cls.as_arc(start, cmd, config)
        if arc is not None:
            dx, dy = arc.derivative_at(t)
            return GeomMath.normalize(dx, dy, config.epsilon)
        end = cmd.end_point
        return GeomMath.normalize(end[0] - start[0], end[1] - start[1], config.epsilon)

    @classmethod
    def bounding_box(cls, start: Point, cmd: PathCommand, config: AvPathConfig = DEFAULT_CONFIG) -> AvBox:
        """Bounding box: exact for lines and arcs, control polygon for Bezier curves."""
        if isinstance(cmd, (QuadTo, CubeTo)):
            return BezierCurve.bounding_box(cls.bezier_points(start, cmd))
        arc = cls.as_arc(start, cmd, config)
        if arc is not None:
            return arc.bounding_box()
        end = cmd.end_point
        return AvBox(start[0], start[1], end[0], end[1])

    @classmethod
    def split(
        cls, start: Point, cmd: PathCommand, t: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> Tuple[PathCommand, PathCommand]:
        """Split at parameter t into two commands of the same kind.

        The first one runs from _start_ to the split point, the second one from
        the split point to the original end point.
        """
        t = min(max(t, 0.0), 1.0)
        if isinstance(cmd, QuadTo):
            left, right = BezierCurve.split(cls.bezier_points(start, cmd), t)
            return (
                QuadTo(left[1][0], left[1][1], left[2][0], left[2][1]),
                QuadTo(right[1][0], right[1][1], cmd.x, cmd.y),
            )
        if isinstance(cmd, CubeTo):
            left, right = BezierCurve.split(cls.bezier_points(start, cmd), t)
            return (
                CubeTo(left[1][0], left[1][1], left[2][0], left[2][1], left[3][0], left[3][1]),
                CubeTo(right[1][0], right[1][1], right[2][0], right[2][1], cmd.x, cmd.y),
            )
        arc = cls.as_arc(start, cmd, config)
        if arc is not None:
            return arc.split(t, cmd.end_point)
        mid = GeomMath.lerp(start, cmd.end_point, t)
        return LineTo(mid[0], mid[1]), LineTo(cmd.end_point[0], cmd.end_point[1])

    @classmethod
    def parameter_at_length(
        cls, start: Point, cmd: PathCommand, distance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> float:
        """Parameter t whose prefix length equals _distance_, clamped to [0, length]."""
        if isinstance(cmd, (QuadTo, CubeTo)):
            return BezierCurve.parameter_at_length(cls.bezier_points(start, cmd), distance, config)
        arc = cls.as_arc(start, cmd, config)
        if arc is not None:
            return arc.parameter_at_length(distance, config)
        total = GeomMath.distance(start, cmd.end_point)
        if total <= config.epsilon:
            return 0.0
        return min(max(distance / total, 0.0), 1.0)

    @classmethod
    def split_at_length(
        cls, start: Point, cmd: PathCommand, distance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> Tuple[PathCommand, PathCommand]:
        """Split where the prefix length equals _distance_ (clamped to the command)."""
        return cls.split(start, cmd, cls.parameter_at_length(start, cmd, distance, config), config)

    @classmethod
    def to_cubics(
        cls, start: Point, cmd: PathCommand, tolerance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> List[PathCommand]:
        """Replace an ArcTo by cubic curves (imprecise, within _tolerance_); other commands pass through."""
        if not isinstance(cmd, ArcTo):
            return [cmd]
        arc = cls.as_arc(start, cmd, config)
        if arc is None:
            return [LineTo(cmd.x, cmd.y)]
        return list(arc.to_cubics(cmd.end_point, tolerance))

    @classmethod
    def flatten(
        cls, start: Point, cmd: PathCommand, tolerance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> List[Point]:
        """End points of the line segments approximating the command within _tolerance_."""
        if isinstance(cmd, (QuadTo, CubeTo)):
            return BezierCurve.flatten(cls.bezier_points(start, cmd), tolerance, config)
        if isinstance(cmd, ArcTo):
            # tolerance budget is shared between the arc conversion and the cubic flattening
            arc_tolerance = min(config.arc_tolerance, 0.5 * tolerance)
            result: List[Point] = []
            current = start
            for cubic in cls.to_cubics(start, cmd, arc_tolerance, config):
                result.extend(cls.flatten(current, cubic, tolerance - arc_tolerance, config))
                current = cubic.end_point
            return result
        return [cmd.end_point]

    @staticmethod
    def reverse(start: Point, cmd: PathCommand) -> PathCommand:
        """Command tracing the same geometry from the end point of _cmd_ back to _start_."""
        if isinstance(cmd, QuadTo):
            return QuadTo(cmd.cx, cmd.cy, start[0], start[1])
        if isinstance(cmd, CubeTo):
            return CubeTo(cmd.c2x, cmd.c2y, cmd.c1x, cmd.c1y, start[0], start[1])
        if isinstance(cmd, ArcTo):
            return ArcTo(cmd.rx, cmd.ry, cmd.rotation, cmd.large_arc, not cmd.sweep, start[0], start[1])
        return LineTo(start[0], start[1])

    @staticmethod
    def transform(cmd: PathCommand, affine_trafo: Affine) -> PathCommand:
        """Apply an affine transformation to all coordinates of the command."""
        if isinstance(cmd, ArcTo):
            return EllipticalArc.transform_command(cmd, affine_trafo)
        if not cmd.coords():
            return cmd
        pts = [GeomMath.transform_point(affine_trafo, p) for p in (*cmd.control_points(), cmd.end_point)]
        flat = [value for point in pts for value in point]
        return type(cmd)(*flat)

    @staticmethod
    def collinear(p0: Point, p1: Point, p2: Point, epsilon: float = DEFAULT_CONFIG.epsilon) -> bool:
        """Return True if p1 lies on the segment p0-p2 (strictly between, same direction)."""
        ax, ay = p1[0] - p0[0], p1[1] - p0[1]
        bx, by = p2[0] - p1[0], p2[1] - p1[1]
        cross = ax * by - ay * bx
        scale = max(math.hypot(ax, ay) * math.hypot(bx, by), epsilon)
        return abs(cross) <= 1.0e-12 * scale + epsilon and ax * bx + ay * by > 0.0
