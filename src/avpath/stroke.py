"""Stroke outline generation.

A path is stroked by flattening it and offsetting every flattened segment by
half the stroke width to both sides. Joins are only inserted on the convex
(outer) side of a vertex; the concave side uses the intersection of the two
offset edges and may overlap itself at sharp corners. The outline is meant to
be filled with the nonzero rule.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from avpath.commands import Point
from avpath.common import DEFAULT_CONFIG, AvPathConfig, Cap, Join
from avpath.errors import InvalidParameterError
from avpath.flatten import AvPathFlattener
from avpath.geom import GeomMath
from avpath.offset import AvPathOffsetter

if TYPE_CHECKING:
    from avpath.path import AvPath

logger = logging.getLogger(__name__)

# outline operation: ("L", point) or ("A", point, sweep)
OutlineOp = Tuple


class AvPathStroker:
    """Create the filled outline of a stroked path."""

    @classmethod
    def stroke(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        path: AvPath,
        width: float,
        cap: Cap = Cap.BUTT,
        join: Join = Join.MITER,
        miter_limit: Optional[float] = None,
        tolerance: Optional[float] = None,
        config: AvPathConfig = DEFAULT_CONFIG,
    ) -> AvPath:
        """Return the outline of _path_ stroked with _width_.

        Open segments give one closed outline each (oriented counter-clockwise).
        Closed segments give two rings: the outer one counter-clockwise, the
        inner one clockwise. A segment without extent gives a circle for round
        caps, a square for square caps and nothing for butt caps.

        Args:
            path: Path to stroke.
            width: Stroke width.
            cap: Cap style of open segment ends.
            join: Join style at convex vertices.
            miter_limit: Limit of the vertex to miter tip distance in units of half
                the width, config.miter_limit if None. Longer miters become bevels.
            tolerance: Flatten tolerance, width * config.stroke_tolerance_factor if None.
            config: Numeric settings.

        Raises:
            InvalidParameterError: For a non-positive width, a miter limit below 1
                or unknown cap and join styles.
        """
        from avpath.path import AvPath  # pylint: disable=import-outside-toplevel

        if not (isinstance(width, (int, float)) and math.isfinite(width) and width > 0.0):
            raise InvalidParameterError(f"Stroke width must be a positive number, got {width}")
        if not isinstance(cap, Cap):
            raise InvalidParameterError(f"Unknown cap style {cap!r}")
        if not isinstance(join, Join):
            raise InvalidParameterError(f"Unknown join style {join!r}")
        limit = config.miter_limit if miter_limit is None else float(miter_limit)
        if limit < 1.0:
            raise InvalidParameterError(f"Miter limit must be at least 1, got {limit}")
        if tolerance is None:
            tolerance = width * config.stroke_tolerance_factor

        half_width = 0.5 * width
        result = AvPath(config=path.config)
        for flat in AvPathFlattener.polygons(path, tolerance, config):
            pts = AvPathOffsetter.remove_duplicates(flat.points, flat.closed, config.epsilon)
            if pts.shape[0] == 0:
                continue
            if pts.shape[0] == 1:
                cls._stroke_point(result, tuple(pts[0]), half_width, cap)
            elif flat.closed and pts.shape[0] > 2:
                cls._stroke_closed(result, pts, half_width, join, limit, config)
            else:
                if flat.closed:
                    # back and forth between two points
                    pts = np.vstack([pts, pts[:1]])
                cls._stroke_open(result, pts, half_width, cap, join, limit, config)
        logger.debug("stroked %d segments into %d commands", path.segment_count, len(result))
        return result

    ###########################################################################
    # Outline pieces
    ###########################################################################

    @staticmethod
    def _offset(point: Sequence[float], normal: Sequence[float], distance: float) -> Point:
        return (float(point[0] + distance * normal[0]), float(point[1] + distance * normal[1]))

    @classmethod
    def _join(
        # pylint: disable=too-many-arguments,too-many-positional-arguments,too-many-locals
        cls,
        vertex: Sequence[float],
        prev_end: Point,
        next_start: Point,
        directions: Tuple[Tuple[float, float], Tuple[float, float]],
        lengths: Tuple[float, float],
        distance: float,
        join: Join,
        limit: float,
        epsilon: float,
    ) -> List[OutlineOp]:
        """Outline operations around _vertex_ from the offset end of edge a to the offset start of edge b.

        _distance_ is the signed offset (positive to the left of the travel direction).
        """
        d_a, d_b = directions
        len_a, len_b = lengths
        n_a = (-d_a[1], d_a[0])
        n_b = (-d_b[1], d_b[0])
        cross = d_a[0] * d_b[1] - d_a[1] * d_b[0]
        dot = d_a[0] * d_b[0] + d_a[1] * d_b[1]

        if abs(cross) <= 1e-9 and dot > 0.0:
            return [("L", prev_end)]

        outer = distance * cross < 0.0 or abs(cross) <= 1e-9
        if not outer:
            point = GeomMath.line_intersection(prev_end, d_a, next_start, d_b)
            if point is not None:
                back = (point[0] - prev_end[0]) * d_a[0] + (point[1] - prev_end[1]) * d_a[1]
                ahead = (point[0] - next_start[0]) * d_b[0] + (point[1] - next_start[1]) * d_b[1]
                if -len_a - epsilon <= back <= epsilon and -epsilon <= ahead <= len_b + epsilon:
                    return [("L", point)]
            return [("L", prev_end), ("L", (float(vertex[0]), float(vertex[1]))), ("L", next_start)]

        if join == Join.ROUND:
            mx, my = GeomMath.normalize(n_a[0] + n_b[0], n_a[1] + n_b[1], epsilon)
            if mx == 0.0 and my == 0.0:
                middle = cls._offset(vertex, d_a, abs(distance))
            else:
                middle = cls._offset(vertex, (mx, my), distance)
            sweep = distance < 0.0
            return [("L", prev_end), ("A", middle, sweep), ("A", next_start, sweep)]

        if join == Join.MITER:
            cos_half = math.sqrt(max(0.5 * (1.0 + dot), 0.0))
            if cos_half > epsilon and 1.0 / cos_half <= limit:
                apex = GeomMath.line_intersection(prev_end, d_a, next_start, d_b)
                if apex is not None:
                    return [("L", prev_end), ("L", apex), ("L", next_start)]

        return [("L", prev_end), ("L", next_start)]

    @classmethod
    def _side(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        pts: NDArray[np.float64],
        distance: float,
        closed: bool,
        join: Join,
        limit: float,
        config: AvPathConfig,
    ) -> List[OutlineOp]:
        """Offset one side of a polyline including its joins."""
        eps = config.epsilon
        points = pts.tolist()
        count = len(points)
        edge_count = count if closed else count - 1
        edges = []
        directions = []
        lengths = []
        for i in range(edge_count):
            p0 = points[i]
            p1 = points[(i + 1) % count]
            edges.append(AvPathOffsetter.offset_line(p0, p1, distance, config))
            lengths.append(GeomMath.distance(p0, p1))
            directions.append(GeomMath.normalize(p1[0] - p0[0], p1[1] - p0[1], eps))

        ops: List[OutlineOp] = []
        joined = range(count) if closed else range(1, count - 1)
        if not closed:
            ops.append(("L", edges[0][0]))
        for i in joined:
            ops.extend(
                cls._join(
                    points[i],
                    edges[i - 1][1],
                    edges[i][0],
                    (directions[i - 1], directions[i]),
                    (lengths[i - 1], lengths[i]),
                    distance,
                    join,
                    limit,
                    eps,
                )
            )
        if not closed:
            ops.append(("L", edges[-1][1]))
        return ops

    @classmethod
    def _cap(cls, end: Sequence[float], outward: Tuple[float, float], half_width: float, cap: Cap) -> List[OutlineOp]:
        """Cap from end - w*rot90(outward) to end + w*rot90(outward), w being half the width."""
        side = (-outward[1], outward[0])
        a = cls._offset(end, side, -half_width)
        b = cls._offset(end, side, half_width)
        if cap == Cap.SQUARE:
            return [("L", cls._offset(a, outward, half_width)), ("L", cls._offset(b, outward, half_width)), ("L", b)]
        if cap == Cap.ROUND:
            return [("A", cls._offset(end, outward, half_width), True), ("A", b, True)]
        return [("L", b)]

    @staticmethod
    def _emit(result: AvPath, ops: List[OutlineOp], radius: float, epsilon: float) -> None:
        """Append the operations as one closed segment."""
        start = ops[0][1]
        result.move_to(*start)
        current = start
        body = ops[1:]
        if body and body[-1][0] == "L" and GeomMath.distance(body[-1][1], start) <= epsilon:
            body = body[:-1]
        for op in body:
            point = op[1]
            if GeomMath.distance(current, point) <= epsilon:
                continue
            if op[0] == "A":
                result.arc_to(radius, radius, 0.0, False, op[2], point[0], point[1])
            else:
                result.line_to(point[0], point[1])
            current = point
        result.close()

    ###########################################################################
    # Segment strokes
    ###########################################################################

    @classmethod
    def _stroke_open(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        result: AvPath,
        pts: NDArray[np.float64],
        half_width: float,
        cap: Cap,
        join: Join,
        limit: float,
        config: AvPathConfig,
    ) -> None:
        eps = config.epsilon
        end_dir = GeomMath.normalize(float(pts[-1][0] - pts[-2][0]), float(pts[-1][1] - pts[-2][1]), eps)
        start_dir = GeomMath.normalize(float(pts[0][0] - pts[1][0]), float(pts[0][1] - pts[1][1]), eps)
        # right side forward and left side backward make a counter-clockwise outline
        ops = cls._side(pts, -half_width, False, join, limit, config)
        ops += cls._cap(pts[-1], end_dir, half_width, cap)
        ops += cls._side(pts[::-1], -half_width, False, join, limit, config)
        ops += cls._cap(pts[0], start_dir, half_width, cap)
        cls._emit(result, ops, half_width, eps)

    @classmethod
    def _stroke_closed(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        result: AvPath,
        pts: NDArray[np.float64],
        half_width: float,
        join: Join,
        limit: float,
        config: AvPathConfig,
    ) -> None:
        from avpath.path import AvPath  # pylint: disable=import-outside-toplevel

        eps = config.epsilon
        rings = []
        for ring_points in (pts, pts[::-1]):
            ring = AvPath(config=result.config)
            cls._emit(ring, cls._side(ring_points, -half_width, True, join, limit, config), half_width, eps)
            rings.append((ring, ring.signed_area(0, half_width * config.stroke_tolerance_factor)))

        rings.sort(key=lambda item: abs(item[1]), reverse=True)
        (outer, outer_area), (inner, inner_area) = rings
        if outer_area < 0.0:
            outer = outer.reverse()
        if inner_area > 0.0:
            inner = inner.reverse()
        result.extend(outer.commands)
        result.extend(inner.commands)

    @staticmethod
    def _stroke_point(result: AvPath, center: Tuple[float, float], half_width: float, cap: Cap) -> None:
        cx, cy = float(center[0]), float(center[1])
        if cap == Cap.ROUND:
            result.move_to(cx + half_width, cy)
            for x, y in ((cx, cy + half_width), (cx - half_width, cy), (cx, cy - half_width), (cx + half_width, cy)):
                result.arc_to(half_width, half_width, 0.0, False, True, x, y)
            result.close()
        elif cap == Cap.SQUARE:
            result.move_to(cx - half_width, cy - half_width)
            result.line_to(cx + half_width, cy - half_width)
            result.line_to(cx + half_width, cy + half_width)
            result.line_to(cx - half_width, cy + half_width)
            result.close()
