"""Parallel (offset) curves of lines, polylines and arcs.

A positive distance offsets to the left of the travel direction, a negative
distance to the right.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from avpath.arc import EllipticalArc
from avpath.commands import ArcTo, Point
from avpath.common import DEFAULT_CONFIG, AvPathConfig
from avpath.errors import DegenerateGeometryError
from avpath.flatten import AvPathFlattener
from avpath.geom import GeomMath

if TYPE_CHECKING:
    from avpath.path import AvPath

logger = logging.getLogger(__name__)


class AvPathOffsetter:
    """Collection of offset functions."""

    @staticmethod
    def left_normal(p0: Point, p1: Point, epsilon: float = DEFAULT_CONFIG.epsilon) -> Tuple[float, float]:
        """Unit normal pointing to the left of the direction p0 -> p1."""
        dx, dy = GeomMath.normalize(p1[0] - p0[0], p1[1] - p0[1], epsilon)
        return (-dy, dx)

    @classmethod
    def offset_line(
        cls, p0: Point, p1: Point, distance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> Tuple[Point, Point]:
        """Offset the line p0 -> p1 by _distance_ (exact).

        Raises:
            DegenerateGeometryError: If the line has zero length.
        """
        if GeomMath.distance(p0, p1) <= config.epsilon:
            raise DegenerateGeometryError("Cannot offset a zero-length line")
        nx, ny = cls.left_normal(p0, p1, config.epsilon)
        return (
            (p0[0] + distance * nx, p0[1] + distance * ny),
            (p1[0] + distance * nx, p1[1] + distance * ny),
        )

    @staticmethod
    def remove_duplicates(
        points: NDArray[np.float64], closed: bool, epsilon: float = DEFAULT_CONFIG.epsilon
    ) -> NDArray[np.float64]:
        """Drop consecutive duplicate points (and the closing duplicate of a closed ring)."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if points.shape[0] == 0:
            return points
        keep = [0]
        for i in range(1, points.shape[0]):
            if np.hypot(*(points[i] - points[keep[-1]])) > epsilon:
                keep.append(i)
        result = points[keep]
        if closed and result.shape[0] > 1 and np.hypot(*(result[-1] - result[0])) <= epsilon:
            result = result[:-1]
        return result

    @classmethod
    def offset_polyline(
        cls,
        points: NDArray[np.float64],
        distance: float,
        closed: bool = False,
        miter_limit: Optional[float] = None,
        config: AvPathConfig = DEFAULT_CONFIG,
    ) -> NDArray[np.float64]:
        """Offset every vertex of a polyline along its mitered vertex normal.

        The offset edges stay parallel to the original edges. At sharp vertices
        the miter length is clamped to _miter_limit_ times the distance, which
        makes the adjacent offset edges lose their parallelism there.

        Args:
            points: (n, 2) vertices.
            distance: Signed offset distance (positive to the left).
            closed: Whether the last vertex connects back to the first one.
            miter_limit: Maximum miter length ratio, config.miter_limit if None.
            config: Numeric settings.

        Returns:
            NDArray of shape (m, 2), m being the number of distinct vertices.

        Raises:
            DegenerateGeometryError: If fewer than two distinct vertices remain.
        """
        limit = config.miter_limit if miter_limit is None else miter_limit
        pts = cls.remove_duplicates(points, closed, config.epsilon)
        count = pts.shape[0]
        if count < 2:
            raise DegenerateGeometryError("Cannot offset a polyline with fewer than two distinct points")

        edges = np.roll(pts, -1, axis=0) - pts
        lengths = np.hypot(edges[:, 0], edges[:, 1])
        # the wrap-around edge of an open polyline is unused
        lengths[lengths <= config.epsilon] = 1.0
        normals = np.column_stack((-edges[:, 1], edges[:, 0])) / lengths[:, None]

        result = np.empty_like(pts)
        for i in range(count):
            if not closed and i == 0:
                normal = normals[0]
                scale = 1.0
            elif not closed and i == count - 1:
                normal = normals[count - 2]
                scale = 1.0
            else:
                n_prev = normals[i - 1]
                n_next = normals[i]
                bisector = n_prev + n_next
                norm = math.hypot(bisector[0], bisector[1])
                if norm <= config.epsilon:
                    # U-turn: no finite miter
                    normal = n_prev
                    scale = 1.0
                else:
                    normal = bisector / norm
                    cos_half = float(np.dot(normal, n_prev))
                    scale = min(1.0 / cos_half, limit) if cos_half > config.epsilon else limit
            result[i] = pts[i] + distance * scale * normal
        return result

    @staticmethod
    def offset_arc(
        start: Point, arc: ArcTo, distance: float, config: AvPathConfig = DEFAULT_CONFIG
    ) -> Tuple[Point, ArcTo]:
        """Offset an elliptical arc concentrically.

        Exact for circular arcs, an approximation for elliptical ones.

        Returns:
            Tuple of the offset start point and the offset ArcTo.

        Raises:
            DegenerateGeometryError: If the arc degenerates to a line or a point.
            UnsupportedOffsetError: If the offset collapses the arc.
        """
        if EllipticalArc.is_degenerate(start, arc, config.epsilon):
            raise DegenerateGeometryError(f"Cannot offset the degenerate arc {arc!r} as an arc")
        return EllipticalArc.from_endpoints(start, arc).offset(distance)

    @classmethod
    def offset_path(
        cls,
        path: AvPath,
        distance: float,
        tolerance: Optional[float] = None,
        config: AvPathConfig = DEFAULT_CONFIG,
    ) -> AvPath:
        """Offset all segments of a path after flattening them.

        Open segments give open polylines, closed segments closed ones. Segments
        with fewer than two distinct points are skipped.
        """
        from avpath.path import AvPath  # pylint: disable=import-outside-toplevel

        result = AvPath(config=path.config)
        for flat in AvPathFlattener.polygons(path, tolerance, config):
            pts = cls.remove_duplicates(flat.points, flat.closed, config.epsilon)
            if pts.shape[0] < 2:
                logger.debug("skipping degenerate segment while offsetting")
                continue
            offset_points = cls.offset_polyline(pts, distance, flat.closed and pts.shape[0] > 2, None, config)
            result.move_to(*offset_points[0])
            for x, y in offset_points[1:]:
                result.line_to(x, y)
            if flat.closed:
                result.close()
        return result
