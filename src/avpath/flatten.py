"""Conversion of curved paths into polylines."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

import numpy as np
from numpy.typing import NDArray

from avpath.commands import Close, LineTo, MoveTo
from avpath.common import DEFAULT_CONFIG, AvPathConfig
from avpath.errors import InvalidParameterError
from avpath.geom import GeomMath
from avpath.segment import AvSegmentGeometry

if TYPE_CHECKING:
    from avpath.path import AvPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvFlatSegment:
    """Flattened segment: an (n, 2) point array and whether the segment is closed.

    Closed segments do not repeat their start point at the end.
    """

    points: NDArray[np.float64]
    closed: bool

    @property
    def signed_area(self) -> float:
        return GeomMath.signed_area(self.points)


class AvPathFlattener:
    """Replace QuadTo, CubeTo and ArcTo commands by LineTo sequences.

    Bezier curves are subdivided recursively until their control points lie
    within the tolerance of the chord. Arcs are first converted to cubic curves
    using a share of the tolerance budget.
    """

    @staticmethod
    def resolve_tolerance(tolerance: Optional[float], config: AvPathConfig) -> float:
        """Return _tolerance_ or the configured default; raise for non-positive values."""
        if tolerance is None:
            tolerance = config.flatten_tolerance
        if not tolerance > 0.0:
            raise InvalidParameterError(f"Flatten tolerance must be positive, got {tolerance}")
        return float(tolerance)

    @classmethod
    def flatten(cls, path: AvPath, tolerance: Optional[float] = None, config: AvPathConfig = DEFAULT_CONFIG) -> AvPath:
        """Return a new path containing only MoveTo, LineTo and Close commands.

        Every point of the result lies within _tolerance_ of the original curve.
        Zero-length drawing commands are dropped; MoveTo and Close are kept.

        Args:
            path: Path to flatten.
            tolerance: Maximum deviation, config.flatten_tolerance if None.
            config: Numeric settings.

        Raises:
            InvalidParameterError: If tolerance is not positive.
        """
        from avpath.path import AvPath  # pylint: disable=import-outside-toplevel

        tolerance = cls.resolve_tolerance(tolerance, config)
        result = AvPath(config=path.config)
        current = None
        for cmd in path.commands:
            if isinstance(cmd, MoveTo):
                result.add(cmd)
                current = cmd.end_point
            elif isinstance(cmd, Close):
                result.add(cmd)
                current = result.current_point
            else:
                if AvSegmentGeometry.is_zero_length(current, cmd, config):
                    continue
                for point in AvSegmentGeometry.flatten(current, cmd, tolerance, config):
                    result.add(LineTo(point[0], point[1]))
                current = cmd.end_point
        logger.debug("flattened %d commands into %d commands", len(path), len(result))
        return result

    @classmethod
    def polygons(
        cls, path: AvPath, tolerance: Optional[float] = None, config: AvPathConfig = DEFAULT_CONFIG
    ) -> List[AvFlatSegment]:
        """Flatten every segment into a point array.

        Consecutive duplicate points are removed; a closed segment whose last
        point equals its start point drops that last point.

        Returns:
            One AvFlatSegment per segment of _path_, in path order.
        """
        tolerance = cls.resolve_tolerance(tolerance, config)
        result: List[AvFlatSegment] = []
        for segment in path.split():
            commands = segment.commands
            points = [commands[0].end_point]
            for _, start, cmd in segment.edges():
                if AvSegmentGeometry.is_zero_length(start, cmd, config):
                    continue
                for point in AvSegmentGeometry.flatten(start, cmd, tolerance, config):
                    if GeomMath.distance(points[-1], point) > config.epsilon:
                        points.append(point)
            closed = isinstance(commands[-1], Close)
            if closed and len(points) > 1 and GeomMath.distance(points[0], points[-1]) <= config.epsilon:
                points.pop()
            result.append(AvFlatSegment(np.asarray(points, dtype=np.float64).reshape(-1, 2), closed))
        return result
