"""Conversion between AvPath and shapely geometries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

import shapely.errors
import shapely.geometry
from shapely.geometry.base import BaseGeometry

from avpath.common import DEFAULT_CONFIG, AvPathConfig
from avpath.flatten import AvPathFlattener

if TYPE_CHECKING:
    from avpath.path import AvPath

logger = logging.getLogger(__name__)


class AvPathShapely:
    """Fill-area view of paths as shapely geometries.

    Segments are flattened and treated as closed rings. Counter-clockwise rings
    add area, clockwise rings cut holes. Clockwise rings seen before the first
    counter-clockwise ring are applied once that ring is found.
    """

    @staticmethod
    def _polygons_of(geometry: BaseGeometry) -> List[shapely.geometry.Polygon]:
        if isinstance(geometry, shapely.geometry.Polygon):
            return [] if geometry.is_empty else [geometry]
        if isinstance(geometry, (shapely.geometry.MultiPolygon, shapely.geometry.GeometryCollection)):
            polygons = []
            for geom in geometry.geoms:
                if isinstance(geom, shapely.geometry.Polygon) and not geom.is_empty:
                    polygons.append(geom)
                else:
                    logger.debug("skipping %s geometry", geom.geom_type)
            return polygons
        return []

    @classmethod
    def to_geometry(
        cls, path: AvPath, tolerance: Optional[float] = None, config: AvPathConfig = DEFAULT_CONFIG
    ) -> BaseGeometry:
        """Return the area enclosed by _path_ as shapely Polygon or MultiPolygon.

        Rings with fewer than three points are skipped. Self-intersecting rings
        are cleaned with buffer(0).
        """
        result: Optional[BaseGeometry] = None
        deferred_cw: List[BaseGeometry] = []
        for flat in AvPathFlattener.polygons(path, tolerance, config):
            if flat.points.shape[0] < 3:
                logger.debug("ring with fewer than 3 points skipped")
                continue
            is_ccw = flat.signed_area > 0.0
            try:
                cleaned = shapely.geometry.Polygon(flat.points.tolist()).buffer(0)
            except (shapely.errors.ShapelyError, ValueError) as e:
                logger.warning("failed to clean ring with buffer(0): %s", e)
                continue
            for polygon in cls._polygons_of(cleaned):
                if is_ccw:
                    result = polygon if result is None else result.union(polygon)
                    for cw_polygon in deferred_cw:
                        result = result.difference(cw_polygon)
                    deferred_cw.clear()
                elif result is None:
                    deferred_cw.append(polygon)
                else:
                    result = result.difference(polygon)

        if result is None:
            if deferred_cw:
                logger.warning("no counter-clockwise ring found; %d clockwise rings ignored", len(deferred_cw))
            return shapely.geometry.Polygon()
        return result

    @classmethod
    def from_geometry(cls, geometry: BaseGeometry, config: AvPathConfig = DEFAULT_CONFIG) -> AvPath:
        """Create a closed polyline path from shapely polygons.

        Exteriors are emitted counter-clockwise, interiors clockwise.
        """
        from avpath.path import AvPath  # pylint: disable=import-outside-toplevel

        result = AvPath(config=config)
        for polygon in cls._polygons_of(geometry):
            oriented = shapely.geometry.polygon.orient(polygon, sign=1.0)
            for ring in [oriented.exterior, *oriented.interiors]:
                coords = list(ring.coords)[:-1]
                if len(coords) < 3:
                    continue
                result.move_to(coords[0][0], coords[0][1])
                for x, y in coords[1:]:
                    result.line_to(x, y)
                result.close()
        return result
