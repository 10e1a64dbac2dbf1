"""Vector path handling and path algebra.

An AvPath owns an ordered list of commands. A path contains 0..n segments;
each segment starts with a MoveTo, is followed by an arbitrary mix of
LineTo/QuadTo/CubeTo/ArcTo, and may optionally end with Close.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from avpath.commands import (
    ArcTo,
    Close,
    CubeTo,
    LineTo,
    MoveTo,
    PathCommand,
    Point,
    QuadTo,
    command_from_coords,
)
from avpath.common import DEFAULT_CONFIG, AvPathConfig, Cap, Join, Winding
from avpath.errors import InvalidParameterError
from avpath.geom import Affine, AvBox, GeomMath
from avpath.segment import AvSegmentGeometry

logger = logging.getLogger(__name__)

COMMAND_TYPES = (MoveTo, LineTo, QuadTo, CubeTo, ArcTo, Close)


###############################################################################
# AvPath
###############################################################################


class AvPath:
    """Path represented by an ordered sequence of drawing commands.

    Producer operations (flatten, stroke, dash, optimize, reverse, transform,
    split, append, join) return new paths and leave the receiver untouched.
    The builder methods (move_to, line_to, ..., close) and transform_inplace
    mutate the receiver and invalidate its cached bounding box and length.

    Attributes:
        _commands: List of path commands
        _config: Numeric settings used by the operations of this path
        _bounding_box: Cached bounding box
        _length: Cached length
    """

    def __init__(self, commands: Optional[Iterable[PathCommand]] = None, config: Optional[AvPathConfig] = None):
        """
        Initialize an AvPath from a sequence of commands.

        The commands are copied into storage owned by this path.

        Args:
            commands: Path commands; the first one must be a MoveTo.
            config: Numeric settings, DEFAULT_CONFIG if None.

        Raises:
            TypeError: If an element is not a path command.
            InvalidParameterError: If a drawing command has no current point.
        """
        self._commands: List[PathCommand] = []
        self._config = config if config is not None else DEFAULT_CONFIG
        self._bounding_box: Optional[AvBox] = None
        self._length: Optional[float] = None
        if commands is not None:
            for cmd in commands:
                self._add(cmd)

    ###########################################################################
    # Construction
    ###########################################################################

    def _invalidate(self) -> None:
        self._bounding_box = None
        self._length = None

    def _add(self, cmd: PathCommand) -> None:
        if not isinstance(cmd, COMMAND_TYPES):
            raise TypeError(f"Expected a path command, got {type(cmd).__name__}")
        if not isinstance(cmd, MoveTo):
            if not self._commands:
                raise InvalidParameterError(f"'{cmd.cmd}' command has no current point; a path starts with MoveTo")
            if isinstance(self._commands[-1], Close):
                # drawing after Close continues from the start of the closed segment
                start = self.segment_start
                assert start is not None
                self._commands.append(MoveTo(start[0], start[1]))
        self._commands.append(cmd)
        self._invalidate()

    def add(self, cmd: PathCommand) -> AvPath:
        """Append a single command in place and return self."""
        self._add(cmd)
        return self

    def extend(self, commands: Iterable[PathCommand]) -> AvPath:
        """Append commands in place and return self."""
        for cmd in commands:
            self._add(cmd)
        return self

    def move_to(self, x: float, y: float) -> AvPath:
        """Start a new segment at (x, y)."""
        return self.add(MoveTo(float(x), float(y)))

    def line_to(self, x: float, y: float) -> AvPath:
        """Draw a straight line to (x, y)."""
        return self.add(LineTo(float(x), float(y)))

    def quad_to(self, cx: float, cy: float, x: float, y: float) -> AvPath:
        """Draw a quadratic Bezier curve to (x, y)."""
        return self.add(QuadTo(float(cx), float(cy), float(x), float(y)))

    def cube_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> AvPath:
        """Draw a cubic Bezier curve to (x, y)."""
        return self.add(CubeTo(float(c1x), float(c1y), float(c2x), float(c2y), float(x), float(y)))

    def arc_to(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        rx: float,
        ry: float,
        rotation: float,
        large_arc: bool,
        sweep: bool,
        x: float,
        y: float,
    ) -> AvPath:
        """Draw an elliptical arc to (x, y) (SVG arc semantics, rotation in degrees)."""
        return self.add(ArcTo(float(rx), float(ry), float(rotation), bool(large_arc), bool(sweep), float(x), float(y)))

    def close(self) -> AvPath:
        """Close the current segment."""
        return self.add(Close())

    def copy(self) -> AvPath:
        """Return an independent copy of this path."""
        return AvPath(self._commands, self._config)

    ###########################################################################
    # Queries
    ###########################################################################

    @property
    def commands(self) -> Tuple[PathCommand, ...]:
        """The commands of this path (read-only view)."""
        return tuple(self._commands)

    @property
    def config(self) -> AvPathConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[PathCommand]:
        return iter(tuple(self._commands))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvPath):
            return NotImplemented
        return self._commands == other._commands

    def __str__(self) -> str:
        parts = []
        for cmd in self._commands:
            coords = " ".join(f"{value:g}" for value in cmd.coords())
            parts.append(f"{cmd.cmd} {coords}".strip())
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"AvPath('{self}')"

    @property
    def is_empty(self) -> bool:
        """Return True if the path has no commands."""
        return not self._commands

    def command_coords(self, index: int) -> Tuple[float, ...]:
        """Literal parameter list of the command at _index_."""
        return self._commands[index].coords()

    @property
    def segment_start(self) -> Optional[Point]:
        """Start point of the last segment, or None for an empty path."""
        for cmd in reversed(self._commands):
            if isinstance(cmd, MoveTo):
                return cmd.end_point
        return None

    @property
    def current_point(self) -> Optional[Point]:
        """Current pen position, or None for an empty path."""
        if not self._commands:
            return None
        last = self._commands[-1]
        if isinstance(last, Close):
            return self.segment_start
        return last.end_point

    @property
    def segment_count(self) -> int:
        return sum(1 for cmd in self._commands if isinstance(cmd, MoveTo))

    def segment_ranges(self) -> List[Tuple[int, int]]:
        """Index ranges [begin, end) of the segments within the command list."""
        starts = [i for i, cmd in enumerate(self._commands) if isinstance(cmd, MoveTo)]
        return [(begin, end) for begin, end in zip(starts, starts[1:] + [len(self._commands)])]

    def is_closed_segment(self, index: int = -1) -> bool:
        """Return True if the segment at _index_ ends with Close."""
        ranges = self.segment_ranges()
        if not ranges:
            return False
        _, end = ranges[index]
        return isinstance(self._commands[end - 1], Close)

    def edges(self) -> Iterator[Tuple[int, Point, PathCommand]]:
        """Yield (command index, start point, drawing command) for every drawing command.

        Close is reported as a LineTo back to the segment start.
        """
        current: Optional[Point] = None
        seg_start: Optional[Point] = None
        for index, cmd in enumerate(self._commands):
            if isinstance(cmd, MoveTo):
                current = seg_start = cmd.end_point
            elif isinstance(cmd, Close):
                assert current is not None and seg_start is not None
                yield index, current, LineTo(seg_start[0], seg_start[1])
                current = seg_start
            else:
                assert current is not None
                yield index, current, cmd
                current = cmd.end_point

    def length(self) -> float:
        """Total length of all segments (cached)."""
        if self._length is None:
            self._length = sum(
                AvSegmentGeometry.length(start, cmd, self._config) for _, start, cmd in self.edges()
            )
        return self._length

    def bounding_box(self) -> Optional[AvBox]:
        """
        Returns the bounding box of the path geometry (cached), or None if the
        path has no geometry. Bezier curves contribute the box around their
        control polygon, arcs their exact extent.
        """
        if self._bounding_box is not None:
            return self._bounding_box

        box: Optional[AvBox] = None
        for _, start, cmd in self.edges():
            if AvSegmentGeometry.is_zero_length(start, cmd, self._config):
                continue
            cmd_box = AvSegmentGeometry.bounding_box(start, cmd, self._config)
            box = cmd_box if box is None else box.union(cmd_box)
        self._bounding_box = box
        return box

    def point_at(self, distance: float) -> Optional[Point]:
        """Point at _distance_ along the path (clamped), or None for a path without commands."""
        located = self._locate(distance)
        if located is None:
            return self.current_point
        start, cmd, local = located
        t = AvSegmentGeometry.parameter_at_length(start, cmd, local, self._config)
        return AvSegmentGeometry.point_at(start, cmd, t, self._config)

    def tangent_at(self, distance: float) -> Optional[Point]:
        """Unit tangent at _distance_ along the path (clamped), or None without geometry."""
        located = self._locate(distance)
        if located is None:
            return None
        start, cmd, local = located
        t = AvSegmentGeometry.parameter_at_length(start, cmd, local, self._config)
        return AvSegmentGeometry.tangent_at(start, cmd, t, self._config)

    def _locate(self, distance: float) -> Optional[Tuple[Point, PathCommand, float]]:
        last: Optional[Tuple[Point, PathCommand, float]] = None
        walked = 0.0
        for _, start, cmd in self.edges():
            cmd_length = AvSegmentGeometry.length(start, cmd, self._config)
            if cmd_length <= self._config.epsilon:
                continue
            if distance <= walked + cmd_length:
                return start, cmd, max(distance - walked, 0.0)
            walked += cmd_length
            last = (start, cmd, cmd_length)
        return last

    def polygons(self, tolerance: Optional[float] = None) -> list:
        """Flattened point arrays per segment (see AvPathFlattener.polygons)."""
        from avpath.flatten import AvPathFlattener  # pylint: disable=import-outside-toplevel

        return AvPathFlattener.polygons(self, tolerance, self._config)

    def _segment_polygon_index(self, index: Optional[int]) -> Optional[int]:
        if index is not None:
            return index
        ranges = self.segment_ranges()
        for i in range(len(ranges) - 1, -1, -1):
            if self.is_closed_segment(i):
                return i
        return len(ranges) - 1 if ranges else None

    def signed_area(self, index: Optional[int] = None, tolerance: Optional[float] = None) -> float:
        """Signed area of a segment (shoelace on its flattened ring, CCW positive).

        Args:
            index: Segment index; by default the last closed segment (or the last
                segment if none is closed). Open segments are treated as closed.
            tolerance: Flatten tolerance, config.flatten_tolerance if None.
        """
        seg_index = self._segment_polygon_index(index)
        if seg_index is None:
            return 0.0
        polygon = self.polygons(tolerance)[seg_index]
        return GeomMath.signed_area(polygon.points)

    def winding(self, index: Optional[int] = None) -> Winding:
        """Winding direction of a segment (see signed_area)."""
        area = self.signed_area(index)
        if abs(area) <= self._config.epsilon:
            return Winding.NONE
        return Winding.CCW if area > 0.0 else Winding.CW

    @property
    def is_ccw(self) -> bool:
        """Return True if the last closed segment runs counter-clockwise."""
        return self.winding() == Winding.CCW

    ###########################################################################
    # Path algebra
    ###########################################################################

    @staticmethod
    def _flatten_arguments(name: str, paths: Sequence[Union[AvPath, Sequence[AvPath]]]) -> List[AvPath]:
        flat_paths: List[AvPath] = []
        for arg in paths:
            if isinstance(arg, AvPath):
                flat_paths.append(arg)
            elif isinstance(arg, Sequence) and not isinstance(arg, (str, bytes)):
                for item in arg:
                    if not isinstance(item, AvPath):
                        raise TypeError(f"{name} expects only AvPath instances")
                    flat_paths.append(item)
            else:
                raise TypeError(f"{name} expects AvPath instances or sequences of AvPath instances")
        return flat_paths

    def append(self, *paths: Union[AvPath, Sequence[AvPath]]) -> AvPath:
        """Return a new AvPath consisting of this path followed by other paths.

        Every segment keeps its own MoveTo; segments are never merged (see join).
        The original paths are not modified.
        """
        result = self.copy()
        for path in self._flatten_arguments("append", paths):
            result.extend(path._commands)
        return result

    @classmethod
    def concat(cls, *paths: Union[AvPath, Sequence[AvPath]]) -> AvPath:
        """Concatenate one or more paths into a single AvPath using append()."""
        flat_paths = cls._flatten_arguments("concat", paths)
        if not flat_paths:
            return cls()
        return flat_paths[0].append(flat_paths[1:])

    def join(self, other: AvPath) -> AvPath:
        """Return a new AvPath where _other_ continues the last segment of this path.

        The leading MoveTo of _other_ is dropped; if it does not start at the
        current point, a connecting LineTo is inserted.
        """
        if not isinstance(other, AvPath):
            raise TypeError("join expects an AvPath instance")
        result = self.copy()
        if not other._commands:
            return result
        if not result._commands:
            return AvPath(other._commands, self._config)

        first = other._commands[0]
        current = result.current_point
        assert current is not None
        if GeomMath.distance(current, first.end_point) > self._config.epsilon:
            result.add(LineTo(first.end_point[0], first.end_point[1]))
        result.extend(other._commands[1:])
        return result

    def split(self) -> List[AvPath]:
        """Split into single-segment paths at each MoveTo, in original order."""
        return [AvPath(self._commands[begin:end], self._config) for begin, end in self.segment_ranges()]

    def split_at(self, *distances: float) -> List[AvPath]:
        """Cut the path at the given cumulative distances.

        Distances are sorted and clamped to [0, length]. A cut inside a command
        uses the precise arc-length split of that command. A closed segment
        that is cut loses its Close; its closing edge becomes a LineTo.

        Returns:
            List of len(distances) + 1 paths; pieces of zero length are empty paths.
        """
        total = self.length()
        cuts = sorted(min(max(float(d), 0.0), total) for d in distances)
        eps = self._config.epsilon

        pieces: List[AvPath] = []
        current = AvPath(config=self._config)
        need_move = True
        cut_index = 0
        walked = 0.0

        for begin, end in self.segment_ranges():
            seg_start = self._commands[begin].end_point
            need_move = True
            cut_in_segment = False
            emitted = False
            position = seg_start
            for cmd in self._commands[begin + 1 : end]:
                geometric = LineTo(seg_start[0], seg_start[1]) if isinstance(cmd, Close) else cmd
                remaining = AvSegmentGeometry.length(position, geometric, self._config)
                while cut_index < len(cuts) and cuts[cut_index] < walked + remaining:
                    local = cuts[cut_index] - walked
                    cut_index += 1
                    if local > eps:
                        left, geometric = AvSegmentGeometry.split_at_length(position, geometric, local, self._config)
                        if need_move:
                            current.move_to(*position)
                        current.add(left)
                        position = left.end_point
                        walked += local
                        remaining -= local
                    # a cut at the very start of a segment keeps it intact
                    cut_in_segment = cut_in_segment or emitted or local > eps
                    pieces.append(current)
                    current = AvPath(config=self._config)
                    need_move = True
                if need_move:
                    current.move_to(*position)
                    need_move = False
                if isinstance(cmd, Close) and not cut_in_segment:
                    current.add(cmd)
                else:
                    current.add(geometric)
                emitted = True
                position = geometric.end_point
                walked += remaining

        while cut_index < len(cuts):
            pieces.append(current)
            current = AvPath(config=self._config)
            cut_index += 1
        pieces.append(current)
        return pieces

    def reverse(self) -> AvPath:
        """Return a new AvPath with reversed drawing direction.

        Segment order and command order are reversed; curve control points are
        swapped and arc sweep flags flipped so the geometry stays identical.
        A closed segment stays closed and starts at its original start point.
        """
        result = AvPath(config=self._config)
        for segment in reversed(self.split()):
            result.extend(segment._reverse_single_segment())
        return result

    def _reverse_single_segment(self) -> List[PathCommand]:
        """Reverse a single-segment path."""
        cmds = self._commands
        seg_start = cmds[0].end_point
        closed = isinstance(cmds[-1], Close)
        body = cmds[1:-1] if closed else cmds[1:]

        edges: List[Tuple[Point, PathCommand]] = []
        current = seg_start
        for cmd in body:
            edges.append((current, cmd))
            current = cmd.end_point

        if not closed:
            reversed_cmds: List[PathCommand] = [MoveTo(current[0], current[1])]
            for start, cmd in reversed(edges):
                reversed_cmds.append(AvSegmentGeometry.reverse(start, cmd))
            return reversed_cmds

        reversed_cmds = [MoveTo(seg_start[0], seg_start[1])]
        if GeomMath.distance(current, seg_start) > self._config.epsilon:
            # the implicit closing edge becomes the first explicit edge
            reversed_cmds.append(LineTo(current[0], current[1]))
        for i, (start, cmd) in enumerate(reversed(edges)):
            is_first_edge = i == len(edges) - 1
            if is_first_edge and isinstance(cmd, LineTo):
                # Close draws this edge
                continue
            reversed_cmds.append(AvSegmentGeometry.reverse(start, cmd))
        reversed_cmds.append(Close())
        return reversed_cmds

    def transform(self, affine_trafo: Affine) -> AvPath:
        """Return a new AvPath with the affine transformation [a00, a01, a10, a11, b0, b1] applied.

        Arc radii and rotation are re-derived from the transformed ellipse.
        """
        return AvPath((AvSegmentGeometry.transform(cmd, affine_trafo) for cmd in self._commands), self._config)

    def transform_inplace(self, affine_trafo: Affine) -> AvPath:
        """Apply an affine transformation in place (invalidates caches) and return self."""
        self._commands = [AvSegmentGeometry.transform(cmd, affine_trafo) for cmd in self._commands]
        self._invalidate()
        return self

    def translate(self, dx: float, dy: float) -> AvPath:
        return self.transform(GeomMath.translation(dx, dy))

    def scale(self, sx: float, sy: Optional[float] = None, origin: Tuple[float, float] = (0.0, 0.0)) -> AvPath:
        """Return a scaled copy (uniform if _sy_ is None) about _origin_."""
        return self.transform(GeomMath.scaling(sx, sx if sy is None else sy, origin))

    def rotate(self, angle_deg: float, pivot: Tuple[float, float] = (0.0, 0.0)) -> AvPath:
        """Return a copy rotated counter-clockwise by _angle_deg_ about _pivot_."""
        return self.transform(GeomMath.rotation(angle_deg, pivot))

    def optimize(self) -> AvPath:
        """Return a new AvPath without redundant commands; the shape is unchanged.

        - zero-length drawing commands are removed
        - consecutive collinear LineTos running in the same direction are merged
        - a final LineTo ending at the segment start becomes (or is covered by) Close
        - a MoveTo directly followed by another MoveTo is dropped
        """
        eps = self._config.epsilon
        result: List[PathCommand] = []
        segments = self.split()
        for seg_index, segment in enumerate(segments):
            cmds = segment._commands
            seg_start = cmds[0].end_point
            closed = isinstance(cmds[-1], Close)
            body = cmds[1:-1] if closed else cmds[1:]

            # (start point, command) pairs of the kept commands
            kept: List[Tuple[Point, PathCommand]] = []
            current = seg_start
            for cmd in body:
                if AvSegmentGeometry.is_zero_length(current, cmd, self._config):
                    continue
                if isinstance(cmd, LineTo) and kept and isinstance(kept[-1][1], LineTo):
                    prev_start, prev_cmd = kept[-1]
                    if AvSegmentGeometry.collinear(prev_start, prev_cmd.end_point, cmd.end_point, eps):
                        kept[-1] = (prev_start, cmd)
                        current = cmd.end_point
                        continue
                kept.append((current, cmd))
                current = cmd.end_point

            if (
                kept
                and len(kept) > 1
                and isinstance(kept[-1][1], LineTo)
                and GeomMath.distance(kept[-1][1].end_point, seg_start) <= eps
            ):
                kept.pop()
                closed = True

            if not kept and not closed and seg_index < len(segments) - 1:
                continue
            result.append(cmds[0])
            result.extend(cmd for _, cmd in kept)
            if closed:
                result.append(Close())
        return AvPath(result, self._config)

    ###########################################################################
    # Builders
    ###########################################################################

    def flatten(self, tolerance: Optional[float] = None) -> AvPath:
        """Return a copy with all curves replaced by lines (see AvPathFlattener)."""
        from avpath.flatten import AvPathFlattener  # pylint: disable=import-outside-toplevel

        return AvPathFlattener.flatten(self, tolerance, self._config)

    def offset(self, distance: float, tolerance: Optional[float] = None) -> AvPath:
        """Return the offset polylines of all segments (see AvPathOffsetter.offset_path)."""
        from avpath.offset import AvPathOffsetter  # pylint: disable=import-outside-toplevel

        return AvPathOffsetter.offset_path(self, distance, tolerance, self._config)

    def stroke(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        width: float,
        cap: Cap = Cap.BUTT,
        join: Join = Join.MITER,
        miter_limit: Optional[float] = None,
        tolerance: Optional[float] = None,
    ) -> AvPath:
        """Return the filled outline of this path stroked with _width_ (see AvPathStroker)."""
        from avpath.stroke import AvPathStroker  # pylint: disable=import-outside-toplevel

        return AvPathStroker.stroke(self, width, cap, join, miter_limit, tolerance, self._config)

    def dash(self, pattern: Sequence[float], offset: float = 0.0) -> AvPath:
        """Return the "on" intervals of a dash pattern as open segments (see AvPathDasher)."""
        from avpath.dash import AvPathDasher  # pylint: disable=import-outside-toplevel

        return AvPathDasher.dash(self, pattern, offset, self._config)

    def dash_stroke(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        pattern: Sequence[float],
        width: float,
        offset: float = 0.0,
        cap: Cap = Cap.BUTT,
        join: Join = Join.MITER,
        miter_limit: Optional[float] = None,
    ) -> AvPath:
        """Dash this path and stroke every dash independently."""
        from avpath.dash import AvPathDasher  # pylint: disable=import-outside-toplevel

        return AvPathDasher.dash_stroke(self, pattern, width, offset, cap, join, miter_limit, self._config)

    def to_shapely(self, tolerance: Optional[float] = None):
        """Return the enclosed area as shapely geometry (see AvPathShapely.to_geometry)."""
        from avpath.path_helper import AvPathShapely  # pylint: disable=import-outside-toplevel

        return AvPathShapely.to_geometry(self, tolerance, self._config)

    ###########################################################################
    # Serialization
    ###########################################################################

    @classmethod
    def from_dict(cls, data: dict) -> AvPath:
        """Create an AvPath instance from a dictionary."""
        try:
            commands = [command_from_coords(entry[0], entry[1]) for entry in data.get("commands", [])]
        except (IndexError, TypeError) as e:
            raise InvalidParameterError(f"Malformed command entry: {e}") from e
        config = AvPathConfig.from_dict(data["config"]) if data.get("config") is not None else None
        return cls(commands, config)

    def to_dict(self) -> dict:
        """Convert the AvPath instance to a dictionary."""
        bbox = self.bounding_box()
        return {
            "commands": [[cmd.cmd, list(cmd.coords())] for cmd in self._commands],
            "bounding_box": bbox.to_dict() if bbox is not None else None,
            "config": self._config.to_dict(),
        }

