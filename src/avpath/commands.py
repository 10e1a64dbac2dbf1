"""Path commands: the storage representation of an AvPath.

Every command is an immutable dataclass carrying its own end point and control
points. The command letter (``cmd``) together with ``coords()`` forms the
format-agnostic enumeration that serializers map to their own syntax.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Sequence, Tuple, Union

from avpath.common import AvPathCmds
from avpath.errors import InvalidParameterError

Point = Tuple[float, float]

###############################################################################
# PathCommandInfo
###############################################################################


@dataclass(frozen=True)
class PathCommandInfo:
    """Metadata for path commands.

    Attributes:
        num_coords: Number of parameters the command carries
        is_curve: Whether this command represents a curve
        is_drawing: Whether this command draws (vs. move)
    """

    num_coords: int
    is_curve: bool
    is_drawing: bool = True


# Command registry with metadata
COMMAND_INFO = {
    "M": PathCommandInfo(2, False, False),  # MoveTo - not drawing
    "L": PathCommandInfo(2, False, True),  # LineTo - drawing
    "Q": PathCommandInfo(4, True, True),  # Quadratic - curve, drawing
    "C": PathCommandInfo(6, True, True),  # Cubic - curve, drawing
    "A": PathCommandInfo(7, True, True),  # Elliptical arc - curve, drawing
    "Z": PathCommandInfo(0, False, True),  # ClosePath - drawing, no coordinates
}


###############################################################################
# Commands
###############################################################################


@dataclass(frozen=True)
class MoveTo:
    """Start a new segment at (x, y)."""

    x: float
    y: float

    cmd: ClassVar[AvPathCmds] = "M"

    @property
    def end_point(self) -> Point:
        return (self.x, self.y)

    def control_points(self) -> Tuple[Point, ...]:
        return ()

    def coords(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class LineTo:
    """Straight line from the current point to (x, y)."""

    x: float
    y: float

    cmd: ClassVar[AvPathCmds] = "L"

    @property
    def end_point(self) -> Point:
        return (self.x, self.y)

    def control_points(self) -> Tuple[Point, ...]:
        return ()

    def coords(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class QuadTo:
    """Quadratic Bezier curve with control point (cx, cy) ending at (x, y)."""

    cx: float
    cy: float
    x: float
    y: float

    cmd: ClassVar[AvPathCmds] = "Q"

    @property
    def end_point(self) -> Point:
        return (self.x, self.y)

    def control_points(self) -> Tuple[Point, ...]:
        return ((self.cx, self.cy),)

    def coords(self) -> Tuple[float, ...]:
        return (self.cx, self.cy, self.x, self.y)


@dataclass(frozen=True)
class CubeTo:
    """Cubic Bezier curve with control points (c1x, c1y), (c2x, c2y) ending at (x, y)."""

    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float

    cmd: ClassVar[AvPathCmds] = "C"

    @property
    def end_point(self) -> Point:
        return (self.x, self.y)

    def control_points(self) -> Tuple[Point, ...]:
        return ((self.c1x, self.c1y), (self.c2x, self.c2y))

    def coords(self) -> Tuple[float, ...]:
        return (self.c1x, self.c1y, self.c2x, self.c2y, self.x, self.y)


@dataclass(frozen=True)
class ArcTo:
    """Elliptical arc from the current point to (x, y).

    ``rotation`` is the x-axis rotation of the ellipse in degrees. ``large_arc``
    and ``sweep`` select one of the four candidate arcs exactly like the SVG
    elliptical-arc flags (sweep=True runs in the direction of increasing angle).
    """

    rx: float
    ry: float
    rotation: float
    large_arc: bool
    sweep: bool
    x: float
    y: float

    cmd: ClassVar[AvPathCmds] = "A"

    @property
    def end_point(self) -> Point:
        return (self.x, self.y)

    def control_points(self) -> Tuple[Point, ...]:
        return ()

    def coords(self) -> Tuple[float, ...]:
        return (
            self.rx,
            self.ry,
            self.rotation,
            1.0 if self.large_arc else 0.0,
            1.0 if self.sweep else 0.0,
            self.x,
            self.y,
        )


@dataclass(frozen=True)
class Close:
    """Line back to the start of the current segment; marks the segment as closed."""

    cmd: ClassVar[AvPathCmds] = "Z"

    @property
    def end_point(self) -> Optional[Point]:
        return None

    def control_points(self) -> Tuple[Point, ...]:
        return ()

    def coords(self) -> Tuple[float, ...]:
        return ()


PathCommand = Union[MoveTo, LineTo, QuadTo, CubeTo, ArcTo, Close]


def command_from_coords(cmd: str, coords: Sequence[float]) -> PathCommand:
    """Rebuild a command from its letter and its literal parameter list.

    Args:
        cmd: One of the letters M, L, Q, C, A, Z.
        coords: Parameter list as returned by ``coords()``.

    Returns:
        PathCommand: The corresponding command instance.

    Raises:
        InvalidParameterError: For an unknown letter or a wrong number of parameters.
    """
    info = COMMAND_INFO.get(cmd)
    if info is None:
        raise InvalidParameterError(f"Unknown command '{cmd}'")
    if len(coords) != info.num_coords:
        raise InvalidParameterError(f"Command '{cmd}' needs {info.num_coords} coordinates, got {len(coords)}")

    values = [float(value) for value in coords]
    if cmd == "M":
        return MoveTo(values[0], values[1])
    if cmd == "L":
        return LineTo(values[0], values[1])
    if cmd == "Q":
        return QuadTo(values[0], values[1], values[2], values[3])
    if cmd == "C":
        return CubeTo(values[0], values[1], values[2], values[3], values[4], values[5])
    if cmd == "A":
        return ArcTo(values[0], values[1], values[2], bool(values[3]), bool(values[4]), values[5], values[6])
    return Close()
