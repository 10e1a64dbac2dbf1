"""Central module containing constants, enums and tunable settings for path geometry."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, auto
from typing import Literal

###############################################################################
# Types
###############################################################################


AvPathCmds = Literal[  # Type-Definition for path commands used in AvPath
    # MoveTo (2) - start a new segment and move the current point to (x,y)
    "M",
    # LineTo (2) - draw a straight line from the current point to (x,y)
    "L",
    # Quadratic Bezier To (4) - one control point and an endpoint (x,y)
    "Q",
    # Cubic Bezier To (6) - two control points and an endpoint (x,y)
    "C",
    # Elliptical Arc To (7) - rx, ry, rotation, large-arc flag, sweep flag, endpoint (x,y)
    "A",
    # ClosePath (0) - close segment by drawing a line from the current point to start point
    "Z",
]


###############################################################################
# Enums
###############################################################################


class Cap(Enum):
    """Enum to define how open stroked segments are terminated."""

    BUTT = auto()
    ROUND = auto()
    SQUARE = auto()


class Join(Enum):
    """Enum to define how consecutive stroked edges are connected."""

    MITER = auto()
    ROUND = auto()
    BEVEL = auto()


class Winding(Enum):
    """Traversal direction of a closed segment (positive signed area = CCW)."""

    CCW = auto()
    CW = auto()
    NONE = auto()


###############################################################################
# AvPathConfig
###############################################################################


@dataclass(frozen=True)
class AvPathConfig:
    """Tunable numeric settings used by the geometry operations.

    Attributes:
        flatten_tolerance: Default maximum deviation of flattened output from the true curve.
        arc_tolerance: Accuracy target of the elliptical arc to cubic Bezier conversion.
        arc_length_tolerance: Convergence tolerance of the arc-length to parameter inversion.
        arc_length_max_iterations: Iteration cap of the arc-length inversion.
        flatten_max_depth: Maximum recursion depth of the cubic subdivision.
        miter_limit: Ratio of miter length to stroke width above which miters become bevels.
        stroke_tolerance_factor: Flatten tolerance of the stroker relative to the stroke width.
        epsilon: Distance below which two points are considered coincident.
    """

    flatten_tolerance: float = 0.01
    arc_tolerance: float = 1.0e-4
    arc_length_tolerance: float = 1.0e-9
    arc_length_max_iterations: int = 50
    flatten_max_depth: int = 16
    miter_limit: float = 4.0
    stroke_tolerance_factor: float = 0.01
    epsilon: float = 1.0e-12

    def to_dict(self) -> dict:
        """Convert settings to a dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> AvPathConfig:
        """Create AvPathConfig from a dictionary, using defaults for missing keys."""
        defaults = cls()
        return cls(
            flatten_tolerance=float(data.get("flatten_tolerance", defaults.flatten_tolerance)),
            arc_tolerance=float(data.get("arc_tolerance", defaults.arc_tolerance)),
            arc_length_tolerance=float(data.get("arc_length_tolerance", defaults.arc_length_tolerance)),
            arc_length_max_iterations=int(data.get("arc_length_max_iterations", defaults.arc_length_max_iterations)),
            flatten_max_depth=int(data.get("flatten_max_depth", defaults.flatten_max_depth)),
            miter_limit=float(data.get("miter_limit", defaults.miter_limit)),
            stroke_tolerance_factor=float(data.get("stroke_tolerance_factor", defaults.stroke_tolerance_factor)),
            epsilon=float(data.get("epsilon", defaults.epsilon)),
        )


DEFAULT_CONFIG = AvPathConfig()
