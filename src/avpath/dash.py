"""Dash pattern application."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from avpath.common import DEFAULT_CONFIG, AvPathConfig, Cap, Join
from avpath.errors import InvalidParameterError

if TYPE_CHECKING:
    from avpath.path import AvPath

logger = logging.getLogger(__name__)


class AvPathDasher:
    """Cut a path into the "on" intervals of a dash pattern.

    The pattern alternates "on" and "off" lengths, starting with "on". It
    restarts at the beginning of every segment, shifted by the dash offset.
    """

    @staticmethod
    def normalize_pattern(pattern: Sequence[float]) -> List[float]:
        """Validate a dash pattern; a pattern of odd length is repeated once.

        Raises:
            InvalidParameterError: For an empty pattern, negative or non-finite
                entries or a pattern summing to zero.
        """
        values = [float(v) for v in pattern]
        if not values:
            raise InvalidParameterError("Dash pattern must not be empty")
        if any(not math.isfinite(v) or v < 0.0 for v in values):
            raise InvalidParameterError(f"Dash pattern entries must be finite and non-negative: {values}")
        if sum(values) <= 0.0:
            raise InvalidParameterError("Dash pattern must have a positive total length")
        if len(values) % 2 == 1:
            values = values * 2
        return values

    @staticmethod
    def intervals(length: float, pattern: Sequence[float], offset: float = 0.0) -> List[Tuple[float, float]]:
        """The "on" intervals [start, end] of a normalized pattern along _length_.

        Intervals of zero length are dropped.
        """
        cycle = sum(pattern)
        phase = math.fmod(offset, cycle)
        if phase < 0.0:
            phase += cycle

        index = 0
        while phase >= pattern[index]:
            phase -= pattern[index]
            index = (index + 1) % len(pattern)
        remaining = pattern[index] - phase

        result: List[Tuple[float, float]] = []
        position = 0.0
        while position < length:
            end = min(position + remaining, length)
            if index % 2 == 0 and end > position:
                result.append((position, end))
            position = end
            index = (index + 1) % len(pattern)
            remaining = pattern[index]
        return result

    @classmethod
    def dash(
        cls,
        path: AvPath,
        pattern: Sequence[float],
        offset: float = 0.0,
        config: AvPathConfig = DEFAULT_CONFIG,
    ) -> AvPath:
        """Return the "on" pieces of _path_ as open segments.

        For a closed segment a dash running over the end is merged with the
        dash starting at the segment start. A closed segment covered by one
        single dash stays closed.

        Raises:
            InvalidParameterError: For an invalid pattern (see normalize_pattern).
        """
        from avpath.path import AvPath  # pylint: disable=import-outside-toplevel

        values = cls.normalize_pattern(pattern)
        result = AvPath(config=path.config)
        for index, segment in enumerate(path.split()):
            length = segment.length()
            if length <= config.epsilon:
                continue
            closed = segment.is_closed_segment()
            on_intervals = cls.intervals(length, values, offset)
            if not on_intervals:
                continue

            if len(on_intervals) == 1 and on_intervals[0][1] - on_intervals[0][0] >= length - config.epsilon:
                result.extend(segment.commands)
                continue

            boundaries = sorted({value for interval in on_intervals for value in interval})
            pieces = segment.split_at(*boundaries)
            position = {value: i for i, value in enumerate(boundaries)}
            dashes = [pieces[position[end]] for _, end in on_intervals]

            wraps = (
                closed
                and len(dashes) > 1
                and on_intervals[0][0] <= config.epsilon
                and on_intervals[-1][1] >= length - config.epsilon
            )
            if wraps:
                dashes = dashes[1:-1] + [dashes[-1].join(dashes[0])]
            logger.debug("segment %d: %d dashes", index, len(dashes))
            for piece in dashes:
                result.extend(piece.commands)
        return result

    @classmethod
    def dash_stroke(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        path: AvPath,
        pattern: Sequence[float],
        width: float,
        offset: float = 0.0,
        cap: Cap = Cap.BUTT,
        join: Join = Join.MITER,
        miter_limit: Optional[float] = None,
        config: AvPathConfig = DEFAULT_CONFIG,
    ) -> AvPath:
        """Dash _path_ and stroke the dashes; every dash gets its own caps."""
        from avpath.stroke import AvPathStroker  # pylint: disable=import-outside-toplevel

        return AvPathStroker.stroke(cls.dash(path, pattern, offset, config), width, cap, join, miter_limit, None, config)
