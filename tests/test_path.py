"""Test module for AvPath in avpath.path

The tests are run using pytest.
These tests ensure that path construction, queries and the path algebra
remain working correctly after changes and refactoring.
"""

import math

import pytest
from svgpathtools import CubicBezier

from avpath.commands import ArcTo, Close, CubeTo, LineTo, MoveTo, QuadTo
from avpath.common import AvPathConfig, Winding
from avpath.errors import InvalidParameterError
from avpath.path import AvPath


def square_polyline() -> AvPath:
    """Open polyline along three sides of the 10x10 square."""
    return AvPath().move_to(0, 0).line_to(10, 0).line_to(10, 10).line_to(0, 10)


def closed_square() -> AvPath:
    return AvPath().move_to(0, 0).line_to(10, 0).line_to(10, 10).line_to(0, 10).close()


def curved_path() -> AvPath:
    """Open segment mixing all drawing commands."""
    return (
        AvPath()
        .move_to(0, 0)
        .line_to(10, 0)
        .quad_to(15, 0, 15, 5)
        .cube_to(15, 10, 10, 15, 5, 15)
        .arc_to(5, 5, 0, False, True, 0, 10)
    )


###############################################################################
# Construction Tests
###############################################################################


class TestAvPathConstruction:
    """Test class for building paths."""

    def test_builder_methods(self):
        """Each builder method appends one command."""
        path = curved_path()
        assert [cmd.cmd for cmd in path.commands] == ["M", "L", "Q", "C", "A"]
        assert len(path) == 5

    def test_drawing_without_current_point_raises(self):
        """A path has to start with MoveTo."""
        with pytest.raises(InvalidParameterError):
            AvPath().line_to(1, 1)
        with pytest.raises(InvalidParameterError):
            AvPath([LineTo(1, 1)])

    def test_non_command_raises_type_error(self):
        """Only path commands are accepted."""
        with pytest.raises(TypeError):
            AvPath([MoveTo(0, 0), (1, 1)])

    def test_drawing_after_close_starts_new_segment(self):
        """A drawing command after Close continues from the closed segment start."""
        path = AvPath().move_to(0, 0).line_to(1, 0).line_to(1, 1).close().line_to(5, 5)
        assert path.commands == (MoveTo(0, 0), LineTo(1, 0), LineTo(1, 1), Close(), MoveTo(0, 0), LineTo(5, 5))
        assert path.segment_count == 2

    def test_constructor_copies_commands(self):
        """The path owns its command storage."""
        commands = [MoveTo(0, 0), LineTo(1, 0)]
        path = AvPath(commands)
        commands.append(LineTo(2, 2))
        assert len(path) == 2

    def test_copy_is_independent(self):
        """Mutating a copy leaves the original untouched."""
        path = square_polyline()
        copied = path.copy()
        copied.line_to(0, 0)
        assert len(path) == 4
        assert copied == square_polyline().line_to(0, 0)

    def test_mutation_invalidates_caches(self):
        """Cached length and bounding box follow mutations."""
        path = AvPath().move_to(0, 0).line_to(10, 0)
        assert path.length() == pytest.approx(10.0)
        assert path.bounding_box().extent == (0.0, 0.0, 10.0, 0.0)
        path.line_to(10, 5)
        assert path.length() == pytest.approx(15.0)
        assert path.bounding_box().extent == (0.0, 0.0, 10.0, 5.0)


###############################################################################
# Query Tests
###############################################################################


class TestAvPathQueries:
    """Test class for path queries."""

    def test_empty_path(self):
        """An empty path has no geometry."""
        path = AvPath()
        assert path.is_empty
        assert path.length() == 0.0
        assert path.bounding_box() is None
        assert path.current_point is None
        assert path.segment_start is None
        assert path.split() == []
        assert path.winding() == Winding.NONE

    def test_square_polyline_scenario(self):
        """Three sides of a square: length 30, area of the implicitly closed ring 100."""
        path = square_polyline()
        assert path.length() == pytest.approx(30.0)
        assert path.signed_area() == pytest.approx(100.0)
        assert path.winding() == Winding.CCW
        assert path.is_ccw
        assert path.bounding_box().extent == (0.0, 0.0, 10.0, 10.0)

    def test_closed_triangle_scenario(self):
        """M(0,0) L(10,0) L(10,10) Close is a right triangle."""
        path = AvPath().move_to(0, 0).line_to(10, 0).line_to(10, 10).close()
        assert path.length() == pytest.approx(20.0 + 10.0 * math.sqrt(2.0))
        assert path.signed_area() == pytest.approx(50.0)
        assert path.is_ccw
        assert path.bounding_box().extent == (0.0, 0.0, 10.0, 10.0)

    def test_clockwise_square(self):
        """Reversed traversal gives negative area."""
        path = AvPath().move_to(0, 0).line_to(0, 10).line_to(10, 10).line_to(10, 0).close()
        assert path.signed_area() == pytest.approx(-100.0)
        assert path.winding() == Winding.CW

    def test_straight_line_has_no_winding(self):
        """A line encloses no area."""
        assert AvPath().move_to(0, 0).line_to(5, 5).winding() == Winding.NONE

    def test_current_point_and_segment_start(self):
        """Current point follows Close back to the segment start."""
        path = AvPath().move_to(1, 2).line_to(5, 2)
        assert path.current_point == (5, 2)
        path.close()
        assert path.current_point == (1, 2)
        assert path.segment_start == (1, 2)

    def test_closed_segment_flags(self):
        """is_closed_segment per segment."""
        path = closed_square().append(square_polyline())
        assert path.segment_count == 2
        assert path.is_closed_segment(0)
        assert not path.is_closed_segment(1)
        assert not path.is_closed_segment()

    def test_signed_area_defaults_to_last_closed_segment(self):
        """Without index the last closed segment is measured."""
        triangle = AvPath().move_to(0, 0).line_to(4, 0).line_to(0, 4).close()
        path = triangle.append(AvPath().move_to(20, 20).line_to(30, 20))
        assert path.signed_area() == pytest.approx(8.0)
        assert path.signed_area(1) == pytest.approx(0.0)

    def test_curved_length(self):
        """Length of a mixed path is the sum of its commands."""
        cubic = CubicBezier(15 + 5j, 15 + 10j, 10 + 15j, 5 + 15j).length()
        path = curved_path()
        quad = AvPath().move_to(10, 0).quad_to(15, 0, 15, 5).length()
        expected = 10.0 + quad + cubic + 0.5 * math.pi * 5.0
        assert path.length() == pytest.approx(expected, rel=1e-4)

    def test_bounding_box_of_arc_path(self):
        """Arcs contribute their exact extent."""
        path = AvPath().move_to(0, 0).arc_to(5, 5, 0, False, True, 10, 0)
        assert path.bounding_box().extent == pytest.approx((0.0, -5.0, 10.0, 0.0))

    def test_point_and_tangent_at(self):
        """Point and tangent lookup by distance along the path."""
        path = square_polyline()
        assert path.point_at(5.0) == pytest.approx((5.0, 0.0))
        assert path.point_at(15.0) == pytest.approx((10.0, 5.0))
        assert path.tangent_at(15.0) == pytest.approx((0.0, 1.0))
        assert path.point_at(100.0) == pytest.approx((0.0, 10.0))
        assert path.point_at(-1.0) == pytest.approx((0.0, 0.0))

    def test_command_coords(self):
        """Literal parameter export per command."""
        path = AvPath().move_to(0, 0).arc_to(5, 4, 30, True, False, 7, 8)
        assert path.command_coords(1) == (5.0, 4.0, 30.0, 1.0, 0.0, 7.0, 8.0)

    def test_polygons(self):
        """Flattened rings per segment; closed rings do not repeat their start."""
        polygons = closed_square().append(square_polyline()).polygons()
        assert len(polygons) == 2
        assert polygons[0].closed
        assert polygons[0].points.shape == (4, 2)
        assert not polygons[1].closed
        assert polygons[1].points.shape == (4, 2)


###############################################################################
# Path Algebra Tests
###############################################################################


class TestAvPathAlgebra:
    """Test class for split, append, join, reverse, transform and optimize."""

    def test_split_into_segments(self):
        """One path per MoveTo in original order."""
        path = closed_square().append(square_polyline(), curved_path())
        segments = path.split()
        assert [segment.segment_count for segment in segments] == [1, 1, 1]
        assert segments[0] == closed_square()
        assert AvPath.concat(segments) == path

    def test_append_keeps_segments_separate(self):
        """append never merges segments and leaves its inputs untouched."""
        first = AvPath().move_to(0, 0).line_to(1, 0)
        second = AvPath().move_to(1, 0).line_to(2, 0)
        combined = first.append(second)
        assert combined.segment_count == 2
        assert len(first) == 2
        assert combined.length() == pytest.approx(2.0)

    def test_append_rejects_non_paths(self):
        """Arguments have to be paths or sequences of paths."""
        with pytest.raises(TypeError):
            square_polyline().append("M 0 0")
        with pytest.raises(TypeError):
            AvPath.concat([square_polyline(), 5])

    def test_join_inserts_connecting_line(self):
        """join continues the last segment with a LineTo to the other start."""
        first = AvPath().move_to(0, 0).line_to(1, 0)
        second = AvPath().move_to(1, 5).line_to(2, 5)
        joined = first.join(second)
        assert joined.commands == (MoveTo(0, 0), LineTo(1, 0), LineTo(1, 5), LineTo(2, 5))
        assert joined.segment_count == 1

    def test_join_without_gap(self):
        """No connecting line where the other path starts at the current point."""
        first = AvPath().move_to(0, 0).line_to(1, 0)
        second = AvPath().move_to(1, 0).line_to(2, 0)
        assert first.join(second).commands == (MoveTo(0, 0), LineTo(1, 0), LineTo(2, 0))

    def test_join_with_empty_paths(self):
        """Joining with an empty path copies the other one."""
        path = square_polyline()
        assert path.join(AvPath()) == path
        assert AvPath().join(path) == path

    def test_split_at_inside_line(self):
        """Cut inside a command."""
        path = AvPath().move_to(0, 0).line_to(10, 0).line_to(10, 10)
        first, second = path.split_at(5.0)
        assert first.commands == (MoveTo(0, 0), LineTo(5.0, 0.0))
        assert second.commands == (MoveTo(5.0, 0.0), LineTo(10, 0), LineTo(10, 10))

    def test_split_at_command_boundary(self):
        """Cut at a vertex."""
        path = AvPath().move_to(0, 0).line_to(10, 0).line_to(10, 10)
        first, second = path.split_at(10.0)
        assert first.commands == (MoveTo(0, 0), LineTo(10, 0))
        assert second.commands == (MoveTo(10, 0), LineTo(10, 10))

    def test_split_at_ends_gives_empty_pieces(self):
        """Cuts at 0 and at the full length give empty pieces."""
        path = square_polyline()
        pieces = path.split_at(0.0, 30.0)
        assert len(pieces) == 3
        assert pieces[0].is_empty
        assert pieces[1] == path
        assert pieces[2].is_empty

    def test_split_at_clamps_and_sorts(self):
        """Distances are clamped to the path and sorted."""
        pieces = square_polyline().split_at(25.0, -3.0, 5.0)
        assert len(pieces) == 4
        assert pieces[0].is_empty
        assert [piece.length() for piece in pieces[1:]] == pytest.approx([5.0, 20.0, 5.0])

    def test_split_at_closed_segment_drops_close(self):
        """A cut closed segment becomes open; its closing edge turns into a LineTo."""
        first, second = closed_square().split_at(35.0)
        assert first.commands[-1] == LineTo(0.0, 5.0)
        assert second.commands == (MoveTo(0.0, 5.0), LineTo(0, 0))
        assert first.length() + second.length() == pytest.approx(40.0)

    def test_split_at_keeps_uncut_closed_segments(self):
        """A cut between two segments keeps both closures."""
        path = closed_square().append(closed_square().translate(20, 0))
        first, second = path.split_at(40.0)
        assert first == closed_square()
        assert second == closed_square().translate(20, 0)

    def test_split_at_curve_lengths(self):
        """Piece lengths add up to the path length."""
        path = curved_path()
        total = path.length()
        pieces = path.split_at(0.3 * total, 0.7 * total)
        assert pieces[0].length() == pytest.approx(0.3 * total, abs=1e-7)
        assert sum(piece.length() for piece in pieces) == pytest.approx(total, rel=1e-4)
        assert pieces[1].commands[0].end_point == pytest.approx(pieces[0].current_point)

    def test_split_at_round_trip(self):
        """Joining the pieces again gives the original geometry."""
        path = curved_path()
        pieces = path.split_at(7.0, 21.0)
        rebuilt = pieces[0].join(pieces[1]).join(pieces[2])
        assert rebuilt.segment_count == 1
        assert rebuilt.length() == pytest.approx(path.length(), rel=1e-4)
        for distance in (3.0, 12.0, 25.0):
            assert rebuilt.point_at(distance) == pytest.approx(path.point_at(distance), abs=1e-3)

    def test_split_at_leaves_receiver_untouched(self):
        """Producers never mutate the receiver."""
        path = curved_path()
        path.split_at(5.0)
        assert path == curved_path()

    def test_reverse_open_segment(self):
        """Reversed commands trace the same geometry backwards."""
        path = AvPath().move_to(0, 0).line_to(10, 0).cube_to(20, 0, 20, 10, 10, 10)
        assert path.reverse().commands == (MoveTo(10, 10), CubeTo(20, 10, 20, 0, 10, 0), LineTo(0, 0))

    def test_reverse_closed_segment(self):
        """A reversed closed segment keeps its start and flips its winding."""
        reversed_square = closed_square().reverse()
        assert reversed_square.commands == (MoveTo(0, 0), LineTo(0, 10), LineTo(10, 10), LineTo(10, 0), Close())
        assert reversed_square.signed_area() == pytest.approx(-100.0)

    def test_reverse_is_involution(self):
        """Reversing twice gives back the original commands."""
        path = closed_square().append(curved_path())
        assert path.reverse().reverse() == path

    def test_reverse_keeps_length_and_points(self):
        """Reversed path has the same length; points are mirrored along it."""
        path = curved_path()
        reversed_path = path.reverse()
        total = path.length()
        assert reversed_path.length() == pytest.approx(total)
        for distance in (2.0, 17.0, 30.0):
            assert reversed_path.point_at(total - distance) == pytest.approx(path.point_at(distance), abs=1e-3)

    def test_reverse_arc(self):
        """Arcs flip their sweep flag."""
        path = AvPath().move_to(0, 0).arc_to(5, 5, 0, False, True, 10, 0)
        assert path.reverse().commands == (MoveTo(10, 0), ArcTo(5, 5, 0, False, False, 0, 0))

    def test_translate(self):
        """Translation moves the bounding box."""
        box = closed_square().translate(5, -5).bounding_box()
        assert box.extent == pytest.approx((5.0, -5.0, 15.0, 5.0))

    def test_rotate_keeps_area(self):
        """Rotation keeps area and winding."""
        rotated = closed_square().rotate(33.0, (5.0, 5.0))
        assert rotated.signed_area() == pytest.approx(100.0)
        assert rotated.length() == pytest.approx(40.0)

    def test_mirror_flips_winding(self):
        """A mirroring transformation reverses the winding."""
        mirrored = closed_square().scale(-1.0, 1.0)
        assert mirrored.signed_area() == pytest.approx(-100.0)

    def test_scale_arc(self):
        """Uniform scaling scales arc lengths."""
        path = AvPath().move_to(0, 0).arc_to(5, 5, 0, False, True, 10, 0)
        assert path.scale(2.0).length() == pytest.approx(10.0 * math.pi)

    def test_non_uniform_scale_arc(self):
        """Non-uniform scaling turns a circle arc into an elliptical arc through the mapped points."""
        path = AvPath().move_to(0, 0).arc_to(5, 5, 0, False, True, 10, 0)
        scaled = path.scale(2.0, 0.5)
        assert scaled.point_at(0.5 * scaled.length()) == pytest.approx((10.0, -2.5), abs=1e-6)
        assert scaled.bounding_box().extent == pytest.approx((0.0, -2.5, 20.0, 0.0))

    def test_transform_inplace(self):
        """In-place transformation mutates the receiver."""
        path = closed_square()
        path.transform_inplace((2, 0, 0, 2, 0, 0))
        assert path.length() == pytest.approx(80.0)

    def test_optimize(self):
        """Redundant commands are removed without changing the shape."""
        path = (
            AvPath()
            .move_to(-5, -5)
            .move_to(0, 0)
            .line_to(5, 0)
            .line_to(10, 0)
            .line_to(10, 0)
            .line_to(10, 10)
            .line_to(0, 0)
        )
        optimized = path.optimize()
        assert optimized.commands == (MoveTo(0, 0), LineTo(10, 0), LineTo(10, 10), Close())
        assert optimized.length() == pytest.approx(path.length())

    def test_optimize_closed_segment_with_explicit_closing_line(self):
        """A final LineTo to the start before Close is dropped."""
        path = AvPath().move_to(0, 0).line_to(10, 0).line_to(10, 10).line_to(0, 0).close()
        assert path.optimize().commands == (MoveTo(0, 0), LineTo(10, 0), LineTo(10, 10), Close())

    def test_optimize_is_idempotent(self):
        """Optimizing twice changes nothing."""
        path = closed_square().append(curved_path()).line_to(0, 10).line_to(-5, 10)
        once = path.optimize()
        assert once.optimize() == once

    def test_optimize_keeps_reversal_lines(self):
        """Collinear lines running back are kept."""
        path = AvPath().move_to(0, 0).line_to(10, 0).line_to(5, 0)
        assert path.optimize() == path


###############################################################################
# Serialization Tests
###############################################################################


class TestAvPathSerialization:
    """Test class for dictionary serialization."""

    def test_dict_round_trip(self):
        """to_dict / from_dict reproduce the path and its settings."""
        config = AvPathConfig(flatten_tolerance=0.5)
        path = AvPath(curved_path().commands, config).close()
        restored = AvPath.from_dict(path.to_dict())
        assert restored == path
        assert restored.config == config

    def test_to_dict_layout(self):
        """Commands are stored as letter and parameter list."""
        data = AvPath().move_to(0, 0).quad_to(1, 1, 2, 0).to_dict()
        assert data["commands"] == [["M", [0.0, 0.0]], ["Q", [1.0, 1.0, 2.0, 0.0]]]
        assert data["bounding_box"] == {"xmin": 0.0, "ymin": 0.0, "xmax": 2.0, "ymax": 1.0}

    def test_from_dict_malformed(self):
        """Malformed entries raise InvalidParameterError."""
        with pytest.raises(InvalidParameterError):
            AvPath.from_dict({"commands": [["L", [1.0]]]})
        with pytest.raises(InvalidParameterError):
            AvPath.from_dict({"commands": [["M"]]})

    def test_str(self):
        """Compact textual form."""
        assert str(AvPath().move_to(0, 0).line_to(1.5, 2).close()) == "M 0 0 L 1.5 2 Z"

    def test_quad_export(self):
        """Quadratic commands keep their control point."""
        path = AvPath([MoveTo(0, 0), QuadTo(1, 2, 3, 4)])
        assert path.command_coords(1) == (1, 2, 3, 4)
