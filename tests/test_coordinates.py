"""
Tests for torus and bounded coordinate arithmetic.
"""

import math

import pytest

from py_overworld.core.coordinates import (
    ORTHOGONAL_DIRECTIONS,
    bounded_offset,
    bounded_orthogonal_neighbors,
    bounded_topology,
    is_diagonal_movement,
    orthogonal_neighbors,
    torus_distance,
    torus_topology,
    wrap_coordinate,
    wrap_position,
)


class TestWrapping:
    """Test toroidal wraparound."""

    @pytest.mark.parametrize("coord,delta,size,expected", [
        (9, 1, 10, 0),
        (0, -1, 10, 9),
        (5, 0, 10, 5),
        (3, -14, 10, 9),
        (3, 27, 10, 0),
    ])
    def test_wrap_coordinate(self, coord, delta, size, expected):
        """Test signed offsets followed by modulo."""
        assert wrap_coordinate(coord, delta, size) == expected

    def test_right_edge_is_left_edge(self):
        """Test that stepping off the right edge lands on column 0."""
        assert wrap_position(149, 7, 1, 0, 150, 100) == (0, 7)

    def test_bottom_edge_is_top_edge(self):
        """Test that stepping off the bottom edge lands on row 0."""
        assert wrap_position(7, 99, 0, 1, 150, 100) == (7, 0)

    def test_corner(self):
        """Test a diagonal offset across both seams."""
        assert wrap_position(0, 0, -1, -1, 10, 8) == (9, 7)


class TestNeighbors:
    """Test neighbor enumeration."""

    def test_scan_order(self):
        """Test the fixed up, down, left, right order."""
        assert ORTHOGONAL_DIRECTIONS == ((0, -1), (0, 1), (-1, 0), (1, 0))
        assert orthogonal_neighbors(5, 5, 10, 10) == [(5, 4), (5, 6), (4, 5), (6, 5)]

    def test_wrapped_neighbors(self):
        """Test that corner neighbors wrap on both axes."""
        assert orthogonal_neighbors(0, 0, 10, 10) == [(0, 9), (0, 1), (9, 0), (1, 0)]

    def test_bounded_neighbors_drop_outside(self):
        """Test that bounded neighbors stay inside the grid."""
        assert bounded_orthogonal_neighbors(0, 0, 10, 10) == [(0, 1), (1, 0)]
        assert len(bounded_orthogonal_neighbors(5, 5, 10, 10)) == 4

    def test_bounded_offset(self):
        """Test bounded offsets return None outside the grid."""
        assert bounded_offset(9, 9, 1, 0, 10, 10) is None
        assert bounded_offset(9, 9, -1, -1, 10, 10) == (8, 8)


class TestDistance:
    """Test torus distance."""

    def test_short_way_round(self):
        """Test that distance goes across the seam when shorter."""
        assert torus_distance((0, 0), (9, 0), 10, 10) == 1.0
        assert torus_distance((0, 0), (0, 9), 10, 10) == 1.0

    def test_euclidean(self):
        """Test ordinary euclidean distance away from the seam."""
        assert torus_distance((1, 1), (4, 5), 100, 100) == 5.0

    def test_symmetric(self):
        """Test symmetry across the seam."""
        a, b = (2, 97), (98, 3)
        assert torus_distance(a, b, 100, 100) == torus_distance(b, a, 100, 100)
        assert math.isclose(torus_distance(a, b, 100, 100), math.sqrt(4 ** 2 + 6 ** 2))


class TestTopology:
    """Test the topology factories."""

    def test_torus_topology(self):
        """Test that torus functions wrap."""
        neighbors, offset = torus_topology(10, 10)
        assert neighbors(0, 0) == orthogonal_neighbors(0, 0, 10, 10)
        assert offset(0, 0, -1, 0) == (9, 0)

    def test_bounded_topology(self):
        """Test that bounded functions clip."""
        neighbors, offset = bounded_topology(10, 10)
        assert neighbors(0, 0) == [(0, 1), (1, 0)]
        assert offset(0, 0, -1, 0) is None

    def test_diagonal(self):
        """Test diagonal detection."""
        assert is_diagonal_movement(1, 1)
        assert not is_diagonal_movement(1, 0)
        assert not is_diagonal_movement(0, 0)
