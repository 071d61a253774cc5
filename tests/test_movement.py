"""
Tests for single-step grid movement.
"""

from py_overworld.core.movement import sailing_policy, try_grid_move, walking_policy
from py_overworld.core.terrain import Terrain, create_grid


def make_grid():
    grid = create_grid(8, 8, Terrain.PLAINS)
    grid[3, 4] = Terrain.MOUNTAIN
    grid[0:2, :] = Terrain.SEA
    return grid


class TestTryGridMove:
    """Test movement on torus and bounded grids."""

    def test_plain_step(self):
        """Test a free step."""
        assert try_grid_move(4, 4, 1, 0, make_grid(), wraps=True) == (5, 4)

    def test_blocked_by_mountain(self):
        """Test that walkers cannot climb mountains."""
        assert try_grid_move(4, 4, 0, -1, make_grid(), wraps=True) is None

    def test_diagonal_blocked(self):
        """Test that diagonal moves are refused."""
        assert try_grid_move(4, 4, 1, 1, make_grid(), wraps=True) is None

    def test_torus_wraps(self):
        """Test stepping over the seam."""
        assert try_grid_move(0, 5, -1, 0, make_grid(), wraps=True) == (7, 5)
        assert try_grid_move(3, 7, 0, 1, make_grid(), wraps=True) is None

    def test_bounded_edge(self):
        """Test that bounded grids stop at the edge."""
        assert try_grid_move(0, 5, -1, 0, make_grid(), wraps=False) is None
        assert try_grid_move(7, 5, 1, 0, make_grid(), wraps=False) is None

    def test_sailing(self):
        """Test that boats stay on the sea."""
        grid = make_grid()
        assert try_grid_move(2, 0, 0, 1, grid, wraps=True, passable=sailing_policy) == (2, 1)
        assert try_grid_move(2, 1, 0, 1, grid, wraps=True, passable=sailing_policy) is None

    def test_custom_policy(self):
        """Test that any (x, y, terrain) callable can decide."""
        def east_half_only(x, y, terrain):
            return x >= 4 and walking_policy(x, y, terrain)

        grid = make_grid()
        assert try_grid_move(4, 5, -1, 0, grid, wraps=True, passable=east_half_only) is None
        assert try_grid_move(4, 5, 1, 0, grid, wraps=True, passable=east_half_only) == (5, 5)
