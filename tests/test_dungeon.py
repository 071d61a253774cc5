"""
Tests for cave dungeon generation.
"""

import numpy as np
import pytest

from py_overworld.core.accessibility import clear_around_structures, find_unrepaired_structures
from py_overworld.core.alea_prng import AleaPRNG
from py_overworld.core.coordinates import bounded_topology
from py_overworld.core.dungeon import (
    CaveOptions,
    _find_warp_position,
    cave_seed,
    generate_cave_map,
    reachable_tiles,
)
from py_overworld.core.terrain import Structure, Terrain, create_grid


@pytest.fixture
def cave():
    return generate_cave_map(AleaPRNG(cave_seed(12, 34)), guaranteed_chests=3)


class TestCaveSeed:
    """Test per-cave seeding."""

    def test_formula(self):
        """Test the stable seed derivation."""
        assert cave_seed(0, 0) == 0
        assert cave_seed(3, 4) == 3 * 10007 + 4

    def test_distinct(self):
        """Test that swapped coordinates give different seeds."""
        assert cave_seed(1, 2) != cave_seed(2, 1)


class TestGenerateCaveMap:
    """Test the cave generator."""

    def test_dimensions(self, cave):
        """Test the default 30x30 size."""
        assert cave.grid.shape == (30, 30)
        assert cave.structures.shape == (30, 30)
        assert cave.width == 30 and cave.height == 30

    def test_spawn_is_ladder(self, cave):
        """Test that the player arrives on a ladder at the centre."""
        assert cave.spawn_position == (15, 15)
        assert cave.grid[15, 15] == Terrain.LADDER
        assert cave.structures[15, 15] == Structure.LADDER

    def test_warp_zone(self, cave):
        """Test the warp zone tile."""
        wx, wy = cave.warp_position
        assert cave.warp_position != cave.spawn_position
        assert cave.grid[wy, wx] == Terrain.WARP_ZONE
        assert cave.structures[wy, wx] == Structure.WARP_ZONE

    def test_chest_count(self, cave):
        """Test guaranteed chests plus up to two extra."""
        assert 3 <= len(cave.chest_positions) <= 5
        assert len(set(cave.chest_positions)) == len(cave.chest_positions)
        for x, y in cave.chest_positions:
            assert cave.structures[y, x] == Structure.CHEST
            assert cave.grid[y, x] == Terrain.CAVE_FLOOR

    def test_everything_reachable(self, cave):
        """Test that every structure is reachable from the ladder."""
        reachable = set(reachable_tiles(cave.grid, cave.spawn_position))
        assert cave.warp_position in reachable
        for chest in cave.chest_positions:
            assert chest in reachable

    def test_no_unrepaired_structures(self, cave):
        """Test that clearance left nothing to fix."""
        neighbors, offset = bounded_topology(cave.width, cave.height)
        assert find_unrepaired_structures(cave.grid, cave.structures, neighbors, offset) == []

    def test_clearance_idempotent(self, cave):
        """Test that clearing a finished cave rewrites nothing."""
        neighbors, offset = bounded_topology(cave.width, cave.height)
        grid = cave.grid.copy()
        assert clear_around_structures(grid, cave.structures, Terrain.CAVE_FLOOR, neighbors, offset) == 0

    def test_only_cave_terrain(self, cave):
        """Test that a normal cave uses the normal palette."""
        kinds = set(np.unique(cave.grid).tolist())
        assert kinds <= {
            int(Terrain.CAVE_WALL), int(Terrain.CAVE_FLOOR),
            int(Terrain.LADDER), int(Terrain.WARP_ZONE),
        }

    def test_boss_palette(self):
        """Test that boss caves use boss floor and walls."""
        boss = generate_cave_map(AleaPRNG("boss"), boss=True)
        assert np.any(boss.grid == Terrain.BOSS_CAVE_FLOOR)
        assert np.any(boss.grid == Terrain.BOSS_CAVE_WALL)
        assert not np.any(boss.grid == Terrain.CAVE_FLOOR)
        assert not np.any(boss.grid == Terrain.CAVE_WALL)

    def test_reproducible(self):
        """Test that the same seed rebuilds the same cave."""
        a = generate_cave_map(AleaPRNG(cave_seed(5, 6)))
        b = generate_cave_map(AleaPRNG(cave_seed(5, 6)))
        np.testing.assert_array_equal(a.grid, b.grid)
        assert a.chest_positions == b.chest_positions

    def test_custom_size(self):
        """Test a smaller cave."""
        small = generate_cave_map(AleaPRNG("small"), options=CaveOptions(width=12, height=10))
        assert small.grid.shape == (10, 12)
        assert small.spawn_position == (6, 5)


class TestWarpPosition:
    """Test warp zone selection."""

    def corridor(self, length):
        grid = create_grid(30, 5, Terrain.CAVE_WALL)
        grid[2, 1:1 + length] = Terrain.CAVE_FLOOR
        return grid

    def test_among_farthest(self):
        """Test that the warp is drawn from the five farthest tiles."""
        grid = self.corridor(25)
        warp = _find_warp_position(grid, (1, 2), CaveOptions(), AleaPRNG("far"))
        assert warp[1] == 2
        assert 21 <= warp[0] <= 25

    def test_relaxed_when_close(self):
        """Test that a short cave still gets a warp zone."""
        grid = self.corridor(4)
        warp = _find_warp_position(grid, (1, 2), CaveOptions(), AleaPRNG("near"))
        assert warp in [(2, 2), (3, 2), (4, 2)]
