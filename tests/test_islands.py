"""
Tests for island partitioning, sea regions and connectivity validation.
"""

import numpy as np

from py_overworld.core.islands import (
    IslandPartitioner,
    detect_islands,
    detect_sea_regions,
    find_island,
    validate_connectivity,
)
from py_overworld.core.terrain import Terrain, create_grid


def make_grid(width, height, land):
    grid = create_grid(width, height, Terrain.SEA)
    for x, y in land:
        grid[y, x] = Terrain.PLAINS
    return grid


def make_ring(grid, x0, y0, size):
    """Draw the border of a size x size square of land."""
    for i in range(size):
        for x, y in ((x0 + i, y0), (x0 + i, y0 + size - 1), (x0, y0 + i), (x0 + size - 1, y0 + i)):
            grid[y, x] = Terrain.PLAINS


class TestIslandPartitioner:
    """Test flood-fill partitioning."""

    def test_single_island(self):
        """Test that three touching tiles form one island."""
        grid = make_grid(20, 20, [(5, 5), (5, 6), (6, 5)])
        islands = detect_islands(grid)
        assert len(islands) == 1
        assert len(islands[0]) == 3
        assert set(islands[0].tiles) == {(5, 5), (5, 6), (6, 5)}

    def test_separate_islands(self):
        """Test that distant tiles stay separate."""
        grid = make_grid(200, 200, [(5, 5), (20, 20)])
        assert len(detect_islands(grid)) == 2

    def test_diagonal_is_not_connected(self):
        """Test that only orthogonal adjacency joins tiles."""
        grid = make_grid(10, 10, [(3, 3), (4, 4)])
        assert len(detect_islands(grid)) == 2

    def test_wraparound_joins_islands(self):
        """Test that land on opposite edges is one island."""
        grid = make_grid(10, 10, [(0, 3), (9, 3), (4, 0), (4, 9)])
        islands = detect_islands(grid)
        assert len(islands) == 2
        assert sorted(len(i) for i in islands) == [2, 2]

    def test_raster_order_ids(self):
        """Test that ids follow the first raster tile of each island."""
        grid = make_grid(10, 10, [(8, 1), (2, 5)])
        partitioner = IslandPartitioner(grid)
        islands = partitioner.markup()
        assert islands[0].tiles[0] == (8, 1)
        assert islands[1].tiles[0] == (2, 5)
        assert partitioner.island_ids[1, 8] == 1
        assert partitioner.island_ids[5, 2] == 2
        assert partitioner.island_ids[0, 0] == 0

    def test_island_at(self):
        """Test island lookup by coordinate."""
        grid = make_grid(10, 10, [(1, 1), (1, 2)])
        partitioner = IslandPartitioner(grid)
        assert partitioner.island_at(1, 2) is partitioner.island_at(1, 1)
        assert partitioner.island_at(5, 5) is None

    def test_every_land_tile_in_exactly_one_island(self):
        """Test that islands partition the land."""
        rng = np.random.default_rng(7)
        grid = (rng.random((30, 30)) < 0.4).astype(np.uint8)
        islands = detect_islands(grid)
        tiles = [pos for island in islands for pos in island.tiles]
        assert len(tiles) == len(set(tiles)) == int(np.count_nonzero(grid))

    def test_find_island(self):
        """Test membership lookup over an island list."""
        grid = make_grid(20, 20, [(2, 2), (10, 10)])
        islands = detect_islands(grid)
        assert find_island(islands, (10, 10)) is islands[1]
        assert find_island(islands, (0, 0)) is None

    def test_more_islands_than_uint16(self):
        """Test that ids past 65535 stay distinct."""
        grid = create_grid(520, 520, Terrain.SEA)
        grid[::2, ::2] = Terrain.PLAINS
        partitioner = IslandPartitioner(grid)
        islands = partitioner.markup()
        assert len(islands) == 260 * 260
        assert int(partitioner.island_ids.max()) == 260 * 260
        assert partitioner.island_at(518, 518).id == 260 * 260


class TestSeaRegions:
    """Test sea region detection and connectivity validation."""

    def test_lake_is_separate_region(self):
        """Test that a ring of land encloses a lake."""
        grid = create_grid(10, 10, Terrain.SEA)
        make_ring(grid, 4, 4, 3)
        regions = detect_sea_regions(grid)
        assert [len(r) for r in regions] == [91, 1]
        assert regions[1] == [(5, 5)]

    def test_ring_touches_main_sea(self):
        """Test that a ring island still counts as connected."""
        grid = create_grid(10, 10, Terrain.SEA)
        make_ring(grid, 4, 4, 3)
        assert validate_connectivity(grid)

    def test_landlocked_island(self):
        """Test that an island inside a lake fails validation."""
        grid = create_grid(12, 12, Terrain.SEA)
        make_ring(grid, 1, 1, 7)
        grid[4, 4] = Terrain.PLAINS
        assert not validate_connectivity(grid)

    def test_no_land(self):
        """Test that an empty ocean is trivially connected."""
        assert validate_connectivity(create_grid(5, 5, Terrain.SEA))

    def test_no_sea(self):
        """Test that a single all-land continent passes."""
        assert validate_connectivity(create_grid(5, 5, Terrain.PLAINS))
