"""
Island detection on a torus grid.

This module handles:
- Flood-fill partition of land into islands
- Sea region detection (largest first)
- Connectivity validation (every island touches the main sea)
"""

from collections import deque
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

import numpy as np
import structlog

from .coordinates import Coord, orthogonal_neighbors
from .terrain import Terrain

logger = structlog.get_logger()

UNMARKED = 0


@dataclass
class Island:
    """A maximal set of land tiles connected through orthogonal adjacency."""

    id: int
    tiles: List[Coord]
    tile_set: FrozenSet[Coord] = field(init=False, repr=False)

    def __post_init__(self):
        self.tile_set = frozenset(self.tiles)

    def __contains__(self, pos) -> bool:
        return tuple(pos) in self.tile_set

    def __len__(self) -> int:
        return len(self.tiles)


class IslandPartitioner:
    """Partitions a terrain grid into connected landmasses."""

    def __init__(self, grid: np.ndarray):
        """
        Initialize the partitioner.

        Args:
            grid: (height, width) terrain grid
        """
        self.grid = grid
        self.height, self.width = grid.shape
        self.island_ids: Optional[np.ndarray] = None
        self.islands: List[Island] = []

    def markup(self) -> List[Island]:
        """
        Flood-fill every landmass.

        Coordinates are scanned in raster order; each unvisited land tile
        starts a breadth-first search over wrapped land neighbors.

        Returns:
            Islands in order of their first raster tile
        """
        self.island_ids = np.zeros((self.height, self.width), dtype=np.int32)
        self.islands = []

        land = self.grid != Terrain.SEA
        island_id = 1

        for y in range(self.height):
            for x in range(self.width):
                if not land[y, x] or self.island_ids[y, x] != UNMARKED:
                    continue
                tiles = self._flood_fill(x, y, land, island_id)
                self.islands.append(Island(id=island_id, tiles=tiles))
                island_id += 1

        logger.debug("Partitioned islands", count=len(self.islands))
        return self.islands

    def _flood_fill(self, start_x: int, start_y: int, land: np.ndarray, island_id: int) -> List[Coord]:
        """Collect the tiles connected to (start_x, start_y) and mark them."""
        tiles = []
        queue = deque([(start_x, start_y)])
        self.island_ids[start_y, start_x] = island_id

        while queue:
            x, y = queue.popleft()
            tiles.append((x, y))
            for nx, ny in orthogonal_neighbors(x, y, self.width, self.height):
                if land[ny, nx] and self.island_ids[ny, nx] == UNMARKED:
                    self.island_ids[ny, nx] = island_id
                    queue.append((nx, ny))

        return tiles

    def island_at(self, x: int, y: int) -> Optional[Island]:
        """Return the island containing (x, y), if any."""
        if self.island_ids is None:
            self.markup()
        island_id = int(self.island_ids[y % self.height, x % self.width])
        if island_id == UNMARKED:
            return None
        return self.islands[island_id - 1]


def detect_islands(grid: np.ndarray) -> List[Island]:
    """Flood-fill the grid into islands."""
    return IslandPartitioner(grid).markup()


def find_island(islands: List[Island], pos: Coord) -> Optional[Island]:
    """Return the island holding ``pos``, or None when it is sea."""
    for island in islands:
        if pos in island:
            return island
    return None


def detect_sea_regions(grid: np.ndarray) -> List[List[Coord]]:
    """
    Flood-fill connected sea tiles.

    Returns:
        Sea regions sorted by size, largest (the main sea) first
    """
    height, width = grid.shape
    sea = grid == Terrain.SEA
    visited = np.zeros((height, width), dtype=bool)
    regions = []

    for y in range(height):
        for x in range(width):
            if not sea[y, x] or visited[y, x]:
                continue
            region = []
            queue = deque([(x, y)])
            visited[y, x] = True
            while queue:
                cx, cy = queue.popleft()
                region.append((cx, cy))
                for nx, ny in orthogonal_neighbors(cx, cy, width, height):
                    if sea[ny, nx] and not visited[ny, nx]:
                        visited[ny, nx] = True
                        queue.append((nx, ny))
            regions.append(region)

    regions.sort(key=len, reverse=True)
    return regions


def validate_connectivity(grid: np.ndarray) -> bool:
    """
    Check that every island borders the main sea, so a boat can reach it.

    A grid without land is trivially connected; a grid with land but no sea
    is one continent and also passes.
    """
    islands = detect_islands(grid)
    sea_regions = detect_sea_regions(grid)

    if not islands:
        return True
    if not sea_regions:
        return len(islands) == 1

    height, width = grid.shape
    main_sea = set(sea_regions[0])

    for island in islands:
        touches_main_sea = any(
            neighbor in main_sea
            for x, y in island.tiles
            for neighbor in orthogonal_neighbors(x, y, width, height)
        )
        if not touches_main_sea:
            return False

    return True
