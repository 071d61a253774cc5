"""
Cave dungeon generation on a bounded grid.

Caves are carved by a random walk, then the ladder, warp zone and chests are
tagged as structures and cleared with the same routine as the overworld,
using bounded neighbor and offset functions.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import structlog
from pydantic import BaseModel, Field

from .accessibility import clear_around_structures
from .alea_prng import RandomSource
from .coordinates import (
    ORTHOGONAL_DIRECTIONS,
    Coord,
    bounded_orthogonal_neighbors,
    bounded_topology,
)
from .terrain import Structure, Terrain, create_grid, create_structure_layer, is_walkable

logger = structlog.get_logger()

CAVE_SEED_STRIDE = 10007


class CaveOptions(BaseModel):
    """Cave layout parameters."""

    width: int = Field(default=30, ge=5, description="Cave width in tiles")
    height: int = Field(default=30, ge=5, description="Cave height in tiles")
    random_walk_steps: int = Field(default=400, ge=0, description="Steps of the carving walk")
    min_warp_distance: int = Field(
        default=10, ge=0, description="Minimum manhattan distance from spawn to warp zone"
    )
    warp_candidates: int = Field(
        default=5, ge=1, description="The warp zone is drawn among this many farthest tiles"
    )
    extra_chests_max: int = Field(default=2, ge=0, description="Random chests on top of guaranteed ones")


@dataclass
class CaveMapData:
    """A generated cave."""

    grid: np.ndarray
    structures: np.ndarray
    spawn_position: Coord
    warp_position: Coord
    chest_positions: List[Coord] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.grid.shape[1]

    @property
    def height(self) -> int:
        return self.grid.shape[0]


def cave_seed(x: int, y: int) -> int:
    """Stable seed for the cave entrance at world tile (x, y)."""
    return x * CAVE_SEED_STRIDE + y


def generate_cave_map(
    rng: RandomSource,
    guaranteed_chests: int = 0,
    boss: bool = False,
    options: Optional[CaveOptions] = None,
) -> CaveMapData:
    """
    Generate a cave dungeon.

    Args:
        rng: Random source
        guaranteed_chests: Chests that must exist (continent caves hold loot)
        boss: Use the boss cave palette
        options: CaveOptions for configuration

    Returns:
        CaveMapData with every structure reachable from the spawn
    """
    opts = options or CaveOptions()
    width, height = opts.width, opts.height
    wall = Terrain.BOSS_CAVE_WALL if boss else Terrain.CAVE_WALL
    floor = Terrain.BOSS_CAVE_FLOOR if boss else Terrain.CAVE_FLOOR

    grid = create_grid(width, height, wall)
    structures = create_structure_layer(width, height)

    spawn = (width // 2, height // 2)
    _carve_random_walk(grid, spawn, opts.random_walk_steps, floor, rng)

    warp = _find_warp_position(grid, spawn, opts, rng)

    chest_count = guaranteed_chests + rng.randint(0, opts.extra_chests_max)
    chests = _place_chests(grid, spawn, {spawn, warp}, chest_count, rng)

    grid[spawn[1], spawn[0]] = Terrain.LADDER
    structures[spawn[1], spawn[0]] = Structure.LADDER
    grid[warp[1], warp[0]] = Terrain.WARP_ZONE
    structures[warp[1], warp[0]] = Structure.WARP_ZONE
    for x, y in chests:
        structures[y, x] = Structure.CHEST

    neighbors, offset = bounded_topology(width, height)
    clear_around_structures(grid, structures, floor, neighbors, offset)

    logger.debug(
        "Generated cave",
        boss=boss,
        floor_tiles=int(np.count_nonzero(grid == floor)),
        chests=len(chests),
    )
    return CaveMapData(
        grid=grid,
        structures=structures,
        spawn_position=spawn,
        warp_position=warp,
        chest_positions=chests,
    )


def reachable_tiles(grid: np.ndarray, start: Coord) -> List[Coord]:
    """Walkable tiles reachable from ``start`` in BFS order."""
    height, width = grid.shape
    visited = np.zeros((height, width), dtype=bool)
    visited[start[1], start[0]] = True
    queue = deque([start])
    result = []

    while queue:
        x, y = queue.popleft()
        if is_walkable(grid[y, x]):
            result.append((x, y))
        for nx, ny in bounded_orthogonal_neighbors(x, y, width, height):
            if not visited[ny, nx] and is_walkable(grid[ny, nx]):
                visited[ny, nx] = True
                queue.append((nx, ny))

    return result


def _carve_random_walk(
    grid: np.ndarray, start: Coord, steps: int, floor: Terrain, rng: RandomSource
) -> None:
    height, width = grid.shape
    x, y = start
    grid[y, x] = floor

    for _ in range(steps):
        dx, dy = ORTHOGONAL_DIRECTIONS[rng.randint(0, 3)]
        nx, ny = x + dx, y + dy
        # the outer ring stays wall
        if 1 <= nx < width - 1 and 1 <= ny < height - 1:
            x, y = nx, ny
            grid[y, x] = floor


def _manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def _find_warp_position(
    grid: np.ndarray, spawn: Coord, opts: CaveOptions, rng: RandomSource
) -> Coord:
    reachable = [pos for pos in reachable_tiles(grid, spawn) if pos != spawn]
    candidates = [pos for pos in reachable if _manhattan(pos, spawn) >= opts.min_warp_distance]

    if not candidates:
        candidates = reachable
    if not candidates:
        # a walk that never left the spawn; the clearance pass opens the way
        return min(spawn[0] + 1, grid.shape[1] - 2), spawn[1]

    candidates.sort(key=lambda pos: _manhattan(pos, spawn), reverse=True)
    top = min(len(candidates), opts.warp_candidates)
    return candidates[rng.randint(0, top - 1)]


def _place_chests(
    grid: np.ndarray,
    spawn: Coord,
    taken: set,
    count: int,
    rng: RandomSource,
) -> List[Coord]:
    pool = [pos for pos in reachable_tiles(grid, spawn) if pos not in taken]
    chests = []

    while pool and len(chests) < count:
        idx = rng.randint(0, len(pool) - 1)
        pool[idx], pool[-1] = pool[-1], pool[idx]
        chests.append(pool.pop())

    if len(chests) < count:
        logger.warning("Cave too small for all chests", wanted=count, placed=len(chests))
    return chests
