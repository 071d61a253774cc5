"""
Structure clearance and walkable connectivity.

The clearance routine is topology-agnostic: callers pass the neighbor and
offset functions (see ``coordinates.torus_topology`` and
``coordinates.bounded_topology``) and the walkability policy, so the same
code serves the wrapping overworld and bounded dungeons.

Process:
1. Force-walkable - structure tiles become floor when blocked
2. Access guarantee - a sealed structure gets one floor neighbor
3. Chokepoint resolution - a structure that splits its own neighbors gets
   its 3x3 block opened
"""

from collections import deque
from typing import Callable, Dict, List, Optional, Set

import numpy as np
import structlog

from .coordinates import Coord, NeighborFn, OffsetFn, orthogonal_neighbors
from .islands import Island, detect_islands
from .terrain import Structure, Terrain, is_walkable

logger = structlog.get_logger()

WalkablePolicy = Callable[[int], bool]


def structure_tiles(structures: np.ndarray) -> List[Coord]:
    """Structure-tagged coordinates in raster order."""
    ys, xs = np.nonzero(structures != Structure.NONE)
    return [(int(x), int(y)) for y, x in zip(ys, xs)]


def _open_neighbors(
    x: int,
    y: int,
    grid: np.ndarray,
    structure_set: Set[Coord],
    neighbors: NeighborFn,
    walkable: WalkablePolicy,
) -> List[Coord]:
    return [
        (nx, ny)
        for nx, ny in neighbors(x, y)
        if walkable(grid[ny, nx]) and (nx, ny) not in structure_set
    ]


def is_structure_chokepoint(
    x: int,
    y: int,
    grid: np.ndarray,
    structure_set: Set[Coord],
    neighbors: NeighborFn,
    walkable: WalkablePolicy = is_walkable,
) -> bool:
    """
    Check whether a structure tile is the only link between its neighbors.

    Structure tiles are treated as walls. The walkable neighbors of (x, y)
    must all be reachable from the first one; otherwise the tile is an
    unavoidable bottleneck.
    """
    open_neighbors = _open_neighbors(x, y, grid, structure_set, neighbors, walkable)
    if len(open_neighbors) < 2:
        return False

    start = open_neighbors[0]
    targets = set(open_neighbors[1:])
    visited = {start}
    queue = deque([start])

    while queue:
        cx, cy = queue.popleft()
        if (cx, cy) in targets:
            targets.discard((cx, cy))
            if not targets:
                return False
        for nx, ny in neighbors(cx, cy):
            if (
                (nx, ny) not in visited
                and (nx, ny) not in structure_set
                and walkable(grid[ny, nx])
            ):
                visited.add((nx, ny))
                queue.append((nx, ny))

    return True


def clear_around_structures(
    grid: np.ndarray,
    structures: np.ndarray,
    floor_terrain: Terrain,
    neighbors: NeighborFn,
    offset: OffsetFn,
    walkable: WalkablePolicy = is_walkable,
) -> int:
    """
    Make every structure reachable without ambiguous bottlenecks.

    Args:
        grid: Terrain grid, modified in place
        structures: Structure layer of the same shape
        floor_terrain: Terrain written wherever a tile must be opened
        neighbors: (x, y) -> orthogonal neighbor coordinates
        offset: (x, y, dx, dy) -> coordinate, or None outside the grid
        walkable: Walkability policy

    Returns:
        Number of tiles rewritten
    """
    tiles = structure_tiles(structures)
    structure_set = set(tiles)
    floor = int(floor_terrain)
    rewritten = 0

    # Step 1: structure tiles themselves
    for sx, sy in tiles:
        if not walkable(grid[sy, sx]):
            grid[sy, sx] = floor
            rewritten += 1

    # Step 2: at least one way in
    for sx, sy in tiles:
        if _open_neighbors(sx, sy, grid, structure_set, neighbors, walkable):
            continue
        for nx, ny in neighbors(sx, sy):
            if (nx, ny) not in structure_set:
                grid[ny, nx] = floor
                rewritten += 1
                break

    # Step 3: chokepoints; opening one block can expose another, so repeat
    chokepoints = 0
    while True:
        opened = 0
        for sx, sy in tiles:
            closed = _closed_block(sx, sy, grid, offset, walkable)
            if not closed:
                continue
            if not is_structure_chokepoint(sx, sy, grid, structure_set, neighbors, walkable):
                continue
            chokepoints += 1
            for nx, ny in closed:
                grid[ny, nx] = floor
            opened += len(closed)
        if not opened:
            break
        rewritten += opened

    logger.debug(
        "Cleared around structures",
        structures=len(tiles),
        chokepoints=chokepoints,
        rewritten=rewritten,
    )
    return rewritten


def find_unrepaired_structures(
    grid: np.ndarray,
    structures: np.ndarray,
    neighbors: NeighborFn,
    offset: OffsetFn,
    walkable: WalkablePolicy = is_walkable,
) -> List[Coord]:
    """
    List structure tiles that clearance should have fixed but did not.

    A tile is reported when it is unwalkable, or when it is a chokepoint
    whose 3x3 block still holds an unwalkable tile.
    """
    tiles = structure_tiles(structures)
    structure_set = set(tiles)
    broken = []

    for sx, sy in tiles:
        if not walkable(grid[sy, sx]):
            broken.append((sx, sy))
            continue
        if _closed_block(sx, sy, grid, offset, walkable) and is_structure_chokepoint(
            sx, sy, grid, structure_set, neighbors, walkable
        ):
            broken.append((sx, sy))

    return broken


def _closed_block(
    x: int, y: int, grid: np.ndarray, offset: OffsetFn, walkable: WalkablePolicy
) -> List[Coord]:
    """Unwalkable tiles of the 3x3 block centred on (x, y)."""
    closed = []
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            pos = offset(x, y, dx, dy)
            if pos is not None and not walkable(grid[pos[1], pos[0]]):
                closed.append(pos)
    return closed


def ensure_walkable_connectivity(
    grid: np.ndarray,
    islands: Optional[List[Island]] = None,
) -> int:
    """
    Carve mountain passes so each island's walkable tiles form one region.

    For every island, each walkable component other than the largest is
    linked to the largest by the shortest path through island tiles;
    mountains on that path become plains.

    Args:
        grid: Terrain grid, modified in place
        islands: Islands of ``grid``; detected when omitted

    Returns:
        Number of mountain tiles turned into plains
    """
    if islands is None:
        islands = detect_islands(grid)

    height, width = grid.shape
    carved = 0

    for island in islands:
        components = _walkable_components(island, grid)
        if len(components) <= 1:
            continue

        main_idx = max(range(len(components)), key=lambda i: len(components[i]))
        main_set = set(components[main_idx])

        for i, component in enumerate(components):
            if i == main_idx:
                continue

            parent: Dict[Coord, Coord] = {}
            visited = set(component)
            queue = deque(component)
            target = None

            while queue:
                x, y = queue.popleft()
                if (x, y) in main_set:
                    target = (x, y)
                    break
                for n in orthogonal_neighbors(x, y, width, height):
                    if n in island and n not in visited:
                        visited.add(n)
                        parent[n] = (x, y)
                        queue.append(n)

            current = target
            while current is not None and current in parent:
                cx, cy = current
                if grid[cy, cx] == Terrain.MOUNTAIN:
                    grid[cy, cx] = Terrain.PLAINS
                    carved += 1
                current = parent[current]

            # the carved path joins this component to the main one
            main_set.update(component)

    if carved:
        logger.info(f"Carved {carved} mountain tiles to connect walkable regions")
    return carved


def _walkable_components(island: Island, grid: np.ndarray) -> List[List[Coord]]:
    height, width = grid.shape
    walkable_set = {(x, y) for x, y in island.tiles if is_walkable(grid[y, x])}
    visited: Set[Coord] = set()
    components = []

    for start in island.tiles:
        if start not in walkable_set or start in visited:
            continue
        component = []
        visited.add(start)
        queue = deque([start])
        while queue:
            x, y = queue.popleft()
            component.append((x, y))
            for n in orthogonal_neighbors(x, y, width, height):
                if n in walkable_set and n not in visited:
                    visited.add(n)
                    queue.append(n)
        components.append(component)

    return components
