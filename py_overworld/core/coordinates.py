"""
Coordinate arithmetic for torus and bounded grids.

All neighbor and offset computations go through this module. The overworld
has no edge: every axis wraps with a signed offset followed by a modulo.
Dungeons use the bounded variants, which drop out-of-range coordinates.
"""

import math
from functools import partial
from typing import Callable, List, Optional, Tuple

Coord = Tuple[int, int]
NeighborFn = Callable[[int, int], List[Coord]]
OffsetFn = Callable[[int, int, int, int], Optional[Coord]]

# (dx, dy): up, down, left, right. This order is the fixed scan order used
# by growth, partitioning, boat placement and clearance.
ORTHOGONAL_DIRECTIONS: Tuple[Coord, ...] = (
    (0, -1),
    (0, 1),
    (-1, 0),
    (1, 0),
)


def wrap_coordinate(coord: int, delta: int, size: int) -> int:
    """Wrap a single coordinate after applying a signed offset."""
    return (coord + delta) % size


def wrap_position(x: int, y: int, dx: int, dy: int, width: int, height: int) -> Coord:
    """Apply (dx, dy) to (x, y) on a width x height torus."""
    return wrap_coordinate(x, dx, width), wrap_coordinate(y, dy, height)


def orthogonal_neighbors(x: int, y: int, width: int, height: int) -> List[Coord]:
    """Return the four wrapped orthogonal neighbors of (x, y)."""
    return [wrap_position(x, y, dx, dy, width, height) for dx, dy in ORTHOGONAL_DIRECTIONS]


def bounded_offset(
    x: int, y: int, dx: int, dy: int, width: int, height: int
) -> Optional[Coord]:
    """Apply (dx, dy) to (x, y) on a bounded grid, or None when it leaves the grid."""
    nx, ny = x + dx, y + dy
    if 0 <= nx < width and 0 <= ny < height:
        return nx, ny
    return None


def bounded_orthogonal_neighbors(x: int, y: int, width: int, height: int) -> List[Coord]:
    """Return the in-bounds orthogonal neighbors of (x, y)."""
    neighbors = []
    for dx, dy in ORTHOGONAL_DIRECTIONS:
        pos = bounded_offset(x, y, dx, dy, width, height)
        if pos is not None:
            neighbors.append(pos)
    return neighbors


def torus_distance(a: Coord, b: Coord, width: int, height: int) -> float:
    """Euclidean distance between two tiles, measured the short way round."""
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    dx = min(dx, width - dx)
    dy = min(dy, height - dy)
    return math.sqrt(dx * dx + dy * dy)


def is_diagonal_movement(dx: int, dy: int) -> bool:
    """True when both components of a move are non-zero."""
    return dx != 0 and dy != 0


def torus_topology(width: int, height: int) -> Tuple[NeighborFn, OffsetFn]:
    """Neighbor and offset functions for a wrapping grid."""
    neighbors = partial(orthogonal_neighbors, width=width, height=height)
    offset = partial(wrap_position, width=width, height=height)
    return neighbors, offset


def bounded_topology(width: int, height: int) -> Tuple[NeighborFn, OffsetFn]:
    """Neighbor and offset functions for a non-wrapping grid."""
    neighbors = partial(bounded_orthogonal_neighbors, width=width, height=height)
    offset = partial(bounded_offset, width=width, height=height)
    return neighbors, offset
