"""
Single-step grid movement with an injected passability policy.

The same routine moves a walker on the overworld, a boat on the sea and a
walker in a bounded cave; only the ``wraps`` flag and the policy differ.
"""

from typing import Callable, Optional

import numpy as np

from .coordinates import Coord, bounded_offset, is_diagonal_movement, wrap_position
from .terrain import is_navigable, is_walkable

PassablePolicy = Callable[[int, int, int], bool]


def walking_policy(x: int, y: int, terrain: int) -> bool:
    """On foot: anything walkable."""
    return is_walkable(terrain)


def sailing_policy(x: int, y: int, terrain: int) -> bool:
    """By boat: sea only."""
    return is_navigable(terrain)


def try_grid_move(
    x: int,
    y: int,
    dx: int,
    dy: int,
    grid: np.ndarray,
    wraps: bool,
    passable: PassablePolicy = walking_policy,
) -> Optional[Coord]:
    """
    Attempt a one-tile move.

    Args:
        x, y: Current tile
        dx, dy: Direction, each in -1..1
        grid: Terrain grid
        wraps: True on a torus, False on a bounded grid
        passable: (x, y, terrain) -> whether the destination can be entered

    Returns:
        New coordinate, or None when the move is blocked
    """
    if is_diagonal_movement(dx, dy):
        return None

    height, width = grid.shape
    if wraps:
        target = wrap_position(x, y, dx, dy, width, height)
    else:
        target = bounded_offset(x, y, dx, dy, width, height)
        if target is None:
            return None

    nx, ny = target
    if not passable(nx, ny, int(grid[ny, nx])):
        return None
    return target
