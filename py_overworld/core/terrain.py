"""
Tile kinds and the terrain query contract.

Terrain codes are stored in ``uint8`` numpy grids. The structure layer is a
second grid of the same shape holding ``Structure`` tags, consumed only by
the clearance pass.
"""

from enum import Enum, IntEnum

import numpy as np


class Terrain(IntEnum):
    """Tile kinds stored in a map grid."""

    SEA = 0
    PLAINS = 1
    FOREST = 2
    MOUNTAIN = 3
    TOWN = 4
    CAVE = 5
    BOSS_CAVE = 6
    SHRINE = 7
    CAVE_FLOOR = 8
    CAVE_WALL = 9
    BOSS_CAVE_FLOOR = 10
    BOSS_CAVE_WALL = 11
    LADDER = 12
    WARP_ZONE = 13


class Structure(IntEnum):
    """Interactive feature tag, independent of the terrain underneath."""

    NONE = 0
    TOWN = 1
    CAVE = 2
    BOSS_CAVE = 3
    SHRINE = 4
    LADDER = 5
    WARP_ZONE = 6
    CHEST = 7
    DOOR = 8


class TileAction(Enum):
    """What happens when the player steps onto a tile."""

    ENTER_TOWN = "enter_town"
    ENTER_CAVE = "enter_cave"
    ENTER_BOSS_CAVE = "enter_boss_cave"
    ENTER_HOKORA = "enter_hokora"
    NONE = "none"


_BLOCKING = frozenset(
    {Terrain.SEA, Terrain.MOUNTAIN, Terrain.CAVE_WALL, Terrain.BOSS_CAVE_WALL}
)

_TILE_ACTIONS = {
    Terrain.TOWN: TileAction.ENTER_TOWN,
    Terrain.CAVE: TileAction.ENTER_CAVE,
    Terrain.BOSS_CAVE: TileAction.ENTER_BOSS_CAVE,
    Terrain.SHRINE: TileAction.ENTER_HOKORA,
}

# Terrain and structure tag written together by the placer.
STRUCTURE_TERRAIN = {
    Structure.TOWN: Terrain.TOWN,
    Structure.CAVE: Terrain.CAVE,
    Structure.BOSS_CAVE: Terrain.BOSS_CAVE,
    Structure.SHRINE: Terrain.SHRINE,
    Structure.LADDER: Terrain.LADDER,
    Structure.WARP_ZONE: Terrain.WARP_ZONE,
}


def is_walkable(terrain: int) -> bool:
    """Check if a tile can be crossed on foot."""
    return int(terrain) not in _BLOCKING


def is_navigable(terrain: int) -> bool:
    """Check if a boat can sail on a tile (sea only)."""
    return int(terrain) == Terrain.SEA


def is_land(terrain: int) -> bool:
    """Check if a tile belongs to an island (anything but sea)."""
    return int(terrain) != Terrain.SEA


def tile_action(terrain: int) -> TileAction:
    """Return the action triggered by arriving on a tile."""
    return _TILE_ACTIONS.get(Terrain(int(terrain)), TileAction.NONE)


def create_grid(width: int, height: int, fill: Terrain = Terrain.SEA) -> np.ndarray:
    """Create a (height, width) terrain grid filled with one tile kind."""
    return np.full((height, width), int(fill), dtype=np.uint8)


def create_structure_layer(width: int, height: int) -> np.ndarray:
    """Create an empty (height, width) structure layer."""
    return np.zeros((height, width), dtype=np.uint8)
