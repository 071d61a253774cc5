"""
Coastline autotile lookup.

A sea tile's look depends on which of its 8 neighbors are land. Of the 256
raw neighbor masks only 47 are visually distinct: a diagonal neighbor only
matters when both cardinals flanking it are land too.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

import numpy as np

from .terrain import Terrain

# Neighbor bits
N = 1
NE = 2
E = 4
SE = 8
S = 16
SW = 32
W = 64
NW = 128

CARDINALS = N | E | S | W

# (bit, dx, dy) with north at y - 1
NEIGHBOR_BITS: Tuple[Tuple[int, int, int], ...] = (
    (N, 0, -1),
    (NE, 1, -1),
    (E, 1, 0),
    (SE, 1, 1),
    (S, 0, 1),
    (SW, -1, 1),
    (W, -1, 0),
    (NW, -1, -1),
)

# diagonal bit -> the two cardinals that must both be set
_DIAGONAL_FLANKS = (
    (NE, N | E),
    (SE, S | E),
    (SW, S | W),
    (NW, N | W),
)


@dataclass(frozen=True)
class CoastLookupTable:
    """Raw mask -> canonical coast tile index."""

    lookup: np.ndarray
    canonical_masks: Tuple[int, ...]

    @property
    def tile_count(self) -> int:
        return len(self.canonical_masks)

    def __getitem__(self, mask: int) -> int:
        return int(self.lookup[mask])


def normalize_mask(mask: int) -> int:
    """Drop diagonal bits that are not backed by both flanking cardinals."""
    result = mask & CARDINALS
    for diagonal, flanks in _DIAGONAL_FLANKS:
        if mask & diagonal and mask & flanks == flanks:
            result |= diagonal
    return result


def build_lookup_table() -> CoastLookupTable:
    """
    Map all 256 raw masks onto canonical tile indices.

    Canonical masks are numbered in first-seen order, so mask 0 (no land
    around) is always tile 0.
    """
    lookup = np.zeros(256, dtype=np.uint8)
    index_of = {}

    for raw in range(256):
        normalized = normalize_mask(raw)
        if normalized not in index_of:
            index_of[normalized] = len(index_of)
        lookup[raw] = index_of[normalized]

    lookup.flags.writeable = False
    return CoastLookupTable(lookup=lookup, canonical_masks=tuple(index_of))


@lru_cache(maxsize=1)
def get_coast_lookup() -> CoastLookupTable:
    """Shared lookup table, built on first use."""
    return build_lookup_table()


def compute_coast_mask(grid: np.ndarray, x: int, y: int) -> int:
    """Land-neighbor bitmask of (x, y), wrapping on both axes."""
    height, width = grid.shape
    mask = 0
    for bit, dx, dy in NEIGHBOR_BITS:
        if grid[(y + dy) % height, (x + dx) % width] != Terrain.SEA:
            mask |= bit
    return mask


def coast_tile_index(grid: np.ndarray, x: int, y: int) -> int:
    """Canonical coast tile for the sea tile at (x, y)."""
    return get_coast_lookup()[compute_coast_mask(grid, x, y)]
