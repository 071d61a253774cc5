"""
Structure placement on a partitioned world.

This module handles:
- Town, cave and shrine placement with per-category spacing
- Boss cave placement far from the spawn
- Recruitable candidate routing between spawn-island towns
- Boat docking points per island
- Grouping of caves by the continent (shrine island) holding them
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator
from scipy.spatial import KDTree

from .alea_prng import RandomSource
from .coordinates import Coord, orthogonal_neighbors, torus_distance
from .islands import Island, detect_islands, detect_sea_regions, find_island
from .terrain import STRUCTURE_TERRAIN, Structure, Terrain, is_walkable

logger = structlog.get_logger()

PLACEABLE_TERRAIN = (int(Terrain.PLAINS), int(Terrain.FOREST))


class PlacementOptions(BaseModel):
    """Structure placement parameters."""

    towns_per_island: int = Field(default=1, ge=0, description="Towns placed on every island")
    spawn_island_towns: int = Field(
        default=6, ge=0, description="Total towns wanted on the spawn island"
    )
    candidate_count: int = Field(
        default=5, ge=0, description="Recruitable candidates routed between spawn-island towns"
    )
    caves_per_island: int = Field(default=1, ge=0, description="Caves placed on every island")
    shrine_count: int = Field(
        default=4, ge=0, description="Shrines, one per island, largest islands first"
    )

    # Spacing parameters
    town_spacing: float = Field(default=10.0, ge=0.0, description="Minimum torus distance between towns")
    cave_spacing: float = Field(default=8.0, ge=0.0, description="Minimum torus distance between caves")
    shrine_spacing: float = Field(
        default=12.0, ge=0.0, description="Minimum torus distance between shrines"
    )
    spacing_retries: int = Field(
        default=3, ge=0, description="Relaxation rounds when the spacing leaves too few tiles"
    )
    spacing_decay: float = Field(default=1.2, gt=1.0, description="Spacing divisor per relaxation round")

    @model_validator(mode="after")
    def _check_candidate_towns(self):
        if self.candidate_count > self.spawn_island_towns:
            raise ValueError("candidate_count must not exceed spawn_island_towns")
        return self


class CandidatePlacement(BaseModel):
    """Routing record for a recruitable NPC."""

    model_config = ConfigDict(frozen=True)

    candidate_index: int = Field(description="Index into the candidate roster")
    first_town: Tuple[int, int] = Field(description="Town where the player first meets the candidate")
    second_town: Tuple[int, int] = Field(description="Town the candidate moves to after the first talk")


class ShrinePlacement(BaseModel):
    """A shrine (hokora) and the tile its warp leads to."""

    model_config = ConfigDict(frozen=True)

    position: Tuple[int, int] = Field(description="Shrine tile")
    warp_destination: Optional[Tuple[int, int]] = Field(
        default=None, description="Tile beside the next shrine, None for a lone shrine"
    )


@dataclass
class Placements:
    """Everything the placer put on the map."""

    towns: List[Coord] = field(default_factory=list)
    spawn_island_towns: List[Coord] = field(default_factory=list)
    caves: List[Coord] = field(default_factory=list)
    shrines: List[Coord] = field(default_factory=list)
    boss_cave: Optional[Coord] = None
    candidates: List[CandidatePlacement] = field(default_factory=list)


class StructurePlacer:
    """Places towns, caves, shrines and the boss cave, scoped by island."""

    def __init__(
        self,
        grid: np.ndarray,
        structures: np.ndarray,
        islands: List[Island],
        spawn_position: Coord,
        rng: RandomSource,
        options: Optional[PlacementOptions] = None,
    ) -> None:
        """
        Initialize the placer.

        Args:
            grid: Terrain grid, written in place
            structures: Structure layer of the same shape, written in place
            islands: Islands of ``grid``
            spawn_position: Player start, never built on
            rng: Random source
            options: PlacementOptions for configuration
        """
        self.grid = grid
        self.structures = structures
        self.islands = islands
        self.spawn_position = spawn_position
        self.rng = rng
        self.options = options or PlacementOptions()
        self.height, self.width = grid.shape

        self.spawn_island = find_island(islands, spawn_position)
        if self.spawn_island is None:
            raise ValueError(f"Spawn position {spawn_position} is not on land")

    def generate(self) -> Placements:
        """
        Place every structure category and route the candidates.

        Returns:
            Placements
        """
        logger.info("Starting structure placement", islands=len(self.islands))

        placements = Placements()
        placements.towns = self.place_towns()
        placements.spawn_island_towns = [
            pos for pos in placements.towns if pos in self.spawn_island
        ]
        placements.caves = self.place_caves()
        placements.shrines = self.place_shrines()
        placements.boss_cave = self.place_boss_cave()
        placements.candidates = assign_candidates_to_towns(
            placements.spawn_island_towns, self.options.candidate_count, self.rng
        )

        logger.info(
            "Structure placement complete",
            towns=len(placements.towns),
            caves=len(placements.caves),
            shrines=len(placements.shrines),
            candidates=len(placements.candidates),
        )
        return placements

    def place_towns(self) -> List[Coord]:
        """Place towns on every island, topping up the spawn island."""
        opts = self.options
        towns: List[Coord] = []

        for island in self._islands_spawn_first():
            count = opts.towns_per_island
            if island is self.spawn_island:
                count = max(count, opts.spawn_island_towns)
            towns += self.place_structures(
                island, count, Structure.TOWN, opts.town_spacing, existing=towns
            )

        return towns

    def place_caves(self) -> List[Coord]:
        """Place caves on every island."""
        opts = self.options
        caves: List[Coord] = []

        for island in self._islands_spawn_first():
            caves += self.place_structures(
                island, opts.caves_per_island, Structure.CAVE, opts.cave_spacing, existing=caves
            )

        return caves

    def place_shrines(self) -> List[Coord]:
        """Place one shrine on each of the largest islands, spawn island first."""
        others = sorted(
            (island for island in self.islands if island is not self.spawn_island),
            key=len,
            reverse=True,
        )
        continents = [self.spawn_island] + others
        shrines: List[Coord] = []

        for island in continents[: self.options.shrine_count]:
            shrines += self.place_structures(
                island, 1, Structure.SHRINE, self.options.shrine_spacing, existing=shrines
            )

        return shrines

    def place_boss_cave(self) -> Optional[Coord]:
        """
        Place the boss cave on the free tile farthest from the spawn.

        Tiles off the spawn island are preferred; the spawn island is used
        only when it is the only landmass.
        """
        remote = [
            pos
            for island in self.islands
            if island is not self.spawn_island
            for pos in island.tiles
            if self._is_free(pos)
        ]
        candidates = remote or [pos for pos in self.spawn_island.tiles if self._is_free(pos)]

        if not candidates:
            logger.warning("No free tile left for the boss cave")
            return None

        target = max(
            candidates,
            key=lambda pos: torus_distance(pos, self.spawn_position, self.width, self.height),
        )
        self._stamp(target, Structure.BOSS_CAVE)
        return target

    def place_structures(
        self,
        island: Island,
        count: int,
        kind: Structure,
        min_spacing: float,
        existing: Sequence[Coord] = (),
    ) -> List[Coord]:
        """
        Draw ``count`` free tiles of an island, keeping same-kind spacing.

        A candidate closer than ``min_spacing`` (torus distance) to an
        already placed structure of the same kind is rejected. When the pool
        runs dry first, the spacing is relaxed and the pool retried.

        Args:
            island: Island to build on
            count: Number of structures wanted
            kind: Structure category
            min_spacing: Minimum distance to same-kind structures
            existing: Same-kind structures already on the map

        Returns:
            Placed coordinates, possibly fewer than ``count``
        """
        placed: List[Coord] = []
        if count <= 0:
            return placed

        spacing = min_spacing
        attempts = 0

        while len(placed) < count:
            pool = [pos for pos in island.tiles if self._is_free(pos)]
            if not pool:
                break

            neighbors = list(existing) + placed
            tree = self._build_tree(neighbors)

            while pool and len(placed) < count:
                idx = self.rng.randint(0, len(pool) - 1)
                pool[idx], pool[-1] = pool[-1], pool[idx]
                pos = pool.pop()

                if tree is not None and spacing > 0:
                    distance, _ = tree.query(pos, k=1)
                    if distance < spacing:
                        continue

                self._stamp(pos, kind)
                placed.append(pos)
                neighbors.append(pos)
                tree = self._build_tree(neighbors)

            if len(placed) < count:
                if attempts >= self.options.spacing_retries:
                    break
                spacing /= self.options.spacing_decay
                attempts += 1
                logger.warning(
                    f"Retrying {kind.name.lower()} placement with reduced spacing: {spacing:.2f}",
                    island=island.id,
                )

        return placed

    def _build_tree(self, points: List[Coord]) -> Optional[KDTree]:
        if not points:
            return None
        # boxsize makes the tree measure distances on the torus
        return KDTree(np.asarray(points, dtype=float), boxsize=[self.width, self.height])

    def _is_free(self, pos: Coord) -> bool:
        x, y = pos
        return (
            pos != self.spawn_position
            and self.structures[y, x] == Structure.NONE
            and self.grid[y, x] in PLACEABLE_TERRAIN
        )

    def _stamp(self, pos: Coord, kind: Structure) -> None:
        x, y = pos
        self.grid[y, x] = STRUCTURE_TERRAIN[kind]
        self.structures[y, x] = kind

    def _islands_spawn_first(self) -> List[Island]:
        return [self.spawn_island] + [i for i in self.islands if i is not self.spawn_island]


def assign_candidates_to_towns(
    towns: Sequence[Coord],
    candidate_count: int,
    rng: RandomSource,
) -> List[CandidatePlacement]:
    """
    Route each candidate from a first town to a different second town.

    Towns are shuffled; candidate ``i`` starts in ``towns[i]`` and moves to
    ``towns[(i + 1) % len(towns)]``. First towns are therefore distinct and
    no second town equals its own first town.

    Args:
        towns: Spawn-island town coordinates
        candidate_count: Number of candidates to route
        rng: Random source

    Returns:
        One CandidatePlacement per routed candidate
    """
    if len(towns) < 2 or candidate_count <= 0:
        return []

    if candidate_count > len(towns):
        logger.warning(
            f"Not enough towns for candidates. Reducing candidates to {len(towns)}",
            candidates=candidate_count,
        )
        candidate_count = len(towns)

    shuffled = list(towns)
    rng.shuffle(shuffled)

    return [
        CandidatePlacement(
            candidate_index=i,
            first_town=shuffled[i],
            second_town=shuffled[(i + 1) % len(shuffled)],
        )
        for i in range(candidate_count)
    ]


def routing_maps(
    placements: Sequence[CandidatePlacement],
) -> Tuple[Dict[Coord, int], Dict[int, Coord]]:
    """
    Build the bidirectional routing maps.

    Returns:
        (town -> candidate met there, candidate -> town it relocates to)
    """
    town_to_candidate = {p.first_town: p.candidate_index for p in placements}
    candidate_second_town = {p.candidate_index: p.second_town for p in placements}
    return town_to_candidate, candidate_second_town


def find_boat_spawn(
    island: Island,
    grid: np.ndarray,
    rng: RandomSource,
    sea_filter: Optional[set] = None,
) -> Optional[Coord]:
    """
    Pick a sea tile beside the island for a boat.

    A random perimeter tile (land with a sea neighbor) is drawn, then its
    first sea neighbor in scan order is used.

    Args:
        island: Island to dock at
        grid: Terrain grid
        rng: Random source
        sea_filter: When given, only these sea tiles count as docking water

    Returns:
        Boat coordinate, or None for an island without coastline
    """
    height, width = grid.shape

    def is_dock(pos: Coord) -> bool:
        x, y = pos
        return grid[y, x] == Terrain.SEA and (sea_filter is None or pos in sea_filter)

    perimeter = [
        (x, y)
        for x, y in island.tiles
        if any(is_dock(n) for n in orthogonal_neighbors(x, y, width, height))
    ]
    if not perimeter:
        return None

    x, y = rng.choice(perimeter)
    for neighbor in orthogonal_neighbors(x, y, width, height):
        if is_dock(neighbor):
            return neighbor
    return None


def calculate_boat_spawns(
    grid: np.ndarray,
    rng: RandomSource,
    islands: Optional[List[Island]] = None,
) -> List[Coord]:
    """
    Compute one boat per island, docked on the main sea.

    Islands that only border enclosed water get no boat.
    """
    if islands is None:
        islands = detect_islands(grid)

    sea_regions = detect_sea_regions(grid)
    if not sea_regions:
        return []
    main_sea = set(sea_regions[0])

    boats = []
    for island in islands:
        spawn = find_boat_spawn(island, grid, rng, sea_filter=main_sea)
        if spawn is not None:
            boats.append(spawn)

    logger.debug("Placed boats", count=len(boats))
    return boats


def group_caves_by_continent(
    shrines: Sequence[Coord],
    islands: List[Island],
    structures: np.ndarray,
) -> List[List[Coord]]:
    """
    Collect the caves on each shrine's island.

    Returns:
        One cave list per shrine, in shrine order
    """
    groups = []
    for shrine in shrines:
        island = find_island(islands, shrine)
        if island is None:
            groups.append([])
            continue
        groups.append(
            [(x, y) for x, y in island.tiles if structures[y, x] == Structure.CAVE]
        )
    return groups


def assign_warp_destinations(
    shrines: Sequence[Coord],
    grid: np.ndarray,
    structures: np.ndarray,
) -> List[ShrinePlacement]:
    """
    Link each shrine to the next one in placement order.

    The destination is the first walkable, unbuilt neighbor of the next
    shrine; a lone shrine has no destination.
    """
    height, width = grid.shape
    result = []

    for i, shrine in enumerate(shrines):
        destination = None
        if len(shrines) > 1:
            target = shrines[(i + 1) % len(shrines)]
            for nx, ny in orthogonal_neighbors(target[0], target[1], width, height):
                if is_walkable(grid[ny, nx]) and structures[ny, nx] == Structure.NONE:
                    destination = (nx, ny)
                    break
        result.append(ShrinePlacement(position=shrine, warp_destination=destination))

    return result
