"""
World generation pipeline.

Runs terrain growth, island partitioning, structure placement and the
accessibility passes over one grid and packages the result as MapData.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import structlog
from pydantic import BaseModel, Field

from .accessibility import (
    clear_around_structures,
    ensure_walkable_connectivity,
    find_unrepaired_structures,
)
from .alea_prng import AleaPRNG, RandomSource
from .coordinates import Coord, orthogonal_neighbors, torus_topology
from .dungeon import CaveMapData, CaveOptions, cave_seed, generate_cave_map
from .islands import detect_islands, validate_connectivity
from .placement import (
    CandidatePlacement,
    PlacementOptions,
    ShrinePlacement,
    StructurePlacer,
    assign_warp_destinations,
    calculate_boat_spawns,
    group_caves_by_continent,
    routing_maps,
)
from .terrain import Structure, Terrain, create_structure_layer, is_land
from .terrain_growth import GrowthOptions, TerrainGrowthEngine
from ..config import settings

logger = structlog.get_logger()

CONTINENT_CAVE_CHESTS = 3


class WorldOptions(BaseModel):
    """Options for a complete world."""

    width: int = Field(default_factory=lambda: settings.map_width, ge=4, description="Map width")
    height: int = Field(default_factory=lambda: settings.map_height, ge=4, description="Map height")
    growth: GrowthOptions = Field(default_factory=GrowthOptions)
    placement: PlacementOptions = Field(default_factory=PlacementOptions)
    cave: CaveOptions = Field(default_factory=CaveOptions)


@dataclass
class MapData:
    """A generated overworld and everything placed on it."""

    grid: np.ndarray
    structures: np.ndarray
    spawn_position: Coord
    towns: List[Coord] = field(default_factory=list)
    caves: List[Coord] = field(default_factory=list)
    boss_cave: Optional[Coord] = None
    shrines: List[ShrinePlacement] = field(default_factory=list)
    boats: List[Coord] = field(default_factory=list)
    candidates: List[CandidatePlacement] = field(default_factory=list)
    town_to_candidate: Dict[Coord, int] = field(default_factory=dict)
    candidate_second_town: Dict[int, Coord] = field(default_factory=dict)
    caves_by_continent: List[List[Coord]] = field(default_factory=list)
    cave_options: CaveOptions = field(default_factory=CaveOptions)

    @property
    def width(self) -> int:
        return self.grid.shape[1]

    @property
    def height(self) -> int:
        return self.grid.shape[0]

    def freeze(self) -> None:
        """Make the grid and structure layer read-only."""
        self.grid.flags.writeable = False
        self.structures.flags.writeable = False

    def guaranteed_chest_count(self, pos: Coord) -> int:
        """Chests a cave must hold: continent caves carry loot, others none."""
        if any(pos in caves for caves in self.caves_by_continent):
            return CONTINENT_CAVE_CHESTS
        return 0

    def cave_at(self, pos: Coord) -> CaveMapData:
        """
        Generate the dungeon behind a cave entrance.

        The cave is seeded from its world coordinate, so entering the same
        cave twice yields the same layout.
        """
        x, y = pos
        kind = self.structures[y, x]
        if kind not in (Structure.CAVE, Structure.BOSS_CAVE):
            raise ValueError(f"No cave at {pos}")

        return generate_cave_map(
            AleaPRNG(cave_seed(x, y)),
            guaranteed_chests=self.guaranteed_chest_count(pos),
            boss=kind == Structure.BOSS_CAVE,
            options=self.cave_options,
        )


def generate_map(rng: RandomSource, options: Optional[WorldOptions] = None) -> MapData:
    """
    Generate a complete overworld.

    Args:
        rng: Random source, consumed sequentially
        options: WorldOptions for configuration

    Returns:
        Frozen MapData

    Raises:
        RuntimeError: If the finished map breaks an invariant and
            ``settings.verify_invariants`` is on
    """
    opts = options or WorldOptions()
    width, height = opts.width, opts.height

    logger.info("Generating world", width=width, height=height)

    engine = TerrainGrowthEngine(width, height, rng, opts.growth)
    grid = engine.generate()
    spawn = engine.spawn_position

    islands = detect_islands(grid)
    structures = create_structure_layer(width, height)
    placements = StructurePlacer(
        grid, structures, islands, spawn, rng, opts.placement
    ).generate()

    neighbors, offset = torus_topology(width, height)
    clear_around_structures(grid, structures, Terrain.PLAINS, neighbors, offset)

    # clearance may have turned sea into plains and joined islands
    islands = detect_islands(grid)
    if ensure_walkable_connectivity(grid, islands):
        clear_around_structures(grid, structures, Terrain.PLAINS, neighbors, offset)
        islands = detect_islands(grid)

    boats = calculate_boat_spawns(grid, rng, islands)
    caves_by_continent = group_caves_by_continent(placements.shrines, islands, structures)
    shrines = assign_warp_destinations(placements.shrines, grid, structures)
    town_to_candidate, candidate_second_town = routing_maps(placements.candidates)

    map_data = MapData(
        grid=grid,
        structures=structures,
        spawn_position=spawn,
        towns=placements.towns,
        caves=placements.caves,
        boss_cave=placements.boss_cave,
        shrines=shrines,
        boats=boats,
        candidates=placements.candidates,
        town_to_candidate=town_to_candidate,
        candidate_second_town=candidate_second_town,
        caves_by_continent=caves_by_continent,
        cave_options=opts.cave,
    )

    if settings.verify_invariants:
        problems = verify_map_invariants(map_data)
        if problems:
            raise RuntimeError(f"Generated map is invalid: {'; '.join(problems)}")

    map_data.freeze()

    logger.info(
        "World generation complete",
        islands=len(islands),
        towns=len(map_data.towns),
        caves=len(map_data.caves),
        shrines=len(map_data.shrines),
        boats=len(map_data.boats),
    )
    return map_data


def verify_map_invariants(map_data: MapData) -> List[str]:
    """
    Check a finished map.

    Returns:
        Human readable descriptions of every broken invariant
    """
    grid, structures = map_data.grid, map_data.structures
    problems = []

    sx, sy = map_data.spawn_position
    if not is_land(grid[sy, sx]):
        problems.append(f"spawn {map_data.spawn_position} is sea")

    for bx, by in map_data.boats:
        if grid[by, bx] != Terrain.SEA:
            problems.append(f"boat ({bx}, {by}) is not on sea")
        elif not any(
            is_land(grid[ny, nx])
            for nx, ny in orthogonal_neighbors(bx, by, map_data.width, map_data.height)
        ):
            problems.append(f"boat ({bx}, {by}) is not beside land")

    for placement in map_data.candidates:
        if placement.first_town == placement.second_town:
            problems.append(f"candidate {placement.candidate_index} never moves")

    first_towns = [placement.first_town for placement in map_data.candidates]
    if len(first_towns) != len(set(first_towns)):
        problems.append("two candidates start in the same town")

    neighbors, offset = torus_topology(map_data.width, map_data.height)
    for pos in find_unrepaired_structures(grid, structures, neighbors, offset):
        problems.append(f"structure {pos} is blocked or an unrepaired chokepoint")

    return problems


def generate_connected_map(
    rng: RandomSource,
    options: Optional[WorldOptions] = None,
    max_retries: Optional[int] = None,
) -> MapData:
    """
    Generate maps until every island touches the main sea.

    After the retry budget the last map is returned as is.
    """
    if max_retries is None:
        max_retries = settings.max_connectivity_retries

    map_data = generate_map(rng, options)
    attempt = 0

    while not validate_connectivity(map_data.grid):
        if attempt >= max_retries:
            logger.warning("Connectivity retries exhausted", retries=max_retries)
            break
        attempt += 1
        logger.info(f"Map has landlocked islands, regenerating (attempt {attempt})")
        map_data = generate_map(rng, options)

    return map_data
