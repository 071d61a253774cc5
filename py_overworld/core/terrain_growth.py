"""
Organic land growth on a torus grid.

Process:
1. seed_landmasses() - Drop K growth seeds on distinct sea tiles
2. grow_land() - Frontier growth until the land target is reached
3. remove_tiny_islands() - Sink specks left by growth
4. scatter_clusters() - Overlay forest and mountain splashes
"""

from typing import List, Optional

import numpy as np
import structlog
from pydantic import BaseModel, Field, model_validator

from .alea_prng import RandomSource
from .coordinates import Coord, orthogonal_neighbors
from .islands import detect_islands
from .terrain import Terrain, create_grid

logger = structlog.get_logger()


class GrowthOptions(BaseModel):
    """Terrain growth parameters."""

    island_count: int = Field(default=20, ge=1, description="Number of independent growth seeds")
    target_land_tiles: int = Field(default=6000, ge=1, description="Land tile count to grow to")
    spread_chance: float = Field(
        default=0.65, ge=0.0, le=1.0, description="Chance a sea neighbor turns to land"
    )
    eviction_chance: float = Field(
        default=0.35, ge=0.0, le=1.0, description="Chance a productive frontier tile is dropped anyway"
    )
    max_stalled_iterations: int = Field(
        default=200_000, ge=1, description="Iterations without a conversion before growth gives up"
    )
    min_island_size: int = Field(
        default=4, ge=0, description="Islands smaller than this sink back into the sea"
    )

    # Biome clusters
    forest_clusters: int = Field(default=35, ge=0, description="Forest splash attempts")
    forest_cluster_min: int = Field(default=20, ge=1, description="Minimum forest cluster size")
    forest_cluster_max: int = Field(default=80, ge=1, description="Maximum forest cluster size")
    mountain_clusters: int = Field(default=18, ge=0, description="Mountain splash attempts")
    mountain_cluster_min: int = Field(default=10, ge=1, description="Minimum mountain cluster size")
    mountain_cluster_max: int = Field(default=45, ge=1, description="Maximum mountain cluster size")
    cluster_continue_chance: float = Field(
        default=0.7, ge=0.0, le=1.0, description="Chance a plains neighbor joins the cluster stack"
    )

    @model_validator(mode="after")
    def _check_cluster_ranges(self):
        if self.forest_cluster_min > self.forest_cluster_max:
            raise ValueError("forest_cluster_min must not exceed forest_cluster_max")
        if self.mountain_cluster_min > self.mountain_cluster_max:
            raise ValueError("mountain_cluster_min must not exceed mountain_cluster_max")
        return self


class TerrainGrowthEngine:
    """
    Grows an organic land/sea grid from random seeds.

    Every conversion touches a tile orthogonally adjacent to existing land,
    so each landmass is a union of regions rooted at the original seeds.
    """

    def __init__(
        self,
        width: int,
        height: int,
        rng: RandomSource,
        options: Optional[GrowthOptions] = None,
    ) -> None:
        """
        Initialize the growth engine.

        Args:
            width: Grid width in tiles
            height: Grid height in tiles
            rng: Random source threaded through every draw
            options: GrowthOptions for configuration
        """
        self.width = width
        self.height = height
        self.rng = rng
        self.options = options or GrowthOptions()

        self.grid = create_grid(width, height, Terrain.SEA)
        self.frontier: List[Coord] = []
        self.land_positions: List[Coord] = []
        self.seeds: List[Coord] = []
        self.land_tiles = 0

    @property
    def spawn_position(self) -> Coord:
        """The first growth seed, kept as plains for the player to start on."""
        return self.seeds[0]

    def generate(self) -> np.ndarray:
        """
        Run the complete growth process.

        Returns:
            (height, width) terrain grid
        """
        logger.info("Starting terrain growth", width=self.width, height=self.height)

        self.seed_landmasses()
        self.grow_land()
        self.remove_tiny_islands()

        opts = self.options
        self.scatter_clusters(
            Terrain.FOREST,
            opts.forest_clusters,
            opts.forest_cluster_min,
            opts.forest_cluster_max,
        )
        self.scatter_clusters(
            Terrain.MOUNTAIN,
            opts.mountain_clusters,
            opts.mountain_cluster_min,
            opts.mountain_cluster_max,
        )

        logger.info(
            "Terrain growth complete",
            land_tiles=int(np.count_nonzero(self.grid != Terrain.SEA)),
            forest=int(np.count_nonzero(self.grid == Terrain.FOREST)),
            mountain=int(np.count_nonzero(self.grid == Terrain.MOUNTAIN)),
        )
        return self.grid

    def seed_landmasses(self) -> None:
        """Convert K distinct random sea tiles to land."""
        count = min(self.options.island_count, self.width * self.height)

        while len(self.seeds) < count:
            x = self.rng.randint(0, self.width - 1)
            y = self.rng.randint(0, self.height - 1)
            if self.grid[y, x] != Terrain.SEA:
                continue
            self._convert_to_land(x, y)
            self.seeds.append((x, y))

    def grow_land(self) -> None:
        """
        Expand land from the frontier until the target is reached.

        A processed tile leaves the frontier when it converted nothing, or
        with ``eviction_chance`` even when it did, which keeps growth from
        hugging the perimeter.
        """
        opts = self.options
        target = min(opts.target_land_tiles, self.width * self.height)
        stalled = 0

        while self.land_tiles < target:
            if not self.frontier:
                self.frontier.append(self.rng.choice(self.land_positions))

            idx = self.rng.randint(0, len(self.frontier) - 1)
            x, y = self.frontier[idx]
            converted = False

            for nx, ny in orthogonal_neighbors(x, y, self.width, self.height):
                if self.grid[ny, nx] != Terrain.SEA:
                    continue
                if self.rng.random() >= opts.spread_chance:
                    continue
                self._convert_to_land(nx, ny)
                converted = True
                if self.land_tiles >= target:
                    break

            if not converted or self.rng.chance(opts.eviction_chance):
                self._evict(idx)

            if converted:
                stalled = 0
            else:
                stalled += 1
                if stalled >= opts.max_stalled_iterations:
                    logger.warning(
                        "Terrain growth stalled before reaching target",
                        land_tiles=self.land_tiles,
                        target=target,
                    )
                    break

    def remove_tiny_islands(self) -> None:
        """Sink islands smaller than ``min_island_size``, never the spawn island."""
        min_size = self.options.min_island_size
        if min_size <= 1:
            return

        removed = 0
        for island in detect_islands(self.grid):
            if len(island) >= min_size or self.spawn_position in island:
                continue
            for x, y in island.tiles:
                self.grid[y, x] = Terrain.SEA
            removed += 1

        if removed:
            sunk = set()
            for x, y in self.land_positions:
                if self.grid[y, x] == Terrain.SEA:
                    sunk.add((x, y))
            self.land_positions = [pos for pos in self.land_positions if pos not in sunk]
            logger.info(f"Removed {removed} tiny islands")

    def scatter_clusters(
        self,
        terrain: Terrain,
        cluster_count: int,
        size_min: int,
        size_max: int,
    ) -> None:
        """
        Splash clusters of a biome over plains.

        Each cluster starts on a random land position and spreads through a
        stack of candidate tiles, skipping the spawn tile.

        Args:
            terrain: Biome to paint
            cluster_count: Number of cluster attempts
            size_min: Minimum tiles per cluster
            size_max: Maximum tiles per cluster
        """
        if not self.land_positions:
            return

        protected = self.spawn_position
        continue_chance = self.options.cluster_continue_chance
        painted = 0

        for _ in range(cluster_count):
            stack = [self.rng.choice(self.land_positions)]
            remaining = self.rng.randint(size_min, size_max)

            while remaining > 0 and stack:
                idx = self.rng.randint(0, len(stack) - 1)
                stack[idx], stack[-1] = stack[-1], stack[idx]
                x, y = stack.pop()

                if (x, y) == protected or self.grid[y, x] != Terrain.PLAINS:
                    continue

                self.grid[y, x] = terrain
                remaining -= 1
                painted += 1

                for nx, ny in orthogonal_neighbors(x, y, self.width, self.height):
                    if self.grid[ny, nx] == Terrain.PLAINS and self.rng.chance(continue_chance):
                        stack.append((nx, ny))

        logger.debug("Scattered clusters", terrain=terrain.name, tiles=painted)

    def _convert_to_land(self, x: int, y: int) -> None:
        self.grid[y, x] = Terrain.PLAINS
        self.frontier.append((x, y))
        self.land_positions.append((x, y))
        self.land_tiles += 1

    def _evict(self, idx: int) -> None:
        # swap-remove keeps eviction O(1)
        self.frontier[idx] = self.frontier[-1]
        self.frontier.pop()
