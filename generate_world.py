#!/usr/bin/env python3
"""
Generate an overworld and render it to a PNG.

Runs the complete pipeline:
1. Terrain growth from island seeds
2. Island partitioning
3. Town, cave, shrine and boss cave placement
4. Structure clearance and walkable connectivity

Usage:
    python generate_world.py [seed]

If no seed is provided, the configured default seed is used.
"""

import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent))

from py_overworld.config import settings
from py_overworld.core.islands import detect_islands
from py_overworld.core.terrain import Terrain
from py_overworld.core.world import generate_connected_map
from py_overworld.utils.logging import configure_logging
from py_overworld.utils.random import create_rng
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import ListedColormap

TERRAIN_COLORS = {
    Terrain.SEA: "#1f5fa8",
    Terrain.PLAINS: "#8cc46b",
    Terrain.FOREST: "#2f7a3a",
    Terrain.MOUNTAIN: "#8a7a66",
    Terrain.TOWN: "#d9a441",
    Terrain.CAVE: "#3b2f2f",
    Terrain.BOSS_CAVE: "#a02020",
    Terrain.SHRINE: "#f0f0f0",
}


def render_world(map_data, seed):
    """Draw the terrain grid with spawn and boats marked."""
    colors = [TERRAIN_COLORS.get(t, "#000000") for t in Terrain]
    cmap = ListedColormap(colors)

    fig, ax = plt.subplots(figsize=(10, 10))
    ax.imshow(map_data.grid, cmap=cmap, vmin=0, vmax=len(colors) - 1, interpolation="nearest")

    sx, sy = map_data.spawn_position
    ax.scatter([sx], [sy], marker="*", s=200, c="red", label="Spawn")
    if map_data.boats:
        bx, by = zip(*map_data.boats)
        ax.scatter(bx, by, marker="^", s=40, c="white", edgecolors="black", label="Boats")

    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_title(f"Overworld {map_data.width}x{map_data.height} - seed {seed}")
    ax.legend(loc="lower right")

    output_file = f"overworld_{seed}.png"
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    plt.close()
    return output_file


def main():
    """Generate one world and print a summary."""
    configure_logging(fmt="console")

    seed = sys.argv[1] if len(sys.argv) > 1 else settings.default_seed

    print(f"Generating overworld with seed: {seed}")
    print("=" * 60)

    map_data = generate_connected_map(create_rng(seed))

    land = int(np.count_nonzero(map_data.grid != Terrain.SEA))
    total = map_data.grid.size
    print(f"  Land: {land:,} tiles ({land / total * 100:.1f}%)")
    print(f"  Islands: {len(detect_islands(map_data.grid))}")
    print(f"  Spawn: {map_data.spawn_position}")
    print(f"  Towns: {len(map_data.towns)}  Caves: {len(map_data.caves)}  "
          f"Shrines: {len(map_data.shrines)}  Boats: {len(map_data.boats)}")
    print(f"  Boss cave: {map_data.boss_cave}")
    for placement in map_data.candidates:
        print(f"  Candidate {placement.candidate_index}: "
              f"{placement.first_town} -> {placement.second_town}")

    output_file = render_world(map_data, seed)
    print(f"  Saved to: {output_file}")


if __name__ == "__main__":
    main()
