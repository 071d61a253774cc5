"""
Core world generation functionality.
"""

from .alea_prng import AleaPRNG, RandomSource
from .terrain import Terrain, Structure, TileAction, is_walkable, is_navigable, tile_action
from .islands import Island, IslandPartitioner, detect_islands, detect_sea_regions, validate_connectivity
from .terrain_growth import TerrainGrowthEngine, GrowthOptions
from .placement import StructurePlacer, PlacementOptions, CandidatePlacement, ShrinePlacement
from .accessibility import clear_around_structures, ensure_walkable_connectivity
from .coast_lookup import CoastLookupTable, build_lookup_table, get_coast_lookup
from .dungeon import CaveMapData, CaveOptions, generate_cave_map
from .movement import try_grid_move
from .world import MapData, WorldOptions, generate_map, generate_connected_map

__all__ = ['AleaPRNG', 'RandomSource', 'Terrain', 'Structure', 'TileAction',
           'is_walkable', 'is_navigable', 'tile_action',
           'Island', 'IslandPartitioner', 'detect_islands', 'detect_sea_regions', 'validate_connectivity',
           'TerrainGrowthEngine', 'GrowthOptions',
           'StructurePlacer', 'PlacementOptions', 'CandidatePlacement', 'ShrinePlacement',
           'clear_around_structures', 'ensure_walkable_connectivity',
           'CoastLookupTable', 'build_lookup_table', 'get_coast_lookup',
           'CaveMapData', 'CaveOptions', 'generate_cave_map', 'try_grid_move',
           'MapData', 'WorldOptions', 'generate_map', 'generate_connected_map']
