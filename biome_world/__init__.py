# biome_world/__init__.py

# This file makes the 'biome_world' directory a Python package.
# We can also use it to define the public API of the package.

from .adjacency import AdjacencyIndex, AdjacencyMap
from .autotile import AutotileEngine
from .biomes import BiomeId, BiomeRegistry, DEFAULT_REGISTRY
from .classifier import BiomeClassifier
from .fields import FieldGenerator, FieldSet
from .grid import BiomeGrid, BiomeMapHandle, GenerationOrderError, coords_to_key, key_to_coords
from .pipeline import GenerationPipeline, WorldSnapshot
from .terrain import TerrainClassifier
from .tileset import Season, TileRef, TileResolver, Tileset, build_tileset
from .world import World

__all__ = [
    "AdjacencyIndex", "AdjacencyMap", "AutotileEngine", "BiomeId", "BiomeRegistry",
    "DEFAULT_REGISTRY", "BiomeClassifier", "FieldGenerator", "FieldSet", "BiomeGrid",
    "BiomeMapHandle", "GenerationOrderError", "coords_to_key", "key_to_coords",
    "GenerationPipeline", "WorldSnapshot", "TerrainClassifier", "Season", "TileRef",
    "TileResolver", "Tileset", "build_tileset", "World",
]
