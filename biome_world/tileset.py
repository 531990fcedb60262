# biome_world/tileset.py

"""
================================================================================
TILESET & TILE RESOLVER
================================================================================
The immutable (biome, season, tile index) -> tile reference table, and the
resolver that turns a biome map plus autotile indices into drawable tiles.

Data Contract:
---------------
- Tileset: built once from a BiomeRegistry. Every biome has a BASE entry per
  season; autotiled biomes also have entries for indices 1..47.
- TileResolver.resolve(biome, season, index) -> TileRef | None. Biomes
  without an autotile prefix always resolve to their base tile. A missing
  entry degrades to the base tile with a warning, never an exception.
- Side Effects: Logs missing entries.
================================================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import numpy as np

from .autotile import BASE_TILE_INDEX, FULL_TILE_INDEX, NO_AUTOTILE_INDEX
from .biomes import BiomeId, BiomeRegistry, DEFAULT_REGISTRY
from .grid import NO_BIOME, BiomeMapHandle

BASE = BASE_TILE_INDEX


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


@dataclass(frozen=True)
class TileRef:
    biome: BiomeId
    season: Season
    index: int
    name: str

    @property
    def is_base(self) -> bool:
        return self.index == BASE


class Tileset:
    """Read-only mapping of (biome, season) to {tile index: TileRef}."""

    def __init__(self, entries: Mapping):
        self._entries = MappingProxyType({
            key: MappingProxyType(dict(tiles)) for key, tiles in entries.items()
        })

    def get(self, biome: BiomeId, season: Season, index: int) -> Optional[TileRef]:
        tiles = self._entries.get((BiomeId(biome), Season(season)))
        if tiles is None:
            return None
        return tiles.get(int(index))

    def seasons(self, biome: BiomeId) -> tuple:
        return tuple(season for b, season in self._entries if b == biome)

    def __contains__(self, key) -> bool:
        biome, season, index = key
        return self.get(biome, season, index) is not None

    def __len__(self) -> int:
        return sum(len(tiles) for tiles in self._entries.values())


def build_tileset(registry: BiomeRegistry = DEFAULT_REGISTRY,
                  seasons: Iterable[Season] = tuple(Season)) -> Tileset:
    entries = {}
    for definition in registry:
        for season in seasons:
            tiles = {BASE: TileRef(definition.id, season, BASE,
                                   definition.base_tile.format(season=season.value))}
            if definition.is_autotiled:
                prefix = definition.autotile_prefix.format(season=season.value)
                for index in range(1, FULL_TILE_INDEX + 1):
                    tiles[index] = TileRef(definition.id, season, index, f"{prefix}{index}")
            entries[(definition.id, season)] = tiles
    return Tileset(entries)


DEFAULT_TILESET = build_tileset()


class TileResolver:
    def __init__(self, tileset: Tileset = DEFAULT_TILESET, registry: BiomeRegistry = DEFAULT_REGISTRY,
                 logger: logging.Logger = None):
        self.tileset = tileset
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, biome: BiomeId, season: Season, index: int = BASE) -> Optional[TileRef]:
        definition = self.registry[biome]
        season = Season(season)
        if definition.is_autotiled and index not in (BASE, NO_AUTOTILE_INDEX):
            tile = self.tileset.get(biome, season, index)
            if tile is not None:
                return tile
            self.logger.warning(
                f"No tile for {definition.id.name} / {season.value} / index {index}; "
                f"using the base tile."
            )

        tile = self.tileset.get(biome, season, BASE)
        if tile is None:
            self.logger.error(f"No base tile for {definition.id.name} / {season.value}.")
        return tile

    def resolve_grid(self, biomes: BiomeMapHandle, indices: np.ndarray, season: Season) -> np.ndarray:
        """An object array of TileRefs (None where the biome map has no entry)."""
        tiles = np.empty(biomes.shape, dtype=object)
        # Resolve each distinct (biome, index) pair once.
        cache = {}
        for y in range(biomes.height):
            for x in range(biomes.width):
                biome = int(biomes.cells[y, x])
                if biome == NO_BIOME:
                    continue
                key = (biome, int(indices[y, x]))
                if key not in cache:
                    cache[key] = self.resolve(BiomeId(biome), season, key[1])
                tiles[y, x] = cache[key]
        return tiles
