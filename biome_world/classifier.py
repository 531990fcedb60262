# biome_world/classifier.py

"""
================================================================================
BIOME CLASSIFIER
================================================================================
Refines the coarse terrain categories into final biomes, then runs a cosmetic
second pass that removes borders the autotiler cannot draw cleanly.

Data Contract:
---------------
- Inputs:
    - fields (FieldSet): height, moisture and temperature must be populated.
    - registry (BiomeRegistry): generation rules and snow variants.
    - terrain (BiomeMapHandle): the repaired, finalised terrain map.
- Outputs: int16 grids of BiomeId values ready to commit into a BiomeGrid.
- Invariants: `refine_all` only accepts an adjacency map built from the exact
  biome map revision it is refining.
================================================================================
"""

import logging

import numpy as np

from .adjacency import AdjacencyMap
from .biomes import BiomeId, BiomeRegistry, DEFAULT_REGISTRY
from .fields import FieldSet
from .grid import BiomeMapHandle

# Earlier entries win over later, broader ones.
MOIST_DIRT_PRIORITY = (
    BiomeId.SWAMP,
    BiomeId.VALLEY,
    BiomeId.HILLS_HIGH,
    BiomeId.HILLS_MID,
    BiomeId.HILLS_LOW,
    BiomeId.FOREST_GRASS,
    BiomeId.GRASS,
    BiomeId.SHORT_GRASS,
)


class BiomeClassifier:
    def __init__(self, fields: FieldSet, registry: BiomeRegistry = DEFAULT_REGISTRY,
                 logger: logging.Logger = None):
        self.fields = fields
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        self._moist_ground = tuple(sorted(registry.refined_from(BiomeId.MOIST_DIRT)))

    def _matches(self, biome: BiomeId, height, moisture, temperature) -> np.ndarray:
        return self.registry.rule(biome).matches(
            height=height, moisture=moisture, temperature=temperature
        )

    def _assign(self, terrain: np.ndarray, height, moisture, temperature) -> np.ndarray:
        ocean = np.where(
            self._matches(BiomeId.OCEAN_DEEP, height, moisture, temperature),
            BiomeId.OCEAN_DEEP, BiomeId.OCEAN,
        )
        sandy = np.where(
            self._matches(BiomeId.BEACH, height, moisture, temperature),
            BiomeId.BEACH, BiomeId.SANDY_DIRT,
        )
        moist = np.select(
            [self._matches(b, height, moisture, temperature) for b in MOIST_DIRT_PRIORITY],
            [int(b) for b in MOIST_DIRT_PRIORITY],
            default=int(BiomeId.MOIST_DIRT),
        )
        biomes = np.select(
            [terrain == BiomeId.OCEAN, terrain == BiomeId.SANDY_DIRT, terrain == BiomeId.MOIST_DIRT],
            [ocean, sandy, moist],
            default=terrain,
        )

        # Freezing tiles swap to their snowy counterparts.
        snowed = biomes.copy()
        for source, variant in self.registry.snow_variants.items():
            frozen = (biomes == source) & self._matches(variant, height, moisture, temperature)
            snowed[frozen] = variant
        return snowed.astype(np.int16)

    def assign(self, x: int, y: int, terrain: BiomeMapHandle) -> BiomeId:
        terrain.require_current()
        window = np.s_[y:y + 1, x:x + 1]
        value = self._assign(
            terrain.cells[window],
            self.fields.height[window],
            self.fields.moisture[window],
            self.fields.temperature[window],
        )
        return BiomeId(int(value[0, 0]))

    def assign_all(self, terrain: BiomeMapHandle) -> np.ndarray:
        terrain.require_current()
        if self.fields.moisture is None or self.fields.temperature is None:
            raise ValueError("Biome assignment needs the moisture and temperature fields.")
        self.logger.debug("Assigning biomes from terrain, height, moisture and temperature.")
        return self._assign(
            terrain.cells, self.fields.height, self.fields.moisture, self.fields.temperature
        )

    def _refine(self, cells: np.ndarray, near_moist_ground: np.ndarray) -> np.ndarray:
        pinched = (cells == BiomeId.BEACH) & near_moist_ground
        return np.where(pinched, BiomeId.SANDY_DIRT, cells).astype(np.int16)

    def refine(self, x: int, y: int, biomes: BiomeMapHandle, adjacency: AdjacencyMap) -> BiomeId:
        adjacency.require_matches(biomes)
        near = np.array([[adjacency.is_adjacent_to(x, y, self._moist_ground)]])
        return BiomeId(int(self._refine(biomes.cells[y:y + 1, x:x + 1], near)[0, 0]))

    def refine_all(self, biomes: BiomeMapHandle, adjacency: AdjacencyMap) -> np.ndarray:
        """Beach touching moist ground (distance 1) becomes sandy dirt."""
        adjacency.require_matches(biomes)
        refined = self._refine(biomes.cells, adjacency.adjacent_mask(self._moist_ground))
        self.logger.debug(
            f"Biome refine: {int((refined != biomes.cells).sum())} beach tile(s) turned to sandy dirt."
        )
        return refined
