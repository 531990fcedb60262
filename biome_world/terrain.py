# biome_world/terrain.py

"""
================================================================================
TERRAIN CLASSIFIER
================================================================================
The coarse first pass: every tile becomes ocean, moist dirt or sandy dirt
from its height alone, then edge artifacts and coastlines are repaired.

Data Contract:
---------------
- Inputs:
    - fields (FieldSet): the height field is read; `repair_all` lowers the
      height of tiles it forces into the ocean.
    - registry (BiomeRegistry): the height ranges of OCEAN, MOIST_DIRT and
      SANDY_DIRT are used, checked in that order.
- Outputs: int16 grids of BiomeId values ready to commit into a BiomeGrid.
- Side Effects: Logs configuration defects (unclassified heights).
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS
from .adjacency import AdjacencyMap
from .biomes import BiomeId, BiomeRegistry, DEFAULT_REGISTRY
from .fields import FieldSet
from .grid import BiomeMapHandle

# First matching rule wins.
TERRAIN_ORDER = (BiomeId.OCEAN, BiomeId.MOIST_DIRT, BiomeId.SANDY_DIRT)

_UNCLASSIFIED = -1


class TerrainClassifier:
    def __init__(self, fields: FieldSet, registry: BiomeRegistry = DEFAULT_REGISTRY,
                 config: dict = None, logger: logging.Logger = None):
        self.fields = fields
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        user_config = config or {}
        self.settings = {
            'edge_ocean_height': user_config.get('edge_ocean_height', DEFAULTS.EDGE_OCEAN_HEIGHT),
        }
        self._ocean_family = tuple(sorted(registry.refined_from(BiomeId.OCEAN)))
        self._check_coverage()

    def _check_coverage(self):
        """Warns if the terrain height ranges leave part of [0, 1] unclassified."""
        samples = np.linspace(0.0, 1.0, 1001)
        covered = np.zeros_like(samples, dtype=bool)
        for terrain in TERRAIN_ORDER:
            covered |= self._height_range(terrain).mask(samples)
        if not covered.all():
            gaps = samples[~covered]
            self.logger.warning(
                f"Terrain height ranges leave values unclassified "
                f"(e.g. {gaps[0]:.3f}..{gaps[-1]:.3f}); those tiles will fall back to ocean."
            )

    def _height_range(self, terrain: BiomeId):
        rule_range = self.registry.rule(terrain).height
        if rule_range is None:
            raise ValueError(f"Terrain biome {terrain.name} needs a height range.")
        return rule_range

    def _classify(self, height: np.ndarray) -> np.ndarray:
        conditions = [self._height_range(t).mask(height) for t in TERRAIN_ORDER]
        terrain = np.select(conditions, [int(t) for t in TERRAIN_ORDER], default=_UNCLASSIFIED)
        unclassified = terrain == _UNCLASSIFIED
        if unclassified.any():
            self.logger.warning(
                f"{int(unclassified.sum())} tile(s) matched no terrain rule; using OCEAN."
            )
            terrain[unclassified] = BiomeId.OCEAN
        return terrain.astype(np.int16)

    def assign(self, x: int, y: int) -> BiomeId:
        return BiomeId(int(self._classify(self.fields.height[y:y + 1, x:x + 1])[0, 0]))

    def assign_all(self) -> np.ndarray:
        self.logger.debug("Assigning coarse terrain from height.")
        return self._classify(self.fields.height)

    def _repair(self, cells: np.ndarray, touches_edge: np.ndarray, near_ocean: np.ndarray) -> np.ndarray:
        repaired = np.where(touches_edge, BiomeId.OCEAN, cells)
        coastal = ~touches_edge & (cells == BiomeId.MOIST_DIRT) & near_ocean
        return np.where(coastal, BiomeId.SANDY_DIRT, repaired).astype(np.int16)

    def repair(self, x: int, y: int, terrain: BiomeMapHandle, adjacency: AdjacencyMap) -> BiomeId:
        """The repaired terrain of one tile. Does not touch the height field."""
        adjacency.require_matches(terrain)
        cells = terrain.cells[y:y + 1, x:x + 1]
        touches_edge = np.array([[adjacency.touches_edge(x, y)]])
        near_ocean = np.array([[adjacency.is_adjacent_to(x, y, self._ocean_family)]])
        return BiomeId(int(self._repair(cells, touches_edge, near_ocean)[0, 0]))

    def repair_all(self, terrain: BiomeMapHandle, adjacency: AdjacencyMap) -> np.ndarray:
        """
        Forces every tile whose distance-2 neighbourhood leaves the grid into
        the ocean (lowering its height to the edge ocean height) and turns
        moist dirt next to the ocean into a sandy coastal buffer.
        """
        adjacency.require_matches(terrain)
        touches_edge = adjacency.edge_mask()
        near_ocean = adjacency.adjacent_mask(self._ocean_family)
        repaired = self._repair(terrain.cells, touches_edge, near_ocean)

        self.fields.height = np.where(
            touches_edge,
            np.minimum(self.fields.height, self.settings['edge_ocean_height']),
            self.fields.height,
        )
        self.logger.debug(
            f"Terrain repair: {int(touches_edge.sum())} edge tile(s) sunk, "
            f"{int(((terrain.cells == BiomeId.MOIST_DIRT) & (repaired == BiomeId.SANDY_DIRT)).sum())} "
            f"coastal tile(s) turned to sandy dirt."
        )
        return repaired
