# biome_world/adjacency.py

"""
================================================================================
ADJACENCY INDEX
================================================================================
For every tile, the biome ids of all neighbours within a Chebyshev distance.

Data Contract:
---------------
- Inputs: a current BiomeMapHandle and a distance (1 or 2 in practice).
- Outputs: an AdjacencyMap whose `neighbors` array has shape
  (height, width, (2d+1)^2 - 1). Neighbours are stored in row-major scan
  order (dy outer, dx inner, both -d..+d) with the centre skipped.
  NO_BIOME marks a neighbour outside the grid or not yet generated.
- Invariants: a map is tied to the handle it was built from. It is rebuilt
  after every grid commit and never patched in place.
================================================================================
"""

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .biomes import BiomeId
from .grid import NO_BIOME, BiomeMapHandle, GenerationOrderError


def neighbor_offsets(distance: int) -> List[Tuple[int, int]]:
    return [
        (dx, dy)
        for dy in range(-distance, distance + 1)
        for dx in range(-distance, distance + 1)
        if not (dx == 0 and dy == 0)
    ]


def _as_ids(candidates: Iterable[BiomeId]) -> np.ndarray:
    return np.array([int(c) for c in candidates], dtype=np.int16)


class AdjacencyMap:
    """Neighbour biome ids for every tile of one map revision."""

    def __init__(self, source: BiomeMapHandle, distance: int, neighbors: np.ndarray):
        self.source = source
        self.distance = distance
        self.offsets = neighbor_offsets(distance)
        self.neighbors = neighbors

    @property
    def revision(self) -> int:
        return self.source.revision

    def require_matches(self, handle: BiomeMapHandle):
        """Raises unless this map was built from `handle` and both are current."""
        handle.require_current()
        if not self.source.same_state(handle):
            raise GenerationOrderError(
                f"Adjacency built from '{self.source.name}' revision {self.source.revision} "
                f"does not describe '{handle.name}' revision {handle.revision}."
            )

    def at(self, x: int, y: int) -> List[Optional[BiomeId]]:
        return [None if v == NO_BIOME else BiomeId(int(v)) for v in self.neighbors[y, x]]

    def neighbor_coords(self, x: int, y: int) -> List[Tuple[int, int]]:
        return [(x + dx, y + dy) for dx, dy in self.offsets]

    def adjacent_mask(self, candidates: Iterable[BiomeId]) -> np.ndarray:
        """True where any neighbour is one of `candidates`. NO_BIOME never matches."""
        ids = _as_ids(candidates)
        return np.isin(self.neighbors, ids).any(axis=2)

    def is_adjacent_to(self, x: int, y: int, candidates: Iterable[BiomeId]) -> bool:
        ids = _as_ids(candidates)
        return bool(np.isin(self.neighbors[y, x], ids).any())

    def edge_mask(self) -> np.ndarray:
        """True where a neighbour is outside the grid or ungenerated."""
        return (self.neighbors == NO_BIOME).any(axis=2)

    def touches_edge(self, x: int, y: int) -> bool:
        return bool((self.neighbors[y, x] == NO_BIOME).any())


class AdjacencyIndex:
    """Builds adjacency maps from finalised biome map handles."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def build(source: BiomeMapHandle, distance: int) -> AdjacencyMap:
        if distance < 1:
            raise ValueError(f"Adjacency distance must be at least 1, got {distance}.")
        source.require_current()
        rows, cols = source.shape
        padded = np.pad(source.cells, distance, mode="constant", constant_values=NO_BIOME)
        offsets = neighbor_offsets(distance)
        neighbors = np.empty((rows, cols, len(offsets)), dtype=np.int16)
        for k, (dx, dy) in enumerate(offsets):
            neighbors[:, :, k] = padded[
                distance + dy: distance + dy + rows,
                distance + dx: distance + dx + cols,
            ]
        neighbors.setflags(write=False)
        return AdjacencyMap(source, distance, neighbors)

    def rebuild(self, source: BiomeMapHandle, distances=(1, 2)) -> dict:
        """Builds one map per distance, keyed by distance."""
        self.logger.debug(
            f"Rebuilding adjacency for '{source.name}' revision {source.revision} "
            f"at distances {tuple(distances)}."
        )
        return {d: self.build(source, d) for d in distances}
