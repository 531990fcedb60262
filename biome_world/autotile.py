# biome_world/autotile.py

"""
================================================================================
AUTOTILE ENGINE
================================================================================
Turns each tile's 8-neighbour occupancy pattern into one of 47 transition
tile indices.

Data Contract:
---------------
- Inputs: a finalised BiomeMapHandle and the BiomeRegistry whose occupancy
  table says which neighbour biomes fill a bit for each centre biome.
- Outputs (AutotileResult):
    - bitmasks: int16 (height, width) reduced neighbour bitmasks.
    - indices: int16 (height, width) tile indices. 0 means "never autotiled
      or absent", 1..47 select a transition tile and BASE_TILE_INDEX (-1)
      marks a bitmask with no table entry (drawn with the base tile).
- Bits: NW=1, N=2, NE=4, W=8, E=16, SW=32, S=64, SE=128. A diagonal bit is
  only set when both cardinal bits next to it are set.
- Side Effects: Logs unmapped bitmasks as errors.
================================================================================
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

import numpy as np

from .biomes import BiomeRegistry, DEFAULT_REGISTRY
from .grid import NO_BIOME, BiomeMapHandle

BIT_NW = 1
BIT_N = 2
BIT_NE = 4
BIT_W = 8
BIT_E = 16
BIT_SW = 32
BIT_S = 64
BIT_SE = 128

# (dx, dy, bit)
CARDINAL_DIRECTIONS = (
    (0, -1, BIT_N),
    (-1, 0, BIT_W),
    (1, 0, BIT_E),
    (0, 1, BIT_S),
)
# (dx, dy, bit, required cardinal bits)
DIAGONAL_DIRECTIONS = (
    (-1, -1, BIT_NW, BIT_N | BIT_W),
    (1, -1, BIT_NE, BIT_N | BIT_E),
    (-1, 1, BIT_SW, BIT_S | BIT_W),
    (1, 1, BIT_SE, BIT_S | BIT_E),
)

NO_AUTOTILE_INDEX = 0
ISOLATED_TILE_INDEX = 46
FULL_TILE_INDEX = 47
BASE_TILE_INDEX = -1

BITMASK_TO_TILE_INDEX = MappingProxyType({
    2: 44, 8: 45, 10: 39, 11: 38, 16: 43, 18: 41, 22: 40, 24: 33,
    26: 31, 27: 30, 30: 29, 31: 28, 64: 42, 66: 32, 72: 37, 74: 27,
    75: 25, 80: 35, 82: 19, 86: 18, 88: 21, 90: 15, 91: 14, 94: 13,
    95: 12, 104: 36, 106: 26, 107: 24, 120: 23, 122: 7, 123: 6, 126: 5,
    127: 4, 208: 34, 210: 17, 214: 16, 216: 22, 218: 11, 219: 10, 222: 9,
    223: 8, 248: 20, 250: 3, 251: 2, 254: 1, 255: FULL_TILE_INDEX, 0: ISOLATED_TILE_INDEX,
})


def reduce_bitmask(raw: int) -> int:
    """Clears every diagonal bit whose two neighbouring cardinal bits are not both set."""
    reduced = raw & (BIT_N | BIT_W | BIT_E | BIT_S)
    for _, _, bit, required in DIAGONAL_DIRECTIONS:
        if raw & bit and (raw & required) == required:
            reduced |= bit
    return reduced


def _build_index_lut() -> np.ndarray:
    lut = np.full(256, BASE_TILE_INDEX, dtype=np.int16)
    for bitmask, index in BITMASK_TO_TILE_INDEX.items():
        lut[bitmask] = index
    lut.setflags(write=False)
    return lut


BITMASK_INDEX_LUT = _build_index_lut()


@dataclass(frozen=True)
class AutotileResult:
    bitmasks: np.ndarray
    indices: np.ndarray


class AutotileEngine:
    def __init__(self, registry: BiomeRegistry = DEFAULT_REGISTRY, logger: logging.Logger = None):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        self._never_autotile = np.array(sorted(int(b) for b in registry.never_autotile), dtype=np.int16)

    def _bitmasks(self, padded: np.ndarray) -> np.ndarray:
        """Reduced bitmasks for the interior of a grid padded by one NO_BIOME cell."""
        rows, cols = padded.shape[0] - 2, padded.shape[1] - 2
        center = padded[1:-1, 1:-1]
        center_ids = np.where(center == NO_BIOME, 0, center)
        occupancy = self.registry.occupancy_lut

        def occupied(dx, dy):
            neighbor = padded[1 + dy:1 + dy + rows, 1 + dx:1 + dx + cols]
            neighbor_ids = np.where(neighbor == NO_BIOME, 0, neighbor)
            return (neighbor != NO_BIOME) & occupancy[center_ids, neighbor_ids]

        bitmasks = np.zeros((rows, cols), dtype=np.int16)
        for dx, dy, bit in CARDINAL_DIRECTIONS:
            bitmasks[occupied(dx, dy)] |= bit
        for dx, dy, bit, required in DIAGONAL_DIRECTIONS:
            gated = ((bitmasks & required) == required) & occupied(dx, dy)
            bitmasks[gated] |= bit
        return bitmasks

    def _indices(self, cells: np.ndarray, bitmasks: np.ndarray) -> np.ndarray:
        indices = BITMASK_INDEX_LUT[bitmasks]
        skipped = (cells == NO_BIOME) | np.isin(cells, self._never_autotile)
        indices = np.where(skipped, NO_AUTOTILE_INDEX, indices).astype(np.int16)

        unmapped = indices == BASE_TILE_INDEX
        if unmapped.any():
            values = sorted(set(int(b) for b in bitmasks[unmapped]))
            self.logger.error(
                f"{int(unmapped.sum())} tile(s) produced bitmask(s) {values} with no tile "
                f"index; drawing them with their base tile."
            )
        return indices

    def compute(self, biomes: BiomeMapHandle) -> AutotileResult:
        biomes.require_current()
        padded = np.pad(biomes.cells, 1, mode="constant", constant_values=NO_BIOME)
        bitmasks = self._bitmasks(padded)
        indices = self._indices(biomes.cells, bitmasks)
        bitmasks.setflags(write=False)
        indices.setflags(write=False)
        return AutotileResult(bitmasks=bitmasks, indices=indices)

    def _window(self, biomes: BiomeMapHandle, x: int, y: int) -> np.ndarray:
        window = np.full((3, 3), NO_BIOME, dtype=np.int16)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if biomes.in_bounds(x + dx, y + dy):
                    window[dy + 1, dx + 1] = biomes.cells[y + dy, x + dx]
        return window

    def bitmask_at(self, biomes: BiomeMapHandle, x: int, y: int) -> Optional[int]:
        if not biomes.in_bounds(x, y):
            return None
        return int(self._bitmasks(self._window(biomes, x, y))[0, 0])

    def index_at(self, biomes: BiomeMapHandle, x: int, y: int) -> int:
        if not biomes.in_bounds(x, y):
            return NO_AUTOTILE_INDEX
        window = self._window(biomes, x, y)
        return int(self._indices(window[1:2, 1:2], self._bitmasks(window))[0, 0])

    @staticmethod
    def lookup(bitmask: int) -> Optional[int]:
        """Tile index for a reduced bitmask, or None if the table has no entry."""
        return BITMASK_TO_TILE_INDEX.get(bitmask)

