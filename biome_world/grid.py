# biome_world/grid.py

"""
================================================================================
BIOME GRID BUFFERS
================================================================================
The shared, mutable grid buffer that generation passes write into, and the
read-only handles that later passes are allowed to consume.

Data Contract:
---------------
- BiomeGrid: an int16 (height, width) buffer of BiomeId values. Passes never
  write single tiles; they compute a complete replacement grid and commit it
  in one step, which bumps the grid's revision.
- BiomeMapHandle: a read-only snapshot of a grid at one revision. Consumers
  (adjacency, classifiers, autotiling) refuse handles whose revision no longer
  matches the grid, so a pass can never read a map that was revised after its
  adjacency was built.
- NO_BIOME (-1) marks cells that are outside the grid or not yet generated.
================================================================================
"""

from typing import Optional, Tuple

import numpy as np

from .biomes import BiomeId

NO_BIOME = -1


class GenerationOrderError(RuntimeError):
    """A pass consumed a map or adjacency that is older than its grid."""


def coords_to_key(x: int, y: int) -> str:
    return f"{x},{y}"


def key_to_coords(key: str) -> Tuple[int, int]:
    x, y = key.split(",")
    return int(x), int(y)


def validate_dimensions(width: int, height: int):
    if int(width) < 1 or int(height) < 1:
        raise ValueError(f"World dimensions must be positive, got {width}x{height}.")


class BiomeGrid:
    """Arena buffer written wholesale by each generation pass."""

    def __init__(self, width: int, height: int, name: str = "biomes"):
        validate_dimensions(width, height)
        self.width = int(width)
        self.height = int(height)
        self.name = name
        self._cells = np.full((self.height, self.width), NO_BIOME, dtype=np.int16)
        self.revision = 0

    @property
    def shape(self) -> tuple:
        return self._cells.shape

    def commit(self, values: np.ndarray) -> "BiomeMapHandle":
        """Replaces every cell at once and returns a handle to the new state."""
        values = np.asarray(values)
        if values.shape != self._cells.shape:
            raise ValueError(
                f"Grid '{self.name}' expects shape {self._cells.shape}, got {values.shape}."
            )
        self._cells[...] = values
        self.revision += 1
        return self.finalize()

    def finalize(self) -> "BiomeMapHandle":
        snapshot = self._cells.copy()
        snapshot.setflags(write=False)
        return BiomeMapHandle(self, snapshot, self.revision)


class BiomeMapHandle:
    """Read-only view of a BiomeGrid at a single revision."""

    def __init__(self, grid: BiomeGrid, cells: np.ndarray, revision: int):
        self._grid = grid
        self.cells = cells
        self.revision = revision

    @property
    def name(self) -> str:
        return self._grid.name

    @property
    def width(self) -> int:
        return self._grid.width

    @property
    def height(self) -> int:
        return self._grid.height

    @property
    def shape(self) -> tuple:
        return self.cells.shape

    @property
    def is_current(self) -> bool:
        return self.revision == self._grid.revision

    def require_current(self):
        if not self.is_current:
            raise GenerationOrderError(
                f"Handle to '{self.name}' is at revision {self.revision} but the grid "
                f"is at revision {self._grid.revision}; rebuild before reading."
            )

    def same_state(self, other: "BiomeMapHandle") -> bool:
        """True if both handles describe the same grid at the same revision."""
        return self._grid is other._grid and self.revision == other.revision

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def at(self, x: int, y: int) -> Optional[BiomeId]:
        if not self.in_bounds(x, y):
            return None
        value = int(self.cells[y, x])
        return None if value == NO_BIOME else BiomeId(value)

    def assigned_count(self) -> int:
        return int(np.count_nonzero(self.cells != NO_BIOME))
