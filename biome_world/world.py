# biome_world/world.py

"""
================================================================================
WORLD QUERY SURFACE
================================================================================
This module provides the user-facing `World` class, the read-only interface
other subsystems (rendering, spawning, lighting) use to look at a generated
world.

Data Contract:
---------------
- Inputs (on initialization): a config dict (seed, world_width,
  world_height, season, ...) and an optional logger.
- Outputs: point queries (biome, tile, passability, raw field values) and
  random position sampling. Every query on a coordinate outside the grid
  returns None (False for is_passable) instead of raising.
- Concurrency: a world exposes only completed snapshots. regenerate() builds
  a new snapshot off to the side and swaps the reference in one step, so a
  reader holding the old snapshot never sees a half-built grid.
================================================================================
"""

import logging
import numbers
import threading
from collections import Counter
from typing import Callable, Collection, List, Optional, Tuple, Union

import numpy as np

from . import config as DEFAULTS
from .biomes import BiomeId, BiomeRegistry, DEFAULT_REGISTRY
from .pipeline import GenerationPipeline, WorldSnapshot
from .tileset import DEFAULT_TILESET, Season, TileRef, TileResolver, Tileset
from .zones import describe_moisture, describe_temperature

BiomeFilter = Union[BiomeId, int, Collection[BiomeId], Callable[[BiomeId], bool]]


class World:
    """
    A generated world. Construction runs a full generation; after that the
    world only changes through regenerate().
    """
    def __init__(self, config: dict = None, logger: logging.Logger = None,
                 registry: BiomeRegistry = DEFAULT_REGISTRY, tileset: Tileset = DEFAULT_TILESET,
                 overrides: dict = None):
        self.logger = logger or logging.getLogger(__name__)
        self.config = dict(config or {})
        self.registry = registry
        self.tileset = tileset
        self.tile_resolver = TileResolver(tileset, registry, self.logger)

        self._swap_lock = threading.Lock()
        self._snapshot: Optional[WorldSnapshot] = None
        self._rng = None
        self.regenerate(overrides=overrides)

    # --- Generation ---

    def regenerate(self, seed: int = None, overrides: dict = None,
                   progress: Callable[[str], None] = None) -> WorldSnapshot:
        """
        Generates a new world from scratch and publishes it atomically.

        Args:
            seed (int, optional): A new seed. Keeps the current one if None.
            overrides (dict, optional): Precomputed field arrays, see
                GenerationPipeline.run.
            progress (callable, optional): Called with each finished pass name.
        """
        config = dict(self.config)
        if seed is not None:
            config['seed'] = seed
        pipeline = GenerationPipeline(config, self.logger, self.registry, self.tileset)
        snapshot = pipeline.run(overrides=overrides, progress=progress)
        rng = np.random.default_rng(
            snapshot.seed + config.get('random_position_seed_offset', DEFAULTS.RANDOM_POSITION_SEED_OFFSET)
        )

        with self._swap_lock:
            self.config = config
            self._snapshot = snapshot
            self._rng = rng
        return snapshot

    @property
    def snapshot(self) -> WorldSnapshot:
        return self._snapshot

    @property
    def seed(self) -> int:
        return self._snapshot.seed

    @property
    def width(self) -> int:
        return self._snapshot.width

    @property
    def height(self) -> int:
        return self._snapshot.height

    @property
    def season(self) -> Season:
        return self._snapshot.season

    # --- Point Queries ---

    def get_biome_at(self, x: int, y: int) -> Optional[BiomeId]:
        return self._snapshot.biomes.at(x, y)

    def get_tile_at(self, x: int, y: int) -> Optional[TileRef]:
        snapshot = self._snapshot
        if not snapshot.in_bounds(x, y):
            return None
        return snapshot.tiles[y, x]

    def is_passable(self, x: int, y: int) -> bool:
        biome = self.get_biome_at(x, y)
        return biome is not None and biome not in self.registry.impassable

    def _field_at(self, name: str, x: int, y: int) -> Optional[float]:
        snapshot = self._snapshot
        if not snapshot.in_bounds(x, y):
            return None
        return float(getattr(snapshot.fields, name)[y, x])

    def get_height(self, x: int, y: int) -> Optional[float]:
        return self._field_at('height', x, y)

    def get_moisture(self, x: int, y: int) -> Optional[float]:
        return self._field_at('moisture', x, y)

    def get_temperature(self, x: int, y: int) -> Optional[float]:
        return self._field_at('temperature', x, y)

    def get_magnetism(self, x: int, y: int) -> Optional[float]:
        return self._field_at('magnetism', x, y)

    def resolve_tile(self, x: int, y: int, season: Season = None) -> Optional[TileRef]:
        """The tile at (x, y) for any season, not just the world's current one."""
        snapshot = self._snapshot
        if not snapshot.in_bounds(x, y):
            return None
        if season is None or Season(season) == snapshot.season:
            return snapshot.tiles[y, x]
        biome = snapshot.biomes.at(x, y)
        return self.tile_resolver.resolve(biome, Season(season), int(snapshot.autotile.indices[y, x]))

    def get_tile_info(self, x: int, y: int) -> Optional[dict]:
        """Everything known about one tile, for debug overlays."""
        snapshot = self._snapshot
        if not snapshot.in_bounds(x, y):
            return None
        biome = snapshot.biomes.at(x, y)
        temperature = float(snapshot.fields.temperature[y, x])
        moisture = float(snapshot.fields.moisture[y, x])
        tile = snapshot.tiles[y, x]
        return {
            'x': x,
            'y': y,
            'height': float(snapshot.fields.height[y, x]),
            'magnetism': float(snapshot.fields.magnetism[y, x]),
            'temperature': temperature,
            'moisture': moisture,
            'climate_zone': describe_temperature(temperature),
            'moisture_zone': describe_moisture(moisture),
            'biome': biome,
            'biome_name': self.registry[biome].name,
            'passable': biome not in self.registry.impassable,
            'bitmask': int(snapshot.autotile.bitmasks[y, x]),
            'tile_index': int(snapshot.autotile.indices[y, x]),
            'tile': tile.name if tile is not None else None,
        }

    # --- Aggregate Queries ---

    def biome_counts(self) -> Counter:
        ids, counts = np.unique(self._snapshot.biomes.cells, return_counts=True)
        return Counter({BiomeId(int(i)): int(c) for i, c in zip(ids, counts)})

    def _filter_mask(self, cells: np.ndarray, biome_filter: BiomeFilter) -> np.ndarray:
        if isinstance(biome_filter, numbers.Integral):
            allowed = [BiomeId(biome_filter)]
        elif callable(biome_filter):
            allowed = [b for b in BiomeId if biome_filter(b)]
        else:
            allowed = [BiomeId(b) for b in biome_filter]
        return np.isin(cells, np.array([int(b) for b in allowed], dtype=np.int16))

    def get_random_positions(self, biome_filter: BiomeFilter, count: int) -> List[Tuple[int, int]]:
        """
        Samples `count` distinct tiles whose biome passes `biome_filter`.
        Returns fewer positions if not enough tiles match.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}.")
        with self._swap_lock:
            snapshot, rng = self._snapshot, self._rng

        ys, xs = np.nonzero(self._filter_mask(snapshot.biomes.cells, biome_filter))
        available = len(xs)
        if available < count:
            self.logger.debug(
                f"Requested {count} random positions but only {available} tile(s) match."
            )
        with self._swap_lock:
            picks = rng.choice(available, size=min(count, available), replace=False)
        return [(int(xs[i]), int(ys[i])) for i in picks]
