# biome_world/pipeline.py

"""
================================================================================
GENERATION PIPELINE
================================================================================
Runs the ordered, named generation passes over shared grid buffers and
publishes one immutable WorldSnapshot at the end.

Pass order:
    height -> magnetism -> terrain -> terrain_repair -> temperature ->
    moisture -> biomes -> biome_refine -> autotile -> tiles

Every pass that changes a grid commits the whole grid at once and rebuilds
the adjacency maps from the new handle before the next pass reads them.

Data Contract:
---------------
- Inputs:
    - config (dict): user overrides for the defaults in config.py.
    - overrides (dict, optional): precomputed fields ('height', 'magnetism',
      'temperature', 'moisture') that replace the generated ones.
- Outputs: a WorldSnapshot whose arrays are all read-only.
- Side Effects: Logs the start and end of every pass.
================================================================================
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from . import config as DEFAULTS
from .adjacency import AdjacencyIndex
from .autotile import AutotileEngine, AutotileResult
from .biomes import BiomeId, BiomeRegistry, DEFAULT_REGISTRY
from .classifier import BiomeClassifier
from .fields import FieldGenerator, FieldSet
from .grid import BiomeGrid, BiomeMapHandle
from .terrain import TerrainClassifier
from .tileset import DEFAULT_TILESET, Season, TileResolver, Tileset

PASS_NAMES = (
    "height",
    "magnetism",
    "terrain",
    "terrain_repair",
    "temperature",
    "moisture",
    "biomes",
    "biome_refine",
    "autotile",
    "tiles",
)

FIELD_NAMES = ("height", "magnetism", "temperature", "moisture")


@dataclass(frozen=True)
class WorldSnapshot:
    """A fully generated world. Published whole; never modified afterwards."""
    seed: int
    width: int
    height: int
    season: Season
    fields: FieldSet
    terrain: BiomeMapHandle
    biomes: BiomeMapHandle
    autotile: AutotileResult
    tiles: np.ndarray

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height


class _RunState:
    """Scratch state shared by the passes of a single run."""

    def __init__(self, width: int, height: int):
        self.fields: Optional[FieldSet] = None
        self.terrain_grid = BiomeGrid(width, height, name="terrain")
        self.biome_grid = BiomeGrid(width, height, name="biomes")
        self.terrain: Optional[BiomeMapHandle] = None
        self.biomes: Optional[BiomeMapHandle] = None
        self.adjacency = {}
        self.terrain_classifier: Optional[TerrainClassifier] = None
        self.biome_classifier: Optional[BiomeClassifier] = None
        self.autotile: Optional[AutotileResult] = None
        self.tiles: Optional[np.ndarray] = None


class GenerationPipeline:
    """
    Builds a world from a seed and grid size. Each call to run() starts from
    empty grids, so a pipeline can be reused for regeneration.
    """
    def __init__(self, config: dict = None, logger: logging.Logger = None,
                 registry: BiomeRegistry = DEFAULT_REGISTRY, tileset: Tileset = DEFAULT_TILESET):
        self.logger = logger or logging.getLogger(__name__)
        self.user_config = dict(config or {})
        self.registry = registry

        self.settings = {
            'season': Season(self.user_config.get('season', DEFAULTS.DEFAULT_SEASON)),
            'coastal_moisture_distance': self.user_config.get(
                'coastal_moisture_distance', DEFAULTS.COASTAL_MOISTURE_DISTANCE),
        }

        self.generator = FieldGenerator(self.user_config, self.logger)
        self.seed = self.generator.seed
        self.width = self.generator.width
        self.height = self.generator.height

        self.adjacency_index = AdjacencyIndex(self.logger)
        self.autotile_engine = AutotileEngine(registry, self.logger)
        self.tile_resolver = TileResolver(tileset, registry, self.logger)

        self._passes = (
            ("height", self._height_pass),
            ("magnetism", self._magnetism_pass),
            ("terrain", self._terrain_pass),
            ("terrain_repair", self._terrain_repair_pass),
            ("temperature", self._temperature_pass),
            ("moisture", self._moisture_pass),
            ("biomes", self._biome_pass),
            ("biome_refine", self._biome_refine_pass),
            ("autotile", self._autotile_pass),
            ("tiles", self._tile_pass),
        )

    @property
    def pass_names(self) -> tuple:
        return tuple(name for name, _ in self._passes)

    def run(self, overrides: dict = None,
            progress: Callable[[str], None] = None) -> WorldSnapshot:
        """
        Runs every pass in order.

        Args:
            overrides (dict, optional): Precomputed field arrays keyed by field
                name, each shaped (height, width).
            progress (callable, optional): Called with the pass name after
                each pass completes.
        """
        overrides = self._check_overrides(overrides or {})
        state = _RunState(self.width, self.height)
        self.logger.info(
            f"Generating {self.width}x{self.height} world with seed {self.seed}..."
        )
        start_time = time.perf_counter()

        for name, run_pass in self._passes:
            pass_start = time.perf_counter()
            run_pass(state, overrides)
            self.logger.debug(f"Pass '{name}' finished in {time.perf_counter() - pass_start:.3f}s.")
            if progress is not None:
                progress(name)

        snapshot = WorldSnapshot(
            seed=self.seed,
            width=self.width,
            height=self.height,
            season=self.settings['season'],
            fields=state.fields.freeze(),
            terrain=state.terrain,
            biomes=state.biomes,
            autotile=state.autotile,
            tiles=state.tiles,
        )
        self.logger.info(f"World generated in {time.perf_counter() - start_time:.2f} seconds.")
        return snapshot

    def _check_overrides(self, overrides: dict) -> dict:
        checked = {}
        for name, values in overrides.items():
            if name not in FIELD_NAMES:
                raise ValueError(f"Unknown field override '{name}'. Expected one of {FIELD_NAMES}.")
            values = np.array(values, dtype=float)
            if values.shape != (self.height, self.width):
                raise ValueError(
                    f"Override '{name}' has shape {values.shape}, "
                    f"expected {(self.height, self.width)}."
                )
            if values.min() < 0.0 or values.max() > 1.0:
                self.logger.warning(f"Override '{name}' has values outside [0, 1]; clipping.")
                values = np.clip(values, 0.0, 1.0)
            checked[name] = values
            self.logger.info(f"Using precomputed '{name}' field.")
        return checked

    def _rebuild_adjacency(self, state: _RunState, handle: BiomeMapHandle):
        state.adjacency = self.adjacency_index.rebuild(handle)

    # --- Passes ---

    def _height_pass(self, state: _RunState, overrides: dict):
        height = overrides.get('height')
        if height is None:
            height = self.generator.get_height()
            edge_mask = self.generator.get_edge_mask()
        else:
            # A precomputed height field is used as given; no padding was applied to it.
            edge_mask = np.zeros(height.shape, dtype=bool)
        state.fields = FieldSet(
            height=height,
            magnetism=np.zeros_like(height),
            edge_mask=edge_mask,
        )

    def _magnetism_pass(self, state: _RunState, overrides: dict):
        magnetism = overrides.get('magnetism')
        state.fields.magnetism = magnetism if magnetism is not None else self.generator.get_magnetism()

    def _terrain_pass(self, state: _RunState, overrides: dict):
        state.terrain_classifier = TerrainClassifier(state.fields, self.registry, self.user_config, self.logger)
        state.terrain = state.terrain_grid.commit(state.terrain_classifier.assign_all())
        self._rebuild_adjacency(state, state.terrain)

    def _terrain_repair_pass(self, state: _RunState, overrides: dict):
        repaired = state.terrain_classifier.repair_all(state.terrain, state.adjacency[2])
        state.terrain = state.terrain_grid.commit(repaired)
        self._rebuild_adjacency(state, state.terrain)

    def _temperature_pass(self, state: _RunState, overrides: dict):
        temperature = overrides.get('temperature')
        if temperature is None:
            temperature = self.generator.get_temperature(state.fields.height, state.fields.magnetism)
        state.fields.temperature = temperature

    def _moisture_pass(self, state: _RunState, overrides: dict):
        moisture = overrides.get('moisture')
        if moisture is None:
            distance = self.settings['coastal_moisture_distance']
            adjacency = state.adjacency.get(distance) or self.adjacency_index.build(state.terrain, distance)
            adjacency.require_matches(state.terrain)
            near_ocean = adjacency.adjacent_mask(self.registry.refined_from(BiomeId.OCEAN))
            moisture = self.generator.get_moisture(near_ocean)
        state.fields.moisture = moisture

    def _biome_pass(self, state: _RunState, overrides: dict):
        state.biome_classifier = BiomeClassifier(state.fields, self.registry, self.logger)
        state.biomes = state.biome_grid.commit(state.biome_classifier.assign_all(state.terrain))
        self._rebuild_adjacency(state, state.biomes)

    def _biome_refine_pass(self, state: _RunState, overrides: dict):
        refined = state.biome_classifier.refine_all(state.biomes, state.adjacency[1])
        state.biomes = state.biome_grid.commit(refined)
        self._rebuild_adjacency(state, state.biomes)

    def _autotile_pass(self, state: _RunState, overrides: dict):
        state.autotile = self.autotile_engine.compute(state.biomes)

    def _tile_pass(self, state: _RunState, overrides: dict):
        tiles = self.tile_resolver.resolve_grid(state.biomes, state.autotile.indices, self.settings['season'])
        tiles.setflags(write=False)
        state.tiles = tiles
