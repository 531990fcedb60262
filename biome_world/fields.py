# biome_world/fields.py

"""
================================================================================
SCALAR FIELD GENERATOR
================================================================================
This module contains the FieldGenerator class, responsible for creating the
per-tile scalar fields the classifiers read: height, magnetism, temperature
and moisture.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): A dictionary of parameters which can override the
      internal defaults. Expected keys include 'seed', 'world_width', etc.
    - logger: A configured Python logging object for runtime messages.
- Outputs (from methods):
    - NumPy float arrays in [0, 1], shaped like the coordinate arrays given
      (the whole (height, width) grid when no coordinates are given).
- Side Effects: Logs messages using the provided logger.
- Invariants: Every field is a pure function of (seed, configuration, tile
  coordinate and the auxiliary fields passed in). Evaluating a single tile
  gives the same value as evaluating the whole grid.
================================================================================
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from . import config as DEFAULTS
from . import noise
from .grid import validate_dimensions
from .zones import BALANCED_MOISTURE_MIN


@dataclass
class FieldSet:
    """The scalar fields of one world. Mutable only while generation runs."""
    height: np.ndarray
    magnetism: np.ndarray
    edge_mask: np.ndarray
    temperature: Optional[np.ndarray] = None
    moisture: Optional[np.ndarray] = None

    def freeze(self) -> "FieldSet":
        for values in (self.height, self.magnetism, self.edge_mask,
                       self.temperature, self.moisture):
            if values is not None:
                values.setflags(write=False)
        return self


class FieldGenerator:
    """
    Generates the raw scalar fields for a procedurally generated world.
    This class is backend-only and does not classify or render anything.
    """
    def __init__(self, config: dict, logger: logging.Logger, permutation_table: np.ndarray = None):
        """
        Initializes the field generator.

        Args:
            config (dict): User-defined parameters to override defaults.
            logger (logging.Logger): The logger instance for all output.
            permutation_table (np.ndarray, optional): A pre-computed noise
                permutation table. If None, one will be generated from the seed.
        """
        self.logger = logger
        self.user_config = config or {}

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed', DEFAULTS.DEFAULT_SEED),
            'world_width': self.user_config.get('world_width', DEFAULTS.DEFAULT_WORLD_WIDTH),
            'world_height': self.user_config.get('world_height', DEFAULTS.DEFAULT_WORLD_HEIGHT),

            'height_seed_offset': self.user_config.get('height_seed_offset', DEFAULTS.HEIGHT_SEED_OFFSET),
            'magnetism_seed_offset': self.user_config.get('magnetism_seed_offset', DEFAULTS.MAGNETISM_SEED_OFFSET),
            'temperature_seed_offset': self.user_config.get('temperature_seed_offset', DEFAULTS.TEMPERATURE_SEED_OFFSET),
            'moisture_seed_offset': self.user_config.get('moisture_seed_offset', DEFAULTS.MOISTURE_SEED_OFFSET),
            'edge_padding_seed_offset': self.user_config.get('edge_padding_seed_offset', DEFAULTS.EDGE_PADDING_SEED_OFFSET),

            'noise_range_scale': self.user_config.get('noise_range_scale', DEFAULTS.NOISE_RANGE_SCALE),

            'height_octave_frequencies': self.user_config.get('height_octave_frequencies', DEFAULTS.HEIGHT_OCTAVE_FREQUENCIES),
            'height_octave_weights': self.user_config.get('height_octave_weights', DEFAULTS.HEIGHT_OCTAVE_WEIGHTS),
            'height_exponent': self.user_config.get('height_exponent', DEFAULTS.HEIGHT_EXPONENT),
            'island_mask_strength': self.user_config.get('island_mask_strength', DEFAULTS.ISLAND_MASK_STRENGTH),
            'edge_padding_tiles': self.user_config.get('edge_padding_tiles', DEFAULTS.EDGE_PADDING_TILES),
            'edge_padding_jitter_tiles': self.user_config.get('edge_padding_jitter_tiles', DEFAULTS.EDGE_PADDING_JITTER_TILES),
            'edge_ocean_height': self.user_config.get('edge_ocean_height', DEFAULTS.EDGE_OCEAN_HEIGHT),

            'magnetism_noise_scale': self.user_config.get('magnetism_noise_scale', DEFAULTS.MAGNETISM_NOISE_SCALE),
            'magnetism_flatten_exponent': self.user_config.get('magnetism_flatten_exponent', DEFAULTS.MAGNETISM_FLATTEN_EXPONENT),
            'magnetism_strength': self.user_config.get('magnetism_strength', DEFAULTS.MAGNETISM_STRENGTH),
            'pole_y_offset_factor': self.user_config.get('pole_y_offset_factor', DEFAULTS.POLE_Y_OFFSET_FACTOR),
            'pole_radius_x_factor': self.user_config.get('pole_radius_x_factor', DEFAULTS.POLE_RADIUS_X_FACTOR),
            'pole_radius_y_factor': self.user_config.get('pole_radius_y_factor', DEFAULTS.POLE_RADIUS_Y_FACTOR),

            'temperature_noise_scale': self.user_config.get('temperature_noise_scale', DEFAULTS.TEMPERATURE_NOISE_SCALE),
            'temperature_octaves': self.user_config.get('temperature_octaves', DEFAULTS.TEMPERATURE_OCTAVES),
            'temperature_persistence': self.user_config.get('temperature_persistence', DEFAULTS.TEMPERATURE_PERSISTENCE),
            'temperature_lacunarity': self.user_config.get('temperature_lacunarity', DEFAULTS.TEMPERATURE_LACUNARITY),
            'temperature_scale': self.user_config.get('temperature_scale', DEFAULTS.TEMPERATURE_SCALE),
            'temperature_height_clamps': self.user_config.get('temperature_height_clamps', DEFAULTS.TEMPERATURE_HEIGHT_CLAMPS),

            'moisture_noise_scale': self.user_config.get('moisture_noise_scale', DEFAULTS.MOISTURE_NOISE_SCALE),
            'coastal_moisture_factor': self.user_config.get('coastal_moisture_factor', DEFAULTS.COASTAL_MOISTURE_FACTOR),
        }

        if len(self.settings['height_octave_frequencies']) != len(self.settings['height_octave_weights']):
            raise ValueError("Height octave frequencies and weights must have the same length.")

        # --- Public Properties for easy access ---
        self.seed = self.settings['seed']
        self.width = self.settings['world_width']
        self.height = self.settings['world_height']
        validate_dimensions(self.width, self.height)

        # --- Initialize Noise ---
        if permutation_table is not None:
            self._p = permutation_table
            self.logger.debug("Initialized with injected permutation table.")
        else:
            self._p = noise.make_permutation_table(self.seed)
        self.permutation_table = self._p

        # The edge padding jitter is drawn once for the whole grid so a single
        # tile evaluates to the same value as the full-grid pass.
        rng = np.random.default_rng(self.seed + self.settings['edge_padding_seed_offset'])
        self._edge_jitter = rng.integers(
            0, self.settings['edge_padding_jitter_tiles'] + 1, size=(self.height, self.width)
        )

        # --- Pole Anchors ---
        pole_y_offset = self.width * self.settings['pole_y_offset_factor']
        self.north_pole = (self.width // 2, pole_y_offset)
        self.south_pole = (self.width // 2, self.height - pole_y_offset)
        self.pole_radius_x = self.width * self.settings['pole_radius_x_factor']
        self.pole_radius_y = self.height * self.settings['pole_radius_y_factor']

        self.logger.info(
            f"FieldGenerator initialized with seed {self.seed} "
            f"for a {self.width}x{self.height} tile world."
        )

    def get_coordinate_grid(self):
        """Integer tile coordinates (as floats) for the whole world, shaped (height, width)."""
        xs = np.arange(self.width, dtype=float)
        ys = np.arange(self.height, dtype=float)
        return np.meshgrid(xs, ys)

    def _coords(self, x_coords, y_coords):
        if x_coords is None or y_coords is None:
            return self.get_coordinate_grid()
        return (np.atleast_2d(np.asarray(x_coords, dtype=float)),
                np.atleast_2d(np.asarray(y_coords, dtype=float)))

    def _noise01(self, x_scaled: np.ndarray, y_scaled: np.ndarray, octaves: int = 1,
                 persistence: float = 0.5, lacunarity: float = 2.0) -> np.ndarray:
        """Multi-octave noise normalised by its weight sum and remapped to [0, 1]."""
        raw = noise.perlin_noise_2d(self._p, x_scaled, y_scaled,
                                    octaves=octaves, persistence=persistence, lacunarity=lacunarity)
        weight_sum = sum(persistence ** i for i in range(octaves))
        return noise.normalize_noise(raw / weight_sum, self.settings['noise_range_scale'])

    def get_edge_mask(self, x_coords: np.ndarray = None, y_coords: np.ndarray = None) -> np.ndarray:
        """True for tiles inside the randomised edge padding."""
        x_coords, y_coords = self._coords(x_coords, y_coords)
        xi = x_coords.astype(int)
        yi = y_coords.astype(int)
        padding = self.settings['edge_padding_tiles'] + self._edge_jitter[yi, xi]
        return (
            (xi < padding) | (xi >= self.width - padding) |
            (yi < padding) | (yi >= self.height - padding)
        )

    def get_height(self, x_coords: np.ndarray = None, y_coords: np.ndarray = None) -> np.ndarray:
        """
        Generates the height field: layered octaves, an exponent to shape
        valleys and peaks, a radial island mask, and a forced ocean border.
        """
        x_coords, y_coords = self._coords(x_coords, y_coords)
        offset = self.settings['height_seed_offset']

        # 1. Sum the octaves around the centre of the map.
        nx = x_coords / self.width - 0.5 + offset
        ny = y_coords / self.height - 0.5 + offset
        weights = self.settings['height_octave_weights']
        height = np.zeros_like(x_coords, dtype=float)
        for frequency, weight in zip(self.settings['height_octave_frequencies'], weights):
            octave = noise.perlin_noise_2d(self._p, frequency * nx, frequency * ny, octaves=1)
            height += weight * noise.normalize_noise(octave, self.settings['noise_range_scale'])
        height /= sum(weights)

        # 2. Reshape valleys/mountains.
        height = np.power(height, self.settings['height_exponent'])

        # 3. Pull the terrain toward an island shape that drops off at the rim.
        dx = (2 * x_coords) / self.width - 1
        dy = (2 * y_coords) / self.height - 1
        d = 1 - (1 - dx ** 2) * (1 - dy ** 2)
        strength = self.settings['island_mask_strength']
        height = height * (1 - strength) + (1 - d) * strength

        # 4. Guarantee an ocean border.
        edge_mask = self.get_edge_mask(x_coords, y_coords)
        height = np.where(edge_mask, self.settings['edge_ocean_height'], height)

        return np.clip(height, 0.0, 1.0)

    def get_magnetism(self, x_coords: np.ndarray = None, y_coords: np.ndarray = None) -> np.ndarray:
        """
        Generates the magnetic pole influence. Zero outside the pole radius on
        either axis; inside, flattened noise fading linearly toward the radius.
        """
        x_coords, y_coords = self._coords(x_coords, y_coords)
        scale = self.settings['magnetism_noise_scale']
        offset = self.settings['magnetism_seed_offset']
        base = self._noise01((x_coords + offset) / scale, (y_coords + offset) / scale)

        x_distance = np.minimum(np.abs(self.north_pole[0] - x_coords), np.abs(self.south_pole[0] - x_coords))
        y_distance = np.minimum(np.abs(self.north_pole[1] - y_coords), np.abs(self.south_pole[1] - y_coords))
        inside = (x_distance <= self.pole_radius_x) & (y_distance <= self.pole_radius_y)

        flattened = np.power(base, self.settings['magnetism_flatten_exponent'])
        flattened *= 1 - x_distance / self.pole_radius_x
        flattened *= 1 - y_distance / self.pole_radius_y
        magnetism = np.where(inside, flattened, 0.0) * self.settings['magnetism_strength']

        return np.clip(magnetism, 0.0, 1.0)

    def get_effective_height(self, height_data: np.ndarray) -> np.ndarray:
        """Caps the height used for temperature so high ground is always cooler."""
        clamps = sorted(self.settings['temperature_height_clamps'], key=lambda c: c[0], reverse=True)
        if not clamps:
            return height_data
        conditions = [height_data > threshold for threshold, _ in clamps]
        choices = [reduced for _, reduced in clamps]
        return np.select(conditions, choices, default=height_data)

    def get_temperature(self, height_data: np.ndarray, magnetism_data: np.ndarray,
                        x_coords: np.ndarray = None, y_coords: np.ndarray = None) -> np.ndarray:
        """
        Generates temperature from height-modulated noise, cooled by magnetism.
        The caller provides height and magnetism for the same coordinates.
        """
        x_coords, y_coords = self._coords(x_coords, y_coords)
        scale = self.settings['temperature_noise_scale']
        offset = self.settings['temperature_seed_offset']
        base = self._noise01(
            (x_coords + offset) / scale, (y_coords + offset) / scale,
            octaves=self.settings['temperature_octaves'],
            persistence=self.settings['temperature_persistence'],
            lacunarity=self.settings['temperature_lacunarity'],
        )
        effective_height = self.get_effective_height(height_data)
        temperature = (base * effective_height - magnetism_data) * self.settings['temperature_scale']
        return np.clip(temperature, 0.0, 1.0)

    def get_moisture(self, near_ocean_mask: np.ndarray,
                     x_coords: np.ndarray = None, y_coords: np.ndarray = None) -> np.ndarray:
        """
        Generates moisture. Tiles near the ocean that are already above the
        balanced threshold get wetter; the clamp happens after the boost.
        """
        x_coords, y_coords = self._coords(x_coords, y_coords)
        scale = self.settings['moisture_noise_scale']
        offset = self.settings['moisture_seed_offset']
        moisture = self._noise01((x_coords + offset) / scale, (y_coords + offset) / scale)

        coastal = near_ocean_mask & (moisture > BALANCED_MOISTURE_MIN)
        moisture = np.where(coastal, moisture * self.settings['coastal_moisture_factor'], moisture)
        return np.clip(moisture, 0.0, 1.0)
