# biome_world/color_maps.py

"""
================================================================================
SHARED COLOR MAPPING UTILITIES
================================================================================
This module contains the color mapping constants and functions for converting
generated world data (biome ids and scalar fields) into RGB color arrays for
debug previews.

It is a pure, stateless utility with no rendering dependencies.
================================================================================
"""
import numpy as np

from .biomes import BiomeRegistry, DEFAULT_REGISTRY
from .grid import NO_BIOME

# Drawn for cells without a biome.
COLOR_NO_BIOME = (255, 0, 255)

COLOR_MAP_HEIGHT = {
    "low": (0, 0, 0),
    "high": (255, 255, 255)
}

COLOR_MAP_TEMPERATURE = {
    "coldest": (0, 0, 100),
    "cold": (0, 0, 255),
    "temperate": (255, 255, 0),
    "hot": (255, 0, 0),
    "hottest": (150, 0, 0)
}

# Boundaries between the temperature color stops, in normalised units.
TEMPERATURE_COLOR_LEVELS = {
    "cold": 0.15,
    "temperate": 0.5,
    "hot": 0.85
}

COLOR_MAP_MOISTURE = {
    "dry": (210, 180, 140),
    "wet": (70, 130, 180)
}

COLOR_MAP_MAGNETISM = {
    "none": (20, 20, 30),
    "strong": (120, 255, 220)
}


def hex_to_rgb(color: str) -> tuple:
    color = color.lstrip("#")
    return tuple(int(color[i:i + 2], 16) for i in (0, 2, 4))


# --- Color Lookup Table (LUT) Generation ---
def _gradient_lut(start, end) -> np.ndarray:
    t = np.linspace(0.0, 1.0, 256)[..., np.newaxis]
    colors = (1 - t) * np.array(start) + t * np.array(end)
    return colors.astype(np.uint8)


def create_height_lut() -> np.ndarray:
    """Creates a 256-entry grayscale LUT for the height map."""
    return _gradient_lut(COLOR_MAP_HEIGHT["low"], COLOR_MAP_HEIGHT["high"])


def create_temperature_lut() -> np.ndarray:
    """Creates a 256-entry color LUT for the temperature map."""
    t = np.linspace(0.0, 1.0, 256)[..., np.newaxis]
    color_map = COLOR_MAP_TEMPERATURE
    levels = TEMPERATURE_COLOR_LEVELS

    def blend(low, high, start, end):
        f = (t - low) / (high - low)
        return (1 - f) * np.array(color_map[start]) + f * np.array(color_map[end])

    colors = np.select(
        [t < levels["cold"], t < levels["temperate"], t < levels["hot"]],
        [
            blend(0.0, levels["cold"], "coldest", "cold"),
            blend(levels["cold"], levels["temperate"], "cold", "temperate"),
            blend(levels["temperate"], levels["hot"], "temperate", "hot"),
        ],
        default=blend(levels["hot"], 1.0, "hot", "hottest")
    )
    return colors.astype(np.uint8)


def create_moisture_lut() -> np.ndarray:
    """Creates a 256-entry color LUT for the moisture map."""
    return _gradient_lut(COLOR_MAP_MOISTURE["dry"], COLOR_MAP_MOISTURE["wet"])


def create_magnetism_lut() -> np.ndarray:
    """Creates a 256-entry color LUT for the magnetism map."""
    return _gradient_lut(COLOR_MAP_MAGNETISM["none"], COLOR_MAP_MAGNETISM["strong"])


def create_biome_color_lut(registry: BiomeRegistry = DEFAULT_REGISTRY) -> np.ndarray:
    """Creates a LUT where the index is the BiomeId and the value is the RGB color."""
    lut = np.zeros((len(registry), 3), dtype=np.uint8)
    for definition in registry:
        lut[definition.id] = hex_to_rgb(definition.color)
    return lut


# --- Color Array Generation Functions ---
def get_field_color_array(values: np.ndarray, lut: np.ndarray) -> np.ndarray:
    """Maps a [0, 1] field to colors through a 256-entry LUT."""
    indices = (np.clip(values, 0.0, 1.0) * 255).astype(np.uint8)
    return lut[indices]


def get_biome_color_array(cells: np.ndarray, lut: np.ndarray) -> np.ndarray:
    """Maps a biome id grid to colors; cells without a biome are drawn magenta."""
    safe = np.where(cells == NO_BIOME, 0, cells)
    colors = lut[safe]
    colors[cells == NO_BIOME] = COLOR_NO_BIOME
    return colors
