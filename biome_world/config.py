# biome_world/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the world
generator. These values are used if they are not explicitly provided by the
user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC WORLD.
Instead, pass a configuration dictionary to the World / GenerationPipeline.
================================================================================
"""

# --- World Size & Seed ---
DEFAULT_SEED = 594628
DEFAULT_WORLD_WIDTH = 200
DEFAULT_WORLD_HEIGHT = 200

# Offsets added to the noise coordinates so each field samples a different
# region of the same permutation table. Deterministic from the master seed.
HEIGHT_SEED_OFFSET = 0
MAGNETISM_SEED_OFFSET = 7919
TEMPERATURE_SEED_OFFSET = 12347
MOISTURE_SEED_OFFSET = 98761
# Offsets for the numpy generators that are not noise driven.
EDGE_PADDING_SEED_OFFSET = 54321
RANDOM_POSITION_SEED_OFFSET = 25391

# --- Noise ---
# Raw Perlin values are multiplied by this before the remap to [0, 1] so the
# fields use the whole unit range instead of bunching around 0.5.
NOISE_RANGE_SCALE = 2.0

# --- Height Field ---
# Octave frequencies are multiples of the normalised, centred coordinate.
HEIGHT_OCTAVE_FREQUENCIES = (3.0, 4.0, 8.0, 15.0)
HEIGHT_OCTAVE_WEIGHTS = (0.7, 0.5, 0.3, 0.3)
# Exponent > 1 deepens valleys and sharpens peaks.
HEIGHT_EXPONENT = 2.0
# How strongly the height is pulled toward the radial island shape.
ISLAND_MASK_STRENGTH = 0.55
# Tiles closer to the edge than (padding + jitter) are forced under water.
EDGE_PADDING_TILES = 1
EDGE_PADDING_JITTER_TILES = 2
EDGE_OCEAN_HEIGHT = 0.25

# --- Magnetism Field ---
MAGNETISM_NOISE_SCALE = 3.0      # tiles per noise unit
MAGNETISM_FLATTEN_EXPONENT = 0.1
MAGNETISM_STRENGTH = 1.2
POLE_Y_OFFSET_FACTOR = 0.1       # as a factor of world width
POLE_RADIUS_X_FACTOR = 1 / 1.5   # as a factor of world width
POLE_RADIUS_Y_FACTOR = 1 / 3     # as a factor of world height

# --- Temperature Field ---
TEMPERATURE_NOISE_SCALE = 35.0
TEMPERATURE_OCTAVES = 3
TEMPERATURE_PERSISTENCE = 0.5    # octave weights 1, 0.5, 0.25
TEMPERATURE_LACUNARITY = 2.0
TEMPERATURE_SCALE = 1.6
# (height threshold, effective height) pairs. High ground always reads cooler.
# Checked from the highest threshold down.
TEMPERATURE_HEIGHT_CLAMPS = (
    (0.82, 0.4),
    (0.75, 0.55),
)

# --- Moisture Field ---
MOISTURE_NOISE_SCALE = 55.0
COASTAL_MOISTURE_FACTOR = 1.1
COASTAL_MOISTURE_DISTANCE = 2

# --- Tiles ---
DEFAULT_SEASON = "spring"
