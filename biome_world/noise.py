# biome_world/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides functions for generating 2D Perlin noise. It is designed
to be a pure, stateless utility.

Data Contract:
---------------
- Inputs:
    - p: A pre-shuffled NumPy permutation table (int array, 512 entries).
    - x, y: 2D NumPy arrays of coordinates.
    - octaves, persistence, lacunarity: Standard noise parameters.
- Outputs:
    - A NumPy array of raw noise values (a single octave stays well inside
      [-1, 1]), and normalize_noise to remap them to [0, 1].
- Side Effects: None.
- Invariants: The shape of the output array matches the shape of input x and y.
  The same table and coordinates always produce the same values.
================================================================================
"""

import numpy as np
from numba import njit


def make_permutation_table(seed: int) -> np.ndarray:
    """Builds the doubled 512-entry permutation table for a seed."""
    p = np.arange(256, dtype=np.int64)
    rng = np.random.default_rng(seed)
    rng.shuffle(p)
    return np.stack([p, p]).flatten()

@njit
def _lerp(a, b, t):
    return a + t * (b - a)

@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6 - 15) + 10)

@njit
def _corner_hash(p, xi, yi):
    return p[p[xi % 256] + yi % 256]

@njit
def _corner_dot(h, dx, dy):
    """Dot product with one of four axis gradients: up, down, right, left."""
    k = h & 3
    if k == 0:
        return dy
    if k == 1:
        return -dy
    if k == 2:
        return dx
    return -dx

@njit
def _sample(p, x, y):
    """Single-octave noise at one point. Zero on every lattice point."""
    x0 = np.floor(x)
    y0 = np.floor(y)
    fx = x - x0
    fy = y - y0
    xi = int(x0)
    yi = int(y0)
    u = _fade(fx)
    v = _fade(fy)

    bottom = _lerp(
        _corner_dot(_corner_hash(p, xi, yi), fx, fy),
        _corner_dot(_corner_hash(p, xi + 1, yi), fx - 1, fy),
        u,
    )
    top = _lerp(
        _corner_dot(_corner_hash(p, xi, yi + 1), fx, fy - 1),
        _corner_dot(_corner_hash(p, xi + 1, yi + 1), fx - 1, fy - 1),
        u,
    )
    return _lerp(bottom, top, v)

@njit
def perlin_noise_2d(p, x, y, octaves=1, persistence=0.5, lacunarity=2.0):
    """
    Generate 2D Perlin noise over coordinate arrays using a pre-computed
    permutation table. JIT-compiled with Numba.
    Octaves are summed with weights 1, persistence, persistence^2, ...
    without normalisation; callers divide by the weight sum when needed.
    """
    rows, cols = x.shape
    out = np.empty((rows, cols))
    for i in range(rows):
        for j in range(cols):
            total = 0.0
            amplitude = 1.0
            frequency = 1.0
            for _ in range(octaves):
                total += amplitude * _sample(p, x[i, j] * frequency, y[i, j] * frequency)
                amplitude *= persistence
                frequency *= lacunarity
            out[i, j] = total
    return out

def normalize_noise(values: np.ndarray, range_scale: float = 1.0) -> np.ndarray:
    """
    Remaps noise to [0, 1]. Values are first multiplied by `range_scale`
    (Perlin noise rarely leaves [-0.5, 0.5]) and clipped to [-1, 1].
    """
    return (np.clip(values * range_scale, -1.0, 1.0) + 1.0) / 2.0
