"""Shared fixtures for the biome world tests."""

import logging

import numpy as np
import pytest

from biome_world.fields import FieldSet
from biome_world.pipeline import GenerationPipeline

SMALL_WORLD = {'seed': 1234, 'world_width': 48, 'world_height': 40}


@pytest.fixture
def logger():
    return logging.getLogger("biome_world.tests")


@pytest.fixture(scope="module")
def small_snapshot():
    """A complete generated world, shared by the read-only tests of a module."""
    return GenerationPipeline(SMALL_WORLD).run()


def make_fields(height, moisture=None, temperature=None, magnetism=None):
    """A FieldSet from plain lists, with neutral defaults for missing fields."""
    height = np.array(height, dtype=float)
    neutral = np.full_like(height, 0.5)
    return FieldSet(
        height=height,
        magnetism=np.zeros_like(height) if magnetism is None else np.array(magnetism, dtype=float),
        edge_mask=np.zeros(height.shape, dtype=bool),
        temperature=neutral.copy() if temperature is None else np.array(temperature, dtype=float),
        moisture=neutral.copy() if moisture is None else np.array(moisture, dtype=float),
    )
