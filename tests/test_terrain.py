"""Tests for the coarse terrain pass and its repair step."""

import dataclasses
import logging

import numpy as np
import pytest

from biome_world import config as DEFAULTS
from biome_world.adjacency import AdjacencyIndex
from biome_world.biomes import (
    DEFAULT_BIOME_DEFINITIONS, DEFAULT_REGISTRY, BiomeId, BiomeRegistry, GenerationRule, Range,
)
from biome_world.grid import BiomeGrid, GenerationOrderError
from biome_world.terrain import TerrainClassifier

from conftest import make_fields


def shallow_ocean_registry():
    """A registry whose ocean range stops at 0.3, leaving (0.3, 0.5) unclassified."""
    definitions = [
        dataclasses.replace(d, rule=GenerationRule(height=Range(max=0.3)))
        if d.id == BiomeId.OCEAN else d
        for d in DEFAULT_BIOME_DEFINITIONS
    ]
    return BiomeRegistry(
        definitions,
        impassable=DEFAULT_REGISTRY.impassable,
        never_autotile=DEFAULT_REGISTRY.never_autotile,
        snow_variants=DEFAULT_REGISTRY.snow_variants,
    )


class TestTerrainAssign:
    """Test height-only terrain classification."""

    def test_first_matching_rule_wins(self, logger):
        fields = make_fields([[0.1, 0.5, 0.51, 0.6, 0.82, 0.9]])
        classifier = TerrainClassifier(fields, logger=logger)
        expected = [
            BiomeId.OCEAN, BiomeId.OCEAN, BiomeId.SANDY_DIRT,
            BiomeId.MOIST_DIRT, BiomeId.MOIST_DIRT, BiomeId.SANDY_DIRT,
        ]
        assert classifier.assign_all()[0].tolist() == [int(b) for b in expected]
        assert [classifier.assign(x, 0) for x in range(6)] == expected

    def test_terrain_only_uses_height(self, logger):
        # Moist dirt's moisture floor does not apply to the coarse pass.
        fields = make_fields([[0.6]], moisture=[[0.0]])
        assert TerrainClassifier(fields, logger=logger).assign(0, 0) == BiomeId.MOIST_DIRT

    def test_unclassified_height_falls_back_to_ocean(self, logger, caplog):
        caplog.set_level(logging.WARNING)
        fields = make_fields([[0.4, 0.9]])
        classifier = TerrainClassifier(fields, shallow_ocean_registry(), logger=logger)
        assert "unclassified" in caplog.text

        caplog.clear()
        assert classifier.assign_all()[0].tolist() == [BiomeId.OCEAN, BiomeId.SANDY_DIRT]
        assert "matched no terrain rule" in caplog.text

    def test_default_rules_cover_unit_range(self, logger, caplog):
        caplog.set_level(logging.WARNING)
        TerrainClassifier(make_fields([[0.5]]), logger=logger)
        assert caplog.text == ""


class TestTerrainRepair:
    """Test edge sinking and the coastal sandy buffer."""

    @pytest.fixture
    def pond(self, logger):
        # Land everywhere with one ocean tile in the middle of an 11x11 grid.
        height = np.full((11, 11), 0.6)
        height[5, 5] = 0.1
        fields = make_fields(height)
        classifier = TerrainClassifier(fields, logger=logger)
        grid = BiomeGrid(11, 11, name="terrain")
        raw = grid.commit(classifier.assign_all())
        adjacency = AdjacencyIndex(logger).build(raw, 2)
        return fields, classifier, grid, raw, adjacency

    def test_edge_tiles_sink(self, pond):
        fields, classifier, _, raw, adjacency = pond
        repaired = classifier.repair_all(raw, adjacency)
        ring = np.ones((11, 11), dtype=bool)
        ring[2:9, 2:9] = False
        assert np.all(repaired[ring] == BiomeId.OCEAN)
        assert np.all(fields.height[ring] == DEFAULTS.EDGE_OCEAN_HEIGHT)
        assert fields.height[5, 5] == 0.1
        assert fields.height[2, 2] == 0.6

    def test_coastal_buffer(self, pond):
        _, classifier, _, raw, adjacency = pond
        repaired = classifier.repair_all(raw, adjacency)
        assert repaired[5, 5] == BiomeId.OCEAN
        assert np.all(repaired[3:8, 3:8][np.arange(25).reshape(5, 5) != 12] == BiomeId.SANDY_DIRT)
        assert repaired[2, 5] == BiomeId.MOIST_DIRT
        assert repaired[5, 8] == BiomeId.MOIST_DIRT

    def test_single_tile_repair_matches_grid(self, pond):
        _, classifier, _, raw, adjacency = pond
        expected = classifier.repair_all(raw, adjacency)
        for x, y in ((0, 0), (1, 6), (2, 2), (4, 5), (5, 5), (8, 8)):
            assert classifier.repair(x, y, raw, adjacency) == expected[y, x]

    def test_repair_is_idempotent_for_coastal_buffer(self, pond, logger):
        _, classifier, grid, raw, adjacency = pond
        first = classifier.repair_all(raw, adjacency)
        buffered = (raw.cells == BiomeId.MOIST_DIRT) & (first == BiomeId.SANDY_DIRT)
        assert buffered.any()

        repaired = grid.commit(first)
        second_adjacency = AdjacencyIndex(logger).build(repaired, 2)
        second = classifier.repair_all(repaired, second_adjacency)
        assert np.all(second[buffered] == BiomeId.SANDY_DIRT)
        for y, x in zip(*np.nonzero(buffered)):
            assert classifier.repair(x, y, repaired, second_adjacency) == BiomeId.SANDY_DIRT

    def test_repair_rejects_stale_adjacency(self, pond):
        _, classifier, grid, raw, adjacency = pond
        newer = grid.commit(classifier.repair_all(raw, adjacency))
        with pytest.raises(GenerationOrderError):
            classifier.repair_all(newer, adjacency)
