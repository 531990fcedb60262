"""Tests for biome definitions, the registry and the climate zones."""

import dataclasses

import numpy as np
import pytest

from biome_world.biomes import (
    DEFAULT_BIOME_DEFINITIONS, DEFAULT_REGISTRY, BiomeId, BiomeRegistry, GenerationRule, Range,
)
from biome_world.zones import CLIMATE_ZONES, describe_moisture, describe_temperature


class TestRules:
    """Test ranges and generation rules."""

    def test_range_bounds_are_inclusive(self):
        rule_range = Range(min=0.5, max=0.52)
        assert rule_range.contains(0.5)
        assert rule_range.contains(0.52)
        assert not rule_range.contains(0.53)
        assert rule_range.mask(np.array([0.4, 0.51, 0.6])).tolist() == [False, True, False]

    def test_missing_bound_is_unconstrained(self):
        assert Range(max=0.25).contains(-5.0)
        assert Range(min=0.5).contains(7.0)
        assert Range().contains(0.3)

    def test_rule_combines_fields(self):
        rule = GenerationRule(height=Range(min=0.5, max=0.6), moisture=Range(min=0.8))
        mask = rule.matches(height=np.array([0.55, 0.55, 0.7]), moisture=np.array([0.9, 0.5, 0.9]))
        assert mask.tolist() == [True, False, False]

    def test_rule_needs_the_fields_it_constrains(self):
        rule = GenerationRule(moisture=Range(min=0.5))
        with pytest.raises(ValueError):
            rule.matches(height=np.array([0.5]))

    def test_empty_rule_matches_everything(self):
        assert GenerationRule().matches(height=np.zeros(3)).tolist() == [True, True, True]


class TestRegistry:
    """Test the immutable registry and its derived tables."""

    def test_every_biome_is_defined(self):
        assert len(DEFAULT_REGISTRY) == len(BiomeId)
        for biome in BiomeId:
            assert DEFAULT_REGISTRY[biome].id == biome

    def test_missing_definition_raises(self):
        with pytest.raises(ValueError):
            BiomeRegistry(DEFAULT_BIOME_DEFINITIONS[1:])

    def test_duplicate_definition_raises(self):
        with pytest.raises(ValueError):
            BiomeRegistry(DEFAULT_BIOME_DEFINITIONS + DEFAULT_BIOME_DEFINITIONS[:1])

    def test_definitions_are_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_REGISTRY[BiomeId.OCEAN].name = "Lake"

    def test_refined_from(self):
        assert DEFAULT_REGISTRY.refined_from(BiomeId.OCEAN) == {BiomeId.OCEAN, BiomeId.OCEAN_DEEP}
        moist_ground = DEFAULT_REGISTRY.refined_from(BiomeId.MOIST_DIRT)
        assert BiomeId.GRASS in moist_ground
        assert BiomeId.SNOW_HILLS in moist_ground
        assert BiomeId.BEACH not in moist_ground

    def test_only_list_wins(self):
        lut = DEFAULT_REGISTRY.occupancy_lut
        assert lut[BiomeId.OCEAN, BiomeId.OCEAN_DEEP]
        assert not lut[BiomeId.OCEAN, BiomeId.BEACH]
        assert not lut[BiomeId.OCEAN_DEEP, BiomeId.OCEAN]

    def test_skip_list_excludes_neighbours(self):
        lut = DEFAULT_REGISTRY.occupancy_lut
        assert lut[BiomeId.SANDY_DIRT, BiomeId.OCEAN]
        assert lut[BiomeId.SANDY_DIRT, BiomeId.SANDY_DIRT]
        assert not lut[BiomeId.SANDY_DIRT, BiomeId.GRASS]

    def test_no_lists_means_any_neighbour(self):
        assert DEFAULT_REGISTRY.occupancy_lut[BiomeId.MOIST_DIRT].all()
        assert not DEFAULT_REGISTRY.occupancy_lut.flags.writeable

    def test_never_autotiled_biomes_have_no_prefix(self):
        for biome in DEFAULT_REGISTRY.never_autotile:
            assert not DEFAULT_REGISTRY[biome].is_autotiled

    def test_snow_variants_are_freezing(self):
        for variant in set(DEFAULT_REGISTRY.snow_variants.values()):
            assert DEFAULT_REGISTRY.rule(variant).matches(temperature=np.array([0.1])).all()


class TestZones:
    """Test the human-readable climate bands."""

    def test_temperature_zones(self):
        assert describe_temperature(0.1) == "Freezing"
        assert describe_temperature(0.6) == "Warm"
        assert describe_temperature(0.95) == "Scorching"
        assert describe_temperature(None) is None

    def test_moisture_zones(self):
        assert describe_moisture(0.05) == "Arid"
        assert describe_moisture(0.5) == "Balanced"
        assert describe_moisture(0.9) == "Super Saturated"

    def test_zones_cover_unit_range(self):
        for value in np.linspace(0.0, 1.0, 101):
            assert describe_temperature(value) in CLIMATE_ZONES
            assert describe_moisture(value) is not None
