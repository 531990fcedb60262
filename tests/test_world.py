"""Tests for the World query surface."""

import numpy as np
import pytest

from biome_world.biomes import DEFAULT_REGISTRY, BiomeId
from biome_world.tileset import Season
from biome_world.world import World
from biome_world.zones import CLIMATE_ZONES, MOISTURE_ZONES

from conftest import SMALL_WORLD

OCEANS = (BiomeId.OCEAN, BiomeId.OCEAN_DEEP)


@pytest.fixture(scope="module")
def world():
    return World(SMALL_WORLD)


class TestPointQueries:
    """Test the per-tile accessors."""

    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (48, 0), (0, 40), (100, 100)])
    def test_out_of_bounds(self, world, x, y):
        assert world.get_biome_at(x, y) is None
        assert world.get_tile_at(x, y) is None
        assert world.is_passable(x, y) is False
        assert world.get_height(x, y) is None
        assert world.get_moisture(x, y) is None
        assert world.get_temperature(x, y) is None
        assert world.get_magnetism(x, y) is None
        assert world.get_tile_info(x, y) is None
        assert world.resolve_tile(x, y, Season.WINTER) is None

    def test_passability_follows_biome(self, world):
        for y in range(world.height):
            for x in range(world.width):
                biome = world.get_biome_at(x, y)
                assert world.is_passable(x, y) == (biome not in DEFAULT_REGISTRY.impassable)

    def test_ocean_is_impassable(self, world):
        assert world.get_biome_at(0, 0) in OCEANS
        assert not world.is_passable(0, 0)

    def test_field_accessors_match_snapshot(self, world):
        fields = world.snapshot.fields
        assert world.get_height(10, 12) == fields.height[12, 10]
        assert world.get_moisture(10, 12) == fields.moisture[12, 10]
        assert world.get_temperature(10, 12) == fields.temperature[12, 10]
        assert world.get_magnetism(10, 12) == fields.magnetism[12, 10]

    def test_tile_at_matches_biome(self, world):
        tile = world.get_tile_at(20, 20)
        assert tile.biome == world.get_biome_at(20, 20)
        assert tile.season == Season.SPRING

    def test_tile_info(self, world):
        info = world.get_tile_info(20, 20)
        assert info['biome'] == world.get_biome_at(20, 20)
        assert info['biome_name'] == DEFAULT_REGISTRY[info['biome']].name
        assert info['climate_zone'] in CLIMATE_ZONES
        assert info['moisture_zone'] in MOISTURE_ZONES
        assert info['height'] == world.get_height(20, 20)
        assert info['tile'] == world.get_tile_at(20, 20).name

    def test_resolve_tile_for_another_season(self, world):
        tile = world.resolve_tile(0, 0, Season.WINTER)
        assert tile.season == Season.WINTER
        assert "winter" in tile.name
        assert world.resolve_tile(0, 0) is world.get_tile_at(0, 0)


class TestAggregateQueries:
    """Test counts and random sampling."""

    def test_biome_counts_cover_grid(self, world):
        counts = world.biome_counts()
        assert sum(counts.values()) == world.width * world.height
        assert counts[BiomeId.OCEAN_DEEP] > 0

    def test_random_positions_match_filter(self, world):
        positions = world.get_random_positions(OCEANS, 10)
        assert len(positions) == 10
        assert len(set(positions)) == 10
        assert all(world.get_biome_at(x, y) in OCEANS for x, y in positions)

    def test_filter_forms(self, world):
        single = world.get_random_positions(BiomeId.OCEAN_DEEP, 5)
        assert all(world.get_biome_at(x, y) == BiomeId.OCEAN_DEEP for x, y in single)
        land = world.get_random_positions(lambda biome: biome not in OCEANS, 5)
        assert all(world.get_biome_at(x, y) not in OCEANS for x, y in land)

    def test_plain_integer_filter(self, world):
        positions = world.get_random_positions(int(BiomeId.OCEAN_DEEP), 2)
        assert len(positions) == 2
        assert all(world.get_biome_at(x, y) == BiomeId.OCEAN_DEEP for x, y in positions)
        cell = world.snapshot.biomes.cells[0, 0]
        assert world.get_random_positions(cell, 1)

    def test_more_than_available(self, world):
        available = world.biome_counts()[BiomeId.OCEAN_DEEP]
        positions = world.get_random_positions(BiomeId.OCEAN_DEEP, available + 50)
        assert len(positions) == available
        assert len(set(positions)) == available

    def test_zero_and_negative_counts(self, world):
        assert world.get_random_positions(OCEANS, 0) == []
        with pytest.raises(ValueError):
            world.get_random_positions(OCEANS, -1)

    def test_sampling_is_seeded(self):
        config = dict(SMALL_WORLD, world_width=16, world_height=16)
        first = World(config).get_random_positions(OCEANS, 8)
        second = World(config).get_random_positions(OCEANS, 8)
        assert first == second


class TestRegeneration:
    """Test the atomic snapshot swap."""

    def test_regenerate_swaps_snapshot(self):
        world = World(dict(SMALL_WORLD, world_width=16, world_height=16))
        old = world.snapshot
        old_cells = old.biomes.cells.copy()

        new = world.regenerate(seed=77)
        assert world.snapshot is new
        assert world.seed == 77
        # Readers holding the old snapshot still see a complete, unchanged world.
        assert old.seed == SMALL_WORLD['seed']
        assert np.array_equal(old.biomes.cells, old_cells)
        assert old.biomes.is_current

    def test_regenerate_with_overrides(self):
        height = np.full((10, 10), 0.1)
        height[2:8, 2:8] = 0.9
        world = World({'world_width': 10, 'world_height': 10}, overrides={'height': height})
        assert world.get_height(5, 5) == 0.9
        assert world.get_biome_at(5, 5) == BiomeId.SANDY_DIRT

        world.regenerate()
        assert world.get_height(5, 5) != 0.9
