"""Tests for the noise utilities and the scalar field generator."""

import numpy as np
import pytest

from biome_world import config as DEFAULTS
from biome_world.fields import FieldGenerator
from biome_world.noise import make_permutation_table, normalize_noise, perlin_noise_2d


class TestNoise:
    """Test the stateless noise helpers."""

    def test_permutation_table_is_doubled_shuffle(self):
        p = make_permutation_table(5)
        assert len(p) == 512
        assert np.array_equal(p[:256], p[256:])
        assert np.array_equal(np.sort(p[:256]), np.arange(256))

    def test_permutation_table_depends_on_seed(self):
        assert np.array_equal(make_permutation_table(5), make_permutation_table(5))
        assert not np.array_equal(make_permutation_table(5), make_permutation_table(6))

    def test_normalize_noise_clips_then_remaps(self):
        values = normalize_noise(np.array([-2.0, -1.0, 0.0, 1.0, 2.0]))
        assert values.tolist() == [0.0, 0.0, 0.5, 1.0, 1.0]

    def test_normalize_noise_range_scale(self):
        values = normalize_noise(np.array([-0.75, -0.25, 0.25, 0.5]), range_scale=2.0)
        assert values.tolist() == [0.0, 0.25, 0.75, 1.0]

    def test_perlin_octaves_add_weighted_samples(self):
        p = make_permutation_table(2)
        xs, ys = np.meshgrid(np.linspace(0.1, 3.3, 6), np.linspace(0.2, 2.7, 4))
        single = perlin_noise_2d(p, xs, ys)
        doubled = perlin_noise_2d(p, xs * 2, ys * 2)
        combined = perlin_noise_2d(p, xs, ys, octaves=2, persistence=0.5, lacunarity=2.0)
        assert np.allclose(combined, single + 0.5 * doubled)

    def test_perlin_output_matches_input_shape(self):
        p = make_permutation_table(1)
        xs, ys = np.meshgrid(np.linspace(0, 3, 7), np.linspace(0, 2, 5))
        result = perlin_noise_2d(p, xs, ys, octaves=2)
        assert result.shape == (5, 7)

    def test_perlin_is_zero_on_lattice_points(self):
        p = make_permutation_table(1)
        xs, ys = np.meshgrid(np.arange(4.0), np.arange(3.0))
        assert np.allclose(perlin_noise_2d(p, xs, ys), 0.0)


class TestFieldGenerator:
    """Test field generation, bounds and determinism."""

    @pytest.fixture
    def generator(self, logger):
        return FieldGenerator({'seed': 7, 'world_width': 40, 'world_height': 30}, logger)

    def test_settings_fall_back_to_defaults(self, generator):
        assert generator.settings['height_exponent'] == DEFAULTS.HEIGHT_EXPONENT
        assert generator.settings['noise_range_scale'] == DEFAULTS.NOISE_RANGE_SCALE
        assert generator.settings['world_width'] == 40
        assert generator.seed == 7

    def test_invalid_dimensions_raise(self, logger):
        with pytest.raises(ValueError):
            FieldGenerator({'world_width': 0}, logger)

    def test_mismatched_octaves_raise(self, logger):
        with pytest.raises(ValueError):
            FieldGenerator({'height_octave_frequencies': (1.0, 2.0), 'height_octave_weights': (1.0,)}, logger)

    def test_fields_stay_in_unit_range(self, generator):
        height = generator.get_height()
        magnetism = generator.get_magnetism()
        temperature = generator.get_temperature(height, magnetism)
        moisture = generator.get_moisture(np.ones_like(height, dtype=bool))
        for values in (height, magnetism, temperature, moisture):
            assert values.shape == (30, 40)
            assert values.min() >= 0.0
            assert values.max() <= 1.0

    def test_fields_are_deterministic(self, logger):
        config = {'seed': 99, 'world_width': 32, 'world_height': 24}
        first = FieldGenerator(config, logger)
        second = FieldGenerator(config, logger)
        assert np.array_equal(first.get_height(), second.get_height())
        assert np.array_equal(first.get_magnetism(), second.get_magnetism())
        assert np.array_equal(first.get_edge_mask(), second.get_edge_mask())

    def test_seed_changes_height(self, logger):
        first = FieldGenerator({'seed': 1, 'world_width': 32, 'world_height': 24}, logger)
        second = FieldGenerator({'seed': 2, 'world_width': 32, 'world_height': 24}, logger)
        assert not np.array_equal(first.get_height(), second.get_height())

    def test_single_tile_matches_full_grid(self, generator):
        height = generator.get_height()
        magnetism = generator.get_magnetism()
        for x, y in ((0, 0), (5, 7), (20, 15), (39, 29)):
            assert generator.get_height([[x]], [[y]])[0, 0] == pytest.approx(height[y, x])
            assert generator.get_magnetism([[x]], [[y]])[0, 0] == pytest.approx(magnetism[y, x])

    def test_edge_padding_is_ocean_height(self, generator):
        mask = generator.get_edge_mask()
        height = generator.get_height()
        # The base padding always covers the outermost ring.
        assert mask[0, :].all() and mask[-1, :].all()
        assert mask[:, 0].all() and mask[:, -1].all()
        assert not mask[15, 20]
        assert np.all(height[mask] == DEFAULTS.EDGE_OCEAN_HEIGHT)

    def test_magnetism_is_zero_between_pole_radii(self, generator):
        # Poles sit at y=4 and y=26 with a vertical radius of 10 tiles.
        assert np.all(generator.get_magnetism()[15, :] == 0.0)

    def test_effective_height_clamps_high_ground(self, generator):
        effective = generator.get_effective_height(np.array([0.9, 0.8, 0.5]))
        assert effective.tolist() == [0.4, 0.55, 0.5]

    def test_full_magnetism_freezes_temperature(self, generator):
        height = generator.get_height()
        temperature = generator.get_temperature(height, np.ones_like(height))
        assert np.all(temperature == 0.0)

    def test_coastal_moisture_boost(self, generator):
        inland = generator.get_moisture(np.zeros((30, 40), dtype=bool))
        coastal = generator.get_moisture(np.ones((30, 40), dtype=bool))
        boosted = inland > 0.3
        assert np.allclose(coastal[boosted], np.minimum(inland[boosted] * 1.1, 1.0))
        assert np.array_equal(coastal[~boosted], inland[~boosted])

    def test_injected_permutation_table_is_used(self, logger):
        table = make_permutation_table(3)
        generator = FieldGenerator({'seed': 8, 'world_width': 10, 'world_height': 10}, logger, table)
        assert generator.permutation_table is table
