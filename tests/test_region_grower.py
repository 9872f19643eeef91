"""
Tests for the magic-wand flood fill.
"""
import numpy as np
import pytest

from conftest import buffer_from_rows, transparent_set
from wandcut.models.errors import InvalidSeedError, InvalidToleranceError
from wandcut.models.pixel_buffer import PixelBuffer
from wandcut.services.region_grower_service import RegionGrowerService


@pytest.fixture
def grower():
    return RegionGrowerService()


class TestConcreteScenarios:

    def test_black_border_around_white_center(self, grower, black_with_white_center):
        buf = black_with_white_center
        grower.grow(buf, (0, 0), 10)

        assert transparent_set(buf) == {
            (x, y) for x in range(3) for y in range(3) if (x, y) != (1, 1)
        }
        assert buf.rgba_at(1, 1) == (255, 255, 255, 255)

    def test_single_pixel_buffer(self, grower, make_buffer):
        buf = make_buffer([[(10, 20, 30)]])
        grower.grow(buf, (0, 0), 0)
        assert buf.rgba_at(0, 0) == (10, 20, 30, 0)

    def test_returns_same_buffer(self, grower, black_with_white_center):
        assert grower.grow(black_with_white_center, (0, 0), 10) is black_with_white_center

    def test_rectangle_inside_other_color(self, grower):
        C, D = (0, 0, 255), (200, 0, 0)
        rows = [[D] * 6 for _ in range(5)]
        rect = {(x, y) for x in range(1, 4) for y in range(1, 3)}
        for x, y in rect:
            rows[y][x] = C
        buf = buffer_from_rows(rows)

        grower.grow(buf, (2, 2), 50)

        assert transparent_set(buf) == rect

    def test_large_region_does_not_recurse(self, grower):
        buf = PixelBuffer.filled(400, 400, (5, 5, 5, 255))
        grower.grow(buf, (200, 200), 0)
        assert not buf.alpha.any()


class TestConnectivity:

    def test_other_island_untouched(self, grower, two_islands):
        grower.grow(two_islands, (1, 1), 10)
        assert transparent_set(two_islands) == {(1, 1), (2, 1)}

    def test_diagonal_is_not_connected(self, grower, make_buffer):
        K, W = (0, 0, 0), (255, 255, 255)
        buf = make_buffer([
            [K, W],
            [W, K],
        ])
        grower.grow(buf, (0, 0), 10)
        assert transparent_set(buf) == {(0, 0)}

    def test_boundary_pixel_stops_growth(self, grower, make_buffer):
        K, W = (0, 0, 0), (255, 255, 255)
        buf = make_buffer([[K, W, K]])
        grower.grow(buf, (0, 0), 10)
        assert transparent_set(buf) == {(0, 0)}

    def test_region_reached_around_obstacle(self, grower, make_buffer):
        K, W = (0, 0, 0), (255, 255, 255)
        buf = make_buffer([
            [K, W, K],
            [K, K, K],
        ])
        grower.grow(buf, (0, 0), 10)
        assert transparent_set(buf) == {(0, 0), (2, 0), (0, 1), (1, 1), (2, 1)}

    def test_seed_on_every_edge(self, grower):
        for seed in [(0, 0), (4, 0), (0, 3), (4, 3), (2, 0), (4, 2)]:
            buf = PixelBuffer.filled(5, 4, (9, 9, 9, 255))
            grower.grow(buf, seed, 0)
            assert not buf.alpha.any(), seed


class TestTolerance:

    def test_tolerance_is_inclusive(self, grower, make_buffer):
        # distance((0,0,0), (6,8,0)) == 10 exactly
        buf = make_buffer([[(0, 0, 0), (6, 8, 0)]])
        grower.grow(buf, (0, 0), 10)
        assert transparent_set(buf) == {(0, 0), (1, 0)}

        buf = make_buffer([[(0, 0, 0), (6, 8, 0)]])
        grower.grow(buf, (0, 0), 9.99)
        assert transparent_set(buf) == {(0, 0)}

    def test_monotonic_in_tolerance(self, grower, random_buffer):
        previous = set()
        for tolerance in [0, 40, 80, 120, 160, 200, 260]:
            buf = random_buffer.copy()
            grower.grow(buf, (16, 12), tolerance)
            current = transparent_set(buf)
            assert previous <= current
            previous = current

    def test_target_is_seed_color_not_neighbour(self, grower, make_buffer):
        # a gradient: each step is close to the previous, far from the seed
        buf = make_buffer([[(0, 0, 0), (0, 0, 20), (0, 0, 40), (0, 0, 60)]])
        grower.grow(buf, (0, 0), 25)
        assert transparent_set(buf) == {(0, 0), (1, 0)}

    def test_negative_tolerance_rejected(self, grower, black_with_white_center):
        before = black_with_white_center.data.copy()
        with pytest.raises(InvalidToleranceError):
            grower.grow(black_with_white_center, (0, 0), -1)
        assert np.array_equal(black_with_white_center.data, before)

    def test_nan_tolerance_rejected(self, grower, black_with_white_center):
        with pytest.raises(InvalidToleranceError):
            grower.grow(black_with_white_center, (0, 0), float("nan"))


class TestSeedHandling:

    @pytest.mark.parametrize("seed", [(-1, 0), (0, -1), (3, 0), (0, 3), (10, 10)])
    def test_out_of_bounds_seed(self, grower, black_with_white_center, seed):
        before = black_with_white_center.data.copy()
        with pytest.raises(InvalidSeedError):
            grower.grow(black_with_white_center, seed, 10)
        assert np.array_equal(black_with_white_center.data, before)

    def test_invalid_seed_is_a_value_error(self, grower, black_with_white_center):
        with pytest.raises(ValueError):
            grower.grow(black_with_white_center, (5, 5), 10)

    @pytest.mark.parametrize("seed", [(1.9, 0), (0, 0.5), (float("nan"), 0),
                                      (float("inf"), 0), (None, 0), ("1", 0)])
    def test_fractional_or_non_numeric_seed(self, grower, black_with_white_center, seed):
        before = black_with_white_center.data.copy()
        with pytest.raises(InvalidSeedError, match="whole-pixel"):
            grower.grow(black_with_white_center, seed, 10)
        assert np.array_equal(black_with_white_center.data, before)

    def test_whole_number_float_seed_accepted(self, grower, black_with_white_center):
        grower.grow(black_with_white_center, (0.0, 2.0), 10)
        assert len(transparent_set(black_with_white_center)) == 8

    def test_numpy_integer_seed_accepted(self, grower, black_with_white_center):
        grower.grow(black_with_white_center, (np.int64(1), np.uint8(1)), 10)
        assert transparent_set(black_with_white_center) == {(1, 1)}

    def test_transparent_seed_is_noop(self, grower, make_buffer):
        buf = make_buffer([[(0, 0, 0, 0), (0, 0, 0, 255), (0, 0, 0, 255)]])
        before = buf.data.copy()
        grower.grow(buf, (0, 0), 100)
        assert np.array_equal(buf.data, before)

    def test_seed_alpha_ignored_for_matching(self, grower, make_buffer):
        buf = make_buffer([[(50, 50, 50, 128), (50, 50, 50, 255)]])
        grower.grow(buf, (0, 0), 0)
        assert transparent_set(buf) == {(0, 0), (1, 0)}

    def test_transparent_pixels_inside_region_are_crossed(self, grower, make_buffer):
        buf = make_buffer([[(0, 0, 0, 255), (0, 0, 0, 0), (0, 0, 0, 255)]])
        grower.grow(buf, (0, 0), 0)
        assert transparent_set(buf) == {(0, 0), (1, 0), (2, 0)}


class TestInvariants:

    def test_idempotent(self, grower, random_buffer):
        once = random_buffer.copy()
        grower.grow(once, (3, 4), 120)
        twice = random_buffer.copy()
        grower.grow(twice, (3, 4), 120)
        grower.grow(twice, (3, 4), 120)
        assert np.array_equal(once.data, twice.data)

    def test_rgb_channels_preserved(self, grower, random_buffer):
        before = random_buffer.pixels[:, :, :3].copy()
        grower.grow(random_buffer, (10, 10), 200)
        assert np.array_equal(random_buffer.pixels[:, :, :3], before)

    def test_only_alpha_drops_to_zero(self, grower, random_buffer):
        grower.grow(random_buffer, (10, 10), 200)
        assert set(np.unique(random_buffer.alpha)) <= {0, 255}

    def test_select_region_does_not_mutate(self, grower, black_with_white_center):
        before = black_with_white_center.data.copy()
        region = grower.select_region(black_with_white_center, (0, 0), 10)
        assert np.array_equal(black_with_white_center.data, before)
        assert region.dtype == bool
        assert int(region.sum()) == 8
        assert not region[1 * 3 + 1]

    def test_select_region_empty_for_transparent_seed(self, grower, make_buffer):
        buf = make_buffer([[(0, 0, 0, 0), (0, 0, 0, 255)]])
        assert not grower.select_region(buf, (0, 0), 50).any()
