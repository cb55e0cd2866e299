"""Tests for wang_tiles.graph_cut module."""

import numpy as np
import pytest

from wang_tiles.graph_cut import (
    ALWAYS_REPLACE, grid_min_cut, median_noise_penalty, pixel_differences, replacing_noise_penalty,
    seam_capacities, seam_cut,
)


def column_seeds(shape, col):
    seeds = np.zeros(shape, dtype=bool)
    seeds[:, col] = True
    return seeds


class TestCapacities:
    """Tests for seam edge capacities."""

    def test_pixel_differences_l2(self):
        old = np.zeros((1, 1, 3), dtype=np.uint8)
        new = np.array([[[3, 4, 0]]], dtype=np.uint8)
        assert pixel_differences(old, new)[0, 0] == pytest.approx(5.0)

    def test_shapes_and_minimum(self):
        patch = np.zeros((4, 6, 3), dtype=np.uint8)
        right, down = seam_capacities(patch, patch)
        assert right.shape == (4, 5)
        assert down.shape == (3, 6)
        assert (right == 1).all() and (down == 1).all()


class TestGridMinCut:
    """Tests for the max-flow / min-cut solver."""

    def test_cut_follows_matching_columns(self):
        old = np.zeros((10, 10, 3), dtype=np.uint8)
        new = np.full((10, 10, 3), 200, dtype=np.uint8)
        # Old and new agree on columns 5 and 6, so the cheap seam runs between them
        new[:, 5:7] = 0
        result = seam_cut(old, new, column_seeds((10, 10), 0), column_seeds((10, 10), 9))
        assert result.take[:, 6:].all()
        assert not result.take[:, :6].any()
        assert result.cut_value == 10

    def test_seeds_are_respected(self, rng):
        old = rng.integers(0, 256, (8, 8, 3), dtype=np.uint8)
        new = rng.integers(0, 256, (8, 8, 3), dtype=np.uint8)
        keep = np.zeros((8, 8), dtype=bool)
        keep[:2] = True
        take = np.zeros((8, 8), dtype=bool)
        take[-2:] = True
        result = seam_cut(old, new, keep, take)
        assert not result.take[keep].any()
        assert result.take[take].all()

    def test_overlapping_seeds_rejected(self):
        right = np.ones((3, 2), dtype=np.int64)
        down = np.ones((2, 3), dtype=np.int64)
        seeds = np.zeros((3, 3), dtype=bool)
        seeds[1, 1] = True
        with pytest.raises(ValueError):
            grid_min_cut(right, down, seeds, seeds)

    def test_cut_value_is_min_column(self):
        right = np.array([[5, 1, 7]] * 3, dtype=np.int64)
        down = np.full((2, 4), 100, dtype=np.int64)
        result = grid_min_cut(right, down, column_seeds((3, 4), 0), column_seeds((3, 4), 3))
        assert result.cut_value == 3
        assert not result.take[:, :2].any()
        assert result.take[:, 2:].all()


def walled_patch():
    """Old and new agree except along a wall of mismatching keep pixels.

    The free pixels sit between the wall and the forced take core, so taking
    them means cutting through the expensive wall.
    """
    old = np.full((16, 16, 3), 100, dtype=np.uint8)
    old[2, 2:13] = 250
    old[2:13, 2] = 250
    new = np.full((16, 16, 3), 100, dtype=np.uint8)

    square = np.zeros((16, 16), dtype=bool)
    square[3:13, 3:13] = True
    core = np.zeros((16, 16), dtype=bool)
    core[4:13, 4:13] = True
    return old, new, ~square, core, square & ~core


class TestNoisePenalty:
    """Tests for the free-pixel bias."""

    def test_replacing_penalty(self):
        right = np.array([[1, 9]], dtype=np.int64)
        down = np.zeros((0, 3), dtype=np.int64)
        assert replacing_noise_penalty(right, down) == 37

    def test_median_penalty(self):
        right = np.array([[1, 9]], dtype=np.int64)
        down = np.array([[3, 3, 3]], dtype=np.int64)
        assert median_noise_penalty(right, down) == 3
        empty = np.zeros((0, 0), dtype=np.int64)
        assert median_noise_penalty(empty, empty) == 1

    def test_default_penalty_lets_the_seam_keep_free_pixels(self):
        old, new, keep, core, free = walled_patch()
        result = seam_cut(old, new, keep, core, free=free)
        assert np.array_equal(result.take, core)
        assert not result.take[free].any()

    def test_always_replace_takes_free_pixels(self):
        old, new, keep, core, free = walled_patch()
        result = seam_cut(old, new, keep, core, noise_penalty=ALWAYS_REPLACE, free=free)
        assert np.array_equal(result.take, ~keep)

    def test_free_pixels_always_taken(self, rng):
        old = rng.integers(0, 256, (8, 8, 3), dtype=np.uint8)
        new = rng.integers(0, 256, (8, 8, 3), dtype=np.uint8)
        keep = column_seeds((8, 8), 0)
        take = column_seeds((8, 8), 7)
        free = ~(keep | take)
        result = seam_cut(old, new, keep, take, noise_penalty=ALWAYS_REPLACE, free=free)
        assert result.take[:, 1:].all()
        assert not result.take[:, 0].any()

    def test_zero_penalty_disables_bias(self):
        old = np.zeros((4, 6, 3), dtype=np.uint8)
        new = np.full((4, 6, 3), 100, dtype=np.uint8)
        new[:, 4:] = 0
        keep = column_seeds((4, 6), 0)
        take = column_seeds((4, 6), 5)
        free = ~(keep | take)
        result = seam_cut(old, new, keep, take, noise_penalty=0, free=free)
        # Cheapest seam sits between columns 4 and 5, leaving the free pixels behind
        assert not result.take[:, :5].any()
