"""Tests for wang_tiles.tile module."""

import numpy as np
import pytest

from wang_tiles import Tile, WangTile


class TestWangTile:
    """Tests for the WangTile entity."""

    def test_edges_order(self):
        tile = WangTile(1, 2, 3, 4, size=8)
        assert tile.edges == (1, 2, 3, 4)
        assert (tile.left, tile.bottom, tile.right, tile.top) == (1, 2, 3, 4)

    def test_edges_are_read_only(self):
        tile = WangTile(0, 0, 1, 1, size=8)
        with pytest.raises(AttributeError):
            tile.edges = (1, 1, 1, 1)

    def test_is_const(self):
        assert WangTile(2, 2, 2, 2, size=8).is_const
        assert not WangTile(2, 2, 2, 1, size=8).is_const

    def test_image_starts_blank(self):
        tile = WangTile(0, 1, 0, 1, size=16)
        assert tile.image.shape == (16, 16, 3)
        assert tile.image.dtype == np.uint8
        assert not tile.image.any()

    def test_from_edges_requires_four(self):
        with pytest.raises(ValueError):
            WangTile.from_edges([0, 1, 0], size=8)
        tile = WangTile.from_edges([0, 1, 0, 1], size=8, index=3)
        assert tile.edges == (0, 1, 0, 1)
        assert tile.index == 3

    def test_sorted_colors(self):
        assert WangTile(3, 1, 3, 0, size=8).sorted_colors() == [0, 1, 3]

    def test_fill_checks_shape(self):
        tile = WangTile(0, 0, 0, 0, size=8)
        with pytest.raises(ValueError):
            tile.fill(np.zeros((4, 4, 3), dtype=np.uint8))
        tile.fill(np.full((8, 8, 3), 7, dtype=np.uint8))
        assert (tile.image == 7).all()

    def test_copy_is_independent(self):
        tile = WangTile(0, 1, 0, 1, size=8, index=5, grid_position=(1, 2))
        duplicate = tile.copy()
        duplicate.image[0, 0] = 255
        assert tile.image[0, 0, 0] == 0
        assert duplicate.edges == tile.edges
        assert duplicate.index == 5
        assert duplicate.grid_position == (1, 2)

    def test_repr_names_edges(self):
        text = repr(WangTile(0, 1, 2, 3, size=8, index=7))
        assert "index=7" in text
        assert "left=0" in text and "top=3" in text


class TestEdgeOverlay:
    """Tests for the debug edge colour overlay."""

    def test_overlay_marks_borders_only(self):
        tile = WangTile(0, 1, 2, 3, size=16)
        tile.add_edge_color(thickness=2, alpha=1.0)
        # Left edge colour 0 is red
        assert tuple(tile.image[8, 0]) == (255, 0, 0)
        # Right edge colour 2 is blue
        assert tuple(tile.image[8, 15]) == (0, 0, 255)
        # Top edge colour 3 is yellow, bottom colour 1 green
        assert tuple(tile.image[0, 8]) == (255, 255, 0)
        assert tuple(tile.image[15, 8]) == (0, 255, 0)
        # Interior and corners untouched
        assert not tile.image[4:12, 4:12].any()
        assert not tile.image[0, 0].any()

    def test_overlay_uses_given_palette(self):
        tile = WangTile(0, 0, 0, 0, size=16)
        tile.add_edge_color(thickness=1, alpha=1.0, palette=[(0.0, 1.0, 1.0)])
        assert tuple(tile.image[8, 0]) == (0, 255, 255)


class TestTile:
    """Tests for tileable sources."""

    def test_rejects_grayscale(self):
        with pytest.raises(ValueError):
            Tile(0, np.zeros((8, 8), dtype=np.uint8))

    def test_converts_dtype(self):
        tile = Tile(1, np.full((4, 4, 3), 300.0))
        assert tile.image.dtype == np.uint8
        assert (tile.image == 255).all()
        assert tile.size == (4, 4)
