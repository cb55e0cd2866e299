"""
Label maps: which edge colour owns each pixel of a Wang tile.
"""

import numpy as np

from .image_ops import fill_triangle
from .tile import WangTile


def build_label_map(tile: WangTile) -> np.ndarray:
    """Builds the per-pixel edge colour map of a tile.

    A constant tile maps every pixel to its single colour. Otherwise the square
    is split into four triangles meeting at the centre, one per edge, and
    filled in the order left, bottom, right, top; pixels on a shared
    triangle edge end up with the colour filled last.

    Args:
        tile: The Wang tile. Only its edges and size are read.

    Returns:
        An int32 array of shape (size, size).
    """
    size = tile.size
    label_map = np.empty((size, size), dtype=np.int32)

    if tile.is_const:
        label_map.fill(tile.left)
        return label_map

    # (x, y) vertices; row 0 is the top edge
    top_left, top_right = (0, 0), (size, 0)
    bottom_left, bottom_right = (0, size), (size, size)
    mid = (size // 2, size // 2)

    fill_triangle(label_map, mid, top_left, bottom_left, tile.left)
    fill_triangle(label_map, mid, bottom_left, bottom_right, tile.bottom)
    fill_triangle(label_map, mid, top_right, bottom_right, tile.right)
    fill_triangle(label_map, mid, top_left, top_right, tile.top)

    return label_map


def fill_region(image: np.ndarray, label_map: np.ndarray, color: int, source: np.ndarray):
    """Copies ``source`` into the pixels of ``image`` labelled ``color``."""
    region = label_map == color
    image[region] = source[region]
