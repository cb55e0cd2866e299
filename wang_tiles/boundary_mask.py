"""
Boundary masks: the pixels resynthesized during one colour pass.
"""

import numpy as np

from .image_ops import bounding_box, box_corners, dilate, perimeter_points

# 8-connected neighbour offsets (drow, dcol)
D8_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))

DEFAULT_THICKNESS = 3


def detect_boundary(label_map: np.ndarray, color: int) -> np.ndarray:
    """Flags pixels labelled ``color`` with a differently labelled 8-neighbour.

    Neighbours outside the map are ignored.
    """
    h, w = label_map.shape
    # -1 padding marks out-of-bounds neighbours, which never count as different
    padded = np.pad(label_map, 1, mode='constant', constant_values=-1)
    region = label_map == color
    boundary = np.zeros((h, w), dtype=bool)
    for dr, dc in D8_OFFSETS:
        neighbour = padded[1 + dr:1 + dr + h, 1 + dc:1 + dc + w]
        boundary |= (neighbour != color) & (neighbour != -1)
    return boundary & region


def correct_perimeter(mask: np.ndarray) -> np.ndarray:
    """Clears the perimeter of the mask's bounding box, keeping its corners."""
    box = bounding_box(mask)
    if box is None:
        return mask
    corners = set(box_corners(box))
    for row, col in perimeter_points(box):
        if (row, col) not in corners:
            mask[row, col] = False
    return mask


def build_boundary_mask(label_map: np.ndarray, color: int,
                        thickness: int = DEFAULT_THICKNESS) -> np.ndarray:
    """Builds the resynthesis mask for one colour pass.

    Args:
        label_map: Per-pixel colour classes of the tile.
        color: The colour class of the current pass.
        thickness: Dilation radius applied to the detected boundary.

    Returns:
        Boolean mask, True where pixels may be resynthesized.
    """
    mask = detect_boundary(label_map, color)
    mask = dilate(mask, thickness)
    return correct_perimeter(mask)
