"""
Pixel-buffer primitives shared by the synthesis pipeline.

Images are NumPy arrays indexed ``[row, col]``. Colour buffers are
``(H, W, 3)`` uint8, label maps are ``(H, W)`` int32 and masks are
``(H, W)`` bool.
"""

from typing import List, Optional, Tuple

import cv2
import numpy as np


def wrapped_region(shape: Tuple[int, int], top: int, left: int, size: int) -> Tuple[np.ndarray, np.ndarray]:
    """Returns row and column index vectors of a square window with wraparound."""
    h, w = shape[:2]
    rows = np.arange(top, top + size) % h
    cols = np.arange(left, left + size) % w
    return rows, cols


def crop_wrap(image: np.ndarray, top: int, left: int, size: int) -> np.ndarray:
    """Crops a ``size x size`` window whose top-left corner is (top, left).

    Indices outside the image wrap around, so the image behaves like a torus.
    The returned window is a copy.
    """
    rows, cols = wrapped_region(image.shape, top, left, size)
    return image[np.ix_(rows, cols)].copy()


def paste_wrap(image: np.ndarray, patch: np.ndarray, top: int, left: int):
    """Writes ``patch`` back into ``image`` at (top, left) with wraparound."""
    rows, cols = wrapped_region(image.shape, top, left, patch.shape[0])
    image[np.ix_(rows, cols)] = patch


def outside_mask(shape: Tuple[int, int], top: int, left: int, size: int) -> np.ndarray:
    """Marks window pixels whose unwrapped coordinates fall outside the image."""
    h, w = shape[:2]
    rows = np.arange(top, top + size)
    cols = np.arange(left, left + size)
    row_out = (rows < 0) | (rows >= h)
    col_out = (cols < 0) | (cols >= w)
    return row_out[:, None] | col_out[None, :]


def fill_triangle(buffer: np.ndarray, p0: Tuple[int, int], p1: Tuple[int, int],
                  p2: Tuple[int, int], value) -> np.ndarray:
    """Fills a triangle given by three (x, y) points, boundary included.

    Pixel (row, col) is treated as the lattice point (x=col, y=row). The test
    is done with exact integer edge functions, so pixels lying on a shared
    triangle edge belong to every triangle containing that edge and the last
    fill wins.

    Args:
        buffer: Image to draw into (modified in place).
        p0, p1, p2: Triangle vertices as (x, y).
        value: Value written to covered pixels.

    Returns:
        The boolean coverage mask of the triangle.
    """
    h, w = buffer.shape[:2]
    ys, xs = np.mgrid[0:h, 0:w]

    def edge(a, b):
        return (b[0] - a[0]) * (ys - a[1]) - (b[1] - a[1]) * (xs - a[0])

    e0 = edge(p0, p1)
    e1 = edge(p1, p2)
    e2 = edge(p2, p0)
    # Either winding order is accepted
    inside = ((e0 >= 0) & (e1 >= 0) & (e2 >= 0)) | ((e0 <= 0) & (e1 <= 0) & (e2 <= 0))
    buffer[inside] = value
    return inside


def dilate(mask: np.ndarray, thickness: int) -> np.ndarray:
    """Binary dilation with a square structuring element of radius ``thickness``.

    A pixel becomes True if any True pixel lies within Chebyshev distance
    ``thickness`` of it.
    """
    if thickness <= 0:
        return mask.copy()
    kernel = np.ones((2 * thickness + 1, 2 * thickness + 1), dtype=np.uint8)
    dilated = cv2.dilate(mask.astype(np.uint8), kernel, iterations=1)
    return dilated.astype(bool)


def bounding_box(mask: np.ndarray) -> Optional[Tuple[int, int, int, int]]:
    """Returns (top, left, bottom, right) of the True pixels, inclusive, or None."""
    rows = np.flatnonzero(mask.any(axis=1))
    cols = np.flatnonzero(mask.any(axis=0))
    if rows.size == 0:
        return None
    return int(rows[0]), int(cols[0]), int(rows[-1]), int(cols[-1])


def box_corners(box: Tuple[int, int, int, int]) -> List[Tuple[int, int]]:
    """The four (row, col) corners of an inclusive box."""
    top, left, bottom, right = box
    return [(top, left), (top, right), (bottom, left), (bottom, right)]


def perimeter_points(box: Tuple[int, int, int, int]) -> List[Tuple[int, int]]:
    """Enumerates the (row, col) pixels on the perimeter of an inclusive box."""
    top, left, bottom, right = box
    points = []
    for col in range(left, right + 1):
        points.append((top, col))
        if bottom != top:
            points.append((bottom, col))
    for row in range(top + 1, bottom):
        points.append((row, left))
        if right != left:
            points.append((row, right))
    return points


def perimeter_lock(size: int) -> np.ndarray:
    """Boolean image of a tile's outer border minus its four corners.

    These pixels carry the edge-colour convention shared with neighbouring
    tiles and must not change during masked passes.
    """
    lock = np.zeros((size, size), dtype=bool)
    lock[0, :] = True
    lock[-1, :] = True
    lock[:, 0] = True
    lock[:, -1] = True
    for row, col in box_corners((0, 0, size - 1, size - 1)):
        lock[row, col] = False
    return lock


def masked_points(mask: np.ndarray) -> np.ndarray:
    """Returns the (row, col) coordinates of True pixels as an (N, 2) array."""
    return np.argwhere(mask)
