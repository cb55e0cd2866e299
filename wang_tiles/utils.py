"""
Utility functions for the Wang tile project.

This module provides helper functions for saving, assembling and
visualizing synthesized tile sets.
"""

import os
import math
from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
from PIL import Image

from .tile import Tile, WangTile


def save_image(image: np.ndarray, path: str):
    """Saves a NumPy image array to a file.

    Args:
        image: NumPy array representing the image (H, W, 3 or H, W).
        path: Output file path.

    Raises:
        ValueError: If the image cannot be saved.
    """
    try:
        # Ensure image data is uint8 and clipped to 0-255 range
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)

        dir_path = os.path.dirname(path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)

        Image.fromarray(image).save(path)
    except (OSError, ValueError, TypeError) as e:
        raise ValueError(f"Could not save image to {path}: {e}")


def tile_atlas(tiles: Sequence[WangTile], columns: Optional[int] = None, spacing: int = 0) -> np.ndarray:
    """Lays out tile images on a grid.

    Tiles with a ``grid_position`` (row, col) are placed there, the others
    fill the grid in list order.

    Args:
        tiles: Synthesized tiles, all of the same size.
        columns: Grid width; defaults to a square-ish layout.
        spacing: Gap in pixels between tiles.

    Returns:
        The atlas image (H, W, 3).
    """
    if not tiles:
        raise ValueError("Cannot build an atlas from an empty tile list.")
    size = tiles[0].size
    if columns is None:
        columns = math.ceil(math.sqrt(len(tiles)))

    positions = []
    for i, tile in enumerate(tiles):
        if tile.grid_position is not None:
            positions.append(tuple(tile.grid_position))
        else:
            positions.append(divmod(i, columns))

    rows = max(r for r, _ in positions) + 1
    cols = max(c for _, c in positions) + 1
    step = size + spacing
    atlas = np.zeros((rows * step - spacing, cols * step - spacing, 3), dtype=np.uint8)
    for tile, (r, c) in zip(tiles, positions):
        atlas[r * step:r * step + size, c * step:c * step + size] = tile.image
    return atlas


def visualize_tile_set(tileables: Sequence[Tile], tiles: Sequence[WangTile],
                       title: str = None, save_path: str = None):
    """Shows the tileable sources next to the synthesized atlas using Matplotlib.

    Args:
        tileables: The per-colour tileable source images.
        tiles: The synthesized tiles.
        title: Optional title for the entire visualization.
        save_path: Optional path to save the visualization image.
    """
    fig, axes = plt.subplots(1, len(tileables) + 1, figsize=(4 * (len(tileables) + 1), 4))

    for ax, tileable in zip(axes, tileables):
        ax.imshow(tileable.image)
        ax.set_title(f'Colour {tileable.color}')
        ax.axis('off')

    axes[-1].imshow(tile_atlas(tiles, spacing=2))
    axes[-1].set_title(f'{len(tiles)} Wang Tiles')
    axes[-1].axis('off')

    if title:
        plt.suptitle(title, fontsize=16)

    plt.tight_layout()

    if save_path:
        save_dir = os.path.dirname(save_path)
        if save_dir:
            os.makedirs(save_dir, exist_ok=True)
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    plt.close(fig)
