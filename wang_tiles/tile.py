"""
Tile entities: tileable exemplar sources and edge-coloured Wang tiles.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

# Debug overlay colours, indexed by edge colour class (RGB in [0, 1]).
DEFAULT_EDGE_PALETTE: Tuple[Tuple[float, float, float], ...] = (
    (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0),
    (1.0, 1.0, 0.0), (1.0, 0.0, 1.0), (0.0, 1.0, 1.0),
)


class Tile:
    """A tileable source image belonging to one edge colour class."""

    def __init__(self, color: int, image: np.ndarray):
        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Tile image has unsupported shape {image.shape}. Expected (H,W,3).")
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        self.color = int(color)
        self.image = image

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.shape[0], self.image.shape[1]

    def __repr__(self):
        return f"Tile(color={self.color}, size={self.size})"


class WangTile:
    """A square tile labelled with four edge colours (left, bottom, right, top).

    The edge tuple is fixed at construction. The pixel buffer is owned by
    the tile and filled in place by the synthesis pipeline.
    """

    def __init__(self, left: int, bottom: int, right: int, top: int, size: int,
                 index: int = 0, grid_position: Optional[Tuple[int, int]] = None):
        if size <= 0:
            raise ValueError("Tile size must be positive.")
        self._edges = (int(left), int(bottom), int(right), int(top))
        self.size = size
        self.image = np.zeros((size, size, 3), dtype=np.uint8)
        self.index = index
        self.grid_position = grid_position

    @classmethod
    def from_edges(cls, edges: Sequence[int], size: int, **kwargs) -> "WangTile":
        if len(edges) != 4:
            raise ValueError(f"A Wang tile needs exactly 4 edge colours, got {len(edges)}.")
        return cls(*edges, size=size, **kwargs)

    @property
    def edges(self) -> Tuple[int, int, int, int]:
        return self._edges

    @property
    def left(self) -> int:
        return self._edges[0]

    @property
    def bottom(self) -> int:
        return self._edges[1]

    @property
    def right(self) -> int:
        return self._edges[2]

    @property
    def top(self) -> int:
        return self._edges[3]

    @property
    def is_const(self) -> bool:
        return len(set(self._edges)) == 1

    def sorted_colors(self) -> List[int]:
        """Distinct edge colours in ascending order."""
        return sorted(set(self._edges))

    def fill(self, image: np.ndarray):
        """Copies ``image`` into the tile buffer."""
        if image.shape[:2] != (self.size, self.size):
            raise ValueError(f"Cannot fill a {self.size}px tile from an image of shape {image.shape}.")
        self.image[...] = image

    def copy(self) -> "WangTile":
        duplicate = WangTile(*self._edges, size=self.size, index=self.index,
                             grid_position=self.grid_position)
        duplicate.image = self.image.copy()
        return duplicate

    def add_edge_color(self, thickness: int, alpha: float,
                       palette: Sequence[Tuple[float, float, float]] = DEFAULT_EDGE_PALETTE):
        """Draws translucent bars along each border in that edge's palette colour.

        Debug aid for checking edge codes on a synthesized atlas. The bars stop
        short of the corners so that adjacent edges do not overlap.
        """
        size = self.size
        start, stop = thickness + 1, size - thickness - 1
        if stop <= start:
            return
        regions = [
            (self.left, (slice(start, stop), slice(0, thickness))),
            (self.bottom, (slice(size - thickness, size), slice(start, stop))),
            (self.right, (slice(start, stop), slice(size - thickness, size))),
            (self.top, (slice(0, thickness), slice(start, stop))),
        ]
        for color, (rows, cols) in regions:
            overlay = np.array(palette[color % len(palette)], dtype=np.float32) * 255.0
            region = self.image[rows, cols].astype(np.float32)
            self.image[rows, cols] = np.clip(alpha * overlay + (1 - alpha) * region, 0, 255).astype(np.uint8)

    def __repr__(self):
        return (f"WangTile(index={self.index}, left={self.left}, bottom={self.bottom}, "
                f"right={self.right}, top={self.top})")
