"""
Exemplar sets: per-colour pools of source patches and pixels.
"""

from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .tile import Tile


class ExemplarSet:
    """Source patches grouped by edge colour class.

    Every candidate patch is ``exemplar_size x exemplar_size``. Patches are
    pre-extracted once per colour so matching is a pair of matrix products.
    """

    def __init__(self, exemplar_size: int, sources: Mapping[int, Sequence[np.ndarray]],
                 stride: int = 1, wrap: bool = True):
        """Initializes the exemplar set.

        Args:
            exemplar_size: Side of every patch. Must be even and positive.
            sources: Colour class -> list of (H, W, 3) source images.
            stride: Step between extracted patch positions. Larger values
                    trade match quality for memory.
            wrap: Treat sources as tileable and also extract patches that
                  wrap around their borders.
        """
        if exemplar_size <= 0 or exemplar_size % 2 != 0:
            raise ValueError(f"Exemplar size must be a positive even number, got {exemplar_size}.")
        if stride <= 0:
            raise ValueError("Stride must be positive.")
        if not sources:
            raise ValueError("An exemplar set needs at least one colour class.")

        self.exemplar_size = exemplar_size
        self.stride = stride
        self.wrap = wrap

        self._patches: Dict[int, np.ndarray] = {}
        self._patches_sq: Dict[int, np.ndarray] = {}
        self._pixels: Dict[int, np.ndarray] = {}

        for color, images in sources.items():
            images = list(images)
            if not images:
                raise ValueError(f"No source images given for colour {color}.")
            patches = [self._extract_patches(image, color) for image in images]
            flat = np.concatenate(patches, axis=0).astype(np.float64)
            self._patches[int(color)] = flat
            # Squared norms per pixel, summed over channels: (n, s*s)
            self._patches_sq[int(color)] = (flat ** 2).reshape(flat.shape[0], -1, 3).sum(axis=2)
            self._pixels[int(color)] = np.concatenate([image.reshape(-1, 3) for image in images], axis=0)

    @classmethod
    def from_tileables(cls, tileables: Iterable[Tile], exemplar_size: int, **kwargs) -> "ExemplarSet":
        """Builds an exemplar set whose pool for each colour is its tileable image."""
        sources: Dict[int, List[np.ndarray]] = {}
        for tile in tileables:
            sources.setdefault(tile.color, []).append(tile.image)
        return cls(exemplar_size, sources, **kwargs)

    def _extract_patches(self, image: np.ndarray, color: int) -> np.ndarray:
        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Source image for colour {color} has unsupported shape {image.shape}.")
        s = self.exemplar_size
        h, w = image.shape[:2]
        if h < s or w < s:
            raise ValueError(
                f"Source image for colour {color} (shape {h}x{w}) is too small for exemplar size {s}."
            )
        if self.wrap:
            image = np.pad(image, ((0, s - 1), (0, s - 1), (0, 0)), mode='wrap')
        # (ny, nx, 3, s, s) -> (n, s, s, 3)
        windows = sliding_window_view(image, (s, s), axis=(0, 1))[::self.stride, ::self.stride]
        windows = windows.transpose(0, 1, 3, 4, 2).reshape(-1, s * s * 3)
        return np.ascontiguousarray(windows)

    @property
    def colors(self) -> List[int]:
        return sorted(self._patches)

    def has_color(self, color: int) -> bool:
        return color in self._patches

    def patch_count(self, color: int) -> int:
        return self._patches[color].shape[0]

    def sample_random_pixels(self, color: int, rng: np.random.Generator, count: int) -> np.ndarray:
        """Draws ``count`` pixels uniformly from the colour's source images."""
        pool = self._pixels[color]
        return pool[rng.integers(0, pool.shape[0], size=count)]

    def sample_random_pixel(self, color: int, rng: np.random.Generator) -> np.ndarray:
        return self.sample_random_pixels(color, rng, 1)[0]

    def find_best_match(self, crop: np.ndarray, color: int,
                        exclusion_mask: np.ndarray) -> Tuple[np.ndarray, float]:
        """Finds the patch of ``color`` closest to ``crop``.

        The cost is the mean squared difference over crop pixels where
        ``exclusion_mask`` is False; excluded pixels do not constrain the match.

        Returns:
            The best patch as an (s, s, 3) uint8 array and its cost.
        """
        s = self.exemplar_size
        if crop.shape[:2] != (s, s):
            raise ValueError(f"Crop shape {crop.shape} does not match exemplar size {s}.")

        pixel_weights = (~exclusion_mask).reshape(-1).astype(np.float64)
        weights = np.repeat(pixel_weights, 3)
        target = crop.reshape(-1).astype(np.float64)
        count = weights.sum()

        patches = self._patches[color]
        # sum w*(p - c)^2 = sum w*p^2 - 2 sum w*c*p + sum w*c^2
        costs = self._patches_sq[color] @ pixel_weights
        costs -= 2.0 * (patches @ (weights * target))
        costs += float(np.dot(weights, target ** 2))
        costs /= max(count, 1.0)

        best = int(np.argmin(costs))
        patch = np.clip(np.rint(patches[best]), 0, 255).astype(np.uint8).reshape(s, s, 3)
        return patch, float(max(costs[best], 0.0))
