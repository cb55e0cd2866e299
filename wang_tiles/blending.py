"""
Random seeding and patch-based blending of masked tile regions.

The masked band of a colour pass is first filled with random exemplar
pixels, then resolved patch by patch: each patch is matched against the
exemplar set, stitched in along a graph-cut seam and feathered into the
surrounding pixels.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.ndimage import distance_transform_edt

from .exemplars import ExemplarSet
from .graph_cut import NoisePenalty, seam_cut
from .image_ops import crop_wrap, outside_mask, paste_wrap

DEFAULT_FEATHER_BAND = 2


@dataclass
class BlendStats:
    patches: int = 0
    skipped: int = 0
    fallbacks: int = 0
    cancelled: bool = False

    def merge(self, other: "BlendStats") -> "BlendStats":
        return BlendStats(
            patches=self.patches + other.patches,
            skipped=self.skipped + other.skipped,
            fallbacks=self.fallbacks + other.fallbacks,
            cancelled=self.cancelled or other.cancelled,
        )


def seed_random(points: np.ndarray, image: np.ndarray, exemplar_set: ExemplarSet,
                color: int, rng: np.random.Generator):
    """Writes a random exemplar pixel of ``color`` at every (row, col) point.

    Points are written in the given order, so the random draws line up with
    the caller's shuffle.
    """
    if len(points) == 0:
        return
    pixels = exemplar_set.sample_random_pixels(color, rng, len(points))
    image[points[:, 0], points[:, 1]] = pixels


def feather_weights(take: np.ndarray, band: int = DEFAULT_FEATHER_BAND) -> np.ndarray:
    """Converts a cut partition into blend weights for the new patch.

    Pixels on the take side get weight 1. On the keep side the weight ramps
    down linearly with the distance to the take side and reaches 0 at
    ``band + 2`` pixels, so the seam is spread over a few pixels instead of
    showing as a hard edge.
    """
    if not take.any():
        return np.zeros(take.shape, dtype=np.float32)
    # Distance of every keep-side pixel to the nearest take-side pixel
    distance = distance_transform_edt(~take)
    weights = np.clip(1.0 - distance / (band + 2), 0.0, 1.0).astype(np.float32)
    weights[take] = 1.0
    return weights


def composite(old: np.ndarray, new: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Linear blend ``w * new + (1 - w) * old``, rounded back to uint8."""
    w = weights[..., None] if old.ndim == 3 else weights
    blended = w * new.astype(np.float32) + (1.0 - w) * old.astype(np.float32)
    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)


def _ring(size: int, width: int) -> np.ndarray:
    ring = np.zeros((size, size), dtype=bool)
    if width > 0:
        ring[:width, :] = True
        ring[-width:, :] = True
        ring[:, :width] = True
        ring[:, -width:] = True
    return ring


def blend_patches(points: np.ndarray, image: np.ndarray, mask: np.ndarray,
                  exemplar_set: ExemplarSet, color: int,
                  frozen: Optional[np.ndarray] = None,
                  feather_band: int = DEFAULT_FEATHER_BAND,
                  noise_penalty: NoisePenalty = None,
                  clamp: bool = False, token=None) -> BlendStats:
    """Resolves masked pixels by stitching in best-matching exemplar patches.

    Args:
        points: (N, 2) array of (row, col) patch centres, visited in order.
        image: Tile pixels, modified in place.
        mask: Resynthesis mask, cleared in place where pixels get resolved.
        exemplar_set: Source of candidate patches.
        color: Colour class whose exemplars are matched.
        frozen: Pixels that must never change (the tile's outer border).
        feather_band: Width of the feathered transition around a seam.
        noise_penalty: Cost of keeping a seeded pixel in the min cut. None
                       scales it to the patch's median seam edge;
                       ``ALWAYS_REPLACE`` never keeps seeded pixels.
        clamp: Move centres that are too close to the border inwards instead
               of skipping them. Used for the final margin sweep.
        token: Optional cancellation token polled before every patch.

    Returns:
        BlendStats for the sweep.
    """
    stats = BlendStats()
    h, w = mask.shape
    size = exemplar_set.exemplar_size
    half = size // 2
    quarter = size // 4
    if frozen is None:
        frozen = np.zeros((h, w), dtype=bool)

    # Masked pixels near the patch core must be taken from the match; the outer
    # ring stays with the old content so new pixels never touch the patch edge.
    ring_width = max(0, min(feather_band + 1, half - 1 - quarter))
    ring = _ring(size, ring_width)
    core = np.zeros((size, size), dtype=bool)
    core[half - quarter:half + quarter + 1, half - quarter:half + quarter + 1] = True

    lo_y, hi_y = quarter, h - quarter - 1
    lo_x, hi_x = quarter, w - quarter - 1

    for y, x in points:
        if token is not None and token.cancelled:
            stats.cancelled = True
            break

        y, x = int(y), int(x)
        # Already resolved by an earlier patch of this sweep
        if not mask[y, x] or frozen[y, x]:
            continue

        cy, cx = y, x
        if y < lo_y or y > hi_y or x < lo_x or x > hi_x:
            if not clamp or lo_y > hi_y or lo_x > hi_x:
                stats.skipped += 1
                continue
            cy = min(max(y, lo_y), hi_y)
            cx = min(max(x, lo_x), hi_x)

        top, left = cy - half, cx - half
        crop = crop_wrap(image, top, left, size)
        crop_mask = crop_wrap(mask, top, left, size)
        crop_frozen = crop_wrap(frozen, top, left, size)
        wrapped = outside_mask(image.shape, top, left, size)

        locked = crop_frozen | wrapped
        writable = crop_mask & ~locked
        sink = writable & core & ~ring

        if crop_mask.all() or not sink.any():
            # Nothing authoritative to match against: keep the seeded pixels
            stats.fallbacks += 1
            paste_wrap(mask, crop_mask & ~(writable & core), top, left)
            mask[y, x] = False
            continue

        match, _ = exemplar_set.find_best_match(crop, color, crop_mask)

        keep = (~crop_mask) | locked | ring
        free = writable & ~keep & ~sink
        cut = seam_cut(crop, match, keep, sink, noise_penalty=noise_penalty, free=free)
        take = cut.take & writable

        weights = feather_weights(take, feather_band)
        weights[locked] = 0.0

        blended = composite(crop, match, weights)
        paste_wrap(image, blended, top, left)
        paste_wrap(mask, crop_mask & ~take, top, left)
        stats.patches += 1

    return stats
