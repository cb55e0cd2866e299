"""
Quality metrics for synthesized Wang tiles.
"""

import numpy as np
import cv2
from skimage.metrics import structural_similarity as ssim

from .boundary_mask import detect_boundary
from .image_ops import dilate
from .label_map import build_label_map


def adjacent_deltas(image, region=None):
    """
    Colour steps between 4-connected neighbours.

    Parameters:
    -----------
    image : ndarray
        Image (H, W, 3) or (H, W)
    region : ndarray, optional
        Boolean mask; only neighbour pairs with both pixels inside count

    Returns:
    --------
    ndarray
        Maximum absolute per-channel difference of every qualifying pair
    """
    img = image.astype(np.int32)
    if img.ndim == 2:
        img = img[..., None]
    if region is None:
        region = np.ones(img.shape[:2], dtype=bool)

    horizontal = np.abs(img[:, 1:] - img[:, :-1]).max(axis=2)
    vertical = np.abs(img[1:, :] - img[:-1, :]).max(axis=2)
    horizontal = horizontal[region[:, 1:] & region[:, :-1]]
    vertical = vertical[region[1:, :] & region[:-1, :]]

    return np.concatenate([horizontal, vertical])


def max_adjacent_delta(image, region=None):
    """
    Largest colour step between 4-connected neighbours, 0 if no pair qualifies.
    """
    steps = adjacent_deltas(image, region)
    return float(steps.max()) if steps.size else 0.0


def seam_band(label_map, width):
    """
    Pixels within `width` (Chebyshev distance) of a label transition.

    Parameters:
    -----------
    label_map : ndarray
        Per-pixel colour classes
    width : int
        Band half-width in pixels

    Returns:
    --------
    ndarray
        Boolean band mask
    """
    boundary = np.zeros(label_map.shape, dtype=bool)
    for color in np.unique(label_map):
        boundary |= detect_boundary(label_map, int(color))
    return dilate(boundary, width)


def region_ssim(image, reference, region):
    """
    Mean SSIM between two images over a region.

    Parameters:
    -----------
    image : ndarray
        Synthesized image (H, W, 3)
    reference : ndarray
        Reference image of the same shape
    region : ndarray
        Boolean mask of pixels to average over

    Returns:
    --------
    float
        Mean SSIM inside the region (1.0 = identical)
    """
    if not region.any():
        return 1.0
    win_size = min(7, min(image.shape[:2]) // 2 * 2 - 1)
    _, ssim_map = ssim(image, reference, data_range=255, channel_axis=2,
                       win_size=win_size, full=True)
    return float(ssim_map.mean(axis=2)[region].mean())


def compute_histogram_distance(original, synthesized, region=None):
    """
    Chi-square histogram distance averaged over the colour channels.
    """
    mask = None if region is None else region.astype(np.uint8)
    distances = []

    for c in range(3):
        hist_orig = cv2.calcHist([original], [c], None, [64], [0, 256])
        hist_synth = cv2.calcHist([synthesized], [c], mask, [64], [0, 256])

        hist_orig = hist_orig.flatten() / max(hist_orig.sum(), 1e-10)
        hist_synth = hist_synth.flatten() / max(hist_synth.sum(), 1e-10)

        distance = 0.5 * np.sum((hist_orig - hist_synth)**2 / (hist_orig + hist_synth + 1e-10))
        distances.append(distance)

    return float(np.mean(distances))


def evaluate_tile(tile, tileables, band_width=4, verbose=True):
    """
    Evaluate seam quality of one synthesized tile.

    Parameters:
    -----------
    tile : WangTile
        Synthesized tile
    tileables : list of Tile
        Tileable sources indexed by colour
    band_width : int
        Half-width of the seam band to inspect
    verbose : bool
        Whether to print results

    Returns:
    --------
    dict
        Dictionary of evaluation metrics
    """
    label_map = build_label_map(tile)
    band = seam_band(label_map, band_width)
    outside = ~band

    reference = np.zeros_like(tile.image)
    for color in tile.sorted_colors():
        region = label_map == color
        reference[region] = tileables[color].image[region]

    band_steps = adjacent_deltas(tile.image, band)

    results = {
        'band_max_delta': float(band_steps.max()) if band_steps.size else 0.0,
        'band_p95_delta': float(np.percentile(band_steps, 95)) if band_steps.size else 0.0,
        'hard_seam_max_delta': max_adjacent_delta(reference, band),
        'outside_band_ssim': region_ssim(tile.image, reference, outside),
        'band_histogram_distance': np.mean([
            compute_histogram_distance(tileables[c].image, tile.image, band & (label_map == c))
            for c in tile.sorted_colors()
        ]),
    }

    if verbose:
        print("\n" + "="*50)
        print(f"SEAM EVALUATION {tile!r}")
        print("="*50)
        print(f"Band Max Delta:       {results['band_max_delta']:.1f} (lower is better)")
        print(f"Band 95th Pct. Delta: {results['band_p95_delta']:.1f} (lower is better)")
        print(f"Hard Seam Max Delta:  {results['hard_seam_max_delta']:.1f} (label map only)")
        print(f"Outside Band SSIM:    {results['outside_band_ssim']:.4f} (higher is better)")
        print(f"Band Histogram Dist.: {results['band_histogram_distance']:.4f} (lower is better)")
        print("="*50)

    return results
