"""
Main script for Wang tile texture synthesis.
Usage: python main.py --output results/wang_tiles.png --tiles 0,0,1,1 1,1,0,0 0,1,0,1
"""

import argparse
import time
import numpy as np
from scipy.ndimage import gaussian_filter

from wang_tiles import (
    ConfigurationError, ExemplarSet, ProgressToken, Tile, WangTile, WangTileSynthesizer,
    save_image, tile_atlas, visualize_tile_set
)
from wang_tiles.evaluation import evaluate_tile
from wang_tiles.graph_cut import ALWAYS_REPLACE

# Base colours of the demo tileables, one per colour class
DEMO_BASE_COLORS = [
    [150, 80, 60],    # Reddish brown
    [70, 120, 60],    # Moss green
    [80, 90, 150],    # Slate blue
    [190, 170, 110],  # Sand
]

DEFAULT_TILES = ['0,0,1,1', '1,1,0,0', '0,1,0,1', '1,0,1,0', '0,0,0,0', '1,1,1,1']


def create_demo_tileable(color: int, size: int, rng: np.random.Generator) -> np.ndarray:
    """Create a seamless demo texture for one colour class.

    Blurred noise is filtered with wraparound so the texture tiles, and
    even colour classes get a periodic stripe pattern on top.
    """
    base = np.array(DEMO_BASE_COLORS[color % len(DEMO_BASE_COLORS)], dtype=np.float32)

    noise = rng.normal(0.0, 1.0, (size, size))
    noise = gaussian_filter(noise, sigma=2.0, mode='wrap')
    noise /= noise.std() + 1e-8

    texture = base[None, None, :] + 25.0 * noise[..., None]

    if color % 2 == 0:
        # Stripe period divides the size, so the pattern wraps cleanly
        period = max(4, size // 8)
        x = np.arange(size)
        stripes = np.where((x % period) < period // 4, 30.0, 0.0)
        texture += stripes[None, :, None]

    return np.clip(texture, 0, 255).astype(np.uint8)


def parse_tiles(values, size):
    tiles = []
    for index, value in enumerate(values):
        try:
            edges = [int(v) for v in value.split(',')]
        except ValueError:
            raise ValueError(f"Invalid tile '{value}'. Expected left,bottom,right,top.")
        tiles.append(WangTile.from_edges(edges, size, index=index))
    return tiles


def main():
    parser = argparse.ArgumentParser(description='Wang Tile Texture Synthesis')
    parser.add_argument('--output', type=str, default='results/wang_tiles.png', help='Output atlas path')
    parser.add_argument('--tiles', type=str, nargs='+', default=DEFAULT_TILES,
                        help='Tiles as left,bottom,right,top colour classes')
    parser.add_argument('--tile-size', type=int, default=64, help='Tile size in pixels')
    parser.add_argument('--exemplar-size', type=int, default=16, help='Exemplar patch size (even)')
    parser.add_argument('--stride', type=int, default=1, help='Exemplar patch extraction stride')
    parser.add_argument('--mask-thickness', type=int, default=3, help='Boundary mask dilation')
    parser.add_argument('--feather-band', type=int, default=2, help='Seam feathering band')
    parser.add_argument('--always-replace-noise', action='store_true',
                        help='Never let the seam cut keep seeded noise pixels')
    parser.add_argument('--seed', type=int, default=0, help='Random seed')
    parser.add_argument('--seed-policy', type=str, default='shared', choices=['shared', 'per_tile'],
                        help='Same seed for every tile, or one derived from the tile index')
    parser.add_argument('--workers', type=int, default=None, help='Worker threads')
    parser.add_argument('--edge-overlay', action='store_true', help='Draw edge colours on the tiles')
    parser.add_argument('--evaluate', action='store_true', help='Print seam metrics per tile')
    parser.add_argument('--visualize', type=str, default=None, help='Save a side-by-side figure here')

    args = parser.parse_args()

    try:
        tiles = parse_tiles(args.tiles, args.tile_size)
    except ValueError as e:
        print(f"Error parsing tiles: {e}")
        return 1

    num_colors = max(max(tile.edges) for tile in tiles) + 1
    print(f"Creating {num_colors} demo tileables ({args.tile_size}x{args.tile_size})...")
    rng = np.random.default_rng(args.seed)
    tileables = [Tile(c, create_demo_tileable(c, args.tile_size, rng)) for c in range(num_colors)]

    try:
        exemplar_set = ExemplarSet.from_tileables(tileables, args.exemplar_size, stride=args.stride)
        synthesizer = WangTileSynthesizer(
            tileables, exemplar_set,
            mask_thickness=args.mask_thickness,
            feather_band=args.feather_band,
            noise_penalty=ALWAYS_REPLACE if args.always_replace_noise else None,
            seed=args.seed,
            seed_policy=args.seed_policy,
            workers=args.workers,
        )
    except ValueError as e:
        print(f"Configuration error: {e}")
        return 1

    print(f"Algorithm parameters:")
    print(f"  Exemplar size: {exemplar_set.exemplar_size}")
    print(f"  Mask thickness: {synthesizer.mask_thickness}")
    print(f"  Feather band: {synthesizer.feather_band}")
    print(f"  Seed policy: {synthesizer.seed_policy} (seed {synthesizer.seed})")

    token = ProgressToken()
    start_time = time.time()
    try:
        result = synthesizer.synthesize_tile_set(tiles, token=token)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        token.cancel()
        print("Synthesis cancelled.")
        return 1

    print(f"Total time: {time.time() - start_time:.2f} seconds")
    for tile, error in result.failures:
        print(f"  Failed: {tile!r}: {error}")

    if args.evaluate:
        for tile in tiles:
            if not tile.is_const:
                evaluate_tile(tile, tileables)

    if args.edge_overlay:
        for tile in tiles:
            tile.add_edge_color(thickness=2, alpha=0.5)

    save_image(tile_atlas(tiles, spacing=2), args.output)
    print(f"Saved atlas to: {args.output}")

    if args.visualize:
        try:
            visualize_tile_set(tileables, tiles, "Wang Tile Synthesis", save_path=args.visualize)
            print(f"Saved visualization to: {args.visualize}")
        except (OSError, ValueError) as e:
            print(f"Visualization error: {e}. Atlas still saved.")

    return 0 if result.ok else 1


if __name__ == "__main__":
    import sys
    sys.exit(main())
