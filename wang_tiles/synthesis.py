"""
Wang tile synthesis: fills every tile of a tile set with seamless texture.

Each tile is processed independently. Its distinct edge colours are handled
in ascending order: the first colour lays down the base layer from its
tileable image, every further colour copies its tileable into its own
triangles and then resynthesizes a band around the new colour boundary
from that colour's exemplars.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .blending import DEFAULT_FEATHER_BAND, BlendStats, blend_patches, seed_random
from .boundary_mask import DEFAULT_THICKNESS, build_boundary_mask
from .exemplars import ExemplarSet
from .graph_cut import ALWAYS_REPLACE, NoisePenalty
from .image_ops import masked_points, perimeter_lock
from .label_map import build_label_map, fill_region
from .scheduler import ProgressToken, block_size, run_parallel
from .tile import Tile, WangTile

SEED_POLICIES = ('shared', 'per_tile')


class ConfigurationError(ValueError):
    """The tiles, tileables and exemplar set do not fit together."""


@dataclass
class TileSetResult:
    completed: int = 0
    failures: List[Tuple[WangTile, BaseException]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled


class WangTileSynthesizer:
    """Synthesizes the pixels of edge-coloured Wang tiles."""

    def __init__(self, tileables: Sequence[Tile], exemplar_set: ExemplarSet,
                 mask_thickness: int = DEFAULT_THICKNESS,
                 feather_band: int = DEFAULT_FEATHER_BAND,
                 noise_penalty: NoisePenalty = None,
                 seed: int = 0, seed_policy: str = 'shared',
                 workers: Optional[int] = None, min_block_size: int = 8,
                 show_progress: bool = True):
        """Initializes the synthesizer.

        Args:
            tileables: Tileable source images; ``tileables[c]`` belongs to colour c.
            exemplar_set: Patch and pixel pools for every colour.
            mask_thickness: Dilation radius of the boundary masks.
            feather_band: Width of the feathered seam transition.
            noise_penalty: Min-cut cost of keeping a seeded pixel. None
                           scales it to each patch's median seam edge,
                           'always' never keeps seeded pixels.
            seed: Seed of the per-tile random generators.
            seed_policy: 'shared' gives every tile the same seed (reproducible,
                         but tiles drawing the same numbers share noise
                         patterns); 'per_tile' mixes the tile index into the
                         seed (reproducible and independent per tile).
            workers: Worker threads for tile sets. None uses the CPU count.
            min_block_size: Smallest number of tiles handed to one worker.
            show_progress: Print a summary and show a tqdm bar for tile sets.
        """
        if mask_thickness < 0:
            raise ConfigurationError("Mask thickness must be non-negative.")
        if feather_band < 0:
            raise ConfigurationError("Feather band must be non-negative.")
        if noise_penalty is not None and noise_penalty != ALWAYS_REPLACE:
            if isinstance(noise_penalty, str) or noise_penalty < 0:
                raise ConfigurationError(
                    f"Noise penalty must be a non-negative number or '{ALWAYS_REPLACE}', got {noise_penalty!r}."
                )
        if seed < 0:
            raise ConfigurationError(f"Seed must be non-negative, got {seed}.")
        if seed_policy not in SEED_POLICIES:
            raise ConfigurationError(f"Unknown seed policy '{seed_policy}'. Expected one of {SEED_POLICIES}.")
        if workers is not None and workers <= 0:
            raise ConfigurationError("Worker count must be positive.")
        for color, tile in enumerate(tileables):
            if tile.color != color:
                raise ConfigurationError(
                    f"Tileable at index {color} belongs to colour {tile.color}; tileables must be ordered by colour."
                )

        self.tileables = list(tileables)
        self.exemplar_set = exemplar_set
        self.mask_thickness = mask_thickness
        self.feather_band = feather_band
        self.noise_penalty = noise_penalty
        self.seed = seed
        self.seed_policy = seed_policy
        self.workers = workers
        self.min_block_size = min_block_size
        self.show_progress = show_progress

    def validate(self, tiles: Sequence[WangTile]):
        """Checks every tile against the tileables and exemplar set.

        Raises:
            ConfigurationError: On the first tile that cannot be synthesized.
        """
        exemplar_size = self.exemplar_set.exemplar_size
        for tile in tiles:
            if exemplar_size > tile.size:
                raise ConfigurationError(
                    f"Exemplar size {exemplar_size} is larger than the {tile.size}px tile {tile!r}."
                )
            for color in tile.sorted_colors():
                if color < 0 or color >= len(self.tileables):
                    raise ConfigurationError(f"{tile!r} uses colour {color}, which has no tileable image.")
                if not self.exemplar_set.has_color(color):
                    raise ConfigurationError(f"{tile!r} uses colour {color}, which has no exemplars.")
                shape = self.tileables[color].image.shape
                if shape != (tile.size, tile.size, 3):
                    raise ConfigurationError(
                        f"Tileable for colour {color} has shape {shape}, expected {(tile.size, tile.size, 3)}."
                    )
            if self.seed_policy == 'per_tile' and (tile.index is None or tile.index < 0):
                raise ConfigurationError(
                    f"{tile!r} needs a non-negative index for the 'per_tile' seed policy."
                )

    def make_rng(self, tile: WangTile) -> np.random.Generator:
        if self.seed_policy == 'per_tile':
            return np.random.default_rng([self.seed, tile.index])
        return np.random.default_rng(self.seed)

    def synthesize_tile(self, tile: WangTile, rng: Optional[np.random.Generator] = None,
                        token: Optional[ProgressToken] = None) -> BlendStats:
        """Fills one tile in place.

        Returns:
            The accumulated blend statistics of all colour passes.
        """
        if rng is None:
            rng = self.make_rng(tile)

        stats = BlendStats()
        colors = tile.sorted_colors()
        frozen = perimeter_lock(tile.size)

        for i, color in enumerate(colors):
            if i == 0:
                tile.fill(self.tileables[color].image)
                continue

            label_map = build_label_map(tile)
            fill_region(tile.image, label_map, color, self.tileables[color].image)

            mask = build_boundary_mask(label_map, color, self.mask_thickness)
            mask &= ~frozen

            points = masked_points(mask)
            points = points[rng.permutation(len(points))]

            seed_random(points, tile.image, self.exemplar_set, color, rng)

            stats = stats.merge(self._blend(points, tile, mask, frozen, color, clamp=False, token=token))
            if stats.cancelled:
                break
            # Pixels too close to the border for a centred patch
            remaining = points[mask[points[:, 0], points[:, 1]]]
            stats = stats.merge(self._blend(remaining, tile, mask, frozen, color, clamp=True, token=token))
            if stats.cancelled:
                break

        return stats

    def _blend(self, points, tile, mask, frozen, color, clamp, token) -> BlendStats:
        return blend_patches(
            points, tile.image, mask, self.exemplar_set, color,
            frozen=frozen,
            feather_band=self.feather_band,
            noise_penalty=self.noise_penalty,
            clamp=clamp, token=token,
        )

    def synthesize_tile_set(self, tiles: Sequence[WangTile],
                            token: Optional[ProgressToken] = None) -> TileSetResult:
        """Fills every tile of a tile set, in parallel over tiles.

        The configuration is validated before any tile is touched. A failure
        in one tile is reported and does not affect the others.
        """
        tiles = list(tiles)
        self.validate(tiles)

        if token is not None:
            token.announce_stage("Stage 1 of 1")
            token.steps = len(tiles)

        size = block_size(len(tiles), self.min_block_size, self.workers)
        if self.show_progress:
            print(f"Synthesizing {len(tiles)} Wang tiles "
                  f"(Exemplar: {self.exemplar_set.exemplar_size}px, Block: {size} tiles)...")
        start_time = time.time()

        finished = []

        def work(i: int) -> bool:
            stats = self.synthesize_tile(tiles[i], token=token)
            if stats.cancelled:
                return False
            finished.append(i)
            return True

        failures = run_parallel(len(tiles), size, work, token=token, workers=self.workers,
                                show_progress=self.show_progress, desc="Wang tiles")

        result = TileSetResult(
            completed=len(finished),
            failures=[(tiles[i], e) for i, e in failures],
            cancelled=token is not None and token.cancelled,
        )

        if self.show_progress:
            print(f"Synthesis completed in {time.time() - start_time:.2f} seconds "
                  f"({result.completed} tiles, {len(result.failures)} failed).")
        return result
