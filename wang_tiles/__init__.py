"""Wang Tile Texture Synthesis.

This package fills edge-coloured Wang tiles with texture synthesized from
per-colour exemplars, so that tiles sharing edge colours join without
visible seams.

Core classes and functions are exposed for use.
"""

__version__ = '0.1.0'

# Tile entities
from .tile import Tile, WangTile

# Exemplar pools
from .exemplars import ExemplarSet

# Per-tile pipeline
from .label_map import build_label_map
from .boundary_mask import build_boundary_mask
from .blending import BlendStats, blend_patches, seed_random
from .graph_cut import seam_cut

# Orchestration
from .scheduler import ProgressToken, run_parallel
from .synthesis import ConfigurationError, TileSetResult, WangTileSynthesizer

# Utility functions
from .utils import save_image, tile_atlas, visualize_tile_set

# Public API exposed by `from wang_tiles import *`
__all__ = [
    'Tile',
    'WangTile',
    'ExemplarSet',
    'build_label_map',
    'build_boundary_mask',
    'BlendStats',
    'blend_patches',
    'seed_random',
    'seam_cut',
    'ProgressToken',
    'run_parallel',
    'ConfigurationError',
    'TileSetResult',
    'WangTileSynthesizer',
    'save_image',
    'tile_atlas',
    'visualize_tile_set',
]
