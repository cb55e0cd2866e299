"""Shared pytest fixtures for Wang tile tests."""

import numpy as np
import pytest
from scipy.ndimage import gaussian_filter

from wang_tiles import ExemplarSet, Tile, WangTile, WangTileSynthesizer


def make_tileable(mean, size: int, rng: np.random.Generator, amplitude: float = 6.0) -> np.ndarray:
    """A seamless, low-contrast noise texture around ``mean``."""
    noise = gaussian_filter(rng.normal(0.0, 1.0, (size, size, 3)), sigma=(2.0, 2.0, 0), mode='wrap')
    noise /= noise.std() + 1e-8
    texture = np.asarray(mean, dtype=np.float64)[None, None, :] + amplitude * noise
    return np.clip(np.rint(texture), 0, 255).astype(np.uint8)


# =============================================================================
# Sources
# =============================================================================

@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def tileables(rng) -> list:
    """Two 64px tileables with well separated mean colours."""
    return [
        Tile(0, make_tileable([60, 60, 60], 64, rng)),
        Tile(1, make_tileable([180, 180, 180], 64, rng)),
    ]


@pytest.fixture
def small_tileables(rng) -> list:
    """Two 32px tileables."""
    return [
        Tile(0, make_tileable([90, 40, 40], 32, rng)),
        Tile(1, make_tileable([40, 40, 160], 32, rng)),
    ]


@pytest.fixture
def exemplar_set(tileables) -> ExemplarSet:
    return ExemplarSet.from_tileables(tileables, exemplar_size=16)


# =============================================================================
# Tiles and synthesizer
# =============================================================================

@pytest.fixture
def two_color_tile() -> WangTile:
    """left=bottom=0, right=top=1."""
    return WangTile(0, 0, 1, 1, size=64, index=0)


@pytest.fixture
def synthesizer(tileables, exemplar_set) -> WangTileSynthesizer:
    return WangTileSynthesizer(tileables, exemplar_set, workers=1, show_progress=False)
