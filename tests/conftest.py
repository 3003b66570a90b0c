"""Shared pytest fixtures for evmagnify tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random generator for reproducible frames."""
    return np.random.default_rng(1234)


@pytest.fixture
def gray_frame(rng):
    """Random 64x64 uint8 frame."""
    return rng.integers(0, 256, size=(64, 64), dtype=np.uint8)


@pytest.fixture
def bgr_frame(rng):
    """Random 48x40 BGR uint8 frame."""
    return rng.integers(0, 256, size=(48, 40, 3), dtype=np.uint8)
