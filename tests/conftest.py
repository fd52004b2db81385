"""Root pytest configuration for all tests.

Provides reference affine matrices and coordinate fixtures shared by the
transform and spatial test suites. Matrices are in row-vector form: a point
``p`` maps to ``p @ m[:2, :2] + m[:2, 2]``.
"""

from __future__ import annotations

import numpy as np
import pytest

# ---------------------------------------------------------------------------
# Reference matrices
# ---------------------------------------------------------------------------
IDENTITY_M = np.eye(3)

TRANSLATE_M = np.array(
    [
        [1.0, 0.0, 200.0],
        [0.0, 1.0, 300.0],
        [0.0, 0.0, 1.0],
    ]
)

SCALE_M = np.diag([2.0, 3.0, 1.0])

# x' = x + 2y
SHEAR_M = np.array(
    [
        [1.0, 0.0, 0.0],
        [2.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ]
)

# General affine; bottom row is deliberately not homogeneous
AFFINE_M = np.array(
    [
        [2.0, 0.5, 1000.0],
        [-0.3, 3.0, 20.0],
        [100.0, 29.0, 1.0],
    ]
)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def sample_coords(rng: np.random.Generator) -> np.ndarray:
    """50 random coordinates in [-500, 500)."""
    return rng.uniform(-500.0, 500.0, size=(50, 2))


@pytest.fixture
def affine_m() -> np.ndarray:
    return AFFINE_M.copy()
