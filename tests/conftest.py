"""Shared fixtures and helpers for warpgrid tests."""

import numpy as np
import pytest


# =============================================================================
# Sample geometry
# =============================================================================

# Affine transforms (2x3, source = A @ [x, y, 1]) used to generate exact GCP data
AFFINE_TRANSFORMS = [
    # Pure translation
    np.array([[1, 0, 5], [0, 1, -3]], np.float64),
    # Rotation by 30 degrees plus shift
    np.array([
        [np.cos(np.pi / 6), -np.sin(np.pi / 6), 12],
        [np.sin(np.pi / 6), np.cos(np.pi / 6), 4]], np.float64),
    # Anisotropic scale with shear
    np.array([[1.5, 0.2, -7], [-0.1, 0.75, 9]], np.float64),
]

# Target (destination) control points, not collinear
CONTROL_POINTS = np.array([
    [2, 3], [40, 5], [38, 30], [4, 28], [20, 15], [10, 22],
], np.float64)

# Convex quads listed clockwise in image coordinates (y down)
QUADS = [
    np.array([[0, 0], [63, 0], [63, 47], [0, 47]], np.float64),
    np.array([[10, 5], [55, 12], [60, 40], [3, 44]], np.float64),
    np.array([[20, 2], [44, 2], [62, 45], [1, 45]], np.float64),
]

IMAGE_SHAPES = [(4, 4), (5, 7), (48, 64), (31, 17, 3)]


# =============================================================================
# Helper functions
# =============================================================================

def apply_affine(affine, points):
    """Apply a 2x3 affine matrix to (N, 2) points."""
    points = np.asarray(points, np.float64)
    return points @ affine[:, :2].T + affine[:, 2]


def identity_grid(height, width):
    """(map_x, map_y) of the identity mapping."""
    map_y, map_x = np.mgrid[:height, :width]
    return map_x.astype(np.float64), map_y.astype(np.float64)


def random_image(shape, dtype=np.uint8, seed=0):
    rng = np.random.default_rng(seed)
    if np.issubdtype(dtype, np.integer):
        return rng.integers(0, 256, size=shape).astype(dtype)
    return rng.uniform(0, 255, size=shape).astype(dtype)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def ramp_4x4():
    """4x4 single-channel image with values 0..15 in row-major order."""
    return np.arange(16, dtype=np.uint8).reshape(4, 4)


@pytest.fixture
def color_image():
    """A 3-channel 8-bit image with distinct values per channel."""
    return random_image((12, 16, 3), np.uint8, seed=1)


@pytest.fixture
def float_image():
    return random_image((20, 30), np.float64, seed=2)
