"""Quadrilateral to quadrilateral (projective) coordinate maps."""

import logging

import numba
import numpy as np

from .coordmap import CoordinateMap, image_hw
from .errors import InvalidParameterError
from .linalg import solve_linear_system

logger = logging.getLogger(__name__)


def _check_quad(name, quad):
    quad = np.asarray(quad, np.float64)
    if quad.shape != (4, 2):
        raise InvalidParameterError(f"{name} must have exactly 4 (x, y) vertices, got shape {quad.shape}")
    if not np.all(np.isfinite(quad)):
        raise InvalidParameterError(f"{name} contains non-finite coordinates")
    return quad


def _signed_area(quad):
    x, y = quad[:, 0], quad[:, 1]
    return 0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)


def quad_to_quad_matrix(src_quad, dst_quad):
    """Projective matrix ``P`` taking destination homogeneous points to source ones.

    Solves the classic 8-unknown system with two equations per vertex pair
    and ``P[2, 2]`` fixed to 1. The vertices of both quads must be listed in
    the same order (e.g. both clockwise starting from the same corner).

    Raises:
        InvalidParameterError: If either quad does not have exactly 4 vertices.
        SingularSystemError: If the vertices are degenerate (repeated or collinear).
    """
    src_quad = _check_quad('src_quad', src_quad)
    dst_quad = _check_quad('dst_quad', dst_quad)

    if np.sign(_signed_area(src_quad)) * np.sign(_signed_area(dst_quad)) < 0:
        logger.warning(
            "Source and target quads have opposite winding; the vertex order is probably "
            "inconsistent and the mapping will be mirrored")

    tx, ty = dst_quad[:, 0], dst_quad[:, 1]
    sx, sy = src_quad[:, 0], src_quad[:, 1]
    zeros = np.zeros(4)
    ones = np.ones(4)
    system = np.concatenate([
        np.stack([tx, ty, ones, zeros, zeros, zeros, -tx * sx, -ty * sx], axis=1),
        np.stack([zeros, zeros, zeros, tx, ty, ones, -tx * sy, -ty * sy], axis=1),
    ], axis=0)
    rhs = np.concatenate([sx, sy])

    params = solve_linear_system(system, rhs)
    projective = np.append(params, 1.0).reshape(3, 3)
    logger.debug(f"Quad-to-quad matrix:\n{projective}")
    return projective


def map_quad_to_quad(src_quad, dst_quad, dst_shape):
    """Coordinate map that warps ``src_quad`` of the source onto ``dst_quad`` of the output.

    Args:
        src_quad: 4 source vertices as (x, y), shape (4, 2).
        dst_quad: The 4 matching destination vertices in the same order.
        dst_shape: Destination shape as (height, width) or (height, width, channels).

    Returns:
        CoordinateMap of the destination size. Cells on the horizon line of
        the homography (zero homogeneous scale) are invalid.
    """
    height, width = image_hw(dst_shape)
    projective = quad_to_quad_matrix(src_quad, dst_quad)
    map_x, map_y, valid = _fill_projective_map(projective, height, width)
    return CoordinateMap(map_x, map_y, valid)


@numba.njit(error_model='numpy', cache=True)
def _fill_projective_map(projective, rows, cols):
    p00, p01, p02 = projective[0, 0], projective[0, 1], projective[0, 2]
    p10, p11, p12 = projective[1, 0], projective[1, 1], projective[1, 2]
    p20, p21, p22 = projective[2, 0], projective[2, 1], projective[2, 2]
    _nan = np.float32(np.nan)

    map_x = np.empty((rows, cols), dtype=np.float32)
    map_y = np.empty((rows, cols), dtype=np.float32)
    valid = np.empty((rows, cols), dtype=np.bool_)
    for row in range(rows):
        for col in range(cols):
            w = p20 * col + p21 * row + p22
            if w == 0.0:
                map_x[row, col] = _nan
                map_y[row, col] = _nan
                valid[row, col] = False
                continue
            map_x[row, col] = (p00 * col + p01 * row + p02) / w
            map_y[row, col] = (p10 * col + p11 * row + p12) / w
            valid[row, col] = True
    return map_x, map_y, valid
