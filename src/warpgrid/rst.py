"""Rotation, scale and translation (RST) coordinate maps.

The transform is expressed around the image centre with the y axis pointing
up, so a positive angle rotates counter-clockwise and a positive vertical
translation moves content up.
"""

import logging

import numba
import numpy as np

from .coordmap import CoordinateMap, image_hw
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)


def rst_matrix(angle, scale_x=1.0, scale_y=1.0, translation_x=0.0, translation_y=0.0):
    """Return the 3x3 matrix taking centred destination coordinates to source coordinates.

    This is ``R @ S @ T`` with rotation ``R`` by ``angle``, inverse scale
    ``S = diag(1/scale_x, 1/scale_y, 1)`` and translation ``T`` by
    ``(-translation_x, +translation_y)``.
    """
    params = np.array([angle, scale_x, scale_y, translation_x, translation_y], np.float64)
    if not np.all(np.isfinite(params)):
        raise InvalidParameterError(f"RST parameters must be finite, got {params.tolist()}")
    if scale_x <= 0 or scale_y <= 0:
        raise InvalidParameterError(
            f"Scale factors must be positive, got scale_x={scale_x}, scale_y={scale_y}")

    c = np.cos(angle)
    s = np.sin(angle)
    rotation = np.array([[c, -s, 0], [s, c, 0], [0, 0, 1]], np.float64)
    scale = np.array([[1 / scale_x, 0, 0], [0, 1 / scale_y, 0], [0, 0, 1]], np.float64)
    translation = np.array(
        [[1, 0, -translation_x], [0, 1, translation_y], [0, 0, 1]], np.float64)
    affine = rotation @ scale @ translation
    if not np.all(np.isfinite(affine)):
        raise InvalidParameterError(
            f"RST parameters overflow the transform: scale_x={scale_x}, scale_y={scale_y}")
    return affine


def rst_output_shape(imshape, affine):
    """Bounding extent (rows, cols) of the source corners pushed through ``inv(affine)``."""
    height, width = image_hw(imshape)
    half_w = width / 2
    half_h = height / 2
    corners = np.array([
        [-half_w, half_h, 1],  # top left
        [-half_w, -half_h, 1],  # bottom left
        [half_w, half_h, 1],  # top right
        [half_w, -half_h, 1],  # bottom right
    ], np.float64)
    top_left, bottom_left, top_right, bottom_right = corners @ np.linalg.inv(affine).T

    span_x = max(abs(top_left[0] - bottom_right[0]), abs(top_right[0] - bottom_left[0]))
    span_y = max(abs(top_left[1] - bottom_right[1]), abs(top_right[1] - bottom_left[1]))
    # Round off float noise so that e.g. a 90 degree turn does not grow by a pixel
    rows = int(np.ceil(np.round(span_y, 9)))
    cols = int(np.ceil(np.round(span_x, 9)))
    return max(rows, 1), max(cols, 1)


def map_rst(imshape, angle, scale_x=1.0, scale_y=1.0, translation_x=0.0, translation_y=0.0):
    """Coordinate map for a combined rotation, scale and translation.

    Args:
        imshape: Source image shape as (height, width) or (height, width, channels).
        angle: Counter-clockwise rotation in radians.
        scale_x: Horizontal magnification, must be positive.
        scale_y: Vertical magnification, must be positive.
        translation_x: Horizontal shift in pixels, positive to the right.
        translation_y: Vertical shift in pixels, positive upwards.

    Returns:
        A CoordinateMap whose size is the bounding box of the transformed source.
        Coordinates are not clamped; cells may point outside the source.

    Raises:
        InvalidParameterError: For non-positive scale factors or an empty shape.
    """
    height, width = image_hw(imshape)
    affine = rst_matrix(angle, scale_x, scale_y, translation_x, translation_y)
    rows, cols = rst_output_shape((height, width), affine)
    logger.debug(f"RST map {height}x{width} -> {rows}x{cols}")

    map_x, map_y = _fill_affine_map(affine, rows, cols, width // 2, height // 2)
    return CoordinateMap(map_x, map_y, np.ones((rows, cols), dtype=bool))


@numba.njit(error_model='numpy', cache=True)
def _fill_affine_map(affine, rows, cols, src_half_w, src_half_h):
    a00, a01, a02 = affine[0, 0], affine[0, 1], affine[0, 2]
    a10, a11, a12 = affine[1, 0], affine[1, 1], affine[1, 2]
    dst_half_w = cols // 2
    dst_half_h = rows // 2

    map_x = np.empty((rows, cols), dtype=np.float32)
    map_y = np.empty((rows, cols), dtype=np.float32)
    for row in range(rows):
        v = row - dst_half_h
        for col in range(cols):
            u = col - dst_half_w
            map_x[row, col] = a00 * u + a01 * v + a02 + src_half_w
            map_y[row, col] = a10 * u + a11 * v + a12 + src_half_h
    return map_x, map_y
