"""Polar and log-polar coordinate maps.

Columns of the output are angular sectors and rows are rings of increasing
radius around the image centre, so the output has the same size as the
source. Rays leaving the source image produce invalid cells.
"""

import logging

import numba
import numpy as np

from .coordmap import SENTINEL, CoordinateMap, image_hw

logger = logging.getLogger(__name__)


def map_polar(imshape, use_log=False):
    """Coordinate map unrolling the image around its centre.

    Args:
        imshape: Source image shape as (height, width) or (height, width, channels).
        use_log: Space the rings logarithmically instead of linearly.

    Returns:
        CoordinateMap of the source size. Row 0 maps every sector to the centre.
    """
    height, width = image_hw(imshape)
    center_x = width / 2.0
    center_y = height / 2.0
    rho_max = np.hypot(center_x, center_y)
    if use_log:
        rho_max = np.log(rho_max + 1.0)
    logger.debug(f"Polar map {height}x{width}, use_log={use_log}, rho_max={rho_max:.4f}")

    map_x, map_y, valid = _fill_polar_map(height, width, center_x, center_y, rho_max, use_log)
    return CoordinateMap(map_x, map_y, valid)


@numba.njit(error_model='numpy', cache=True)
def _fill_polar_map(num_rings, num_sectors, center_x, center_y, rho_max, use_log):
    _sentinel = np.float32(SENTINEL)
    map_x = np.empty((num_rings, num_sectors), dtype=np.float32)
    map_y = np.empty((num_rings, num_sectors), dtype=np.float32)
    valid = np.empty((num_rings, num_sectors), dtype=np.bool_)

    cos_t = np.empty(num_sectors, dtype=np.float64)
    sin_t = np.empty(num_sectors, dtype=np.float64)
    for i in range(num_sectors):
        theta = 2.0 * np.pi * i / num_sectors
        cos_t[i] = np.cos(theta)
        sin_t[i] = np.sin(theta)
        map_x[0, i] = center_x
        map_y[0, i] = center_y
        valid[0, i] = True

    for j in range(1, num_rings):
        if use_log:
            rho = np.exp(j * rho_max / num_rings) - 1.0
        else:
            rho = j * rho_max / num_rings
        for i in range(num_sectors):
            # Bounds are checked on the stored float32 values
            x = np.float32(center_x + rho * cos_t[i])
            y = np.float32(center_y + rho * sin_t[i])
            if 0.0 <= x < num_sectors and 0.0 <= y < num_rings:
                map_x[j, i] = x
                map_y[j, i] = y
                valid[j, i] = True
            else:
                map_x[j, i] = _sentinel
                map_y[j, i] = _sentinel
                valid[j, i] = False
    return map_x, map_y, valid
