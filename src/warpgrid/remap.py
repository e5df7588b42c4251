"""Resampling of a source image at the locations given by a coordinate map."""

import logging

import numba
import numpy as np

from .coordmap import BorderMode, CoordinateMap, Interpolation
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)


def remap(src, coordinate_map, interpolation=Interpolation.NEAREST,
          border_mode=BorderMode.CONSTANT, border_value=0):
    """Sample ``src`` at every (x, y) of ``coordinate_map``.

    Nearest-neighbour sampling truncates the coordinate to the pixel grid.
    Bilinear sampling blends the 2x2 neighbourhood of the coordinate and
    needs a right and lower neighbour, so its valid region is
    ``[0, W-1) x [0, H-1)``.

    Coordinates outside the source, invalid map cells and non-finite values are
    handled by the border mode:

    - ``CONSTANT``: the pixel is set to ``border_value`` on all channels.
    - ``REPLICATE``: the coordinate is clamped to the valid region, so the
      nearest edge pixel (or edge 2x2 neighbourhood) is used. Invalid cells are
      treated as the coordinate (-1, -1).

    Args:
        src: Source image, shape (H, W) or (H, W, C).
        coordinate_map: CoordinateMap giving the output size and sampling locations.
        interpolation: Interpolation member or name ('nearest', 'bilinear').
        border_mode: BorderMode member or name ('constant', 'replicate').
        border_value: Fill value for the constant border mode.

    Returns:
        New array of shape ``coordinate_map.shape`` (plus the channel axis of
        ``src`` if any) with the dtype of ``src``. Bilinear results are
        truncated toward zero for integer dtypes.

    Raises:
        InvalidParameterError: For an empty or malformed source, an unknown
            mode, the ``ISOLATED`` border mode, or a
            ``border_value`` that is not finite or does not fit an integer
            source dtype.
    """
    interpolation = Interpolation.parse(interpolation)
    border_mode = BorderMode.parse(border_mode)
    if border_mode is BorderMode.ISOLATED:
        raise InvalidParameterError("Border mode ISOLATED has no resampling semantics")
    if not isinstance(coordinate_map, CoordinateMap):
        raise InvalidParameterError(
            f"Expected a CoordinateMap, got {type(coordinate_map).__name__}")

    src = np.asarray(src)
    if src.ndim not in (2, 3) or src.shape[0] == 0 or src.shape[1] == 0:
        raise InvalidParameterError(f"Expected a non-empty (H, W) or (H, W, C) image, got {src.shape}")
    if not np.isfinite(border_value):
        raise InvalidParameterError(f"Border value must be finite, got {border_value}")
    if np.issubdtype(src.dtype, np.integer):
        info = np.iinfo(src.dtype)
        if not info.min <= border_value <= info.max:
            raise InvalidParameterError(
                f"Border value {border_value} does not fit the {src.dtype} source range "
                f"[{info.min}, {info.max}]")

    dst = np.empty(coordinate_map.shape + src.shape[2:], dtype=src.dtype)
    src3 = src if src.ndim == 3 else src[:, :, np.newaxis]
    dst3 = dst if dst.ndim == 3 else dst[:, :, np.newaxis]

    logger.debug(
        f"Remapping {src.shape} -> {dst.shape} "
        f"({interpolation.name.lower()}, {border_mode.name.lower()})")
    _remap_kernel(
        src3, coordinate_map.map_x, coordinate_map.map_y, coordinate_map.valid,
        interpolation is Interpolation.BILINEAR, border_mode is BorderMode.REPLICATE,
        float(border_value), dst3)
    return dst


def warp(src, coordinate_map, config):
    """Remap ``src`` with the interpolation and border settings of a RemapConfig."""
    return remap(
        src, coordinate_map, interpolation=config.interpolation,
        border_mode=config.border_mode, border_value=config.border_value)


@numba.njit(error_model='numpy', cache=True, parallel=True)
def _remap_kernel(src, map_x, map_y, valid, bilinear, replicate, border_value, dst):
    src_rows, src_cols, n_channels = src.shape
    dst_rows, dst_cols = map_x.shape
    # Largest coordinate for which a 2x2 neighbourhood still fits
    max_x = np.float64(src_cols - 1 if not bilinear else src_cols - 2)
    max_y = np.float64(src_rows - 1 if not bilinear else src_rows - 2)
    _1 = 1.0

    for row in numba.prange(dst_rows):
        for col in range(dst_cols):
            x = np.float64(map_x[row, col])
            y = np.float64(map_y[row, col])
            if not valid[row, col] or not (np.isfinite(x) and np.isfinite(y)):
                x = -_1
                y = -_1

            if replicate:
                if x < 0.0:
                    x = 0.0
                elif x >= max_x + 1:
                    x = max_x
                if y < 0.0:
                    y = 0.0
                elif y >= max_y + 1:
                    y = max_y
                # Single row or column sources have no 2x2 neighbourhood
                x = max(x, 0.0)
                y = max(y, 0.0)
            elif x < 0.0 or y < 0.0 or x >= max_x + 1 or y >= max_y + 1:
                for ch in range(n_channels):
                    dst[row, col, ch] = border_value
                continue

            if not bilinear:
                xi = min(int(x), src_cols - 1)
                yi = min(int(y), src_rows - 1)
                for ch in range(n_channels):
                    dst[row, col, ch] = src[yi, xi, ch]
                continue

            x1 = min(int(np.floor(x)), src_cols - 1)
            y1 = min(int(np.floor(y)), src_rows - 1)
            x2 = min(x1 + 1, src_cols - 1)
            y2 = min(y1 + 1, src_rows - 1)
            rx = x - x1
            ry = y - y1
            for ch in range(n_channels):
                top = (_1 - rx) * src[y1, x1, ch] + rx * src[y1, x2, ch]
                bottom = (_1 - rx) * src[y2, x1, ch] + rx * src[y2, x2, ch]
                dst[row, col, ch] = (_1 - ry) * top + ry * bottom
