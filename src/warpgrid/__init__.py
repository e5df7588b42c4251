"""Warpgrid: coordinate maps and image resampling for geometric transforms.

A map generator computes, for every destination pixel, the real-valued source
location to sample. The resampler then reads the source image at those
locations with nearest or bilinear interpolation and a border policy.

Example:
    >>> import numpy as np
    >>> from warpgrid import map_rst, remap
    >>> image = np.arange(16, dtype=np.uint8).reshape(4, 4)
    >>> cmap = map_rst(image.shape, angle=np.pi / 2)
    >>> rotated = remap(image, cmap, 'bilinear', 'replicate')
"""

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "0.0.0"

__all__ = [
    # Data model
    "CoordinateMap",
    "Interpolation",
    "BorderMode",
    # Map generators
    "map_rst",
    "rst_matrix",
    "rst_output_shape",
    "map_gcp",
    "fit_polynomial",
    "PolynomialFit",
    "map_quad_to_quad",
    "quad_to_quad_matrix",
    "map_polar",
    # Resampling
    "remap",
    "warp",
    # Configuration
    "RemapConfig",
    "load_config",
    # Errors
    "WarpError",
    "InvalidParameterError",
    "UnderdeterminedFitError",
    "SingularSystemError",
    "solve_linear_system",
]

from warpgrid.config import RemapConfig, load_config
from warpgrid.coordmap import BorderMode, CoordinateMap, Interpolation
from warpgrid.errors import (
    InvalidParameterError,
    SingularSystemError,
    UnderdeterminedFitError,
    WarpError,
)
from warpgrid.gcp import PolynomialFit, fit_polynomial, map_gcp
from warpgrid.linalg import solve_linear_system
from warpgrid.polar import map_polar
from warpgrid.quad import map_quad_to_quad, quad_to_quad_matrix
from warpgrid.remap import remap, warp
from warpgrid.rst import map_rst, rst_matrix, rst_output_shape

# Report the public names as living in the top-level package, e.g. in reprs and
# API docs. The defining module is kept in _module_original_.
for _x in __all__:
    _obj = globals().get(_x)
    if _obj is not None and hasattr(_obj, "__module__"):
        _obj._module_original_ = _obj.__module__
        _obj.__module__ = __name__
