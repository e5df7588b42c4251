"""Polynomial warps fitted to ground control points (GCPs).

A polynomial of order ``n`` in the destination coordinates (x, y) predicts
the source coordinates. The monomials are enumerated as ``x**(i-j) * y**j``
for ``0 <= j <= i <= n``, e.g. for order 2::

    1, x, y, x**2, x*y, y**2

Each source axis gets its own coefficient vector, found by least squares on
the normal equations.
"""

import logging
from dataclasses import dataclass

import numba
import numpy as np

from .coordmap import CoordinateMap, image_hw
from .errors import InvalidParameterError, SingularSystemError, UnderdeterminedFitError
from .linalg import solve_linear_system

logger = logging.getLogger(__name__)


def num_coefficients(order):
    """Number of monomials in a bivariate polynomial of the given order."""
    return (order + 1) * (order + 2) // 2


def monomial_exponents(order):
    """Exponent pairs (px, py) in the order the coefficients are stored."""
    return np.array([(i - j, j) for i in range(order + 1) for j in range(i + 1)], np.int64)


def design_matrix(x, y, order):
    x = np.asarray(x, np.float64)[:, np.newaxis]
    y = np.asarray(y, np.float64)[:, np.newaxis]
    exponents = monomial_exponents(order)
    return x ** exponents[:, 0] * y ** exponents[:, 1]


@dataclass(frozen=True, eq=False)
class PolynomialFit:
    """A fitted destination-to-source polynomial.

    The polynomial is evaluated on normalized coordinates
    ``((x, y) - offset) / scale``; this is only a change of basis and does not
    change the fitted mapping.
    """

    order: int
    coeffs_x: np.ndarray
    coeffs_y: np.ndarray
    offset: np.ndarray
    scale: float

    def __call__(self, x, y):
        """Evaluate at destination coordinates, returning source (x, y) arrays."""
        x = np.asarray(x, np.float64)
        y = np.asarray(y, np.float64)
        xn = (x.ravel() - self.offset[0]) / self.scale
        yn = (y.ravel() - self.offset[1]) / self.scale
        design = design_matrix(xn, yn, self.order)
        return (design @ self.coeffs_x).reshape(x.shape), (design @ self.coeffs_y).reshape(y.shape)

    def residuals(self, src_points, dst_points):
        """Per-point Euclidean error between predicted and actual source points."""
        src_points = np.asarray(src_points, np.float64)
        dst_points = np.asarray(dst_points, np.float64)
        pred_x, pred_y = self(dst_points[:, 0], dst_points[:, 1])
        return np.hypot(pred_x - src_points[:, 0], pred_y - src_points[:, 1])


def _check_points(src_points, dst_points):
    src_points = np.asarray(src_points, np.float64)
    dst_points = np.asarray(dst_points, np.float64)
    for name, pts in (('src_points', src_points), ('dst_points', dst_points)):
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise InvalidParameterError(f"{name} must have shape (N, 2), got {pts.shape}")
        if not np.all(np.isfinite(pts)):
            raise InvalidParameterError(f"{name} contains non-finite coordinates")
    if len(src_points) != len(dst_points):
        raise InvalidParameterError(
            f"Got {len(src_points)} source points but {len(dst_points)} target points")
    return src_points, dst_points


def fit_polynomial(src_points, dst_points, order):
    """Least-squares fit of a polynomial mapping target points to source points.

    Args:
        src_points: Control points in the source image, shape (N, 2) as (x, y).
        dst_points: Matching points in the destination (map) image, shape (N, 2).
        order: Polynomial order, at least 1.

    Returns:
        PolynomialFit

    Raises:
        InvalidParameterError: If ``order < 1`` or the point arrays are malformed.
        UnderdeterminedFitError: If there are fewer points than coefficients.
        SingularSystemError: If the points are degenerate (e.g. collinear or repeated).
    """
    if isinstance(order, bool) or int(order) != order or order < 1:
        raise InvalidParameterError(f"Polynomial order must be an integer >= 1, got {order}")
    order = int(order)
    src_points, dst_points = _check_points(src_points, dst_points)

    n_coeffs = num_coefficients(order)
    if len(dst_points) < n_coeffs:
        raise UnderdeterminedFitError(
            f"Order {order} needs at least {n_coeffs} control points, got {len(dst_points)}")

    offset = dst_points.mean(axis=0)
    scale = np.sqrt(np.mean(np.sum(np.square(dst_points - offset), axis=1)))
    if scale == 0:
        raise SingularSystemError("All target control points coincide")

    design = design_matrix(
        (dst_points[:, 0] - offset[0]) / scale, (dst_points[:, 1] - offset[1]) / scale, order)
    rank = np.linalg.matrix_rank(design)
    if rank < n_coeffs:
        raise SingularSystemError(
            f"Control points are degenerate for order {order} (design rank {rank} < {n_coeffs})")

    normal_matrix = design.T @ design
    coeffs = solve_linear_system(normal_matrix, design.T @ src_points)
    fit = PolynomialFit(order, coeffs[:, 0], coeffs[:, 1], offset, float(scale))

    if len(dst_points) > n_coeffs:
        rms = np.sqrt(np.mean(np.square(fit.residuals(src_points, dst_points))))
        if rms > 1.0:
            logger.warning(f"Order {order} GCP fit has RMS residual {rms:.3f} px")
    logger.debug(f"GCP fit order={order}, coeffs_x={fit.coeffs_x}, coeffs_y={fit.coeffs_y}")
    return fit


def map_gcp(src_points, dst_points, order, dst_shape):
    """Coordinate map from a polynomial fitted to matched control points.

    Args:
        src_points: Control points in the source image, shape (N, 2) as (x, y).
        dst_points: Matching points in the destination image, shape (N, 2).
        order: Polynomial order, at least 1.
        dst_shape: Destination shape as (height, width) or (height, width, channels).

    Returns:
        CoordinateMap of the destination size.
    """
    height, width = image_hw(dst_shape)
    fit = fit_polynomial(src_points, dst_points, order)
    map_x, map_y = _fill_polynomial_map(
        monomial_exponents(fit.order), fit.coeffs_x, fit.coeffs_y,
        fit.offset[0], fit.offset[1], fit.scale, height, width)
    return CoordinateMap(map_x, map_y)


@numba.njit(error_model='numpy', cache=True)
def _fill_polynomial_map(exponents, coeffs_x, coeffs_y, offset_x, offset_y, scale, rows, cols):
    n_coeffs = exponents.shape[0]
    inv_scale = 1.0 / scale
    map_x = np.empty((rows, cols), dtype=np.float32)
    map_y = np.empty((rows, cols), dtype=np.float32)
    for row in range(rows):
        yn = (row - offset_y) * inv_scale
        for col in range(cols):
            xn = (col - offset_x) * inv_scale
            x = 0.0
            y = 0.0
            for k in range(n_coeffs):
                term = xn ** exponents[k, 0] * yn ** exponents[k, 1]
                x += coeffs_x[k] * term
                y += coeffs_y[k] * term
            map_x[row, col] = x
            map_y[row, col] = y
    return map_x, map_y
