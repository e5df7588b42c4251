import logging

import numpy as np

from .errors import InvalidParameterError, SingularSystemError

logger = logging.getLogger(__name__)


def solve_linear_system(a, b):
    """Solve the square system ``a @ x = b``.

    Args:
        a: Square coefficient matrix, shape (n, n).
        b: Right-hand side, shape (n,) or (n, k).

    Returns:
        The solution ``x`` with the same shape as ``b``, as float64.

    Raises:
        SingularSystemError: If ``a`` is rank deficient or the solution is not finite.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise InvalidParameterError(f"Expected a square matrix, got shape {a.shape}")
    if b.shape[0] != a.shape[0]:
        raise InvalidParameterError(
            f"Right-hand side has {b.shape[0]} rows, matrix has {a.shape[0]}")

    if not np.all(np.isfinite(a)):
        raise SingularSystemError("Matrix contains non-finite entries")

    rank = np.linalg.matrix_rank(a)
    if rank < a.shape[0]:
        raise SingularSystemError(f"Matrix is singular (rank {rank} < {a.shape[0]})")

    try:
        x = np.linalg.solve(a, b)
    except np.linalg.LinAlgError as e:
        raise SingularSystemError(str(e)) from e

    if not np.all(np.isfinite(x)):
        raise SingularSystemError("Solution contains non-finite values")

    logger.debug(f"Solved {a.shape[0]}x{a.shape[0]} system")
    return x
