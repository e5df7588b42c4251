"""Exceptions raised by the map generators and the resampler."""

import numpy as np


class WarpError(ValueError):
    """Base class for all errors raised by warpgrid."""


class InvalidParameterError(WarpError):
    """A parameter is out of its domain (zero scale, bad order, wrong vertex count, ...)."""


class UnderdeterminedFitError(WarpError):
    """Too few control points for the requested polynomial order."""


class SingularSystemError(WarpError, np.linalg.LinAlgError):
    """A linear system could not be solved because its matrix is singular."""
