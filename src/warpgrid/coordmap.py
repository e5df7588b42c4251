"""Coordinate maps and the sampling options shared by all generators."""

import enum
from dataclasses import dataclass

import numpy as np

from .errors import InvalidParameterError

# Legacy marker for "no source location" in raw map arrays.
SENTINEL = -1.0


class _ParsableEnum(enum.Enum):
    @classmethod
    def parse(cls, value):
        """Accept an enum member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        names = ', '.join(m.name.lower() for m in cls)
        raise InvalidParameterError(f"Unknown {cls.__name__} {value!r}, expected one of: {names}")


class Interpolation(_ParsableEnum):
    NEAREST = 0
    BILINEAR = 1


class BorderMode(_ParsableEnum):
    CONSTANT = 0
    REPLICATE = 1
    # Named by surrounding tooling; remap() rejects it.
    ISOLATED = 2


@dataclass(frozen=True, eq=False)
class CoordinateMap:
    """Source-space sampling location for every destination pixel.

    Attributes:
        map_x: Horizontal source coordinate per destination pixel, float32 (H, W).
        map_y: Vertical source coordinate per destination pixel, float32 (H, W).
        valid: Whether the cell has a source location at all, bool (H, W).
            Invalid cells are resampled like an out-of-range coordinate.

    The arrays are made read-only on construction.
    """

    map_x: np.ndarray
    map_y: np.ndarray
    valid: np.ndarray = None

    def __post_init__(self):
        map_x = np.array(self.map_x, dtype=np.float32)
        map_y = np.array(self.map_y, dtype=np.float32)
        if map_x.ndim != 2:
            raise InvalidParameterError(f"Coordinate maps must be 2-D, got shape {map_x.shape}")
        if map_x.shape != map_y.shape:
            raise InvalidParameterError(
                f"map_x and map_y shapes differ: {map_x.shape} vs {map_y.shape}")

        if self.valid is None:
            valid = np.isfinite(map_x) & np.isfinite(map_y)
        else:
            valid = np.array(self.valid, dtype=bool)
            if valid.shape != map_x.shape:
                raise InvalidParameterError(
                    f"valid mask shape {valid.shape} does not match map shape {map_x.shape}")

        for arr in (map_x, map_y, valid):
            arr.flags.writeable = False
        object.__setattr__(self, 'map_x', map_x)
        object.__setattr__(self, 'map_y', map_y)
        object.__setattr__(self, 'valid', valid)

    @property
    def shape(self):
        return self.map_x.shape

    @property
    def height(self):
        return self.map_x.shape[0]

    @property
    def width(self):
        return self.map_x.shape[1]

    @classmethod
    def from_arrays(cls, map_x, map_y):
        """Build a map from raw grids, reading (-1, -1) and non-finite cells as invalid."""
        map_x = np.asarray(map_x, dtype=np.float32)
        map_y = np.asarray(map_y, dtype=np.float32)
        if map_x.shape != map_y.shape:
            raise InvalidParameterError(
                f"map_x and map_y shapes differ: {map_x.shape} vs {map_y.shape}")
        is_sentinel = (map_x == SENTINEL) & (map_y == SENTINEL)
        valid = np.isfinite(map_x) & np.isfinite(map_y) & ~is_sentinel
        return cls(map_x, map_y, valid)

    @classmethod
    def identity(cls, height, width):
        map_y, map_x = np.mgrid[:height, :width].astype(np.float32)
        return cls(map_x, map_y)

    def to_arrays(self):
        """Return writable (map_x, map_y) copies with invalid cells set to (-1, -1)."""
        map_x = np.where(self.valid, self.map_x, np.float32(SENTINEL)).astype(np.float32)
        map_y = np.where(self.valid, self.map_y, np.float32(SENTINEL)).astype(np.float32)
        return map_x, map_y


def image_hw(imshape):
    """Return (height, width) from an image shape (H, W) or (H, W, C)."""
    if len(imshape) not in (2, 3):
        raise InvalidParameterError(f"Expected an image shape (H, W) or (H, W, C), got {imshape}")
    height, width = int(imshape[0]), int(imshape[1])
    if height <= 0 or width <= 0:
        raise InvalidParameterError(f"Image shape must be non-empty, got {imshape}")
    return height, width
