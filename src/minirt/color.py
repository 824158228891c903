"""
Color types: LDRColor for reflectances bounded to [0, 1], HDRColor for radiance.
"""
import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Color:
    r: float
    g: float
    b: float

    def __add__(self, other):
        return HDRColor(self.r + other.r, self.g + other.g, self.b + other.b)

    def __mul__(self, other):
        """Component-wise product with another color, or scaling by a number."""
        if isinstance(other, Color):
            return HDRColor(self.r * other.r, self.g * other.g, self.b * other.b)
        return HDRColor(self.r * other, self.g * other, self.b * other)

    __rmul__ = __mul__

    def __truediv__(self, scalar):
        return HDRColor(self.r / scalar, self.g / scalar, self.b / scalar)

    def __iter__(self):
        yield self.r
        yield self.g
        yield self.b

    def to_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=float)

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in self)


@dataclass(frozen=True)
class HDRColor(Color):
    """Unbounded non-negative radiance."""

    @classmethod
    def black(cls):
        return cls(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class LDRColor(Color):
    """Reflectance with every channel in [0, 1]."""

    def __post_init__(self):
        for name, value in zip("rgb", self):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"LDR channel {name} must be in [0, 1], got {value}")

    @classmethod
    def white(cls):
        return cls(1.0, 1.0, 1.0)
