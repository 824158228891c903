"""
Vector and ray primitives.

Positions and displacements are kept apart at the type level: subtracting two
positions yields a plain Vec3, adding a Vec3 to a position yields a position.
A Direction always has unit length; its constructor normalizes.
"""
import math
from dataclasses import dataclass

import numpy as np

from minirt import constants


@dataclass(frozen=True)
class Vec3:
    """A free 3D vector (displacement, gradient, color-less math)."""
    x: float
    y: float
    z: float

    def __add__(self, other):
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other):
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self):
        return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, scalar):
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar):
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def dot(self, other) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other) -> "Vec3":
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def normalize(self) -> "Direction":
        """Unit vector with the same direction. Raises ValueError for zero vectors."""
        return Direction(self.x, self.y, self.z)

    def is_degenerate(self) -> bool:
        """True when the vector cannot be normalized."""
        length = self.length()
        return not math.isfinite(length) or length < constants.DEGENERATE_LENGTH

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


class Position(Vec3):
    """A point in world space."""

    def __add__(self, other):
        return Position(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other):
        if isinstance(other, Position):
            return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)
        return Position(self.x - other.x, self.y - other.y, self.z - other.z)


class Direction(Vec3):
    """A unit-length vector."""

    def __init__(self, x, y, z):
        length = math.sqrt(x * x + y * y + z * z)
        if not math.isfinite(length) or length < constants.DEGENERATE_LENGTH:
            raise ValueError(f"Cannot build a direction from ({x}, {y}, {z})")
        Vec3.__init__(self, x / length, y / length, z / length)

    def __neg__(self):
        return Direction(-self.x, -self.y, -self.z)


@dataclass(frozen=True)
class Ray:
    """Half-line from origin along a unit direction; t is the travelled distance."""
    origin: Position
    direction: Direction

    def at(self, distance: float) -> Position:
        return self.origin + self.direction * distance
