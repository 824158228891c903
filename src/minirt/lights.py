"""
Light sources.

Light.test(position) answers what a light delivers to a shaded point:
(radiance, direction from the point toward the light, distance to the light)
or None when the light does not reach the point at all.
"""
import math
from dataclasses import dataclass

from minirt import constants
from minirt.color import HDRColor
from minirt.vector import Direction, Position


class Light:
    def test(self, position: Position):
        raise NotImplementedError


def _validate_color(color):
    if not color.is_finite() or min(color) < 0.0:
        raise ValueError(f"Light color must be finite and non-negative, got {color}")


def _inverse_square(color, distance):
    if distance < constants.POINT_LIGHT_MIN_DISTANCE:
        return color
    return color / (distance * distance)


@dataclass(frozen=True, eq=False)
class PointLight(Light):
    """
    Omnidirectional light at a position.

    Radiance falls off with the inverse square of the distance unless
    `attenuation` is disabled; points farther than `range` are not lit.
    """
    position: Position
    color: HDRColor
    range: float = math.inf
    attenuation: bool = True

    def __post_init__(self):
        _validate_color(self.color)
        if not self.range > 0.0:
            raise ValueError(f"Light range must be positive, got {self.range}")

    def test(self, position: Position):
        to_light = self.position - position
        distance = to_light.length()
        if distance < constants.DEGENERATE_LENGTH or distance > self.range:
            return None
        color = _inverse_square(self.color, distance) if self.attenuation else self.color
        return color, to_light.normalize(), distance


@dataclass(frozen=True, eq=False)
class DirectionalLight(Light):
    """Light arriving from infinitely far away along `direction`."""
    direction: Direction
    color: HDRColor

    def __post_init__(self):
        _validate_color(self.color)

    def test(self, position: Position):
        return self.color, -self.direction, math.inf


@dataclass(frozen=True, eq=False)
class SpotLight(Light):
    """
    Point light restricted to a cone around `direction`.

    `angle` is the cone half-angle in degrees. The radiance ramps linearly
    (in cosine) from zero at the cone edge to full strength at the inner cone
    of half-angle angle * (1 - softness).
    """
    position: Position
    direction: Direction
    angle: float
    color: HDRColor
    range: float = math.inf
    attenuation: bool = True
    softness: float = constants.SPOT_DEFAULT_SOFTNESS

    def __post_init__(self):
        _validate_color(self.color)
        if not 0.0 < self.angle < 180.0:
            raise ValueError(f"Spot angle must be in (0, 180) degrees, got {self.angle}")
        if not 0.0 <= self.softness <= 1.0:
            raise ValueError(f"Spot softness must be in [0, 1], got {self.softness}")
        if not self.range > 0.0:
            raise ValueError(f"Light range must be positive, got {self.range}")

    def falloff(self, cos_theta: float) -> float:
        cos_outer = math.cos(math.radians(self.angle))
        cos_inner = math.cos(math.radians(self.angle * (1.0 - self.softness)))
        if cos_theta < cos_outer:
            return 0.0
        if cos_inner - cos_outer <= 0.0:
            return 1.0
        return min(1.0, (cos_theta - cos_outer) / (cos_inner - cos_outer))

    def test(self, position: Position):
        to_light = self.position - position
        distance = to_light.length()
        if distance < constants.DEGENERATE_LENGTH or distance > self.range:
            return None
        direction = to_light.normalize()
        strength = self.falloff(-direction.dot(self.direction))
        if strength <= 0.0:
            return None
        color = _inverse_square(self.color, distance) if self.attenuation else self.color
        return color * strength, direction, distance
