"""
Closed-form primitives: sphere and axis-aligned box.

Every surface answers test(ray) with the ascending list of boundary crossings
along the ray. Bounded convex solids produce (entry, exit) pairs; when the ray
starts inside, the entry is placed at distance 0 facing the ray.
"""
import math
from dataclasses import dataclass, field

from minirt.intersections import solve_quadratic
from minirt.materials import DEFAULT_MATERIAL, Hit, Material
from minirt.vector import Direction, Position, Ray, Vec3


class Surface:
    """Anything a ray can be tested against."""

    def test(self, ray: Ray) -> list[Hit]:
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class Sphere(Surface):
    center: Position
    radius: float
    material: Material = DEFAULT_MATERIAL

    def __post_init__(self):
        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def test(self, ray: Ray) -> list[Hit]:
        local = ray.origin - self.center
        d = ray.direction
        a = d.dot(d)
        b = 2.0 * local.dot(d)
        c = local.dot(local) - self.radius * self.radius

        roots = solve_quadratic(a, b, c)
        if len(roots) < 2:
            return []
        t1, t2 = roots
        if t2 < 0.0:
            return []

        if t1 < 0.0:
            entry = self.material.hit(0.0, -d, True)
        else:
            entry = self.material.hit(t1, self._normal(local, d, t1), True)
        exit_ = self.material.hit(t2, self._normal(local, d, t2), False)
        return [entry, exit_]

    @staticmethod
    def _normal(local, direction, t):
        point = local + direction * t
        return Direction(point.x, point.y, point.z)


_AXES = (
    (Direction(1.0, 0.0, 0.0), "x"),
    (Direction(0.0, 1.0, 0.0), "y"),
    (Direction(0.0, 0.0, 1.0), "z"),
)


@dataclass(frozen=True, eq=False)
class Cube(Surface):
    """Axis-aligned box centred on `center` with edge lengths `size`."""
    center: Position
    size: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    material: Material = DEFAULT_MATERIAL

    def __post_init__(self):
        if min(self.size) <= 0.0:
            raise ValueError(f"Cube size must be positive on every axis, got {self.size}")

    @property
    def minimum(self) -> Position:
        return self.center - self.size * 0.5

    @property
    def maximum(self) -> Position:
        return self.center + self.size * 0.5

    def test(self, ray: Ray) -> list[Hit]:
        lo = self.minimum
        hi = self.maximum
        t_min, t_max = -math.inf, math.inf
        normal_min = normal_max = None

        for axis, name in _AXES:
            o = getattr(ray.origin, name)
            d = getattr(ray.direction, name)
            low = getattr(lo, name)
            high = getattr(hi, name)

            if d == 0.0:
                if o < low or o > high:
                    return []
                continue

            t1 = (low - o) / d
            t2 = (high - o) / d
            n1, n2 = -axis, axis
            if t1 > t2:
                t1, t2 = t2, t1
                n1, n2 = n2, n1

            if t1 > t_min:
                t_min, normal_min = t1, n1
            if t2 < t_max:
                t_max, normal_max = t2, n2
            if t_min > t_max:
                return []

        if t_max < 0.0:
            return []
        if t_min < 0.0:
            entry = self.material.hit(0.0, -ray.direction, True)
        else:
            entry = self.material.hit(t_min, normal_min, True)
        return [entry, self.material.hit(t_max, normal_max, False)]
