"""
Surface materials and the hit record produced by every intersection test.
"""
import math
from dataclasses import dataclass, field, replace

from minirt.color import LDRColor
from minirt.vector import Direction


@dataclass(frozen=True)
class Hit:
    """
    One boundary crossing along a ray.

    Attributes:
        distance: Distance from the ray origin, >= 0, or math.inf for the exit
            sentinel of an unbounded solid.
        normal: Outward unit normal of the solid at the crossing.
        albedo: Surface reflectance at the crossing.
        roughness: Microfacet roughness in [0, 1].
        metallic: Metalness in [0, 1].
        is_front_face: True when the ray enters the solid here.
    """
    distance: float
    normal: Direction
    albedo: LDRColor
    roughness: float
    metallic: float
    is_front_face: bool

    def flipped(self) -> "Hit":
        """The same crossing seen from the other side."""
        return replace(self, normal=-self.normal, is_front_face=not self.is_front_face)


@dataclass(frozen=True)
class Material:
    """
    Cook-Torrance material parameters with an optional albedo texture.

    The texture is looked up with spherical coordinates of the surface normal.
    """
    albedo: LDRColor = field(default_factory=LDRColor.white)
    roughness: float = 0.0
    metallic: float = 0.0
    texture: object = None

    def __post_init__(self):
        if not 0.0 <= self.roughness <= 1.0:
            raise ValueError(f"roughness must be in [0, 1], got {self.roughness}")
        if not 0.0 <= self.metallic <= 1.0:
            raise ValueError(f"metallic must be in [0, 1], got {self.metallic}")

    def albedo_at(self, normal: Direction) -> LDRColor:
        if self.texture is None:
            return self.albedo
        u, v = spherical_uv(normal)
        return self.texture.get(u, v)

    def hit(self, distance, normal, is_front_face) -> Hit:
        """Build a hit record carrying this material's parameters."""
        return Hit(distance, normal, self.albedo_at(normal), self.roughness, self.metallic, is_front_face)


def spherical_uv(normal):
    """Map a unit vector to texture coordinates in [0, 1]^2."""
    theta = math.atan2(normal.x, normal.y)
    phi = math.acos(max(-1.0, min(1.0, normal.z)))
    return (theta + math.pi) / (2.0 * math.pi), phi / math.pi


DEFAULT_MATERIAL = Material()
