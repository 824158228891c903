"""
Scene container and sky-color strategies for the minirt pipeline.
"""
from dataclasses import dataclass, field
from typing import Callable

from minirt import constants
from minirt.color import HDRColor
from minirt.materials import Hit
from minirt.vector import Direction, Ray


class SkyColor:
    """Radiance seen along rays that escape the scene."""

    def __call__(self, direction: Direction) -> HDRColor:
        raise NotImplementedError


@dataclass(frozen=True)
class ConstantSky(SkyColor):
    color: HDRColor

    def __call__(self, direction: Direction) -> HDRColor:
        return self.color


@dataclass(frozen=True)
class LookupSky(SkyColor):
    """
    Sky computed by a caller-supplied function of the ray direction.

    The function must be defined at module level for scenes to be usable with
    a multiprocessing renderer.
    """
    lookup: Callable[[Direction], HDRColor]

    def __call__(self, direction: Direction) -> HDRColor:
        return self.lookup(direction)


@dataclass(frozen=True, eq=False)
class Scene:
    """
    Everything needed to shade a ray. Immutable once built.

    Attributes:
        camera: Object with ray(x, y).
        objects: Top-level surfaces.
        lights: Light sources.
        sky: SkyColor strategy for escaping rays.
        ambient_light: Flat radiance multiplied by the surface albedo.
        image_width: Output width in pixels.
        image_height: Output height in pixels.
    """
    camera: object
    objects: tuple = ()
    lights: tuple = ()
    sky: SkyColor = field(default_factory=lambda: ConstantSky(HDRColor.black()))
    ambient_light: HDRColor = field(default_factory=HDRColor.black)
    image_width: int = constants.DEFAULT_IMAGE_WIDTH
    image_height: int = constants.DEFAULT_IMAGE_HEIGHT

    def __post_init__(self):
        object.__setattr__(self, "objects", tuple(self.objects))
        object.__setattr__(self, "lights", tuple(self.lights))
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError(
                f"Image size must be positive, got {self.image_width}x{self.image_height}")

    def sky_color(self, direction: Direction) -> HDRColor:
        return self.sky(direction)

    def test(self, ray: Ray) -> Hit | None:
        """Nearest first hit over all top-level objects, or None."""
        nearest = None
        for surface in self.objects:
            hits = surface.test(ray)
            if hits and (nearest is None or hits[0].distance < nearest.distance):
                nearest = hits[0]
        return nearest
