"""
Perspective camera mapping normalized screen coordinates to primary rays.
"""
import math
from dataclasses import dataclass, field
from enum import Enum

from minirt import constants
from minirt.vector import Direction, Position, Ray, Vec3


class FovMode(Enum):
    """How the field-of-view angle is fitted to the screen."""
    X = "x"
    Y = "y"
    COVER = "max"
    CONTAIN = "min"


class Camera:
    def ray(self, x: float, y: float) -> Ray:
        raise NotImplementedError


def tan_half_fov(fov_degrees, mode, screen_aspect_ratio,
                 nominal_aspect_ratio=constants.DEFAULT_NOMINAL_ASPECT_RATIO):
    """
    Horizontal and vertical tangents of the half field of view.

    Args:
        fov_degrees: Full field-of-view angle.
        mode: FovMode deciding which extent the angle constrains.
        screen_aspect_ratio: Image width / height.
        nominal_aspect_ratio: Frame the angle refers to for COVER and CONTAIN.

    Returns:
        (tan_x, tan_y)
    """
    t = math.tan(math.radians(fov_degrees) / 2.0)
    if mode is FovMode.X:
        return t, t / screen_aspect_ratio
    if mode is FovMode.Y:
        return t * screen_aspect_ratio, t

    tan_x = t
    tan_y = t / nominal_aspect_ratio
    ratio = screen_aspect_ratio / nominal_aspect_ratio
    scale = max(ratio, 1.0) if mode is FovMode.COVER else min(ratio, 1.0)
    return tan_x * scale, tan_y * scale


def camera_basis(direction: Direction):
    """Right and up vectors for a view direction with +Z as world up."""
    up = Vec3(*constants.WORLD_UP)
    right = direction.cross(up)
    if right.is_degenerate():
        right = direction.cross(Vec3(*constants.FALLBACK_UP))
    right = right.normalize()
    return right, right.cross(direction).normalize()


@dataclass(frozen=True, eq=False)
class PerspectiveCamera(Camera):
    position: Position
    direction: Direction
    fov: float = constants.DEFAULT_FOV_DEGREES
    fov_mode: FovMode = FovMode.X
    screen_aspect_ratio: float = 1.0
    nominal_aspect_ratio: float = constants.DEFAULT_NOMINAL_ASPECT_RATIO
    _frame: tuple = field(init=False, repr=False)

    def __post_init__(self):
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"Field of view must be in (0, 180) degrees, got {self.fov}")
        if not self.screen_aspect_ratio > 0.0 or not self.nominal_aspect_ratio > 0.0:
            raise ValueError("Aspect ratios must be positive")
        right, up = camera_basis(self.direction)
        tan_x, tan_y = tan_half_fov(self.fov, self.fov_mode, self.screen_aspect_ratio,
                                    self.nominal_aspect_ratio)
        object.__setattr__(self, "_frame", (right * tan_x, up * tan_y))

    @classmethod
    def look_at(cls, position: Position, target: Position, **kwargs):
        offset = target - position
        if offset.is_degenerate():
            raise ValueError("Camera position and look-at target coincide")
        return cls(position, offset.normalize(), **kwargs)

    def ray(self, x: float, y: float) -> Ray:
        """Primary ray through screen point (x, y); (0, 0) is the top-left corner."""
        right, up = self._frame
        d = self.direction + right * (2.0 * x - 1.0) + up * (1.0 - 2.0 * y)
        return Ray(self.position, d.normalize())
