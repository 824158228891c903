"""
Hard shadows: visibility of a light from a shaded point.
"""
import math

from minirt.vector import Direction, Position, Ray


def is_shadowed(scene, position: Position, direction: Direction, distance: float) -> bool:
    """
    Whether anything in the scene blocks the path toward a light.

    Args:
        scene: Scene providing test(ray).
        position: Shaded point, already offset off the surface.
        direction: Unit direction from the point toward the light.
        distance: Distance to the light; math.inf for directional lights.

    Returns:
        True if an occluder lies between the point and the light.
    """
    blocker = scene.test(Ray(position, direction))
    if blocker is None:
        return False
    if math.isfinite(distance):
        return blocker.distance < distance
    return True
