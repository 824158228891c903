import math

import numpy as np
import pytest

from conftest import assert_color_close
from minirt.camera import PerspectiveCamera
from minirt.color import HDRColor, LDRColor
from minirt.implicit import Plane
from minirt.lights import DirectionalLight, PointLight
from minirt.materials import Material
from minirt.rendering import ConstantSky, LookupSky, Scene
from minirt.shading import brdf, fresnel_schlick, ggx_distribution, sample
from minirt.shadows import is_shadowed
from minirt.surfaces import Sphere
from minirt.vector import Direction, Position, Ray

WHITE = HDRColor(1.0, 1.0, 1.0)


def gradient_sky(direction):
    return HDRColor(0.0, 0.0, max(0.0, direction.z))


def test_fresnel_limits():
    assert fresnel_schlick(1.0, 0.04) == pytest.approx(0.04)
    assert fresnel_schlick(0.0, 0.04) == pytest.approx(1.0)
    # Cosine is clamped into [0, 1].
    assert fresnel_schlick(-0.5, 0.04) == fresnel_schlick(0.0, 0.04)
    assert fresnel_schlick(2.0, 0.04) == fresnel_schlick(1.0, 0.04)


def test_ggx_peaks_on_normal():
    assert ggx_distribution(1.0, 0.5) > ggx_distribution(0.8, 0.5)
    assert ggx_distribution(1.0, 0.0) == 0.0


def test_brdf_non_negative_and_finite():
    rng = np.random.default_rng(11)
    normal = Direction(0.0, 0.0, 1.0)
    for _ in range(200):
        view = Direction(*rng.normal(size=3))
        light = Direction(*rng.normal(size=3))
        albedo = LDRColor(*rng.uniform(0.0, 1.0, size=3))
        roughness = rng.uniform(0.01, 1.0)
        metallic = rng.uniform(0.0, 1.0)
        color = brdf(view, light, normal, roughness, metallic, albedo, WHITE)
        assert color.is_finite()
        assert min(color) >= 0.0


def test_brdf_light_below_surface_is_black():
    normal = Direction(0.0, 0.0, 1.0)
    color = brdf(normal, Direction(0.0, 0.0, -1.0), normal, 0.5, 0.0, LDRColor.white(), WHITE)
    assert list(color) == [0.0, 0.0, 0.0]


def test_brdf_head_on_dielectric():
    """View and light along the normal: Lambert term plus the GGX peak."""
    normal = Direction(0.0, 0.0, 1.0)
    roughness = 0.5
    color = brdf(normal, normal, normal, roughness, 0.0, LDRColor(0.5, 0.5, 0.5), WHITE)

    f = 0.04
    alpha2 = roughness ** 4
    d = alpha2 / (math.pi * alpha2 ** 2)
    k = (roughness + 1.0) ** 2 / 8.0
    g = 1.0 / (1.0 - k + k) ** 2
    expected = (1.0 - f) * 0.5 / math.pi + d * g * f / 4.0
    assert_color_close(color, [expected] * 3)


def test_brdf_mirror_head_on_is_finite():
    normal = Direction(0.0, 0.0, 1.0)
    color = brdf(normal, normal, normal, 0.0, 1.0, LDRColor.white(), WHITE)
    assert color.is_finite()


def test_brdf_opposite_view_and_light():
    normal = Direction(0.0, 0.0, 1.0)
    # View exactly opposite the light: the half vector falls back to the normal.
    light = Direction(1.0, 0.0, 1.0)
    view = -light
    assert brdf(view, light, normal, 0.5, 0.0, LDRColor.white(), WHITE).is_finite()


def test_miss_returns_sky(sphere_scene, sky):
    # The top-left corner ray misses the unit sphere.
    assert sample(sphere_scene, 0.0, 0.0) == sky


def test_miss_uses_sky_lookup():
    up_camera = PerspectiveCamera(Position(0.0, 0.0, 0.0), Direction(0.0, 0.0, 1.0))
    scene = Scene(camera=up_camera, sky=LookupSky(gradient_sky))
    color = sample(scene, 0.5, 0.5)
    assert_color_close(color, [0.0, 0.0, 1.0])
    ray = up_camera.ray(0.1, 0.3)
    assert sample(scene, 0.1, 0.3) == gradient_sky(ray.direction)


def test_ambient_only(sphere_scene):
    # No lights: ambient times albedo.
    assert_color_close(sample(sphere_scene, 0.5, 0.5), [0.1, 0.1, 0.1])


def test_point_light_adds_brdf(sphere_scene):
    light = PointLight(Position(0.0, 0.0, 3.0), HDRColor(4.0, 4.0, 4.0))
    scene = Scene(sphere_scene.camera, sphere_scene.objects, (light,), sphere_scene.sky,
                  sphere_scene.ambient_light)
    color = sample(scene, 0.5, 0.5)

    normal = Direction(0.0, 0.0, 1.0)
    distance = 2.0 - 1e-3
    arriving = HDRColor(4.0, 4.0, 4.0) / distance ** 2
    expected = HDRColor(0.1, 0.1, 0.1) + brdf(normal, normal, normal, 0.5, 0.0,
                                               LDRColor(0.5, 0.5, 0.5), arriving)
    assert_color_close(color, expected)


def test_occluded_light_is_ignored(sphere_scene):
    # Light below the scene, lighting only undersides.
    light = PointLight(Position(0.0, 0.0, -3.0), HDRColor(100.0, 100.0, 100.0))
    blocker = Sphere(Position(0.0, 0.0, 2.0), 0.25)
    scene = Scene(sphere_scene.camera, sphere_scene.objects + (blocker,), (light,),
                  sphere_scene.sky, sphere_scene.ambient_light)
    color = sample(scene, 0.5, 0.5)
    # The blocker is hit first and faces away from the light.
    assert_color_close(color, [0.2, 0.2, 0.2])


def test_directional_shadow_by_any_hit(top_down_camera):
    floor = Plane({"z": 1.0}, material=Material(albedo=LDRColor(1.0, 1.0, 1.0), roughness=1.0))
    roof = Sphere(Position(0.0, 0.0, 20.0), 0.5)
    sun = DirectionalLight(Direction(0.0, 0.0, -1.0), WHITE)
    lit = Scene(top_down_camera, (floor,), (sun,))
    shaded = Scene(top_down_camera, (floor, roof), (sun,))
    lit_color = sample(lit, 0.5, 0.5)
    assert lit_color.r > 0.0
    # The roof is behind the camera for primary rays but blocks the sun.
    assert sample(shaded, 0.5, 0.5) == HDRColor(0.0, 0.0, 0.0)


def test_is_shadowed_respects_light_distance(sphere_scene):
    above = Position(0.0, 0.0, 3.0)
    down = Direction(0.0, 0.0, -1.0)
    assert not is_shadowed(sphere_scene, above, down, 1.5)
    assert is_shadowed(sphere_scene, above, down, 2.5)
    assert is_shadowed(sphere_scene, above, down, math.inf)
    assert not is_shadowed(sphere_scene, above, Direction(0.0, 0.0, 1.0), math.inf)


def test_scene_test_picks_nearest(down_ray):
    near = Sphere(Position(0.0, 0.0, 2.0), 0.5)
    far = Sphere(Position(0.0, 0.0, 0.0), 1.0)
    scene = Scene(camera=None, objects=(far, near))
    assert scene.test(down_ray).distance == pytest.approx(2.5)
    assert Scene(camera=None).test(down_ray) is None
    assert Scene(camera=None, objects=(far,)).test(
        Ray(Position(5.0, 5.0, 5.0), Direction(0.0, 0.0, 1.0))) is None


def test_sample_is_deterministic(sphere_scene):
    light = PointLight(Position(2.0, 1.0, 3.0), HDRColor(5.0, 4.0, 3.0))
    scene = Scene(sphere_scene.camera, sphere_scene.objects, (light,), ConstantSky(WHITE),
                  sphere_scene.ambient_light)
    first = [sample(scene, x / 7.0, y / 7.0) for x in range(8) for y in range(8)]
    second = [sample(scene, x / 7.0, y / 7.0) for x in range(8) for y in range(8)]
    assert first == second


if __name__ == "__main__":
    pytest.main([__file__])
