"""
Cook-Torrance shading and the per-sample integrator.

sample() is the single entry point of the core: it traces the camera ray for a
normalized screen coordinate and returns the radiance seen along it, combining
a flat ambient term with direct lighting from every unshadowed light.
"""
import math

from minirt import constants
from minirt.color import HDRColor
from minirt.shadows import is_shadowed


def fresnel_schlick(cos_theta, f0):
    """Schlick's Fresnel approximation for one channel."""
    cos_theta = max(0.0, min(1.0, cos_theta))
    return f0 + (1.0 - f0) * (1.0 - cos_theta) ** 5


def ggx_distribution(n_dot_h, roughness):
    """GGX / Trowbridge-Reitz normal distribution with alpha = roughness^2."""
    alpha = roughness * roughness
    alpha2 = alpha * alpha
    cos_nh = max(0.0, min(1.0, n_dot_h))
    cos2 = cos_nh * cos_nh
    denominator = cos2 * alpha2 + (1.0 - cos2)
    if denominator <= 0.0:
        # Perfect mirror looking exactly along the half vector: a delta we do not sample.
        return 0.0
    return alpha2 / (math.pi * denominator * denominator)


def smith_geometry(n_dot_v, n_dot_l, roughness):
    """Schlick-GGX masking-shadowing with k = (roughness + 1)^2 / 8."""
    k = (roughness + 1.0) ** 2 / 8.0
    n_dot_v = max(n_dot_v, constants.BRDF_COSINE_FLOOR)
    n_dot_l = max(n_dot_l, constants.BRDF_COSINE_FLOOR)
    g_v = n_dot_v / (n_dot_v * (1.0 - k) + k)
    g_l = n_dot_l / (n_dot_l * (1.0 - k) + k)
    return g_v * g_l


def brdf(surface_to_view, surface_to_light, normal, roughness, metallic, albedo, light_color):
    """
    Radiance reflected toward the viewer from one light.

    Args:
        surface_to_view: Unit vector from the surface toward the eye.
        surface_to_light: Unit vector from the surface toward the light.
        normal: Unit surface normal.
        roughness: Microfacet roughness in [0, 1].
        metallic: Metalness in [0, 1].
        albedo: LDRColor base color.
        light_color: HDRColor arriving at the surface.

    Returns:
        HDRColor, non-negative.
    """
    n_dot_l = max(normal.dot(surface_to_light), 0.0)
    if n_dot_l == 0.0:
        return HDRColor.black()
    n_dot_v = normal.dot(surface_to_view)

    halfway = surface_to_view + surface_to_light
    halfway = normal if halfway.is_degenerate() else halfway.normalize()
    h_dot_v = halfway.dot(surface_to_view)

    d = ggx_distribution(normal.dot(halfway), roughness)
    g = smith_geometry(n_dot_v, n_dot_l, roughness)
    specular_common = d * g / (
        4.0
        * max(n_dot_v, constants.BRDF_COSINE_FLOOR)
        * max(n_dot_l, constants.BRDF_COSINE_FLOOR)
    )

    channels = []
    for base, radiance in zip(albedo, light_color):
        f0 = constants.DIELECTRIC_F0 * (1.0 - metallic) + base * metallic
        fresnel = fresnel_schlick(h_dot_v, f0)
        diffuse = (1.0 - fresnel) * (1.0 - metallic) * base / math.pi
        specular = specular_common * fresnel
        channels.append((diffuse + specular) * radiance * n_dot_l)
    return HDRColor(*channels)


def sample(scene, x: float, y: float) -> HDRColor:
    """
    Radiance through normalized screen coordinate (x, y) in [0, 1]^2.

    Rays that miss everything return the scene's sky color.
    """
    ray = scene.camera.ray(x, y)
    hit = scene.test(ray)
    if hit is None or not math.isfinite(hit.distance):
        return scene.sky_color(ray.direction)

    position = ray.at(hit.distance) + hit.normal * constants.SHADOW_BIAS
    view = -ray.direction
    result = scene.ambient_light * hit.albedo

    for light in scene.lights:
        arriving = light.test(position)
        if arriving is None:
            continue
        color, direction, distance = arriving
        if is_shadowed(scene, position, direction, distance):
            continue
        result = result + brdf(view, direction, hit.normal, hit.roughness,
                               hit.metallic, hit.albedo, color)
    return result
