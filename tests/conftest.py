"""
Pytest fixtures and configuration for minirt tests.

This module provides shared scenes, rays and assertion helpers to reduce test
code duplication.
"""

import math

import matplotlib
import numpy as np
import pytest

from minirt.camera import PerspectiveCamera
from minirt.color import HDRColor, LDRColor
from minirt.materials import Material
from minirt.rendering import ConstantSky, Scene
from minirt.surfaces import Sphere
from minirt.vector import Direction, Position, Ray

matplotlib.use("Agg")


@pytest.fixture
def origin():
    return Position(0.0, 0.0, 0.0)


@pytest.fixture
def down_ray():
    """Ray from 5 units above the origin looking straight down."""
    return Ray(Position(0.0, 0.0, 5.0), Direction(0.0, 0.0, -1.0))


@pytest.fixture
def unit_sphere():
    return Sphere(Position(0.0, 0.0, 0.0), 1.0)


@pytest.fixture
def grey_material():
    return Material(albedo=LDRColor(0.5, 0.5, 0.5), roughness=0.5, metallic=0.0)


@pytest.fixture
def sky():
    return HDRColor(0.1, 0.2, 0.3)


@pytest.fixture
def top_down_camera():
    """Camera 5 units above the origin looking down -Z."""
    return PerspectiveCamera(Position(0.0, 0.0, 5.0), Direction(0.0, 0.0, -1.0), fov=60.0)


@pytest.fixture
def sphere_scene(top_down_camera, grey_material, sky):
    """Unit sphere under a top-down camera with no lights."""
    return Scene(
        camera=top_down_camera,
        objects=(Sphere(Position(0.0, 0.0, 0.0), 1.0, grey_material),),
        sky=ConstantSky(sky),
        ambient_light=HDRColor(0.2, 0.2, 0.2),
        image_width=8,
        image_height=8,
    )


def assert_color_close(actual, expected, rtol=1e-6, atol=1e-6, err_msg=""):
    """Assert that two colors are close, with helpful error messages."""
    np.testing.assert_allclose(
        np.asarray(list(actual)), np.asarray(list(expected)), rtol=rtol, atol=atol,
        err_msg=f"Color mismatch: {err_msg}"
    )


def assert_unit(vector, tol=1e-6):
    length = math.sqrt(vector.x ** 2 + vector.y ** 2 + vector.z ** 2)
    assert abs(length - 1.0) <= tol, f"Expected unit vector, got length {length}"


def assert_sorted(hits):
    distances = [h.distance for h in hits]
    assert distances == sorted(distances), f"Hits out of order: {distances}"
