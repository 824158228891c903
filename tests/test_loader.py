import copy
import json
import math

import numpy as np
import PIL.Image
import pytest

from minirt.camera import FovMode
from minirt.csg import Difference, Union
from minirt.implicit import Plane, Quadratic, Quadric, Quartic
from minirt.lights import DirectionalLight, PointLight, SpotLight
from minirt.loader import SceneError, build_scene, load_scene, parse_document, strip_comments
from minirt.shading import sample
from minirt.surfaces import Cube, Sphere
from minirt.textures import LinearTexture, NearestTexture

SCENE_TEXT = """
{
  // Image size
  "width": 40,
  "height": 20,
  "camera": {
    "fov": {"x": {"degree": 60}},
    "position": [0, 0, 5],
    "direction": [0, 0, -1]
  },
  "voidColor": [0.1, 0.2, 0.3],
  "ambientLight": [0.05, 0.05, 0.05],
  /* Lights and objects share one list. */
  "objects": [
    {"type": "point", "color": [10, 10, 10], "position": [0, 0, 4], "range": 100},
    {"type": "directional", "color": [1, 1, 1], "direction": [0, 0, -1]},
    {"type": "spot", "color": [5, 5, 5], "position": [0, 0, 4], "direction": [0, 0, -1],
     "angle": {"radian": 0.5}, "attenuation": false},
    {"type": "sphere", "radius": 1, "material": {"albedo": [1, 0, 0], "roughness": 0.5}},
    {"type": "plane", "coefficients": {"z": 1, "0": 2}},
    {"type": "difference",
     "a": {"type": "cube", "size": [2, 2, 2], "position": [3, 0, 0]},
     "b": {"type": "union",
           "a": {"type": "sphere", "radius": 0.5, "position": [3, 0, 0]},
           "b": {"type": "quadric", "coefficients": {"x^2": 1, "y^2": 1, "0": -0.04},
                 "position": [3, 0, 0]}}}
  ]
}
"""


@pytest.fixture
def document():
    return parse_document(SCENE_TEXT)


def test_strip_comments_keeps_strings():
    text = '{"url": "http://example.com/*x*/"} // trailing'
    assert strip_comments(text).strip() == '{"url": "http://example.com/*x*/"}'


def test_build_scene(document):
    scene = build_scene(document)
    assert (scene.image_width, scene.image_height) == (40, 20)
    assert [type(light) for light in scene.lights] == [PointLight, DirectionalLight, SpotLight]
    assert [type(obj) for obj in scene.objects] == [Sphere, Plane, Difference]
    assert isinstance(scene.objects[2].b, Union)
    assert isinstance(scene.objects[2].a, Cube)
    assert isinstance(scene.objects[2].b.b, Quadric)

    assert scene.camera.fov_mode is FovMode.X
    assert scene.camera.screen_aspect_ratio == pytest.approx(2.0)
    assert list(scene.sky_color(scene.camera.direction)) == [0.1, 0.2, 0.3]
    assert scene.lights[0].range == 100.0
    assert scene.lights[2].angle == pytest.approx(math.degrees(0.5))
    assert scene.lights[2].attenuation is False


def test_material_defaults(document):
    scene = build_scene(document)
    plane = scene.objects[1]
    assert list(plane.material.albedo) == [1.0, 1.0, 1.0]
    assert plane.material.roughness == 0.0
    assert plane.material.metallic == 0.0


def test_loaded_scene_samples(document):
    scene = build_scene(document)
    # Corner rays see the floor plane; nothing escapes downward.
    color = sample(scene, 0.0, 1.0)
    assert color.is_finite()
    assert list(color) != [0.1, 0.2, 0.3]


def test_polynomial_class_follows_degree(document):
    document["objects"] = [
        {"type": "polynomial", "coefficients": {"x^2": 1, "y^2": 1, "z^2": 1, "0": -1}},
        {"type": "quartic", "coefficients": {"x^4": 1, "y^4": 1, "z^4": 1, "0": -1},
         "point": [0, 0, 0], "isPointInside": True},
    ]
    scene = build_scene(document)
    assert type(scene.objects[0]) is Quadric
    assert type(scene.objects[1]) is Quartic
    assert scene.objects[1].is_point_inside


def test_plane_tag_accepts_any_degree(document):
    document["objects"] = [
        {"type": "plane", "coefficients": {"x^2": 1, "y^2": 1, "z^2": 1, "0": -1},
         "point": [0, 0, 0], "isPointInside": True},
        {"type": "plane", "coefficients": {"x^3": 1, "0": 8}},
        {"type": "plane", "coefficients": {"x^4": 1, "y^4": 1, "z^4": 1, "0": -1}},
    ]
    scene = build_scene(document)
    assert [type(obj) for obj in scene.objects] == [Quadric, Quadratic, Quartic]
    assert scene.objects[0].contains(scene.objects[0].point)
    # The camera at z = 5 looks straight down onto the unit sphere.
    hit = scene.test(scene.camera.ray(0.5, 0.5))
    assert hit.distance == pytest.approx(4.0)


def test_look_at_camera(document):
    document["camera"] = {"fov": {"max": {"degree": 90}}, "position": [0, -5, 0], "lookAt": [0, 0, 0]}
    scene = build_scene(document)
    np.testing.assert_allclose(scene.camera.direction.to_array(), [0.0, 1.0, 0.0])
    assert scene.camera.fov_mode is FovMode.COVER


def test_texture_loading(tmp_path, document):
    PIL.Image.fromarray(np.full((2, 2, 3), 255, dtype=np.uint8)).save(tmp_path / "white.png")
    document["objects"] = [
        {"type": "sphere", "radius": 1, "material": {"texture": {"path": "white.png"}}},
        {"type": "sphere", "radius": 1, "material": {"texture": {"path": "white.png", "smooth": True}}},
    ]
    scene_file = tmp_path / "scene.json"
    scene_file.write_text(json.dumps(document))
    scene = load_scene(str(scene_file))
    assert isinstance(scene.objects[0].material.texture, NearestTexture)
    assert isinstance(scene.objects[1].material.texture, LinearTexture)
    # Both materials share one decoded image.
    assert scene.objects[0].material.texture.image is scene.objects[1].material.texture.image


def _broken(document, path, value):
    broken = copy.deepcopy(document)
    target = broken
    for key in path[:-1]:
        target = target[key]
    if value is KeyError:
        del target[path[-1]]
    else:
        target[path[-1]] = value
    return broken


@pytest.mark.parametrize("path, value, message", [
    (["camera"], KeyError, "scene.camera is required"),
    (["voidColor"], KeyError, "scene.voidColor is required"),
    (["ambientLight"], [1, 2], "ambientLight must be a list of 3 numbers"),
    (["width"], 0, "scene.width must be a positive integer"),
    (["camera", "fov"], {"z": {"degree": 60}}, "camera.fov needs exactly one"),
    (["camera", "fov"], {"x": {"degree": 200}}, "between 0 and 180"),
    (["camera", "direction"], [0, 0, 0], "camera.direction must be a non-zero vector"),
    (["objects", 0, "color"], [-1, 0, 0], "objects[0].color must be non-negative"),
    (["objects", 0, "range"], 0, "objects[0].range must be positive"),
    (["objects", 1, "direction"], [0, 0, 0], "objects[1].direction must be a non-zero vector"),
    (["objects", 3, "radius"], -1, "objects[3].radius must be positive"),
    (["objects", 3, "material"], {"roughness": 2}, "objects[3].material.roughness must be in [0, 1]"),
    (["objects", 3, "material"], {"albedo": [2, 0, 0]}, "objects[3].material.albedo channels"),
    (["objects", 3, "type"], "teapot", "unknown object type 'teapot'"),
    (["objects", 4, "type"], "plane", None),
    (["objects", 4, "coefficients"], {"x^5": 1}, "objects[4].coefficients"),
    (["objects", 5, "b", "b", "coefficients"], {"x^3": 1}, "objects[5].b.b.coefficients"),
    (["objects", 5, "b", "a"], {"type": "point", "color": [1, 1, 1], "position": [0, 0, 0]},
     "objects[5].b.a: a light cannot be used as a CSG operand"),
    (["objects", 5, "a", "size"], [1, 1, -1], "objects[5].a.size must be positive"),
])
def test_validation_errors_name_the_field(document, path, value, message):
    broken = _broken(document, path, value)
    if message is None:
        build_scene(broken)
        return
    with pytest.raises(SceneError) as excinfo:
        build_scene(broken)
    assert message in str(excinfo.value)


def test_invalid_json():
    with pytest.raises(SceneError):
        parse_document("{not json")
    with pytest.raises(SceneError):
        parse_document("[1, 2, 3]")


def test_missing_texture_is_scene_error(document):
    document["objects"] = [{"type": "sphere", "radius": 1,
                            "material": {"texture": {"path": "missing.png"}}}]
    with pytest.raises(SceneError, match="cannot read image"):
        build_scene(document, base_dir="/nonexistent")


if __name__ == "__main__":
    pytest.main([__file__])
