"""
Scene documents: JSON with comments, turned into an immutable Scene.

Top level:
    width, height      optional image size (default 640 x 480)
    camera             {"fov": {"x"|"y"|"min"|"max": angle}, "position": [...],
                        "direction": [...] | "lookAt": [...]}
    voidColor          sky color, 3 non-negative numbers
    ambientLight       3 non-negative numbers
    objects            lights and surfaces, each tagged by "type"

Angles are {"degree": n} or {"radian": n}. Every validation problem raises
SceneError naming the offending field, e.g. "objects[2].material.roughness".
"""
import json
import logging
import math
import os
import re

from minirt import constants
from minirt.camera import FovMode, PerspectiveCamera
from minirt.color import HDRColor, LDRColor
from minirt.csg import Difference, Intersection, Union
from minirt.implicit import implicit_surface
from minirt.lights import DirectionalLight, PointLight, SpotLight
from minirt.materials import Material
from minirt.rendering import ConstantSky, Scene
from minirt.surfaces import Cube, Sphere
from minirt.textures import ImageCache, LinearTexture, NearestTexture, PillowImageLoader
from minirt.vector import Direction, Position, Vec3

logger = logging.getLogger(__name__)


class SceneError(ValueError):
    """A scene document is malformed or describes an invalid scene."""


_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_comments(text):
    """Remove // and /* */ comments outside of string literals."""
    return _COMMENT.sub(lambda m: m.group(1) or "", text)


def parse_document(text):
    try:
        document = json.loads(strip_comments(text))
    except json.JSONDecodeError as e:
        raise SceneError(f"Invalid scene JSON: {e}") from e
    if not isinstance(document, dict):
        raise SceneError("Scene document must be a JSON object")
    return document


def load_document(path):
    with open(path, encoding="utf-8") as f:
        return parse_document(f.read())


def load_scene(path, image_cache=None):
    """Read and build the scene stored at `path`; textures resolve next to it."""
    base_dir = os.path.dirname(os.path.abspath(path))
    return build_scene(load_document(path), base_dir=base_dir, image_cache=image_cache)


# Field readers. `where` is the dotted path used in error messages.

def _require(data, key, where):
    if not isinstance(data, dict):
        raise SceneError(f"{where} must be an object")
    if key not in data:
        raise SceneError(f"{where}.{key} is required")
    return data[key]


def _number(value, where):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneError(f"{where} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise SceneError(f"{where} must be finite")
    return value


def _triple(value, where):
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise SceneError(f"{where} must be a list of 3 numbers, got {value!r}")
    return tuple(_number(v, f"{where}[{i}]") for i, v in enumerate(value))


def _position(data, key, where, default=(0.0, 0.0, 0.0)):
    value = data.get(key)
    if value is None:
        return Position(*default)
    return Position(*_triple(value, f"{where}.{key}"))


def _direction(value, where):
    x, y, z = _triple(value, where)
    if Vec3(x, y, z).is_degenerate():
        raise SceneError(f"{where} must be a non-zero vector")
    return Direction(x, y, z)


def _hdr(value, where):
    r, g, b = _triple(value, where)
    if min(r, g, b) < 0.0:
        raise SceneError(f"{where} must be non-negative")
    return HDRColor(r, g, b)


def _ldr(value, where):
    r, g, b = _triple(value, where)
    if min(r, g, b) < 0.0 or max(r, g, b) > 1.0:
        raise SceneError(f"{where} channels must be in [0, 1]")
    return LDRColor(r, g, b)


def _unit_interval(data, key, where, default):
    value = data.get(key, default)
    value = _number(value, f"{where}.{key}")
    if not 0.0 <= value <= 1.0:
        raise SceneError(f"{where}.{key} must be in [0, 1], got {value}")
    return value


def _angle_degrees(value, where):
    if not isinstance(value, dict) or len(value) != 1:
        raise SceneError(f"{where} must be {{\"degree\": n}} or {{\"radian\": n}}")
    if "degree" in value:
        return _number(value["degree"], f"{where}.degree")
    if "radian" in value:
        return math.degrees(_number(value["radian"], f"{where}.radian"))
    raise SceneError(f"{where} must be {{\"degree\": n}} or {{\"radian\": n}}")


def _positive_int(data, key, where, default):
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SceneError(f"{where}.{key} must be a positive integer, got {value!r}")
    return value


class SceneBuilder:
    """Turns a parsed document into scene objects, one tagged entry at a time."""

    def __init__(self, base_dir=".", image_cache=None):
        self.image_cache = image_cache or ImageCache(PillowImageLoader(base_dir))
        self.lights = []
        self.objects = []

    def build(self, document) -> Scene:
        width = _positive_int(document, "width", "scene", constants.DEFAULT_IMAGE_WIDTH)
        height = _positive_int(document, "height", "scene", constants.DEFAULT_IMAGE_HEIGHT)
        camera = self.camera(_require(document, "camera", "scene"), width / height)
        void_color = _hdr(_require(document, "voidColor", "scene"), "voidColor")
        ambient = _hdr(_require(document, "ambientLight", "scene"), "ambientLight")

        entries = document.get("objects", [])
        if not isinstance(entries, list):
            raise SceneError("objects must be a list")
        for index, entry in enumerate(entries):
            self.entry(entry, f"objects[{index}]")

        logger.info("Built scene: %d objects, %d lights, %dx%d",
                    len(self.objects), len(self.lights), width, height)
        return Scene(
            camera=camera,
            objects=tuple(self.objects),
            lights=tuple(self.lights),
            sky=ConstantSky(void_color),
            ambient_light=ambient,
            image_width=width,
            image_height=height,
        )

    def camera(self, data, aspect_ratio):
        fov = _require(data, "fov", "camera")
        if not isinstance(fov, dict):
            raise SceneError("camera.fov must be an object")
        modes = [m for m in FovMode if m.value in fov]
        if len(modes) != 1:
            raise SceneError("camera.fov needs exactly one of x, y, min, max")
        mode = modes[0]
        degrees = _angle_degrees(fov[mode.value], f"camera.fov.{mode.value}")
        if not 0.0 < degrees < 180.0:
            raise SceneError(f"camera.fov.{mode.value} must be between 0 and 180 degrees")
        nominal = _number(fov.get("aspectRatio", constants.DEFAULT_NOMINAL_ASPECT_RATIO),
                          "camera.fov.aspectRatio")
        if nominal <= 0.0:
            raise SceneError("camera.fov.aspectRatio must be positive")

        position = _position(data, "position", "camera")
        options = dict(fov=degrees, fov_mode=mode, screen_aspect_ratio=aspect_ratio,
                       nominal_aspect_ratio=nominal)
        if "direction" in data and "lookAt" in data:
            raise SceneError("camera takes either direction or lookAt, not both")
        if "lookAt" in data:
            target = Position(*_triple(data["lookAt"], "camera.lookAt"))
            if (target - position).is_degenerate():
                raise SceneError("camera.lookAt must differ from camera.position")
            return PerspectiveCamera.look_at(position, target, **options)
        direction = _direction(_require(data, "direction", "camera"), "camera.direction")
        return PerspectiveCamera(position, direction, **options)

    def entry(self, data, where):
        kind = _require(data, "type", where)
        light = self.LIGHTS.get(kind)
        if light is not None:
            self.lights.append(light(self, data, where))
        else:
            self.objects.append(self.surface(data, where))

    # Lights

    def _range(self, data, where):
        value = data.get("range")
        if value is None:
            return math.inf
        value = _number(value, f"{where}.range")
        if value <= 0.0:
            raise SceneError(f"{where}.range must be positive")
        return value

    def _attenuation(self, data, where):
        value = data.get("attenuation", True)
        if not isinstance(value, bool):
            raise SceneError(f"{where}.attenuation must be true or false")
        return value

    def point_light(self, data, where):
        return PointLight(
            position=Position(*_triple(_require(data, "position", where), f"{where}.position")),
            color=_hdr(_require(data, "color", where), f"{where}.color"),
            range=self._range(data, where),
            attenuation=self._attenuation(data, where),
        )

    def directional_light(self, data, where):
        return DirectionalLight(
            direction=_direction(_require(data, "direction", where), f"{where}.direction"),
            color=_hdr(_require(data, "color", where), f"{where}.color"),
        )

    def spot_light(self, data, where):
        angle = _angle_degrees(_require(data, "angle", where), f"{where}.angle")
        if not 0.0 < angle < 180.0:
            raise SceneError(f"{where}.angle must be between 0 and 180 degrees")
        return SpotLight(
            position=Position(*_triple(_require(data, "position", where), f"{where}.position")),
            direction=_direction(_require(data, "direction", where), f"{where}.direction"),
            angle=angle,
            color=_hdr(_require(data, "color", where), f"{where}.color"),
            range=self._range(data, where),
            attenuation=self._attenuation(data, where),
            softness=_unit_interval(data, "softness", where, constants.SPOT_DEFAULT_SOFTNESS),
        )

    LIGHTS = {
        "point": point_light,
        "directional": directional_light,
        "spot": spot_light,
    }

    # Surfaces

    def material(self, data, where):
        data = data.get("material", {})
        where = f"{where}.material"
        if not isinstance(data, dict):
            raise SceneError(f"{where} must be an object")
        albedo = _ldr(data["albedo"], f"{where}.albedo") if "albedo" in data else LDRColor.white()
        texture = None
        if "texture" in data:
            texture = self.texture(data["texture"], f"{where}.texture")
        return Material(
            albedo=albedo,
            roughness=_unit_interval(data, "roughness", where, 0.0),
            metallic=_unit_interval(data, "metallic", where, 0.0),
            texture=texture,
        )

    def texture(self, data, where):
        if isinstance(data, str):
            data = {"path": data}
        path = _require(data, "path", where)
        if not isinstance(path, str):
            raise SceneError(f"{where}.path must be a string")
        try:
            image = self.image_cache.load(path)
        except OSError as e:
            raise SceneError(f"{where}.path: cannot read image {path!r}: {e}") from e
        smooth = data.get("smooth", False)
        return LinearTexture(image) if smooth else NearestTexture(image)

    def surface(self, data, where):
        kind = _require(data, "type", where)
        if kind in ("union", "intersection", "difference"):
            node = {"union": Union, "intersection": Intersection, "difference": Difference}[kind]
            return node(
                self.surface(_require(data, "a", where), f"{where}.a"),
                self.surface(_require(data, "b", where), f"{where}.b"),
            )
        if kind == "sphere":
            radius = _number(_require(data, "radius", where), f"{where}.radius")
            if radius <= 0.0:
                raise SceneError(f"{where}.radius must be positive")
            return Sphere(_position(data, "position", where), radius, self.material(data, where))
        if kind == "cube":
            size = Vec3(*_triple(data.get("size", [1.0, 1.0, 1.0]), f"{where}.size"))
            if min(size) <= 0.0:
                raise SceneError(f"{where}.size must be positive")
            return Cube(_position(data, "position", where), size, self.material(data, where))
        if kind in self.POLYNOMIAL_DEGREES:
            return self.polynomial(data, where, self.POLYNOMIAL_DEGREES[kind])
        if kind in self.LIGHTS:
            raise SceneError(f"{where}: a light cannot be used as a CSG operand")
        raise SceneError(f"{where}.type: unknown object type {kind!r}")

    # "plane" is the general polynomial tag; the others cap the degree.
    POLYNOMIAL_DEGREES = {"plane": 4, "polynomial": 4, "quadric": 2, "quadratic": 3, "quartic": 4}

    def polynomial(self, data, where, max_degree):
        coefficients = _require(data, "coefficients", where)
        if not isinstance(coefficients, dict):
            raise SceneError(f"{where}.coefficients must be an object")
        terms = {name: _number(value, f"{where}.coefficients.{name}")
                 for name, value in coefficients.items()}
        point = None
        if data.get("point") is not None:
            point = Position(*_triple(data["point"], f"{where}.point"))
        inside = data.get("isPointInside", False)
        if not isinstance(inside, bool):
            raise SceneError(f"{where}.isPointInside must be true or false")
        try:
            return implicit_surface(
                terms,
                position=_position(data, "position", where),
                material=self.material(data, where),
                point=point,
                is_point_inside=inside,
                max_degree=max_degree,
            )
        except ValueError as e:
            if isinstance(e, SceneError):
                raise
            raise SceneError(f"{where}.coefficients: {e}") from e


def build_scene(document, base_dir=".", image_cache=None) -> Scene:
    """Validate a parsed document and build the Scene it describes."""
    if not isinstance(document, dict):
        raise SceneError("Scene document must be a JSON object")
    return SceneBuilder(base_dir, image_cache).build(document)
