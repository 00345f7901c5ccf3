"""JSON scene files and building a World from them.

A scene file describes the image, the camera and a list of shapes:

    {
        "width": 400,
        "aspectRatio": 1.7778,
        "outputPath": "out.png",
        "rayStep": 1,
        "samplesPerPixel": 50,
        "rayMaxDepth": 50,
        "camera": {"fovDeg": 40, "position": [0, 1, 3], "lookAt": [0, 0, -1],
                   "up": [0, 1, 0], "aperture": 0.1},
        "shapes": [
            {"type": "sphere",
             "material": {"type": "metal", "diffuse": [0.8, 0.6, 0.2], "fuzz": 0.3},
             "transform": {"position": [0, 0, -1], "size": [0.5]}}
        ]
    }

Only "sphere" shapes are supported; transform.size[0] is the radius. Material
types are "lambertian" (diffuse), "metal" (diffuse, optional fuzz) and
"dielectric" (refractionIndex).

Example:
    >>> from crayfish.scene.config import build_world, load_config
    >>> config = load_config("examples/scene.json")
    >>> world = build_world(config)
    >>> canvas = world.render(config.render_request())
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crayfish.camera.thin_lens import ThinLensCamera
from crayfish.core.canvas import RenderRequest
from crayfish.materials.dielectric import Dielectric
from crayfish.materials.lambertian import Lambertian
from crayfish.materials.metal import Metal
from crayfish.materials.registry import Material
from crayfish.scene.world import World

logger = logging.getLogger(__name__)

SUPPORTED_SHAPES = ("sphere",)
SUPPORTED_MATERIALS = ("lambertian", "metal", "dielectric")


class SceneConfigError(ValueError):
    """Raised when a scene file is malformed or uses unsupported types."""


@dataclass
class MaterialConfig:
    """Material entry of a shape.

    Attributes:
        type: "lambertian", "metal" or "dielectric".
        diffuse: Color for lambertian and metal materials.
        fuzz: Roughness for metal materials.
        refraction_index: Index of refraction for dielectric materials.
    """

    type: str
    diffuse: tuple[float, float, float] | None = None
    fuzz: float | None = None
    refraction_index: float | None = None

    def to_material(self) -> Material:
        """Create the material value.

        Raises:
            SceneConfigError: If the type is unsupported or a required
                parameter is missing or invalid.
        """
        try:
            if self.type == "lambertian":
                return Lambertian(diffuse=_require(self.diffuse, "diffuse", self.type))
            elif self.type == "metal":
                fuzz = 0.0 if self.fuzz is None else self.fuzz
                return Metal(diffuse=_require(self.diffuse, "diffuse", self.type), fuzz=fuzz)
            elif self.type == "dielectric":
                return Dielectric(
                    refraction_index=_require(self.refraction_index, "refractionIndex", self.type)
                )
        except SceneConfigError:
            raise
        except ValueError as exc:
            raise SceneConfigError(f"Invalid {self.type} material: {exc}") from exc
        raise SceneConfigError(
            f"Unsupported material type {self.type!r}, expected one of {SUPPORTED_MATERIALS}"
        )


@dataclass
class ShapeConfig:
    """Shape entry of a scene file.

    Attributes:
        type: Shape type, only "sphere" is supported.
        material: The shape's material.
        position: Center of the sphere.
        size: Size vector; the first component is the radius.
    """

    type: str
    material: MaterialConfig
    position: tuple[float, float, float]
    size: tuple[float, ...]

    @property
    def radius(self) -> float:
        return float(self.size[0])


@dataclass
class CameraConfig:
    """Camera entry of a scene file.

    Attributes:
        fov_deg: Vertical field of view in degrees.
        position: Camera origin.
        look_at: Point the camera looks at.
        up: Up direction.
        aperture: Lens diameter, 0 for a pinhole.
        focus_distance: Distance to the focal plane, None for |position - look_at|.
    """

    fov_deg: float
    position: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    aperture: float = 0.0
    focus_distance: float | None = None

    def to_camera(self, aspect_ratio: float) -> ThinLensCamera:
        return ThinLensCamera(
            origin=self.position,
            look_at=self.look_at,
            up=self.up,
            vfov=self.fov_deg,
            aspect_ratio=aspect_ratio,
            aperture=self.aperture,
            focus_distance=self.focus_distance,
        )


@dataclass
class SceneConfig:
    """A complete scene file.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Width divided by height.
        output_path: Where the CLI writes the image.
        row_step: Trace every row_step-th row.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Bounce limit per path.
        camera: Camera settings.
        shapes: Shapes in insertion order.
    """

    width: int
    aspect_ratio: float
    camera: CameraConfig
    output_path: str = "output.png"
    row_step: int = 1
    samples_per_pixel: int = 50
    max_depth: int = 50
    shapes: list[ShapeConfig] = field(default_factory=list)

    @property
    def height(self) -> int:
        return int(self.width / self.aspect_ratio)

    def render_request(self) -> RenderRequest:
        """Build the RenderRequest for this scene.

        Raises:
            SceneConfigError: If the image settings are invalid.
        """
        try:
            return RenderRequest(
                width=self.width,
                height=self.height,
                samples_per_pixel=self.samples_per_pixel,
                max_depth=self.max_depth,
                row_step=self.row_step,
            )
        except ValueError as exc:
            raise SceneConfigError(f"Invalid image settings: {exc}") from exc


# =============================================================================
# Parsing
# =============================================================================


def _require(value, name: str, context: str):
    if value is None:
        raise SceneConfigError(f"Missing required field {name!r} in {context}")
    return value


def _vector(data: dict[str, Any], key: str, context: str, length: int = 3) -> tuple[float, ...]:
    value = _require(data.get(key), key, context)
    if not isinstance(value, (list, tuple)) or len(value) < length:
        raise SceneConfigError(f"Field {key!r} in {context} must be a list of {length} numbers")
    try:
        return tuple(float(component) for component in value[:length])
    except (TypeError, ValueError) as exc:
        raise SceneConfigError(f"Field {key!r} in {context} must contain numbers") from exc


def _number(value, name: str, context: str, cast=float):
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise SceneConfigError(f"Field {name!r} in {context} must be a number") from exc


def _parse_material(data: dict[str, Any], context: str) -> MaterialConfig:
    material_type = _require(data.get("type"), "type", context)
    diffuse = _vector(data, "diffuse", context) if data.get("diffuse") is not None else None
    return MaterialConfig(
        type=str(material_type).lower(),
        diffuse=diffuse,
        fuzz=_number(data.get("fuzz"), "fuzz", context),
        refraction_index=_number(data.get("refractionIndex"), "refractionIndex", context),
    )


def _parse_shape(data: dict[str, Any], index: int) -> ShapeConfig:
    context = f"shapes[{index}]"
    shape_type = str(_require(data.get("type"), "type", context)).lower()
    if shape_type not in SUPPORTED_SHAPES:
        raise SceneConfigError(
            f"Unsupported shape type {shape_type!r} in {context}, expected one of {SUPPORTED_SHAPES}"
        )

    material = _parse_material(
        _require(data.get("material"), "material", context), f"{context}.material"
    )
    transform = _require(data.get("transform"), "transform", context)
    position = _vector(transform, "position", f"{context}.transform")
    size = _vector(transform, "size", f"{context}.transform", length=1)

    return ShapeConfig(type=shape_type, material=material, position=position, size=size)


def _parse_camera(data: dict[str, Any]) -> CameraConfig:
    context = "camera"
    return CameraConfig(
        fov_deg=_number(_require(data.get("fovDeg"), "fovDeg", context), "fovDeg", context),
        position=_vector(data, "position", context),
        look_at=_vector(data, "lookAt", context),
        up=_vector(data, "up", context) if data.get("up") is not None else (0.0, 1.0, 0.0),
        aperture=_number(data.get("aperture", 0.0), "aperture", context),
        focus_distance=_number(data.get("focusDistance"), "focusDistance", context),
    )


def parse_config(data: dict[str, Any]) -> SceneConfig:
    """Parse a scene description that has already been decoded from JSON.

    Args:
        data: Dictionary using the camelCase scene file keys.

    Returns:
        The parsed SceneConfig.

    Raises:
        SceneConfigError: If a required field is missing, a numeric field
            is not a number, or a shape or material type is unsupported.
    """
    if not isinstance(data, dict):
        raise SceneConfigError("Scene file must contain a JSON object")

    context = "scene"
    shapes = [_parse_shape(shape, i) for i, shape in enumerate(data.get("shapes", []))]

    return SceneConfig(
        width=_number(_require(data.get("width"), "width", context), "width", context, int),
        aspect_ratio=_number(
            _require(data.get("aspectRatio"), "aspectRatio", context), "aspectRatio", context
        ),
        camera=_parse_camera(_require(data.get("camera"), "camera", context)),
        output_path=str(data.get("outputPath", "output.png")),
        row_step=_number(data.get("rayStep", 1), "rayStep", context, int),
        samples_per_pixel=_number(data.get("samplesPerPixel", 50), "samplesPerPixel", context, int),
        max_depth=_number(data.get("rayMaxDepth", 50), "rayMaxDepth", context, int),
        shapes=shapes,
    )


def load_config(path: str | Path) -> SceneConfig:
    """Read and parse a JSON scene file.

    Raises:
        FileNotFoundError: If the file does not exist.
        SceneConfigError: If the file is not valid JSON or not a valid scene.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise SceneConfigError(f"{path} is not valid JSON: {exc}") from exc

    config = parse_config(data)
    logger.debug("Loaded %s: %d shapes", path, len(config.shapes))
    return config


def build_world(config: SceneConfig) -> World:
    """Create a World holding the configured spheres and camera.

    Each shape gets its own material handle.

    Raises:
        SceneConfigError: If a material, sphere or the camera is invalid.
    """
    world = World()
    for i, shape in enumerate(config.shapes):
        material = shape.material.to_material()
        try:
            world.add_sphere_with_material(shape.position, shape.radius, material)
        except ValueError as exc:
            raise SceneConfigError(f"Invalid sphere in shapes[{i}]: {exc}") from exc

    try:
        world.set_camera(config.camera.to_camera(config.aspect_ratio))
    except ValueError as exc:
        raise SceneConfigError(f"Invalid camera: {exc}") from exc

    logger.debug("Built world with %d spheres", world.get_sphere_count())
    return world
