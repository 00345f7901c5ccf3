"""The World: spheres, shared materials and a camera, ready to render.

A World is the Python-side owner of the scene. Materials are registered once
and referenced by handle, so several spheres may share one material. Every
change is written straight through to the Taichi field registries used by
the render kernels. Only one World is held in the registries at a time; a
World that was displaced by another one re-uploads its scene before its next
query or render.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.camera import ThinLensCamera
    >>> from crayfish.core.canvas import RenderRequest
    >>> from crayfish.materials import Lambertian, Metal
    >>> from crayfish.scene.world import World
    >>> world = World()
    >>> ground = world.add_material(Lambertian(diffuse=(0.8, 0.8, 0.0)))
    >>> world.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    >>> world.add_sphere_with_material((0.0, 0.0, -1.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.3))
    >>> world.set_camera(ThinLensCamera((0, 0, 1), (0, 0, -1), (0, 1, 0), 60.0, 2.0))
    >>> canvas = world.render(RenderRequest(width=200, height=100, samples_per_pixel=16))
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from crayfish.camera.thin_lens import ThinLensCamera, setup_camera
from crayfish.core.canvas import Canvas, RenderRequest
from crayfish.core.integrator import T_MAX, T_MIN, trace_color
from crayfish.core.renderer import DEFAULT_BAND_SIZE, ProgressCallback, render
from crayfish.materials.base import MaterialType
from crayfish.materials.dielectric import Dielectric
from crayfish.materials.lambertian import Lambertian
from crayfish.materials.metal import Metal
from crayfish.materials.registry import Material, add_material, clear_materials, material_type_of
from crayfish.scene.intersection import add_sphere, clear_scene, intersect_scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]

# The World whose scene is currently held in the field registries
_active_world = None


@dataclass(frozen=True)
class Intersection:
    """The closest hit of a ray against the world.

    Attributes:
        t: Ray parameter of the hit.
        point: The hit point.
        normal: Unit normal facing the incoming ray.
        front_face: True if the ray arrived from outside the sphere.
        material_id: Handle of the hit sphere's material.
    """

    t: float
    point: Vec3Tuple
    normal: Vec3Tuple
    front_face: bool
    material_id: int


@dataclass(frozen=True)
class SphereInfo:
    """A sphere as it was added to the world.

    Attributes:
        sphere_index: The index in the sphere storage fields.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material handle assigned to the sphere.
    """

    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


# =============================================================================
# Single-ray query (scratch fields read back by World.hit)
# =============================================================================

_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_closest_hit(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    rec = intersect_scene(vec3(ox, oy, oz), vec3(dx, dy, dz), t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_front_face[None] = rec.front_face
    _query_material_id[None] = rec.material_id


def _as_vec3_tuple(value) -> Vec3Tuple:
    return (float(value[0]), float(value[1]), float(value[2]))


def _material_to_dict(material: Material) -> dict[str, Any]:
    return {"type": material_type_of(material).name.lower(), **asdict(material)}


def _material_from_dict(data: dict[str, Any]) -> Material:
    params = {key: value for key, value in data.items() if key != "type"}
    material_type = str(data.get("type", "")).lower()
    if material_type == MaterialType.LAMBERTIAN.name.lower():
        return Lambertian(**params)
    elif material_type == MaterialType.METAL.name.lower():
        return Metal(**params)
    elif material_type == MaterialType.DIELECTRIC.name.lower():
        return Dielectric(**params)
    raise ValueError(f"Unknown material type: {material_type!r}")


class World:
    """Scene container coordinating spheres, materials and the camera.

    Attributes:
        materials: Registered materials, indexed by handle.
        spheres: SphereInfo for every sphere, in insertion order.
    """

    def __init__(self) -> None:
        """Create an empty world and reset the field registries."""
        self.materials: list[Material] = []
        self.spheres: list[SphereInfo] = []
        self._camera: ThinLensCamera | None = None
        self._clear_all()

    def _clear_all(self) -> None:
        global _active_world
        clear_scene()
        clear_materials()
        self.materials.clear()
        self.spheres.clear()
        _active_world = self

    def activate(self) -> None:
        """Make this world the scene seen by the render kernels.

        Does nothing if this world is already active. Otherwise the field
        registries are cleared and this world's materials, spheres and camera
        are uploaded again, keeping every handle and sphere index unchanged.
        """
        global _active_world
        if _active_world is self:
            return
        clear_scene()
        clear_materials()
        for material in self.materials:
            add_material(material)
        for sphere in self.spheres:
            add_sphere(vec3(*sphere.center), sphere.radius, sphere.material_id)
        if self._camera is not None:
            setup_camera(self._camera)
        _active_world = self
        logger.debug("Activated %r", self)

    def clear(self) -> None:
        """Remove every sphere and material. The camera is kept."""
        self._clear_all()

    # =========================================================================
    # Scene Construction
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material and return its handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            TypeError: If the material type is not supported.
        """
        self.activate()
        handle = add_material(material)
        self.materials.append(material)
        logger.debug("Added material %d: %r", handle, material)
        return handle

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Add a sphere referencing an existing material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            material_id: A handle returned by add_material.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If radius is not positive or material_id is unknown.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius {radius} must be positive")
        if not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

        self.activate()
        center = _as_vec3_tuple(center)
        sphere_index = add_sphere(vec3(*center), float(radius), material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=float(radius),
                material_id=material_id,
            )
        )
        logger.debug("Added sphere %d at %s (r=%g, material %d)", sphere_index, center, radius, material_id)
        return sphere_index

    def add_sphere_with_material(
        self, center: Vec3Tuple, radius: float, material: Material
    ) -> tuple[int, int]:
        """Register a new material and add a sphere using it.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_material(material)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def set_camera(self, camera: ThinLensCamera) -> None:
        """Validate the camera and upload it for rendering.

        Raises:
            ValueError: If the camera configuration is degenerate.
        """
        self.activate()
        setup_camera(camera)
        self._camera = camera

    @property
    def camera(self) -> ThinLensCamera | None:
        return self._camera

    def get_sphere_count(self) -> int:
        return len(self.spheres)

    def get_material_count(self) -> int:
        return len(self.materials)

    # =========================================================================
    # Queries
    # =========================================================================

    def hit(
        self,
        origin: Vec3Tuple,
        direction: Vec3Tuple,
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> Intersection | None:
        """Find the closest sphere hit with t in [t_min, t_max].

        Returns:
            The Intersection, or None when the ray misses every sphere.
        """
        self.activate()
        _query_closest_hit(
            origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], t_min, t_max
        )
        if _query_hit[None] == 0:
            return None
        return Intersection(
            t=float(_query_t[None]),
            point=_as_vec3_tuple(_query_point[None]),
            normal=_as_vec3_tuple(_query_normal[None]),
            front_face=bool(_query_front_face[None]),
            material_id=int(_query_material_id[None]),
        )

    def color_at(self, origin: Vec3Tuple, direction: Vec3Tuple, depth: int) -> Vec3Tuple:
        """Estimate the color seen along one ray with at most depth bounces.

        The result is a single stochastic sample, not an average.
        """
        if depth < 0:
            raise ValueError(f"depth = {depth} must not be negative")
        self.activate()
        return trace_color(origin, direction, depth)

    def render(
        self,
        request: RenderRequest,
        callback: ProgressCallback | None = None,
        band_size: int = DEFAULT_BAND_SIZE,
    ) -> Canvas:
        """Render the world through its camera.

        Args:
            request: Image size and sampling parameters.
            callback: Optional function called after each row band with
                (rows_done, total_rows).
            band_size: Number of image rows per kernel launch.

        Returns:
            The finished canvas.

        Raises:
            RuntimeError: If no camera has been set.
        """
        if self._camera is None:
            raise RuntimeError("No camera set. Call set_camera() before render().")
        self.activate()
        # setup_camera may have been called directly since
        setup_camera(self._camera)
        return render(request, callback=callback, band_size=band_size)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the world to a dictionary (for JSON serialization)."""
        data: dict[str, Any] = {
            "materials": [_material_to_dict(material) for material in self.materials],
            "spheres": [
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
                for sphere in self.spheres
            ],
        }
        if self._camera is not None:
            data["camera"] = asdict(self._camera)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "World":
        """Build a world from a dictionary produced by to_dict.

        Raises:
            ValueError: If a material or sphere entry is invalid.
        """
        world = cls()
        for material_data in data.get("materials", []):
            world.add_material(_material_from_dict(material_data))
        for sphere_data in data.get("spheres", []):
            world.add_sphere(
                tuple(sphere_data["center"]),
                sphere_data["radius"],
                sphere_data["material_id"],
            )
        camera_data = data.get("camera")
        if camera_data is not None:
            world.set_camera(
                ThinLensCamera(
                    origin=tuple(camera_data["origin"]),
                    look_at=tuple(camera_data["look_at"]),
                    up=tuple(camera_data["up"]),
                    vfov=camera_data["vfov"],
                    aspect_ratio=camera_data["aspect_ratio"],
                    aperture=camera_data.get("aperture", 0.0),
                    focus_distance=camera_data.get("focus_distance"),
                )
            )
        return world

    def __repr__(self) -> str:
        return f"World(spheres={len(self.spheres)}, materials={len(self.materials)})"
