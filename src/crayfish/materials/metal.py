"""Metal (specular reflective) material implementation.

Perfect metals (fuzz=0) produce mirror-like reflections. A non-zero fuzz
perturbs the mirror direction by a random point in a sphere of radius fuzz,
simulating surface roughness.

The reflection formula is:
    R = I - 2(I . N)N

where I is the unit incident direction and N is the surface normal. A fuzzed
direction that ends up below the surface is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     diffuse, fuzz, incident_dir, normal
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from crayfish.core.ray import normalize, random_in_unit_sphere, reflect
from crayfish.materials.base import validate_color

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass
class Metal:
    """Metal material parameters.

    Attributes:
        diffuse: The reflective tint (RGB, each component in [0, 1]).
        fuzz: Surface roughness, clamped to [0, 1] on construction.
            0 = perfect mirror.
    """

    diffuse: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        self.diffuse = validate_color(self.diffuse, "diffuse")
        self.fuzz = min(max(float(self.fuzz), 0.0), 1.0)


@ti.func
def scatter_metal(
    diffuse: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered direction for a metal surface.

    Args:
        diffuse: The reflective tint (RGB).
        fuzz: The surface roughness in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 when the fuzzed reflection points into the surface.
    """
    reflected = reflect(normalize(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, diffuse, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

metal_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(material: Metal) -> int:
    """Add a metal material to the registry.

    Args:
        material: The validated material parameters.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_diffuse[idx] = vec3(*material.diffuse)
    metal_fuzz[idx] = material.fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_diffuse(material_idx: ti.i32) -> vec3:
    return metal_diffuse[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzz[material_idx]
