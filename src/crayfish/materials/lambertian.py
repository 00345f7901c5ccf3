"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters incoming light around its normal. The scatter
direction is the normal plus a random point in the unit sphere, which
approximates a cosine-weighted distribution without explicit PDF
bookkeeping, so the attenuation is simply the diffuse color.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(diffuse, normal)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from crayfish.core.ray import near_zero, random_in_unit_sphere
from crayfish.materials.base import validate_color

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass
class Lambertian:
    """Lambertian (ideal diffuse) material parameters.

    Attributes:
        diffuse: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    diffuse: tuple[float, float, float]

    def __post_init__(self) -> None:
        self.diffuse = validate_color(self.diffuse, "diffuse")


@ti.func
def lambertian_direction(normal: vec3, offset: vec3) -> vec3:
    """Return normal + offset, or the normal when the sum is near zero.

    The offset can land almost exactly opposite the normal, which would give
    a degenerate scatter direction.
    """
    direction = normal + offset
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_lambertian(diffuse: vec3, normal: vec3):
    """Sample a scattered direction for a Lambertian surface.

    Args:
        diffuse: The diffuse reflectance color (RGB).
        normal: The unit surface normal at the hit point, facing the ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        scattered_direction is not normalized, attenuation equals diffuse and
        did_scatter is always 1.
    """
    scattered_direction = lambertian_direction(normal, random_in_unit_sphere())
    return scattered_direction, diffuse, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

lambertian_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Existing data in the field is overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(material: Lambertian) -> int:
    """Add a Lambertian material to the registry.

    Args:
        material: The validated material parameters.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_diffuse[idx] = vec3(*material.diffuse)
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_diffuse(material_idx: ti.i32) -> vec3:
    return lambertian_diffuse[material_idx]
