"""Dielectric (glass/water) material implementation.

Dielectrics refract light according to Snell's law and reflect a fraction of
it according to the Fresnel equations, approximated with Schlick's formula.
Each scatter picks one of the two at random, weighted by the reflectance, so
the attenuation is always white.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when ratio * sin(theta) > 1
    - Schlick's approximation for the reflect/refract choice

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     refraction_index, incident_dir, normal, front_face
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from crayfish.core.ray import normalize, reflect, refract, schlick_reflectance

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass
class Dielectric:
    """Dielectric material parameters.

    Attributes:
        refraction_index: Index of refraction relative to the surrounding
            medium. Common values: water 1.33, glass 1.5, diamond 2.4.
            Values below 1 model a bubble of thinner medium (e.g. air in water).
    """

    refraction_index: float = 1.5

    def __post_init__(self) -> None:
        self.refraction_index = float(self.refraction_index)
        if self.refraction_index <= 0.0:
            raise ValueError(
                f"Index of refraction = {self.refraction_index} must be positive."
            )


@ti.func
def refraction_ratio(refraction_index: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio of refractive indices for the side the ray arrives from.

    Entering the material (front face) the ratio is 1 / index, leaving it the
    ratio is index.
    """
    ratio = refraction_index
    if front_face == 1:
        ratio = 1.0 / refraction_index
    return ratio


@ti.func
def scatter_dielectric(
    refraction_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        refraction_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it travels inside the material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        attenuation is white and did_scatter is always 1.
    """
    ratio = refraction_ratio(refraction_index, front_face)
    unit_direction = normalize(incident_direction)

    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    cannot_refract = ratio * sin_theta > 1.0

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or ti.random(ti.f32) < schlick_reflectance(cos_theta, ratio):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0), 1


@ti.func
def total_internal_reflection(
    refraction_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Return 1 when no refracted direction exists for this incidence."""
    ratio = refraction_ratio(refraction_index, front_face)
    cos_theta = tm.min(tm.dot(-normalize(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return ratio * sin_theta > 1.0


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

dielectric_refraction_indices = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(material: Dielectric) -> int:
    """Add a dielectric material to the registry.

    Args:
        material: The validated material parameters.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_refraction_indices[idx] = material.refraction_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_refraction_index(material_idx: ti.i32) -> ti.f32:
    return dielectric_refraction_indices[material_idx]
