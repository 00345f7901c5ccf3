"""Unified material handles and scatter dispatch.

Materials live in an arena addressed by integer handle. A handle maps to the
material family (MaterialType) and to an index into that family's registry,
so any number of spheres can share one material by storing the same handle.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.materials import Lambertian
    >>> from crayfish.materials.registry import add_material
    >>> gray = add_material(Lambertian(diffuse=(0.5, 0.5, 0.5)))
    >>> # Use scatter_material(gray, ...) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from crayfish.materials.base import MaterialType
from crayfish.materials.dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_refraction_index,
    scatter_dielectric,
)
from crayfish.materials.lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_diffuse,
    scatter_lambertian,
)
from crayfish.materials.metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
    get_metal_diffuse,
    get_metal_fuzz,
    scatter_metal,
)

# Type alias for 3D vectors
vec3 = tm.vec3

Material = Lambertian | Metal | Dielectric

# Maximum number of material handles across all families
MAX_MATERIALS = 768  # 256 per family * 3 families

# material_types[i] stores the MaterialType for handle i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the family-local index for handle i
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear every material family and the handle table."""
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    num_materials[None] = 0


def material_type_of(material: Material) -> MaterialType:
    """Return the family tag of a material value.

    Raises:
        TypeError: If the value is not one of the supported materials.
    """
    if isinstance(material, Lambertian):
        return MaterialType.LAMBERTIAN
    elif isinstance(material, Metal):
        return MaterialType.METAL
    elif isinstance(material, Dielectric):
        return MaterialType.DIELECTRIC
    raise TypeError(f"Unsupported material: {material!r}")


def add_material(material: Material) -> int:
    """Register a material and return its handle.

    Args:
        material: A Lambertian, Metal or Dielectric value.

    Returns:
        The material handle to store on shapes.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        TypeError: If the material type is not supported.
    """
    material_type = material_type_of(material)

    handle = num_materials[None]
    if handle >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    if material_type == MaterialType.LAMBERTIAN:
        type_index = add_lambertian_material(material)
    elif material_type == MaterialType.METAL:
        type_index = add_metal_material(material)
    else:
        type_index = add_dielectric_material(material)

    material_types[handle] = int(material_type)
    material_type_indices[handle] = type_index
    num_materials[None] = handle + 1
    return handle


def get_material_count() -> int:
    """Get the number of registered material handles."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the MaterialType tag for a handle, or -1 for an invalid handle."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scattering function of the handle's material family.

    Args:
        material_id: The material handle of the hit surface.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
        An invalid handle absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = 0
    if mat_type >= 0:
        type_index = material_type_indices[material_id]

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        diffuse = get_lambertian_diffuse(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(diffuse, normal)

    elif mat_type == int(MaterialType.METAL):
        diffuse = get_metal_diffuse(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            diffuse, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        refraction_index = get_dielectric_refraction_index(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            refraction_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter
