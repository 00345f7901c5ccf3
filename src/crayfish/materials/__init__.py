"""Materials module for surface scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    registry: Material handles and scatter dispatch
    base: Material type tag and parameter validation

Each family provides a Python-side parameter dataclass, a Taichi scatter
function returning (scattered_direction, attenuation, did_scatter) and a
fixed-capacity field registry.

Note: the family modules declare Taichi fields; initialize Taichi before
importing this package.
"""

from .base import MaterialType, validate_color
from .dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_material_count,
    get_dielectric_refraction_index,
    scatter_dielectric,
    total_internal_reflection,
)
from .lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_diffuse,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
    get_metal_diffuse,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)
from .registry import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
    get_material_type,
    material_type_of,
    scatter_material,
)

__all__ = [
    "MaterialType",
    "Material",
    "validate_color",
    # Lambertian
    "Lambertian",
    "scatter_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_diffuse",
    "get_lambertian_material_count",
    # Metal
    "Metal",
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_diffuse",
    "get_metal_fuzz",
    "get_metal_material_count",
    # Dielectric
    "Dielectric",
    "scatter_dielectric",
    "total_internal_reflection",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_refraction_index",
    "get_dielectric_material_count",
    # Registry
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_type",
    "material_type_of",
    "scatter_material",
]
