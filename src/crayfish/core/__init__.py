"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random sampling
    backend: Taichi runtime initialization
    canvas: Render request, tone mapping and output pixel buffers
    integrator: Light transport (bounded-depth path tracing) and render kernel
    renderer: Banded rendering with progress reporting

Note: integrator and renderer declare Taichi fields and are NOT imported here;
import them directly after Taichi is initialized.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_in_unit_disk",
]
