"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) evaluated per ray
inside the render kernels.
"""

from .sphere import HitRecord, Sphere, hit_sphere, sphere_roots

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "sphere_roots",
]
