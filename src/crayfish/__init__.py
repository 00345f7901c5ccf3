"""Taichi-based path tracer for scenes made of spheres.

This package renders a scene of spheres into an 8-bit image by stochastic ray
tracing, with support for:
- Thin-lens camera with depth of field
- Lambertian, metal and dielectric materials
- Bounded-depth Monte Carlo light transport
- Gamma-corrected canvas output (interleaved RGB bytes and packed 0xRRGGBB)

Subpackages:
    core: Vector utilities, ray, integrator, canvas and renderer
    camera: Thin-lens camera ray generation
    geometry: Sphere primitive and intersection
    materials: Scattering models and material registries
    scene: World container, scene-level intersection, JSON scene files
    preview: PNG export and preview windows
"""

__version__ = "0.1.0"
