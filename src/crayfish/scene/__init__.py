"""Scene module for sphere storage, closest-hit queries and scene building.

Components:
    intersection: Sphere fields and the closest-hit scan used by the kernels
    world: World container tying spheres, material handles and the camera
    config: JSON scene files and building a World from them

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Integer material handles shared between spheres

Note: world and config import the integrator, which imports this package;
import them directly (crayfish.scene.world, crayfish.scene.config).
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)

__all__ = [
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
]
