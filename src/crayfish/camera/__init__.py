"""Camera module for primary ray generation.

Components:
    thin_lens: Thin-lens perspective camera with optional depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

Note: thin_lens declares Taichi fields; initialize Taichi before importing.
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    setup_camera,
    validate_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "validate_camera",
    "get_ray",
    "get_camera_info",
]
