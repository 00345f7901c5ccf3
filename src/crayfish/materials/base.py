"""Shared material definitions: the type tag and parameter validation."""

from enum import IntEnum


class MaterialType(IntEnum):
    """Enumeration of the supported material families.

    The tag stored per material handle selects the scattering function in
    the path tracer.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


def validate_color(color, name: str) -> tuple[float, float, float]:
    """Check that a color has three components in [0, 1].

    Args:
        color: Any sequence of three numbers.
        name: Parameter name used in error messages.

    Returns:
        The color as a tuple of floats.

    Raises:
        ValueError: If the color does not have three components or any
            component is outside [0, 1].
    """
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")

    result = (float(color[0]), float(color[1]), float(color[2]))
    for i, component in enumerate(result):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return result
