"""Material kinds and parameter validation shared by all materials."""

from collections.abc import Sequence
from enum import IntEnum

from src.pathtracer.core.ray import to_tuple3


class MaterialKind(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    ABSORB = 2


def validate_albedo(albedo: Sequence[float]) -> tuple[float, float, float]:
    """Check that an albedo is an RGB triple with components in [0, 1].

    Args:
        albedo: The reflectance color.

    Returns:
        The albedo as a tuple of floats.

    Raises:
        ValueError: If the albedo does not have three components or any
            component is outside [0, 1].
    """
    color = to_tuple3(albedo, "albedo")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return color
