"""
Geometric calculations for image processing.

Handles geometric operations:
- Angle normalization and comparison
- Point rotation about a pivot
"""

import logging
import math
from typing import Tuple

logger = logging.getLogger(__name__)


def normalize_angle(angle: float, angle_format: str = "0_360") -> float:
    """
    Normalize angle in degrees to requested format.

    Args:
        angle: Angle in degrees
        angle_format: Output format - "0_360", "-180_180", or "0_180"

    Returns:
        Normalized angle in degrees

    Raises:
        ValueError: If angle_format is invalid
    """
    angle = float(angle)

    if angle_format == "0_360":
        angle = angle % 360.0
    elif angle_format == "-180_180":
        angle = (angle + 180.0) % 360.0 - 180.0
    elif angle_format == "0_180":
        angle = angle % 180.0
    else:
        raise ValueError(
            f"Invalid angle_format: {angle_format}. Must be '0_360', '-180_180', or '0_180'"
        )

    return angle


def angle_difference(a: float, b: float, period: float = 360.0) -> float:
    """
    Smallest absolute difference between two angles.

    Args:
        a: First angle in degrees
        b: Second angle in degrees
        period: Symmetry period (360 for asymmetric shapes, 90 for a cross)

    Returns:
        Difference in degrees, in [0, period / 2]
    """
    diff = (a - b) % period
    return min(diff, period - diff)


def rotate_point(
    x: float, y: float, pivot: Tuple[float, float], angle_deg: float
) -> Tuple[float, float]:
    """
    Rotate a point about a pivot.

    Uses x' = x cos(t) - y sin(t), y' = x sin(t) + y cos(t) on the offset from
    the pivot. In image coordinates (y down) this is the inverse of
    cv2.getRotationMatrix2D for the same angle.

    Args:
        x: Point x coordinate
        y: Point y coordinate
        pivot: (x, y) rotation center
        angle_deg: Rotation angle in degrees

    Returns:
        Rotated (x, y)
    """
    theta = math.radians(angle_deg)
    px = x - pivot[0]
    py = y - pivot[1]
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return (
        pivot[0] + px * cos_t - py * sin_t,
        pivot[1] + px * sin_t + py * cos_t,
    )
