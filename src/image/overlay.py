"""
Overlay rendering utilities for template location results.

Provides consistent visualization of locate results:
- Primitives: Basic drawing functions (boxes, labels, points, arrows)
- Results: The search window, the located oriented rectangle, or the
  diagnostic fallback point when nothing was found
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from domain_types import Colors
from models import MatchResult, RotatedRect

from .converters import ensure_bgr
from .geometry import normalize_angle

logger = logging.getLogger(__name__)


# ==============================================================================
# Constants and Default Parameters
# ==============================================================================

DEFAULT_FONT = cv2.FONT_HERSHEY_SIMPLEX
DEFAULT_FONT_SCALE = 0.5
DEFAULT_THICKNESS = 2
DEFAULT_LINE_TYPE = cv2.LINE_AA


# ==============================================================================
# Primitive Drawing Functions
# ==============================================================================


def draw_bounding_box(
    image: np.ndarray,
    x: int,
    y: int,
    width: int,
    height: int,
    color: Tuple[int, int, int] = Colors.INFO,
    thickness: int = 1,
    line_type: int = DEFAULT_LINE_TYPE,
) -> np.ndarray:
    """
    Draw an axis-aligned box on the image.

    Args:
        image: Input image
        x: Top-left x coordinate
        y: Top-left y coordinate
        width: Box width
        height: Box height
        color: Box color in BGR format
        thickness: Line thickness
        line_type: Line type for anti-aliasing

    Returns:
        Image with box drawn
    """
    cv2.rectangle(image, (x, y), (x + width - 1, y + height - 1), color, thickness, line_type)
    return image


def draw_rotated_rect(
    image: np.ndarray,
    rect: RotatedRect,
    color: Tuple[int, int, int] = Colors.SUCCESS,
    thickness: int = DEFAULT_THICKNESS,
    line_type: int = DEFAULT_LINE_TYPE,
) -> np.ndarray:
    """
    Draw an oriented rectangle outline.

    Args:
        image: Input image
        rect: Oriented rectangle
        color: Outline color in BGR format
        thickness: Line thickness
        line_type: Line type for anti-aliasing

    Returns:
        Image with rectangle drawn
    """
    corners = cv2.boxPoints(rect.to_cv())
    cv2.polylines(image, [np.round(corners).astype(np.int32)], True, color, thickness, line_type)
    return image


def draw_label(
    image: np.ndarray,
    text: str,
    x: int,
    y: int,
    color: Tuple[int, int, int] = Colors.SUCCESS,
    font: int = DEFAULT_FONT,
    font_scale: float = DEFAULT_FONT_SCALE,
    thickness: int = 1,
    line_type: int = DEFAULT_LINE_TYPE,
) -> np.ndarray:
    """Draw text label on the image."""
    cv2.putText(image, text, (x, y), font, font_scale, color, thickness, line_type)
    return image


def draw_center_point(
    image: np.ndarray,
    center_x: float,
    center_y: float,
    color: Tuple[int, int, int] = Colors.SUCCESS,
    radius: int = 3,
    line_type: int = DEFAULT_LINE_TYPE,
) -> np.ndarray:
    """Draw a filled center point marker."""
    cv2.circle(image, (int(round(center_x)), int(round(center_y))), radius, color, -1, line_type)
    return image


def draw_rotation_indicator(
    image: np.ndarray,
    center_x: float,
    center_y: float,
    angle_deg: float,
    length: int = 50,
    color: Tuple[int, int, int] = Colors.ORANGE,
    thickness: int = DEFAULT_THICKNESS,
    line_type: int = DEFAULT_LINE_TYPE,
    arrow_tip_length: float = 0.3,
) -> np.ndarray:
    """
    Draw rotation indicator arrow from center showing angle.

    The arrow follows the rectangle's width axis as drawn by cv2.boxPoints.

    Args:
        image: Input image
        center_x: Center x coordinate
        center_y: Center y coordinate
        angle_deg: Rotation angle in degrees
        length: Arrow length in pixels
        color: Arrow color
        thickness: Line thickness
        line_type: Line type for anti-aliasing
        arrow_tip_length: Arrow tip size ratio

    Returns:
        Image with rotation arrow drawn
    """
    angle_rad = np.radians(angle_deg)
    end_x = int(round(center_x + length * np.cos(angle_rad)))
    end_y = int(round(center_y + length * np.sin(angle_rad)))

    cv2.arrowedLine(
        image,
        (int(round(center_x)), int(round(center_y))),
        (end_x, end_y),
        color,
        thickness,
        line_type,
        tipLength=arrow_tip_length,
    )
    return image


def draw_cross(
    image: np.ndarray,
    center_x: float,
    center_y: float,
    size: int = 10,
    color: Tuple[int, int, int] = Colors.ERROR,
    thickness: int = DEFAULT_THICKNESS,
) -> np.ndarray:
    """Draw an X marker."""
    cx, cy = int(round(center_x)), int(round(center_y))
    cv2.line(image, (cx - size, cy - size), (cx + size, cy + size), color, thickness)
    cv2.line(image, (cx - size, cy + size), (cx + size, cy - size), color, thickness)
    return image


# ==============================================================================
# Result Rendering
# ==============================================================================


def render_match_result(image: np.ndarray, result: MatchResult) -> np.ndarray:
    """
    Render a locate result on a copy of the working image.

    Args:
        image: Working image (grayscale or BGR)
        result: Locate result

    Returns:
        BGR image with overlays
    """
    if image.dtype != np.uint8:
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    canvas = ensure_bgr(image)

    if result.crop is not None:
        crop = result.crop
        draw_bounding_box(canvas, crop.x, crop.y, crop.side, crop.side, Colors.INFO)

    if result.found and result.rect is not None:
        rect = result.rect
        draw_rotated_rect(canvas, rect, Colors.SUCCESS)
        draw_center_point(canvas, rect.center.x, rect.center.y, Colors.SUCCESS)
        draw_rotation_indicator(
            canvas, rect.center.x, rect.center.y, rect.angle, length=int(rect.width / 2) + 5
        )
        label = f"{result.score:.2f} @ {normalize_angle(rect.angle, '-180_180'):.1f}deg"
        draw_label(
            canvas,
            label,
            int(rect.center.x - rect.width / 2),
            max(12, int(rect.center.y - rect.height / 2) - 5),
        )
    elif result.fallback_center is not None:
        draw_cross(canvas, result.fallback_center.x, result.fallback_center.y)
        draw_label(
            canvas,
            "no match",
            int(result.fallback_center.x) + 12,
            int(result.fallback_center.y),
            Colors.ERROR,
        )

    return canvas
