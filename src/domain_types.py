"""
Central types module for the part template locator.

This module consolidates the fundamental types, enums, and constants used
throughout the system. It has no dependencies on other project modules (only
stdlib and Pydantic).

Contents:
- Base Models: Point, CropRegion (geometric primitives)
- Enums: SearchPhase
- Constants: Configuration values and magic numbers organized by domain

IMPORTANT: This module must NOT import from models, algorithms, services,
or api to avoid circular dependencies.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, Field, field_validator

# ==============================================================================
# Base Data Models
# ==============================================================================


class Point(BaseModel):
    """2D Point"""

    x: float
    y: float


class CropRegion(BaseModel):
    """
    Square search window centered in the working image.

    The side is always odd so the window has a well-defined integer center
    pixel, which is also the pivot used when the window is rotated.
    """

    x: int = Field(..., ge=0, description="Top-left X coordinate in the working image")
    y: int = Field(..., ge=0, description="Top-left Y coordinate in the working image")
    side: int = Field(..., gt=0, description="Side length in pixels (odd)")

    @field_validator("side")
    @classmethod
    def validate_odd_side(cls, v):
        """Ensure side length is odd."""
        if v % 2 == 0:
            raise ValueError(f"Crop side must be odd, got {v}")
        return v

    @property
    def pivot(self) -> Tuple[float, float]:
        """Center pixel of the window in local coordinates."""
        c = (self.side - 1) / 2.0
        return (c, c)

    def to_image_coordinates(self, x: float, y: float) -> Tuple[float, float]:
        """Translate a point from crop-local to working-image coordinates."""
        return (self.x + x, self.y + y)

    def to_dict(self) -> Dict[str, int]:
        """Convert to ROI-style dictionary."""
        return {"x": self.x, "y": self.y, "width": self.side, "height": self.side}


# ==============================================================================
# Enumerations
# ==============================================================================


class SearchPhase(str, Enum):
    """Phases of the angular search."""

    COARSE = "coarse"  # Expected angle plus perturbation fallback
    REFINE = "refine"  # Bisection around the best angle
    DONE = "done"


# ==============================================================================
# Constants
# ==============================================================================


class LocatorConstants:
    """Constants for rotation-invariant template location."""

    # Defaults for the tunable options
    DEFAULT_SCORE_THRESHOLD = 0.3
    DEFAULT_ROTATE_STEP = 22.5
    DEFAULT_ANGLE_RESOLUTION = 1.0
    DEFAULT_RELATIVE_THRESHOLD = 0.85
    MAX_ROTATE_STEP = 180.0

    # Crop window is this many times the template's larger dimension
    CROP_SCALE = 2.5

    # Non-maximum suppression neighborhood (1 = 3x3)
    SUPPRESSION_RADIUS = 1

    # Accepted moves during refinement before the search gives up climbing
    MAX_REFINE_IMPROVEMENTS = 16

    # Name under which API requests register their template image
    API_TEMPLATE_NAME = "template"


class APIConstants:
    """Constants for API endpoints."""

    REQUEST_TIMEOUT_SECONDS = 30
    API_VERSION = "v1"


class SystemConstants:
    """Constants for system operations."""

    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    THREAD_POOL_SIZE = 4
    MAX_WORKER_THREADS = 10

    THUMBNAIL_WIDTH = 320
    THUMBNAIL_JPEG_QUALITY = 70


class Colors:
    """Standard colors for drawing operations (BGR format)."""

    GREEN = (0, 255, 0)
    RED = (0, 0, 255)
    CYAN = (255, 255, 0)
    ORANGE = (0, 165, 255)

    SUCCESS = GREEN
    ERROR = RED
    INFO = CYAN
