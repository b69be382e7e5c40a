"""
Pydantic models for data validation and serialization.

This module contains the Pydantic models used throughout the application for:
- Locator parameters (the tunable options of a search)
- Search data (candidate matches and the angular search state)
- Results (oriented rectangles and the match outcome)
- Request/response validation for the API layer

Note: This module uses 'models' (not 'schemas') for clarity,
as there are no database models in this project.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain_types import CropRegion, LocatorConstants, Point, SearchPhase

# ==============================================================================
# Parameters
# ==============================================================================


class LocateParams(BaseModel):
    """
    Tunable options of the rotation-invariant template locator.

    Validated at construction; unknown fields are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    template_source_name: Optional[str] = Field(
        None, description="Name of the upstream result supplying the template image"
    )
    score_threshold: float = Field(
        LocatorConstants.DEFAULT_SCORE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Absolute score floor below which no match is reported",
    )
    rotate_step: float = Field(
        LocatorConstants.DEFAULT_ROTATE_STEP,
        gt=0.0,
        le=LocatorConstants.MAX_ROTATE_STEP,
        description="Coarse angular step in degrees",
    )
    angle_resolution: float = Field(
        LocatorConstants.DEFAULT_ANGLE_RESOLUTION,
        gt=0.0,
        description="Bisection termination tolerance in degrees",
    )
    relative_threshold: float = Field(
        LocatorConstants.DEFAULT_RELATIVE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Fraction of the response maximum used as acceptance floor",
    )
    verbose_logging: bool = Field(False, description="Log every intermediate search state")

    def to_dict(self) -> Dict[str, Any]:
        """Export parameters to a plain dictionary."""
        return self.model_dump(exclude_none=True)


# ==============================================================================
# Search Models
# ==============================================================================


class CandidateMatch(BaseModel):
    """
    A correlation peak.

    x, y are the upper-left corner of the match in the image handed to the
    correlator. center is the match center; after a rotation probe it is
    expressed in the unrotated crop frame.
    """

    x: float = 0.0
    y: float = 0.0
    width: int = 0
    height: int = 0
    score: float = 0.0
    center: Optional[Point] = None

    @classmethod
    def none(cls) -> "CandidateMatch":
        """Sentinel for 'no match'."""
        return cls()

    @property
    def found(self) -> bool:
        return self.score > 0


class SearchState(BaseModel):
    """Progress of one angular search. Never shared between searches."""

    best_match: CandidateMatch = Field(default_factory=CandidateMatch.none)
    best_angle: float = 0.0
    phase: SearchPhase = SearchPhase.COARSE
    delta: float = 0.0
    direction: bool = False
    angle: float = 0.0
    score: float = 0.0
    probes: int = 0
    improvements: int = 0

    def describe(self) -> str:
        """One-line summary for trace logging."""
        return (
            f"phase={self.phase.value} probe#{self.probes} angle={self.angle:.3f} "
            f"score={self.score:.4f} best_angle={self.best_angle:.3f} "
            f"best_score={self.best_match.score:.4f} delta={self.delta:.4f} "
            f"direction={self.direction}"
        )


# ==============================================================================
# Result Models
# ==============================================================================


class RotatedRect(BaseModel):
    """Oriented rectangle (center, extent, rotation in degrees)."""

    center: Point
    width: float
    height: float
    angle: float

    def to_cv(self) -> tuple:
        """Convert to the ((cx, cy), (w, h), angle) tuple used by OpenCV."""
        return ((self.center.x, self.center.y), (self.width, self.height), self.angle)


class MatchResult(BaseModel):
    """Outcome of a locate call: a located part or an explicit no-match."""

    found: bool = Field(..., description="Whether the template was located")
    rect: Optional[RotatedRect] = Field(
        None, description="Located part in working image coordinates"
    )
    score: float = Field(0.0, description="Correlation score of the best match")
    crop: Optional[CropRegion] = Field(None, description="Search window that was used")
    fallback_center: Optional[Point] = Field(
        None, description="Crop center, for diagnostic drawing only when nothing was found"
    )
    error: Optional[str] = Field(None, description="Reason the search was aborted, if any")

    @classmethod
    def located(
        cls, rect: RotatedRect, score: float, crop: Optional[CropRegion] = None
    ) -> "MatchResult":
        return cls(found=True, rect=rect, score=score, crop=crop)

    @classmethod
    def not_found(
        cls,
        crop: Optional[CropRegion] = None,
        fallback_center: Optional[Point] = None,
        error: Optional[str] = None,
    ) -> "MatchResult":
        return cls(found=False, crop=crop, fallback_center=fallback_center, error=error)


# ==============================================================================
# API Models
# ==============================================================================


class LocateRequest(BaseModel):
    """Request for rotation-invariant template location"""

    image_base64: str = Field(..., description="Working image (PNG/JPEG, base64)")
    template_base64: str = Field(..., description="Template image (PNG/JPEG, base64)")
    params: Optional[LocateParams] = Field(
        None, description="Locator parameters (server defaults applied if None)"
    )
    orientation_hint: Optional[float] = Field(
        None, description="Expected rotation in degrees, used as the first probe angle"
    )
    timeout_ms: Optional[int] = Field(
        None, gt=0, description="Wall-clock budget; exceeded searches report no match"
    )
    fail_on_timeout: bool = Field(
        False, description="Answer 504 instead of a no-match result when the budget is exceeded"
    )


class LocateResponse(BaseModel):
    """Response for template location"""

    result: MatchResult
    thumbnail_base64: str = Field(..., description="Overlay thumbnail (JPEG, base64)")
    processing_time_ms: int = Field(..., description="Processing time in milliseconds")
