"""
Normalized cross-correlation with local maxima extraction.

Correlates a template against a region with OpenCV's TM_CCOEFF_NORMED and
turns the response surface into ranked candidate matches:
- Acceptance range relative to the surface maximum
- Non-maximum suppression over a fixed neighborhood
- Stable ordering by descending score
"""

import logging
from typing import List, Tuple

import cv2
import numpy as np

from api.exceptions import InvalidInputException, ProcessingException
from domain_types import LocatorConstants, Point
from image.converters import ensure_grayscale
from models import CandidateMatch

logger = logging.getLogger(__name__)


def _prepare_pair(template: np.ndarray, region: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Bring template and region to single channel buffers of the same dtype."""
    template_gray = ensure_grayscale(template)
    region_gray = ensure_grayscale(region)

    if template_gray.dtype != region_gray.dtype:
        template_gray = template_gray.astype(np.float32)
        region_gray = region_gray.astype(np.float32)

    return template_gray, region_gray


def correlate(template: np.ndarray, region: np.ndarray) -> np.ndarray:
    """
    Compute the normalized cross-correlation response surface.

    Args:
        template: Template image
        region: Image to search (at least as large as the template)

    Returns:
        Float32 surface of shape (H - h + 1, W - w + 1)

    Raises:
        InvalidInputException: If the template does not fit in the region
        ProcessingException: If OpenCV rejects the buffers
    """
    th, tw = template.shape[:2]
    rh, rw = region.shape[:2]
    if tw == 0 or th == 0:
        raise InvalidInputException("template image is empty")
    if tw > rw or th > rh:
        raise InvalidInputException(
            f"template {tw}x{th} does not fit in search region {rw}x{rh}",
            details={"template": [tw, th], "region": [rw, rh]},
        )

    try:
        template_gray, region_gray = _prepare_pair(template, region)
    except cv2.error as e:
        raise ProcessingException("cvtColor", str(e)) from e

    try:
        return cv2.matchTemplate(region_gray, template_gray, cv2.TM_CCOEFF_NORMED)
    except cv2.error as e:
        raise ProcessingException("matchTemplate", str(e)) from e


def find_local_maxima(
    surface: np.ndarray,
    range_min: float,
    range_max: float,
    radius: int = LocatorConstants.SUPPRESSION_RADIUS,
) -> List[Tuple[int, int]]:
    """
    Find local maxima of a response surface inside a value range.

    A point qualifies when no point within `radius` has a strictly greater
    value and its own value lies in [range_min, range_max].

    Args:
        surface: 2D response surface
        range_min: Lowest accepted value
        range_max: Highest accepted value
        radius: Suppression radius in pixels

    Returns:
        List of (x, y) positions in row-major order
    """
    if range_min > range_max or surface.size == 0:
        return []

    size = 2 * radius + 1
    kernel = np.ones((size, size), np.uint8)
    neighborhood_max = cv2.dilate(surface, kernel)

    mask = (surface >= neighborhood_max) & (surface >= range_min) & (surface <= range_max)

    return [(int(x), int(y)) for y, x in np.argwhere(mask)]


def find_matches(
    template: np.ndarray,
    region: np.ndarray,
    score_threshold: float = LocatorConstants.DEFAULT_SCORE_THRESHOLD,
    relative_threshold: float = LocatorConstants.DEFAULT_RELATIVE_THRESHOLD,
) -> List[CandidateMatch]:
    """
    Find candidate matches of a template inside a region.

    Candidates are the local maxima of the correlation surface with a score in
    [max(score_threshold, relative_threshold * max), max].

    Args:
        template: Template image
        region: Image to search
        score_threshold: Absolute score floor
        relative_threshold: Fraction of the surface maximum used as floor

    Returns:
        Candidates sorted by score, best first (empty if none qualify)
    """
    surface = correlate(template, region)
    _, max_val, _, _ = cv2.minMaxLoc(surface)

    range_min = max(score_threshold, relative_threshold * max_val)
    range_max = max_val

    th, tw = template.shape[:2]
    matches = []
    for x, y in find_local_maxima(surface, range_min, range_max):
        matches.append(
            CandidateMatch(
                x=x,
                y=y,
                width=tw,
                height=th,
                score=float(surface[y, x]),
                center=Point(x=x + (tw - 1) / 2.0, y=y + (th - 1) / 2.0),
            )
        )

    # sorted() is stable: equal scores keep row-major order
    return sorted(matches, key=lambda m: m.score, reverse=True)
