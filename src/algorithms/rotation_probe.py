"""
Rotation probe: correlate a template against a rotated search window.

The search window is rotated instead of the template so the template keeps
its size and never picks up interpolation borders. The best candidate's
center is then mapped back into the unrotated window.
"""

import logging

import cv2
import numpy as np

from algorithms.correlation import find_matches
from api.exceptions import ProcessingException
from domain_types import LocatorConstants, Point
from image.geometry import rotate_point
from models import CandidateMatch

logger = logging.getLogger(__name__)


def rotate_image(image: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotate image about its center, keeping its size.

    Args:
        image: Input image
        angle: Rotation angle in degrees (positive = counter-clockwise on screen)

    Returns:
        Rotated image; samples from outside the input are zero
    """
    h, w = image.shape[:2]
    center = ((w - 1) / 2.0, (h - 1) / 2.0)

    try:
        M = cv2.getRotationMatrix2D(center, angle, 1.0)
        return cv2.warpAffine(
            image,
            M,
            (w, h),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=0,
        )
    except cv2.error as e:
        raise ProcessingException("warpAffine", str(e)) from e


def probe(
    template: np.ndarray,
    crop: np.ndarray,
    angle: float,
    score_threshold: float = LocatorConstants.DEFAULT_SCORE_THRESHOLD,
    relative_threshold: float = LocatorConstants.DEFAULT_RELATIVE_THRESHOLD,
) -> CandidateMatch:
    """
    Look for the template in the crop rotated by `angle`.

    Args:
        template: Template image
        crop: Search window
        angle: Rotation applied to the window, in degrees
        score_threshold: Absolute score floor
        relative_threshold: Fraction of the surface maximum used as floor

    Returns:
        Best candidate with `center` in unrotated crop coordinates,
        or the sentinel (score 0) when nothing qualifies
    """
    rotated = rotate_image(crop, angle)
    matches = find_matches(template, rotated, score_threshold, relative_threshold)

    if not matches:
        return CandidateMatch.none()

    best = matches[0]
    h, w = crop.shape[:2]
    pivot = ((w - 1) / 2.0, (h - 1) / 2.0)
    cx, cy = rotate_point(best.center.x, best.center.y, pivot, angle)

    return best.model_copy(update={"center": Point(x=cx, y=cy)})
