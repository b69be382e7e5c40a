"""
Rotation-invariant template location.

Crops a square window from the center of the working image, searches the
template's orientation inside it, and converts the best match into an
oriented rectangle in working image coordinates.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from algorithms.rotation_search import StateHook, search
from api.exceptions import InvalidInputException
from domain_types import CropRegion, LocatorConstants, Point
from models import LocateParams, MatchResult, RotatedRect, SearchState

logger = logging.getLogger(__name__)


def compute_crop_region(
    working_shape: Tuple[int, ...], template_shape: Tuple[int, ...]
) -> CropRegion:
    """
    Compute the centered square search window.

    The side is 2.5 times the template's larger dimension, limited to the
    working image, and made odd.

    Args:
        working_shape: Working image shape (rows, cols[, channels])
        template_shape: Template image shape (rows, cols[, channels])

    Returns:
        CropRegion inside the working image

    Raises:
        InvalidInputException: For degenerate geometry
    """
    wh, ww = working_shape[:2]
    th, tw = template_shape[:2]

    if ww <= 0 or wh <= 0 or tw <= 0 or th <= 0:
        raise InvalidInputException(
            "images must not be empty",
            details={"working": [ww, wh], "template": [tw, th]},
        )
    if tw > ww or th > wh:
        raise InvalidInputException(
            f"template {tw}x{th} is larger than working image {ww}x{wh}",
            details={"working": [ww, wh], "template": [tw, th]},
        )

    side = int(LocatorConstants.CROP_SCALE * max(tw, th))
    side = min(side, ww, wh)
    if side % 2 == 0:
        side -= 1

    if side <= 0:
        raise InvalidInputException(f"computed crop side {side} is not positive")
    if tw > side or th > side:
        raise InvalidInputException(
            f"template {tw}x{th} does not fit in the {side}px search window",
            details={"side": side, "template": [tw, th]},
        )

    return CropRegion(x=(ww - side) // 2, y=(wh - side) // 2, side=side)


def extract_crop(image: np.ndarray, crop: CropRegion) -> np.ndarray:
    """Return a view of the crop region."""
    return image[crop.y : crop.y + crop.side, crop.x : crop.x + crop.side]


def _with_trace(on_state: Optional[StateHook]) -> StateHook:
    """Wrap a state hook so every state is also logged."""

    def hook(state: SearchState) -> None:
        logger.info(f"Search state: {state.describe()}")
        if on_state is not None:
            on_state(state)

    return hook


def locate(
    working_image: np.ndarray,
    template_image: np.ndarray,
    params: Optional[LocateParams] = None,
    orientation_hint: Optional[float] = None,
    on_state: Optional[StateHook] = None,
) -> MatchResult:
    """
    Locate the template in the working image.

    Args:
        working_image: Image to search
        template_image: Template to find
        params: Locator parameters (defaults if None)
        orientation_hint: Expected rotation in degrees (0 if None)
        on_state: Optional hook receiving each intermediate search state

    Returns:
        MatchResult with the oriented rectangle, or a no-match result

    Raises:
        InvalidInputException: For degenerate geometry
        ProcessingException: If OpenCV fails on the buffers
    """
    params = params or LocateParams()
    crop = compute_crop_region(working_image.shape, template_image.shape)
    crop_image = extract_crop(working_image, crop)

    initial_angle = float(orientation_hint) if orientation_hint is not None else 0.0

    hook = _with_trace(on_state) if params.verbose_logging else on_state

    state = search(
        template_image,
        crop_image,
        initial_angle=initial_angle,
        rotate_step=params.rotate_step,
        angle_resolution=params.angle_resolution,
        score_threshold=params.score_threshold,
        relative_threshold=params.relative_threshold,
        on_state=hook,
    )

    th, tw = template_image.shape[:2]
    best = state.best_match

    if best.score > 0 and best.center is not None:
        cx, cy = crop.to_image_coordinates(best.center.x, best.center.y)
        rect = RotatedRect(
            center=Point(x=cx, y=cy),
            width=float(tw),
            height=float(th),
            angle=state.best_angle,
        )
        logger.debug(
            f"Located template at ({cx:.1f}, {cy:.1f}) angle={state.best_angle:.3f} "
            f"score={best.score:.4f}"
        )
        return MatchResult.located(rect, best.score, crop)

    fx, fy = crop.to_image_coordinates(*crop.pivot)
    logger.debug(f"Template not found in crop {crop.to_dict()}")
    return MatchResult.not_found(crop=crop, fallback_center=Point(x=fx, y=fy))
