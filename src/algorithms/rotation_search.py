"""
Coarse-to-fine angular search for the best template orientation.

Phase 1 probes the expected angle and, if nothing is found, two perturbed
angles one coarse step to either side. Phase 2 refines the best angle with a
bisection whose step is only halved after a failed probe in the negative
direction.
"""

import logging
import math
from typing import Callable, List, Optional

import numpy as np

from algorithms.rotation_probe import probe
from api.exceptions import InvalidInputException
from domain_types import LocatorConstants, SearchPhase
from models import CandidateMatch, SearchState

logger = logging.getLogger(__name__)

ProbeFn = Callable[[float], CandidateMatch]
StateHook = Callable[[SearchState], None]


def coarse_angles(initial_angle: float, rotate_step: float, angle_resolution: float) -> List[float]:
    """
    Ordered angles tried in the coarse phase.

    Args:
        initial_angle: Expected angle in degrees
        rotate_step: Coarse step in degrees
        angle_resolution: Required resolution in degrees

    Returns:
        [initial] or [initial, initial - step, initial + step]
    """
    angles = [initial_angle]
    if rotate_step > angle_resolution:
        angles.append(initial_angle - rotate_step)
        angles.append(initial_angle + rotate_step)
    return angles


def max_probe_count(rotate_step: float, angle_resolution: float) -> int:
    """Upper bound on probes made by run_search for the given steps."""
    halvings = max(0, math.ceil(math.log2(rotate_step / angle_resolution)))
    return 3 + 2 * halvings + LocatorConstants.MAX_REFINE_IMPROVEMENTS


def _notify(on_state: Optional[StateHook], state: SearchState) -> None:
    """Call the trace hook; its failures never reach the search."""
    if on_state is None:
        return
    try:
        on_state(state.model_copy(deep=True))
    except Exception as e:
        logger.warning(f"Search state hook failed: {e}")


def _record_probe(state: SearchState, angle: float, match: CandidateMatch) -> None:
    state.angle = angle
    state.score = match.score
    state.probes += 1


def run_search(
    probe_fn: ProbeFn,
    initial_angle: float = 0.0,
    rotate_step: float = LocatorConstants.DEFAULT_ROTATE_STEP,
    angle_resolution: float = LocatorConstants.DEFAULT_ANGLE_RESOLUTION,
    on_state: Optional[StateHook] = None,
) -> SearchState:
    """
    Drive the two-phase angular search.

    Args:
        probe_fn: Returns the best candidate for a given angle (score 0 if none)
        initial_angle: First angle to probe, in degrees
        rotate_step: Coarse step in degrees
        angle_resolution: Refinement stops once the step is at or below this
        on_state: Optional hook receiving a copy of the state after each probe

    Returns:
        Final SearchState; best_match.score == 0 means nothing was found

    Raises:
        InvalidInputException: If rotate_step or angle_resolution is not positive
    """
    if rotate_step <= 0 or angle_resolution <= 0:
        raise InvalidInputException(
            "rotate_step and angle_resolution must be positive",
            details={"rotate_step": rotate_step, "angle_resolution": angle_resolution},
        )

    state = SearchState(best_angle=initial_angle, phase=SearchPhase.COARSE)

    # Phase 1: expected angle, then perturbations until something is found
    for angle in coarse_angles(initial_angle, rotate_step, angle_resolution):
        match = probe_fn(angle)
        _record_probe(state, angle, match)
        state.best_match = match
        state.best_angle = angle
        _notify(on_state, state)
        if match.score > 0:
            break

    if state.best_match.score <= 0:
        logger.debug("No template match found")
        state.phase = SearchPhase.DONE
        return state

    logger.debug(
        f"Best match, first phase: angle={state.best_angle:.3f} score={state.best_match.score:.4f}"
    )

    # Phase 2: bisection around the best angle
    state.phase = SearchPhase.REFINE
    state.delta = rotate_step / 2.0
    state.direction = False

    while state.delta > angle_resolution:
        angle = state.best_angle + state.delta * (-1 if state.direction else 1)
        match = probe_fn(angle)
        _record_probe(state, angle, match)

        if match.score > state.best_match.score:
            state.best_match = match
            state.best_angle = angle
            state.improvements += 1
        else:
            if state.direction:
                state.delta = state.delta / 2.0
            state.direction = not state.direction

        _notify(on_state, state)

        if state.improvements >= LocatorConstants.MAX_REFINE_IMPROVEMENTS:
            logger.warning(
                f"Refinement stopped after {state.improvements} improvements "
                f"at angle {state.best_angle:.3f}"
            )
            break

    state.phase = SearchPhase.DONE
    logger.debug(
        f"Best match, second phase: angle={state.best_angle:.3f} "
        f"score={state.best_match.score:.4f} probes={state.probes}"
    )
    return state


def search(
    template: np.ndarray,
    crop: np.ndarray,
    initial_angle: float = 0.0,
    rotate_step: float = LocatorConstants.DEFAULT_ROTATE_STEP,
    angle_resolution: float = LocatorConstants.DEFAULT_ANGLE_RESOLUTION,
    score_threshold: float = LocatorConstants.DEFAULT_SCORE_THRESHOLD,
    relative_threshold: float = LocatorConstants.DEFAULT_RELATIVE_THRESHOLD,
    on_state: Optional[StateHook] = None,
) -> SearchState:
    """
    Search the orientation of `template` inside `crop`.

    Args:
        template: Template image
        crop: Square search window
        initial_angle: First angle to probe, in degrees
        rotate_step: Coarse step in degrees
        angle_resolution: Required resolution in degrees
        score_threshold: Absolute score floor
        relative_threshold: Fraction of the surface maximum used as floor
        on_state: Optional trace hook

    Returns:
        Final SearchState (best_match center is in crop coordinates)
    """

    def probe_at(angle: float) -> CandidateMatch:
        return probe(template, crop, angle, score_threshold, relative_threshold)

    return run_search(probe_at, initial_angle, rotate_step, angle_resolution, on_state)
