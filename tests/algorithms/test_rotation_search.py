"""
Tests for algorithms.rotation_search module.

The search is driven by scripted probe functions so the visited angles can be
checked exactly.
"""

import numpy as np
import pytest

from algorithms.rotation_search import coarse_angles, max_probe_count, run_search
from api.exceptions import InvalidInputException
from domain_types import LocatorConstants, Point, SearchPhase
from models import CandidateMatch


def make_match(score: float) -> CandidateMatch:
    if score <= 0:
        return CandidateMatch.none()
    return CandidateMatch(
        x=10, y=10, width=20, height=20, score=score, center=Point(x=19.5, y=19.5)
    )


class RecordingProbe:
    """Probe function returning scripted scores and recording the angles asked for."""

    def __init__(self, score_fn):
        self.score_fn = score_fn
        self.angles = []

    def __call__(self, angle: float) -> CandidateMatch:
        self.angles.append(angle)
        return make_match(self.score_fn(angle))


class TestCoarseAngles:
    """Tests for the coarse phase angle list."""

    def test_perturbation_order(self):
        """Expected angle first, then one step below, then one step above."""
        assert coarse_angles(10.0, 22.5, 1.0) == [10.0, -12.5, 32.5]

    def test_no_perturbation_when_step_within_resolution(self):
        """A step at or below the resolution only probes the expected angle."""
        assert coarse_angles(5.0, 1.0, 1.0) == [5.0]
        assert coarse_angles(5.0, 0.5, 1.0) == [5.0]

    def test_max_probe_count(self):
        """Bound covers the coarse phase, two probes per halving and the improvement cap."""
        assert max_probe_count(22.5, 1.0) == 3 + 2 * 5 + LocatorConstants.MAX_REFINE_IMPROVEMENTS
        assert max_probe_count(1.0, 1.0) == 3 + LocatorConstants.MAX_REFINE_IMPROVEMENTS


class TestRunSearch:
    """Tests for the two-phase search."""

    def test_asymmetric_bisection_sequence(self):
        """Step is halved only after a failed probe in the negative direction."""
        probe_fn = RecordingProbe(lambda a: 1.0 - abs(a - 30.0) / 100.0)

        state = run_search(probe_fn, initial_angle=0.0, rotate_step=22.5, angle_resolution=1.0)

        assert probe_fn.angles == [
            0.0,
            11.25,
            22.5,
            33.75,
            45.0,
            22.5,
            39.375,
            28.125,
            22.5,
            30.9375,
            33.75,
            28.125,
            32.34375,
            29.53125,
            28.125,
        ]
        assert state.best_angle == pytest.approx(29.53125)
        assert state.improvements == 6
        assert state.probes == 15
        assert state.phase == SearchPhase.DONE
        assert state.delta <= 1.0

    def test_coarse_fallback_order(self):
        """Perturbed angles are probed until one yields a match."""
        probe_fn = RecordingProbe(lambda a: 0.9 if a == 22.5 else 0.0)

        state = run_search(probe_fn, initial_angle=0.0, rotate_step=22.5, angle_resolution=1.0)

        assert probe_fn.angles[:3] == [0.0, -22.5, 22.5]
        assert probe_fn.angles[3:] == [
            33.75,
            11.25,
            28.125,
            16.875,
            25.3125,
            19.6875,
            23.90625,
            21.09375,
        ]
        assert state.best_angle == 22.5
        assert state.best_match.score == pytest.approx(0.9)

    def test_coarse_stops_at_first_match(self):
        """A match at the expected angle skips the perturbations."""
        probe_fn = RecordingProbe(lambda a: 0.5 if a == 0.0 else 0.0)

        run_search(probe_fn, initial_angle=0.0, rotate_step=22.5, angle_resolution=1.0)

        assert -22.5 not in probe_fn.angles[:3]
        assert probe_fn.angles[1] == 11.25

    def test_nothing_found(self):
        """Three empty coarse probes end the search without refinement."""
        probe_fn = RecordingProbe(lambda a: 0.0)

        state = run_search(probe_fn, initial_angle=5.0, rotate_step=22.5, angle_resolution=1.0)

        assert probe_fn.angles == [5.0, -17.5, 27.5]
        assert state.best_match.score == 0
        assert state.best_match.center is None
        assert state.phase == SearchPhase.DONE

    def test_single_probe_when_step_within_resolution(self):
        """No perturbation and no refinement when rotate_step <= angle_resolution."""
        probe_fn = RecordingProbe(lambda a: 0.7)

        state = run_search(probe_fn, initial_angle=12.0, rotate_step=1.0, angle_resolution=1.0)

        assert probe_fn.angles == [12.0]
        assert state.best_angle == 12.0

    def test_initial_angle_is_probed_first(self):
        """The orientation hint is the first probe."""
        probe_fn = RecordingProbe(lambda a: 0.6)

        run_search(probe_fn, initial_angle=-73.0)

        assert probe_fn.angles[0] == -73.0

    def test_always_improving_probe_terminates(self):
        """Ever increasing scores stop at the improvement cap."""
        counter = iter(range(1, 10000))
        probe_fn = RecordingProbe(lambda a: next(counter) / 10000.0)

        state = run_search(probe_fn, initial_angle=0.0, rotate_step=22.5, angle_resolution=1.0)

        assert state.improvements == LocatorConstants.MAX_REFINE_IMPROVEMENTS
        assert state.probes == 1 + LocatorConstants.MAX_REFINE_IMPROVEMENTS
        assert state.probes <= max_probe_count(22.5, 1.0)

    @pytest.mark.parametrize(
        "rotate_step,angle_resolution",
        [(22.5, 1.0), (45.0, 0.1), (10.0, 2.0), (180.0, 0.01)],
    )
    def test_probe_count_bound_with_random_scores(self, rotate_step, angle_resolution):
        """Probe count never exceeds the bound."""
        rng = np.random.default_rng(42)
        probe_fn = RecordingProbe(lambda a: float(rng.random()))

        state = run_search(
            probe_fn, initial_angle=0.0, rotate_step=rotate_step, angle_resolution=angle_resolution
        )

        assert len(probe_fn.angles) == state.probes
        assert state.probes <= max_probe_count(rotate_step, angle_resolution)

    @pytest.mark.parametrize("rotate_step,angle_resolution", [(0.0, 1.0), (22.5, 0.0), (-5, 1)])
    def test_invalid_steps(self, rotate_step, angle_resolution):
        """Non-positive steps are rejected."""
        with pytest.raises(InvalidInputException):
            run_search(
                RecordingProbe(lambda a: 0.5),
                rotate_step=rotate_step,
                angle_resolution=angle_resolution,
            )


class TestStateHook:
    """Tests for the diagnostic state hook."""

    def test_hook_called_per_probe(self):
        """Hook sees one state per probe, in order."""
        states = []
        probe_fn = RecordingProbe(lambda a: 1.0 - abs(a - 30.0) / 100.0)

        final = run_search(probe_fn, on_state=states.append)

        assert len(states) == final.probes
        assert [s.angle for s in states] == probe_fn.angles
        assert states[0].phase == SearchPhase.COARSE
        assert states[-1].phase == SearchPhase.REFINE

    def test_hook_receives_copies(self):
        """Mutating a received state does not affect the search."""

        def tamper(state):
            state.best_angle = 999.0
            state.delta = 0.0

        probe_fn = RecordingProbe(lambda a: 1.0 - abs(a - 30.0) / 100.0)

        state = run_search(probe_fn, on_state=tamper)

        assert state.best_angle == pytest.approx(29.53125)

    def test_failing_hook_does_not_abort_search(self, caplog):
        """Hook exceptions are logged and the search continues."""

        def broken(state):
            raise RuntimeError("trace sink unavailable")

        probe_fn = RecordingProbe(lambda a: 1.0 - abs(a - 30.0) / 100.0)

        state = run_search(probe_fn, on_state=broken)

        assert state.best_angle == pytest.approx(29.53125)
        assert "Search state hook failed" in caplog.text
