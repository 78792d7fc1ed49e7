"""
Tests for distance guidance and the zoom/focus controller.
"""

import unittest

from src.farmatag.config import FocusConfig, ZoomConfig
from src.farmatag.core.controller import FOCUS_EXHAUSTED_MESSAGE, ZoomFocusController
from src.farmatag.core.distance import DistanceGuidanceEngine, ThresholdDistanceClassifier
from src.farmatag.core.scheduler import VirtualScheduler
from src.farmatag.models import (
    DeviceCapabilities,
    DistanceMetric,
    FocusMode,
    FocusRange,
    GuidanceState,
    LockFocus,
    SetFocusMode,
    SetLensPosition,
    SetZoom,
)

CENTER = (0.5, 0.5)


class TestThresholdDistanceClassifier(unittest.TestCase):
    """Test metric-to-state mapping."""

    def setUp(self):
        self.classify = ThresholdDistanceClassifier()

    def test_too_far(self):
        """Test a tiny code area."""
        self.assertEqual(self.classify(DistanceMetric(0.001)), GuidanceState.TOO_FAR)

    def test_too_close(self):
        """Test a code filling most of the frame."""
        self.assertEqual(self.classify(DistanceMetric(0.4)), GuidanceState.TOO_CLOSE)

    def test_perfect(self):
        """Test an in-range, sharp code."""
        self.assertEqual(self.classify(DistanceMetric(0.05, 200.0)), GuidanceState.PERFECT)

    def test_blur_reads_as_too_close(self):
        """Test an in-range but blurry code."""
        self.assertEqual(self.classify(DistanceMetric(0.05, 10.0)), GuidanceState.TOO_CLOSE)

    def test_unknown(self):
        """Test missing metrics."""
        self.assertEqual(self.classify(None), GuidanceState.UNKNOWN)
        self.assertEqual(self.classify(DistanceMetric()), GuidanceState.UNKNOWN)

    def test_state_passthrough(self):
        """Test a precomputed state is returned unchanged."""
        self.assertEqual(self.classify(GuidanceState.PERFECT), GuidanceState.PERFECT)


class TestDistanceGuidanceEngine(unittest.TestCase):
    """Test transition-only reporting."""

    def test_reports_transitions_only(self):
        """Test repeated states are not reported again."""
        engine = DistanceGuidanceEngine()

        self.assertEqual(engine.update(DistanceMetric(0.001)), GuidanceState.TOO_FAR)
        self.assertIsNone(engine.update(DistanceMetric(0.002)))
        self.assertIsNone(engine.update(DistanceMetric(0.003)))
        self.assertEqual(engine.update(DistanceMetric(0.05)), GuidanceState.PERFECT)
        self.assertEqual(engine.state, GuidanceState.PERFECT)

    def test_starts_analyzing(self):
        """Test the initial state."""
        self.assertEqual(DistanceGuidanceEngine().state, GuidanceState.ANALYZING)

    def test_reset(self):
        """Test reset re-arms the current state."""
        engine = DistanceGuidanceEngine()
        engine.update(GuidanceState.TOO_FAR)

        engine.reset()

        self.assertEqual(engine.state, GuidanceState.ANALYZING)
        self.assertEqual(engine.update(GuidanceState.TOO_FAR), GuidanceState.TOO_FAR)

    def test_custom_classifier(self):
        """Test any callable can classify."""
        engine = DistanceGuidanceEngine(lambda metric: GuidanceState.TOO_CLOSE)

        self.assertEqual(engine.update(object()), GuidanceState.TOO_CLOSE)


class ControllerHarness:
    """Controller wired to a virtual clock that records every output."""

    def __init__(self, capabilities=None, zoom=None, focus=None):
        self.scheduler = VirtualScheduler()
        self.commands = []
        self.messages = []
        self.delays = []
        self.controller = ZoomFocusController(
            capabilities or DeviceCapabilities(max_zoom_factor=6.0, supports_lens_position=True),
            self.defer,
            zoom=zoom,
            focus=focus,
        )

    def defer(self, delay, action):
        self.delays.append(delay)
        self.scheduler.call_later(delay, lambda: self.collect(action(self.scheduler.now())))

    def collect(self, output):
        self.commands.extend(output.commands)
        self.messages.extend(output.messages)
        return output

    def of(self, kind):
        return [c for c in self.commands if isinstance(c, kind)]


class TestZoom(unittest.TestCase):
    """Test zoom reactions to guidance transitions."""

    def test_zoom_in_with_focus_coordination(self):
        """Test TOO_FAR pre-sets near focus then ramps zoom in."""
        h = ControllerHarness()

        output = h.controller.on_guidance_transition(GuidanceState.TOO_FAR, 0.0)

        self.assertEqual(output.commands, [
            SetFocusMode(FocusMode.CONTINUOUS_AUTO, CENTER, FocusRange.NEAR),
            SetZoom(1.3, 2.5),
        ])
        self.assertAlmostEqual(h.controller.zoom_factor, 1.3)
        self.assertEqual(h.controller.budget.zoom_adjustment_count, 1)
        self.assertEqual(h.delays, [0.8])

    def test_zoom_out_clamped_to_minimum(self):
        """Test TOO_CLOSE at 1x stays at 1x."""
        h = ControllerHarness()

        output = h.controller.on_guidance_transition(GuidanceState.TOO_CLOSE, 0.0)

        self.assertEqual(output.commands[-1], SetZoom(1.0, 2.5))

    def test_zoom_in_clamped_to_maximum(self):
        """Test the device maximum is never exceeded."""
        h = ControllerHarness()
        h.controller.zoom_factor = 5.0

        output = h.controller.on_guidance_transition(GuidanceState.TOO_FAR, 0.0)

        self.assertEqual(output.commands[-1].factor, 6.0)

    def test_zoom_budget(self):
        """Test no more than max_adjustments zoom commands per session."""
        h = ControllerHarness()
        states = [GuidanceState.TOO_FAR, GuidanceState.TOO_CLOSE] * 10

        for i, state in enumerate(states):
            h.collect(h.controller.on_guidance_transition(state, float(i)))

        self.assertEqual(len(h.of(SetZoom)), 10)
        self.assertEqual(h.controller.budget.zoom_adjustment_count, 10)

    def test_zoom_stays_in_range(self):
        """Test every zoom command stays within the device range."""
        h = ControllerHarness(zoom=ZoomConfig(max_adjustments=50))

        for i in range(30):
            h.collect(h.controller.on_guidance_transition(GuidanceState.TOO_FAR, float(i)))

        factors = [c.factor for c in h.of(SetZoom)]
        self.assertTrue(all(1.0 <= f <= 6.0 for f in factors))
        self.assertEqual(factors[-1], 6.0)

    def test_no_zoom_range(self):
        """Test a fixed-zoom device never receives zoom commands."""
        h = ControllerHarness(capabilities=DeviceCapabilities())

        output = h.controller.on_guidance_transition(GuidanceState.TOO_FAR, 0.0)

        self.assertEqual(output.commands, [])
        self.assertEqual(h.controller.budget.zoom_adjustment_count, 0)

    def test_large_change_uses_slow_ramp(self):
        """Test a change above the threshold ramps slowly and waits longer."""
        h = ControllerHarness()

        output = h.controller.apply_zoom(3.0, coordinate_focus=True)

        self.assertEqual(output.commands[-1], SetZoom(3.0, 1.5))
        self.assertEqual(h.delays, [1.2])

    def test_uncoordinated_zoom(self):
        """Test apply_zoom without focus coordination."""
        h = ControllerHarness()

        output = h.controller.apply_zoom(1.5)

        self.assertEqual(output.commands, [SetZoom(1.5, 2.5)])
        self.assertEqual(h.delays, [])

    def test_post_zoom_refocus(self):
        """Test the deferred refocus fires after the zoom settles."""
        h = ControllerHarness()
        h.controller.on_guidance_transition(GuidanceState.TOO_FAR, 0.0)

        h.scheduler.advance_to(0.79)
        self.assertEqual(h.commands, [])

        h.scheduler.advance_to(0.8)
        self.assertEqual(h.commands, [
            SetFocusMode(FocusMode.CONTINUOUS_AUTO, CENTER, FocusRange.NEAR)
        ])
        self.assertEqual(h.controller.budget.focus_retry_count, 1)

    def test_command_failure_rolls_back_zoom(self):
        """Test a rejected zoom restores the previous factor."""
        h = ControllerHarness()
        output = h.controller.on_guidance_transition(GuidanceState.TOO_FAR, 0.0)

        h.controller.on_command_failed(output.commands[-1])

        self.assertEqual(h.controller.zoom_factor, 1.0)


class TestFocus(unittest.TestCase):
    """Test focus adjustments, lock and budgets."""

    def test_perfect_locks_focus(self):
        """Test PERFECT locks focus and enters manual mode."""
        h = ControllerHarness()

        output = h.controller.on_guidance_transition(GuidanceState.PERFECT, 0.0)

        self.assertEqual(output.commands, [LockFocus()])
        self.assertTrue(h.controller.budget.is_manual_focus_mode)
        self.assertEqual(h.controller.focus_mode, FocusMode.LOCKED)

    def test_perfect_without_lock_support(self):
        """Test devices without a lock mode get no command."""
        caps = DeviceCapabilities(
            max_zoom_factor=6.0,
            supported_focus_modes=frozenset({FocusMode.CONTINUOUS_AUTO, FocusMode.AUTO}),
        )
        h = ControllerHarness(capabilities=caps)

        output = h.controller.on_guidance_transition(GuidanceState.PERFECT, 0.0)

        self.assertEqual(output.commands, [])

    def test_other_states_do_nothing(self):
        """Test UNKNOWN and ANALYZING produce no commands."""
        h = ControllerHarness()

        for state in (GuidanceState.UNKNOWN, GuidanceState.ANALYZING):
            self.assertEqual(h.controller.on_guidance_transition(state, 0.0).commands, [])

    def test_adjustment_interval(self):
        """Test focus adjustments closer than the interval are skipped."""
        h = ControllerHarness()

        first = h.controller.attempt_focus_adjustment("test", 0.0)
        second = h.controller.attempt_focus_adjustment("test", 1.0)
        third = h.controller.attempt_focus_adjustment("test", 2.0)

        self.assertEqual(len(first.commands), 1)
        self.assertEqual(second.commands, [])
        self.assertEqual(len(third.commands), 1)
        self.assertEqual(h.controller.budget.focus_retry_count, 2)

    def test_retry_budget(self):
        """Test the retry budget caps adjustments and reports exhaustion once."""
        h = ControllerHarness()

        for t in range(0, 20, 2):
            h.collect(h.controller.attempt_focus_adjustment("test", float(t)))

        self.assertEqual(len(h.commands), 5)
        self.assertEqual(h.messages, [FOCUS_EXHAUSTED_MESSAGE])

    def test_single_shot_af_after_lock(self):
        """Test adjustments in manual mode use single-shot AF."""
        h = ControllerHarness()
        h.controller.attempt_focus_lock()

        output = h.controller.attempt_focus_adjustment("test", 0.0)

        self.assertEqual(output.commands, [SetFocusMode(FocusMode.AUTO, CENTER)])

    def test_focus_at_point(self):
        """Test moving the point of interest."""
        h = ControllerHarness()

        output = h.controller.focus_at_point((0.2, 0.8))

        self.assertEqual(output.commands, [SetFocusMode(FocusMode.CONTINUOUS_AUTO, (0.2, 0.8))])

    def test_focus_at_point_ignored_when_locked(self):
        """Test a locked lens keeps its point."""
        h = ControllerHarness()
        h.controller.attempt_focus_lock()

        self.assertEqual(h.controller.focus_at_point((0.2, 0.8)).commands, [])


    def test_focus_at_point_after_zoom_unlocks(self):
        """Test the point of interest moves again once a zoom resumes continuous AF."""
        h = ControllerHarness()
        h.controller.attempt_focus_lock()
        h.controller.on_guidance_transition(GuidanceState.TOO_FAR, 0.0)

        output = h.controller.focus_at_point((0.2, 0.8))

        self.assertEqual(output.commands, [SetFocusMode(FocusMode.CONTINUOUS_AUTO, (0.2, 0.8))])

    def test_rejected_lens_position_rolls_back(self):
        """Test a rejected lens position clears manual focus mode."""
        h = ControllerHarness()
        output = h.controller._attempt_manual_focus(0.85, 0.0)

        h.controller.on_command_failed(output.commands[0])

        self.assertFalse(h.controller.budget.is_manual_focus_mode)
        self.assertEqual(h.controller.focus_mode, FocusMode.CONTINUOUS_AUTO)
        self.assertEqual(
            h.controller.attempt_focus_adjustment("test", 5.0).commands,
            [SetFocusMode(FocusMode.CONTINUOUS_AUTO, CENTER, FocusRange.NEAR)],
        )


class TestBlurCorrection(unittest.TestCase):
    """Test the autofocus + manual lens sweep sequence."""

    def test_full_sweep(self):
        """Test a persistent blur runs the sweep until the budget is spent."""
        h = ControllerHarness()

        h.collect(h.controller.on_blur(10.0, 0.0))
        h.scheduler.advance_to(10.0)

        lens = [c.position for c in h.of(SetLensPosition)]
        self.assertEqual(lens, [0.85, 0.75, 0.9, 0.7])
        self.assertEqual(h.controller.budget.focus_retry_count, 5)
        # Back to continuous AF once, after the budget ran out
        self.assertEqual(
            h.commands[-1], SetFocusMode(FocusMode.CONTINUOUS_AUTO, None, FocusRange.NEAR)
        )
        self.assertFalse(h.controller.budget.is_manual_focus_mode)

    def test_blur_cleared_by_autofocus(self):
        """Test no sweep when sharpness recovered."""
        h = ControllerHarness()

        h.collect(h.controller.on_blur(10.0, 0.0))
        h.controller.latest_sharpness = 200.0
        h.scheduler.advance_to(10.0)

        self.assertEqual(h.of(SetLensPosition), [])
        self.assertEqual(len(h.commands), 1)

    def test_blur_too_soon_after_adjustment(self):
        """Test blur right after a focus adjustment is ignored."""
        h = ControllerHarness()
        h.controller.attempt_focus_adjustment("test", 0.0)

        output = h.controller.on_blur(10.0, 1.0)

        self.assertEqual(output.commands, [])
        self.assertEqual(h.scheduler.pending, 0)

    def test_no_lens_control(self):
        """Test devices without lens positioning skip the sweep."""
        h = ControllerHarness(capabilities=DeviceCapabilities(max_zoom_factor=6.0))

        h.collect(h.controller.on_blur(10.0, 0.0))
        h.scheduler.advance_to(10.0)

        self.assertEqual(h.of(SetLensPosition), [])

    def test_custom_positions(self):
        """Test configured lens positions."""
        focus = FocusConfig(manual_lens_positions=[0.4], max_retries=10)
        h = ControllerHarness(focus=focus)

        h.collect(h.controller.on_blur(10.0, 0.0))
        h.scheduler.advance_to(10.0)

        self.assertEqual(h.of(SetLensPosition), [SetLensPosition(0.4)])


class TestReset(unittest.TestCase):
    """Test controller reset."""

    def test_reset_restores_defaults(self):
        """Test budgets refill and optics return to 1x continuous AF."""
        h = ControllerHarness()
        for i in range(3):
            h.controller.on_guidance_transition(GuidanceState.TOO_FAR, float(i))
        h.controller.attempt_focus_lock()

        output = h.controller.reset()

        self.assertEqual(output.commands, [
            SetFocusMode(FocusMode.CONTINUOUS_AUTO, None, FocusRange.NONE),
            SetZoom(1.0, 2.5),
        ])
        budget = h.controller.budget
        self.assertEqual(budget.zoom_adjustment_count, 0)
        self.assertEqual(budget.focus_retry_count, 0)
        self.assertFalse(budget.is_manual_focus_mode)
        self.assertEqual(h.controller.zoom_factor, 1.0)

    def test_reset_without_zoom(self):
        """Test a fixed-zoom device only gets the focus reset."""
        h = ControllerHarness(capabilities=DeviceCapabilities())

        output = h.controller.reset()

        self.assertEqual(output.commands, [
            SetFocusMode(FocusMode.CONTINUOUS_AUTO, None, FocusRange.NONE)
        ])


if __name__ == "__main__":
    unittest.main()
