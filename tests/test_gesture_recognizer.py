"""
Tests for the gesture classifier state machine.

Synthetic hands are built so every non-thumb fingertip sits a chosen
distance from the wrist; see ``conftest.build_hand``.
"""

import numpy as np
import pytest

from tannen.app_state import NEUTRAL_ROTATION, ApplicationState, Mode
from tannen.gesture_recognizer import GestureClassifier, Pose

PHOTOS = ("photo-0", "photo-1", "photo-2")


@pytest.fixture
def classifier():
    return GestureClassifier(rng=np.random.default_rng(0))


class TestPoseClassification:
    def test_fist(self, classifier, hand):
        reading = classifier.classify(hand(0.05))
        assert reading.pose is Pose.FIST
        assert reading.spread == pytest.approx(0.05)

    def test_open(self, classifier, hand):
        assert classifier.classify(hand(0.5)).pose is Pose.OPEN

    def test_pinch_in_dead_band(self, classifier, hand):
        reading = classifier.classify(hand(0.25, pinch_distance=0.02))
        assert reading.pose is Pose.PINCH
        assert reading.pinch == pytest.approx(0.02)

    def test_fist_beats_pinch(self, classifier, hand):
        assert classifier.classify(hand(0.05, pinch_distance=0.01)).pose is Pose.FIST

    def test_ambiguous(self, classifier, hand):
        assert classifier.classify(hand(0.25, pinch_distance=0.2)).pose is Pose.AMBIGUOUS


class TestModeTransitions:
    def test_fist_forms_tree(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        assert classifier.update(state, hand(0.05), PHOTOS) is Mode.FORMED

    def test_open_hand_scatters(self, classifier, hand):
        state = ApplicationState(Mode.FORMED)
        assert classifier.update(state, hand(0.5), PHOTOS) is Mode.SCATTERED

    def test_pinch_focuses_a_photo(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        mode = classifier.update(state, hand(0.25, pinch_distance=0.02), PHOTOS)
        assert mode is Mode.FOCUS
        assert state.focused_id in PHOTOS

    def test_pinch_without_photos_holds(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        assert classifier.update(state, hand(0.25, pinch_distance=0.02), ()) is Mode.SCATTERED
        assert state.focused_id is None

    def test_pinch_while_focused_keeps_target(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.25, pinch_distance=0.02), PHOTOS)
        first = state.focused_id
        for _ in range(20):
            classifier.update(state, hand(0.25, pinch_distance=0.02), PHOTOS)
        assert state.focused_id == first

    def test_ambiguous_holds_prior_mode(self, classifier, hand):
        for mode in (Mode.SCATTERED, Mode.FORMED):
            state = ApplicationState(mode)
            assert classifier.update(state, hand(0.25), PHOTOS) is mode

    def test_no_hand_is_noop(self, classifier):
        state = ApplicationState(Mode.FORMED)
        assert classifier.update(state, None, PHOTOS) is Mode.FORMED

    def test_repeated_fists_are_idempotent(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        changes = []
        original = state.set_mode

        def spy(mode, source="ui"):
            changed = original(mode, source)
            changes.append(changed)
            return changed

        state.set_mode = spy
        for _ in range(10):
            assert classifier.update(state, hand(0.05), PHOTOS) is Mode.FORMED
        assert changes[0] is True
        assert not any(changes[1:])

    def test_open_hand_leaves_focus(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.25, pinch_distance=0.02), PHOTOS)
        classifier.update(state, hand(0.5), PHOTOS)
        assert state.mode is Mode.SCATTERED
        assert state.focused_id is None

    def test_focus_choice_uses_injected_rng(self, hand):
        picks = set()
        for seed in range(3):
            a = GestureClassifier(rng=np.random.default_rng(seed))
            b = GestureClassifier(rng=np.random.default_rng(seed))
            sa, sb = ApplicationState(), ApplicationState()
            a.update(sa, hand(0.25, pinch_distance=0.02), PHOTOS)
            b.update(sb, hand(0.25, pinch_distance=0.02), PHOTOS)
            assert sa.focused_id == sb.focused_id
            picks.add(sa.focused_id)
        assert picks <= set(PHOTOS)


class TestDebounce:
    def test_confidence_frames(self, hand):
        classifier = GestureClassifier(confidence_frames=3)
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.05))
        classifier.update(state, hand(0.05))
        assert state.mode is Mode.SCATTERED
        classifier.update(state, hand(0.05))
        assert state.mode is Mode.FORMED

    def test_interrupted_streak_restarts(self, hand):
        classifier = GestureClassifier(confidence_frames=2)
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.05))
        classifier.update(state, None)
        classifier.update(state, hand(0.05))
        assert state.mode is Mode.SCATTERED
        classifier.update(state, hand(0.05))
        assert state.mode is Mode.FORMED

    def test_bad_arguments(self):
        with pytest.raises(ValueError):
            GestureClassifier(fist_threshold=0.4, open_threshold=0.3)
        with pytest.raises(ValueError):
            GestureClassifier(confidence_frames=0)


class TestRotationControl:
    def test_tracks_hand_centre_when_scattered(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.25, center=(0.7, 0.4)), PHOTOS)
        yaw, pitch = state.rotation_control
        assert yaw == pytest.approx(0.6)
        assert pitch == pytest.approx(-0.3)

    def test_bounded(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.5, center=(1.0, 0.0)), PHOTOS)
        assert state.rotation_control == pytest.approx((1.5, -1.5))

    def test_neutral_when_formed(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.25, center=(0.9, 0.9)), PHOTOS)
        classifier.update(state, hand(0.05, center=(0.9, 0.9)), PHOTOS)
        assert state.rotation_control == NEUTRAL_ROTATION

    def test_missing_hand_keeps_last_signal(self, classifier, hand):
        state = ApplicationState(Mode.SCATTERED)
        classifier.update(state, hand(0.25, center=(0.7, 0.5)), PHOTOS)
        before = state.rotation_control
        classifier.update(state, None, PHOTOS)
        assert state.rotation_control == before
