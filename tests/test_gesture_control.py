"""
Tests for the gesture-mode lifecycle, using a fake tracker in place of
the webcam.
"""

import threading
import time

from tannen.app_state import GestureStatus
from tannen.gesture_control import GestureControl
from tannen.landmarks import TrackerUnavailable


class FakeTracker:
    def __init__(self, fail=False):
        self.fail = fail
        self.started = False
        self.stopped = False
        self.hand = None
        self.seq = 0

    def start(self):
        if self.fail:
            raise TrackerUnavailable("no camera")
        self.started = True

    def stop(self):
        self.stopped = True

    def latest(self):
        return self.hand, "frame", self.seq

    def push(self, hand):
        self.hand = hand
        self.seq += 1


class TestLifecycle:
    def test_enable_activates(self):
        tracker = FakeTracker()
        control = GestureControl(lambda: tracker)
        assert control.status is GestureStatus.OFF

        control.enable(background=False)
        assert control.status is GestureStatus.ACTIVE
        assert control.enabled
        assert tracker.started

    def test_background_start(self):
        tracker = FakeTracker()
        control = GestureControl(lambda: tracker)
        control.enable()
        control._worker.join(timeout=5)
        assert control.status is GestureStatus.ACTIVE

    def test_unavailable_falls_back(self):
        control = GestureControl(lambda: FakeTracker(fail=True))
        control.enable(background=False)
        assert control.status is GestureStatus.UNAVAILABLE
        assert control.poll() == (False, None)
        assert control.latest_frame() is None

    def test_disable_stops_tracker(self):
        tracker = FakeTracker()
        control = GestureControl(lambda: tracker)
        control.enable(background=False)
        control.disable()
        assert tracker.stopped
        assert control.status is GestureStatus.OFF
        assert not control.enabled
        assert control.poll() == (False, None)

    def test_disable_does_not_wait_for_startup(self):
        gate = threading.Event()

        class SlowTracker(FakeTracker):
            def start(self):
                gate.wait(timeout=5)
                super().start()

        tracker = SlowTracker()
        control = GestureControl(lambda: tracker)
        control.enable()
        worker = control._worker
        assert control.status is GestureStatus.STARTING

        began = time.perf_counter()
        control.disable()
        assert time.perf_counter() - began < 0.5
        assert control.status is GestureStatus.OFF

        # the late tracker is stopped by its own worker and never published
        gate.set()
        worker.join(timeout=5)
        assert tracker.stopped
        assert control.status is GestureStatus.OFF
        assert control.poll() == (False, None)

    def test_late_failure_keeps_off(self):
        gate = threading.Event()

        class SlowFailure(FakeTracker):
            def start(self):
                gate.wait(timeout=5)
                raise TrackerUnavailable("camera busy")

        control = GestureControl(SlowFailure)
        control.enable()
        worker = control._worker
        control.disable()
        gate.set()
        worker.join(timeout=5)
        assert control.status is GestureStatus.OFF

    def test_reenable_during_stale_startup(self):
        gate = threading.Event()
        built = []

        class SlowTracker(FakeTracker):
            def start(self):
                gate.wait(timeout=5)
                super().start()

        def factory():
            built.append(SlowTracker())
            return built[-1]

        control = GestureControl(factory)
        control.enable()
        stale = control._worker
        control.disable()
        control.enable()
        fresh = control._worker

        gate.set()
        stale.join(timeout=5)
        fresh.join(timeout=5)
        assert control.status is GestureStatus.ACTIVE
        # the cancelled attempt stops its tracker; the current one keeps running
        assert sorted(t.stopped for t in built) == [False, True]
        assert control.latest_frame() == "frame"

    def test_factory_error_marks_unavailable(self):
        def factory():
            raise ImportError("mediapipe wheel missing")

        control = GestureControl(factory)
        control.enable(background=False)
        assert control.status is GestureStatus.UNAVAILABLE
        assert control.poll() == (False, None)

    def test_unexpected_start_error_marks_unavailable(self):
        class BrokenTracker(FakeTracker):
            def start(self):
                raise OSError("device busy")

        control = GestureControl(BrokenTracker)
        control.enable()
        control._worker.join(timeout=5)
        assert control.status is GestureStatus.UNAVAILABLE

    def test_enable_twice_builds_one_tracker(self):
        built = []

        def factory():
            built.append(FakeTracker())
            return built[-1]

        control = GestureControl(factory)
        control.enable(background=False)
        control.enable(background=False)
        assert len(built) == 1


class TestPolling:
    def test_only_fresh_samples_are_returned(self, hand):
        tracker = FakeTracker()
        control = GestureControl(lambda: tracker)
        control.enable(background=False)

        sample = hand(0.05)
        tracker.push(sample)
        assert control.poll() == (True, sample)
        assert control.poll() == (False, None)

        tracker.push(None)
        assert control.poll() == (True, None)

    def test_latest_frame(self):
        tracker = FakeTracker()
        control = GestureControl(lambda: tracker)
        control.enable(background=False)
        assert control.latest_frame() == "frame"
