"""
Tannen – Gesture mode lifecycle
Starts and stops the hand tracker behind the enable toggle and hands the
frame loop at most one fresh sample per tick.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Tuple

from .app_state import GestureStatus
from .landmarks import HandData, TrackerUnavailable

logger = logging.getLogger(__name__)


def _default_tracker():
    from .hand_tracker import HandTracker
    return HandTracker()


class GestureControl:
    """
    Owns the tracker while gesture mode is on.

    Startup (model load, camera permission) runs on a worker thread so
    the frame loop never waits on it. If it fails the status becomes
    UNAVAILABLE and the app carries on with UI control only. Disabling
    never waits on startup: a tracker that comes up after the toggle
    went off is stopped by its own worker, so no capture handle outlives
    the toggle.
    """

    def __init__(self, tracker_factory: Optional[Callable[[], object]] = None) -> None:
        self._factory = tracker_factory or _default_tracker
        self._lock = threading.Lock()
        self._tracker = None
        self._worker: Optional[threading.Thread] = None
        self._enabled = False
        self._status = GestureStatus.OFF
        self._last_seq = -1
        self._attempt = 0

    # ── public ───────────────────────────────────────────────────────
    @property
    def status(self) -> GestureStatus:
        return self._status

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self, background: bool = True) -> None:
        with self._lock:
            if self._enabled:
                return
            self._enabled = True
            self._attempt += 1
            attempt = self._attempt
            self._status = GestureStatus.STARTING
        logger.info("Gesture mode starting")
        if background:
            self._worker = threading.Thread(target=self._start, args=(attempt,), daemon=True)
            self._worker.start()
        else:
            self._start(attempt)

    def disable(self) -> None:
        """
        Turn gesture mode off without waiting on a pending startup; a
        worker that finishes later sees it was cancelled and stops its
        own tracker.
        """
        with self._lock:
            if not self._enabled:
                return
            self._enabled = False
            self._worker = None
            tracker, self._tracker = self._tracker, None
            self._status = GestureStatus.OFF
            self._last_seq = -1
        self._attempt = 0
        if tracker is not None:
            tracker.stop()
        logger.info("Gesture mode stopped")

    def poll(self) -> Tuple[bool, Optional[HandData]]:
        """
        Return ``(fresh, hand)``. ``fresh`` is ``False`` when the tracker
        has not produced a new frame since the last poll; ``hand`` is
        ``None`` when no hand was seen in that frame.
        """
        tracker = self._tracker
        if tracker is None:
            return False, None
        hand, _frame, seq = tracker.latest()
        if seq == self._last_seq:
            return False, None
        self._last_seq = seq
        return True, hand

    def latest_frame(self):
        tracker = self._tracker
        if tracker is None:
            return None
        return tracker.latest()[1]

    # ── startup worker ───────────────────────────────────────────────
    def _current(self, attempt: int) -> bool:
        return self._enabled and attempt == self._attempt

    def _start(self, attempt: int) -> None:
        tracker = None
        try:
            tracker = self._factory()
            tracker.start()
        except TrackerUnavailable as exc:
            logger.warning("Gesture mode unavailable: %s", exc)
            self._fail(attempt)
            return
        except Exception:
            logger.warning("Gesture mode failed to start", exc_info=True)
            self._fail(attempt)
            return

        with self._lock:
            cancelled = not self._current(attempt)
            if not cancelled:
                self._tracker = tracker
                self._status = GestureStatus.ACTIVE
        if cancelled:
            tracker.stop()
            return
        logger.info("Gesture mode active")

    def _fail(self, attempt: int) -> None:
        with self._lock:
            if self._current(attempt):
                self._status = GestureStatus.UNAVAILABLE
