"""
Tannen – Gesture Recogniser
Classifies raw hand landmarks into display-mode changes using a
lightweight state machine.  No ML model needed – pure geometry.

Poses (checked in priority order)
---------------------------------
FIST        – fingertips curled onto the palm  → FORMED
OPEN        – fingers spread wide              → SCATTERED
PINCH       – thumb tip touching index tip     → FOCUS on a photo
AMBIGUOUS   – anything in between              → keep current mode
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence, Tuple

import numpy as np

from . import config as cfg
from .app_state import NEUTRAL_ROTATION, ApplicationState, Mode
from .landmarks import HandData

logger = logging.getLogger(__name__)


class Pose(Enum):
    FIST = auto()
    OPEN = auto()
    PINCH = auto()
    AMBIGUOUS = auto()


@dataclass(frozen=True)
class PoseReading:
    """Pure classification of one sample, before debouncing."""
    pose: Pose
    spread: float
    pinch: float


class GestureClassifier:
    """
    Stateful recogniser that consumes ``HandData`` samples and writes the
    resulting mode into an ``ApplicationState``.

    A pose has to be seen ``confidence_frames`` samples in a row before
    it is acted on. Missing samples are a no-op: the previous mode stays.
    """

    def __init__(
        self,
        fist_threshold: float = cfg.FIST_THRESHOLD,
        open_threshold: float = cfg.OPEN_THRESHOLD,
        pinch_threshold: float = cfg.PINCH_THRESHOLD,
        confidence_frames: int = cfg.GESTURE_CONFIDENCE_FRAMES,
        rotation_gain: float = cfg.ROTATION_GAIN,
        rotation_limit: float = cfg.ROTATION_LIMIT,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if not fist_threshold < open_threshold:
            raise ValueError("fist threshold must be below open threshold")
        if confidence_frames < 1:
            raise ValueError("confidence_frames must be at least 1")
        self.fist_threshold = fist_threshold
        self.open_threshold = open_threshold
        self.pinch_threshold = pinch_threshold
        self.confidence_frames = confidence_frames
        self.rotation_gain = rotation_gain
        self.rotation_limit = rotation_limit
        self._rng = rng if rng is not None else np.random.default_rng()

        # ── debounce ─────────────────────────────────────────────────
        self._candidate: Pose = Pose.AMBIGUOUS
        self._streak: int = 0

    # ── public ───────────────────────────────────────────────────────
    def classify(self, hand: HandData) -> PoseReading:
        spread = hand.fingertip_spread()
        pinch = hand.pinch_distance()

        if spread < self.fist_threshold:
            pose = Pose.FIST
        elif spread > self.open_threshold:
            pose = Pose.OPEN
        elif pinch < self.pinch_threshold:
            pose = Pose.PINCH
        else:
            pose = Pose.AMBIGUOUS
        return PoseReading(pose, spread, pinch)

    def update(
        self,
        state: ApplicationState,
        hand: Optional[HandData],
        focusable_ids: Sequence[str] = (),
    ) -> Mode:
        """
        Feed one sample (or ``None`` when no hand is visible).

        Returns the mode after the sample has been applied.
        """
        if hand is None:
            self._reset()
            return state.mode

        reading = self.classify(hand)
        if self._confirm(reading.pose):
            self._apply(state, reading.pose, focusable_ids)

        if state.mode is Mode.FORMED:
            state.rotation_control = NEUTRAL_ROTATION
        else:
            state.rotation_control = self.rotation_from(hand)
        return state.mode

    def rotation_from(self, hand: HandData) -> Tuple[float, float]:
        """Hand-centre offset from frame centre → bounded (yaw, pitch)."""
        c = hand.hand_center
        lim = self.rotation_limit
        yaw = min(max((c.x - 0.5) * self.rotation_gain, -lim), lim)
        pitch = min(max((c.y - 0.5) * self.rotation_gain, -lim), lim)
        return yaw, pitch

    def choose_focus(self, focusable_ids: Sequence[str]) -> str:
        """Pick a photo to focus; uniform random over the candidates."""
        return focusable_ids[int(self._rng.integers(0, len(focusable_ids)))]

    # ── internals ────────────────────────────────────────────────────
    def _apply(self, state: ApplicationState, pose: Pose, focusable_ids: Sequence[str]) -> None:
        if pose is Pose.FIST:
            state.set_mode(Mode.FORMED, source="gesture")
        elif pose is Pose.OPEN:
            state.set_mode(Mode.SCATTERED, source="gesture")
        elif pose is Pose.PINCH:
            if state.mode is not Mode.FOCUS and focusable_ids:
                state.focus(self.choose_focus(focusable_ids), source="gesture")

    def _confirm(self, pose: Pose) -> bool:
        """Apply confidence-frame hysteresis before acting on a pose."""
        if pose == self._candidate:
            self._streak += 1
        else:
            self._candidate = pose
            self._streak = 1
        return pose is not Pose.AMBIGUOUS and self._streak >= self.confidence_frames

    def _reset(self) -> None:
        self._candidate = Pose.AMBIGUOUS
        self._streak = 0
