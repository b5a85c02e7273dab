"""
Tannen – Application State
The single authoritative display mode, plus the commands the UI sends.

Only two writers exist: the gesture classifier (once per frame) and the
UI command handler. Both run inside ``Scene.tick`` on the frame thread,
UI last, so explicit user intent wins a same-tick race.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class Mode(Enum):
    SCATTERED = auto()
    FORMED = auto()
    FOCUS = auto()


class GestureStatus(Enum):
    OFF = auto()
    STARTING = auto()
    ACTIVE = auto()
    UNAVAILABLE = auto()


NEUTRAL_ROTATION: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class StateSnapshot:
    """What the UI reads back for display."""
    mode: Mode
    focused_id: Optional[str]
    rotation_control: Tuple[float, float]
    gesture_status: GestureStatus


class ApplicationState:
    """
    Current mode, focused photo and rotation-control signal.

    ``focused_id`` is only ever set while ``mode`` is FOCUS; every path
    that leaves FOCUS clears it.
    """

    def __init__(self, mode: Mode = Mode.SCATTERED) -> None:
        if mode is Mode.FOCUS:
            raise ValueError("cannot start in FOCUS without a focused entity")
        self._mode = mode
        self._focused_id: Optional[str] = None
        self.rotation_control: Tuple[float, float] = NEUTRAL_ROTATION
        self.gesture_status = GestureStatus.OFF

    # ── read side ────────────────────────────────────────────────────
    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def focused_id(self) -> Optional[str]:
        return self._focused_id if self._mode is Mode.FOCUS else None

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(self._mode, self.focused_id, self.rotation_control, self.gesture_status)

    # ── write side ───────────────────────────────────────────────────
    def set_mode(self, mode: Mode, source: str = "ui") -> bool:
        """Switch to SCATTERED or FORMED. Returns ``True`` if it changed."""
        if mode is Mode.FOCUS:
            raise ValueError("use focus() to enter FOCUS")
        if mode is self._mode:
            return False
        logger.info("Mode %s → %s (%s)", self._mode.name, mode.name, source)
        self._mode = mode
        self._focused_id = None
        return True

    def focus(self, entity_id: str, source: str = "ui") -> bool:
        if not entity_id:
            raise ValueError("focus requires an entity id")
        if self._mode is Mode.FOCUS and self._focused_id == entity_id:
            return False
        logger.info("Mode %s → FOCUS on %s (%s)", self._mode.name, entity_id, source)
        self._mode = Mode.FOCUS
        self._focused_id = entity_id
        return True

    def toggle_formation(self) -> Mode:
        """FORMED ↔ SCATTERED; from FOCUS the toggle goes to FORMED."""
        self.set_mode(Mode.SCATTERED if self._mode is Mode.FORMED else Mode.FORMED)
        return self._mode


# ── UI commands ──────────────────────────────────────────────────────
@dataclass(frozen=True)
class ToggleFormation:
    pass


@dataclass(frozen=True)
class SetMode:
    mode: Mode


@dataclass(frozen=True)
class SetGestureMode:
    enabled: bool


@dataclass(frozen=True)
class FocusEntity:
    entity_id: str


@dataclass(frozen=True)
class ClearFocus:
    pass


@dataclass(frozen=True)
class AddImages:
    urls: Tuple[str, ...]


@dataclass(frozen=True)
class Zoom:
    wheel_delta: float
