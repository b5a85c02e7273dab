"""
Tannen – Input Controller
Listens for OS-level keyboard and mouse events and turns them into scene
commands.

Key mapping
-----------
* **Space**  – toggle tree / scattered
* **G**      – gesture mode on / off
* **F**      – focus the next photo
* **Esc**    – leave focus
* **Q**      – quit
* **Wheel**  – zoom the focused photo

We use ``pynput`` so the listener threads run outside the frame loop;
they only ever enqueue commands, the scene applies them on its next tick.
"""

from __future__ import annotations

import logging
import threading

from pynput import keyboard, mouse

from .app_state import ClearFocus, FocusEntity, SetGestureMode, ToggleFormation, Zoom

logger = logging.getLogger(__name__)

# One wheel notch ≈ 100 units of browser-style wheel delta.
WHEEL_UNITS_PER_NOTCH = 100.0


class InputController:
    """Translate key presses and wheel ticks into ``Scene`` commands."""

    def __init__(self, scene, gestures_on: bool = False) -> None:
        self._scene = scene
        self._gestures_on = gestures_on
        self._focus_cursor = -1
        self.quit = threading.Event()
        self._keyboard = keyboard.Listener(on_press=self._on_press)
        self._mouse = mouse.Listener(on_scroll=self._on_scroll)

    # ── public ───────────────────────────────────────────────────────
    def start(self) -> None:
        self._keyboard.start()
        self._mouse.start()

    def stop(self) -> None:
        """Make sure no listener thread outlives the app."""
        self._keyboard.stop()
        self._mouse.stop()

    # ── keyboard ─────────────────────────────────────────────────────
    def _on_press(self, key) -> None:
        if key == keyboard.Key.space:
            self._scene.submit(ToggleFormation())
        elif key == keyboard.Key.esc:
            self._scene.submit(ClearFocus())
        else:
            char = getattr(key, "char", None)
            if char is None:
                return
            char = char.lower()
            if char == "g":
                self._gestures_on = not self._gestures_on
                self._scene.submit(SetGestureMode(self._gestures_on))
            elif char == "f":
                self._focus_next()
            elif char == "q":
                self.quit.set()

    def _focus_next(self) -> None:
        ids = self._scene.focusable_ids
        if not ids:
            logger.info("No photos to focus")
            return
        self._focus_cursor = (self._focus_cursor + 1) % len(ids)
        self._scene.submit(FocusEntity(ids[self._focus_cursor]))

    # ── mouse ────────────────────────────────────────────────────────
    def _on_scroll(self, x: int, y: int, dx: int, dy: int) -> None:
        # scroll down (negative dy) pushes the photo away
        self._scene.submit(Zoom(-dy * WHEEL_UNITS_PER_NOTCH))
