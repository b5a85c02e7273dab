"""
Tannen – Preview
Minimal OpenCV stand-in for the real renderer: perspective-projects every
instance and draws it as a dot (or a frame for photos).
"""

from __future__ import annotations

import math
from typing import Dict, Optional

import cv2
import numpy as np

from . import config as cfg
from .app_state import GestureStatus, Mode
from .entities import EntityGroup
from .scene import FrameOutput

# ── colour palette for the HUD (BGR) ────────────────────────────────
_MODE_COLOURS = {
    Mode.SCATTERED: (200, 200, 200),
    Mode.FORMED: (55, 175, 212),
    Mode.FOCUS: (0, 215, 255),
}

_STATUS_LABELS = {
    GestureStatus.OFF: "VISION OFF",
    GestureStatus.STARTING: "VISION ...",
    GestureStatus.ACTIVE: "VISION ON",
    GestureStatus.UNAVAILABLE: "VISION N/A",
}

_DOT_RADIUS = {"foliage": 1, "sparkles": 1, "star": 10}
_PHOTO_COLOUR = (55, 175, 212)
_STAR_COLOUR = (0, 215, 255)
_SPARKLE_COLOUR = (0, 234, 255)


class PreviewRenderer:
    """Draws a ``FrameOutput`` into an OpenCV window."""

    def __init__(
        self,
        width: int = cfg.PREVIEW_WIDTH,
        height: int = cfg.PREVIEW_HEIGHT,
        foliage_stride: int = cfg.PREVIEW_FOLIAGE_STRIDE,
        window: str = "Tannen",
    ) -> None:
        self.width = width
        self.height = height
        self.foliage_stride = max(1, foliage_stride)
        self.window = window

    def draw(
        self,
        frame: FrameOutput,
        groups: Dict[str, EntityGroup],
        webcam: Optional[np.ndarray] = None,
    ) -> bool:
        """Render one frame; returns ``False`` once the user pressed 'q'."""
        canvas = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        canvas[:] = (5, 8, 0)
        focal = (self.height / 2) / math.tan(math.radians(frame.camera.fov) / 2)
        view = frame.camera.frame

        for name, buf in frame.instances.items():
            if not len(buf):
                continue
            stride = self.foliage_stride if name == "foliage" else 1
            local = buf.positions[::stride]
            world = local if name == "sparkles" else frame.group_frame.to_world(local)
            cam = view.world_to_local(world)
            depth = -cam[:, 2]
            visible = depth > 0.1
            px = (cam[:, 0] / np.where(visible, depth, 1.0)) * focal + self.width / 2
            py = -(cam[:, 1] / np.where(visible, depth, 1.0)) * focal + self.height / 2
            scales = buf.scales[::stride]
            colours = self._colours(name, groups, len(local), stride)

            for i in np.flatnonzero(visible):
                centre = (int(px[i]), int(py[i]))
                if name == "photos":
                    half = max(2, int(focal * 1.2 * scales[i] / depth[i]))
                    cv2.rectangle(canvas, (centre[0] - half, centre[1] - half),
                                  (centre[0] + half, centre[1] + half), _PHOTO_COLOUR, 2)
                    continue
                radius = _DOT_RADIUS.get(name, max(1, int(focal * 0.25 * scales[i] / depth[i])))
                if name == "star":
                    radius = int(radius * scales[i])
                    if radius <= 0:
                        continue
                cv2.circle(canvas, centre, radius, colours[i], -1)

        if webcam is not None:
            self._inset(canvas, webcam)
        self._draw_hud(canvas, frame)
        cv2.imshow(self.window, canvas)
        return (cv2.waitKey(1) & 0xFF) != ord("q")

    def close(self) -> None:
        cv2.destroyWindow(self.window)

    # ── helpers ──────────────────────────────────────────────────────
    @staticmethod
    def _colours(name: str, groups: Dict[str, EntityGroup], n: int, stride: int):
        if name == "star":
            return [_STAR_COLOUR] * n
        if name == "sparkles":
            return [_SPARKLE_COLOUR] * n
        group = groups.get(name)
        if group is None:
            return [(255, 255, 255)] * n
        rgb = np.asarray(group.colors[::stride]) * 255
        # foliage is very dark emerald; lift it so it reads on black
        if name == "foliage":
            rgb = np.clip(rgb * 3.0, 0, 255)
        return [(int(b), int(g), int(r)) for r, g, b in rgb]

    def _inset(self, canvas: np.ndarray, webcam: np.ndarray) -> None:
        h, w = webcam.shape[:2]
        tw = self.width // 5
        th = int(h * tw / w)
        small = cv2.resize(webcam, (tw, th))
        canvas[-th - 10:-10, -tw - 10:-10] = small

    def _draw_hud(self, canvas: np.ndarray, frame: FrameOutput) -> None:
        colour = _MODE_COLOURS.get(frame.mode, (200, 200, 200))
        label = frame.mode.name
        if frame.focused_id:
            label += f" {frame.focused_id}"

        # Status bar
        cv2.rectangle(canvas, (0, 0), (360, 50), (30, 30, 30), -1)
        cv2.putText(canvas, label, (10, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.7, colour, 2)
        cv2.putText(canvas, _STATUS_LABELS[frame.gesture_status], (220, 35),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (180, 180, 180), 1)
