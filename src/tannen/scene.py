"""
Tannen – Scene
Every animated group, the shared application state, and the per-frame
``tick`` that advances them together.

Order inside one tick:
  1. at most one fresh hand sample goes through the gesture classifier
  2. queued UI commands are applied (so UI wins a same-tick race)
  3. group orientation, morph clocks and transforms are advanced
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from . import config as cfg
from .app_state import (
    AddImages,
    ApplicationState,
    ClearFocus,
    FocusEntity,
    GestureStatus,
    Mode,
    SetGestureMode,
    SetMode,
    StateSnapshot,
    ToggleFormation,
    Zoom,
)
from .entities import (
    EntityGroup,
    generate_foliage,
    generate_gifts,
    generate_ornament_groups,
    generate_photos,
)
from .gesture_control import GestureControl
from .gesture_recognizer import GestureClassifier
from .transforms import Camera, Frame
from .transition import (
    GroupAnimator,
    GroupOrientation,
    InstanceBuffer,
    PhotoAnimator,
    Sparkles,
    Star,
)

logger = logging.getLogger(__name__)


@dataclass
class FrameOutput:
    """Everything the renderer needs for one frame."""
    time: float
    mode: Mode
    focused_id: Optional[str]
    group_frame: Frame
    camera: Camera
    gesture_status: GestureStatus = GestureStatus.OFF
    instances: Dict[str, InstanceBuffer] = field(default_factory=dict)
    uniforms: Dict[str, Dict[str, float]] = field(default_factory=dict)


class Scene:
    """
    Owns the groups and drives them from an external loop via
    :meth:`tick`. There is no hidden timer: elapsed time is the sum of
    the deltas passed in.
    """

    def __init__(
        self,
        foliage_count: int = cfg.FOLIAGE_COUNT,
        ornament_count: int = cfg.ORNAMENT_COUNT,
        gift_count: int = cfg.GIFT_COUNT,
        photos: Sequence[str] = (),
        state: Optional[ApplicationState] = None,
        classifier: Optional[GestureClassifier] = None,
        gestures: Optional[GestureControl] = None,
        camera: Optional[Camera] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()
        self.state = state or ApplicationState()
        self.classifier = classifier or GestureClassifier(rng=self.rng)
        self.gestures = gestures
        if camera is None:
            camera = Camera(position=np.array(cfg.CAMERA_POSITION), fov=cfg.CAMERA_FOV)
            camera.look_at((0.0, 0.0, 0.0))
        self.camera = camera
        self.time = 0.0
        self._commands: "queue.Queue[object]" = queue.Queue()

        self.orientation = GroupOrientation()
        self.animators: Dict[str, GroupAnimator] = {}
        self._build_foliage(foliage_count)
        self._build_ornaments(ornament_count)
        self.animators["gifts"] = GroupAnimator(generate_gifts(gift_count, rng=self.rng))

        self.photo_urls: List[str] = list(photos)
        self.photos = PhotoAnimator(generate_photos(self.photo_urls, rng=self.rng), mode=self.state.mode)
        self.star = Star()
        self.sparkles = Sparkles(rng=self.rng)

    # ── commands (any thread) ────────────────────────────────────────
    def submit(self, command: object) -> None:
        """Queue a UI command; it is applied on the next tick."""
        self._commands.put(command)

    # ── read side ────────────────────────────────────────────────────
    @property
    def groups(self) -> Dict[str, EntityGroup]:
        out = {name: anim.group for name, anim in self.animators.items()}
        out["photos"] = self.photos.group
        return out

    @property
    def focusable_ids(self) -> Sequence[str]:
        return self.photos.group.ids

    def snapshot(self) -> StateSnapshot:
        return self.state.snapshot()

    # ── frame ────────────────────────────────────────────────────────
    def tick(self, delta: float) -> FrameOutput:
        delta = min(max(delta, 0.0), cfg.MAX_FRAME_DELTA)
        self.time += delta

        self._classify()
        self._drain_commands()

        mode = self.state.mode
        formed = mode is Mode.FORMED
        parent = self.orientation.update(delta, mode, self.state.rotation_control)

        out = FrameOutput(
            time=self.time,
            mode=mode,
            focused_id=self.state.focused_id,
            group_frame=parent,
            camera=self.camera,
            gesture_status=self.state.gesture_status,
        )
        for name, anim in self.animators.items():
            out.instances[name] = anim.update(delta, self.time, formed)
        out.uniforms["foliage"] = self.animators["foliage"].uniforms(self.time)
        out.instances["photos"] = self.photos.update(
            delta, self.time, mode, self.state.focused_id, self.camera, parent,
        )
        out.instances["star"] = self.star.update(delta, formed)
        out.instances["sparkles"] = self.sparkles.update(self.time)
        return out

    def _classify(self) -> None:
        if self.gestures is None:
            return
        self.state.gesture_status = self.gestures.status
        fresh, hand = self.gestures.poll()
        if not fresh:
            return
        before = self.state.focused_id
        try:
            self.classifier.update(self.state, hand, self.focusable_ids)
        except Exception:
            logger.debug("Gesture classification failed; keeping %s", self.state.mode.name, exc_info=True)
        self._after_focus_change(before)

    def _drain_commands(self) -> None:
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return
            self.handle(command)

    def handle(self, command: object) -> None:
        """Apply one UI command immediately (frame thread only)."""
        if isinstance(command, ToggleFormation):
            self.state.toggle_formation()
        elif isinstance(command, SetMode):
            self.state.set_mode(command.mode)
        elif isinstance(command, FocusEntity):
            if command.entity_id in self.focusable_ids:
                before = self.state.focused_id
                self.state.focus(command.entity_id)
                self._after_focus_change(before)
            else:
                logger.warning("Ignoring focus on unknown entity %s", command.entity_id)
        elif isinstance(command, ClearFocus):
            if self.state.mode is Mode.FOCUS:
                self.state.set_mode(Mode.SCATTERED)
        elif isinstance(command, AddImages):
            self.add_images(command.urls)
        elif isinstance(command, Zoom):
            if self.state.mode is Mode.FOCUS:
                self.photos.zoom.zoom(command.wheel_delta)
        elif isinstance(command, SetGestureMode):
            self._set_gesture_mode(command.enabled)
        else:
            raise TypeError(f"Unknown command {command!r}")

    def _after_focus_change(self, before: Optional[str]) -> None:
        # a newly focused photo starts at the default zoom distance
        focused = self.state.focused_id
        if focused is not None and focused != before:
            self.photos.zoom.reset()

    def _set_gesture_mode(self, enabled: bool) -> None:
        if self.gestures is None:
            logger.warning("Gesture mode requested but no tracker is configured")
            return
        if enabled:
            self.gestures.enable()
        else:
            self.gestures.disable()
        self.state.gesture_status = self.gestures.status

    # ── regeneration ─────────────────────────────────────────────────
    def add_images(self, urls: Sequence[str]) -> None:
        if not urls:
            return
        self.photo_urls.extend(urls)
        group = generate_photos(self.photo_urls, rng=self.rng)
        self.photos.regenerate(group, self.state.mode, self.time)
        logger.info("Photo count now %d", len(group))

    def set_population(
        self,
        foliage_count: Optional[int] = None,
        ornament_count: Optional[int] = None,
        gift_count: Optional[int] = None,
    ) -> None:
        """Regenerate the named groups; their morph progress carries over."""
        if foliage_count is not None:
            self._build_foliage(foliage_count)
        if ornament_count is not None:
            self._build_ornaments(ornament_count)
        if gift_count is not None:
            self.animators["gifts"] = GroupAnimator(
                generate_gifts(gift_count, rng=self.rng), progress=self._progress_of("gifts"),
            )

    def _progress_of(self, name: str) -> float:
        anim = self.animators.get(name)
        return anim.clock.progress if anim is not None else 0.0

    def _build_foliage(self, count: int) -> None:
        self.animators["foliage"] = GroupAnimator(
            generate_foliage(count, rng=self.rng), progress=self._progress_of("foliage"),
        )

    def _build_ornaments(self, count: int) -> None:
        for name, group in generate_ornament_groups(count, rng=self.rng).items():
            self.animators[name] = GroupAnimator(group, progress=self._progress_of(name))
