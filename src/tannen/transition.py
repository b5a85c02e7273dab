"""
Tannen – Transition Engine
Turns an entity group plus morph progress into per-instance transforms.

Groups driven by a morph clock (foliage, ornaments, gifts) are computed
in one vectorised pass per frame. Photos keep their own smoothed state so
the focused one can chase a camera-locked target.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from . import config as cfg
from .app_state import Mode
from .entities import EntityGroup
from .morph import MorphClock, ease_in_out_cubic
from .transforms import (
    Camera,
    Frame,
    blend_factor,
    euler_to_quat,
    lerp,
    slerp,
)

logger = logging.getLogger(__name__)


@dataclass
class InstanceBuffer:
    """What the renderer receives for one group, one frame."""
    positions: np.ndarray        # (n, 3)
    quaternions: np.ndarray      # (n, 4) x, y, z, w
    scales: np.ndarray           # (n,)

    def __len__(self) -> int:
        return len(self.positions)


# ── motion profiles ──────────────────────────────────────────────────
@dataclass(frozen=True)
class IdleWave:
    """``amp * fn(time * frequency * phase_speed + seed * seed_scale)`` on one axis."""
    axis: int
    fn: str            # "sin" or "cos"
    frequency: float
    seed_scale: float = 1.0


@dataclass(frozen=True)
class MotionProfile:
    morph_rate: float
    eased: bool = False
    idle_amplitude: float = 0.0
    idle_floor: float = 0.0        # share of amplitude kept when fully formed
    waves: Tuple[IdleWave, ...] = ()
    spin: Tuple[float, float, float] = (0.0, 0.0, 0.0)   # rad/s while scattered

    def amplitude(self, t):
        # mix(1, floor, t): full when scattered, ``floor`` when formed
        return self.idle_amplitude * (1.0 - (1.0 - self.idle_floor) * t)


PROFILES: Dict[str, MotionProfile] = {
    "foliage": MotionProfile(
        morph_rate=cfg.FOLIAGE_MORPH_RATE,
        eased=True,
        idle_amplitude=cfg.FOLIAGE_IDLE_AMPLITUDE,
        idle_floor=0.2,
        waves=(
            IdleWave(0, "sin", 1.5, 10.0),
            IdleWave(1, "cos", 1.2, 20.0),
            IdleWave(2, "sin", 1.8, 5.0),
        ),
    ),
    "ornament": MotionProfile(
        morph_rate=cfg.ORNAMENT_MORPH_RATE,
        idle_amplitude=cfg.ORNAMENT_FLOAT_AMPLITUDE,
        waves=(IdleWave(1, "sin", 1.0), IdleWave(0, "cos", 0.5)),
        spin=(0.2, 0.5, 0.0),
    ),
    "gift": MotionProfile(
        morph_rate=cfg.GIFT_MORPH_RATE,
        idle_amplitude=cfg.GIFT_FLOAT_AMPLITUDE,
        waves=(IdleWave(1, "sin", 1.0),),
        spin=(0.0, 0.5, 0.0),
    ),
    "photo": MotionProfile(
        morph_rate=cfg.ORNAMENT_MORPH_RATE,
        idle_amplitude=cfg.PHOTO_FLOAT_AMPLITUDE,
        waves=(IdleWave(1, "sin", 1.0), IdleWave(0, "cos", 0.5)),
        spin=(0.2, 0.3, 0.0),
    ),
}


def idle_offsets(group: EntityGroup, profile: MotionProfile, t, time: float) -> np.ndarray:
    """Per-entity floating offset, shrinking as the group forms."""
    offsets = np.zeros((len(group), 3))
    if not profile.waves or profile.idle_amplitude == 0.0:
        return offsets
    amp = profile.amplitude(np.asarray(t, dtype=float))
    if np.ndim(amp):
        amp = amp[:, np.newaxis] if amp.ndim == 1 else amp
    for wave in profile.waves:
        fn = np.sin if wave.fn == "sin" else np.cos
        phase = time * wave.frequency * group.phase_speeds + group.seeds * wave.seed_scale
        offsets[:, wave.axis] += fn(phase)
    return offsets * amp


def compute_transforms(
    group: EntityGroup,
    progress,
    time: float,
    profile: Optional[MotionProfile] = None,
) -> InstanceBuffer:
    """
    Blend every entity of ``group`` between its two targets.

    ``progress`` is raw morph progress (scalar, or one value per entity);
    groups with an eased profile run it through the cubic ease first.
    """
    if profile is None:
        profile = PROFILES[group.profile]
    t = ease_in_out_cubic(progress) if profile.eased else progress
    t_col = np.asarray(t, dtype=float)
    if t_col.ndim == 1:
        t_col = t_col[:, np.newaxis]

    positions = lerp(group.scatter_positions, group.formed_positions, t_col)
    positions = positions + idle_offsets(group, profile, t, time)

    euler = lerp(group.scatter_rotations, group.formed_rotations, t_col)
    euler = euler + np.asarray(profile.spin) * time * (1.0 - t_col)
    quats = euler_to_quat(euler)

    factor = lerp(group.scatter_scale, group.formed_scale, np.asarray(t, dtype=float))
    scales = group.scales * factor
    return InstanceBuffer(positions, quats, np.asarray(scales, dtype=float))


def compute_transform(
    group: EntityGroup,
    index: int,
    progress: float,
    time: float,
    profile: Optional[MotionProfile] = None,
) -> InstanceBuffer:
    """Single-entity variant of :func:`compute_transforms`."""
    one = _slice_group(group, index)
    return compute_transforms(one, progress, time, profile or PROFILES[group.profile])


def _slice_group(group: EntityGroup, index: int) -> EntityGroup:
    s = slice(index, index + 1)
    return EntityGroup(
        name=group.name,
        profile=group.profile,
        scatter_positions=group.scatter_positions[s],
        formed_positions=group.formed_positions[s],
        scatter_rotations=group.scatter_rotations[s],
        formed_rotations=group.formed_rotations[s],
        scales=group.scales[s],
        phase_speeds=group.phase_speeds[s],
        seeds=group.seeds[s],
        colors=group.colors[s],
        kinds=group.kinds[s],
        scatter_scale=group.scatter_scale,
        formed_scale=group.formed_scale,
    )


# ── morph-clock groups ───────────────────────────────────────────────
class GroupAnimator:
    """One entity group plus the clock that drives it."""

    def __init__(
        self,
        group: EntityGroup,
        profile: Optional[MotionProfile] = None,
        progress: float = 0.0,
    ) -> None:
        self.group = group
        self.profile = profile or PROFILES[group.profile]
        self.clock = MorphClock(rate=self.profile.morph_rate, progress=progress)

    def update(self, delta: float, time: float, formed: bool) -> InstanceBuffer:
        self.clock.advance(delta, formed)
        return compute_transforms(self.group, self.clock.progress, time, self.profile)

    def uniforms(self, time: float) -> Dict[str, float]:
        """Group-level values for shader-driven rendering."""
        return {"time": time, "morph": self.clock.progress, "eased": self.clock.eased}


# ── focus zoom ───────────────────────────────────────────────────────
class FocusZoom:
    """Camera-to-photo distance while focused, clamped to a band."""

    def __init__(
        self,
        default: float = cfg.ZOOM_DEFAULT,
        minimum: float = cfg.ZOOM_MIN,
        maximum: float = cfg.ZOOM_MAX,
        speed: float = cfg.ZOOM_SPEED,
    ) -> None:
        if not minimum <= default <= maximum:
            raise ValueError(f"default zoom {default} outside [{minimum}, {maximum}]")
        self.default = default
        self.minimum = minimum
        self.maximum = maximum
        self.speed = speed
        self.distance = default

    def reset(self) -> None:
        self.distance = self.default

    def zoom(self, wheel_delta: float) -> float:
        self.distance = min(max(self.distance + wheel_delta * self.speed, self.minimum), self.maximum)
        return self.distance


# ── photos ───────────────────────────────────────────────────────────
class PhotoAnimator:
    """
    Photos chase a per-mode target instead of following a morph clock.

    Each frame the current transform moves a fixed share of the way
    toward the target (lerp for position and scale, slerp for
    orientation). The focused photo's target is locked in front of the
    camera.
    """

    def __init__(
        self,
        group: EntityGroup,
        mode: Mode = Mode.SCATTERED,
        time: float = 0.0,
        zoom: Optional[FocusZoom] = None,
        profile: Optional[MotionProfile] = None,
        blend: float = cfg.FOCUS_BLEND,
        focus_scale: float = cfg.FOCUS_SCALE,
    ) -> None:
        self.profile = profile or PROFILES["photo"]
        self.zoom = zoom or FocusZoom()
        self.blend = blend
        self.focus_scale = focus_scale
        self.group = group
        target = self._mode_targets(group, mode, time)
        self.positions = target.positions.copy()
        self.quaternions = target.quaternions.copy()
        self.scales = target.scales.copy()

    def regenerate(self, group: EntityGroup, mode: Mode, time: float) -> None:
        """
        Swap in a new photo group. Photos whose id survives keep their
        current transform and glide to the new target; new ones start
        on their mode target.
        """
        target = self._mode_targets(group, mode, time)
        positions = target.positions.copy()
        quats = target.quaternions.copy()
        scales = target.scales.copy()
        for i, pid in enumerate(group.ids):
            old = self.group.index_of(pid)
            if old is not None:
                positions[i] = self.positions[old]
                quats[i] = self.quaternions[old]
                scales[i] = self.scales[old]
        self.group = group
        self.positions, self.quaternions, self.scales = positions, quats, scales
        logger.debug("Photo group regenerated with %d entities", len(group))

    def _mode_targets(self, group: EntityGroup, mode: Mode, time: float) -> InstanceBuffer:
        # FOCUS keeps every non-focused photo in the background cloud
        formed = 1.0 if mode is Mode.FORMED else 0.0
        return compute_transforms(group, formed, time, self.profile)

    def focus_target(
        self,
        camera: Camera,
        parent: Frame,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Camera-locked position and orientation in the parent frame."""
        world = camera.position + camera.forward() * self.zoom.distance
        return parent.world_to_local(world), parent.rotation_to_local(camera.quaternion)

    def update(
        self,
        delta: float,
        time: float,
        mode: Mode,
        focused_id: Optional[str],
        camera: Camera,
        parent: Frame,
    ) -> InstanceBuffer:
        target = self._mode_targets(self.group, mode, time)

        focused = focused_id if mode is Mode.FOCUS else None
        idx = self.group.index_of(focused) if focused is not None else None
        if idx is not None:
            pos, quat = self.focus_target(camera, parent)
            target.positions[idx] = pos
            target.quaternions[idx] = quat
            target.scales[idx] = self.focus_scale

        k = blend_factor(self.blend, delta, cfg.REFERENCE_FPS)
        self.positions = lerp(self.positions, target.positions, k)
        self.quaternions = slerp(self.quaternions, target.quaternions, k) if len(self.group) else self.quaternions
        self.scales = lerp(self.scales, target.scales, k)
        return InstanceBuffer(self.positions.copy(), self.quaternions.copy(), self.scales.copy())


# ── whole-group orientation ──────────────────────────────────────────
class GroupOrientation:
    """
    Rotation of the parent frame every entity sits under.

    Formed: slow auto-spin with pitch levelling out. Focus: recentre to
    identity so the camera-locked photo lines up. Scattered: follow the
    external rotation-control signal.
    """

    def __init__(self, position: Sequence[float] = cfg.GROUP_POSITION) -> None:
        self.position = np.asarray(position, dtype=float)
        self.yaw = 0.0
        self.pitch = 0.0

    def update(self, delta: float, mode: Mode, rotation_control: Tuple[float, float]) -> Frame:
        frames = delta * cfg.REFERENCE_FPS
        if mode is Mode.FORMED:
            self.yaw += cfg.AUTO_SPIN_PER_FRAME * frames
            self.yaw = (self.yaw + math.pi) % (2.0 * math.pi) - math.pi
            self.pitch = lerp(self.pitch, 0.0, blend_factor(cfg.FORMED_LEVEL_BLEND, delta))
        elif mode is Mode.FOCUS:
            k = blend_factor(cfg.FOCUS_RECENTER_BLEND, delta)
            self.yaw = lerp(self.yaw, 0.0, k)
            self.pitch = lerp(self.pitch, 0.0, k)
        else:
            yaw, pitch = rotation_control
            k = blend_factor(cfg.SCATTER_TRACK_BLEND, delta)
            self.yaw = lerp(self.yaw, yaw, k)
            self.pitch = lerp(self.pitch, pitch, k)
        return self.frame

    @property
    def frame(self) -> Frame:
        return Frame(
            position=self.position.copy(),
            quaternion=euler_to_quat((self.pitch, self.yaw, 0.0)),
        )


# ── decorations ──────────────────────────────────────────────────────
@dataclass
class Star:
    """Tree-top star: grows in when formed, spins continuously."""
    height: float = cfg.STAR_HEIGHT
    scale: float = 0.0
    spin: float = 0.0

    def update(self, delta: float, formed: bool) -> InstanceBuffer:
        self.spin += cfg.STAR_SPIN_PER_FRAME * delta * cfg.REFERENCE_FPS
        self.scale = lerp(self.scale, 1.0 if formed else 0.0, blend_factor(cfg.FOCUS_BLEND, delta))
        quat = euler_to_quat((0.0, self.spin, math.pi / 10))
        return InstanceBuffer(
            np.array([[0.0, self.height, 0.0]]),
            quat[np.newaxis, :],
            np.array([self.scale]),
        )


@dataclass
class Sparkles:
    """Fireflies drifting under the tree, independent of the morph."""
    count: int = 200
    rng: Optional[np.random.Generator] = None
    base: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        g = self.rng if self.rng is not None else np.random.default_rng()
        r = 10.0 + g.random(self.count) * 10.0
        theta = g.random(self.count) * 2.0 * math.pi
        y = -15.0 + g.random(self.count) * 7.0
        self.base = np.column_stack((r * np.cos(theta), y, r * np.sin(theta)))

    def update(self, time: float) -> InstanceBuffer:
        frame = Frame(
            position=np.array([0.0, math.sin(time * 0.2) * 0.5, 0.0]),
            quaternion=euler_to_quat((0.0, time * 0.05, 0.0)),
        )
        n = len(self.base)
        return InstanceBuffer(
            frame.to_world(self.base),
            np.tile(frame.quaternion, (n, 1)),
            np.ones(n),
        )
