"""
Tannen – Transforms
Quaternion helpers and explicit coordinate frames.

Quaternions are ``numpy`` arrays laid out ``(x, y, z, w)``; every helper
broadcasts over a leading batch axis so whole groups can be processed in
one call. Euler angles use the XYZ order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

IDENTITY = np.array([0.0, 0.0, 0.0, 1.0])


def euler_to_quat(euler) -> np.ndarray:
    """XYZ Euler angles ``(..., 3)`` → quaternions ``(..., 4)``."""
    e = np.asarray(euler, dtype=float)
    half = e * 0.5
    c = np.cos(half)
    s = np.sin(half)
    c1, c2, c3 = c[..., 0], c[..., 1], c[..., 2]
    s1, s2, s3 = s[..., 0], s[..., 1], s[..., 2]
    return np.stack((
        s1 * c2 * c3 + c1 * s2 * s3,
        c1 * s2 * c3 - s1 * c2 * s3,
        c1 * c2 * s3 + s1 * s2 * c3,
        c1 * c2 * c3 - s1 * s2 * s3,
    ), axis=-1)


def quat_multiply(a, b) -> np.ndarray:
    """Hamilton product ``a * b`` (apply ``b`` first, then ``a``)."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    ax, ay, az, aw = a[..., 0], a[..., 1], a[..., 2], a[..., 3]
    bx, by, bz, bw = b[..., 0], b[..., 1], b[..., 2], b[..., 3]
    return np.stack((
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ), axis=-1)


def quat_conjugate(q) -> np.ndarray:
    q = np.asarray(q, dtype=float)
    return q * np.array([-1.0, -1.0, -1.0, 1.0])


def quat_normalize(q) -> np.ndarray:
    q = np.asarray(q, dtype=float)
    n = np.linalg.norm(q, axis=-1, keepdims=True)
    return np.where(n < 1e-12, IDENTITY, q / np.where(n < 1e-12, 1.0, n))


def quat_rotate(q, v) -> np.ndarray:
    """Rotate vector(s) ``v`` by unit quaternion(s) ``q``."""
    q = np.asarray(q, dtype=float)
    v = np.asarray(v, dtype=float)
    u = q[..., :3]
    w = q[..., 3:4]
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)


def quat_from_axis_angle(axis, angle: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=float)
    axis = axis / np.linalg.norm(axis)
    s = np.sin(angle / 2)
    return np.array([axis[0] * s, axis[1] * s, axis[2] * s, np.cos(angle / 2)])


def quat_from_matrix(m) -> np.ndarray:
    """Rotation matrix (3x3) → quaternion."""
    m = np.asarray(m, dtype=float)
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        q = [(m[2, 1] - m[1, 2]) * s, (m[0, 2] - m[2, 0]) * s,
             (m[1, 0] - m[0, 1]) * s, 0.25 / s]
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * np.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        q = [0.25 * s, (m[0, 1] + m[1, 0]) / s,
             (m[0, 2] + m[2, 0]) / s, (m[2, 1] - m[1, 2]) / s]
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * np.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        q = [(m[0, 1] + m[1, 0]) / s, 0.25 * s,
             (m[1, 2] + m[2, 1]) / s, (m[0, 2] - m[2, 0]) / s]
    else:
        s = 2.0 * np.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        q = [(m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s,
             0.25 * s, (m[1, 0] - m[0, 1]) / s]
    return quat_normalize(np.array(q))


def slerp(a, b, t) -> np.ndarray:
    """
    Spherical interpolation between unit quaternions.

    ``t`` may be a scalar or broadcast against the batch axis. Takes the
    short way round and falls back to normalised lerp for near-parallel
    inputs.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    t = np.asarray(t, dtype=float)[..., np.newaxis] if np.ndim(t) else float(t)

    dot = np.sum(a * b, axis=-1, keepdims=True)
    b = np.where(dot < 0.0, -b, b)
    dot = np.abs(dot)

    near = dot > 0.9995
    theta = np.arccos(np.clip(dot, -1.0, 1.0))
    sin_theta = np.where(near, 1.0, np.sin(theta))
    s0 = np.where(near, 1.0 - t, np.sin((1.0 - t) * theta) / sin_theta)
    s1 = np.where(near, t, np.sin(t * theta) / sin_theta)
    return quat_normalize(s0 * a + s1 * b)


def lerp(a, b, t):
    return a + (b - a) * t


def blend_factor(per_frame: float, delta: float, reference_fps: float = 60.0) -> float:
    """
    Frame-rate independent version of "move ``per_frame`` of the way".

    At ``delta == 1 / reference_fps`` this returns ``per_frame`` exactly.
    """
    if delta <= 0:
        return 0.0
    return 1.0 - (1.0 - per_frame) ** (delta * reference_fps)


# ── frames ───────────────────────────────────────────────────────────
@dataclass
class Frame:
    """
    A rigid coordinate frame: rotate by ``quaternion`` then translate by
    ``position``. Parent frames are passed explicitly; there is no implicit scene
    graph.
    """

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    quaternion: np.ndarray = field(default_factory=lambda: IDENTITY.copy())

    def to_world(self, points) -> np.ndarray:
        return quat_rotate(self.quaternion, points) + self.position

    def world_to_local(self, points) -> np.ndarray:
        inv = quat_conjugate(self.quaternion)
        return quat_rotate(inv, np.asarray(points, dtype=float) - self.position)

    def rotation_to_local(self, world_quat) -> np.ndarray:
        """Local orientation whose world orientation equals ``world_quat``."""
        return quat_multiply(quat_conjugate(self.quaternion), world_quat)


@dataclass
class Camera:
    """Perspective camera looking down its local -Z axis."""

    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 2.0, 25.0]))
    quaternion: np.ndarray = field(default_factory=lambda: IDENTITY.copy())
    fov: float = 50.0

    def forward(self) -> np.ndarray:
        return quat_rotate(self.quaternion, np.array([0.0, 0.0, -1.0]))

    def look_at(self, target, up=(0.0, 1.0, 0.0)) -> "Camera":
        z = self.position - np.asarray(target, dtype=float)
        z = z / np.linalg.norm(z)
        x = np.cross(np.asarray(up, dtype=float), z)
        if np.linalg.norm(x) < 1e-9:
            x = np.array([1.0, 0.0, 0.0])
        x = x / np.linalg.norm(x)
        y = np.cross(z, x)
        self.quaternion = quat_from_matrix(np.column_stack((x, y, z)))
        return self

    @property
    def frame(self) -> Frame:
        return Frame(position=self.position.copy(), quaternion=self.quaternion.copy())
