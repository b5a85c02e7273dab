"""
Tannen – Point Generators
Random 3-D coordinates for the two target configurations.

Every function takes an optional ``rng`` (a ``numpy.random.Generator``) so
tests can pin the output; without one the module-level generator is used.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from . import config as cfg

_default_rng = np.random.default_rng()


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return _default_rng if rng is None else rng


# ── single points ────────────────────────────────────────────────────
def scatter_point(
    radius: float = cfg.SCATTER_RADIUS,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Uniform-by-volume point inside a sphere of ``radius``."""
    return scatter_points(1, radius, rng)[0]


def tree_point(
    height: float = cfg.TREE_HEIGHT,
    base_radius: float = cfg.TREE_RADIUS_BOTTOM,
    y_offset: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Point inside a cone standing on ``y_offset`` (default: centred)."""
    return tree_points(1, height, base_radius, y_offset, rng)[0]


def random_range(
    low: float,
    high: float,
    rng: Optional[np.random.Generator] = None,
    size: Optional[int] = None,
):
    """Uniform in ``[low, high)``; a float, or an array when ``size`` is given."""
    g = _rng(rng)
    if size is None:
        return float(g.random() * (high - low) + low)
    return g.random(size) * (high - low) + low


# ── batches ──────────────────────────────────────────────────────────
def scatter_points(
    n: int,
    radius: float = cfg.SCATTER_RADIUS,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    ``(n, 3)`` points uniformly distributed through a ball.

    The radius is drawn as ``cbrt(u) * radius`` so density is even by
    volume rather than clumped at the centre; direction uses
    ``acos(2v - 1)`` for the polar angle to avoid pole bias.
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    g = _rng(rng)
    u = g.random(n)
    v = g.random(n)
    theta = 2.0 * math.pi * u
    phi = np.arccos(2.0 * v - 1.0)
    r = np.cbrt(g.random(n)) * radius

    sin_phi = np.sin(phi)
    return np.column_stack((
        r * sin_phi * np.cos(theta),
        r * sin_phi * np.sin(theta),
        r * np.cos(phi),
    ))


def tree_points(
    n: int,
    height: float = cfg.TREE_HEIGHT,
    base_radius: float = cfg.TREE_RADIUS_BOTTOM,
    y_offset: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    ``(n, 3)`` points filling a cone.

    Height is uniform; the allowed radius tapers linearly to zero at the
    apex; the radial distance is ``sqrt``-uniform over the disk but kept
    between 20 % and 100 % of the allowed radius so the core is neither
    hollow nor over-dense.
    """
    if height <= 0:
        raise ValueError(f"height must be positive, got {height}")
    if y_offset is None:
        y_offset = -height / 2
    g = _rng(rng)
    h = g.random(n)
    y = h * height + y_offset
    max_r = base_radius * (1.0 - h)
    r = max_r * (0.2 + 0.8 * np.sqrt(g.random(n)))
    theta = g.random(n) * 2.0 * math.pi
    return np.column_stack((r * np.cos(theta), y, r * np.sin(theta)))


def ring_points(
    n: int,
    r_min: float,
    r_max: float,
    y_min: float,
    y_max: float,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """``(n, 3)`` points in a flat annulus slab (uniform in r, not area)."""
    g = _rng(rng)
    r = g.random(n) * (r_max - r_min) + r_min
    theta = g.random(n) * 2.0 * math.pi
    y = g.random(n) * (y_max - y_min) + y_min
    return np.column_stack((r * np.cos(theta), y, r * np.sin(theta)))


def push_outward(points: np.ndarray, distance: float) -> np.ndarray:
    """
    Move points ``distance`` away from the trunk axis in the XZ plane.

    Points sitting exactly on the axis stay where they are.
    """
    out = np.array(points, dtype=float, copy=True)
    radial = np.hypot(out[:, 0], out[:, 2])
    safe = radial > 1e-9
    out[safe, 0] += out[safe, 0] / radial[safe] * distance
    out[safe, 2] += out[safe, 2] / radial[safe] * distance
    return out
