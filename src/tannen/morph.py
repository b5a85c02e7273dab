"""
Tannen – Morph Clock
One scalar per animated group describing how far it has travelled from
the scattered (0) toward the formed (1) configuration.
"""

from __future__ import annotations

import numpy as np

from . import config as cfg


def ease_in_out_cubic(t):
    """Cubic ease in/out; accepts a float or an ndarray."""
    t = np.asarray(t, dtype=float)
    out = np.where(t < 0.5, 4.0 * t ** 3, 1.0 - (-2.0 * t + 2.0) ** 3 / 2.0)
    return float(out) if out.ndim == 0 else out


class MorphClock:
    """
    Exponentially smoothed progress toward the active configuration.

    ``progress`` moves a fixed share of the remaining distance each
    step, so it approaches the target monotonically and never
    overshoots as long as ``rate * delta <= 1``; the step is clamped to
    guarantee that.
    """

    def __init__(
        self,
        rate: float = cfg.ORNAMENT_MORPH_RATE,
        progress: float = 0.0,
        max_delta: float = cfg.MAX_FRAME_DELTA,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if not 0.0 <= progress <= 1.0:
            raise ValueError(f"progress must be in [0, 1], got {progress}")
        self.rate = rate
        self.max_delta = max_delta
        self.progress = float(progress)
        self.target = 1.0 if progress >= 1.0 else 0.0

    def advance(self, delta: float, formed: bool) -> float:
        """Step the clock by ``delta`` seconds toward ``formed``."""
        self.target = 1.0 if formed else 0.0
        delta = min(max(delta, 0.0), self.max_delta)
        k = min(max(self.rate * delta, 0.0), 1.0)
        self.progress += (self.target - self.progress) * k
        return self.progress

    @property
    def eased(self) -> float:
        return ease_in_out_cubic(self.progress)

    def __repr__(self) -> str:
        return f"MorphClock(progress={self.progress:.3f}, target={self.target:.0f})"
