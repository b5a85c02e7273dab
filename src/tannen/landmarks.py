"""
Tannen – Hand landmarks
One frame's worth of hand keypoints, as produced by the tracker.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

LANDMARK_COUNT = 21

WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_TIP = 12
RING_TIP = 16
PINKY_TIP = 20

FINGERTIPS = (INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)


class TrackerUnavailable(RuntimeError):
    """Camera could not be opened or the landmark model failed to load."""


@dataclass(slots=True)
class Landmark:
    """Single 3-D landmark in *normalised* image coordinates."""
    x: float
    y: float
    z: float

    def distance(self, other: "Landmark") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )


@dataclass(slots=True)
class HandData:
    """Snapshot of one detected hand."""
    landmarks: List[Landmark]
    handedness: str = "Right"
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if len(self.landmarks) != LANDMARK_COUNT:
            raise ValueError(
                f"expected {LANDMARK_COUNT} landmarks, got {len(self.landmarks)}"
            )

    @classmethod
    def from_points(
        cls,
        points: Iterable[Sequence[float]],
        handedness: str = "Right",
        timestamp: float = 0.0,
    ) -> "HandData":
        return cls([Landmark(float(p[0]), float(p[1]), float(p[2])) for p in points],
                   handedness, timestamp)

    # ── convenience accessors ────────────────────────────────────────
    @property
    def wrist(self) -> Landmark:
        return self.landmarks[WRIST]

    @property
    def thumb_tip(self) -> Landmark:
        return self.landmarks[THUMB_TIP]

    @property
    def index_tip(self) -> Landmark:
        return self.landmarks[INDEX_TIP]

    @property
    def hand_center(self) -> Landmark:
        """Middle-finger MCP; steadier than the fingertips."""
        return self.landmarks[MIDDLE_MCP]

    def fingertip_spread(self) -> float:
        """Average distance of the four non-thumb fingertips to the wrist."""
        wrist = self.wrist
        return sum(self.landmarks[i].distance(wrist) for i in FINGERTIPS) / len(FINGERTIPS)

    def pinch_distance(self) -> float:
        return self.thumb_tip.distance(self.index_tip)
