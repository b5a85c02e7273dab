import math

import numpy as np
import pytest

from tannen.landmarks import (
    INDEX_TIP,
    LANDMARK_COUNT,
    MIDDLE_MCP,
    MIDDLE_TIP,
    PINKY_TIP,
    RING_TIP,
    THUMB_TIP,
    WRIST,
    HandData,
)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def build_hand(tip_distance, pinch_distance=0.2, center=(0.5, 0.5)):
    """
    Synthetic hand: every non-thumb fingertip sits ``tip_distance`` from
    the wrist and the thumb tip sits ``pinch_distance`` from the index tip.
    """
    wrist = np.array([0.5, 0.8, 0.0])
    points = [wrist.copy() for _ in range(LANDMARK_COUNT)]

    for tip, angle in zip((INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP), (70, 85, 100, 115)):
        a = math.radians(angle)
        points[tip] = wrist + tip_distance * np.array([math.cos(a), -math.sin(a), 0.0])

    # thumb sits off to the side of the index tip, in z so it never
    # changes the fingertip→wrist average
    points[THUMB_TIP] = points[INDEX_TIP] + np.array([0.0, 0.0, pinch_distance])
    points[MIDDLE_MCP] = np.array([center[0], center[1], 0.0])
    points[WRIST] = wrist
    return HandData.from_points(points)


@pytest.fixture
def hand():
    return build_hand
