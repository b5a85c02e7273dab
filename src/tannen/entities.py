"""
Tannen – Entity Store
Dual-position entities kept as index-addressed ``numpy`` buffers.

Each visual group (foliage, one ornament material, gifts, photos) is an
``EntityGroup``. Its buffers are generated once, frozen, and replaced
wholesale when the population or the photo list changes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from . import config as cfg
from . import point_generators as pg

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

SPHERE = "sphere"
BOX = "box"
POINT = "point"
PHOTO = "photo"


@dataclass(frozen=True)
class Transform:
    position: Tuple[float, float, float]
    rotation: Tuple[float, float, float]   # XYZ Euler, radians
    scale: float


@dataclass(frozen=True)
class DualPositionEntity:
    """Read-only view of one entity inside an ``EntityGroup``."""
    index: int
    formed: Transform
    scatter: Transform
    phase_speed: float
    seed: float
    color: Color
    kind: str
    image_id: Optional[str] = None
    url: Optional[str] = None


@dataclass
class EntityGroup:
    """
    Per-entity buffers for one group. Row ``i`` of every array belongs
    to entity ``i``; nothing is ever written after construction.
    """

    name: str
    profile: str
    scatter_positions: np.ndarray
    formed_positions: np.ndarray
    scatter_rotations: np.ndarray
    formed_rotations: np.ndarray
    scales: np.ndarray
    phase_speeds: np.ndarray
    seeds: np.ndarray
    colors: np.ndarray
    kinds: Tuple[str, ...]
    scatter_scale: float = 1.0
    formed_scale: float = 1.0
    sizes: Optional[np.ndarray] = None
    ids: Tuple[str, ...] = ()
    urls: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        n = len(self.scatter_positions)
        for name in ("formed_positions", "scatter_rotations", "formed_rotations",
                     "scales", "phase_speeds", "seeds", "colors"):
            arr = getattr(self, name)
            if len(arr) != n:
                raise ValueError(f"{self.name}: {name} has {len(arr)} rows, expected {n}")
        if len(self.kinds) != n:
            raise ValueError(f"{self.name}: kinds has {len(self.kinds)} rows, expected {n}")
        if np.any(self.phase_speeds <= 0):
            raise ValueError(f"{self.name}: phase speeds must be positive")

        for name in ("scatter_positions", "formed_positions", "scatter_rotations",
                     "formed_rotations", "scales", "phase_speeds", "seeds",
                     "colors", "sizes"):
            arr = getattr(self, name)
            if arr is not None:
                arr = np.array(arr, dtype=float)
                arr.flags.writeable = False
                setattr(self, name, arr)

    def __len__(self) -> int:
        return len(self.scatter_positions)

    def entity(self, i: int) -> DualPositionEntity:
        return DualPositionEntity(
            index=i,
            formed=Transform(
                tuple(self.formed_positions[i]),
                tuple(self.formed_rotations[i]),
                float(self.scales[i] * self.formed_scale),
            ),
            scatter=Transform(
                tuple(self.scatter_positions[i]),
                tuple(self.scatter_rotations[i]),
                float(self.scales[i] * self.scatter_scale),
            ),
            phase_speed=float(self.phase_speeds[i]),
            seed=float(self.seeds[i]),
            color=tuple(self.colors[i]),
            kind=self.kinds[i],
            image_id=self.ids[i] if self.ids else None,
            url=self.urls[i] if self.urls else None,
        )

    def index_of(self, image_id: str) -> Optional[int]:
        try:
            return self.ids.index(image_id)
        except ValueError:
            return None


def _check_count(count: int) -> None:
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return np.random.default_rng() if rng is None else rng


# ── foliage ──────────────────────────────────────────────────────────
def generate_foliage(
    count: int = cfg.FOLIAGE_COUNT,
    rng: Optional[np.random.Generator] = None,
) -> EntityGroup:
    """Point-sprite needles; bigger near the base of the tree."""
    _check_count(count)
    g = _rng(rng)
    formed = pg.tree_points(count, rng=g)
    scatter = pg.scatter_points(count, rng=g)
    seeds = g.random(count)

    y_offset = -cfg.TREE_HEIGHT / 2
    h = (formed[:, 1] - y_offset) / cfg.TREE_HEIGHT
    sizes = (g.random(count) * 0.5 + 0.2) * (0.8 + 0.4 * (1.0 - h))

    zeros = np.zeros((count, 3))
    return EntityGroup(
        name="foliage",
        profile="foliage",
        scatter_positions=scatter,
        formed_positions=formed,
        scatter_rotations=zeros,
        formed_rotations=zeros,
        scales=np.ones(count),
        phase_speeds=np.ones(count),
        seeds=seeds,
        colors=np.tile(cfg.COLORS["emerald"], (count, 1)),
        kinds=(POINT,) * count,
        sizes=sizes,
    )


# ── ornaments ────────────────────────────────────────────────────────
ORNAMENT_MATERIALS: Dict[str, Tuple[float, str, Tuple[str, ...]]] = {
    # name: (share of ornament count, primitive, palette)
    "gold": (0.30, SPHERE, ("gold",)),
    "ceramic": (0.40, SPHERE, ("emerald", "ruby")),
    "satin": (0.30, SPHERE, ("blue", "purple")),
    "boxes": (0.15, BOX, ("gold", "ruby", "blue")),
}


def generate_ornaments(
    count: int,
    kind: str,
    palette: Sequence[Color],
    name: str = "ornaments",
    rng: Optional[np.random.Generator] = None,
) -> EntityGroup:
    """Baubles hung just outside the foliage surface."""
    _check_count(count)
    g = _rng(rng)
    formed = pg.push_outward(pg.tree_points(count, 12.0, 5.0, -6.0, rng=g), 0.4)
    scatter = pg.scatter_points(count, 20.0, rng=g)
    rotations = np.column_stack((
        g.random(count) * math.pi,
        g.random(count) * math.pi,
        np.zeros(count),
    ))
    palette = np.asarray(palette, dtype=float)
    colors = palette[g.integers(0, len(palette), size=count)] if count else np.zeros((0, 3))

    return EntityGroup(
        name=name,
        profile="ornament",
        scatter_positions=scatter,
        formed_positions=formed,
        scatter_rotations=rotations,
        formed_rotations=rotations,
        scales=pg.random_range(0.8, 1.5, rng=g, size=count),
        phase_speeds=pg.random_range(0.5, 2.0, rng=g, size=count),
        seeds=np.arange(count, dtype=float),
        colors=colors,
        kinds=(kind,) * count,
        scatter_scale=0.5,
        formed_scale=1.0,
    )


def generate_ornament_groups(
    count: int = cfg.ORNAMENT_COUNT,
    rng: Optional[np.random.Generator] = None,
) -> Dict[str, EntityGroup]:
    """One group per material class, sized as a share of ``count``."""
    _check_count(count)
    g = _rng(rng)
    groups = {}
    for name, (share, kind, palette) in ORNAMENT_MATERIALS.items():
        colors = [cfg.COLORS[c] for c in palette]
        groups[name] = generate_ornaments(int(count * share), kind, colors, name=name, rng=g)
    return groups


# ── gifts ────────────────────────────────────────────────────────────
def _gift_colors(g: np.random.Generator, n: int) -> np.ndarray:
    # gold 40 %, ruby 35 %, emerald 10 %, blue/purple share the rest
    roll = g.random(n)
    coin = g.random(n)
    out = np.empty((n, 3))
    for i in range(n):
        if roll[i] < 0.40:
            name = "gold"
        elif roll[i] < 0.75:
            name = "ruby"
        elif roll[i] < 0.85:
            name = "emerald"
        else:
            name = "blue" if coin[i] > 0.5 else "purple"
        out[i] = cfg.COLORS[name]
    return out


def generate_gifts(
    count: int = cfg.GIFT_COUNT,
    rng: Optional[np.random.Generator] = None,
) -> EntityGroup:
    """Boxes piled in a ring around the foot of the tree."""
    _check_count(count)
    g = _rng(rng)
    bottom = -cfg.TREE_HEIGHT / 2
    scatter = pg.scatter_points(count, 20.0, rng=g)
    formed = pg.ring_points(count, 2.0, cfg.TREE_RADIUS_BOTTOM + 2.0, bottom, bottom + 2.0, rng=g)
    yaw = g.random(count) * 2.0 * math.pi
    rotations = np.column_stack((np.zeros(count), yaw, np.zeros(count)))

    return EntityGroup(
        name="gifts",
        profile="gift",
        scatter_positions=scatter,
        formed_positions=formed,
        scatter_rotations=rotations,
        formed_rotations=rotations * np.array([0.0, 1.0, 0.0]),
        scales=pg.random_range(1.0, 1.5, rng=g, size=count),
        phase_speeds=pg.random_range(0.5, 1.5, rng=g, size=count),
        seeds=np.arange(count, dtype=float),
        colors=_gift_colors(g, count),
        kinds=(BOX,) * count,
    )


# ── photos ───────────────────────────────────────────────────────────
def photo_id(index: int) -> str:
    return f"photo-{index}"


def generate_photos(
    urls: Sequence[str],
    rng: Optional[np.random.Generator] = None,
) -> EntityGroup:
    """Framed images hung in the middle-to-lower part of the tree."""
    g = _rng(rng)
    count = len(urls)
    formed = pg.push_outward(pg.tree_points(count, 10.0, 5.0, -5.0, rng=g), 0.8)
    scatter = pg.scatter_points(count, 18.0, rng=g)
    yaw = g.random(count) * 2.0 * math.pi
    rotations = np.column_stack((np.zeros(count), yaw, np.zeros(count)))

    logger.debug("Generated %d photo entities", count)
    return EntityGroup(
        name="photos",
        profile="photo",
        scatter_positions=scatter,
        formed_positions=formed,
        scatter_rotations=rotations,
        formed_rotations=rotations,
        scales=pg.random_range(0.8, 1.2, rng=g, size=count),
        phase_speeds=pg.random_range(0.5, 1.5, rng=g, size=count),
        seeds=np.zeros(count),
        colors=np.tile(cfg.COLORS["gold"], (count, 1)),
        kinds=(PHOTO,) * count,
        ids=tuple(photo_id(i) for i in range(count)),
        urls=tuple(urls),
    )
