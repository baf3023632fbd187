"""Core types shared by the map clustering engine."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

CLUSTER_KEY_DELIMITER = ","


class HighlightKind(str, Enum):
    """Visual classification of a rendered marker."""

    DEFAULT = "default"
    HOVERED = "hovered"
    SELECTED = "selected"
    LIKED = "liked"
    DISLIKED = "disliked"
    APPLIED = "applied"


class MarkerStyle(str, Enum):
    """How a single-listing marker is drawn."""

    PRICE_BUBBLE = "price_bubble"
    SIMPLE = "simple"


class MapVariant(str, Enum):
    """The search map surfaces that share the engine."""

    DESKTOP = "desktop"
    FULLSCREEN = "fullscreen"
    MOBILE = "mobile"


@dataclass(frozen=True)
class Point:
    """One listing on the map. ``payload`` is never inspected."""

    id: str
    lat: float
    lng: float
    payload: Any = field(default=None, compare=False, repr=False)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)


def cluster_key(member_ids) -> str:
    """Identity of a rendered marker: the point ID, or the sorted member IDs."""
    ids = list(member_ids)
    if len(ids) == 1:
        return ids[0]
    return CLUSTER_KEY_DELIMITER.join(sorted(ids))


@dataclass(frozen=True)
class Cluster:
    """Pixel-proximate group of points. Rebuilt on every pass."""

    member_ids: tuple[str, ...]
    lat: float
    lng: float

    def __post_init__(self):
        if not self.member_ids:
            raise ValueError("Cluster requires at least one member")

    @property
    def size(self) -> int:
        return len(self.member_ids)

    @property
    def is_cluster(self) -> bool:
        return len(self.member_ids) > 1

    @property
    def key(self) -> str:
        return cluster_key(self.member_ids)

    @classmethod
    def from_points(cls, points: list[Point]) -> "Cluster":
        count = len(points)
        if not count:
            raise ValueError("Cluster requires at least one member")
        return cls(
            member_ids=tuple(p.id for p in points),
            lat=sum(p.lat for p in points) / count,
            lng=sum(p.lng for p in points) / count,
        )


@dataclass(frozen=True)
class Bounds:
    """Geographic bounding box, closed on both axes.

    ``west > east`` describes a box crossing the antimeridian.
    """

    south: float
    west: float
    north: float
    east: float

    @property
    def is_degenerate(self) -> bool:
        values = (self.south, self.west, self.north, self.east)
        if not all(math.isfinite(v) for v in values):
            return True
        return self.south > self.north

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def contains(self, lat: float, lng: float) -> bool:
        if not self.south <= lat <= self.north:
            return False
        if self.crosses_antimeridian:
            return lng >= self.west or lng <= self.east
        return self.west <= lng <= self.east


@dataclass(frozen=True)
class Viewport:
    bounds: Bounds
    zoom: float


@dataclass(frozen=True)
class InteractionState:
    """Read-only snapshot of user interaction state for one pass."""

    liked_ids: frozenset[str] = frozenset()
    disliked_ids: frozenset[str] = frozenset()
    applied_ids: frozenset[str] = frozenset()
    selected_id: str | None = None
    hovered_id: str | None = None
    selected_cluster_key: str | None = None

    def __post_init__(self):
        # Accept any iterable of IDs from callers
        for name in ("liked_ids", "disliked_ids", "applied_ids"):
            value = getattr(self, name)
            if not isinstance(value, frozenset):
                object.__setattr__(self, name, frozenset(value))


@dataclass(frozen=True)
class RenderedMarker:
    """What the reconciliation layer last drew for one identity key."""

    key: str
    member_ids: tuple[str, ...]
    lat: float
    lng: float
    kind: HighlightKind
    z_index: int
    # None for numbered cluster markers
    style: MarkerStyle | None = None

    @property
    def is_cluster(self) -> bool:
        return len(self.member_ids) > 1

    @property
    def count(self) -> int:
        return len(self.member_ids)
