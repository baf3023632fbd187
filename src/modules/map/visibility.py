"""Viewport filtering and the shared visible-listings store."""

from collections.abc import Callable, Iterable

from src.modules.map.models import CLUSTER_KEY_DELIMITER, Bounds, Point
from src.utils.logger import get_logger

logger = get_logger(__name__)


def sanitize_points(points: Iterable[Point]) -> list[Point]:
    """Drop points the engine cannot place.

    Duplicate IDs and non-finite coordinates are dropped, as are IDs holding
    the cluster key delimiter since they would collide with a cluster key.
    The first occurrence of an ID wins. Dropped points are logged, never raised,
    so one bad listing cannot blank the whole map.
    """
    seen: set[str] = set()
    clean: list[Point] = []
    duplicates: list[str] = []
    invalid: list[str] = []

    for point in points:
        if point.id in seen:
            duplicates.append(point.id)
            continue
        if not point.is_finite or CLUSTER_KEY_DELIMITER in point.id:
            invalid.append(point.id)
            continue
        seen.add(point.id)
        clean.append(point)

    if duplicates:
        logger.warning(
            "Dropped map points with duplicate ids",
            dropped=len(duplicates),
            ids=duplicates[:10],
        )
    if invalid:
        logger.warning(
            "Dropped map points with invalid ids or coordinates",
            dropped=len(invalid),
            ids=invalid[:10],
        )
    return clean


def visible_points(points: Iterable[Point], bounds: Bounds | None) -> list[Point]:
    """Points inside the viewport. An unknown or degenerate viewport shows nothing."""
    if bounds is None or bounds.is_degenerate:
        return []
    return [p for p in points if bounds.contains(p.lat, p.lng)]


VisibleIdsListener = Callable[[tuple[str, ...] | None], None]


class VisibleListingsStore:
    """Visible listing IDs shared between the map and the results list.

    ``None`` means the list is not filtered. Every write replaces the whole
    value so readers never see a partially updated set.
    """

    def __init__(self):
        self._visible_ids: tuple[str, ...] | None = None
        self._listeners: list[VisibleIdsListener] = []

    @property
    def visible_ids(self) -> tuple[str, ...] | None:
        return self._visible_ids

    def subscribe(self, listener: VisibleIdsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, ids: Iterable[str] | None) -> None:
        value = None if ids is None else tuple(ids)
        if value == self._visible_ids:
            return
        self._visible_ids = value
        for listener in list(self._listeners):
            listener(value)

    def clear(self) -> None:
        self.publish(None)
