"""Minimal marker diffing between recomputation passes."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.modules.map.models import (
    Cluster,
    HighlightKind,
    MarkerStyle,
    RenderedMarker,
)
from src.modules.map.presentation import z_index
from src.utils.logger import get_logger

logger = get_logger(__name__)

ClassifyFn = Callable[[Cluster], HighlightKind]
ClickListener = Callable[[], None]


@dataclass
class MarkerCommands:
    """Everything the rendering surface has to do to reach the new marker set."""

    to_create: list[RenderedMarker] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)
    to_recolor: list[RenderedMarker] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_remove or self.to_recolor)


class RenderingSurface(Protocol):
    """Marker operations of the street-map renderer."""

    def create_marker(self, marker: RenderedMarker, on_click: ClickListener) -> Any:
        """Place a marker and attach ``on_click``. Returns an opaque handle."""
        ...

    def recolor_marker(self, handle: Any, marker: RenderedMarker) -> None: ...

    def remove_marker(self, handle: Any) -> None:
        """Take the marker off the map and detach its listeners."""
        ...


def build_marker(
    cluster: Cluster, kind: HighlightKind, style: MarkerStyle
) -> RenderedMarker:
    return RenderedMarker(
        key=cluster.key,
        member_ids=cluster.member_ids,
        lat=cluster.lat,
        lng=cluster.lng,
        kind=kind,
        z_index=z_index(kind),
        style=None if cluster.is_cluster else style,
    )


def reconcile(
    previous: Mapping[str, RenderedMarker],
    clusters: Sequence[Cluster],
    classify_fn: ClassifyFn,
    style: MarkerStyle = MarkerStyle.PRICE_BUBBLE,
) -> MarkerCommands:
    """Diff the rendered markers against a new cluster set by identity key.

    Unchanged keys with an unchanged highlight produce no command. A single
    marker whose style flips between price bubble and dot is re-created.
    """
    commands = MarkerCommands()
    next_keys: set[str] = set()

    for cluster in clusters:
        marker = build_marker(cluster, classify_fn(cluster), style)
        next_keys.add(marker.key)
        existing = previous.get(marker.key)

        if existing is None:
            commands.to_create.append(marker)
        elif existing.style != marker.style:
            commands.to_remove.append(marker.key)
            commands.to_create.append(marker)
        elif existing.kind != marker.kind:
            commands.to_recolor.append(marker)

    for key in previous:
        if key not in next_keys:
            commands.to_remove.append(key)

    return commands


@dataclass
class _Entry:
    marker: RenderedMarker
    handle: Any
    listener: ClickListener


class MarkerRegistry:
    """Owns the identity key -> marker handle map for one rendering surface."""

    def __init__(self):
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def snapshot(self) -> dict[str, RenderedMarker]:
        return {key: entry.marker for key, entry in self._entries.items()}

    def get(self, key: str) -> RenderedMarker | None:
        entry = self._entries.get(key)
        return entry.marker if entry else None

    def apply(
        self,
        commands: MarkerCommands,
        surface: RenderingSurface,
        on_click: Callable[[str], None],
    ) -> bool:
        """Apply one pass worth of commands.

        Creates run first; if any create fails the ones already placed are
        taken down again and the previous markers stay untouched.
        """
        if commands.is_empty:
            return True

        created: dict[str, _Entry] = {}
        try:
            for marker in commands.to_create:
                listener = _bind_click(on_click, marker.key)
                handle = surface.create_marker(marker, listener)
                created[marker.key] = _Entry(marker, handle, listener)
        except Exception:
            logger.exception(
                "Failed to create map markers, keeping previous markers",
                attempted=len(commands.to_create),
            )
            for entry in created.values():
                self._safe_remove(surface, entry)
            return False

        entries = dict(self._entries)

        for marker in commands.to_recolor:
            entry = entries.get(marker.key)
            if entry is None:
                continue
            try:
                surface.recolor_marker(entry.handle, marker)
            except Exception:
                logger.exception("Failed to recolor map marker", key=marker.key)
                continue
            entries[marker.key] = _Entry(marker, entry.handle, entry.listener)

        for key in commands.to_remove:
            entry = entries.get(key)
            if entry is None:
                continue
            if self._safe_remove(surface, entry):
                del entries[key]
            elif key in created:
                # Old marker is still drawn; keep it tracked instead of the new one
                self._safe_remove(surface, created.pop(key))

        entries.update(created)
        self._entries = entries
        return True

    def clear(self, surface: RenderingSurface) -> None:
        self._entries = {
            key: entry
            for key, entry in self._entries.items()
            if not self._safe_remove(surface, entry)
        }

    @staticmethod
    def _safe_remove(surface: RenderingSurface, entry: _Entry) -> bool:
        try:
            surface.remove_marker(entry.handle)
        except Exception:
            logger.exception("Failed to remove map marker", key=entry.marker.key)
            return False
        return True


def _bind_click(on_click: Callable[[str], None], key: str) -> ClickListener:
    def listener() -> None:
        on_click(key)

    return listener
