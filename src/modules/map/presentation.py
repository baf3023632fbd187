"""Highlight classification and marker styling."""

from collections.abc import Iterable

from src.modules.map.models import (
    Cluster,
    HighlightKind,
    InteractionState,
    MapVariant,
    MarkerStyle,
    cluster_key,
)
from src.utils.settings.map import MapSettings

# Stacking order on the map, higher draws on top
Z_INDEX: dict[HighlightKind, int] = {
    HighlightKind.HOVERED: 10,
    HighlightKind.SELECTED: 5,
    HighlightKind.LIKED: 3,
    HighlightKind.APPLIED: 2,
    HighlightKind.DEFAULT: 1,
    HighlightKind.DISLIKED: 0,
}


def classify(
    member_ids: str | Iterable[str],
    state: InteractionState,
    is_cluster: bool | None = None,
) -> HighlightKind:
    """Highlight for a marker, first matching rule wins.

    1. selected, then hovered (any member, for a cluster)
    2. disliked
    3. liked
    4. applied
    5. default

    Rules 2-4 only apply to single-point markers: a cluster mixing liked and
    disliked listings has no single colour.
    """
    ids = (member_ids,) if isinstance(member_ids, str) else tuple(member_ids)
    if is_cluster is None:
        is_cluster = len(ids) > 1

    if state.selected_id is not None and state.selected_id in ids:
        return HighlightKind.SELECTED
    if is_cluster and state.selected_cluster_key is not None:
        if cluster_key(ids) == state.selected_cluster_key:
            return HighlightKind.SELECTED
    if state.hovered_id is not None and state.hovered_id in ids:
        return HighlightKind.HOVERED

    if is_cluster:
        return HighlightKind.DEFAULT

    point_id = ids[0]
    if point_id in state.disliked_ids:
        return HighlightKind.DISLIKED
    if point_id in state.liked_ids:
        return HighlightKind.LIKED
    if point_id in state.applied_ids:
        return HighlightKind.APPLIED
    return HighlightKind.DEFAULT


def classify_cluster(cluster: Cluster, state: InteractionState) -> HighlightKind:
    return classify(cluster.member_ids, state, cluster.is_cluster)


def z_index(kind: HighlightKind) -> int:
    return Z_INDEX[kind]


def marker_style(
    visible_count: int,
    variant: MapVariant,
    settings: MapSettings | None = None,
) -> MarkerStyle:
    """Dense viewports get compact dots instead of price bubbles."""
    settings = settings or MapSettings()
    threshold = (
        settings.MAP_FULLSCREEN_SIMPLE_MARKER_THRESHOLD
        if variant == MapVariant.FULLSCREEN
        else settings.MAP_SIMPLE_MARKER_THRESHOLD
    )
    if visible_count > threshold:
        return MarkerStyle.SIMPLE
    return MarkerStyle.PRICE_BUBBLE
