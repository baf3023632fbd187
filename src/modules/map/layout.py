"""One layout pass: viewport -> visible points -> clusters."""

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from src.modules.map.clustering import (
    cluster_points,
    should_cluster,
    singleton_clusters,
)
from src.modules.map.models import Cluster, MapVariant, MarkerStyle, Point, Viewport
from src.modules.map.presentation import marker_style
from src.modules.map.projection import ProjectionAdapter
from src.modules.map.visibility import visible_points
from src.utils.settings.map import MapSettings


class InvalidRadiusError(ValueError):
    """The radius policy returned a non-positive or non-finite radius."""


@dataclass(frozen=True)
class MapLayout:
    viewport: Viewport
    visible: list[Point]
    clusters: list[Cluster]
    # None when zoomed in past clustering
    pixel_radius: float | None
    style: MarkerStyle

    @property
    def visible_ids(self) -> list[str]:
        return [p.id for p in self.visible]

    @property
    def is_clustered(self) -> bool:
        return self.pixel_radius is not None


def compute_layout(
    points: Iterable[Point],
    projection: ProjectionAdapter,
    radius_policy: Callable[[float], float],
    variant: MapVariant,
    settings: MapSettings,
) -> MapLayout:
    """Raises ProjectionError or InvalidRadiusError; no side effects."""
    viewport = projection.get_viewport()
    visible = visible_points(points, viewport.bounds)

    pixel_radius: float | None = None
    if should_cluster(viewport.zoom, settings.MAP_CLUSTER_MAX_ZOOM):
        pixel_radius = radius_policy(viewport.zoom)
        if not (math.isfinite(pixel_radius) and pixel_radius > 0):
            raise InvalidRadiusError(
                f"Radius policy returned {pixel_radius} for zoom {viewport.zoom}"
            )
        clusters = cluster_points(visible, pixel_radius, projection.project)
    else:
        clusters = singleton_clusters(visible)

    return MapLayout(
        viewport=viewport,
        visible=visible,
        clusters=clusters,
        pixel_radius=pixel_radius,
        style=marker_style(len(visible), variant, settings),
    )
