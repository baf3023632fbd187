"""Map domain handlers."""

import dataclasses

from src.api.core.messages import APIResponse, MessageCode
from src.modules.map.clustering import ZoomRadiusPolicy
from src.modules.map.layout import compute_layout
from src.modules.map.models import InteractionState, MapVariant
from src.modules.map.presentation import classify_cluster
from src.modules.map.projection import WebMercatorProjection
from src.modules.map.reconciliation import build_marker, reconcile
from src.modules.map.visibility import sanitize_points, visible_points
from src.utils.logger import get_logger
from src.utils.settings.map import MapSettings
from .schemas import (
    CameraIn,
    ClusterOut,
    ClustersRequest,
    ClustersResponse,
    ClustersResult,
    InteractionStateIn,
    PointIn,
    ReconcileRequest,
    ReconcileResponse,
    ReconcileResult,
    VisibleRequest,
    VisibleResponse,
    VisibleResult,
)

logger = get_logger(__name__)


def build_projection(camera: CameraIn, settings: MapSettings) -> WebMercatorProjection:
    return WebMercatorProjection(
        center_lat=camera.center_lat,
        center_lng=camera.center_lng,
        zoom=camera.zoom,
        width=camera.width,
        height=camera.height,
        tile_size=settings.MAP_TILE_SIZE,
    )


def _points(points: list[PointIn]):
    return sanitize_points(p.to_point() for p in points)


def _interaction_state(
    state: InteractionStateIn, variant: MapVariant
) -> InteractionState:
    snapshot = state.to_state()
    if variant == MapVariant.FULLSCREEN:
        # Fullscreen never highlights the clicked cluster
        return dataclasses.replace(snapshot, selected_cluster_key=None)
    return snapshot


async def visible_handler(
    request: VisibleRequest, settings: MapSettings
) -> VisibleResponse:
    """IDs of the listings inside a camera or an explicit bounding box."""
    if request.camera is not None:
        bounds = build_projection(request.camera, settings).get_viewport().bounds
    else:
        bounds = request.bounds.to_bounds()

    visible = visible_points(_points(request.points), bounds)
    ids = [p.id for p in visible]

    return APIResponse.success(
        message_code=MessageCode.MAP_VISIBLE_LISTINGS,
        data=VisibleResult(visible_ids=ids, count=len(ids)),
    )


async def clusters_handler(
    request: ClustersRequest,
    settings: MapSettings,
    radius_policy: ZoomRadiusPolicy,
) -> ClustersResponse:
    """Full layout pass for one camera: what a map would draw right now."""
    projection = build_projection(request.camera, settings)
    layout = compute_layout(
        _points(request.points), projection, radius_policy, request.variant, settings
    )
    state = _interaction_state(request.state, request.variant)

    markers = [
        ClusterOut.from_marker(
            build_marker(cluster, classify_cluster(cluster, state), layout.style)
        )
        for cluster in layout.clusters
    ]

    logger.info(
        "Computed map clusters",
        zoom=layout.viewport.zoom,
        visible=len(layout.visible),
        clusters=len(markers),
        variant=request.variant.value,
    )

    return APIResponse.success(
        message_code=MessageCode.MAP_CLUSTERS_COMPUTED,
        data=ClustersResult(
            zoom=layout.viewport.zoom,
            clustered=layout.is_clustered,
            pixel_radius=layout.pixel_radius,
            style=layout.style,
            visible_ids=layout.visible_ids,
            clusters=markers,
        ),
    )


async def reconcile_handler(
    request: ReconcileRequest,
    settings: MapSettings,
    radius_policy: ZoomRadiusPolicy,
) -> ReconcileResponse:
    """Marker commands that take a client from ``previous`` to the new layout."""
    projection = build_projection(request.camera, settings)
    layout = compute_layout(
        _points(request.points), projection, radius_policy, request.variant, settings
    )
    state = _interaction_state(request.state, request.variant)

    previous = {m.key: m.to_marker() for m in request.previous}
    commands = reconcile(
        previous,
        layout.clusters,
        lambda cluster: classify_cluster(cluster, state),
        layout.style,
    )

    changed = {m.key for m in commands.to_create} | {m.key for m in commands.to_recolor}
    unchanged = sum(1 for c in layout.clusters if c.key not in changed)

    return APIResponse.success(
        message_code=MessageCode.MAP_MARKERS_RECONCILED,
        data=ReconcileResult(
            to_create=[ClusterOut.from_marker(m) for m in commands.to_create],
            to_remove=commands.to_remove,
            to_recolor=[ClusterOut.from_marker(m) for m in commands.to_recolor],
            unchanged=unchanged,
        ),
    )
