"""Map clustering and viewport synchronization engine."""

from .clustering import ZoomRadiusPolicy, cluster_points, should_cluster
from .engine import ClusterClick, MapEngine, PassScope
from .layout import MapLayout, compute_layout
from .models import (
    Bounds,
    Cluster,
    HighlightKind,
    InteractionState,
    MapVariant,
    MarkerStyle,
    Point,
    RenderedMarker,
    Viewport,
)
from .presentation import classify
from .projection import ProjectionError, WebMercatorProjection
from .reconciliation import MarkerCommands, MarkerRegistry, reconcile
from .visibility import VisibleListingsStore, sanitize_points, visible_points

__all__ = [
    "Bounds",
    "Cluster",
    "ClusterClick",
    "HighlightKind",
    "InteractionState",
    "MapEngine",
    "MapLayout",
    "MapVariant",
    "MarkerCommands",
    "MarkerRegistry",
    "MarkerStyle",
    "PassScope",
    "Point",
    "ProjectionError",
    "RenderedMarker",
    "Viewport",
    "VisibleListingsStore",
    "WebMercatorProjection",
    "ZoomRadiusPolicy",
    "classify",
    "cluster_points",
    "compute_layout",
    "reconcile",
    "sanitize_points",
    "should_cluster",
    "visible_points",
]
