"""Event routing for a search map: decides what to recompute and when."""

import dataclasses
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import IntEnum

from src.modules.map.clustering import ZoomRadiusPolicy
from src.modules.map.debounce import Debouncer
from src.modules.map.layout import InvalidRadiusError, compute_layout
from src.modules.map.models import (
    Cluster,
    InteractionState,
    MapVariant,
    MarkerStyle,
    Point,
)
from src.modules.map.presentation import classify_cluster
from src.modules.map.projection import ProjectionAdapter, ProjectionError
from src.modules.map.reconciliation import (
    MarkerCommands,
    MarkerRegistry,
    RenderingSurface,
    reconcile,
)
from src.modules.map.visibility import VisibleListingsStore, sanitize_points
from src.utils.logger import get_logger
from src.utils.settings.map import MapSettings

logger = get_logger(__name__)


class PassScope(IntEnum):
    """How much of the pipeline a pass re-runs. Coalesced passes keep the widest."""

    RECOLOR = 1
    FULL = 2


@dataclass(frozen=True)
class ClusterClick:
    """A cluster marker was clicked; the caller usually flies to ``target_zoom``."""

    cluster: Cluster
    target_zoom: float


PointClickHandler = Callable[[Point, bool], None]
ClusterClickHandler = Callable[[ClusterClick], None]


class MapEngine:
    """One search map: desktop, fullscreen or mobile.

    Pan/zoom ends and point set changes trigger a full pass (visibility,
    clustering, presentation, reconciliation). Interaction changes (hover,
    like, selection) only re-run presentation and reconciliation against the
    clusters of the last full pass. Both go through one debouncer.
    """

    def __init__(
        self,
        surface: RenderingSurface,
        projection: ProjectionAdapter,
        *,
        variant: MapVariant = MapVariant.DESKTOP,
        settings: MapSettings | None = None,
        radius_policy: Callable[[float], float] | None = None,
        visible_store: VisibleListingsStore | None = None,
        on_point_click: PointClickHandler | None = None,
        on_cluster_click: ClusterClickHandler | None = None,
        debounce_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.surface = surface
        self.projection = projection
        self.variant = variant
        self.settings = settings or MapSettings()
        self.radius_policy = radius_policy or ZoomRadiusPolicy(
            self.settings.MAP_RADIUS_STEPS
        )
        self.visible_store = visible_store or VisibleListingsStore()
        self.registry = MarkerRegistry()
        self.on_point_click = on_point_click
        self.on_cluster_click = on_cluster_click
        self._clock = clock

        self._points: dict[str, Point] = {}
        self._state = InteractionState()
        # Event time of the last accepted write to each input
        self._points_time = float("-inf")
        self._state_time = float("-inf")
        self._visible: list[Point] = []
        self._clusters: list[Cluster] = []
        self._zoom: float | None = None
        self._style = MarkerStyle.PRICE_BUBBLE
        self._interacted = False
        self.last_commands: MarkerCommands | None = None

        delay = self.settings.MAP_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        self._debouncer: Debouncer[PassScope] = Debouncer(
            self._run_pass, delay, merge=max, clock=clock
        )

    # Read-only views

    @property
    def interaction_state(self) -> InteractionState:
        return self._state

    @property
    def clusters(self) -> list[Cluster]:
        return list(self._clusters)

    @property
    def visible_ids(self) -> list[str]:
        return [p.id for p in self._visible]

    @property
    def has_interacted(self) -> bool:
        return self._interacted

    @property
    def is_pinned(self) -> bool:
        """Desktop only: a clicked marker restricts the results list to itself."""
        return self.variant == MapVariant.DESKTOP and self._state.selected_id is not None

    # Inbound events

    def set_points(self, points: Iterable[Point], timestamp: float | None = None) -> None:
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        if timestamp >= self._points_time:
            self._points = {p.id: p for p in sanitize_points(points)}
            self._points_time = timestamp
        self._debouncer.trigger(PassScope.FULL, timestamp)

    def refresh(self, timestamp: float | None = None) -> None:
        """Recompute without counting as a user interaction (e.g. map loaded)."""
        timestamp = self._accept(timestamp)
        if timestamp is not None:
            self._debouncer.trigger(PassScope.FULL, timestamp)

    def handle_move_end(self, timestamp: float | None = None) -> None:
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        self._interacted = True
        self._debouncer.trigger(PassScope.FULL, timestamp)

    def handle_zoom_end(self, timestamp: float | None = None) -> None:
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        self._interacted = True
        self._debouncer.trigger(PassScope.FULL, timestamp)

    def set_interaction_state(
        self, state: InteractionState, timestamp: float | None = None
    ) -> None:
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        if timestamp >= self._state_time:
            self._state = state
            self._state_time = timestamp
        self._debouncer.trigger(PassScope.RECOLOR, timestamp)

    def hover(self, point_id: str | None, timestamp: float | None = None) -> None:
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        self._replace_state(timestamp, hovered_id=point_id)
        self._debouncer.trigger(PassScope.RECOLOR, timestamp)

    def handle_marker_click(self, key: str, timestamp: float | None = None) -> None:
        marker = self.registry.get(key)
        if marker is None:
            logger.debug("Click on unknown map marker", key=key)
            return
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        if marker.is_cluster:
            cluster = next((c for c in self._clusters if c.key == key), None)
            if cluster is not None:
                self._click_cluster(cluster, timestamp)
            return
        point = self._points.get(marker.member_ids[0])
        if point is not None:
            self._click_point(point, timestamp)

    def handle_map_click(self, timestamp: float | None = None) -> None:
        """Background click: drop any selection and restore the viewport filter."""
        timestamp = self._accept(timestamp)
        if timestamp is None:
            return
        self._replace_state(timestamp, selected_id=None, selected_cluster_key=None)
        self._publish_visible()
        self._debouncer.trigger(PassScope.RECOLOR, timestamp)

    def flush(self) -> bool:
        return self._debouncer.flush()

    def destroy(self) -> None:
        self._debouncer.cancel()
        self.registry.clear(self.surface)
        self._clusters = []
        self._visible = []

    # Click routing

    def _click_point(self, point: Point, timestamp: float) -> None:
        deselect = self._state.selected_id == point.id
        self._replace_state(
            timestamp,
            selected_id=None if deselect else point.id,
            selected_cluster_key=None,
        )

        if self.variant == MapVariant.DESKTOP:
            if deselect:
                self._publish_visible()
            else:
                self.visible_store.publish([point.id])

        self._debouncer.trigger(PassScope.RECOLOR, timestamp)
        if self.on_point_click is not None:
            self.on_point_click(point, not deselect)

    def _click_cluster(self, cluster: Cluster, timestamp: float) -> None:
        # Fullscreen never highlights the clicked cluster
        clicked_key = None if self.variant == MapVariant.FULLSCREEN else cluster.key
        self._replace_state(timestamp, selected_id=None, selected_cluster_key=clicked_key)
        self.visible_store.publish(cluster.member_ids)

        zoom = self._zoom if self._zoom is not None else self.settings.MAP_DEFAULT_ZOOM
        target_zoom = min(
            zoom + self.settings.MAP_CLUSTER_CLICK_ZOOM_STEP, self.settings.MAP_MAX_ZOOM
        )

        self._debouncer.trigger(PassScope.RECOLOR, timestamp)
        if self.on_cluster_click is not None:
            self.on_cluster_click(ClusterClick(cluster=cluster, target_zoom=target_zoom))

    # Passes

    def _accept(self, timestamp: float | None) -> float | None:
        """Resolve the event time, or None when an applied pass is already newer."""
        timestamp = self._clock() if timestamp is None else timestamp
        if timestamp < self._debouncer.last_applied:
            logger.debug(
                "Ignoring stale map event",
                event_time=timestamp,
                last_applied=self._debouncer.last_applied,
            )
            return None
        return timestamp

    def _replace_state(self, timestamp: float, **changes) -> None:
        # A newer interaction state already supersedes this change
        if timestamp < self._state_time:
            return
        self._state = dataclasses.replace(self._state, **changes)
        self._state_time = timestamp

    def _publish_visible(self) -> None:
        if not self._interacted:
            # Before the first pan/zoom the results list stays unfiltered
            self.visible_store.publish(None)
            return
        if self.is_pinned:
            return
        self.visible_store.publish(self.visible_ids)

    def _run_pass(self, scope: PassScope) -> None:
        if scope >= PassScope.FULL and not self._recompute_layout():
            return
        self._render()

    def _recompute_layout(self) -> bool:
        try:
            layout = compute_layout(
                self._points.values(),
                self.projection,
                self.radius_policy,
                self.variant,
                self.settings,
            )
        except ProjectionError as e:
            logger.warning("Map projection unavailable, keeping markers", error=str(e))
            return False
        except InvalidRadiusError as e:
            logger.error("Invalid cluster radius, keeping markers", error=str(e))
            return False

        self._visible = layout.visible
        self._clusters = layout.clusters
        self._zoom = layout.viewport.zoom
        self._style = layout.style

        selected_cluster = self._state.selected_cluster_key
        if selected_cluster is not None and all(
            c.key != selected_cluster for c in layout.clusters
        ):
            self._state = dataclasses.replace(self._state, selected_cluster_key=None)

        self._publish_visible()
        logger.debug(
            "Map layout recomputed",
            variant=self.variant.value,
            zoom=layout.viewport.zoom,
            visible=len(layout.visible),
            clusters=len(layout.clusters),
        )
        return True

    def _render(self) -> None:
        state = self._state
        commands = reconcile(
            self.registry.snapshot(),
            self._clusters,
            lambda cluster: classify_cluster(cluster, state),
            self._style,
        )
        self.last_commands = commands
        if commands.is_empty:
            return
        self.registry.apply(commands, self.surface, self.handle_marker_click)
