"""Tests for the map engine event routing."""

import asyncio

import pytest

from src.modules.map.engine import ClusterClick
from src.modules.map.models import (
    Bounds,
    HighlightKind,
    InteractionState,
    MapVariant,
    MarkerStyle,
    Point,
)
from src.utils.settings.map import MapSettings


def pair_and_single() -> list[Point]:
    # a-b are 30px apart (one cluster at zoom 12), c is far away
    return [
        Point(id="a", lat=0.0, lng=0.0),
        Point(id="b", lat=0.0, lng=30.0),
        Point(id="c", lat=0.0, lng=150.0),
    ]


def spread() -> list[Point]:
    return [
        Point(id="a", lat=0.0, lng=0.0),
        Point(id="c", lat=0.0, lng=150.0),
    ]


class TestFullPass:
    def test_initial_render(self, make_engine, surface, visible_store):
        engine = make_engine()
        engine.set_points(pair_and_single())

        assert surface.keys == {"a,b", "c"}
        assert [c.key for c in engine.clusters] == ["a,b", "c"]
        assert engine.visible_ids == ["a", "b", "c"]
        # No pan or zoom yet: the results list stays unfiltered
        assert visible_store.visible_ids is None

    def test_pan_removes_departed_cluster(
        self, make_engine, surface, projection, visible_store
    ):
        engine = make_engine()
        engine.set_points(pair_and_single())
        surface.reset_log()

        projection.bounds = Bounds(south=-10.0, west=100.0, north=10.0, east=179.0)
        engine.handle_move_end()

        assert surface.removed == ["a,b"]
        assert surface.created == []
        assert surface.recolored == []
        assert visible_store.visible_ids == ("c",)
        assert engine.has_interacted

    def test_zoom_past_threshold_splits_cluster(self, make_engine, surface, projection):
        engine = make_engine()
        engine.set_points(pair_and_single())
        surface.reset_log()

        projection.zoom = 17.0
        engine.handle_zoom_end()

        assert surface.removed == ["a,b"]
        assert sorted(surface.created) == ["a", "b"]
        assert surface.keys == {"a", "b", "c"}

    def test_unchanged_viewport_issues_no_commands(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single())
        surface.reset_log()

        engine.handle_move_end()

        assert engine.last_commands.is_empty
        assert surface.created == surface.removed == surface.recolored == []

    def test_projection_failure_keeps_markers(
        self, make_engine, surface, projection, visible_store
    ):
        engine = make_engine()
        engine.set_points(pair_and_single())
        engine.handle_move_end()
        surface.reset_log()

        projection.mounted = False
        projection.bounds = Bounds(south=-10.0, west=100.0, north=10.0, east=179.0)
        engine.handle_move_end()

        assert surface.keys == {"a,b", "c"}
        assert surface.removed == []
        assert visible_store.visible_ids == ("a", "b", "c")

    def test_invalid_radius_keeps_markers(self, make_engine, surface):
        engine = make_engine(radius_policy=lambda zoom: -1.0)
        engine.set_points(pair_and_single())
        assert surface.keys == set()

    def test_style_follows_visible_count(self, make_engine, surface, projection):
        projection.zoom = 18.0
        engine = make_engine()
        points = [Point(id=f"p{i:02d}", lat=0.0, lng=i * 5.0 - 90.0) for i in range(31)]
        engine.set_points(points)

        assert {m.style for m in engine.registry.snapshot().values()} == {
            MarkerStyle.SIMPLE
        }

        engine.set_points(points[:30])
        assert {m.style for m in engine.registry.snapshot().values()} == {
            MarkerStyle.PRICE_BUBBLE
        }

    def test_duplicate_and_invalid_points_dropped(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(
            [
                Point(id="c", lat=0.0, lng=150.0),
                Point(id="c", lat=0.0, lng=0.0),
                Point(id="x", lat=float("nan"), lng=0.0),
            ]
        )
        assert surface.keys == {"c"}

    def test_destroy_clears_surface(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single())
        engine.destroy()
        assert surface.markers == {}
        assert engine.clusters == []


class TestRecolorPass:
    def test_hover_recolors_one_marker(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single())
        surface.reset_log()

        engine.hover("c")

        assert surface.recolored == ["c"]
        assert surface.created == surface.removed == []
        assert engine.registry.get("c").kind == HighlightKind.HOVERED

    def test_hover_member_highlights_cluster(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single())
        surface.reset_log()

        engine.hover("b")
        assert surface.recolored == ["a,b"]

    def test_like_then_select(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single())
        surface.reset_log()

        engine.set_interaction_state(InteractionState(liked_ids={"c"}))
        assert surface.recolored == ["c"]
        assert engine.registry.get("c").kind == HighlightKind.LIKED

        surface.reset_log()
        engine.set_interaction_state(InteractionState(liked_ids={"c"}, selected_id="c"))
        assert surface.recolored == ["c"]
        assert engine.registry.get("c").kind == HighlightKind.SELECTED

    def test_stale_event_dropped(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single(), timestamp=5.0)
        surface.reset_log()

        engine.hover("c", timestamp=4.0)
        assert surface.recolored == []

    def test_stale_hover_stays_out_of_later_passes(self, make_engine):
        engine = make_engine()
        engine.set_points(pair_and_single(), timestamp=5.0)
        engine.hover("c", timestamp=4.0)

        engine.handle_move_end(timestamp=6.0)

        assert engine.interaction_state.hovered_id is None
        assert engine.registry.get("c").kind == HighlightKind.DEFAULT

    def test_stale_state_does_not_replace_newer_state(self, make_engine):
        engine = make_engine()
        engine.set_points(pair_and_single(), timestamp=1.0)
        engine.set_interaction_state(InteractionState(liked_ids={"c"}), timestamp=10.0)
        engine.set_interaction_state(
            InteractionState(disliked_ids={"c"}), timestamp=5.0
        )

        engine.handle_move_end(timestamp=11.0)

        assert engine.registry.get("c").kind == HighlightKind.LIKED

    def test_stale_point_set_ignored(self, make_engine, surface):
        engine = make_engine()
        engine.set_points(pair_and_single(), timestamp=5.0)
        engine.set_points(spread(), timestamp=4.0)

        engine.handle_move_end(timestamp=6.0)

        assert surface.keys == {"a,b", "c"}


class TestClickRouting:
    def test_desktop_point_click_pins_list(
        self, make_engine, surface, projection, visible_store
    ):
        clicks = []
        engine = make_engine(
            on_point_click=lambda point, selected: clicks.append((point.id, selected))
        )
        engine.set_points(spread())
        engine.handle_move_end()
        assert visible_store.visible_ids == ("a", "c")

        surface.click("a")
        assert visible_store.visible_ids == ("a",)
        assert engine.is_pinned
        assert engine.registry.get("a").kind == HighlightKind.SELECTED

        # Pinned list survives a pan
        projection.bounds = Bounds(south=-10.0, west=-179.0, north=10.0, east=179.0)
        engine.handle_move_end()
        assert visible_store.visible_ids == ("a",)

        surface.click("a")
        assert visible_store.visible_ids == ("a", "c")
        assert not engine.is_pinned
        assert clicks == [("a", True), ("a", False)]

    def test_mobile_point_click_does_not_pin(self, make_engine, surface, visible_store):
        engine = make_engine(variant=MapVariant.MOBILE)
        engine.set_points(spread())
        engine.handle_move_end()

        surface.click("a")
        assert visible_store.visible_ids == ("a", "c")
        assert not engine.is_pinned
        assert engine.interaction_state.selected_id == "a"

    def test_map_click_clears_selection(self, make_engine, surface, visible_store):
        engine = make_engine()
        engine.set_points(spread())
        engine.handle_move_end()
        surface.click("a")

        engine.handle_map_click()

        assert engine.interaction_state.selected_id is None
        assert visible_store.visible_ids == ("a", "c")
        assert engine.registry.get("a").kind == HighlightKind.DEFAULT

    def test_map_click_after_cluster_click_restores_viewport_filter(
        self, make_engine, surface, visible_store
    ):
        engine = make_engine()
        engine.set_points(pair_and_single())
        engine.handle_move_end()
        surface.click("a,b")
        assert visible_store.visible_ids == ("a", "b")

        engine.handle_map_click()

        assert visible_store.visible_ids == ("a", "b", "c")
        assert engine.interaction_state.selected_cluster_key is None
        assert engine.registry.get("a,b").kind == HighlightKind.DEFAULT

    def test_cluster_click_publishes_members_and_zooms(
        self, make_engine, surface, visible_store
    ):
        received: list[ClusterClick] = []
        engine = make_engine(on_cluster_click=received.append)
        engine.set_points(pair_and_single())
        surface.reset_log()

        surface.click("a,b")

        assert visible_store.visible_ids == ("a", "b")
        assert len(received) == 1
        assert received[0].cluster.key == "a,b"
        assert received[0].target_zoom == 14.0
        assert surface.recolored == ["a,b"]
        assert engine.registry.get("a,b").kind == HighlightKind.SELECTED

    def test_cluster_click_zoom_capped(self, make_engine, surface, projection):
        settings = MapSettings(_env_file=None, MAP_MAX_ZOOM=17.5)
        received = []
        projection.zoom = 16.5
        engine = make_engine(settings=settings, on_cluster_click=received.append)
        engine.set_points(pair_and_single())

        surface.click("a,b")
        assert received[0].target_zoom == 17.5

    def test_fullscreen_cluster_click_not_highlighted(
        self, make_engine, surface, visible_store
    ):
        received = []
        engine = make_engine(
            variant=MapVariant.FULLSCREEN, on_cluster_click=received.append
        )
        engine.set_points(pair_and_single())

        surface.click("a,b")

        assert visible_store.visible_ids == ("a", "b")
        assert received[0].target_zoom == 14.0
        assert engine.registry.get("a,b").kind == HighlightKind.DEFAULT

    def test_unknown_marker_click_ignored(self, make_engine, visible_store):
        engine = make_engine()
        engine.set_points(pair_and_single())
        engine.handle_marker_click("nope")
        assert visible_store.visible_ids is None


class TestDebouncedEngine:
    @pytest.mark.asyncio
    async def test_burst_of_moves_runs_one_pass(self, make_engine, surface, projection):
        engine = make_engine(debounce_ms=20)
        engine.set_points(pair_and_single())
        engine.handle_move_end()
        engine.hover("c")
        engine.handle_zoom_end()
        assert surface.created == []

        await asyncio.sleep(0.1)

        assert surface.keys == {"a,b", "c"}
        assert surface.created.count("c") == 1
        assert engine.registry.get("c").kind == HighlightKind.HOVERED

    @pytest.mark.asyncio
    async def test_flush_runs_pending_pass(self, make_engine, surface):
        engine = make_engine(debounce_ms=1000)
        engine.set_points(pair_and_single())
        assert surface.keys == set()

        assert engine.flush()
        assert surface.keys == {"a,b", "c"}
        engine.destroy()

    @pytest.mark.asyncio
    async def test_out_of_order_events_in_one_window(self, make_engine):
        engine = make_engine(debounce_ms=20)
        engine.set_points(pair_and_single(), timestamp=1.0)
        engine.set_interaction_state(InteractionState(liked_ids={"c"}), timestamp=3.0)
        engine.set_interaction_state(
            InteractionState(disliked_ids={"c"}), timestamp=2.0
        )

        await asyncio.sleep(0.1)

        assert engine.registry.get("c").kind == HighlightKind.LIKED
