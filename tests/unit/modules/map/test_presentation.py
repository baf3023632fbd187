"""Tests for highlight classification and marker styling."""

import pytest

from src.modules.map.models import (
    Cluster,
    HighlightKind,
    InteractionState,
    MapVariant,
    MarkerStyle,
)
from src.modules.map.presentation import (
    Z_INDEX,
    classify,
    classify_cluster,
    marker_style,
    z_index,
)


class TestClassifyPoint:
    def test_default(self):
        assert classify("a", InteractionState()) == HighlightKind.DEFAULT

    def test_selected_beats_disliked(self):
        state = InteractionState(selected_id="a", disliked_ids={"a"})
        assert classify("a", state) == HighlightKind.SELECTED

    def test_selected_beats_hovered(self):
        state = InteractionState(selected_id="a", hovered_id="a")
        assert classify("a", state) == HighlightKind.SELECTED

    def test_hovered_beats_liked(self):
        state = InteractionState(hovered_id="a", liked_ids={"a"})
        assert classify("a", state) == HighlightKind.HOVERED

    def test_disliked_beats_liked(self):
        state = InteractionState(liked_ids={"a"}, disliked_ids={"a"})
        assert classify("a", state) == HighlightKind.DISLIKED

    def test_liked_beats_applied(self):
        state = InteractionState(liked_ids={"a"}, applied_ids={"a"})
        assert classify("a", state) == HighlightKind.LIKED

    def test_applied(self, state_factory):
        state = state_factory(applied_ids=["a"])
        assert classify("a", state) == HighlightKind.APPLIED

    def test_other_point_selected(self):
        state = InteractionState(selected_id="b", liked_ids={"a"})
        assert classify("a", state) == HighlightKind.LIKED


class TestClassifyCluster:
    def test_member_selected(self):
        state = InteractionState(selected_id="b")
        assert classify(["a", "b"], state) == HighlightKind.SELECTED

    def test_member_hovered(self):
        state = InteractionState(hovered_id="a")
        assert classify(["a", "b"], state) == HighlightKind.HOVERED

    def test_clicked_cluster_selected(self):
        state = InteractionState(selected_cluster_key="a,b")
        assert classify(("b", "a"), state) == HighlightKind.SELECTED

    def test_liked_members_do_not_color_cluster(self):
        state = InteractionState(liked_ids={"a", "b"}, disliked_ids={"a"})
        assert classify(["a", "b"], state) == HighlightKind.DEFAULT

    def test_classify_cluster_uses_membership(self):
        cluster = Cluster(member_ids=("a", "b"), lat=0.0, lng=0.0)
        state = InteractionState(hovered_id="b")
        assert classify_cluster(cluster, state) == HighlightKind.HOVERED

    def test_cluster_key_selection_ignored_for_single_point(self):
        state = InteractionState(selected_cluster_key="a")
        assert classify("a", state) == HighlightKind.DEFAULT


class TestZIndex:
    def test_hovered_draws_on_top(self):
        assert z_index(HighlightKind.HOVERED) == max(Z_INDEX.values())

    def test_disliked_draws_at_bottom(self):
        assert z_index(HighlightKind.DISLIKED) == min(Z_INDEX.values())

    def test_order(self):
        assert (
            z_index(HighlightKind.HOVERED)
            > z_index(HighlightKind.SELECTED)
            > z_index(HighlightKind.LIKED)
            > z_index(HighlightKind.DEFAULT)
            > z_index(HighlightKind.DISLIKED)
        )

    def test_every_kind_has_z_index(self):
        assert set(Z_INDEX) == set(HighlightKind)


class TestMarkerStyle:
    @pytest.mark.parametrize(
        "count,variant,expected",
        [
            (30, MapVariant.DESKTOP, MarkerStyle.PRICE_BUBBLE),
            (31, MapVariant.DESKTOP, MarkerStyle.SIMPLE),
            (31, MapVariant.MOBILE, MarkerStyle.SIMPLE),
            (60, MapVariant.FULLSCREEN, MarkerStyle.PRICE_BUBBLE),
            (61, MapVariant.FULLSCREEN, MarkerStyle.SIMPLE),
        ],
    )
    def test_thresholds(self, map_settings, count, variant, expected):
        assert marker_style(count, variant, map_settings) == expected
