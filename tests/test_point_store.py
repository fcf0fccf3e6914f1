"""Tests for meshcanvas.app.point_store and meshcanvas.app.actions."""

import logging
import math

import pytest

from meshcanvas.app import actions
from meshcanvas.errors import MissingTarget
from meshcanvas.types import GradientStop


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

class TestCreate:

    def test_defaults(self, store):
        p = store.create(10, 20)
        assert (p.x, p.y) == (10.0, 20.0)
        assert p.color == "#3b82f6"
        assert p.opacity == 1.0
        assert p.radius == 150.0
        assert p.edge_type == "soft"
        assert p.shape == "blob"
        assert p.gradient_type == "solid"
        assert (p.focus_x, p.focus_y) == (0.0, 0.0)
        assert [(s.color, s.position) for s in p.gradient_stops] == [("#3b82f6", 0.0), ("#8b5cf6", 100.0)]

    def test_selects_new_point(self, store):
        p = store.create(0, 0)
        assert store.selected_id == p.id

    def test_ids_unique_and_never_reused(self, store):
        a = store.create(0, 0)
        b = store.create(1, 1)
        store.delete(b.id)
        c = store.create(2, 2)
        assert len({a.id, b.id, c.id}) == 3

    def test_points_do_not_share_stop_lists(self, store):
        a = store.create(0, 0)
        b = store.create(1, 1)
        assert a.gradient_stops is not b.gradient_stops


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

class TestUpdate:

    def test_radius_clamped(self, store):
        p = store.create(0, 0)
        store.update(p.id, radius=5)
        assert p.radius == 20.0

    @pytest.mark.parametrize("value,expected", [(1.5, 1.0), (-1.0, 0.0), (0.25, 0.25)])
    def test_opacity_clamped(self, store, value, expected):
        p = store.create(0, 0)
        store.update(p.id, opacity=value)
        assert p.opacity == expected

    def test_invalid_color_keeps_previous(self, store):
        p = store.create(0, 0)
        assert store.update(p.id, color="nothex") is False
        assert p.color == "#3b82f6"

    def test_color_normalized(self, store):
        p = store.create(0, 0)
        store.update(p.id, color="#ABCDEF")
        assert p.color == "#abcdef"

    def test_invalid_enum_ignored(self, store):
        p = store.create(0, 0)
        store.update(p.id, edge_type="fuzzy", shape="hexagon", gradient_type="conic")
        assert (p.edge_type, p.shape, p.gradient_type) == ("soft", "blob", "solid")

    def test_non_finite_ignored(self, store):
        p = store.create(0, 0)
        store.update(p.id, radius=math.nan, x=math.inf)
        assert p.radius == 150.0
        assert p.x == 0.0

    def test_focus_unbounded(self, store):
        p = store.create(0, 0)
        store.update(p.id, focus_x=1000, focus_y=-2000)
        assert p.focus == (1000.0, -2000.0)

    def test_unknown_attribute_raises(self, store):
        p = store.create(0, 0)
        with pytest.raises(ValueError):
            store.update(p.id, colour="#ffffff")

    def test_id_is_immutable(self, store):
        p = store.create(0, 0)
        with pytest.raises(ValueError):
            store.update(p.id, id="other")

    def test_missing_id_is_noop(self, store):
        assert store.update("point-999", x=5) is False

    def test_single_stop_list_refused(self, store):
        p = store.create(0, 0)
        store.update(p.id, gradient_stops=[GradientStop(id="stop-1", color="#000000", position=0)])
        assert len(p.gradient_stops) == 2

    def test_stop_list_sanitized(self, store):
        p = store.create(0, 0)
        store.update(p.id, gradient_stops=[
            GradientStop(id="a", color="#FFFFFF", position=-5, alpha=300),
            GradientStop(id="b", color="#000000", position=120),
        ])
        assert [(s.color, s.position, s.alpha) for s in p.gradient_stops] == [
            ("#ffffff", 0.0, 100.0),
            ("#000000", 100.0, 100.0),
        ]

    def test_square_with_image_radius_syncs_size(self, store):
        p = store.create(0, 0, shape="square", image="img")
        store.set_radius(p.id, 80)
        assert (p.width, p.height) == (160.0, 160.0)

    def test_radius_without_image_leaves_size(self, store):
        p = store.create(0, 0, shape="square")
        store.set_radius(p.id, 80)
        assert p.width is None


# ---------------------------------------------------------------------------
# Duplicate / delete / select
# ---------------------------------------------------------------------------

class TestLifecycle:

    def test_duplicate(self, store):
        p = store.create(100, 50)
        clone = store.duplicate(p.id)
        assert clone.id != p.id
        assert (clone.x, clone.y) == (120.0, 70.0)
        assert clone.name == "Point 1 copy"
        assert store.selected_id == clone.id
        assert len(store) == 2

    def test_duplicate_keeps_custom_name(self, store):
        p = store.create(0, 0, name="Glow")
        assert store.duplicate(p.id).name == "Glow copy"

    def test_duplicate_is_deep(self, store):
        p = store.create(0, 0)
        clone = store.duplicate(p.id)
        store.move_stop(clone.id, "stop-1", 40)
        assert p.gradient_stops[0].position == 0.0

    def test_duplicate_missing(self, store):
        assert store.duplicate("nope") is None

    def test_delete_clears_selection(self, store):
        p = store.create(0, 0)
        assert store.delete(p.id)
        assert store.selected_id is None
        assert len(store) == 0

    def test_delete_other_keeps_selection(self, store):
        a = store.create(0, 0)
        b = store.create(10, 10)
        store.delete(a.id)
        assert store.selected_id == b.id

    def test_select_unknown_clears(self, store):
        store.create(0, 0)
        store.select("nope")
        assert store.selected_id is None

    def test_get_missing_raises(self, store):
        with pytest.raises(MissingTarget):
            store.get("nope")
        with pytest.raises(KeyError):
            store.get("nope")

    def test_replace_points_drops_stale_selection(self, store):
        a = store.create(0, 0)
        snapshot = store.snapshot()
        b = store.create(5, 5)
        store.replace_points(snapshot)
        assert [p.id for p in store.points] == [a.id]
        assert store.selected_id is None
        assert b.id not in {p.id for p in store.points}


# ---------------------------------------------------------------------------
# Stops through the store
# ---------------------------------------------------------------------------

class TestPointStops:

    def test_insert_stop(self, store):
        p = store.create(0, 0)
        stop = store.insert_stop(p.id, 50)
        assert stop.color == "#636ff6"
        assert p.gradient_stops[-1].id == stop.id

    def test_remove_stop_refused_at_two(self, store, caplog):
        p = store.create(0, 0)
        with caplog.at_level(logging.INFO, logger="meshcanvas.app.actions"):
            assert store.remove_stop(p.id, "stop-1") is False
        assert len(p.gradient_stops) == 2
        assert "refused" in caplog.text

    def test_stop_alpha_non_finite_ignored(self, store):
        p = store.create(0, 0)
        assert store.set_stop_alpha(p.id, "stop-1", math.nan) is False
        assert p.gradient_stops[0].alpha == 100.0


# ---------------------------------------------------------------------------
# Subscribers
# ---------------------------------------------------------------------------

class TestSubscribers:

    def test_every_mutation_notifies(self, store):
        received = []
        store.subscribe(received.append)
        p = store.create(0, 0)
        store.update(p.id, x=3)
        store.duplicate(p.id)
        store.delete(p.id)
        assert [len(s) for s in received] == [1, 1, 2, 1]

    def test_noop_update_does_not_notify(self, store):
        p = store.create(0, 0)
        received = []
        store.subscribe(received.append)
        store.update(p.id, x=0)
        assert received == []

    def test_snapshot_is_a_copy(self, store):
        received = []
        store.subscribe(received.append)
        p = store.create(0, 0)
        received[-1][0].x = 999
        received[-1][0].gradient_stops[0].color = "#000000"
        assert p.x == 0.0
        assert p.gradient_stops[0].color == "#3b82f6"

    def test_one_snapshot_per_mutation(self, store):
        first, second = [], []
        store.subscribe(first.append)
        store.subscribe(second.append)
        store.create(0, 0)
        assert first[0] is second[0]

    def test_failing_subscriber_isolated(self, store, caplog):
        received = []

        def broken(snapshot):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(received.append)
        with caplog.at_level(logging.WARNING):
            store.create(0, 0)
        assert len(received) == 1
        assert "raised" in caplog.text

    def test_unsubscribe(self, store):
        received = []
        store.subscribe(received.append)
        store.unsubscribe(received.append)
        store.unsubscribe(received.append)
        store.create(0, 0)
        assert received == []


# ---------------------------------------------------------------------------
# View actions
# ---------------------------------------------------------------------------

class TestViewActions:

    @pytest.mark.parametrize("zoom,expected", [(5.0, 2.0), (0.1, 0.5), (1.3, 1.3)])
    def test_zoom_clamped(self, state, zoom, expected):
        actions.set_zoom(state, zoom)
        assert state.view.zoom == pytest.approx(expected)

    def test_zoom_steps(self, state):
        actions.zoom_in(state)
        assert state.view.zoom == pytest.approx(1.1)
        actions.zoom_out(state)
        actions.zoom_out(state)
        assert state.view.zoom == pytest.approx(0.9)

    def test_zoom_nan_ignored(self, state):
        actions.set_zoom(state, math.nan)
        assert state.view.zoom == 1.0

    def test_pan_marks_dirty(self, state):
        state.render_dirty = False
        actions.pan_by(state, 10, -5)
        assert (state.view.pan_x, state.view.pan_y) == (10.0, -5.0)
        assert state.render_dirty

    def test_view_never_moves_points(self, store):
        p = store.create(40, 60)
        actions.set_zoom(store.state, 2.0)
        actions.set_pan(store.state, 100, 100)
        assert (p.x, p.y) == (40.0, 60.0)

    def test_view_transform_inverse(self, state):
        actions.set_zoom(state, 1.7)
        actions.set_pan(state, -33, 12)
        sx, sy = state.view.canvas_to_screen(123.0, -45.0)
        assert state.view.screen_to_canvas(sx, sy) == pytest.approx((123.0, -45.0))

    def test_invalid_background_keeps_previous(self, state):
        assert actions.set_background_color(state, "bad") is False
        assert state.display.background_color == "#333333"

    def test_labels(self, state):
        assert actions.set_label(state, "left", "West")
        assert state.labels.left == "West"
        assert actions.set_label(state, "middle", "x") is False

    def test_display_settings(self, state):
        actions.set_show_overlays(state, False)
        assert state.display.show_overlays is False
        actions.set_grid_spacing(state, 1.0)
        assert state.display.grid_spacing == 4.0
        actions.set_grid_opacity(state, 3.0)
        assert state.display.grid_opacity == 1.0

    def test_label_style(self, state):
        state.render_dirty = False
        actions.set_label_style(state, font_size=0, color="FF0000")
        assert state.labels.font_size == 1
        assert state.labels.color == "#ff0000"
        assert state.render_dirty
        actions.set_label_style(state, color="nope")
        assert state.labels.color == "#ff0000"
