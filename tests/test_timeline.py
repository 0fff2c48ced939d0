from framereel.core.records import LayerRow, MovieConfig
from framereel.core.timeline import Clipboard, resolve_layers, used_frame_count


def _short_movie(store, frames=20):
    store.set_movie_config(MovieConfig(duration_sec=frames / 10, frame_rate=10, width=4, height=4))


def test_resolve_layers_last_covering_wins():
    layers = [
        LayerRow(1, 1, "a", 0, 5),
        LayerRow(2, 1, "b", 2, 2),
        LayerRow(3, 1, "c", 10, 1),
    ]
    assert [resolve_layers(layers, f) for f in range(6)] == ["a", "a", "b", "b", "a", None]
    assert resolve_layers(layers, 10) == "c"
    assert resolve_layers([], 0) is None
    assert used_frame_count(layers) == 11
    assert used_frame_count([]) == 0


def test_overlapping_layers_resolve_in_store_order(timeline):
    sid = timeline.store.create_scene()
    timeline.add_layer(sid, "media/A.png", 0, 10)
    timeline.add_layer(sid, "media/B.png", 5, 10)
    assert timeline.resolve(sid, 4) == "media/A.png"
    assert timeline.resolve(sid, 5) == "media/B.png"
    assert timeline.resolve(sid, 14) == "media/B.png"
    assert timeline.resolve(sid, 15) is None
    assert timeline.used_frames(sid) == 15


def test_same_start_later_id_wins(timeline):
    sid = timeline.store.create_scene()
    timeline.add_layer(sid, "media/first.png", 3, 2)
    timeline.add_layer(sid, "media/second.png", 3, 2)
    assert timeline.resolve(sid, 3) == "media/second.png"


def test_empty_scene_uses_no_frames(timeline):
    sid = timeline.store.create_scene()
    assert timeline.used_frames(sid) == 0
    assert timeline.resolve(sid, 0) is None


def test_move_scene_up_down_are_inverse(timeline):
    store = timeline.store
    a, b, c = store.create_scene(), store.create_scene(), store.create_scene()
    assert timeline.move_scene_down(a)
    assert [s.id for s in timeline.scenes()] == [b, a, c]
    assert timeline.move_scene_up(a)
    assert [s.id for s in timeline.scenes()] == [a, b, c]
    # edges
    assert not timeline.move_scene_up(a)
    assert not timeline.move_scene_down(c)
    assert not timeline.move_scene_up(424242)
    assert [s.id for s in timeline.scenes()] == [a, b, c]


def test_move_scene_skips_gaps_in_sort_order(timeline):
    store = timeline.store
    a, b, c = store.create_scene(), store.create_scene(), store.create_scene()
    store.delete_scene(b)
    assert timeline.move_scene_up(c)
    assert [s.id for s in timeline.scenes()] == [c, a]


def test_layer_mutation_guards(timeline):
    sid = timeline.store.create_scene()
    assert timeline.add_layer(sid, "media/a.png", -1) is None
    assert timeline.add_layer(sid, "media/a.png", 0, 0) is None
    lid = timeline.add_layer(sid, "media/a.png", 2, 3)
    assert not timeline.move_layer(lid, -4)
    assert timeline.move_layer(lid, 6)
    assert timeline.store.get_layer(lid).start_frame == 6
    assert timeline.store.list_layers(sid)[0].frame_span == 3


def test_resize_left_keeps_end_fixed(timeline):
    sid = timeline.store.create_scene()
    lid = timeline.add_layer(sid, "media/a.png", 4, 4)  # [4, 8)
    assert timeline.resize_layer_left(lid, 2)
    layer = timeline.store.get_layer(lid)
    assert (layer.start_frame, layer.end_frame) == (2, 8)
    # past the end: span stays at least one
    assert timeline.resize_layer_left(lid, 50)
    layer = timeline.store.get_layer(lid)
    assert (layer.start_frame, layer.frame_span) == (7, 1)


def test_resize_right_clamps_to_movie_end(timeline):
    _short_movie(timeline.store, frames=20)
    sid = timeline.store.create_scene()
    lid = timeline.add_layer(sid, "media/a.png", 15, 2)
    assert timeline.resize_layer_right(lid, 100)
    assert timeline.store.get_layer(lid).end_frame == 20
    assert timeline.resize_layer_right(lid, 10)  # before start: one frame
    assert timeline.store.get_layer(lid).frame_span == 1


def test_drop_and_drag_stay_inside_movie(timeline):
    _short_movie(timeline.store, frames=20)
    sid = timeline.store.create_scene()
    lid = timeline.drop_media(sid, "media/a.png", 99)
    assert timeline.store.get_layer(lid).start_frame == 19
    timeline.resize_layer_left(lid, 15)  # [15, 20)
    assert timeline.drag_layer(lid, 30)
    assert timeline.store.get_layer(lid).start_frame == 15
    assert timeline.drag_layer(lid, -3)
    assert timeline.store.get_layer(lid).start_frame == 0
    assert not timeline.drag_layer(999, 0)


def test_copy_paste_after_selected_layer(timeline):
    _short_movie(timeline.store, frames=20)
    sid = timeline.store.create_scene()
    lid = timeline.add_layer(sid, "media/a.png", 3, 4)
    clip = timeline.copy_layer(lid)
    assert clip == Clipboard("media/a.png", 4)
    new_id = timeline.paste(sid, clip, lid)
    pasted = timeline.store.get_layer(new_id)
    assert (pasted.start_frame, pasted.frame_span) == (7, 4)
    # without selection it lands on frame 0
    at_zero = timeline.store.get_layer(timeline.paste(sid, clip, None))
    assert at_zero.start_frame == 0


def test_paste_refused_at_movie_end(timeline):
    _short_movie(timeline.store, frames=20)
    sid = timeline.store.create_scene()
    lid = timeline.add_layer(sid, "media/a.png", 16, 4)  # ends at 20
    before = len(timeline.layers(sid))
    assert timeline.paste(sid, Clipboard("media/b.png", 1), lid) is None
    assert len(timeline.layers(sid)) == before
