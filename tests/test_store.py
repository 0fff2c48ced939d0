import sqlite3

from framereel.core.records import MovieConfig
from framereel.core.store import ProjectStore


def _old_schema_db(path):
    """A database as the first release wrote it: no scene names, no spans."""
    con = sqlite3.connect(path)
    con.executescript(
        """
        CREATE TABLE projects (id INTEGER PRIMARY KEY, name TEXT NOT NULL, path TEXT NOT NULL);
        CREATE TABLE timeline (id INTEGER PRIMARY KEY);
        CREATE TABLE scenes (id INTEGER PRIMARY KEY, timeline_id INTEGER NOT NULL,
                             sort_order INTEGER NOT NULL);
        CREATE TABLE layers (id INTEGER PRIMARY KEY, scene_id INTEGER NOT NULL,
                             image_path TEXT NOT NULL, sort_order INTEGER NOT NULL);
        CREATE TABLE media (id INTEGER PRIMARY KEY, path TEXT NOT NULL);
        INSERT INTO timeline (id) VALUES (1);
        INSERT INTO scenes (id, timeline_id, sort_order) VALUES (7, 1, 1);
        INSERT INTO layers (id, scene_id, image_path, sort_order) VALUES (1, 7, 'media/a.png', 3);
        """
    )
    con.commit()
    con.close()


def test_fresh_store_defaults(store):
    assert store.movie_config() == MovieConfig(10.0, 24.0, 1920, 1080)
    assert store.movie_config().total_frames() == 240
    assert store.list_scenes() == []
    assert store.list_media() == []


def test_migration_from_old_schema_is_idempotent(tmp_path):
    db = tmp_path / "project.db"
    _old_schema_db(db)
    for _ in range(2):
        s = ProjectStore.open(db)
        scenes = s.list_scenes()
        assert [(sc.id, sc.name) for sc in scenes] == [(7, "Scene 7")]
        (layer,) = s.list_layers(7)
        assert (layer.start_frame, layer.frame_span) == (3, 1)
        assert s.movie_config() == MovieConfig()
        s.close()


def test_create_scene_appends_with_default_name(store):
    a = store.create_scene()
    b = store.create_scene()
    scenes = store.list_scenes()
    assert [sc.id for sc in scenes] == [a, b]
    assert [sc.name for sc in scenes] == ["Scene 1", "Scene 2"]
    assert scenes[1].sort_order == scenes[0].sort_order + 1


def test_rename_scene_rejects_empty(store):
    sid = store.create_scene()
    assert not store.rename_scene(sid, "")
    assert store.rename_scene(sid, "Intro")
    assert store.list_scenes()[0].name == "Intro"
    assert not store.rename_scene(9999, "Nope")


def test_delete_scene_cascades_to_layers(store):
    sid = store.create_scene()
    keep = store.create_scene()
    store.add_layer(sid, "media/a.png", 0, 2)
    store.add_layer(keep, "media/b.png", 0, 2)
    assert store.delete_scene(sid)
    assert store.list_layers(sid) == []
    assert len(store.list_layers(keep)) == 1
    assert [sc.id for sc in store.list_scenes()] == [keep]


def test_movie_config_validation(store):
    assert not store.set_movie_config(MovieConfig(duration_sec=0))
    assert not store.set_movie_config(MovieConfig(frame_rate=0.5))
    assert not store.set_movie_config(MovieConfig(width=7681))
    assert not store.set_movie_config(MovieConfig(height=0))
    assert store.movie_config() == MovieConfig()
    cfg = MovieConfig(duration_sec=2.0, frame_rate=10.0, width=4, height=2)
    assert store.set_movie_config(cfg)
    assert store.movie_config() == cfg


def test_movie_config_clamped():
    cfg = MovieConfig(duration_sec=-1, frame_rate=0, width=99999, height=-5).clamped()
    assert cfg.is_valid()
    assert (cfg.width, cfg.height) == (7680, 1)


def test_total_frames_rounds_half_up():
    assert MovieConfig(duration_sec=0.25, frame_rate=10).total_frames() == 3
    assert MovieConfig(duration_sec=0.24, frame_rate=10).total_frames() == 2


def test_layer_guards_and_update(store):
    sid = store.create_scene()
    assert store.add_layer(sid, "media/a.png", -1) is None
    assert store.add_layer(sid, "media/a.png", 0, 0) is None
    lid = store.add_layer(sid, "media/a.png", 2, 3)
    assert store.update_layer(lid, start_frame=5, frame_span=4)
    layer = store.get_layer(lid)
    assert (layer.start_frame, layer.frame_span, layer.end_frame) == (5, 4, 9)
    assert not store.update_layer(lid, start_frame=-1)
    assert not store.update_layer(lid, frame_span=0)
    assert not store.update_layer(12345, start_frame=1)
    assert store.get_layer(lid).start_frame == 5


def test_layers_ordered_by_start_then_id(store):
    sid = store.create_scene()
    late = store.add_layer(sid, "media/b.png", 4)
    first = store.add_layer(sid, "media/a.png", 0)
    tie = store.add_layer(sid, "media/c.png", 4)
    assert [l.id for l in store.list_layers(sid)] == [first, late, tie]


def test_rename_media_path_updates_catalog_and_layers(store):
    sid = store.create_scene()
    store.add_media("media/a.png")
    store.add_layer(sid, "media/a.png", 0)
    store.add_layer(sid, "media/a.png", 3)
    assert store.rename_media_path("media/a.png", "media/z.png")
    assert store.list_media() == ["media/z.png"]
    assert {l.image_path for l in store.list_layers(sid)} == {"media/z.png"}


def test_deletes_report_missing_rows(store):
    assert not store.delete_scene(999)
    assert not store.delete_layer(999)
    assert not store.delete_media("media/none.png")
    sid = store.create_scene()
    lid = store.add_layer(sid, "media/a.png", 0)
    store.add_media("media/a.png")
    assert store.delete_layer(lid)
    assert not store.delete_layer(lid)
    assert store.delete_media("media/a.png")
    assert store.delete_scene(sid)
