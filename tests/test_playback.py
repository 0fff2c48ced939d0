from PySide6.QtCore import QEventLoop, QTimer

from framereel.core.records import MovieConfig
from framereel.media.playback import ScenePlaybackController, ScenePreviewWidget
from framereel.media.thumbnails import Thumbnail


def _lookup(path):
    if path == "media/missing.png":
        return None
    return Thumbnail(handle=f"tex:{path}", width=1, height=1)


def _scene(timeline):
    timeline.store.set_movie_config(MovieConfig(duration_sec=2.0, frame_rate=10.0, width=4, height=4))
    sid = timeline.store.create_scene()
    timeline.add_layer(sid, "media/A.png", 0, 5)
    timeline.add_layer(sid, "media/B.png", 5, 5)
    return sid


def test_frame_at_wraps_at_used_frames(qapp, timeline):
    sid = _scene(timeline)
    controller = ScenePlaybackController(_lookup)
    controller.load(timeline, sid)
    assert controller.frame_at(0.0) == 0
    assert controller.frame_at(0.55) == 5
    assert controller.frame_at(1.23) == 2  # 12 % 10
    empty = timeline.store.create_scene()
    controller.load(timeline, empty)
    assert controller.frame_at(3.0) == 0


def test_load_emits_first_frame(qapp, timeline):
    sid = _scene(timeline)
    controller = ScenePlaybackController(_lookup)
    got = []
    controller.frameReady.connect(lambda handle, frame: got.append((handle, frame)))
    controller.load(timeline, sid)
    assert got == [("tex:media/A.png", 0)]


def test_unreadable_image_emits_none(qapp, timeline):
    timeline.store.set_movie_config(MovieConfig(duration_sec=1.0, frame_rate=10.0))
    sid = timeline.store.create_scene()
    timeline.add_layer(sid, "media/missing.png", 0, 3)
    controller = ScenePlaybackController(_lookup)
    got = []
    controller.frameReady.connect(lambda handle, frame: got.append(handle))
    controller.load(timeline, sid)
    assert got == [None]


def test_play_advances_and_pause_stops(qapp, timeline):
    sid = _scene(timeline)
    controller = ScenePlaybackController(_lookup)
    frames = []
    states = []
    controller.frameReady.connect(lambda handle, frame: frames.append(frame))
    controller.stateChanged.connect(states.append)
    controller.load(timeline, sid)
    controller.play()
    assert controller.playing
    loop = QEventLoop()
    QTimer.singleShot(350, loop.quit)  # a few 100 ms ticks
    loop.exec()
    controller.pause()
    assert not controller.playing
    assert len(frames) > 1
    assert all(0 <= f < 10 for f in frames)
    assert max(frames) > 0
    assert states[-2:] == ["playing", "paused"]


def test_preview_widget_accepts_empty_frames(qapp, timeline):
    sid = _scene(timeline)
    controller = ScenePlaybackController(lambda path: None)
    widget = ScenePreviewWidget(controller)
    widget.resize(160, 90)
    controller.load(timeline, sid)
    assert widget.pixmap().isNull()
