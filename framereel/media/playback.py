"""Scene playback controller & preview widget.

ScenePlaybackController loops one scene at the movie frame rate:
    load(timeline, scene_id)
    play()
    pause()
    stop()
    frame_at(elapsed) -> int
Signals:
    frameReady(object, int)   # thumbnail handle (QPixmap or None) + frame index
    stateChanged(str)         # 'stopped'|'playing'|'paused'

Timing follows the wall clock rather than counting ticks: each tick computes
``int(elapsed * fps) % used_frames`` so a slow tick drops frames instead of
slowing the loop down. The store is re-read on every tick, so edits made while
the window is open show up on the next frame.

Images come from the session's thumbnail cache (the same pixmaps the media bin
and timeline show); export never goes through this path.
"""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable, Optional

from PySide6.QtCore import QObject, QSize, Qt, QTimer, Signal
from PySide6.QtWidgets import QLabel, QSizePolicy

from ..core.timeline import TimelineModel
from .thumbnails import Thumbnail

logger = logging.getLogger(__name__)

ThumbnailLookup = Callable[[str], Optional[Thumbnail]]


class ScenePlaybackController(QObject):
    frameReady = Signal(object, int)  # (pixmap or None, frame index)
    stateChanged = Signal(str)

    def __init__(self, thumbnails: ThumbnailLookup, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._thumbnails = thumbnails
        self._timeline: Optional[TimelineModel] = None
        self._scene_id: Optional[int] = None
        self._play_start_time: Optional[float] = None
        self._current_frame = 0
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self._tick)

    @property
    def scene_id(self) -> Optional[int]:
        return self._scene_id

    @property
    def playing(self) -> bool:
        return self._timer.isActive()

    def current_frame(self) -> int:
        return self._current_frame

    def load(self, timeline: TimelineModel, scene_id: int):
        self.pause()
        self._timeline = timeline
        self._scene_id = scene_id
        self._current_frame = 0
        self.stateChanged.emit("stopped")
        self._emit_frame(0)

    def fps(self) -> float:
        if self._timeline is None:
            return 24.0
        return self._timeline.store.movie_config().frame_rate

    def frame_at(self, elapsed: float) -> int:
        """Frame shown ``elapsed`` seconds after play started (0 for an empty scene)."""
        if self._timeline is None or self._scene_id is None:
            return 0
        used = self._timeline.used_frames(self._scene_id)
        if used <= 0:
            return 0
        return int(max(0.0, elapsed) * self.fps()) % used

    def play(self):
        if self._timeline is None or self.playing:
            return
        fps = self.fps()
        self._play_start_time = perf_counter() - self._current_frame / fps
        self._timer.start(max(1, int(1000 / fps)))
        self.stateChanged.emit("playing")

    def pause(self):
        if self._timer.isActive():
            self._timer.stop()
            self.stateChanged.emit("paused")

    def stop(self):
        self._timer.stop()
        self._current_frame = 0
        self._play_start_time = None
        self.stateChanged.emit("stopped")

    # Internal
    def _tick(self):
        if self._timeline is None or self._play_start_time is None:
            self._timer.stop()
            return
        frame = self.frame_at(perf_counter() - self._play_start_time)
        self._current_frame = frame
        self._emit_frame(frame)

    def _emit_frame(self, frame: int):
        if self._timeline is None or self._scene_id is None:
            return
        path = self._timeline.resolve(self._scene_id, frame)
        thumb = self._thumbnails(path) if path else None
        self.frameReady.emit(thumb.handle if thumb is not None else None, frame)


class ScenePreviewWidget(QLabel):
    """QLabel that shows the controller's current image, scaled to fit."""

    def __init__(self, controller: ScenePlaybackController, parent=None):
        super().__init__(parent)
        self.setAlignment(Qt.AlignCenter)
        self.setStyleSheet("background:#1a1a1f;")
        controller.frameReady.connect(self._onFrame)
        self._last_pixmap = None
        # Ignored policy lets the layout shrink the label below the pixmap size.
        self.setSizePolicy(QSizePolicy.Ignored, QSizePolicy.Ignored)

    def sizeHint(self):  # type: ignore[override]
        return QSize(640, 360)

    def _render(self):
        pix = self._last_pixmap
        if pix is None or pix.isNull():
            self.clear()
            return
        if self.width() <= 0 or self.height() <= 0:
            return
        self.setPixmap(
            pix.scaled(self.width(), self.height(), Qt.KeepAspectRatio, Qt.FastTransformation)
        )

    def _onFrame(self, pixmap, frame: int):
        self._last_pixmap = pixmap
        self._render()

    def resizeEvent(self, event):  # noqa: D401 - Qt override
        self._render()
        super().resizeEvent(event)


__all__ = ["ScenePlaybackController", "ScenePreviewWidget"]
