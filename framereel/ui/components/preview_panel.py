"""Scene playback window.

A separate top-level window that loops the selected scene: a
`ScenePlaybackController` drives a `ScenePreviewWidget`, with a small label
row showing the frame index and its time at the movie frame rate.

Public API:
    load(scene_id) -> point the controller at a scene and start playing
    controller (ScenePlaybackController)
    preview (ScenePreviewWidget)
"""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QVBoxLayout, QWidget

from ...core.session import EditorSession
from ...media.playback import ScenePlaybackController, ScenePreviewWidget
from ...utils.timefmt import format_time, frame_to_seconds


class ScenePlaybackWindow(QWidget):
    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent, Qt.Window)
        self.setWindowTitle("Timeline playback")
        self.resize(640, 360)
        self._session = session
        self.controller = ScenePlaybackController(session.thumbnail, self)
        self.preview = ScenePreviewWidget(self.controller)
        self.label = QLabel("")
        self.label.setStyleSheet("color:#bbb;font-size:11px;padding:2px 4px;")
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.preview, stretch=1)
        layout.addWidget(self.label)
        self.setLayout(layout)
        self.controller.frameReady.connect(self._onFrame)

    def load(self, scene_id: int) -> bool:
        if self._session.timeline is None:
            return False
        self.controller.load(self._session.timeline, scene_id)
        self.controller.play()
        return True

    def _onFrame(self, pixmap, frame: int):
        fps = self.controller.fps()
        self.label.setText(f"frame {frame}  {format_time(frame_to_seconds(frame, fps))}")

    def closeEvent(self, event):  # type: ignore[override]
        self.controller.stop()
        super().closeEvent(event)


__all__ = ["ScenePlaybackWindow"]
