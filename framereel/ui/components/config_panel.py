"""Movie configuration panel: duration, frame rate and output size."""

from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import QDoubleSpinBox, QFormLayout, QLabel, QSpinBox, QWidget

from ...config import MAX_HEIGHT, MAX_WIDTH, MIN_FRAME_RATE
from ...core.records import MIN_DURATION, MovieConfig
from ...core.session import EditorSession


class MovieConfigPanel(QWidget):
    """Edits are clamped into range and saved as soon as a field changes."""

    configChanged = Signal(object)  # MovieConfig

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self._session = session
        self._loading = False

        self.duration = QDoubleSpinBox()
        self.duration.setRange(MIN_DURATION, 24 * 3600.0)
        self.duration.setDecimals(3)
        self.duration.setSuffix(" s")
        self.frame_rate = QDoubleSpinBox()
        self.frame_rate.setRange(MIN_FRAME_RATE, 1000.0)
        self.frame_rate.setDecimals(3)
        self.width_box = QSpinBox()
        self.width_box.setRange(1, MAX_WIDTH)
        self.height_box = QSpinBox()
        self.height_box.setRange(1, MAX_HEIGHT)
        self.frames_label = QLabel("")

        form = QFormLayout()
        form.addRow("Duration", self.duration)
        form.addRow("Frame rate", self.frame_rate)
        form.addRow("Width", self.width_box)
        form.addRow("Height", self.height_box)
        form.addRow("Frames", self.frames_label)
        self.setLayout(form)

        for box in (self.duration, self.frame_rate, self.width_box, self.height_box):
            box.editingFinished.connect(self.apply)

    def refresh(self):
        if self._session.project is None:
            self.setEnabled(False)
            return
        self.setEnabled(True)
        cfg = self._session.project.store.movie_config()
        self._loading = True
        try:
            self.duration.setValue(cfg.duration_sec)
            self.frame_rate.setValue(cfg.frame_rate)
            self.width_box.setValue(cfg.width)
            self.height_box.setValue(cfg.height)
        finally:
            self._loading = False
        self.frames_label.setText(str(cfg.total_frames()))

    def current(self) -> MovieConfig:
        stored = MovieConfig()
        if self._session.project is not None:
            stored = self._session.project.store.movie_config()
        return MovieConfig(
            duration_sec=_shown_or_stored(self.duration, stored.duration_sec),
            frame_rate=_shown_or_stored(self.frame_rate, stored.frame_rate),
            width=self.width_box.value(),
            height=self.height_box.value(),
        ).clamped()

    def apply(self) -> bool:
        if self._loading or self._session.project is None:
            return False
        cfg = self.current()
        if cfg == self._session.project.store.movie_config():
            return True
        if not self._session.project.store.set_movie_config(cfg):
            self.refresh()
            return False
        self.frames_label.setText(str(cfg.total_frames()))
        self.configChanged.emit(cfg)
        return True


def _shown_or_stored(box: QDoubleSpinBox, stored: float) -> float:
    """The box value, or ``stored`` when the box only shows it rounded or capped."""
    shown = round(min(max(stored, box.minimum()), box.maximum()), box.decimals())
    if abs(box.value() - shown) < 0.5 * 10 ** -box.decimals():
        return stored
    return box.value()


__all__ = ["MovieConfigPanel"]
