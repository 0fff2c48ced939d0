"""Timeline track: one scene's layers laid out on a frame grid.

Geometry:
    x = frame * pixels_per_frame   (zoom, 2..128, default 8)
    top RULER_HEIGHT pixels: one tick + mm:ss label per second of movie time
    below: the layer row, each layer drawn as its thumbnail stretched over
    [start, start + span) frames

Interaction (all edits go through TimelineModel, which clamps and validates):
    - drop a media-bin item: one-frame layer at the drop frame
    - drag a layer body: move (start clamped into the movie)
    - drag within EDGE_GRIP px of either edge: resize that edge
    - Delete: remove the selected layer; Ctrl+C / Ctrl+V: copy / paste
    - Ctrl+wheel: zoom

Signals:
    layerSelected(object)  # layer id or None
    edited()               # store changed; owners refresh dependent views
"""

from __future__ import annotations

from typing import Optional, Tuple

from PySide6.QtCore import QRectF, QSize, Qt, Signal
from PySide6.QtGui import QColor, QKeySequence, QPainter, QPen
from PySide6.QtWidgets import QWidget

from ...core.records import LayerRow
from ...core.session import EditorSession
from ...utils.timefmt import format_time, frame_to_seconds
from .media_bin import MEDIA_MIME

MIN_ZOOM = 2
MAX_ZOOM = 128
DEFAULT_ZOOM = 8
RULER_HEIGHT = 20
TRACK_HEIGHT = 64
EDGE_GRIP = 6

# edit modes
MOVE = "move"
RESIZE_LEFT = "left"
RESIZE_RIGHT = "right"


class TimelineTrack(QWidget):
    layerSelected = Signal(object)
    edited = Signal()

    def __init__(self, session: EditorSession, parent: QWidget | None = None):
        super().__init__(parent)
        self._session = session
        self._scene_id: Optional[int] = None
        self._zoom = DEFAULT_ZOOM
        self._selected: Optional[int] = None
        self._edit: Optional[Tuple[str, int, int]] = None  # (mode, layer id, grab offset)
        self.setAcceptDrops(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)
        self.setMinimumHeight(RULER_HEIGHT + TRACK_HEIGHT + 4)

    # --- Public API ---
    def setScene(self, scene_id: Optional[int]):
        self._scene_id = scene_id
        self._edit = None
        self._select(None)
        self._updateExtent()

    def sceneId(self) -> Optional[int]:
        return self._scene_id

    def selectedLayer(self) -> Optional[int]:
        return self._selected

    def zoom(self) -> int:
        return self._zoom

    def setZoom(self, pixels_per_frame: int):
        self._zoom = max(MIN_ZOOM, min(MAX_ZOOM, int(pixels_per_frame)))
        self._updateExtent()

    def zoomIn(self):
        self.setZoom(self._zoom * 2)

    def zoomOut(self):
        self.setZoom(self._zoom // 2)

    def refresh(self):
        if self._selected is not None and self._layer(self._selected) is None:
            self._select(None)
        self._updateExtent()

    def frameAtX(self, x: float) -> int:
        return max(0, int(x // self._zoom))

    def layerAt(self, x: float, y: float) -> Tuple[Optional[LayerRow], Optional[str]]:
        """Topmost layer under (x, y) and which part of it was hit."""
        if y < RULER_HEIGHT:
            return None, None
        hit: Optional[LayerRow] = None
        for layer in self._layers():
            left = layer.start_frame * self._zoom
            right = layer.end_frame * self._zoom
            if left <= x < right:
                hit = layer  # later layers draw on top
        if hit is None:
            return None, None
        left = hit.start_frame * self._zoom
        right = hit.end_frame * self._zoom
        if x - left < EDGE_GRIP:
            return hit, RESIZE_LEFT
        if right - x <= EDGE_GRIP:
            return hit, RESIZE_RIGHT
        return hit, MOVE

    # Edits, split out of the mouse handlers so they can be driven directly
    def beginEdit(self, x: float, y: float) -> Optional[str]:
        layer, mode = self.layerAt(x, y)
        self._select(layer.id if layer is not None else None)
        if layer is None:
            self._edit = None
            return None
        grab = self.frameAtX(x) - layer.start_frame
        self._edit = (mode, layer.id, grab)
        return mode

    def updateEdit(self, x: float) -> bool:
        if self._edit is None or self._session.timeline is None:
            return False
        mode, layer_id, grab = self._edit
        timeline = self._session.timeline
        frame = self.frameAtX(x)
        if mode == MOVE:
            ok = timeline.drag_layer(layer_id, frame - grab)
        elif mode == RESIZE_LEFT:
            ok = timeline.resize_layer_left(layer_id, frame)
        else:
            # round to the nearest boundary so the edge follows the pointer
            ok = timeline.resize_layer_right(layer_id, int(x / self._zoom + 0.5))
        if ok:
            self.update()
        return ok

    def endEdit(self):
        if self._edit is not None:
            self._edit = None
            self.edited.emit()

    def deleteSelected(self) -> bool:
        if self._selected is None or self._session.timeline is None:
            return False
        if not self._session.timeline.delete_layer(self._selected):
            return False
        self._select(None)
        self._updateExtent()
        self.edited.emit()
        return True

    def copySelected(self) -> bool:
        if self._selected is None:
            return False
        return self._session.copy_layer(self._selected)

    def paste(self) -> Optional[int]:
        if self._scene_id is None:
            return None
        new_id = self._session.paste_layer(self._scene_id, self._selected)
        if new_id is not None:
            self._select(new_id)
            self._updateExtent()
            self.edited.emit()
        return new_id

    def dropMedia(self, rel_path: str, x: float) -> Optional[int]:
        if self._scene_id is None or self._session.timeline is None:
            return None
        new_id = self._session.timeline.drop_media(self._scene_id, rel_path, self.frameAtX(x))
        if new_id is not None:
            self._select(new_id)
            self._updateExtent()
            self.edited.emit()
        return new_id

    # --- Internal helpers ---
    def _layers(self):
        if self._scene_id is None or self._session.timeline is None:
            return []
        return self._session.timeline.layers(self._scene_id)

    def _layer(self, layer_id: int) -> Optional[LayerRow]:
        if self._session.timeline is None:
            return None
        return self._session.timeline.store.get_layer(layer_id)

    def _totalFrames(self) -> int:
        if self._session.timeline is None:
            return 0
        return self._session.timeline.total_frames()

    def _select(self, layer_id: Optional[int]):
        if layer_id != self._selected:
            self._selected = layer_id
            self.layerSelected.emit(layer_id)
        self.update()

    def _updateExtent(self):
        self.setMinimumWidth(max(200, self._totalFrames() * self._zoom + 1))
        self.updateGeometry()
        self.update()

    def sizeHint(self):  # type: ignore[override]
        return QSize(self._totalFrames() * self._zoom + 1, RULER_HEIGHT + TRACK_HEIGHT + 4)

    # --- Painting ---
    def paintEvent(self, event):  # type: ignore[override]
        p = QPainter(self)
        p.fillRect(self.rect(), QColor(30, 30, 30))
        timeline = self._session.timeline
        if timeline is None:
            p.end()
            return
        total = self._totalFrames()
        fps = timeline.store.movie_config().frame_rate
        end_x = total * self._zoom
        track = QRectF(0, RULER_HEIGHT, end_x, TRACK_HEIGHT)
        p.fillRect(track, QColor(42, 42, 48))

        # ruler: one tick per second
        p.setPen(QPen(QColor(150, 150, 150), 1))
        second = 0
        while True:
            frame = int(round(second * fps))
            if frame > total:
                break
            x = frame * self._zoom
            p.drawLine(x, RULER_HEIGHT - 6, x, RULER_HEIGHT)
            p.drawText(x + 2, RULER_HEIGHT - 8, format_time(frame_to_seconds(frame, fps))[:5])
            second += 1

        for layer in self._layers():
            rect = QRectF(
                layer.start_frame * self._zoom,
                RULER_HEIGHT + 2,
                layer.frame_span * self._zoom,
                TRACK_HEIGHT - 4,
            )
            p.fillRect(rect, QColor(70, 130, 200))
            thumb = self._session.thumbnail(layer.image_path)
            if thumb is not None:
                p.drawPixmap(rect.toRect(), thumb.handle)
            color = QColor(255, 210, 80) if layer.id == self._selected else QColor(20, 20, 20)
            p.setPen(QPen(color, 2 if layer.id == self._selected else 1))
            p.drawRect(rect)

        # movie end marker
        p.setPen(QPen(QColor(220, 80, 120), 2))
        p.drawLine(end_x, 0, end_x, RULER_HEIGHT + TRACK_HEIGHT)
        p.end()

    # --- Mouse / keyboard ---
    def mousePressEvent(self, event):  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            pos = event.position()
            self.beginEdit(pos.x(), pos.y())
            self.setFocus()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):  # type: ignore[override]
        pos = event.position()
        if self._edit is not None:
            self.updateEdit(pos.x())
        else:
            _, mode = self.layerAt(pos.x(), pos.y())
            if mode in (RESIZE_LEFT, RESIZE_RIGHT):
                self.setCursor(Qt.SizeHorCursor)
            else:
                self.unsetCursor()
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self.endEdit()
        super().mouseReleaseEvent(event)

    def keyPressEvent(self, event):  # type: ignore[override]
        if event.key() in (Qt.Key_Delete, Qt.Key_Backspace):
            self.deleteSelected()
        elif event.matches(QKeySequence.Copy):
            self.copySelected()
        elif event.matches(QKeySequence.Paste):
            self.paste()
        else:
            super().keyPressEvent(event)

    def wheelEvent(self, event):  # type: ignore[override]
        if event.modifiers() & Qt.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoomIn()
            else:
                self.zoomOut()
            event.accept()
            return
        super().wheelEvent(event)

    # --- Drag & drop from the media bin ---
    def dragEnterEvent(self, event):  # type: ignore[override]
        if event.mimeData().hasFormat(MEDIA_MIME) and self._scene_id is not None:
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event):  # type: ignore[override]
        self.dragEnterEvent(event)

    def dropEvent(self, event):  # type: ignore[override]
        data = event.mimeData()
        if not data.hasFormat(MEDIA_MIME):
            event.ignore()
            return
        rel = bytes(data.data(MEDIA_MIME)).decode("utf-8")
        if self.dropMedia(rel, event.position().x()) is not None:
            event.acceptProposedAction()
        else:
            event.ignore()


__all__ = ["TimelineTrack", "MIN_ZOOM", "MAX_ZOOM", "DEFAULT_ZOOM"]
