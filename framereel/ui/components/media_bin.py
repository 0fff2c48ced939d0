"""Media bin: the project's imported images as draggable thumbnails.

Items carry the relative media path (``media/<file>``) in ``Qt.UserRole`` and
drag it out under ``MEDIA_MIME`` for the timeline track to pick up.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QMimeData, QSize, Qt
from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QAbstractItemView, QListWidget, QListWidgetItem

from ...core.session import EditorSession

MEDIA_MIME = "application/x-framereel-media"
ICON_SIZE = QSize(72, 48)


class MediaBin(QListWidget):
    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self._session = session
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setDragEnabled(True)
        self.setDragDropMode(QAbstractItemView.DragOnly)
        self.setIconSize(ICON_SIZE)

    def refresh(self):
        current = self.currentPath()
        self.clear()
        if self._session.project is None:
            return
        for rel in self._session.project.store.list_media():
            item = QListWidgetItem(rel.split("/", 1)[-1])
            item.setData(Qt.UserRole, rel)
            thumb = self._session.thumbnail(rel)
            if thumb is not None:
                item.setIcon(QIcon(thumb.handle))
                item.setToolTip(f"{rel} ({thumb.width}x{thumb.height})")
            else:
                item.setToolTip(f"{rel} (unreadable)")
            self.addItem(item)
            if rel == current:
                self.setCurrentItem(item)

    def currentPath(self) -> Optional[str]:
        item = self.currentItem()
        return item.data(Qt.UserRole) if item is not None else None

    def mimeTypes(self):  # type: ignore[override]
        return [MEDIA_MIME]

    def mimeData(self, items):  # type: ignore[override]
        data = QMimeData()
        if items:
            data.setData(MEDIA_MIME, items[0].data(Qt.UserRole).encode("utf-8"))
        return data


__all__ = ["MediaBin", "MEDIA_MIME"]
