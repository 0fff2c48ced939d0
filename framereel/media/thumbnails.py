"""Thumbnail cache for media bin, timeline clips and scene playback.

Keyed by (project root, relative image path). Each entry holds a display handle
(a ``QPixmap`` by default, i.e. the image uploaded to the windowing system) and
the source pixel size.

Rules:
- A miss decodes the whole image and uploads it; decode failures are NOT
  cached, so a file fixed on disk is picked up on the next access.
- Entries live until ``invalidate`` (media renamed/deleted) or ``clear``
  (project closed). There is no size bound or eviction: media sets are small.
- GUI thread only. Export never goes through this cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

from .compositor import load_rgba

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]


@dataclass(frozen=True)
class Thumbnail:
    handle: Any
    width: int
    height: int


def upload_pixmap(pixels: np.ndarray):
    """Turn an RGBA array into a QPixmap (requires a QGuiApplication)."""
    from PySide6.QtGui import QImage, QPixmap

    h, w = pixels.shape[0], pixels.shape[1]
    buf = np.ascontiguousarray(pixels)
    qimg = QImage(buf.data, w, h, w * 4, QImage.Format.Format_RGBA8888)
    # QImage borrows the numpy buffer; fromImage copies before it goes away.
    return QPixmap.fromImage(qimg)


def _release_nothing(handle: Any) -> None:
    pass


class ThumbnailCache:
    def __init__(
        self,
        upload: Callable[[np.ndarray], Any] = upload_pixmap,
        release: Callable[[Any], None] = _release_nothing,
    ):
        self._upload = upload
        self._release = release
        self._entries: Dict[CacheKey, Thumbnail] = {}

    @staticmethod
    def key(project_root: str | Path, rel_path: str) -> CacheKey:
        return (str(project_root), rel_path)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get_or_load(self, project_root: str | Path, rel_path: str) -> Optional[Thumbnail]:
        key = self.key(project_root, rel_path)
        entry = self._entries.get(key)
        if entry is not None:
            return entry
        pixels = load_rgba(Path(project_root) / rel_path)
        if pixels is None:
            return None
        handle = self._upload(pixels)
        if handle is None:
            return None
        entry = Thumbnail(handle=handle, width=pixels.shape[1], height=pixels.shape[0])
        self._entries[key] = entry
        logger.debug("thumbnail cached: %s (%dx%d)", rel_path, entry.width, entry.height)
        return entry

    def invalidate(self, project_root: str | Path, rel_path: str) -> bool:
        entry = self._entries.pop(self.key(project_root, rel_path), None)
        if entry is None:
            return False
        self._release(entry.handle)
        return True

    def clear(self) -> None:
        for entry in self._entries.values():
            self._release(entry.handle)
        self._entries.clear()


__all__ = ["Thumbnail", "ThumbnailCache", "upload_pixmap"]
