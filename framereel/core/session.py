"""Editor session: everything the GUI edits through, owned by the main window.

One session holds at most one open project together with the objects whose
lifetime is tied to it: the thumbnail cache, the copy/paste clipboard and the
export currently running. Opening another project or closing the current one
tears all of that down (cache cleared, store closed).

GUI thread only. The running export works on its own store connection.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .. import config
from ..media.thumbnails import Thumbnail, ThumbnailCache
from ..services.export_task import ExportHandle, start_export
from . import media
from .project import Project, create_project, open_project
from .store import StoreError
from .timeline import Clipboard, TimelineModel

logger = logging.getLogger(__name__)


class EditorSession:
    def __init__(
        self,
        base: str | Path | None = None,
        thumbnails: Optional[ThumbnailCache] = None,
        export_starter: Callable[..., ExportHandle] = start_export,
    ):
        self.base = Path(base) if base is not None else config.base_path()
        self.thumbnails = thumbnails if thumbnails is not None else ThumbnailCache()
        self.project: Optional[Project] = None
        self.timeline: Optional[TimelineModel] = None
        self.clipboard: Optional[Clipboard] = None
        self.export: Optional[ExportHandle] = None
        self._export_starter = export_starter

    @property
    def is_open(self) -> bool:
        return self.project is not None

    # --- lifecycle ---
    def _attach(self, project: Project) -> None:
        self.project = project
        self.timeline = TimelineModel(project.store)

    def create_project(self, name: str) -> bool:
        self.close_project()
        try:
            project = create_project(self.base, name)
        except StoreError as e:
            logger.warning("create project %r failed: %s", name, e)
            return False
        self._attach(project)
        return True

    def open_project(self, root: str | Path) -> bool:
        self.close_project()
        try:
            project = open_project(root, base=self.base)
        except StoreError as e:
            logger.warning("open project %s failed: %s", root, e)
            return False
        self._attach(project)
        return True

    def close_project(self) -> None:
        if self.project is None:
            return
        self.thumbnails.clear()
        self.project.close()
        logger.info("closed project %s", self.project.name)
        self.project = None
        self.timeline = None
        self.clipboard = None

    # --- thumbnails ---
    def thumbnail(self, rel_path: str) -> Optional[Thumbnail]:
        if self.project is None:
            return None
        return self.thumbnails.get_or_load(self.project.root, rel_path)

    # --- media ---
    def import_media(self, source: str | Path) -> Optional[str]:
        if self.project is None or not media.is_image_file(source):
            return None
        return media.import_media(self.project.store, self.project.root, source)

    def delete_media(self, rel_path: str) -> bool:
        if self.project is None:
            return False
        if not media.delete_media(self.project.store, rel_path):
            return False
        self.thumbnails.invalidate(self.project.root, rel_path)
        return True

    def rename_media(self, rel_path: str, new_filename: str) -> Optional[str]:
        """Rename a media file; returns the new relative path on success."""
        if self.project is None:
            return None
        if not media.rename_media(self.project.store, self.project.root, rel_path, new_filename):
            return None
        self.thumbnails.invalidate(self.project.root, rel_path)
        return media.MEDIA_PREFIX + new_filename.strip()

    # --- clipboard ---
    def copy_layer(self, layer_id: int) -> bool:
        if self.timeline is None:
            return False
        clip = self.timeline.copy_layer(layer_id)
        if clip is None:
            return False
        self.clipboard = clip
        return True

    def paste_layer(self, scene_id: int, selected_layer_id: Optional[int]) -> Optional[int]:
        if self.timeline is None or self.clipboard is None:
            return None
        return self.timeline.paste(scene_id, self.clipboard, selected_layer_id)

    # --- export ---
    @property
    def export_running(self) -> bool:
        return self.export is not None and not self.export.done

    def start_export(self, output_path: str | Path) -> Optional[ExportHandle]:
        """Start exporting the open project; refused while another export runs."""
        if self.project is None or self.export_running:
            return None
        if not self.timeline.scenes():
            return None
        self.export = self._export_starter(self.project.root, output_path)
        return self.export

    def take_finished_export(self) -> Optional[ExportHandle]:
        """Return and forget the export once it is done (None while running)."""
        handle = self.export
        if handle is None or not handle.done:
            return None
        handle.wait()
        self.export = None
        return handle


__all__ = ["EditorSession"]
