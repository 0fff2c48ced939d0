"""Project on disk: a directory holding ``project.db`` and a ``media/`` folder.

Layout::

    <base>/<name>/
        project.db      scenes, layers, media catalog, movie configuration
        media/          imported images (paths stored relative to the root)
        .render_frames/ exists only while an export is writing frames
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..config import DB_FILENAME, MEDIA_DIR_NAME
from .recent import push_recent_project
from .store import ProjectStore, StoreError

logger = logging.getLogger(__name__)

_FORBIDDEN_NAME_CHARS = set('/\\:*?"<>|')


@dataclass
class Project:
    root: Path
    name: str
    store: ProjectStore

    @property
    def db_path(self) -> Path:
        return self.root / DB_FILENAME

    @property
    def media_dir(self) -> Path:
        return self.root / MEDIA_DIR_NAME

    def close(self) -> None:
        self.store.close()


def sanitize_project_name(name: str) -> str:
    """Make a user-typed name usable as a directory name."""
    cleaned = "".join("_" if c in _FORBIDDEN_NAME_CHARS else c for c in name)
    cleaned = cleaned.rstrip(" .")
    return cleaned or "Untitled"


def create_project(base: str | Path, name: str) -> Project:
    """Create ``<base>/<name>`` with its media folder and database.

    Raises ``StoreError`` if the directory or database cannot be created.
    """
    safe_name = sanitize_project_name(name)
    root = Path(base) / safe_name
    try:
        (root / MEDIA_DIR_NAME).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreError(f"cannot create project directory {root}: {e}") from e
    store = ProjectStore.open(root / DB_FILENAME)
    if not store.add_project_row(safe_name, str(root)):
        store.close()
        raise StoreError(f"cannot register project {safe_name}")
    logger.info("created project %s at %s", safe_name, root)
    push_recent_project(base, str(root))
    return Project(root=root, name=safe_name, store=store)


def open_project(root: str | Path, base: str | Path | None = None) -> Project:
    """Attach to an existing project directory (migrating its schema)."""
    root = Path(root)
    if not (root / DB_FILENAME).is_file():
        raise StoreError(f"{root} is not a project (no {DB_FILENAME})")
    store = ProjectStore.open(root / DB_FILENAME)
    if base is not None:
        push_recent_project(base, str(root))
    return Project(root=root, name=root.name, store=store)


def list_project_folders(base: str | Path) -> List[Path]:
    """Sub-directories of ``base`` that contain a project database."""
    base = Path(base)
    if not base.is_dir():
        return []
    return sorted(p for p in base.iterdir() if p.is_dir() and (p / DB_FILENAME).is_file())


__all__ = [
    "Project",
    "sanitize_project_name",
    "create_project",
    "open_project",
    "list_project_folders",
]
