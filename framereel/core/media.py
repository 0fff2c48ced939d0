"""Media catalog: images copied into ``<project>/media`` and listed in the store.

Catalog paths are always relative to the project root (``media/<file>``), which
is also what layers reference. Thumbnail invalidation after a rename/delete is
the session's job; these functions only keep disk and store consistent.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..config import IMAGE_EXTENSIONS, MEDIA_DIR_NAME
from .store import ProjectStore

logger = logging.getLogger(__name__)

MEDIA_PREFIX = f"{MEDIA_DIR_NAME}/"


def is_image_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def unique_media_target(media_dir: Path, filename: str) -> Path:
    """``media_dir/filename``, or ``stem_N.ext`` with the first free N."""
    stem, ext = Path(filename).stem, Path(filename).suffix
    target = media_dir / f"{stem}{ext}"
    n = 0
    while target.exists():
        n += 1
        target = media_dir / f"{stem}_{n}{ext}"
    return target


def import_media(
    store: ProjectStore, project_root: str | Path, source: str | Path
) -> Optional[str]:
    """Copy ``source`` into the media folder and catalog it.

    Returns the new relative path, or None if the file could not be copied or
    cataloged (a copied file is removed again in that case).
    """
    src = Path(source)
    if not src.is_file():
        return None
    media_dir = Path(project_root) / MEDIA_DIR_NAME
    try:
        media_dir.mkdir(parents=True, exist_ok=True)
        target = unique_media_target(media_dir, src.name)
        shutil.copy2(src, target)
    except OSError as e:
        logger.warning("import of %s failed: %s", src, e)
        return None
    rel = MEDIA_PREFIX + target.name
    if not store.add_media(rel):
        target.unlink(missing_ok=True)
        return None
    logger.debug("imported %s as %s", src, rel)
    return rel


def delete_media(store: ProjectStore, rel_path: str) -> bool:
    """Drop the catalog entry. The file stays; layers using it keep their path."""
    return store.delete_media(rel_path)


def rename_media(
    store: ProjectStore, project_root: str | Path, old_rel: str, new_filename: str
) -> bool:
    """Rename a media file on disk and repoint the catalog and every layer.

    Either everything changes or nothing does: when the store update fails the
    file is moved back.
    """
    new_filename = new_filename.strip()
    if not old_rel.startswith(MEDIA_PREFIX) or not new_filename:
        return False
    if "/" in new_filename or "\\" in new_filename or new_filename in (".", ".."):
        return False
    new_rel = MEDIA_PREFIX + new_filename
    if new_rel == old_rel:
        return True
    root = Path(project_root)
    old_full = root / old_rel
    new_full = root / new_rel
    if not old_full.is_file() or new_full.exists():
        return False
    try:
        old_full.rename(new_full)
    except OSError as e:
        logger.warning("rename %s -> %s failed: %s", old_rel, new_rel, e)
        return False
    if store.rename_media_path(old_rel, new_rel):
        return True
    try:
        new_full.rename(old_full)
    except OSError as e:
        logger.error("could not restore %s after failed rename: %s", old_full, e)
    return False


__all__ = [
    "MEDIA_PREFIX",
    "is_image_file",
    "unique_media_target",
    "import_media",
    "delete_media",
    "rename_media",
]
