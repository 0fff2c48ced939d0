"""Recently opened projects: ``<base>/recent.txt``, one absolute path per line.

Most recent first, at most ``MAX_RECENT_PROJECTS`` entries, no duplicates.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..config import MAX_RECENT_PROJECTS, RECENT_FILENAME

logger = logging.getLogger(__name__)


def recent_file(base: str | Path) -> Path:
    return Path(base) / RECENT_FILENAME


def load_recent_projects(base: str | Path) -> List[str]:
    path = recent_file(base)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    out: List[str] = []
    for line in lines:
        line = line.strip("\r\n")
        if line:
            out.append(line)
        if len(out) >= MAX_RECENT_PROJECTS:
            break
    return out


def push_recent_project(base: str | Path, project_path: str) -> List[str]:
    """Move ``project_path`` to the front of the list and persist it."""
    recent = [p for p in load_recent_projects(base) if p != project_path]
    recent.insert(0, project_path)
    del recent[MAX_RECENT_PROJECTS:]
    path = recent_file(base)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"{p}\n" for p in recent), encoding="utf-8")
    except OSError as e:
        logger.warning("could not update %s: %s", path, e)
    return recent


__all__ = ["load_recent_projects", "push_recent_project", "recent_file"]
