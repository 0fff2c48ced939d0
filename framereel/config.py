"""Runtime configuration read from the environment.

Variables:
    FRAMEREEL_HOME          base directory holding projects and recent.txt
    FRAMEREEL_FFMPEG        ffmpeg executable used for export
    FRAMEREEL_SCREEN_INDEX  preferred screen for the main window
    FRAMEREEL_LOG_LEVEL     logging level name (default WARNING)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DB_FILENAME = "project.db"
MEDIA_DIR_NAME = "media"
RENDER_DIR_NAME = ".render_frames"
RECENT_FILENAME = "recent.txt"
MAX_RECENT_PROJECTS = 10

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tga")

# Movie configuration bounds
MAX_WIDTH = 7680
MAX_HEIGHT = 4320
MIN_FRAME_RATE = 1.0

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def base_path() -> Path:
    """Directory under which new projects are created."""
    env = os.getenv("FRAMEREEL_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / "Documents" / "framereel"


def ffmpeg_binary() -> str:
    """Return the ffmpeg executable to hand frame sequences to.

    Falls back to the binary MoviePy resolved (bundled imageio-ffmpeg by default).
    """
    env = os.getenv("FRAMEREEL_FFMPEG")
    if env:
        return env
    from moviepy.config import FFMPEG_BINARY

    return FFMPEG_BINARY


def screen_index() -> Optional[int]:
    raw = os.getenv("FRAMEREEL_SCREEN_INDEX")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def configure_logging(level: str | None = None) -> None:
    name = (level or os.getenv("FRAMEREEL_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(level=getattr(logging, name, logging.WARNING), format=_LOG_FORMAT)


__all__ = [
    "DB_FILENAME",
    "MEDIA_DIR_NAME",
    "RENDER_DIR_NAME",
    "RECENT_FILENAME",
    "MAX_RECENT_PROJECTS",
    "IMAGE_EXTENSIONS",
    "MAX_WIDTH",
    "MAX_HEIGHT",
    "MIN_FRAME_RATE",
    "base_path",
    "ffmpeg_binary",
    "screen_index",
    "configure_logging",
]
