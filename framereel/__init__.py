"""Top-level application package exports.

Public API surface (keep minimal):
 - MainWindow, run (UI entry point)
 - EditorSession (everything the UI edits through)
 - TimelineModel, export_project (timeline semantics and video export)

Subpackages: core (store, timeline, projects, media), media (compositor,
thumbnails, playback), services (export), ui, utils.
"""

from .core.session import EditorSession  # noqa: F401
from .core.timeline import TimelineModel  # noqa: F401
from .services.export import export_project  # noqa: F401
from .ui.main_window import MainWindow, run  # noqa: F401

__all__ = ["EditorSession", "MainWindow", "TimelineModel", "export_project", "run"]
