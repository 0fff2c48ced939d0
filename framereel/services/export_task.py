"""Background export: a one-shot QThread worker plus a pollable handle.

The GUI never blocks on an export. It starts an ``ExportHandle`` and reads
``handle.progress`` / ``handle.state`` from a QTimer tick. The worker thread is
the only writer of those fields and the GUI the only reader.

There is no cancellation: once started, an export runs to success or failure.
Keeping a single export in flight is the caller's job (see ``EditorSession``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, QThread, Signal

from .export import Encoder, RenderError, export_project

logger = logging.getLogger(__name__)

PENDING = "pending"
RUNNING = "running"
SUCCEEDED = "succeeded"
FAILED = "failed"


class ExportWorker(QObject):
    finished = Signal(str)  # output path
    failed = Signal(str)  # reason

    def __init__(self, handle: "ExportHandle", encoder: Optional[Encoder] = None):
        super().__init__()
        self._handle = handle
        self._encoder = encoder

    def _report(self, fraction: float) -> None:
        # keep progress monotonic for the reader
        if fraction > self._handle.progress:
            self._handle.progress = fraction

    def _fail(self, error: Exception) -> None:
        self._handle.error = error
        self._handle.progress = 1.0
        self._handle.state = FAILED
        self.failed.emit(f"{type(error).__name__}: {error}")

    def run(self):  # executed in thread
        handle = self._handle
        handle.state = RUNNING
        try:
            export_project(
                handle.project_root,
                handle.output_path,
                self._report,
                encoder=self._encoder,
            )
        except RenderError as e:
            logger.warning("export of %s failed: %s", handle.project_root, e)
            self._fail(e)
            return
        except Exception as e:
            logger.exception("export of %s crashed", handle.project_root)
            self._fail(e)
            return
        handle.progress = 1.0
        handle.state = SUCCEEDED
        logger.info("export finished: %s", handle.output_path)
        self.finished.emit(str(handle.output_path))


class ExportHandle:
    """State of one export; created by ``start_export``."""

    def __init__(self, project_root: str | Path, output_path: str | Path):
        self.project_root = Path(project_root)
        self.output_path = Path(output_path)
        self.progress: float = 0.0
        self.state: str = PENDING
        self.error: Optional[Exception] = None
        self._thread: Optional[QThread] = None
        self._worker: Optional[ExportWorker] = None

    @property
    def done(self) -> bool:
        return self.state in (SUCCEEDED, FAILED)

    @property
    def succeeded(self) -> bool:
        return self.state == SUCCEEDED

    def wait(self, msecs: int = -1) -> bool:
        """Block until the worker thread ends (tests / shutdown only)."""
        if self._thread is None:
            return True
        if msecs < 0:
            return self._thread.wait()
        return self._thread.wait(msecs)


def start_export(
    project_root: str | Path,
    output_path: str | Path,
    encoder: Optional[Encoder] = None,
) -> ExportHandle:
    handle = ExportHandle(project_root, output_path)
    worker = ExportWorker(handle, encoder)
    thread = QThread()
    handle._thread = thread
    handle._worker = worker
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    # Ensure cleanup
    worker.finished.connect(lambda *_: thread.quit())
    worker.failed.connect(lambda *_: thread.quit())
    thread.finished.connect(worker.deleteLater)
    thread.start()
    return handle


__all__ = [
    "ExportHandle",
    "ExportWorker",
    "start_export",
    "PENDING",
    "RUNNING",
    "SUCCEEDED",
    "FAILED",
]
