"""Main application window (UI layer).

Two pages in a stack:
- Start page: create a project, open a project folder, or pick a recent one
  or any project under the base folder.
- Editor page:
    +-------------------------+----------------------------------------+
    | Movie config            | Render [progress]  Play   zoom - +     |
    | Media bin   (drag src)  +----------------------------------------+
    | Scenes (up/down/...)    | Timeline track (selected scene)        |
    +-------------------------+----------------------------------------+

The window owns one `EditorSession`; every edit goes through it. Exports run in
the background and are polled by a QTimer; the result is shown in one modal.
"""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QGuiApplication
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QScrollArea,
    QSplitter,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .. import config
from ..core.media import is_image_file
from ..core.project import list_project_folders
from ..core.recent import load_recent_projects
from ..core.session import EditorSession
from ..utils.timefmt import format_time, frame_to_seconds
from .components.config_panel import MovieConfigPanel
from .components.media_bin import MediaBin
from .components.preview_panel import ScenePlaybackWindow
from .components.timeline_track import TimelineTrack

logger = logging.getLogger(__name__)

EXPORT_POLL_MS = 100


class MainWindow(QMainWindow):
    def __init__(self, session: Optional[EditorSession] = None):
        super().__init__()
        self.session = session if session is not None else EditorSession()
        self.setWindowTitle("FrameReel")
        self.setGeometry(100, 100, 1100, 700)
        self.setAcceptDrops(True)
        self.playback_window: Optional[ScenePlaybackWindow] = None
        self._export_timer = QTimer(self)
        self._export_timer.timeout.connect(self._pollExport)
        self._createMenuBar()
        self.pages = QStackedWidget()
        self.pages.addWidget(self._createStartPage())
        self.pages.addWidget(self._createEditorPage())
        self.setCentralWidget(self.pages)
        self.showStartPage()

    def centerOnPreferredScreen(self):
        """Center the window on the selected screen.

        Selection priority:
        1. Environment variable FRAMEREEL_SCREEN_INDEX if valid.
        2. Primary screen.
        """
        screens = QGuiApplication.screens()
        if not screens:
            return
        screen = None
        idx = config.screen_index()
        if idx is not None and 0 <= idx < len(screens):
            screen = screens[idx]
        if screen is None:
            screen = QGuiApplication.primaryScreen() or screens[0]
        geo = screen.availableGeometry()
        win_geo = self.frameGeometry()
        win_geo.moveCenter(geo.center())
        self.move(win_geo.topLeft())

    # --- Menus ---
    def _createMenuBar(self):
        menu_bar = self.menuBar()
        file_menu = menu_bar.addMenu("File")
        projects_action = QAction("Projects...", self)
        projects_action.triggered.connect(self.closeProject)
        file_menu.addAction(projects_action)
        import_action = QAction("Import Media", self)
        import_action.triggered.connect(self._importMediaDialog)
        file_menu.addAction(import_action)
        exit_action = QAction("Exit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)
        about_menu = menu_bar.addMenu("About")
        about_action = QAction("About FrameReel", self)
        about_action.triggered.connect(self._showAboutDialog)
        about_menu.addAction(about_action)

    def _showAboutDialog(self):
        QMessageBox.about(
            self,
            "About FrameReel",
            "FrameReel\nArrange still images on a frame timeline and export video.",
        )

    # --- Start page ---
    def _createStartPage(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout()
        title = QLabel("FrameReel")
        title.setStyleSheet("font-size:24px;padding:8px;")
        layout.addWidget(title)

        row = QHBoxLayout()
        self.project_name_edit = QLineEdit()
        self.project_name_edit.setPlaceholderText("New project name")
        self.project_name_edit.returnPressed.connect(self._onCreateClicked)
        create_btn = QPushButton("Create")
        create_btn.clicked.connect(self._onCreateClicked)
        open_btn = QPushButton("Open Folder...")
        open_btn.clicked.connect(self._onOpenFolderClicked)
        row.addWidget(self.project_name_edit, stretch=1)
        row.addWidget(create_btn)
        row.addWidget(open_btn)
        layout.addLayout(row)

        lists = QHBoxLayout()
        recent_col = QVBoxLayout()
        recent_col.addWidget(QLabel("Recent projects"))
        self.recent_list = QListWidget()
        self.recent_list.itemActivated.connect(
            lambda item: self.openProject(item.data(Qt.UserRole))
        )
        recent_col.addWidget(self.recent_list, stretch=1)
        lists.addLayout(recent_col)
        projects_col = QVBoxLayout()
        projects_col.addWidget(QLabel("Projects"))
        self.project_list = QListWidget()
        self.project_list.itemActivated.connect(
            lambda item: self.openProject(item.data(Qt.UserRole))
        )
        projects_col.addWidget(self.project_list, stretch=1)
        lists.addLayout(projects_col)
        layout.addLayout(lists, stretch=1)
        page.setLayout(layout)
        return page

    def showStartPage(self):
        self.recent_list.clear()
        for path in load_recent_projects(self.session.base):
            item = QListWidgetItem(Path(path).name)
            item.setData(Qt.UserRole, path)
            item.setToolTip(path)
            self.recent_list.addItem(item)
        # every project under the base folder, including ones no longer recent
        self.project_list.clear()
        for folder in list_project_folders(self.session.base):
            item = QListWidgetItem(folder.name)
            item.setData(Qt.UserRole, str(folder))
            item.setToolTip(str(folder))
            self.project_list.addItem(item)
        self.pages.setCurrentIndex(0)

    def _onCreateClicked(self):
        name = self.project_name_edit.text().strip()
        if not name:
            return
        if not self.createProject(name):
            QMessageBox.critical(self, "Error", f"Could not create project '{name}'.")

    def _onOpenFolderClicked(self):
        folder = QFileDialog.getExistingDirectory(
            self, "Open Project", str(self.session.base)
        )
        if folder and not self.openProject(folder):
            QMessageBox.critical(self, "Error", f"{folder} is not a FrameReel project.")

    def createProject(self, name: str) -> bool:
        self._closePlayback()
        if not self.session.create_project(name):
            return False
        self._enterEditor()
        return True

    def openProject(self, root: str) -> bool:
        self._closePlayback()
        if not self.session.open_project(root):
            return False
        self._enterEditor()
        return True

    def closeProject(self):
        if self.session.export_running:
            QMessageBox.information(self, "Rendering", "Wait for the render to finish.")
            return
        self._closePlayback()
        self.session.close_project()
        self.timeline_track.setScene(None)
        self.showStartPage()

    def _enterEditor(self):
        self.setWindowTitle(f"FrameReel - {self.session.project.name}")
        self.config_panel.refresh()
        self.media_bin.refresh()
        self.refreshScenes()
        self.pages.setCurrentIndex(1)

    # --- Editor page ---
    def _createEditorPage(self) -> QWidget:
        splitter = QSplitter()
        splitter.setOrientation(Qt.Horizontal)  # type: ignore

        # Left column: config, media, scenes
        left = QWidget()
        left_layout = QVBoxLayout()
        left_layout.setContentsMargins(4, 4, 4, 4)
        self.config_panel = MovieConfigPanel(self.session)
        self.config_panel.configChanged.connect(lambda _cfg: self.timeline_track.refresh())
        left_layout.addWidget(self.config_panel)

        left_layout.addWidget(QLabel("Media"))
        self.media_bin = MediaBin(self.session)
        left_layout.addWidget(self.media_bin, stretch=1)
        media_row = QHBoxLayout()
        for text, slot in (
            ("Import", self._importMediaDialog),
            ("Rename", self._onRenameMediaClicked),
            ("Delete", self._onDeleteMediaClicked),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            media_row.addWidget(btn)
        left_layout.addLayout(media_row)

        left_layout.addWidget(QLabel("Scenes"))
        self.scene_list = QListWidget()
        self.scene_list.currentItemChanged.connect(self._onSceneSelectionChanged)
        left_layout.addWidget(self.scene_list, stretch=1)
        scene_row = QHBoxLayout()
        for text, slot in (
            ("New", self.newScene),
            ("Up", lambda: self.moveSelectedScene(up=True)),
            ("Down", lambda: self.moveSelectedScene(up=False)),
            ("Rename", self._onRenameSceneClicked),
            ("Delete", self.deleteSelectedScene),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            scene_row.addWidget(btn)
        left_layout.addLayout(scene_row)
        left.setLayout(left_layout)
        splitter.addWidget(left)

        # Right column: transport + timeline
        right = QWidget()
        right_layout = QVBoxLayout()
        right_layout.setContentsMargins(4, 4, 4, 4)
        bar = QHBoxLayout()
        self.render_button = QPushButton("Render")
        self.render_button.setToolTip("Render all scenes to video (requires ffmpeg)")
        self.render_button.clicked.connect(self._onRenderClicked)
        self.render_progress = QProgressBar()
        self.render_progress.setRange(0, 1000)
        self.render_progress.setTextVisible(False)
        self.render_progress.setVisible(False)
        self.play_button = QPushButton("Play")
        self.play_button.setToolTip("Play timeline in separate window")
        self.play_button.clicked.connect(self.playSelectedScene)
        zoom_out = QPushButton("-")
        zoom_in = QPushButton("+")
        for b in (zoom_out, zoom_in):
            b.setFixedWidth(28)
        bar.addWidget(self.render_button)
        bar.addWidget(self.render_progress, stretch=1)
        bar.addWidget(self.play_button)
        bar.addStretch(1)
        bar.addWidget(QLabel("Zoom"))
        bar.addWidget(zoom_out)
        bar.addWidget(zoom_in)
        right_layout.addLayout(bar)

        self.timeline_track = TimelineTrack(self.session)
        self.timeline_track.layerSelected.connect(self._showLayerInfo)
        self.timeline_track.edited.connect(self._onTimelineEdited)
        zoom_out.clicked.connect(self.timeline_track.zoomOut)
        zoom_in.clicked.connect(self.timeline_track.zoomIn)
        self.timeline_scroll = QScrollArea()
        self.timeline_scroll.setWidget(self.timeline_track)
        self.timeline_scroll.setWidgetResizable(True)
        right_layout.addWidget(self.timeline_scroll)
        self.timeline_hint = QLabel(
            "Drag media onto the track. Drag edges to resize. "
            "Del removes, Ctrl+C/Ctrl+V copies, Ctrl+wheel zooms."
        )
        self.timeline_hint.setStyleSheet("color:#999;font-size:11px;padding:2px 4px;")
        right_layout.addWidget(self.timeline_hint)
        self.layer_label = QLabel()
        self.layer_label.setStyleSheet("font-family:monospace;padding:2px 4px;")
        right_layout.addWidget(self.layer_label)
        right_layout.addStretch(1)
        right.setLayout(right_layout)
        splitter.addWidget(right)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 3)
        return splitter

    # --- Media ---
    def importFiles(self, paths: Iterable[str]) -> List[str]:
        """Import every image among ``paths``; returns the new relative paths."""
        imported = []
        for path in paths:
            if not is_image_file(path):
                continue
            rel = self.session.import_media(path)
            if rel is not None:
                imported.append(rel)
        if imported:
            self.media_bin.refresh()
        return imported

    def _importMediaDialog(self):
        if not self.session.is_open:
            return
        patterns = " ".join(f"*{ext}" for ext in config.IMAGE_EXTENSIONS)
        files, _ = QFileDialog.getOpenFileNames(
            self, "Import Media", "", f"Images ({patterns})"
        )
        if files:
            self.importFiles(files)

    def _onRenameMediaClicked(self):
        rel = self.media_bin.currentPath()
        if rel is None:
            return
        new_name, ok = QInputDialog.getText(
            self, "Rename Media", "File name:", text=rel.split("/", 1)[-1]
        )
        if ok and new_name.strip():
            if self.renameMedia(rel, new_name) is None:
                QMessageBox.warning(self, "Rename", f"Could not rename {rel}.")

    def renameMedia(self, rel: str, new_name: str) -> Optional[str]:
        new_rel = self.session.rename_media(rel, new_name)
        if new_rel is not None:
            self.media_bin.refresh()
            self.timeline_track.refresh()
        return new_rel

    def _onDeleteMediaClicked(self):
        rel = self.media_bin.currentPath()
        if rel is not None and self.session.delete_media(rel):
            self.media_bin.refresh()
            self.timeline_track.refresh()

    # --- Window drops (files from the desktop) ---
    def dragEnterEvent(self, event):  # type: ignore[override]
        if self.session.is_open and event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dropEvent(self, event):  # type: ignore[override]
        if not (self.session.is_open and event.mimeData().hasUrls()):
            super().dropEvent(event)
            return
        paths = [u.toLocalFile() for u in event.mimeData().urls() if u.isLocalFile()]
        self.importFiles(paths)
        event.acceptProposedAction()

    # --- Scenes ---
    def selectedSceneId(self) -> Optional[int]:
        item = self.scene_list.currentItem()
        return item.data(Qt.UserRole) if item is not None else None

    def refreshScenes(self, select: Optional[int] = None):
        if select is None:
            select = self.selectedSceneId()
        self.scene_list.blockSignals(True)
        self.scene_list.clear()
        scenes = self.session.timeline.scenes() if self.session.timeline else []
        for scene in scenes:
            item = QListWidgetItem(scene.name)
            item.setData(Qt.UserRole, scene.id)
            self.scene_list.addItem(item)
            if scene.id == select:
                self.scene_list.setCurrentItem(item)
        if self.scene_list.currentItem() is None and self.scene_list.count():
            self.scene_list.setCurrentRow(0)
        self.scene_list.blockSignals(False)
        self.timeline_track.setScene(self.selectedSceneId())

    def _onSceneSelectionChanged(self, current, previous):
        self.timeline_track.setScene(self.selectedSceneId())

    def newScene(self) -> Optional[int]:
        if self.session.project is None:
            return None
        scene_id = self.session.project.store.create_scene()
        if scene_id is not None:
            self.refreshScenes(select=scene_id)
        return scene_id

    def moveSelectedScene(self, up: bool) -> bool:
        scene_id = self.selectedSceneId()
        if scene_id is None or self.session.timeline is None:
            return False
        timeline = self.session.timeline
        moved = timeline.move_scene_up(scene_id) if up else timeline.move_scene_down(scene_id)
        if moved:
            self.refreshScenes(select=scene_id)
        return moved

    def _onRenameSceneClicked(self):
        item = self.scene_list.currentItem()
        if item is None:
            return
        name, ok = QInputDialog.getText(self, "Rename Scene", "Name:", text=item.text())
        if ok and self.session.project.store.rename_scene(item.data(Qt.UserRole), name.strip()):
            self.refreshScenes()

    def deleteSelectedScene(self) -> bool:
        scene_id = self.selectedSceneId()
        if scene_id is None or not self.session.project.store.delete_scene(scene_id):
            return False
        if self.playback_window is not None and self.playback_window.controller.scene_id == scene_id:
            self._closePlayback()
        self.refreshScenes(select=-1)
        return True

    # --- Timeline ---
    def _showLayerInfo(self, layer_id: Optional[int]):
        timeline = self.session.timeline
        layer = None
        if layer_id is not None and timeline is not None:
            layer = timeline.store.get_layer(layer_id)
        if layer is None:
            self.layer_label.clear()
            return
        fps = timeline.store.movie_config().frame_rate
        self.layer_label.setText(
            f"{layer.image_path}  frames {layer.start_frame}-{layer.end_frame - 1}"
            f"  ({format_time(frame_to_seconds(layer.start_frame, fps))}"
            f" - {format_time(frame_to_seconds(layer.end_frame, fps))})"
        )

    def _onTimelineEdited(self):
        self._showLayerInfo(self.timeline_track.selectedLayer())

    # --- Playback ---
    def playSelectedScene(self) -> bool:
        scene_id = self.selectedSceneId()
        if scene_id is None:
            return False
        if self.playback_window is None:
            self.playback_window = ScenePlaybackWindow(self.session, self)
        self.playback_window.load(scene_id)
        self.playback_window.show()
        self.playback_window.raise_()
        return True

    def _closePlayback(self):
        if self.playback_window is not None:
            self.playback_window.close()
            self.playback_window.deleteLater()
            self.playback_window = None

    # --- Export ---
    def _onRenderClicked(self):
        if self.session.export_running or not self.session.is_open:
            return
        if not self.session.timeline.scenes():
            QMessageBox.information(self, "Render", "Add a scene before rendering.")
            return
        out, _ = QFileDialog.getSaveFileName(
            self, "Render Video", str(self.session.project.root / "output.mp4"), "MP4 (*.mp4)"
        )
        if out:
            self.startRender(out)

    def startRender(self, output_path: str) -> bool:
        handle = self.session.start_export(output_path)
        if handle is None:
            return False
        self.render_button.setEnabled(False)
        self.render_button.setText("Render...")
        self.render_progress.setValue(0)
        self.render_progress.setVisible(True)
        self._export_timer.start(EXPORT_POLL_MS)
        return True

    def _pollExport(self):
        handle = self.session.export
        if handle is None:
            self._export_timer.stop()
            return
        self.render_progress.setValue(int(handle.progress * 1000))
        finished = self.session.take_finished_export()
        if finished is None:
            return
        self._export_timer.stop()
        self.render_progress.setVisible(False)
        self.render_button.setEnabled(True)
        self.render_button.setText("Render")
        self._showRenderResult(finished)

    def _showRenderResult(self, handle):
        if handle.succeeded:
            QMessageBox.information(self, "Render", "Video saved successfully.")
        else:
            QMessageBox.critical(
                self, "Render", f"Render failed. Is ffmpeg installed?\n\n{handle.error}"
            )

    def _ensureFFmpeg(self) -> bool:
        binary = config.ffmpeg_binary()
        if shutil.which(binary) is None:
            QMessageBox.warning(
                self,
                "FFmpeg Missing",
                f"FFmpeg not found ({binary}). Rendering video will not be available.",
            )
            return False
        return True

    def closeEvent(self, event):  # type: ignore[override]
        if self.session.export is not None:
            # exports cannot be cancelled; let the running one finish writing
            self.session.export.wait()
        self._export_timer.stop()
        self._closePlayback()
        self.session.close_project()
        super().closeEvent(event)


def run():  # convenience launcher
    config.configure_logging()
    app = QApplication(sys.argv)
    window = MainWindow()
    window._ensureFFmpeg()
    window.show()
    window.centerOnPreferredScreen()
    sys.exit(app.exec())


__all__ = ["MainWindow", "run"]
