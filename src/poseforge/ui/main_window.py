"""Main window: the GL viewport plus a menu bar and an editor status bar."""

import logging
from pathlib import Path

from PySide6.QtGui import QAction, QFont
from PySide6.QtWidgets import QFileDialog, QLabel, QMainWindow, QStatusBar

from poseforge.constants import BUILTIN_SCENES
from poseforge.core.events import EventBus, EventType
from poseforge.core.state import EditorMode
from poseforge.editing.pose_editor import PoseEditor
from poseforge.loaders.skeleton_loader import SceneFormatError, load_builtin_scene, load_scene
from poseforge.rendering.gl_widget import PoseViewport
from poseforge.skeleton.skeleton import MalformedHierarchy
from poseforge.ui.style import DARK_THEME

logger = logging.getLogger(__name__)

# What a failed scene load can raise
_LOAD_ERRORS = (OSError, ValueError, SceneFormatError, MalformedHierarchy)


class MainWindow(QMainWindow):
    """Main application window.

    Layout: GL viewport filling the window, with a status bar at the
    bottom showing the scene, the editor mode and the highlighted bone.
    """

    def __init__(self, event_bus: EventBus, editor: PoseEditor, parent=None):
        super().__init__(parent)
        self.event_bus = event_bus
        self.editor = editor

        self.setWindowTitle("PoseForge - Skeletal Pose Editor")
        self.resize(1200, 800)
        self.setStyleSheet(DARK_THEME)

        self.viewport = PoseViewport(editor)
        self.setCentralWidget(self.viewport)

        # Status bar
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        mono = QFont("monospace", 9)

        self.scene_label = QLabel()
        self.mode_label = QLabel()
        self.bone_label = QLabel()
        self.bone_label.setObjectName("highlightLabel")
        for label in (self.scene_label, self.mode_label, self.bone_label):
            label.setFont(mono)
            self.status_bar.addPermanentWidget(label)

        self._build_menu_bar()

        event_bus.subscribe(EventType.SCENE_LOADED, self._on_scene_loaded)
        event_bus.subscribe(EventType.MODE_CHANGED, self._on_mode_changed)
        event_bus.subscribe(EventType.BONE_HIGHLIGHTED, self._on_bone_highlighted)
        event_bus.subscribe(EventType.POSE_RESET, self._on_pose_reset)
        editor.on_scene_requested = self.open_builtin_scene

        mesh = editor.session.mesh
        self._on_scene_loaded(name=mesh.name, bone_count=len(mesh.skeleton))
        self._on_mode_changed(mode=editor.mode)
        self._on_bone_highlighted(index=editor.highlighted_bone)

    def _build_menu_bar(self) -> None:
        """Create the application menu bar."""
        menu_bar = self.menuBar()

        # ── File menu ──
        file_menu = menu_bar.addMenu("&File")
        open_action = QAction("Open Scene...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._open_scene_dialog)
        file_menu.addAction(open_action)

        # ── Scenes menu ──
        scenes_menu = menu_bar.addMenu("&Scenes")
        for number, name in enumerate(BUILTIN_SCENES, start=1):
            action = QAction(f"{number}  {name}", self)
            action.triggered.connect(lambda checked=False, n=name: self.open_builtin_scene(n))
            scenes_menu.addAction(action)

        # ── Pose menu ──
        pose_menu = menu_bar.addMenu("&Pose")
        reset_action = QAction("Reset Pose and Camera", self)
        reset_action.triggered.connect(self.editor.reset)
        pose_menu.addAction(reset_action)

    # ------------------------------------------------------------------
    # Scene switching
    # ------------------------------------------------------------------

    def open_builtin_scene(self, name: str) -> None:
        try:
            mesh = load_builtin_scene(name)
        except _LOAD_ERRORS as e:
            self._report_load_failure(name, e)
            return
        self.editor.set_mesh(mesh)

    def open_scene_file(self, path: Path) -> None:
        try:
            mesh = load_scene(path)
        except _LOAD_ERRORS as e:
            self._report_load_failure(str(path), e)
            return
        self.editor.set_mesh(mesh)

    def _open_scene_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Open Scene",
            "",
            "Scene Files (*.json);;All Files (*)",
        )
        if path:
            self.open_scene_file(Path(path))

    def _report_load_failure(self, source: str, error: Exception) -> None:
        logger.error("Could not load scene %s: %s", source, error)
        self.status_bar.showMessage(f"Could not load {source}: {error}", 5000)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_scene_loaded(self, name: str = "", bone_count: int = 0, **kw):
        self.scene_label.setText(f"Scene: {name} ({bone_count} bones)")
        self._on_bone_highlighted(index=None)
        self.viewport.update()

    def _on_mode_changed(self, mode: EditorMode = EditorMode.IDLE, **kw):
        self.mode_label.setText(f"Mode: {mode.name.lower().replace('_', ' ')}")

    def _on_bone_highlighted(self, index=None, **kw):
        if index is None:
            self.bone_label.setText("Bone: -")
            return
        bone = self.editor.skeleton[index]
        self.bone_label.setText(f"Bone: {bone.name} [{index}]")

    def _on_pose_reset(self, **kw):
        self.status_bar.showMessage("Pose reset", 2000)

    def closeEvent(self, event):
        self.viewport.cleanup()
        super().closeEvent(event)
