"""PoseForge application entry point.

Wires together scene loading, the pose editor, rendering and the UI.
"""

# Disable PyOpenGL's per-call error checking BEFORE any GL imports.
# macOS Metal translation layer leaves stale GL errors that cause
# PyOpenGL's automatic error checker to raise on every GL call.
import OpenGL
OpenGL.ERROR_CHECKING = False

import logging
import sys
from pathlib import Path

from PySide6.QtGui import QSurfaceFormat
from PySide6.QtWidgets import QApplication

from poseforge.constants import BUILTIN_SCENES
from poseforge.core.events import EventBus
from poseforge.core.state import EditorSession
from poseforge.editing.pose_editor import PoseEditor
from poseforge.loaders.skeleton_loader import load_builtin_scene, load_scene
from poseforge.rendering.camera import Camera
from poseforge.rendering.gl_widget import create_gl_format

logger = logging.getLogger(__name__)


def main():
    """Launch the PoseForge application.

    An optional first argument names a scene file to open; otherwise the
    first built-in scene is shown.
    """
    # Enable logging so warnings are visible
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    # Set OpenGL format before creating QApplication
    QSurfaceFormat.setDefaultFormat(create_gl_format())

    app = QApplication(sys.argv)

    args = app.arguments()[1:]
    if args:
        mesh = load_scene(Path(args[0]))
    else:
        mesh = load_builtin_scene(BUILTIN_SCENES[0])

    event_bus = EventBus()
    session = EditorSession(mesh=mesh, camera=Camera())
    editor = PoseEditor(session, event_bus)

    # Main window (imported here so the GL format is set first)
    from poseforge.ui.main_window import MainWindow
    window = MainWindow(event_bus, editor)
    window.show()
    window.viewport.setFocus()

    logger.info("PoseForge started with scene '%s'.", mesh.name)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
