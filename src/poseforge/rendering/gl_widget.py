"""PySide6 QOpenGLWidget subclass bridging Qt input and the pose editor."""

import logging
import traceback

from PySide6.QtCore import QTimer, Qt
from PySide6.QtGui import QKeyEvent, QMouseEvent, QSurfaceFormat, QWheelEvent
from PySide6.QtOpenGLWidgets import QOpenGLWidget

from poseforge.editing.pose_editor import (
    BUTTON_MIDDLE,
    BUTTON_PRIMARY,
    BUTTON_SECONDARY,
    KeyEvent,
    PointerEvent,
    PoseEditor,
)
from poseforge.rendering.renderer import SkeletonRenderer

logger = logging.getLogger(__name__)

# Qt keys the editor understands, by DOM-style key code
_KEY_CODES = {
    Qt.Key.Key_W: "KeyW",
    Qt.Key.Key_A: "KeyA",
    Qt.Key.Key_S: "KeyS",
    Qt.Key.Key_D: "KeyD",
    Qt.Key.Key_R: "KeyR",
    Qt.Key.Key_Up: "ArrowUp",
    Qt.Key.Key_Down: "ArrowDown",
    Qt.Key.Key_Left: "ArrowLeft",
    Qt.Key.Key_Right: "ArrowRight",
}
_DIGIT_KEYS = {
    Qt.Key.Key_1: 1, Qt.Key.Key_2: 2, Qt.Key.Key_3: 3,
    Qt.Key.Key_4: 4, Qt.Key.Key_5: 5, Qt.Key.Key_6: 6,
    Qt.Key.Key_7: 7, Qt.Key.Key_8: 8, Qt.Key.Key_9: 9,
}


def create_gl_format() -> QSurfaceFormat:
    """Create an OpenGL 3.3 core-profile surface format with multisampling."""
    fmt = QSurfaceFormat()
    fmt.setVersion(3, 3)
    fmt.setProfile(QSurfaceFormat.OpenGLContextProfile.CoreProfile)
    fmt.setSamples(4)
    fmt.setDepthBufferSize(24)
    fmt.setSwapBehavior(QSurfaceFormat.SwapBehavior.DoubleBuffer)
    return fmt


def key_code(qt_key) -> str | None:
    """DOM-style code for a Qt key, or None if the editor ignores it."""
    code = _KEY_CODES.get(qt_key)
    if code is not None:
        return code
    digit = _DIGIT_KEYS.get(qt_key)
    if digit is not None:
        return f"Digit{digit}"
    return None


class PoseViewport(QOpenGLWidget):
    """OpenGL viewport that renders the editor's mesh and feeds it input.

    Parameters
    ----------
    editor : PoseEditor
        Editor whose session supplies the mesh and camera.
    parent : QWidget, optional
        Parent widget.
    """

    def __init__(self, editor: PoseEditor, parent=None) -> None:
        super().__init__(parent)
        self.setFormat(create_gl_format())

        self.editor = editor
        self.renderer: SkeletonRenderer = SkeletonRenderer()

        # Refresh timer (~60 fps)
        self._timer = QTimer(self)
        self._timer.setInterval(16)
        self._timer.timeout.connect(self.update)

        # Accept focus for keyboard events
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        # Hover picking needs moves without a button held
        self.setMouseTracking(True)

    # ------------------------------------------------------------------
    # QOpenGLWidget overrides
    # ------------------------------------------------------------------

    def initializeGL(self) -> None:
        """Called once when the GL context is ready."""
        try:
            logger.info("PoseViewport: initialising OpenGL.")
            self.renderer.init_gl()
            self._timer.start()
        except Exception:
            logger.error("initializeGL failed:\n%s", traceback.format_exc())

    def resizeGL(self, w: int, h: int) -> None:
        """Called on every resize.

        Qt passes logical dimensions, which match mouse coordinates; the
        framebuffer is scaled by devicePixelRatio (Retina/HiDPI displays).
        """
        dpr = self.devicePixelRatio()
        self.editor.session.set_viewport(w, h)
        self.renderer.resize(int(w * dpr), int(h * dpr))

    def paintGL(self) -> None:
        """Called each frame to render the scene."""
        try:
            session = self.editor.session
            self.renderer.render(session.mesh, session.camera)
        except Exception:
            logger.error("paintGL failed:\n%s", traceback.format_exc())

    # ------------------------------------------------------------------
    # Input events -> pose editor
    # ------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if self.editor.on_pointer_down(self._pointer_event(event)):
            self.update()
            event.accept()
        else:
            event.ignore()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        self.editor.on_pointer_move(self._pointer_event(event))
        self.update()
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        self.editor.on_pointer_up(self._pointer_event(event))
        self.update()
        event.accept()

    def wheelEvent(self, event: QWheelEvent) -> None:
        # angleDelta().y() is typically +/-120 per notch
        self.editor.on_scroll(event.angleDelta().y() / 120.0)
        self.update()
        event.accept()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        code = key_code(event.key())
        if code is not None and self.editor.on_key_down(KeyEvent(code)):
            self.update()
            event.accept()
            return
        super().keyPressEvent(event)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Explicitly release GL resources. Call before the widget is destroyed."""
        self._timer.stop()
        self.makeCurrent()
        self.renderer.destroy()
        self.doneCurrent()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _pointer_event(event: QMouseEvent) -> PointerEvent:
        pos = event.position()
        screen = event.globalPosition()
        held = event.buttons()
        buttons = 0
        if held & Qt.MouseButton.LeftButton:
            buttons |= BUTTON_PRIMARY
        if held & Qt.MouseButton.RightButton:
            buttons |= BUTTON_SECONDARY
        if held & Qt.MouseButton.MiddleButton:
            buttons |= BUTTON_MIDDLE
        return PointerEvent(
            screen_x=screen.x(), screen_y=screen.y(),
            offset_x=pos.x(), offset_y=pos.y(),
            buttons=buttons,
        )
