"""Mouse-driven orbit, zoom and pan controls for the camera."""

import numpy as np

from poseforge.constants import PAN_SPEED, ROTATION_SPEED, ZOOM_SPEED
from poseforge.core.math_utils import normalize
from poseforge.rendering.camera import Camera


class OrbitControls:
    """Orbits the camera around its target while a camera drag is active.

    Each mouse-move sample orbits by a fixed ``rotate_speed`` about the axis
    perpendicular to both the view direction and the drag direction, so
    the speed of the drag does not matter, only its direction.

    Parameters
    ----------
    camera : Camera
        The camera whose position will be updated.
    """

    # Mouse button constants
    BUTTON_LEFT = 1
    BUTTON_MIDDLE = 2
    BUTTON_RIGHT = 3

    def __init__(self, camera: Camera) -> None:
        self.camera = camera

        # Sensitivity
        self.rotate_speed: float = ROTATION_SPEED
        self.zoom_speed: float = ZOOM_SPEED
        self.pan_speed: float = PAN_SPEED

        # Interaction state
        self._active_button: int | None = None
        self._last_x: float = 0.0
        self._last_y: float = 0.0

    @property
    def active(self) -> bool:
        return self._active_button is not None

    # ------------------------------------------------------------------
    # Mouse event handlers
    # ------------------------------------------------------------------

    def on_mouse_press(self, x: float, y: float, button: int) -> None:
        """Begin an orbit (left), zoom (right), or pan (middle) drag."""
        self._active_button = button
        self._last_x = x
        self._last_y = y

    def on_mouse_move(self, x: float, y: float) -> bool:
        """Process a mouse-move during an active drag. Returns True if the camera moved."""
        if self._active_button is None:
            return False

        dx = x - self._last_x
        dy = y - self._last_y
        self._last_x = x
        self._last_y = y
        if dx == 0 and dy == 0:
            return False

        if self._active_button == self.BUTTON_LEFT:
            self._orbit(dx, dy)
        elif self._active_button == self.BUTTON_RIGHT:
            self._zoom_drag(dx, dy)
        elif self._active_button == self.BUTTON_MIDDLE:
            self._pan(dx, dy)
        else:
            return False
        return True

    def on_mouse_release(self) -> None:
        """End the current drag."""
        self._active_button = None

    def on_scroll(self, delta: float) -> None:
        """Zoom in/out via scroll wheel. Positive *delta* zooms in."""
        self.camera.offset_dist(-delta * self.zoom_speed * self.camera.distance())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _drag_direction(self, dx: float, dy: float) -> np.ndarray:
        """World-space direction of a screen drag (screen y grows downwards)."""
        return normalize(self.camera.right() * -dx + self.camera.up() * dy)

    def _orbit(self, dx: float, dy: float) -> None:
        mouse_dir = self._drag_direction(dx, dy)
        axis = normalize(np.cross(mouse_dir, self.camera.forward()))
        if np.linalg.norm(axis) < 1e-10:
            return
        self.camera.orbit_target(axis, self.rotate_speed)

    def _zoom_drag(self, dx: float, dy: float) -> None:
        mouse_dir = self._drag_direction(dx, dy)
        self.camera.offset_dist(float(np.sign(mouse_dir[1])) * self.zoom_speed)

    def _pan(self, dx: float, dy: float) -> None:
        """Pan the camera (and target) perpendicular to the view direction."""
        dist = self.camera.distance()
        pan = (self.camera.right() * -dx + self.camera.up() * dy) * self.pan_speed * dist * 0.02
        norm = float(np.linalg.norm(pan))
        if norm > 0.0:
            self.camera.offset(pan, norm)
