"""Perspective camera with view/projection matrices and orbit/roll mutators."""

import numpy as np

from poseforge.core.math_utils import (
    Mat4,
    Vec3,
    as_vec3,
    clamp,
    mat4_identity,
    mat4_look_at,
    mat4_perspective,
    normalize,
    rotate_about_axis,
    vec3,
)
from poseforge.constants import (
    DEFAULT_CAMERA_POS,
    DEFAULT_CAMERA_TARGET,
    DEFAULT_CAMERA_UP,
    DEFAULT_FOV,
    FAR_PLANE,
    MAX_CAMERA_DISTANCE,
    MIN_CAMERA_DISTANCE,
    NEAR_PLANE,
)


class Camera:
    """A perspective camera that produces view and projection matrices.

    ``forward()`` is the viewing direction (eye towards target);
    ``right()`` and ``up()`` complete the camera basis.

    Parameters
    ----------
    fov : float
        Vertical field-of-view in degrees.
    near : float
        Near clipping plane distance.
    far : float
        Far clipping plane distance.
    """

    def __init__(
        self,
        fov: float = DEFAULT_FOV,
        near: float = NEAR_PLANE,
        far: float = FAR_PLANE,
        position: Vec3 | None = None,
        target: Vec3 | None = None,
        up: Vec3 | None = None,
    ) -> None:
        self.fov = fov
        self.near = near
        self.far = far
        self.aspect: float = 1.0

        self.position: Vec3 = vec3(*DEFAULT_CAMERA_POS) if position is None else as_vec3(position)
        self.target: Vec3 = vec3(*DEFAULT_CAMERA_TARGET) if target is None else as_vec3(target)
        self.world_up: Vec3 = vec3(*DEFAULT_CAMERA_UP) if up is None else normalize(as_vec3(up))

        # Pose to return to on reset()
        self._home = (self.position.copy(), self.target.copy(), self.world_up.copy())

        # Cached matrices (recomputed on demand)
        self._view_dirty: bool = True
        self._proj_dirty: bool = True
        self._view: Mat4 = mat4_identity()
        self._proj: Mat4 = mat4_identity()

    # ------------------------------------------------------------------
    # Matrices
    # ------------------------------------------------------------------

    def set_aspect(self, width: int, height: int) -> None:
        """Update the aspect ratio from viewport dimensions."""
        if height > 0:
            self.aspect = width / height
            self._proj_dirty = True

    def get_view_matrix(self) -> Mat4:
        """Return the current view (camera) matrix."""
        if self._view_dirty:
            self._view = mat4_look_at(self.position, self.target, self.world_up)
            self._view_dirty = False
        return self._view

    def get_projection_matrix(self) -> Mat4:
        """Return the current perspective projection matrix."""
        if self._proj_dirty:
            self._proj = mat4_perspective(np.radians(self.fov), self.aspect, self.near, self.far)
            self._proj_dirty = False
        return self._proj

    def get_view_projection(self) -> Mat4:
        """Return ``projection @ view``."""
        return self.get_projection_matrix() @ self.get_view_matrix()

    # ------------------------------------------------------------------
    # Basis
    # ------------------------------------------------------------------

    def forward(self) -> Vec3:
        return normalize(self.target - self.position)

    def right(self) -> Vec3:
        view = self.get_view_matrix()
        return view[0, :3].copy()

    def up(self) -> Vec3:
        view = self.get_view_matrix()
        return view[1, :3].copy()

    def distance(self) -> float:
        return float(np.linalg.norm(self.target - self.position))

    # ------------------------------------------------------------------
    # Mutators (mark view dirty)
    # ------------------------------------------------------------------

    def look_at(self, eye: Vec3, target: Vec3, up: Vec3 | None = None) -> None:
        self.position = as_vec3(eye)
        self.target = as_vec3(target)
        if up is not None:
            self.world_up = normalize(as_vec3(up))
        self._view_dirty = True

    def orbit_target(self, axis: Vec3, angle: float) -> None:
        """Swing the eye around the target about *axis*."""
        offset = self.position - self.target
        self.position = self.target + rotate_about_axis(offset, axis, angle)
        self.world_up = normalize(rotate_about_axis(self.world_up, axis, angle))
        self._view_dirty = True

    def rotate(self, axis: Vec3, angle: float) -> None:
        """Turn the view direction about *axis* while the eye stays put."""
        offset = self.target - self.position
        self.target = self.position + rotate_about_axis(offset, axis, angle)
        self.world_up = normalize(rotate_about_axis(self.world_up, axis, angle))
        self._view_dirty = True

    def offset(self, direction: Vec3, distance: float, move_target: bool = True) -> None:
        """Translate the eye (and by default the target) along *direction*."""
        step = normalize(as_vec3(direction)) * distance
        self.position = self.position + step
        if move_target:
            self.target = self.target + step
        self._view_dirty = True

    def offset_dist(self, delta: float) -> None:
        """Move the eye towards (negative) or away from (positive) the target."""
        dist = clamp(self.distance() + delta, MIN_CAMERA_DISTANCE, MAX_CAMERA_DISTANCE)
        self.position = self.target - self.forward() * dist
        self._view_dirty = True

    def roll(self, angle: float, clockwise: bool) -> None:
        """Spin the up vector about the viewing direction."""
        signed = -angle if clockwise else angle
        self.world_up = normalize(rotate_about_axis(self.world_up, self.forward(), signed))
        self._view_dirty = True

    def reset(self) -> None:
        """Return to the pose the camera was created with."""
        position, target, up = self._home
        self.look_at(position, target, up)

    def mark_view_dirty(self) -> None:
        """Call after externally modifying ``position`` or ``target``."""
        self._view_dirty = True
