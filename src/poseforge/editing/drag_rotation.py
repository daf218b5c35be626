"""Screen-plane drag rotation: mouse ray → signed angle → joint-space increment.

A drag rotates the bone about the camera's viewing axis only. The mouse
ray is intersected with the drag plane (perpendicular to the view axis,
through the bone tip) and the bone is swung so that, seen from the
camera, it points at the cursor.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

import numpy as np

from poseforge.constants import PARALLEL_EPSILON
from poseforge.core.math_utils import (
    Mat4, Quat, Vec3,
    mat4_inverse, normalize, quat_from_axis_angle, transform_direction,
    unproject_ndc,
)
from poseforge.skeleton.picker import Ray

if TYPE_CHECKING:
    from poseforge.rendering.camera import Camera


def screen_to_ndc(x: float, y: float, width: int, height: int) -> tuple[float, float]:
    """Pixel coordinates (origin top-left) to NDC, sampling pixel centres."""
    ndc_x = 2.0 * (x + 0.5) / width - 1.0
    ndc_y = 1.0 - 2.0 * (y + 0.5) / height
    return ndc_x, ndc_y


def mouse_ray(x: float, y: float, width: int, height: int, camera: Camera) -> Ray:
    """World-space ray from the camera through a viewport pixel."""
    ndc_x, ndc_y = screen_to_ndc(x, y, width, height)
    near_point = unproject_ndc(
        ndc_x, ndc_y, -1.0,
        camera.get_view_matrix(), camera.get_projection_matrix(),
    )
    return Ray(camera.position, near_point - camera.position)


def signed_angle(from_dir: Vec3, to_dir: Vec3, axis: Vec3) -> float:
    """Angle from *from_dir* to *to_dir*, positive counter-clockwise about *axis*."""
    return math.atan2(
        float(np.dot(np.cross(from_dir, to_dir), axis)),
        float(np.dot(from_dir, to_dir)),
    )


def drag_rotation_angle(
    ray: Ray,
    axis: Vec3,
    joint: Vec3,
    endpoint: Vec3,
) -> Optional[float]:
    """Angle that swings the bone tip towards the mouse, about *axis*.

    Returns None for a sample that cannot be resolved: the ray runs
    parallel to the drag plane or meets it behind the camera, the bone
    points straight along the axis, or the cursor sits on the centre of
    rotation.
    """
    axis = normalize(axis)
    offset = endpoint - joint
    depth = float(np.dot(offset, axis))
    center = joint + axis * depth

    denom = float(np.dot(ray.direction, axis))
    if abs(denom) < PARALLEL_EPSILON:
        return None
    t = float(np.dot(endpoint - ray.origin, axis)) / denom
    if t <= 0.0:
        return None
    mouse_hit = ray.at(t)

    # Only the in-plane parts of the two directions affect the angle
    if np.linalg.norm(offset - axis * depth) < PARALLEL_EPSILON:
        return None
    mouse_vec = mouse_hit - center
    if np.linalg.norm(mouse_vec) < PARALLEL_EPSILON:
        return None

    endpoint_proj = endpoint - axis * depth
    bone_dir = normalize(endpoint_proj - center)
    mouse_dir = normalize(mouse_vec)
    return signed_angle(bone_dir, mouse_dir, axis)


def joint_space_increment(axis: Vec3, angle: float, parent_deformed: Optional[Mat4]) -> Quat:
    """Quaternion for a world-space rotation, expressed in the parent's frame.

    A root's rotation is already in world space; any other bone's rotation
    lives in its parent's deformed frame, so the axis is carried there
    first.
    """
    local_axis = axis
    if parent_deformed is not None:
        local_axis = transform_direction(mat4_inverse(parent_deformed), axis)
    return quat_from_axis_angle(local_axis, angle)
