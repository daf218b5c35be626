"""Tests for screen-plane drag rotation math."""

import math

import numpy as np
import pytest

from poseforge.core.math_utils import (
    mat4_from_quaternion, mat4_inverse, quat_from_axis_angle, vec3,
)
from poseforge.editing.drag_rotation import (
    drag_rotation_angle, joint_space_increment, mouse_ray, screen_to_ndc, signed_angle,
)
from poseforge.rendering.camera import Camera
from poseforge.skeleton.picker import Ray

AXIS = vec3(0, 0, 1)
JOINT = vec3(0, 0, 0)


def test_screen_to_ndc_centre_and_corners():
    assert screen_to_ndc(399.5, 299.5, 800, 600) == pytest.approx((0.0, 0.0))
    x, y = screen_to_ndc(-0.5, -0.5, 800, 600)
    assert (x, y) == pytest.approx((-1.0, 1.0))
    x, y = screen_to_ndc(799.5, 599.5, 800, 600)
    assert (x, y) == pytest.approx((1.0, -1.0))


def test_mouse_ray_through_centre_follows_view_axis():
    camera = Camera()
    camera.set_aspect(800, 600)
    ray = mouse_ray(399.5, 299.5, 800, 600, camera)
    np.testing.assert_array_almost_equal(ray.origin, camera.position)
    np.testing.assert_array_almost_equal(ray.direction, camera.forward())


def test_mouse_ray_right_of_centre_leans_camera_right():
    camera = Camera()
    camera.set_aspect(800, 600)
    ray = mouse_ray(700, 299.5, 800, 600, camera)
    assert float(np.dot(ray.direction, camera.right())) > 0.0
    assert abs(float(np.dot(ray.direction, camera.up()))) < 1e-9


def test_signed_angle_right_hand_rule():
    assert signed_angle(vec3(1, 0, 0), vec3(0, 1, 0), AXIS) == pytest.approx(math.pi / 2)
    assert signed_angle(vec3(0, 1, 0), vec3(1, 0, 0), AXIS) == pytest.approx(-math.pi / 2)


def test_drag_angle_quarter_turn():
    # Cursor straight "above" the joint while the bone points along +X
    ray = Ray(vec3(0, 1, -5), AXIS)
    angle = drag_rotation_angle(ray, AXIS, JOINT, vec3(1, 0, 0))
    assert angle == pytest.approx(math.pi / 2)


def test_drag_angle_zero_when_cursor_on_bone_line():
    ray = Ray(vec3(2, 0, -5), AXIS)
    assert drag_rotation_angle(ray, AXIS, JOINT, vec3(1, 0, 0)) == pytest.approx(0.0)


def test_drag_angle_ignores_axial_offset():
    ray = Ray(vec3(0, 1, -5), AXIS)
    angle = drag_rotation_angle(ray, AXIS, JOINT, vec3(1, 0, 0.5))
    assert angle == pytest.approx(math.pi / 2)


def test_drag_angle_unnormalised_axis():
    ray = Ray(vec3(0, 1, -5), AXIS)
    angle = drag_rotation_angle(ray, AXIS * 3.0, JOINT, vec3(1, 0, 0))
    assert angle == pytest.approx(math.pi / 2)


def test_drag_skips_ray_parallel_to_plane():
    ray = Ray(vec3(0, 1, -5), vec3(1, 0, 0))
    assert drag_rotation_angle(ray, AXIS, JOINT, vec3(1, 0, 0)) is None


def test_drag_skips_plane_behind_ray():
    ray = Ray(vec3(0, 1, 5), AXIS)
    assert drag_rotation_angle(ray, AXIS, JOINT, vec3(1, 0, 0)) is None


def test_drag_skips_bone_along_axis():
    ray = Ray(vec3(0, 1, -5), AXIS)
    assert drag_rotation_angle(ray, AXIS, JOINT, vec3(0, 0, 1)) is None


def test_drag_skips_cursor_on_rotation_centre():
    ray = Ray(vec3(0, 0, -5), AXIS)
    assert drag_rotation_angle(ray, AXIS, JOINT, vec3(1, 0, 0)) is None


def test_joint_space_increment_for_root():
    q = joint_space_increment(AXIS, 0.3, None)
    np.testing.assert_array_almost_equal(q, quat_from_axis_angle(AXIS, 0.3))


def test_joint_space_increment_matches_world_rotation():
    parent_d = mat4_from_quaternion(quat_from_axis_angle(vec3(1, 0, 0), math.pi / 2))
    parent_d[:3, 3] = [0.5, 1.0, -2.0]
    q = joint_space_increment(AXIS, 0.7, parent_d)

    world = mat4_from_quaternion(quat_from_axis_angle(AXIS, 0.7))
    conjugated = parent_d @ mat4_from_quaternion(q) @ mat4_inverse(parent_d)
    np.testing.assert_array_almost_equal(conjugated[:3, :3], world[:3, :3])
