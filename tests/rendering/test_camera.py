"""Tests for the perspective camera."""

import math

import numpy as np
import pytest

from poseforge.constants import MAX_CAMERA_DISTANCE, MIN_CAMERA_DISTANCE
from poseforge.core.math_utils import transform_point, vec3
from poseforge.rendering.camera import Camera


def test_default_pose():
    cam = Camera()
    np.testing.assert_array_almost_equal(cam.position, [0, 0, -6])
    np.testing.assert_array_almost_equal(cam.target, [0, 0, 0])
    np.testing.assert_array_almost_equal(cam.forward(), [0, 0, 1])
    assert cam.distance() == pytest.approx(6.0)


def test_basis_is_orthonormal():
    cam = Camera(position=vec3(3, 2, -4))
    f, r, u = cam.forward(), cam.right(), cam.up()
    for v in (f, r, u):
        assert np.linalg.norm(v) == pytest.approx(1.0)
    assert abs(np.dot(f, r)) < 1e-10
    assert abs(np.dot(f, u)) < 1e-10
    assert abs(np.dot(r, u)) < 1e-10


def test_view_matrix_puts_target_ahead():
    cam = Camera()
    p = transform_point(cam.get_view_matrix(), cam.target)
    np.testing.assert_array_almost_equal(p, [0, 0, -6])


def test_set_aspect():
    cam = Camera()
    cam.set_aspect(1600, 800)
    assert cam.aspect == 2.0
    proj = cam.get_projection_matrix()
    assert proj[1, 1] / proj[0, 0] == pytest.approx(2.0)


def test_set_aspect_ignores_zero_height():
    cam = Camera()
    cam.set_aspect(100, 0)
    assert cam.aspect == 1.0


def test_view_projection_order():
    cam = Camera()
    np.testing.assert_array_almost_equal(
        cam.get_view_projection(), cam.get_projection_matrix() @ cam.get_view_matrix(),
    )


def test_orbit_keeps_distance_to_target():
    cam = Camera()
    cam.orbit_target(vec3(0, 1, 0), math.pi / 2)
    assert cam.distance() == pytest.approx(6.0)
    np.testing.assert_array_almost_equal(cam.position, [-6, 0, 0])


def test_rotate_keeps_eye():
    cam = Camera()
    cam.rotate(vec3(0, 1, 0), math.pi / 2)
    np.testing.assert_array_almost_equal(cam.position, [0, 0, -6])
    np.testing.assert_array_almost_equal(cam.forward(), [1, 0, 0])


def test_offset_moves_eye_and_target():
    cam = Camera()
    cam.offset(vec3(0, 2, 0), 1.0)
    np.testing.assert_array_almost_equal(cam.position, [0, 1, -6])
    np.testing.assert_array_almost_equal(cam.target, [0, 1, 0])


def test_offset_eye_only():
    cam = Camera()
    cam.offset(vec3(0, 0, 1), 2.0, move_target=False)
    np.testing.assert_array_almost_equal(cam.target, [0, 0, 0])
    assert cam.distance() == pytest.approx(4.0)


def test_offset_dist_is_clamped():
    cam = Camera()
    cam.offset_dist(-100.0)
    assert cam.distance() == pytest.approx(MIN_CAMERA_DISTANCE)
    cam.offset_dist(1e6)
    assert cam.distance() == pytest.approx(MAX_CAMERA_DISTANCE)


def test_roll_spins_up_about_forward():
    cam = Camera()
    cam.roll(math.pi / 2, clockwise=False)
    assert abs(np.dot(cam.world_up, cam.forward())) < 1e-10
    assert not np.allclose(cam.world_up, [0, 1, 0])
    cam.roll(math.pi / 2, clockwise=True)
    np.testing.assert_array_almost_equal(cam.world_up, [0, 1, 0])


def test_view_matrix_cache_refreshes():
    cam = Camera()
    before = cam.get_view_matrix().copy()
    cam.offset(vec3(1, 0, 0), 1.0)
    assert not np.allclose(cam.get_view_matrix(), before)


def test_reset_restores_home():
    cam = Camera()
    cam.orbit_target(vec3(1, 0, 0), 0.4)
    cam.roll(0.3, clockwise=True)
    cam.reset()
    np.testing.assert_array_almost_equal(cam.position, [0, 0, -6])
    np.testing.assert_array_almost_equal(cam.world_up, [0, 1, 0])
