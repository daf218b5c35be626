"""Tests for math_utils module."""

import numpy as np
import pytest

from poseforge.core.math_utils import (
    vec3, as_vec3, mat4_identity, mat4_translation, mat4_from_quaternion,
    mat4_perspective, mat4_look_at, mat4_inverse,
    quat_identity, quat_from_axis_angle, quat_multiply, quat_normalize,
    quat_rotate_vec3,
    normalize, clamp, rotate_about_axis,
    transform_point, transform_direction, unproject_ndc,
)


def test_vec3():
    v = vec3(1, 2, 3)
    assert v.shape == (3,)
    np.testing.assert_array_equal(v, [1, 2, 3])


def test_as_vec3_copies():
    src = [1.0, 2.0, 3.0]
    v = as_vec3(src)
    v[0] = 9.0
    assert src[0] == 1.0
    assert v.dtype == np.float64


def test_as_vec3_wrong_length():
    with pytest.raises(ValueError):
        as_vec3([1.0, 2.0])


def test_mat4_identity():
    m = mat4_identity()
    np.testing.assert_array_equal(m, np.eye(4))


def test_mat4_translation():
    m = mat4_translation(1, 2, 3)
    p = transform_point(m, vec3(0, 0, 0))
    np.testing.assert_array_almost_equal(p, [1, 2, 3])


def test_transform_direction_ignores_translation():
    m = mat4_translation(5, 5, 5)
    d = transform_direction(m, vec3(0, 1, 0))
    np.testing.assert_array_almost_equal(d, [0, 1, 0])


def test_quat_identity():
    q = quat_identity()
    np.testing.assert_array_equal(q, [0, 0, 0, 1])


def test_quat_from_axis_angle():
    q = quat_from_axis_angle(vec3(0, 1, 0), np.pi / 2)
    v = quat_rotate_vec3(q, vec3(0, 0, 1))
    np.testing.assert_array_almost_equal(v, [1, 0, 0], decimal=10)


def test_quat_from_axis_angle_unnormalised_axis():
    q = quat_from_axis_angle(vec3(0, 0, 5), np.pi / 2)
    assert abs(np.linalg.norm(q) - 1.0) < 1e-12
    v = quat_rotate_vec3(q, vec3(1, 0, 0))
    np.testing.assert_array_almost_equal(v, [0, 1, 0], decimal=10)


def test_quat_multiply_identity():
    q = quat_from_axis_angle(vec3(1, 0, 0), 0.5)
    result = quat_multiply(q, quat_identity())
    np.testing.assert_array_almost_equal(result, q)


def test_quat_multiply_order():
    # a * b applies b first
    a = quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2)
    b = quat_from_axis_angle(vec3(1, 0, 0), np.pi / 2)
    v = quat_rotate_vec3(quat_multiply(a, b), vec3(0, 1, 0))
    expected = quat_rotate_vec3(a, quat_rotate_vec3(b, vec3(0, 1, 0)))
    np.testing.assert_array_almost_equal(v, expected, decimal=10)


def test_quat_normalize():
    q = quat_normalize(np.array([0.0, 0.0, 2.0, 2.0]))
    assert abs(np.linalg.norm(q) - 1.0) < 1e-12


def test_quat_normalize_zero_gives_identity():
    np.testing.assert_array_equal(quat_normalize(np.zeros(4)), quat_identity())


def test_mat4_from_quaternion_matches_rotation():
    q = quat_normalize(np.array([0.3, -0.5, 0.7, 0.4]))
    m = mat4_from_quaternion(q)
    v = vec3(1, 2, 3)
    np.testing.assert_array_almost_equal(quat_rotate_vec3(q, v), transform_point(m, v), decimal=10)


def test_mat4_inverse():
    m = mat4_translation(5, 10, 15)
    mi = mat4_inverse(m)
    result = m @ mi
    np.testing.assert_array_almost_equal(result, np.eye(4), decimal=10)


def test_normalize():
    v = normalize(vec3(3, 0, 0))
    np.testing.assert_array_almost_equal(v, [1, 0, 0])


def test_normalize_zero():
    v = normalize(vec3(0, 0, 0))
    np.testing.assert_array_equal(v, [0, 0, 0])


def test_clamp():
    assert clamp(5, 0, 10) == 5
    assert clamp(-1, 0, 10) == 0
    assert clamp(15, 0, 10) == 10


def test_rotate_about_axis():
    v = rotate_about_axis(vec3(1, 0, 0), vec3(0, 0, 1), np.pi / 2)
    np.testing.assert_array_almost_equal(v, [0, 1, 0], decimal=10)


def test_mat4_look_at():
    eye = vec3(0, 0, 5)
    target = vec3(0, 0, 0)
    up = vec3(0, 1, 0)
    m = mat4_look_at(eye, target, up)
    # Eye should transform to origin in view space
    p = transform_point(m, eye)
    np.testing.assert_array_almost_equal(p, [0, 0, 0], decimal=10)
    # Target lies down the -Z axis
    t = transform_point(m, target)
    np.testing.assert_array_almost_equal(t, [0, 0, -5], decimal=10)


def test_mat4_look_at_straight_down():
    m = mat4_look_at(vec3(0, 5, 0), vec3(0, 0, 0), vec3(0, 1, 0))
    assert np.all(np.isfinite(m))
    np.testing.assert_array_almost_equal(m[:3, :3] @ m[:3, :3].T, np.eye(3), decimal=10)


def test_mat4_perspective():
    m = mat4_perspective(np.radians(60), 1.0, 0.1, 100.0)
    assert m[0, 0] != 0
    assert m[1, 1] != 0
    assert m[3, 2] == -1.0


def test_unproject_ndc_centre_lies_on_view_axis():
    view = mat4_look_at(vec3(0, 0, 5), vec3(0, 0, 0), vec3(0, 1, 0))
    proj = mat4_perspective(np.radians(45), 1.0, 0.1, 100.0)
    near = unproject_ndc(0.0, 0.0, -1.0, view, proj)
    far = unproject_ndc(0.0, 0.0, 1.0, view, proj)
    np.testing.assert_array_almost_equal(near, [0, 0, 4.9], decimal=6)
    np.testing.assert_array_almost_equal(far, [0, 0, -95], decimal=3)
