"""
Tests for quaternion helpers and explicit frames.
"""

import math

import numpy as np
import pytest

from tannen.transforms import (
    IDENTITY,
    Camera,
    Frame,
    blend_factor,
    euler_to_quat,
    quat_conjugate,
    quat_from_axis_angle,
    quat_multiply,
    quat_rotate,
    slerp,
)


def same_rotation(a, b, tol=1e-9):
    return abs(abs(float(np.dot(a, b))) - 1.0) < tol


class TestQuaternions:
    def test_euler_single_axis_matches_axis_angle(self):
        for axis, euler in (((1, 0, 0), (0.7, 0, 0)), ((0, 1, 0), (0, 0.7, 0)), ((0, 0, 1), (0, 0, 0.7))):
            assert same_rotation(euler_to_quat(euler), quat_from_axis_angle(axis, 0.7))

    def test_euler_batch_shape(self):
        q = euler_to_quat(np.zeros((5, 3)))
        assert q.shape == (5, 4)
        np.testing.assert_allclose(q, np.tile(IDENTITY, (5, 1)))

    def test_rotate_quarter_turn(self):
        q = quat_from_axis_angle((0, 1, 0), math.pi / 2)
        v = quat_rotate(q, np.array([1.0, 0.0, 0.0]))
        np.testing.assert_allclose(v, [0.0, 0.0, -1.0], atol=1e-12)

    def test_multiply_composes_rotations(self):
        a = quat_from_axis_angle((0, 1, 0), 0.3)
        b = quat_from_axis_angle((1, 0, 0), 0.4)
        v = np.array([0.2, -1.0, 3.0])
        np.testing.assert_allclose(
            quat_rotate(quat_multiply(a, b), v),
            quat_rotate(a, quat_rotate(b, v)),
        )

    def test_conjugate_inverts(self):
        q = euler_to_quat((0.3, -1.2, 2.0))
        assert same_rotation(quat_multiply(q, quat_conjugate(q)), IDENTITY)

    def test_slerp_endpoints_and_midpoint(self):
        a = IDENTITY
        b = quat_from_axis_angle((0, 0, 1), 1.0)
        assert same_rotation(slerp(a, b, 0.0), a)
        assert same_rotation(slerp(a, b, 1.0), b)
        assert same_rotation(slerp(a, b, 0.5), quat_from_axis_angle((0, 0, 1), 0.5))

    def test_slerp_takes_short_path(self):
        a = IDENTITY
        b = -quat_from_axis_angle((0, 1, 0), 0.2)   # same rotation, far hemisphere
        mid = slerp(a, b, 0.5)
        assert same_rotation(mid, quat_from_axis_angle((0, 1, 0), 0.1))

    def test_slerp_batch(self):
        a = np.tile(IDENTITY, (3, 1))
        b = euler_to_quat(np.array([[0.1, 0, 0], [0, 0.2, 0], [0, 0, 0.3]]))
        out = slerp(a, b, 0.5)
        assert out.shape == (3, 4)
        np.testing.assert_allclose(np.linalg.norm(out, axis=1), 1.0)


class TestFrames:
    def test_world_to_local_round_trip(self):
        frame = Frame(position=np.array([0.0, -4.0, 0.0]), quaternion=euler_to_quat((0.2, 1.1, 0.0)))
        p = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(frame.to_world(frame.world_to_local(p)), p)

    def test_rotation_to_local(self):
        parent = Frame(quaternion=euler_to_quat((0.0, 0.8, 0.0)))
        target = euler_to_quat((0.1, 0.2, 0.3))
        local = parent.rotation_to_local(target)
        assert same_rotation(quat_multiply(parent.quaternion, local), target)

    def test_to_world_rotates_then_translates(self):
        parent = Frame(position=np.array([1.0, 0.0, 0.0]), quaternion=quat_from_axis_angle((0, 0, 1), math.pi / 2))
        world = parent.to_world(np.array([1.0, 0.0, 0.0]))
        np.testing.assert_allclose(world, [1.0, 1.0, 0.0], atol=1e-12)


class TestCamera:
    def test_look_at_points_forward_at_target(self):
        cam = Camera(position=np.array([0.0, 2.0, 25.0])).look_at((0.0, 0.0, 0.0))
        expected = -cam.position / np.linalg.norm(cam.position)
        np.testing.assert_allclose(cam.forward(), expected, atol=1e-9)

    def test_default_forward_is_minus_z(self):
        np.testing.assert_allclose(Camera().forward(), [0.0, 0.0, -1.0])


class TestBlendFactor:
    def test_matches_per_frame_value_at_reference_rate(self):
        assert blend_factor(0.1, 1 / 60) == pytest.approx(0.1)

    def test_two_half_steps_equal_one_full_step(self):
        k_full = blend_factor(0.1, 1 / 60)
        k_half = blend_factor(0.1, 1 / 120)
        assert 1 - (1 - k_half) ** 2 == pytest.approx(k_full)

    def test_zero_delta(self):
        assert blend_factor(0.1, 0.0) == 0.0
