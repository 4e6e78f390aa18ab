"""Unit tests for planar transforms."""

import numpy as np
import pytest

from L4_localization import (
    Pose,
    normalize_angle,
    planar_distance,
    relative_angle,
    rotation_matrix_2d,
    transform_to_map_frame,
    transform_to_pose_frame
)


class TestTransforms:
    """Test suite for map / pose frame transforms."""

    def test_rotation_quarter_turn(self):
        """Test that a quarter turn maps x onto y."""
        rotated = rotation_matrix_2d(np.pi / 2) @ np.array([1.0, 0.0])
        np.testing.assert_allclose(rotated, [0.0, 1.0], atol=1e-12)

    def test_normalize_angle(self):
        """Test wrapping into [-pi, pi]."""
        assert normalize_angle(2.5 * np.pi) == pytest.approx(0.5 * np.pi)
        assert normalize_angle(-2.5 * np.pi) == pytest.approx(-0.5 * np.pi)
        assert abs(normalize_angle(3 * np.pi)) == pytest.approx(np.pi)

    def test_planar_distance_ignores_extra_coordinates(self):
        assert planar_distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)
        assert planar_distance([0.0, 0.0, 10.0], [3.0, 4.0, -2.0]) == pytest.approx(5.0)

    def test_point_in_pose_frame(self):
        """Test that x is forward and y is to the left of the pose."""
        pose = Pose.from_xy(1.0, 0.0, np.pi / 2)

        ahead = transform_to_pose_frame([1.0, 1.0], pose)
        left = transform_to_pose_frame([0.0, 0.0], pose)

        np.testing.assert_allclose(ahead, [1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(left, [0.0, 1.0], atol=1e-12)

    def test_map_and_pose_frames_are_inverse(self):
        pose = Pose.from_xy(-2.0, 5.0, 0.7)
        point = np.array([3.5, -1.25])

        back = transform_to_map_frame(transform_to_pose_frame(point, pose), pose)

        np.testing.assert_allclose(back, point, atol=1e-12)

    def test_relative_angle_is_unsigned_and_wrapped(self):
        """Test heading difference in degrees."""
        a = Pose.from_xy(0.0, 0.0, 0.0)
        b = Pose.from_xy(0.0, 0.0, 1.5 * np.pi)

        assert relative_angle(a, b) == pytest.approx(90.0)
        assert relative_angle(b, a) == pytest.approx(90.0)
        assert relative_angle(a, Pose.from_xy(0.0, 0.0, np.pi)) == pytest.approx(180.0)
