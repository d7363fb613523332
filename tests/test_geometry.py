import math

import numpy as np
import pytest

from orbfeatures.geometry import (
    check_dist_epipolar_line,
    decompose_sim3,
    project_point,
    radius_by_viewing_cos,
)
from orbfeatures.keypoint import KeyPoint

# Pure translation along x: epipolar lines are the rows y = const.
F_HORIZONTAL = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, -1.0], [0.0, 1.0, 0.0]])


def _rot_z(theta):
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def test_radius_frontal_view():
    assert radius_by_viewing_cos(0.999) == 2.5


def test_radius_oblique_view():
    assert radius_by_viewing_cos(0.5) == 4.0
    assert radius_by_viewing_cos(0.998) == 4.0


def test_epipolar_point_on_line_passes():
    kp1 = KeyPoint(x=10.0, y=20.0)
    kp2 = KeyPoint(x=70.0, y=20.0, octave=0)
    assert check_dist_epipolar_line(kp1, kp2, F_HORIZONTAL, [1.0]) is True


def test_epipolar_point_far_from_line_fails():
    kp1 = KeyPoint(x=10.0, y=20.0)
    kp2 = KeyPoint(x=70.0, y=23.0, octave=0)
    assert check_dist_epipolar_line(kp1, kp2, F_HORIZONTAL, [1.0]) is False


def test_epipolar_tolerance_grows_with_level():
    kp1 = KeyPoint(x=10.0, y=20.0)
    kp2 = KeyPoint(x=70.0, y=23.0, octave=1)
    assert check_dist_epipolar_line(kp1, kp2, F_HORIZONTAL, [1.0, 4.0]) is True


def test_epipolar_degenerate_line_fails():
    kp1 = KeyPoint(x=10.0, y=20.0)
    kp2 = KeyPoint(x=10.0, y=20.0)
    assert check_dist_epipolar_line(kp1, kp2, np.zeros((3, 3)), [1.0]) is False


def test_epipolar_bad_octave_raises():
    kp1 = KeyPoint(x=1.0, y=1.0)
    kp2 = KeyPoint(x=1.0, y=1.0, octave=3)
    with pytest.raises(ValueError):
        check_dist_epipolar_line(kp1, kp2, F_HORIZONTAL, [1.0])


def test_decompose_sim3_round_trip():
    rotation = _rot_z(0.3)
    t = np.array([1.0, -2.0, 0.5])
    s = 2.0
    scw = np.eye(4)
    scw[:3, :3] = s * rotation
    scw[:3, 3] = s * t
    result = decompose_sim3(scw)
    assert result.scale == pytest.approx(s)
    np.testing.assert_allclose(result.rotation, rotation, atol=1e-12)
    np.testing.assert_allclose(result.translation, t, atol=1e-12)
    np.testing.assert_allclose(result.camera_center, -rotation.T @ t, atol=1e-12)
    # The camera centre maps to the origin of the camera frame.
    np.testing.assert_allclose(result.rotation @ result.camera_center + result.translation, 0.0, atol=1e-12)


def test_decompose_sim3_accepts_3x4():
    scw = np.hstack([_rot_z(1.0), np.array([[1.0], [2.0], [3.0]])])
    result = decompose_sim3(scw)
    assert result.scale == pytest.approx(1.0)
    np.testing.assert_allclose(result.translation, [1.0, 2.0, 3.0])


def test_decompose_sim3_bad_shape_raises():
    with pytest.raises(ValueError):
        decompose_sim3(np.eye(3))


def test_decompose_sim3_zero_scale_raises():
    with pytest.raises(ValueError):
        decompose_sim3(np.zeros((4, 4)))


def test_project_point_back_projects():
    fx, fy, cx, cy = 500.0, 480.0, 320.0, 240.0
    point = np.array([0.4, -0.3, 2.5])
    rotation = _rot_z(0.2)
    translation = np.array([0.1, 0.2, 0.3])
    proj = project_point(point, rotation, translation, fx, fy, cx, cy)
    pc = rotation @ point + translation
    assert proj.inv_depth == pytest.approx(1.0 / pc[2])
    np.testing.assert_allclose(proj.camera_point, pc)
    z = 1.0 / proj.inv_depth
    assert (proj.u - cx) / fx * z == pytest.approx(pc[0])
    assert (proj.v - cy) / fy * z == pytest.approx(pc[1])


def test_project_point_on_axis_hits_principal_point():
    proj = project_point([0.0, 0.0, 5.0], np.eye(3), np.zeros(3), 400.0, 400.0, 320.0, 240.0)
    assert proj.u == pytest.approx(320.0)
    assert proj.v == pytest.approx(240.0)


def test_project_point_behind_camera_is_none():
    assert project_point([0.0, 0.0, -1.0], np.eye(3), np.zeros(3), 1.0, 1.0, 0.0, 0.0) is None


def test_project_point_bad_rotation_raises():
    with pytest.raises(ValueError):
        project_point([0.0, 0.0, 1.0], np.eye(2), np.zeros(3), 1.0, 1.0, 0.0, 0.0)