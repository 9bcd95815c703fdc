import numpy as np
import pytest

from isoeditor.app import CAMERA_SPEED, apply_keyboard, apply_mouse_motion
from isoeditor.camera import FPSCamera


@pytest.fixture
def camera():
    return FPSCamera((0.0, 0.0, 5.0))


def test_forward_moves_along_direction(camera):
    start = camera.position.copy()
    direction = camera.direction()
    apply_keyboard(camera, {"w"}, 0.5)
    moved = camera.position - start
    assert np.linalg.norm(moved) == pytest.approx(0.5 * CAMERA_SPEED)
    np.testing.assert_allclose(moved / np.linalg.norm(moved), direction, atol=1e-9)


def test_backward_is_opposite_of_forward():
    forward_cam = FPSCamera((1.0, 2.0, 3.0), 10.0, 30.0)
    backward_cam = FPSCamera((1.0, 2.0, 3.0), 10.0, 30.0)
    apply_keyboard(forward_cam, ["w"], 0.2)
    apply_keyboard(backward_cam, ["s"], 0.2)
    np.testing.assert_allclose(
        forward_cam.position - [1.0, 2.0, 3.0],
        -(backward_cam.position - [1.0, 2.0, 3.0]),
        atol=1e-9,
    )


def test_opposite_keys_cancel(camera):
    start = camera.position.copy()
    apply_keyboard(camera, {"w", "s", "a", "d"}, 0.3)
    np.testing.assert_allclose(camera.position, start, atol=1e-9)


def test_strafe_is_horizontal_and_perpendicular(camera):
    start = camera.position.copy()
    apply_keyboard(camera, {"d"}, 0.25)
    moved = camera.position - start
    assert moved[1] == pytest.approx(0.0)
    assert np.dot(moved, camera.direction()) == pytest.approx(0.0, abs=1e-9)
    assert np.linalg.norm(moved) == pytest.approx(0.25 * CAMERA_SPEED)


def test_keys_are_case_insensitive():
    lower = FPSCamera()
    upper = FPSCamera()
    apply_keyboard(lower, {"a"}, 0.1)
    apply_keyboard(upper, {"A"}, 0.1)
    np.testing.assert_allclose(lower.position, upper.position)


def test_other_keys_do_nothing(camera):
    start = camera.position.copy()
    apply_keyboard(camera, {"q", "e", "space"}, 1.0)
    np.testing.assert_allclose(camera.position, start)


def test_horizontal_mouse_turns_yaw_only(camera):
    pitch, yaw = camera.pitch, camera.yaw
    apply_mouse_motion(camera, 10.0, 0.0)
    assert camera.pitch == pitch
    assert camera.yaw == pytest.approx(-89.0)
    assert camera.yaw > yaw


def test_downward_mouse_lowers_pitch(camera):
    apply_mouse_motion(camera, 0.0, 20.0)
    assert camera.pitch < 0.0
    apply_mouse_motion(camera, 0.0, -20.0)
    assert camera.pitch == pytest.approx(0.0)


def test_mouse_pitch_is_clamped(camera):
    apply_mouse_motion(camera, 0.0, 10_000.0)
    assert camera.pitch == -89.0
    apply_mouse_motion(camera, 0.0, -100_000.0)
    assert camera.pitch == 89.0


def test_no_motion_keeps_orientation(camera):
    apply_mouse_motion(camera, 0.0, 0.0)
    assert (camera.pitch, camera.yaw) == (0.0, -90.0)