"""Matrix and vector helpers for a right-handed, column-vector convention.

All matrices are 4x4 ``numpy`` arrays meant to be applied as ``M @ v``.
Angles are in radians.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

ArrayLike = Sequence[float] | np.ndarray


def _vec3(value: ArrayLike) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {arr.shape}")
    return arr


def normalize(vector: ArrayLike) -> np.ndarray:
    """Return ``vector`` scaled to unit length."""
    arr = np.asarray(vector, dtype=float)
    length = float(np.linalg.norm(arr))
    if length == 0.0 or not math.isfinite(length):
        raise ValueError("cannot normalize a zero-length or non-finite vector")
    return arr / length


def look_at(eye: ArrayLike, center: ArrayLike, up: ArrayLike) -> np.ndarray:
    """View matrix looking from ``eye`` towards ``center``."""
    eye_v = _vec3(eye)
    forward = normalize(_vec3(center) - eye_v)
    side = normalize(np.cross(forward, _vec3(up)))
    true_up = np.cross(side, forward)

    view = np.identity(4)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[0, 3] = -np.dot(side, eye_v)
    view[1, 3] = -np.dot(true_up, eye_v)
    view[2, 3] = np.dot(forward, eye_v)
    return view


def perspective(fovy: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Perspective projection mapping depth into the [-1, 1] clip range."""
    if aspect == 0:
        raise ValueError("aspect ratio must not be zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fovy / 2.0)
    if tan_half == 0:
        raise ValueError("field of view must not be zero")

    proj = np.zeros((4, 4))
    proj[0, 0] = 1.0 / (aspect * tan_half)
    proj[1, 1] = 1.0 / tan_half
    proj[2, 2] = -(far + near) / (far - near)
    proj[2, 3] = -(2.0 * far * near) / (far - near)
    proj[3, 2] = -1.0
    return proj


def translation(offset: ArrayLike) -> np.ndarray:
    """Matrix translating by ``offset``."""
    mat = np.identity(4)
    mat[:3, 3] = _vec3(offset)
    return mat


def rotation(angle: float, axis: ArrayLike) -> np.ndarray:
    """Matrix rotating by ``angle`` around ``axis`` (normalised first)."""
    x, y, z = normalize(_vec3(axis))
    c = math.cos(angle)
    s = math.sin(angle)
    a = np.array([x, y, z])
    cross = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    mat = np.identity(4)
    mat[:3, :3] = c * np.identity(3) + (1.0 - c) * np.outer(a, a) + s * cross
    return mat


def scaling(factors: ArrayLike) -> np.ndarray:
    """Matrix scaling each axis by the matching factor."""
    mat = np.identity(4)
    mat[:3, :3] = np.diag(_vec3(factors))
    return mat


def quaternion_matrix(x: float, y: float, z: float, w: float) -> np.ndarray:
    """Rotation matrix of the quaternion ``(x, y, z, w)``."""
    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z
    mat = np.identity(4)
    mat[:3, :3] = [
        [1.0 - 2.0 * (yy + zz), 2.0 * (xy - wz), 2.0 * (xz + wy)],
        [2.0 * (xy + wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz - wx)],
        [2.0 * (xz - wy), 2.0 * (yz + wx), 1.0 - 2.0 * (xx + yy)],
    ]
    return mat