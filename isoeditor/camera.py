"""Cameras that provide a view matrix, position and viewing direction."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from .transforms import look_at, normalize

WORLD_UP = np.array([0.0, 1.0, 0.0])
PITCH_LIMIT = 89.0


def _clamp_pitch(pitch: float) -> float:
    return max(-PITCH_LIMIT, min(PITCH_LIMIT, float(pitch)))


class Camera(ABC):
    """A viewpoint in the scene; ``position`` is a 3-component array."""

    position: np.ndarray

    @abstractmethod
    def view_matrix(self) -> np.ndarray:
        """World-to-view matrix."""

    @abstractmethod
    def direction(self) -> np.ndarray:
        """Unit vector the camera looks along."""


class FPSCamera(Camera):
    """Free-flying camera steered by pitch and yaw in degrees."""

    def __init__(
        self,
        position: Sequence[float] = (0.0, 0.0, 3.0),
        pitch: float = 0.0,
        yaw: float = -90.0,
    ) -> None:
        self.position = np.array(position, dtype=float)
        self.pitch = float(pitch)
        self.yaw = float(yaw)

    def view_matrix(self) -> np.ndarray:
        return look_at(self.position, self.position + self.direction(), WORLD_UP)

    def direction(self) -> np.ndarray:
        pitch = math.radians(self.pitch)
        yaw = math.radians(self.yaw)
        return normalize(
            [
                math.cos(pitch) * math.cos(yaw),
                math.sin(pitch),
                math.cos(pitch) * math.sin(yaw),
            ]
        )

    def _right(self) -> np.ndarray:
        return normalize(np.cross(self.direction(), WORLD_UP))

    def move(self, delta: Sequence[float], speed: float) -> None:
        """Move by ``delta`` given as (right, up, forward) amounts."""
        dx, dy, dz = (float(c) for c in delta)
        self.position = (
            self.position
            + self._right() * dx * speed
            + WORLD_UP * dy * speed
            + self.direction() * dz * speed
        )

    def move_forward(self, delta: float, speed: float) -> None:
        self.position = self.position + self.direction() * delta * speed

    def move_right(self, delta: float, speed: float) -> None:
        self.position = self.position + self._right() * delta * speed

    def move_up(self, delta: float, speed: float) -> None:
        self.position = self.position + WORLD_UP * delta * speed

    def rotate(self, delta_pitch: float, delta_yaw: float) -> None:
        self.pitch = _clamp_pitch(self.pitch + delta_pitch)
        self.yaw += delta_yaw

    def set_orientation(self, pitch: float, yaw: float) -> None:
        self.pitch = _clamp_pitch(pitch)
        self.yaw = float(yaw)

    def set_pose(self, position: Sequence[float], pitch: float, yaw: float) -> None:
        self.position = np.array(position, dtype=float)
        self.set_orientation(pitch, yaw)


class TargetCamera(Camera):
    """Camera that always looks at a fixed target point."""

    def __init__(
        self,
        position: Sequence[float],
        target: Sequence[float],
        up: Sequence[float] = (0.0, 1.0, 0.0),
    ) -> None:
        self.position = np.array(position, dtype=float)
        self.target = np.array(target, dtype=float)
        self.up = np.array(up, dtype=float)

    def view_matrix(self) -> np.ndarray:
        return look_at(self.position, self.target, self.up)

    def direction(self) -> np.ndarray:
        return normalize(self.target - self.position)