"""A scene of named objects, each a loaded model with its own placement."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

import numpy as np

from .camera import Camera
from .gltf import GLTFLoader
from .paths import full_path
from .resources import ModelInstance
from .transforms import rotation, scaling, translation

DEFAULT_BG_COLOR = (30, 30, 30)
DEFAULT_ALIASES = (("assets", "../../assets"),)
ALIAS_PREFIX = "@"


class ModelLoader(Protocol):
    def load_model(self, path: str) -> list[ModelInstance]: ...


class SceneRenderer(Protocol):
    def clear_frame(self, color: Sequence[float]) -> None: ...

    def render_instances(
        self, instances: list[ModelInstance], camera: Camera, model_transform: np.ndarray
    ) -> None: ...


@dataclass
class SceneObject:
    """A model placed in the scene; rotation holds Euler angles in radians."""

    id: str
    model_path: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    instances: list[ModelInstance] = field(default_factory=list)

    def transform(self) -> np.ndarray:
        """Translate, then rotate about X, Y and Z, then scale."""
        rx, ry, rz = (float(a) for a in self.rotation)
        return (
            translation(self.position)
            @ rotation(rx, (1.0, 0.0, 0.0))
            @ rotation(ry, (0.0, 1.0, 0.0))
            @ rotation(rz, (0.0, 0.0, 1.0))
            @ scaling(self.scale)
        )


def _vec3(value: Sequence[float]) -> np.ndarray:
    arr = np.array(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {arr.shape}")
    return arr


class Scene:
    """Named objects with their models, path aliases and background colour."""

    def __init__(self, loader: Optional[ModelLoader] = None) -> None:
        self.loader: ModelLoader = loader if loader is not None else GLTFLoader()
        self.objects: dict[str, SceneObject] = {}
        self.path_aliases: list[tuple[str, str]] = list(DEFAULT_ALIASES)
        self.bg_color = np.array(DEFAULT_BG_COLOR, dtype=float) / 255.0

    def resolve_path(self, model_path: str) -> str:
        """Expand a leading ``@alias`` and anchor the path at the program directory."""
        local_path = model_path
        if model_path.startswith(ALIAS_PREFIX):
            separators = [i for i in (model_path.find("/"), model_path.find("\\")) if i >= 0]
            if not separators:
                raise ValueError(f"aliased path {model_path!r} has no separator")
            split = min(separators)
            target = model_path[1:split]
            value = next((v for k, v in self.path_aliases if k == target), None)
            if value is None:
                raise ValueError(f"unknown path alias {target!r}")
            local_path = value + model_path[split:]
        return full_path(local_path)

    def add_object(self, object_id: str, model_path: str) -> SceneObject:
        """Load ``model_path`` as a new object; raises if the id is taken or loading fails."""
        if object_id in self.objects:
            raise ValueError(f"object {object_id!r} already exists")
        path = self.resolve_path(model_path)
        instances = list(self.loader.load_model(path))
        obj = SceneObject(id=object_id, model_path=model_path, instances=instances)
        self.objects[object_id] = obj
        return obj

    def remove_object(self, object_id: str) -> None:
        """Remove an object; raises ``KeyError`` if there is none with that id."""
        try:
            del self.objects[object_id]
        except KeyError:
            raise KeyError(f"no object {object_id!r}") from None

    def get_object(self, object_id: str) -> Optional[SceneObject]:
        return self.objects.get(object_id)

    def set_object_position(self, object_id: str, position: Sequence[float]) -> None:
        obj = self.objects.get(object_id)
        if obj is not None:
            obj.position = _vec3(position)

    def set_object_rotation(self, object_id: str, rotation: Sequence[float]) -> None:
        obj = self.objects.get(object_id)
        if obj is not None:
            obj.rotation = _vec3(rotation)

    def set_object_scale(self, object_id: str, scale: Sequence[float]) -> None:
        obj = self.objects.get(object_id)
        if obj is not None:
            obj.scale = _vec3(scale)

    def set_bg_color(self, r: float, g: float, b: float) -> None:
        """Set the background from 0-255 channel values."""
        self.bg_color = np.array([r, g, b], dtype=float) / 255.0

    def add_path_alias(self, key: str, value: str) -> None:
        """Register an alias; earlier aliases with the same key take precedence."""
        self.path_aliases.append((key, value))

    def move_object(self, object_id: str, offset: Sequence[float]) -> None:
        obj = self.objects.get(object_id)
        if obj is not None:
            obj.position = obj.position + _vec3(offset)

    def rotate_object(self, object_id: str, rotation: Sequence[float]) -> None:
        obj = self.objects.get(object_id)
        if obj is not None:
            obj.rotation = obj.rotation + _vec3(rotation)

    def scale_object(self, object_id: str, scale: Sequence[float]) -> None:
        obj = self.objects.get(object_id)
        if obj is not None:
            obj.scale = obj.scale * _vec3(scale)

    def render_scene(self, renderer: SceneRenderer, camera: Camera) -> None:
        """Clear to the background colour and draw every object."""
        renderer.clear_frame(tuple(float(c) for c in self.bg_color))
        for obj in self.objects.values():
            renderer.render_instances(obj.instances, camera, obj.transform())