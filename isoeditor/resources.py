"""GPU resource records and a keyed cache that owns them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np


@dataclass
class MeshPrimitive:
    """Handles of one uploaded mesh primitive."""

    vao: int = 0
    vbo: int = 0
    ebo: int = 0
    index_count: int = 0
    texture: int = 0
    name: str = ""


@dataclass
class ModelInstance:
    """A mesh placed in model space by a transform."""

    transform: np.ndarray = field(default_factory=lambda: np.identity(4))
    mesh: Optional[MeshPrimitive] = None


class ResourceManager:
    """Caches meshes and textures by key and releases them on ``clear``."""

    def __init__(
        self,
        release_mesh: Callable[[MeshPrimitive], None] | None = None,
        release_texture: Callable[[int], None] | None = None,
    ) -> None:
        self._release_mesh = release_mesh
        self._release_texture = release_texture
        self._meshes: dict[str, MeshPrimitive] = {}
        self._textures: dict[str, int] = {}

    def get_or_create_mesh(
        self, key: str, mesh: MeshPrimitive | None = None
    ) -> MeshPrimitive:
        """Return the cached mesh for ``key``, storing a copy of ``mesh`` if absent."""
        cached = self._meshes.get(key)
        if cached is None:
            cached = dataclasses.replace(mesh) if mesh is not None else MeshPrimitive()
            self._meshes[key] = cached
        return cached

    def get_or_create_texture(self, key: str, texture: int) -> int:
        """Return the cached texture for ``key``; a redundant ``texture`` is released."""
        cached = self._textures.get(key)
        if cached is not None:
            if self._release_texture is not None:
                self._release_texture(texture)
            return cached
        self._textures[key] = texture
        return texture

    def clear(self) -> None:
        """Release every cached mesh and texture and empty the cache."""
        if self._release_mesh is not None:
            for mesh in self._meshes.values():
                self._release_mesh(mesh)
        self._meshes.clear()
        if self._release_texture is not None:
            for texture in self._textures.values():
                self._release_texture(texture)
        self._textures.clear()