"""GLSL shader programs with typed uniform setters."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

import numpy as np


class ShaderError(Exception):
    """Raised when a shader cannot be read, compiled, linked or used."""


class ProgramHandle(Protocol):
    """A linked program as provided by a shader backend."""

    def use(self) -> None: ...

    def delete(self) -> None: ...

    def set_uniform(self, name: str, value: Any) -> None: ...


class ShaderBackend(Protocol):
    """Compiles and links vertex and fragment sources into a program."""

    def link(self, vertex_source: str, fragment_source: str) -> ProgramHandle: ...


class _PygletProgram:
    def __init__(self, program: Any) -> None:
        self._program = program

    def use(self) -> None:
        self._program.use()

    def delete(self) -> None:
        self._program.delete()

    def set_uniform(self, name: str, value: Any) -> None:
        from pyglet.graphics.shader import ShaderException

        try:
            self._program[name] = value
        except (KeyError, ShaderException):
            # Unknown or optimised-out uniforms are silently ignored.
            pass


class _PygletBackend:
    def link(self, vertex_source: str, fragment_source: str) -> ProgramHandle:
        from pyglet.graphics import shader as gl_shader

        stages = []
        for source, kind, label in (
            (vertex_source, "vertex", "VERTEX"),
            (fragment_source, "fragment", "FRAGMENT"),
        ):
            try:
                stages.append(gl_shader.Shader(source, kind))
            except gl_shader.ShaderException as exc:
                for stage in stages:
                    stage.delete()
                raise ShaderError(f"{label} shader compilation failed:\n{exc}") from exc
        try:
            program = gl_shader.ShaderProgram(*stages)
        except gl_shader.ShaderException as exc:
            raise ShaderError(f"Shader program linking failed:\n{exc}") from exc
        return _PygletProgram(program)


def _vector(value: Sequence[float] | np.ndarray, size: int) -> tuple[float, ...]:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (size,):
        raise ValueError(f"expected a {size}-component vector, got shape {arr.shape}")
    return tuple(float(v) for v in arr)


class Shader:
    """A vertex and fragment shader pair linked into one program."""

    def __init__(self, backend: ShaderBackend | None = None) -> None:
        self._backend: ShaderBackend = backend if backend is not None else _PygletBackend()
        self._program: Optional[ProgramHandle] = None

    @property
    def program(self) -> Optional[ProgramHandle]:
        """The linked program, or ``None`` before creation or after deletion."""
        return self._program

    def create_from_source(self, vertex_source: str, fragment_source: str) -> None:
        """Compile and link the sources, replacing any previous program."""
        program = self._backend.link(vertex_source, fragment_source)
        self.delete()
        self._program = program

    def create_from_files(
        self,
        vertex_path: str | os.PathLike[str],
        fragment_path: str | os.PathLike[str],
    ) -> None:
        """Read both shader files and build the program from them."""
        try:
            vertex_source = Path(vertex_path).read_text()
            fragment_source = Path(fragment_path).read_text()
        except OSError as exc:
            raise ShaderError(f"Failed to read shader files: {exc}") from exc
        self.create_from_source(vertex_source, fragment_source)

    def _require(self) -> ProgramHandle:
        if self._program is None:
            raise ShaderError("shader program has not been created")
        return self._program

    def use(self) -> None:
        self._require().use()

    def delete(self) -> None:
        """Release the program; does nothing if there is none."""
        program, self._program = self._program, None
        if program is not None:
            program.delete()

    def set_bool(self, name: str, value: bool) -> None:
        self._require().set_uniform(name, int(bool(value)))

    def set_int(self, name: str, value: int) -> None:
        self._require().set_uniform(name, int(value))

    def set_float(self, name: str, value: float) -> None:
        self._require().set_uniform(name, float(value))

    def set_vec2(self, name: str, value: Sequence[float] | np.ndarray) -> None:
        self._require().set_uniform(name, _vector(value, 2))

    def set_vec3(self, name: str, value: Sequence[float] | np.ndarray) -> None:
        self._require().set_uniform(name, _vector(value, 3))

    def set_vec4(self, name: str, value: Sequence[float] | np.ndarray) -> None:
        self._require().set_uniform(name, _vector(value, 4))

    def set_mat4(self, name: str, value: Sequence[Sequence[float]] | np.ndarray) -> None:
        """Set a 4x4 matrix uniform; values are passed in column-major order."""
        matrix = np.asarray(value, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {matrix.shape}")
        program = self._require()
        program.set_uniform(name, tuple(float(v) for v in matrix.flatten(order="F")))

    def __enter__(self) -> "Shader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()