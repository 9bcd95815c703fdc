"""Drawing of mesh instances with a single lit, textured shader."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from .camera import Camera
from .gltf import VERTEX_STRIDE, PrimitiveData, TextureImage
from .resources import MeshPrimitive, ModelInstance
from .shader import Shader

VERTEX_SHADER_SOURCE = """
#version 330 core
layout (location = 0) in vec3 aPos;
layout (location = 1) in vec3 aNormal;
layout (location = 2) in vec2 aUV;

out vec3 FragPos;
out vec3 Normal;
out vec2 TexCoord;

uniform mat4 model;
uniform mat4 view;
uniform mat4 projection;

void main() {
    FragPos = vec3(model * vec4(aPos, 1.0));
    Normal = mat3(transpose(inverse(model))) * aNormal;
    TexCoord = aUV;
    gl_Position = projection * view * vec4(FragPos, 1.0);
}
"""

FRAGMENT_SHADER_SOURCE = """
#version 330 core
in vec3 FragPos;
in vec3 Normal;
in vec2 TexCoord;

out vec4 FragColor;

uniform sampler2D baseColorTexture;
uniform vec3 lightPos;
uniform vec3 lightColor;

void main() {
    vec3 norm = normalize(Normal);
    vec3 lightDir = normalize(lightPos - FragPos);
    float diff = max(dot(norm, lightDir), 0.0);
    vec3 light = diff * lightColor;

    vec4 texColor = texture(baseColorTexture, TexCoord);
    FragColor = vec4(texColor.rgb * light, texColor.a);
}
"""

DEFAULT_LIGHT_POSITION = (0.0, 2.0, 2.0)
DEFAULT_LIGHT_COLOR = (1.0, 1.0, 1.0)

_FLOAT_SIZE = 4
_UINT_SIZE = 4


def _gen_handle(generate: Callable[..., None]) -> int:
    from pyglet import gl

    handle = (gl.GLuint * 1)()
    generate(1, handle)
    return int(handle[0])


def _delete_handle(delete: Callable[..., None], value: int) -> None:
    from pyglet import gl

    delete(1, (gl.GLuint * 1)(value))


def _upload_texture(image: TextureImage) -> int:
    from pyglet import gl

    texture = _gen_handle(gl.glGenTextures)
    gl.glBindTexture(gl.GL_TEXTURE_2D, texture)

    formats = {4: gl.GL_RGBA, 2: gl.GL_RG, 1: gl.GL_RED}
    pixel_format = formats.get(image.component, gl.GL_RGB)
    pixels = (gl.GLubyte * len(image.pixels)).from_buffer_copy(image.pixels)

    gl.glPixelStorei(gl.GL_UNPACK_ALIGNMENT, 1)
    gl.glTexImage2D(
        gl.GL_TEXTURE_2D,
        0,
        pixel_format,
        image.width,
        image.height,
        0,
        pixel_format,
        gl.GL_UNSIGNED_BYTE,
        pixels,
    )
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_REPEAT)
    gl.glTexParameteri(
        gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR_MIPMAP_LINEAR
    )
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)
    gl.glGenerateMipmap(gl.GL_TEXTURE_2D)
    return texture


def upload_primitive(mesh: MeshPrimitive, data: PrimitiveData) -> int:
    """Put a primitive on the GPU, fill ``mesh``'s handles, return its texture or 0."""
    from pyglet import gl

    vao = _gen_handle(gl.glGenVertexArrays)
    vbo = _gen_handle(gl.glGenBuffers)
    ebo = _gen_handle(gl.glGenBuffers)

    gl.glBindVertexArray(vao)

    vertices = np.ascontiguousarray(data.vertices, dtype=np.float32).ravel()
    vertex_data = (gl.GLfloat * vertices.size).from_buffer_copy(vertices.tobytes())
    gl.glBindBuffer(gl.GL_ARRAY_BUFFER, vbo)
    gl.glBufferData(
        gl.GL_ARRAY_BUFFER,
        vertices.size * _FLOAT_SIZE,
        vertex_data,
        gl.GL_STATIC_DRAW,
    )

    indices = np.ascontiguousarray(data.indices, dtype=np.uint32).ravel()
    if indices.size:
        index_data = (gl.GLuint * indices.size).from_buffer_copy(indices.tobytes())
        gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, ebo)
        gl.glBufferData(
            gl.GL_ELEMENT_ARRAY_BUFFER,
            indices.size * _UINT_SIZE,
            index_data,
            gl.GL_STATIC_DRAW,
        )

    stride = VERTEX_STRIDE * _FLOAT_SIZE
    for location, size, offset in ((0, 3, 0), (1, 3, 3), (2, 2, 6)):
        gl.glVertexAttribPointer(
            location,
            size,
            gl.GL_FLOAT,
            gl.GL_FALSE,
            stride,
            offset * _FLOAT_SIZE,
        )
        gl.glEnableVertexAttribArray(location)

    gl.glBindVertexArray(0)

    mesh.vao = vao
    mesh.vbo = vbo
    mesh.ebo = ebo
    mesh.index_count = int(indices.size)

    if data.texture is None:
        return 0
    return _upload_texture(data.texture)


def release_mesh(mesh: MeshPrimitive) -> None:
    """Delete the vertex array and buffers of ``mesh``."""
    from pyglet import gl

    _delete_handle(gl.glDeleteVertexArrays, mesh.vao)
    _delete_handle(gl.glDeleteBuffers, mesh.vbo)
    _delete_handle(gl.glDeleteBuffers, mesh.ebo)


def release_texture(texture: int) -> None:
    """Delete a texture handle."""
    from pyglet import gl

    _delete_handle(gl.glDeleteTextures, texture)


def _gl_draw_mesh(mesh: MeshPrimitive) -> None:
    from pyglet import gl

    gl.glActiveTexture(gl.GL_TEXTURE0)
    gl.glBindTexture(gl.GL_TEXTURE_2D, mesh.texture)
    gl.glBindVertexArray(mesh.vao)
    if mesh.index_count > 0:
        gl.glDrawElements(gl.GL_TRIANGLES, mesh.index_count, gl.GL_UNSIGNED_INT, None)
    gl.glBindVertexArray(0)


def _gl_clear_frame(color: Sequence[float]) -> None:
    from pyglet import gl

    r, g, b = (float(c) for c in color)
    gl.glClearColor(r, g, b, 1.0)
    gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)


class Renderer:
    """Draws model instances with a diffuse-lit, textured shader.

    ``draw_mesh`` and ``clear_frame`` perform the actual GPU calls and may be
    replaced by other callables, for example when rendering off-screen.
    """

    def __init__(self) -> None:
        self.shader = Shader()
        self.projection = np.identity(4)
        self.light_position = np.array(DEFAULT_LIGHT_POSITION, dtype=float)
        self.light_color = np.array(DEFAULT_LIGHT_COLOR, dtype=float)
        self.draw_mesh: Callable[[MeshPrimitive], None] = _gl_draw_mesh
        self.clear_frame: Callable[[Sequence[float]], None] = _gl_clear_frame

    def initialize(self) -> None:
        """Build the shader program; raises ``ShaderError`` on failure."""
        self.shader.create_from_source(VERTEX_SHADER_SOURCE, FRAGMENT_SHADER_SOURCE)

    def set_projection_matrix(self, projection: Sequence[Sequence[float]] | np.ndarray) -> None:
        matrix = np.array(projection, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {matrix.shape}")
        self.projection = matrix

    def set_light_properties(
        self, position: Sequence[float], color: Sequence[float]
    ) -> None:
        self.light_position = np.array(position, dtype=float)
        self.light_color = np.array(color, dtype=float)

    def render_instances(
        self,
        instances: Iterable[ModelInstance],
        camera: Camera,
        model_transform: Optional[Sequence[Sequence[float]] | np.ndarray] = None,
    ) -> None:
        """Draw every uploaded instance placed by ``model_transform``."""
        base = (
            np.identity(4)
            if model_transform is None
            else np.asarray(model_transform, dtype=float)
        )
        shader = self.shader
        shader.use()
        shader.set_mat4("view", camera.view_matrix())
        shader.set_mat4("projection", self.projection)
        shader.set_vec3("lightPos", self.light_position)
        shader.set_vec3("lightColor", self.light_color)
        shader.set_int("baseColorTexture", 0)

        for instance in instances:
            mesh = instance.mesh
            if mesh is None or mesh.vao == 0:
                continue
            shader.set_mat4("model", base @ instance.transform)
            self.draw_mesh(mesh)

    def close(self) -> None:
        """Release the shader program."""
        self.shader.delete()

    def __enter__(self) -> "Renderer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()