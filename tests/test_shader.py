import numpy as np
import pytest

from isoeditor.shader import Shader, ShaderError
from isoeditor.transforms import translation

VERTEX = "void main() { gl_Position = vec4(0.0); }"
FRAGMENT = "out vec4 color; void main() { color = vec4(1.0); }"


class FakeProgram:
    def __init__(self, vertex_source, fragment_source):
        self.sources = (vertex_source, fragment_source)
        self.uniforms = {}
        self.used = 0
        self.deleted = 0

    def use(self):
        self.used += 1

    def delete(self):
        self.deleted += 1

    def set_uniform(self, name, value):
        self.uniforms[name] = value


class FakeBackend:
    def __init__(self):
        self.programs = []

    def link(self, vertex_source, fragment_source):
        if "syntax error" in vertex_source:
            raise ShaderError("VERTEX shader compilation failed")
        program = FakeProgram(vertex_source, fragment_source)
        self.programs.append(program)
        return program


@pytest.fixture
def shader():
    built = Shader(FakeBackend())
    built.create_from_source(VERTEX, FRAGMENT)
    return built


def test_create_and_use(shader):
    shader.use()
    assert shader.program.sources == (VERTEX, FRAGMENT)
    assert shader.program.used == 1


def test_compile_failure_raises_and_leaves_no_program():
    built = Shader(FakeBackend())
    with pytest.raises(ShaderError):
        built.create_from_source("syntax error", FRAGMENT)
    assert built.program is None


def test_recreating_deletes_previous_program(shader):
    old = shader.program
    shader.create_from_source(VERTEX, FRAGMENT)
    assert old.deleted == 1
    assert shader.program is not old
    assert shader.program.deleted == 0


def test_delete_is_idempotent(shader):
    program = shader.program
    shader.delete()
    shader.delete()
    assert program.deleted == 1
    assert shader.program is None


def test_context_manager_deletes_program():
    backend = FakeBackend()
    with Shader(backend) as built:
        built.create_from_source(VERTEX, FRAGMENT)
    assert backend.programs[0].deleted == 1


def test_use_without_program_raises():
    with pytest.raises(ShaderError):
        Shader(FakeBackend()).use()


def test_setter_without_program_raises():
    with pytest.raises(ShaderError):
        Shader(FakeBackend()).set_int("baseColorTexture", 0)


def test_scalar_setters(shader):
    shader.set_bool("flag", True)
    shader.set_int("baseColorTexture", 0)
    shader.set_float("scale", 2)
    assert shader.program.uniforms["flag"] == 1
    assert shader.program.uniforms["baseColorTexture"] == 0
    assert shader.program.uniforms["scale"] == 2.0
    assert isinstance(shader.program.uniforms["scale"], float)


def test_vector_setters(shader):
    shader.set_vec2("uv", [0.5, 0.25])
    shader.set_vec3("lightPos", np.array([0.0, 2.0, 2.0]))
    shader.set_vec4("tint", (1, 1, 1, 1))
    assert shader.program.uniforms["uv"] == (0.5, 0.25)
    assert shader.program.uniforms["lightPos"] == (0.0, 2.0, 2.0)
    assert shader.program.uniforms["tint"] == (1.0, 1.0, 1.0, 1.0)


def test_vector_setter_rejects_wrong_size(shader):
    with pytest.raises(ValueError):
        shader.set_vec3("lightColor", [1.0, 1.0])


def test_set_mat4_is_column_major(shader):
    shader.set_mat4("model", translation([1.0, 2.0, 3.0]))
    values = shader.program.uniforms["model"]
    assert len(values) == 16
    assert values[12:16] == (1.0, 2.0, 3.0, 1.0)


def test_set_mat4_element_layout(shader):
    matrix = np.arange(16.0).reshape(4, 4)
    shader.set_mat4("view", matrix)
    values = shader.program.uniforms["view"]
    assert values[4] == matrix[0, 1]
    assert values[1] == matrix[1, 0]


def test_set_mat4_rejects_wrong_shape(shader):
    with pytest.raises(ValueError):
        shader.set_mat4("projection", np.identity(3))


def test_create_from_files(tmp_path):
    vertex_path = tmp_path / "basic.vert"
    fragment_path = tmp_path / "basic.frag"
    vertex_path.write_text(VERTEX)
    fragment_path.write_text(FRAGMENT)
    built = Shader(FakeBackend())
    built.create_from_files(vertex_path, fragment_path)
    assert built.program.sources == (VERTEX, FRAGMENT)


def test_create_from_missing_files_raises(tmp_path):
    built = Shader(FakeBackend())
    with pytest.raises(ShaderError, match="Failed to read shader files"):
        built.create_from_files(tmp_path / "a.vert", tmp_path / "a.frag")
    assert built.program is None