import math

import numpy as np
import pytest

from isoeditor.camera import TargetCamera
from isoeditor.gltf import GltfError
from isoeditor.paths import full_path
from isoeditor.resources import MeshPrimitive, ModelInstance
from isoeditor.scene import Scene, SceneObject


class FakeLoader:
    def __init__(self, fail=False):
        self.paths = []
        self.fail = fail

    def load_model(self, path):
        self.paths.append(path)
        if self.fail:
            raise GltfError("cannot read")
        return [ModelInstance(mesh=MeshPrimitive(vao=1))]


class FakeRenderer:
    def __init__(self):
        self.cleared = []
        self.calls = []

    def clear_frame(self, color):
        self.cleared.append(color)

    def render_instances(self, instances, camera, model_transform):
        self.calls.append((instances, camera, model_transform))


@pytest.fixture
def scene():
    return Scene(FakeLoader())


def test_default_object_transform_is_identity():
    obj = SceneObject(id="a", model_path="m.glb")
    assert np.allclose(obj.transform(), np.identity(4))


def test_transform_translation_column():
    obj = SceneObject(id="a", model_path="m.glb", position=np.array([1.0, 2.0, 3.0]))
    assert np.allclose(obj.transform()[:3, 3], [1.0, 2.0, 3.0])


def test_transform_rotation_about_z():
    obj = SceneObject(
        id="a", model_path="m.glb", rotation=np.array([0.0, 0.0, math.pi / 2])
    )
    assert np.allclose(obj.transform() @ np.array([1.0, 0.0, 0.0, 0.0]), [0, 1, 0, 0])


def test_transform_scales_before_translating():
    obj = SceneObject(
        id="a",
        model_path="m.glb",
        position=np.array([1.0, 0.0, 0.0]),
        scale=np.array([2.0, 2.0, 2.0]),
    )
    assert np.allclose(obj.transform() @ np.array([1.0, 0.0, 0.0, 1.0]), [3, 0, 0, 1])


def test_default_background(scene):
    assert np.allclose(scene.bg_color, [30 / 255.0] * 3)


def test_set_bg_color(scene):
    scene.set_bg_color(255, 0, 51)
    assert np.allclose(scene.bg_color, [1.0, 0.0, 51 / 255.0])


def test_resolve_plain_path(scene):
    assert scene.resolve_path("models/cube.glb") == full_path("models/cube.glb")


def test_resolve_default_alias(scene):
    assert scene.resolve_path("@assets/cube.glb") == full_path("../../assets/cube.glb")


def test_resolve_alias_with_backslash(scene):
    assert scene.resolve_path("@assets\\cube.glb") == full_path("../../assets\\cube.glb")


def test_resolve_uses_first_separator(scene):
    scene.add_path_alias("lib", "data")
    assert scene.resolve_path("@lib\\x/cube.glb") == full_path("data\\x/cube.glb")


def test_resolve_unknown_alias_raises(scene):
    with pytest.raises(ValueError):
        scene.resolve_path("@nowhere/cube.glb")


def test_resolve_alias_without_separator_raises(scene):
    with pytest.raises(ValueError):
        scene.resolve_path("@assets")


def test_first_alias_wins(scene):
    scene.add_path_alias("assets", "other")
    assert scene.resolve_path("@assets/a.glb") == full_path("../../assets/a.glb")


def test_added_alias_resolves(scene):
    scene.add_path_alias("mine", "my/dir")
    assert scene.resolve_path("@mine/a.gltf") == full_path("my/dir/a.gltf")


def test_add_object_loads_resolved_path(scene):
    obj = scene.add_object("cube", "@assets/cube.glb")
    assert scene.loader.paths == [full_path("../../assets/cube.glb")]
    assert scene.get_object("cube") is obj
    assert obj.model_path == "@assets/cube.glb"
    assert len(obj.instances) == 1


def test_add_duplicate_raises(scene):
    scene.add_object("cube", "cube.glb")
    with pytest.raises(ValueError):
        scene.add_object("cube", "other.glb")
    assert len(scene.loader.paths) == 1


def test_add_failed_load_leaves_scene_unchanged():
    scene = Scene(FakeLoader(fail=True))
    with pytest.raises(GltfError):
        scene.add_object("cube", "cube.glb")
    assert scene.objects == {}


def test_remove_object(scene):
    scene.add_object("cube", "cube.glb")
    scene.remove_object("cube")
    assert scene.get_object("cube") is None


def test_remove_missing_raises(scene):
    with pytest.raises(KeyError):
        scene.remove_object("ghost")


def test_setters_and_relative_changes(scene):
    scene.add_object("cube", "cube.glb")
    scene.set_object_position("cube", (1.0, 2.0, 3.0))
    scene.move_object("cube", (1.0, 1.0, 1.0))
    scene.set_object_rotation("cube", (0.1, 0.2, 0.3))
    scene.rotate_object("cube", (0.1, 0.0, 0.0))
    scene.set_object_scale("cube", (2.0, 2.0, 2.0))
    scene.scale_object("cube", (0.5, 1.0, 2.0))
    obj = scene.get_object("cube")
    assert np.allclose(obj.position, [2.0, 3.0, 4.0])
    assert np.allclose(obj.rotation, [0.2, 0.2, 0.3])
    assert np.allclose(obj.scale, [1.0, 2.0, 4.0])


def test_setters_on_missing_object_do_nothing(scene):
    scene.set_object_position("ghost", (1.0, 2.0, 3.0))
    scene.move_object("ghost", (1.0, 1.0, 1.0))
    scene.scale_object("ghost", (2.0, 2.0, 2.0))
    assert scene.objects == {}


def test_render_scene(scene):
    scene.add_object("cube", "cube.glb")
    scene.set_object_position("cube", (0.0, 1.0, 0.0))
    renderer = FakeRenderer()
    camera = TargetCamera((0, 0, 5), (0, 0, 0))
    scene.render_scene(renderer, camera)
    assert np.allclose(renderer.cleared[0], scene.bg_color)
    assert len(renderer.calls) == 1
    instances, used_camera, transform = renderer.calls[0]
    assert instances is scene.get_object("cube").instances
    assert used_camera is camera
    assert np.allclose(transform, scene.get_object("cube").transform())