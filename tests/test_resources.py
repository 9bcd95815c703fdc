import numpy as np

from isoeditor.resources import MeshPrimitive, ModelInstance, ResourceManager


def test_mesh_primitive_defaults_are_empty():
    mesh = MeshPrimitive()
    assert (mesh.vao, mesh.vbo, mesh.ebo, mesh.index_count, mesh.texture) == (0, 0, 0, 0, 0)
    assert mesh.name == ""


def test_model_instance_default_transform_is_identity():
    inst = ModelInstance()
    assert np.allclose(inst.transform, np.identity(4))
    assert inst.mesh is None


def test_same_key_returns_same_mesh():
    manager = ResourceManager()
    first = manager.get_or_create_mesh("a", MeshPrimitive())
    first.vao = 7
    second = manager.get_or_create_mesh("a", MeshPrimitive(vao=99))
    assert second is first
    assert second.vao == 7


def test_mesh_is_stored_as_copy():
    manager = ResourceManager()
    template = MeshPrimitive(name="cube")
    stored = manager.get_or_create_mesh("cube", template)
    assert stored is not template
    assert stored == template


def test_different_keys_give_different_meshes():
    manager = ResourceManager()
    assert manager.get_or_create_mesh("a") is not manager.get_or_create_mesh("b")


def test_texture_cache_releases_duplicate():
    released = []
    manager = ResourceManager(release_texture=released.append)
    assert manager.get_or_create_texture("t", 5) == 5
    assert manager.get_or_create_texture("t", 9) == 5
    assert released == [9]


def test_clear_releases_everything_and_empties_cache():
    meshes, textures = [], []
    manager = ResourceManager(release_mesh=meshes.append, release_texture=textures.append)
    m1 = manager.get_or_create_mesh("m1", MeshPrimitive(vao=1))
    m2 = manager.get_or_create_mesh("m2", MeshPrimitive(vao=2))
    manager.get_or_create_texture("t1", 11)
    manager.get_or_create_texture("t2", 12)

    manager.clear()

    assert meshes == [m1, m2]
    assert sorted(textures) == [11, 12]
    fresh = manager.get_or_create_mesh("m1")
    assert fresh is not m1
    assert fresh.vao == 0
    assert manager.get_or_create_texture("t1", 20) == 20