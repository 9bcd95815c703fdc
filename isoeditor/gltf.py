"""Loading of glTF 2.0 models (``.gltf`` and ``.glb``) into mesh instances."""

from __future__ import annotations

import base64
import binascii
import io
import json
import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import unquote, unquote_to_bytes

import numpy as np
from PIL import Image

from .resources import MeshPrimitive, ModelInstance, ResourceManager
from .transforms import quaternion_matrix, scaling, translation

GLB_MAGIC = b"glTF"
_CHUNK_JSON = 0x4E4F534A
_CHUNK_BIN = 0x004E4942

COMPONENT_UNSIGNED_SHORT = 5123
COMPONENT_UNSIGNED_INT = 5125

VERTEX_STRIDE = 8
DEFAULT_NORMAL = (0.0, 1.0, 0.0)

_IMAGE_COMPONENTS = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


class GltfError(Exception):
    """Raised when a glTF file cannot be read or is malformed."""


@dataclass(frozen=True)
class TextureImage:
    """Decoded pixels of a texture image, rows from top to bottom."""

    width: int
    height: int
    component: int
    pixels: bytes


@dataclass
class PrimitiveData:
    """Vertex and index data of one primitive, ready for upload.

    ``vertices`` holds one row per vertex: position (3), normal (3), UV (2).
    """

    vertices: np.ndarray
    indices: np.ndarray
    texture: Optional[TextureImage] = None
    texture_index: Optional[int] = None


@dataclass
class GltfDocument:
    """A parsed glTF document together with its binary buffers."""

    path: str
    data: dict[str, Any]
    buffers: list[bytes]
    base_dir: Path


def _item(document: GltfDocument, kind: str, index: Any) -> dict[str, Any]:
    items = document.data.get(kind, [])
    if not isinstance(index, int) or not 0 <= index < len(items):
        raise GltfError(f"{kind}[{index}] does not exist")
    return items[index]


def _buffer(document: GltfDocument, index: Any) -> bytes:
    if not isinstance(index, int) or not 0 <= index < len(document.buffers):
        raise GltfError(f"buffers[{index}] does not exist")
    return document.buffers[index]


def _read_uri(uri: str, base_dir: Path) -> bytes:
    if uri.startswith("data:"):
        header, sep, payload = uri.partition(",")
        if not sep:
            raise GltfError("malformed data URI")
        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=True)
            except binascii.Error as exc:
                raise GltfError(f"malformed base64 data URI: {exc}") from exc
        return unquote_to_bytes(payload)
    target = base_dir / unquote(uri)
    try:
        return target.read_bytes()
    except OSError as exc:
        raise GltfError(f"cannot read {target}: {exc}") from exc


def _parse_json(raw: bytes) -> dict[str, Any]:
    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise GltfError(f"invalid glTF JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise GltfError("glTF JSON must be an object")
    return data


def _parse_glb(raw: bytes) -> tuple[dict[str, Any], Optional[bytes]]:
    if len(raw) < 12:
        raise GltfError("truncated GLB header")
    magic, version, length = struct.unpack_from("<4sII", raw, 0)
    if magic != GLB_MAGIC:
        raise GltfError("not a GLB file")
    if version != 2:
        raise GltfError(f"unsupported GLB version {version}")
    if length > len(raw):
        raise GltfError("truncated GLB file")

    json_chunk: Optional[bytes] = None
    binary_chunk: Optional[bytes] = None
    offset = 12
    while offset + 8 <= length:
        chunk_length, chunk_type = struct.unpack_from("<II", raw, offset)
        start = offset + 8
        end = start + chunk_length
        if end > length:
            raise GltfError("truncated GLB chunk")
        if chunk_type == _CHUNK_JSON and json_chunk is None:
            json_chunk = raw[start:end]
        elif chunk_type == _CHUNK_BIN and binary_chunk is None:
            binary_chunk = raw[start:end]
        offset = end
    if json_chunk is None:
        raise GltfError("GLB file has no JSON chunk")
    return _parse_json(json_chunk), binary_chunk


def _load_buffer(
    entry: dict[str, Any], index: int, base_dir: Path, binary: Optional[bytes]
) -> bytes:
    uri = entry.get("uri")
    if uri is None:
        if index != 0 or binary is None:
            raise GltfError(f"buffer {index} has no data")
        data = binary
    else:
        data = _read_uri(uri, base_dir)
    length = entry.get("byteLength", len(data))
    if len(data) < length:
        raise GltfError(f"buffer {index} is shorter than its byteLength")
    return data[:length]


def load_document(path: str | os.PathLike[str]) -> GltfDocument:
    """Read a ``.gltf`` or ``.glb`` file and all the buffers it refers to."""
    text_path = os.fspath(path)
    file_path = Path(text_path)
    try:
        raw = file_path.read_bytes()
    except OSError as exc:
        raise GltfError(f"cannot read {file_path}: {exc}") from exc

    binary: Optional[bytes] = None
    if text_path.endswith(".glb"):
        data, binary = _parse_glb(raw)
    else:
        data = _parse_json(raw)

    base_dir = file_path.parent
    buffers = [
        _load_buffer(entry, index, base_dir, binary)
        for index, entry in enumerate(data.get("buffers", []))
    ]
    return GltfDocument(text_path, data, buffers, base_dir)


def node_transform(node: dict[str, Any]) -> np.ndarray:
    """Local transform of a node from its matrix or its TRS properties."""
    matrix = node.get("matrix")
    if matrix:
        values = np.asarray(matrix, dtype=float)
        if values.size != 16:
            raise GltfError("node matrix must have 16 elements")
        return values.reshape(4, 4).T.copy()

    offset = node.get("translation") or ()
    factors = node.get("scale") or ()
    quat = node.get("rotation") or ()
    move = translation(offset if len(offset) == 3 else (0.0, 0.0, 0.0))
    size = scaling(factors if len(factors) == 3 else (1.0, 1.0, 1.0))
    turn = quaternion_matrix(*quat) if len(quat) == 4 else np.identity(4)
    return move @ turn @ size


def _accessor_array(
    document: GltfDocument, accessor_index: Any, components: int, dtype: str
) -> np.ndarray:
    accessor = _item(document, "accessors", accessor_index)
    view_index = accessor.get("bufferView")
    if view_index is None:
        raise GltfError(f"accessor {accessor_index} has no buffer view")
    view = _item(document, "bufferViews", view_index)
    buffer = _buffer(document, view.get("buffer"))

    item = np.dtype(dtype)
    count = int(accessor.get("count", 0))
    element = item.itemsize * components
    if count == 0:
        return np.zeros((0, components), dtype=item)
    stride = view.get("byteStride") or element
    start = view.get("byteOffset", 0) + accessor.get("byteOffset", 0)
    end = start + stride * (count - 1) + element
    if start < 0 or end > len(buffer):
        raise GltfError(f"accessor {accessor_index} reads past the end of its buffer")
    array = np.ndarray(
        (count, components),
        dtype=item,
        buffer=buffer,
        offset=start,
        strides=(stride, item.itemsize),
    )
    return array.copy()


def _attribute(
    document: GltfDocument,
    attributes: dict[str, Any],
    name: str,
    components: int,
    vertex_count: int,
    default: tuple[float, ...],
) -> np.ndarray:
    if name not in attributes:
        return np.tile(np.asarray(default, dtype=np.float32), (vertex_count, 1))
    values = _accessor_array(document, attributes[name], components, "<f4")
    if len(values) < vertex_count:
        raise GltfError(f"attribute {name} has fewer elements than POSITION")
    return values[:vertex_count]


def _read_indices(document: GltfDocument, accessor_index: Any) -> np.ndarray:
    accessor = _item(document, "accessors", accessor_index)
    component_type = accessor.get("componentType")
    if component_type == COMPONENT_UNSIGNED_SHORT:
        values = _accessor_array(document, accessor_index, 1, "<u2")
    elif component_type == COMPONENT_UNSIGNED_INT:
        values = _accessor_array(document, accessor_index, 1, "<u4")
    else:
        # Other index types are not decoded; the indices stay zero.
        values = np.zeros(int(accessor.get("count", 0)))
    return values.reshape(-1).astype(np.uint32)


def _decode_image(document: GltfDocument, image: dict[str, Any]) -> TextureImage:
    if "bufferView" in image:
        view = _item(document, "bufferViews", image["bufferView"])
        buffer = _buffer(document, view.get("buffer"))
        start = view.get("byteOffset", 0)
        end = start + view.get("byteLength", 0)
        if end > len(buffer):
            raise GltfError("image buffer view reads past the end of its buffer")
        encoded = buffer[start:end]
    elif "uri" in image:
        encoded = _read_uri(image["uri"], document.base_dir)
    else:
        raise GltfError("image has no data")

    try:
        with Image.open(io.BytesIO(encoded)) as opened:
            opened.load()
            picture = opened
            if picture.mode not in _IMAGE_COMPONENTS:
                has_alpha = "A" in picture.getbands() or "transparency" in picture.info
                picture = picture.convert("RGBA" if has_alpha else "RGB")
            return TextureImage(
                width=picture.width,
                height=picture.height,
                component=_IMAGE_COMPONENTS[picture.mode],
                pixels=picture.tobytes(),
            )
    except (OSError, ValueError) as exc:
        raise GltfError(f"cannot decode image: {exc}") from exc


def _base_color_texture(
    document: GltfDocument, primitive: dict[str, Any]
) -> tuple[Optional[TextureImage], Optional[int]]:
    material_index = primitive.get("material")
    if material_index is None or material_index < 0:
        return None, None
    material = _item(document, "materials", material_index)
    info = (material.get("pbrMetallicRoughness") or {}).get("baseColorTexture")
    if not info:
        return None, None
    texture_index = info.get("index", -1)
    if texture_index < 0:
        return None, None
    texture = _item(document, "textures", texture_index)
    image = _item(document, "images", texture.get("source"))
    return _decode_image(document, image), texture_index


def read_primitive(
    document: GltfDocument, primitive: dict[str, Any]
) -> Optional[PrimitiveData]:
    """Interleave a primitive's vertex data; ``None`` if it has no positions."""
    attributes = primitive.get("attributes", {})
    if "POSITION" not in attributes:
        return None

    positions = _accessor_array(document, attributes["POSITION"], 3, "<f4")
    count = len(positions)
    normals = _attribute(document, attributes, "NORMAL", 3, count, DEFAULT_NORMAL)
    uvs = _attribute(document, attributes, "TEXCOORD_0", 2, count, (0.0, 0.0))
    vertices = np.hstack([positions, normals, uvs]).astype(np.float32)

    index_accessor = primitive.get("indices")
    if index_accessor is not None and index_accessor >= 0:
        indices = _read_indices(document, index_accessor)
    else:
        indices = np.zeros(0, dtype=np.uint32)

    texture, texture_index = _base_color_texture(document, primitive)
    return PrimitiveData(vertices, indices, texture, texture_index)


Uploader = Callable[[MeshPrimitive, PrimitiveData], int]


class GLTFLoader:
    """Turns glTF files into model instances backed by cached meshes.

    ``uploader(mesh, data)`` puts a primitive on the GPU, fills the mesh's
    handles and returns the texture handle it created, or 0. Without an
    uploader the primitives are read but nothing is put on the GPU.
    """

    def __init__(
        self,
        resources: ResourceManager | None = None,
        uploader: Uploader | None = None,
    ) -> None:
        self.resources = resources if resources is not None else ResourceManager()
        self._upload = uploader
        self.instances: list[ModelInstance] = []

    def load_model(self, path: str | os.PathLike[str]) -> list[ModelInstance]:
        """Load every mesh node of ``path``; returns the instances added."""
        text_path = os.fspath(path)
        document = load_document(text_path)
        added: list[ModelInstance] = []

        for node in document.data.get("nodes", []):
            mesh_index = node.get("mesh", -1)
            if mesh_index < 0:
                continue
            mesh = _item(document, "meshes", mesh_index)
            transform = node_transform(node)

            for prim_index, primitive in enumerate(mesh.get("primitives", [])):
                key = f"{text_path}_mesh_{mesh_index}_{prim_index}"
                cached = self.resources.get_or_create_mesh(key, MeshPrimitive())
                if cached.vao == 0 and not self._load_primitive(
                    text_path, document, primitive, cached
                ):
                    continue
                added.append(ModelInstance(transform=transform.copy(), mesh=cached))

        self.instances.extend(added)
        return added

    def _load_primitive(
        self,
        path: str,
        document: GltfDocument,
        primitive: dict[str, Any],
        mesh: MeshPrimitive,
    ) -> bool:
        data = read_primitive(document, primitive)
        if data is None:
            return False
        mesh.index_count = len(data.indices)
        texture_id = self._upload(mesh, data) if self._upload is not None else 0
        if data.texture_index is not None and texture_id:
            key = f"{path}_texture_{data.texture_index}"
            mesh.texture = self.resources.get_or_create_texture(key, texture_id)
        return True