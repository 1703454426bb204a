"""Build a glTF 1.0 document and its single binary buffer from an ObjData model.

A build walks nodes -> meshes -> primitives, packs every vertex attribute
into the vertex region and every index array into the index region, then
concatenates the two regions into one buffer described by two bufferViews.
Each call to :func:`create_gltf` uses a fresh :class:`GltfBuilder`, so
identifier counters and byte cursors never leak between documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import StructuralError
from .ids import IdAllocator
from .materials import create_sampler, map_material, register_images
from .model import Mesh, Node, ObjData
from .packing import PackedAccessor, pack_attribute, pack_indices

__all__ = [
    "ByteRegion",
    "GltfBuilder",
    "GltfResult",
    "create_gltf",
    "DEFAULT_GENERATOR",
]

LOG = logging.getLogger(__name__)

DEFAULT_GENERATOR = "obj2gltf"

GL_ARRAY_BUFFER = 34962
GL_ELEMENT_ARRAY_BUFFER = 34963
GL_TRIANGLES = 4

_ATTRIBUTE_LAYOUT = (
    ("POSITION", "positions", 3),
    ("NORMAL", "normals", 3),
    ("TEXCOORD_0", "uvs", 2),
)


@dataclass
class ByteRegion:
    """Contiguous run of packed chunks sharing one running offset."""

    chunks: List[bytes] = field(default_factory=list)
    offset: int = 0

    def append(self, packed: PackedAccessor) -> None:
        if packed.start != self.offset:
            raise StructuralError(
                f"Packed chunk starts at {packed.start} but region cursor is at {self.offset}"
            )
        self.chunks.append(packed.data)
        self.offset = packed.next_offset

    def to_bytes(self) -> bytes:
        return b"".join(self.chunks)


@dataclass(slots=True)
class GltfResult:
    """Output of one build: the JSON-ready document and the buffer bytes."""

    document: Dict[str, Any]
    buffer: bytes

    @property
    def buffer_id(self) -> str:
        return next(iter(self.document["buffers"]))

    def counts(self) -> Dict[str, int]:
        keys = ("nodes", "meshes", "accessors", "materials", "textures", "images")
        counts = {key: len(self.document[key]) for key in keys}
        counts["primitives"] = sum(len(mesh["primitives"]) for mesh in self.document["meshes"].values())
        counts["bytes"] = len(self.buffer)
        return counts


class GltfBuilder:
    """Single-use builder owning the allocator, the document and both regions."""

    def __init__(self, *, generator: str = DEFAULT_GENERATOR) -> None:
        self.ids = IdAllocator()
        self.vertex_region = ByteRegion()
        self.index_region = ByteRegion()
        self._built = False

        self.scene_id = self.ids.allocate("scene")
        self.sampler_id = self.ids.allocate("sampler")
        self.buffer_id = self.ids.allocate("buffer")
        self.vertex_view_id = self.ids.allocate("bufferView_vertex")
        self.index_view_id = self.ids.allocate("bufferView_index")
        self.document: Dict[str, Any] = {
            "accessors": {},
            "asset": {
                "generator": generator,
                "profile": {"api": "WebGL", "version": "1.0.2"},
                "version": "1.1",
            },
            "buffers": {},
            "bufferViews": {},
            "images": {},
            "materials": {},
            "meshes": {},
            "nodes": {},
            "samplers": {self.sampler_id: create_sampler()},
            "scene": self.scene_id,
            "scenes": {self.scene_id: {"nodes": []}},
            "textures": {},
        }
        self._material_ids: Dict[str, str] = {}

    def build(self, obj_data: ObjData) -> GltfResult:
        if self._built:
            raise RuntimeError("GltfBuilder instances are single-use; create a new builder per document")
        self._built = True

        texture_ids = register_images(obj_data.images, self.ids, self.sampler_id, self.document)
        for name, material in obj_data.materials.items():
            material_id = self.ids.allocate(name)
            self._material_ids[name] = material_id
            self.document["materials"][material_id] = map_material(name, material, texture_ids)

        scene_nodes = self.document["scenes"][self.scene_id]["nodes"]
        for node in obj_data.nodes:
            scene_nodes.append(self._add_node(node))

        buffer = self._assemble_buffer()
        LOG.debug(
            "Built document: %d node(s), %d mesh(es), %d accessor(s), %d byte buffer",
            len(self.document["nodes"]),
            len(self.document["meshes"]),
            len(self.document["accessors"]),
            len(buffer),
        )
        return GltfResult(document=self.document, buffer=buffer)

    def _add_node(self, node: Node) -> str:
        node_id = self.ids.allocate(node.name)
        mesh_ids: List[str] = []
        self.document["nodes"][node_id] = {"name": node_id, "meshes": mesh_ids}
        for mesh in node.meshes:
            mesh_ids.append(self._add_mesh(mesh))
        return node_id

    def _add_mesh(self, mesh: Mesh) -> str:
        mesh_id = self.ids.allocate(mesh.name)
        if len(mesh.positions) == 0:
            raise StructuralError(f"Mesh '{mesh.name}' has no position data")

        attributes: Dict[str, str] = {}
        for semantic, field_name, components in _ATTRIBUTE_LAYOUT:
            accessor_id = self._add_vertex_attribute(getattr(mesh, field_name), components)
            if accessor_id is not None:
                attributes[semantic] = accessor_id

        primitives: List[Dict[str, Any]] = []
        self.document["meshes"][mesh_id] = {"name": mesh_id, "primitives": primitives}
        for primitive in mesh.primitives:
            material_id = self._material_ids.get(primitive.material)
            if material_id is None:
                raise StructuralError(
                    f"Primitive in mesh '{mesh.name}' references unknown material '{primitive.material}'"
                )
            primitives.append(
                {
                    "attributes": attributes,
                    "indices": self._add_index_array(primitive.indices),
                    "material": material_id,
                    "mode": GL_TRIANGLES,
                }
            )
        return mesh_id

    def _add_vertex_attribute(self, values, components: int) -> Optional[str]:
        packed = pack_attribute(values, components, self.vertex_region.offset, self.vertex_view_id)
        if packed is None:
            return None
        self.vertex_region.append(packed)
        return self._add_accessor(packed)

    def _add_index_array(self, values) -> str:
        packed = pack_indices(values, self.index_region.offset, self.index_view_id)
        self.index_region.append(packed)
        return self._add_accessor(packed)

    def _add_accessor(self, packed: PackedAccessor) -> str:
        accessor_id = self.ids.allocate("accessor")
        self.document["accessors"][accessor_id] = packed.accessor
        return accessor_id

    def _assemble_buffer(self) -> bytes:
        vertex_bytes = self.vertex_region.to_bytes()
        index_bytes = self.index_region.to_bytes()
        buffer = vertex_bytes + index_bytes

        self.document["buffers"][self.buffer_id] = {
            "byteLength": len(buffer),
            "type": "arraybuffer",
        }
        self.document["bufferViews"][self.vertex_view_id] = {
            "buffer": self.buffer_id,
            "byteLength": len(vertex_bytes),
            "byteOffset": 0,
            "target": GL_ARRAY_BUFFER,
        }
        self.document["bufferViews"][self.index_view_id] = {
            "buffer": self.buffer_id,
            "byteLength": len(index_bytes),
            "byteOffset": len(vertex_bytes),
            "target": GL_ELEMENT_ARRAY_BUFFER,
        }
        return buffer


def create_gltf(obj_data: ObjData, *, generator: str = DEFAULT_GENERATOR) -> GltfResult:
    """Build the glTF document and packed buffer for ``obj_data``."""

    return GltfBuilder(generator=generator).build(obj_data)
