"""Wavefront OBJ loader producing the :class:`~obj2gltf.model.ObjData` input model.

``o`` starts a node, ``g`` starts a mesh inside the current node and
``usemtl`` selects the primitive (one per material) inside the current mesh.
Vertices are deduplicated per mesh on their resolved ``v/vt/vn`` triple, and
polygons are fan-triangulated.
"""

from __future__ import annotations

import base64
import io
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image as PILImage

from .errors import SourceReadError
from .model import GL_RGB, GL_RGBA, Image, Material, Mesh, Node, ObjData, Primitive
from .mtl import load_mtl

__all__ = ["load_obj", "load_image", "read_obj_text", "DEFAULT_MATERIAL_NAME"]

LOG = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_NODE_NAME = "Node"
DEFAULT_MESH_NAME = "Mesh"
DEFAULT_MATERIAL_NAME = "default"

_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}

VertexKey = Tuple[int, Optional[int], Optional[int]]


@dataclass
class _MeshBuilder:
    name: str
    vertex_cache: Dict[VertexKey, int] = field(default_factory=dict)
    positions: List[Tuple[float, float, float]] = field(default_factory=list)
    normals: List[Optional[Tuple[float, float, float]]] = field(default_factory=list)
    uvs: List[Optional[Tuple[float, float]]] = field(default_factory=list)
    primitives: Dict[str, List[int]] = field(default_factory=dict)

    def finish(self) -> Optional[Mesh]:
        primitives = [
            Primitive(indices=indices, material=material)
            for material, indices in self.primitives.items()
            if indices
        ]
        if not primitives:
            return None
        return Mesh(
            name=self.name,
            positions=_flatten(self.positions, None),
            normals=_flatten(self.normals, (0.0, 0.0, 0.0)),
            uvs=_flatten(self.uvs, (0.0, 0.0)),
            primitives=primitives,
        )


def _flatten(items: Sequence[Optional[Tuple[float, ...]]], fill: Optional[Tuple[float, ...]]) -> List[float]:
    if all(item is None for item in items):
        return []
    flat: List[float] = []
    for item in items:
        flat.extend(item if item is not None else fill)
    return flat


def _resolve_index(token: str, count: int) -> Optional[int]:
    if not token:
        return None
    value = int(token)
    index = value - 1 if value > 0 else count + value
    if index < 0 or index >= count or value == 0:
        raise IndexError(f"OBJ index {value} out of range (1..{count})")
    return index


class _ObjParser:
    def __init__(self, obj_path: Path) -> None:
        self.obj_path = obj_path
        self.positions: List[Tuple[float, float, float]] = []
        self.normals: List[Tuple[float, float, float]] = []
        self.uvs: List[Tuple[float, float]] = []
        self.materials: Dict[str, Material] = {}
        self.nodes: List[Tuple[str, List[_MeshBuilder]]] = []
        self.mesh: Optional[_MeshBuilder] = None
        self.material_name = DEFAULT_MATERIAL_NAME

    def _start_node(self, name: str) -> None:
        self.nodes.append((name or DEFAULT_NODE_NAME, []))
        self.mesh = None

    def _start_mesh(self, name: str) -> None:
        if not self.nodes:
            self._start_node(DEFAULT_NODE_NAME)
        self.mesh = _MeshBuilder(name=name or DEFAULT_MESH_NAME)
        self.nodes[-1][1].append(self.mesh)

    def _current_indices(self) -> List[int]:
        if self.mesh is None:
            self._start_mesh(DEFAULT_MESH_NAME)
        return self.mesh.primitives.setdefault(self.material_name, [])

    def _vertex_key(self, token: str) -> VertexKey:
        parts = token.split("/")
        v = _resolve_index(parts[0], len(self.positions))
        vt = _resolve_index(parts[1], len(self.uvs)) if len(parts) > 1 else None
        vn = _resolve_index(parts[2], len(self.normals)) if len(parts) > 2 else None
        if v is None:
            raise IndexError(f"Face vertex '{token}' has no position index")
        return (v, vt, vn)

    def _vertex(self, key: VertexKey) -> int:
        v, vt, vn = key
        mesh = self.mesh
        index = mesh.vertex_cache.get(key)
        if index is None:
            index = len(mesh.positions)
            mesh.vertex_cache[key] = index
            mesh.positions.append(self.positions[v])
            mesh.uvs.append(self.uvs[vt] if vt is not None else None)
            mesh.normals.append(self.normals[vn] if vn is not None else None)
        return index

    def _face(self, tokens: Sequence[str], line_number: int) -> None:
        if len(tokens) < 3:
            LOG.debug("Skipping degenerate face on line %d", line_number)
            return
        try:
            keys = [self._vertex_key(token) for token in tokens]
        except (ValueError, IndexError) as exc:
            LOG.warning("Skipping face on line %d of %s: %s", line_number, self.obj_path, exc)
            return
        indices = self._current_indices()
        corners = [self._vertex(key) for key in keys]
        for i in range(1, len(corners) - 1):
            indices.extend((corners[0], corners[i], corners[i + 1]))

    def _mtllib(self, value: str) -> None:
        mtl_path = self.obj_path.parent / value
        mtl_dir = mtl_path.parent
        for name, material in load_mtl(mtl_path).items():
            for attr, texture in vars(material).items():
                if attr.endswith("_map") and texture:
                    setattr(material, attr, str((mtl_dir / texture).resolve()))
            self.materials[name] = material

    def feed(self, line_number: int, line: str) -> None:
        parts = line.split(None, 1)
        keyword = parts[0]
        value = parts[1].strip() if len(parts) > 1 else ""
        try:
            if keyword == "v":
                x, y, z = value.split()[:3]
                self.positions.append((float(x), float(y), float(z)))
            elif keyword == "vn":
                x, y, z = value.split()[:3]
                self.normals.append((float(x), float(y), float(z)))
            elif keyword == "vt":
                coords = value.split()
                u = float(coords[0])
                v = float(coords[1]) if len(coords) > 1 else 0.0
                self.uvs.append((u, 1.0 - v))
            elif keyword == "f":
                self._face(value.split(), line_number)
            elif keyword == "o":
                self._start_node(value)
            elif keyword == "g":
                self._start_mesh(value)
            elif keyword == "usemtl":
                self.material_name = value or DEFAULT_MATERIAL_NAME
            elif keyword == "mtllib" and value:
                self._mtllib(value)
        except (ValueError, IndexError):
            LOG.debug("Ignoring malformed OBJ line %d: %s", line_number, line)

    def nodes_and_materials(self) -> Tuple[List[Node], Dict[str, Material]]:
        nodes: List[Node] = []
        materials = dict(self.materials)
        for name, mesh_builders in self.nodes:
            meshes = [mesh for mesh in (builder.finish() for builder in mesh_builders) if mesh is not None]
            if not meshes:
                LOG.debug("Dropping empty node '%s'", name)
                continue
            for mesh in meshes:
                for primitive in mesh.primitives:
                    if primitive.material not in materials:
                        LOG.debug("Material '%s' not defined; using default material", primitive.material)
                        materials[primitive.material] = Material()
            nodes.append(Node(name=name, meshes=meshes))
        return nodes, materials


def read_obj_text(obj_path: PathLike) -> str:
    try:
        return Path(obj_path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SourceReadError(f"Could not read OBJ file at {obj_path}") from exc


def load_image(image_path: PathLike, *, embed: bool = True, base_dir: Optional[PathLike] = None) -> Image:
    """Read an image and describe it as a glTF image source.

    Raises :class:`SourceReadError` when the file cannot be read or decoded.
    """

    path = Path(image_path)
    try:
        data = path.read_bytes()
        with PILImage.open(io.BytesIO(data)) as img:
            mode = img.mode
            has_alpha = mode in _ALPHA_MODES or (mode == "P" and "transparency" in img.info)
            mime = PILImage.MIME.get(img.format or "", "application/octet-stream")
    except OSError as exc:
        raise SourceReadError(f"Could not read image at {image_path}: {exc}") from exc

    if embed:
        uri = f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
    else:
        base = Path(base_dir) if base_dir is not None else path.parent
        uri = Path(os.path.relpath(path.resolve(), base.resolve())).as_posix()
    return Image(format=GL_RGBA if has_alpha else GL_RGB, uri=uri)


def load_obj(
    obj_path: PathLike,
    *,
    embed_image: bool = True,
    image_base_dir: Optional[PathLike] = None,
) -> ObjData:
    """Parse an OBJ file (plus referenced MTL files and images) into ObjData."""

    path = Path(obj_path)
    text = read_obj_text(path)
    parser = _ObjParser(path)
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if line and not line.startswith("#"):
            parser.feed(line_number, line)

    nodes, materials = parser.nodes_and_materials()

    images: Dict[str, Image] = {}
    base_dir = image_base_dir if image_base_dir is not None else path.parent
    for material in materials.values():
        for texture_path in material.texture_paths():
            if texture_path in images:
                continue
            try:
                images[texture_path] = load_image(texture_path, embed=embed_image, base_dir=base_dir)
            except SourceReadError as exc:
                LOG.warning("%s; falling back to material colors.", exc)

    LOG.info(
        "Loaded %s: %d vertices, %d node(s), %d material(s), %d image(s)",
        path.name,
        len(parser.positions),
        len(nodes),
        len(materials),
        len(images),
    )
    return ObjData(nodes=nodes, materials=materials, images=images)
