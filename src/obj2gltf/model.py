"""In-memory input model handed from the OBJ/MTL loaders to the glTF builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

__all__ = [
    "Color",
    "Image",
    "Material",
    "Mesh",
    "Node",
    "ObjData",
    "Primitive",
    "GL_RGB",
    "GL_RGBA",
]

GL_RGB = 6407
GL_RGBA = 6408

Color = List[float]


@dataclass
class Material:
    """Material attribute table as read from an MTL block.

    Colours are stored as ``[r, g, b, 1.0]``; ``*_map`` fields hold texture
    paths.
    """

    ambient_color: Optional[Color] = None  # Ka
    emission_color: Optional[Color] = None  # Ke
    diffuse_color: Optional[Color] = None  # Kd
    specular_color: Optional[Color] = None  # Ks
    specular_shininess: Optional[float] = None  # Ns
    alpha: Optional[float] = None  # d / Tr
    ambient_color_map: Optional[str] = None  # map_Ka
    emission_color_map: Optional[str] = None  # map_Ke
    diffuse_color_map: Optional[str] = None  # map_Kd
    specular_color_map: Optional[str] = None  # map_Ks
    specular_shininess_map: Optional[str] = None  # map_Ns
    normal_map: Optional[str] = None  # map_Bump
    alpha_map: Optional[str] = None  # map_d

    def texture_paths(self) -> List[str]:
        paths = (
            self.ambient_color_map,
            self.emission_color_map,
            self.diffuse_color_map,
            self.specular_color_map,
            self.specular_shininess_map,
            self.normal_map,
            self.alpha_map,
        )
        return [p for p in paths if p]


@dataclass
class Image:
    format: int
    uri: str


@dataclass
class Primitive:
    indices: Sequence[int]
    material: str


@dataclass
class Mesh:
    name: str
    positions: Sequence[float] = field(default_factory=list)
    normals: Sequence[float] = field(default_factory=list)
    uvs: Sequence[float] = field(default_factory=list)
    primitives: List[Primitive] = field(default_factory=list)


@dataclass
class Node:
    name: str
    meshes: List[Mesh] = field(default_factory=list)


@dataclass
class ObjData:
    """Parsed model: ordered nodes plus material and image tables."""

    nodes: List[Node] = field(default_factory=list)
    materials: Dict[str, Material] = field(default_factory=dict)
    images: Dict[str, Image] = field(default_factory=dict)
