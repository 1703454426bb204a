"""Convert Wavefront OBJ models into glTF 1.0 documents with a packed binary buffer."""

from .conversion import ConversionOptions, ConversionResult, convert
from .errors import InputContractError, Obj2GltfError, SourceReadError, StructuralError
from .gltf import GltfBuilder, GltfResult, create_gltf
from .ids import IdAllocator
from .model import Image, Material, Mesh, Node, ObjData, Primitive
from .mtl import load_mtl
from .obj import load_obj
from .writer import write_gltf

__all__ = [
    "convert",
    "create_gltf",
    "load_mtl",
    "load_obj",
    "write_gltf",
    "ConversionOptions",
    "ConversionResult",
    "GltfBuilder",
    "GltfResult",
    "IdAllocator",
    "Image",
    "Material",
    "Mesh",
    "Node",
    "ObjData",
    "Primitive",
    "Obj2GltfError",
    "StructuralError",
    "SourceReadError",
    "InputContractError",
]
