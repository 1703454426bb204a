"""Exception types raised by the obj2gltf pipeline."""

from __future__ import annotations

__all__ = [
    "Obj2GltfError",
    "StructuralError",
    "SourceReadError",
    "InputContractError",
]


class Obj2GltfError(Exception):
    """Base class for conversion failures."""


class StructuralError(Obj2GltfError):
    """Raised when the input model cannot produce a consistent document.

    The whole build is aborted; no partial document is returned.
    """


class SourceReadError(Obj2GltfError):
    """Raised when a source file (OBJ, MTL, image) cannot be read."""


class InputContractError(Obj2GltfError, ValueError):
    """Raised when required paths or arguments are missing before any work starts."""
