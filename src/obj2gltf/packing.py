"""Encode vertex attributes and triangle indices into little-endian byte chunks.

Both packers are pure: they take the running byte offset of their region and
return the accessor description, the bytes to append and the offset where the
next chunk starts. Callers thread ``next_offset`` into the following call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .errors import StructuralError

__all__ = [
    "PackedAccessor",
    "pack_attribute",
    "pack_indices",
    "GL_FLOAT",
    "GL_UNSIGNED_SHORT",
    "GL_UNSIGNED_INT",
    "PRIMITIVE_RESTART_INDEX",
]

LOG = logging.getLogger(__name__)

GL_UNSIGNED_SHORT = 5123
GL_UNSIGNED_INT = 5125
GL_FLOAT = 5126

# 65535 is reserved for primitive restart in 16-bit index buffers
PRIMITIVE_RESTART_INDEX = 65535
_UINT32_MAX = 0xFFFFFFFF

# forced little endian regardless of host byte order
FLOAT32 = np.dtype("<f4")
UINT16 = np.dtype("<u2")
UINT32 = np.dtype("<u4")

_VECTOR_TYPES = {2: "VEC2", 3: "VEC3"}


@dataclass(slots=True)
class PackedAccessor:
    """One packed array: accessor JSON plus the bytes backing it."""

    accessor: Dict[str, Any]
    data: bytes
    start: int

    @property
    def byte_offset(self) -> int:
        return self.accessor["byteOffset"]

    @property
    def next_offset(self) -> int:
        return self.start + len(self.data)


def _padding(offset: int, alignment: int) -> int:
    return (alignment - offset % alignment) % alignment


def pack_attribute(
    values: Sequence[float],
    components: int,
    byte_offset: int,
    buffer_view: str,
) -> Optional[PackedAccessor]:
    """Pack a flat float array as tightly packed ``VEC2``/``VEC3`` float32 data.

    Returns ``None`` for an empty array; the attribute is then absent rather
    than zero-length.
    """

    if components not in _VECTOR_TYPES:
        raise StructuralError(f"Unsupported attribute width: {components} components")

    array = np.asarray(values, dtype=FLOAT32).reshape(-1)
    if array.size == 0:
        return None
    if array.size % components != 0:
        raise StructuralError(
            f"Attribute array of length {array.size} is not divisible into {components}-component elements"
        )

    elements = array.reshape(-1, components)
    pad = _padding(byte_offset, FLOAT32.itemsize)
    data = bytes(pad) + elements.tobytes()
    accessor = {
        "bufferView": buffer_view,
        "byteOffset": byte_offset + pad,
        "byteStride": 0,
        "componentType": GL_FLOAT,
        "count": int(elements.shape[0]),
        "min": elements.min(axis=0).tolist(),
        "max": elements.max(axis=0).tolist(),
        "type": _VECTOR_TYPES[components],
    }
    return PackedAccessor(accessor=accessor, data=data, start=byte_offset)


def pack_indices(
    values: Sequence[int],
    byte_offset: int,
    buffer_view: str,
) -> PackedAccessor:
    """Pack a triangle index array as uint16 when possible, else uint32."""

    try:
        array = np.asarray(values, dtype=np.int64).reshape(-1)
    except OverflowError as exc:
        raise StructuralError("Index value exceeds the 32-bit unsigned range") from exc
    if array.size == 0:
        raise StructuralError("Primitive has an empty index array")

    min_index = int(array.min())
    max_index = int(array.max())
    if min_index < 0:
        raise StructuralError(f"Negative index {min_index} in primitive")
    if max_index > _UINT32_MAX:
        raise StructuralError(f"Index {max_index} exceeds the 32-bit unsigned range")

    if max_index < PRIMITIVE_RESTART_INDEX:
        dtype, component_type = UINT16, GL_UNSIGNED_SHORT
    else:
        dtype, component_type = UINT32, GL_UNSIGNED_INT
        LOG.debug("Index maximum %d requires 32-bit indices", max_index)

    pad = _padding(byte_offset, dtype.itemsize)
    data = bytes(pad) + array.astype(dtype).tobytes()
    accessor = {
        "bufferView": buffer_view,
        "byteOffset": byte_offset + pad,
        "byteStride": 0,
        "componentType": component_type,
        "count": int(array.size),
        "min": [min_index],
        "max": [max_index],
        "type": "SCALAR",
    }
    return PackedAccessor(accessor=accessor, data=data, start=byte_offset)
