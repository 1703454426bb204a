"""Serialize a built document: choose the buffer URI and write ``.gltf``/``.bin`` files."""

from __future__ import annotations

import base64
import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .gltf import GltfResult

__all__ = [
    "DATA_URI_PREFIX",
    "SEPARATE_BUFFER_THRESHOLD",
    "WrittenGltf",
    "buffer_data_uri",
    "decode_data_uri",
    "finalize_document",
    "write_gltf",
]

LOG = logging.getLogger(__name__)

PathLike = Union[str, Path]

DATA_URI_PREFIX = "data:application/octet-stream;base64,"
# buffers above this many bytes always go to a sibling .bin file
SEPARATE_BUFFER_THRESHOLD = 201326580


@dataclass(slots=True)
class WrittenGltf:
    gltf_path: Path
    buffer_path: Optional[Path]
    document: Dict[str, Any]


def buffer_data_uri(buffer: bytes) -> str:
    return DATA_URI_PREFIX + base64.b64encode(buffer).decode("ascii")


def decode_data_uri(uri: str) -> bytes:
    index = uri.find("base64,")
    if not uri.startswith("data:") or index < 0:
        raise ValueError("URI is not a base64 data URI")
    return base64.b64decode(uri[index + len("base64,") :])


def finalize_document(
    result: GltfResult,
    *,
    bin_name: str,
    separate: bool = False,
    separate_threshold: int = SEPARATE_BUFFER_THRESHOLD,
) -> tuple[Dict[str, Any], bool]:
    """Return a copy of the document with the buffer URI filled in.

    The second element is True when the buffer must be written to ``bin_name``.
    """

    document = copy.deepcopy(result.document)
    write_separate = separate or len(result.buffer) > separate_threshold
    buffer_record = document["buffers"][result.buffer_id]
    buffer_record["uri"] = bin_name if write_separate else buffer_data_uri(result.buffer)
    return document, write_separate


def write_gltf(
    result: GltfResult,
    gltf_path: PathLike,
    *,
    separate: bool = False,
    separate_threshold: int = SEPARATE_BUFFER_THRESHOLD,
) -> WrittenGltf:
    """Write ``result`` to ``gltf_path`` and, when needed, a sibling ``.bin``."""

    gltf_path = Path(gltf_path)
    bin_path = gltf_path.with_suffix(".bin")
    document, write_separate = finalize_document(
        result,
        bin_name=bin_path.name,
        separate=separate,
        separate_threshold=separate_threshold,
    )

    gltf_path.parent.mkdir(parents=True, exist_ok=True)
    if write_separate:
        bin_path.write_bytes(result.buffer)
        LOG.info("Wrote %d byte buffer to %s", len(result.buffer), bin_path)
    gltf_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    LOG.info("Wrote %s", gltf_path)
    return WrittenGltf(
        gltf_path=gltf_path,
        buffer_path=bin_path if write_separate else None,
        document=document,
    )
