from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .errors import SourceReadError
from .model import Material

__all__ = ["load_mtl", "parse_mtl", "read_mtl_text"]

LOG = logging.getLogger(__name__)

PathLike = Union[str, Path]

_COLOR_FIELDS = {
    "ka": "ambient_color",
    "ke": "emission_color",
    "kd": "diffuse_color",
    "ks": "specular_color",
}
_MAP_FIELDS = {
    "map_ka": "ambient_color_map",
    "map_ke": "emission_color_map",
    "map_kd": "diffuse_color_map",
    "map_ks": "specular_color_map",
    "map_ns": "specular_shininess_map",
    "map_bump": "normal_map",
    "map_d": "alpha_map",
}


def _parse_color(value: str) -> List[float]:
    parts = value.split()
    return [float(parts[0]), float(parts[1]), float(parts[2]), 1.0]


def parse_mtl(lines: Iterable[str]) -> Dict[str, Material]:
    """Parse MTL lines into ``{material name: Material}``.

    Directive keywords are matched case-insensitively; directives that appear
    before the first ``newmtl`` or that carry malformed numbers are skipped.
    """

    materials: Dict[str, Material] = {}
    material: Optional[Material] = None
    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        keyword = parts[0].lower()
        value = parts[1].strip() if len(parts) > 1 else ""

        if keyword == "newmtl":
            if not value:
                LOG.debug("Ignoring unnamed material on line %d", line_number)
                material = None
                continue
            material = Material()
            materials[value] = material
            continue
        if material is None or not value:
            continue

        try:
            if keyword in _COLOR_FIELDS:
                setattr(material, _COLOR_FIELDS[keyword], _parse_color(value))
            elif keyword == "ns":
                material.specular_shininess = float(value)
            elif keyword == "d":
                material.alpha = float(value)
            elif keyword == "tr":
                material.alpha = 1.0 - float(value)
            elif keyword in _MAP_FIELDS:
                setattr(material, _MAP_FIELDS[keyword], value)
        except (ValueError, IndexError):
            LOG.debug("Ignoring malformed MTL line %d: %s", line_number, line)
    return materials


def read_mtl_text(mtl_path: PathLike) -> str:
    try:
        return Path(mtl_path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise SourceReadError(f"Could not read material file at {mtl_path}") from exc


def load_mtl(mtl_path: PathLike) -> Dict[str, Material]:
    """Load an MTL file; an unreadable file yields an empty material table."""

    try:
        text = read_mtl_text(mtl_path)
    except SourceReadError as exc:
        LOG.warning("%s. Using default material instead.", exc)
        return {}
    materials = parse_mtl(text.splitlines())
    LOG.debug("Loaded %d material(s) from %s", len(materials), mtl_path)
    return materials
