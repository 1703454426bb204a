"""Map MTL material tables onto KHR_materials_common materials and textures."""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Any, Dict, List, Mapping, Optional, Union

from .ids import IdAllocator
from .model import Color, Image, Material

__all__ = [
    "register_images",
    "map_material",
    "create_sampler",
    "DEFAULT_AMBIENT",
    "DEFAULT_DIFFUSE",
    "DEFAULT_EMISSION",
    "DEFAULT_SPECULAR",
]

LOG = logging.getLogger(__name__)

GL_NEAREST = 9728
GL_LINEAR = 9729
GL_CLAMP_TO_EDGE = 33071
GL_TEXTURE_2D = 3553
GL_UNSIGNED_BYTE = 5121

DEFAULT_AMBIENT: Color = [0.0, 0.0, 0.0, 1.0]
DEFAULT_DIFFUSE: Color = [0.5, 0.5, 0.5, 1.0]
DEFAULT_EMISSION: Color = [0.0, 0.0, 0.0, 1.0]
DEFAULT_SPECULAR: Color = [0.0, 0.0, 0.0, 1.0]

ChannelValue = Union[str, List[float]]


def create_sampler() -> Dict[str, int]:
    return {
        "magFilter": GL_LINEAR,
        "minFilter": GL_NEAREST,
        "wrapS": GL_CLAMP_TO_EDGE,
        "wrapT": GL_CLAMP_TO_EDGE,
    }


def _image_base_name(image_path: str) -> str:
    return PurePath(image_path.replace("\\", "/")).stem or "image"


def register_images(
    images: Mapping[str, Image],
    allocator: IdAllocator,
    sampler_id: str,
    document: Dict[str, Any],
) -> Dict[str, str]:
    """Add one image and one texture per image-table entry.

    Image identity belongs to the caller: every entry is registered, and
    calling this twice registers the table twice under fresh identifiers.
    Returns ``{image path: texture id}``.
    """

    texture_ids: Dict[str, str] = {}
    for image_path, image in images.items():
        image_id = allocator.allocate(_image_base_name(image_path))
        texture_id = allocator.allocate(f"texture_{image_id}")
        document["images"][image_id] = {
            "name": image_id,
            "uri": image.uri,
        }
        document["textures"][texture_id] = {
            "format": image.format,
            "internalFormat": image.format,
            "sampler": sampler_id,
            "source": image_id,
            "target": GL_TEXTURE_2D,
            "type": GL_UNSIGNED_BYTE,
        }
        texture_ids[image_path] = texture_id
        LOG.debug("Registered image %s as %s (texture %s)", image_path, image_id, texture_id)
    return texture_ids


def _channel(
    texture_path: Optional[str],
    color: Optional[Color],
    default: Color,
    texture_ids: Mapping[str, str],
) -> ChannelValue:
    if texture_path:
        texture_id = texture_ids.get(texture_path)
        if texture_id is not None:
            return texture_id
    if color is not None:
        return [float(color[0]), float(color[1]), float(color[2]), 1.0]
    return list(default)


def _has_specular(specular: ChannelValue, shininess: float) -> bool:
    if shininess <= 0.0 or isinstance(specular, str):
        return False
    return any(component > 0.0 for component in specular[:3])


def map_material(
    name: str,
    material: Material,
    texture_ids: Mapping[str, str],
) -> Dict[str, Any]:
    """Convert one material into a glTF 1.0 ``KHR_materials_common`` material."""

    ambient = _channel(material.ambient_color_map, material.ambient_color, DEFAULT_AMBIENT, texture_ids)
    diffuse = _channel(material.diffuse_color_map, material.diffuse_color, DEFAULT_DIFFUSE, texture_ids)
    emission = _channel(material.emission_color_map, material.emission_color, DEFAULT_EMISSION, texture_ids)
    specular = _channel(material.specular_color_map, material.specular_color, DEFAULT_SPECULAR, texture_ids)
    shininess = float(material.specular_shininess) if material.specular_shininess is not None else 0.0
    technique = "PHONG" if _has_specular(specular, shininess) else "LAMBERT"

    return {
        "name": name,
        "extensions": {
            "KHR_materials_common": {
                "technique": technique,
                "values": {
                    "ambient": ambient,
                    "diffuse": diffuse,
                    "emission": emission,
                    "specular": specular,
                    "shininess": shininess,
                },
            }
        },
    }
