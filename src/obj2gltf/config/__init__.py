"""Configuration file support for obj2gltf."""

from .manifest import ConversionConfig

__all__ = ["ConversionConfig"]
