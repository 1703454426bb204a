from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

import yaml

if TYPE_CHECKING:  # pragma: no cover
    from ..conversion import ConversionOptions

log = logging.getLogger(__name__)

_MB = 1024 * 1024


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ("1", "true", "yes", "on"):
            return True
        if normalized in ("0", "false", "no", "off"):
            return False
    raise ValueError(f"Config key '{key}' must be a boolean, got {value!r}")


@dataclass
class ConversionConfig:
    """Conversion defaults loaded from a YAML or JSON file.

    ``None`` fields leave the corresponding option untouched.
    """

    embed_buffer: Optional[bool] = None
    embed_image: Optional[bool] = None
    separate_threshold: Optional[int] = None
    generator: Optional[str] = None

    _KEYS = ("embed_buffer", "embed_image", "separate_threshold", "separate_threshold_mb", "generator")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ConversionConfig":
        section = data.get("conversion", data)
        if not isinstance(section, dict):
            raise ValueError("Config 'conversion' section must be a mapping")
        for key in section:
            if key not in cls._KEYS:
                log.warning("Ignoring unknown config key '%s'", key)

        embed_buffer = section.get("embed_buffer")
        embed_image = section.get("embed_image")
        threshold: Optional[int] = None
        try:
            if section.get("separate_threshold") is not None:
                threshold = int(section["separate_threshold"])
            elif section.get("separate_threshold_mb") is not None:
                threshold = int(float(section["separate_threshold_mb"]) * _MB)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid separate threshold in config: {exc}") from exc
        if threshold is not None and threshold < 0:
            raise ValueError("Config separate threshold must not be negative")
        generator = section.get("generator")

        return cls(
            embed_buffer=_as_bool(embed_buffer, "embed_buffer") if embed_buffer is not None else None,
            embed_image=_as_bool(embed_image, "embed_image") if embed_image is not None else None,
            separate_threshold=threshold,
            generator=(str(generator).strip() or None) if generator is not None else None,
        )

    @classmethod
    def from_file(cls, path: Path) -> "ConversionConfig":
        text = path.read_text(encoding="utf-8")
        data = cls._load_data_from_text(text, suffix=path.suffix)
        return cls.from_mapping(data)

    @classmethod
    def from_text(cls, text: str, *, suffix: str) -> "ConversionConfig":
        data = cls._load_data_from_text(text, suffix=suffix)
        return cls.from_mapping(data)

    def apply(self, options: "ConversionOptions") -> "ConversionOptions":
        overrides: Dict[str, Any] = {}
        if self.embed_buffer is not None:
            overrides["embed_buffer"] = self.embed_buffer
        if self.embed_image is not None:
            overrides["embed_image"] = self.embed_image
        if self.separate_threshold is not None:
            overrides["separate_threshold"] = self.separate_threshold
        if self.generator:
            overrides["generator"] = self.generator
        return replace(options, **overrides) if overrides else options

    @staticmethod
    def _load_data_from_text(text: str, *, suffix: str) -> Dict[str, Any]:
        ext = (suffix or "").lower()
        if ext in {".yaml", ".yml"}:
            loaded = yaml.safe_load(text)
            if loaded is None:
                return {}
            if not isinstance(loaded, dict):
                raise ValueError("YAML config must define a mapping at the top level")
            return loaded
        if ext == ".json":
            loaded = json.loads(text)
            if not isinstance(loaded, dict):
                raise ValueError("JSON config must define a mapping at the top level")
            return loaded
        raise ValueError(f"Unsupported config type: {suffix}")


__all__ = ["ConversionConfig"]
