from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from .cli import parse_args as _cli_parse_args
from .config.manifest import ConversionConfig
from .errors import InputContractError, Obj2GltfError
from .gltf import DEFAULT_GENERATOR, create_gltf
from .obj import load_obj
from .writer import SEPARATE_BUFFER_THRESHOLD, write_gltf

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "OPTIONS",
    "convert",
    "main",
    "parse_args",
]

LOG = logging.getLogger(__name__)
PathLike = Union[str, Path]

_MB = 1024 * 1024
_SUPPORTED_OUTPUT_SUFFIXES = (".gltf",)


@dataclass(slots=True)
class ConversionOptions:
    """Knobs for one OBJ to glTF conversion."""

    embed_buffer: bool = True
    embed_image: bool = True
    separate_threshold: int = SEPARATE_BUFFER_THRESHOLD
    generator: str = DEFAULT_GENERATOR


OPTIONS = ConversionOptions()


@dataclass(slots=True)
class ConversionResult:
    """Artifacts produced for a single converted OBJ file."""

    obj_path: Path
    gltf_path: Path
    buffer_path: Optional[Path]
    counts: dict[str, int]

    def as_dict(self) -> dict[str, Any]:
        return {
            "obj": str(self.obj_path),
            "gltf": str(self.gltf_path),
            "buffer": str(self.buffer_path) if self.buffer_path else None,
            "counts": dict(self.counts),
        }


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Delegate to the CLI parser with project defaults."""

    return _cli_parse_args(
        argv,
        default_separate_threshold_mb=SEPARATE_BUFFER_THRESHOLD / _MB,
        default_generator=DEFAULT_GENERATOR,
    )


def _resolve_paths(obj_path: Optional[PathLike], gltf_path: Optional[PathLike]) -> tuple[Path, Path]:
    if obj_path is None or not str(obj_path).strip():
        raise InputContractError("obj_path is required")
    if gltf_path is None or not str(gltf_path).strip():
        raise InputContractError("gltf_path is required")

    source = Path(obj_path)
    if not source.is_file():
        raise InputContractError(f"OBJ file does not exist: {source}")

    target = Path(gltf_path)
    suffix = target.suffix.lower()
    if suffix not in _SUPPORTED_OUTPUT_SUFFIXES:
        raise InputContractError(
            f"Unsupported output extension '{target.suffix}'; expected one of {', '.join(_SUPPORTED_OUTPUT_SUFFIXES)}"
        )
    # output file is always named after the model
    return source, target.parent / f"{source.stem}{suffix}"


def convert(
    obj_path: PathLike,
    gltf_path: PathLike,
    *,
    options: Optional[ConversionOptions] = None,
    logger: logging.Logger | None = None,
) -> ConversionResult:
    """Convert ``obj_path`` into a glTF file in the directory of ``gltf_path``."""

    log = logger or LOG
    effective = replace(OPTIONS) if options is None else options
    source, target = _resolve_paths(obj_path, gltf_path)

    log.info("Converting %s -> %s", source, target)
    obj_data = load_obj(source, embed_image=effective.embed_image, image_base_dir=target.parent)
    result = create_gltf(obj_data, generator=effective.generator)
    written = write_gltf(
        result,
        target,
        separate=not effective.embed_buffer,
        separate_threshold=effective.separate_threshold,
    )
    return ConversionResult(
        obj_path=source,
        gltf_path=written.gltf_path,
        buffer_path=written.buffer_path,
        counts=result.counts(),
    )


def _options_from_args(args: argparse.Namespace) -> ConversionOptions:
    options = replace(OPTIONS)
    config_path = getattr(args, "config_path", None)
    if config_path:
        path = Path(config_path)
        try:
            options = ConversionConfig.from_file(path).apply(options)
        except OSError as exc:
            raise InputContractError(f"Could not read config file {path}: {exc}") from exc
        LOG.info("Loaded conversion defaults from %s", path)
    if getattr(args, "separate", False):
        options = replace(options, embed_buffer=False)
    if getattr(args, "separate_image", False):
        options = replace(options, embed_image=False)
    threshold_mb = getattr(args, "separate_threshold_mb", None)
    if threshold_mb is not None:
        if threshold_mb < 0:
            raise InputContractError("--separate-threshold-mb must not be negative.")
        options = replace(options, separate_threshold=int(threshold_mb * _MB))
    if getattr(args, "generator", None):
        options = replace(options, generator=args.generator)
    return options


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    output_path = args.output_path
    if output_path is None:
        output_path = Path(args.input_path).with_suffix(".gltf")
    try:
        options = _options_from_args(args)
        result = convert(args.input_path, output_path, options=options)
    except (Obj2GltfError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc
    _print_summary(result)
    return 0


# ------------- summary -------------
def _print_summary(result: ConversionResult) -> None:
    counts = result.counts
    buffer_info = f", buffer={result.buffer_path}" if result.buffer_path else ""
    print(
        f"- {result.obj_path.name}: gltf={result.gltf_path}{buffer_info}, "
        f"nodes={counts.get('nodes', 0)}, meshes={counts.get('meshes', 0)}, "
        f"primitives={counts.get('primitives', 0)}, materials={counts.get('materials', 0)}, "
        f"textures={counts.get('textures', 0)}, bytes={counts.get('bytes', 0)}"
    )
