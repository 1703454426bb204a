from __future__ import annotations

import argparse
from typing import Sequence


class _JoinPathAction(argparse.Action):
    """Join successive CLI tokens into a single path string (handles spaces gracefully)."""

    def __call__(self, parser, namespace, values, option_string=None):
        joined = " ".join(values).strip()
        setattr(namespace, self.dest, joined or None)


def parse_args(
    argv: Sequence[str] | None = None,
    *,
    default_separate_threshold_mb: float,
    default_generator: str,
) -> argparse.Namespace:
    """Parse the CLI arguments for the OBJ to glTF converter."""

    parser = argparse.ArgumentParser(description="Convert OBJ to glTF")
    parser.add_argument(
        "-i",
        "--input",
        dest="input_path",
        nargs="+",
        action=_JoinPathAction,
        required=True,
        help="Path to the OBJ file",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_path",
        nargs="+",
        action=_JoinPathAction,
        default=None,
        help="Output .gltf path; the file is named after the OBJ model (default: next to the OBJ)",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        nargs="+",
        action=_JoinPathAction,
        default=None,
        help="Path to a YAML or JSON file with conversion defaults",
    )
    parser.add_argument(
        "-s",
        "--separate",
        dest="separate",
        action="store_true",
        help="Write the geometry buffer to a separate .bin file instead of embedding it",
    )
    parser.add_argument(
        "-t",
        "--separate-image",
        dest="separate_image",
        action="store_true",
        help="Reference textures by relative path instead of embedding them as data URIs",
    )
    parser.add_argument(
        "--separate-threshold-mb",
        dest="separate_threshold_mb",
        type=float,
        default=None,
        help=(
            "Buffers larger than this many megabytes are always written to a .bin file "
            f"(default: {default_separate_threshold_mb:.0f})"
        ),
    )
    parser.add_argument(
        "--generator",
        dest="generator",
        default=None,
        help=f"Value written to asset.generator (default: {default_generator})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)
