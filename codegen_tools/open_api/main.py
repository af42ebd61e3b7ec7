"""
OpenAPI code generation data builder - Writes the intermediate representation
of an OpenAPI spec as JSON for template renderers.

Usage:
    python -m codegen_tools.open_api.main --spec openapi.yaml --output ir.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ..shared.errors import SchemaError
from ..shared.logging_config import configure_logging
from ..shared.schema_loader import load_spec
from .codegen_data import build_openapi_codegen_data
from .ir import DEFAULT_SERVICE_NAME, CodeGenOptions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build code generation data from an OpenAPI specification"
    )
    parser.add_argument(
        "--spec",
        default=Path("openapi.yaml"),
        type=Path,
        help="Path to the OpenAPI specification (JSON or YAML)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output path for the JSON data (default: stdout)",
    )
    parser.add_argument(
        "--default-service-name",
        default=DEFAULT_SERVICE_NAME,
        help="Name of the service holding untagged operations",
    )
    parser.add_argument(
        "--media-type",
        dest="media_types",
        action="append",
        default=None,
        help="Preferred media type for request and response bodies (repeatable)",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pipeline debug events to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    options = CodeGenOptions(
        default_service_name=args.default_service_name,
        preferred_media_types=tuple(args.media_types or ("application/json",)),
    )

    try:
        spec = load_spec(args.spec)
        data = build_openapi_codegen_data(spec, options)
    except SchemaError as e:
        raise SystemExit(f"Error: {e}") from e

    # YAML may parse dates etc, so fall back to their string form
    output = json.dumps(data.to_dict(), indent=args.indent, default=str) + "\n"

    if args.output is None:
        sys.stdout.write(output)
        return

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(output, encoding="utf-8")
    print(
        f"Generated code generation data -> {args.output} "
        f"({len(data.models)} models, {len(data.all_operations)} operations)"
    )


if __name__ == "__main__":
    main()
