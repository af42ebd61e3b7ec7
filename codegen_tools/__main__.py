#!/usr/bin/env python3
"""
Unified code generation tools CLI.

Usage:
    python -m codegen_tools <command> [options]

Commands:
    codegen-data    Build code generation data (JSON) from an OpenAPI spec
    normalise       Write the normalised form of an OpenAPI spec

Examples:
    python -m codegen_tools codegen-data --spec openapi.yaml --output ir.json
    python -m codegen_tools normalise --spec openapi.yaml --output normalised.yaml
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml


def cmd_codegen_data(args: list[str]) -> int:
    """Build code generation data."""
    from codegen_tools.open_api import main as codegen_data_main
    try:
        codegen_data_main.main(args)
        return 0
    except SystemExit as e:
        if isinstance(e.code, int) or e.code is None:
            return e.code or 0
        print(e.code, file=sys.stderr)
        return 1


def cmd_normalise(args: list[str]) -> int:
    """Write a normalised spec."""
    from codegen_tools.open_api.normalise import normalise_openapi_spec_for_codegen
    from codegen_tools.shared.errors import SchemaError
    from codegen_tools.shared.logging_config import configure_logging
    from codegen_tools.shared.schema_loader import load_spec

    parser = argparse.ArgumentParser(description="Normalise an OpenAPI spec for code generation")
    parser.add_argument("--spec", default=Path("openapi.yaml"), type=Path, help="Path to the OpenAPI specification (JSON or YAML)")
    parser.add_argument("--output", type=Path, default=None, help="Output path (default: stdout). A .json suffix writes JSON, otherwise YAML")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline debug events to stderr")
    parsed = parser.parse_args(args)
    configure_logging(parsed.verbose)

    try:
        spec = normalise_openapi_spec_for_codegen(load_spec(parsed.spec))
    except SchemaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed.output is not None and parsed.output.suffix.lower() == ".json":
        output = json.dumps(spec, indent=2, default=str) + "\n"
    else:
        output = yaml.safe_dump(spec, sort_keys=False, allow_unicode=True)

    if parsed.output is None:
        sys.stdout.write(output)
    else:
        parsed.output.parent.mkdir(parents=True, exist_ok=True)
        parsed.output.write_text(output, encoding="utf-8")
        print(f"Normalised spec -> {parsed.output}")
    return 0


COMMANDS = {
    "codegen-data": (cmd_codegen_data, "Build code generation data (JSON) from an OpenAPI spec"),
    "normalise": (cmd_normalise, "Write the normalised form of an OpenAPI spec"),
}


def main() -> int:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:14} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = sys.argv[1]
    args = sys.argv[2:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
