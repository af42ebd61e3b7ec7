"""Spec loading utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .errors import SchemaError


def load_spec(spec_path: Path) -> dict[str, Any]:
    """Load an OpenAPI document from a YAML or JSON file.

    Args:
        spec_path: Path to the document.

    Returns:
        The parsed document.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        content = spec_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read spec file: {e}", str(spec_path)) from e

    try:
        if spec_path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaError(f"Invalid document: {e}", str(spec_path)) from e

    if not isinstance(data, dict):
        raise SchemaError("Spec root must be a mapping", str(spec_path))

    return data
