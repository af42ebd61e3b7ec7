"""Helpers for local JSON-pointer references within an OpenAPI document."""

from __future__ import annotations

from typing import Any

from ..shared.errors import UnresolvedRefError

SCHEMA_REF_PREFIX = "#/components/schemas/"


def is_ref(obj: Any) -> bool:
    """Return whether or not the given OpenAPI object is a reference."""
    return isinstance(obj, dict) and "$ref" in obj


def split_ref(ref: str) -> list[str]:
    """Split a reference into its component parts.

    eg: #/components/schemas/Foo -> ["components", "schemas", "Foo"]
    """
    return [
        part.replace("~1", "/").replace("~0", "~")
        for part in ref[2:].split("/")
    ]


def ref_name(ref: str) -> str:
    """Return the last segment of a reference, ie the component name."""
    return split_ref(ref)[-1]


def schema_ref(name: str) -> str:
    return f"{SCHEMA_REF_PREFIX}{name.replace('~', '~0').replace('/', '~1')}"


def resolve_ref(spec: dict[str, Any], ref: str) -> Any:
    """Resolve the given reference in the spec, following chains of references."""
    seen: list[str] = []
    while True:
        if not ref.startswith("#/"):
            raise UnresolvedRefError(ref, "only local references are supported")
        if ref in seen:
            raise UnresolvedRefError(ref, "circular reference chain")
        seen.append(ref)

        resolved: Any = spec
        for part in split_ref(ref):
            if isinstance(resolved, dict):
                resolved = resolved.get(part)
            elif isinstance(resolved, list) and part.isdigit() and int(part) < len(resolved):
                resolved = resolved[int(part)]
            else:
                resolved = None
            if resolved is None:
                raise UnresolvedRefError(ref)

        if not is_ref(resolved):
            return resolved
        ref = resolved["$ref"]


def resolve_if_ref(spec: dict[str, Any], possible_ref: Any) -> Any:
    """Resolve the given object in an openapi spec if it's a ref."""
    if is_ref(possible_ref):
        return resolve_ref(spec, possible_ref["$ref"])
    return possible_ref
