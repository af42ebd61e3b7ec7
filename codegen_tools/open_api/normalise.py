"""
Spec normalisation for code generation.

Brings a parsed OpenAPI document into the single dialect the rest of the
pipeline understands:

- v3.1 null unions are collapsed into the v3.0 ``nullable`` flag
- operationIds are camelCased
- inline request/response schemas and nested inline objects are hoisted into
  ``components.schemas`` so that every non-primitive gets a named model
- refs to primitive (and array) component schemas are inlined
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterator

import structlog

from ..shared.errors import SchemaValidationError, UnsupportedSpecError
from ..shared.naming import to_pascal_case, upper_first
from .identity import disambiguate_operations, iter_spec_operations, operation_id_for
from .ir import HOISTED
from .refs import SCHEMA_REF_PREFIX, is_ref, ref_name, resolve_if_ref, resolve_ref, schema_ref

logger = structlog.get_logger()

# Keys holding literal values rather than schemas
_VALUE_KEYS = frozenset({"enum", "default", "example", "examples", "const", "x-examples"})

# Keys holding maps of user chosen names, eg a property or response named "default"
_NAME_MAP_KEYS = frozenset({
    "properties", "patternProperties", "responses", "schemas", "parameters",
    "requestBodies", "headers", "paths", "callbacks", "links",
})


def _child_keys(node: dict[str, Any], in_name_map: bool) -> Iterator[tuple[str, Any, bool]]:
    """Yield (key, value, value_is_name_map) for the children of a node worth walking."""
    for key, value in node.items():
        if in_name_map:
            yield key, value, False
        elif key not in _VALUE_KEYS:
            yield key, value, key in _NAME_MAP_KEYS


@dataclass(slots=True)
class _SubSchema:
    name_parts: list[str]
    schema: dict[str, Any]
    prop_path: list[str | int]


def _spec_version(spec: dict[str, Any]) -> tuple[int, int]:
    if "swagger" in spec:
        raise UnsupportedSpecError(str(spec["swagger"]))
    version = str(spec.get("openapi") or "3.0.0")
    parts = version.split(".")
    try:
        major = int(parts[0])
        minor = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        raise UnsupportedSpecError(version) from None
    if major != 3:
        raise UnsupportedSpecError(version)
    return major, minor


def is_object_schema(schema: dict[str, Any]) -> bool:
    return schema.get("type") == "object" or (
        "type" not in schema and ("properties" in schema or "patternProperties" in schema)
    )


def is_composite_schema(schema: dict[str, Any]) -> bool:
    return bool(schema.get("allOf") or schema.get("anyOf") or schema.get("oneOf"))


def is_string_enum(schema: dict[str, Any]) -> bool:
    return schema.get("type") == "string" and bool(schema.get("enum"))


def _is_null_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema.get("type") == "null"


def _collapse_null_unions(node: Any, in_name_map: bool = False) -> None:
    """Rewrite v3.1 nullability in place to the v3.0 ``nullable`` convention."""
    if isinstance(node, list):
        for item in node:
            _collapse_null_unions(item)
        return
    if not isinstance(node, dict):
        return
    if in_name_map:
        for value in node.values():
            _collapse_null_unions(value)
        return

    types = node.get("type")
    if isinstance(types, list):
        non_null = [t for t in types if t != "null"]
        if len(non_null) < len(types) and non_null:
            node["nullable"] = True
        if not non_null:
            node["type"] = "null"
        elif len(non_null) == 1:
            node["type"] = non_null[0]
        else:
            del node["type"]
            branches: list[dict[str, Any]] = []
            for t in non_null:
                branch: dict[str, Any] = {"type": t}
                if t == "array" and "items" in node:
                    branch["items"] = node.pop("items")
                branches.append(branch)
            node["anyOf"] = branches

    for key in ("anyOf", "oneOf"):
        variants = node.get(key)
        if not isinstance(variants, list):
            continue
        non_null = [v for v in variants if not _is_null_schema(v)]
        if len(non_null) == len(variants) or not non_null:
            continue
        node["nullable"] = True
        if len(non_null) > 1:
            node[key] = non_null
            continue
        del node[key]
        branch = non_null[0]
        if is_ref(branch):
            node["$ref"] = branch["$ref"]
        else:
            for branch_key, value in branch.items():
                node.setdefault(branch_key, value)

    if "const" in node and "enum" not in node:
        node["enum"] = [node["const"]]

    for _, value, is_name_map in _child_keys(node, in_name_map=False):
        _collapse_null_unions(value, is_name_map)


def _has_sub_schemas_to_visit(schema: Any) -> bool:
    return (
        isinstance(schema, dict)
        and not is_ref(schema)
        and (
            is_object_schema(schema)
            or schema.get("type") == "array"
            or is_composite_schema(schema)
            or bool(schema.get("not"))
            or is_string_enum(schema)
        )
    )


def _is_hoistable(schema: dict[str, Any]) -> bool:
    return (
        (is_object_schema(schema) and bool(schema.get("properties") or schema.get("patternProperties")))
        or is_composite_schema(schema)
        or is_string_enum(schema)
    )


def _titled(schema: dict[str, Any], fallback: list[str]) -> list[str]:
    title = schema.get("title")
    return [to_pascal_case(title)] if title else fallback


def _filter_inline_composite_schemas(
    schemas: list[Any],
    name_parts: list[str],
    prefix: str,
    keyword: str,
) -> list[_SubSchema]:
    sub_schemas = []
    inline_index = 0
    for i, schema in enumerate(schemas):
        if _has_sub_schemas_to_visit(schema):
            suffix = "" if inline_index == 0 else str(inline_index)
            sub_schemas.append(_SubSchema(
                name_parts=_titled(schema, [*name_parts, f"{prefix}{suffix}"]),
                schema=schema,
                prop_path=[keyword, i],
            ))
            inline_index += 1
    return sub_schemas


def _hoist_inline_sub_schemas(
    name_parts: list[str],
    schema: dict[str, Any],
) -> list[tuple[str, dict[str, Any]]]:
    """Replace nested inline non-primitive schemas with refs.

    Returns the (name, schema) pairs to add to ``components.schemas``.
    """
    inline: list[_SubSchema] = []
    if _has_sub_schemas_to_visit(schema.get("not")):
        inline.append(_SubSchema(_titled(schema["not"], [*name_parts, "Not"]), schema["not"], ["not"]))
    for keyword, prefix in (("anyOf", "AnyOf"), ("allOf", "AllOf"), ("oneOf", "OneOf")):
        if isinstance(schema.get(keyword), list):
            inline.extend(_filter_inline_composite_schemas(schema[keyword], name_parts, prefix, keyword))
    if _has_sub_schemas_to_visit(schema.get("items")):
        inline.append(_SubSchema(_titled(schema["items"], [*name_parts, "Item"]), schema["items"], ["items"]))
    for prop_name, prop in (schema.get("properties") or {}).items():
        if _has_sub_schemas_to_visit(prop):
            inline.append(_SubSchema(_titled(prop, [*name_parts, prop_name]), prop, ["properties", prop_name]))
    additional = schema.get("additionalProperties")
    if _has_sub_schemas_to_visit(additional):
        inline.append(_SubSchema(_titled(additional, [*name_parts, "Value"]), additional, ["additionalProperties"]))
    for i, (pattern, prop) in enumerate((schema.get("patternProperties") or {}).items()):
        if _has_sub_schemas_to_visit(prop):
            inline.append(_SubSchema(
                _titled(prop, [*name_parts, to_pascal_case(pattern), str(i)]),
                prop,
                ["patternProperties", pattern],
            ))

    # Depth first, so nested schemas are replaced before their parents are copied
    recursive = [
        hoisted
        for sub in inline
        for hoisted in _hoist_inline_sub_schemas(sub.name_parts, sub.schema)
    ]

    hoisted_here = []
    for sub in inline:
        if not _is_hoistable(sub.schema):
            continue
        name = "".join(upper_first(part) for part in sub.name_parts)
        hoisted_here.append((name, {**copy.deepcopy(sub.schema), HOISTED: True}))

        container: Any = schema
        for part in sub.prop_path[:-1]:
            container = container[part]
        container[sub.prop_path[-1]] = {"$ref": schema_ref(name)}

    return hoisted_here + recursive


def _add_hoisted_schema(schemas: dict[str, Any], name: str, schema: dict[str, Any], origin: str) -> None:
    if name in schemas:
        raise SchemaValidationError(
            f"Inline schema from {origin} would be hoisted as {name}, which is already defined",
            name,
        )
    schemas[name] = schema


def _hoist_operation_schemas(spec: dict[str, Any], schemas: dict[str, Any]) -> None:
    identities = disambiguate_operations(spec)
    for path, method, operation in iter_spec_operations(spec):
        identity = identities[(path, method)]
        prefix = to_pascal_case(identity.unique_name)

        for code, response in (operation.get("responses") or {}).items():
            response = resolve_if_ref(spec, response)
            media = ((response or {}).get("content") or {}).get("application/json") or {}
            schema = media.get("schema")
            if _is_hoistable_body(schema):
                name = f"{prefix}{code}Response"
                _add_hoisted_schema(schemas, name, schema, f"{method.upper()} {path} response {code}")
                media["schema"] = {"$ref": schema_ref(name)}
                logger.debug("Hoisted inline response schema", schema=name)

        request_body = resolve_if_ref(spec, operation.get("requestBody"))
        media = ((request_body or {}).get("content") or {}).get("application/json") or {}
        schema = media.get("schema")
        if _is_hoistable_body(schema):
            name = f"{prefix}RequestContent"
            _add_hoisted_schema(schemas, name, schema, f"{method.upper()} {path} request body")
            media["schema"] = {"$ref": schema_ref(name)}
            logger.debug("Hoisted inline request schema", schema=name)


def _is_hoistable_body(schema: Any) -> bool:
    return (
        isinstance(schema, dict)
        and not is_ref(schema)
        and (
            is_object_schema(schema)
            or schema.get("type") == "array"
            or is_composite_schema(schema)
            or is_string_enum(schema)
        )
    )


def _should_inline(target: Any) -> bool:
    return (
        isinstance(target, dict)
        and bool(target.get("type"))
        and target.get("type") != "object"
        and not is_string_enum(target)
    )


def _inline_primitive_refs(
    spec: dict[str, Any],
    node: Any,
    expanding: list[str],
    inlined: set[str],
    retained: set[str],
    in_name_map: bool = False,
) -> Any:
    if isinstance(node, list):
        return [_inline_primitive_refs(spec, item, expanding, inlined, retained) for item in node]
    if not isinstance(node, dict):
        return node

    ref = None if in_name_map else node.get("$ref")
    if isinstance(ref, str) and ref.startswith(SCHEMA_REF_PREFIX):
        target = resolve_ref(spec, ref)
        if _should_inline(target):
            if ref in expanding:
                # Cyclic, so this ref and its target must stay
                retained.add(ref)
                return dict(node)
            inlined.add(ref)
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            expanded = _inline_primitive_refs(
                spec, copy.deepcopy(target), [*expanding, ref], inlined, retained
            )
            return {**expanded, **siblings}

    walked = {
        key: _inline_primitive_refs(spec, value, expanding, inlined, retained, is_name_map)
        for key, value, is_name_map in _child_keys(node, in_name_map)
    }
    # Literal values are kept as they are, in their original position
    return {key: walked.get(key, value) for key, value in node.items()}


def normalise_openapi_spec_for_codegen(in_spec: dict[str, Any]) -> dict[str, Any]:
    """Return a normalised copy of the given spec, ready for code generation.

    Raises:
        UnsupportedSpecError: The document is not OpenAPI v3.
    """
    _, minor = _spec_version(in_spec)

    # Clone the spec so we're free to mutate it
    spec = copy.deepcopy(in_spec)

    if minor >= 1:
        _collapse_null_unions(spec)

    components = spec.setdefault("components", {})
    if components is None:
        components = spec["components"] = {}
    schemas = components.get("schemas")
    if schemas is None:
        schemas = components["schemas"] = {}

    for path, method, operation in iter_spec_operations(spec):
        operation["operationId"] = operation_id_for(path, method, operation)

    _hoist_operation_schemas(spec, schemas)

    for name, schema in list(schemas.items()):
        if isinstance(schema, dict) and not is_ref(schema):
            for hoisted_name, hoisted in _hoist_inline_sub_schemas([name], schema):
                _add_hoisted_schema(schemas, hoisted_name, hoisted, f"schema {name}")
                logger.debug("Hoisted nested inline schema", schema=hoisted_name, parent=name)

    inlined: set[str] = set()
    retained: set[str] = set()
    spec = _inline_primitive_refs(spec, spec, [], inlined, retained)

    # Delete the primitive component schemas which are no longer referenced
    for ref in sorted(inlined - retained):
        spec["components"]["schemas"].pop(ref_name(ref), None)

    logger.debug(
        "Normalised spec",
        schemas=len(spec["components"]["schemas"]),
        inlined=len(inlined - retained),
    )
    return spec
