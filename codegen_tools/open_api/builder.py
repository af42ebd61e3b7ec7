"""
Model construction from normalised OpenAPI schemas.

A component schema becomes one canonical Model in the ``ModelRegistry``.
Everything which points at it via ``$ref`` gets a lightweight ``reference``
(or ``enum``) Model naming it; the registry maps those names back to the
canonical Model for the later passes.
"""

from __future__ import annotations

from typing import Any, Iterator

import structlog

from ..shared.errors import SchemaValidationError
from ..shared.naming import trim_quotes
from .ir import (
    ALL_OF,
    ANY_OF,
    ARRAY,
    DICTIONARY,
    ENUM,
    HOISTED,
    ONE_OF,
    PRIMITIVE,
    REFERENCE,
    Model,
)
from .refs import SCHEMA_REF_PREFIX, is_ref, ref_name, resolve_ref

logger = structlog.get_logger()


class ModelRegistry:
    """Canonical Models by name, in insertion order."""

    def __init__(self) -> None:
        self._models: dict[str, Model] = {}

    def add(self, model: Model) -> Model:
        if model.name in self._models:
            raise SchemaValidationError(
                f"Model name {model.name} is used by more than one schema",
                model.name,
            )
        self._models[model.name] = model
        return model

    def get(self, name: str | None) -> Model | None:
        if not name:
            return None
        return self._models.get(name)

    def for_ref(self, ref: str) -> Model | None:
        """Return the canonical Model for a component schema reference."""
        if not ref.startswith(SCHEMA_REF_PREFIX):
            return None
        return self._models.get(ref_name(ref))

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[Model]:
        return iter(list(self._models.values()))

    def __len__(self) -> int:
        return len(self._models)


def _composite_keyword(schema: dict[str, Any]) -> tuple[str, str] | None:
    for kind, keyword in ((ONE_OF, "oneOf"), (ANY_OF, "anyOf"), (ALL_OF, "allOf")):
        if isinstance(schema.get(keyword), list) and schema[keyword]:
            return kind, keyword
    return None


def _vendor_extensions(obj: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in obj.items() if key.startswith("x-")}


def _primitive_type(schema: dict[str, Any]) -> str:
    schema_type = schema.get("type")
    if schema_type == "string" and schema.get("format") == "binary":
        return "binary"
    if isinstance(schema_type, str) and schema_type:
        return schema_type
    return "any"


def _apply_schema_attributes(model: Model, schema: dict[str, Any]) -> None:
    model.format = schema.get("format")
    schema_type = schema.get("type")
    model.openapi_type = schema_type if isinstance(schema_type, str) else None
    if model.description is None:
        model.description = schema.get("description")
    model.deprecated = model.deprecated or bool(schema.get("deprecated"))
    model.is_nullable = model.is_nullable or bool(schema.get("nullable"))
    model.is_read_only = model.is_read_only or bool(schema.get("readOnly"))
    model.is_not_schema = bool(schema.get("not"))
    model.vendor_extensions = _vendor_extensions(schema)
    model.is_hoisted = bool(model.vendor_extensions.get(HOISTED))


def _collection_type(link: Model | None, items: Any) -> str:
    if is_ref(items):
        return ref_name(items["$ref"])
    return link.type if link is not None else "any"


def _build_element(spec: dict[str, Any], items: Any) -> Model | None:
    # Referenced elements are linked to the registry later on
    if is_ref(items):
        return None
    if isinstance(items, dict) and items:
        return build_model(spec, items)
    return Model(type="any")


def _populate_reference(spec: dict[str, Any], model: Model, schema: dict[str, Any]) -> None:
    target_name = ref_name(schema["$ref"])
    target = resolve_ref(spec, schema["$ref"])
    if not isinstance(target, dict):
        target = {}

    _apply_schema_attributes(model, target)
    model.is_hoisted = False
    # Siblings of the $ref override the target, eg a nullable reference
    model.is_nullable = model.is_nullable or bool(schema.get("nullable"))
    if schema.get("description"):
        model.description = schema["description"]
    model.vendor_extensions.update(_vendor_extensions(schema))

    model.kind = ENUM if target.get("enum") else REFERENCE
    model.type = target_name
    model.ref = target_name


def _populate_object(spec: dict[str, Any], model: Model, schema: dict[str, Any]) -> None:
    properties = schema.get("properties") or {}
    pattern_properties = schema.get("patternProperties") or {}
    additional = schema.get("additionalProperties")

    if not properties and not pattern_properties:
        # Only additional properties, so this is a dictionary
        model.kind = DICTIONARY
        model.link = _build_element(spec, additional if isinstance(additional, dict) else {})
        model.type = _collection_type(model.link, additional)
        return

    model.kind = REFERENCE
    model.type = model.name or "object"
    required = set(schema.get("required") or [])
    model.properties = [
        build_model(spec, prop_schema, trim_quotes(prop_name), is_required=prop_name in required)
        for prop_name, prop_schema in properties.items()
        if isinstance(prop_schema, dict)
    ]
    model.pattern_properties_models = {
        pattern: build_model(spec, prop_schema)
        for pattern, prop_schema in pattern_properties.items()
        if isinstance(prop_schema, dict)
    }
    if additional:
        model.has_additional_properties = True
        model.additional_properties_model = build_model(
            spec, additional if isinstance(additional, dict) else {}
        )


def _populate(spec: dict[str, Any], model: Model, schema: dict[str, Any]) -> None:
    if is_ref(schema):
        _populate_reference(spec, model, schema)
        return

    _apply_schema_attributes(model, schema)
    model.default = schema.get("default")

    if schema.get("enum"):
        model.kind = ENUM
        model.type = _primitive_type(schema)
        model.enum = list(schema["enum"])
        return

    composite = _composite_keyword(schema)
    if composite is not None:
        model.kind, keyword = composite
        model.type = model.name or "object"
        # Constituents are unnamed, which tells them apart from object properties
        model.properties = [
            build_model(spec, sub_schema)
            for sub_schema in schema[keyword]
            if isinstance(sub_schema, dict)
        ]
        return

    schema_type = schema.get("type")
    if schema_type == "array" or (schema_type is None and "items" in schema):
        model.kind = ARRAY
        items = schema.get("items")
        model.link = _build_element(spec, items)
        model.type = _collection_type(model.link, items)
        return

    if schema_type == "object" or (
        schema_type is None
        and any(key in schema for key in ("properties", "patternProperties", "additionalProperties"))
    ):
        _populate_object(spec, model, schema)
        return

    model.kind = PRIMITIVE
    model.type = _primitive_type(schema)


def build_model(
    spec: dict[str, Any],
    schema: dict[str, Any],
    name: str = "",
    *,
    cls: type[Model] = Model,
    **attrs: Any,
) -> Model:
    """Build a Model for the given schema occurrence.

    Args:
        spec: The normalised spec, used to resolve refs.
        schema: The schema (or reference to a schema) to build from.
        name: The model name, empty for anonymous occurrences.
        cls: The Model subclass to construct, eg Parameter or Response.
        **attrs: Extra constructor arguments for ``cls``.

    Returns:
        The populated Model. Links to referenced array items and dictionary
        values are left unset for ``ensure_model_links``.
    """
    model = cls(name=name, **attrs)
    _populate(spec, model, schema if isinstance(schema, dict) else {})
    return model


def build_component_models(spec: dict[str, Any]) -> ModelRegistry:
    """Build the canonical Models for every component schema, in document order."""
    registry = ModelRegistry()
    schemas = (spec.get("components") or {}).get("schemas") or {}
    for name, schema in schemas.items():
        registry.add(build_model(spec, schema, name))
    logger.debug("Built component models", count=len(registry))
    return registry
