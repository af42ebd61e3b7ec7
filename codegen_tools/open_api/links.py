"""Link resolution for array and dictionary Models."""

from __future__ import annotations

from typing import Any

import structlog

from ..shared.naming import trim_quotes
from .builder import ModelRegistry
from .ir import ARRAY, COMPOSITE_KEYWORDS, DICTIONARY, Model
from .refs import is_ref, resolve_if_ref

logger = structlog.get_logger()


def _link_element(
    spec: dict[str, Any],
    registry: ModelRegistry,
    model: Model,
    element_schema: Any,
    visited: set[Model],
) -> None:
    if is_ref(element_schema):
        target = registry.for_ref(element_schema["$ref"])
        if target is not None and model.link is None:
            model.link = target
    elif isinstance(element_schema, dict) and model.link is not None:
        link_model(spec, registry, model.link, element_schema, visited)


def link_model(
    spec: dict[str, Any],
    registry: ModelRegistry,
    model: Model,
    schema: Any,
    visited: set[Model],
) -> None:
    """Set the link of the given Model (and its nested Models) from its schema.

    Models already in ``visited`` are not re-entered, their links having been
    resolved via another path.
    """
    if model in visited or not isinstance(schema, dict):
        return
    visited.add(model)

    if model.kind == DICTIONARY:
        _link_element(spec, registry, model, schema.get("additionalProperties"), visited)
    elif model.kind == ARRAY:
        _link_element(spec, registry, model, schema.get("items"), visited)

    property_schemas = {
        trim_quotes(name): sub_schema
        for name, sub_schema in (schema.get("properties") or {}).items()
    }
    for prop in model.properties:
        if prop.name and prop.name in property_schemas:
            link_model(spec, registry, prop, resolve_if_ref(spec, property_schemas[prop.name]), visited)

    additional = schema.get("additionalProperties")
    if model.additional_properties_model is not None and isinstance(additional, dict):
        link_model(spec, registry, model.additional_properties_model, resolve_if_ref(spec, additional), visited)

    pattern_schemas = schema.get("patternProperties") or {}
    for pattern, pattern_model in model.pattern_properties_models.items():
        link_model(spec, registry, pattern_model, resolve_if_ref(spec, pattern_schemas.get(pattern)), visited)

    if model.is_composite:
        sub_schemas = schema.get(COMPOSITE_KEYWORDS[model.kind]) or []
        for constituent, sub_schema in zip(model.properties, sub_schemas):
            link_model(spec, registry, constituent, resolve_if_ref(spec, sub_schema), visited)


def ensure_model_links(spec: dict[str, Any], registry: ModelRegistry) -> set[Model]:
    """Ensure the link of every array/dictionary Model in the registry is set.

    Returns:
        The visited Models, which callers may pass on when linking further
        Models against the same registry.
    """
    schemas = (spec.get("components") or {}).get("schemas") or {}
    visited: set[Model] = set()
    for model in registry:
        schema = resolve_if_ref(spec, schemas.get(model.name))
        if schema is not None:
            link_model(spec, registry, model, schema, visited)
    logger.debug("Linked component models", visited=len(visited))
    return visited
