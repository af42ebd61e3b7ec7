"""
Composite (allOf, anyOf, oneOf) model flattening.

Splits the constituents of every composite Model into the named models it is
composed of and the primitives (including enums, arrays and dictionaries)
which are serialised as plain values, and rejects compositions a generated
client could not tell apart at runtime.
"""

from __future__ import annotations

import structlog

from ..shared.errors import AmbiguousCompositeError, InvalidAllOfError
from .builder import ModelRegistry
from .ir import ALL_OF, ARRAY, COMPOSITE_KEYWORDS, ENUM, PRIMITIVE_TYPES, REFERENCE, Model

logger = structlog.get_logger()

DATE_FORMATS = ("date", "date-time")


def is_primitive_array(model: Model, visited: set[Model] | None = None) -> bool:
    """Return whether the model is a (possibly nested) collection of primitives."""
    visited = set() if visited is None else visited
    if model in visited:
        # Collections which contain themselves are not primitive
        return False
    visited.add(model)

    if model.link is not None and model.is_collection:
        return is_primitive_array(model.link, visited)
    return model.type in PRIMITIVE_TYPES and model.format not in DATE_FORMATS


def flatten_composite_model(registry: ModelRegistry, model: Model, visited: set[Model]) -> None:
    """Populate composed_models and composed_primitives for a composite Model.

    Raises:
        AmbiguousCompositeError: More than one constituent is an array of
            non-primitives.
        InvalidAllOfError: An allOf composes a non-object constituent.
    """
    if not model.is_composite or model in visited:
        return
    visited.add(model)

    constituents = [p for p in model.properties if not p.name]
    references = [p for p in constituents if p.kind in (REFERENCE, ENUM) and p.ref]
    composed_primitives = [p for p in constituents if p not in references]

    composed_models = [m for m in (registry.get(r.ref) for r in references) if m is not None]
    # Nested composites are flattened first, so allOf mixins see every inherited property
    for composed in composed_models:
        flatten_composite_model(registry, composed, visited)

    # Enums are models, but they serialise as primitives
    composed_primitives.extend(m for m in composed_models if m.kind == ENUM)
    composed_models = [m for m in composed_models if m.kind != ENUM]

    composition = COMPOSITE_KEYWORDS[model.kind]
    array_models = [
        m for m in composed_primitives
        if m.kind == ARRAY and not is_primitive_array(m)
    ]
    if len(array_models) > 1:
        raise AmbiguousCompositeError(model.name, composition)

    if model.kind == ALL_OF and composed_primitives:
        raise InvalidAllOfError(model.name)

    model.composed_models = composed_models
    model.composed_primitives = composed_primitives


def ensure_composite_models(registry: ModelRegistry) -> None:
    """Flatten every composite Model in the registry."""
    visited: set[Model] = set()
    for model in registry:
        flatten_composite_model(registry, model, visited)
    logger.debug("Flattened composite models", composites=len(visited))
