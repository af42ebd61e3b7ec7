"""
Code generation data assembly.

Runs the full pipeline over an OpenAPI document and assembles the
``CodeGenData`` handed to template renderers.
"""

from __future__ import annotations

from typing import Any

import structlog

from ..shared.naming import to_camel_case, to_class_name
from .builder import build_component_models
from .composites import ensure_composite_models
from .identity import disambiguate_operations
from .ir import PRIMITIVE_TYPES, CodeGenData, CodeGenOptions, Model, Operation
from .languages import annotate_model, to_python_name
from .links import ensure_model_links
from .normalise import normalise_openapi_spec_for_codegen
from .operations import build_operations

logger = structlog.get_logger()


def _unique_imports(model: Model) -> list[str]:
    """Return the named models the properties of a model refer to, excluding itself."""
    children = [
        *model.properties,
        *model.pattern_properties_models.values(),
        *([model.additional_properties_model] if model.additional_properties_model else []),
    ]
    imports: set[str] = set()
    for child in children:
        if child.ref:
            imports.add(child.ref)
        elif child.is_collection and child.type not in PRIMITIVE_TYPES:
            imports.add(child.type)
    imports.discard(model.name)
    imports.discard("")
    imports.discard("object")
    return sorted(imports)


def _operations_by_tag(operations: list[Operation]) -> tuple[dict[str, list[Operation]], list[Operation]]:
    by_tag: dict[str, list[Operation]] = {}
    untagged: list[Operation] = []
    for op in operations:
        if not op.tags:
            untagged.append(op)
        for tag in dict.fromkeys(to_camel_case(tag) for tag in op.tags):
            by_tag.setdefault(tag, []).append(op)
    return by_tag, untagged


def build_openapi_codegen_data(
    in_spec: dict[str, Any],
    options: CodeGenOptions | None = None,
) -> CodeGenData:
    """Build the data structure code is generated from for an OpenAPI spec.

    Args:
        in_spec: The parsed OpenAPI document. It is not modified.
        options: Generation options, defaults when omitted.

    Returns:
        The assembled code generation data.

    Raises:
        SchemaError: The spec cannot be generated from safely. Subclasses
            identify the problem, eg ``AmbiguousCompositeError``.
    """
    options = options or CodeGenOptions()

    # Ensure spec is ready for codegen
    spec = normalise_openapi_spec_for_codegen(in_spec)

    identities = disambiguate_operations(spec)
    registry = build_component_models(spec)
    ensure_model_links(spec, registry)
    ensure_composite_models(registry)
    result = build_operations(spec, registry, identities, options)

    visited: set[Model] = set()
    for model in registry:
        model.name_snake_case = to_python_name("model", model.name)
        model.unique_imports = _unique_imports(model)
        annotate_model(model, visited)
    for op in result.operations:
        for model in [*op.parameters, *op.responses]:
            annotate_model(model, visited)

    models = sorted(registry, key=lambda m: m.name)

    # Every operation across all services, each once
    all_operations = list({
        op.unique_name: op
        for service in result.services
        for op in service.operations
    }.values())
    operations_by_tag, untagged_operations = _operations_by_tag(all_operations)

    info = dict(spec.get("info") or {})
    logger.debug(
        "Built code generation data",
        models=len(models),
        services=len(result.services),
        operations=len(all_operations),
    )
    return CodeGenData(
        info=info,
        class_name=to_class_name(info.get("title")),
        models=models,
        services=result.services,
        all_operations=all_operations,
        operations_by_tag=operations_by_tag,
        untagged_operations=untagged_operations,
        vendor_extensions={key: value for key, value in spec.items() if key.startswith("x-")},
    )
