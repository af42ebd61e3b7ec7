"""
Operation building.

Attaches parameter and response Models to every path + method in the spec,
synthesises the request parameter models generated clients accept, and
groups operations into services by tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

import structlog

from ..shared.errors import AmbiguousResponseError
from ..shared.naming import to_kebab_case, to_pascal_case, to_snake_case, upper_first
from .builder import ModelRegistry, build_model
from .composites import flatten_composite_model
from .identity import OperationIdentity, iter_spec_operations
from .ir import (
    COLLECTION_TYPES,
    COMPOSITE_KEYWORDS,
    CURSOR,
    DICTIONARY,
    MUTATION,
    QUERY,
    REFERENCE,
    STREAMING,
    CodeGenOptions,
    Model,
    Operation,
    Parameter,
    Response,
    Service,
)
from .languages import to_python_name
from .links import link_model
from .refs import resolve_if_ref

logger = structlog.get_logger()

# HTTP methods treated as mutations unless overridden with x-query
MUTATION_METHODS: Final[frozenset[str]] = frozenset({"PATCH", "POST", "PUT", "DELETE"})

# Query parameter style -> OpenAPI v2 collectionFormat when not exploded
QUERY_COLLECTION_FORMATS: Final[dict[str, str]] = {
    "spaceDelimited": "ssv",
    "pipeDelimited": "tsv",
    "simple": "csv",
    "form": "csv",
}

DEFAULT_CURSOR_PROPERTY: Final = "cursor"


@dataclass(slots=True)
class OperationsResult:
    """Operations and the services grouping them."""
    operations: list[Operation]
    services: list[Service]


def _vendor_extensions(obj: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in obj.items() if key.startswith("x-")}


def _preferred_media_type(content: dict[str, Any], options: CodeGenOptions) -> str | None:
    for media_type in options.preferred_media_types:
        if media_type in content:
            return media_type
    return next(iter(content), None)


def collection_format(location: str, spec_parameter: dict[str, Any]) -> str | None:
    """Translate OpenAPI v3 style/explode into an OpenAPI v2 style collectionFormat."""
    if location not in ("query", "header"):
        return None
    style = spec_parameter.get("style") or ("form" if location == "query" else "simple")
    explode = spec_parameter.get("explode", style == "form")
    if explode:
        return "multi"
    if location == "query":
        return QUERY_COLLECTION_FORMATS.get(style, "multi")
    return "csv"


def _merged_spec_parameters(
    spec: dict[str, Any],
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> list[dict[str, Any]]:
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    # Operation level parameters override path level ones with the same name and location
    for raw in [*(path_item.get("parameters") or []), *(operation.get("parameters") or [])]:
        param = resolve_if_ref(spec, raw)
        if not isinstance(param, dict) or param.get("in") == "cookie":
            continue
        merged[(param.get("name", ""), param.get("in", ""))] = param
    return list(merged.values())


def _parameter_schema(param: dict[str, Any], options: CodeGenOptions) -> dict[str, Any]:
    if "schema" in param:
        return param["schema"] or {}
    content = param.get("content") or {}
    media_type = _preferred_media_type(content, options)
    return (content.get(media_type) or {}).get("schema") or {} if media_type else {}


def _build_parameters(
    spec: dict[str, Any],
    registry: ModelRegistry,
    path_item: dict[str, Any],
    operation: dict[str, Any],
    options: CodeGenOptions,
) -> list[Parameter]:
    parameters: list[Parameter] = []
    for param in _merged_spec_parameters(spec, path_item, operation):
        location = param.get("in", "query")
        schema = _parameter_schema(param, options)
        parameter = build_model(
            spec,
            schema,
            param.get("name", ""),
            cls=Parameter,
            location=location,
            prop=param.get("name", ""),
            description=param.get("description"),
            is_required=location == "path" or bool(param.get("required")),
            deprecated=bool(param.get("deprecated")),
            collection_format=collection_format(location, param),
        )
        link_model(spec, registry, parameter, resolve_if_ref(spec, schema), set())
        parameters.append(parameter)

    request_body = resolve_if_ref(spec, operation.get("requestBody"))
    if isinstance(request_body, dict):
        content = request_body.get("content") or {}
        media_type = _preferred_media_type(content, options)
        schema = (content.get(media_type) or {}).get("schema") or {} if media_type else {}
        body = build_model(
            spec,
            schema,
            "body",
            cls=Parameter,
            location="body",
            prop="body",
            description=request_body.get("description"),
            is_required=bool(request_body.get("required")),
            media_type=media_type,
            media_types=list(content),
        )
        link_model(spec, registry, body, resolve_if_ref(spec, schema), set())
        parameters.append(body)

    return parameters


def _response_code(code: Any) -> int | str:
    code = str(code)
    if code.isdigit():
        return int(code)
    return code if code == "default" else code.upper()


def _response_sort_key(response: Response) -> tuple[int, int, str]:
    # Numeric codes first, then range tokens such as 2XX, then default
    if isinstance(response.code, int):
        return (0, response.code, "")
    if response.code == "default":
        return (2, 0, "")
    return (1, 0, response.code)


def _check_response_distinguishable(
    registry: ModelRegistry,
    method: str,
    path: str,
    response: Response,
) -> None:
    composite: Model | None = response if response.is_composite else None
    if composite is None and response.kind == REFERENCE:
        composite = registry.get(response.ref)
    if composite is None or not composite.is_composite:
        return

    flatten_composite_model(registry, composite, set())
    # Responses of primitives all come back as text, so the variant cannot be determined
    primitives = [
        p for p in composite.composed_primitives or []
        if p.kind not in COLLECTION_TYPES
    ]
    if primitives:
        raise AmbiguousResponseError(method, path, COMPOSITE_KEYWORDS[composite.kind])


def _build_responses(
    spec: dict[str, Any],
    registry: ModelRegistry,
    method: str,
    path: str,
    operation: dict[str, Any],
    options: CodeGenOptions,
) -> list[Response]:
    responses: list[Response] = []
    for raw_code, raw_response in (operation.get("responses") or {}).items():
        spec_response = resolve_if_ref(spec, raw_response) or {}
        code = _response_code(raw_code)
        content = spec_response.get("content")

        # Responses without content return nothing
        if not content:
            responses.append(Response(
                type="void",
                code=code,
                description=spec_response.get("description"),
            ))
            continue

        media_type = _preferred_media_type(content, options)
        schema = (content.get(media_type) or {}).get("schema") or {}
        response = build_model(
            spec,
            schema,
            cls=Response,
            code=code,
            media_types=list(content),
            description=spec_response.get("description"),
        )
        link_model(spec, registry, response, resolve_if_ref(spec, schema), set())
        _check_response_distinguishable(registry, method, path, response)
        responses.append(response)

    return sorted(responses, key=_response_sort_key)


def _result(responses: list[Response]) -> Response | None:
    """Return the lowest successful response, otherwise the 2XX or default response."""
    for response in responses:
        if isinstance(response.code, int) and 200 <= response.code < 300:
            return response
    for token in ("2XX", "default"):
        for response in responses:
            if response.code == token:
                return response
    return None


def _classify(op: Operation) -> None:
    # Users may override whether an operation is a query or mutation
    if op.vendor_extensions.get(MUTATION):
        op.is_mutation = True
    elif op.vendor_extensions.get(QUERY):
        op.is_mutation = False
    else:
        op.is_mutation = op.method in MUTATION_METHODS
    op.is_query = not op.is_mutation
    op.is_streaming = bool(op.vendor_extensions.get(STREAMING))

    if op.is_mutation:
        return
    cursor = op.vendor_extensions.get(CURSOR)
    cursor_name = cursor if isinstance(cursor, str) and cursor else DEFAULT_CURSOR_PROPERTY
    cursor_property = next((p for p in op.parameters if p.name == cursor_name), None)
    op.is_infinite_query = cursor is not False and cursor_property is not None
    if op.is_infinite_query:
        op.infinite_query_cursor_property = cursor_property


def _is_inlined_body(parameter: Parameter, parameters: list[Parameter], registry: ModelRegistry) -> bool:
    # A sole body is always inlined
    if len(parameters) == 1:
        return True
    if parameter.kind != REFERENCE:
        return False
    target = registry.get(parameter.ref)
    if target is None or target.kind == DICTIONARY:
        return False
    # Property names must not clash with any other parameter of the request
    parameter_names = {p.name for p in parameters if p is not parameter}
    return not any(prop.name in parameter_names for prop in target.properties)


def build_parameter_models(op: Operation, registry: ModelRegistry) -> list[Model]:
    """Build a model per parameter position of an operation and add them to the registry.

    Models are named ``<Operation>Request<Position>Parameters``, eg
    ``ListUsersRequestQueryParameters``. Request bodies which are inlined,
    ie passed directly rather than as a ``body`` property, get no model.
    """
    by_position: dict[str, list[Parameter]] = {}
    for parameter in op.parameters:
        if parameter.location == "body" and _is_inlined_body(parameter, op.parameters, registry):
            continue
        by_position.setdefault(parameter.location, []).append(parameter)

    body_parameters = by_position.get("body")
    op.explicit_request_body_parameter = body_parameters[0] if body_parameters else None

    models = []
    for position, parameters in by_position.items():
        name = f"{op.operation_id_pascal_case}Request{upper_first(position)}Parameters"
        models.append(registry.add(Model(
            name=name,
            kind=REFERENCE,
            type=name,
            description=op.description,
            properties=list(parameters),
            is_required=True,
        )))
    return models


def _build_operation(
    spec: dict[str, Any],
    registry: ModelRegistry,
    identity: OperationIdentity,
    path_item: dict[str, Any],
    spec_operation: dict[str, Any],
    options: CodeGenOptions,
) -> Operation:
    method = identity.method.upper()
    op = Operation(
        path=identity.path,
        method=method,
        operation_id=identity.operation_id,
        unique_name=identity.unique_name,
        name=identity.operation_id,
        tags=list(identity.tags),
        qualified_names=list(identity.qualified_names),
        dot_notation_name=identity.dot_notation_name,
        summary=spec_operation.get("summary"),
        description=spec_operation.get("description"),
        deprecated=bool(spec_operation.get("deprecated")),
        vendor_extensions=_vendor_extensions(spec_operation),
        operation_id_pascal_case=to_pascal_case(identity.unique_name),
        operation_id_kebab_case=to_kebab_case(identity.unique_name),
        operation_id_snake_case=to_python_name("operation", identity.unique_name),
    )
    op.parameters = _build_parameters(spec, registry, path_item, spec_operation, options)
    op.responses = _build_responses(spec, registry, method, identity.path, spec_operation, options)
    op.result = _result(op.responses)
    _classify(op)
    return op


def _model_imports(operations: list[Operation]) -> list[str]:
    imports: set[str] = set()
    for op in operations:
        for model in [*op.parameters, *op.responses]:
            if model.kind == REFERENCE and model.ref:
                imports.add(model.ref)
    return sorted(imports)


def build_services(operations: list[Operation], options: CodeGenOptions) -> list[Service]:
    """Group operations into a service per tag, with untagged operations in the default service.

    An operation with several tags belongs to each of their services.
    """
    grouped: dict[str, list[Operation]] = {}
    for op in operations:
        names = [to_pascal_case(tag) for tag in op.tags] or [options.default_service_name]
        for name in dict.fromkeys(names):
            grouped.setdefault(name, []).append(op)

    services = []
    for name, service_operations in grouped.items():
        class_name = f"{name}Api"
        services.append(Service(
            name=name,
            operations=sorted(service_operations, key=lambda op: op.unique_name),
            model_imports=_model_imports(service_operations),
            class_name=class_name,
            class_name_snake_case=to_snake_case(class_name),
            name_snake_case=to_snake_case(name),
        ))

    # Default service first, then by name
    return sorted(services, key=lambda s: "" if s.name == options.default_service_name else s.name)


def build_operations(
    spec: dict[str, Any],
    registry: ModelRegistry,
    identities: dict[tuple[str, str], OperationIdentity],
    options: CodeGenOptions | None = None,
) -> OperationsResult:
    """Build every operation in the spec, and the services which group them.

    Args:
        spec: The normalised spec.
        registry: Component models, linked and flattened. Request parameter
            models are added to it.
        identities: Resolved operation identities by (path, method).
        options: Generation options.

    Raises:
        AmbiguousResponseError: A response is a composite of primitives.
        SchemaValidationError: A request parameter model name clashes with
            another model.
    """
    options = options or CodeGenOptions()
    operations = []
    for path, method, spec_operation in iter_spec_operations(spec):
        path_item = resolve_if_ref(spec, spec["paths"][path])
        op = _build_operation(spec, registry, identities[(path, method)], path_item, spec_operation, options)
        build_parameter_models(op, registry)
        operations.append(op)
        logger.debug(
            "Built operation",
            operation=op.unique_name,
            method=op.method,
            path=op.path,
            parameters=len(op.parameters),
            responses=len(op.responses),
        )

    return OperationsResult(operations=operations, services=build_services(operations, options))
