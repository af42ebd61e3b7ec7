"""
Intermediate representation records produced from an OpenAPI document.

Every record declares all of its derived fields up front. The pipeline stages
populate them in order; nothing is added to a record after construction.
Models, parameters, responses and operations compare by identity so that the
recursive passes can track them in ``visited`` sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

# Model kinds
PRIMITIVE: Final = "primitive"
REFERENCE: Final = "reference"
ARRAY: Final = "array"
DICTIONARY: Final = "dictionary"
ENUM: Final = "enum"
ONE_OF: Final = "one-of"
ANY_OF: Final = "any-of"
ALL_OF: Final = "all-of"

# Model kinds which indicate it is composed (ie inherits/mixin's another schema)
COMPOSED_SCHEMA_TYPES: Final[frozenset[str]] = frozenset({ONE_OF, ANY_OF, ALL_OF})
COLLECTION_TYPES: Final[frozenset[str]] = frozenset({ARRAY, DICTIONARY})
PRIMITIVE_TYPES: Final[frozenset[str]] = frozenset({
    "string", "integer", "number", "boolean", "null", "any", "binary", "void"
})

# Composite kind -> the OpenAPI keyword it is declared with
COMPOSITE_KEYWORDS: Final[dict[str, str]] = {
    ONE_OF: "oneOf",
    ANY_OF: "anyOf",
    ALL_OF: "allOf",
}

# Vendor extensions which are used to customise generated code
STREAMING: Final = "x-streaming"
MUTATION: Final = "x-mutation"
QUERY: Final = "x-query"
CURSOR: Final = "x-cursor"
HOISTED: Final = "x-aws-nx-hoisted"
DEDUPLICATED_OP_ID: Final = "x-aws-nx-deduplicated-op-id"
DEDUPLICATED_DOT_OP_ID: Final = "x-aws-nx-deduplicated-dot-op-id"

DEFAULT_SERVICE_NAME: Final = "Default"


@dataclass(frozen=True, slots=True)
class CodeGenOptions:
    """Options injected into a generation run."""
    default_service_name: str = DEFAULT_SERVICE_NAME
    preferred_media_types: tuple[str, ...] = ("application/json",)


@dataclass(slots=True, eq=False)
class Model:
    """A normalised schema occurrence."""
    name: str = ""
    kind: str = PRIMITIVE
    type: str = "any"
    ref: str | None = None
    format: str | None = None
    openapi_type: str | None = None
    description: str | None = None
    default: Any = None
    enum: list[Any] = field(default_factory=list)
    properties: list[Model] = field(default_factory=list)
    link: Model | None = None
    is_nullable: bool = False
    is_required: bool = False
    is_read_only: bool = False
    deprecated: bool = False
    is_hoisted: bool = False
    is_not_schema: bool = False
    has_additional_properties: bool = False
    additional_properties_model: Model | None = None
    pattern_properties_models: dict[str, Model] = field(default_factory=dict)
    composed_models: list[Model] | None = None
    composed_primitives: list[Model] | None = None
    vendor_extensions: dict[str, Any] = field(default_factory=dict)
    unique_imports: list[str] = field(default_factory=list)
    name_snake_case: str | None = None
    typescript_name: str | None = None
    typescript_type: str | None = None
    python_name: str | None = None
    python_type: str | None = None
    is_primitive: bool = False

    @property
    def is_composite(self) -> bool:
        return self.kind in COMPOSED_SCHEMA_TYPES

    @property
    def is_collection(self) -> bool:
        return self.kind in COLLECTION_TYPES


@dataclass(slots=True, eq=False)
class Parameter(Model):
    """A model passed to an operation at a particular position."""
    location: str = "query"
    prop: str = ""
    media_type: str | None = None
    media_types: list[str] = field(default_factory=list)
    collection_format: str | None = None


@dataclass(slots=True, eq=False)
class Response(Model):
    """A model returned by an operation for a status code."""
    code: int | str = "default"
    media_types: list[str] = field(default_factory=list)


@dataclass(slots=True, eq=False)
class Operation:
    """A single path + method pairing."""
    path: str
    method: str
    operation_id: str
    unique_name: str
    name: str = ""
    tags: list[str] = field(default_factory=list)
    qualified_names: list[str] = field(default_factory=list)
    dot_notation_name: str | None = None
    summary: str | None = None
    description: str | None = None
    deprecated: bool = False
    parameters: list[Parameter] = field(default_factory=list)
    responses: list[Response] = field(default_factory=list)
    result: Response | None = None
    vendor_extensions: dict[str, Any] = field(default_factory=dict)
    operation_id_pascal_case: str = ""
    operation_id_kebab_case: str = ""
    operation_id_snake_case: str = ""
    explicit_request_body_parameter: Parameter | None = None
    is_mutation: bool = False
    is_query: bool = True
    is_streaming: bool = False
    is_infinite_query: bool = False
    infinite_query_cursor_property: Parameter | None = None


@dataclass(slots=True)
class Service:
    """Operations grouped under a tag."""
    name: str
    operations: list[Operation] = field(default_factory=list)
    model_imports: list[str] = field(default_factory=list)
    class_name: str = ""
    class_name_snake_case: str = ""
    name_snake_case: str = ""


@dataclass(slots=True)
class CodeGenData:
    """The complete data structure handed to template renderers."""
    info: dict[str, Any]
    class_name: str | None
    models: list[Model]
    services: list[Service]
    all_operations: list[Operation]
    operations_by_tag: dict[str, list[Operation]]
    untagged_operations: list[Operation]
    vendor_extensions: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON-compatible public shape."""
        return {
            "info": self.info,
            "className": self.class_name,
            "models": [model_to_dict(m) for m in self.models],
            "services": [service_to_dict(s) for s in self.services],
            "allOperations": [operation_to_dict(op) for op in self.all_operations],
            "operationsByTag": {
                tag: [op.unique_name for op in ops]
                for tag, ops in self.operations_by_tag.items()
            },
            "untaggedOperations": [op.unique_name for op in self.untagged_operations],
            "vendorExtensions": self.vendor_extensions,
        }


def model_to_dict(model: Model, _path: frozenset[int] = frozenset()) -> dict[str, Any]:
    """Serialise a model, cutting recursive links short with a stub."""
    if id(model) in _path:
        return {"name": model.name, "kind": model.kind, "type": model.type, "recursive": True}
    path = _path | {id(model)}

    def nested(m: Model | None) -> dict[str, Any] | None:
        return model_to_dict(m, path) if m is not None else None

    data: dict[str, Any] = {
        "name": model.name,
        "kind": model.kind,
        "type": model.type,
        "ref": model.ref,
        "format": model.format,
        "openapiType": model.openapi_type,
        "description": model.description,
        "default": model.default,
        "enum": model.enum,
        "properties": [model_to_dict(p, path) for p in model.properties],
        "link": nested(model.link),
        "isNullable": model.is_nullable,
        "isRequired": model.is_required,
        "isReadOnly": model.is_read_only,
        "deprecated": model.deprecated,
        "isHoisted": model.is_hoisted,
        "isNotSchema": model.is_not_schema,
        "hasAdditionalProperties": model.has_additional_properties,
        "additionalPropertiesModel": nested(model.additional_properties_model),
        "patternPropertiesModels": {
            pattern: model_to_dict(m, path)
            for pattern, m in model.pattern_properties_models.items()
        },
        "composedModels": (
            None if model.composed_models is None
            else [m.name for m in model.composed_models]
        ),
        "composedPrimitives": (
            None if model.composed_primitives is None
            else [model_to_dict(m, path) for m in model.composed_primitives]
        ),
        "vendorExtensions": model.vendor_extensions,
        "uniqueImports": model.unique_imports,
        "nameSnakeCase": model.name_snake_case,
        "typescriptName": model.typescript_name,
        "typescriptType": model.typescript_type,
        "pythonName": model.python_name,
        "pythonType": model.python_type,
        "isPrimitive": model.is_primitive,
    }
    if isinstance(model, Parameter):
        data.update({
            "in": model.location,
            "prop": model.prop,
            "mediaType": model.media_type,
            "mediaTypes": model.media_types,
            "collectionFormat": model.collection_format,
        })
    elif isinstance(model, Response):
        data.update({"code": model.code, "mediaTypes": model.media_types})
    return data


def operation_to_dict(op: Operation) -> dict[str, Any]:
    return {
        "path": op.path,
        "method": op.method,
        "operationId": op.operation_id,
        "uniqueName": op.unique_name,
        "name": op.name,
        "tags": op.tags,
        "qualifiedNames": op.qualified_names,
        "dotNotationName": op.dot_notation_name,
        "summary": op.summary,
        "description": op.description,
        "deprecated": op.deprecated,
        "parameters": [model_to_dict(p) for p in op.parameters],
        "responses": [model_to_dict(r) for r in op.responses],
        "result": op.result.code if op.result is not None else None,
        "vendorExtensions": op.vendor_extensions,
        "operationIdPascalCase": op.operation_id_pascal_case,
        "operationIdKebabCase": op.operation_id_kebab_case,
        "operationIdSnakeCase": op.operation_id_snake_case,
        "explicitRequestBodyParameter": (
            op.explicit_request_body_parameter.name
            if op.explicit_request_body_parameter is not None else None
        ),
        "isMutation": op.is_mutation,
        "isQuery": op.is_query,
        "isStreaming": op.is_streaming,
        "isInfiniteQuery": op.is_infinite_query,
        "infiniteQueryCursorProperty": (
            op.infinite_query_cursor_property.name
            if op.infinite_query_cursor_property is not None else None
        ),
    }


def service_to_dict(service: Service) -> dict[str, Any]:
    return {
        "name": service.name,
        "operations": [op.unique_name for op in service.operations],
        "modelImports": service.model_imports,
        "className": service.class_name,
        "classNameSnakeCase": service.class_name_snake_case,
        "nameSnakeCase": service.name_snake_case,
    }
