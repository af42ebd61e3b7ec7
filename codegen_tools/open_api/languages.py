"""
Target language type and identifier mapping.

Maps Models to the TypeScript and Python types generated clients declare,
and escapes identifiers which clash with reserved words.
"""

from __future__ import annotations

from typing import Callable, Final, Literal

from ..shared.naming import to_snake_case, trim_quotes
from .ir import (
    ARRAY,
    COLLECTION_TYPES,
    COMPOSED_SCHEMA_TYPES,
    DICTIONARY,
    ENUM,
    PRIMITIVE,
    PRIMITIVE_TYPES,
    REFERENCE,
    Model,
)

NamedEntity = Literal["model", "property", "operation"]
TypeMapper = Callable[[Model, frozenset[Model]], str]

# Prefix used to escape a python reserved word per named entity
PYTHON_NAME_PREFIXES: Final[dict[str, str]] = {
    "model": "model",
    "property": "var",
    "operation": "call",
}

# Python reserved words, plus names which clash with imports in generated models
PYTHON_KEYWORDS: Final[frozenset[str]] = frozenset({
    "property",
    "schema", "base64", "json", "date", "float",
    "and", "del", "from", "not", "while", "as", "elif", "global", "or",
    "with", "assert", "else", "if", "pass", "yield", "break", "except",
    "import", "print", "class", "exec", "in", "raise", "continue",
    "finally", "is", "return", "def", "for", "lambda", "try", "self",
    "nonlocal", "None", "True", "False", "async", "await",
})

TYPESCRIPT_KEYWORDS: Final[frozenset[str]] = frozenset({
    "any", "arguments", "as", "async", "await", "boolean", "break", "case",
    "catch", "class", "const", "continue", "debugger", "declare", "default",
    "delete", "do", "else", "enum", "eval", "export", "extends", "false",
    "finally", "for", "from", "function", "get", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "module", "new",
    "null", "number", "of", "package", "private", "protected", "public",
    "require", "return", "set", "static", "string", "super", "switch",
    "symbol", "this", "throw", "true", "try", "type", "typeof", "undefined",
    "var", "void", "while", "with", "yield",
})

_COMPOSITE_OPERATORS: Final[dict[str, str]] = {
    "one-of": " | ",
    "any-of": " | ",
    "all-of": " & ",
}


def _typescript_primitive(model: Model) -> str:
    if model.type == "string" and model.format in ("date", "date-time"):
        return "Date"
    if model.type == "binary":
        return "Blob"
    if model.type == "integer":
        return "number"
    return model.type


def _element_type(model: Model, mapper: TypeMapper, seen: frozenset[Model]) -> str:
    link = model.link
    # Enums render as named types, so use the referenced name rather than the enum values
    if link is not None and link.kind != ENUM:
        return mapper(link, seen)
    return model.type


def _composite_name(model: Model, mapper: TypeMapper, seen: frozenset[Model]) -> str:
    if model.name:
        return model.name
    return _COMPOSITE_OPERATORS[model.kind].join(mapper(p, seen) for p in model.properties)


def to_typescript_type(model: Model, _seen: frozenset[Model] = frozenset()) -> str:
    """Return the TypeScript type for the given model."""
    if model in _seen:
        return model.name or model.type
    seen = _seen | {model}

    if model.kind in (PRIMITIVE, REFERENCE):
        return _typescript_primitive(model)
    if model.kind == ARRAY:
        return f"Array<{_element_type(model, to_typescript_type, seen)}>"
    if model.kind == DICTIONARY:
        return f"{{ [key: string]: {_element_type(model, to_typescript_type, seen)}; }}"
    if model.kind in COMPOSED_SCHEMA_TYPES:
        return _composite_name(model, to_typescript_type, seen)
    return model.type


def _python_primitive(model: Model) -> str:
    if model.type == "string" and model.format == "date":
        return "date"
    if model.type == "string" and model.format == "date-time":
        return "datetime"
    if model.type == "any":
        return "object"
    if model.type == "binary":
        return "bytearray"
    if model.type == "integer":
        return "int"
    if model.type == "number":
        if model.openapi_type == "integer" or model.format in ("int32", "int64"):
            return "int"
        return "float"
    if model.type == "boolean":
        return "bool"
    if model.type == "string":
        return "str"
    return model.type


def to_python_type(model: Model, _seen: frozenset[Model] = frozenset()) -> str:
    """Return the python type hint for the given model."""
    if model in _seen:
        return model.name or model.type
    seen = _seen | {model}

    if model.kind in (PRIMITIVE, REFERENCE):
        return _python_primitive(model)
    if model.kind == ARRAY:
        return f"List[{_element_type(model, to_python_type, seen)}]"
    if model.kind == DICTIONARY:
        return f"Dict[str, {_element_type(model, to_python_type, seen)}]"
    if model.kind in COMPOSED_SCHEMA_TYPES:
        return model.name or f"Union[{', '.join(to_python_type(p, seen) for p in model.properties)}]"
    # Enums referencing a named model use the name, inline enums their value type
    if model.type in PRIMITIVE_TYPES:
        return _python_primitive(model)
    return model.type


def to_typescript_name(name: str) -> str:
    """Return a TypeScript safe identifier for the given name."""
    return f"_{name}" if name in TYPESCRIPT_KEYWORDS else name


def to_python_name(named_entity: NamedEntity, name: str) -> str:
    """Return the snake_case python identifier for the given name.

    Reserved words are prefixed according to what the name identifies, eg a
    property named ``from`` becomes ``var_from``.
    """
    name_snake_case = to_snake_case(name)
    # Names may already be escaped for TypeScript with a leading underscore
    if (name[1:] if name.startswith("_") else name) in PYTHON_KEYWORDS:
        return f"{PYTHON_NAME_PREFIXES[named_entity]}_{name_snake_case}"
    return name_snake_case


def annotate_model(model: Model, visited: set[Model]) -> None:
    """Add language specific names and types to a Model and everything nested in it."""
    if model in visited:
        return
    visited.add(model)

    model.name = trim_quotes(model.name)
    model.typescript_name = to_typescript_name(model.name)
    model.typescript_type = to_typescript_type(model)
    model.python_name = to_python_name("property", model.name)
    model.python_type = to_python_type(model)
    model.is_primitive = (
        model.type in PRIMITIVE_TYPES
        and model.kind not in COMPOSED_SCHEMA_TYPES
        and model.kind not in COLLECTION_TYPES
    )

    nested = [*model.properties, *model.pattern_properties_models.values()]
    for child in (model.link, model.additional_properties_model):
        if child is not None:
            nested.append(child)
    for child in nested:
        annotate_model(child, visited)
