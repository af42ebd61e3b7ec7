"""Shared utilities for the code generation tools."""

from .schema_loader import load_spec
from .logging_config import configure_logging
from .naming import (
    split_words,
    upper_first,
    to_camel_case,
    to_pascal_case,
    to_snake_case,
    to_kebab_case,
    to_class_name,
    trim_quotes,
)
from .errors import (
    SchemaError,
    SchemaValidationError,
    UnsupportedSpecError,
    UnresolvedRefError,
    AmbiguousCompositeError,
    AmbiguousResponseError,
    InvalidAllOfError,
    DuplicateOperationIdError,
    DuplicateTaggedOperationIdError,
)

__all__ = [
    # Spec loading
    "load_spec",
    # Logging
    "configure_logging",
    # Naming utilities
    "split_words",
    "upper_first",
    "to_camel_case",
    "to_pascal_case",
    "to_snake_case",
    "to_kebab_case",
    "to_class_name",
    "trim_quotes",
    # Errors
    "SchemaError",
    "SchemaValidationError",
    "UnsupportedSpecError",
    "UnresolvedRefError",
    "AmbiguousCompositeError",
    "AmbiguousResponseError",
    "InvalidAllOfError",
    "DuplicateOperationIdError",
    "DuplicateTaggedOperationIdError",
]
