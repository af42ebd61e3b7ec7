"""Custom exceptions for the code generation tools."""

from __future__ import annotations


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a schema fails validation."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class UnsupportedSpecError(SchemaError):
    """Raised for documents which are not OpenAPI v3."""

    def __init__(self, version: str, schema_path: str | None = None) -> None:
        self.version = version
        super().__init__(
            f"OpenAPI version '{version}' is not supported. Please use OpenAPI v3",
            schema_path,
        )


class UnresolvedRefError(SchemaError):
    """Raised when a $ref cannot be resolved within the document."""

    def __init__(self, ref: str, reason: str = "not found") -> None:
        self.ref = ref
        super().__init__(f"Unable to resolve ref {ref} in spec ({reason})")


class AmbiguousCompositeError(SchemaValidationError):
    """Raised when a composite schema has variants indistinguishable at runtime."""

    def __init__(self, schema_name: str, composition: str) -> None:
        self.schema_name = schema_name
        self.composition = composition
        super().__init__(
            f'Schema "{schema_name}" defines {composition} with multiple array types '
            "which cannot be distinguished at runtime.",
            schema_name,
        )


class InvalidAllOfError(SchemaValidationError):
    """Raised when allOf composes anything other than object schemas."""

    def __init__(self, schema_name: str) -> None:
        self.schema_name = schema_name
        super().__init__(
            f'Schema "{schema_name}" defines allOf with non-object types. '
            "allOf may only compose object types in the OpenAPI specification.",
            schema_name,
        )


class AmbiguousResponseError(SchemaValidationError):
    """Raised when a response is a composite of primitives."""

    def __init__(self, method: str, path: str, composition: str) -> None:
        self.method = method
        self.path = path
        self.composition = composition
        super().__init__(
            f'Operation "{method} {path}" returns a composite schema of primitives '
            f"with {composition}, which cannot be distinguished at runtime"
        )


class DuplicateOperationIdError(SchemaValidationError):
    """Raised when untagged operations share an operationId."""

    def __init__(self, operation_id: str, message: str | None = None) -> None:
        self.operation_id = operation_id
        super().__init__(
            message
            or f"Untagged operations cannot have the same operationId ({operation_id})"
        )


class DuplicateTaggedOperationIdError(SchemaValidationError):
    """Raised when operations under the same tag share an operationId."""

    def __init__(self, tag: str, operation_id: str) -> None:
        self.tag = tag
        self.operation_id = operation_id
        super().__init__(
            f"Operations with the same tag ({tag}) cannot have the same "
            f"operationId ({operation_id})"
        )
