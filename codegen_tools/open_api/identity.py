"""
Operation identity resolution.

Works out the name each operation is rendered under, and rejects documents
whose operationIds would collide in the generated client.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Final, Iterator

import structlog

from ..shared.errors import DuplicateOperationIdError, DuplicateTaggedOperationIdError
from ..shared.naming import to_camel_case
from .ir import DEDUPLICATED_DOT_OP_ID, DEDUPLICATED_OP_ID
from .refs import resolve_if_ref

logger = structlog.get_logger()

# HTTP methods supported in OpenAPI path items
HTTP_METHODS: Final[tuple[str, ...]] = (
    "get", "put", "post", "delete", "options", "head", "patch", "trace"
)


@dataclass(frozen=True, slots=True)
class OperationIdentity:
    """The resolved identity of a single operation."""
    path: str
    method: str
    operation_id: str
    tags: tuple[str, ...]
    unique_name: str
    qualified_names: tuple[str, ...]
    dot_notation_name: str


def iter_spec_operations(spec: dict[str, Any]) -> Iterator[tuple[str, str, dict[str, Any]]]:
    """Yield (path, method, operation) for every operation in document order."""
    for path, path_item in (spec.get("paths") or {}).items():
        path_item = resolve_if_ref(spec, path_item)
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if method not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            yield path, method, operation


def operation_id_for(path: str, method: str, operation: dict[str, Any]) -> str:
    return to_camel_case(operation.get("operationId") or f"{method}-{path}")


def disambiguate_operations(
    spec: dict[str, Any],
) -> dict[tuple[str, str], OperationIdentity]:
    """Resolve a unique identity for every operation in the spec.

    Raises:
        DuplicateOperationIdError: Untagged operations share an operationId, or
            two operations resolve to the same unique name.
        DuplicateTaggedOperationIdError: Operations sharing a tag share an
            operationId.
    """
    operations = [
        (path, method, operation, operation_id_for(path, method, operation))
        for path, method, operation in iter_spec_operations(spec)
    ]
    occurrences = Counter(operation_id for *_, operation_id in operations)

    seen_untagged: set[str] = set()
    seen_by_tag: dict[str, set[str]] = {}
    identities: dict[tuple[str, str], OperationIdentity] = {}
    owners: dict[str, tuple[str, str]] = {}

    for path, method, operation, operation_id in operations:
        tags = tuple(str(tag) for tag in operation.get("tags") or [])
        deduplicated = operation.get(DEDUPLICATED_OP_ID)

        # Upstream deduplication is trusted to have resolved collisions for this operation
        if not deduplicated:
            if not tags:
                if operation_id in seen_untagged:
                    raise DuplicateOperationIdError(operation_id)
                seen_untagged.add(operation_id)
            for tag in tags:
                if operation_id in seen_by_tag.setdefault(tag, set()):
                    raise DuplicateTaggedOperationIdError(tag, operation_id)
                seen_by_tag[tag].add(operation_id)

        qualified_names = tuple(f"{tag}.{operation_id}" for tag in tags) or (operation_id,)
        if deduplicated:
            unique_name = str(deduplicated)
        elif occurrences[operation_id] > 1 and tags:
            unique_name = qualified_names[0]
        else:
            unique_name = operation_id

        # Rendered names must stay distinct, eg "users.list" and "usersList" clash
        rendered = to_camel_case(unique_name)
        if rendered in owners:
            other_method, other_path = owners[rendered]
            raise DuplicateOperationIdError(
                unique_name,
                f'Operations "{other_method} {other_path}" and "{method.upper()} {path}" '
                f"both resolve to the name {unique_name}",
            )
        owners[rendered] = (method.upper(), path)

        identities[(path, method)] = OperationIdentity(
            path=path,
            method=method,
            operation_id=operation_id,
            tags=tags,
            unique_name=unique_name,
            qualified_names=qualified_names,
            dot_notation_name=str(operation.get(DEDUPLICATED_DOT_OP_ID) or qualified_names[0]),
        )

    logger.debug("Resolved operation identities", count=len(identities))
    return identities
