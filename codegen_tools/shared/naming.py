"""Naming utilities for code generation."""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

# Words are runs of lowercase letters (optionally led by a capital), runs of
# capitals not followed by a lowercase letter, or runs of digits
_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def _deburr(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value)
    return "".join(c for c in normalized if not unicodedata.combining(c))


@lru_cache(maxsize=1024)
def split_words(value: str) -> tuple[str, ...]:
    """Split a string into its words, on case changes, digits and separators."""
    return tuple(_WORD_PATTERN.findall(_deburr(value)))


def upper_first(value: str) -> str:
    return value[:1].upper() + value[1:]


@lru_cache(maxsize=1024)
def to_camel_case(value: str) -> str:
    """Convert a string to camelCase.

    Examples:
        >>> to_camel_case("get-/pets")
        'getPets'
        >>> to_camel_case("users.list")
        'usersList'
    """
    words = split_words(value)
    if not words:
        return ""
    first, *rest = words
    return first.lower() + "".join(word.capitalize() for word in rest)


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a string to PascalCase.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_pascal_case("hello_world")
        'HelloWorld'
        >>> to_pascal_case("hello-world")
        'HelloWorld'
        >>> to_pascal_case("helloWorld")
        'HelloWorld'
    """
    return upper_first(to_camel_case(value))


@lru_cache(maxsize=1024)
def to_snake_case(value: str) -> str:
    """Convert a string to snake_case.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_snake_case("HelloWorld")
        'hello_world'
        >>> to_snake_case("hello-world")
        'hello_world'
    """
    value = re.sub(r"[^a-zA-Z0-9]+", "_", _deburr(value))
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)
    return value.lower().strip("_")


@lru_cache(maxsize=1024)
def to_kebab_case(value: str) -> str:
    """Convert a string to kebab-case."""
    value = re.sub(r"[^a-zA-Z0-9]+", "-", _deburr(value))
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return value.lower().strip("-")


def to_class_name(value: str | None) -> str | None:
    """Convert a free-form title into a class name, eg 'my api' -> 'MyApi'."""
    if not value:
        return value
    words = re.split(r"\s+", re.sub(r"[^a-zA-Z0-9]", " ", value))
    parts = []
    for index, word in enumerate(words):
        if index == 0 and word[:1].isdigit():
            parts.append("_" + word)
        else:
            parts.append(upper_first(word))
    return "".join(parts)


def trim_quotes(value: str) -> str:
    return value.strip("\"'")
