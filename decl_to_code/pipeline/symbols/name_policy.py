"""
Name policies for each target language.

A name policy is a pure function of (raw name, element kind): it applies a
casing transform keyed by the kind, preserves a single leading underscore,
validates the result against the target identifier grammar and rejects or
disambiguates reserved words.
"""

from __future__ import annotations

import keyword
import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from ..errors import InvalidIdentifierError, ReservedWordError


class GraphQLElement(str, Enum):
    """Kinds of named GraphQL declarations."""

    TYPE = "type"
    FIELD = "field"
    ARGUMENT = "argument"
    INPUT_FIELD = "inputField"
    ENUM = "enum"
    ENUM_VALUE = "enumValue"
    DIRECTIVE = "directive"
    SCALAR = "scalar"


class ThriftElement(str, Enum):
    """Kinds of named Thrift declarations."""

    TYPE = "type"
    SERVICE = "service"
    CONST = "const"
    FIELD = "field"
    ENUM = "enum"
    ENUM_VALUE = "enum-value"
    TYPEDEF = "typedef"
    NAMESPACE = "namespace"
    FUNCTION = "function"


class PythonElement(str, Enum):
    """Kinds of named Python declarations."""

    CLASS = "class"
    FUNCTION = "function"
    VARIABLE = "variable"
    CONSTANT = "constant"
    PARAMETER = "parameter"
    FIELD = "field"


# Splits "user_name", "user-name", "userName" and "HTTPServer" into words
_CHUNK_PATTERN = re.compile(r"[^\W_]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def split_words(text: str) -> list[str]:
    """Split a raw name into words on separators and case boundaries."""
    words: list[str] = []
    for chunk in _CHUNK_PATTERN.findall(text):
        words.extend(word for word in _CAMEL_BOUNDARY.split(chunk) if word)
    return words


def to_pascal_case(text: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(text))


def to_camel_case(text: str) -> str:
    words = split_words(text)
    if not words:
        return ""
    return words[0].lower() + "".join(word[:1].upper() + word[1:].lower() for word in words[1:])


def to_snake_case(text: str) -> str:
    return "_".join(word.lower() for word in split_words(text))


def to_constant_case(text: str) -> str:
    return "_".join(word.upper() for word in split_words(text))


class NamePolicy(ABC):
    """Maps a raw declaration name to its final, target-valid name."""

    # Name of the target language, used in diagnostics
    LANGUAGE: str = ""

    # Suffix appended to disambiguate reserved names
    RESERVED_SUFFIX: str = "_"

    _VALID_NAME = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")
    _VALID_CHARACTERS = re.compile(r"^[_A-Za-z0-9]+$")

    def get_name(self, raw_name: str, kind: str) -> str:
        """
        Compute the final name of a declaration.

        Args:
            raw_name: The name as authored in the declaration tree
            kind: The element kind of the declaration

        Returns:
            The transformed, validated name

        Raises:
            InvalidIdentifierError: If the transformed name is not a valid identifier
            ReservedWordError: If the name is reserved and cannot be disambiguated
        """
        if raw_name.startswith("__"):
            raise ReservedWordError(
                f'Invalid {self.LANGUAGE} name "{raw_name}": names starting with "__" (double underscore) are reserved.'
            )

        transformed = self.transform(raw_name, kind)

        # Preserve a single leading underscore stripped by the transform
        if raw_name.startswith("_") and not transformed.startswith("_"):
            transformed = "_" + transformed

        self.validate_identifier(transformed)
        return self.ensure_non_reserved(transformed, kind)

    @abstractmethod
    def transform(self, raw_name: str, kind: str) -> str:
        """Apply the casing transform for an element kind."""

    @abstractmethod
    def ensure_non_reserved(self, name: str, kind: str) -> str:
        """Reject or disambiguate a name colliding with a reserved word."""

    def validate_identifier(self, name: str) -> None:
        """Validate a transformed name, with a specific diagnostic per failure."""
        if self._VALID_NAME.match(name):
            return
        if name[:1].isdigit():
            raise InvalidIdentifierError(
                f'Invalid {self.LANGUAGE} name "{name}": names cannot start with a digit. '
                f"Names must start with a letter (A-Z, a-z) or underscore (_)."
            )
        if not self._VALID_CHARACTERS.match(name):
            raise InvalidIdentifierError(
                f'Invalid {self.LANGUAGE} name "{name}": names can only contain letters (A-Z, a-z), digits (0-9), and underscores (_).'
            )
        raise InvalidIdentifierError(
            f'Invalid {self.LANGUAGE} name "{name}": names must start with a letter (A-Z, a-z) '
            f"or underscore (_), and can only contain letters, digits, and underscores."
        )


class GraphQLNamePolicy(NamePolicy):
    """
    GraphQL naming conventions.

    Types, enums and scalars are PascalCase, enum values UPPER_SNAKE_CASE,
    everything else camelCase. Keywords are only reserved for top-level
    definitions, where they are disambiguated with a suffix.
    """

    LANGUAGE = "GraphQL"

    TOP_LEVEL_KEYWORDS = {
        "fragment",
        "query",
        "mutation",
        "subscription",
        "type",
        "interface",
        "union",
        "enum",
        "input",
        "scalar",
        "schema",
        "extend",
        "directive",
    }

    BUILTIN_SCALARS = {"Int", "Float", "String", "Boolean", "ID"}

    TOP_LEVEL_KINDS = (GraphQLElement.TYPE, GraphQLElement.ENUM, GraphQLElement.SCALAR, GraphQLElement.DIRECTIVE)

    def transform(self, raw_name: str, kind: str) -> str:
        if kind in (GraphQLElement.TYPE, GraphQLElement.ENUM, GraphQLElement.SCALAR):
            return to_pascal_case(raw_name)
        if kind == GraphQLElement.ENUM_VALUE:
            return to_constant_case(raw_name)
        return to_camel_case(raw_name)

    def ensure_non_reserved(self, name: str, kind: str) -> str:
        if kind in self.TOP_LEVEL_KINDS and (name in self.TOP_LEVEL_KEYWORDS or name in self.BUILTIN_SCALARS):
            return f"{name}{self.RESERVED_SUFFIX}"
        return name


class ThriftNamePolicy(NamePolicy):
    """
    Thrift naming rules.

    No casing transform is applied unless a ``format`` hook is given.
    Reserved words (keywords and builtin type names) are rejected.
    """

    LANGUAGE = "Thrift"

    RESERVED_WORDS = {
        "namespace",
        "include",
        "typedef",
        "const",
        "enum",
        "struct",
        "union",
        "exception",
        "service",
        "extends",
        "throws",
        "required",
        "optional",
        "oneway",
        "void",
        "bool",
        "byte",
        "i8",
        "i16",
        "i32",
        "i64",
        "double",
        "string",
        "binary",
        "list",
        "set",
        "map",
    }

    def __init__(self, format: Callable[[str, str], str] | None = None):
        self.format = format

    def transform(self, raw_name: str, kind: str) -> str:
        if self.format is not None:
            return self.format(raw_name, kind)
        return raw_name

    def ensure_non_reserved(self, name: str, kind: str) -> str:
        if name in self.RESERVED_WORDS:
            raise ReservedWordError(f"Thrift identifier '{name}' is a reserved word and cannot be used for {kind}.")
        return name


class PythonNamePolicy(NamePolicy):
    """PEP 8 naming: PascalCase classes, UPPER_SNAKE constants, snake_case otherwise."""

    LANGUAGE = "Python"

    def transform(self, raw_name: str, kind: str) -> str:
        if kind == PythonElement.CLASS:
            return to_pascal_case(raw_name)
        if kind == PythonElement.CONSTANT:
            return to_constant_case(raw_name)
        return to_snake_case(raw_name)

    def ensure_non_reserved(self, name: str, kind: str) -> str:
        if keyword.iskeyword(name):
            return f"{name}{self.RESERVED_SUFFIX}"
        return name


_POLICIES: dict[str, type[NamePolicy]] = {
    "graphql": GraphQLNamePolicy,
    "thrift": ThriftNamePolicy,
    "python": PythonNamePolicy,
}


def get_name_policy(target: str) -> NamePolicy:
    """Return the default name policy for a target language."""
    if target not in _POLICIES:
        raise ValueError(f"Target '{target}' is not supported")
    return _POLICIES[target]()
