"""
GraphQL declaration nodes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from ..symbols.refkey import Refkey
from .common import NO_DEFAULT, Declaration


@dataclass
class TypeReference:
    """
    A GraphQL type expression.

    ``TypeReference(TypeReference("String", required=True), list=True)``
    renders as ``[String!]``.
    """

    type: str | Refkey | TypeReference = ""
    list: bool = False
    required: bool = False


# A raw SDL type string ("ID!"), a refkey or a structured reference
GraphQLType = Union[str, Refkey, TypeReference]


@dataclass
class DirectiveApplication:
    """A directive applied to a definition, field or argument."""

    directive: str | Refkey = ""
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class InputValueDecl(Declaration):
    """An argument or an input object field."""

    type: GraphQLType = ""
    default: Any = NO_DEFAULT
    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class FieldDecl(Declaration):
    """A field of an object or interface type."""

    type: GraphQLType = ""
    args: list[InputValueDecl] = field(default_factory=list)
    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class ObjectTypeDecl(Declaration):
    """An object type definition."""

    fields: list[FieldDecl] = field(default_factory=list)
    implements: list[str | Refkey] = field(default_factory=list)
    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class InterfaceTypeDecl(ObjectTypeDecl):
    """An interface type definition."""


@dataclass
class InputObjectTypeDecl(Declaration):
    """An input object type definition."""

    fields: list[InputValueDecl] = field(default_factory=list)
    one_of: bool = False
    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class EnumValueDecl(Declaration):
    """A value of an enum type."""

    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class EnumTypeDecl(Declaration):
    """An enum type definition."""

    values: list[EnumValueDecl] = field(default_factory=list)
    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class ScalarTypeDecl(Declaration):
    """A custom scalar definition."""

    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class UnionTypeDecl(Declaration):
    """A union type definition."""

    members: list[str | Refkey] = field(default_factory=list)
    directives: list[DirectiveApplication] = field(default_factory=list)


@dataclass
class DirectiveDefinitionDecl(Declaration):
    """A directive definition."""

    args: list[InputValueDecl] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    repeatable: bool = False


def format_type(type_: GraphQLType, name_of: Callable[[Refkey], str]) -> str:
    """
    Render a type expression as SDL text.

    Args:
        type_: The type expression
        name_of: Returns the name printed for a refkey

    Returns:
        The SDL text, e.g. ``[String!]!``
    """
    if isinstance(type_, TypeReference):
        text = format_type(type_.type, name_of)
        if type_.list:
            text = f"[{text}]"
        if type_.required:
            text = f"{text}!"
        return text
    if isinstance(type_, Refkey):
        return name_of(type_)
    return str(type_)


def named_type(type_: GraphQLType) -> str | Refkey:
    """The innermost named type of a type expression, without list or non-null wrappers."""
    while isinstance(type_, TypeReference):
        type_ = type_.type
    if isinstance(type_, Refkey):
        return type_
    return str(type_).strip("[]! ")


def is_nullable(type_: GraphQLType) -> bool:
    if isinstance(type_, TypeReference):
        return not type_.required
    if isinstance(type_, Refkey):
        return True
    return not str(type_).rstrip().endswith("!")
