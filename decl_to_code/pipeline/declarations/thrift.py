"""
Thrift declaration nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..symbols.refkey import Refkey
from .common import NO_DEFAULT, Declaration


@dataclass
class ContainerType:
    """``list<T>``, ``set<T>`` or ``map<K, V>``."""

    kind: str = "list"
    args: list[ThriftType] = field(default_factory=list)


# A builtin type name, a refkey or a container
ThriftType = Union[str, Refkey, ContainerType]


@dataclass
class ThriftFieldDecl(Declaration):
    """A field of a struct, union or exception, or a function argument."""

    id: int | None = None
    type: ThriftType = ""
    required: bool = False
    optional: bool = False
    default: Any = NO_DEFAULT
    annotations: dict[str, Any] = field(default_factory=dict)


@dataclass
class StructDecl(Declaration):
    """A struct, union or exception."""

    kind: str = "struct"
    fields: list[ThriftFieldDecl] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)


@dataclass
class ThriftEnumValueDecl(Declaration):
    """An enum value, with an explicit or implicit integer."""

    value: int | None = None


@dataclass
class EnumDecl(Declaration):
    """An enum."""

    values: list[ThriftEnumValueDecl] = field(default_factory=list)


@dataclass
class TypedefDecl(Declaration):
    """A typedef."""

    type: ThriftType = ""


@dataclass
class ConstDecl(Declaration):
    """A constant."""

    type: ThriftType = ""
    value: Any = None


@dataclass
class ServiceFunctionDecl(Declaration):
    """A function of a service."""

    return_type: ThriftType = "void"
    args: list[ThriftFieldDecl] = field(default_factory=list)
    throws: list[ThriftFieldDecl] = field(default_factory=list)
    oneway: bool = False
    annotations: dict[str, Any] = field(default_factory=dict)


@dataclass
class ServiceDecl(Declaration):
    """A service."""

    extends: str | Refkey | None = None
    functions: list[ServiceFunctionDecl] = field(default_factory=list)
