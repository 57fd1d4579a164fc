"""
Python declaration nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..symbols.refkey import Refkey
from .common import NO_DEFAULT, Declaration


@dataclass
class ExternalRef:
    """A symbol of a module that is not generated, e.g. ``datetime.datetime``."""

    module: str = ""
    name: str = ""


@dataclass
class GenericType:
    """A subscripted type, e.g. ``list[User]``."""

    name: str | ExternalRef = ""
    args: list[PyType] = field(default_factory=list)


@dataclass
class OptionalType:
    """``T | None``."""

    type: PyType = ""


PyType = Union[str, Refkey, ExternalRef, GenericType, OptionalType]


@dataclass
class ValueRef:
    """A value use of a generated or external symbol."""

    target: Refkey | ExternalRef | None = None


@dataclass
class CallValue:
    """A call expression, e.g. ``User(name="x")``."""

    callee: str | Refkey | ExternalRef = ""
    args: list[Any] = field(default_factory=list)
    kwargs: dict[str, Any] = field(default_factory=dict)


@dataclass
class DataclassFieldDecl(Declaration):
    """A field of a dataclass."""

    type: PyType = ""
    default: Any = NO_DEFAULT
    default_factory: str | Refkey | ExternalRef | None = None


@dataclass
class KwOnlySentinel:
    """The ``_: KW_ONLY`` pseudo-field; every field after it is keyword-only."""


@dataclass
class DataclassDecl(Declaration):
    """A ``@dataclass`` class."""

    bases: list[str | Refkey | ExternalRef] = field(default_factory=list)
    fields: list[DataclassFieldDecl | KwOnlySentinel] = field(default_factory=list)
    decorator_kwargs: dict[str, Any] = field(default_factory=dict)


@dataclass
class ParameterDecl(Declaration):
    """A function parameter."""

    type: PyType | None = None
    default: Any = NO_DEFAULT


@dataclass
class FunctionDecl(Declaration):
    """A function returning a single expression (or ``...``)."""

    params: list[ParameterDecl] = field(default_factory=list)
    return_type: PyType | None = None
    returns: Any = NO_DEFAULT


@dataclass
class VariableDecl(Declaration):
    """A module-level variable or constant."""

    type: PyType | None = None
    value: Any = None
    constant: bool = False
