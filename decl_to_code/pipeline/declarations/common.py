"""
Declaration nodes shared by all targets.

These nodes describe what to generate. They carry raw (pre name policy)
names and refkeys; nothing is resolved at this stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..symbols.refkey import Refkey


class _NoDefault:
    """Sentinel for "no default value" (``None`` is a valid default)."""

    _instance: _NoDefault | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Any = _NoDefault()


def has_value(value: Any) -> bool:
    return value is not NO_DEFAULT


@dataclass
class Declaration:
    """Base class for all named declarations."""

    name: str = ""
    refkey: Refkey | None = None
    description: str | None = None


@dataclass
class IncludeDecl:
    """A manual include directive (Thrift)."""

    path: str = ""
    alias: str | None = None


@dataclass
class NamespaceDecl:
    """A namespace directive (Thrift)."""

    lang: str = ""
    value: str = ""


@dataclass
class SourceFileDecl:
    """One output file and its top-level declarations."""

    path: str = ""
    declarations: list[Any] = field(default_factory=list)

    # Lines placed at the very top of the file (license headers...)
    header: list[str] = field(default_factory=list)

    # Thrift only
    includes: list[IncludeDecl] = field(default_factory=list)
    namespaces: list[NamespaceDecl] = field(default_factory=list)


@dataclass
class DeclarationTree:
    """The complete input of one generation job."""

    target: str = ""
    files: list[SourceFileDecl] = field(default_factory=list)

    # Refkeys minted by the parser, by document id
    refkeys: dict[str, Refkey] = field(default_factory=dict)


@dataclass
class RawValue:
    """Source text inserted verbatim (enum value literals, expressions...)."""

    text: str = ""
