"""
Output symbols and their metadata variants.

A symbol is one named, emittable declaration. Semantic relationships
(implemented interfaces, directive locations, field types...) are carried
in a closed set of metadata variants so that deferred validations can
dispatch on the variant type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .refkey import Refkey
    from .scopes import MemberScope, ModuleScope, OutputScope


class SymbolFlags(IntFlag):
    """Flags describing how a symbol is used."""

    NONE = 0
    LOCAL_IMPORT = 1 << 0  # Local alias of a symbol imported from another module
    TYPE_ONLY = 1 << 1  # Only used in type annotation contexts


@dataclass
class SymbolMetadata:
    """Base class of the metadata variants."""


@dataclass
class PlainMetadata(SymbolMetadata):
    """No semantic relationships (scalars, typedefs, constants...)."""


@dataclass
class ImplementsMetadata(SymbolMetadata):
    """A declaration with supertypes: interfaces, object types, classes, services."""

    role: str = "object"  # "object", "interface", "class", "dataclass", "service"
    implements: list[Any] = field(default_factory=list)  # Refkeys or literal names
    kw_only: bool = False


@dataclass
class InputObjectMetadata(SymbolMetadata):
    """A GraphQL input object."""

    one_of: bool = False


@dataclass
class TypedValueMetadata(SymbolMetadata):
    """A field, argument, input field or parameter with a type annotation."""

    role: str = "field"
    type: Any = None
    has_default: bool = False
    default: Any = None
    kw_only: bool = False


@dataclass
class DirectiveMetadata(SymbolMetadata):
    """A GraphQL directive definition."""

    locations: list[str] = field(default_factory=list)
    repeatable: bool = False


@dataclass
class EnumMetadata(SymbolMetadata):
    """An enum type."""

    values: list[str] = field(default_factory=list)


@dataclass
class UnionMetadata(SymbolMetadata):
    """A GraphQL union type."""

    members: list[Any] = field(default_factory=list)


@dataclass
class StructMetadata(SymbolMetadata):
    """A Thrift struct, union or exception."""

    struct_kind: str = "struct"


def kind_key(kind: str | Enum) -> str:
    """Normalize an element kind to its string value."""
    return kind.value if isinstance(kind, Enum) else str(kind)


class OutputSymbol:
    """A named declaration registered in a scope."""

    def __init__(
        self,
        name: str,
        kind: str | Enum,
        scope: OutputScope | None = None,
        *,
        raw_name: str | None = None,
        metadata: SymbolMetadata | None = None,
        alias_target: OutputSymbol | None = None,
        flags: SymbolFlags = SymbolFlags.NONE,
    ):
        self._name = name
        self.raw_name = raw_name if raw_name is not None else name
        self.kind = kind_key(kind)
        self.scope = scope
        self.metadata = metadata if metadata is not None else PlainMetadata()
        self.alias_target = alias_target
        self.flags = flags
        self.refkeys: list[Refkey] = []
        self._members: MemberScope | None = None

    @property
    def name(self) -> str:
        return self._name

    def rename(self, new_name: str) -> None:
        """Rename the symbol. Only used when aliasing imported symbols."""
        if self.scope is not None:
            self.scope.rename_symbol(self, new_name)
        else:
            self._name = new_name

    @property
    def members(self) -> MemberScope:
        """The member scope owned by this symbol, created on first access."""
        if self._members is None:
            from .scopes import MemberScope

            self._members = MemberScope(f"{self.name} members", parent=self.scope, owner_symbol=self)
        return self._members

    @property
    def has_members(self) -> bool:
        return self._members is not None and len(self._members) > 0

    @property
    def module(self) -> ModuleScope | None:
        return self.scope.module if self.scope is not None else None

    @property
    def is_type_only(self) -> bool:
        return bool(self.flags & SymbolFlags.TYPE_ONLY)

    @property
    def is_local_import(self) -> bool:
        return bool(self.flags & SymbolFlags.LOCAL_IMPORT)

    def mark_as_value(self) -> None:
        """Record a value use: clears TYPE_ONLY, never sets it back."""
        self.flags &= ~SymbolFlags.TYPE_ONLY

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind} {self.name!r}>"
