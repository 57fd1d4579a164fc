"""
Scope tree and refkey binder.

Scopes form a tree rooted at one module scope per output file. Each scope
owns a symbol table where names are unique per (scope, element kind).
Member scopes belong to an owner symbol, so two types may each declare a
field with the same name.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import DuplicateSymbolError, RefkeyBindingError
from .symbol import OutputSymbol, kind_key

if TYPE_CHECKING:
    from .refkey import Refkey

logger = logging.getLogger(__name__)


class ScopeKind(str, Enum):
    """Kind of scope in the scope tree."""

    MODULE = "module"
    LEXICAL = "lexical"
    MEMBER = "member"


class OutputScope:
    """A named container of symbols."""

    KIND: ScopeKind = ScopeKind.LEXICAL

    def __init__(self, name: str, parent: OutputScope | None = None, owner_symbol: OutputSymbol | None = None):
        self.name = name
        self.parent = parent
        self.owner_symbol = owner_symbol
        self.children: list[OutputScope] = []
        # (kind, name) -> symbol, in declaration order
        self._symbols: dict[tuple[str, str], OutputSymbol] = {}
        if parent is not None:
            parent.children.append(self)

    @property
    def kind(self) -> ScopeKind:
        return self.KIND

    @property
    def module(self) -> ModuleScope | None:
        scope: OutputScope | None = self
        while scope is not None:
            if isinstance(scope, ModuleScope):
                return scope
            scope = scope.parent
        return None

    @property
    def symbols(self) -> list[OutputSymbol]:
        return list(self._symbols.values())

    @property
    def names(self) -> set[str]:
        return {name for _, name in self._symbols}

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self):
        return iter(self.symbols)

    def describe(self) -> str:
        """Human readable location used in diagnostics."""
        return self.name

    def declare(self, symbol: OutputSymbol) -> OutputSymbol:
        """
        Register a symbol in this scope.

        Raises:
            DuplicateSymbolError: If the same name and kind is already declared here
        """
        key = (symbol.kind, symbol.name)
        existing = self._symbols.get(key)
        if existing is not None:
            raise DuplicateSymbolError(symbol.name, symbol.kind, self.describe(), existing=existing, new=symbol)
        self._symbols[key] = symbol
        symbol.scope = self
        logger.debug("Declared %s %r in %s", symbol.kind, symbol.name, self.describe())
        return symbol

    def lookup(self, name: str, kind: str | Enum | None = None) -> OutputSymbol | None:
        if kind is not None:
            return self._symbols.get((kind_key(kind), name))
        for (_, symbol_name), symbol in self._symbols.items():
            if symbol_name == name:
                return symbol
        return None

    def rename_symbol(self, symbol: OutputSymbol, new_name: str) -> None:
        old_key = (symbol.kind, symbol.name)
        new_key = (symbol.kind, new_name)
        if new_key in self._symbols and self._symbols[new_key] is not symbol:
            raise DuplicateSymbolError(new_name, symbol.kind, self.describe(), existing=self._symbols[new_key], new=symbol)
        self._symbols.pop(old_key, None)
        symbol._name = new_name
        self._symbols[new_key] = symbol

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()!r}>"


class ModuleScope(OutputScope):
    """Root scope of one output file."""

    KIND = ScopeKind.MODULE

    def __init__(self, path: str, parent: OutputScope | None = None):
        super().__init__(path, parent)
        self.path = path


class LexicalScope(OutputScope):
    """A nested block with its own symbol table (argument lists, parameters)."""

    KIND = ScopeKind.LEXICAL


class MemberScope(OutputScope):
    """A symbol table owned by a parent symbol (a type's fields, an enum's values)."""

    KIND = ScopeKind.MEMBER

    def describe(self) -> str:
        if self.owner_symbol is not None:
            return self.owner_symbol.name
        return self.name


class Binder:
    """Binds refkeys to the single symbol that declares them."""

    def __init__(self):
        self._symbols: dict[Refkey, OutputSymbol] = {}

    def bind(self, key: Refkey, symbol: OutputSymbol) -> None:
        """
        Bind a refkey to a symbol.

        Raises:
            RefkeyBindingError: If the refkey is already bound to another symbol
        """
        existing = self._symbols.get(key)
        if existing is not None and existing is not symbol:
            raise RefkeyBindingError(f"{key!r} is already bound to {existing.name!r}; cannot bind it to {symbol.name!r}.")
        self._symbols[key] = symbol
        if key not in symbol.refkeys:
            symbol.refkeys.append(key)

    def get_symbol(self, key: Refkey) -> OutputSymbol | None:
        return self._symbols.get(key)

    def __contains__(self, key: Refkey) -> bool:
        return key in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def clear(self) -> None:
        self._symbols.clear()
