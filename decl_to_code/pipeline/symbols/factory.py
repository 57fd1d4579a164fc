"""
Symbol creation.

Applies the name policy, registers the symbol in its scope and binds the
refkeys that the declaration supplies.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from .name_policy import NamePolicy
from .refkey import Refkey
from .scopes import Binder, OutputScope
from .symbol import OutputSymbol, SymbolFlags, SymbolMetadata


def create_symbol(
    name: str,
    kind: str | Enum,
    scope: OutputScope,
    *,
    name_policy: NamePolicy,
    binder: Binder,
    refkeys: Refkey | Iterable[Refkey] | None = None,
    metadata: SymbolMetadata | None = None,
    flags: SymbolFlags = SymbolFlags.NONE,
) -> OutputSymbol:
    """
    Create a symbol and declare it in a scope.

    Args:
        name: Raw declaration name
        kind: Element kind, selects the name policy transform
        scope: Scope to declare the symbol in (module, lexical or member scope)
        name_policy: Name policy of the target
        binder: Binder of the current render session
        refkeys: Refkey(s) to bind to the new symbol
        metadata: Metadata variant describing the declaration
        flags: Initial symbol flags

    Returns:
        The declared symbol

    Raises:
        InvalidIdentifierError, ReservedWordError: From the name policy
        DuplicateSymbolError: If the final name is already declared for this kind
        RefkeyBindingError: If a refkey is already bound to another symbol
    """
    final_name = name_policy.get_name(name, kind)
    symbol = OutputSymbol(final_name, kind, raw_name=name, metadata=metadata, flags=flags)
    scope.declare(symbol)

    if refkeys is None:
        keys: list[Refkey] = []
    elif isinstance(refkeys, Refkey):
        keys = [refkeys]
    else:
        keys = list(refkeys)
    for key in keys:
        binder.bind(key, symbol)

    return symbol
