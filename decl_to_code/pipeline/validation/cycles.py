"""
Transitive closure with cycle detection.

Used for every "is-a" relation of the targets: GraphQL interface
inheritance, Thrift service ``extends`` chains and Python class bases.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from ..errors import CycleDetectedError
from ..symbols.symbol import ImplementsMetadata, OutputSymbol


def direct_supertypes(symbol: OutputSymbol) -> list[Any]:
    """The declared supertypes (refkeys or literal names) of a symbol."""
    if isinstance(symbol.metadata, ImplementsMetadata):
        return list(symbol.metadata.implements)
    return []


def transitive_closure(
    root: OutputSymbol,
    resolve: Callable[[Any], OutputSymbol | None],
    *,
    relation: str = "interface inheritance",
    supertypes: Callable[[OutputSymbol], Iterable[Any]] = direct_supertypes,
) -> list[OutputSymbol]:
    """
    Collect every supertype of ``root``, depth first.

    ``seen`` holds names already in the closure, ``visiting`` the names on
    the active DFS path (the root included). Reaching a name on the path
    again is a cycle, including the one-node cycle of a symbol naming itself.

    Args:
        root: The symbol whose supertypes are collected
        resolve: Maps a declared supertype to its symbol, or None when it
            cannot be resolved (literal names, unbound refkeys)
        relation: Name of the relation, used in diagnostics
        supertypes: Returns the declared supertypes of a symbol

    Returns:
        The closure in discovery order, each name once

    Raises:
        CycleDetectedError: With the ordered path from the start of the cycle
            back to the repeated name
    """
    closure: list[OutputSymbol] = []
    seen: set[str] = set()
    path: list[str] = [root.name]
    visiting: set[str] = {root.name}

    def visit(symbol: OutputSymbol) -> None:
        for item in supertypes(symbol):
            parent = resolve(item)
            if parent is None:
                continue
            if parent.name in visiting:
                start = path.index(parent.name)
                raise CycleDetectedError(path[start:] + [parent.name], relation)
            if parent.name in seen:
                continue
            seen.add(parent.name)
            closure.append(parent)

            path.append(parent.name)
            visiting.add(parent.name)
            visit(parent)
            visiting.discard(parent.name)
            path.pop()

    visit(root)
    return closure
