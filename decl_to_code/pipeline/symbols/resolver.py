"""
Reference resolver.

Turns a refkey into the name printed at an emission site. Resolution is
lazy (nothing is looked up until the returned thunk is called) and
memoized per (refkey, consuming module, usage), so import side effects are
applied once per consuming module even when a refkey is printed many times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import GenerationError, UnresolvedReferenceError
from .refkey import Refkey, unresolved_name
from .scopes import Binder, ModuleScope, OutputScope
from .symbol import OutputSymbol

if TYPE_CHECKING:
    from ..imports.base import ImportSynthesizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedReference:
    """Result of resolving a refkey at one emission site."""

    display_name: str
    symbol: OutputSymbol | None = None
    scope: OutputScope | None = None

    @property
    def is_resolved(self) -> bool:
        return self.symbol is not None

    def __str__(self) -> str:
        return self.display_name


class ReferenceResolver:
    """Resolves refkeys to display names, delegating cross-module uses to an import synthesizer."""

    def __init__(
        self,
        binder: Binder,
        synthesizer: ImportSynthesizer,
        report: Callable[[GenerationError], None] | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            binder: Binder holding the refkey -> symbol bindings of the session
            synthesizer: Import/include policy of the target
            report: Callback receiving unresolved reference diagnostics
        """
        self.binder = binder
        self.synthesizer = synthesizer
        self.report = report
        # Unresolved references are only diagnosed once emission has started
        self.report_unresolved = False
        self._memo: dict[tuple[Refkey, ModuleScope, bool], ResolvedReference] = {}

    def resolve(self, key: Refkey, consumer: ModuleScope, *, type_only: bool = False) -> Callable[[], ResolvedReference]:
        """
        Create a lazy binding for a refkey.

        Args:
            key: The refkey to resolve
            consumer: Module scope of the file printing the reference
            type_only: Whether the reference is printed in a type-only position

        Returns:
            A thunk returning the ResolvedReference when called
        """
        return lambda: self._resolve_now(key, consumer, type_only)

    def resolve_now(self, key: Refkey, consumer: ModuleScope, *, type_only: bool = False) -> ResolvedReference:
        return self._resolve_now(key, consumer, type_only)

    def lookup(self, key: Refkey) -> OutputSymbol | None:
        """Find the bound symbol without any import side effects."""
        return self.binder.get_symbol(key)

    def _resolve_now(self, key: Refkey, consumer: ModuleScope, type_only: bool) -> ResolvedReference:
        memo_key = (key, consumer, type_only)
        cached = self._memo.get(memo_key)
        if cached is not None:
            return cached

        symbol = self.binder.get_symbol(key)
        if symbol is None:
            # Not memoized: the refkey may still be bound later in the declare pass
            if self.report_unresolved:
                logger.warning("Unresolved reference %r rendered in %s", key, consumer.path)
                if self.report is not None:
                    self.report(UnresolvedReferenceError(key, consumer.path))
            return ResolvedReference(unresolved_name(key))

        target_module = symbol.module
        if target_module is not None and target_module is not consumer:
            display_name = self.synthesizer.record_foreign_use(consumer, symbol, type_only=type_only)
        else:
            display_name = symbol.name

        result = ResolvedReference(display_name, symbol, symbol.scope)
        self._memo[memo_key] = result
        return result

    def clear(self) -> None:
        self._memo.clear()
