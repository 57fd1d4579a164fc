"""
Base class for import/include synthesizers.

A synthesizer is told about every cross-module use of a symbol and
decides what name the consuming module prints, recording whatever
import or include statement the consuming module must emit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..symbols.scopes import ModuleScope
from ..symbols.symbol import OutputSymbol


class ImportSynthesizer(ABC):
    """Per-target cross-module reference policy."""

    # Module scope class instantiated for each output file of the target
    MODULE_SCOPE_CLASS: type[ModuleScope] = ModuleScope

    def create_module_scope(self, path: str) -> ModuleScope:
        """Create the module scope of one output file."""
        return self.MODULE_SCOPE_CLASS(path)

    @abstractmethod
    def record_foreign_use(self, consumer: ModuleScope, target: OutputSymbol, *, type_only: bool = False) -> str:
        """
        Record the use of a symbol declared in another module.

        Args:
            consumer: Module scope printing the reference
            target: The referenced symbol
            type_only: Whether the use is in a type-only position

        Returns:
            The name to print in the consuming module
        """
