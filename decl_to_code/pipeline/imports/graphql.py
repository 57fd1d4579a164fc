"""
GraphQL reference policy.

SDL has no module system: cross-file references print the bare declared
name and nothing is recorded. Composing several schema files is left to
the consumer of the generated files.
"""

from __future__ import annotations

from ..symbols.scopes import ModuleScope
from ..symbols.symbol import OutputSymbol
from .base import ImportSynthesizer


class NoImportSynthesizer(ImportSynthesizer):
    """Synthesizer for targets without imports."""

    def record_foreign_use(self, consumer: ModuleScope, target: OutputSymbol, *, type_only: bool = False) -> str:
        return target.name
