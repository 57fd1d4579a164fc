"""
Deferred Python validations.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..errors import DomainInvariantError
from ..symbols.symbol import ImplementsMetadata, OutputSymbol, TypedValueMetadata
from .cycles import transitive_closure
from .registry import ValidationTask

Lookup = Callable[[Any], OutputSymbol | None]


class ClassBasesTask(ValidationTask):
    """Detects cycles among generated class bases."""

    def __init__(self, symbol: OutputSymbol, lookup: Lookup):
        super().__init__(symbol)
        self.lookup = lookup

    def run(self) -> None:
        transitive_closure(self.symbol, self.lookup, relation="class inheritance")


class DataclassFieldOrderTask(ValidationTask):
    """
    A dataclass field without a default may not follow one with a default.

    Fields inherited from generated dataclass bases come first, in base
    order, as ``dataclasses`` collects them. Fields after a ``KW_ONLY``
    sentinel do not take part, and ``kw_only`` dataclasses are exempt.
    """

    def __init__(self, symbol: OutputSymbol, lookup: Lookup):
        super().__init__(symbol)
        self.lookup = lookup

    def run(self) -> None:
        metadata = self.symbol.metadata
        if isinstance(metadata, ImplementsMetadata) and metadata.kw_only:
            return

        # Raises CycleDetectedError on inheritance cycles; reported once by ClassBasesTask
        bases = transitive_closure(self.symbol, self.lookup, relation="class inheritance")

        fields: dict[str, TypedValueMetadata] = {}
        for owner in [*reversed(bases), self.symbol]:
            if not owner.has_members:
                continue
            for member in owner.members.symbols:
                if member.kind != "field" or not isinstance(member.metadata, TypedValueMetadata):
                    continue
                fields[member.name] = member.metadata

        previous_default: str | None = None
        for name, field in fields.items():
            if field.kw_only:
                continue
            if field.has_default:
                previous_default = name
            elif previous_default is not None:
                raise DomainInvariantError(
                    f'Dataclass "{self.symbol.name}" field "{name}" has no default value '
                    f'but follows field "{previous_default}" which has one',
                    declaration=self.symbol.name,
                    member=name,
                )
