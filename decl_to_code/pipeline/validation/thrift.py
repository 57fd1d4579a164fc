"""
Deferred Thrift validations.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..errors import DomainInvariantError, GenerationError
from ..symbols.refkey import Refkey
from ..symbols.symbol import EnumMetadata, OutputSymbol, StructMetadata
from .cycles import transitive_closure
from .registry import ValidationTask

Lookup = Callable[[Any], OutputSymbol | None]


class ServiceExtendsTask(ValidationTask):
    """Detects cycles in service ``extends`` chains."""

    def __init__(self, symbol: OutputSymbol, lookup: Lookup):
        super().__init__(symbol)
        self.lookup = lookup

    def run(self) -> None:
        for parent in transitive_closure(self.symbol, self.lookup, relation="service inheritance"):
            if parent.kind != "service":
                raise DomainInvariantError(
                    f'Service "{self.symbol.name}" cannot extend "{parent.name}" because it is not a service.',
                    declaration=self.symbol.name,
                )


class ThrowsTask(ValidationTask):
    """Every ``throws`` entry of a function must be an exception."""

    def __init__(self, symbol: OutputSymbol, service_name: str, throws: list[tuple[str, Any]], lookup: Lookup):
        super().__init__(symbol)
        self.service_name = service_name
        self.throws = throws
        self.lookup = lookup

    def run(self) -> None:
        errors = self.collect()
        if errors:
            raise errors[0]

    def collect(self) -> list[GenerationError]:
        errors: list[GenerationError] = []
        for field_name, type_ in self.throws:
            if not isinstance(type_, Refkey):
                continue
            target = self.lookup(type_)
            if target is None:
                continue
            metadata = target.metadata
            if not isinstance(metadata, StructMetadata) or metadata.struct_kind != "exception":
                if isinstance(metadata, StructMetadata):
                    found = metadata.struct_kind
                elif isinstance(metadata, EnumMetadata):
                    found = "enum"
                else:
                    found = target.kind
                errors.append(
                    DomainInvariantError(
                        f'Function "{self.service_name}.{self.symbol.name}" throws "{field_name}" of type '
                        f'"{target.name}", which is a {found}, not an exception.',
                        declaration=self.service_name,
                        member=self.symbol.name,
                    )
                )
        return errors
