"""
Thrift include synthesis.

Cross-file references add an ``include`` directive to the consuming file
and print an alias-qualified name (``shared.User``). Manual includes take
precedence over automatic ones and may upgrade an automatic record in
place.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from enum import Enum

from ..errors import ImportAliasConflictError
from ..symbols.scopes import ModuleScope, OutputScope
from ..symbols.symbol import OutputSymbol
from .base import ImportSynthesizer

logger = logging.getLogger(__name__)


class IncludeSource(str, Enum):
    """How an include was registered."""

    MANUAL = "manual"  # Declared explicitly in the source file
    AUTO = "auto"  # Added when a cross-file reference was resolved


@dataclass
class IncludeRecord:
    """A single ``include`` directive of a Thrift file."""

    path: str
    alias: str
    source: IncludeSource


def derive_include_alias(path: str) -> str:
    """
    Derive an include alias from a file path.

    ``"shared/types.thrift"`` becomes ``"types"``.
    """
    base = posixpath.basename(path)
    if base.endswith(".thrift"):
        base = base[: -len(".thrift")]
    return base if base else path


class IncludeRegistry:
    """Include records of one consuming file, keyed by path."""

    def __init__(self):
        self._records: dict[str, IncludeRecord] = {}

    def register(self, path: str, source: IncludeSource, alias: str | None = None) -> IncludeRecord:
        """
        Register an include.

        Args:
            path: Path of the included file
            source: Whether the include is manual or automatic
            alias: Explicit alias (manual includes only)

        Returns:
            The include record for the path

        Raises:
            ImportAliasConflictError: If a manual alias conflicts with another record
        """
        existing = self._records.get(path)

        if existing is not None:
            if source == IncludeSource.MANUAL:
                new_alias = alias or derive_include_alias(path)
                if existing.source == IncludeSource.MANUAL and existing.alias != new_alias:
                    raise ImportAliasConflictError(
                        f'Include "{path}" is declared with two different aliases: "{existing.alias}" and "{new_alias}".'
                    )
                self._check_alias_free(new_alias, path)
                existing.alias = new_alias
                existing.source = IncludeSource.MANUAL
            return existing

        if source == IncludeSource.MANUAL:
            new_alias = alias or derive_include_alias(path)
            self._check_alias_free(new_alias, path)
        else:
            new_alias = self._unique_alias(derive_include_alias(path))

        record = IncludeRecord(path=path, alias=new_alias, source=source)
        self._records[path] = record
        logger.debug("Registered %s include %r as %r", source.value, path, new_alias)
        return record

    def _alias_owner(self, alias: str) -> str | None:
        for record in self._records.values():
            if record.alias == alias:
                return record.path
        return None

    def _check_alias_free(self, alias: str, path: str) -> None:
        owner = self._alias_owner(alias)
        if owner is not None and owner != path:
            raise ImportAliasConflictError(f'Include alias "{alias}" for "{path}" is already used by "{owner}".')

    def _unique_alias(self, alias: str) -> str:
        candidate = alias
        n = 2
        while self._alias_owner(candidate) is not None:
            candidate = f"{alias}_{n}"
            n += 1
        return candidate

    def get(self, path: str) -> IncludeRecord | None:
        return self._records.get(path)

    @property
    def records(self) -> list[IncludeRecord]:
        """Include records sorted by path."""
        return sorted(self._records.values(), key=lambda record: record.path)

    def __len__(self) -> int:
        return len(self._records)


class ThriftModuleScope(ModuleScope):
    """Module scope of a ``.thrift`` file, carrying its include registry."""

    def __init__(self, path: str, parent: OutputScope | None = None):
        super().__init__(path, parent)
        self.includes = IncludeRegistry()

    def include_path_for(self, target: ModuleScope) -> str:
        """Path of another file relative to this file's directory."""
        directory = posixpath.dirname(self.path)
        return posixpath.relpath(target.path, directory) if directory else target.path


class IncludeSynthesizer(ImportSynthesizer):
    """Synthesizer for targets with path-based include directives."""

    MODULE_SCOPE_CLASS = ThriftModuleScope

    def record_foreign_use(self, consumer: ModuleScope, target: OutputSymbol, *, type_only: bool = False) -> str:
        target_module = target.module
        if not isinstance(consumer, ThriftModuleScope) or target_module is None:
            return target.name
        include = consumer.includes.register(consumer.include_path_for(target_module), IncludeSource.AUTO)
        return f"{include.alias}.{target.name}"
