"""
Python import synthesis.

Each foreign symbol printed by a module becomes a local import symbol in
that module. Imports start out type-only when first used in an annotation
and are upgraded in place to value imports on the first value use; they are
never downgraded. Type-only imports are emitted under ``if TYPE_CHECKING:``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..symbols.scopes import ModuleScope, OutputScope
from ..symbols.symbol import OutputSymbol, SymbolFlags
from .base import ImportSynthesizer

logger = logging.getLogger(__name__)

IMPORT_KIND = "import"


def module_name_for_path(path: str) -> str:
    """
    Convert a file path to a dotted module name.

    ``"models/user.py"`` becomes ``"models.user"`` and
    ``"models/__init__.py"`` becomes ``"models"``.
    """
    stem = path[:-3] if path.endswith(".py") else path
    parts = [part for part in stem.split("/") if part and part != "."]
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


@dataclass(eq=False)
class ImportedSymbol:
    """A foreign symbol and its local alias in the importing module."""

    target: OutputSymbol
    local: OutputSymbol

    @property
    def binding(self) -> str:
        if self.local.name == self.target.name:
            return self.target.name
        return f"{self.target.name} as {self.local.name}"


@dataclass
class ImportRecord:
    """All symbols one module imports from one target module."""

    module: ModuleScope
    symbols: list[ImportedSymbol] = field(default_factory=list)


class PythonModuleScope(ModuleScope):
    """Module scope of a ``.py`` file, tracking its imports."""

    def __init__(self, path: str, parent: OutputScope | None = None, module_name: str | None = None):
        super().__init__(path, parent)
        self.module_name = module_name if module_name is not None else module_name_for_path(path)
        # target symbol -> local import symbol
        self.imported_symbols: dict[OutputSymbol, OutputSymbol] = {}
        # target module -> import record
        self.imported_modules: dict[ModuleScope, ImportRecord] = {}

    def add_import(self, target: OutputSymbol, target_module: ModuleScope, *, type_only: bool = False) -> OutputSymbol:
        """
        Import a symbol into this module.

        Args:
            target: The foreign symbol
            target_module: Module scope declaring the symbol
            type_only: Whether this use is in a type-only position

        Returns:
            The local import symbol
        """
        existing = self.imported_symbols.get(target)
        if existing is not None:
            if not type_only and existing.is_type_only:
                logger.debug("Upgrading import of %r in %s to a value import", target.name, self.path)
                existing.mark_as_value()
            return existing

        record = self.imported_modules.get(target_module)
        if record is None:
            record = ImportRecord(module=target_module)
            self.imported_modules[target_module] = record

        flags = SymbolFlags.LOCAL_IMPORT
        if type_only:
            flags |= SymbolFlags.TYPE_ONLY

        local = OutputSymbol(self._free_name(target.name), IMPORT_KIND, alias_target=target, flags=flags)
        self.declare(local)
        self.imported_symbols[target] = local
        record.symbols.append(ImportedSymbol(target=target, local=local))
        logger.debug("Imported %r from %s into %s", target.name, _module_name(target_module), self.path)
        return local

    def _free_name(self, name: str) -> str:
        taken = self.names
        if name not in taken:
            return name
        n = 2
        while f"{name}_{n}" in taken:
            n += 1
        return f"{name}_{n}"

    @property
    def has_type_only_imports(self) -> bool:
        return any(local.is_type_only for local in self.imported_symbols.values())

    def import_groups(self, type_only: bool) -> list[tuple[str, list[ImportedSymbol]]]:
        """
        Imports grouped by module, sorted by module name then symbol name.

        Args:
            type_only: Select type-only imports (True) or value imports (False)
        """
        groups: list[tuple[str, list[ImportedSymbol]]] = []
        for module, record in self.imported_modules.items():
            symbols = [imported for imported in record.symbols if imported.local.is_type_only == type_only]
            if symbols:
                symbols.sort(key=lambda imported: imported.target.name)
                groups.append((_module_name(module), symbols))
        groups.sort(key=lambda group: group[0])
        return groups


def _module_name(module: ModuleScope) -> str:
    if isinstance(module, PythonModuleScope):
        return module.module_name
    return module_name_for_path(module.path)


class ExternalModules:
    """Module scopes standing in for modules that are not generated (``typing``, ``dataclasses``...)."""

    def __init__(self):
        self._modules: dict[str, PythonModuleScope] = {}

    def module(self, module_name: str) -> PythonModuleScope:
        scope = self._modules.get(module_name)
        if scope is None:
            scope = PythonModuleScope(f"<external:{module_name}>", module_name=module_name)
            self._modules[module_name] = scope
        return scope

    def symbol(self, module_name: str, name: str) -> OutputSymbol:
        """Return the symbol for ``module_name.name``, declaring it on first use."""
        scope = self.module(module_name)
        symbol = scope.lookup(name, "external")
        if symbol is None:
            symbol = scope.declare(OutputSymbol(name, "external"))
        return symbol

    def clear(self) -> None:
        self._modules.clear()


class ConditionalImportSynthesizer(ImportSynthesizer):
    """Synthesizer for targets with typing-only conditional imports."""

    MODULE_SCOPE_CLASS = PythonModuleScope

    def record_foreign_use(self, consumer: ModuleScope, target: OutputSymbol, *, type_only: bool = False) -> str:
        target_module = target.module
        if not isinstance(consumer, PythonModuleScope) or target_module is None:
            return target.name
        return consumer.add_import(target, target_module, type_only=type_only).name
