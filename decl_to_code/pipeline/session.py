"""
Render session: the state of one generation job.

A session owns every mutable structure of a job (binder, module scopes,
external modules, resolver memo, validation registry and collected
errors). It is created at the start of a job and torn down with
``close()``; nothing survives between jobs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import CodeGeneratorConfig
from .errors import GenerationError, InvalidDeclarationError
from .imports.base import ImportSynthesizer
from .imports.graphql import NoImportSynthesizer
from .imports.python import ConditionalImportSynthesizer, ExternalModules
from .imports.thrift import IncludeSynthesizer
from .symbols.factory import create_symbol
from .symbols.name_policy import NamePolicy, get_name_policy
from .symbols.refkey import Refkey
from .symbols.resolver import ReferenceResolver, ResolvedReference
from .symbols.scopes import Binder, LexicalScope, ModuleScope, OutputScope
from .symbols.symbol import OutputSymbol, SymbolFlags, SymbolMetadata
from .validation.registry import ValidationRegistry, ValidationTask

logger = logging.getLogger(__name__)

SYNTHESIZERS: dict[str, type[ImportSynthesizer]] = {
    "graphql": NoImportSynthesizer,
    "thrift": IncludeSynthesizer,
    "python": ConditionalImportSynthesizer,
}


class Phase(str, Enum):
    """Phases of a generation job, in order."""

    DECLARE = "declare"
    EMIT = "emit"
    VALIDATE = "validate"
    CLOSED = "closed"


class RenderSession:
    """State of one generation job."""

    def __init__(
        self,
        target: str,
        config: CodeGeneratorConfig | None = None,
        name_policy: NamePolicy | None = None,
        synthesizer: ImportSynthesizer | None = None,
    ):
        """
        Initialize the session.

        Args:
            target: Target language ("graphql", "thrift" or "python")
            config: Code generation configuration
            name_policy: Name policy overriding the target's default one
            synthesizer: Import synthesizer overriding the target's default one
        """
        if target not in SYNTHESIZERS:
            raise ValueError(f"Target '{target}' is not supported")
        self.target = target
        self.config = config or CodeGeneratorConfig()
        self.name_policy = name_policy or get_name_policy(target)
        self.synthesizer = synthesizer or SYNTHESIZERS[target]()

        self.binder = Binder()
        self.modules: dict[str, ModuleScope] = {}
        self.external = ExternalModules()
        self.errors: list[GenerationError] = []
        self._error_keys: set = set()
        self.resolver = ReferenceResolver(self.binder, self.synthesizer, report=self.report)
        self.validations = ValidationRegistry()
        self.phase = Phase.DECLARE

    def __enter__(self) -> RenderSession:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # ---- declare pass ----

    def create_module(self, path: str) -> ModuleScope:
        """
        Create the module scope of one output file.

        Raises:
            InvalidDeclarationError: If the path is already used by another file
        """
        if path in self.modules:
            raise InvalidDeclarationError(f'Output file "{path}" is declared more than once.')
        module = self.synthesizer.create_module_scope(path)
        self.modules[path] = module
        logger.debug("Created module scope %s", path)
        return module

    def create_symbol(
        self,
        name: str,
        kind: str | Enum,
        scope: OutputScope,
        *,
        refkeys: Refkey | Iterable[Refkey] | None = None,
        metadata: SymbolMetadata | None = None,
        flags: SymbolFlags = SymbolFlags.NONE,
    ) -> OutputSymbol:
        return create_symbol(
            name,
            kind,
            scope,
            name_policy=self.name_policy,
            binder=self.binder,
            refkeys=refkeys,
            metadata=metadata,
            flags=flags,
        )

    def register(self, task: ValidationTask) -> None:
        self.validations.register(task)

    # ---- lookups (no import side effects) ----

    def lookup(self, item: Any) -> OutputSymbol | None:
        """Return the symbol bound to a refkey; None for literal names and unbound refkeys."""
        if isinstance(item, Refkey):
            return self.binder.get_symbol(item)
        return None

    def find_symbol(self, name: str, kind: str) -> OutputSymbol | None:
        """Find a top-level symbol by final name and kind in any module of the job."""
        for module in self.modules.values():
            symbol = module.lookup(name, kind)
            if symbol is not None:
                return symbol
        return None

    # ---- emit pass ----

    def begin_emit(self) -> None:
        logger.debug("Declare pass done: %d modules, %d bound refkeys", len(self.modules), len(self.binder))
        self.phase = Phase.EMIT
        self.resolver.report_unresolved = True

    def reference(self, key: Refkey, consumer: ModuleScope, *, type_only: bool = False) -> ResolvedReference:
        """Resolve a refkey printed in ``consumer``, applying import side effects."""
        return self.resolver.resolve(key, consumer, type_only=type_only)()

    def reference_external(self, module_name: str, name: str, consumer: ModuleScope, *, type_only: bool = False) -> str:
        """Name printed in ``consumer`` for a symbol of a module that is not generated."""
        symbol = self.external.symbol(module_name, name)
        return self.synthesizer.record_foreign_use(consumer, symbol, type_only=type_only)

    def report(self, error: GenerationError) -> None:
        """Collect a non-fatal error, dropping repeats."""
        key = error.dedupe_key
        if key in self._error_keys:
            return
        self._error_keys.add(key)
        self.errors.append(error)

    # ---- validate pass ----

    def run_validations(self) -> list[GenerationError]:
        """Run the deferred validations and return every collected error of the job."""
        self.phase = Phase.VALIDATE
        for error in self.validations.run_all():
            self.report(error)
        return list(self.errors)

    def close(self) -> None:
        """Tear down every structure of the job."""
        self.binder.clear()
        self.modules.clear()
        self.external.clear()
        self.resolver.clear()
        self.validations.reset()
        self.errors = []
        self._error_keys = set()
        self.phase = Phase.CLOSED
        logger.debug("Render session closed")


@dataclass
class WalkContext:
    """
    Explicit context threaded through the declaration walker.

    Attributes:
        session: The render session of the job
        module: Module scope of the file being walked (the consuming module)
        scope: Scope new symbols are declared in
        owner: Symbol owning ``scope`` when it is a member scope
    """

    session: RenderSession
    module: ModuleScope
    scope: OutputScope
    owner: OutputSymbol | None = None

    @classmethod
    def for_module(cls, session: RenderSession, module: ModuleScope) -> WalkContext:
        return cls(session=session, module=module, scope=module)

    def members_of(self, symbol: OutputSymbol) -> WalkContext:
        """Context declaring into the member scope of ``symbol``."""
        return WalkContext(self.session, self.module, symbol.members, owner=symbol)

    def lexical(self, name: str) -> WalkContext:
        """Context declaring into a new lexical scope nested in the current one."""
        return WalkContext(self.session, self.module, LexicalScope(name, parent=self.scope), owner=self.owner)

    def ref(self, key: Refkey, *, type_only: bool = False) -> str:
        """Display name of a refkey printed in the current module."""
        return self.session.reference(key, self.module, type_only=type_only).display_name
