"""
Error taxonomy for the generation pipeline.

Declaration errors are fail-fast: they are raised synchronously while the
declaration tree is being walked. Deferred validation errors and unresolved
references are collected and returned alongside the generated output.
"""

from __future__ import annotations

from typing import Any


class GenerationError(Exception):
    """Base class for every error produced by a generation job."""

    @property
    def dedupe_key(self) -> Any:
        """Key used to drop repeated reports of the same problem."""
        return (type(self).__name__, str(self))


class DocumentParseError(GenerationError):
    """Raised when a declaration document cannot be parsed."""


class DeclarationError(GenerationError):
    """Base class for fail-fast errors raised during the declare pass."""


class DuplicateSymbolError(DeclarationError):
    """Raised when a name is declared twice for the same kind in one scope."""

    def __init__(self, name: str, kind: str, scope_name: str, existing: Any = None, new: Any = None):
        self.name = name
        self.kind = kind
        self.scope_name = scope_name
        self.existing = existing
        self.new = new
        super().__init__(f'Duplicate {kind} name "{name}" in {scope_name}. The new declaration {new!r} conflicts with {existing!r}.')


class InvalidIdentifierError(DeclarationError):
    """Raised when a transformed name does not match the target identifier grammar."""


class ReservedWordError(DeclarationError):
    """Raised when a name collides with a reserved or introspection-special identifier."""


class RefkeyBindingError(DeclarationError):
    """Raised when a refkey is bound to a second symbol."""


class ImportAliasConflictError(DeclarationError):
    """Raised when include aliases conflict within one consuming file."""


class InvalidDeclarationError(DeclarationError):
    """Raised for a declaration whose shape is invalid on its own."""


class UnresolvedReferenceError(GenerationError):
    """A refkey was rendered but never bound to a symbol."""

    def __init__(self, refkey: Any, module_path: str):
        self.refkey = refkey
        self.module_path = module_path
        super().__init__(f"Unresolved reference {refkey!r} rendered in {module_path}.")

    @property
    def dedupe_key(self) -> Any:
        return ("unresolved", self.refkey, self.module_path)


class DeferredValidationError(GenerationError):
    """Base class for errors found once the whole declaration tree is known."""


class CycleDetectedError(DeferredValidationError):
    """A structural cycle was found while computing a transitive closure."""

    def __init__(self, path: list[str], relation: str = "interface inheritance"):
        self.path = list(path)
        self.relation = relation
        super().__init__(f"Circular {relation} detected: {' -> '.join(self.path)}")

    @property
    def dedupe_key(self) -> Any:
        # The same cycle is found once from every declaration on it.
        return ("cycle", self.relation, frozenset(self.path))


class DomainInvariantError(DeferredValidationError):
    """A target-specific rule was violated by a declaration."""

    def __init__(self, message: str, declaration: str = "", member: str | None = None):
        self.declaration = declaration
        self.member = member
        super().__init__(message)

    @property
    def dedupe_key(self) -> Any:
        return ("domain", self.declaration, self.member, str(self))


class OutputValidationError(GenerationError):
    """Raised when generated text fails validation before being written."""
