"""
Pipeline - declaration tree to multi-target code generator.

This module provides a multi-phase architecture for generating GraphQL,
Thrift and Python source from a declaration document:

1. Phase 1 (Parser): Parse the declaration document into declaration nodes
2. Phase 2 (Declare): Create scopes and symbols, bind refkeys, register validations
3. Phase 3 (Emit): Render each file, resolving refkeys and synthesizing imports
4. Phase 4 (Validate): Run the deferred validations once and collect errors
5. Phase 5 (Writer): Optionally write the output files atomically
"""

from __future__ import annotations

from .config import CodeGeneratorConfig, OutputConfig, OutputMode
from .errors import (
    CycleDetectedError,
    DeclarationError,
    DeferredValidationError,
    DocumentParseError,
    DomainInvariantError,
    DuplicateSymbolError,
    GenerationError,
    ImportAliasConflictError,
    InvalidDeclarationError,
    InvalidIdentifierError,
    OutputValidationError,
    RefkeyBindingError,
    ReservedWordError,
    UnresolvedReferenceError,
)
from .generator import PipelineGenerator, RenderResult, render
from .session import RenderSession, WalkContext
from .symbols import Refkey, refkey
from .writer import AtomicWriter

__all__ = [
    "PipelineGenerator",
    "RenderResult",
    "RenderSession",
    "WalkContext",
    "render",
    "CodeGeneratorConfig",
    "OutputConfig",
    "OutputMode",
    "AtomicWriter",
    "Refkey",
    "refkey",
    "GenerationError",
    "DocumentParseError",
    "DeclarationError",
    "DuplicateSymbolError",
    "InvalidIdentifierError",
    "ReservedWordError",
    "RefkeyBindingError",
    "ImportAliasConflictError",
    "InvalidDeclarationError",
    "UnresolvedReferenceError",
    "DeferredValidationError",
    "CycleDetectedError",
    "DomainInvariantError",
    "OutputValidationError",
]
