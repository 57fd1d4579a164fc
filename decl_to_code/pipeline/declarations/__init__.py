"""
Declarations module.

Contains the declaration-tree nodes of each target and the parser that
builds them from a JSON declaration document.
"""

from __future__ import annotations

from .common import NO_DEFAULT, DeclarationTree, IncludeDecl, NamespaceDecl, RawValue, SourceFileDecl, has_value
from .parser import SUPPORTED_TARGETS, DeclarationParser, parse_document

__all__ = [
    "NO_DEFAULT",
    "SUPPORTED_TARGETS",
    "DeclarationParser",
    "DeclarationTree",
    "IncludeDecl",
    "NamespaceDecl",
    "RawValue",
    "SourceFileDecl",
    "has_value",
    "parse_document",
]
