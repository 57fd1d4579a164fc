"""
Symbols module.

Contains refkeys, name policies, the scope tree and the reference resolver.
"""

from __future__ import annotations

from .factory import create_symbol
from .name_policy import (
    GraphQLElement,
    GraphQLNamePolicy,
    NamePolicy,
    PythonElement,
    PythonNamePolicy,
    ThriftElement,
    ThriftNamePolicy,
    get_name_policy,
)
from .refkey import Refkey, refkey
from .resolver import ReferenceResolver, ResolvedReference
from .scopes import Binder, LexicalScope, MemberScope, ModuleScope, OutputScope, ScopeKind
from .symbol import (
    DirectiveMetadata,
    EnumMetadata,
    ImplementsMetadata,
    InputObjectMetadata,
    OutputSymbol,
    PlainMetadata,
    StructMetadata,
    SymbolFlags,
    SymbolMetadata,
    TypedValueMetadata,
    UnionMetadata,
)

__all__ = [
    "Binder",
    "DirectiveMetadata",
    "EnumMetadata",
    "GraphQLElement",
    "GraphQLNamePolicy",
    "ImplementsMetadata",
    "InputObjectMetadata",
    "LexicalScope",
    "MemberScope",
    "ModuleScope",
    "NamePolicy",
    "OutputScope",
    "OutputSymbol",
    "PlainMetadata",
    "PythonElement",
    "PythonNamePolicy",
    "ReferenceResolver",
    "Refkey",
    "ResolvedReference",
    "ScopeKind",
    "StructMetadata",
    "SymbolFlags",
    "SymbolMetadata",
    "ThriftElement",
    "ThriftNamePolicy",
    "TypedValueMetadata",
    "UnionMetadata",
    "create_symbol",
    "get_name_policy",
    "refkey",
]
