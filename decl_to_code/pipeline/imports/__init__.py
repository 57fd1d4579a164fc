"""
Imports module.

Contains the per-target policies deciding how cross-module references are
printed and which import or include statements they require.
"""

from __future__ import annotations

from .base import ImportSynthesizer
from .graphql import NoImportSynthesizer
from .python import ConditionalImportSynthesizer, ExternalModules, ImportedSymbol, ImportRecord, PythonModuleScope
from .thrift import IncludeRecord, IncludeRegistry, IncludeSource, IncludeSynthesizer, ThriftModuleScope

__all__ = [
    "ConditionalImportSynthesizer",
    "ExternalModules",
    "ImportRecord",
    "ImportSynthesizer",
    "ImportedSymbol",
    "IncludeRecord",
    "IncludeRegistry",
    "IncludeSource",
    "IncludeSynthesizer",
    "NoImportSynthesizer",
    "PythonModuleScope",
    "ThriftModuleScope",
]
