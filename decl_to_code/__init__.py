"""Declaration to Code Generator

A Python package for generating GraphQL schemas, Thrift IDL and Python
modules from one declaration document, with cross-file references,
import/include synthesis and deferred structural validation.
"""

__version__ = "1.0.0"

from .pipeline import (
    AtomicWriter,
    CodeGeneratorConfig,
    GenerationError,
    OutputConfig,
    OutputMode,
    PipelineGenerator,
    RenderResult,
    render,
)

__all__ = [
    "PipelineGenerator",
    "RenderResult",
    "render",
    "CodeGeneratorConfig",
    "OutputConfig",
    "OutputMode",
    "GenerationError",
    "AtomicWriter",
]
