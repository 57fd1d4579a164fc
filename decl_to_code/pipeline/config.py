"""
Configuration for the code generator pipeline.

Holds the rendering knobs shared by all targets plus the output
handling options used when files are written to disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when an output file already exists.
    """

    ERROR_IF_EXISTS = "error"  # Default: raise error if file exists
    FORCE = "force"  # Overwrite existing files


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle existing output files
        validate_before_write: Whether to validate code before writing
        atomic_write: Whether to use atomic file writes
    """

    mode: OutputMode = OutputMode.ERROR_IF_EXISTS
    validate_before_write: bool = True
    atomic_write: bool = True


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Add generation comment at top of each file
    add_generation_comment: bool = False

    # Text of the generation comment (command line is appended by the CLI)
    generation_comment: str = "Generated by decl_to_code, do not edit."

    # Indentation unit used by all templates
    indent: str = "  "

    # Python: emit `from __future__ import annotations`
    use_future_annotations: bool = True

    # Python: indentation unit (PEP 8)
    python_indent: str = "    "

    # Python: keyword arguments applied to every @dataclass decorator
    python_dataclass_kwargs: dict[str, bool] = field(default_factory=dict)

    # GraphQL: render the transitive closure in `implements` clauses
    expand_transitive_interfaces: bool = True

    # Thrift: punctuation appended after each field
    thrift_field_terminator: str = ";"

    # Output configuration
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "output" and isinstance(v, dict):
                mode = v.get("mode", OutputMode.ERROR_IF_EXISTS)
                if isinstance(mode, str):
                    mode = OutputMode(mode)
                config.output = OutputConfig(
                    mode=mode,
                    validate_before_write=v.get("validate_before_write", True),
                    atomic_write=v.get("atomic_write", True),
                )
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "add_generation_comment": self.add_generation_comment,
            "generation_comment": self.generation_comment,
            "indent": self.indent,
            "use_future_annotations": self.use_future_annotations,
            "python_indent": self.python_indent,
            "python_dataclass_kwargs": self.python_dataclass_kwargs,
            "expand_transitive_interfaces": self.expand_transitive_interfaces,
            "thrift_field_terminator": self.thrift_field_terminator,
            "output": {
                "mode": self.output.mode.value,
                "validate_before_write": self.output.validate_before_write,
                "atomic_write": self.output.atomic_write,
            },
        }
