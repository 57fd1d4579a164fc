"""
Pipeline generator - orchestrates all phases of code generation.

This is the main entry point for the pipeline. It coordinates:
1. Parsing the declaration document into a declaration tree
2. Declaring every file (symbols, refkeys, validation tasks)
3. Emitting every file through the target backend
4. Running the deferred validations
5. Optionally writing the output files atomically
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .backends import get_backend
from .config import CodeGeneratorConfig
from .declarations import DeclarationTree, parse_document
from .errors import GenerationError
from .session import RenderSession
from .symbols.name_policy import NamePolicy
from .writer import AtomicWriter

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """
    Output of one generation job.

    Attributes:
        target: Target language of the job
        output_files: Generated text per output file path, in document order
        errors: Collected unresolved-reference and deferred validation errors
    """

    target: str = ""
    output_files: dict[str, str] = field(default_factory=dict)
    errors: list[GenerationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def render(
    document: DeclarationTree | dict[str, Any],
    config: CodeGeneratorConfig | None = None,
    target: str | None = None,
    name_policy: NamePolicy | None = None,
) -> RenderResult:
    """
    Render a declaration tree (or document) in one job.

    Fail-fast errors (duplicate symbols, invalid identifiers, invalid
    declarations) propagate. Unresolved references and deferred validation
    failures are collected into the result next to the generated text.

    Args:
        document: Declaration tree, or a declaration document to parse
        config: Code generation configuration
        target: Target language, overriding the document's
        name_policy: Name policy overriding the target's default one

    Returns:
        RenderResult with the output files and the collected errors
    """
    if isinstance(document, DeclarationTree):
        tree = document
    else:
        tree = parse_document(document, target)

    with RenderSession(tree.target, config, name_policy=name_policy) as session:
        backend = get_backend(session)

        logger.debug("Declaring %d files for target %s", len(tree.files), tree.target)
        modules = [backend.declare_file(source_file) for source_file in tree.files]

        session.begin_emit()
        output_files = {
            source_file.path: backend.emit_file(source_file, module) for source_file, module in zip(tree.files, modules)
        }

        logger.debug("Running %d deferred validations", len(session.validations))
        errors = session.run_validations()

    if errors:
        logger.debug("Generation finished with %d errors", len(errors))
    return RenderResult(target=tree.target, output_files=output_files, errors=errors)


class PipelineGenerator:
    """
    Main generator class using the declare/emit/validate pipeline.

    Example:
        generator = PipelineGenerator("python", config)
        result = generator.generate(document)
        if result.ok:
            generator.write(result, Path("out"))
    """

    def __init__(self, target: str | None = None, config: CodeGeneratorConfig | None = None):
        """
        Initialize the generator.

        Args:
            target: Target language; the document's ``"target"`` key is used when None
            config: Code generation configuration
        """
        self.target = target
        self.config = config or CodeGeneratorConfig()
        self.writer = AtomicWriter()

    def generate(self, document: DeclarationTree | dict[str, Any]) -> RenderResult:
        """Render a declaration tree or document."""
        return render(document, self.config, target=self.target)

    def write(self, result: RenderResult, output_dir: Path) -> list[Path]:
        """
        Write every output file of a result under ``output_dir``.

        Args:
            result: Result returned by ``generate``
            output_dir: Directory the output paths are relative to

        Returns:
            The written paths

        Raises:
            FileExistsError: If a file exists and the output mode forbids overwriting
            OutputValidationError: If generated text fails validation
        """
        return self.writer.write_all(Path(output_dir), result.output_files, result.target, self.config.output)
