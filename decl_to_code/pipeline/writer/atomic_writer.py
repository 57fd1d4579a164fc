"""
Atomic file writer for generated output.

Ensures that file writes are atomic to prevent data corruption
from interrupted operations.
"""

from __future__ import annotations

import ast
import logging
import re
import tempfile
from collections.abc import Callable
from pathlib import Path

from ..config import OutputConfig, OutputMode
from ..errors import OutputValidationError

logger = logging.getLogger(__name__)

# String literals and comments, removed before counting braces
_STRINGS_AND_COMMENTS = re.compile(r'"""[\s\S]*?"""|"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'|/\*[\s\S]*?\*/|//[^\n]*|#[^\n]*')


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file

    This ensures that an interrupted write operation never leaves
    the target file in an incomplete state.
    """

    def __init__(self, validators: dict[str, Callable[[str], None]] | None = None):
        """Initialize the atomic writer.

        Args:
            validators: Validation function per language, replacing the defaults
        """
        self._validators: dict[str, Callable[[str], None]] = {
            "python": self._default_validate_python,
            "graphql": self._default_validate_braces,
            "thrift": self._default_validate_braces,
        }
        if validators:
            self._validators.update(validators)

    def write(
        self,
        path: Path,
        content: str,
        language: str,
        validate: bool = True,
    ) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            language: Language for validation ("graphql", "thrift" or "python")
            validate: Whether to validate before finalizing

        Raises:
            OutputValidationError: If validation fails
            OSError: If file operations fail
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )

        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)

            if validate:
                self._validate_content(content, language, path)

            temp_path.replace(path)
            logger.debug("Wrote %s", path)

        except Exception:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    logger.warning("Could not remove temporary file %s", temp_path)
            raise

    def write_if_not_exists(
        self,
        path: Path,
        content: str,
        language: str,
        validate: bool = True,
    ) -> bool:
        """Write content only if the file doesn't exist.

        Returns:
            True if file was written

        Raises:
            FileExistsError: If the file already exists
            OutputValidationError: If validation fails
        """
        if path.exists():
            raise FileExistsError(f"Output file already exists: {path}. Use force mode to overwrite.")

        self.write(path, content, language, validate)
        return True

    def write_all(self, output_dir: Path, files: dict[str, str], language: str, config: OutputConfig) -> list[Path]:
        """
        Write every output file of a job under ``output_dir``.

        All paths are checked against the output mode before anything is
        written, so an existing file never leaves a partial output.

        Returns:
            The written paths
        """
        targets = {output_dir / relative: content for relative, content in files.items()}
        if config.mode == OutputMode.ERROR_IF_EXISTS:
            for path in targets:
                if path.exists():
                    raise FileExistsError(f"Output file already exists: {path}. Use force mode to overwrite.")

        written = []
        for path, content in targets.items():
            if config.atomic_write:
                self.write(path, content, language, config.validate_before_write)
            else:
                if config.validate_before_write:
                    self._validate_content(content, language, path)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            written.append(path)
        return written

    def _validate_content(self, content: str, language: str, path: Path) -> None:
        validator = self._validators.get(language)
        if validator is None:
            return
        try:
            validator(content)
        except OutputValidationError as e:
            raise OutputValidationError(f"{path}: {e}") from e

    def _default_validate_python(self, content: str) -> None:
        """Default Python validation.

        Raises:
            OutputValidationError: If the code does not parse
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise OutputValidationError(f"Generated Python code is not valid: {e}") from e

    def _default_validate_braces(self, content: str) -> None:
        """Check for balanced braces outside of strings and comments.

        Raises:
            OutputValidationError: If braces are unbalanced
        """
        stripped = _STRINGS_AND_COMMENTS.sub("", content)
        depth = 0
        for char in stripped:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    break
        if depth != 0:
            open_braces = stripped.count("{")
            close_braces = stripped.count("}")
            raise OutputValidationError(f"Generated code has unbalanced braces: {open_braces} open, {close_braces} close")
