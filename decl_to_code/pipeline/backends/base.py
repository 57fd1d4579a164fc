"""
Base class for code generation backends.

A backend walks the declaration tree of one target twice: ``declare_file``
registers symbols and validation tasks, ``emit_file`` renders text through
Jinja2 templates. The file prefix (imports, includes) is rendered after the
body so that it sees every import recorded while the body was emitted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import jinja2

from ..declarations.common import SourceFileDecl
from ..errors import InvalidDeclarationError
from ..session import RenderSession, WalkContext
from ..symbols.scopes import ModuleScope
from ..symbols.symbol import OutputSymbol


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Template directory name
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    # Line comment prefix
    COMMENT_PREFIX: str = "#"

    # Blank lines between top-level definitions
    DEFINITION_SEPARATOR: str = "\n\n"

    def __init__(self, session: RenderSession):
        """
        Initialize the backend.

        Args:
            session: Render session of the job
        """
        self.session = session
        self.config = session.config
        # id(declaration node) -> declared symbol
        self._symbols: dict[int, OutputSymbol] = {}
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_LANG
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=False,
        )
        self.jinja_env.globals["indent"] = self.config.indent
        self.prefix_template = self.jinja_env.get_template(f"prefix.{self.FILE_EXTENSION}.jinja2")

    def render_template(self, template_name: str, /, **context: Any) -> str:
        template = self.jinja_env.get_template(f"{template_name}.{self.FILE_EXTENSION}.jinja2")
        return template.render(**context).rstrip("\n")

    # ---- pass 1: declare ----

    def declare_file(self, source_file: SourceFileDecl) -> ModuleScope:
        """
        Declare every symbol of one file.

        Args:
            source_file: The file declaration

        Returns:
            The module scope created for the file
        """
        module = self.session.create_module(source_file.path)
        ctx = WalkContext.for_module(self.session, module)
        self.declare_file_header(source_file, ctx)
        for declaration in source_file.declarations:
            self.declare(declaration, ctx)
        return module

    def declare_file_header(self, source_file: SourceFileDecl, ctx: WalkContext) -> None:
        """Register file-level directives (manual includes...). Nothing by default."""

    @abstractmethod
    def declare(self, declaration: Any, ctx: WalkContext) -> OutputSymbol:
        """
        Declare one top-level declaration and its members.

        Args:
            declaration: Declaration node
            ctx: Walk context of the file

        Returns:
            The declared symbol
        """

    def remember(self, declaration: Any, symbol: OutputSymbol) -> OutputSymbol:
        self._symbols[id(declaration)] = symbol
        return symbol

    def symbol_of(self, declaration: Any) -> OutputSymbol:
        """Symbol declared for a declaration node in pass 1."""
        symbol = self._symbols.get(id(declaration))
        if symbol is None:
            raise InvalidDeclarationError(f"Declaration {declaration.name!r} was emitted without being declared.")
        return symbol

    # ---- pass 2: emit ----

    def emit_file(self, source_file: SourceFileDecl, module: ModuleScope) -> str:
        """
        Render one file.

        Args:
            source_file: The file declaration
            module: Module scope created by ``declare_file``

        Returns:
            The file text
        """
        ctx = WalkContext.for_module(self.session, module)
        blocks = [self.emit(declaration, ctx) for declaration in source_file.declarations]
        body = self.DEFINITION_SEPARATOR.join(block for block in blocks if block)

        # Rendered last: emitting the body records the imports
        prefix = self.render_prefix(source_file, ctx).rstrip("\n")

        parts = [part for part in (prefix, body) if part]
        return self.DEFINITION_SEPARATOR.join(parts) + "\n"

    @abstractmethod
    def emit(self, declaration: Any, ctx: WalkContext) -> str:
        """Render one top-level declaration."""

    @abstractmethod
    def render_prefix(self, source_file: SourceFileDecl, ctx: WalkContext) -> str:
        """Render the file prefix (comments, header, imports)."""

    def generation_comment_lines(self) -> list[str]:
        if not self.config.add_generation_comment:
            return []
        return [f"{self.COMMENT_PREFIX} {line}".rstrip() for line in self.config.generation_comment.splitlines()]

    def header_lines(self, source_file: SourceFileDecl) -> list[str]:
        return [f"{self.COMMENT_PREFIX} {line}".rstrip() for line in source_file.header]
