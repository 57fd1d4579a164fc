"""
Python code generation backend.

Generates dataclasses, functions and module variables. Every cross-module
name, including ``dataclasses`` and ``typing`` helpers, goes through the
import synthesizer, so the import block only lists what the body prints.
"""

from __future__ import annotations

import sys
from typing import Any

from ..declarations.common import RawValue, SourceFileDecl, has_value
from ..declarations.python import (
    CallValue,
    DataclassDecl,
    DataclassFieldDecl,
    ExternalRef,
    FunctionDecl,
    GenericType,
    KwOnlySentinel,
    OptionalType,
    ParameterDecl,
    PyType,
    ValueRef,
    VariableDecl,
)
from ..errors import DuplicateSymbolError, InvalidDeclarationError
from ..imports.python import ImportedSymbol, PythonModuleScope
from ..session import WalkContext
from ..symbols.name_policy import PythonElement
from ..symbols.refkey import Refkey
from ..symbols.symbol import ImplementsMetadata, OutputSymbol, PlainMetadata, TypedValueMetadata
from ..validation.python import ClassBasesTask, DataclassFieldOrderTask
from .base import CodeBackend

# Keyword arguments accepted by @dataclass
DATACLASS_KWARGS = frozenset(
    ["init", "repr", "eq", "order", "unsafe_hash", "frozen", "match_args", "kw_only", "slots", "weakref_slot"]
)


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"
    COMMENT_PREFIX = "#"
    DEFINITION_SEPARATOR = "\n\n\n"

    def _setup_templates(self) -> None:
        super()._setup_templates()
        self.jinja_env.globals["indent"] = self.config.python_indent

    # ---- pass 1: declare ----

    def _declare_top_level(
        self, name: str, kind: PythonElement, ctx: WalkContext, refkey: Refkey | None, metadata: Any = None
    ) -> OutputSymbol:
        # Classes, functions and variables share one namespace in a module
        final_name = ctx.session.name_policy.get_name(name, kind)
        existing = ctx.scope.lookup(final_name)
        if existing is not None:
            raise DuplicateSymbolError(final_name, kind.value, ctx.scope.describe(), existing=existing)
        return ctx.session.create_symbol(name, kind, ctx.scope, refkeys=refkey, metadata=metadata)

    def declare(self, declaration: Any, ctx: WalkContext) -> OutputSymbol:
        if isinstance(declaration, DataclassDecl):
            return self._declare_dataclass(declaration, ctx)
        if isinstance(declaration, FunctionDecl):
            return self._declare_function(declaration, ctx)
        if isinstance(declaration, VariableDecl):
            kind = PythonElement.CONSTANT if declaration.constant else PythonElement.VARIABLE
            symbol = self._declare_top_level(declaration.name, kind, ctx, declaration.refkey, PlainMetadata())
            return self.remember(declaration, symbol)
        raise InvalidDeclarationError(f"Unsupported Python declaration: {type(declaration).__name__}")

    def _dataclass_kwargs(self, declaration: DataclassDecl) -> dict[str, Any]:
        return {**self.config.python_dataclass_kwargs, **declaration.decorator_kwargs}

    def _check_dataclass_kwargs(self, declaration: DataclassDecl) -> dict[str, Any]:
        kwargs = self._dataclass_kwargs(declaration)
        for key in kwargs:
            if key not in DATACLASS_KWARGS:
                raise InvalidDeclarationError(f'Unsupported dataclass parameter "{key}" on "{declaration.name}"')
        if kwargs.get("weakref_slot") and not kwargs.get("slots"):
            raise InvalidDeclarationError(f'Dataclass "{declaration.name}": weakref_slot=True requires slots=True')
        sentinels = sum(isinstance(field, KwOnlySentinel) for field in declaration.fields)
        if sentinels > 1:
            raise InvalidDeclarationError(
                f'Dataclass "{declaration.name}" has {sentinels} KW_ONLY sentinels; only one is allowed'
            )
        return kwargs

    def _declare_dataclass(self, declaration: DataclassDecl, ctx: WalkContext) -> OutputSymbol:
        kwargs = self._check_dataclass_kwargs(declaration)
        generated_bases = [base for base in declaration.bases if isinstance(base, Refkey)]
        metadata = ImplementsMetadata(
            role="dataclass",
            implements=generated_bases,
            kw_only=bool(kwargs.get("kw_only", False)),
        )
        symbol = self._declare_top_level(declaration.name, PythonElement.CLASS, ctx, declaration.refkey, metadata)
        self.remember(declaration, symbol)

        members = ctx.members_of(symbol)
        kw_only = False
        for field in declaration.fields:
            if isinstance(field, KwOnlySentinel):
                kw_only = True
                continue
            field_symbol = ctx.session.create_symbol(
                field.name,
                PythonElement.FIELD,
                members.scope,
                refkeys=field.refkey,
                metadata=TypedValueMetadata(
                    role="field",
                    type=field.type,
                    has_default=has_value(field.default) or field.default_factory is not None,
                    default=field.default,
                    kw_only=kw_only,
                ),
            )
            self.remember(field, field_symbol)

        if generated_bases:
            self.session.register(ClassBasesTask(symbol, self.session.lookup))
        self.session.register(DataclassFieldOrderTask(symbol, self.session.lookup))
        return symbol

    def _declare_function(self, declaration: FunctionDecl, ctx: WalkContext) -> OutputSymbol:
        symbol = self._declare_top_level(declaration.name, PythonElement.FUNCTION, ctx, declaration.refkey, PlainMetadata())
        self.remember(declaration, symbol)

        params = ctx.lexical(f"{symbol.name} parameters")
        seen_default: str | None = None
        for param in declaration.params:
            param_symbol = ctx.session.create_symbol(
                param.name,
                PythonElement.PARAMETER,
                params.scope,
                refkeys=param.refkey,
                metadata=TypedValueMetadata(
                    role="parameter", type=param.type, has_default=has_value(param.default), default=param.default
                ),
            )
            self.remember(param, param_symbol)
            if has_value(param.default):
                seen_default = param_symbol.name
            elif seen_default is not None:
                raise InvalidDeclarationError(
                    f'Parameter "{param_symbol.name}" of function "{symbol.name}" has no default value '
                    f'but follows parameter "{seen_default}" which has one'
                )
        return symbol

    # ---- pass 2: emit ----

    def emit(self, declaration: Any, ctx: WalkContext) -> str:
        symbol = self.symbol_of(declaration)

        if isinstance(declaration, DataclassDecl):
            return self.render_template(
                "dataclass",
                name=symbol.name,
                decorator=self._decorator(declaration, ctx),
                bases=[self._callee(base, ctx) for base in declaration.bases],
                docstring=self._docstring(declaration.description),
                fields=[self._field_context(field, ctx) for field in declaration.fields],
            )

        if isinstance(declaration, FunctionDecl):
            return_type = self._annotation(declaration.return_type, ctx) if declaration.return_type is not None else None
            return self.render_template(
                "function",
                name=symbol.name,
                params=", ".join(self._parameter(param, ctx) for param in declaration.params),
                return_type=return_type,
                docstring=self._docstring(declaration.description),
                returns=self._value(declaration.returns, ctx) if has_value(declaration.returns) else None,
            )

        annotation = self._annotation(declaration.type, ctx) if declaration.type is not None else None
        return self.render_template(
            "variable",
            name=symbol.name,
            type=annotation,
            value=self._value(declaration.value, ctx),
            comment=declaration.description,
        )

    def render_prefix(self, source_file: SourceFileDecl, ctx: WalkContext) -> str:
        module = ctx.module
        sections: list[list[str]] = []
        comments = self.generation_comment_lines() + self.header_lines(source_file)
        if comments:
            sections.append(comments)
        if self.config.use_future_annotations:
            sections.append(["from __future__ import annotations"])

        if isinstance(module, PythonModuleScope):
            guard = None
            if module.has_type_only_imports:
                # Imported as a value before the groups are computed
                guard = self.session.reference_external("typing", "TYPE_CHECKING", module)
            sections.extend(self._assemble_imports(module, guard))

        return self.prefix_template.render(sections=sections)

    def _assemble_imports(self, module: PythonModuleScope, guard: str | None = None) -> list[list[str]]:
        """
        Import sections: standard library, other modules, then the TYPE_CHECKING block.

        ``guard`` is the local name of ``typing.TYPE_CHECKING``, which may be
        aliased when the module declares its own ``TYPE_CHECKING``.
        """
        stdlib: list[str] = []
        others: list[str] = []
        for module_name, symbols in module.import_groups(type_only=False):
            line = _from_import(module_name, symbols)
            if module_name.split(".")[0] in sys.stdlib_module_names:
                stdlib.append(line)
            else:
                others.append(line)

        sections = [section for section in (stdlib, others) if section]

        guarded = module.import_groups(type_only=True)
        if guarded:
            block = [f"if {guard or 'TYPE_CHECKING'}:"]
            block += [f"{self.config.python_indent}{_from_import(name, symbols)}" for name, symbols in guarded]
            sections.append(block)
        return sections

    # ---- types and values ----

    def _external(self, ref: ExternalRef, ctx: WalkContext, type_only: bool) -> str:
        return self.session.reference_external(ref.module, ref.name, ctx.module, type_only=type_only)

    def _annotation(self, type_: PyType, ctx: WalkContext) -> str:
        """An annotation, type-only unless annotations are evaluated at runtime."""
        return self._type(type_, ctx, type_only=self.config.use_future_annotations)

    def _type(self, type_: PyType, ctx: WalkContext, type_only: bool) -> str:
        if isinstance(type_, Refkey):
            return ctx.ref(type_, type_only=type_only)
        if isinstance(type_, ExternalRef):
            return self._external(type_, ctx, type_only)
        if isinstance(type_, OptionalType):
            return f"{self._type(type_.type, ctx, type_only)} | None"
        if isinstance(type_, GenericType):
            name = self._external(type_.name, ctx, type_only) if isinstance(type_.name, ExternalRef) else type_.name
            if not type_.args:
                return name
            return f"{name}[{', '.join(self._type(arg, ctx, type_only) for arg in type_.args)}]"
        return str(type_)

    def _callee(self, callee: str | Refkey | ExternalRef, ctx: WalkContext) -> str:
        if isinstance(callee, Refkey):
            return ctx.ref(callee)
        if isinstance(callee, ExternalRef):
            return self._external(callee, ctx, type_only=False)
        return callee

    def _value(self, value: Any, ctx: WalkContext) -> str:
        """Render a value expression; every name it prints is a value use."""
        if isinstance(value, ValueRef):
            return self._callee(value.target, ctx)
        if isinstance(value, CallValue):
            args = [self._value(arg, ctx) for arg in value.args]
            args += [f"{name}={self._value(arg, ctx)}" for name, arg in value.kwargs.items()]
            return f"{self._callee(value.callee, ctx)}({', '.join(args)})"
        if isinstance(value, RawValue):
            return value.text
        if isinstance(value, list):
            return "[" + ", ".join(self._value(item, ctx) for item in value) + "]"
        if isinstance(value, dict):
            return "{" + ", ".join(f"{key!r}: {self._value(item, ctx)}" for key, item in value.items()) + "}"
        return repr(value)

    def _decorator(self, declaration: DataclassDecl, ctx: WalkContext) -> str:
        name = self.session.reference_external("dataclasses", "dataclass", ctx.module)
        kwargs = self._dataclass_kwargs(declaration)
        if not kwargs:
            return name
        return f"{name}({', '.join(f'{key}={value!r}' for key, value in kwargs.items())})"

    def _docstring(self, text: str | None) -> str | None:
        if not text:
            return None
        lines = text.replace('"""', '\\"""').splitlines()
        if len(lines) == 1:
            return f'"""{lines[0]}"""'
        body = "\n".join(f"{self.config.python_indent}{line}".rstrip() for line in lines)
        return f'"""\n{body}\n{self.config.python_indent}"""'

    def _field_context(self, field: DataclassFieldDecl | KwOnlySentinel, ctx: WalkContext) -> dict[str, Any]:
        if isinstance(field, KwOnlySentinel):
            sentinel = self.session.reference_external("dataclasses", "KW_ONLY", ctx.module)
            return {"text": f"_: {sentinel}", "comment": []}
        text = f"{self.symbol_of(field).name}: {self._annotation(field.type, ctx)}"
        if field.default_factory is not None:
            field_name = self.session.reference_external("dataclasses", "field", ctx.module)
            text += f" = {field_name}(default_factory={self._callee(field.default_factory, ctx)})"
        elif has_value(field.default):
            text += f" = {self._value(field.default, ctx)}"
        return {"text": text, "comment": field.description.splitlines() if field.description else []}

    def _parameter(self, param: ParameterDecl, ctx: WalkContext) -> str:
        text = self.symbol_of(param).name
        if param.type is not None:
            text += f": {self._annotation(param.type, ctx)}"
            if has_value(param.default):
                text += f" = {self._value(param.default, ctx)}"
        elif has_value(param.default):
            text += f"={self._value(param.default, ctx)}"
        return text


def _from_import(module_name: str, symbols: list[ImportedSymbol]) -> str:
    return f"from {module_name} import {', '.join(imported.binding for imported in symbols)}"
