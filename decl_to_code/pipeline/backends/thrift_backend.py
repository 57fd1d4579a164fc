"""
Thrift IDL code generation backend.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..declarations.common import RawValue, SourceFileDecl, has_value
from ..declarations.thrift import (
    ConstDecl,
    ContainerType,
    EnumDecl,
    ServiceDecl,
    ServiceFunctionDecl,
    StructDecl,
    ThriftFieldDecl,
    ThriftType,
    TypedefDecl,
)
from ..errors import InvalidDeclarationError
from ..imports.thrift import IncludeSource, ThriftModuleScope
from ..session import RenderSession, WalkContext
from ..symbols.name_policy import ThriftElement
from ..symbols.refkey import Refkey
from ..symbols.symbol import (
    EnumMetadata,
    ImplementsMetadata,
    OutputSymbol,
    PlainMetadata,
    StructMetadata,
    TypedValueMetadata,
)
from ..validation.thrift import ServiceExtendsTask, ThrowsTask
from .base import CodeBackend

MIN_I16 = -(2**15)
MAX_I16 = 2**15 - 1
MIN_I32 = -(2**31)
MAX_I32 = 2**31 - 1

_NAMESPACE_VALUE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


def format_value(value: Any) -> str:
    """Format a Python value as a Thrift constant literal."""
    if isinstance(value, RawValue):
        return value.text
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{format_value(key)}: {format_value(item)}" for key, item in value.items()) + "}"
    raise InvalidDeclarationError(f"Cannot format {value!r} as a Thrift constant")


class ThriftBackend(CodeBackend):
    """Thrift IDL code generation backend."""

    TEMPLATE_LANG = "thrift"
    FILE_EXTENSION = "thrift"
    COMMENT_PREFIX = "//"

    def __init__(self, session: RenderSession):
        super().__init__(session)
        # id(enum declaration) -> explicit or implicit value of each enum value
        self._enum_numbers: dict[int, list[int]] = {}

    # ---- pass 1: declare ----

    def declare_file_header(self, source_file: SourceFileDecl, ctx: WalkContext) -> None:
        for namespace in source_file.namespaces:
            if not _NAMESPACE_VALUE.match(namespace.value):
                raise InvalidDeclarationError(f"Invalid Thrift namespace value '{namespace.value}'.")

        module = ctx.module
        if isinstance(module, ThriftModuleScope):
            for include in source_file.includes:
                module.includes.register(include.path, IncludeSource.MANUAL, include.alias)

    def declare(self, declaration: Any, ctx: WalkContext) -> OutputSymbol:
        if isinstance(declaration, StructDecl):
            return self._declare_struct(declaration, ctx)
        if isinstance(declaration, EnumDecl):
            return self._declare_enum(declaration, ctx)
        if isinstance(declaration, TypedefDecl):
            symbol = ctx.session.create_symbol(
                declaration.name, ThriftElement.TYPEDEF, ctx.scope, refkeys=declaration.refkey, metadata=PlainMetadata()
            )
            return self.remember(declaration, symbol)
        if isinstance(declaration, ConstDecl):
            symbol = ctx.session.create_symbol(
                declaration.name, ThriftElement.CONST, ctx.scope, refkeys=declaration.refkey, metadata=PlainMetadata()
            )
            return self.remember(declaration, symbol)
        if isinstance(declaration, ServiceDecl):
            return self._declare_service(declaration, ctx)
        raise InvalidDeclarationError(f"Unsupported Thrift declaration: {type(declaration).__name__}")

    def _declare_fields(self, fields: list[ThriftFieldDecl], ctx: WalkContext, owner: str, allow_required: bool) -> None:
        """Declare fields, enforcing requiredness and field id rules."""
        ids: set[int] = set()
        for field in fields:
            if field.required and field.optional:
                raise InvalidDeclarationError("Field cannot be both required and optional.")
            if field.required and not allow_required:
                raise InvalidDeclarationError(f"Required fields are not allowed in {owner}.")
            if field.id is not None:
                if isinstance(field.id, bool) or not isinstance(field.id, int) or not MIN_I16 <= field.id <= MAX_I16:
                    raise InvalidDeclarationError(
                        f"Field id {field.id} is out of range; must be between {MIN_I16} and {MAX_I16}."
                    )
                if field.id in ids:
                    raise InvalidDeclarationError(f"{owner} has duplicate field id {field.id}.")
                ids.add(field.id)

            symbol = ctx.session.create_symbol(
                field.name,
                ThriftElement.FIELD,
                ctx.scope,
                refkeys=field.refkey,
                metadata=TypedValueMetadata(
                    role="field", type=field.type, has_default=has_value(field.default), default=field.default
                ),
            )
            self.remember(field, symbol)

    def _declare_struct(self, declaration: StructDecl, ctx: WalkContext) -> OutputSymbol:
        if declaration.kind not in ("struct", "union", "exception"):
            raise InvalidDeclarationError(f'Unknown struct kind "{declaration.kind}" for "{declaration.name}".')
        symbol = ctx.session.create_symbol(
            declaration.name,
            ThriftElement.TYPE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=StructMetadata(struct_kind=declaration.kind),
        )
        self.remember(declaration, symbol)
        self._declare_fields(
            declaration.fields,
            ctx.members_of(symbol),
            owner=f'{declaration.kind} "{symbol.name}"',
            allow_required=declaration.kind != "union",
        )
        return symbol

    def _declare_enum(self, declaration: EnumDecl, ctx: WalkContext) -> OutputSymbol:
        symbol = ctx.session.create_symbol(
            declaration.name,
            ThriftElement.TYPE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=EnumMetadata(values=[value.name for value in declaration.values]),
        )
        self.remember(declaration, symbol)

        members = ctx.members_of(symbol)
        numbers: list[int] = []
        next_value = 0
        for value in declaration.values:
            number = next_value if value.value is None else value.value
            if isinstance(number, bool) or not isinstance(number, int):
                raise InvalidDeclarationError(f"Enum value '{value.name}' must be an integer.")
            if not MIN_I32 <= number <= MAX_I32:
                raise InvalidDeclarationError(f"Enum value '{value.name}' must be a 32-bit signed integer.")
            if number in numbers:
                raise InvalidDeclarationError(f"Enum '{symbol.name}' has duplicate value number {number}.")
            numbers.append(number)
            next_value = number + 1

            value_symbol = ctx.session.create_symbol(value.name, ThriftElement.ENUM_VALUE, members.scope, refkeys=value.refkey)
            self.remember(value, value_symbol)

        self._enum_numbers[id(declaration)] = numbers
        return symbol

    def _declare_service(self, declaration: ServiceDecl, ctx: WalkContext) -> OutputSymbol:
        symbol = ctx.session.create_symbol(
            declaration.name,
            ThriftElement.SERVICE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=ImplementsMetadata(
                role="service", implements=[declaration.extends] if declaration.extends is not None else []
            ),
        )
        self.remember(declaration, symbol)
        if declaration.extends is not None:
            self.session.register(ServiceExtendsTask(symbol, self.session.lookup))

        members = ctx.members_of(symbol)
        for function in declaration.functions:
            self._declare_function(function, members, symbol)
        return symbol

    def _declare_function(self, function: ServiceFunctionDecl, ctx: WalkContext, service: OutputSymbol) -> OutputSymbol:
        if function.oneway and function.return_type != "void":
            raise InvalidDeclarationError("Oneway functions must return void.")

        symbol = ctx.session.create_symbol(function.name, ThriftElement.FUNCTION, ctx.scope, refkeys=function.refkey)
        self.remember(function, symbol)

        owner = f'function "{service.name}.{symbol.name}"'
        self._declare_fields(function.args, ctx.lexical(f"{owner} arguments"), owner=owner, allow_required=True)
        self._declare_fields(function.throws, ctx.lexical(f"{owner} throws"), owner=owner, allow_required=False)

        if function.throws:
            self.session.register(
                ThrowsTask(
                    symbol,
                    service.name,
                    [(self.symbol_of(field).name, field.type) for field in function.throws],
                    self.session.lookup,
                )
            )
        return symbol

    # ---- pass 2: emit ----

    def emit(self, declaration: Any, ctx: WalkContext) -> str:
        symbol = self.symbol_of(declaration)
        common = {"name": symbol.name, "doc": self._doc(declaration.description, 0)}

        if isinstance(declaration, StructDecl):
            return self.render_template(
                "struct",
                **common,
                keyword=declaration.kind,
                fields=[self._field(field, ctx) + self.config.thrift_field_terminator for field in declaration.fields],
                field_docs=[self._doc(field.description, 1) for field in declaration.fields],
                annotations=self._annotations(declaration.annotations),
            )

        if isinstance(declaration, EnumDecl):
            numbers = self._enum_numbers[id(declaration)]
            return self.render_template(
                "enum",
                **common,
                values=[
                    {
                        "name": self.symbol_of(value).name,
                        "number": numbers[index] if value.value is not None else None,
                        "doc": self._doc(value.description, 1),
                    }
                    for index, value in enumerate(declaration.values)
                ],
            )

        if isinstance(declaration, TypedefDecl):
            return self.render_template("typedef", **common, type=self._type(declaration.type, ctx))

        if isinstance(declaration, ConstDecl):
            return self.render_template(
                "const", **common, type=self._type(declaration.type, ctx), value=format_value(declaration.value)
            )

        return self.render_template(
            "service",
            **common,
            extends=self._name_ref(declaration.extends, ctx) if declaration.extends is not None else None,
            functions=[self._function(function, ctx) for function in declaration.functions],
        )

    def render_prefix(self, source_file: SourceFileDecl, ctx: WalkContext) -> str:
        module = ctx.module
        includes = module.includes.records if isinstance(module, ThriftModuleScope) else []
        return self.prefix_template.render(
            generation_comment=self.generation_comment_lines(),
            header=self.header_lines(source_file),
            namespaces=source_file.namespaces,
            includes=includes,
        )

    def _name_ref(self, item: str | Refkey, ctx: WalkContext) -> str:
        return ctx.ref(item) if isinstance(item, Refkey) else item

    def _type(self, type_: ThriftType, ctx: WalkContext) -> str:
        if isinstance(type_, ContainerType):
            return f"{type_.kind}<{', '.join(self._type(arg, ctx) for arg in type_.args)}>"
        return self._name_ref(type_, ctx)

    def _doc(self, text: str | None, level: int) -> str:
        if not text:
            return ""
        prefix = self.config.indent * level
        lines = text.splitlines()
        if len(lines) == 1:
            return f"{prefix}/** {lines[0]} */"
        body = "\n".join(f"{prefix} * {line}".rstrip() for line in lines)
        return f"{prefix}/**\n{body}\n{prefix} */"

    def _annotations(self, annotations: dict[str, Any]) -> str:
        if not annotations:
            return ""
        return " (" + ", ".join(f"{key} = {format_value(str(value))}" for key, value in annotations.items()) + ")"

    def _field(self, field: ThriftFieldDecl, ctx: WalkContext) -> str:
        text = f"{field.id}: " if field.id is not None else ""
        if field.required:
            text += "required "
        elif field.optional:
            text += "optional "
        text += f"{self._type(field.type, ctx)} {self.symbol_of(field).name}"
        if has_value(field.default):
            text += f" = {format_value(field.default)}"
        return text + self._annotations(field.annotations)

    def _function(self, function: ServiceFunctionDecl, ctx: WalkContext) -> dict[str, Any]:
        text = "oneway " if function.oneway else ""
        text += f"{self._type(function.return_type, ctx)} {self.symbol_of(function).name}"
        text += "(" + ", ".join(self._field(arg, ctx) for arg in function.args) + ")"
        if function.throws:
            text += " throws (" + ", ".join(self._field(field, ctx) for field in function.throws) + ")"
        text += self._annotations(function.annotations) + self.config.thrift_field_terminator
        return {"text": text, "doc": self._doc(function.description, 1)}
