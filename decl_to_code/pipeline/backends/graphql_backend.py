"""
GraphQL SDL code generation backend.
"""

from __future__ import annotations

import json
from typing import Any

from ..declarations.common import RawValue, SourceFileDecl, has_value
from ..declarations.graphql import (
    DirectiveApplication,
    DirectiveDefinitionDecl,
    EnumTypeDecl,
    FieldDecl,
    GraphQLType,
    InputObjectTypeDecl,
    InputValueDecl,
    InterfaceTypeDecl,
    ObjectTypeDecl,
    ScalarTypeDecl,
    UnionTypeDecl,
    format_type,
)
from ..errors import CycleDetectedError, InvalidDeclarationError
from ..session import WalkContext
from ..symbols.name_policy import GraphQLElement
from ..symbols.refkey import Refkey
from ..symbols.symbol import (
    DirectiveMetadata,
    EnumMetadata,
    ImplementsMetadata,
    InputObjectMetadata,
    OutputSymbol,
    PlainMetadata,
    TypedValueMetadata,
    UnionMetadata,
)
from ..validation.cycles import transitive_closure
from ..validation.graphql import (
    DirectiveApplicationsTask,
    InputUsageTask,
    InterfaceImplementationTask,
    OneOfInputTask,
    OutputUsageTask,
    UnionMembersTask,
)
from .base import CodeBackend


def format_value(value: Any) -> str:
    """Format a Python value as a GraphQL literal."""
    if isinstance(value, RawValue):
        return value.text
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{key}: {format_value(item)}" for key, item in value.items()) + "}"
    raise InvalidDeclarationError(f"Cannot format {value!r} as a GraphQL value")


class GraphQLBackend(CodeBackend):
    """GraphQL SDL code generation backend."""

    TEMPLATE_LANG = "graphql"
    FILE_EXTENSION = "graphql"
    COMMENT_PREFIX = "#"

    # ---- pass 1: declare ----

    def declare(self, declaration: Any, ctx: WalkContext) -> OutputSymbol:
        if isinstance(declaration, (ObjectTypeDecl, InterfaceTypeDecl)):
            return self._declare_object(declaration, ctx)
        if isinstance(declaration, InputObjectTypeDecl):
            return self._declare_input(declaration, ctx)
        if isinstance(declaration, EnumTypeDecl):
            return self._declare_enum(declaration, ctx)
        if isinstance(declaration, UnionTypeDecl):
            return self._declare_union(declaration, ctx)
        if isinstance(declaration, ScalarTypeDecl):
            symbol = ctx.session.create_symbol(
                declaration.name, GraphQLElement.TYPE, ctx.scope, refkeys=declaration.refkey, metadata=PlainMetadata()
            )
            self._register_directives(symbol, declaration.directives, "SCALAR")
            return self.remember(declaration, symbol)
        if isinstance(declaration, DirectiveDefinitionDecl):
            return self._declare_directive(declaration, ctx)
        raise InvalidDeclarationError(f"Unsupported GraphQL declaration: {type(declaration).__name__}")

    def _register_directives(self, symbol: OutputSymbol, applications: list[DirectiveApplication], location: str) -> None:
        if not applications:
            return
        self.session.register(
            DirectiveApplicationsTask(
                symbol,
                applications,
                location,
                self.session.lookup,
                lambda name: self.session.find_symbol(name, GraphQLElement.DIRECTIVE),
            )
        )

    def _declare_object(self, declaration: ObjectTypeDecl, ctx: WalkContext) -> OutputSymbol:
        is_interface = isinstance(declaration, InterfaceTypeDecl)
        symbol = ctx.session.create_symbol(
            declaration.name,
            GraphQLElement.TYPE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=ImplementsMetadata(role="interface" if is_interface else "object", implements=list(declaration.implements)),
        )
        self.remember(declaration, symbol)
        self._register_directives(symbol, declaration.directives, "INTERFACE" if is_interface else "OBJECT")

        members = ctx.members_of(symbol)
        for field in declaration.fields:
            self._declare_field(field, members)

        if declaration.implements:
            self.session.register(InterfaceImplementationTask(symbol, self.session.lookup))
        return symbol

    def _declare_field(self, field: FieldDecl, ctx: WalkContext) -> OutputSymbol:
        symbol = ctx.session.create_symbol(
            field.name, GraphQLElement.FIELD, ctx.scope, metadata=TypedValueMetadata(role="field", type=field.type)
        )
        self.remember(field, symbol)
        self.session.register(OutputUsageTask(symbol, self.session.lookup))
        self._register_directives(symbol, field.directives, "FIELD_DEFINITION")

        arguments = ctx.members_of(symbol)
        for arg in field.args:
            self._declare_input_value(arg, arguments, GraphQLElement.ARGUMENT)
        return symbol

    def _declare_input_value(self, value: InputValueDecl, ctx: WalkContext, kind: GraphQLElement) -> OutputSymbol:
        symbol = ctx.session.create_symbol(
            value.name,
            kind,
            ctx.scope,
            metadata=TypedValueMetadata(
                role=kind.value, type=value.type, has_default=has_value(value.default), default=value.default
            ),
        )
        self.remember(value, symbol)
        if kind == GraphQLElement.ARGUMENT:
            self.session.register(InputUsageTask(symbol, "Argument", self.session.lookup))
            self._register_directives(symbol, value.directives, "ARGUMENT_DEFINITION")
        else:
            self.session.register(InputUsageTask(symbol, "Input field", self.session.lookup))
            self._register_directives(symbol, value.directives, "INPUT_FIELD_DEFINITION")
        return symbol

    def _declare_input(self, declaration: InputObjectTypeDecl, ctx: WalkContext) -> OutputSymbol:
        symbol = ctx.session.create_symbol(
            declaration.name,
            GraphQLElement.TYPE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=InputObjectMetadata(one_of=declaration.one_of),
        )
        self.remember(declaration, symbol)
        self._register_directives(symbol, declaration.directives, "INPUT_OBJECT")

        members = ctx.members_of(symbol)
        for field in declaration.fields:
            self._declare_input_value(field, members, GraphQLElement.INPUT_FIELD)

        if declaration.one_of:
            self.session.register(OneOfInputTask(symbol))
        return symbol

    def _declare_enum(self, declaration: EnumTypeDecl, ctx: WalkContext) -> OutputSymbol:
        if not declaration.values:
            raise InvalidDeclarationError(f'Enum "{declaration.name}" must have at least one value')
        symbol = ctx.session.create_symbol(
            declaration.name,
            GraphQLElement.TYPE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=EnumMetadata(values=[value.name for value in declaration.values]),
        )
        self.remember(declaration, symbol)
        self._register_directives(symbol, declaration.directives, "ENUM")

        members = ctx.members_of(symbol)
        for value in declaration.values:
            value_symbol = ctx.session.create_symbol(value.name, GraphQLElement.ENUM_VALUE, members.scope, refkeys=value.refkey)
            self.remember(value, value_symbol)
            self._register_directives(value_symbol, value.directives, "ENUM_VALUE")
        return symbol

    def _declare_union(self, declaration: UnionTypeDecl, ctx: WalkContext) -> OutputSymbol:
        if not declaration.members:
            raise InvalidDeclarationError(f'Union "{declaration.name}" must have at least one member type')
        symbol = ctx.session.create_symbol(
            declaration.name,
            GraphQLElement.TYPE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=UnionMetadata(members=list(declaration.members)),
        )
        self.remember(declaration, symbol)
        self._register_directives(symbol, declaration.directives, "UNION")
        self.session.register(UnionMembersTask(symbol, self.session.lookup))
        return symbol

    def _declare_directive(self, declaration: DirectiveDefinitionDecl, ctx: WalkContext) -> OutputSymbol:
        symbol = ctx.session.create_symbol(
            declaration.name,
            GraphQLElement.DIRECTIVE,
            ctx.scope,
            refkeys=declaration.refkey,
            metadata=DirectiveMetadata(locations=list(declaration.locations), repeatable=declaration.repeatable),
        )
        self.remember(declaration, symbol)
        arguments = ctx.members_of(symbol)
        for arg in declaration.args:
            self._declare_input_value(arg, arguments, GraphQLElement.ARGUMENT)
        return symbol

    # ---- pass 2: emit ----

    def emit(self, declaration: Any, ctx: WalkContext) -> str:
        symbol = self.symbol_of(declaration)
        common = {
            "name": symbol.name,
            "description": self._description(declaration.description, 0),
        }

        if isinstance(declaration, (ObjectTypeDecl, InterfaceTypeDecl)):
            return self.render_template(
                "object",
                **common,
                keyword="interface" if isinstance(declaration, InterfaceTypeDecl) else "type",
                implements=self._implements(declaration, symbol, ctx),
                directives=self._directives(declaration.directives, ctx),
                fields=[self._field_context(field, ctx) for field in declaration.fields],
            )

        if isinstance(declaration, InputObjectTypeDecl):
            applications = list(declaration.directives)
            if declaration.one_of and not any(self._directive_name(a, ctx) == "oneOf" for a in applications):
                applications.insert(0, DirectiveApplication(directive="oneOf"))
            return self.render_template(
                "input",
                **common,
                directives=self._directives(applications, ctx),
                fields=[self._input_value_context(field, ctx, 1) for field in declaration.fields],
            )

        if isinstance(declaration, EnumTypeDecl):
            return self.render_template(
                "enum",
                **common,
                directives=self._directives(declaration.directives, ctx),
                values=[
                    {
                        "name": self.symbol_of(value).name,
                        "description": self._description(value.description, 1),
                        "directives": self._directives(value.directives, ctx),
                    }
                    for value in declaration.values
                ],
            )

        if isinstance(declaration, UnionTypeDecl):
            return self.render_template(
                "union",
                **common,
                directives=self._directives(declaration.directives, ctx),
                members=[self._name_ref(member, ctx) for member in declaration.members],
            )

        if isinstance(declaration, ScalarTypeDecl):
            return self.render_template("scalar", **common, directives=self._directives(declaration.directives, ctx))

        return self.render_template(
            "directive",
            **common,
            args=self._arguments(declaration.args, ctx),
            repeatable=declaration.repeatable,
            locations=declaration.locations,
        )

    def render_prefix(self, source_file: SourceFileDecl, ctx: WalkContext) -> str:
        return self.prefix_template.render(
            generation_comment=self.generation_comment_lines(),
            header=self.header_lines(source_file),
        )

    def _type(self, type_: GraphQLType, ctx: WalkContext) -> str:
        return format_type(type_, ctx.ref)

    def _name_ref(self, item: str | Refkey, ctx: WalkContext) -> str:
        return ctx.ref(item) if isinstance(item, Refkey) else item

    def _implements(self, declaration: ObjectTypeDecl, symbol: OutputSymbol, ctx: WalkContext) -> list[str]:
        """
        Names printed in the ``implements`` clause.

        With ``expand_transitive_interfaces`` the clause lists the whole
        closure in depth-first order; on a cycle it falls back to the direct
        interfaces (the cycle is reported by the deferred validation).
        """
        direct = [self._name_ref(item, ctx) for item in declaration.implements]
        if not self.config.expand_transitive_interfaces:
            return direct
        try:
            transitive_closure(symbol, self.session.lookup)
        except CycleDetectedError:
            return direct

        names: list[str] = []
        for item in declaration.implements:
            parent = self.session.lookup(item)
            candidates = [self._name_ref(item, ctx)]
            if parent is not None:
                candidates += [ancestor.name for ancestor in transitive_closure(parent, self.session.lookup)]
            for name in candidates:
                if name not in names and name != symbol.name:
                    names.append(name)
        return names

    def _directive_name(self, application: DirectiveApplication, ctx: WalkContext) -> str:
        return self._name_ref(application.directive, ctx)

    def _directives(self, applications: list[DirectiveApplication], ctx: WalkContext) -> str:
        rendered = []
        for application in applications:
            text = f"@{self._directive_name(application, ctx)}"
            if application.args:
                text += "(" + ", ".join(f"{name}: {format_value(value)}" for name, value in application.args.items()) + ")"
            rendered.append(text)
        return "".join(f" {text}" for text in rendered)

    def _description(self, text: str | None, level: int) -> str:
        if not text:
            return ""
        prefix = self.config.indent * level
        lines = text.replace('"""', '\\"""').splitlines()
        if len(lines) == 1:
            return f'{prefix}"""{lines[0]}"""'
        body = "\n".join(f"{prefix}{line}".rstrip() for line in lines)
        return f'{prefix}"""\n{body}\n{prefix}"""'

    def _input_value_context(self, value: InputValueDecl, ctx: WalkContext, level: int) -> dict[str, Any]:
        text = f"{self.symbol_of(value).name}: {self._type(value.type, ctx)}"
        if has_value(value.default):
            text += f" = {format_value(value.default)}"
        text += self._directives(value.directives, ctx)
        return {"text": text, "description": self._description(value.description, level)}

    def _arguments(self, args: list[InputValueDecl], ctx: WalkContext) -> str:
        if not args:
            return ""
        if not any(arg.description for arg in args):
            return "(" + ", ".join(self._input_value_context(arg, ctx, 0)["text"] for arg in args) + ")"

        indent = self.config.indent * 2
        lines = ["("]
        for arg in args:
            arg_context = self._input_value_context(arg, ctx, 2)
            if arg_context["description"]:
                lines.append(arg_context["description"])
            lines.append(f"{indent}{arg_context['text']}")
        lines.append(f"{self.config.indent})")
        return "\n".join(lines)

    def _field_context(self, field: FieldDecl, ctx: WalkContext) -> dict[str, Any]:
        return {
            "name": self.symbol_of(field).name,
            "description": self._description(field.description, 1),
            "args": self._arguments(field.args, ctx),
            "type": self._type(field.type, ctx),
            "directives": self._directives(field.directives, ctx),
        }
