"""
Deferred GraphQL validations.

Each task inspects symbols and their metadata variants once the whole
declaration tree has been declared, so forward references are resolved.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..declarations.graphql import DirectiveApplication, GraphQLType, format_type, is_nullable, named_type
from ..errors import CycleDetectedError, DomainInvariantError, GenerationError
from ..symbols.refkey import Refkey, unresolved_name
from ..symbols.symbol import (
    DirectiveMetadata,
    EnumMetadata,
    ImplementsMetadata,
    InputObjectMetadata,
    OutputSymbol,
    TypedValueMetadata,
    UnionMetadata,
)
from .cycles import transitive_closure
from .registry import ValidationTask

Lookup = Callable[[Any], OutputSymbol | None]


def type_category(symbol: OutputSymbol) -> str:
    """Category of a type symbol as used in diagnostics ("object", "interface"...)."""
    metadata = symbol.metadata
    if isinstance(metadata, ImplementsMetadata):
        return metadata.role
    if isinstance(metadata, InputObjectMetadata):
        return "input object"
    if isinstance(metadata, UnionMetadata):
        return "union"
    if isinstance(metadata, EnumMetadata):
        return "enum"
    return "scalar"


def type_text(type_: GraphQLType, lookup: Lookup) -> str:
    """SDL text of a type, with refkeys printed as their bare symbol names."""

    def name_of(key: Refkey) -> str:
        symbol = lookup(key)
        return symbol.name if symbol is not None else unresolved_name(key)

    return format_type(type_, name_of)


def _typed(symbol: OutputSymbol) -> TypedValueMetadata:
    if isinstance(symbol.metadata, TypedValueMetadata):
        return symbol.metadata
    return TypedValueMetadata()


def _members(symbol: OutputSymbol, kind: str) -> list[OutputSymbol]:
    if not symbol.has_members:
        return []
    return [member for member in symbol.members.symbols if member.kind == kind]


class InterfaceImplementationTask(ValidationTask):
    """
    Checks the ``implements`` clause of an object or interface type.

    The transitive closure of implemented interfaces is computed with cycle
    detection, then every interface of the closure is checked for field
    completeness, return types and argument lists.
    """

    def __init__(self, symbol: OutputSymbol, lookup: Lookup):
        super().__init__(symbol)
        self.lookup = lookup
        self.closure: list[OutputSymbol] | None = None

    def run(self) -> None:
        errors = self.collect()
        if errors:
            raise errors[0]

    def collect(self) -> list[GenerationError]:
        try:
            self.closure = transitive_closure(self.symbol, self.lookup)
        except CycleDetectedError as e:
            return [e]

        errors: list[GenerationError] = []
        for interface in self.closure:
            if type_category(interface) != "interface":
                errors.append(
                    DomainInvariantError(
                        f'Type "{self.symbol.name}" cannot implement "{interface.name}" because it is not an interface type',
                        declaration=self.symbol.name,
                    )
                )
                continue
            errors.extend(self._check_interface(interface))
        return errors

    def _check_interface(self, interface: OutputSymbol) -> list[GenerationError]:
        errors: list[GenerationError] = []
        type_name = self.symbol.name
        interface_name = interface.name

        for interface_field in _members(interface, "field"):
            field = self.symbol.members.lookup(interface_field.name, "field") if self.symbol.has_members else None
            if field is None:
                errors.append(
                    DomainInvariantError(
                        f'Type "{type_name}" must implement field "{interface_field.name}" from interface "{interface_name}"',
                        declaration=type_name,
                        member=interface_field.name,
                    )
                )
                continue

            expected = type_text(_typed(interface_field).type, self.lookup)
            found = type_text(_typed(field).type, self.lookup)
            if expected != found:
                errors.append(
                    DomainInvariantError(
                        f'Type "{type_name}" field "{field.name}" return type must be "{expected}" '
                        f'to match interface "{interface_name}", but found "{found}"',
                        declaration=type_name,
                        member=field.name,
                    )
                )

            errors.extend(self._check_arguments(interface_name, interface_field, field))
        return errors

    def _check_arguments(
        self, interface_name: str, interface_field: OutputSymbol, field: OutputSymbol
    ) -> list[GenerationError]:
        type_name = self.symbol.name
        expected_args = _members(interface_field, "argument")
        found_args = _members(field, "argument")
        prefix = f'Type "{type_name}" field "{field.name}"'

        if len(expected_args) != len(found_args):
            return [
                DomainInvariantError(
                    f"{prefix} must have {len(expected_args)} argument(s) to match interface "
                    f'"{interface_name}", but has {len(found_args)}',
                    declaration=type_name,
                    member=field.name,
                )
            ]

        errors: list[GenerationError] = []
        for position, (expected, found) in enumerate(zip(expected_args, found_args), start=1):
            if expected.name != found.name:
                errors.append(
                    DomainInvariantError(
                        f'{prefix} argument at position {position} must be named "{expected.name}" '
                        f'to match interface "{interface_name}", but found "{found.name}"',
                        declaration=type_name,
                        member=field.name,
                    )
                )
                continue
            expected_type = type_text(_typed(expected).type, self.lookup)
            found_type = type_text(_typed(found).type, self.lookup)
            if expected_type != found_type:
                errors.append(
                    DomainInvariantError(
                        f'{prefix} argument "{found.name}" must have type "{expected_type}" '
                        f'to match interface "{interface_name}", but found "{found_type}"',
                        declaration=type_name,
                        member=field.name,
                    )
                )
        return errors


class OneOfInputTask(ValidationTask):
    """Every field of a ``@oneOf`` input object must be nullable and have no default."""

    def run(self) -> None:
        errors = self.collect()
        if errors:
            raise errors[0]

    def collect(self) -> list[GenerationError]:
        errors: list[GenerationError] = []
        for field in _members(self.symbol, "inputField"):
            metadata = _typed(field)
            if not is_nullable(metadata.type):
                errors.append(
                    DomainInvariantError(
                        f'Input field "{field.name}" in a @oneOf input object must be nullable. '
                        f'Remove the "!" or "required" from the type.',
                        declaration=self.symbol.name,
                        member=field.name,
                    )
                )
            if metadata.has_default:
                errors.append(
                    DomainInvariantError(
                        f'Input field "{field.name}" in a @oneOf input object cannot have a default value.',
                        declaration=self.symbol.name,
                        member=field.name,
                    )
                )
        return errors


class InputUsageTask(ValidationTask):
    """
    Arguments and input fields may only use input types.

    ``symbol`` is the argument or input field; ``label`` is ``"Argument"``
    or ``"Input field"``.
    """

    OUTPUT_CATEGORIES = ("object", "interface", "union")

    def __init__(self, symbol: OutputSymbol, label: str, lookup: Lookup):
        super().__init__(symbol)
        self.label = label
        self.lookup = lookup

    def run(self) -> None:
        named = named_type(_typed(self.symbol).type)
        if not isinstance(named, Refkey):
            return
        target = self.lookup(named)
        if target is None:
            return
        category = type_category(target)
        if category in self.OUTPUT_CATEGORIES:
            raise DomainInvariantError(
                f'{self.label} "{self.symbol.name}" cannot use {category} type "{target.name}"',
                declaration=self.symbol.scope.describe() if self.symbol.scope is not None else "",
                member=self.symbol.name,
            )


class OutputUsageTask(ValidationTask):
    """Fields of object and interface types may not use input object types."""

    def __init__(self, symbol: OutputSymbol, lookup: Lookup):
        super().__init__(symbol)
        self.lookup = lookup

    def run(self) -> None:
        named = named_type(_typed(self.symbol).type)
        if not isinstance(named, Refkey):
            return
        target = self.lookup(named)
        if target is not None and type_category(target) == "input object":
            raise DomainInvariantError(
                f'Field "{self.symbol.name}" on type cannot use input object type "{target.name}"',
                declaration=self.symbol.scope.describe() if self.symbol.scope is not None else "",
                member=self.symbol.name,
            )


class UnionMembersTask(ValidationTask):
    """Every member of a union must be an object type."""

    def __init__(self, symbol: OutputSymbol, lookup: Lookup):
        super().__init__(symbol)
        self.lookup = lookup

    def run(self) -> None:
        errors = self.collect()
        if errors:
            raise errors[0]

    def collect(self) -> list[GenerationError]:
        metadata = self.symbol.metadata
        members = metadata.members if isinstance(metadata, UnionMetadata) else []
        errors: list[GenerationError] = []
        for member in members:
            target = self.lookup(member)
            if target is not None and type_category(target) != "object":
                errors.append(
                    DomainInvariantError(
                        f'Union "{self.symbol.name}" member "{target.name}" must be an object type.',
                        declaration=self.symbol.name,
                        member=target.name,
                    )
                )
        return errors


class DirectiveApplicationsTask(ValidationTask):
    """
    Checks the directives applied at one location against their definitions.

    Directives that cannot be resolved to a definition of the job (built-in
    directives such as ``@deprecated``) are not checked.
    """

    def __init__(
        self,
        symbol: OutputSymbol,
        applications: list[DirectiveApplication],
        location: str,
        lookup: Lookup,
        find_directive: Callable[[str], OutputSymbol | None],
    ):
        super().__init__(symbol)
        self.applications = applications
        self.location = location
        self.lookup = lookup
        self.find_directive = find_directive

    def run(self) -> None:
        errors = self.collect()
        if errors:
            raise errors[0]

    def _resolve(self, application: DirectiveApplication) -> OutputSymbol | None:
        if isinstance(application.directive, Refkey):
            return self.lookup(application.directive)
        return self.find_directive(str(application.directive).lstrip("@"))

    def collect(self) -> list[GenerationError]:
        errors: list[GenerationError] = []
        used: dict[str, int] = {}
        for application in self.applications:
            directive = self._resolve(application)
            if directive is None or not isinstance(directive.metadata, DirectiveMetadata):
                continue
            name = directive.name
            metadata = directive.metadata

            if metadata.locations and self.location not in metadata.locations:
                errors.append(
                    self._error(
                        f"Directive @{name} cannot be used on {self.location}. "
                        f"Valid locations: {', '.join(metadata.locations)}"
                    )
                )

            count = used.get(name, 0)
            used[name] = count + 1
            if not metadata.repeatable and count > 0:
                errors.append(
                    self._error(
                        f"Directive @{name} is not repeatable and has been used multiple times on this {self.location}"
                    )
                )

            errors.extend(self._check_arguments(name, directive, application.args))
        return errors

    def _check_arguments(self, name: str, directive: OutputSymbol, provided: dict[str, Any]) -> list[GenerationError]:
        errors: list[GenerationError] = []
        expected = _members(directive, "argument")
        expected_names = [arg.name for arg in expected]

        for arg in expected:
            metadata = _typed(arg)
            if not is_nullable(metadata.type) and not metadata.has_default and arg.name not in provided:
                errors.append(self._error(f'Directive @{name} is missing required argument "{arg.name}"'))

        for provided_name in provided:
            if provided_name not in expected_names:
                errors.append(
                    self._error(
                        f'Directive @{name} does not accept argument "{provided_name}". '
                        f"Valid arguments: {', '.join(expected_names) or 'none'}"
                    )
                )
        return errors

    def _error(self, message: str) -> DomainInvariantError:
        return DomainInvariantError(message, declaration=self.symbol.name)
