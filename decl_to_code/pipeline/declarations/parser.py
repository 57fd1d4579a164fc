"""
Declaration document parser.

Phase 1 of the pipeline: turns a JSON declaration document into
declaration nodes without resolving any reference. String ids used as
``"refkey": "user"`` on declarations and ``{"ref": "user"}`` in type or
value positions are turned into refkeys, exactly one per distinct id.
"""

from __future__ import annotations

from typing import Any

from ..errors import DocumentParseError
from ..symbols.refkey import Refkey
from .common import NO_DEFAULT, DeclarationTree, IncludeDecl, NamespaceDecl, RawValue, SourceFileDecl
from .graphql import (
    DirectiveApplication,
    DirectiveDefinitionDecl,
    EnumTypeDecl,
    EnumValueDecl,
    FieldDecl,
    GraphQLType,
    InputObjectTypeDecl,
    InputValueDecl,
    InterfaceTypeDecl,
    ObjectTypeDecl,
    ScalarTypeDecl,
    TypeReference,
    UnionTypeDecl,
)
from .python import (
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
from .thrift import (
    ConstDecl,
    ContainerType,
    EnumDecl,
    ServiceDecl,
    ServiceFunctionDecl,
    StructDecl,
    ThriftEnumValueDecl,
    ThriftFieldDecl,
    ThriftType,
    TypedefDecl,
)

SUPPORTED_TARGETS = ("graphql", "thrift", "python")


class DeclarationParser:
    """Parses a declaration document into a DeclarationTree."""

    # Declaration kinds accepted per target
    KINDS = {
        "graphql": ("object", "interface", "input", "enum", "scalar", "union", "directive"),
        "thrift": ("struct", "union", "exception", "enum", "typedef", "const", "service"),
        "python": ("dataclass", "function", "variable", "constant"),
    }

    def __init__(self):
        self._refkeys: dict[str, Refkey] = {}

    def parse(self, document: dict[str, Any], target: str | None = None) -> DeclarationTree:
        """
        Parse a declaration document.

        Args:
            document: The declaration document
            target: Target language, overriding the document's ``"target"`` key

        Returns:
            DeclarationTree with one SourceFileDecl per file

        Raises:
            DocumentParseError: If the document is malformed
        """
        if not isinstance(document, dict):
            raise DocumentParseError("Declaration document must be a JSON object")

        target = target or document.get("target")
        if target not in SUPPORTED_TARGETS:
            raise DocumentParseError(f"Unknown target {target!r}, expected one of: {', '.join(SUPPORTED_TARGETS)}")

        self._refkeys = {}
        files = document.get("files")
        if not isinstance(files, list):
            raise DocumentParseError('Declaration document must have a "files" list')

        tree = DeclarationTree(target=target)
        for index, file_data in enumerate(files):
            tree.files.append(self._parse_file(file_data, target, f"files[{index}]"))
        tree.refkeys = dict(self._refkeys)
        return tree

    def refkey_for(self, ref_id: str) -> Refkey:
        """Return the refkey for a document id, minting it on first use."""
        key = self._refkeys.get(ref_id)
        if key is None:
            key = Refkey(ref_id)
            self._refkeys[ref_id] = key
        return key

    # ---- helpers ----

    def _require(self, data: dict[str, Any], key: str, path: str) -> Any:
        if not isinstance(data, dict):
            raise DocumentParseError(f"{path}: expected an object, got {type(data).__name__}")
        if key not in data:
            raise DocumentParseError(f'{path}: missing required key "{key}"')
        return data[key]

    def _list(self, data: dict[str, Any], key: str, path: str) -> list[Any]:
        value = data.get(key, [])
        if not isinstance(value, list):
            raise DocumentParseError(f'{path}: "{key}" must be a list')
        return value

    def _decl_refkey(self, data: dict[str, Any]) -> Refkey | None:
        ref_id = data.get("refkey")
        return self.refkey_for(str(ref_id)) if ref_id is not None else None

    def _is_ref(self, value: Any) -> bool:
        return isinstance(value, dict) and "ref" in value

    def _parse_literal(self, value: Any) -> Any:
        """Parse a literal value, turning ``{"raw": text}`` into RawValue."""
        if isinstance(value, dict):
            if "raw" in value:
                return RawValue(str(value["raw"]))
            return {key: self._parse_literal(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._parse_literal(item) for item in value]
        return value

    def _parse_file(self, data: dict[str, Any], target: str, path: str) -> SourceFileDecl:
        file_path = self._require(data, "path", path)
        source_file = SourceFileDecl(path=str(file_path))
        source_file.header = [str(line) for line in self._list(data, "header", path)]

        for index, include in enumerate(self._list(data, "includes", path)):
            include_path = self._require(include, "path", f"{path}.includes[{index}]")
            source_file.includes.append(IncludeDecl(path=include_path, alias=include.get("alias")))

        for index, namespace in enumerate(self._list(data, "namespaces", path)):
            item_path = f"{path}.namespaces[{index}]"
            source_file.namespaces.append(
                NamespaceDecl(lang=self._require(namespace, "lang", item_path), value=self._require(namespace, "value", item_path))
            )

        parse_declaration = getattr(self, f"_parse_{target}_declaration")
        for index, declaration in enumerate(self._list(data, "declarations", path)):
            source_file.declarations.append(parse_declaration(declaration, f"{path}.declarations[{index}]"))
        return source_file

    def _kind(self, data: dict[str, Any], target: str, path: str) -> str:
        kind = self._require(data, "kind", path)
        if kind not in self.KINDS[target]:
            raise DocumentParseError(
                f'{path}: unknown {target} declaration kind "{kind}", expected one of: {", ".join(self.KINDS[target])}'
            )
        return kind

    # ---- GraphQL ----

    def _parse_graphql_declaration(self, data: dict[str, Any], path: str) -> Any:
        kind = self._kind(data, "graphql", path)
        common = {
            "name": self._require(data, "name", path),
            "refkey": self._decl_refkey(data),
            "description": data.get("description"),
        }

        if kind in ("object", "interface"):
            node_class = ObjectTypeDecl if kind == "object" else InterfaceTypeDecl
            return node_class(
                **common,
                fields=[
                    self._parse_graphql_field(field, f"{path}.fields[{i}]")
                    for i, field in enumerate(self._list(data, "fields", path))
                ],
                implements=[self._parse_graphql_name_ref(item) for item in self._list(data, "implements", path)],
                directives=self._parse_directives(data, path),
            )

        if kind == "input":
            return InputObjectTypeDecl(
                **common,
                fields=[
                    self._parse_input_value(field, f"{path}.fields[{i}]")
                    for i, field in enumerate(self._list(data, "fields", path))
                ],
                one_of=bool(data.get("one_of", False)),
                directives=self._parse_directives(data, path),
            )

        if kind == "enum":
            values = []
            for i, value in enumerate(self._list(data, "values", path)):
                if isinstance(value, str):
                    values.append(EnumValueDecl(name=value))
                else:
                    value_path = f"{path}.values[{i}]"
                    values.append(
                        EnumValueDecl(
                            name=self._require(value, "name", value_path),
                            description=value.get("description"),
                            directives=self._parse_directives(value, value_path),
                        )
                    )
            return EnumTypeDecl(**common, values=values, directives=self._parse_directives(data, path))

        if kind == "scalar":
            return ScalarTypeDecl(**common, directives=self._parse_directives(data, path))

        if kind == "union":
            return UnionTypeDecl(
                **common,
                members=[self._parse_graphql_name_ref(item) for item in self._list(data, "members", path)],
                directives=self._parse_directives(data, path),
            )

        return DirectiveDefinitionDecl(
            **common,
            args=[self._parse_input_value(arg, f"{path}.args[{i}]") for i, arg in enumerate(self._list(data, "args", path))],
            locations=[str(location) for location in self._list(data, "locations", path)],
            repeatable=bool(data.get("repeatable", False)),
        )

    def _parse_graphql_name_ref(self, value: Any) -> str | Refkey:
        if self._is_ref(value):
            return self.refkey_for(str(value["ref"]))
        return str(value)

    def _parse_graphql_type(self, value: Any, path: str) -> GraphQLType:
        if isinstance(value, str):
            return value
        if self._is_ref(value):
            return self.refkey_for(str(value["ref"]))
        if isinstance(value, dict) and "type" in value:
            return TypeReference(
                type=self._parse_graphql_type(value["type"], path),
                list=bool(value.get("list", False)),
                required=bool(value.get("required", False)),
            )
        raise DocumentParseError(f"{path}: invalid GraphQL type {value!r}")

    def _parse_graphql_field(self, data: dict[str, Any], path: str) -> FieldDecl:
        return FieldDecl(
            name=self._require(data, "name", path),
            description=data.get("description"),
            type=self._parse_graphql_type(self._require(data, "type", path), f"{path}.type"),
            args=[self._parse_input_value(arg, f"{path}.args[{i}]") for i, arg in enumerate(self._list(data, "args", path))],
            directives=self._parse_directives(data, path),
        )

    def _parse_input_value(self, data: dict[str, Any], path: str) -> InputValueDecl:
        return InputValueDecl(
            name=self._require(data, "name", path),
            description=data.get("description"),
            type=self._parse_graphql_type(self._require(data, "type", path), f"{path}.type"),
            default=self._parse_literal(data["default"]) if "default" in data else NO_DEFAULT,
            directives=self._parse_directives(data, path),
        )

    def _parse_directives(self, data: dict[str, Any], path: str) -> list[DirectiveApplication]:
        applications = []
        for i, item in enumerate(self._list(data, "directives", path)):
            item_path = f"{path}.directives[{i}]"
            if isinstance(item, str):
                applications.append(DirectiveApplication(directive=item.lstrip("@")))
                continue
            directive = self._require(item, "directive", item_path)
            args = item.get("args", {})
            if not isinstance(args, dict):
                raise DocumentParseError(f'{item_path}: "args" must be an object')
            applications.append(
                DirectiveApplication(
                    directive=self._parse_graphql_name_ref(directive) if self._is_ref(directive) else str(directive).lstrip("@"),
                    args={name: self._parse_literal(value) for name, value in args.items()},
                )
            )
        return applications

    # ---- Thrift ----

    def _parse_thrift_declaration(self, data: dict[str, Any], path: str) -> Any:
        kind = self._kind(data, "thrift", path)
        common = {
            "name": self._require(data, "name", path),
            "refkey": self._decl_refkey(data),
            "description": data.get("description"),
        }

        if kind in ("struct", "union", "exception"):
            return StructDecl(
                **common,
                kind=kind,
                fields=self._parse_thrift_fields(data, "fields", path),
                annotations=dict(data.get("annotations", {})),
            )

        if kind == "enum":
            values = []
            for i, value in enumerate(self._list(data, "values", path)):
                if isinstance(value, str):
                    values.append(ThriftEnumValueDecl(name=value))
                else:
                    value_path = f"{path}.values[{i}]"
                    values.append(
                        ThriftEnumValueDecl(
                            name=self._require(value, "name", value_path),
                            value=value.get("value"),
                            description=value.get("description"),
                        )
                    )
            return EnumDecl(**common, values=values)

        if kind == "typedef":
            return TypedefDecl(**common, type=self._parse_thrift_type(self._require(data, "type", path), f"{path}.type"))

        if kind == "const":
            return ConstDecl(
                **common,
                type=self._parse_thrift_type(self._require(data, "type", path), f"{path}.type"),
                value=self._parse_literal(self._require(data, "value", path)),
            )

        extends = data.get("extends")
        return ServiceDecl(
            **common,
            extends=self._parse_graphql_name_ref(extends) if extends is not None else None,
            functions=[
                self._parse_service_function(function, f"{path}.functions[{i}]")
                for i, function in enumerate(self._list(data, "functions", path))
            ],
        )

    def _parse_thrift_type(self, value: Any, path: str) -> ThriftType:
        if isinstance(value, str):
            return value
        if self._is_ref(value):
            return self.refkey_for(str(value["ref"]))
        if isinstance(value, dict):
            if "list" in value:
                return ContainerType(kind="list", args=[self._parse_thrift_type(value["list"], path)])
            if "set" in value:
                return ContainerType(kind="set", args=[self._parse_thrift_type(value["set"], path)])
            if "map" in value:
                key_value = value["map"]
                if not isinstance(key_value, list) or len(key_value) != 2:
                    raise DocumentParseError(f'{path}: "map" must be a [key, value] pair')
                return ContainerType(kind="map", args=[self._parse_thrift_type(item, path) for item in key_value])
        raise DocumentParseError(f"{path}: invalid Thrift type {value!r}")

    def _parse_thrift_fields(self, data: dict[str, Any], key: str, path: str) -> list[ThriftFieldDecl]:
        fields = []
        for i, field in enumerate(self._list(data, key, path)):
            field_path = f"{path}.{key}[{i}]"
            fields.append(
                ThriftFieldDecl(
                    name=self._require(field, "name", field_path),
                    id=field.get("id"),
                    type=self._parse_thrift_type(self._require(field, "type", field_path), f"{field_path}.type"),
                    required=bool(field.get("required", False)),
                    optional=bool(field.get("optional", False)),
                    default=self._parse_literal(field["default"]) if "default" in field else NO_DEFAULT,
                    annotations=dict(field.get("annotations", {})),
                    description=field.get("description"),
                )
            )
        return fields

    def _parse_service_function(self, data: dict[str, Any], path: str) -> ServiceFunctionDecl:
        return ServiceFunctionDecl(
            name=self._require(data, "name", path),
            description=data.get("description"),
            return_type=self._parse_thrift_type(data.get("returns", "void"), f"{path}.returns"),
            args=self._parse_thrift_fields(data, "args", path),
            throws=self._parse_thrift_fields(data, "throws", path),
            oneway=bool(data.get("oneway", False)),
            annotations=dict(data.get("annotations", {})),
        )

    # ---- Python ----

    def _parse_python_declaration(self, data: dict[str, Any], path: str) -> Any:
        kind = self._kind(data, "python", path)
        common = {
            "name": self._require(data, "name", path),
            "refkey": self._decl_refkey(data),
            "description": data.get("description"),
        }

        if kind == "dataclass":
            fields = []
            for i, field in enumerate(self._list(data, "fields", path)):
                field_path = f"{path}.fields[{i}]"
                if field == "KW_ONLY":
                    fields.append(KwOnlySentinel())
                    continue
                factory = field.get("default_factory")
                fields.append(
                    DataclassFieldDecl(
                        name=self._require(field, "name", field_path),
                        description=field.get("description"),
                        type=self._parse_python_type(self._require(field, "type", field_path), f"{field_path}.type"),
                        default=self._parse_python_value(field["default"], field_path) if "default" in field else NO_DEFAULT,
                        default_factory=self._parse_python_callee(factory, field_path) if factory is not None else None,
                    )
                )
            return DataclassDecl(
                **common,
                bases=[self._parse_python_callee(base, f"{path}.bases") for base in self._list(data, "bases", path)],
                fields=fields,
                decorator_kwargs=dict(data.get("decorator_kwargs", {})),
            )

        if kind == "function":
            params = []
            for i, param in enumerate(self._list(data, "params", path)):
                param_path = f"{path}.params[{i}]"
                params.append(
                    ParameterDecl(
                        name=self._require(param, "name", param_path),
                        type=self._parse_python_type(param["type"], f"{param_path}.type") if "type" in param else None,
                        default=self._parse_python_value(param["default"], param_path) if "default" in param else NO_DEFAULT,
                    )
                )
            return FunctionDecl(
                **common,
                params=params,
                return_type=self._parse_python_type(data["return_type"], f"{path}.return_type") if "return_type" in data else None,
                returns=self._parse_python_value(data["returns"], path) if "returns" in data else NO_DEFAULT,
            )

        return VariableDecl(
            **common,
            type=self._parse_python_type(data["type"], f"{path}.type") if "type" in data else None,
            value=self._parse_python_value(self._require(data, "value", path), path),
            constant=kind == "constant",
        )

    def _parse_external(self, value: Any, path: str) -> ExternalRef:
        if "module" in value:
            return ExternalRef(module=str(value["module"]), name=str(self._require(value, "name", path)))
        dotted = str(value["import"])
        module, _, name = dotted.rpartition(".")
        if not module:
            raise DocumentParseError(f'{path}: import "{dotted}" must be of the form "module.Name"')
        return ExternalRef(module=module, name=name)

    def _is_external(self, value: Any) -> bool:
        return isinstance(value, dict) and ("import" in value or "module" in value)

    def _parse_python_callee(self, value: Any, path: str) -> str | Refkey | ExternalRef:
        if isinstance(value, str):
            return value
        if self._is_ref(value):
            return self.refkey_for(str(value["ref"]))
        if self._is_external(value):
            return self._parse_external(value, path)
        raise DocumentParseError(f"{path}: invalid reference {value!r}")

    def _parse_python_type(self, value: Any, path: str) -> PyType:
        if isinstance(value, str):
            return value
        if self._is_ref(value):
            return self.refkey_for(str(value["ref"]))
        if self._is_external(value):
            return self._parse_external(value, path)
        if isinstance(value, dict):
            if "optional" in value:
                return OptionalType(type=self._parse_python_type(value["optional"], path))
            if "generic" in value:
                name = value["generic"]
                return GenericType(
                    name=self._parse_external(name, path) if self._is_external(name) else str(name),
                    args=[self._parse_python_type(arg, path) for arg in self._list(value, "args", path)],
                )
        raise DocumentParseError(f"{path}: invalid Python type {value!r}")

    def _parse_python_value(self, value: Any, path: str) -> Any:
        if self._is_ref(value):
            return ValueRef(target=self.refkey_for(str(value["ref"])))
        if self._is_external(value):
            return ValueRef(target=self._parse_external(value, path))
        if isinstance(value, dict):
            if "raw" in value:
                return RawValue(str(value["raw"]))
            if "call" in value:
                kwargs = value.get("kwargs", {})
                return CallValue(
                    callee=self._parse_python_callee(value["call"], path),
                    args=[self._parse_python_value(arg, path) for arg in self._list(value, "args", path)],
                    kwargs={name: self._parse_python_value(arg, path) for name, arg in kwargs.items()},
                )
            return {key: self._parse_python_value(item, path) for key, item in value.items()}
        if isinstance(value, list):
            return [self._parse_python_value(item, path) for item in value]
        return value


def parse_document(document: dict[str, Any], target: str | None = None) -> DeclarationTree:
    """Parse a declaration document with a fresh parser."""
    return DeclarationParser().parse(document, target)
