"""
Tests for GraphQL SDL generation and its deferred validations.
"""

from __future__ import annotations

import pytest

from decl_to_code.pipeline import (
    CodeGeneratorConfig,
    CycleDetectedError,
    DomainInvariantError,
    DuplicateSymbolError,
    InvalidDeclarationError,
    UnresolvedReferenceError,
    render,
)


def schema(*declarations, path="schema.graphql"):
    return {"target": "graphql", "files": [{"path": path, "declarations": list(declarations)}]}


def messages(result):
    return [str(error) for error in result.errors]


NODE = {"kind": "interface", "name": "Node", "refkey": "node", "fields": [{"name": "id", "type": {"type": "ID", "required": True}}]}

TIMESTAMPED = {
    "kind": "interface",
    "name": "Timestamped",
    "refkey": "timestamped",
    "implements": [{"ref": "node"}],
    "fields": [{"name": "id", "type": "ID!"}, {"name": "created_at", "type": "String"}],
}

USER = {
    "kind": "object",
    "name": "User",
    "refkey": "user",
    "implements": [{"ref": "timestamped"}],
    "fields": [
        {"name": "id", "type": "ID!"},
        {"name": "created_at", "type": "String"},
        {"name": "name", "type": "String"},
    ],
}


class TestGraphQLRendering:
    """Tests for the generated SDL text."""

    def test_interfaces_and_transitive_implements(self):
        result = render(schema(NODE, TIMESTAMPED, USER))

        assert result.ok, messages(result)
        assert result.output_files["schema.graphql"] == (
            "interface Node {\n"
            "  id: ID!\n"
            "}\n"
            "\n"
            "interface Timestamped implements Node {\n"
            "  id: ID!\n"
            "  createdAt: String\n"
            "}\n"
            "\n"
            "type User implements Timestamped & Node {\n"
            "  id: ID!\n"
            "  createdAt: String\n"
            "  name: String\n"
            "}\n"
        )

    def test_forward_references(self):
        result = render(schema(USER, TIMESTAMPED, NODE))

        assert result.ok, messages(result)
        assert "type User implements Timestamped & Node {" in result.output_files["schema.graphql"]

    def test_direct_implements_only(self):
        config = CodeGeneratorConfig(expand_transitive_interfaces=False)
        result = render(schema(NODE, TIMESTAMPED, USER), config)
        assert "type User implements Timestamped {" in result.output_files["schema.graphql"]

    def test_enum_union_scalar(self):
        result = render(
            schema(
                {"kind": "enum", "name": "status", "values": ["active", "in_progress"]},
                {"kind": "object", "name": "Post", "refkey": "post", "fields": [{"name": "title", "type": "String"}]},
                {"kind": "object", "name": "Comment", "refkey": "comment", "fields": [{"name": "body", "type": "String"}]},
                {"kind": "union", "name": "SearchResult", "members": [{"ref": "post"}, {"ref": "comment"}]},
                {"kind": "scalar", "name": "date_time", "description": "ISO-8601 timestamp"},
            )
        )

        text = result.output_files["schema.graphql"]
        assert result.ok, messages(result)
        assert "enum Status {\n  ACTIVE\n  IN_PROGRESS\n}" in text
        assert "union SearchResult = Post | Comment" in text
        assert '"""ISO-8601 timestamp"""\nscalar DateTime' in text

    def test_list_and_argument_rendering(self):
        result = render(
            schema(
                USER | {"implements": []},
                {
                    "kind": "object",
                    "name": "Query",
                    "fields": [
                        {
                            "name": "users",
                            "type": {"type": {"type": {"ref": "user"}, "required": True}, "list": True, "required": True},
                            "args": [{"name": "first", "type": "Int", "default": 10}, {"name": "after", "type": "String"}],
                        }
                    ],
                },
            )
        )

        assert result.ok, messages(result)
        assert "  users(first: Int = 10, after: String): [User!]!" in result.output_files["schema.graphql"]

    def test_argument_descriptions_render_multiline(self):
        result = render(
            schema(
                {
                    "kind": "object",
                    "name": "Query",
                    "fields": [
                        {
                            "name": "user",
                            "type": "String",
                            "args": [{"name": "id", "type": "ID!", "description": "User id"}],
                        }
                    ],
                }
            )
        )

        assert '  user(\n    """User id"""\n    id: ID!\n  ): String' in result.output_files["schema.graphql"]

    def test_files_are_independent_without_imports(self):
        document = {
            "target": "graphql",
            "files": [
                {"path": "user.graphql", "declarations": [USER | {"implements": []}]},
                {
                    "path": "post.graphql",
                    "declarations": [
                        {"kind": "object", "name": "Post", "fields": [{"name": "author", "type": {"ref": "user"}}]}
                    ],
                },
            ],
        }
        result = render(document)

        assert result.ok, messages(result)
        assert result.output_files["post.graphql"] == "type Post {\n  author: User\n}\n"

    def test_generation_comment(self):
        config = CodeGeneratorConfig(add_generation_comment=True)
        result = render(schema({"kind": "scalar", "name": "Url"}), config)
        assert result.output_files["schema.graphql"] == "# Generated by decl_to_code, do not edit.\n\nscalar Url\n"


class TestGraphQLInterfaceValidation:
    """Tests for implements-clause validation."""

    def test_missing_interface_field(self):
        user = USER | {"implements": [{"ref": "node"}], "fields": [{"name": "name", "type": "String"}]}
        result = render(schema(NODE, user))

        assert not result.ok
        assert 'Type "User" must implement field "id" from interface "Node"' in messages(result)
        # Output is still produced
        assert "type User implements Node {" in result.output_files["schema.graphql"]

    def test_field_type_mismatch(self):
        user = USER | {"implements": [{"ref": "node"}], "fields": [{"name": "id", "type": "String"}]}
        result = render(schema(NODE, user))

        assert messages(result) == [
            'Type "User" field "id" return type must be "ID!" to match interface "Node", but found "String"'
        ]

    def test_inherited_interface_fields_are_required(self):
        user = USER | {"fields": [{"name": "created_at", "type": "String"}]}
        result = render(schema(NODE, TIMESTAMPED, user))

        assert 'Type "User" must implement field "id" from interface "Node"' in messages(result)
        assert 'Type "User" must implement field "id" from interface "Timestamped"' in messages(result)

    def test_argument_mismatch(self):
        searchable = {
            "kind": "interface",
            "name": "Searchable",
            "refkey": "searchable",
            "fields": [{"name": "search", "type": "String", "args": [{"name": "query", "type": "String!"}]}],
        }
        wrong_name = {
            "kind": "object",
            "name": "Catalog",
            "implements": [{"ref": "searchable"}],
            "fields": [{"name": "search", "type": "String", "args": [{"name": "text", "type": "String!"}]}],
        }
        wrong_count = {
            "kind": "object",
            "name": "Index",
            "implements": [{"ref": "searchable"}],
            "fields": [{"name": "search", "type": "String"}],
        }
        result = render(schema(searchable, wrong_name, wrong_count))

        assert messages(result) == [
            'Type "Catalog" field "search" argument at position 1 must be named "query" '
            'to match interface "Searchable", but found "text"',
            'Type "Index" field "search" must have 1 argument(s) to match interface "Searchable", but has 0',
        ]

    def test_implementing_an_object_type(self):
        base = {"kind": "object", "name": "Base", "refkey": "base", "fields": [{"name": "id", "type": "ID"}]}
        user = {"kind": "object", "name": "User", "implements": [{"ref": "base"}], "fields": [{"name": "id", "type": "ID"}]}
        result = render(schema(base, user))

        assert messages(result) == ['Type "User" cannot implement "Base" because it is not an interface type']

    def test_interface_cycle_is_reported_once(self):
        a = {"kind": "interface", "name": "A", "refkey": "a", "implements": [{"ref": "b"}], "fields": [{"name": "id", "type": "ID"}]}
        b = {"kind": "interface", "name": "B", "refkey": "b", "implements": [{"ref": "a"}], "fields": [{"name": "id", "type": "ID"}]}
        result = render(schema(a, b))

        assert len(result.errors) == 1
        assert isinstance(result.errors[0], CycleDetectedError)
        assert str(result.errors[0]) == "Circular interface inheritance detected: A -> B -> A"
        # Falls back to the direct interfaces
        assert "interface A implements B {" in result.output_files["schema.graphql"]

    def test_self_implementing_interface(self):
        a = {"kind": "interface", "name": "A", "refkey": "a", "implements": [{"ref": "a"}], "fields": [{"name": "id", "type": "ID"}]}
        result = render(schema(a))
        assert messages(result) == ["Circular interface inheritance detected: A -> A"]


class TestGraphQLTypeUsageValidation:
    """Tests for input/output type usage, oneOf inputs and unions."""

    def test_one_of_fields_must_be_nullable(self):
        result = render(
            schema(
                {
                    "kind": "input",
                    "name": "user_by",
                    "one_of": True,
                    "fields": [{"name": "id", "type": "ID!"}, {"name": "email", "type": "String", "default": "x"}],
                }
            )
        )

        assert messages(result) == [
            'Input field "id" in a @oneOf input object must be nullable. Remove the "!" or "required" from the type.',
            'Input field "email" in a @oneOf input object cannot have a default value.',
        ]
        assert result.output_files["schema.graphql"].startswith("input UserBy @oneOf {\n")

    def test_valid_one_of_renders_directive_once(self):
        result = render(
            schema(
                {
                    "kind": "input",
                    "name": "UserBy",
                    "one_of": True,
                    "directives": ["@oneOf"],
                    "fields": [{"name": "id", "type": "ID"}, {"name": "email", "type": "String"}],
                }
            )
        )

        assert result.ok, messages(result)
        assert result.output_files["schema.graphql"] == "input UserBy @oneOf {\n  id: ID\n  email: String\n}\n"

    def test_argument_cannot_use_object_type(self):
        result = render(
            schema(
                USER | {"implements": []},
                {
                    "kind": "object",
                    "name": "Mutation",
                    "fields": [{"name": "save", "type": "Boolean", "args": [{"name": "user", "type": {"ref": "user"}}]}],
                },
            )
        )
        assert messages(result) == ['Argument "user" cannot use object type "User"']

    def test_field_cannot_use_input_type(self):
        result = render(
            schema(
                {"kind": "input", "name": "UserInput", "refkey": "user_input", "fields": [{"name": "name", "type": "String"}]},
                {"kind": "object", "name": "Query", "fields": [{"name": "invalid", "type": {"ref": "user_input"}}]},
            )
        )
        assert messages(result) == ['Field "invalid" on type cannot use input object type "UserInput"']

    def test_union_members_must_be_objects(self):
        result = render(
            schema(NODE, {"kind": "union", "name": "SearchResult", "members": [{"ref": "node"}]}),
        )
        assert messages(result) == ['Union "SearchResult" member "Node" must be an object type.']

    def test_empty_union_and_enum_fail_fast(self):
        with pytest.raises(InvalidDeclarationError, match="must have at least one member type"):
            render(schema({"kind": "union", "name": "Empty", "members": []}))
        with pytest.raises(InvalidDeclarationError, match="must have at least one value"):
            render(schema({"kind": "enum", "name": "Empty", "values": []}))


class TestGraphQLDirectives:
    """Tests for directive definitions and applications."""

    AUTH = {
        "kind": "directive",
        "name": "auth",
        "args": [{"name": "role", "type": "String!"}, {"name": "reason", "type": "String"}],
        "locations": ["FIELD_DEFINITION"],
    }

    def test_directive_definition_and_application(self):
        result = render(
            schema(
                {
                    "kind": "object",
                    "name": "Query",
                    "fields": [{"name": "secret", "type": "String", "directives": [{"directive": "auth", "args": {"role": "ADMIN"}}]}],
                },
                self.AUTH,
            )
        )

        text = result.output_files["schema.graphql"]
        assert result.ok, messages(result)
        assert '  secret: String @auth(role: "ADMIN")' in text
        assert "directive @auth(role: String!, reason: String) on FIELD_DEFINITION" in text

    def test_invalid_applications(self):
        result = render(
            schema(
                self.AUTH,
                {
                    "kind": "object",
                    "name": "Query",
                    "directives": ["auth"],
                    "fields": [
                        {"name": "secret", "type": "String", "directives": [{"directive": "auth", "args": {"scope": "x"}}]},
                        {
                            "name": "twice",
                            "type": "String",
                            "directives": [
                                {"directive": "auth", "args": {"role": "A"}},
                                {"directive": "auth", "args": {"role": "B"}},
                            ],
                        },
                    ],
                },
            )
        )

        assert messages(result) == [
            "Directive @auth cannot be used on OBJECT. Valid locations: FIELD_DEFINITION",
            'Directive @auth is missing required argument "role"',
            'Directive @auth is missing required argument "role"',
            'Directive @auth does not accept argument "scope". Valid arguments: role, reason',
            "Directive @auth is not repeatable and has been used multiple times on this FIELD_DEFINITION",
        ]

    def test_unknown_directives_are_not_checked(self):
        result = render(
            schema({"kind": "object", "name": "Query", "fields": [{"name": "old", "type": "String", "directives": ["@deprecated"]}]})
        )
        assert result.ok
        assert "  old: String @deprecated" in result.output_files["schema.graphql"]


class TestGraphQLFailFast:
    """Tests for errors raised while declaring."""

    def test_duplicate_field(self):
        user = USER | {"implements": [], "fields": [{"name": "id", "type": "ID"}, {"name": "id", "type": "ID"}]}
        with pytest.raises(DuplicateSymbolError):
            render(schema(user))

    def test_types_share_one_namespace(self):
        with pytest.raises(DuplicateSymbolError):
            render(schema({"kind": "enum", "name": "Status", "values": ["A"]}, {"kind": "scalar", "name": "Status"}))

    def test_unresolved_reference_is_collected(self):
        result = render(schema({"kind": "object", "name": "Post", "fields": [{"name": "author", "type": {"ref": "missing"}}]}))

        assert len(result.errors) == 1
        assert isinstance(result.errors[0], UnresolvedReferenceError)
        assert "<Unresolved Symbol" in result.output_files["schema.graphql"]

    def test_validation_errors_are_domain_errors(self):
        user = USER | {"implements": [{"ref": "node"}], "fields": []}
        result = render(schema(NODE, user))
        assert all(isinstance(error, DomainInvariantError) for error in result.errors)
        assert result.errors[0].declaration == "User"
        assert result.errors[0].member == "id"
