"""
Tests for the scope tree, symbol creation and the refkey binder.
"""

from __future__ import annotations

import pytest

from decl_to_code.pipeline.errors import DuplicateSymbolError, RefkeyBindingError
from decl_to_code.pipeline.symbols import (
    Binder,
    GraphQLElement,
    GraphQLNamePolicy,
    LexicalScope,
    ModuleScope,
    OutputSymbol,
    PythonElement,
    PythonNamePolicy,
    ScopeKind,
    SymbolFlags,
    create_symbol,
    refkey,
)


def declare(name, kind, scope, binder=None, refkeys=None, policy=None):
    return create_symbol(
        name,
        kind,
        scope,
        name_policy=policy or GraphQLNamePolicy(),
        binder=binder if binder is not None else Binder(),
        refkeys=refkeys,
    )


class TestScopeTree:
    """Tests for module, lexical and member scopes."""

    def test_member_scope_is_owned_by_its_symbol(self):
        module = ModuleScope("schema.graphql")
        user = declare("User", GraphQLElement.TYPE, module)

        members = user.members
        assert members.kind == ScopeKind.MEMBER
        assert members.owner_symbol is user
        assert members.parent is module
        assert members.describe() == "User"
        assert user.members is members

    def test_module_is_found_from_nested_scopes(self):
        module = ModuleScope("schema.graphql")
        user = declare("User", GraphQLElement.TYPE, module)
        field = declare("posts", GraphQLElement.FIELD, user.members)
        arguments = LexicalScope("posts arguments", parent=field.members)

        assert arguments.module is module
        assert field.module is module
        assert module.kind == ScopeKind.MODULE
        assert arguments in field.members.children

    def test_symbols_keep_declaration_order(self):
        module = ModuleScope("schema.graphql")
        for name in ("Zebra", "Apple", "Mango"):
            declare(name, GraphQLElement.TYPE, module)
        assert [symbol.name for symbol in module.symbols] == ["Zebra", "Apple", "Mango"]


class TestDuplicateDetection:
    """Tests for per-(scope, kind) name uniqueness."""

    def test_duplicate_field_in_one_type(self):
        module = ModuleScope("schema.graphql")
        user = declare("User", GraphQLElement.TYPE, module)
        declare("id", GraphQLElement.FIELD, user.members)

        with pytest.raises(DuplicateSymbolError) as exc_info:
            declare("id", GraphQLElement.FIELD, user.members)
        assert exc_info.value.name == "id"
        assert exc_info.value.scope_name == "User"
        assert exc_info.value.existing is not None
        assert exc_info.value.new is not None

    def test_same_field_name_in_two_types(self):
        module = ModuleScope("schema.graphql")
        user = declare("User", GraphQLElement.TYPE, module)
        post = declare("Post", GraphQLElement.TYPE, module)

        user_id = declare("id", GraphQLElement.FIELD, user.members)
        post_id = declare("id", GraphQLElement.FIELD, post.members)
        assert user_id is not post_id

    def test_same_name_different_kinds(self):
        module = ModuleScope("schema.graphql")
        declare("auth", GraphQLElement.DIRECTIVE, module)
        declare("auth", GraphQLElement.TYPE, module)
        assert len(module) == 2

    def test_duplicate_detected_on_final_name(self):
        module = ModuleScope("models.py")
        policy = PythonNamePolicy()
        declare("user_name", PythonElement.FIELD, module, policy=policy)

        with pytest.raises(DuplicateSymbolError):
            declare("userName", PythonElement.FIELD, module, policy=policy)

    def test_rename_updates_the_symbol_table(self):
        module = ModuleScope("schema.graphql")
        user = declare("User", GraphQLElement.TYPE, module)
        user.rename("Account")

        assert user.name == "Account"
        assert module.lookup("Account", GraphQLElement.TYPE) is user
        assert module.lookup("User") is None


class TestBinder:
    """Tests for refkey binding."""

    def test_create_symbol_binds_refkeys(self):
        binder = Binder()
        key = refkey("user")
        module = ModuleScope("schema.graphql")
        user = declare("user", GraphQLElement.TYPE, module, binder=binder, refkeys=key)

        assert binder.get_symbol(key) is user
        assert user.refkeys == [key]
        assert user.raw_name == "user"
        assert user.name == "User"

    def test_one_symbol_may_have_several_refkeys(self):
        binder = Binder()
        keys = [refkey(), refkey()]
        user = declare("User", GraphQLElement.TYPE, ModuleScope("a.graphql"), binder=binder, refkeys=keys)
        assert all(binder.get_symbol(key) is user for key in keys)

    def test_refkey_is_bound_once(self):
        binder = Binder()
        key = refkey()
        module = ModuleScope("schema.graphql")
        declare("User", GraphQLElement.TYPE, module, binder=binder, refkeys=key)

        with pytest.raises(RefkeyBindingError):
            declare("Post", GraphQLElement.TYPE, module, binder=binder, refkeys=key)

    def test_refkeys_are_distinct(self):
        assert refkey("user") != refkey("user")
        key = refkey()
        assert key == key
        assert len({key, key}) == 1

    def test_refkey_repr(self):
        assert repr(refkey("user")) == "refkey[user]"
        first, second = refkey(), refkey()
        assert repr(first).startswith("refkey[0x")
        assert repr(first) != repr(second)


class TestSymbolFlags:
    """Tests for type-only / value flags."""

    def test_mark_as_value_only_clears_type_only(self):
        symbol = OutputSymbol("User", "import", flags=SymbolFlags.LOCAL_IMPORT | SymbolFlags.TYPE_ONLY)
        assert symbol.is_type_only

        symbol.mark_as_value()
        assert not symbol.is_type_only
        assert symbol.is_local_import

        symbol.mark_as_value()
        assert symbol.flags == SymbolFlags.LOCAL_IMPORT
