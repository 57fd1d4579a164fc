"""
Tests for the reference resolver.
"""

from __future__ import annotations

from decl_to_code.pipeline.errors import UnresolvedReferenceError
from decl_to_code.pipeline.imports.base import ImportSynthesizer
from decl_to_code.pipeline.session import RenderSession
from decl_to_code.pipeline.symbols import (
    Binder,
    GraphQLElement,
    GraphQLNamePolicy,
    ModuleScope,
    ReferenceResolver,
    create_symbol,
    refkey,
)


class CountingSynthesizer(ImportSynthesizer):
    """Records every foreign use it is told about."""

    def __init__(self):
        self.calls = []

    def record_foreign_use(self, consumer, target, *, type_only=False):
        self.calls.append((consumer.path, target.name, type_only))
        return f"ext.{target.name}"


def make_resolver():
    binder = Binder()
    synthesizer = CountingSynthesizer()
    reports = []
    resolver = ReferenceResolver(binder, synthesizer, report=reports.append)
    return binder, synthesizer, resolver, reports


def declare_user(binder, module, key):
    return create_symbol("user", GraphQLElement.TYPE, module, name_policy=GraphQLNamePolicy(), binder=binder, refkeys=key)


class TestReferenceResolver:
    """Tests for lazy, memoized resolution."""

    def test_resolution_is_order_independent(self):
        binder, _, resolver, _ = make_resolver()
        module = ModuleScope("schema.graphql")
        key = refkey("user")

        # Binding created before the declaration exists
        early = resolver.resolve(key, module)
        declare_user(binder, module, key)
        late = resolver.resolve(key, module)

        assert early().display_name == "User"
        assert late().display_name == "User"
        assert early().symbol is late().symbol

    def test_same_module_reference_prints_bare_name(self):
        binder, synthesizer, resolver, _ = make_resolver()
        module = ModuleScope("schema.graphql")
        key = refkey()
        user = declare_user(binder, module, key)

        resolved = resolver.resolve(key, module)()
        assert resolved.display_name == "User"
        assert resolved.symbol is user
        assert resolved.scope is module
        assert synthesizer.calls == []

    def test_cross_module_side_effects_apply_once(self):
        binder, synthesizer, resolver, _ = make_resolver()
        shared = ModuleScope("shared.graphql")
        consumer = ModuleScope("main.graphql")
        other = ModuleScope("other.graphql")
        key = refkey()
        declare_user(binder, shared, key)

        for _ in range(3):
            assert resolver.resolve(key, consumer)().display_name == "ext.User"
        resolver.resolve(key, other)()

        assert synthesizer.calls == [("main.graphql", "User", False), ("other.graphql", "User", False)]

    def test_unresolved_reference_renders_marker(self):
        _, _, resolver, reports = make_resolver()
        key = refkey("missing")

        resolved = resolver.resolve(key, ModuleScope("main.graphql"))()
        assert not resolved.is_resolved
        assert resolved.display_name.startswith("<Unresolved Symbol")
        # Not diagnosed before emission starts
        assert reports == []

    def test_unresolved_reference_is_reported_during_emission(self):
        _, _, resolver, reports = make_resolver()
        resolver.report_unresolved = True
        key = refkey("missing")

        resolver.resolve(key, ModuleScope("main.graphql"))()
        assert len(reports) == 1
        assert isinstance(reports[0], UnresolvedReferenceError)
        assert reports[0].module_path == "main.graphql"


class TestSessionReferences:
    """Tests for references made through a render session."""

    def test_unresolved_reference_reported_once(self):
        with RenderSession("graphql") as session:
            module = session.create_module("schema.graphql")
            key = refkey()
            session.begin_emit()

            session.reference(key, module)
            session.reference(key, module)
            assert len(session.errors) == 1
            assert isinstance(session.errors[0], UnresolvedReferenceError)

    def test_graphql_cross_file_reference_is_bare(self):
        with RenderSession("graphql") as session:
            shared = session.create_module("shared.graphql")
            main = session.create_module("main.graphql")
            key = refkey()
            session.create_symbol("user", GraphQLElement.TYPE, shared, refkeys=key)
            session.begin_emit()

            assert session.reference(key, main).display_name == "User"
