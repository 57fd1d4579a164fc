"""
Tests for include synthesis (Thrift) and conditional import synthesis (Python).
"""

from __future__ import annotations

import pytest

from decl_to_code.pipeline.errors import ImportAliasConflictError
from decl_to_code.pipeline.imports.python import (
    ConditionalImportSynthesizer,
    ExternalModules,
    PythonModuleScope,
    module_name_for_path,
)
from decl_to_code.pipeline.imports.thrift import (
    IncludeRegistry,
    IncludeSource,
    IncludeSynthesizer,
    ThriftModuleScope,
    derive_include_alias,
)
from decl_to_code.pipeline.session import RenderSession
from decl_to_code.pipeline.symbols import ModuleScope, OutputSymbol


class TestIncludeRegistry:
    """Tests for Thrift include records and aliases."""

    def test_derive_include_alias(self):
        assert derive_include_alias("shared/types.thrift") == "types"
        assert derive_include_alias("common.thrift") == "common"
        assert derive_include_alias("common") == "common"

    def test_auto_include_is_registered_once(self):
        registry = IncludeRegistry()
        first = registry.register("shared.thrift", IncludeSource.AUTO)
        second = registry.register("shared.thrift", IncludeSource.AUTO)

        assert first is second
        assert first.alias == "shared"
        assert len(registry) == 1

    def test_manual_alias_upgrades_auto_record_in_place(self):
        registry = IncludeRegistry()
        auto = registry.register("shared.thrift", IncludeSource.AUTO)
        manual = registry.register("shared.thrift", IncludeSource.MANUAL, "s")

        assert manual is auto
        assert manual.alias == "s"
        assert manual.source == IncludeSource.MANUAL
        assert len(registry) == 1

    def test_auto_use_after_manual_keeps_manual_alias(self):
        registry = IncludeRegistry()
        registry.register("shared.thrift", IncludeSource.MANUAL, "s")
        assert registry.register("shared.thrift", IncludeSource.AUTO).alias == "s"

    def test_two_manual_aliases_for_one_path(self):
        registry = IncludeRegistry()
        registry.register("shared.thrift", IncludeSource.MANUAL, "a")
        registry.register("shared.thrift", IncludeSource.MANUAL, "a")

        with pytest.raises(ImportAliasConflictError, match="two different aliases"):
            registry.register("shared.thrift", IncludeSource.MANUAL, "b")

    def test_manual_alias_used_by_another_path(self):
        registry = IncludeRegistry()
        registry.register("a/common.thrift", IncludeSource.MANUAL)

        with pytest.raises(ImportAliasConflictError, match="already used"):
            registry.register("b/other.thrift", IncludeSource.MANUAL, "common")

    def test_auto_alias_gets_numeric_suffix(self):
        registry = IncludeRegistry()
        assert registry.register("a/common.thrift", IncludeSource.AUTO).alias == "common"
        assert registry.register("b/common.thrift", IncludeSource.AUTO).alias == "common_2"
        assert registry.register("c/common.thrift", IncludeSource.AUTO).alias == "common_3"

    def test_records_sorted_by_path(self):
        registry = IncludeRegistry()
        registry.register("zeta.thrift", IncludeSource.AUTO)
        registry.register("alpha.thrift", IncludeSource.AUTO)
        assert [record.path for record in registry.records] == ["alpha.thrift", "zeta.thrift"]


class TestIncludeSynthesizer:
    """Tests for alias-qualified Thrift references."""

    def test_include_path_is_relative_to_consumer(self):
        consumer = ThriftModuleScope("services/user.thrift")
        assert consumer.include_path_for(ModuleScope("shared/types.thrift")) == "../shared/types.thrift"
        assert ThriftModuleScope("main.thrift").include_path_for(ModuleScope("shared/types.thrift")) == "shared/types.thrift"

    def test_foreign_use_is_alias_qualified(self):
        types = ThriftModuleScope("shared/types.thrift")
        user = types.declare(OutputSymbol("User", "type"))
        consumer = ThriftModuleScope("main.thrift")
        synthesizer = IncludeSynthesizer()

        assert synthesizer.record_foreign_use(consumer, user) == "types.User"
        assert synthesizer.record_foreign_use(consumer, user) == "types.User"
        assert [record.path for record in consumer.includes.records] == ["shared/types.thrift"]


class TestPythonImports:
    """Tests for Python import records and the type-only upgrade."""

    def setup_method(self):
        self.models = PythonModuleScope("models/user.py")
        self.user = self.models.declare(OutputSymbol("User", "class"))
        self.consumer = PythonModuleScope("app/main.py")
        self.synthesizer = ConditionalImportSynthesizer()

    def test_module_name_for_path(self):
        assert module_name_for_path("models/user.py") == "models.user"
        assert module_name_for_path("models/__init__.py") == "models"
        assert module_name_for_path("main.py") == "main"
        assert self.consumer.module_name == "app.main"

    def test_type_only_import_upgrades_to_value(self):
        assert self.synthesizer.record_foreign_use(self.consumer, self.user, type_only=True) == "User"
        assert self.consumer.has_type_only_imports

        assert self.synthesizer.record_foreign_use(self.consumer, self.user, type_only=False) == "User"
        record = self.consumer.imported_modules[self.models]
        assert len(record.symbols) == 1
        assert not record.symbols[0].local.is_type_only
        assert not self.consumer.has_type_only_imports
        assert self.consumer.import_groups(type_only=True) == []
        assert [name for name, _ in self.consumer.import_groups(type_only=False)] == ["models.user"]

    def test_value_import_is_never_downgraded(self):
        self.synthesizer.record_foreign_use(self.consumer, self.user)
        self.synthesizer.record_foreign_use(self.consumer, self.user, type_only=True)
        assert not self.consumer.imported_symbols[self.user].is_type_only

    def test_colliding_import_is_renamed(self):
        self.consumer.declare(OutputSymbol("User", "class"))
        other = PythonModuleScope("legacy/user.py")
        legacy_user = other.declare(OutputSymbol("User", "class"))

        assert self.synthesizer.record_foreign_use(self.consumer, self.user) == "User_2"
        assert self.synthesizer.record_foreign_use(self.consumer, legacy_user) == "User_3"

        groups = dict(self.consumer.import_groups(type_only=False))
        assert [imported.binding for imported in groups["models.user"]] == ["User as User_2"]
        assert [imported.binding for imported in groups["legacy.user"]] == ["User as User_3"]

    def test_import_groups_are_sorted(self):
        helpers = PythonModuleScope("app/helpers.py")
        for name in ("zip_all", "apply"):
            symbol = helpers.declare(OutputSymbol(name, "function"))
            self.synthesizer.record_foreign_use(self.consumer, symbol)
        self.synthesizer.record_foreign_use(self.consumer, self.user)

        groups = self.consumer.import_groups(type_only=False)
        assert [name for name, _ in groups] == ["app.helpers", "models.user"]
        assert [imported.binding for imported in groups[0][1]] == ["apply", "zip_all"]


class TestExternalModules:
    """Tests for modules that are not generated."""

    def test_external_symbols_are_shared(self):
        external = ExternalModules()
        first = external.symbol("typing", "Any")
        assert external.symbol("typing", "Any") is first
        assert external.module("typing").module_name == "typing"

    def test_external_import_through_session(self):
        with RenderSession("python") as session:
            module = session.create_module("models.py")
            assert session.reference_external("dataclasses", "dataclass", module) == "dataclass"
            assert session.reference_external("dataclasses", "field", module) == "field"
            assert session.reference_external("dataclasses", "dataclass", module) == "dataclass"

            groups = module.import_groups(type_only=False)
            assert [(name, [imported.binding for imported in symbols]) for name, symbols in groups] == [
                ("dataclasses", ["dataclass", "field"])
            ]
