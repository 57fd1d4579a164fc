"""
Tests for cycle detection and the deferred validation registry.
"""

from __future__ import annotations

import pytest

from decl_to_code.pipeline.errors import CycleDetectedError, DomainInvariantError
from decl_to_code.pipeline.symbols import ImplementsMetadata, OutputSymbol, PlainMetadata
from decl_to_code.pipeline.validation import (
    PredicateTask,
    ValidationRegistry,
    ValidationTask,
    direct_supertypes,
    transitive_closure,
)


def hierarchy(edges: dict[str, list[str]]) -> dict[str, OutputSymbol]:
    """Symbols named after the keys of ``edges``, implementing the listed names."""
    return {
        name: OutputSymbol(name, "type", metadata=ImplementsMetadata(role="interface", implements=list(parents)))
        for name, parents in edges.items()
    }


class TestTransitiveClosure:
    """Tests for DFS closure with seen/visiting sets."""

    def test_three_node_cycle(self):
        symbols = hierarchy({"A": ["B"], "B": ["C"], "C": ["A"]})

        with pytest.raises(CycleDetectedError) as exc_info:
            transitive_closure(symbols["A"], symbols.get)
        assert exc_info.value.path == ["A", "B", "C", "A"]
        assert "A -> B -> C -> A" in str(exc_info.value)

    def test_self_reference_is_a_cycle(self):
        symbols = hierarchy({"A": ["A"]})

        with pytest.raises(CycleDetectedError) as exc_info:
            transitive_closure(symbols["A"], symbols.get)
        assert exc_info.value.path == ["A", "A"]

    def test_cycle_not_through_root(self):
        symbols = hierarchy({"Root": ["A"], "A": ["B"], "B": ["A"]})

        with pytest.raises(CycleDetectedError) as exc_info:
            transitive_closure(symbols["Root"], symbols.get)
        assert exc_info.value.path == ["A", "B", "A"]

    def test_diamond_is_deduplicated(self):
        symbols = hierarchy({"A": [], "B": ["A"], "C": ["A"], "D": ["B", "C"]})

        closure = transitive_closure(symbols["D"], symbols.get)
        assert [symbol.name for symbol in closure] == ["B", "A", "C"]

    def test_unresolvable_supertypes_are_skipped(self):
        symbols = hierarchy({"A": ["Missing", "B"], "B": []})
        assert [symbol.name for symbol in transitive_closure(symbols["A"], symbols.get)] == ["B"]

    def test_relation_is_named_in_message(self):
        symbols = hierarchy({"A": ["B"], "B": ["A"]})

        with pytest.raises(CycleDetectedError, match="Circular service inheritance detected: A -> B -> A"):
            transitive_closure(symbols["A"], symbols.get, relation="service inheritance")

    def test_same_cycle_from_any_start_has_one_key(self):
        symbols = hierarchy({"A": ["B"], "B": ["C"], "C": ["A"]})
        keys = set()
        for name in ("A", "B", "C"):
            with pytest.raises(CycleDetectedError) as exc_info:
                transitive_closure(symbols[name], symbols.get)
            keys.add(exc_info.value.dedupe_key)
        assert len(keys) == 1

    def test_direct_supertypes(self):
        symbols = hierarchy({"A": ["B"]})
        assert direct_supertypes(symbols["A"]) == ["B"]
        assert direct_supertypes(OutputSymbol("Scalar", "type", metadata=PlainMetadata())) == []


class FailingTask(ValidationTask):
    def __init__(self, symbol, message):
        super().__init__(symbol)
        self.message = message

    def run(self):
        raise DomainInvariantError(self.message, declaration=self.symbol.name)


class TestValidationRegistry:
    """Tests for deferred task execution."""

    def setup_method(self):
        self.symbol = OutputSymbol("User", "type")

    def test_errors_are_collected(self):
        registry = ValidationRegistry()
        registry.register(FailingTask(self.symbol, "first"))
        registry.register(PredicateTask(self.symbol, lambda: True, lambda: DomainInvariantError("never")))
        registry.register(FailingTask(self.symbol, "second"))

        errors = registry.run_all()
        assert [str(error) for error in errors] == ["first", "second"]

    def test_predicate_task(self):
        registry = ValidationRegistry()
        registry.register(
            PredicateTask(self.symbol, lambda: False, lambda: DomainInvariantError("User is invalid", declaration="User"))
        )
        errors = registry.run_all()
        assert len(errors) == 1
        assert errors[0].declaration == "User"

    def test_duplicate_errors_are_dropped(self):
        registry = ValidationRegistry()
        registry.register(FailingTask(self.symbol, "same"))
        registry.register(FailingTask(self.symbol, "same"))
        assert len(registry.run_all()) == 1

    def test_runs_once(self):
        registry = ValidationRegistry()
        registry.run_all()
        assert registry.has_run

        with pytest.raises(RuntimeError):
            registry.run_all()
        with pytest.raises(RuntimeError):
            registry.register(FailingTask(self.symbol, "late"))

    def test_reset(self):
        registry = ValidationRegistry()
        registry.register(FailingTask(self.symbol, "first"))
        registry.run_all()
        registry.reset()

        assert len(registry) == 0
        assert registry.run_all() == []

    def test_unexpected_exceptions_propagate(self):
        def broken():
            raise ValueError("bug in a predicate")

        registry = ValidationRegistry()
        registry.register(PredicateTask(self.symbol, broken, lambda: DomainInvariantError("unused")))
        with pytest.raises(ValueError):
            registry.run_all()
