"""
Deferred validation registry.

Tasks are registered during the declare pass and executed exactly once,
after every declaration has been registered and every file emitted.
Failures are collected rather than raised so that one job reports every
structural problem at once.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from ..errors import GenerationError
from ..symbols.symbol import OutputSymbol

logger = logging.getLogger(__name__)


class ValidationTask(ABC):
    """A deferred check over one target symbol."""

    def __init__(self, symbol: OutputSymbol):
        self.symbol = symbol

    @property
    def description(self) -> str:
        return f"{type(self).__name__}({self.symbol.name})"

    @abstractmethod
    def run(self) -> None:
        """
        Execute the check.

        Raises:
            GenerationError: On the first violation found
        """

    def collect(self) -> list[GenerationError]:
        """
        Execute the check and return every violation found.

        Tasks able to report several violations override this; the default
        turns the error raised by ``run()`` into a single entry.
        """
        try:
            self.run()
        except GenerationError as e:
            return [e]
        return []


class PredicateTask(ValidationTask):
    """A domain invariant expressed as a boolean predicate."""

    def __init__(
        self,
        symbol: OutputSymbol,
        predicate: Callable[[], bool],
        error: Callable[[], GenerationError],
    ):
        super().__init__(symbol)
        self.predicate = predicate
        self.error = error

    def run(self) -> None:
        if not self.predicate():
            raise self.error()


class ValidationRegistry:
    """Per-job collection of deferred validation tasks."""

    def __init__(self):
        self._tasks: list[ValidationTask] = []
        self._has_run = False

    @property
    def has_run(self) -> bool:
        return self._has_run

    def register(self, task: ValidationTask) -> None:
        if self._has_run:
            raise RuntimeError(f"Cannot register {task.description}: validations have already run")
        self._tasks.append(task)

    def run_all(self) -> list[GenerationError]:
        """
        Run every registered task once.

        Returns:
            The collected errors, without duplicates, in task order

        Raises:
            RuntimeError: If called a second time for the same job
        """
        if self._has_run:
            raise RuntimeError("run_all() may only be called once per generation job")
        self._has_run = True

        logger.debug("Running %d deferred validation tasks", len(self._tasks))
        errors: list[GenerationError] = []
        seen: set = set()
        for task in self._tasks:
            for error in task.collect():
                key = error.dedupe_key
                if key in seen:
                    continue
                seen.add(key)
                errors.append(error)

        logger.debug("Deferred validation found %d errors", len(errors))
        return errors

    def reset(self) -> None:
        self._tasks.clear()
        self._has_run = False

    def __len__(self) -> int:
        return len(self._tasks)
