"""
Validation module.

Contains the deferred validation registry, the cycle detector and the
per-target validation tasks.
"""

from __future__ import annotations

from .cycles import direct_supertypes, transitive_closure
from .registry import PredicateTask, ValidationRegistry, ValidationTask

__all__ = [
    "PredicateTask",
    "ValidationRegistry",
    "ValidationTask",
    "direct_supertypes",
    "transitive_closure",
]
