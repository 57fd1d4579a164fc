"""
Writer module.

Contains the atomic file writer used to put generated files on disk.
"""

from __future__ import annotations

from .atomic_writer import AtomicWriter

__all__ = ["AtomicWriter"]
