"""
Refkeys: opaque forward-reference handles.

A refkey is minted independently of any symbol so that a declaration can
be referenced before it has been declared. At most one symbol is ever
bound to a refkey (see Binder).
"""

from __future__ import annotations


class Refkey:
    """An opaque, hashable forward-reference token, equal only to itself."""

    __slots__ = ("label",)

    def __init__(self, label: str = ""):
        self.label = label

    def __repr__(self) -> str:
        if self.label:
            return f"refkey[{self.label}]"
        return f"refkey[{id(self):#x}]"


def refkey(label: str = "") -> Refkey:
    """Mint a new refkey."""
    return Refkey(label)


def unresolved_name(key: Refkey) -> str:
    """Text printed in place of a refkey that never got bound."""
    return f"<Unresolved Symbol: {key!r}>"
