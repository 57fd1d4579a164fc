"""
Backends module.

Contains code generation backends for GraphQL, Thrift and Python.
"""

from __future__ import annotations

from ..session import RenderSession
from .base import CodeBackend
from .graphql_backend import GraphQLBackend
from .python_backend import PythonBackend
from .thrift_backend import ThriftBackend

BACKENDS: dict[str, type[CodeBackend]] = {
    "graphql": GraphQLBackend,
    "thrift": ThriftBackend,
    "python": PythonBackend,
}


def get_backend(session: RenderSession) -> CodeBackend:
    """Create the backend of the session's target."""
    if session.target not in BACKENDS:
        raise ValueError(f"Target '{session.target}' is not supported")
    return BACKENDS[session.target](session)


__all__ = ["BACKENDS", "CodeBackend", "GraphQLBackend", "PythonBackend", "ThriftBackend", "get_backend"]
