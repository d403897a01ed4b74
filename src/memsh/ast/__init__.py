"""AST definitions for memsh."""

from . import types

__all__ = ["types"]
