"""The sort command."""

from .sort import SortCommand

__all__ = ["SortCommand"]
