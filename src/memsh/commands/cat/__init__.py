"""The cat command."""

from .cat import CatCommand

__all__ = ["CatCommand"]
