"""The grep command."""

from .grep import GrepCommand

__all__ = ["GrepCommand"]
