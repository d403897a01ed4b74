"""The mkdir command."""

from .mkdir import MkdirCommand

__all__ = ["MkdirCommand"]
