"""The head command."""

from .head import HeadCommand

__all__ = ["HeadCommand"]
