"""The tail command."""

from .tail import TailCommand

__all__ = ["TailCommand"]
