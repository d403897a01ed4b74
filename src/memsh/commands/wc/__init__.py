"""The wc command."""

from .wc import WcCommand

__all__ = ["WcCommand"]
