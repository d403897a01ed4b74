"""The rm command."""

from .rm import RmCommand

__all__ = ["RmCommand"]
