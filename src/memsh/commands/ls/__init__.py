"""The ls command."""

from .ls import LsCommand

__all__ = ["LsCommand"]
