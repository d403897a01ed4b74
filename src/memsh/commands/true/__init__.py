"""The true and false commands."""

from .true import FalseCommand, TrueCommand

__all__ = ["TrueCommand", "FalseCommand"]
