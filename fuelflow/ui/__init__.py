"""User interface components for FuelFlow."""

from .terminal import TerminalUI

__all__ = ["TerminalUI"]
