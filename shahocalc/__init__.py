"""Shaho Calc - Japanese social insurance filing calculations."""

__version__ = "0.1.0"
