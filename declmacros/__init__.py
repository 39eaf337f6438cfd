"""Sortedness checks for enums and match statements, and builders for dataclasses."""

__version__ = "0.1.0"
__all__ = ["sortcheck", "sorted", "builder"]