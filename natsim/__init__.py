"""Simulations of complex and adaptive systems, with a small Lisp interpreter."""

__version__ = "0.1.0"