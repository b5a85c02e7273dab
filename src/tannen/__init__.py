"""Tannen – gesture-driven scatter/tree morphing scene."""

__version__ = "0.1.0"
