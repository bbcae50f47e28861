"""Curses browser and library for spec-driven development areas, topics and tasks."""

__version__ = "0.0.8"
__all__ = ["__version__"]