"""Daybook - local-first daily planner."""

__version__ = "0.1.0"
