"""Tick based game balance simulator."""

__version__ = "0.1.0"
