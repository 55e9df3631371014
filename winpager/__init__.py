"""Windowed pagination and anchor reconciliation for virtualized lists."""

__version__ = "0.1.0"
