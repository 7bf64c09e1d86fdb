"""taskboard: a personal task tracker with spreadsheet import/export."""

__version__ = "0.1.0"
