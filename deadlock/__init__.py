"""Scaffold Python projects, install PyPI wheels into a venv and track them in dead.lock."""

__version__ = "1.0.0"