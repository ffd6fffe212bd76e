"""Inspect and clean up Cursor's local chat history stores."""

__version__ = "0.1.0"
