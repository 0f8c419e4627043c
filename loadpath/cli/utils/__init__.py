"""CLI output helpers."""
