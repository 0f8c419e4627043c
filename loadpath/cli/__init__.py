"""
loadpath CLI - inspect what a scan discovers.

Usage:
    loadpath scan [ORIGINS]...
    loadpath types [ORIGINS]...
    loadpath tagged TAG [ORIGINS]...

Origins default to the ``scan.origins`` config setting, then to the
interpreter's ``sys.path``.
"""

__cli_name__ = "loadpath"
