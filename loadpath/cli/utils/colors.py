"""
Terminal output helpers for the loadpath CLI.

    Messages:   success(), error(), warning(), dim(), bold()
    Layout:     banner(), section(), kv(), bullet(), table()

Styling goes through click, which drops ANSI codes when the output is not a
terminal (pipes, CliRunner).
"""

from __future__ import annotations

import shutil
from typing import Optional, Sequence

import click

# Box-drawing glyphs
_HEAVY = {"tl": "┏", "tr": "┓", "bl": "┗", "br": "┛", "h": "━", "v": "┃"}
_L_H = "─"
_BULLET = "•"
_CHECK = "✓"
_CROSS = "✗"


def _width(default: int = 80) -> int:
    """Usable terminal width, between 40 and 120 columns."""
    columns = shutil.get_terminal_size((default, 24)).columns
    return max(40, min(columns, 120))


# ═══════════════════════════════════════════════════════════════════════════
# Messages
# ═══════════════════════════════════════════════════════════════════════════


def success(message: str) -> None:
    click.secho(message, fg="green")


def error(message: str) -> None:
    """Red, on stderr."""
    click.secho(message, fg="red", err=True)


def warning(message: str) -> None:
    click.secho(message, fg="yellow")


def dim(message: str) -> None:
    click.secho(message, dim=True)


def bold(message: str) -> str:
    """Styled text for embedding in another message."""
    return click.style(message, bold=True)


# ═══════════════════════════════════════════════════════════════════════════
# Layout
# ═══════════════════════════════════════════════════════════════════════════


def banner(title: str, subtitle: str = "", *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """
    Boxed, centred title with an optional subtitle line.

        ┏━━━━━━━━━━━━━━━━━━━━━━━━━━━━┓
        ┃       Tagged objects       ┃
        ┃       tag: component       ┃
        ┗━━━━━━━━━━━━━━━━━━━━━━━━━━━━┛
    """
    inner = (width or min(_width(), 60)) - 2
    box = _HEAVY

    click.secho(box["tl"] + box["h"] * inner + box["tr"], fg=fg)
    for line, emphasis in ((title, True), (subtitle, False)):
        if line:
            click.secho(box["v"] + line.center(inner) + box["v"], fg=fg, bold=emphasis)
    click.secho(box["bl"] + box["h"] * inner + box["br"], fg=fg)


def section(title: str, *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """Ruled section header: ``── Summary ─────────``."""
    rule = _L_H * max(4, (width or _width()) - len(title) - 6)
    click.secho(f"{_L_H * 2} {title} {rule}", fg=fg, bold=True)


def kv(key: str, value: str, *, key_width: int = 20, indent: int = 2) -> None:
    """Aligned ``key: value`` line."""
    label = f"{key}:".ljust(max(key_width, len(key) + 2))
    click.echo(" " * indent + click.style(label, fg="white") + click.style(str(value), fg="cyan"))


def bullet(text: str, *, indent: int = 2, fg: str = "white") -> None:
    click.echo(" " * indent + click.style(_BULLET, fg="cyan") + " " + click.style(text, fg=fg))


def table(headers: Sequence[str], rows: Sequence[Sequence[str]], *, indent: int = 2) -> None:
    """
    Left-aligned columns under a ruled header.

        Type                 Package         Simple name
        ──────────────────── ─────────────── ───────────
        myapp.handlers.users myapp.handlers  users
    """
    cells = [[str(cell) for cell in row] for row in rows]
    widths = [
        max([len(header)] + [len(row[i]) for row in cells if i < len(row)])
        for i, header in enumerate(headers)
    ]
    pad = " " * indent

    def line(values: Sequence[str]) -> str:
        return " ".join(value.ljust(size) for value, size in zip(values, widths)).rstrip()

    click.secho(pad + line(headers), fg="cyan", bold=True)
    click.secho(pad + " ".join(_L_H * size for size in widths), dim=True)
    for row in cells:
        click.echo(pad + line(row))
