"""
Bundlekit CLI - output helpers built on Click.

    success(), error(), warning(), info()
    section()   - section divider with title
    kv()        - key-value pair, aligned
    bullet()    - bulleted list item

click.style handles NO_COLOR / TERM=dumb.
"""

from __future__ import annotations

import shutil
from typing import Optional

import click

_TERM_WIDTH: Optional[int] = None

_L_H = "\u2500"      # ─
_BULLET = "\u2022"   # •
_CHECK = "\u2713"    # ✓
_CROSS = "\u2717"    # ✗


def _tw() -> int:
    """Terminal width, cached and clamped to a sane range."""
    global _TERM_WIDTH
    if _TERM_WIDTH is None:
        _TERM_WIDTH = max(40, min(shutil.get_terminal_size((80, 24)).columns, 120))
    return _TERM_WIDTH


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(f"{_CHECK} {message}", fg="green"))


def error(message: str) -> None:
    """Print error message in red."""
    click.echo(click.style(f"{_CROSS} {message}", fg="red"))


def warning(message: str) -> None:
    """Print warning message in yellow."""
    click.echo(click.style(message, fg="yellow"))


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def section(title: str, *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """
    Print a section header with a ruled line.

        ── Site ─────────────────────────────────
    """
    w = width or _tw()
    dashes = max(4, w - len(title) - 6)
    click.echo(click.style(f"{_L_H}{_L_H} {title} {_L_H * dashes}", fg=fg, bold=True))


def kv(key: str, value: str, *, key_width: int = 20, indent: int = 2) -> None:
    """
    Print an aligned key-value pair.

        Site:               4 sources
    """
    k = click.style(f"{key}:", fg="white")
    v = click.style(str(value), fg="cyan")
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{' ' * indent}{k}{padding}{v}")


def bullet(text: str, *, indent: int = 2, fg: str = "white") -> None:
    """Print a bulleted list item."""
    click.echo(f"{' ' * indent}{click.style(_BULLET, fg='cyan')} {click.style(text, fg=fg)}")
