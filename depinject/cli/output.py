"""
Styled terminal output built on Click.
"""

import click

_CHECK = "✓"     # ✓
_CROSS = "✗"     # ✗
_BULLET = "•"    # •


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    """Print error message in red."""
    click.echo(click.style(message, fg="red"), err=True)


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def kv(key: str, value: str, *, key_width: int = 20, indent: int = 2) -> None:
    """
    Print an aligned key-value pair.

        Services:          8
    """
    prefix = " " * indent
    k = click.style(f"{key}:", fg="white")
    v = click.style(str(value), fg="cyan")
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{prefix}{k}{padding}{v}")


def bullet(text: str, *, indent: int = 2, fg: str = "white") -> None:
    """Print a bulleted list item."""
    prefix = " " * indent
    click.echo(f"{prefix}{click.style(_BULLET, fg='cyan')} {click.style(text, fg=fg)}")
