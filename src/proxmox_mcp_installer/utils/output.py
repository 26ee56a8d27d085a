"""
Operator-facing progress output.

Thin helpers over a shared Rich console that reproduce the installer's
``[INFO]``/``[OK]``/``[WARN]``/``[ERROR]`` message style.
"""

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False, soft_wrap=True)


def info(message: str) -> None:
    console.print(f"[blue]\\[INFO][/blue] {escape(message)}")


def success(message: str) -> None:
    console.print(f"[green]\\[OK][/green] {escape(message)}")


def warn(message: str) -> None:
    console.print(f"[yellow]\\[WARN][/yellow] {escape(message)}")


def error(message: str) -> None:
    console.print(f"[red]\\[ERROR][/red] {escape(message)}")


def header(title: str) -> None:
    console.print("")
    console.print(f"[bold cyan]=== {escape(title)} ===[/bold cyan]")
    console.print("")


def plain(message: str = "") -> None:
    """Print text as-is, e.g. a command for the operator to copy."""
    console.print(escape(message))
