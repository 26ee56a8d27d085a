"""
Interactive prompts backed by Rich.
"""

from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from proxmox_mcp_installer.core.exceptions import ValidationError
from proxmox_mcp_installer.core.interfaces import Prompter
from proxmox_mcp_installer.utils.output import console as default_console


class RichPrompter(Prompter):
    """``Prompter`` that reads answers from the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or default_console

    def confirm(self, question: str, default: bool = True) -> bool:
        return Confirm.ask(f"[yellow]{question}[/yellow]", default=default, console=self.console)

    def ask_text(
        self,
        question: str,
        default: Optional[str] = None,
        validator: Optional[Callable[[str], bool]] = None,
    ) -> str:
        while True:
            if default is not None:
                value = Prompt.ask(f"[yellow]{question}[/yellow]", default=default, console=self.console)
            else:
                value = Prompt.ask(f"[yellow]{question}[/yellow]", console=self.console)
            value = (value or "").strip()

            if validator is None:
                return value
            try:
                validator(value)
                return value
            except ValidationError as e:
                self.console.print(f"[red]{e.message}[/red]")

    def ask_secret(self, question: str) -> str:
        return Prompt.ask(f"[yellow]{question}[/yellow]", password=True, console=self.console) or ""
