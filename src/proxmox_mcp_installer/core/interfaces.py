"""
Collaborator interfaces used by the provisioning steps.

Provisioners depend only on these abstractions; the concrete
implementations live in ``cli.prompts``, ``core.remote`` and
``core.proxmox``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from proxmox_mcp_installer.utils.process import CommandResult


class Prompter(ABC):
    """Interactive operator prompts."""

    @abstractmethod
    def confirm(self, question: str, default: bool = True) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def ask_text(
        self,
        question: str,
        default: Optional[str] = None,
        validator: Optional[Callable[[str], bool]] = None,
    ) -> str:
        """
        Ask for free text.

        An empty answer returns ``default`` (or ``""`` when there is none).
        ``validator`` raises ``ValidationError`` for answers that should be
        asked again.
        """

    @abstractmethod
    def ask_secret(self, question: str) -> str:
        """Ask for a value without echoing it."""


class RemoteShell(ABC):
    """Runs commands on the Proxmox server."""

    @abstractmethod
    def run(self, command: str, batch_mode: bool = False) -> CommandResult:
        """
        Run a shell command remotely.

        Args:
            command: Command line executed by the remote shell
            batch_mode: Never prompt for passwords or passphrases
        """


class HttpClient(ABC):
    """Minimal HTTP client for the Proxmox API."""

    @abstractmethod
    def get_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        GET a URL and decode the JSON body.

        Raises:
            NetworkError: On connection, TLS, HTTP status or decoding errors
        """
