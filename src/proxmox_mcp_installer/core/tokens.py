"""
Proxmox API token provisioning.

The token is either created on the server through ``pveum`` over SSH or
typed in by the operator, then checked against the API version endpoint.
"""

import json
import shlex
from typing import Optional

from proxmox_mcp_installer.core.exceptions import InstallerError, TokenError
from proxmox_mcp_installer.core.interfaces import HttpClient, Prompter, RemoteShell
from proxmox_mcp_installer.core.models import InstallSession
from proxmox_mcp_installer.core.proxmox import ProxmoxApi
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.validators import validate_token_name

logger = get_logger(__name__)

AUTOMATIC = "1"
MANUAL = "2"


def token_list_command(user: str) -> str:
    return f"pveum user token list {shlex.quote(user)} --output-format json"


def token_remove_command(user: str, name: str) -> str:
    return f"pveum user token remove {shlex.quote(user)} {shlex.quote(name)}"


def token_add_command(user: str, name: str) -> str:
    # privsep 0: the token inherits the full privileges of its user
    return f"pveum user token add {shlex.quote(user)} {shlex.quote(name)} --privsep 0 --output-format json"


def parse_token_response(text: str) -> Optional[str]:
    """
    Extract the secret from ``pveum user token add`` JSON output.

    Newer releases return ``value``; for responses that only carry
    ``full-tokenid`` the part after the first ``!`` is used.

    Returns:
        The token value, or None if neither field is usable
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        return None

    if not isinstance(payload, dict):
        return None

    value = payload.get("value")
    if isinstance(value, str) and value:
        return value

    full_id = payload.get("full-tokenid")
    if isinstance(full_id, str) and "!" in full_id:
        remainder = full_id.split("!", 1)[1]
        return remainder or None

    return None


def token_exists(text: str, name: str) -> bool:
    """Whether ``pveum user token list`` JSON output contains ``name``."""
    try:
        tokens = json.loads(text)
    except (TypeError, ValueError):
        return False

    if not isinstance(tokens, list):
        return False

    return any(isinstance(token, dict) and token.get("tokenid") == name for token in tokens)


class TokenProvisioner:
    """Obtains and validates the API token stored in the session."""

    def __init__(self, prompter: Prompter, reserved_name: str = "claude-mcp"):
        self.prompter = prompter
        self.reserved_name = reserved_name

    def provision(self, session: InstallSession, shell: RemoteShell) -> str:
        """
        Let the operator choose automatic or manual token setup.

        Returns:
            The token value, also stored on ``session``

        Raises:
            TokenError: If manual entry yields an empty value
        """
        output.plain("Choose how to create the API token:")
        output.plain("  1) Automatic: creates token via SSH on the server")
        output.plain("  2) Manual entry: enter an existing token")
        output.plain()

        choice = self.prompter.ask_text("Choice [1/2]").strip()

        if choice == AUTOMATIC:
            return self.create_automatic(session, shell)
        if choice != MANUAL:
            output.warn("Invalid choice, falling back to manual entry")
        return self.enter_manual(session)

    def create_automatic(self, session: InstallSession, shell: RemoteShell) -> str:
        """Create the reserved token on the server, falling back to manual entry."""
        output.info("Creating API token via SSH...")
        user = session.proxmox_user
        name = self.reserved_name

        listing = shell.run(token_list_command(user))
        if listing.ok and token_exists(listing.stdout, name):
            output.warn(f"Token '{name}' already exists on the server")
            if not self.prompter.confirm("Delete existing and create new?", default=True):
                output.info("Enter the existing token value manually")
                return self.enter_manual(session)

            removal = shell.run(token_remove_command(user, name))
            if removal.ok:
                output.info("Old token deleted")
            else:
                logger.warning(f"Token removal failed: {removal.stderr.strip()}")

        created = shell.run(token_add_command(user, name))
        if not created.ok or not created.stdout.strip():
            output.error("Could not create token via SSH")
            output.warn("Falling back to manual entry")
            return self.enter_manual(session)

        value = parse_token_response(created.stdout)
        if not value:
            output.error("Cannot parse token from server response")
            logger.debug(f"Unparseable token response of {len(created.stdout)} bytes")
            return self.enter_manual(session)

        session.token_name = name
        session.token_value = value

        output.success(f"Token created: {session.token_id}")
        output.info(f"Token value: {session.masked_token}")
        output.warn("SAVE THIS VALUE, it cannot be displayed again!")
        return value

    def enter_manual(self, session: InstallSession) -> str:
        """
        Ask the operator for an existing token.

        Raises:
            TokenError: If the token value is empty
        """
        output.info("Manual API token entry")
        output.info("You can create a token on the Proxmox server with:")
        output.plain(f"  pveum user token add {session.proxmox_user} {self.reserved_name} --privsep 0")
        output.plain()

        session.token_name = self.prompter.ask_text(
            "Token name (without user@ prefix)",
            default=self.reserved_name,
            validator=validate_token_name,
        ).strip()
        value = self.prompter.ask_secret("Token value (UUID)").strip()

        if not value:
            raise TokenError("Token value cannot be empty", error_code="EMPTY_TOKEN")

        session.token_value = value
        output.success(f"Token entered: {session.token_id}")
        return value

    def validate(self, session: InstallSession, http: HttpClient) -> Optional[str]:
        """
        Check the token against ``/version``.

        Returns:
            The Proxmox VE version, or None when validation failed. A
            failure is only a warning.
        """
        output.info("Validating API token...")
        try:
            version = ProxmoxApi(session, http).version()
        except InstallerError as e:
            output.warn("API validation failed (server may be using a self-signed cert)")
            output.warn(f"Response: {e.message}")
            return None

        output.success(f"API token works, Proxmox VE version: {version}")
        return version
