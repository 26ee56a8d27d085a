"""
Validation utilities for operator input.

Each validator returns True for acceptable input and raises
``ValidationError`` with a message suitable for re-prompting otherwise.
"""

import ipaddress
import re

from proxmox_mcp_installer.core.exceptions import ValidationError

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def validate_host(host: str) -> bool:
    """
    Validate a Proxmox host given as IP address or DNS name.

    Args:
        host: Host to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If host is invalid
    """
    if not host or not host.strip():
        raise ValidationError("Host cannot be empty")

    host = host.strip()

    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass

    if len(host) > 253:
        raise ValidationError("Host name too long (max 253 characters)")

    labels = host.rstrip(".").split(".")
    if not all(_HOSTNAME_LABEL.match(label) for label in labels):
        raise ValidationError(f"Invalid host name or IP address: {host}")

    return True


def validate_port(port: str) -> bool:
    """
    Validate a TCP port number.

    Raises:
        ValidationError: If port is not an integer in 1-65535
    """
    try:
        value = int(str(port).strip())
    except ValueError:
        raise ValidationError(f"Port must be a number: {port}")

    if not 1 <= value <= 65535:
        raise ValidationError(f"Port out of range (1-65535): {value}")

    return True


def validate_ssh_user(user: str) -> bool:
    """Validate a POSIX user name for SSH."""
    if not user or not user.strip():
        raise ValidationError("SSH user cannot be empty")

    if not re.match(r"^[a-z_][a-z0-9_.-]*\$?$", user.strip(), re.IGNORECASE):
        raise ValidationError(f"Invalid SSH user name: {user}")

    return True


def validate_token_name(name: str) -> bool:
    """
    Validate a Proxmox API token name (the part after ``user@realm!``).

    Raises:
        ValidationError: If name is invalid
    """
    if not name or not name.strip():
        raise ValidationError("Token name cannot be empty")

    if "!" in name or "@" in name:
        raise ValidationError("Token name must not include the user@realm! prefix")

    if not re.match(r"^[A-Za-z][A-Za-z0-9._-]*$", name.strip()):
        raise ValidationError(
            "Token name must start with a letter and contain only letters, "
            "numbers, dots, hyphens and underscores"
        )

    return True
