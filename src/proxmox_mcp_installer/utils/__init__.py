"""Utility modules for the installer."""

from proxmox_mcp_installer.utils.logging import get_logger, setup_logging
from proxmox_mcp_installer.utils.config import Config, get_config
from proxmox_mcp_installer.utils.process import CommandResult, CommandRunner
from proxmox_mcp_installer.utils.validators import (
    validate_host, validate_port, validate_ssh_user, validate_token_name
)

__all__ = [
    "get_logger",
    "setup_logging",
    "Config",
    "get_config",
    "CommandResult",
    "CommandRunner",
    "validate_host",
    "validate_port",
    "validate_ssh_user",
    "validate_token_name",
]
