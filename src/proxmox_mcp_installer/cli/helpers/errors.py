"""
Error handling utilities for CLI commands.
"""

import functools
import sys

from proxmox_mcp_installer.core.exceptions import FatalInstallerError, InstallerError
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)


def handle_errors(func):
    """Decorator to turn installer errors into a message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            output.console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(1)
        except FatalInstallerError as e:
            logger.error(f"Fatal: {e}", extra={"error": e.to_dict()})
            output.error(e.message)
            sys.exit(1)
        except InstallerError as e:
            logger.error(f"Unhandled installer error: {e}")
            output.error(e.message)
            sys.exit(1)
        except Exception as e:
            logger.exception("Unexpected error")
            output.error(str(e))
            output.console.print("[dim]Set PVE_MCP_DEBUG=true for more details[/dim]")
            sys.exit(1)

    return wrapper
