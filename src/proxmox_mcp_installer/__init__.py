"""
Proxmox MCP Installer - provisions the Proxmox and SSH MCP servers for Claude Code.

Detects the host distribution, installs required packages, sets up an SSH
key and a Proxmox API token, fetches the Proxmox MCP server and registers
both servers in the Claude Code configuration.
"""

__version__ = "1.1.0"
__description__ = "Installer for the Proxmox and SSH MCP servers used by Claude Code"

# Public API
from proxmox_mcp_installer.core.exceptions import FatalInstallerError, InstallerError
from proxmox_mcp_installer.core.models import InstallSession, ServerEntry

__all__ = [
    "__version__",
    "__description__",
    "InstallerError",
    "FatalInstallerError",
    "InstallSession",
    "ServerEntry",
]
