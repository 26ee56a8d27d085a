"""Claude Code configuration and CLI integration."""

from proxmox_mcp_installer.claude.claude_client import ClaudeClient
from proxmox_mcp_installer.claude.config_writer import ConfigStore, RegistryEditor

__all__ = ["ClaudeClient", "ConfigStore", "RegistryEditor"]
