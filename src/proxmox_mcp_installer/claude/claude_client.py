"""
Claude CLI integration client.

Registers servers through ``claude mcp add``/``claude mcp remove`` in
addition to editing the configuration file directly. The CLI is optional:
when it is missing or a call fails the installer carries on.
"""

import os
from typing import List, Optional

from proxmox_mcp_installer.core.models import ServerEntry
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.process import CommandRunner

logger = get_logger(__name__)

COMMON_PATHS = [
    "/usr/local/bin/claude",
    "/usr/bin/claude",
    "~/.local/bin/claude",
    "~/.claude/local/claude",
]


class ClaudeClient:
    """Client for the ``claude mcp`` subcommands."""

    def __init__(self, runner: CommandRunner, cli_path: str = "claude", timeout: int = 30):
        """Initialize Claude CLI client."""
        self.runner = runner
        self.timeout = timeout
        self.claude_path = self._discover_claude_path(cli_path)

        logger.debug("ClaudeClient initialized", extra={"claude_path": self.claude_path})

    def _discover_claude_path(self, cli_path: str) -> Optional[str]:
        """Discover the path to the claude executable."""
        found = self.runner.which(cli_path)
        if found:
            return found

        for path in COMMON_PATHS:
            path = os.path.expanduser(path)
            if os.path.isfile(path) and os.access(path, os.X_OK):
                logger.debug(f"Found claude at fallback location: {path}")
                return path

        return None

    def is_available(self) -> bool:
        return self.claude_path is not None

    def add_command(self, name: str, entry: ServerEntry) -> List[str]:
        args: List[str] = [self.claude_path or "claude", "mcp", "add", name]
        for key, value in entry.env.items():
            args += ["-e", f"{key}={value}"]
        args += ["--", entry.command, *entry.args]
        return args

    def add_server(self, name: str, entry: ServerEntry) -> bool:
        """
        Register a server with ``claude mcp add``.

        Returns:
            True on success. Failures are logged, never raised.
        """
        if not self.is_available():
            return False

        result = self.runner.run(self.add_command(name, entry), timeout=self.timeout)
        if not result.ok:
            # Usually "already exists" after the direct config edit
            logger.debug(f"claude mcp add {name} failed: {result.stderr.strip()}")
            return False

        logger.info(f"Registered '{name}' through Claude CLI")
        return True

    def remove_server(self, name: str) -> bool:
        """Remove a server with ``claude mcp remove``; failures are ignored."""
        if not self.is_available():
            return False

        result = self.runner.run([self.claude_path, "mcp", "remove", name], timeout=self.timeout)
        if not result.ok:
            logger.debug(f"claude mcp remove {name} failed: {result.stderr.strip()}")
            return False

        logger.info(f"Removed '{name}' through Claude CLI")
        return True
