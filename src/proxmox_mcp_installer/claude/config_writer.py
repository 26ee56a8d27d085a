"""
Claude Code configuration editing.

Direct manipulation of ``~/.claude.json`` without relying on the Claude
CLI. Every mutation writes a timestamped backup first and replaces the
document atomically, so an interrupted run never leaves a half-written
file behind.
"""

import json
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from proxmox_mcp_installer.core.exceptions import ConfigError
from proxmox_mcp_installer.core.models import ServerEntry
from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)

MCP_SERVERS_KEY = "mcpServers"


class ConfigStore:
    """Loads, backs up and saves one JSON configuration document."""

    def __init__(self, config_path: Path):
        self.config_path = config_path

    def exists(self) -> bool:
        return self.config_path.is_file()

    def load(self) -> Dict[str, Any]:
        """
        Load the document.

        Returns:
            The parsed object, or an empty dict when the file is absent

        Raises:
            ConfigError: If the file is unreadable or not a JSON object
        """
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in {self.config_path}: {e}",
                error_code="INVALID_JSON",
            )
        except OSError as e:
            raise ConfigError(f"Failed to read {self.config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(
                f"{self.config_path} does not contain a JSON object",
                error_code="NOT_AN_OBJECT",
            )
        return data

    def backup(self) -> Optional[Path]:
        """Copy the current document next to itself with a timestamp suffix."""
        if not self.config_path.exists():
            return None

        base_name = f"{self.config_path.name}.backup.{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        backup_path = self.config_path.with_name(base_name)
        counter = 1
        # Never overwrite an earlier backup taken within the same second
        while backup_path.exists():
            backup_path = self.config_path.with_name(f"{base_name}.{counter}")
            counter += 1

        try:
            shutil.copy2(self.config_path, backup_path)
        except OSError as e:
            raise ConfigError(f"Failed to back up {self.config_path}: {e}")

        logger.debug(f"Created backup: {backup_path}")
        return backup_path

    def save(self, data: Dict[str, Any]) -> None:
        """
        Write the document through a temporary file and ``os.replace``.

        Raises:
            ConfigError: If the file cannot be written
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.config_path.name}.",
            suffix=".tmp",
            dir=str(self.config_path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            if self.config_path.exists():
                shutil.copymode(self.config_path, tmp_name)
            os.replace(tmp_name, self.config_path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigError(f"Failed to save config to {self.config_path}: {e}")

        logger.debug(f"Saved config to {self.config_path}")


class RegistryEditor:
    """Adds and removes ``mcpServers`` entries in the Claude configuration."""

    def __init__(self, store: ConfigStore):
        self.store = store
        self.last_backup: Optional[Path] = None

    @property
    def config_path(self) -> Path:
        return self.store.config_path

    def servers(self) -> Dict[str, Any]:
        """Current ``mcpServers`` mapping (empty when absent)."""
        servers = self.store.load().get(MCP_SERVERS_KEY)
        return servers if isinstance(servers, dict) else {}

    def contains(self, *names: str) -> bool:
        servers = self.servers()
        return all(name in servers for name in names)

    def register(self, name: str, entry: ServerEntry) -> Dict[str, Any]:
        """Add or replace one server entry."""
        return self.register_many({name: entry})

    def register_many(self, entries: Dict[str, ServerEntry]) -> Dict[str, Any]:
        """
        Add or replace several server entries with one backup and one write.

        Other top-level keys and other servers are carried over untouched.

        Returns:
            The document as written
        """
        document = self.store.load()
        self.last_backup = self.store.backup()

        servers = document.get(MCP_SERVERS_KEY)
        if not isinstance(servers, dict):
            servers = {}

        added = {name: entry.to_claude_config() for name, entry in entries.items()}
        updated = {**document, MCP_SERVERS_KEY: {**servers, **added}}
        self.store.save(updated)

        logger.info(f"Registered MCP servers {list(added)} in {self.config_path}")
        return updated

    def unregister(self, *names: str) -> List[str]:
        """
        Remove server entries.

        Returns:
            Names that were present and removed. The file is left alone
            when nothing matched.
        """
        if not self.store.exists():
            return []

        document = self.store.load()
        servers = document.get(MCP_SERVERS_KEY)
        if not isinstance(servers, dict):
            return []

        removed = [name for name in names if name in servers]
        if not removed:
            logger.debug(f"No servers named {list(names)} in {self.config_path}")
            return []

        self.last_backup = self.store.backup()
        remaining = {key: value for key, value in servers.items() if key not in removed}
        self.store.save({**document, MCP_SERVERS_KEY: remaining})

        logger.info(f"Removed MCP servers {removed} from {self.config_path}")
        return removed
