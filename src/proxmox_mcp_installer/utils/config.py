"""
Configuration management for the Proxmox MCP installer.

Provides hierarchical configuration loading with validation using Pydantic.
Defaults can be overridden from TOML files and ``PVE_MCP_`` environment
variables (nested sections use ``__``, e.g. ``PVE_MCP_DEFAULTS__HOST``).
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Union

import toml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)


def _expand(path: Union[str, Path]) -> Path:
    return Path(os.path.expanduser(str(path)))


class LoggingConfig(BaseModel):
    """Logging configuration."""

    enabled: bool = Field(default=True, description="Enable logging completely")
    level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    format_type: str = Field(default="text", description="Log file format (text/json)")
    file: Optional[str] = Field(default="installer.log", description="Log file path")
    max_bytes: int = Field(default=5 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=3, description="Number of rotated log files")

    @field_validator("level", "console_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("format_type")
    @classmethod
    def validate_format_type(cls, v: str) -> str:
        """Validate format type."""
        if v not in ["text", "json"]:
            raise ValueError(f"Invalid format type: {v}")
        return v


class DefaultsConfig(BaseModel):
    """Defaults offered at the installer prompts."""

    host: str = Field(default="192.168.2.123", description="Proxmox server address")
    api_port: int = Field(default=8006, description="Proxmox API port")
    proxmox_user: str = Field(default="root@pam", description="Token owner principal")
    token_name: str = Field(default="claude-mcp", description="Reserved API token name")
    ssh_user: str = Field(default="root", description="SSH user")
    ssh_port: int = Field(default=22, description="SSH port")


class PathsConfig(BaseModel):
    """Filesystem locations used by the installer."""

    ssh_key: str = Field(default="~/.ssh/proxmox_mcp", description="SSH private key path")
    claude_config: str = Field(default="~/.claude.json", description="Claude Code configuration")
    fallback_dir: str = Field(
        default="~/mcp-servers/proxmox",
        description="Standalone clone location of the Proxmox MCP server",
    )
    project_dir: str = Field(default=".", description="Checkout that may carry the submodule")
    submodule_path: str = Field(
        default="mcp-servers/proxmox",
        description="Submodule path relative to the project directory",
    )


class SourceConfig(BaseModel):
    """Where the MCP servers come from."""

    repo_url: str = Field(
        default="https://github.com/gilby125/mcp-proxmox.git",
        description="Proxmox MCP server repository",
    )
    ssh_mcp_package: str = Field(default="ssh-mcp", description="npm package of the SSH MCP server")


class NetworkConfig(BaseModel):
    """Timeouts for SSH and HTTPS calls."""

    connect_timeout: int = Field(default=10, description="Connect timeout in seconds")
    request_timeout: int = Field(default=30, description="Total HTTPS request timeout in seconds")
    command_timeout: int = Field(default=120, description="Timeout for remote commands in seconds")

    @field_validator("connect_timeout", "request_timeout", "command_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout."""
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v


class ClaudeConfig(BaseModel):
    """Claude CLI configuration."""

    cli_path: str = Field(default="claude", description="Path to Claude CLI")
    register_with_cli: bool = Field(
        default=True,
        description="Also register servers through 'claude mcp add' when the CLI exists",
    )
    timeout: int = Field(default=30, description="Command timeout in seconds")


class Config(BaseSettings):
    """Main configuration class."""

    debug: bool = Field(default=False, description="Enable debug logging on the console")
    config_dir: str = Field(
        default="~/.config/proxmox-mcp-installer",
        description="Configuration directory",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)

    model_config = {
        "env_prefix": "PVE_MCP_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    def get_config_dir(self) -> Path:
        """Get configuration directory path."""
        return _expand(self.config_dir)

    def get_log_file(self) -> Optional[Path]:
        """Get log file path."""
        if self.logging.file:
            log_path = _expand(self.logging.file)
            if not log_path.is_absolute():
                log_path = self.get_config_dir() / log_path
            return log_path
        return None

    @property
    def ssh_key_path(self) -> Path:
        return _expand(self.paths.ssh_key)

    @property
    def claude_config_path(self) -> Path:
        return _expand(self.paths.claude_config)

    @property
    def fallback_dir(self) -> Path:
        return _expand(self.paths.fallback_dir)

    @property
    def project_dir(self) -> Path:
        return _expand(self.paths.project_dir).resolve()

    @property
    def submodule_dir(self) -> Path:
        return self.project_dir / self.paths.submodule_path


class ConfigManager:
    """Configuration manager with hierarchical loading."""

    DEFAULT_FILES = [
        "/etc/proxmox-mcp-installer/config.toml",
        "~/.config/proxmox-mcp-installer/config.toml",
        "./.proxmox-mcp-installer.toml",
    ]

    def __init__(self):
        self._config: Optional[Config] = None

    def load_config(
        self,
        config_files: Optional[List[Union[str, Path]]] = None,
        **overrides: Any,
    ) -> Config:
        """
        Load configuration from multiple sources.

        Later files override earlier ones section by section; keyword
        overrides win over everything.

        Args:
            config_files: List of configuration files to load
            **overrides: Configuration overrides

        Returns:
            Loaded configuration
        """
        if self._config is not None:
            return self._config

        if config_files is None:
            config_files = self.DEFAULT_FILES

        config_data: dict = {}

        for config_file in config_files:
            file_path = _expand(config_file)
            if file_path.exists():
                try:
                    file_data = toml.load(file_path)
                except (toml.TomlDecodeError, OSError) as e:
                    logger.warning(f"Failed to load config from {file_path}: {e}")
                    continue
                _merge(config_data, file_data)
                logger.debug(f"Loaded configuration from {file_path}")

        _merge(config_data, overrides)

        self._config = Config(**config_data)

        return self._config

    def get_config(self) -> Config:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(self, **overrides: Any) -> Config:
        """Reload configuration."""
        self._config = None
        return self.load_config(**overrides)


def _merge(target: dict, source: dict) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


# Global configuration manager
_config_manager = ConfigManager()

# Convenience functions
load_config = _config_manager.load_config
get_config = _config_manager.get_config
reload_config = _config_manager.reload_config
