"""
Data models for the Proxmox MCP installer.

Defines Pydantic models for the install session, the resolved host
platform, MCP server registry entries and verification results.
"""

import ipaddress
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

PROXMOX_SERVER_NAME = "proxmox"
SSH_SERVER_NAME = "ssh-server"
RESERVED_SERVER_NAMES = (PROXMOX_SERVER_NAME, SSH_SERVER_NAME)


class Distribution(str, Enum):
    """Supported Linux distribution families."""

    DEBIAN = "debian"
    FEDORA = "fedora"
    RHEL = "rhel"
    ARCH = "arch"


class PackageManager(str, Enum):
    """System package managers the installer knows how to drive."""

    APT = "apt"
    DNF = "dnf"
    YUM = "yum"
    PACMAN = "pacman"


class Platform(BaseModel):
    """Resolved host platform."""

    distribution: Distribution = Field(description="Distribution family")
    package_manager: PackageManager = Field(description="Package manager")
    os_id: str = Field(default="", description="Raw ID from os-release")
    pretty_name: Optional[str] = Field(default=None, description="Human readable OS name")

    def __str__(self) -> str:
        return f"{self.distribution.value} (package manager: {self.package_manager.value})"


class InstallSession(BaseModel):
    """
    Mutable state of a single installer run.

    Created once by the installer from operator input and passed to every
    provisioning step. Nothing here is persisted.
    """

    host: str = Field(description="Proxmox server address")
    api_port: int = Field(default=8006, description="Proxmox API port")
    proxmox_user: str = Field(default="root@pam", description="Principal owning the API token")
    ssh_user: str = Field(default="root", description="SSH user on the Proxmox server")
    ssh_port: int = Field(default=22, description="SSH port on the Proxmox server")
    ssh_key_path: Path = Field(description="Private key used for SSH access")
    token_name: str = Field(default="claude-mcp", description="API token name")
    token_value: str = Field(default="", description="API token secret")
    platform: Optional[Platform] = Field(default=None, description="Resolved host platform")
    mcp_dir: Optional[Path] = Field(default=None, description="Proxmox MCP server directory")
    entry_point: Optional[Path] = Field(default=None, description="Proxmox MCP server entry point")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Validate host."""
        if not v.strip():
            raise ValueError("Proxmox host cannot be empty")
        return v.strip()

    @property
    def ssh_target(self) -> str:
        """``user@host`` string for SSH commands."""
        return f"{self.ssh_user}@{self.host}"

    @property
    def token_id(self) -> str:
        """Full token identifier, e.g. ``root@pam!claude-mcp``."""
        return f"{self.proxmox_user}!{self.token_name}"

    @property
    def url_host(self) -> str:
        """Host as it appears in a URL; IPv6 literals are bracketed."""
        try:
            if ipaddress.ip_address(self.host).version == 6:
                return f"[{self.host}]"
        except ValueError:
            pass
        return self.host

    @property
    def api_base_url(self) -> str:
        return f"https://{self.url_host}:{self.api_port}/api2/json"

    @property
    def auth_header(self) -> str:
        """Value of the ``Authorization`` header for API token auth."""
        return f"PVEAPIToken={self.token_id}={self.token_value}"

    @property
    def masked_token(self) -> str:
        """Token value safe for display."""
        return mask_secret(self.token_value)


class ServerEntry(BaseModel):
    """An ``mcpServers`` entry in the Claude configuration."""

    command: str = Field(description="Command to run the server")
    args: List[str] = Field(default_factory=list, description="Command arguments")
    env: Dict[str, str] = Field(default_factory=dict, description="Environment variables")

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        """Validate server command."""
        if not v.strip():
            raise ValueError("Server command cannot be empty")
        return v.strip()

    def to_claude_config(self) -> Dict[str, Any]:
        """Convert to Claude configuration format."""
        config: Dict[str, Any] = {
            "command": self.command,
            "args": list(self.args),
        }

        if self.env:
            config["env"] = dict(self.env)

        return config


class CheckResult(BaseModel):
    """Outcome of a single verification check."""

    name: str
    passed: bool
    detail: Optional[str] = None


class VerificationReport(BaseModel):
    """Outcome of a verification run."""

    results: List[CheckResult] = Field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        return all(result.passed for result in self.results)

    @property
    def failed(self) -> List[CheckResult]:
        return [result for result in self.results if not result.passed]


def mask_secret(value: str, visible: int = 8) -> str:
    """Return the first ``visible`` characters of a secret followed by ``...``."""
    if not value:
        return ""
    return f"{value[:visible]}..."
