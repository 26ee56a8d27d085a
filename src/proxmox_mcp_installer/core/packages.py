"""
System package installation.

Translates generic package names into the names used by the host
distribution and installs the missing ones through its package manager.
"""

import os
from typing import Dict, List, Optional

from proxmox_mcp_installer.core.exceptions import PackageInstallError
from proxmox_mcp_installer.core.interfaces import Prompter
from proxmox_mcp_installer.core.models import Distribution, PackageManager, Platform
from proxmox_mcp_installer.core.platform import REQUIRED_CAPABILITIES, probe_capabilities
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.process import CommandRunner

logger = get_logger(__name__)

_COMMON = {
    "nodejs": "nodejs",
    "npm": "npm",
    "git": "git",
    "jq": "jq",
    "curl": "curl",
}

PACKAGE_NAMES: Dict[Distribution, Dict[str, str]] = {
    Distribution.DEBIAN: {**_COMMON, "openssh": "openssh-client"},
    Distribution.FEDORA: {**_COMMON, "openssh": "openssh-clients"},
    Distribution.RHEL: {**_COMMON, "openssh": "openssh-clients"},
    Distribution.ARCH: {**_COMMON, "openssh": "openssh"},
}


def map_package_names(generic: List[str], distribution: Distribution) -> List[str]:
    """Distro-specific names for ``generic``; names without a mapping are dropped."""
    table = PACKAGE_NAMES.get(distribution, {})
    return [table[name] for name in generic if name in table]


def install_commands(manager: PackageManager, packages: List[str], use_sudo: bool = True) -> List[List[str]]:
    """Non-interactive install command lines for ``manager``."""
    prefix = ["sudo"] if use_sudo else []

    if manager == PackageManager.APT:
        return [
            prefix + ["apt", "update"],
            prefix + ["apt", "install", "-y", *packages],
        ]
    if manager == PackageManager.DNF:
        return [prefix + ["dnf", "install", "-y", *packages]]
    if manager == PackageManager.YUM:
        return [prefix + ["yum", "install", "-y", *packages]]
    if manager == PackageManager.PACMAN:
        return [prefix + ["pacman", "-Sy", "--noconfirm", *packages]]

    raise PackageInstallError(f"Unknown package manager: {manager}")


class PackageProvisioner:
    """Installs the executables the installer and the MCP servers need."""

    def __init__(self, runner: CommandRunner, prompter: Prompter):
        self.runner = runner
        self.prompter = prompter

    def _use_sudo(self) -> bool:
        geteuid = getattr(os, "geteuid", None)
        return not (geteuid is not None and geteuid() == 0)

    def find_missing(self) -> List[str]:
        """Report each required executable and return the missing generic packages."""
        present = probe_capabilities(self.runner.which)
        missing = []

        for command, package in REQUIRED_CAPABILITIES:
            if present[command]:
                output.success(f"{package} is already installed ({command})")
            else:
                output.warn(f"{package} not found, will be installed")
                missing.append(package)

        return missing

    def provision(self, platform: Platform, missing: Optional[List[str]] = None) -> List[str]:
        """
        Install missing packages after operator confirmation.

        Args:
            platform: Resolved host platform
            missing: Generic package names to install; probed when omitted

        Returns:
            Distro-specific package names that were installed

        Raises:
            PackageInstallError: If the operator declines or the package
                manager fails
        """
        if missing is None:
            missing = self.find_missing()

        if not missing:
            output.success("All required packages are already installed")
            return []

        output.info(f"Packages to install: {' '.join(missing)}")

        if not self.prompter.confirm("Install packages?", default=True):
            raise PackageInstallError(
                "Installation aborted, required packages are not installed",
                error_code="PACKAGES_DECLINED",
                details={"missing": missing},
            )

        packages = map_package_names(missing, platform.distribution)
        if not packages:
            return []

        output.info(f"Installing: {' '.join(packages)}")

        for command in install_commands(platform.package_manager, packages, self._use_sudo()):
            result = self.runner.run(command, capture=False)
            if not result.ok:
                raise PackageInstallError(
                    f"'{' '.join(command)}' failed with exit code {result.returncode}",
                    error_code="PACKAGE_MANAGER_FAILED",
                    details={"command": command, "returncode": result.returncode},
                )

        logger.info(f"Installed packages: {packages}")
        output.success("All packages installed")
        return packages
