"""
Exception classes for the Proxmox MCP installer.

Errors come in two severities. ``FatalInstallerError`` and its subclasses
abort the whole run with a non-zero exit status; every other
``InstallerError`` is reported as a warning and the run continues.
"""

from typing import Any, Dict, Optional


class InstallerError(Exception):
    """Base exception for all installer errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize InstallerError.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of the error."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "fatal": isinstance(self, FatalInstallerError),
        }


class ConfigError(InstallerError):
    """Claude configuration document errors."""
    pass


class NetworkError(InstallerError):
    """Proxmox API request errors."""
    pass


class ServerSetupError(InstallerError):
    """MCP server source could not be materialized."""
    pass


class ValidationError(InstallerError):
    """Operator input validation errors."""
    pass


class FatalInstallerError(InstallerError):
    """Errors that terminate the run."""
    pass


class UnsupportedPlatformError(FatalInstallerError):
    """Host distribution is not one of the supported families."""
    pass


class PackageInstallError(FatalInstallerError):
    """Required system packages were declined or failed to install."""
    pass


class TokenError(FatalInstallerError):
    """No usable API token value was provided."""
    pass
