"""
Test the command-line interface.
"""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from proxmox_mcp_installer import __version__
from proxmox_mcp_installer.cli.main import cli
from proxmox_mcp_installer.core.exceptions import ConfigError, TokenError


class TestCLI:
    """Test CLI options and exit codes."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_help(self):
        """Test --help and -h print usage and exit 0."""
        for flag in ("--help", "-h"):
            result = self.runner.invoke(cli, [flag])

            assert result.exit_code == 0
            assert "--uninstall" in result.output
            assert "--version" in result.output

    def test_version(self):
        """Test --version and -v print the version and exit 0."""
        for flag in ("--version", "-v"):
            result = self.runner.invoke(cli, [flag], prog_name="proxmox-mcp-installer")

            assert result.exit_code == 0
            assert result.output.strip() == f"proxmox-mcp-installer v{__version__}"

    def test_unknown_option(self):
        """Test an unknown option exits 1 with a hint."""
        with patch("proxmox_mcp_installer.cli.main.build_installer") as mock_build:
            result = self.runner.invoke(cli, ["--bogus"])

        assert result.exit_code == 1
        assert "Unknown option: --bogus" in result.output
        assert "Use --help for usage information" in result.output
        mock_build.assert_not_called()

    @patch("proxmox_mcp_installer.cli.main.setup_logging_from_config")
    @patch("proxmox_mcp_installer.cli.main.build_installer")
    def test_install_by_default(self, mock_build, mock_logging):
        """Test running without options installs."""
        installer = MagicMock()
        mock_build.return_value = installer

        result = self.runner.invoke(cli, [])

        assert result.exit_code == 0
        installer.install.assert_called_once_with()
        installer.uninstall.assert_not_called()

    @patch("proxmox_mcp_installer.cli.main.setup_logging_from_config")
    @patch("proxmox_mcp_installer.cli.main.build_installer")
    def test_uninstall(self, mock_build, mock_logging):
        """Test --uninstall and -u run the removal."""
        for flag in ("--uninstall", "-u"):
            installer = MagicMock()
            mock_build.return_value = installer

            result = self.runner.invoke(cli, [flag])

            assert result.exit_code == 0
            installer.uninstall.assert_called_once_with()
            installer.install.assert_not_called()

    @patch("proxmox_mcp_installer.cli.main.setup_logging_from_config")
    @patch("proxmox_mcp_installer.cli.main.build_installer")
    def test_fatal_error_exits_nonzero(self, mock_build, mock_logging):
        """Test an empty token ends the run with exit code 1."""
        installer = MagicMock()
        installer.install.side_effect = TokenError("Token value cannot be empty", error_code="EMPTY_TOKEN")
        mock_build.return_value = installer

        result = self.runner.invoke(cli, [])

        assert result.exit_code == 1
        assert "Token value cannot be empty" in result.output

    @patch("proxmox_mcp_installer.cli.main.setup_logging_from_config")
    @patch("proxmox_mcp_installer.cli.main.build_installer")
    def test_recoverable_error_escaping_exits_nonzero(self, mock_build, mock_logging):
        """Test an unhandled installer error also exits 1."""
        installer = MagicMock()
        installer.uninstall.side_effect = ConfigError("Invalid JSON in ~/.claude.json")
        mock_build.return_value = installer

        result = self.runner.invoke(cli, ["--uninstall"])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    @patch("proxmox_mcp_installer.cli.main.setup_logging_from_config")
    @patch("proxmox_mcp_installer.cli.main.build_installer")
    def test_keyboard_interrupt(self, mock_build, mock_logging):
        """Test Ctrl+C is reported as a cancellation."""
        installer = MagicMock()
        installer.install.side_effect = KeyboardInterrupt
        mock_build.return_value = installer

        result = self.runner.invoke(cli, [])

        assert result.exit_code == 1
        assert "Operation cancelled by user" in result.output
