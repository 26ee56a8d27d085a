"""
Install and uninstall orchestration.

``Installer.install`` walks the provisioning steps in a fixed order.
Fatal errors (unsupported platform, missing packages, empty token)
propagate to the caller; every other ``InstallerError`` is printed as a
warning and the next step runs.
"""

import shutil
from pathlib import Path
from typing import Callable, Optional

from proxmox_mcp_installer import __version__
from proxmox_mcp_installer.claude.claude_client import ClaudeClient
from proxmox_mcp_installer.claude.config_writer import ConfigStore, RegistryEditor
from proxmox_mcp_installer.core.exceptions import FatalInstallerError, InstallerError
from proxmox_mcp_installer.core.interfaces import HttpClient, Prompter, RemoteShell
from proxmox_mcp_installer.core.keys import KeyProvisioner
from proxmox_mcp_installer.core.models import (
    PROXMOX_SERVER_NAME,
    RESERVED_SERVER_NAMES,
    SSH_SERVER_NAME,
    InstallSession,
    ServerEntry,
    VerificationReport,
)
from proxmox_mcp_installer.core.packages import PackageProvisioner
from proxmox_mcp_installer.core.platform import OS_RELEASE_PATH, detect_platform
from proxmox_mcp_installer.core.proxmox import HttpxClient
from proxmox_mcp_installer.core.remote import SSHRemoteShell
from proxmox_mcp_installer.core.server import (
    ENTRY_FILE,
    ServerMaterializer,
    StandaloneCloneStrategy,
    SubmoduleInitStrategy,
    SubmoduleStrategy,
)
from proxmox_mcp_installer.core.summary import print_install_summary, print_uninstall_summary
from proxmox_mcp_installer.core.tokens import TokenProvisioner, token_remove_command
from proxmox_mcp_installer.core.verifier import Verifier
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.config import Config
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.process import CommandRunner
from proxmox_mcp_installer.utils.validators import validate_host, validate_port, validate_ssh_user

logger = get_logger(__name__)

ShellFactory = Callable[[InstallSession], RemoteShell]


def build_proxmox_entry(session: InstallSession, entry_point: Path) -> ServerEntry:
    return ServerEntry(
        command="node",
        args=[str(entry_point)],
        env={
            "PROXMOX_HOST": session.host,
            "PROXMOX_PORT": str(session.api_port),
            "PROXMOX_USER": session.proxmox_user,
            "PROXMOX_TOKEN_NAME": session.token_name,
            "PROXMOX_TOKEN_VALUE": session.token_value,
            "PROXMOX_ALLOW_ELEVATED": "true",
        },
    )


def build_ssh_entry(session: InstallSession, package: str = "ssh-mcp") -> ServerEntry:
    return ServerEntry(
        command="npx",
        args=[
            "-y",
            package,
            "--",
            f"--host={session.host}",
            f"--user={session.ssh_user}",
            f"--key={session.ssh_key_path}",
        ],
    )


class Installer:
    """Sequences the provisioning steps for install and uninstall."""

    def __init__(
        self,
        config: Config,
        prompter: Prompter,
        runner: Optional[CommandRunner] = None,
        http: Optional[HttpClient] = None,
        shell_factory: Optional[ShellFactory] = None,
        os_release: Path = OS_RELEASE_PATH,
    ):
        self.config = config
        self.prompter = prompter
        self.runner = runner or CommandRunner()
        self.http = http or HttpxClient(
            connect_timeout=config.network.connect_timeout,
            request_timeout=config.network.request_timeout,
        )
        self.shell_factory = shell_factory or self._ssh_shell
        self.os_release = os_release

        self.registry = RegistryEditor(ConfigStore(config.claude_config_path))
        self.keys = KeyProvisioner(self.runner, prompter, config.ssh_key_path)
        self.tokens = TokenProvisioner(prompter, reserved_name=config.defaults.token_name)

        self.session: Optional[InstallSession] = None
        self.report: Optional[VerificationReport] = None

    def _ssh_shell(self, session: InstallSession) -> RemoteShell:
        return SSHRemoteShell.for_session(
            self.runner,
            session,
            connect_timeout=self.config.network.connect_timeout,
            command_timeout=self.config.network.command_timeout,
        )

    def _step(self, title: Optional[str], func: Callable, *args):
        """
        Run one recoverable step.

        Fatal errors propagate; any other installer or OS error is
        reported as a warning and None is returned.
        """
        if title:
            output.header(title)
        try:
            return func(*args)
        except FatalInstallerError:
            raise
        except (InstallerError, OSError) as e:
            message = e.message if isinstance(e, InstallerError) else str(e)
            logger.warning(f"Step '{title or func.__name__}' failed: {message}")
            output.warn(message)
            return None

    # Install

    def install(self) -> VerificationReport:
        """
        Run the full installation.

        Returns:
            The verification report

        Raises:
            FatalInstallerError: If the run cannot continue
        """
        output.console.print(
            f"[bold cyan]MCP Server Installer for Claude Code v{__version__}[/bold cyan]\n"
            "[cyan]Proxmox MCP + SSH MCP[/cyan]"
        )

        session = self.collect_input()
        self.session = session

        self.detect_platform(session)
        self.provision_packages(session)

        self._step("Setting up SSH key", self.keys.ensure_key)
        shell = self.shell_factory(session)
        self._step("Copying SSH key to server", self.deploy_key, session, shell)

        output.header("Setting up Proxmox API token")
        self.tokens.provision(session, shell)
        self._step(None, self.tokens.validate, session, self.http)

        self._step("Installing Proxmox MCP server", self.materialize_server, session)
        self._step("Registering MCP servers in Claude Code", self.register_servers, session)

        output.header("Verifying installation")
        self.report = Verifier(session, self.http, shell, self.registry).run()

        print_install_summary(session, self.registry.config_path, self.report)
        return self.report

    def collect_input(self) -> InstallSession:
        output.header("Server configuration")
        defaults = self.config.defaults

        host = self.prompter.ask_text("Proxmox server IP address", default=defaults.host, validator=validate_host)
        api_port = self.prompter.ask_text("Proxmox API port", default=str(defaults.api_port), validator=validate_port)
        ssh_user = self.prompter.ask_text("SSH user", default=defaults.ssh_user, validator=validate_ssh_user)
        ssh_port = self.prompter.ask_text("SSH port", default=str(defaults.ssh_port), validator=validate_port)

        return InstallSession(
            host=host,
            api_port=int(api_port),
            proxmox_user=defaults.proxmox_user,
            ssh_user=ssh_user.strip(),
            ssh_port=int(ssh_port),
            ssh_key_path=self.config.ssh_key_path,
            token_name=defaults.token_name,
        )

    def detect_platform(self, session: InstallSession) -> None:
        output.header("Detecting operating system")
        platform = detect_platform(self.os_release, self.runner.which)
        output.info(f"Detected OS: {platform.pretty_name or platform.os_id}")
        output.success(f"Distribution: {platform}")
        session.platform = platform

    def provision_packages(self, session: InstallSession) -> None:
        output.header("Installing required packages")
        PackageProvisioner(self.runner, self.prompter).provision(session.platform)

    def deploy_key(self, session: InstallSession, shell: RemoteShell) -> bool:
        self.keys.deploy(session)
        return self.keys.probe(shell)

    def materialize_server(self, session: InstallSession) -> None:
        strategies = [
            SubmoduleStrategy(self.config.submodule_dir),
            SubmoduleInitStrategy(self.runner, self.config.project_dir, self.config.paths.submodule_path),
            StandaloneCloneStrategy(
                self.runner, self.prompter, self.config.fallback_dir, self.config.source.repo_url
            ),
        ]
        server = ServerMaterializer(self.runner, strategies).materialize()
        session.mcp_dir = server.directory
        session.entry_point = server.entry_point

    def register_servers(self, session: InstallSession) -> None:
        mcp_dir = session.mcp_dir or self.config.fallback_dir
        entry_point = session.entry_point or mcp_dir / ENTRY_FILE
        output.info(f"Proxmox MCP entry point: {entry_point}")

        entries = {
            PROXMOX_SERVER_NAME: build_proxmox_entry(session, entry_point),
            SSH_SERVER_NAME: build_ssh_entry(session, self.config.source.ssh_mcp_package),
        }

        self.registry.register_many(entries)
        if self.registry.last_backup:
            output.info(f"Configuration backup: {self.registry.last_backup}")
        output.success("Proxmox MCP server registered")
        output.success("SSH MCP server registered")

        if self.config.claude.register_with_cli:
            claude = self._claude_client()
            if claude.is_available():
                output.info("Claude CLI found, additional registration via CLI")
                for name, entry in entries.items():
                    claude.add_server(name, entry)

        output.info(f"Configuration saved to {self.registry.config_path}")

    def _claude_client(self) -> ClaudeClient:
        return ClaudeClient(self.runner, self.config.claude.cli_path, self.config.claude.timeout)

    # Uninstall

    def uninstall(self) -> bool:
        """
        Remove what the installer created, asking before each destructive step.

        Returns:
            False if the operator aborted at the first confirmation
        """
        output.header("Removing MCP servers")
        output.warn("This will remove MCP servers from Claude Code")

        if not self.prompter.confirm("Continue with removal?", default=True):
            output.info("Aborted")
            return False

        self._step(None, self.remove_registrations)
        self._step(None, self.remove_cli_registrations)
        self._step(None, self.delete_server_directory)
        self._step(None, self.delete_ssh_key)
        self._step(None, self.revoke_remote_token)

        print_uninstall_summary()
        return True

    def remove_registrations(self) -> None:
        if not self.registry.store.exists():
            return
        output.info(f"Removing MCP servers from {self.registry.config_path}...")
        removed = self.registry.unregister(*RESERVED_SERVER_NAMES)
        if removed:
            output.success(f"MCP servers removed from configuration: {', '.join(removed)}")
        else:
            output.info("No installer-managed MCP servers found in configuration")

    def remove_cli_registrations(self) -> None:
        claude = self._claude_client()
        if not claude.is_available():
            return
        for name in RESERVED_SERVER_NAMES:
            claude.remove_server(name)

    def delete_server_directory(self) -> None:
        # Only the standalone clone; a submodule belongs to its checkout
        target = self.config.fallback_dir
        if not target.is_dir():
            return
        if not self.prompter.confirm(f"Delete {target}?", default=True):
            return

        shutil.rmtree(target)
        output.success("MCP server directory deleted")

        parent = target.parent
        if parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()

    def delete_ssh_key(self) -> None:
        key_path = self.config.ssh_key_path
        if not key_path.exists():
            return
        if self.prompter.confirm(f"Delete SSH key ({key_path})?", default=True):
            self.keys.delete()
            output.success("SSH key deleted")

    def revoke_remote_token(self) -> bool:
        if not self.prompter.confirm("Delete API token from Proxmox server?", default=False):
            return False

        defaults = self.config.defaults
        host = self.prompter.ask_text("Proxmox server IP", default=defaults.host, validator=validate_host)

        key_path = self.config.ssh_key_path
        if not key_path.exists():
            key_path = Path(self.prompter.ask_text("Path to SSH key for server access")).expanduser()
        if not key_path.is_file():
            output.warn(f"SSH key not found: {key_path}, skipping token deletion")
            return False

        session = InstallSession(
            host=host,
            ssh_user=defaults.ssh_user,
            ssh_port=defaults.ssh_port,
            ssh_key_path=key_path,
            proxmox_user=defaults.proxmox_user,
            token_name=defaults.token_name,
        )
        output.info("Deleting API token from server...")
        result = self.shell_factory(session).run(
            token_remove_command(session.proxmox_user, session.token_name)
        )
        if result.ok:
            output.success("API token deleted from server")
            return True

        output.warn("Token deletion failed")
        return False
