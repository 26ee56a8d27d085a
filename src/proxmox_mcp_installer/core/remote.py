"""
SSH access to the Proxmox server.
"""

from pathlib import Path
from typing import List

from proxmox_mcp_installer.core.interfaces import RemoteShell
from proxmox_mcp_installer.core.models import InstallSession
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.process import CommandResult, CommandRunner

logger = get_logger(__name__)


class SSHRemoteShell(RemoteShell):
    """``RemoteShell`` backed by the OpenSSH client."""

    def __init__(
        self,
        runner: CommandRunner,
        host: str,
        user: str,
        port: int,
        key_path: Path,
        connect_timeout: int = 10,
        command_timeout: int = 120,
    ):
        self.runner = runner
        self.host = host
        self.user = user
        self.port = port
        self.key_path = key_path
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout

    @classmethod
    def for_session(
        cls,
        runner: CommandRunner,
        session: InstallSession,
        connect_timeout: int = 10,
        command_timeout: int = 120,
    ) -> "SSHRemoteShell":
        return cls(
            runner,
            host=session.host,
            user=session.ssh_user,
            port=session.ssh_port,
            key_path=session.ssh_key_path,
            connect_timeout=connect_timeout,
            command_timeout=command_timeout,
        )

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}"

    def build_command(self, command: str, batch_mode: bool = False) -> List[str]:
        args = [
            "ssh",
            "-i", str(self.key_path),
            "-p", str(self.port),
            "-o", f"ConnectTimeout={self.connect_timeout}",
        ]
        if batch_mode:
            args += ["-o", "BatchMode=yes"]
        args += [self.target, command]
        return args

    def run(self, command: str, batch_mode: bool = False) -> CommandResult:
        logger.debug(f"Remote command on {self.target}: {command}")
        result = self.runner.run(
            self.build_command(command, batch_mode=batch_mode),
            timeout=self.command_timeout,
        )
        if not result.ok:
            logger.debug(f"Remote command failed ({result.returncode}): {result.stderr.strip()}")
        return result
