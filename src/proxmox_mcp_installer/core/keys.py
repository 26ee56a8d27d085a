"""
SSH key provisioning.

Ensures the installer's Ed25519 key pair exists, deploys the public half
to the Proxmox server and probes key-based access.
"""

import os
import shutil
from enum import Enum
from pathlib import Path

from proxmox_mcp_installer.core.interfaces import Prompter, RemoteShell
from proxmox_mcp_installer.core.models import InstallSession
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.process import CommandRunner

logger = get_logger(__name__)

KEY_COMMENT = "claude-mcp-proxmox"
PRIVATE_KEY_MODE = 0o600
PUBLIC_KEY_MODE = 0o644
SSH_DIR_MODE = 0o700


class KeyAction(str, Enum):
    """What ``KeyProvisioner.ensure_key`` did."""

    GENERATED = "generated"
    REUSED = "reused"
    REGENERATED = "regenerated"


def public_key_path(key_path: Path) -> Path:
    return key_path.with_name(key_path.name + ".pub")


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + ".bak")


class KeyProvisioner:
    """Creates, reuses and deploys the installer's SSH key pair."""

    def __init__(self, runner: CommandRunner, prompter: Prompter, key_path: Path):
        self.runner = runner
        self.prompter = prompter
        self.key_path = key_path

    @property
    def public_key_path(self) -> Path:
        return public_key_path(self.key_path)

    def fingerprint(self) -> str:
        result = self.runner.run(["ssh-keygen", "-lf", self.key_path])
        if result.ok and result.stdout.strip():
            return result.stdout.strip()
        return "unknown"

    def ensure_key(self) -> KeyAction:
        """
        Make sure a key pair exists at ``key_path``.

        An existing key is reused when the operator agrees; otherwise it is
        copied to ``.bak`` siblings and a new key is generated.

        Raises:
            OSError: If the key cannot be generated
        """
        ssh_dir = self.key_path.parent
        ssh_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(ssh_dir, SSH_DIR_MODE)

        if not self.key_path.exists():
            self._generate()
            return KeyAction.GENERATED

        output.info(f"SSH key already exists: {self.key_path}")
        output.info(f"Fingerprint: {self.fingerprint()}")

        if self.prompter.confirm("Use existing key?", default=True):
            output.success("Using existing SSH key")
            return KeyAction.REUSED

        output.warn(f"Generating new key (old one will be saved as {backup_path(self.key_path)})")
        self._backup_and_remove()
        self._generate()
        return KeyAction.REGENERATED

    def _backup_and_remove(self) -> None:
        for path in (self.key_path, self.public_key_path):
            if path.exists():
                shutil.copy2(path, backup_path(path))
                path.unlink()
                logger.debug(f"Backed up {path} to {backup_path(path)}")

    def _generate(self) -> None:
        output.info("Generating new Ed25519 SSH key...")
        result = self.runner.run([
            "ssh-keygen",
            "-t", "ed25519",
            "-f", self.key_path,
            "-N", "",
            "-C", KEY_COMMENT,
            "-q",
        ])
        if not result.ok or not self.key_path.exists():
            raise OSError(f"ssh-keygen failed: {result.stderr.strip() or result.returncode}")

        os.chmod(self.key_path, PRIVATE_KEY_MODE)
        if self.public_key_path.exists():
            os.chmod(self.public_key_path, PUBLIC_KEY_MODE)

        output.success(f"SSH key generated: {self.key_path}")

    def copy_id_command(self, session: InstallSession) -> list:
        return [
            "ssh-copy-id",
            "-i", str(self.public_key_path),
            "-p", str(session.ssh_port),
            session.ssh_target,
        ]

    def deploy(self, session: InstallSession) -> bool:
        """
        Offer to copy the public key to the server with ``ssh-copy-id``.

        Returns:
            True if the key was copied. Failures only print the manual
            command.
        """
        output.info(f"Target server: {session.ssh_target}:{session.ssh_port}")

        if not self.prompter.confirm("Copy public key to server using ssh-copy-id?", default=True):
            output.warn("Skipped key copy, make sure the key is already on the server")
            return False

        output.info("Running ssh-copy-id (server password will be required)...")
        command = self.copy_id_command(session)
        result = self.runner.run(command, capture=False)

        if result.ok:
            output.success("Key successfully copied to server")
            return True

        output.warn("ssh-copy-id failed")
        output.warn("You can copy the key manually later:")
        output.plain(f"  {' '.join(command)}")
        return False

    def probe(self, shell: RemoteShell) -> bool:
        """Try one non-interactive key-authenticated connection."""
        output.info("Testing SSH connection...")
        result = shell.run("echo 'SSH OK'", batch_mode=True)

        if result.ok:
            output.success("SSH connection works")
            return True

        output.warn("SSH connection failed with key")
        output.warn("Make sure the key is copied to the server and try again")
        return False

    def delete(self) -> bool:
        """Remove the key pair. Returns True if anything was deleted."""
        deleted = False
        for path in (self.key_path, self.public_key_path):
            if path.exists():
                path.unlink()
                deleted = True
        return deleted
