"""
Local process execution.

All external programs (package managers, ssh, git, npm, claude) are run
through ``CommandRunner`` so tests can substitute a fake.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)

COMMAND_NOT_FOUND = 127
COMMAND_TIMED_OUT = 124


@dataclass
class CommandResult:
    """Exit status and captured output of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs local commands with ``subprocess``."""

    def which(self, name: str) -> Optional[str]:
        """Return the full path of an executable, or None if absent."""
        return shutil.which(name)

    def run(
        self,
        args: Sequence[Union[str, Path]],
        cwd: Optional[Path] = None,
        capture: bool = True,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run a command and wait for it to finish.

        Args:
            args: Program and arguments
            cwd: Working directory
            capture: Capture stdout/stderr; when False the command shares
                the terminal so it can prompt the operator (sudo, ssh-copy-id)
            timeout: Seconds before the command is killed

        Returns:
            CommandResult. A missing program yields exit code 127 and a
            timeout exit code 124; neither raises.
        """
        cmd: List[str] = [str(arg) for arg in args]
        logger.debug(f"Running: {' '.join(cmd)}", extra={"cwd": str(cwd) if cwd else None})

        try:
            if capture:
                result = subprocess.run(
                    cmd,
                    cwd=cwd,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                    env=dict(os.environ),
                )
                return CommandResult(result.returncode, result.stdout, result.stderr)

            result = subprocess.run(cmd, cwd=cwd, timeout=timeout)
            return CommandResult(result.returncode)

        except FileNotFoundError as e:
            logger.debug(f"Command not found: {cmd[0]}")
            return CommandResult(COMMAND_NOT_FOUND, "", str(e))
        except subprocess.TimeoutExpired:
            logger.warning(f"Command timed out after {timeout}s: {cmd[0]}")
            return CommandResult(COMMAND_TIMED_OUT, "", f"Timed out after {timeout}s")
