"""
Post-install verification.

Each check is independent: a failing or crashing check is recorded and
the remaining checks still run.
"""

from pathlib import Path
from typing import Callable, List, Optional, Tuple

from proxmox_mcp_installer.claude.config_writer import RegistryEditor
from proxmox_mcp_installer.core.exceptions import InstallerError
from proxmox_mcp_installer.core.interfaces import HttpClient, RemoteShell
from proxmox_mcp_installer.core.models import (
    RESERVED_SERVER_NAMES,
    CheckResult,
    InstallSession,
    VerificationReport,
)
from proxmox_mcp_installer.core.proxmox import ProxmoxApi
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)

Check = Callable[[], Tuple[bool, Optional[str]]]


class Verifier:
    """Runs read-only checks against the provisioned state."""

    def __init__(
        self,
        session: InstallSession,
        http: HttpClient,
        shell: RemoteShell,
        registry: RegistryEditor,
    ):
        self.session = session
        self.http = http
        self.shell = shell
        self.registry = registry

    def checks(self) -> List[Tuple[str, Check]]:
        return [
            ("Proxmox API connection", self.check_api),
            ("SSH connection", self.check_ssh),
            ("MCP server files", self.check_entry_point),
            ("Claude configuration", self.check_registry),
        ]

    def check_api(self) -> Tuple[bool, Optional[str]]:
        nodes = ProxmoxApi(self.session, self.http).nodes()
        return True, f"Nodes: {', '.join(nodes)}"

    def check_ssh(self) -> Tuple[bool, Optional[str]]:
        result = self.shell.run("hostname", batch_mode=True)
        if result.ok:
            return True, result.stdout.strip() or None
        return False, result.stderr.strip() or f"exit code {result.returncode}"

    def check_entry_point(self) -> Tuple[bool, Optional[str]]:
        candidates: List[Path] = []
        if self.session.entry_point is not None:
            candidates.append(self.session.entry_point)
        if self.session.mcp_dir is not None:
            candidates += [self.session.mcp_dir / "index.js", self.session.mcp_dir / "dist" / "index.js"]

        for path in candidates:
            if path.is_file():
                return True, str(path)
        return False, "MCP server entry point not found"

    def check_registry(self) -> Tuple[bool, Optional[str]]:
        servers = self.registry.servers()
        missing = [name for name in RESERVED_SERVER_NAMES if name not in servers]
        if missing:
            return False, f"Not in {self.registry.config_path.name}: {', '.join(missing)}"
        return True, f"{', '.join(RESERVED_SERVER_NAMES)} registered in {self.registry.config_path.name}"

    def run(self) -> VerificationReport:
        report = VerificationReport()

        for number, (name, check) in enumerate(self.checks(), start=1):
            output.info(f"Test {number}: {name}...")
            try:
                passed, detail = check()
            except InstallerError as e:
                passed, detail = False, e.message
            except Exception as e:
                logger.debug(f"Check '{name}' raised", exc_info=True)
                passed, detail = False, str(e)

            report.results.append(CheckResult(name=name, passed=passed, detail=detail))
            if passed:
                output.success(f"{name}: passed" + (f" ({detail})" if detail else ""))
            else:
                output.warn(f"{name}: failed" + (f" ({detail})" if detail else ""))

        output.plain()
        if report.all_passed:
            output.success("All tests passed!")
        else:
            output.warn("Some tests failed, check the warnings above")

        return report
