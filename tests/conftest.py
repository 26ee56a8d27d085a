"""
Pytest configuration and fixtures for installer testing.

Every collaborator that would touch the host (terminal prompts, local
processes, SSH, HTTPS) is replaced by a scripted fake, and all paths live
under ``tmp_path``.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import pytest

from proxmox_mcp_installer.core.exceptions import NetworkError
from proxmox_mcp_installer.core.interfaces import HttpClient, Prompter, RemoteShell
from proxmox_mcp_installer.core.models import InstallSession
from proxmox_mcp_installer.utils.config import Config
from proxmox_mcp_installer.utils.process import CommandResult, CommandRunner


class ScriptedPrompter(Prompter):
    """Answers prompts from tables keyed by a substring of the question."""

    def __init__(
        self,
        confirms: Optional[Dict[str, bool]] = None,
        texts: Optional[Dict[str, str]] = None,
        secrets: Optional[Dict[str, str]] = None,
    ):
        self.confirms = confirms or {}
        self.texts = texts or {}
        self.secrets = secrets or {}
        self.asked: List[str] = []

    @staticmethod
    def _lookup(table: Dict[str, Any], question: str):
        for key, value in table.items():
            if key in question:
                return True, value
        return False, None

    def confirm(self, question: str, default: bool = True) -> bool:
        self.asked.append(question)
        found, value = self._lookup(self.confirms, question)
        return value if found else default

    def ask_text(self, question: str, default: Optional[str] = None, validator=None) -> str:
        self.asked.append(question)
        found, value = self._lookup(self.texts, question)
        if not found or value == "":
            value = default if default is not None else ""
        if validator is not None:
            validator(value)
        return value

    def ask_secret(self, question: str) -> str:
        self.asked.append(question)
        found, value = self._lookup(self.secrets, question)
        return value if found else ""


Handler = Callable[[List[str], Optional[Path]], CommandResult]


class FakeRunner(CommandRunner):
    """Records commands and answers them from registered handlers."""

    def __init__(self, available: Sequence[str] = ()):
        self.available = set(available)
        self.calls: List[Tuple[List[str], Optional[Path]]] = []
        self.handlers: List[Tuple[Tuple[str, ...], Union[CommandResult, Handler]]] = []

    def which(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.available else None

    def on(self, *prefix: str, result: Union[CommandResult, Handler, None] = None) -> "FakeRunner":
        """Answer commands starting with ``prefix``; the latest registration wins."""
        self.handlers.insert(0, (prefix, result if result is not None else CommandResult(0)))
        return self

    def run(self, args, cwd=None, capture=True, timeout=None) -> CommandResult:
        cmd = [str(arg) for arg in args]
        self.calls.append((cmd, cwd))
        for prefix, result in self.handlers:
            if tuple(cmd[:len(prefix)]) == prefix:
                return result(cmd, cwd) if callable(result) else result
        return CommandResult(0)

    def commands(self) -> List[List[str]]:
        return [cmd for cmd, _ in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(tuple(cmd[:len(prefix)]) == prefix for cmd in self.commands())


def fake_ssh_keygen(cmd: List[str], cwd: Optional[Path]) -> CommandResult:
    """Stand-in for ``ssh-keygen -t ed25519 -f PATH`` writing a unique key pair."""
    key_path = Path(cmd[cmd.index("-f") + 1])
    generation = len(list(key_path.parent.glob("*"))) + 1
    key_path.write_text(f"PRIVATE KEY {generation}\n")
    key_path.with_name(key_path.name + ".pub").write_text(f"ssh-ed25519 AAAA{generation} claude-mcp-proxmox\n")
    return CommandResult(0)


class FakeShell(RemoteShell):
    """Remote shell answering by command substring."""

    def __init__(self, responses: Optional[Dict[str, CommandResult]] = None, default: Optional[CommandResult] = None):
        self.responses = responses or {}
        self.default = default or CommandResult(0)
        self.commands: List[Tuple[str, bool]] = []

    def run(self, command: str, batch_mode: bool = False) -> CommandResult:
        self.commands.append((command, batch_mode))
        for key, result in self.responses.items():
            if key in command:
                return result
        return self.default


class FakeHttp(HttpClient):
    """HTTP client answering by URL suffix; unmatched URLs fail."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = routes or {}
        self.requests: List[Tuple[str, Dict[str, str]]] = []

    def get_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        self.requests.append((url, dict(headers or {})))
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise NetworkError(f"Request to {url} failed: connection refused")


PVE_VERSION = {"data": {"version": "8.2.4", "release": "8.2"}}
PVE_NODES = {"data": [{"node": "pve1"}, {"node": "pve2"}]}


@pytest.fixture
def home(tmp_path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path, home) -> Config:
    """Configuration with every path rooted in ``tmp_path``."""
    project = tmp_path / "project"
    project.mkdir()
    return Config(
        config_dir=str(tmp_path / "config"),
        logging={"file": None},
        paths={
            "ssh_key": str(home / ".ssh" / "proxmox_mcp"),
            "claude_config": str(home / ".claude.json"),
            "fallback_dir": str(home / "mcp-servers" / "proxmox"),
            "project_dir": str(project),
        },
    )


@pytest.fixture
def session(config) -> InstallSession:
    return InstallSession(
        host="10.0.0.5",
        api_port=8006,
        ssh_user="root",
        ssh_port=22,
        ssh_key_path=config.ssh_key_path,
        token_name="claude-mcp",
        token_value="0123456789abcdef-secret",
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(available=["node", "npm", "git", "ssh-keygen", "jq", "curl", "dnf"])


@pytest.fixture
def write_json():
    def _write(path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2))
        return path
    return _write
