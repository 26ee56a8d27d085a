"""
Proxmox MCP server materialization.

The server sources are located by trying an ordered list of
``SourceStrategy`` objects: an initialized git submodule, a submodule that
still needs ``git submodule update``, and finally a standalone clone under
the operator's home directory. Dependencies are then installed with npm
and the Node.js entry point is resolved.
"""

import json
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from proxmox_mcp_installer.core.exceptions import ServerSetupError
from proxmox_mcp_installer.core.interfaces import Prompter
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.logging import get_logger
from proxmox_mcp_installer.utils.process import CommandRunner

logger = get_logger(__name__)

ENTRY_FILE = "index.js"
ALTERNATE_ENTRY_FILES = ("index.js", "main.js")
BUILD_OUTPUT_CANDIDATES = ("dist/index.js", "build/index.js", "src/index.js")


def is_git_checkout(path: Path) -> bool:
    """True for a clone (``.git`` directory) or a submodule (``.git`` file)."""
    return (path / ".git").exists()


class SourceStrategy(ABC):
    """One way of obtaining the server sources."""

    name: str = "source"

    @abstractmethod
    def resolve(self) -> Optional[Path]:
        """Return the server directory, or None to let the next strategy try."""


class SubmoduleStrategy(SourceStrategy):
    """Use an already initialized submodule."""

    name = "submodule"

    def __init__(self, submodule_dir: Path):
        self.submodule_dir = submodule_dir

    def resolve(self) -> Optional[Path]:
        if is_git_checkout(self.submodule_dir):
            output.info(f"Using git submodule at {self.submodule_dir}")
            return self.submodule_dir
        return None


class SubmoduleInitStrategy(SourceStrategy):
    """Initialize a submodule declared in ``.gitmodules``."""

    name = "submodule-init"

    def __init__(self, runner: CommandRunner, project_dir: Path, submodule_path: str):
        self.runner = runner
        self.project_dir = project_dir
        self.submodule_path = submodule_path

    @property
    def submodule_dir(self) -> Path:
        return self.project_dir / self.submodule_path

    def is_declared(self) -> bool:
        gitmodules = self.project_dir / ".gitmodules"
        try:
            return self.submodule_path in gitmodules.read_text(encoding="utf-8")
        except OSError:
            return False

    def resolve(self) -> Optional[Path]:
        if not self.is_declared():
            return None

        output.info("Initializing git submodule...")
        result = self.runner.run(
            ["git", "-C", self.project_dir, "submodule", "update", "--init", "--recursive"],
            capture=False,
        )

        if result.ok and self.submodule_dir.is_dir():
            output.success(f"Submodule initialized at {self.submodule_dir}")
            return self.submodule_dir

        output.warn("Submodule init failed, falling back to standalone clone")
        return None


class StandaloneCloneStrategy(SourceStrategy):
    """Clone (or update) the repository into a directory of its own."""

    name = "standalone"

    def __init__(self, runner: CommandRunner, prompter: Prompter, target_dir: Path, repo_url: str):
        self.runner = runner
        self.prompter = prompter
        self.target_dir = target_dir
        self.repo_url = repo_url

    def resolve(self) -> Optional[Path]:
        """
        Raises:
            ServerSetupError: If cloning fails
        """
        self.target_dir.parent.mkdir(parents=True, exist_ok=True)

        if is_git_checkout(self.target_dir):
            output.info(f"Proxmox MCP server already exists at {self.target_dir}")
            if self.prompter.confirm("Update (git pull)?", default=True):
                output.info("Updating...")
                result = self.runner.run(["git", "-C", self.target_dir, "pull"], capture=False)
                if result.ok:
                    output.success("Repo updated")
                else:
                    output.warn("git pull failed, keeping the current checkout")
            else:
                output.info("Skipped update")
            return self.target_dir

        if self.target_dir.exists():
            output.warn(f"{self.target_dir} exists but is not a git repo, removing and cloning fresh")
            shutil.rmtree(self.target_dir)

        output.info(f"Cloning {self.repo_url}...")
        result = self.runner.run(["git", "clone", self.repo_url, self.target_dir], capture=False)
        if not result.ok:
            raise ServerSetupError(
                f"git clone of {self.repo_url} failed with exit code {result.returncode}",
                error_code="CLONE_FAILED",
            )

        output.success(f"Repo cloned to {self.target_dir}")
        return self.target_dir


def find_entry_point(mcp_dir: Path) -> Optional[Path]:
    """
    Locate the Node.js entry point of the server.

    ``index.js`` at the top level wins, then the usual build output
    locations, then ``index.js``/``main.js`` in any immediate subdirectory.
    """
    direct = mcp_dir / ENTRY_FILE
    if direct.is_file():
        return direct

    for candidate in BUILD_OUTPUT_CANDIDATES:
        path = mcp_dir / candidate
        if path.is_file():
            return path

    if not mcp_dir.is_dir():
        return None

    for child in sorted(mcp_dir.iterdir()):
        if not child.is_dir() or child.name in (".git", "node_modules"):
            continue
        for name in ALTERNATE_ENTRY_FILES:
            path = child / name
            if path.is_file():
                return path

    return None


def has_build_script(mcp_dir: Path) -> bool:
    manifest = mcp_dir / "package.json"
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    scripts = data.get("scripts") if isinstance(data, dict) else None
    return isinstance(scripts, dict) and bool(scripts.get("build"))


class ServerMaterializer:
    """Resolves, installs and locates the Proxmox MCP server."""

    def __init__(self, runner: CommandRunner, strategies: List[SourceStrategy]):
        self.runner = runner
        self.strategies = strategies

    def resolve_directory(self) -> Path:
        """
        Try each strategy in order; the first directory returned wins.

        Raises:
            ServerSetupError: If no strategy produced a directory
        """
        for strategy in self.strategies:
            logger.debug(f"Trying source strategy '{strategy.name}'")
            path = strategy.resolve()
            if path is not None:
                logger.info(f"Proxmox MCP server sources from '{strategy.name}': {path}")
                return path

        raise ServerSetupError("No source strategy produced the MCP server directory", error_code="NO_SOURCE")

    def install_dependencies(self, mcp_dir: Path) -> bool:
        output.info("Running npm install...")
        result = self.runner.run(["npm", "install"], cwd=mcp_dir, capture=False)
        if result.ok:
            output.success("npm dependencies installed")
            return True
        output.warn(f"npm install failed with exit code {result.returncode}")
        return False

    def resolve_entry_point(self, mcp_dir: Path) -> Optional[Path]:
        """Find the entry point, running ``npm run build`` once if needed."""
        entry = find_entry_point(mcp_dir)
        if entry is not None:
            if entry == mcp_dir / ENTRY_FILE:
                output.success(f"{ENTRY_FILE} found")
            else:
                output.warn(f"Entry point not in root, found: {entry}")
            return entry

        output.warn("Cannot find entry point, a build step may be required")
        if not has_build_script(mcp_dir):
            return None

        output.info("Running npm run build...")
        result = self.runner.run(["npm", "run", "build"], cwd=mcp_dir, capture=False)
        if not result.ok:
            output.warn(f"npm run build failed with exit code {result.returncode}")
            return None

        entry = find_entry_point(mcp_dir)
        if entry is not None:
            output.success(f"Entry point built: {entry}")
        return entry

    def materialize(self) -> "MaterializedServer":
        """
        Raises:
            ServerSetupError: If the sources cannot be obtained
        """
        mcp_dir = self.resolve_directory()
        self.install_dependencies(mcp_dir)
        return MaterializedServer(directory=mcp_dir, entry_point=self.resolve_entry_point(mcp_dir))


class MaterializedServer:
    """Directory and entry point of a materialized server."""

    def __init__(self, directory: Path, entry_point: Optional[Path]):
        self.directory = directory
        self.entry_point = entry_point
