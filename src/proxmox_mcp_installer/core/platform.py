"""
Host platform detection.

Resolves ``/etc/os-release`` to one of the supported distribution
families and its package manager, and probes which required executables
are already installed.
"""

import shlex
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from proxmox_mcp_installer.core.exceptions import UnsupportedPlatformError
from proxmox_mcp_installer.core.models import Distribution, PackageManager, Platform
from proxmox_mcp_installer.utils.logging import get_logger

logger = get_logger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")

SUPPORTED_SYSTEMS = "Debian/Ubuntu, RHEL/Fedora, Arch/Manjaro"

# Executable -> generic package name providing it
REQUIRED_CAPABILITIES: List[Tuple[str, str]] = [
    ("node", "nodejs"),
    ("npm", "npm"),
    ("git", "git"),
    ("ssh-keygen", "openssh"),
    ("jq", "jq"),
    ("curl", "curl"),
]

# Exact ID matches. None means "dnf if present, else yum".
_ID_TABLE: Dict[str, Tuple[Distribution, Optional[PackageManager]]] = {
    "debian": (Distribution.DEBIAN, PackageManager.APT),
    "ubuntu": (Distribution.DEBIAN, PackageManager.APT),
    "linuxmint": (Distribution.DEBIAN, PackageManager.APT),
    "pop": (Distribution.DEBIAN, PackageManager.APT),
    "fedora": (Distribution.FEDORA, PackageManager.DNF),
    "rhel": (Distribution.RHEL, None),
    "centos": (Distribution.RHEL, None),
    "rocky": (Distribution.RHEL, None),
    "alma": (Distribution.RHEL, None),
    "arch": (Distribution.ARCH, PackageManager.PACMAN),
    "manjaro": (Distribution.ARCH, PackageManager.PACMAN),
    "endeavouros": (Distribution.ARCH, PackageManager.PACMAN),
}

# Substring matches on ID_LIKE, checked in order
_ID_LIKE_TABLE: List[Tuple[Tuple[str, ...], Distribution, Optional[PackageManager]]] = [
    (("debian", "ubuntu"), Distribution.DEBIAN, PackageManager.APT),
    (("rhel", "fedora"), Distribution.FEDORA, None),
    (("arch",), Distribution.ARCH, PackageManager.PACMAN),
]

Which = Callable[[str], Optional[str]]


def parse_os_release(text: str) -> Dict[str, str]:
    """
    Parse os-release ``KEY=value`` lines.

    Values may be bare, single- or double-quoted. Comments and malformed
    lines are ignored.
    """
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw = line.split("=", 1)
        try:
            parts = shlex.split(raw)
        except ValueError:
            parts = [raw.strip("\"'")]
        values[key.strip()] = parts[0] if parts else ""
    return values


def _rhel_package_manager(which: Which) -> PackageManager:
    return PackageManager.DNF if which("dnf") else PackageManager.YUM


def resolve_distribution(
    os_id: str,
    id_like: str = "",
    which: Optional[Which] = None,
) -> Tuple[Distribution, PackageManager]:
    """
    Map os-release identifiers to a distribution family and package manager.

    The primary ``os_id`` is matched exactly first; on a miss ``id_like``
    is searched for known family names.

    Args:
        os_id: ``ID`` from os-release
        id_like: ``ID_LIKE`` from os-release
        which: Executable lookup used to choose between dnf and yum

    Returns:
        (distribution, package_manager)

    Raises:
        UnsupportedPlatformError: If neither identifier is recognised
    """
    which = which or shutil.which

    key = (os_id or "").strip().lower()
    if key in _ID_TABLE:
        distribution, manager = _ID_TABLE[key]
        return distribution, manager or _rhel_package_manager(which)

    like = (id_like or "").strip().lower()
    for needles, distribution, manager in _ID_LIKE_TABLE:
        if any(needle in like for needle in needles):
            return distribution, manager or _rhel_package_manager(which)

    raise UnsupportedPlatformError(
        f"Unsupported distribution: {os_id or 'unknown'} (ID_LIKE: {id_like}). "
        f"Supported systems: {SUPPORTED_SYSTEMS}",
        error_code="UNSUPPORTED_PLATFORM",
        details={"id": os_id, "id_like": id_like},
    )


def detect_platform(
    os_release: Path = OS_RELEASE_PATH,
    which: Optional[Which] = None,
) -> Platform:
    """
    Detect the host platform from an os-release file.

    Raises:
        UnsupportedPlatformError: If the file is missing or the
            distribution is not supported
    """
    try:
        text = os_release.read_text(encoding="utf-8")
    except OSError as e:
        raise UnsupportedPlatformError(
            f"Cannot read {os_release}: {e}",
            error_code="NO_OS_RELEASE",
        )

    fields = parse_os_release(text)
    os_id = fields.get("ID", "unknown")
    distribution, manager = resolve_distribution(os_id, fields.get("ID_LIKE", ""), which)

    platform = Platform(
        distribution=distribution,
        package_manager=manager,
        os_id=os_id,
        pretty_name=fields.get("PRETTY_NAME"),
    )
    logger.debug(f"Resolved platform {platform} from {os_release}")
    return platform


def probe_capabilities(which: Optional[Which] = None) -> Dict[str, bool]:
    """Return ``{executable: present}`` for every required executable."""
    which = which or shutil.which

    return {command: bool(which(command)) for command, _ in REQUIRED_CAPABILITIES}


def missing_packages(which: Optional[Which] = None) -> List[str]:
    """Generic package names whose executables are absent."""
    present = probe_capabilities(which)
    return [package for command, package in REQUIRED_CAPABILITIES if not present[command]]
