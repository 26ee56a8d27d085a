"""
Command-line entry point.

Without arguments the installer runs; ``--uninstall`` removes what it set
up. Anything besides the documented options is rejected with exit code 1.
"""

import sys
from typing import Tuple

import click

from proxmox_mcp_installer import __version__
from proxmox_mcp_installer.cli.helpers import handle_errors
from proxmox_mcp_installer.cli.prompts import RichPrompter
from proxmox_mcp_installer.core.installer import Installer
from proxmox_mcp_installer.utils import output
from proxmox_mcp_installer.utils.config import Config, get_config
from proxmox_mcp_installer.utils.logging import get_logger, setup_logging_from_config

logger = get_logger(__name__)

PROG_NAME = "proxmox-mcp-installer"


def build_installer(config: Config) -> Installer:
    return Installer(config, RichPrompter())


@click.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "ignore_unknown_options": True,
    }
)
@click.option(
    "--uninstall", "-u",
    is_flag=True,
    help="Remove MCP servers",
)
@click.version_option(
    __version__,
    "--version", "-v",
    prog_name=PROG_NAME,
    message="%(prog)s v%(version)s",
    help="Show version",
)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
@handle_errors
def cli(uninstall: bool, extra: Tuple[str, ...]):
    """
    Install the Proxmox and SSH MCP servers for Claude Code.

    Runs the installation when called without options.
    """
    if extra:
        output.error(f"Unknown option: {extra[0]}")
        output.plain("Use --help for usage information")
        sys.exit(1)

    config = get_config()
    setup_logging_from_config(config)
    logger.debug(f"{PROG_NAME} v{__version__} starting", extra={"uninstall": uninstall})

    installer = build_installer(config)
    if uninstall:
        installer.uninstall()
    else:
        installer.install()


def main() -> None:
    cli(prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
