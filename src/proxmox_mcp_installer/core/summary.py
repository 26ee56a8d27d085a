"""
Final summaries printed after install and uninstall.
"""

from pathlib import Path
from typing import Optional

from rich.panel import Panel
from rich.table import Table

from proxmox_mcp_installer.core.models import InstallSession, VerificationReport
from proxmox_mcp_installer.utils.output import console, header, info, success


def _section(rows) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    for label, value in rows:
        table.add_row(label, str(value))
    return table


def print_install_summary(
    session: InstallSession,
    claude_config: Path,
    report: Optional[VerificationReport] = None,
) -> None:
    """Print what was installed and what to do next."""
    header("Installation summary")

    location = session.mcp_dir if session.mcp_dir is not None else "not installed"

    console.print(Panel(
        _section([
            ("Host:", f"{session.host}:{session.api_port}"),
            ("User:", session.proxmox_user),
            ("Token:", session.token_id),
            ("Location:", location),
        ]),
        title="Proxmox MCP Server",
        title_align="left",
        border_style="cyan",
    ))
    console.print(Panel(
        _section([
            ("Host:", f"{session.ssh_target}:{session.ssh_port}"),
            ("SSH key:", session.ssh_key_path),
        ]),
        title="SSH MCP Server",
        title_align="left",
        border_style="cyan",
    ))
    console.print(Panel(
        _section([("Claude:", claude_config)]),
        title="Configuration",
        title_align="left",
        border_style="cyan",
    ))

    if report is not None and not report.all_passed:
        failed = ", ".join(result.name for result in report.failed)
        console.print(f"[yellow]Verification: some checks failed ({failed})[/yellow]")

    console.print("[bold]Next steps:[/bold]")
    console.print("  1. Restart Claude Code to load the new MCP servers")
    console.print("  2. Use /mcp to check server status")
    console.print("  3. Try: 'Show me the list of VMs on the Proxmox server'")
    console.print("")


def print_uninstall_summary() -> None:
    console.print("")
    success("Removal complete")
    info("Restart Claude Code to apply changes")
