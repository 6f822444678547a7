"""Rich UI components for the CLI.

Why separate components:
- Keeps command logic apart from visual details.
- Tables/panels can be reused by several commands.
"""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import SmokeReport


def build_controls_table(report: SmokeReport) -> Table:
    """One row per control: status, what it checked, and why it failed."""

    table = Table(title=report.title)
    table.add_column("Control", style="cyan", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Command", style="dim")
    table.add_column("Details", style="red")

    for control in report.controls:
        status = "[green]PASS[/green]" if control.passed else "[red]FAIL[/red]"
        command = control.result.command if control.result else ""
        details = "\n".join(control.failures) if control.failures else ""
        table.add_row(control.name, status, Text(command), Text(details))
    return table


def build_summary_panel(report: SmokeReport) -> Panel:
    passed = sum(1 for c in report.controls if c.passed)
    total = len(report.controls)
    style = "green" if report.passed else "red"

    body = Text()
    body.append(f"{passed}/{total} controls passed", style=f"bold {style}")
    body.append(f"\nImpact: {report.impact:.1f}", style="dim")
    body.append(f"\nStarted: {report.started_at.isoformat(timespec='seconds')}", style="dim")
    return Panel(body, title=Text("Summary", style="bold"), border_style=style)
