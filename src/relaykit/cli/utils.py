"""
CLI output helpers: consoles, step tables, failure reporting.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from relaykit.core.errors import CommandError, MissingManifestError
from relaykit.provision.results import OverallStatus, ProvisionResult, StepStatus

console = Console()
err_console = Console(stderr=True)

_STEP_STYLES = {
    StepStatus.PASSED: "green",
    StepStatus.SKIPPED: "dim",
    StepStatus.FAILED: "red",
}


def print_steps(result: ProvisionResult, title: str = "Provisioning steps") -> None:
    """Pretty-print the steps of a run."""
    table = Table(title=title)
    table.add_column("Step", style="bold")
    table.add_column("Status")
    table.add_column("Detail")
    table.add_column("Time", justify="right")

    for step in result.steps:
        style = _STEP_STYLES.get(step.status, "white")
        table.add_row(
            step.name,
            f"[{style}]{step.status.value}[/{style}]",
            escape(step.error or step.detail or "—"),
            f"{step.duration_seconds:.1f}s",
        )

    console.print(table)
    style = "green" if result.overall_status == OverallStatus.PASSED else "red"
    console.print(f"[bold {style}]{result.overall_status.value}[/] — {result.summary}")


def print_failure(result: ProvisionResult, error: Exception | None) -> None:
    """Explain why a run failed.

    A collaborator's stderr is printed exactly as the command produced it.
    """
    step = result.failed_step
    where = f"{step.name} failed" if step else "failed"
    err_console.print(f"[bold red]✗ {where}:[/] {escape(result.error or 'unknown error')}")

    if isinstance(error, CommandError) and error.stderr:
        err_console.print(error.stderr.rstrip(), markup=False, highlight=False)
    if isinstance(error, MissingManifestError):
        err_console.print(f"[yellow]➡ {escape(error.remedy)}[/]")
