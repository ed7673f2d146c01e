"""Summary reporter: what is running now, and how to operate it.

Collection and rendering are split. ``SummaryReporter.run`` lists the
containers into the run's ``ProvisionResult`` (so ``--json`` carries them);
``render_summary`` prints the banner, the table and the operator hints with
rich.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from relaykit.core.errors import CommandError
from relaykit.core.logging import get_logger
from relaykit.core.result import unwrap_or_raise
from relaykit.host._types import ContainerEngine
from relaykit.provision.results import ContainerStatus, ProvisionResult, StepResult

logger = get_logger(__name__)

DEFAULT_LOG_CONTAINER = "stream1"


class SummaryReporter:
    name = "report"

    def __init__(self, engine: ContainerEngine) -> None:
        self.engine = engine

    def collect(self) -> list[ContainerStatus]:
        """All running containers, as ``docker ps`` lists them."""
        containers = unwrap_or_raise(self.engine.list_containers(), CommandError, step=self.name)
        return [ContainerStatus(name=c.name, status=c.status, image=c.image) for c in containers]

    def run(self, result: ProvisionResult) -> StepResult:
        result.containers = self.collect()
        logger.info("report.collected", containers=[c.name for c in result.containers])
        return StepResult(name=self.name, detail=f"{len(result.containers)} container(s) running")


def operational_hints(containers: list[ContainerStatus]) -> list[tuple[str, str]]:
    """(label, command) pairs shown under the summary table."""
    log_target = containers[0].name if containers else DEFAULT_LOG_CONTAINER
    return [
        ("View logs", f"docker logs -f {log_target}"),
        ("Restart streams", "docker compose restart"),
        ("Stop streams", "docker compose down"),
    ]


def containers_table(containers: list[ContainerStatus], title: str = "Running containers") -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    table.add_column("Image", style="dim")
    for c in containers:
        table.add_row(c.name, c.status, c.image)
    return table


def render_summary(result: ProvisionResult, console: Console, title: str = "Setup complete") -> None:
    """Print the end-of-run summary for an operator."""
    project_dir = Path(result.project_dir)
    console.rule(f"[bold green]{title}[/]")
    console.print(f"  Project directory: {project_dir}")
    console.print(f"  Compose file:      {result.manifest_path}")
    console.print()
    if result.containers:
        console.print(containers_table(result.containers))
    else:
        console.print("[yellow]No containers running.[/]")
    console.print()
    for label, command in operational_hints(result.containers):
        console.print(f"  {label + ':':<17} [bold]{command}[/]")
    console.rule()
