"""
Provisioning commands: ``provision``, ``status``, ``restart``, ``down``.

Each command builds a ``ProvisionConfig`` (preset + ``RELAYKIT_*`` env +
flags), wires the real host adapters, and runs the matching
``ProvisionRunner`` operation.

Exit codes: 0 on success, 1 on any failure, 130 when interrupted.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.markup import escape

from relaykit.cli.utils import console, err_console, print_failure, print_steps
from relaykit.core.errors import ConfigError
from relaykit.core.logging import configure_logging
from relaykit.host import build_host
from relaykit.provision.config import LaunchPolicy, ProvisionConfig, Variant
from relaykit.provision.reporter import render_summary
from relaykit.provision.results import OverallStatus, ProvisionResult
from relaykit.provision.workflow import ProvisionRunner

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

# ── Shared options ───────────────────────────────────────────────────────

VariantOpt = typer.Option(None, "--variant", "-v", help="Preset: auto (boot-time) or fixed (manual).")
ProjectDirOpt = typer.Option(None, "--project-dir", "-d", help="Directory holding docker-compose.yml.")
ManifestOpt = typer.Option(
    None, "--manifest", "-f", help="Compose file path (overrides --project-dir).",
)
NoSudoOpt = typer.Option(False, "--no-sudo", help="Do not prefix apt-get/systemctl with sudo.")
JsonOpt = typer.Option(False, "--json", help="Output the run result as JSON.")
LogLevelOpt = typer.Option("INFO", "--log-level", help="DEBUG, INFO, WARNING or ERROR.")


def _build_config(
    variant: Variant | None,
    project_dir: Path | None,
    manifest: Path | None,
    no_sudo: bool,
    **overrides: Any,
) -> ProvisionConfig:
    if manifest is not None:
        project_dir = manifest.parent
        overrides["manifest_name"] = manifest.name
    if no_sudo:
        overrides["use_sudo"] = False
    try:
        return ProvisionConfig.from_env(
            variant=variant.value if variant else None,
            project_dir=project_dir.absolute() if project_dir else None,
            **overrides,
        )
    except (ConfigError, ValidationError) as exc:
        err_console.print(f"[bold red]Invalid configuration:[/] {escape(str(exc))}")
        raise typer.Exit(code=EXIT_FAILURE) from exc


def _setup_logging(log_level: str) -> None:
    try:
        configure_logging(level=log_level)
    except ValueError as exc:
        err_console.print(f"[bold red]{escape(str(exc))}[/]")
        raise typer.Exit(code=EXIT_FAILURE) from exc


def _run(operation: Callable[[], ProvisionResult]) -> ProvisionResult:
    try:
        return operation()
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted.[/]")
        raise typer.Exit(code=EXIT_INTERRUPTED) from None


def _finish(
    runner: ProvisionRunner,
    result: ProvisionResult,
    json_out: bool,
    summary_title: str | None = None,
) -> None:
    if json_out:
        typer.echo(result.model_dump_json(indent=2))
    elif result.overall_status == OverallStatus.PASSED and summary_title:
        render_summary(result, console, title=summary_title)
    else:
        print_steps(result)

    if result.overall_status != OverallStatus.PASSED:
        print_failure(result, runner.last_error)
        raise typer.Exit(code=EXIT_FAILURE)


# ── Commands ─────────────────────────────────────────────────────────────


def provision(
    variant: Variant | None = VariantOpt,
    project_dir: Path | None = ProjectDirOpt,
    manifest: Path | None = ManifestOpt,
    policy: LaunchPolicy | None = typer.Option(
        None, "--policy", "-p", help="Launch policy: clean-restart or lightweight.",
    ),
    network_gate: bool | None = typer.Option(
        None, "--network-gate/--no-network-gate", help="Wait for connectivity before launching.",
    ),
    probe_host: str | None = typer.Option(None, "--probe-host", help="Address pinged by the network gate."),
    probe_interval: float | None = typer.Option(
        None, "--probe-interval", help="Seconds between network probes.",
    ),
    probe_max_attempts: int | None = typer.Option(
        None, "--probe-max-attempts", help="Give up after N probes (default: wait forever).",
    ),
    no_sudo: bool = NoSudoOpt,
    json_out: bool = JsonOpt,
    log_level: str = LogLevelOpt,
) -> None:
    """Install Docker, activate the daemon and bring up the relay containers.

    Runs: install → manifest check → network gate → service → launch → summary.
    """
    _setup_logging(log_level)
    config = _build_config(
        variant,
        project_dir,
        manifest,
        no_sudo,
        launch_policy=policy.value if policy else None,
        network_gate=network_gate,
        probe_host=probe_host,
        probe_interval_seconds=probe_interval,
        probe_max_attempts=probe_max_attempts,
    )

    if not json_out:
        console.print(f"[bold]relaykit provision[/] — {config.variant.value} ({config.launch_policy.value})")
        console.print(f"  compose file: {config.manifest_path}")

    runner = ProvisionRunner(config, host=build_host(config))
    result = _run(runner.run)
    if not json_out and result.overall_status == OverallStatus.PASSED:
        print_steps(result)
    _finish(runner, result, json_out, summary_title="Setup complete")


def status(
    variant: Variant | None = VariantOpt,
    project_dir: Path | None = ProjectDirOpt,
    manifest: Path | None = ManifestOpt,
    json_out: bool = JsonOpt,
    log_level: str = LogLevelOpt,
) -> None:
    """Show the running containers and operator hints."""
    _setup_logging(log_level)
    config = _build_config(variant, project_dir, manifest, no_sudo=False)
    runner = ProvisionRunner(config, host=build_host(config))
    result = _run(runner.status)
    _finish(runner, result, json_out, summary_title="Relay status")


def restart(
    variant: Variant | None = VariantOpt,
    project_dir: Path | None = ProjectDirOpt,
    manifest: Path | None = ManifestOpt,
    json_out: bool = JsonOpt,
    log_level: str = LogLevelOpt,
) -> None:
    """Restart the relay containers (docker compose restart)."""
    _setup_logging(log_level)
    config = _build_config(variant, project_dir, manifest, no_sudo=False)
    runner = ProvisionRunner(config, host=build_host(config))
    result = _run(runner.restart)
    if not json_out and result.overall_status == OverallStatus.PASSED:
        console.print("[green]✓ Streams restarted[/]")
    _finish(runner, result, json_out)


def down(
    variant: Variant | None = VariantOpt,
    project_dir: Path | None = ProjectDirOpt,
    manifest: Path | None = ManifestOpt,
    json_out: bool = JsonOpt,
    log_level: str = LogLevelOpt,
) -> None:
    """Stop and remove the relay containers (docker compose down)."""
    _setup_logging(log_level)
    config = _build_config(variant, project_dir, manifest, no_sudo=False)
    runner = ProvisionRunner(config, host=build_host(config))
    result = _run(runner.down)
    if not json_out and result.overall_status == OverallStatus.PASSED:
        console.print("[green]✓ Streams stopped[/]")
    _finish(runner, result, json_out)
