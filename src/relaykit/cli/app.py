"""
Root Typer application for the relaykit CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from relaykit import __version__
from relaykit.cli import provision as provision_cmds

app = Typer(
    name="relaykit",
    help="relaykit: provision a host to run an RTSP → RTMP relay with Docker Compose.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"relaykit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """relaykit CLI: provision the relay host and manage its containers."""


# ── Command registration ─────────────────────────────────────────────────

app.command("provision")(provision_cmds.provision)
app.command("status")(provision_cmds.status)
app.command("restart")(provision_cmds.restart)
app.command("down")(provision_cmds.down)
