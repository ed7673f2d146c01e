"""Docker CLI adapter for the ``ContainerEngine`` protocol.

Talks to the engine through the ``docker`` binary and its ``compose``
plugin. No Docker SDK: the host already has the CLI once the installer has
run, and the CLI is what the operator uses for everything else.

Compose commands always pass the manifest with ``-f`` and run with the
manifest's directory as working directory, so relative paths inside the
manifest (build contexts, env files, bind mounts) resolve the same way they
would for an operator running ``docker compose`` by hand.
"""

from __future__ import annotations

import json
import re
import shutil
from pathlib import Path

from relaykit.core.errors import EngineError
from relaykit.core.logging import get_logger
from relaykit.core.result import Err, Ok, Result
from relaykit.host._types import CommandOutput, ContainerInfo
from relaykit.host.runner import CommandRunner

logger = get_logger(__name__)

COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


def compose_project_name(manifest: Path) -> str:
    """Project name Compose derives from the manifest's directory.

    Only the fallback: ``DockerCliEngine.resolve_project_name`` asks Compose
    first.

    Lowercase, keeping only ``[a-z0-9_-]``, must start with a letter or
    digit (the same normalisation ``docker compose`` applies).
    """
    name = re.sub(r"[^a-z0-9_-]", "", manifest.resolve().parent.name.lower())
    name = name.lstrip("_-")
    if not name:
        raise EngineError(f"Cannot derive a compose project name from {manifest.parent}")
    return name


class DockerCliEngine:
    """``ContainerEngine`` backed by the ``docker`` CLI.

    Parameters
    ----------
    runner
        Command runner used for every call.
    project_name
        Explicit Compose project name (``--project-name``). Asked of
        ``docker compose config`` when not set.
    docker_cmd
        Name or path of the docker binary.
    """

    def __init__(
        self,
        runner: CommandRunner,
        project_name: str | None = None,
        docker_cmd: str = "docker",
    ) -> None:
        self.runner = runner
        self.project_name = project_name
        self.docker_cmd = docker_cmd

    def is_installed(self) -> bool:
        return shutil.which(self.docker_cmd) is not None

    def compose_available(self) -> Result[CommandOutput]:
        return self.runner.run([self.docker_cmd, "compose", "version"])

    def list_project_instances(self, manifest: Path) -> Result[list[str]]:
        """Names of all containers belonging to the manifest's project.

        Filters on the project label rather than ``compose ps`` so containers
        for services no longer in the manifest (orphans) are included.
        """
        resolved = self.resolve_project_name(manifest)
        if isinstance(resolved, Err):
            return resolved
        project = resolved.value
        result = self.runner.run([
            self.docker_cmd, "ps", "--all",
            "--filter", f"label={COMPOSE_PROJECT_LABEL}={project}",
            "--format", "{{.Names}}",
        ])
        return result.map(lambda out: [line.strip() for line in out.stdout.splitlines() if line.strip()])

    def resolve_project_name(self, manifest: Path) -> Result[str]:
        """Project name Compose itself uses for ``manifest``.

        Read from ``docker compose config`` so ``COMPOSE_PROJECT_NAME`` and a
        top-level ``name:`` in the manifest win over the directory name, as
        they do for ``up`` and ``down``.
        """
        if self.project_name:
            return Ok(self.project_name)
        result = self._compose(manifest, ["config", "--format", "json"])
        if isinstance(result, Err):
            return result
        try:
            name = json.loads(result.value.stdout).get("name")
        except (json.JSONDecodeError, AttributeError) as exc:
            return Err(EngineError(
                f"Could not read the compose project name for {manifest}",
                command=list(result.value.args),
                stderr=result.value.stderr,
                cause=exc,
            ))
        if name:
            return Ok(name)
        try:
            return Ok(compose_project_name(manifest))
        except EngineError as exc:
            return Err(exc)

    def compose_up(
        self,
        manifest: Path,
        *,
        build: bool = False,
        remove_orphans: bool = False,
    ) -> Result[CommandOutput]:
        args = ["up", "-d"]
        if build:
            args.append("--build")
        if remove_orphans:
            args.append("--remove-orphans")
        return self._compose(manifest, args)

    def compose_down(self, manifest: Path, *, remove_orphans: bool = False) -> Result[CommandOutput]:
        args = ["down"]
        if remove_orphans:
            args.append("--remove-orphans")
        return self._compose(manifest, args)

    def compose_restart(self, manifest: Path) -> Result[CommandOutput]:
        return self._compose(manifest, ["restart"])

    def list_containers(self) -> Result[list[ContainerInfo]]:
        """All running containers: name, status, image."""
        result = self.runner.run([self.docker_cmd, "ps", "--format", "{{json .}}"])
        if isinstance(result, Err):
            return result
        return Ok(_parse_ps_lines(result.value.stdout))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _compose(self, manifest: Path, args: list[str]) -> Result[CommandOutput]:
        cmd = [self.docker_cmd, "compose", "-f", str(manifest)]
        if self.project_name:
            cmd.extend(["--project-name", self.project_name])
        cmd.extend(args)
        return self.runner.run(cmd, cwd=manifest.parent)


def _parse_ps_lines(stdout: str) -> list[ContainerInfo]:
    """Parse ``docker ps --format '{{json .}}'`` output, one object per line."""
    containers = []
    for line in stdout.strip().splitlines():
        if not line.strip():
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.warning("docker.ps_unparsed", line=line)
            continue
        containers.append(ContainerInfo(
            name=data.get("Names", ""),
            status=data.get("Status", data.get("State", "")),
            image=data.get("Image", ""),
            container_id=data.get("ID", ""),
        ))
    return containers
