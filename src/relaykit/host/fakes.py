"""In-memory host for exercising provisioning without Docker, apt or systemd.

``FakeHost`` models just enough of a Raspberry Pi to run a provisioning
sequence against: whether the engine and compose plugin are installed,
whether the daemon is enabled/running, whether the network answers, and
which containers exist for which compose project. Every collaborator call is
appended to ``FakeHost.calls`` so tests can assert on order and absence.

Manifests are declared with their services up front (relaykit never parses
the compose file). Each service's container is named after the service, the
way stream manifests pin ``container_name: stream1``.

Example::

    host = FakeHost(docker_installed=True, compose_installed=True)
    manifest = host.declare_manifest(tmp_path / "docker-compose.yml",
                                     {"stream1": "relay:latest"})
    runner = ProvisionRunner(config, host=host.collaborators())
    runner.run()
    assert host.running_names() == ["stream1"]
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from relaykit.core.errors import CommandError
from relaykit.core.result import Err, Ok, Result
from relaykit.host._types import CommandOutput, ContainerInfo, HostCollaborators
from relaykit.host.docker import compose_project_name

DAEMON_DOWN = (
    "Cannot connect to the Docker daemon at unix:///var/run/docker.sock. "
    "Is the docker daemon running?"
)


@dataclass
class FakeContainer:
    """A container the fake engine is supervising."""

    name: str
    image: str
    project: str
    status: str = "running"
    generation: int = 1


class FakeHost:
    """Shared state behind all fake collaborators."""

    def __init__(
        self,
        *,
        docker_installed: bool = False,
        compose_installed: bool = False,
        daemon_enabled: bool = False,
        daemon_running: bool = False,
        network_up: bool = True,
    ) -> None:
        self.docker_installed = docker_installed
        self.compose_installed = compose_installed
        self.daemon_enabled = daemon_enabled
        self.daemon_running = daemon_running
        self.network_up = network_up
        self.manifests: dict[Path, dict[str, str]] = {}
        self.containers: dict[str, FakeContainer] = {}
        self.calls: list[tuple] = []
        self.creations: list[str] = []
        self._failures: dict[str, CommandError] = {}

    # ------------------------------------------------------------------
    # Test setup
    # ------------------------------------------------------------------

    def declare_manifest(self, path: Path, services: dict[str, str], *, write: bool = True) -> Path:
        """Register a manifest's services (name -> image) and optionally create the file."""
        path = Path(path)
        if write:
            path.parent.mkdir(parents=True, exist_ok=True)
            lines = ["services:"]
            for name, image in services.items():
                lines += [f"  {name}:", f"    image: {image}", f"    container_name: {name}"]
            path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        self.manifests[path.resolve()] = dict(services)
        return path

    def add_container(self, name: str, image: str, project: str, status: str = "running") -> FakeContainer:
        container = FakeContainer(name=name, image=image, project=project, status=status)
        self.containers[name] = container
        return container

    def fail(self, operation: str, stderr: str = "simulated failure", returncode: int = 1) -> None:
        """Make every later call to ``operation`` fail with ``stderr``."""
        self._failures[operation] = CommandError(
            f"Command failed (exit {returncode}): {operation}",
            command=[operation],
            returncode=returncode,
            stderr=stderr,
        )

    def collaborators(self, probe_script: Iterable[bool] | None = None) -> HostCollaborators:
        return HostCollaborators(
            engine=FakeContainerEngine(self),
            installer=FakeEngineInstaller(self),
            packages=FakePackageManager(self),
            services=FakeServiceManager(self),
            probe=FakeProbe(self, probe_script),
        )

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def running_names(self) -> list[str]:
        return sorted(c.name for c in self.containers.values() if c.status == "running")

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record(self, operation: str, *args: object) -> CommandError | None:
        self.calls.append((operation, *args))
        return self._failures.get(operation)

    def _ok(self, operation: str, stdout: str = "") -> Ok[CommandOutput]:
        return Ok(CommandOutput(args=(operation,), stdout=stdout))

    def _daemon_error(self, operation: str) -> CommandError | None:
        if not self.docker_installed:
            return CommandError(
                f"Could not execute docker: No such file or directory ({operation})",
                command=["docker"],
                stderr="docker: command not found",
            )
        if not self.daemon_running:
            return CommandError(
                f"Command failed (exit 1): {operation}",
                command=[operation],
                returncode=1,
                stderr=DAEMON_DOWN,
            )
        return None


class FakeContainerEngine:
    """``ContainerEngine`` over a ``FakeHost``."""

    def __init__(self, host: FakeHost) -> None:
        self.host = host

    def is_installed(self) -> bool:
        self.host.calls.append(("is_installed",))
        return self.host.docker_installed

    def compose_available(self) -> Result[CommandOutput]:
        if error := self.host._record("compose_version"):
            return Err(error)
        if self.host.docker_installed and self.host.compose_installed:
            return self.host._ok("compose_version", "Docker Compose version v2.27.0")
        return Err(CommandError(
            "Command failed (exit 1): docker compose version",
            command=["docker", "compose", "version"],
            returncode=1,
            stderr="docker: 'compose' is not a docker command.",
        ))

    def list_project_instances(self, manifest: Path) -> Result[list[str]]:
        if error := self.host._record("list_project_instances", str(manifest)) or self.host._daemon_error("ps"):
            return Err(error)
        project = compose_project_name(manifest)
        return Ok(sorted(c.name for c in self.host.containers.values() if c.project == project))

    def compose_up(
        self, manifest: Path, *, build: bool = False, remove_orphans: bool = False
    ) -> Result[CommandOutput]:
        error = self.host._record("compose_up", str(manifest), build, remove_orphans)
        if error := error or self.host._daemon_error("compose up"):
            return Err(error)
        services = self._services(manifest)
        if services is None:
            return Err(self._no_manifest(manifest))
        project = compose_project_name(manifest)

        for name, image in services.items():
            existing = self.host.containers.get(name)
            unchanged = (
                existing is not None
                and existing.project == project
                and existing.image == image
                and existing.status == "running"
                and not build
            )
            if unchanged:
                continue
            generation = existing.generation + 1 if existing else 1
            self.host.containers[name] = FakeContainer(name, image, project, generation=generation)
            self.host.creations.append(name)

        if remove_orphans:
            self._remove(project, keep=set(services))
        return self.host._ok("compose_up")

    def compose_down(self, manifest: Path, *, remove_orphans: bool = False) -> Result[CommandOutput]:
        error = self.host._record("compose_down", str(manifest), remove_orphans)
        if error := error or self.host._daemon_error("compose down"):
            return Err(error)
        services = self._services(manifest)
        if services is None:
            return Err(self._no_manifest(manifest))
        project = compose_project_name(manifest)
        if remove_orphans:
            self._remove(project, keep=set())
        else:
            for name in services:
                container = self.host.containers.get(name)
                if container and container.project == project:
                    del self.host.containers[name]
        return self.host._ok("compose_down")

    def compose_restart(self, manifest: Path) -> Result[CommandOutput]:
        error = self.host._record("compose_restart", str(manifest))
        if error := error or self.host._daemon_error("compose restart"):
            return Err(error)
        if self._services(manifest) is None:
            return Err(self._no_manifest(manifest))
        return self.host._ok("compose_restart")

    def list_containers(self) -> Result[list[ContainerInfo]]:
        if error := self.host._record("list_containers") or self.host._daemon_error("ps"):
            return Err(error)
        return Ok([
            ContainerInfo(name=c.name, status="Up 3 seconds", image=c.image)
            for c in sorted(self.host.containers.values(), key=lambda c: c.name)
            if c.status == "running"
        ])

    def _services(self, manifest: Path) -> dict[str, str] | None:
        return self.host.manifests.get(Path(manifest).resolve())

    def _remove(self, project: str, keep: set[str]) -> None:
        for name in [n for n, c in self.host.containers.items() if c.project == project and n not in keep]:
            del self.host.containers[name]

    @staticmethod
    def _no_manifest(manifest: Path) -> CommandError:
        return CommandError(
            "Command failed (exit 14): docker compose",
            command=["docker", "compose", "-f", str(manifest)],
            returncode=14,
            stderr=f"open {manifest}: no such file or directory",
        )


class FakeEngineInstaller:
    def __init__(self, host: FakeHost) -> None:
        self.host = host

    def install_engine(self) -> Result[CommandOutput]:
        if error := self.host._record("install_engine"):
            return Err(error)
        self.host.docker_installed = True
        return self.host._ok("install_engine")


class FakePackageManager:
    def __init__(self, host: FakeHost) -> None:
        self.host = host

    def install(self, package: str) -> Result[CommandOutput]:
        if error := self.host._record("install_package", package):
            return Err(error)
        if package == "docker-compose-plugin":
            self.host.compose_installed = True
        return self.host._ok("install_package")


class FakeServiceManager:
    def __init__(self, host: FakeHost) -> None:
        self.host = host

    def enable(self, name: str) -> Result[CommandOutput]:
        if error := self.host._record("service_enable", name) or self._missing_unit(name):
            return Err(error)
        self.host.daemon_enabled = True
        return self.host._ok("service_enable")

    def start(self, name: str) -> Result[CommandOutput]:
        if error := self.host._record("service_start", name) or self._missing_unit(name):
            return Err(error)
        self.host.daemon_running = True
        return self.host._ok("service_start")

    def _missing_unit(self, name: str) -> CommandError | None:
        if self.host.docker_installed:
            return None
        return CommandError(
            f"Command failed (exit 5): systemctl {name}",
            command=["systemctl", name],
            returncode=5,
            stderr=f"Failed to start {name}.service: Unit {name}.service not found.",
        )


class FakeProbe:
    """Probe that replays ``script`` and then follows ``host.network_up``."""

    def __init__(self, host: FakeHost, script: Iterable[bool] | None = None, target: str = "8.8.8.8") -> None:
        self.host = host
        self._script = list(script or [])
        self._target = target
        self.attempts = 0

    @property
    def target(self) -> str:
        return self._target

    def probe(self) -> bool:
        self.attempts += 1
        self.host.calls.append(("probe",))
        if self._script:
            return self._script.pop(0)
        return self.host.network_up
