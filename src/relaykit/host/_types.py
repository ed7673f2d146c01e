"""Collaborator protocols and shared types for host access.

relaykit never owns the container engine, the init system, or the package
manager; it only calls them. Each one is a Protocol here so provisioning
steps take any implementation: the subprocess-backed adapters in this
package in production, ``relaykit.host.fakes`` in tests.

Every method that runs a command returns ``Result`` rather than raising.

Design Notes:
    ``ContainerInfo`` is the engine-level view of a container (a plain
    dataclass). ``relaykit.provision.results.ContainerStatus`` is the
    reporting model built from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from relaykit.core.result import Result


@dataclass(frozen=True)
class CommandOutput:
    """Captured outcome of one host command."""

    args: tuple[str, ...]
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class ContainerInfo:
    """One row of the engine's container listing."""

    name: str
    status: str
    image: str
    container_id: str = ""

    @property
    def running(self) -> bool:
        return self.status.lower().startswith(("up", "running"))


@runtime_checkable
class ContainerEngine(Protocol):
    """Container-engine control surface (docker + compose plugin)."""

    def is_installed(self) -> bool: ...

    def compose_available(self) -> Result[CommandOutput]: ...

    def list_project_instances(self, manifest: Path) -> Result[list[str]]: ...

    def compose_up(
        self, manifest: Path, *, build: bool = False, remove_orphans: bool = False
    ) -> Result[CommandOutput]: ...

    def compose_down(self, manifest: Path, *, remove_orphans: bool = False) -> Result[CommandOutput]: ...

    def compose_restart(self, manifest: Path) -> Result[CommandOutput]: ...

    def list_containers(self) -> Result[list[ContainerInfo]]: ...


@runtime_checkable
class EngineInstaller(Protocol):
    """Installs the container engine through the vendor's mechanism."""

    def install_engine(self) -> Result[CommandOutput]: ...


@runtime_checkable
class PackageManager(Protocol):
    """Host package manager (apt on Raspberry Pi OS)."""

    def install(self, package: str) -> Result[CommandOutput]: ...


@runtime_checkable
class ServiceManager(Protocol):
    """Host init system (systemd)."""

    def enable(self, name: str) -> Result[CommandOutput]: ...

    def start(self, name: str) -> Result[CommandOutput]: ...


@runtime_checkable
class NetworkProbe(Protocol):
    """Single-attempt reachability check."""

    @property
    def target(self) -> str: ...

    def probe(self) -> bool: ...


@dataclass
class HostCollaborators:
    """Everything a provisioning run talks to, bundled for injection."""

    engine: ContainerEngine
    installer: EngineInstaller
    packages: PackageManager
    services: ServiceManager
    probe: NetworkProbe
