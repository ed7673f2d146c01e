"""Host access: collaborator protocols, the subprocess-backed adapters, and fakes.

``build_host(config)`` wires the real adapters for a run. ``FakeHost`` is the
in-memory stand-in: build one and pass its ``collaborators()`` to run a
provisioning sequence without touching the machine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaykit.host._types import (
    CommandOutput,
    ContainerEngine,
    ContainerInfo,
    EngineInstaller,
    HostCollaborators,
    NetworkProbe,
    PackageManager,
    ServiceManager,
)
from relaykit.host.docker import DockerCliEngine, compose_project_name
from relaykit.host.fakes import FakeContainerEngine, FakeHost, FakeProbe
from relaykit.host.runner import CommandRunner
from relaykit.host.system import (
    AptPackageManager,
    ConvenienceScriptInstaller,
    PingProbe,
    SystemdServiceManager,
)

if TYPE_CHECKING:
    from relaykit.provision.config import ProvisionConfig


def build_host(config: ProvisionConfig) -> HostCollaborators:
    """Real collaborators for ``config``, all sharing one ``CommandRunner``."""
    runner = CommandRunner(use_sudo=config.use_sudo, timeout=config.command_timeout_seconds)
    return HostCollaborators(
        engine=DockerCliEngine(runner),
        installer=ConvenienceScriptInstaller(runner, script_url=config.install_script_url),
        packages=AptPackageManager(runner),
        services=SystemdServiceManager(runner),
        probe=PingProbe(runner, host=config.probe_host, timeout_seconds=config.probe_timeout_seconds),
    )


__all__ = [
    "AptPackageManager",
    "CommandOutput",
    "CommandRunner",
    "ContainerEngine",
    "ContainerInfo",
    "ConvenienceScriptInstaller",
    "DockerCliEngine",
    "EngineInstaller",
    "FakeContainerEngine",
    "FakeHost",
    "FakeProbe",
    "HostCollaborators",
    "NetworkProbe",
    "PackageManager",
    "PingProbe",
    "ServiceManager",
    "SystemdServiceManager",
    "build_host",
    "compose_project_name",
]
