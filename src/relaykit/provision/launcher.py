"""Workload launcher: bring up the containers declared in the manifest.

Two policies, kept as separate classes and chosen by ``build_launcher``:

``CleanRestartLauncher``
    Tear down whatever the manifest's project is running (orphans included),
    then ``up -d --build --remove-orphans``. Nothing from a previous manifest
    survives, and images with a local build context are rebuilt.

``LightweightLauncher``
    ``up -d`` and nothing else. Compose leaves containers that already match
    the manifest alone, so a second run is close to a no-op.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from relaykit.core.errors import ConfigError, EngineError
from relaykit.core.logging import get_logger
from relaykit.core.result import unwrap_or_raise
from relaykit.host._types import ContainerEngine
from relaykit.provision.config import LaunchPolicy
from relaykit.provision.results import StepResult

logger = get_logger(__name__)


class Launcher(ABC):
    """Base class for launch policies."""

    name = "launch"
    policy: LaunchPolicy

    def __init__(self, engine: ContainerEngine) -> None:
        self.engine = engine

    @abstractmethod
    def launch(self, manifest: Path) -> str:
        """Bring the manifest's containers up. Returns a one-line detail."""
        ...

    def run(self, manifest: Path) -> StepResult:
        detail = self.launch(manifest)
        logger.info("launcher.up", policy=self.policy.value, manifest=str(manifest))
        return StepResult(name=self.name, detail=detail)


class CleanRestartLauncher(Launcher):
    """down --remove-orphans (only if something is there), then up --build."""

    policy = LaunchPolicy.CLEAN_RESTART

    def launch(self, manifest: Path) -> str:
        instances = unwrap_or_raise(
            self.engine.list_project_instances(manifest), EngineError, step=self.name
        )
        if instances:
            logger.info("launcher.teardown", instances=instances)
            unwrap_or_raise(
                self.engine.compose_down(manifest, remove_orphans=True), EngineError, step=self.name
            )
        else:
            logger.info("launcher.teardown_skipped", reason="no existing instances")

        unwrap_or_raise(
            self.engine.compose_up(manifest, build=True, remove_orphans=True),
            EngineError,
            step=self.name,
        )
        if instances:
            return f"removed {len(instances)} existing container(s), rebuilt and started"
        return "rebuilt and started"


class LightweightLauncher(Launcher):
    """up -d, letting Compose keep containers that already match."""

    policy = LaunchPolicy.LIGHTWEIGHT

    def launch(self, manifest: Path) -> str:
        unwrap_or_raise(self.engine.compose_up(manifest), EngineError, step=self.name)
        return "started (existing containers kept)"


_LAUNCHERS: dict[LaunchPolicy, type[Launcher]] = {
    LaunchPolicy.CLEAN_RESTART: CleanRestartLauncher,
    LaunchPolicy.LIGHTWEIGHT: LightweightLauncher,
}


def build_launcher(policy: LaunchPolicy | str, engine: ContainerEngine) -> Launcher:
    """Launcher for ``policy``."""
    try:
        policy = LaunchPolicy(policy)
    except ValueError as exc:
        raise ConfigError(
            f"Unknown launch policy {policy!r} (expected one of: "
            f"{', '.join(p.value for p in LaunchPolicy)})",
            cause=exc,
        ) from exc
    return _LAUNCHERS[policy](engine)
