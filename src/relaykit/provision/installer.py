"""Dependency installer: make sure the engine and the compose plugin exist.

Both checks are cheap and both installs are expensive, so each component is
installed only when its check fails. On a host that already has both, the
step performs no install action at all and reports ``SKIPPED``.
"""

from __future__ import annotations

from relaykit.core.errors import InstallError
from relaykit.core.logging import get_logger
from relaykit.core.result import unwrap_or_raise
from relaykit.host._types import ContainerEngine, EngineInstaller, PackageManager
from relaykit.provision.results import StepResult, StepStatus

logger = get_logger(__name__)


class DependencyInstaller:
    """Installs Docker (vendor script) and the compose plugin (package manager)."""

    name = "install"

    def __init__(
        self,
        engine: ContainerEngine,
        installer: EngineInstaller,
        packages: PackageManager,
        compose_package: str = "docker-compose-plugin",
    ) -> None:
        self.engine = engine
        self.installer = installer
        self.packages = packages
        self.compose_package = compose_package

    def run(self) -> StepResult:
        installed: list[str] = []

        if self.engine.is_installed():
            logger.info("installer.skipped", component="docker", reason="already installed")
        else:
            logger.info("installer.installing", component="docker")
            unwrap_or_raise(self.installer.install_engine(), InstallError, step=self.name)
            installed.append("docker")

        if self.engine.compose_available().is_ok():
            logger.info("installer.skipped", component="compose", reason="already installed")
        else:
            logger.info("installer.installing", component="compose", package=self.compose_package)
            unwrap_or_raise(self.packages.install(self.compose_package), InstallError, step=self.name)
            installed.append(self.compose_package)

        if not installed:
            return StepResult(
                name=self.name,
                status=StepStatus.SKIPPED,
                detail="docker and compose plugin already installed",
            )
        return StepResult(name=self.name, detail=f"installed: {', '.join(installed)}")
