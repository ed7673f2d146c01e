"""Service activator: enable the engine daemon at boot and start it now."""

from __future__ import annotations

from relaykit.core.errors import ServiceError
from relaykit.core.logging import get_logger
from relaykit.core.result import unwrap_or_raise
from relaykit.host._types import ServiceManager
from relaykit.provision.results import StepResult

logger = get_logger(__name__)


class ServiceActivator:
    name = "service"

    def __init__(self, services: ServiceManager, unit: str = "docker") -> None:
        self.services = services
        self.unit = unit

    def run(self) -> StepResult:
        # Both calls are idempotent on an already enabled, running unit.
        unwrap_or_raise(self.services.enable(self.unit), ServiceError, step=self.name)
        unwrap_or_raise(self.services.start(self.unit), ServiceError, step=self.name)
        logger.info("service.active", unit=self.unit)
        return StepResult(name=self.name, detail=f"{self.unit} enabled and started")
