"""Provisioning workflow: run the bring-up sequence and record what happened.

``ProvisionRunner.run()`` executes, strictly in order::

    install -> precondition -> network -> service -> launch -> report

The first step that raises ends the run. That step is recorded as
``FAILED`` with the error, later steps are not attempted, and the result is
marked ``FAILED``. Errors are re-raised only with ``raise_on_error=True``;
by default the caller inspects ``ProvisionResult`` (and ``last_error`` for
the full exception, e.g. to print a collaborator's stderr verbatim).

The same runner drives the day-2 commands (``status``, ``restart``,
``down``), each a short sequence that starts with the precondition check.

Example::

    config = ProvisionConfig.auto_setup()
    result = ProvisionRunner(config).run()
    if result.overall_status != OverallStatus.PASSED:
        ...
"""

from __future__ import annotations

import time
from collections.abc import Callable

from relaykit.core.errors import EngineError, RelayError, categorize_error
from relaykit.core.logging import LogContext, get_logger
from relaykit.core.result import unwrap_or_raise
from relaykit.core.retry import RetryStrategy
from relaykit.host import HostCollaborators, build_host
from relaykit.provision.config import ProvisionConfig
from relaykit.provision.installer import DependencyInstaller
from relaykit.provision.launcher import build_launcher
from relaykit.provision.network import NetworkGate
from relaykit.provision.preconditions import PreconditionChecker
from relaykit.provision.reporter import SummaryReporter
from relaykit.provision.results import OverallStatus, ProvisionResult, StepResult, StepStatus
from relaykit.provision.service import ServiceActivator

logger = get_logger(__name__)

Step = tuple[str, Callable[[], StepResult]]


class ProvisionRunner:
    """Orchestrates a provisioning run against injected host collaborators.

    Parameters
    ----------
    config
        Run configuration (usually a preset).
    host
        Collaborators to talk to. Built from ``config`` with the real
        subprocess adapters when not given.
    strategy
        Retry schedule for the network gate. Derived from the config's probe
        settings when not given.
    sleep
        Sleep function used by the network gate.
    raise_on_error
        Re-raise the failing step's error after recording it.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        host: HostCollaborators | None = None,
        *,
        strategy: RetryStrategy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        raise_on_error: bool = False,
    ) -> None:
        self.config = config
        self.host = host or build_host(config)
        self.strategy = strategy or config.retry_policy()
        self.sleep = sleep
        self.raise_on_error = raise_on_error
        self.last_error: Exception | None = None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def run(self) -> ProvisionResult:
        """Full bring-up sequence."""
        result = self._new_result()
        manifest = self.config.manifest_path
        engine = self.host.engine
        reporter = SummaryReporter(engine)

        installer = DependencyInstaller(
            engine, self.host.installer, self.host.packages, self.config.compose_package
        )
        gate = NetworkGate(
            self.host.probe,
            strategy=self.strategy,
            sleep=self.sleep,
            enabled=self.config.network_gate,
        )
        launcher = build_launcher(self.config.launch_policy, engine)

        return self._execute(result, "provision", [
            (installer.name, installer.run),
            self._precondition_step(),
            (gate.name, gate.run),
            (ServiceActivator.name, ServiceActivator(self.host.services, self.config.docker_service).run),
            (launcher.name, lambda: launcher.run(manifest)),
            (reporter.name, lambda: reporter.run(result)),
        ])

    def status(self) -> ProvisionResult:
        """Precondition check and container listing only."""
        result = self._new_result()
        reporter = SummaryReporter(self.host.engine)
        return self._execute(result, "status", [
            self._precondition_step(),
            (reporter.name, lambda: reporter.run(result)),
        ])

    def restart(self) -> ProvisionResult:
        """``docker compose restart`` for the manifest's project."""
        return self._execute(self._new_result(), "restart", [
            self._precondition_step(),
            ("restart", self._compose_step("restart", self.host.engine.compose_restart)),
        ])

    def down(self) -> ProvisionResult:
        """``docker compose down`` for the manifest's project."""
        return self._execute(self._new_result(), "down", [
            self._precondition_step(),
            ("down", self._compose_step("down", self.host.engine.compose_down)),
        ])

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _precondition_step(self) -> Step:
        checker = PreconditionChecker(self.config.manifest_path, self.config.project_dir)
        return checker.name, checker.run

    def _compose_step(self, name: str, call: Callable) -> Callable[[], StepResult]:
        def step() -> StepResult:
            unwrap_or_raise(call(self.config.manifest_path), EngineError, step=name)
            return StepResult(name=name, detail=f"docker compose {name}")

        return step

    def _new_result(self) -> ProvisionResult:
        return ProvisionResult(
            run_id=self.config.run_id,
            variant=self.config.variant.value,
            launch_policy=self.config.launch_policy.value,
            manifest_path=str(self.config.manifest_path),
            project_dir=str(self.config.project_dir),
        )

    def _execute(self, result: ProvisionResult, operation: str, steps: list[Step]) -> ProvisionResult:
        self.last_error = None
        result.overall_status = OverallStatus.RUNNING

        with LogContext(run_id=self.config.run_id, variant=self.config.variant.value, operation=operation):
            logger.info("run.started", manifest=result.manifest_path, policy=result.launch_policy)
            for name, call in steps:
                started = time.monotonic()
                try:
                    step_result = call()
                except KeyboardInterrupt:
                    result.steps.append(StepResult(
                        name=name,
                        status=StepStatus.FAILED,
                        duration_seconds=time.monotonic() - started,
                        error="interrupted",
                    ))
                    result.error = "interrupted"
                    result.mark_complete(OverallStatus.CANCELLED)
                    logger.warning("run.cancelled", step=name)
                    raise
                except Exception as exc:
                    self._record_failure(result, name, exc, time.monotonic() - started)
                    break
                step_result.duration_seconds = time.monotonic() - started
                result.steps.append(step_result)
                logger.info("step.completed", step=name, status=step_result.status.value)

            result.mark_complete()
            logger.info("run.completed", status=result.overall_status.value, summary=result.summary)

        if self.raise_on_error and self.last_error is not None:
            raise self.last_error
        return result

    def _record_failure(self, result: ProvisionResult, name: str, exc: Exception, duration: float) -> None:
        self.last_error = exc
        if isinstance(exc, RelayError):
            if exc.step is None:
                exc.with_context(step=name)
            exc.with_context(run_id=self.config.run_id)
            result.error_details = exc.to_dict()
            logger.error("step.failed", step=name, error_type=type(exc).__name__, error=exc.message)
        else:
            logger.exception(
                "step.crashed",
                step=name,
                error_type=type(exc).__name__,
                category=categorize_error(exc).value,
            )
        result.steps.append(StepResult(
            name=name,
            status=StepStatus.FAILED,
            duration_seconds=duration,
            error=str(exc),
        ))
        result.error = str(exc)
        result.error_type = type(exc).__name__
