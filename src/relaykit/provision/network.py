"""Network readiness gate.

At boot the relay host often comes up before its uplink: DHCP is still
negotiating or the Wi-Fi has not associated. Pulling images or reaching the
RTMP ingest before then fails, so the auto-setup run blocks here until one
ICMP echo to a well-known address succeeds.

The schedule is a ``RetryStrategy`` handed in at construction. The default
is ``ConstantBackoff(5.0)`` with no cap: the gate waits as long as it takes.
With a cap, exhaustion raises ``NetworkUnavailableError``.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from relaykit.core.errors import NetworkUnavailableError
from relaykit.core.logging import get_logger
from relaykit.core.retry import ConstantBackoff, RetryContext, RetryExhausted, RetryStrategy
from relaykit.host._types import NetworkProbe
from relaykit.provision.results import StepResult, StepStatus

logger = get_logger(__name__)

DEFAULT_PROBE_INTERVAL = 5.0


class NetworkGate:
    """Blocks until ``probe`` succeeds.

    Parameters
    ----------
    probe
        Single-attempt reachability check.
    strategy
        Retry schedule. Defaults to a fixed 5 s interval, forever.
    sleep
        Sleep function, replaced in tests.
    enabled
        When False the gate is a no-op and reports ``SKIPPED``.
    """

    name = "network"

    def __init__(
        self,
        probe: NetworkProbe,
        strategy: RetryStrategy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        enabled: bool = True,
    ) -> None:
        self.probe = probe
        self.strategy = strategy or ConstantBackoff(delay=DEFAULT_PROBE_INTERVAL)
        self.sleep = sleep
        self.enabled = enabled

    def wait(self) -> int:
        """Probe until reachable. Returns the number of probes it took."""
        ctx = RetryContext(self.strategy, on_retry=self._log_retry, sleep=self.sleep)
        try:
            attempts = ctx.poll(self.probe.probe)
        except RetryExhausted as exc:
            logger.error("network.unavailable", target=self.probe.target, attempts=exc.attempts)
            raise NetworkUnavailableError(self.probe.target, exc.attempts).with_context(
                step=self.name
            ) from exc
        logger.info(
            "network.ready",
            target=self.probe.target,
            attempts=attempts,
            waited_seconds=round(ctx.elapsed_seconds, 1),
        )
        return attempts

    def run(self) -> StepResult:
        if not self.enabled:
            return StepResult(name=self.name, status=StepStatus.SKIPPED, detail="network gate disabled")
        attempts = self.wait()
        return StepResult(
            name=self.name,
            detail=f"{self.probe.target} reachable after {attempts} attempt(s)",
        )

    def _log_retry(self, attempt: int, delay: float) -> None:
        logger.warning(
            "network.probe_failed",
            target=self.probe.target,
            attempt=attempt,
            retry_in=delay,
        )
