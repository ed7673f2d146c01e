"""Result models for a provisioning run.

A run produces one ``ProvisionResult``: the ordered ``StepResult`` of every
step that ran, the containers found running afterwards, and the overall
outcome. The CLI prints it as a table or dumps it with
``model_dump_json()`` for ``--json``.

``mark_complete()`` is called by the runner when the last step finishes (or
the first one fails). It stamps the completion time, computes the duration
and derives the overall status from the steps.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _now() -> str:
    return datetime.now(UTC).isoformat()


class OverallStatus(str, Enum):
    """Overall status of a run."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    RUNNING = "RUNNING"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class StepStatus(str, Enum):
    """Outcome of one provisioning step."""

    PASSED = "PASSED"
    SKIPPED = "SKIPPED"  # Nothing to do (already installed, gate disabled)
    FAILED = "FAILED"


class StepResult(BaseModel):
    """Outcome of one step of the bring-up sequence."""

    name: str
    status: StepStatus = StepStatus.PASSED
    detail: str = ""
    duration_seconds: float = 0.0
    error: str | None = None


class ContainerStatus(BaseModel):
    """One running container, as listed by the summary reporter."""

    name: str
    status: str
    image: str


class ProvisionResult(BaseModel):
    """Result of a full provisioning run."""

    run_id: str
    variant: str
    launch_policy: str
    manifest_path: str
    project_dir: str
    started_at: str = Field(default_factory=_now)
    completed_at: str | None = None
    duration_seconds: float = 0.0
    steps: list[StepResult] = Field(default_factory=list)
    containers: list[ContainerStatus] = Field(default_factory=list)
    overall_status: OverallStatus = OverallStatus.PENDING
    error: str | None = None
    error_type: str | None = None
    error_details: dict[str, Any] | None = None
    summary: str = ""

    @property
    def failed_step(self) -> StepResult | None:
        return next((s for s in self.steps if s.status == StepStatus.FAILED), None)

    def step(self, name: str) -> StepResult | None:
        return next((s for s in self.steps if s.name == name), None)

    def mark_complete(self, status: OverallStatus | None = None) -> None:
        """Mark run as complete, compute duration and status."""
        self.completed_at = _now()
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        self.duration_seconds = (end - start).total_seconds()

        if status:
            self.overall_status = status
        elif self.error or self.failed_step:
            self.overall_status = OverallStatus.FAILED
        else:
            self.overall_status = OverallStatus.PASSED

        done = sum(1 for s in self.steps if s.status != StepStatus.FAILED)
        self.summary = (
            f"{done}/{len(self.steps)} steps ok, "
            f"{len(self.containers)} container(s) running"
        )
