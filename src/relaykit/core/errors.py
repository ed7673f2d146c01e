"""
Structured error types for relaykit.

Every failure that can end a provisioning run is a ``RelayError``. Errors
carry a category, a retryable flag, a structured context (which step failed,
which command ran) and an optional chained cause, so the CLI can decide what
to print and the tests can assert on exactly which step broke.

Hierarchy::

    RelayError
    ├── ConfigError
    │   └── MissingManifestError      (user-actionable, has a remedy)
    ├── CommandError                  (collaborator command failed)
    │   ├── InstallError
    │   ├── ServiceError
    │   └── EngineError
    └── TransientError
        └── NetworkUnavailableError   (only when a probe cap is configured)

Usage:
    from relaykit.core.errors import EngineError

    raise EngineError(
        "docker compose up failed",
        command=["docker", "compose", "up", "-d"],
        returncode=1,
        stderr="no such image",
    ).with_context(step="launch")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    CONFIG = "CONFIG"  # Missing manifest, invalid settings
    INSTALL = "INSTALL"  # Package manager / vendor script
    SERVICE = "SERVICE"  # Host init system
    ENGINE = "ENGINE"  # Container engine / compose
    COMMAND = "COMMAND"  # Any other collaborator command
    NETWORK = "NETWORK"  # Reachability probe
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error."""

    step: str | None = None
    run_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["step", "run_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RelayError(Exception):
    """Base exception for all relaykit errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    @property
    def step(self) -> str | None:
        return self.context.step

    def with_context(self, **kwargs: Any) -> RelayError:
        """Add context to this error (fluent API).

        Usage:
            raise ServiceError("enable failed").with_context(step="service")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(RelayError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingManifestError(ConfigError):
    """The workload manifest is not where the run expects it.

    This is the one error an operator is expected to fix by hand, so it
    carries the remedy alongside the path.
    """

    def __init__(self, manifest_path: Path, project_dir: Path | None = None):
        self.manifest_path = Path(manifest_path)
        self.project_dir = Path(project_dir) if project_dir else self.manifest_path.parent
        self.remedy = (
            f"Please place your {self.manifest_path.name} in {self.project_dir} "
            "before running this command."
        )
        super().__init__(f"{self.manifest_path.name} not found in {self.project_dir}")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["manifest_path"] = str(self.manifest_path)
        result["remedy"] = self.remedy
        return result


# =============================================================================
# COLLABORATOR COMMAND ERRORS
# =============================================================================


class CommandError(RelayError):
    """A host command (package manager, systemctl, docker) failed.

    ``stderr`` holds the collaborator's own diagnostic text, unmodified.
    """

    default_category = ErrorCategory.COMMAND
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr

    def rewrap(self, error_cls: type[CommandError], *, step: str | None = None) -> CommandError:
        """Re-raise this failure as a step-specific subclass, keeping the details."""
        error = error_cls(
            self.message,
            command=self.command,
            returncode=self.returncode,
            stderr=self.stderr,
            cause=self,
        )
        error.context.metadata.update(self.context.metadata)
        if step is not None:
            error.with_context(step=step)
        return error

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.command:
            result["command"] = " ".join(self.command)
        if self.returncode is not None:
            result["returncode"] = self.returncode
        if self.stderr:
            result["stderr"] = self.stderr
        return result


class InstallError(CommandError):
    """Installing the engine or the compose plugin failed."""

    default_category = ErrorCategory.INSTALL


class ServiceError(CommandError):
    """Enabling or starting the engine daemon failed."""

    default_category = ErrorCategory.SERVICE


class EngineError(CommandError):
    """A container-engine operation failed."""

    default_category = ErrorCategory.ENGINE


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(RelayError):
    """Temporary condition that may clear on its own."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class NetworkUnavailableError(TransientError):
    """The reachability probe never succeeded within a configured cap."""

    def __init__(self, host: str, attempts: int):
        self.host = host
        self.attempts = attempts
        super().__init__(f"Network not reachable ({host}) after {attempts} attempts")


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, RelayError):
        return error.category
    if isinstance(error, (FileNotFoundError, PermissionError)):
        return ErrorCategory.COMMAND
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RelayError",
    "ConfigError",
    "MissingManifestError",
    "CommandError",
    "InstallError",
    "ServiceError",
    "EngineError",
    "TransientError",
    "NetworkUnavailableError",
    "categorize_error",
]
