"""Core primitives shared by every relaykit module: errors, results, retry, logging."""

from relaykit.core.errors import (
    CommandError,
    ConfigError,
    EngineError,
    ErrorCategory,
    ErrorContext,
    InstallError,
    MissingManifestError,
    NetworkUnavailableError,
    RelayError,
    ServiceError,
    TransientError,
)
from relaykit.core.result import Err, Ok, Result, unwrap_or_raise
from relaykit.core.retry import ConstantBackoff, RetryContext, RetryExhausted, RetryStrategy

__all__ = [
    "CommandError",
    "ConfigError",
    "EngineError",
    "ErrorCategory",
    "ErrorContext",
    "InstallError",
    "MissingManifestError",
    "NetworkUnavailableError",
    "RelayError",
    "ServiceError",
    "TransientError",
    "Err",
    "Ok",
    "Result",
    "unwrap_or_raise",
    "ConstantBackoff",
    "RetryContext",
    "RetryExhausted",
    "RetryStrategy",
]
