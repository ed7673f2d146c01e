"""
Result envelope for collaborator calls.

Every call relaykit makes into the host (package manager, init system,
container engine) returns ``Ok[T]`` or ``Err[T]`` instead of raising. The
provisioning steps decide what a failure means: they unwrap the value, or
promote the error to a step-specific exception with ``unwrap_or_raise``.

Examples:
    >>> from relaykit.core.result import Ok, Err
    >>> Ok(10).map(lambda x: x * 2).unwrap()
    20
    >>> Err(ValueError("oops")).map(lambda x: x * 2).unwrap_or(0)
    0

    Pattern matching:

    >>> match engine.compose_up(manifest):
    ...     case Ok(output):
    ...         print(output.stdout)
    ...     case Err(error):
    ...         print(error.stderr)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from relaykit.core.errors import CommandError, RelayError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value or default (always returns value for Ok)."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform error if Err (no-op for Ok)."""
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an error."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Get default since this is Err."""
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, RelayError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def unwrap_or_raise(
    result: Result[T],
    error_cls: type[CommandError] | None = None,
    *,
    step: str | None = None,
) -> T:
    """Return the value of ``result`` or raise its error.

    Command failures are promoted to ``error_cls`` (keeping command, exit
    code and stderr) and tagged with ``step``, so the caller sees which part
    of the run broke.
    """
    if isinstance(result, Ok):
        return result.value
    error = result.error
    if isinstance(error, CommandError) and error_cls is not None:
        raise error.rewrap(error_cls, step=step)
    if isinstance(error, RelayError) and step is not None:
        error.with_context(step=step)
    raise error


__all__ = ["Ok", "Err", "Result", "unwrap_or_raise"]
