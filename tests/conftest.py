"""
Shared pytest fixtures for relaykit tests.

This module provides:
- Logging/env isolation between tests
- In-memory hosts (empty Pi, fully provisioned Pi) from ``relaykit.host.fakes``
- A project directory and manifest path under ``tmp_path``
- A recording sleep for the network gate

Nothing here needs Docker, apt, systemd or the network.
"""

import os
import sys
from pathlib import Path

import pytest
import structlog

# Ensure relaykit is importable without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from relaykit.host.fakes import FakeHost

STREAMS = {
    "stream1": "relay/rtsp-rtmp:1.4",
    "stream2": "relay/rtsp-rtmp:1.4",
}


class RecordingSleep:
    """Sleep replacement that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Reset structlog so a closed capture stream is never reused."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Drop any RELAYKIT_* variables from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("RELAYKIT_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Hosts
# =============================================================================


@pytest.fixture
def empty_host() -> FakeHost:
    """A fresh Pi: no docker, no compose plugin, daemon not running."""
    return FakeHost()


@pytest.fixture
def ready_host() -> FakeHost:
    """A Pi with docker and compose installed and the daemon running."""
    return FakeHost(
        docker_installed=True,
        compose_installed=True,
        daemon_enabled=True,
        daemon_running=True,
    )


# =============================================================================
# Filesystem
# =============================================================================


@pytest.fixture
def project_dir(tmp_path) -> Path:
    path = tmp_path / "rtsp_streams"
    path.mkdir()
    return path


@pytest.fixture
def manifest_path(project_dir) -> Path:
    """Where the manifest goes. Not created; use ``FakeHost.declare_manifest``."""
    return project_dir / "docker-compose.yml"


@pytest.fixture
def streams() -> dict[str, str]:
    return dict(STREAMS)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
