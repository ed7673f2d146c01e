"""Host-side adapters: vendor installer, apt, systemd and the ICMP probe.

Each adapter is a thin command builder over ``CommandRunner``; none of them
decide what a failure means. That is the provisioning step's job.
"""

from __future__ import annotations

import os
import tempfile
import urllib.error
import urllib.request
from pathlib import Path

from relaykit.core.errors import CommandError
from relaykit.core.logging import get_logger
from relaykit.core.result import Err, Result
from relaykit.host._types import CommandOutput
from relaykit.host.runner import CommandRunner

logger = get_logger(__name__)

DEFAULT_INSTALL_SCRIPT_URL = "https://get.docker.com"


class ConvenienceScriptInstaller:
    """Installs Docker with the vendor's convenience script.

    Downloads the script to a temporary file, runs it with ``sh`` and
    removes the file afterwards, whether or not the install succeeded.
    """

    def __init__(
        self,
        runner: CommandRunner,
        script_url: str = DEFAULT_INSTALL_SCRIPT_URL,
        download_timeout: float = 60,
    ) -> None:
        self.runner = runner
        self.script_url = script_url
        self.download_timeout = download_timeout

    def install_engine(self) -> Result[CommandOutput]:
        fd, script_name = tempfile.mkstemp(prefix="get-docker-", suffix=".sh")
        script_path = Path(script_name)
        try:
            try:
                with os.fdopen(fd, "wb") as fh:
                    with urllib.request.urlopen(self.script_url, timeout=self.download_timeout) as response:
                        fh.write(response.read())
            except (urllib.error.URLError, OSError) as exc:
                return Err(CommandError(
                    f"Could not download {self.script_url}: {exc}",
                    command=["download", self.script_url],
                    stderr=str(exc),
                    cause=exc,
                ))
            logger.info("installer.script_downloaded", url=self.script_url, path=str(script_path))
            return self.runner.run(["sh", str(script_path)])
        finally:
            script_path.unlink(missing_ok=True)


class AptPackageManager:
    """``PackageManager`` for Debian-family hosts (Raspberry Pi OS)."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def install(self, package: str) -> Result[CommandOutput]:
        return self.runner.run(["apt-get", "install", "-y", package], privileged=True)


class SystemdServiceManager:
    """``ServiceManager`` backed by ``systemctl``."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def enable(self, name: str) -> Result[CommandOutput]:
        return self.runner.run(["systemctl", "enable", name], privileged=True)

    def start(self, name: str) -> Result[CommandOutput]:
        return self.runner.run(["systemctl", "start", name], privileged=True)


class PingProbe:
    """One ICMP echo to a fixed host per ``probe()`` call."""

    def __init__(self, runner: CommandRunner, host: str = "8.8.8.8", timeout_seconds: int = 2) -> None:
        self.runner = runner
        self.host = host
        self.timeout_seconds = timeout_seconds

    @property
    def target(self) -> str:
        return self.host

    def probe(self) -> bool:
        result = self.runner.run(
            ["ping", "-c", "1", "-W", str(self.timeout_seconds), self.host],
            timeout=self.timeout_seconds + 5,
        )
        if isinstance(result, Err):
            logger.debug(
                "network.ping_failed",
                target=self.host,
                returncode=getattr(result.error, "returncode", None),
                stderr=getattr(result.error, "stderr", ""),
                reason=str(result.error),
            )
            return False
        return True
