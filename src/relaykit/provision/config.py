"""Configuration for a provisioning run.

``ProvisionConfig`` says where the compose manifest lives, which launch
policy to apply, and whether to wait for the network first. The two ways
the relay host is brought up are explicit presets rather than flags
sprinkled through the code:

    auto-setup
        Runs at boot from the project directory (``WorkingDirectory=`` of the
        unit), waits for the network, and does a clean restart so stale
        containers from a previous manifest never survive a reboot.
    fixed-path
        Run by hand against ``/home/rtsp_streams/docker-compose.yml``, no
        network wait, and a lightweight ``up -d`` that lets Compose keep
        containers that are already correct.

Every field can be overridden through ``RELAYKIT_*`` environment variables
via ``from_env()``. Precedence: keyword overrides > env vars > preset
defaults.

Example::

    config = ProvisionConfig.auto_setup(project_dir=Path("/opt/relay"))
    config.manifest_path   # /opt/relay/docker-compose.yml
"""

from __future__ import annotations

import os
import uuid
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from relaykit.core.errors import ConfigError
from relaykit.core.retry import ConstantBackoff

FIXED_PROJECT_DIR = Path("/home/rtsp_streams")
DEFAULT_MANIFEST_NAME = "docker-compose.yml"


class Variant(str, Enum):
    """Provisioning preset."""

    AUTO = "auto"  # Boot-time, network gate, clean restart
    FIXED = "fixed"  # Manual, fixed path, lightweight start


class LaunchPolicy(str, Enum):
    """How containers are brought up."""

    CLEAN_RESTART = "clean-restart"  # down --remove-orphans, then up --build
    LIGHTWEIGHT = "lightweight"  # up -d, Compose reconciles


_PRESETS: dict[Variant, dict[str, Any]] = {
    Variant.AUTO: {
        "launch_policy": LaunchPolicy.CLEAN_RESTART,
        "network_gate": True,
    },
    Variant.FIXED: {
        "project_dir": FIXED_PROJECT_DIR,
        "launch_policy": LaunchPolicy.LIGHTWEIGHT,
        "network_gate": False,
    },
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"expected one of {', '.join(_TRUE_VALUES + _FALSE_VALUES)}")


class ProvisionConfig(BaseModel):
    """Configuration for one provisioning run.

    Prefer the presets (``auto_setup()``, ``fixed_path()``) or
    ``from_env()``; building the model directly gives the fixed-path
    defaults.
    """

    variant: Variant = Field(default=Variant.FIXED, description="Provisioning preset")

    # Manifest
    project_dir: Path = Field(
        default=FIXED_PROJECT_DIR,
        description="Directory holding the compose manifest",
    )
    manifest_name: str = Field(
        default=DEFAULT_MANIFEST_NAME,
        description="File name of the compose manifest inside project_dir",
    )

    # Launch
    launch_policy: LaunchPolicy = Field(
        default=LaunchPolicy.LIGHTWEIGHT,
        description="clean-restart or lightweight",
    )

    # Network readiness gate
    network_gate: bool = Field(default=False, description="Wait for connectivity before launch")
    probe_host: str = Field(default="8.8.8.8", description="Address pinged by the network gate")
    probe_interval_seconds: float = Field(default=5.0, ge=0, description="Fixed delay between probes")
    probe_max_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Give up after this many probes (None waits forever)",
    )
    probe_timeout_seconds: int = Field(default=2, ge=1, description="Per-probe ping timeout")

    # Host
    use_sudo: bool = Field(default=True, description="Prefix apt-get/systemctl with sudo when not root")
    command_timeout_seconds: float = Field(default=900, gt=0, description="Per-command timeout")
    docker_service: str = Field(default="docker", description="systemd unit of the engine daemon")
    compose_package: str = Field(default="docker-compose-plugin", description="apt package for compose")
    install_script_url: str = Field(default="https://get.docker.com", description="Vendor install script")

    # Internal
    run_id: str = Field(default="", description="Unique run identifier (auto-generated)")

    @field_validator("manifest_name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError(f"manifest_name must be a bare file name, got {value!r}")
        return value

    @model_validator(mode="after")
    def _set_defaults(self) -> ProvisionConfig:
        if not self.run_id:
            self.run_id = uuid.uuid4().hex[:12]
        return self

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / self.manifest_name

    def retry_policy(self) -> ConstantBackoff:
        """Probe schedule for the network gate.

        ``probe_max_attempts`` counts probes, the strategy counts retries
        after the first one.
        """
        max_retries = None if self.probe_max_attempts is None else self.probe_max_attempts - 1
        return ConstantBackoff(delay=self.probe_interval_seconds, max_retries=max_retries)

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    @classmethod
    def for_variant(cls, variant: Variant | str, **overrides: Any) -> ProvisionConfig:
        """Build the preset for ``variant`` with ``overrides`` applied on top."""
        try:
            variant = Variant(variant)
        except ValueError as exc:
            raise ConfigError(
                f"Unknown variant {variant!r} (expected one of: "
                f"{', '.join(v.value for v in Variant)})",
                cause=exc,
            ) from exc
        values: dict[str, Any] = {"variant": variant, **_PRESETS[variant]}
        if variant is Variant.AUTO:
            values["project_dir"] = Path.cwd()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def auto_setup(cls, **overrides: Any) -> ProvisionConfig:
        """Boot-time preset: cwd manifest, network gate, clean restart."""
        return cls.for_variant(Variant.AUTO, **overrides)

    @classmethod
    def fixed_path(cls, **overrides: Any) -> ProvisionConfig:
        """Manual preset: /home/rtsp_streams manifest, no gate, lightweight start."""
        return cls.for_variant(Variant.FIXED, **overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> ProvisionConfig:
        """Create config from RELAYKIT_* environment variables.

        ``RELAYKIT_VARIANT`` (or a ``variant`` override) picks the preset;
        the remaining variables and overrides are applied on top of it.
        """
        env_map = {
            "variant": "RELAYKIT_VARIANT",
            "project_dir": "RELAYKIT_PROJECT_DIR",
            "manifest_name": "RELAYKIT_MANIFEST_NAME",
            "launch_policy": "RELAYKIT_LAUNCH_POLICY",
            "network_gate": "RELAYKIT_NETWORK_GATE",
            "probe_host": "RELAYKIT_PROBE_HOST",
            "probe_interval_seconds": "RELAYKIT_PROBE_INTERVAL",
            "probe_max_attempts": "RELAYKIT_PROBE_MAX_ATTEMPTS",
            "use_sudo": "RELAYKIT_USE_SUDO",
            "command_timeout_seconds": "RELAYKIT_COMMAND_TIMEOUT",
        }
        values: dict[str, Any] = {}
        for field_name, env_var in env_map.items():
            env_val = os.environ.get(env_var)
            if env_val is None or env_val == "":
                continue
            try:
                if field_name in ("network_gate", "use_sudo"):
                    values[field_name] = _parse_bool(env_val)
                elif field_name == "probe_max_attempts":
                    values[field_name] = int(env_val)
                elif field_name in ("probe_interval_seconds", "command_timeout_seconds"):
                    values[field_name] = float(env_val)
                else:
                    values[field_name] = env_val
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {env_var}: {env_val!r}", cause=exc) from exc
        values.update({k: v for k, v in overrides.items() if v is not None})
        variant = values.pop("variant", Variant.FIXED)
        return cls.for_variant(variant, **values)
