"""Provisioning: the bring-up sequence for an RTSP to RTMP relay host.

Steps, in order:

- ``DependencyInstaller``: docker and the compose plugin
- ``PreconditionChecker``: the compose manifest exists
- ``NetworkGate``: connectivity (auto-setup only)
- ``ServiceActivator``: systemd enable/start of the engine daemon
- ``CleanRestartLauncher`` / ``LightweightLauncher``: bring the containers up
- ``SummaryReporter``: what is running, and how to operate it

``ProvisionRunner`` runs them and returns a ``ProvisionResult``.
"""

from relaykit.provision.config import LaunchPolicy, ProvisionConfig, Variant
from relaykit.provision.installer import DependencyInstaller
from relaykit.provision.launcher import (
    CleanRestartLauncher,
    Launcher,
    LightweightLauncher,
    build_launcher,
)
from relaykit.provision.network import NetworkGate
from relaykit.provision.preconditions import PreconditionChecker, check_manifest
from relaykit.provision.reporter import SummaryReporter, operational_hints, render_summary
from relaykit.provision.results import (
    ContainerStatus,
    OverallStatus,
    ProvisionResult,
    StepResult,
    StepStatus,
)
from relaykit.provision.service import ServiceActivator
from relaykit.provision.workflow import ProvisionRunner

__all__ = [
    "CleanRestartLauncher",
    "ContainerStatus",
    "DependencyInstaller",
    "LaunchPolicy",
    "Launcher",
    "LightweightLauncher",
    "NetworkGate",
    "OverallStatus",
    "PreconditionChecker",
    "ProvisionConfig",
    "ProvisionResult",
    "ProvisionRunner",
    "ServiceActivator",
    "StepResult",
    "StepStatus",
    "SummaryReporter",
    "Variant",
    "build_launcher",
    "check_manifest",
    "operational_hints",
    "render_summary",
]
