"""Tests for ProvisionConfig presets and env overrides."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from relaykit.core.errors import ConfigError
from relaykit.provision.config import LaunchPolicy, ProvisionConfig, Variant


class TestDefaults:
    def test_defaults_are_fixed_path(self):
        config = ProvisionConfig()
        assert config.variant == Variant.FIXED
        assert config.manifest_path == Path("/home/rtsp_streams/docker-compose.yml")
        assert config.launch_policy == LaunchPolicy.LIGHTWEIGHT
        assert config.network_gate is False
        assert config.probe_host == "8.8.8.8"
        assert config.probe_interval_seconds == 5.0
        assert config.probe_max_attempts is None
        assert config.use_sudo is True

    def test_run_id_auto_generated(self):
        c1 = ProvisionConfig()
        c2 = ProvisionConfig()
        assert c1.run_id != c2.run_id
        assert len(c1.run_id) == 12

    def test_manifest_name_must_be_bare(self):
        with pytest.raises(ValidationError):
            ProvisionConfig(manifest_name="sub/docker-compose.yml")


class TestPresets:
    def test_auto_setup(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ProvisionConfig.auto_setup()
        assert config.variant == Variant.AUTO
        assert config.project_dir == Path.cwd()
        assert config.launch_policy == LaunchPolicy.CLEAN_RESTART
        assert config.network_gate is True

    def test_fixed_path(self):
        config = ProvisionConfig.fixed_path()
        assert config.variant == Variant.FIXED
        assert config.project_dir == Path("/home/rtsp_streams")
        assert config.launch_policy == LaunchPolicy.LIGHTWEIGHT
        assert config.network_gate is False

    def test_overrides_win_over_preset(self, tmp_path):
        config = ProvisionConfig.auto_setup(
            project_dir=tmp_path,
            launch_policy=LaunchPolicy.LIGHTWEIGHT,
            network_gate=False,
        )
        assert config.project_dir == tmp_path
        assert config.launch_policy == LaunchPolicy.LIGHTWEIGHT
        assert config.network_gate is False

    def test_none_overrides_are_ignored(self):
        config = ProvisionConfig.auto_setup(network_gate=None, launch_policy=None)
        assert config.network_gate is True
        assert config.launch_policy == LaunchPolicy.CLEAN_RESTART

    def test_unknown_variant(self):
        with pytest.raises(ConfigError, match="Unknown variant"):
            ProvisionConfig.for_variant("cloud")


class TestRetryPolicy:
    def test_unbounded_by_default(self):
        policy = ProvisionConfig.auto_setup().retry_policy()
        assert policy.delay == 5.0
        assert policy.unbounded

    def test_max_attempts_counts_probes(self):
        policy = ProvisionConfig(probe_max_attempts=3, probe_interval_seconds=1).retry_policy()
        assert policy.max_retries == 2
        assert policy.delay == 1


class TestFromEnv:
    @patch.dict(os.environ, {
        "RELAYKIT_VARIANT": "auto",
        "RELAYKIT_PROJECT_DIR": "/opt/relay",
        "RELAYKIT_PROBE_HOST": "1.1.1.1",
        "RELAYKIT_PROBE_INTERVAL": "2.5",
        "RELAYKIT_PROBE_MAX_ATTEMPTS": "4",
        "RELAYKIT_USE_SUDO": "false",
        "RELAYKIT_COMMAND_TIMEOUT": "120",
    })
    def test_reads_env(self):
        config = ProvisionConfig.from_env()
        assert config.variant == Variant.AUTO
        assert config.project_dir == Path("/opt/relay")
        assert config.launch_policy == LaunchPolicy.CLEAN_RESTART
        assert config.probe_host == "1.1.1.1"
        assert config.probe_interval_seconds == 2.5
        assert config.probe_max_attempts == 4
        assert config.use_sudo is False
        assert config.command_timeout_seconds == 120

    @patch.dict(os.environ, {"RELAYKIT_LAUNCH_POLICY": "clean-restart", "RELAYKIT_NETWORK_GATE": "yes"})
    def test_env_over_preset(self):
        config = ProvisionConfig.from_env()
        assert config.variant == Variant.FIXED
        assert config.launch_policy == LaunchPolicy.CLEAN_RESTART
        assert config.network_gate is True

    @patch.dict(os.environ, {"RELAYKIT_PROBE_HOST": "1.1.1.1"})
    def test_overrides_win_over_env(self):
        assert ProvisionConfig.from_env(probe_host="9.9.9.9").probe_host == "9.9.9.9"

    @patch.dict(os.environ, {"RELAYKIT_PROBE_MAX_ATTEMPTS": "many"})
    def test_bad_number(self):
        with pytest.raises(ConfigError, match="RELAYKIT_PROBE_MAX_ATTEMPTS"):
            ProvisionConfig.from_env()

    @patch.dict(os.environ, {"RELAYKIT_NETWORK_GATE": "ture"})
    def test_bad_boolean(self):
        with pytest.raises(ConfigError, match="RELAYKIT_NETWORK_GATE"):
            ProvisionConfig.from_env()

    @patch.dict(os.environ, {"RELAYKIT_USE_SUDO": "Off"})
    def test_boolean_off(self):
        assert ProvisionConfig.from_env().use_sudo is False

    @patch.dict(os.environ, {"RELAYKIT_VARIANT": "cloud"})
    def test_bad_variant(self):
        with pytest.raises(ConfigError):
            ProvisionConfig.from_env()
