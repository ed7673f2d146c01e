"""Tests for the relaykit CLI via CliRunner.

``build_host`` is patched to hand the commands an in-memory host, so no
command here touches Docker, apt or systemd.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from relaykit import __version__
from relaykit.cli.app import app
from relaykit.provision.workflow import ProvisionRunner

runner = CliRunner()


@pytest.fixture
def fake_host(ready_host, manifest_path, streams):
    """Provisioned host with the manifest in place, wired into the CLI."""
    ready_host.declare_manifest(manifest_path, streams)
    with patch("relaykit.cli.provision.build_host", return_value=ready_host.collaborators()) as mock_build:
        yield ready_host, mock_build


@pytest.fixture
def bare_host(empty_host):
    with patch("relaykit.cli.provision.build_host", return_value=empty_host.collaborators()) as mock_build:
        yield empty_host, mock_build


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"relaykit {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("provision", "status", "restart", "down"):
            assert command in result.output


class TestProvisionCommand:
    def test_success(self, fake_host, project_dir):
        host, _ = fake_host
        result = runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        assert "Setup complete" in result.output
        assert "stream1" in result.output
        assert "docker compose restart" in result.output
        assert host.running_names() == ["stream1", "stream2"]

    def test_manifest_option(self, fake_host, manifest_path):
        _, mock_build = fake_host
        result = runner.invoke(app, ["provision", "--manifest", str(manifest_path), "--log-level", "ERROR"])
        assert result.exit_code == 0, result.output
        config = mock_build.call_args.args[0]
        assert config.manifest_path == manifest_path

    def test_json_output(self, fake_host, project_dir):
        result = runner.invoke(
            app, ["provision", "--project-dir", str(project_dir), "--json", "--log-level", "ERROR"],
        )
        assert result.exit_code == 0, result.output
        assert '"overall_status": "PASSED"' in result.output
        assert '"name": "stream2"' in result.output
        assert "Setup complete" not in result.output

    def test_auto_variant_uses_clean_restart(self, fake_host, project_dir):
        host, mock_build = fake_host
        result = runner.invoke(
            app, ["provision", "--variant", "auto", "--project-dir", str(project_dir), "--log-level", "ERROR"],
        )
        assert result.exit_code == 0, result.output
        config = mock_build.call_args.args[0]
        assert config.launch_policy.value == "clean-restart"
        assert config.network_gate is True
        assert "list_project_instances" in host.operations()
        assert "probe" in host.operations()

    def test_flags_override_preset(self, fake_host, project_dir):
        host, mock_build = fake_host
        result = runner.invoke(app, [
            "provision", "--variant", "auto", "--project-dir", str(project_dir),
            "--policy", "lightweight", "--no-network-gate", "--no-sudo",
            "--probe-host", "1.1.1.1", "--log-level", "ERROR",
        ])
        assert result.exit_code == 0, result.output
        config = mock_build.call_args.args[0]
        assert config.launch_policy.value == "lightweight"
        assert config.network_gate is False
        assert config.use_sudo is False
        assert config.probe_host == "1.1.1.1"
        assert "probe" not in host.operations()

    def test_missing_manifest_exits_1_with_remedy(self, bare_host, tmp_path):
        host, _ = bare_host
        empty_dir = tmp_path / "nothing_here"
        empty_dir.mkdir()
        result = runner.invoke(app, ["provision", "--project-dir", str(empty_dir), "--log-level", "ERROR"])

        assert result.exit_code == 1
        assert "precondition failed" in result.output
        assert "not found" in result.output
        assert "Please place your" in result.output
        assert "compose_up" not in host.operations()

    def test_collaborator_stderr_printed_verbatim(self, fake_host, project_dir):
        host, _ = fake_host
        host.fail("compose_up", stderr="no space left on device")
        result = runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "ERROR"])

        assert result.exit_code == 1
        assert "launch failed" in result.output
        assert "no space left on device" in result.output

    def test_interrupt_exits_130(self, fake_host, project_dir):
        with patch.object(ProvisionRunner, "run", side_effect=KeyboardInterrupt):
            result = runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "ERROR"])
        assert result.exit_code == 130
        assert "Interrupted" in result.output

    def test_bad_log_level(self, fake_host, project_dir):
        result = runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "LOUD"])
        assert result.exit_code == 1
        assert "Unknown log level" in result.output

    def test_bad_env_config(self, fake_host, project_dir, monkeypatch):
        monkeypatch.setenv("RELAYKIT_PROBE_MAX_ATTEMPTS", "many")
        result = runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "ERROR"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_bad_variant_rejected_by_parser(self, fake_host):
        result = runner.invoke(app, ["provision", "--variant", "cloud"])
        assert result.exit_code != 0


class TestDayTwoCommands:
    def test_status(self, fake_host, project_dir):
        host, _ = fake_host
        runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "ERROR"])

        result = runner.invoke(app, ["status", "--project-dir", str(project_dir), "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        assert "Relay status" in result.output
        assert "stream2" in result.output

    def test_restart(self, fake_host, project_dir):
        host, _ = fake_host
        result = runner.invoke(app, ["restart", "--project-dir", str(project_dir), "--log-level", "ERROR"])
        assert result.exit_code == 0, result.output
        assert "Streams restarted" in result.output
        assert host.operations() == ["compose_restart"]

    def test_down(self, fake_host, project_dir):
        host, _ = fake_host
        runner.invoke(app, ["provision", "--project-dir", str(project_dir), "--log-level", "ERROR"])
        result = runner.invoke(app, ["down", "--project-dir", str(project_dir), "--log-level", "ERROR"])
        assert result.exit_code == 0, result.output
        assert "Streams stopped" in result.output
        assert host.running_names() == []

    def test_down_without_manifest(self, bare_host, tmp_path):
        result = runner.invoke(app, ["down", "--project-dir", str(tmp_path), "--log-level", "ERROR"])
        assert result.exit_code == 1
        assert "Please place your" in result.output
