"""Tests for relaykit.host.docker: command construction and output parsing."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from relaykit.core.errors import CommandError, EngineError
from relaykit.core.result import Err, Ok
from relaykit.host._types import CommandOutput
from relaykit.host.docker import DockerCliEngine, _parse_ps_lines, compose_project_name


@pytest.fixture
def runner():
    mock = MagicMock()
    mock.run.return_value = Ok(CommandOutput(args=("docker",)))
    return mock


class TestComposeProjectName:
    def test_lowercases_directory_name(self, tmp_path):
        manifest = tmp_path / "RTSP_Streams" / "docker-compose.yml"
        assert compose_project_name(manifest) == "rtsp_streams"

    def test_strips_disallowed_characters(self, tmp_path):
        manifest = tmp_path / "my relay.v2" / "docker-compose.yml"
        assert compose_project_name(manifest) == "myrelayv2"

    def test_empty_name_raises(self, tmp_path):
        manifest = tmp_path / "___" / "docker-compose.yml"
        with pytest.raises(EngineError):
            compose_project_name(manifest)


class TestComposeCommands:
    """Every compose call passes -f and runs in the manifest's directory."""

    def test_up_lightweight(self, runner, manifest_path):
        DockerCliEngine(runner).compose_up(manifest_path)
        runner.run.assert_called_once_with(
            ["docker", "compose", "-f", str(manifest_path), "up", "-d"],
            cwd=manifest_path.parent,
        )

    def test_up_clean(self, runner, manifest_path):
        DockerCliEngine(runner).compose_up(manifest_path, build=True, remove_orphans=True)
        args = runner.run.call_args.args[0]
        assert args[-4:] == ["up", "-d", "--build", "--remove-orphans"]

    def test_down_with_orphans(self, runner, manifest_path):
        DockerCliEngine(runner).compose_down(manifest_path, remove_orphans=True)
        args = runner.run.call_args.args[0]
        assert args[-2:] == ["down", "--remove-orphans"]
        assert runner.run.call_args.kwargs["cwd"] == manifest_path.parent

    def test_restart(self, runner, manifest_path):
        DockerCliEngine(runner).compose_restart(manifest_path)
        assert runner.run.call_args.args[0][-1] == "restart"

    def test_explicit_project_name(self, runner, manifest_path):
        DockerCliEngine(runner, project_name="relay").compose_up(manifest_path)
        args = runner.run.call_args.args[0]
        assert args[4:6] == ["--project-name", "relay"]

    def test_compose_available(self, runner):
        DockerCliEngine(runner).compose_available()
        runner.run.assert_called_once_with(["docker", "compose", "version"])

    def test_failure_is_returned_not_raised(self, runner, manifest_path):
        runner.run.return_value = Err(CommandError("exit 1", stderr="pull access denied"))
        result = DockerCliEngine(runner).compose_up(manifest_path)
        assert result.is_err()
        assert result.error.stderr == "pull access denied"


def _config(name: str | None) -> Ok:
    payload = {"services": {"stream1": {}}}
    if name is not None:
        payload["name"] = name
    return Ok(CommandOutput(args=("docker",), stdout=json.dumps(payload)))


class TestResolveProjectName:
    """The label filter uses the name Compose itself resolves."""

    def test_reads_name_from_compose_config(self, runner, manifest_path):
        runner.run.return_value = _config("relay")
        assert DockerCliEngine(runner).resolve_project_name(manifest_path).unwrap() == "relay"
        runner.run.assert_called_once_with(
            ["docker", "compose", "-f", str(manifest_path), "config", "--format", "json"],
            cwd=manifest_path.parent,
        )

    def test_explicit_name_skips_compose_config(self, runner, manifest_path):
        assert DockerCliEngine(runner, project_name="relay").resolve_project_name(manifest_path).unwrap() == "relay"
        runner.run.assert_not_called()

    def test_falls_back_to_directory_name(self, runner, manifest_path):
        runner.run.return_value = _config(None)
        assert DockerCliEngine(runner).resolve_project_name(manifest_path).unwrap() == "rtsp_streams"

    def test_unreadable_config_is_err(self, runner, manifest_path):
        runner.run.return_value = Ok(CommandOutput(args=("docker",), stdout="not json"))
        result = DockerCliEngine(runner).resolve_project_name(manifest_path)
        assert isinstance(result.error, EngineError)

    def test_config_failure_propagates(self, runner, manifest_path):
        runner.run.return_value = Err(CommandError("exit 15", stderr="yaml: line 3: did not find expected key"))
        result = DockerCliEngine(runner).resolve_project_name(manifest_path)
        assert result.error.stderr == "yaml: line 3: did not find expected key"


class TestListProjectInstances:
    def test_filters_on_project_label(self, runner, manifest_path):
        runner.run.side_effect = [
            _config("rtsp_streams"),
            Ok(CommandOutput(args=("docker",), stdout="stream1\nold_stream\n")),
        ]
        result = DockerCliEngine(runner).list_project_instances(manifest_path)

        assert result.unwrap() == ["stream1", "old_stream"]
        args = runner.run.call_args.args[0]
        assert args[:3] == ["docker", "ps", "--all"]
        assert "label=com.docker.compose.project=rtsp_streams" in args

    @patch.dict(os.environ, {"COMPOSE_PROJECT_NAME": "relay"})
    def test_project_name_differs_from_directory(self, runner, manifest_path):
        runner.run.side_effect = [_config("relay"), Ok(CommandOutput(args=("docker",), stdout="stream1\n"))]
        assert DockerCliEngine(runner).list_project_instances(manifest_path).unwrap() == ["stream1"]

        args = runner.run.call_args.args[0]
        assert "label=com.docker.compose.project=relay" in args
        assert "label=com.docker.compose.project=rtsp_streams" not in args

    def test_no_instances(self, runner, manifest_path):
        runner.run.side_effect = [_config("rtsp_streams"), Ok(CommandOutput(args=("docker",), stdout=""))]
        assert DockerCliEngine(runner).list_project_instances(manifest_path).unwrap() == []

    def test_underivable_project_is_err(self, runner, tmp_path):
        runner.run.return_value = _config(None)
        result = DockerCliEngine(runner).list_project_instances(tmp_path / "---" / "docker-compose.yml")
        assert result.is_err()
        assert runner.run.call_count == 1


class TestListContainers:
    def test_parses_json_lines(self, runner):
        lines = [
            {"Names": "stream1", "Status": "Up 2 minutes", "Image": "relay:1.4", "ID": "abc",
             "Labels": "com.docker.compose.project=rtsp_streams,com.docker.compose.service=stream1"},
            {"Names": "stream2", "Status": "Up 2 minutes", "Image": "relay:1.4", "ID": "def", "Labels": ""},
        ]
        stdout = "\n".join(json.dumps(line) for line in lines) + "\n"
        runner.run.return_value = Ok(CommandOutput(args=("docker",), stdout=stdout))

        containers = DockerCliEngine(runner).list_containers().unwrap()
        assert [c.name for c in containers] == ["stream1", "stream2"]
        assert containers[0].running
        runner.run.assert_called_once_with(["docker", "ps", "--format", "{{json .}}"])

    def test_skips_unparseable_lines(self):
        stdout = 'not json\n{"Names": "stream1", "State": "running", "Image": "relay"}\n'
        containers = _parse_ps_lines(stdout)
        assert len(containers) == 1
        assert containers[0].status == "running"

    def test_listing_failure_propagates(self, runner):
        runner.run.return_value = Err(CommandError("exit 1", stderr="Cannot connect to the Docker daemon"))
        assert DockerCliEngine(runner).list_containers().is_err()


class TestIsInstalled:
    def test_uses_path_lookup(self, runner, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda cmd: "/usr/bin/docker" if cmd == "docker" else None)
        assert DockerCliEngine(runner).is_installed() is True
        assert DockerCliEngine(runner, docker_cmd="podman").is_installed() is False
