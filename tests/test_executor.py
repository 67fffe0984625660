"""Tests for sandbox executors."""

import os
from unittest.mock import MagicMock, patch

import pytest

from uigen.errors import ExecutionError, SandboxResourceError, SandboxTimeout
from uigen.sandbox.executor import (
    NODE_IMAGE,
    DockerExecutor,
    IsolateExecutor,
    get_executor,
)


class TestIsolateExecutor:
    def test_returns_program_text(self):
        assert IsolateExecutor().run('JSON.stringify({a: [1, 2]})') == '{"a":[1,2]}'

    def test_fresh_isolate_per_run(self):
        executor = IsolateExecutor()
        executor.run("var leaked = 'x'; '1'")
        assert executor.run("typeof leaked") == "undefined"

    def test_no_host_objects(self):
        out = IsolateExecutor().run(
            "[typeof require, typeof process, typeof fetch, typeof XMLHttpRequest].join(',')"
        )
        assert out == "undefined,undefined,undefined,undefined"

    def test_timeout(self):
        with pytest.raises(SandboxTimeout, match="200 ms"):
            IsolateExecutor().run("while (true) {}", timeout_ms=200)

    def test_uncaught_error(self):
        with pytest.raises(ExecutionError):
            IsolateExecutor().run("throw new Error('outside')")

    def test_non_string_result(self):
        with pytest.raises(ExecutionError, match="expected JSON text"):
            IsolateExecutor().run("42")


class TestDockerExecutor:
    def _client(self, exit_code=0, stdout=b'{"status":"ok"}', stderr=b""):
        client = MagicMock()
        container = MagicMock()
        container.wait.return_value = {"StatusCode": exit_code}

        def logs(stdout=True, stderr=False):
            return stdout_bytes if stdout else stderr_bytes

        stdout_bytes, stderr_bytes = stdout, stderr
        container.logs.side_effect = logs
        client.containers.run.return_value = container
        return client, container

    def _run(self, client, **kwargs):
        with patch("uigen.sandbox.executor.DOCKER_AVAILABLE", True), \
                patch("uigen.sandbox.executor.docker") as docker_mod:
            docker_mod.from_env.return_value = client
            return DockerExecutor().run("'{}'", **kwargs)

    def test_success_returns_stdout(self):
        client, container = self._client()
        seen = {}

        def run(**kwargs):
            host_dir = next(iter(kwargs["volumes"]))
            with open(os.path.join(host_dir, "render.js"), encoding="utf-8") as f:
                seen["script"] = f.read()
            seen["kwargs"] = kwargs
            return container

        client.containers.run.side_effect = run
        assert self._run(client, timeout_ms=2500, max_memory=64 * 1024 * 1024) == '{"status":"ok"}'

        kwargs = seen["kwargs"]
        assert seen["script"] == "process.stdout.write('{}');\n"
        assert kwargs["image"] == NODE_IMAGE
        assert kwargs["network_disabled"] is True
        assert kwargs["command"][:2] == ["timeout", "3"]
        assert "--max-old-space-size=64" in kwargs["command"]
        assert kwargs["mem_limit"] == "128m"
        bind = next(iter(kwargs["volumes"].values()))
        assert bind == {"bind": "/sandbox", "mode": "ro"}
        container.remove.assert_called_once_with(force=True)
        assert not os.path.exists(next(iter(kwargs["volumes"])))

    def test_timeout_exit_code(self):
        client, container = self._client(exit_code=124)
        with pytest.raises(SandboxTimeout):
            self._run(client)
        container.remove.assert_called_once_with(force=True)

    def test_wait_failure_is_timeout(self):
        client, container = self._client()
        container.wait.side_effect = Exception("read timed out")
        with pytest.raises(SandboxTimeout):
            self._run(client)
        container.remove.assert_called_once_with(force=True)

    def test_killed_for_memory(self):
        client, _ = self._client(exit_code=137)
        with pytest.raises(SandboxResourceError):
            self._run(client)

    def test_heap_message_is_resource_error(self):
        client, _ = self._client(exit_code=1, stderr=b"FATAL ERROR: JavaScript heap out of memory")
        with pytest.raises(SandboxResourceError):
            self._run(client)

    def test_other_exit_code(self):
        client, _ = self._client(exit_code=1, stderr=b"SyntaxError: Unexpected token")
        with pytest.raises(ExecutionError, match="exited with code 1: SyntaxError"):
            self._run(client)

    def test_docker_not_running(self):
        client = MagicMock()
        client.ping.side_effect = Exception("Connection refused")
        with pytest.raises(ExecutionError, match="Docker is not running"):
            self._run(client)

    def test_sdk_missing(self):
        with patch("uigen.sandbox.executor.DOCKER_AVAILABLE", False):
            with pytest.raises(ExecutionError, match="pip install docker"):
                DockerExecutor().run("'{}'")

    def test_cleanup_failure_does_not_mask_result(self):
        client, container = self._client()
        container.remove.side_effect = Exception("already gone")
        assert self._run(client) == '{"status":"ok"}'


class TestGetExecutor:
    def test_default_is_isolate(self):
        assert isinstance(get_executor(), IsolateExecutor)

    def test_docker_from_config(self, monkeypatch):
        monkeypatch.setenv("UIGEN_RENDER_BACKEND", "docker")
        monkeypatch.setenv("UIGEN_SANDBOX_IMAGE", "node:20-alpine")
        executor = get_executor()
        assert isinstance(executor, DockerExecutor)
        assert executor.image == "node:20-alpine"

    def test_explicit_arguments(self):
        executor = get_executor("docker", "node:22")
        assert executor.name == "docker"
        assert executor.image == "node:22"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown render backend"):
            get_executor("wasm")
