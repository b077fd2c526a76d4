"""Tests for the docker CLI container client."""

from __future__ import annotations

import asyncio

import pytest

from sdkgen.build.docker import DockerClient
from sdkgen.core.errors import ContainerError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeProcess:
    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        return self._stdout, self._stderr

    def kill(self):
        pass

    async def wait(self):
        return self.returncode


@pytest.fixture
def docker_calls(monkeypatch):
    """Record docker invocations; answer from a per-subcommand table."""
    calls: list[list[str]] = []
    responses: dict[str, FakeProcess] = {}

    async def fake_exec(*command, stdout=None, stderr=None):
        calls.append(list(command))
        subcommand = command[1]
        if subcommand == "exec" and command[3] == "test":
            key = f"test {command[-1]}"
            return responses.get(key, FakeProcess(returncode=1))
        return responses.get(subcommand, FakeProcess(stdout=b"abc123def456\n"))

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return calls, responses


class TestContainerLifecycle:
    def test_acquire_command(self, docker_calls):
        calls, _ = docker_calls
        container_id = asyncio.run(DockerClient().acquire("swift:5.10-jammy", "linux/arm64"))
        assert container_id == "abc123def456"
        assert calls == [[
            "docker", "run", "--rm", "-d", "--platform", "linux/arm64",
            "swift:5.10-jammy", "tail", "-f", "/dev/null",
        ]]

    def test_released_on_success(self, docker_calls):
        calls, _ = docker_calls

        async def scenario():
            async with DockerClient().container("img") as cid:
                assert cid == "abc123def456"

        asyncio.run(scenario())
        assert calls[-1] == ["docker", "rm", "-f", "abc123def456"]

    def test_released_on_error(self, docker_calls):
        """The container is removed even when the body raises."""
        calls, _ = docker_calls

        async def scenario():
            async with DockerClient().container("img"):
                raise RuntimeError("step failed")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())
        assert calls[-1] == ["docker", "rm", "-f", "abc123def456"]

    def test_release_failure_is_logged_not_raised(self, docker_calls):
        calls, responses = docker_calls
        responses["rm"] = FakeProcess(returncode=1, stderr=b"no such container")
        asyncio.run(DockerClient().release("abc"))
        assert calls == [["docker", "rm", "-f", "abc"]]


class TestCommands:
    def test_exec_uses_shell(self, docker_calls):
        calls, responses = docker_calls
        responses["exec"] = FakeProcess(stdout=b"hello\n")
        out = asyncio.run(DockerClient().exec("cid", "echo hello"))
        assert out == "hello\n"
        assert calls == [["docker", "exec", "cid", "sh", "-c", "echo hello"]]

    def test_nonzero_exit_raises(self, docker_calls):
        _, responses = docker_calls
        responses["exec"] = FakeProcess(returncode=2, stderr=b"boom")
        with pytest.raises(ContainerError) as exc_info:
            asyncio.run(DockerClient().exec("cid", "false"))
        assert exc_info.value.returncode == 2
        assert "boom" in str(exc_info.value)

    def test_path_exists(self, docker_calls):
        _, responses = docker_calls
        responses["test /usr/lib/swift"] = FakeProcess(returncode=0)
        client = DockerClient()
        assert asyncio.run(client.path_exists("cid", "/usr/lib/swift")) is True
        assert asyncio.run(client.path_exists("cid", "/usr/lib/clang")) is False

    def test_copy_from_follow_links(self, docker_calls, tmp_path):
        calls, _ = docker_calls
        dest = tmp_path / "sdk" / "lib64" / "ld.so"
        copied = asyncio.run(DockerClient().copy_from("cid", "/lib64/ld.so", dest, follow_links=True))
        assert copied is True
        assert dest.parent.is_dir()
        assert calls == [["docker", "cp", "-L", "cid:/lib64/ld.so", str(dest)]]

    def test_copy_from_missing_optional(self, docker_calls, tmp_path):
        calls, _ = docker_calls
        copied = asyncio.run(
            DockerClient().copy_from("cid", "/usr/lib/clang", tmp_path / "clang", fail_if_not_exists=False)
        )
        assert copied is False
        assert all(c[1] != "cp" for c in calls)

    def test_custom_executable(self, docker_calls):
        calls, _ = docker_calls
        asyncio.run(DockerClient(executable="podman").exec("cid", "true"))
        assert calls[0][0] == "podman"
