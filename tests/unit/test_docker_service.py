"""
Unit tests for the Docker CLI wrapper.
"""

import pytest

from stackup.exceptions import DockerError, ReadinessTimeoutError
from stackup.models.results import ExecutionResult
from stackup.models.stack import ContainerSpec
from stackup.services.docker_service import DockerService

MARKER = "mysqld: ready for connections."


def fake_clock(*values):
    """Clock returning the given readings, then the last one forever."""
    readings = list(values)

    def clock():
        return readings.pop(0) if len(readings) > 1 else readings[0]

    return clock


class TestContainerSpec:
    """Test docker run argument building."""

    def test_to_args(self):
        spec = ContainerSpec(
            name="nginx",
            image="nginx:latest",
            network="wp_net",
            ports=["80:80"],
            volumes=["/srv/conf:/etc/nginx/conf.d:ro"],
            env={"A": "1"},
        )
        assert spec.to_args() == [
            "docker", "run", "-d",
            "--name", "nginx",
            "--network", "wp_net",
            "--hostname", "nginx",
            "--restart=always",
            "-p", "80:80",
            "--volume", "/srv/conf:/etc/nginx/conf.d:ro",
            "-e", "A=1",
            "nginx:latest",
        ]


class TestWaitForLog:
    """Test log-based readiness polling."""

    def test_returns_after_marker_appears(self, make_executor):
        outputs = iter(["starting", "still starting", f"... {MARKER} ..."])
        executor = make_executor(
            lambda args: ExecutionResult(0, stdout=next(outputs)) if args[:2] == ["docker", "logs"] else None
        )
        sleeps = []
        docker = DockerService(executor, sleep=sleeps.append, clock=fake_clock(0))

        attempts = docker.wait_for_log("mysql", MARKER, interval=2)

        assert attempts == 3
        assert sleeps == [2, 2]
        assert executor.commands_starting_with("docker", "logs") == [["docker", "logs", "mysql"]] * 3
        assert executor.unlogged_calls == [["docker", "logs", "mysql"]] * 3

    def test_marker_in_stderr_counts(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(0, stderr=MARKER))
        docker = DockerService(executor, sleep=lambda s: None)
        assert docker.wait_for_log("mysql", MARKER, interval=2) == 1

    def test_timeout(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(0, stdout="starting"))
        sleeps = []
        docker = DockerService(executor, sleep=sleeps.append, clock=fake_clock(0, 100, 200, 300))

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            docker.wait_for_log("mysql", MARKER, interval=2, timeout=300)

        assert exc_info.value.container == "mysql"
        assert len(sleeps) == 2

    def test_zero_timeout_waits_forever(self, make_executor):
        outputs = iter(["x"] * 50 + [MARKER])
        executor = make_executor(lambda args: ExecutionResult(0, stdout=next(outputs)))
        docker = DockerService(executor, sleep=lambda s: None, clock=fake_clock(0, 10**9))
        assert docker.wait_for_log("mysql", MARKER, interval=2, timeout=0) == 51

    def test_dry_run_does_not_poll(self, make_executor):
        executor = make_executor(dry_run=True)
        docker = DockerService(executor, sleep=lambda s: None)
        assert docker.wait_for_log("mysql", MARKER, interval=2) == 0
        assert executor.calls == []


class TestResources:
    """Test network/volume creation and container management."""

    def test_network_is_created_when_missing(self, make_executor):
        executor = make_executor(
            lambda args: ExecutionResult(1, stderr="no such network") if args[2] == "inspect" else None
        )
        assert DockerService(executor).ensure_network("wp_net") is True
        assert ["docker", "network", "create", "wp_net"] in executor.calls

    def test_existing_network_is_reused(self, fake_executor):
        assert DockerService(fake_executor).ensure_network("wp_net") is False
        assert fake_executor.commands_starting_with("docker", "network", "create") == []

    def test_existing_volume_is_reused(self, fake_executor):
        assert DockerService(fake_executor).ensure_volume("wp_db_data") is False
        assert fake_executor.calls == [["docker", "volume", "inspect", "wp_db_data"]]

    def test_volume_create_failure(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(1, stderr="boom"))
        with pytest.raises(DockerError, match="wp_db_data"):
            DockerService(executor).ensure_volume("wp_db_data")

    def test_stop_and_remove_ignores_failures(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(1, stderr="No such container"))
        DockerService(executor).stop_and_remove(["nginx", "wordpress", "mysql"])
        assert executor.calls == [
            ["docker", "stop", "nginx", "wordpress", "mysql"],
            ["docker", "rm", "nginx", "wordpress", "mysql"],
        ]

    def test_run_container_failure(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(125, stderr="name in use"))
        spec = ContainerSpec(name="mysql", image="mysql:5.7", network="wp_net")
        with pytest.raises(DockerError) as exc_info:
            DockerService(executor).run_container(spec)
        assert exc_info.value.context == "name in use"

    def test_run_container_returns_id(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(0, stdout="abc123\n"))
        spec = ContainerSpec(name="mysql", image="mysql:5.7", network="wp_net")
        assert DockerService(executor).run_container(spec) == "abc123"


class TestListing:
    """Test docker ps parsing."""

    def test_container_states(self, make_executor):
        output = (
            "mysql\trunning\tUp 2 minutes\tmysql:5.7\n"
            "wordpress\texited\tExited (1) 1 minute ago\twordpress:latest\n"
            "other\trunning\tUp 1 hour\tredis\n"
        )
        executor = make_executor(lambda args: ExecutionResult(0, stdout=output))
        states = DockerService(executor).container_states(["mysql", "wordpress", "nginx"])
        assert states == {
            "mysql": {"state": "running", "status": "Up 2 minutes", "image": "mysql:5.7"},
            "wordpress": {
                "state": "exited",
                "status": "Exited (1) 1 minute ago",
                "image": "wordpress:latest",
            },
        }

    def test_running_containers(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(0, stdout="nginx\nwordpress\n\nmysql\n"))
        assert DockerService(executor).running_containers() == ["nginx", "wordpress", "mysql"]

    def test_listing_failure(self, make_executor):
        executor = make_executor(lambda args: ExecutionResult(1, stderr="daemon down"))
        with pytest.raises(DockerError):
            DockerService(executor).running_containers()

    def test_compose_streams(self, fake_executor):
        DockerService(fake_executor).compose("/srv/docker-compose.yml", "up", "-d")
        assert fake_executor.stream_calls[0]["args"] == [
            "docker", "compose", "-f", "/srv/docker-compose.yml", "up", "-d"
        ]
