"""
Docker Service

Thin wrapper around the docker CLI: containers, networks, volumes, logs.
"""

import time
from typing import Callable, Dict, List, Optional

from stackup.exceptions import CommandExecutionError, DockerError, ReadinessTimeoutError
from stackup.models.stack import ContainerSpec
from stackup.utils import CommandExecutor


class DockerService:
    """
    Docker operations used by the WordPress stack.

    Responsibilities:
    - Idempotent network and volume creation
    - Container start/stop/remove
    - Log-based readiness polling
    - Container listing for status and verification
    """

    def __init__(
        self,
        executor: CommandExecutor,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.executor = executor
        self._sleep = sleep
        self._clock = clock

    def is_available(self) -> bool:
        """Check that the Docker daemon answers."""
        result = self.executor.run(["docker", "info"], check=False)
        return result.is_success

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def stop_and_remove(self, names: List[str]) -> None:
        """
        Stop and remove containers, ignoring ones that do not exist.

        Args:
            names: Container names
        """
        if not names:
            return
        self.executor.run(["docker", "stop", *names], check=False)
        self.executor.run(["docker", "rm", *names], check=False)

    def run_container(self, spec: ContainerSpec) -> str:
        """
        Start a detached container.

        Returns:
            Container ID printed by docker

        Raises:
            DockerError: If docker run fails
        """
        try:
            result = self.executor.run(
                spec.to_args(), description=f"Starting {spec.name} ({spec.image})"
            )
        except CommandExecutionError as e:
            raise DockerError(f"Failed to start container '{spec.name}'", context=e.stderr or None)
        return result.stdout.strip()

    def logs(self, name: str) -> str:
        """Return combined stdout and stderr of `docker logs`, kept out of the run log."""
        result = self.executor.run(["docker", "logs", name], check=False, log_output=False)
        return result.output

    def wait_for_log(
        self,
        name: str,
        marker: str,
        interval: float,
        timeout: float = 0,
        on_poll: Optional[Callable[[int], None]] = None,
    ) -> int:
        """
        Poll container logs until marker appears.

        Args:
            name: Container name
            marker: Exact substring to look for
            interval: Seconds between polls
            timeout: Give up after this many seconds; 0 waits forever
            on_poll: Called with the attempt number after each miss

        Returns:
            Number of polls it took

        Raises:
            ReadinessTimeoutError: If timeout elapses first
        """
        if self.executor.dry_run:
            return 0

        started = self._clock()
        attempt = 0
        while True:
            attempt += 1
            if marker in self.logs(name):
                return attempt
            if timeout and self._clock() - started >= timeout:
                raise ReadinessTimeoutError(name, marker, timeout)
            if on_poll:
                on_poll(attempt)
            self._sleep(interval)

    def container_states(self, names: Optional[List[str]] = None) -> Dict[str, Dict[str, str]]:
        """
        List containers (running or not) with their state.

        Args:
            names: Only keep these names (all containers when None)

        Returns:
            Mapping name -> {"state", "status", "image"}
        """
        result = self.executor.run(
            [
                "docker",
                "ps",
                "-a",
                "--format",
                "{{.Names}}\t{{.State}}\t{{.Status}}\t{{.Image}}",
            ],
            check=False,
        )
        if result.is_failure:
            raise DockerError("Could not list containers", context=result.stderr.strip() or None)

        states = {}
        for line in result.stdout.splitlines():
            parts = line.split("\t")
            if len(parts) < 4:
                continue
            name, state, status, image = parts[:4]
            if names is None or name in names:
                states[name] = {"state": state, "status": status, "image": image}
        return states

    def running_containers(self) -> List[str]:
        """Names of running containers, as `docker ps` shows them."""
        result = self.executor.run(["docker", "ps", "--format", "{{.Names}}"], check=False)
        if result.is_failure:
            raise DockerError("Could not list containers", context=result.stderr.strip() or None)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Networks and volumes
    # ------------------------------------------------------------------

    def _exists(self, kind: str, name: str) -> bool:
        result = self.executor.run(["docker", kind, "inspect", name], check=False)
        return result.is_success

    def ensure_network(self, name: str) -> bool:
        """
        Create a bridge network unless it exists.

        Returns:
            True if created, False if reused
        """
        if not self.executor.dry_run and self._exists("network", name):
            return False
        try:
            self.executor.run(["docker", "network", "create", name])
        except CommandExecutionError as e:
            raise DockerError(f"Failed to create network '{name}'", context=e.stderr or None)
        return True

    def ensure_volume(self, name: str) -> bool:
        """
        Create a named volume unless it exists.

        Returns:
            True if created, False if reused
        """
        if not self.executor.dry_run and self._exists("volume", name):
            return False
        try:
            self.executor.run(["docker", "volume", "create", name])
        except CommandExecutionError as e:
            raise DockerError(f"Failed to create volume '{name}'", context=e.stderr or None)
        return True

    def remove_network(self, name: str) -> bool:
        """Remove a network; returns False if it was not there."""
        return self.executor.run(["docker", "network", "rm", name], check=False).is_success

    def remove_volume(self, name: str) -> bool:
        """Remove a volume; returns False if it was not there."""
        return self.executor.run(["docker", "volume", "rm", name], check=False).is_success

    # ------------------------------------------------------------------
    # Compose
    # ------------------------------------------------------------------

    def compose(self, compose_file: str, *args: str) -> int:
        """Run `docker compose -f <file> <args>` streaming into the log."""
        return self.executor.stream(["docker", "compose", "-f", compose_file, *args])
