"""
Pytest configuration and shared fixtures.
"""

import io
from pathlib import Path
from typing import Callable, List, Optional

import pytest
from rich.console import Console

from stackup.core.config_loader import StackConfig
from stackup.exceptions import CommandExecutionError
from stackup.logger import DeployLogger, format_command
from stackup.models.results import ExecutionResult
from stackup.models.stack import DatabaseCredentials
from stackup.utils import CommandExecutor


class FakeExecutor(CommandExecutor):
    """Records every command instead of running it.

    `handler(args)` may return an ExecutionResult; anything else counts as
    a silent success.
    """

    def __init__(
        self,
        handler: Optional[Callable[[List[str]], Optional[ExecutionResult]]] = None,
        dry_run: bool = False,
    ):
        super().__init__(logger=None, dry_run=dry_run, console=Console(file=io.StringIO()))
        self.handler = handler
        self.calls: List[List[str]] = []
        self.stream_calls: List[dict] = []
        self.unlogged_calls: List[List[str]] = []

    def _result(self, args: List[str]) -> ExecutionResult:
        result = self.handler(args) if self.handler else None
        return result if isinstance(result, ExecutionResult) else ExecutionResult(returncode=0)

    def run(self, args, description=None, check=True, cwd=None, env=None, log_output=True):
        args = [str(a) for a in args]
        self.calls.append(args)
        if not log_output:
            self.unlogged_calls.append(args)
        if self.dry_run:
            return ExecutionResult(returncode=0, command=format_command(args))
        result = self._result(args)
        if check and result.is_failure:
            raise CommandExecutionError(format_command(args), result.returncode, result.stderr)
        return result

    def stream(self, args, cwd=None, env=None, stream_name="stdout"):
        args = [str(a) for a in args]
        self.calls.append(args)
        self.stream_calls.append({"args": args, "cwd": cwd, "env": env, "stream": stream_name})
        if self.dry_run:
            return 0
        return self._result(args).returncode

    def commands_starting_with(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if call[: len(prefix)] == list(prefix)]


@pytest.fixture
def fake_executor():
    """Executor that records commands and succeeds."""
    return FakeExecutor()


@pytest.fixture
def make_executor():
    """Factory for FakeExecutor with a custom handler."""
    return FakeExecutor


@pytest.fixture
def stack_config(tmp_path):
    """Default stack config rooted in a temp directory, without delays."""
    return StackConfig(base_dir=tmp_path, settle_seconds=0, verify_delay=0)


@pytest.fixture
def credentials():
    """Fixed credentials so tests can look for them in arguments."""
    return DatabaseCredentials(
        root_password="root-secret",
        password="user-secret",
        database="wordpress",
        user="wordpress",
    )


@pytest.fixture
def deploy_logger(tmp_path):
    """DeployLogger writing below the temp directory."""
    logger = DeployLogger("test-stack", "test", log_root=tmp_path)
    yield logger
    logger.close()


@pytest.fixture
def stackup_home(tmp_path, monkeypatch):
    """Point the CLI working root at a temp directory."""
    monkeypatch.setenv("STACKUP_HOME", str(tmp_path))
    return Path(tmp_path)
