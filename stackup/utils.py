"""
CLI Utilities

Core utility functions and classes for stackup.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from rich.console import Console

from stackup.exceptions import CommandExecutionError, UnsafePathError
from stackup.logger import DeployLogger, format_command, run_with_progress
from stackup.models.results import ExecutionResult, ValidationResult


class ProjectUtils:
    """Utilities for locating the working root."""

    @staticmethod
    def get_project_root() -> Path:
        """
        Get the directory stackup works in.

        Returns:
            $STACKUP_HOME if set, otherwise the current directory
        """
        home = os.environ.get("STACKUP_HOME")
        return Path(home).expanduser().resolve() if home else Path.cwd()


class CommandExecutor:
    """
    Executes external commands with logging, masking and dry-run support.

    Every external tool (docker, openssl, ansible-playbook, vagrant) goes
    through one executor so the run log holds the full command history.
    """

    def __init__(
        self,
        logger: Optional[DeployLogger] = None,
        dry_run: bool = False,
        console: Optional[Console] = None,
    ):
        self.logger = logger
        self.dry_run = dry_run
        self.console = console or Console()

    def _mask(self, text: str) -> str:
        return self.logger.mask(text) if self.logger else text

    def run(
        self,
        args: Sequence[str],
        description: Optional[str] = None,
        check: bool = True,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        log_output: bool = True,
    ) -> ExecutionResult:
        """
        Run a command and capture its output.

        Args:
            args: Argument vector (no shell involved)
            description: Show a spinner with this label while running
            check: Raise CommandExecutionError on non-zero exit
            cwd: Working directory
            env: Extra environment variables
            log_output: Copy captured stdout/stderr into the run log

        Returns:
            ExecutionResult

        Raises:
            CommandExecutionError: If the command fails and check=True
        """
        command = format_command(args)
        masked = self._mask(command)

        if self.dry_run:
            if self.logger:
                self.logger.log(f"[dry-run] {command}", "DEBUG")
            self.console.print(f"  [dim]$ {masked}[/dim]", highlight=False)
            return ExecutionResult(returncode=0, command=masked)

        full_env = {**os.environ, **(env or {})}

        if description and self.logger:
            returncode, stdout, stderr = run_with_progress(
                self.logger, args, description, cwd=cwd, env=full_env
            )
        else:
            if self.logger:
                self.logger.log_command(command)
            completed = subprocess.run(
                list(args), cwd=cwd, env=full_env, capture_output=True, text=True
            )
            returncode, stdout, stderr = (
                completed.returncode,
                completed.stdout,
                completed.stderr,
            )
            if self.logger and log_output:
                self.logger.log_output(stdout, "stdout")
                self.logger.log_output(stderr, "stderr")

        result = ExecutionResult(
            returncode=returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            command=masked,
        )

        if check and result.is_failure:
            raise CommandExecutionError(masked, returncode, self._mask(result.stderr))

        return result

    def stream(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        stream_name: str = "stdout",
    ) -> int:
        """
        Run a long command, forwarding each output line to the log.

        Returns:
            Exit code
        """
        command = format_command(args)

        if self.dry_run:
            if self.logger:
                self.logger.log(f"[dry-run] {command}", "DEBUG")
            self.console.print(f"  [dim]$ {self._mask(command)}[/dim]", highlight=False)
            return 0

        if self.logger:
            self.logger.log_command(command)

        process = subprocess.Popen(
            list(args),
            cwd=cwd,
            env={**os.environ, **(env or {})},
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
        if process.stdout:
            for line in process.stdout:
                line = line.rstrip()
                if self.logger:
                    self.logger.log_output(line, stream_name)
                    if not self.logger.verbose:
                        self.console.print(
                            f"    [dim]{self._mask(line)}[/dim]", highlight=False
                        )
                else:
                    self.console.print(line, markup=False, highlight=False)
        return process.wait()


class EnvironmentValidator:
    """Validates the presence of external tools."""

    @staticmethod
    def which(tool: str) -> Optional[str]:
        return shutil.which(tool)

    @staticmethod
    def validate_tools(tools: List[str]) -> ValidationResult:
        """
        Validate required executables are on PATH.

        Args:
            tools: Executable names

        Returns:
            ValidationResult with errors for missing tools
        """
        result = ValidationResult(is_valid=True)
        for tool in tools:
            if not EnvironmentValidator.which(tool):
                result.add_error(f"Missing required tool: {tool}")
        return result

    @staticmethod
    def print_validation_errors(
        result: ValidationResult, console: Optional[Console] = None
    ) -> None:
        if console is None:
            console = Console()

        if result.has_errors:
            console.print("[red]✗ Validation failed:[/red]")
            for error in result.errors:
                console.print(f"  • {error}")

        if result.has_warnings:
            console.print("[yellow]⚠ Warnings:[/yellow]")
            for warning in result.warnings:
                console.print(f"  • {warning}")


def safe_rmtree(path: Path, expected_root: Path) -> bool:
    """
    Remove a directory tree only if it lies strictly inside expected_root.

    Returns:
        True if something was removed, False if the path did not exist

    Raises:
        UnsafePathError: If path resolves outside expected_root or to it
    """
    root = Path(expected_root).resolve()
    target = Path(path).resolve()
    if target == root or not target.is_relative_to(root):
        raise UnsafePathError(str(target), str(root))
    if not target.exists():
        return False
    shutil.rmtree(target)
    return True


def write_file(path: Path, content: str, force: bool = False, mode: Optional[int] = None) -> bool:
    """
    Write a generated file, creating parent directories.

    Returns:
        True if written, False if it existed and force was not set
    """
    path = Path(path)
    if path.exists() and not force:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mode is not None:
        path.chmod(mode)
    return True


def get_project_root() -> Path:
    """Get stackup working root."""
    return ProjectUtils.get_project_root()
