"""
Logging system for stackup
Provides real-time logging to files with clean console output
"""

import re
import shlex
import subprocess
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional, Sequence, TextIO
from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.text import Text
from rich.padding import Padding

from stackup.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT, MASK

console = Console()

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class DeployLogger:
    """
    Manages logging for provisioning operations
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    - Masks registered secrets everywhere
    """

    def __init__(
        self,
        stack_name: str,
        operation: str,
        verbose: bool = False,
        log_root: Optional[Path] = None,
    ):
        """
        Initialize logger

        Args:
            stack_name: Name of the stack (usually the project directory)
            operation: Operation name (e.g., 'up', 'down', 'apply')
            verbose: If True, show all output in console
            log_root: Directory holding logs/ (defaults to the working root)
        """
        self.stack_name = stack_name
        self.operation = operation
        self.verbose = verbose
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False
        self._secrets: List[str] = []

        if log_root is None:
            from stackup.utils import get_project_root

            log_root = get_project_root()

        # Structure: logs/{stack}/{date}/{time}_{operation}.log
        now = datetime.now()
        logs_dir = Path(log_root) / "logs" / stack_name / now.strftime(LOG_DATE_FORMAT)
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # Line buffered for real-time tailing
        self.log_file = open(self.log_path, "w", buffering=1)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
stackup Provisioning Log
{"=" * 80}
Stack: {self.stack_name}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def register_secret(self, value: str) -> None:
        """Mask value in every subsequent log line and console echo."""
        if value and value not in self._secrets:
            self._secrets.append(value)

    def mask(self, text: str) -> str:
        """Replace registered secrets with the mask string."""
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        return text

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        message = self.mask(message)
        timestamp = datetime.now().strftime("%H:%M:%S")
        log_line = f"[{timestamp}] [{level}] {message}\n"

        if self.log_file:
            self.log_file.write(log_line)
            self.log_file.flush()

        if self.verbose:
            if level == "ERROR":
                console.print(f"[red]{message}[/red]")
            elif level == "WARNING":
                console.print(f"[yellow]{message}[/yellow]")
            elif level == "DEBUG":
                console.print(f"[dim]{message}[/dim]")
            else:
                console.print(message)

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log command output

        Always written to the log file; echoed to the console only in
        verbose mode.

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output:
            return

        clean_output = self.mask(ANSI_ESCAPE.sub("", output))

        if self.log_file:
            try:
                for line in clean_output.splitlines() or [clean_output]:
                    self.log_file.write(f"  [{stream}] {line}\n")
                self.log_file.flush()
            except (BlockingIOError, OSError):
                # Terminal responsiveness beats a complete log
                pass

        if self.verbose:
            console.print(self.mask(output), markup=False, highlight=False)

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
        """
        self.has_errors = True
        error = self.mask(error)
        context = self.mask(context) if context else context

        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"

        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)
            self.log_file.flush()

        if not self.verbose:
            console.print()

        console.print(f"[bold red]✗ {error}[/bold red]", highlight=False)
        if context:
            console.print(f"  [color(208)]{context}[/color(208)]", highlight=False)

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.verbose:
            console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            console.print(f"[color(214)]▶[/color(214)] [white]{step_name}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            console.print(f"  [dim]✓ {self.mask(message)}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            console.print(f"  [yellow]⚠[/yellow] [dim]{self.mask(message)}[/dim]")

    def info(self, message: str):
        """Log a plain informational line shown in the console"""
        self.log(message, "INFO")

        if not self.verbose:
            console.print(f"  {self.mask(message)}", highlight=False)

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        if exc_type is not None and exc_type != SystemExit:
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False


def format_command(args: Sequence[str]) -> str:
    """Render an argument vector as a copy-pasteable shell line."""
    return shlex.join(str(a) for a in args)


def run_with_progress(
    logger: DeployLogger,
    args: Sequence[str],
    description: str,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
) -> tuple[int, str, str]:
    """
    Run a command with progress indicator

    Args:
        logger: DeployLogger instance
        args: Command argument vector
        description: Description for progress indicator
        cwd: Working directory
        env: Full environment for the child process

    Returns:
        Tuple of (return_code, stdout, stderr)
    """
    logger.log_command(format_command(args))

    if logger.verbose:
        # Verbose mode: stream stdout line by line, stderr after exit
        process = subprocess.Popen(
            list(args),
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
        )

        stdout_lines = []
        if process.stdout:
            for line in process.stdout:
                line_stripped = line.rstrip()
                stdout_lines.append(line_stripped)
                logger.log_output(line_stripped, "stdout")

        process.wait()
        stderr_content = process.stderr.read() if process.stderr else ""
        if stderr_content:
            logger.log_output(stderr_content, "stderr")

        return process.returncode, "\n".join(stdout_lines), stderr_content

    spinner = Spinner("dots", text=f"[cyan]{description}...[/cyan]")
    padded_spinner = Padding(spinner, (0, 0, 0, 2))

    with Live(padded_spinner, console=console, refresh_per_second=10) as live:
        result = subprocess.run(
            list(args), cwd=cwd, env=env, capture_output=True, text=True
        )

        if result.stdout:
            logger.log_output(result.stdout, "stdout")
        if result.stderr:
            logger.log_output(result.stderr, "stderr")

        if result.returncode == 0:
            checkmark = Text("  ✓ ", style="dim")
            checkmark.append(description, style="dim")
            live.update(checkmark)
        else:
            x_mark = Text("  ✗ ", style="red")
            x_mark.append(description, style="dim")
            live.update(x_mark)

    return result.returncode, result.stdout, result.stderr
