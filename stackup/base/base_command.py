"""
Base Command Class

Abstract base for all stackup CLI commands.
Provides common functionality and structure.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict
import json
from rich.console import Console
from stackup.exceptions import StackupError
from stackup.ui_components import show_header
from stackup.logger import DeployLogger
from stackup.utils import CommandExecutor, get_project_root


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger and executor initialization
    - Header display
    - Error handling
    - JSON output support
    """

    def __init__(self, verbose: bool = False, json_output: bool = False, dry_run: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self.dry_run = dry_run
        self.console = Console()
        self.project_root = get_project_root()
        self.logger: Optional[DeployLogger] = None
        self.executor: Optional[CommandExecutor] = None

    def init_logger(self, stack_name: str, command_name: str) -> DeployLogger:
        """
        Initialize command logger and the executor bound to it.

        Args:
            stack_name: Stack name (use "global" for stack-independent commands)
            command_name: Command name

        Returns:
            DeployLogger instance
        """
        self.logger = DeployLogger(
            stack_name, command_name, verbose=self.verbose, log_root=self.project_root
        )
        self.executor = CommandExecutor(
            logger=self.logger, dry_run=self.dry_run, console=self.console
        )
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = 0) -> None:
        """
        Output data as JSON and exit.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        print(json.dumps(data, indent=2, default=str))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(
                title=title,
                subtitle=subtitle,
                details=details,
                console=self.console,
            )

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {message}[/red]")

    def print_warning(self, message: str) -> None:
        """Print warning message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{message}[/dim]")

    def _show_log_path(self) -> None:
        if self.logger:
            self.console.print(f"[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            if self.logger:
                self.logger.log_error("Operation cancelled by user")
            self._show_log_path()
            raise SystemExit(130)
        except SystemExit:
            raise
        except StackupError as e:
            if self.logger:
                self.logger.log_error(e.message, context=e.context)
            else:
                self.print_error(e.message)
                if e.context:
                    self.print_dim(e.context)
            self._show_log_path()
            raise SystemExit(1)
        except PermissionError as e:
            self.console.print(f"\n[bold red]✗ Permission denied:[/bold red] {e}\n")
            self.console.print("[dim]Try running with appropriate permissions[/dim]\n")
            if self.logger:
                self.logger.log_error(f"Permission error: {e}")
            self._show_log_path()
            raise SystemExit(1)
        except Exception as e:
            error_type = type(e).__name__
            self.console.print(f"\n[bold red]✗ {error_type}:[/bold red] {e}\n")
            if self.logger:
                self.logger.log_error(f"{error_type}: {e}")
            self._show_log_path()
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
