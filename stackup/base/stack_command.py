"""
Stack Command Base Class

Base class for commands that operate on a WordPress stack.
Provides configuration loading and service wiring.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from .base_command import BaseCommand
from stackup.core.config_loader import StackConfig, load_stack_config
from stackup.core.wordpress_stack import WordPressStack
from stackup.services.certificate_service import CertificateService
from stackup.services.docker_service import DockerService
from stackup.exceptions import ValidationError
from stackup.utils import EnvironmentValidator


class StackCommand(BaseCommand):
    """
    Base class for stack commands.

    Provides:
    - Stack file + CLI override loading
    - Logger named after the project directory
    - Pre-wired Docker, certificate and stack services
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        verbose: bool = False,
        json_output: bool = False,
        dry_run: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output, dry_run=dry_run)
        self.config_path = config_path
        self.overrides = overrides or {}
        self.config: Optional[StackConfig] = None
        self.docker: Optional[DockerService] = None
        self.certificates: Optional[CertificateService] = None

    def load_config(self) -> StackConfig:
        """
        Load and validate the stack configuration.

        Raises:
            ConfigurationError: If the stack file or overrides are invalid
        """
        if self.config is None:
            self.config = load_stack_config(
                self.config_path, self.overrides, base_dir=self.project_root
            )
        return self.config

    def init_stack(self, command_name: str) -> WordPressStack:
        """
        Load config, open the run log and build the stack orchestrator.

        Args:
            command_name: Operation name used in the log file name

        Returns:
            WordPressStack bound to this command's logger
        """
        config = self.load_config()
        self.init_logger(config.project_dir, command_name)
        self.docker = DockerService(self.executor)
        self.certificates = CertificateService(self.executor)
        return WordPressStack(
            config,
            self.logger,
            self.docker,
            self.certificates,
            dry_run=self.dry_run,
        )

    def stack_details(self) -> Dict[str, str]:
        config = self.load_config()
        return {
            "Domain": config.domain,
            "Directory": str(config.workspace),
            "Network": config.network,
            "Volumes": f"{config.db_volume}, {config.wp_volume}",
        }

    def require_tools(self, tools: List[str]) -> None:
        """
        Fail early when external tools are missing (skipped in dry-run).

        Raises:
            ValidationError: If any tool is not on PATH
        """
        if self.dry_run:
            return
        result = EnvironmentValidator.validate_tools(tools)
        if not result.is_valid:
            EnvironmentValidator.print_validation_errors(result, self.console)
            raise ValidationError(
                "Required tools are missing", context="Run: stackup doctor"
            )
