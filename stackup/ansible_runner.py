"""
Ansible Runner

Executes Ansible playbooks with logging.
"""

import os
from pathlib import Path
from typing import List

from stackup.logger import DeployLogger
from stackup.utils import CommandExecutor


class AnsibleRunner:
    """
    Run Ansible playbooks and keep a raw Ansible log next to the run log.

    Responsibilities:
    - Execute Ansible commands
    - Handle logging to file
    - Support verbose and quiet modes
    """

    def __init__(self, logger: DeployLogger, executor: CommandExecutor, verbose: bool = False):
        """
        Initialize Ansible runner.

        Args:
            logger: DeployLogger instance for logging
            executor: Executor that actually runs the command
            verbose: Whether to show colored Ansible output
        """
        self.logger = logger
        self.executor = executor
        self.verbose = verbose

    def run(self, ansible_cmd: List[str], cwd: Path) -> int:
        """
        Run Ansible command.

        Args:
            ansible_cmd: Complete ansible-playbook argument vector
            cwd: Working directory for execution

        Returns:
            Exit code from Ansible
        """
        ansible_log_path = (
            self.logger.log_path.parent / f"{self.logger.log_path.stem}_ansible.log"
        )
        self.logger.log(f"Ansible detailed log: {ansible_log_path}", "INFO")

        env = self._build_environment(ansible_log_path, cwd)
        return self.executor.stream(ansible_cmd, cwd=cwd, env=env, stream_name="ansible")

    def _build_environment(self, log_path: Path, cwd: Path) -> dict:
        """
        Build environment variables for Ansible execution.

        Args:
            log_path: Path to Ansible log file
            cwd: Ansible project directory

        Returns:
            Extra environment variables
        """
        return {
            "PYTHONUNBUFFERED": "1",
            "ANSIBLE_STDOUT_CALLBACK": "default",
            "ANSIBLE_DISPLAY_SKIPPED_HOSTS": "true",
            "ANSIBLE_FORCE_COLOR": "true" if self.verbose else "false",
            "ANSIBLE_LOG_PATH": str(log_path),
            "ANSIBLE_ROLES_PATH": str(Path(cwd) / "roles"),
            "ANSIBLE_HOST_KEY_CHECKING": os.environ.get("ANSIBLE_HOST_KEY_CHECKING", "False"),
        }
