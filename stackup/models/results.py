"""
Result Models

Dataclass models for operation results and command outputs.
"""

from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


class ResultStatus(Enum):
    """Status of a check result."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if validation has errors."""
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        """Check if validation has warnings."""
        return len(self.warnings) > 0

    def add_error(self, error: str) -> None:
        """Add an error to the validation result."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning to the validation result."""
        self.warnings.append(warning)

    def __repr__(self) -> str:
        return f"ValidationResult(valid={self.is_valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


@dataclass
class ExecutionResult:
    """Result of a command execution (subprocess)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class CheckResult:
    """Outcome of a single acceptance or doctor check."""

    name: str
    status: ResultStatus
    detail: str = ""
    hint: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == ResultStatus.FAILURE
