"""
stackup Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI.
"""

from typing import Optional


class StackupError(Exception):
    """Base exception for all stackup errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(StackupError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(StackupError):
    """Raised when validation fails."""

    pass


class CommandExecutionError(StackupError):
    """Raised when an external command exits non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed (exit {returncode}): {command}"
        context = stderr.strip() or None
        super().__init__(message, context)


class DockerError(StackupError):
    """Raised when Docker operations fail."""

    pass


class CertificateError(StackupError):
    """Raised when certificate generation or inspection fails."""

    pass


class ReadinessTimeoutError(DockerError):
    """Raised when a container never logs its readiness marker."""

    def __init__(self, container: str, marker: str, timeout: float):
        self.container = container
        self.marker = marker
        self.timeout = timeout
        message = f"Container '{container}' not ready after {timeout:g}s"
        context = f"Waiting for log line: {marker!r}"
        super().__init__(message, context)


class ProvisioningError(StackupError):
    """Raised when Ansible or Vagrant provisioning fails."""

    pass


class VerificationError(StackupError):
    """Raised when post-deploy acceptance checks fail."""

    pass


class UnsafePathError(StackupError):
    """Raised when a destructive operation targets an unexpected path."""

    def __init__(self, path: str, expected_root: str):
        self.path = path
        self.expected_root = expected_root
        message = f"Refusing to remove '{path}'"
        context = f"Path must resolve inside {expected_root}"
        super().__init__(message, context)
