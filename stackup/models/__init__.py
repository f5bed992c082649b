"""
stackup Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    ResultStatus,
    ValidationResult,
    ExecutionResult,
    CheckResult,
)
from .stack import (
    CertificateInfo,
    ContainerSpec,
    DatabaseCredentials,
    generate_password,
)

__all__ = [
    # Results
    "ResultStatus",
    "ValidationResult",
    "ExecutionResult",
    "CheckResult",
    # Stack
    "CertificateInfo",
    "ContainerSpec",
    "DatabaseCredentials",
    "generate_password",
]
