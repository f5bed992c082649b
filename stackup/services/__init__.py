"""
stackup Services Layer

Wrappers around the external tools stackup drives.
"""

from .docker_service import DockerService
from .certificate_service import CertificateService
from .nginx_service import NginxConfigService
from .compose_service import ComposeService
from .vagrant_service import VagrantService
from .verify_service import HttpProbe, StackVerifier

__all__ = [
    "DockerService",
    "CertificateService",
    "NginxConfigService",
    "ComposeService",
    "VagrantService",
    "HttpProbe",
    "StackVerifier",
]
