"""
Verification Service

HTTP probes and post-deploy acceptance checks for the WordPress stack.
"""

import warnings
from typing import List, Optional

import requests
from urllib3.exceptions import InsecureRequestWarning

from stackup import constants as c
from stackup.core.config_loader import StackConfig
from stackup.exceptions import StackupError
from stackup.models.results import CheckResult, ResultStatus
from stackup.services.certificate_service import CertificateService
from stackup.services.docker_service import DockerService


class HttpProbe:
    """requests-based equivalent of `curl --head --location --insecure`"""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = c.HTTP_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, scheme: str, domain: str, port: int) -> str:
        default = c.DEFAULT_HTTPS_PORT if scheme == "https" else c.DEFAULT_HTTP_PORT
        host = domain if port == default else f"{domain}:{port}"
        return f"{scheme}://{host}/"

    def head(self, domain: str, port: int = c.DEFAULT_HTTPS_PORT) -> requests.Response:
        """HEAD the HTTPS site, following redirects, without TLS verification."""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", InsecureRequestWarning)
            return self.session.head(
                self._url("https", domain, port),
                allow_redirects=True,
                verify=False,
                timeout=self.timeout,
            )

    def get_plain(self, domain: str, port: int = c.DEFAULT_HTTP_PORT) -> requests.Response:
        """GET the HTTP site without following redirects."""
        return self.session.get(
            self._url("http", domain, port), allow_redirects=False, timeout=self.timeout
        )

    def get_secure(self, domain: str, port: int = c.DEFAULT_HTTPS_PORT) -> requests.Response:
        """GET the HTTPS site without TLS verification, following redirects."""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", InsecureRequestWarning)
            return self.session.get(
                self._url("https", domain, port),
                allow_redirects=True,
                verify=False,
                timeout=self.timeout,
            )


def format_head_response(response: requests.Response) -> List[str]:
    """Render a response like curl --head prints it."""
    lines = [f"HTTP {response.status_code} {response.reason or ''}".rstrip()]
    lines.extend(f"{key}: {value}" for key, value in response.headers.items())
    return lines


class StackVerifier:
    """
    Acceptance checks for a provisioned stack.

    Each check returns a CheckResult; none of them raise.
    """

    def __init__(
        self,
        config: StackConfig,
        docker: DockerService,
        certificates: CertificateService,
        probe: Optional[HttpProbe] = None,
    ):
        self.config = config
        self.docker = docker
        self.certificates = certificates
        self.probe = probe or HttpProbe()

    def check_containers(self) -> CheckResult:
        """mysql, wordpress and nginx must all be running; other containers are ignored."""
        name = "Containers running"
        expected = set(c.STACK_CONTAINERS)
        try:
            running = set(self.docker.running_containers())
        except StackupError as e:
            return CheckResult(name, ResultStatus.FAILURE, e.message)

        stack_running = running & expected
        missing = sorted(expected - running)
        if missing:
            return CheckResult(
                name,
                ResultStatus.FAILURE,
                f"Not running: {', '.join(missing)}",
                hint="Run: stackup wordpress:up",
            )
        return CheckResult(name, ResultStatus.SUCCESS, ", ".join(sorted(stack_running)))

    def check_certificate(self) -> CheckResult:
        name = "TLS certificate"
        try:
            info = self.certificates.inspect(self.config.cert_path)
        except StackupError as e:
            return CheckResult(name, ResultStatus.FAILURE, e.message)

        problems = []
        if info.common_name != self.config.domain:
            problems.append(f"CN is {info.common_name!r}, expected {self.config.domain!r}")
        if info.validity_days != self.config.cert_days:
            problems.append(
                f"valid for {info.validity_days} days, expected {self.config.cert_days}"
            )
        if problems:
            return CheckResult(name, ResultStatus.FAILURE, "; ".join(problems))
        return CheckResult(
            name,
            ResultStatus.SUCCESS,
            f"CN={info.common_name}, {info.validity_days} days (until {info.not_after})",
        )

    def check_http_redirect(self) -> CheckResult:
        name = "HTTP -> HTTPS redirect"
        try:
            response = self.probe.get_plain(self.config.domain, self.config.http_port)
        except requests.RequestException as e:
            return CheckResult(name, ResultStatus.FAILURE, str(e), hint=self.hosts_hint())

        location = response.headers.get("Location", "")
        if response.status_code == 301 and location.startswith("https://"):
            return CheckResult(name, ResultStatus.SUCCESS, f"301 -> {location}")
        return CheckResult(
            name,
            ResultStatus.FAILURE,
            f"Got {response.status_code} (Location: {location or '-'})",
        )

    def check_https(self) -> CheckResult:
        name = "HTTPS via nginx"
        try:
            response = self.probe.get_secure(self.config.domain, self.config.https_port)
        except requests.RequestException as e:
            return CheckResult(name, ResultStatus.FAILURE, str(e), hint=self.hosts_hint())

        if response.status_code >= 500:
            return CheckResult(
                name,
                ResultStatus.FAILURE,
                f"Got {response.status_code} from {response.url}",
                hint="Check: docker logs wordpress",
            )
        return CheckResult(name, ResultStatus.SUCCESS, f"{response.status_code} from {response.url}")

    def run_all(self) -> List[CheckResult]:
        return [
            self.check_containers(),
            self.check_certificate(),
            self.check_http_redirect(),
            self.check_https(),
        ]

    def hosts_hint(self) -> str:
        return f"Add to /etc/hosts: 127.0.0.1   {self.config.domain}"
