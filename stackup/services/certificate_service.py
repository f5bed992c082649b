"""
Certificate Service

Self-signed X.509 generation and inspection through the openssl binary.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict

from stackup.core.config_loader import StackConfig
from stackup.exceptions import CertificateError, CommandExecutionError
from stackup.models.stack import CertificateInfo
from stackup.utils import CommandExecutor

OPENSSL_DATE_FORMAT = "%b %d %H:%M:%S %Y %Z"
CN_RE = re.compile(r"CN\s*=\s*([^,/\n]+)")


def parse_openssl_date(value: str) -> datetime:
    """
    Parse an openssl date such as "Oct  8 10:00:00 2026 GMT".

    Raises:
        CertificateError: If the value does not match
    """
    try:
        return datetime.strptime(" ".join(value.split()), OPENSSL_DATE_FORMAT)
    except ValueError:
        raise CertificateError(f"Unrecognized certificate date: {value!r}")


def parse_x509_text(text: str) -> CertificateInfo:
    """
    Parse `openssl x509 -noout -subject -startdate -enddate` output.

    Handles both the legacy "/C=IR/CN=x" and the "C = IR, CN = x"
    subject layouts.
    """
    fields: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            fields[key.strip().lower()] = value.strip()

    missing = [k for k in ("subject", "notbefore", "notafter") if k not in fields]
    if missing:
        raise CertificateError(
            "Certificate could not be parsed", context=f"Missing fields: {', '.join(missing)}"
        )

    subject = fields["subject"]
    cn_match = CN_RE.search(subject)
    not_before = parse_openssl_date(fields["notbefore"])
    not_after = parse_openssl_date(fields["notafter"])

    return CertificateInfo(
        subject=subject,
        common_name=cn_match.group(1).strip() if cn_match else None,
        not_before=not_before.isoformat(),
        not_after=not_after.isoformat(),
        validity_days=round((not_after - not_before).total_seconds() / 86400),
    )


class CertificateService:
    """Generates and inspects the nginx TLS certificate."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def generate(self, config: StackConfig) -> Path:
        """
        Create a self-signed certificate and unencrypted key.

        Returns:
            Path to the certificate

        Raises:
            CertificateError: If openssl fails
        """
        if not self.executor.dry_run:
            config.nginx_certs_dir.mkdir(parents=True, exist_ok=True)
        args = [
            "openssl",
            "req",
            "-x509",
            "-nodes",
            "-newkey",
            f"rsa:{config.cert_key_bits}",
            "-days",
            str(config.cert_days),
            "-keyout",
            str(config.key_path),
            "-out",
            str(config.cert_path),
            "-subj",
            config.subject_string(),
        ]
        try:
            self.executor.run(args, description=f"Generating RSA-{config.cert_key_bits} certificate")
        except CommandExecutionError as e:
            raise CertificateError("openssl req failed", context=e.stderr or None)
        return config.cert_path

    def inspect(self, cert_path: Path) -> CertificateInfo:
        """
        Read subject and validity window of a PEM certificate.

        Raises:
            CertificateError: If the file is missing or not a certificate
        """
        if not Path(cert_path).exists():
            raise CertificateError(f"Certificate not found: {cert_path}")

        try:
            result = self.executor.run(
                [
                    "openssl",
                    "x509",
                    "-in",
                    str(cert_path),
                    "-noout",
                    "-subject",
                    "-startdate",
                    "-enddate",
                ]
            )
        except CommandExecutionError as e:
            raise CertificateError(f"Not a valid X.509 certificate: {cert_path}", context=e.stderr or None)

        return parse_x509_text(result.stdout)
