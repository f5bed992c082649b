"""
Stack Models

Runtime models for the WordPress stack: generated credentials and the
container definitions handed to `docker run`.
"""

import base64
import secrets
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from stackup.constants import PASSWORD_BYTES


def generate_password(nbytes: int = PASSWORD_BYTES) -> str:
    """Generate a random password shaped like `openssl rand -base64 <nbytes>`."""
    return base64.b64encode(secrets.token_bytes(nbytes)).decode("ascii")


@dataclass
class DatabaseCredentials:
    """MySQL credentials for one provisioning run."""

    root_password: str
    password: str
    database: str
    user: str

    @classmethod
    def generate(cls, database: str, user: str) -> "DatabaseCredentials":
        """Create credentials with two fresh random passwords."""
        return cls(
            root_password=generate_password(),
            password=generate_password(),
            database=database,
            user=user,
        )

    @property
    def secrets(self) -> List[str]:
        """Values that must never reach a log file."""
        return [self.root_password, self.password]

    def mysql_env(self) -> Dict[str, str]:
        return {
            "MYSQL_ROOT_PASSWORD": self.root_password,
            "MYSQL_DATABASE": self.database,
            "MYSQL_USER": self.user,
            "MYSQL_PASSWORD": self.password,
        }

    def wordpress_env(self, db_host: str) -> Dict[str, str]:
        return {
            "WORDPRESS_DB_HOST": db_host,
            "WORDPRESS_DB_NAME": self.database,
            "WORDPRESS_DB_USER": self.user,
            "WORDPRESS_DB_PASSWORD": self.password,
        }


@dataclass
class ContainerSpec:
    """Everything needed to build one `docker run -d` invocation."""

    name: str
    image: str
    network: str
    hostname: Optional[str] = None
    restart: str = "always"
    volumes: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    ports: List[str] = field(default_factory=list)

    def to_args(self) -> List[str]:
        """
        Build the `docker run` argument vector.

        Returns:
            List of arguments starting with "docker"
        """
        args = [
            "docker",
            "run",
            "-d",
            "--name",
            self.name,
            "--network",
            self.network,
            "--hostname",
            self.hostname or self.name,
            f"--restart={self.restart}",
        ]
        for port in self.ports:
            args.extend(["-p", port])
        for volume in self.volumes:
            args.extend(["--volume", volume])
        for key, value in self.env.items():
            args.extend(["-e", f"{key}={value}"])
        args.append(self.image)
        return args


@dataclass
class CertificateInfo:
    """Parsed fields of an X.509 certificate."""

    subject: str
    common_name: Optional[str]
    not_before: str
    not_after: str
    validity_days: int
