"""Configuration management for stackup WordPress stacks"""

import re
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stackup import constants as c
from stackup.exceptions import ConfigurationError
from stackup.models.results import ValidationResult
from stackup.models.stack import DatabaseCredentials

# Docker resource names: [a-zA-Z0-9][a-zA-Z0-9_.-]*
DOCKER_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")
HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,63}$"
)


@dataclass
class StackConfig:
    """Variables of one WordPress stack, with defaults for every field"""

    domain: str = c.DEFAULT_DOMAIN
    project_dir: str = c.DEFAULT_PROJECT_DIR
    network: str = c.DEFAULT_NETWORK
    db_volume: str = c.DEFAULT_DB_VOLUME
    wp_volume: str = c.DEFAULT_WP_VOLUME
    mysql_database: str = c.DEFAULT_MYSQL_DATABASE
    mysql_user: str = c.DEFAULT_MYSQL_USER
    mysql_image: str = c.DEFAULT_MYSQL_IMAGE
    wordpress_image: str = c.DEFAULT_WORDPRESS_IMAGE
    nginx_image: str = c.DEFAULT_NGINX_IMAGE
    readiness_marker: str = c.MYSQL_READY_MARKER
    poll_interval: float = c.DEFAULT_POLL_INTERVAL
    readiness_timeout: float = c.DEFAULT_READINESS_TIMEOUT
    cert_days: int = c.DEFAULT_CERT_DAYS
    cert_key_bits: int = c.DEFAULT_CERT_KEY_BITS
    cert_subject: Dict[str, str] = field(
        default_factory=lambda: dict(c.DEFAULT_CERT_SUBJECT)
    )
    http_port: int = c.DEFAULT_HTTP_PORT
    https_port: int = c.DEFAULT_HTTPS_PORT
    settle_seconds: float = c.DEFAULT_SETTLE_SECONDS
    verify_delay: float = c.DEFAULT_VERIFY_DELAY
    base_dir: Path = field(default_factory=Path.cwd)

    @property
    def workspace(self) -> Path:
        """Host directory holding generated nginx config and certificates."""
        return Path(self.base_dir) / self.project_dir

    @property
    def nginx_conf_dir(self) -> Path:
        return self.workspace / "nginx" / "conf.d"

    @property
    def nginx_certs_dir(self) -> Path:
        return self.workspace / "nginx" / "certs"

    @property
    def cert_path(self) -> Path:
        return self.nginx_certs_dir / c.CERT_FILENAME

    @property
    def key_path(self) -> Path:
        return self.nginx_certs_dir / c.KEY_FILENAME

    @property
    def site_conf_path(self) -> Path:
        return self.nginx_conf_dir / c.NGINX_SITE_CONF

    @property
    def credentials_path(self) -> Path:
        """Saved database credentials; outside the workspace so cleanup keeps them."""
        return Path(self.base_dir) / c.STATE_DIR / f"{self.db_volume}{c.CREDENTIALS_SUFFIX}"

    def subject_string(self) -> str:
        """
        Build the openssl -subj argument.

        Returns:
            e.g. "/C=IR/ST=Tehran/L=Tehran/O=DockerMe/CN=example.com"
        """
        parts = {k: v for k, v in self.cert_subject.items() if k != "CN"}
        parts["CN"] = self.domain
        return "".join(f"/{key}={value}" for key, value in parts.items())

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["base_dir"] = str(self.base_dir)
        return data

    def validate(self) -> ValidationResult:
        """Check field values; never raises."""
        result = ValidationResult(is_valid=True)

        if not HOSTNAME_RE.match(self.domain or ""):
            result.add_error(
                f"Invalid domain: {self.domain!r} (expected a dotted hostname like example.com)"
            )

        for name in ("project_dir", "network", "db_volume", "wp_volume"):
            value = getattr(self, name)
            if not isinstance(value, str) or not DOCKER_NAME_RE.match(value):
                result.add_error(
                    f"Invalid {name}: {value!r} (letters, digits, '_', '.', '-' only)"
                )

        if self.db_volume == self.wp_volume:
            result.add_error("db_volume and wp_volume must differ")

        for name in ("http_port", "https_port"):
            port = getattr(self, name)
            if not isinstance(port, int) or not 1 <= port <= 65535:
                result.add_error(f"Invalid {name}: {port!r} (must be 1-65535)")

        if self.http_port == self.https_port:
            result.add_error("http_port and https_port must differ")

        if not self.poll_interval or self.poll_interval <= 0:
            result.add_error(f"Invalid poll_interval: {self.poll_interval} (must be > 0)")
        if self.readiness_timeout < 0:
            result.add_error(
                f"Invalid readiness_timeout: {self.readiness_timeout} (0 waits forever)"
            )
        if self.cert_days <= 0:
            result.add_error(f"Invalid cert_days: {self.cert_days} (must be > 0)")
        if self.cert_key_bits < 2048:
            result.add_error(f"Invalid cert_key_bits: {self.cert_key_bits} (min 2048)")
        if not self.readiness_marker:
            result.add_error("readiness_marker must not be empty")

        if self.settle_seconds < 0 or self.verify_delay < 0:
            result.add_error("settle_seconds and verify_delay must be >= 0")

        return result


CONFIG_KEYS = [f.name for f in fields(StackConfig) if f.name != "base_dir"]


def _read_stack_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}", context=str(e))

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid stack file {path}: top level must be a mapping",
            context=f"Known keys: {', '.join(CONFIG_KEYS)}",
        )

    # Allow an optional top-level "stack:" wrapper
    if set(data) == {"stack"} and isinstance(data["stack"], dict):
        data = data["stack"]

    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in {path}: {', '.join(unknown)}",
            context=f"Known keys: {', '.join(CONFIG_KEYS)}",
        )
    return data


def load_stack_config(
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    base_dir: Optional[Path] = None,
) -> StackConfig:
    """
    Load and validate a stack configuration

    Args:
        path: Explicit stack file (must exist). When None, stackup.yml in
            base_dir is used if present.
        overrides: CLI values; None entries are ignored
        base_dir: Directory that holds the project directory (defaults to
            the working root)

    Returns:
        Validated StackConfig

    Raises:
        ConfigurationError: If the file is missing/invalid or values fail validation
    """
    if base_dir is None:
        from stackup.utils import get_project_root

        base_dir = get_project_root()
    base_dir = Path(base_dir)

    data: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Stack file not found: {path}")
        data = _read_stack_file(path)
    else:
        default_path = base_dir / c.DEFAULT_STACK_FILE
        if default_path.exists():
            data = _read_stack_file(default_path)

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in CONFIG_KEYS:
            raise ConfigurationError(f"Unknown configuration key: {key}")
        data[key] = value

    if "cert_subject" in data:
        subject = data["cert_subject"]
        if not isinstance(subject, dict):
            raise ConfigurationError("cert_subject must be a mapping like {C: IR, O: Org}")
        data["cert_subject"] = {str(k): str(v) for k, v in subject.items()}

    try:
        config = StackConfig(base_dir=base_dir, **data)
        result = config.validate()
    except TypeError as e:
        raise ConfigurationError("Invalid stack configuration", context=str(e))

    if not result.is_valid:
        raise ConfigurationError(
            "Invalid stack configuration",
            context="\n".join(result.errors),
        )

    return config


def generate_credentials(config: StackConfig) -> DatabaseCredentials:
    """Fresh root and user passwords for the configured database and user."""
    return DatabaseCredentials.generate(config.mysql_database, config.mysql_user)


def save_credentials(config: StackConfig, credentials: DatabaseCredentials) -> Path:
    """Store the credentials a database volume was initialised with (mode 0600)."""
    from stackup.utils import write_file

    path = config.credentials_path
    write_file(
        path,
        yaml.safe_dump(asdict(credentials), default_flow_style=False, sort_keys=False),
        force=True,
        mode=c.SECRET_FILE_PERMISSIONS,
    )
    return path


def load_saved_credentials(config: StackConfig) -> Optional[DatabaseCredentials]:
    """
    Read credentials stored by save_credentials.

    Returns:
        DatabaseCredentials, or None if nothing was saved for this volume

    Raises:
        ConfigurationError: If the file cannot be parsed
    """
    path = config.credentials_path
    if not path.exists():
        return None
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return DatabaseCredentials(**data)
    except (yaml.YAMLError, TypeError) as e:
        raise ConfigurationError(f"Invalid saved credentials in {path}", context=str(e))


def forget_credentials(config: StackConfig) -> bool:
    """Delete saved credentials; returns False if there were none."""
    path = config.credentials_path
    if not path.exists():
        return False
    path.unlink()
    return True
