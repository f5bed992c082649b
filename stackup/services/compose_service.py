"""
Compose Service

Builds a docker-compose.yml equivalent of the WordPress stack.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from stackup import constants as c
from stackup.core.config_loader import StackConfig
from stackup.models.stack import DatabaseCredentials
from stackup.utils import write_file


class ComposeService:
    """
    Renders the three-service compose file and its .env.

    Passwords live only in .env; the compose file references them as
    ${VAR} so it can be committed.
    """

    def __init__(self, config: StackConfig, output_dir: Optional[Path] = None):
        self.config = config
        self.output_dir = Path(output_dir) if output_dir else config.workspace

    @property
    def compose_path(self) -> Path:
        return self.output_dir / c.COMPOSE_FILENAME

    @property
    def env_path(self) -> Path:
        return self.output_dir / c.COMPOSE_ENV_FILENAME

    def build(self) -> Dict[str, Any]:
        """
        Build the compose structure.

        Returns:
            Dictionary ready for yaml.dump
        """
        cfg = self.config
        network = cfg.network

        mysql = {
            "image": cfg.mysql_image,
            "container_name": c.MYSQL_CONTAINER,
            "hostname": c.MYSQL_CONTAINER,
            "restart": "always",
            "volumes": [f"{cfg.db_volume}:{c.MYSQL_DATA_MOUNT}"],
            "environment": {
                "MYSQL_ROOT_PASSWORD": "${MYSQL_ROOT_PASSWORD}",
                "MYSQL_DATABASE": "${MYSQL_DATABASE}",
                "MYSQL_USER": "${MYSQL_USER}",
                "MYSQL_PASSWORD": "${MYSQL_PASSWORD}",
            },
            "healthcheck": {
                "test": [
                    "CMD-SHELL",
                    'mysqladmin ping -h localhost -u root -p"$$MYSQL_ROOT_PASSWORD" --silent',
                ],
                "interval": f"{cfg.poll_interval:g}s",
                "timeout": "5s",
                "retries": 30,
            },
            "networks": [network],
        }

        wordpress = {
            "image": cfg.wordpress_image,
            "container_name": c.WORDPRESS_CONTAINER,
            "hostname": c.WORDPRESS_CONTAINER,
            "restart": "always",
            "depends_on": {c.MYSQL_CONTAINER: {"condition": "service_healthy"}},
            "volumes": [f"{cfg.wp_volume}:{c.WORDPRESS_DATA_MOUNT}"],
            "environment": {
                "WORDPRESS_DB_HOST": f"{c.MYSQL_CONTAINER}:{c.MYSQL_PORT}",
                "WORDPRESS_DB_NAME": "${MYSQL_DATABASE}",
                "WORDPRESS_DB_USER": "${MYSQL_USER}",
                "WORDPRESS_DB_PASSWORD": "${MYSQL_PASSWORD}",
            },
            "networks": [network],
        }

        nginx = {
            "image": cfg.nginx_image,
            "container_name": c.NGINX_CONTAINER,
            "hostname": c.NGINX_CONTAINER,
            "restart": "always",
            "depends_on": [c.WORDPRESS_CONTAINER],
            "ports": [
                f"{cfg.http_port}:{c.DEFAULT_HTTP_PORT}",
                f"{cfg.https_port}:{c.DEFAULT_HTTPS_PORT}",
            ],
            "volumes": [
                f"{self._relative(cfg.nginx_conf_dir)}:{c.NGINX_CONF_MOUNT}:ro",
                f"{self._relative(cfg.nginx_certs_dir)}:{c.NGINX_CERTS_MOUNT}:ro",
            ],
            "networks": [network],
        }

        return {
            "services": {
                c.MYSQL_CONTAINER: mysql,
                c.WORDPRESS_CONTAINER: wordpress,
                c.NGINX_CONTAINER: nginx,
            },
            "networks": {network: {"name": network, "driver": "bridge"}},
            "volumes": {
                cfg.db_volume: {"name": cfg.db_volume},
                cfg.wp_volume: {"name": cfg.wp_volume},
            },
        }

    def _relative(self, path: Path) -> str:
        """Bind-mount source relative to the compose file when possible."""
        try:
            return "./" + str(Path(path).resolve().relative_to(self.output_dir.resolve()))
        except ValueError:
            return str(path)

    def render(self) -> str:
        return yaml.dump(self.build(), default_flow_style=False, sort_keys=False)

    def render_env(self, credentials: DatabaseCredentials) -> str:
        lines = [
            "# Generated by stackup; keep out of version control",
            f"MYSQL_ROOT_PASSWORD={credentials.root_password}",
            f"MYSQL_PASSWORD={credentials.password}",
            f"MYSQL_DATABASE={credentials.database}",
            f"MYSQL_USER={credentials.user}",
        ]
        return "\n".join(lines) + "\n"

    def write(
        self, credentials: DatabaseCredentials, force: bool = False
    ) -> Tuple[bool, bool]:
        """
        Write docker-compose.yml and .env.

        An existing .env is kept unless force is set, so regenerating the
        compose file does not rotate passwords under a running database.

        Returns:
            (compose_written, env_written)
        """
        compose_written = write_file(self.compose_path, self.render(), force=force)
        env_written = write_file(
            self.env_path,
            self.render_env(credentials),
            force=force,
            mode=c.SECRET_FILE_PERMISSIONS,
        )
        return compose_written, env_written
