"""
WordPress stack orchestration

Provisions MySQL, WordPress and an nginx TLS proxy as plain docker
containers, one step after another. The first failing command aborts the
run; anything created before it is left in place.
"""

import time
from typing import Callable, Dict, List, Optional

import requests

from stackup import constants as c
from stackup.core.config_loader import (
    StackConfig,
    forget_credentials,
    generate_credentials,
    load_saved_credentials,
    save_credentials,
)
from stackup.exceptions import DockerError
from stackup.logger import DeployLogger
from stackup.models.stack import ContainerSpec, DatabaseCredentials
from stackup.services.certificate_service import CertificateService
from stackup.services.docker_service import DockerService
from stackup.services.nginx_service import NginxConfigService
from stackup.services.verify_service import HttpProbe, format_head_response
from stackup.utils import safe_rmtree


class WordPressStack:
    """The seven provisioning steps plus teardown and status."""

    def __init__(
        self,
        config: StackConfig,
        logger: DeployLogger,
        docker: DockerService,
        certificates: CertificateService,
        nginx: Optional[NginxConfigService] = None,
        probe: Optional[HttpProbe] = None,
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = False,
    ):
        self.config = config
        self.logger = logger
        self.docker = docker
        self.certificates = certificates
        self.nginx = nginx or NginxConfigService()
        self.probe = probe or HttpProbe()
        self._sleep = sleep
        self.dry_run = dry_run

    # ------------------------------------------------------------------
    # Container definitions
    # ------------------------------------------------------------------

    def mysql_spec(self, credentials: DatabaseCredentials) -> ContainerSpec:
        return ContainerSpec(
            name=c.MYSQL_CONTAINER,
            image=self.config.mysql_image,
            network=self.config.network,
            volumes=[f"{self.config.db_volume}:{c.MYSQL_DATA_MOUNT}"],
            env=credentials.mysql_env(),
        )

    def wordpress_spec(self, credentials: DatabaseCredentials) -> ContainerSpec:
        return ContainerSpec(
            name=c.WORDPRESS_CONTAINER,
            image=self.config.wordpress_image,
            network=self.config.network,
            volumes=[f"{self.config.wp_volume}:{c.WORDPRESS_DATA_MOUNT}"],
            env=credentials.wordpress_env(f"{c.MYSQL_CONTAINER}:{c.MYSQL_PORT}"),
        )

    def nginx_spec(self) -> ContainerSpec:
        return ContainerSpec(
            name=c.NGINX_CONTAINER,
            image=self.config.nginx_image,
            network=self.config.network,
            ports=[
                f"{self.config.http_port}:{c.DEFAULT_HTTP_PORT}",
                f"{self.config.https_port}:{c.DEFAULT_HTTPS_PORT}",
            ],
            volumes=[
                f"{self.config.nginx_conf_dir.resolve()}:{c.NGINX_CONF_MOUNT}:ro",
                f"{self.config.nginx_certs_dir.resolve()}:{c.NGINX_CERTS_MOUNT}:ro",
            ],
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Step 1: remove previous containers and the project directory."""
        self.logger.step("Step 1: Cleaning up any previous environment")
        self.docker.stop_and_remove(list(c.STACK_CONTAINERS))

        workspace = self.config.workspace
        if workspace.exists():
            self.logger.log(f"Removing old project directory: {workspace}")
            if not self.dry_run:
                safe_rmtree(workspace, self.config.base_dir)
        self.logger.success("Cleanup complete")

    def prepare_host(self) -> None:
        """Step 2: project directories and the /etc/hosts reminder."""
        self.logger.step("Step 2: Setting up host environment")
        if not self.dry_run:
            self.config.nginx_conf_dir.mkdir(parents=True, exist_ok=True)
            self.config.nginx_certs_dir.mkdir(parents=True, exist_ok=True)
        self.logger.success(f"Project directories created in {self.config.workspace}")
        self.logger.warning("Make sure this line is in your /etc/hosts file:")
        self.logger.info(f"127.0.0.1   {self.config.domain}")
        if self.config.settle_seconds and not self.dry_run:
            self._sleep(self.config.settle_seconds)

    def create_resources(self) -> Dict[str, bool]:
        """
        Step 3: network and volumes, reused when present.

        Returns:
            Mapping "network", "db_volume", "wp_volume" -> True if created
        """
        self.logger.step("Step 3: Creating Docker network and volumes")
        created = {
            "network": self.docker.ensure_network(self.config.network),
            "db_volume": self.docker.ensure_volume(self.config.db_volume),
            "wp_volume": self.docker.ensure_volume(self.config.wp_volume),
        }
        for key, was_created in created.items():
            name = getattr(self.config, key)
            self.logger.success(f"{'Created' if was_created else 'Reusing'} {name}")
        return created

    def resolve_credentials(self, db_volume_created: bool) -> DatabaseCredentials:
        """
        Credentials for the database volume.

        A new volume gets fresh passwords. A reused one keeps the passwords it
        was initialised with, since mysql ignores MYSQL_* on existing data.

        Raises:
            DockerError: If the volume is reused but nothing was saved for it
        """
        if db_volume_created:
            return generate_credentials(self.config)

        saved = load_saved_credentials(self.config)
        if saved is None:
            raise DockerError(
                f"Volume '{self.config.db_volume}' exists but no saved credentials were found",
                context="Remove the stale volume with: stackup wordpress:down --purge",
            )
        self.logger.log(f"Reusing database credentials from {self.config.credentials_path}")
        return saved

    def generate_certificate(self) -> None:
        """Step 4: self-signed certificate for the domain."""
        self.logger.step("Step 4: Generating self-signed SSL certificate")
        path = self.certificates.generate(self.config)
        self.logger.success(f"SSL certificate and key generated in {path.parent}")

    def write_nginx_config(self) -> None:
        """Step 5: nginx server blocks."""
        self.logger.step("Step 5: Creating Nginx configuration file")
        if self.dry_run:
            self.logger.log(self.nginx.render(self.config), "DEBUG")
            self.logger.success(f"Would write {self.config.site_conf_path}")
            return
        path = self.nginx.write(self.config)
        self.logger.success(f"Nginx config written to {path}")

    def launch_containers(self, credentials: DatabaseCredentials) -> List[str]:
        """Step 6: mysql, wait for readiness, then wordpress and nginx."""
        self.logger.step("Step 6: Launching containers")

        self.docker.run_container(self.mysql_spec(credentials))

        self.logger.log(
            f"Waiting for MySQL to be ready (marker: {self.config.readiness_marker!r})"
        )
        polls = self.docker.wait_for_log(
            c.MYSQL_CONTAINER,
            self.config.readiness_marker,
            interval=self.config.poll_interval,
            timeout=self.config.readiness_timeout,
            on_poll=lambda attempt: self.logger.log(f"MySQL not ready (poll {attempt})", "DEBUG"),
        )
        self.logger.success(f"MySQL is ready ({polls} poll(s))")

        self.docker.run_container(self.wordpress_spec(credentials))
        self.docker.run_container(self.nginx_spec())
        self.logger.success("All containers are running")
        return [c.MYSQL_CONTAINER, c.WORDPRESS_CONTAINER, c.NGINX_CONTAINER]

    def verify(self) -> bool:
        """
        Step 7: HEAD the HTTPS site.

        Returns:
            True if a response came back; a failure is only a warning
        """
        self.logger.step("Step 7: Verifying the setup")
        if self.dry_run:
            self.logger.success(f"Would request https://{self.config.domain}")
            return True
        if self.config.verify_delay:
            self._sleep(self.config.verify_delay)

        try:
            response = self.probe.head(self.config.domain, self.config.https_port)
        except requests.RequestException as e:
            self.logger.warning(f"Could not reach https://{self.config.domain}: {e}")
            self.logger.warning(f"Add to /etc/hosts: 127.0.0.1   {self.config.domain}")
            return False

        for line in format_head_response(response):
            self.logger.info(line)
        if response.status_code >= 400:
            self.logger.warning(f"https://{self.config.domain} answered {response.status_code}")
            return False
        self.logger.success(f"https://{self.config.domain} answered {response.status_code}")
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def provision(self, credentials: Optional[DatabaseCredentials] = None) -> DatabaseCredentials:
        """
        Run all seven steps in order.

        Returns:
            The credentials the database was initialised with
        """
        self.cleanup()
        self.prepare_host()
        created = self.create_resources()

        if credentials is None:
            credentials = self.resolve_credentials(created["db_volume"])
        for secret in credentials.secrets:
            self.logger.register_secret(secret)
        if not self.dry_run:
            save_credentials(self.config, credentials)

        self.generate_certificate()
        self.write_nginx_config()
        self.launch_containers(credentials)
        self.verify()
        return credentials

    def teardown(self, purge: bool = False) -> None:
        """
        Stop and remove the containers.

        Args:
            purge: Also remove network, volumes and the project directory
        """
        self.logger.step("Removing containers")
        self.docker.stop_and_remove(list(c.STACK_CONTAINERS))
        self.logger.success(f"Removed {', '.join(c.STACK_CONTAINERS)}")

        if not purge:
            return

        self.logger.step("Purging network, volumes and project directory")
        if self.docker.remove_network(self.config.network):
            self.logger.success(f"Removed network {self.config.network}")
        for volume in (self.config.db_volume, self.config.wp_volume):
            if self.docker.remove_volume(volume):
                self.logger.success(f"Removed volume {volume}")
                if volume == self.config.db_volume and not self.dry_run:
                    forget_credentials(self.config)
            else:
                self.logger.warning(f"Volume {volume} not removed (missing or in use)")
        if not self.dry_run and safe_rmtree(self.config.workspace, self.config.base_dir):
            self.logger.success(f"Removed {self.config.workspace}")

    def status(self) -> Dict[str, Dict[str, str]]:
        """State of the three stack containers, missing ones included."""
        states = self.docker.container_states(list(c.STACK_CONTAINERS))
        missing = {"state": "missing", "status": "-", "image": "-"}
        return {
            name: states.get(name, dict(missing))
            for name in (c.MYSQL_CONTAINER, c.WORDPRESS_CONTAINER, c.NGINX_CONTAINER)
        }
