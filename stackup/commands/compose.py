"""stackup CLI - Docker Compose commands"""

from pathlib import Path
from typing import Optional

import click

from stackup.base import StackCommand
from stackup.commands.wordpress import stack_options
from stackup.core.config_loader import generate_credentials
from stackup.exceptions import DockerError, ValidationError
from stackup.services.compose_service import ComposeService
from stackup.services.nginx_service import NginxConfigService


class ComposeGenerateCommand(StackCommand):
    """Write docker-compose.yml, .env, nginx config and certificate."""

    def __init__(self, output_dir: Optional[Path] = None, force: bool = False, with_cert: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.output_dir = output_dir
        self.force = force
        self.with_cert = with_cert

    def execute(self) -> None:
        self.load_config()
        self.show_header(title="Generate Compose stack", details=self.stack_details())
        if self.with_cert:
            self.require_tools(["openssl"])
        self.init_stack("compose-generate")

        compose = ComposeService(self.config, self.output_dir)
        credentials = generate_credentials(self.config)
        for secret in credentials.secrets:
            self.logger.register_secret(secret)

        self.logger.step("Writing compose files")
        compose_written, env_written = compose.write(credentials, force=self.force)
        self._report(compose.compose_path, compose_written)
        self._report(compose.env_path, env_written)

        self.logger.step("Writing nginx configuration")
        path = NginxConfigService().write(self.config)
        self.logger.success(f"Wrote {path}")

        if self.with_cert:
            self.logger.step("Generating self-signed SSL certificate")
            if self.config.cert_path.exists() and not self.force:
                self.logger.warning(f"Kept existing {self.config.cert_path}")
            else:
                self.certificates.generate(self.config)
                self.logger.success(f"Wrote {self.config.cert_path}")

        self.console.print()
        self.print_success(f"Compose stack ready in {compose.output_dir}")
        self.print_dim(f"Next: stackup compose:up -f {compose.compose_path}")

    def _report(self, path: Path, written: bool) -> None:
        if written:
            self.logger.success(f"Wrote {path}")
        else:
            self.logger.warning(f"Kept existing {path} (use --force to overwrite)")


class ComposeActionCommand(StackCommand):
    """Run `docker compose up -d` or `down` on the generated file."""

    def __init__(self, action: str, compose_file: Optional[Path] = None, **kwargs):
        super().__init__(**kwargs)
        self.action = action
        self.compose_file = compose_file

    def execute(self) -> None:
        self.load_config()
        compose_file = self.compose_file or ComposeService(self.config).compose_path
        if not Path(compose_file).exists():
            raise ValidationError(
                f"Compose file not found: {compose_file}", context="Run: stackup compose:generate"
            )

        self.show_header(
            title=f"docker compose {self.action}",
            details={"File": str(compose_file)},
        )
        self.init_stack(f"compose-{self.action}")
        self.logger.step(f"docker compose {self.action}")

        args = ["up", "-d"] if self.action == "up" else ["down"]
        returncode = self.docker.compose(str(compose_file), *args)
        if returncode != 0:
            raise DockerError(f"docker compose {self.action} failed (exit {returncode})")
        self.logger.success(f"docker compose {self.action} completed")


@click.command(name="compose:generate")
@stack_options
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for docker-compose.yml and .env (default: project directory)",
)
@click.option("--no-cert", is_flag=True, help="Skip certificate generation")
@click.option("--force", is_flag=True, help="Overwrite existing files (rotates .env passwords)")
def compose_generate(config_path, overrides, verbose, output_dir, no_cert, force):
    """
    Generate docker-compose.yml for the WordPress stack

    Passwords go to a 0600 .env file next to the compose file, never
    into the compose file itself.
    """
    cmd = ComposeGenerateCommand(
        output_dir=output_dir,
        force=force,
        with_cert=not no_cert,
        config_path=config_path,
        overrides=overrides,
        verbose=verbose,
    )
    cmd.run()


@click.command(name="compose:up")
@stack_options
@click.option("-f", "--file", "compose_file", type=click.Path(dir_okay=False, path_type=Path))
def compose_up(config_path, overrides, verbose, compose_file):
    """Start the compose stack (docker compose up -d)"""
    ComposeActionCommand(
        "up", compose_file, config_path=config_path, overrides=overrides, verbose=verbose
    ).run()


@click.command(name="compose:down")
@stack_options
@click.option("-f", "--file", "compose_file", type=click.Path(dir_okay=False, path_type=Path))
def compose_down(config_path, overrides, verbose, compose_file):
    """Stop the compose stack (docker compose down)"""
    ComposeActionCommand(
        "down", compose_file, config_path=config_path, overrides=overrides, verbose=verbose
    ).run()
