"""stackup CLI - Dockerized WordPress stack commands"""

import functools
from pathlib import Path

import click
from rich.table import Table

from stackup.base import StackCommand
from stackup.exceptions import VerificationError
from stackup.services.verify_service import StackVerifier
from stackup.ui_components import checks_table


def stack_options(func):
    """Options shared by every wordpress:* command."""

    @click.option(
        "-c",
        "--config",
        "config_path",
        type=click.Path(dir_okay=False, path_type=Path),
        help="Stack file (default: ./stackup.yml if present)",
    )
    @click.option("-d", "--domain", help="Domain served by nginx")
    @click.option("--project-dir", help="Directory for generated nginx config and certificates")
    @click.option("--network", help="Docker bridge network name")
    @click.option("--db-volume", help="Named volume for MySQL data")
    @click.option("--wp-volume", help="Named volume for WordPress files")
    @click.option("--verbose", "-v", is_flag=True, help="Show all command output")
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        kwargs["overrides"] = {
            "domain": kwargs.pop("domain"),
            "project_dir": kwargs.pop("project_dir"),
            "network": kwargs.pop("network"),
            "db_volume": kwargs.pop("db_volume"),
            "wp_volume": kwargs.pop("wp_volume"),
        }
        return func(*args, **kwargs)

    return wrapper


class WordPressUpCommand(StackCommand):
    """Provision the stack from scratch."""

    def execute(self) -> None:
        self.load_config()
        self.show_header(
            title="Provision WordPress",
            subtitle="Dry run: commands are printed, not executed" if self.dry_run else None,
            details=self.stack_details(),
        )
        self.require_tools(["docker", "openssl"])
        stack = self.init_stack("up")
        stack.provision()

        self.console.print()
        self.print_success(
            f"Setup complete! Open https://{self.config.domain} in your browser."
        )
        self.print_dim(f"Logs saved to: {self.logger.log_path}")


class WordPressDownCommand(StackCommand):
    """Remove the stack containers, optionally everything else."""

    def __init__(self, purge: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.purge = purge

    def execute(self) -> None:
        self.load_config()
        self.show_header(
            title="Remove WordPress",
            subtitle="Purging network, volumes and project directory" if self.purge else None,
            details=self.stack_details(),
        )
        stack = self.init_stack("down")
        stack.teardown(purge=self.purge)
        self.console.print()
        self.print_success("Stack removed")


class WordPressStatusCommand(StackCommand):
    """Show the state of the three containers."""

    def execute(self) -> None:
        stack = self.init_stack("status")
        states = stack.status()

        if self.json_output:
            self.output_json({"domain": self.config.domain, "containers": states})
            return

        self.show_header(title="WordPress Status", details=self.stack_details())
        table = Table(title="Containers", title_justify="left", padding=(0, 1))
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("State")
        table.add_column("Status", style="dim")
        table.add_column("Image", style="dim")
        for name, info in states.items():
            color = "green" if info["state"] == "running" else "red"
            table.add_row(name, f"[{color}]{info['state']}[/{color}]", info["status"], info["image"])
        self.console.print(table)


class WordPressVerifyCommand(StackCommand):
    """Run the post-deploy acceptance checks."""

    def execute(self) -> None:
        stack = self.init_stack("verify")
        verifier = StackVerifier(self.config, self.docker, self.certificates)
        self.logger.log("Running acceptance checks")
        results = verifier.run_all()

        for result in results:
            self.logger.log(
                f"{result.name}: {result.status.value} {result.detail}",
                "INFO" if result.passed else "ERROR",
            )

        failed = [r for r in results if r.failed]

        if self.json_output:
            self.output_json(
                {
                    "domain": self.config.domain,
                    "checks": [
                        {"name": r.name, "status": r.status.value, "detail": r.detail}
                        for r in results
                    ],
                },
                exit_code=1 if failed else 0,
            )
            return

        self.show_header(title="Verify WordPress", details=self.stack_details())
        self.console.print(checks_table("Acceptance Checks", results))
        self.console.print()

        if failed:
            raise VerificationError(
                f"{len(failed)} of {len(results)} checks failed",
                context=", ".join(r.name for r in failed),
            )
        self.print_success("All checks passed")


# Click command wrappers
@click.command(name="wordpress:up")
@stack_options
@click.option("--dry-run", is_flag=True, help="Print commands instead of running them")
def wordpress_up(config_path, overrides, verbose, dry_run):
    """
    Provision MySQL, WordPress and an nginx TLS proxy

    Removes any previous stack, creates the network and volumes, generates
    a self-signed certificate and nginx config, then starts the containers
    in dependency order (WordPress only after MySQL logs readiness).

    Examples:
        stackup wordpress:up
        stackup wordpress:up -d blog.local --dry-run
    """
    cmd = WordPressUpCommand(
        config_path=config_path, overrides=overrides, verbose=verbose, dry_run=dry_run
    )
    cmd.run()


@click.command(name="wordpress:down")
@stack_options
@click.option("--purge", is_flag=True, help="Also remove network, volumes and project directory")
def wordpress_down(config_path, overrides, verbose, purge):
    """
    Stop and remove the stack containers

    Examples:
        stackup wordpress:down
        stackup wordpress:down --purge
    """
    cmd = WordPressDownCommand(
        purge=purge, config_path=config_path, overrides=overrides, verbose=verbose
    )
    cmd.run()


@click.command(name="wordpress:status")
@stack_options
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def wordpress_status(config_path, overrides, verbose, json_output):
    """Show the state of the mysql, wordpress and nginx containers"""
    cmd = WordPressStatusCommand(
        config_path=config_path,
        overrides=overrides,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()


@click.command(name="wordpress:verify")
@stack_options
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def wordpress_verify(config_path, overrides, verbose, json_output):
    """
    Run acceptance checks against a provisioned stack

    Checks:
    - mysql, wordpress and nginx are running
    - cert.pem has CN=<domain> and the configured validity
    - HTTP answers 301 to HTTPS
    - HTTPS is answered by WordPress through nginx
    """
    cmd = WordPressVerifyCommand(
        config_path=config_path,
        overrides=overrides,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
