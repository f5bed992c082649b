"""stackup CLI - Ansible nginx role commands"""

from pathlib import Path

import click

from stackup import constants as c
from stackup.ansible_runner import AnsibleRunner
from stackup.ansible_utils import (
    AnsibleCommandOptions,
    AnsibleHost,
    AnsibleManager,
    NginxRoleVars,
    parse_extra_vars,
)
from stackup.base import BaseCommand
from stackup.exceptions import ProvisioningError, ValidationError


class NginxScaffoldCommand(BaseCommand):
    """Write the nginx role, playbook and inventory."""

    def __init__(
        self,
        target: Path,
        role_vars: NginxRoleVars,
        hosts: list[AnsibleHost],
        force: bool = False,
        verbose: bool = False,
    ):
        super().__init__(verbose=verbose)
        self.target = target
        self.role_vars = role_vars
        self.hosts = hosts
        self.force = force

    def execute(self) -> None:
        manager = AnsibleManager(self.project_root / self.target)
        self.show_header(
            title="Scaffold nginx role",
            details={
                "Directory": str(manager.ansible_dir),
                "Domain": self.role_vars.domain,
                "Hosts": ", ".join(h.name for h in self.hosts),
            },
        )
        self.init_logger("ansible", "scaffold")
        self.logger.step("Writing Ansible project")

        written = manager.scaffold(self.role_vars, self.hosts, force=self.force)
        kept = 0
        for path, was_written in written.items():
            relative = path.relative_to(manager.ansible_dir)
            if was_written:
                self.logger.success(f"Wrote {relative}")
            else:
                kept += 1
                self.logger.warning(f"Kept existing {relative}")

        self.console.print()
        if kept:
            self.print_dim("Use --force to overwrite existing files")
        self.print_success(f"Ansible project ready in {manager.ansible_dir}")
        self.print_dim(f"Next: stackup nginx:apply --dir {self.target}")


class NginxApplyCommand(BaseCommand):
    """Run the nginx playbook."""

    def __init__(self, target: Path, options: AnsibleCommandOptions, verbose: bool = False):
        super().__init__(verbose=verbose)
        self.target = target
        self.options = options

    def execute(self) -> None:
        manager = AnsibleManager(self.project_root / self.target)
        if not manager.playbook_path.exists():
            raise ValidationError(
                f"Playbook not found: {manager.playbook_path}",
                context=f"Run: stackup nginx:scaffold --dir {self.target}",
            )

        self.show_header(
            title="Apply nginx role",
            details={
                "Playbook": str(manager.playbook_path),
                "Tags": self.options.tags or "all",
                "Mode": "check" if self.options.check else "apply",
            },
        )
        self.init_logger("ansible", "apply")
        self.logger.step("Running ansible-playbook")

        runner = AnsibleRunner(self.logger, self.executor, verbose=self.verbose)
        returncode = runner.run(manager.build_command(self.options), cwd=manager.ansible_dir)
        if returncode != 0:
            raise ProvisioningError(
                f"ansible-playbook failed (exit {returncode})",
                context=f"See {self.logger.log_path}",
            )

        self.logger.success("Playbook completed")
        self.console.print()
        self.print_success("nginx configured")


def _parse_hosts(values: tuple[str, ...], user: str) -> list[AnsibleHost]:
    """NAME=ADDRESS pairs; a bare ADDRESS is named after itself."""
    if not values:
        return [AnsibleHost(name="localhost", address="127.0.0.1", connection="local")]
    hosts = []
    for value in values:
        name, sep, address = value.partition("=")
        if not sep:
            name, address = value, value
        hosts.append(AnsibleHost(name=name, address=address, user=user or None))
    return hosts


@click.command(name="nginx:scaffold")
@click.option(
    "--dir",
    "target",
    type=click.Path(file_okay=False, path_type=Path),
    default=c.DEFAULT_ANSIBLE_DIR,
    show_default=True,
    help="Ansible project directory",
)
@click.option("-d", "--domain", default=c.DEFAULT_DOMAIN, show_default=True, help="Site domain")
@click.option(
    "--package",
    "packages",
    multiple=True,
    help="Extra apt package to install (repeatable; replaces the default list)",
)
@click.option("--upstream", default="", help="Proxy target, e.g. http://127.0.0.1:8080")
@click.option("--host", "hosts", multiple=True, help="Inventory host as NAME=ADDRESS (repeatable)")
@click.option("--user", default="", help="SSH user for inventory hosts")
@click.option("--force", is_flag=True, help="Overwrite existing files")
@click.option("--verbose", "-v", is_flag=True, help="Show verbose output")
def nginx_scaffold(target, domain, packages, upstream, hosts, user, force, verbose):
    """
    Generate the Ansible nginx role, playbook and inventory

    Examples:
        stackup nginx:scaffold -d example.com
        stackup nginx:scaffold --host web=192.168.56.10 --user vagrant
    """
    role_vars = NginxRoleVars(
        domain=domain,
        packages=list(packages) or list(c.DEFAULT_ANSIBLE_PACKAGES),
        upstream=upstream,
    )
    cmd = NginxScaffoldCommand(
        target, role_vars, _parse_hosts(hosts, user), force=force, verbose=verbose
    )
    cmd.run()


@click.command(name="nginx:apply")
@click.option(
    "--dir",
    "target",
    type=click.Path(file_okay=False, path_type=Path),
    default=c.DEFAULT_ANSIBLE_DIR,
    show_default=True,
    help="Ansible project directory",
)
@click.option("--tags", help="Only run tasks with these tags (e.g. configure_nginx)")
@click.option("--skip-tags", help="Skip tasks with these tags")
@click.option("--limit", help="Limit to these hosts")
@click.option("--check", is_flag=True, help="Dry run (ansible --check)")
@click.option("-K", "--ask-become-pass", is_flag=True, help="Prompt for sudo password")
@click.option("--private-key", type=click.Path(dir_okay=False), help="SSH private key")
@click.option("-e", "--extra-var", "extra_vars", multiple=True, help="KEY=VALUE (repeatable)")
@click.option("--verbose", "-v", is_flag=True, help="Show verbose output")
def nginx_apply(target, tags, skip_tags, limit, check, ask_become_pass, private_key, extra_vars, verbose):
    """
    Run the nginx playbook with ansible-playbook

    Examples:
        stackup nginx:apply
        stackup nginx:apply --tags configure_nginx -e domain=blog.local
    """
    try:
        parsed_vars = parse_extra_vars(list(extra_vars))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--extra-var")

    options = AnsibleCommandOptions(
        tags=tags,
        skip_tags=skip_tags,
        limit=limit,
        check=check,
        ask_become_pass=ask_become_pass,
        private_key_path=private_key,
        extra_vars=parsed_vars,
    )
    cmd = NginxApplyCommand(target, options, verbose=verbose)
    cmd.run()
