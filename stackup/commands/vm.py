"""stackup CLI - Vagrant VM commands"""

from pathlib import Path

import click

from stackup import constants as c
from stackup.base import BaseCommand
from stackup.exceptions import ValidationError
from stackup.services.vagrant_service import VagrantMachine, VagrantService, parse_port_mappings


class VagrantInitCommand(BaseCommand):
    """Write a Vagrantfile."""

    def __init__(self, vagrant_dir: Path, machine: VagrantMachine, force: bool = False):
        super().__init__()
        self.vagrant_dir = vagrant_dir
        self.machine = machine
        self.force = force

    def execute(self) -> None:
        self.init_logger("vagrant", "init")
        service = VagrantService(self.project_root / self.vagrant_dir, self.executor)
        self.show_header(
            title="Generate Vagrantfile",
            details={
                "Box": self.machine.box,
                "Hostname": self.machine.hostname,
                "IP": self.machine.ip,
                "Resources": f"{self.machine.memory} MB, {self.machine.cpus} CPU",
            },
        )

        for warning in self.machine.validate().warnings:
            self.print_warning(warning)

        if not service.write(self.machine, force=self.force):
            self.print_warning(f"{service.vagrantfile} exists (use --force to overwrite)")
            return

        self.logger.log(f"Wrote {service.vagrantfile}")
        self.print_success(f"Wrote {service.vagrantfile}")
        self.print_dim(f"Next: stackup vm:up --dir {self.vagrant_dir}")


class VagrantActionCommand(BaseCommand):
    """Run one vagrant lifecycle subcommand."""

    TITLES = {
        "up": "Start VM",
        "halt": "Stop VM",
        "destroy": "Destroy VM",
        "status": "VM Status",
    }

    def __init__(self, vagrant_dir: Path, action: str, args: tuple = (), verbose: bool = False):
        super().__init__(verbose=verbose)
        self.vagrant_dir = vagrant_dir
        self.action = action
        self.args = args

    def execute(self) -> None:
        self.init_logger("vagrant", self.action)
        service = VagrantService(self.project_root / self.vagrant_dir, self.executor)
        self.show_header(
            title=self.TITLES.get(self.action, self.action),
            details={"Vagrantfile": str(service.vagrantfile)},
        )
        self.logger.step(f"vagrant {self.action}")
        service.run(self.action, *self.args)
        self.logger.success(f"vagrant {self.action} completed")


def vagrant_dir_option(func):
    return click.option(
        "--dir",
        "vagrant_dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=".",
        show_default=True,
        help="Directory holding the Vagrantfile",
    )(func)


@click.command(name="vm:init")
@vagrant_dir_option
@click.option("--box", default=c.DEFAULT_VAGRANT_BOX, show_default=True, help="Vagrant box")
@click.option("--hostname", default=c.DEFAULT_VAGRANT_HOSTNAME, show_default=True)
@click.option("--ip", default=c.DEFAULT_VAGRANT_IP, show_default=True, help="Private network IP")
@click.option("--memory", type=int, default=c.DEFAULT_VAGRANT_MEMORY, show_default=True, help="MB")
@click.option("--cpus", type=int, default=c.DEFAULT_VAGRANT_CPUS, show_default=True)
@click.option("--port", "ports", multiple=True, help="Forwarded port GUEST:HOST (repeatable)")
@click.option("--sync", "synced_folder", help="Host folder synced to /vagrant")
@click.option("--playbook", help="Ansible playbook to provision with (path relative to the Vagrantfile)")
@click.option("-e", "--extra-var", "extra_vars", multiple=True, help="Playbook variable KEY=VALUE (repeatable)")
@click.option("--force", is_flag=True, help="Overwrite an existing Vagrantfile")
def vm_init(vagrant_dir, box, hostname, ip, memory, cpus, ports, synced_folder, playbook, extra_vars, force):
    """
    Generate a VirtualBox Vagrantfile

    Examples:
        stackup vm:init
        stackup vm:init --playbook ansible/nginx-scenario/site.yml --port 80:8080
    """
    try:
        forwarded = parse_port_mappings(list(ports)) if ports else dict(c.DEFAULT_VAGRANT_PORTS)
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint="--port")

    variables = {}
    for pair in extra_vars:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {pair!r}", param_hint="--extra-var")
        variables[key] = value

    machine = VagrantMachine(
        box=box,
        hostname=hostname,
        ip=ip,
        memory=memory,
        cpus=cpus,
        forwarded_ports=forwarded,
        synced_folder=synced_folder,
        playbook=playbook,
        extra_vars=variables,
    )
    VagrantInitCommand(vagrant_dir, machine, force=force).run()


@click.command(name="vm:up")
@vagrant_dir_option
@click.option("--provision", is_flag=True, help="Force provisioners to run")
@click.option("--verbose", "-v", is_flag=True, help="Show verbose output")
def vm_up(vagrant_dir, provision, verbose):
    """Create and boot the VM"""
    args = ("--provision",) if provision else ()
    VagrantActionCommand(vagrant_dir, "up", args, verbose=verbose).run()


@click.command(name="vm:halt")
@vagrant_dir_option
@click.option("--verbose", "-v", is_flag=True, help="Show verbose output")
def vm_halt(vagrant_dir, verbose):
    """Shut the VM down"""
    VagrantActionCommand(vagrant_dir, "halt", verbose=verbose).run()


@click.command(name="vm:destroy")
@vagrant_dir_option
@click.option("--verbose", "-v", is_flag=True, help="Show verbose output")
def vm_destroy(vagrant_dir, verbose):
    """Destroy the VM (no confirmation prompt)"""
    VagrantActionCommand(vagrant_dir, "destroy", ("-f",), verbose=verbose).run()


@click.command(name="vm:status")
@vagrant_dir_option
def vm_status(vagrant_dir):
    """Show vagrant status"""
    VagrantActionCommand(vagrant_dir, "status").run()
