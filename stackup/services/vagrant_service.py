"""
Vagrant Service

Vagrantfile generation and vagrant CLI lifecycle commands.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from stackup import constants as c
from stackup.core.template_renderer import TemplateRenderer
from stackup.exceptions import ProvisioningError, ValidationError
from stackup.models.results import ValidationResult
from stackup.utils import CommandExecutor, write_file

VAGRANTFILE_TEMPLATE = "vagrant/Vagrantfile.j2"
VAGRANT_ACTIONS = {"up", "halt", "destroy", "status"}

# Values land inside double-quoted Ruby strings
RUBY_UNSAFE_RE = re.compile(r'["\\\r\n]|#\{')
RUBY_SYMBOL_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class VagrantMachine:
    """A single VirtualBox VM definition."""

    box: str = c.DEFAULT_VAGRANT_BOX
    hostname: str = c.DEFAULT_VAGRANT_HOSTNAME
    ip: str = c.DEFAULT_VAGRANT_IP
    memory: int = c.DEFAULT_VAGRANT_MEMORY
    cpus: int = c.DEFAULT_VAGRANT_CPUS
    forwarded_ports: Dict[int, int] = field(
        default_factory=lambda: dict(c.DEFAULT_VAGRANT_PORTS)
    )
    synced_folder: Optional[str] = None
    playbook: Optional[str] = None
    extra_vars: Dict[str, str] = field(default_factory=dict)

    def validate(self) -> ValidationResult:
        result = ValidationResult(is_valid=True)
        if not self.box:
            result.add_error("box must not be empty")
        octets = self.ip.split(".")
        if len(octets) != 4 or not all(o.isdigit() and 0 <= int(o) <= 255 for o in octets):
            result.add_error(f"Invalid ip: {self.ip!r}")
        if self.memory < 256:
            result.add_error(f"Invalid memory: {self.memory} MB (min 256)")
        if self.cpus < 1:
            result.add_error(f"Invalid cpus: {self.cpus} (min 1)")
        for guest, host in self.forwarded_ports.items():
            if not (1 <= guest <= 65535 and 1 <= host <= 65535):
                result.add_error(f"Invalid forwarded port {guest} -> {host}")

        strings = {
            "box": self.box,
            "hostname": self.hostname,
            "synced_folder": self.synced_folder,
            "playbook": self.playbook,
        }
        strings.update({f"extra_vars.{k}": v for k, v in self.extra_vars.items()})
        for name, value in strings.items():
            if value and RUBY_UNSAFE_RE.search(str(value)):
                result.add_error(f"Invalid {name}: {value!r} (not allowed inside a Ruby string)")
        for key in self.extra_vars:
            if not RUBY_SYMBOL_RE.match(str(key)):
                result.add_error(f"Invalid extra_vars key: {key!r}")

        if self.extra_vars and not self.playbook:
            result.add_warning("extra_vars are ignored without a playbook")
        return result


def parse_port_mappings(values: List[str]) -> Dict[int, int]:
    """
    Parse GUEST:HOST pairs, e.g. ["80:8080", "443:8443"].

    Raises:
        ValidationError: On malformed pairs
    """
    ports: Dict[int, int] = {}
    for value in values:
        guest, sep, host = value.partition(":")
        if not sep or not guest.isdigit() or not host.isdigit():
            raise ValidationError(f"Port mapping must be GUEST:HOST, got {value!r}")
        ports[int(guest)] = int(host)
    return ports


class VagrantService:
    """Writes Vagrantfiles and drives `vagrant` in their directory."""

    def __init__(
        self,
        vagrant_dir: Path,
        executor: CommandExecutor,
        renderer: Optional[TemplateRenderer] = None,
    ):
        self.vagrant_dir = Path(vagrant_dir)
        self.executor = executor
        self.renderer = renderer or TemplateRenderer()

    @property
    def vagrantfile(self) -> Path:
        return self.vagrant_dir / "Vagrantfile"

    def render(self, machine: VagrantMachine) -> str:
        result = machine.validate()
        if not result.is_valid:
            raise ValidationError("Invalid VM definition", context="\n".join(result.errors))
        return self.renderer.render(
            VAGRANTFILE_TEMPLATE,
            box=machine.box,
            hostname=machine.hostname,
            ip=machine.ip,
            memory=machine.memory,
            cpus=machine.cpus,
            forwarded_ports=sorted(machine.forwarded_ports.items()),
            synced_folder=machine.synced_folder,
            playbook=machine.playbook,
            extra_vars=machine.extra_vars,
        )

    def write(self, machine: VagrantMachine, force: bool = False) -> bool:
        """
        Write the Vagrantfile.

        Returns:
            True if written, False if one already exists and force is off
        """
        return write_file(self.vagrantfile, self.render(machine), force=force)

    def run(self, action: str, *args: str) -> None:
        """
        Run a vagrant subcommand in the Vagrantfile directory.

        Raises:
            ValidationError: If action is unknown or no Vagrantfile exists
            ProvisioningError: If vagrant exits non-zero
        """
        if action not in VAGRANT_ACTIONS:
            raise ValidationError(
                f"Unknown vagrant action: {action}",
                context=f"Available: {', '.join(sorted(VAGRANT_ACTIONS))}",
            )
        if not self.vagrantfile.exists():
            raise ValidationError(
                f"No Vagrantfile in {self.vagrant_dir}", context="Run: stackup vm:init"
            )

        returncode = self.executor.stream(["vagrant", action, *args], cwd=self.vagrant_dir)
        if returncode != 0:
            raise ProvisioningError(f"vagrant {action} failed (exit {returncode})")
