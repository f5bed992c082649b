"""
Ansible Utilities

Scaffolding of the nginx role project and ansible-playbook command building.
"""

import json
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

import yaml

from stackup import constants as c
from stackup.core.template_renderer import TemplateRenderer
from stackup.utils import write_file

ROLE_TEMPLATES = f"ansible/{c.ANSIBLE_ROLE_NAME}"


@dataclass
class NginxRoleVars:
    """Default variables of the nginx role (roles/<role>/defaults/main.yml)."""

    domain: str = c.DEFAULT_DOMAIN
    packages: List[str] = field(default_factory=lambda: list(c.DEFAULT_ANSIBLE_PACKAGES))
    upstream: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "packages": list(self.packages),
            "upstream": self.upstream,
        }


@dataclass
class AnsibleHost:
    """One inventory entry."""

    name: str
    address: str
    user: Optional[str] = None
    port: Optional[int] = None
    connection: Optional[str] = None

    def to_line(self) -> str:
        parts = [self.name, f"ansible_host={self.address}"]
        if self.user:
            parts.append(f"ansible_user={self.user}")
        if self.port:
            parts.append(f"ansible_port={self.port}")
        if self.connection:
            parts.append(f"ansible_connection={self.connection}")
        return " ".join(parts)


@dataclass
class AnsibleCommandOptions:
    """Options for Ansible command execution."""

    tags: Optional[str] = None
    skip_tags: Optional[str] = None
    limit: Optional[str] = None
    check: bool = False
    ask_become_pass: bool = False
    playbook: str = c.ANSIBLE_PLAYBOOK
    inventory_file: str = c.ANSIBLE_INVENTORY
    private_key_path: Optional[str] = None
    extra_vars: Dict[str, Any] = field(default_factory=dict)


class AnsibleSerializer:
    """Custom JSON serializer for Ansible extra vars."""

    @staticmethod
    def serialize(obj: Any) -> str:
        return json.dumps(obj, default=AnsibleSerializer._default)

    @staticmethod
    def _default(obj: Any) -> str:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Path):
            return str(obj)
        raise TypeError(f"Type {type(obj)} not serializable")


def parse_extra_vars(pairs: List[str]) -> Dict[str, Any]:
    """
    Parse `key=value` pairs from the command line.

    Values are read as YAML scalars so `port=8080` becomes an int and
    `enabled=true` a bool.

    Raises:
        ValueError: If a pair has no '='
    """
    result: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Extra var must be KEY=VALUE, got {pair!r}")
        result[key.strip()] = yaml.safe_load(value) if value else ""
    return result


class AnsibleManager:
    """
    Manages the nginx Ansible project on disk.

    Responsibilities:
    - Write the role, playbook and inventory
    - Build ansible-playbook commands
    """

    def __init__(self, ansible_dir: Path, renderer: Optional[TemplateRenderer] = None):
        """
        Args:
            ansible_dir: Directory holding site.yml, inventory.ini and roles/
        """
        self.ansible_dir = Path(ansible_dir)
        self.renderer = renderer or TemplateRenderer()

    @property
    def role_dir(self) -> Path:
        return self.ansible_dir / "roles" / c.ANSIBLE_ROLE_NAME

    @property
    def playbook_path(self) -> Path:
        return self.ansible_dir / c.ANSIBLE_PLAYBOOK

    @property
    def inventory_path(self) -> Path:
        return self.ansible_dir / c.ANSIBLE_INVENTORY

    def render_playbook(self, hosts: str = "all") -> str:
        playbook = [
            {
                "name": "Configure nginx",
                "hosts": hosts,
                "become": True,
                "roles": [c.ANSIBLE_ROLE_NAME],
            }
        ]
        return "---\n" + yaml.dump(playbook, default_flow_style=False, sort_keys=False)

    def render_defaults(self, role_vars: NginxRoleVars) -> str:
        return (
            "---\n# defaults file for nginx-roles\n"
            + yaml.dump(role_vars.to_dict(), default_flow_style=False, sort_keys=False)
        )

    def render_inventory(self, hosts: List[AnsibleHost], group: str = "web") -> str:
        lines = [f"[{group}]"]
        lines.extend(host.to_line() for host in hosts)
        return "\n".join(lines) + "\n"

    def scaffold(
        self,
        role_vars: NginxRoleVars,
        hosts: List[AnsibleHost],
        force: bool = False,
    ) -> Dict[Path, bool]:
        """
        Write the role, playbook and inventory.

        Args:
            role_vars: Role defaults
            hosts: Inventory hosts
            force: Overwrite existing files

        Returns:
            Mapping path -> True if written, False if kept
        """
        files: Dict[Path, str] = {}

        for name in self.renderer.list_files(ROLE_TEMPLATES):
            relative = Path(name).relative_to(ROLE_TEMPLATES)
            files[self.role_dir / relative] = self.renderer.read_static(name)

        files[self.role_dir / "defaults" / "main.yml"] = self.render_defaults(role_vars)
        files[self.playbook_path] = self.render_playbook()
        files[self.inventory_path] = self.render_inventory(hosts)

        return {path: write_file(path, content, force=force) for path, content in files.items()}

    def build_command(self, options: AnsibleCommandOptions) -> List[str]:
        """
        Build the ansible-playbook argument vector.

        Returns:
            Arguments, run from ansible_dir
        """
        cmd = [
            self._get_ansible_playbook_path(),
            "-i",
            options.inventory_file,
            options.playbook,
        ]
        if options.tags:
            cmd.extend(["--tags", options.tags])
        if options.skip_tags:
            cmd.extend(["--skip-tags", options.skip_tags])
        if options.limit:
            cmd.extend(["--limit", options.limit])
        if options.check:
            cmd.append("--check")
        if options.ask_become_pass:
            cmd.append("--ask-become-pass")
        if options.private_key_path:
            cmd.extend(["--private-key", str(Path(options.private_key_path).expanduser())])
        if options.extra_vars:
            cmd.extend(["--extra-vars", AnsibleSerializer.serialize(options.extra_vars)])
        return cmd

    def _get_ansible_playbook_path(self) -> str:
        """
        Get path to ansible-playbook executable.

        Returns:
            Path to ansible-playbook (venv or system)
        """
        venv_bin = Path(sys.executable).parent
        ansible_playbook_path = venv_bin / "ansible-playbook"

        if not ansible_playbook_path.exists():
            return "ansible-playbook"

        return str(ansible_playbook_path)
