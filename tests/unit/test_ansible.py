"""
Unit tests for ansible-playbook command building and execution.
"""

import json

import pytest

from stackup.ansible_runner import AnsibleRunner
from stackup.ansible_utils import (
    AnsibleCommandOptions,
    AnsibleHost,
    AnsibleManager,
    parse_extra_vars,
)
from stackup.models.results import ExecutionResult


class TestParseExtraVars:
    """Test KEY=VALUE parsing."""

    def test_scalars_are_typed(self):
        assert parse_extra_vars(["domain=blog.local", "port=8080", "enabled=true", "empty="]) == {
            "domain": "blog.local",
            "port": 8080,
            "enabled": True,
            "empty": "",
        }

    def test_value_may_contain_equals(self):
        assert parse_extra_vars(["upstream=http://x/?a=b"]) == {"upstream": "http://x/?a=b"}

    @pytest.mark.parametrize("pair", ["novalue", "=value"])
    def test_malformed(self, pair):
        with pytest.raises(ValueError):
            parse_extra_vars([pair])


class TestBuildCommand:
    """Test ansible-playbook argument vectors."""

    def test_defaults(self, tmp_path):
        cmd = AnsibleManager(tmp_path).build_command(AnsibleCommandOptions())
        assert cmd[0].endswith("ansible-playbook")
        assert cmd[1:] == ["-i", "inventory.ini", "site.yml"]

    def test_all_options(self, tmp_path):
        options = AnsibleCommandOptions(
            tags="configure_nginx",
            skip_tags="install_packages",
            limit="web",
            check=True,
            ask_become_pass=True,
            private_key_path="/keys/id_ed25519",
            extra_vars={"domain": "blog.local"},
        )
        cmd = AnsibleManager(tmp_path).build_command(options)
        assert cmd[1:] == [
            "-i", "inventory.ini", "site.yml",
            "--tags", "configure_nginx",
            "--skip-tags", "install_packages",
            "--limit", "web",
            "--check",
            "--ask-become-pass",
            "--private-key", "/keys/id_ed25519",
            "--extra-vars", json.dumps({"domain": "blog.local"}),
        ]

    def test_inventory_host_line(self):
        host = AnsibleHost("web", "10.0.0.5", user="ubuntu", port=2222)
        assert host.to_line() == "web ansible_host=10.0.0.5 ansible_user=ubuntu ansible_port=2222"


class TestAnsibleRunner:
    """Test the environment handed to ansible-playbook."""

    def test_run_streams_with_log_path(self, tmp_path, deploy_logger, fake_executor):
        runner = AnsibleRunner(deploy_logger, fake_executor)
        code = runner.run(["ansible-playbook", "-i", "inventory.ini", "site.yml"], cwd=tmp_path)

        assert code == 0
        call = fake_executor.stream_calls[0]
        assert call["cwd"] == tmp_path
        assert call["stream"] == "ansible"
        assert call["env"]["ANSIBLE_LOG_PATH"].endswith("_test_ansible.log")
        assert call["env"]["ANSIBLE_ROLES_PATH"] == str(tmp_path / "roles")
        assert call["env"]["ANSIBLE_FORCE_COLOR"] == "false"

    def test_exit_code_is_returned(self, tmp_path, deploy_logger, make_executor):
        executor = make_executor(lambda args: ExecutionResult(2))
        assert AnsibleRunner(deploy_logger, executor).run(["ansible-playbook"], cwd=tmp_path) == 2
