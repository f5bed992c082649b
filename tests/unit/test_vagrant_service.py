"""
Unit tests for vagrant lifecycle commands.
"""

import pytest

from stackup.exceptions import ProvisioningError, ValidationError
from stackup.models.results import ExecutionResult
from stackup.services.vagrant_service import VagrantMachine, VagrantService


@pytest.fixture
def vagrant_dir(tmp_path, fake_executor):
    VagrantService(tmp_path, fake_executor).write(VagrantMachine())
    return tmp_path


class TestVagrantRun:
    def test_runs_in_vagrantfile_directory(self, vagrant_dir, fake_executor):
        VagrantService(vagrant_dir, fake_executor).run("destroy", "-f")
        assert fake_executor.stream_calls == [
            {"args": ["vagrant", "destroy", "-f"], "cwd": vagrant_dir, "env": None, "stream": "stdout"}
        ]

    @pytest.mark.parametrize("action", ["explode", "provision", "ssh-config"])
    def test_unknown_action(self, vagrant_dir, fake_executor, action):
        with pytest.raises(ValidationError, match="Unknown vagrant action"):
            VagrantService(vagrant_dir, fake_executor).run(action)
        assert fake_executor.calls == []

    def test_missing_vagrantfile(self, tmp_path, fake_executor):
        with pytest.raises(ValidationError, match="No Vagrantfile"):
            VagrantService(tmp_path / "empty", fake_executor).run("up")

    def test_failure(self, vagrant_dir, make_executor):
        executor = make_executor(lambda args: ExecutionResult(1))
        with pytest.raises(ProvisioningError, match="vagrant up failed"):
            VagrantService(vagrant_dir, executor).run("up")
