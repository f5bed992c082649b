"""
Unit tests for the WordPress stack provisioning sequence.
"""

import stat
from unittest.mock import Mock

import pytest
import requests

from stackup.core.config_loader import save_credentials
from stackup.core.wordpress_stack import WordPressStack
from stackup.exceptions import DockerError, ReadinessTimeoutError
from stackup.models.results import ExecutionResult
from stackup.services.certificate_service import CertificateService
from stackup.services.docker_service import DockerService

MARKER = "mysqld: ready for connections."


def docker_handler(mysql_ready_after=2, existing=()):
    """Scripted docker: mysql logs the marker on the given poll."""
    polls = {"count": 0}

    def handler(args):
        if args[:2] == ["docker", "logs"]:
            polls["count"] += 1
            if polls["count"] >= mysql_ready_after:
                return ExecutionResult(0, stdout=f"2026-10-18 [Note] {MARKER}")
            return ExecutionResult(0, stdout="Initializing database")
        if len(args) > 2 and args[2] == "inspect":
            return ExecutionResult(0 if args[3] in existing else 1)
        return None

    return handler


def persistent_docker():
    """Scripted docker whose networks and volumes survive between runs."""
    created = set()
    base = docker_handler()

    def handler(args):
        if args[1:3] in (["network", "create"], ["volume", "create"]):
            created.add(args[3])
            return None
        if len(args) > 2 and args[2] == "inspect":
            return ExecutionResult(0 if args[3] in created else 1)
        return base(args)

    return handler


def env_value(args, key):
    return next(a.split("=", 1)[1] for a in args if a.startswith(f"{key}="))


def ok_probe():
    probe = Mock()
    probe.head.return_value = Mock(status_code=200, reason="OK", headers={"Server": "nginx"})
    return probe


def build_stack(config, logger, executor, probe=None, clock=None, dry_run=False):
    docker_kwargs = {"sleep": lambda s: None}
    if clock:
        docker_kwargs["clock"] = clock
    docker = DockerService(executor, **docker_kwargs)
    return WordPressStack(
        config,
        logger,
        docker,
        CertificateService(executor),
        probe=probe or ok_probe(),
        sleep=lambda s: None,
        dry_run=dry_run,
    )


def run_index(calls, name):
    for i, call in enumerate(calls):
        if call[:2] == ["docker", "run"] and call[call.index("--name") + 1] == name:
            return i
    raise AssertionError(f"docker run for {name} not found")


class TestProvision:
    """Test the seven-step provisioning run."""

    def test_container_order_waits_for_mysql(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler(mysql_ready_after=3))
        build_stack(stack_config, deploy_logger, executor).provision(credentials)

        calls = executor.calls
        mysql_at = run_index(calls, "mysql")
        wordpress_at = run_index(calls, "wordpress")
        nginx_at = run_index(calls, "nginx")
        log_polls = [i for i, call in enumerate(calls) if call[:2] == ["docker", "logs"]]

        assert len(log_polls) == 3
        assert mysql_at < log_polls[0]
        assert log_polls[-1] < wordpress_at < nginx_at

    def test_step_order(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler())
        build_stack(stack_config, deploy_logger, executor).provision(credentials)

        firsts = [call[:3] for call in executor.calls]
        assert firsts[0] == ["docker", "stop", "nginx"]
        assert firsts[1] == ["docker", "rm", "nginx"]
        network_at = firsts.index(["docker", "network", "create"])
        openssl_at = firsts.index(["openssl", "req", "-x509"])
        assert network_at < openssl_at < run_index(executor.calls, "mysql")

    def test_credentials_reach_both_containers(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler())
        build_stack(stack_config, deploy_logger, executor).provision(credentials)

        mysql_args = executor.calls[run_index(executor.calls, "mysql")]
        wordpress_args = executor.calls[run_index(executor.calls, "wordpress")]
        assert "MYSQL_ROOT_PASSWORD=root-secret" in mysql_args
        assert "MYSQL_PASSWORD=user-secret" in mysql_args
        assert "WORDPRESS_DB_PASSWORD=user-secret" in wordpress_args
        assert "WORDPRESS_DB_HOST=mysql:3306" in wordpress_args
        assert "wp_db_data:/var/lib/mysql" in mysql_args
        assert "wp_files_data:/var/www/html" in wordpress_args

    def test_nginx_publishes_ports_and_mounts_read_only(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler())
        build_stack(stack_config, deploy_logger, executor).provision(credentials)

        nginx_args = executor.calls[run_index(executor.calls, "nginx")]
        assert "80:80" in nginx_args
        assert "443:443" in nginx_args
        assert f"{stack_config.nginx_conf_dir.resolve()}:/etc/nginx/conf.d:ro" in nginx_args
        assert f"{stack_config.nginx_certs_dir.resolve()}:/etc/nginx/certs:ro" in nginx_args

    def test_generated_credentials_differ(self, stack_config, deploy_logger, make_executor):
        executor = make_executor(docker_handler())
        creds = build_stack(stack_config, deploy_logger, executor).provision()
        assert creds.root_password != creds.password
        assert len(creds.root_password) == 44

    def test_secrets_are_masked_in_log(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler())
        build_stack(stack_config, deploy_logger, executor).provision(credentials)
        deploy_logger.log("password was root-secret")
        deploy_logger.close()
        content = deploy_logger.log_path.read_text()
        assert "root-secret" not in content
        assert "password was ***" in content

    def test_nginx_config_written(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler())
        build_stack(stack_config, deploy_logger, executor).provision(credentials)
        assert "server_name amirrezakzm.ir;" in stack_config.site_conf_path.read_text()

    def test_readiness_timeout_stops_before_wordpress(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(docker_handler(mysql_ready_after=10**6))
        readings = iter(range(0, 10**6, 100))
        stack_config.readiness_timeout = 300
        stack = build_stack(
            stack_config, deploy_logger, executor, clock=lambda: next(readings)
        )

        with pytest.raises(ReadinessTimeoutError):
            stack.provision(credentials)

        names = [
            call[call.index("--name") + 1]
            for call in executor.calls
            if call[:2] == ["docker", "run"]
        ]
        assert names == ["mysql"]

    def test_failing_container_aborts(self, stack_config, deploy_logger, make_executor, credentials):
        base = docker_handler()

        def handler(args):
            if args[:2] == ["docker", "run"] and "wordpress" in args:
                return ExecutionResult(125, stderr="Conflict")
            return base(args)

        executor = make_executor(handler)
        with pytest.raises(DockerError):
            build_stack(stack_config, deploy_logger, executor).provision(credentials)
        assert not any(call[:2] == ["docker", "run"] and "nginx" in call for call in executor.calls)

    def test_second_run_reuses_resources(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(
            docker_handler(existing=("wp_net", "wp_db_data", "wp_files_data"))
        )
        stack = build_stack(stack_config, deploy_logger, executor)
        stack.provision(credentials)
        assert stack_config.workspace.exists()

        stack.provision(credentials)

        assert executor.commands_starting_with("docker", "network", "create") == []
        assert executor.commands_starting_with("docker", "volume", "create") == []
        assert stack_config.site_conf_path.exists()

    def test_rerun_keeps_database_passwords(self, stack_config, deploy_logger, make_executor):
        executor = make_executor(persistent_docker())
        stack = build_stack(stack_config, deploy_logger, executor)

        first = stack.provision()
        second = stack.provision()

        assert len(executor.commands_starting_with("docker", "volume", "create")) == 2
        assert second == first
        wordpress_runs = [
            call for call in executor.calls if call[:2] == ["docker", "run"] and "wordpress" in call
        ]
        assert len(wordpress_runs) == 2
        assert env_value(wordpress_runs[0], "WORDPRESS_DB_PASSWORD") == env_value(
            wordpress_runs[1], "WORDPRESS_DB_PASSWORD"
        )

    def test_credentials_saved_outside_workspace(self, stack_config, deploy_logger, make_executor):
        creds = build_stack(stack_config, deploy_logger, make_executor(docker_handler())).provision()

        path = stack_config.credentials_path
        assert path == stack_config.base_dir / ".stackup" / "wp_db_data.credentials.yml"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert creds.password in path.read_text()

    def test_reused_volume_without_saved_credentials(self, stack_config, deploy_logger, make_executor):
        executor = make_executor(docker_handler(existing=("wp_db_data",)))
        with pytest.raises(DockerError, match="no saved credentials"):
            build_stack(stack_config, deploy_logger, executor).provision()
        assert executor.commands_starting_with("docker", "run") == []

    def test_cleanup_removes_previous_workspace(self, stack_config, deploy_logger, make_executor):
        stale = stack_config.workspace / "nginx" / "conf.d" / "old.conf"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        build_stack(stack_config, deploy_logger, make_executor(docker_handler())).cleanup()
        assert not stack_config.workspace.exists()
        assert stack_config.base_dir.exists()

    def test_verify_failure_is_only_a_warning(self, stack_config, deploy_logger, make_executor, credentials):
        probe = Mock()
        probe.head.side_effect = requests.ConnectionError("Name or service not known")
        stack = build_stack(stack_config, deploy_logger, make_executor(docker_handler()), probe=probe)

        stack.provision(credentials)

        assert stack.verify() is False
        probe.head.assert_called_with("amirrezakzm.ir", 443)

    def test_dry_run_touches_nothing(self, stack_config, deploy_logger, make_executor, credentials):
        executor = make_executor(dry_run=True)
        probe = ok_probe()
        stack = build_stack(stack_config, deploy_logger, executor, probe=probe, dry_run=True)

        stack.provision(credentials)

        assert not stack_config.workspace.exists()
        assert executor.commands_starting_with("docker", "logs") == []
        assert [call[call.index("--name") + 1] for call in executor.calls if call[:2] == ["docker", "run"]] == [
            "mysql",
            "wordpress",
            "nginx",
        ]
        probe.head.assert_not_called()


class TestTeardownAndStatus:
    """Test wordpress:down and wordpress:status behaviour."""

    def test_teardown_keeps_data(self, stack_config, deploy_logger, fake_executor):
        stack_config.workspace.mkdir()
        build_stack(stack_config, deploy_logger, fake_executor).teardown()
        assert fake_executor.commands_starting_with("docker", "volume", "rm") == []
        assert stack_config.workspace.exists()

    def test_purge_removes_everything(self, stack_config, deploy_logger, fake_executor):
        stack_config.workspace.mkdir()
        build_stack(stack_config, deploy_logger, fake_executor).teardown(purge=True)
        assert ["docker", "network", "rm", "wp_net"] in fake_executor.calls
        assert ["docker", "volume", "rm", "wp_db_data"] in fake_executor.calls
        assert ["docker", "volume", "rm", "wp_files_data"] in fake_executor.calls
        assert not stack_config.workspace.exists()

    def test_purge_forgets_saved_credentials(self, stack_config, deploy_logger, fake_executor, credentials):
        save_credentials(stack_config, credentials)
        build_stack(stack_config, deploy_logger, fake_executor).teardown(purge=True)
        assert not stack_config.credentials_path.exists()

    def test_plain_down_keeps_saved_credentials(self, stack_config, deploy_logger, fake_executor, credentials):
        save_credentials(stack_config, credentials)
        build_stack(stack_config, deploy_logger, fake_executor).teardown()
        assert stack_config.credentials_path.exists()

    def test_status_reports_missing(self, stack_config, deploy_logger, make_executor):
        executor = make_executor(
            lambda args: ExecutionResult(0, stdout="mysql\trunning\tUp 3 minutes\tmysql:5.7\n")
        )
        states = build_stack(stack_config, deploy_logger, executor).status()
        assert list(states) == ["mysql", "wordpress", "nginx"]
        assert states["mysql"]["state"] == "running"
        assert states["nginx"]["state"] == "missing"
