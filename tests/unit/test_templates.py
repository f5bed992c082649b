"""
Unit tests for generated nginx, Vagrant and Ansible files.
"""

import pytest
import yaml

from stackup.ansible_utils import AnsibleHost, AnsibleManager, NginxRoleVars
from stackup.core.template_renderer import TemplateRenderer
from stackup.exceptions import ValidationError
from stackup.services.nginx_service import NginxConfigService
from stackup.services.vagrant_service import VagrantMachine, VagrantService, parse_port_mappings


class TestNginxConfig:
    """Test the WordPress reverse-proxy server blocks."""

    def test_redirect_block_keeps_nginx_variables(self, stack_config):
        conf = NginxConfigService().render(stack_config)
        assert "listen 80;" in conf
        assert "return 301 https://$host$request_uri;" in conf

    def test_tls_block(self, stack_config):
        conf = NginxConfigService().render(stack_config)
        assert "listen 443 ssl http2;" in conf
        assert "server_name amirrezakzm.ir;" in conf
        assert "ssl_certificate /etc/nginx/certs/cert.pem;" in conf
        assert "ssl_certificate_key /etc/nginx/certs/key.pem;" in conf
        assert "ssl_protocols TLSv1.2 TLSv1.3;" in conf

    def test_proxies_to_wordpress_container(self, stack_config):
        conf = NginxConfigService().render(stack_config)
        assert "proxy_pass http://wordpress:80;" in conf
        assert "proxy_set_header X-Forwarded-Proto $scheme;" in conf

    def test_host_ports_do_not_change_container_ports(self, stack_config):
        stack_config.http_port = 8080
        stack_config.https_port = 8443
        conf = NginxConfigService().render(stack_config)
        assert "listen 80;" in conf
        assert "8443" not in conf

    def test_write_overwrites(self, stack_config):
        service = NginxConfigService()
        stack_config.site_conf_path.parent.mkdir(parents=True)
        stack_config.site_conf_path.write_text("stale")
        path = service.write(stack_config)
        assert "server_name amirrezakzm.ir;" in path.read_text()


class TestVagrantfile:
    """Test Vagrantfile rendering and validation."""

    def test_defaults(self, tmp_path, fake_executor):
        content = VagrantService(tmp_path, fake_executor).render(VagrantMachine())
        assert 'config.vm.box = "ubuntu/jammy64"' in content
        assert 'config.vm.network "private_network", ip: "192.168.56.10"' in content
        assert "guest: 80, host: 8080" in content
        assert "guest: 443, host: 8443" in content
        assert 'vb.memory = "1024"' in content
        assert "ansible" not in content

    def test_ansible_provisioner(self, tmp_path, fake_executor):
        machine = VagrantMachine(
            playbook="ansible/nginx-scenario/site.yml", extra_vars={"domain": "vm.local"}
        )
        content = VagrantService(tmp_path, fake_executor).render(machine)
        assert 'config.vm.provision "ansible" do |ansible|' in content
        assert 'ansible.playbook = "ansible/nginx-scenario/site.yml"' in content
        assert 'domain: "vm.local"' in content

    def test_invalid_machine(self, tmp_path, fake_executor):
        with pytest.raises(ValidationError):
            VagrantService(tmp_path, fake_executor).render(VagrantMachine(ip="10.0.0"))

    @pytest.mark.parametrize(
        "machine",
        [
            VagrantMachine(hostname='a"b'),
            VagrantMachine(box="ubuntu\\jammy64"),
            VagrantMachine(synced_folder="src\n"),
            VagrantMachine(playbook="site.yml", extra_vars={"domain": "#{`id`}"}),
            VagrantMachine(playbook="site.yml", extra_vars={"bad-key": "x"}),
        ],
    )
    def test_values_that_would_break_ruby_strings(self, tmp_path, fake_executor, machine):
        with pytest.raises(ValidationError, match="Invalid VM definition"):
            VagrantService(tmp_path, fake_executor).render(machine)

    def test_extra_vars_without_playbook_warn(self):
        result = VagrantMachine(extra_vars={"domain": "vm.local"}).validate()
        assert result.is_valid
        assert result.warnings == ["extra_vars are ignored without a playbook"]

    def test_write_keeps_existing_without_force(self, tmp_path, fake_executor):
        service = VagrantService(tmp_path, fake_executor)
        assert service.write(VagrantMachine()) is True
        assert service.write(VagrantMachine(box="other/box")) is False
        assert "ubuntu/jammy64" in service.vagrantfile.read_text()
        assert service.write(VagrantMachine(box="other/box"), force=True) is True
        assert "other/box" in service.vagrantfile.read_text()

    def test_parse_port_mappings(self):
        assert parse_port_mappings(["80:8080", "443:8443"]) == {80: 8080, 443: 8443}
        with pytest.raises(ValidationError):
            parse_port_mappings(["80-8080"])


class TestAnsibleScaffold:
    """Test the nginx role project written to disk."""

    def test_role_tasks_are_copied_verbatim(self, tmp_path):
        manager = AnsibleManager(tmp_path)
        manager.scaffold(NginxRoleVars(), [AnsibleHost("web", "192.168.56.10")])
        tasks_path = manager.role_dir / "tasks" / "main.yml"
        expected = TemplateRenderer().read_static("ansible/nginx-roles/tasks/main.yml")
        assert tasks_path.read_text() == expected

    def test_task_order_and_tags(self, tmp_path):
        manager = AnsibleManager(tmp_path)
        manager.scaffold(NginxRoleVars(), [AnsibleHost("web", "192.168.56.10")])
        tasks = yaml.safe_load((manager.role_dir / "tasks" / "main.yml").read_text())
        assert [t["name"] for t in tasks] == [
            "apt-get update",
            "Install tools",
            "ensure nginx is at the latest version",
            "delete default nginx site",
            "copy nginx site.conf",
            "start nginx",
        ]
        assert tasks[1]["tags"] == "install_packages"
        assert tasks[2]["tags"] == "install_nginx"
        assert all(t["tags"] == "configure_nginx" for t in tasks[3:])
        assert tasks[4]["template"]["dest"] == "/etc/nginx/conf.d/{{ domain }}.conf"

    def test_handler_and_site_template(self, tmp_path):
        manager = AnsibleManager(tmp_path)
        manager.scaffold(NginxRoleVars(), [AnsibleHost("web", "192.168.56.10")])
        handlers = yaml.safe_load((manager.role_dir / "handlers" / "main.yml").read_text())
        assert handlers[0]["name"] == "restart nginx"
        assert (manager.role_dir / "templates" / "site.conf.j2").exists()

    def test_defaults_playbook_and_inventory(self, tmp_path):
        manager = AnsibleManager(tmp_path)
        role_vars = NginxRoleVars(domain="vm.local", packages=["curl"], upstream="http://127.0.0.1:8080")
        manager.scaffold(role_vars, [AnsibleHost("web", "192.168.56.10", user="vagrant")])

        defaults = yaml.safe_load((manager.role_dir / "defaults" / "main.yml").read_text())
        assert defaults == role_vars.to_dict()

        playbook = yaml.safe_load(manager.playbook_path.read_text())
        assert playbook[0]["roles"] == ["nginx-roles"]
        assert playbook[0]["become"] is True

        assert manager.inventory_path.read_text() == (
            "[web]\nweb ansible_host=192.168.56.10 ansible_user=vagrant\n"
        )

    def test_second_scaffold_keeps_files(self, tmp_path):
        manager = AnsibleManager(tmp_path)
        hosts = [AnsibleHost("localhost", "127.0.0.1", connection="local")]
        first = manager.scaffold(NginxRoleVars(), hosts)
        assert all(first.values())
        second = manager.scaffold(NginxRoleVars(domain="changed.example.com"), hosts)
        assert not any(second.values())
        third = manager.scaffold(NginxRoleVars(domain="changed.example.com"), hosts, force=True)
        assert all(third.values())
