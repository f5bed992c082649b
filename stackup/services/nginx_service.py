"""Renders the nginx reverse-proxy server blocks for the WordPress stack"""

from pathlib import Path
from typing import Optional

from stackup import constants as c
from stackup.core.config_loader import StackConfig
from stackup.core.template_renderer import TemplateRenderer
from stackup.utils import write_file

SITE_TEMPLATE = "nginx/wordpress.conf.j2"


class NginxConfigService:
    def __init__(self, renderer: Optional[TemplateRenderer] = None):
        self.renderer = renderer or TemplateRenderer()

    def render(self, config: StackConfig) -> str:
        # Container-side ports stay fixed; host ports are mapped by docker
        return self.renderer.render(
            SITE_TEMPLATE,
            domain=config.domain,
            http_port_container=c.DEFAULT_HTTP_PORT,
            https_port_container=c.DEFAULT_HTTPS_PORT,
            certs_mount=c.NGINX_CERTS_MOUNT,
            cert_filename=c.CERT_FILENAME,
            key_filename=c.KEY_FILENAME,
            upstream_host=c.WORDPRESS_CONTAINER,
            upstream_port=80,
        )

    def write(self, config: StackConfig) -> Path:
        write_file(config.site_conf_path, self.render(config), force=True)
        return config.site_conf_path
