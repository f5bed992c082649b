"""
stackup Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Default Stack Configuration
DEFAULT_DOMAIN = "amirrezakzm.ir"
DEFAULT_PROJECT_DIR = "wordpress-stack"
DEFAULT_NETWORK = "wp_net"
DEFAULT_DB_VOLUME = "wp_db_data"
DEFAULT_WP_VOLUME = "wp_files_data"
DEFAULT_STACK_FILE = "stackup.yml"

# Database Defaults
DEFAULT_MYSQL_DATABASE = "wordpress"
DEFAULT_MYSQL_USER = "wordpress"
PASSWORD_BYTES = 32

# Image Versions
DEFAULT_MYSQL_IMAGE = "mysql:5.7"
DEFAULT_WORDPRESS_IMAGE = "wordpress:latest"
DEFAULT_NGINX_IMAGE = "nginx:latest"

# Container Names (fixed, other tooling addresses them by name)
MYSQL_CONTAINER = "mysql"
WORDPRESS_CONTAINER = "wordpress"
NGINX_CONTAINER = "nginx"
STACK_CONTAINERS = [NGINX_CONTAINER, WORDPRESS_CONTAINER, MYSQL_CONTAINER]

# Readiness Polling
MYSQL_READY_MARKER = "mysqld: ready for connections."
DEFAULT_POLL_INTERVAL = 2
DEFAULT_READINESS_TIMEOUT = 300

# Timing
DEFAULT_SETTLE_SECONDS = 3
DEFAULT_VERIFY_DELAY = 5
HTTP_TIMEOUT = 10

# Port Configuration
DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443
MYSQL_PORT = 3306

# Certificate Configuration
DEFAULT_CERT_DAYS = 365
DEFAULT_CERT_KEY_BITS = 4096
DEFAULT_CERT_SUBJECT = {
    "C": "IR",
    "ST": "Tehran",
    "L": "Tehran",
    "O": "DockerMe",
}
CERT_FILENAME = "cert.pem"
KEY_FILENAME = "key.pem"

# Paths inside the nginx container
NGINX_CONF_MOUNT = "/etc/nginx/conf.d"
NGINX_CERTS_MOUNT = "/etc/nginx/certs"
NGINX_SITE_CONF = "wordpress.conf"
MYSQL_DATA_MOUNT = "/var/lib/mysql"
WORDPRESS_DATA_MOUNT = "/var/www/html"

# Ansible Configuration
DEFAULT_ANSIBLE_DIR = "ansible/nginx-scenario"
ANSIBLE_ROLE_NAME = "nginx-roles"
ANSIBLE_PLAYBOOK = "site.yml"
ANSIBLE_INVENTORY = "inventory.ini"
DEFAULT_ANSIBLE_PACKAGES = ["curl", "vim", "git", "ufw"]

# Vagrant Configuration
DEFAULT_VAGRANT_BOX = "ubuntu/jammy64"
DEFAULT_VAGRANT_HOSTNAME = "devbox"
DEFAULT_VAGRANT_IP = "192.168.56.10"
DEFAULT_VAGRANT_MEMORY = 1024
DEFAULT_VAGRANT_CPUS = 1
DEFAULT_VAGRANT_PORTS = {80: 8080, 443: 8443}

# Compose Configuration
COMPOSE_FILENAME = "docker-compose.yml"
COMPOSE_ENV_FILENAME = ".env"

# Saved state (kept outside the project directory)
STATE_DIR = ".stackup"
CREDENTIALS_SUFFIX = ".credentials.yml"

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# File Permissions
SECRET_FILE_PERMISSIONS = 0o600

# Tool Names (for doctor check): name -> (required, install hint)
REQUIRED_TOOLS = {
    "docker": (True, "https://docs.docker.com/engine/install/"),
    "openssl": (True, "apt install openssl"),
    "curl": (False, "apt install curl"),
    "ansible-playbook": (False, "pipx install ansible-core"),
    "vagrant": (False, "https://developer.hashicorp.com/vagrant/install"),
    "VBoxManage": (False, "https://www.virtualbox.org/wiki/Downloads"),
}

# Masking
MASK = "***"
