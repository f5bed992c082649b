"""stackup - bootstrap Dockerized WordPress, nginx, Ansible and Vagrant dev environments"""

__version__ = "1.0.0"
